"""
Output Formatters

Render an inferred topology (and optionally validation results) as
Graphviz DOT, a plain text report, or JSON.
"""

import json
import logging
from typing import List, Optional, TextIO, Dict
from pathlib import Path

from engine.infer import Topology, Node, NODE_DEVICE, NODE_PORT, EDGE_ADJACENCY, EDGE_AGGREGATE
from engine.validate import ValidationIssue

logger = logging.getLogger(__name__)

DEVICE_SHAPES = {
    "router": "box",
    "switch": "box3d",
    "modem": "cds",
    "ap": "ellipse",
    "unknown": "ellipse",
}


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _dot_node(node: Node) -> str:
    attrs = {"label": node.label}
    if node.kind == NODE_DEVICE:
        attrs["shape"] = DEVICE_SHAPES.get(node.device_type or "unknown", "ellipse")
    elif node.kind == NODE_PORT:
        attrs["shape"] = "point"
    rendered = ", ".join(f"{k}={_quote(v)}" for k, v in attrs.items())
    return f"{_quote(node.id)} [{rendered}];"


def to_dot(topology: Topology, file: Optional[TextIO] = None) -> str:
    """
    Format topology as an undirected Graphviz graph.

    Devices with at least one active port are drawn in a cluster together
    with those ports.

    Args:
        topology: Topology object to format
        file: Optional file to write to

    Returns:
        DOT source
    """
    lines = ["graph {"]

    clustered = set()
    for index, cluster in enumerate(topology.clusters):
        lines.append(f"    subgraph cluster_{index} {{")
        lines.append(f"        {_dot_node(topology.nodes[cluster.device_node])}")
        clustered.add(cluster.device_node)
        for port_node in cluster.port_nodes:
            lines.append(f"        {_dot_node(topology.nodes[port_node])}")
            lines.append(f"        {_quote(cluster.device_node)} -- {_quote(port_node)};")
            clustered.add(port_node)
        lines.append("    }")

    for node in topology.nodes.values():
        if node.id not in clustered:
            lines.append(f"    {_dot_node(node)}")

    for edge in topology.edges:
        if edge.kind in (EDGE_ADJACENCY, EDGE_AGGREGATE):
            lines.append(f"    {_quote(edge.source)} -- {_quote(edge.target)};")

    lines.append("}")
    text = "\n".join(lines) + "\n"

    if file is not None:
        file.write(text)

    return text


def to_json(
    topology: Topology,
    path: str,
    issues: Optional[List[ValidationIssue]] = None,
    indent: int = 2
) -> None:
    """
    Write topology to a JSON file.

    Args:
        topology: Topology object to serialize
        path: Output file path
        issues: Optional list of validation issues to include
        indent: JSON indentation level
    """
    output = topology.to_dict()

    if issues is not None:
        output["validation_issues"] = [issue.to_dict() for issue in issues]
        output["summary"]["issue_count"] = len(issues)
        output["summary"]["warning_count"] = sum(1 for i in issues if i.severity == "warning")

    path_obj = Path(path)
    path_obj.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(output, f, indent=indent, ensure_ascii=False)

    logger.info(f"Topology written to {path}")


def _describe(topology: Topology, node_id: str) -> str:
    node = topology.nodes[node_id]
    if node.kind == NODE_PORT:
        return f"{node.device_id}:{node.port_id}"
    return node.device_id


def to_text(
    topology: Topology,
    issues: Optional[List[ValidationIssue]] = None,
    file: Optional[TextIO] = None
) -> str:
    """
    Format topology as a human-readable hierarchical report.

    Args:
        topology: Topology object to format
        issues: Optional list of validation issues
        file: Optional file to write to

    Returns:
        Formatted text string
    """
    lines = []

    lines.append("=" * 60)
    lines.append("NETWORK TOPOLOGY REPORT")
    lines.append("=" * 60)
    lines.append("")

    summary = topology.to_dict()["summary"]
    lines.append("SUMMARY")
    lines.append("-" * 40)
    lines.append(f"  Devices:            {summary['device_count']}")
    lines.append(f"  Active ports:       {summary['port_count']}")
    lines.append(f"  Adjacencies:        {summary['adjacency_count']}")
    lines.append(f"  Unknown neighbours: {summary['unknown_neighbor_count']}")
    lines.append("")

    # Neighbours per node id, for the device listing
    neighbours: Dict[str, List[str]] = {}
    for edge in topology.adjacencies():
        neighbours.setdefault(edge.source, []).append(_describe(topology, edge.target))
        neighbours.setdefault(edge.target, []).append(_describe(topology, edge.source))

    unknown = {(n.device_id, n.port_id): n.count for n in topology.aggregates()}

    lines.append("DEVICES")
    lines.append("-" * 40)
    for device in sorted(topology.nodes_of_kind(NODE_DEVICE), key=lambda n: n.device_id):
        lines.append(f"  {device.device_id} ({device.label}) [{device.device_type}]")
        for peer in neighbours.get(device.id, []):
            lines.append(f"    -- {peer}")

        cluster = topology.cluster_for(device.device_id)
        for port_node_id in (cluster.port_nodes if cluster else []):
            port = topology.nodes[port_node_id]
            lines.append(f"    - {port.port_id} ({port.label})")
            for peer in neighbours.get(port_node_id, []):
                lines.append(f"        -- {peer}")
            count = unknown.get((port.device_id, port.port_id))
            if count:
                lines.append(f"        -- {count} unknown device(s)")
    lines.append("")

    lines.append("ADJACENCIES")
    lines.append("-" * 40)
    if topology.adjacencies():
        for edge in topology.adjacencies():
            lines.append(f"  {_describe(topology, edge.source)} <--> {_describe(topology, edge.target)}")
    else:
        lines.append("  No adjacencies inferred")
    lines.append("")

    if issues:
        lines.append("VALIDATION ISSUES")
        lines.append("-" * 40)
        for issue in issues:
            severity_marker = {
                "error": "[ERROR]",
                "warning": "[WARN]",
                "info": "[INFO]"
            }.get(issue.severity, "[?]")

            location = f"{issue.device}:{issue.port}" if issue.port else issue.device
            lines.append(f"  {severity_marker} {location}")
            lines.append(f"    {issue.message}")
        lines.append("")

    lines.append("=" * 60)

    text = "\n".join(lines)

    if file is not None:
        file.write(text)

    return text


def format_issues(issues: List[ValidationIssue]) -> str:
    """
    Format validation issues as a summary text.

    Args:
        issues: List of validation issues

    Returns:
        Formatted summary string
    """
    if not issues:
        return "No validation issues found."

    lines = []

    error_count = sum(1 for i in issues if i.severity == "error")
    warning_count = sum(1 for i in issues if i.severity == "warning")
    info_count = sum(1 for i in issues if i.severity == "info")

    lines.append(f"Found {len(issues)} issues: {error_count} errors, {warning_count} warnings, {info_count} info")
    lines.append("")

    for issue in issues:
        prefix = {
            "error": "ERROR",
            "warning": "WARN",
            "info": "INFO"
        }.get(issue.severity, "???")

        location = f"{issue.device}:{issue.port}" if issue.port else issue.device
        lines.append(f"[{prefix}] {location} - {issue.message}")

    return "\n".join(lines)
