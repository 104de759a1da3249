"""
Topology Inference Engine

Builds a network topology from accumulated port visibility by:
1. Pruning MACs a port only sees transitively through another device
2. Linking every pair of devices where at least one side sees the other
3. Summarising MACs that belong to no configured device as one
   "N devices" node per port

The polled state is never modified; pruning works on a clone.
"""

import logging
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field, asdict

from .model import Device, Port
from .multikey import MultiKeyIndex

logger = logging.getLogger(__name__)

NODE_DEVICE = "device"
NODE_PORT = "port"
NODE_AGGREGATE = "aggregate"

EDGE_MEMBER = "member"
EDGE_ADJACENCY = "adjacency"
EDGE_AGGREGATE = "aggregate"


def device_node_id(device_id: str) -> str:
    return f"device:{device_id}"


def port_node_id(device_id: str, port_id: str) -> str:
    return f"port:{device_id}:{port_id}"


def aggregate_node_id(device_id: str, port_id: str) -> str:
    return f"unknown:{device_id}:{port_id}"


@dataclass
class Node:
    """A graph node: a device, one of its ports, or an unknown-neighbour count."""
    id: str
    kind: str
    label: str
    device_id: str
    port_id: Optional[str] = None
    device_type: Optional[str] = None
    count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class Edge:
    """An undirected edge between two node ids."""
    source: str
    target: str
    kind: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    def involves(self, node_id: str) -> bool:
        return node_id in (self.source, self.target)


@dataclass
class Cluster:
    """A device drawn together with its active ports."""
    device_id: str
    device_node: str
    port_nodes: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Topology:
    """Inferred network graph."""
    nodes: Dict[str, Node] = field(default_factory=dict)
    edges: List[Edge] = field(default_factory=list)
    clusters: List[Cluster] = field(default_factory=list)

    def add_node(self, node: Node) -> Node:
        self.nodes[node.id] = node
        return node

    def add_edge(self, source: str, target: str, kind: str) -> Edge:
        edge = Edge(source=source, target=target, kind=kind)
        self.edges.append(edge)
        return edge

    def nodes_of_kind(self, kind: str) -> List[Node]:
        return [n for n in self.nodes.values() if n.kind == kind]

    def adjacencies(self) -> List[Edge]:
        return [e for e in self.edges if e.kind == EDGE_ADJACENCY]

    def aggregates(self) -> List[Node]:
        return self.nodes_of_kind(NODE_AGGREGATE)

    def edges_for(self, node_id: str) -> List[Edge]:
        return [e for e in self.edges if e.involves(node_id)]

    def cluster_for(self, device_id: str) -> Optional[Cluster]:
        for cluster in self.clusters:
            if cluster.device_id == device_id:
                return cluster
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes.values()],
            "edges": [e.to_dict() for e in self.edges],
            "clusters": [c.to_dict() for c in self.clusters],
            "summary": {
                "device_count": len(self.nodes_of_kind(NODE_DEVICE)),
                "port_count": len(self.nodes_of_kind(NODE_PORT)),
                "adjacency_count": len(self.adjacencies()),
                "unknown_neighbor_count": sum(n.count or 0 for n in self.aggregates()),
            },
        }


class TopologyBuilder:
    """
    Infers adjacency from the visibility accumulated in a device index.

    Every pair of devices is linked. Each end attaches at the first port
    that sees the other device, or at the device node when none does.
    Stateless apart from its options: every build() is a function of the
    index it is given.
    """

    def __init__(self, require_visibility: bool = False):
        """
        Args:
            require_visibility: Skip pairs where neither device sees the other
        """
        self.require_visibility = require_visibility

    def build(self, devices: MultiKeyIndex[str, Device]) -> Topology:
        """
        Infer the topology.

        Args:
            devices: Polled devices keyed by MAC; left untouched

        Returns:
            Inferred Topology
        """
        topology = Topology()

        pruned = self.prune(devices)

        self._add_device_nodes(topology, pruned)

        pruned.visit_pairs(
            lambda left, right: self._resolve_adjacency(topology, left, right)
        )

        self._add_unknown_neighbors(topology, pruned)

        logger.info(
            f"Inferred topology: {len(topology.nodes_of_kind(NODE_DEVICE))} devices, "
            f"{len(topology.adjacencies())} adjacencies, "
            f"{len(topology.aggregates())} unknown-neighbour groups"
        )

        return topology

    def prune(self, devices: MultiKeyIndex[str, Device]) -> MultiKeyIndex[str, Device]:
        """
        Strip transitively inherited visibility.

        If port P of device D sees a MAC of device D2, every port of D2 that
        does not see D back is on the far side of D2 from D, so whatever that
        port sees is removed from P. All lookups go to ``devices``, all
        removals to the returned clone.
        """
        pruned = devices.clone()

        for record_id, device in devices.items():
            working = pruned.get_by_id(record_id)

            for port_id, port in device.ports.items():
                working_port = working.ports[port_id]

                for mac in port.visible:
                    other = devices.get(mac)
                    if other is None:
                        continue

                    for other_port in other.ports.values():
                        if other_port.can_see(device.macs):
                            continue
                        for hidden in other_port.visible:
                            if working_port.visible.remove(hidden):
                                logger.debug(
                                    f"{device.id}:{port_id} drops {hidden}, "
                                    f"behind {other.id}:{other_port.id}"
                                )

        return pruned

    def _add_device_nodes(self, topology: Topology, devices: MultiKeyIndex[str, Device]) -> None:
        for device in devices.values():
            device_node = topology.add_node(Node(
                id=device_node_id(device.id),
                kind=NODE_DEVICE,
                label=device.display_name,
                device_id=device.id,
                device_type=device.device_type,
            ))

            if not device.sees_anything():
                continue

            cluster = Cluster(device_id=device.id, device_node=device_node.id)
            for port in device.ports.values():
                if not port.visible:
                    continue
                port_node = topology.add_node(Node(
                    id=port_node_id(device.id, port.id),
                    kind=NODE_PORT,
                    label=port.name,
                    device_id=device.id,
                    port_id=port.id,
                ))
                cluster.port_nodes.append(port_node.id)
                topology.add_edge(device_node.id, port_node.id, EDGE_MEMBER)

            topology.clusters.append(cluster)

    def _resolve_adjacency(self, topology: Topology, left: Device, right: Device) -> None:
        left_port = left.port_seeing(right)
        right_port = right.port_seeing(left)

        if self.require_visibility and left_port is None and right_port is None:
            return

        topology.add_edge(
            self._endpoint(left, left_port),
            self._endpoint(right, right_port),
            EDGE_ADJACENCY,
        )

    @staticmethod
    def _endpoint(device: Device, port: Optional[Port]) -> str:
        if port is None:
            return device_node_id(device.id)
        return port_node_id(device.id, port.id)

    def _add_unknown_neighbors(self, topology: Topology, devices: MultiKeyIndex[str, Device]) -> None:
        for device in devices.values():
            for port in device.ports.values():
                if not port.visible:
                    continue

                count = sum(1 for mac in port.visible if not devices.contains_key(mac))
                if count == 0:
                    continue

                node = topology.add_node(Node(
                    id=aggregate_node_id(device.id, port.id),
                    kind=NODE_AGGREGATE,
                    label=f"{count} device" if count == 1 else f"{count} devices",
                    device_id=device.id,
                    port_id=port.id,
                    count=count,
                ))
                topology.add_edge(port_node_id(device.id, port.id), node.id, EDGE_AGGREGATE)
