"""
Topology Validation Engine

Checks an inferred topology for signs of incomplete or suspicious data:
- One-sided adjacencies (warning)
- MAC addresses configured on more than one device (warning)
- Devices no port links to, in either direction (info)
- Ports seeing unconfigured devices (info)
"""

import logging
from collections import defaultdict
from typing import Dict, List, Any, Optional
from dataclasses import dataclass, asdict

from .infer import Topology, NODE_DEVICE, NODE_PORT
from .model import Device
from .multikey import MultiKeyIndex

logger = logging.getLogger(__name__)


@dataclass
class ValidationIssue:
    """Represents a validation issue found in the topology."""
    severity: str  # "error", "warning", "info"
    device: str
    port: str
    message: str
    details: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        if result["details"] is None:
            del result["details"]
        return result


class TopologyValidator:
    """
    Validates an inferred topology against the devices it was built from.

    Validation checks:
    1. One-sided adjacency - only one device sees the other
    2. Shared MACs - a MAC is configured on several devices
    3. Isolated devices - no adjacency seen from a port on either end
    4. Unknown neighbours - a port sees more unconfigured devices than allowed
    """

    DEFAULT_UNKNOWN_THRESHOLD = 0

    def __init__(self, unknown_threshold: int = DEFAULT_UNKNOWN_THRESHOLD):
        """
        Args:
            unknown_threshold: Unknown neighbour count a port may have without an issue
        """
        self.unknown_threshold = unknown_threshold

    def validate(
        self,
        topology: Topology,
        devices: MultiKeyIndex[str, Device]
    ) -> List[ValidationIssue]:
        """
        Validate topology.

        Args:
            topology: Inferred topology
            devices: Device index the topology was built from

        Returns:
            List of validation issues found, errors first
        """
        issues: List[ValidationIssue] = []

        issues.extend(self._check_one_sided(topology))
        issues.extend(self._check_shared_macs(devices))
        issues.extend(self._check_isolated(topology))
        issues.extend(self._check_unknown_neighbors(topology))

        severity_order = {"error": 0, "warning": 1, "info": 2}
        issues.sort(key=lambda x: (severity_order.get(x.severity, 3), x.device, x.port))

        logger.info(
            f"Validation complete: {len(issues)} issues "
            f"({sum(1 for i in issues if i.severity == 'error')} errors, "
            f"{sum(1 for i in issues if i.severity == 'warning')} warnings)"
        )

        return issues

    def _check_one_sided(self, topology: Topology) -> List[ValidationIssue]:
        """Adjacencies where one end had to fall back to the device node."""
        issues = []

        for edge in topology.adjacencies():
            source = topology.nodes[edge.source]
            target = topology.nodes[edge.target]

            for blind, seeing in ((source, target), (target, source)):
                if blind.kind != NODE_DEVICE or seeing.kind != NODE_PORT:
                    continue
                issues.append(ValidationIssue(
                    severity="warning",
                    device=seeing.device_id,
                    port=seeing.port_id,
                    message=(
                        f"One-sided adjacency with {blind.device_id} - "
                        f"{blind.device_id} does not see {seeing.device_id} on any port"
                    ),
                    details={"remote_device": blind.device_id},
                ))

        return issues

    def _check_shared_macs(self, devices: MultiKeyIndex[str, Device]) -> List[ValidationIssue]:
        """MACs configured on several devices resolve to the last one only."""
        owners: Dict[str, List[str]] = defaultdict(list)
        for device in devices.values():
            for mac in device.macs:
                owners[mac].append(device.id)

        issues = []
        for mac, device_ids in owners.items():
            if len(device_ids) < 2:
                continue
            winner = devices.get(mac)
            issues.append(ValidationIssue(
                severity="warning",
                device=device_ids[0],
                port="",
                message=(
                    f"MAC {mac} is configured on {', '.join(device_ids)}; "
                    f"lookups resolve to {winner.id if winner else '?'}"
                ),
                details={"mac": mac, "devices": device_ids},
            ))

        return issues

    def _check_isolated(self, topology: Topology) -> List[ValidationIssue]:
        """Devices with no adjacency backed by a port on either end."""
        linked = set()
        for edge in topology.adjacencies():
            source = topology.nodes[edge.source]
            target = topology.nodes[edge.target]
            if source.kind == NODE_DEVICE and target.kind == NODE_DEVICE:
                continue
            linked.add(source.device_id)
            linked.add(target.device_id)

        return [
            ValidationIssue(
                severity="info",
                device=node.device_id,
                port="",
                message="No port-level adjacency inferred for this device",
            )
            for node in topology.nodes_of_kind(NODE_DEVICE)
            if node.device_id not in linked
        ]

    def _check_unknown_neighbors(self, topology: Topology) -> List[ValidationIssue]:
        """Ports that see devices missing from the inventory."""
        return [
            ValidationIssue(
                severity="info",
                device=node.device_id,
                port=node.port_id,
                message=f"Port sees {node.count} unconfigured device(s)",
                details={"count": node.count, "threshold": self.unknown_threshold},
            )
            for node in topology.aggregates()
            if node.count > self.unknown_threshold
        ]
