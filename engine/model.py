"""
Device and port records

Each port accumulates the MAC addresses reported visible on it. Visibility
is a claim, not ground truth: a port may list MACs of devices several hops
away behind a bridge. TopologyBuilder sorts that out.
"""

from typing import Dict, Iterable, List, Optional
from dataclasses import dataclass, field

from .expiry import ExpiringSet

DEVICE_TYPES = ("router", "switch", "modem", "ap", "unknown")


@dataclass
class Port:
    """A device port and the MACs currently visible through it."""
    id: str
    name: str
    visible: ExpiringSet = field(default_factory=ExpiringSet)

    def can_see(self, macs: Iterable[str]) -> bool:
        """True if any of the given MACs is visible on this port."""
        return any(mac in self.visible for mac in macs)

    def sweep(self, now: Optional[float] = None) -> int:
        """Drop visibility claims that have expired."""
        return self.visible.sweep(now)

    def absorb(self, visible: ExpiringSet) -> None:
        """Merge a collector report into this port's visibility."""
        self.visible.merge_from(visible)

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "visible": sorted(self.visible),
        }


@dataclass
class Device:
    """A configured device: identity, hardware addresses and ports."""
    id: str
    macs: List[str]
    name: Optional[str] = None
    device_type: str = "unknown"
    ports: Dict[str, Port] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return self.name or self.id

    def sees_anything(self) -> bool:
        return any(port.visible for port in self.ports.values())

    def port_seeing(self, other: "Device") -> Optional[Port]:
        """First port (configuration order) that sees any MAC of other."""
        for port in self.ports.values():
            if port.can_see(other.macs):
                return port
        return None

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.display_name,
            "type": self.device_type,
            "macs": list(self.macs),
            "ports": {pid: port.to_dict() for pid, port in self.ports.items()},
        }
