"""
Network state and poll cycle

Builds the device/port skeleton from configuration and keeps it up to date
by running the configured collectors on demand. Scheduling poll cycles is
left to the caller.
"""

import time
import logging
import threading
from typing import TYPE_CHECKING, Dict, Optional

from .infer import Topology, TopologyBuilder
from .model import Device, Port
from .multikey import MultiKeyIndex

if TYPE_CHECKING:
    from inventory import NetworkConfig

logger = logging.getLogger(__name__)


class Network:
    """
    Configured devices plus their accumulated visibility.

    Devices live in a MultiKeyIndex keyed by every MAC they own. poll() and
    map() hold the same lock, so a threaded driver can never build a
    topology halfway through a poll cycle.
    """

    def __init__(self, config: "NetworkConfig", root: Optional[str] = None):
        self.config = config
        self.root = root if root is not None else config.root
        self.devices: MultiKeyIndex[str, Device] = MultiKeyIndex()
        self._record_ids: Dict[str, int] = {}
        self._lock = threading.RLock()

        for device_config in config.devices:
            device = Device(
                id=device_config.id,
                macs=list(device_config.macs),
                name=device_config.name,
                device_type=device_config.device_type,
                ports={
                    p.id: Port(id=p.id, name=p.name or p.id)
                    for p in device_config.ports
                },
            )
            self._record_ids[device.id] = self.devices.insert(device.macs, device)

        logger.debug(f"Network skeleton built with {len(self.devices)} devices")

    def device(self, device_id: str) -> Optional[Device]:
        """Look up a device by its configured id."""
        record_id = self._record_ids.get(device_id)
        if record_id is None:
            return None
        return self.devices.get_by_id(record_id)

    def poll(self, now: Optional[float] = None) -> None:
        """
        Run one poll cycle.

        Every port is swept first and then fed by its port collectors; after
        that every device collector's per-port results are merged into the
        matching ports. Results for ports that are not configured are dropped.

        Args:
            now: Reference time, defaults to ``time.monotonic()``

        Raises:
            PollError: The first collector failure; merges already done stay applied
        """
        if now is None:
            now = time.monotonic()

        with self._lock:
            for device_config in self.config.devices:
                device = self.device(device_config.id)

                for port_config in device_config.ports:
                    port = device.ports[port_config.id]
                    expired = port.sweep(now)
                    if expired:
                        logger.debug(f"{device.id}:{port.id} expired {expired} entries")

                    for poller in port_config.pollers:
                        port.absorb(poller.poll(self.root, now))

            for device_config in self.config.devices:
                device = self.device(device_config.id)

                for poller in device_config.pollers:
                    for port_id, visible in poller.poll(self.root, now).items():
                        port = device.ports.get(port_id)
                        if port is None:
                            logger.debug(f"{device.id}: ignoring report for unknown port {port_id}")
                            continue
                        port.absorb(visible)

        logger.info(
            f"Poll cycle complete: "
            f"{sum(len(p.visible) for d in self.devices for p in d.ports.values())} "
            f"visibility entries across {len(self.devices)} devices"
        )

    def map(self) -> Topology:
        """Build the topology from the current visibility state."""
        with self._lock:
            return TopologyBuilder().build(self.devices)
