"""
Shared pytest fixtures for the netmap test suite.

Most tests drive the engine with in-memory collectors instead of report
files, so MAC addresses reach the core exactly as written.
"""

import pytest

from collector.pollers import PollIOError
from engine.expiry import ExpiringSet
from engine.model import Device, Port
from engine.multikey import MultiKeyIndex
from inventory import DeviceConfig, NetworkConfig, PortConfig

FAR_FUTURE = 1_000_000.0


class StaticPortPoller:
    """Port collector returning a fixed list of MACs."""

    def __init__(self, macs, ttl=5.0):
        self.macs = list(macs)
        self.ttl = ttl
        self.calls = 0

    def poll(self, root, now=None):
        self.calls += 1
        now = 0.0 if now is None else now
        visible = ExpiringSet()
        for mac in self.macs:
            visible.insert(mac, now + self.ttl)
        return visible


class StaticDevicePoller:
    """Device collector returning fixed MAC lists per port id."""

    def __init__(self, ports, ttl=5.0):
        self.ports = {pid: list(macs) for pid, macs in ports.items()}
        self.ttl = ttl
        self.calls = 0

    def poll(self, root, now=None):
        self.calls += 1
        now = 0.0 if now is None else now
        result = {}
        for pid, macs in self.ports.items():
            visible = ExpiringSet()
            for mac in macs:
                visible.insert(mac, now + self.ttl)
            result[pid] = visible
        return result


class FailingPoller:
    """Collector whose source cannot be read."""

    def __init__(self):
        self.calls = 0

    def poll(self, root, now=None):
        self.calls += 1
        raise PollIOError("report unavailable")


@pytest.fixture
def port_poller():
    return StaticPortPoller


@pytest.fixture
def device_poller():
    return StaticDevicePoller


@pytest.fixture
def failing_poller():
    return FailingPoller


@pytest.fixture
def network_config():
    """Factory: network_config([(id, macs, {port: [pollers]}, [device pollers]), ...])."""

    def build(devices, root="."):
        configs = []
        for entry in devices:
            device_id, macs = entry[0], entry[1]
            ports = entry[2] if len(entry) > 2 else {}
            pollers = entry[3] if len(entry) > 3 else []
            configs.append(DeviceConfig(
                id=device_id,
                macs=list(macs),
                ports=[PortConfig(id=pid, pollers=list(p)) for pid, p in ports.items()],
                pollers=list(pollers),
            ))
        return NetworkConfig(devices=configs, root=root)

    return build


@pytest.fixture
def device_index():
    """Factory: device_index([(id, macs, {port: [visible macs]}), ...]) -> MultiKeyIndex."""

    def build(devices):
        index = MultiKeyIndex()
        for entry in devices:
            device_id, macs = entry[0], entry[1]
            ports = entry[2] if len(entry) > 2 else {}
            device = Device(id=device_id, macs=list(macs))
            for pid, visible in ports.items():
                port = Port(id=pid, name=pid)
                for mac in visible:
                    port.visible.insert(mac, FAR_FUTURE)
                device.ports[pid] = port
            index.insert(device.macs, device)
        return index

    return build
