"""
Inventory Loader

Loads the network description (YAML, or JSON which YAML also accepts):
devices, their MAC addresses and ports, and the collectors to run for
each port and device.
"""

import os
import logging
from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field

import yaml

from collector.mac import normalize_mac
from collector.parsers import PORT_FORMATS, DEVICE_FORMATS
from collector.pollers import (
    DEFAULT_VISIBILITY_TTL, CommandSource, DevicePoller, FileSource, PortPoller, Source
)
from engine.model import DEVICE_TYPES

logger = logging.getLogger(__name__)

SSH_DEFAULTS = {
    "port": 22,
    "username": "root",
    "auth_type": "key",
    "key_file": None,
    "password": None,
    "timeout": 10,
}


class InventoryError(Exception):
    """Exception raised for inventory loading errors."""
    pass


@dataclass
class PortConfig:
    id: str
    name: Optional[str] = None
    pollers: List[PortPoller] = field(default_factory=list)


@dataclass
class DeviceConfig:
    id: str
    macs: List[str]
    name: Optional[str] = None
    device_type: str = "unknown"
    ports: List[PortConfig] = field(default_factory=list)
    pollers: List[DevicePoller] = field(default_factory=list)
    ssh: Dict[str, Any] = field(default_factory=dict)


@dataclass
class NetworkConfig:
    devices: List[DeviceConfig]
    root: str = "."
    visibility_ttl: float = DEFAULT_VISIBILITY_TTL


def load_inventory(path: str, root: Optional[str] = None) -> NetworkConfig:
    """
    Load and parse the network description file.

    Args:
        path: Path to the YAML or JSON file
        root: Collector root directory, defaults to the file's directory

    Returns:
        Parsed NetworkConfig

    Raises:
        InventoryError: If file cannot be loaded or parsed
    """
    path = os.path.expanduser(path)

    if not os.path.isfile(path):
        raise InventoryError(f"Inventory file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise InventoryError(f"Failed to parse inventory file: {e}")
    except (IOError, UnicodeDecodeError) as e:
        raise InventoryError(f"Failed to read inventory file: {e}")

    if not data:
        raise InventoryError("Inventory file is empty")

    if root is None:
        root = os.path.dirname(os.path.abspath(path))

    return parse_inventory(data, root)


def parse_inventory(data: Dict[str, Any], root: str = ".") -> NetworkConfig:
    """
    Build a NetworkConfig from already-decoded inventory data.

    Raises:
        InventoryError: On structural errors
    """
    if not isinstance(data, dict):
        raise InventoryError("Inventory must be a mapping")

    try:
        ttl = float(data.get("visibility_ttl", DEFAULT_VISIBILITY_TTL))
    except (TypeError, ValueError):
        raise InventoryError(f"Invalid visibility_ttl: {data.get('visibility_ttl')!r}")
    if ttl <= 0:
        raise InventoryError("visibility_ttl must be positive")

    ssh_defaults = dict(SSH_DEFAULTS)
    ssh_defaults.update(data.get("ssh_defaults") or {})

    raw_devices = data.get("devices")
    if not raw_devices:
        raise InventoryError("No devices defined in inventory")
    if not isinstance(raw_devices, list):
        raise InventoryError("'devices' must be a list")

    devices: List[DeviceConfig] = []
    seen_ids = set()
    mac_owner: Dict[str, str] = {}

    for raw in raw_devices:
        device = _process_device(raw, ssh_defaults, ttl)

        if device.id in seen_ids:
            raise InventoryError(f"Duplicate device id: {device.id}")
        seen_ids.add(device.id)

        for mac in device.macs:
            if mac in mac_owner:
                logger.warning(
                    f"Duplicate MAC {mac}: {mac_owner[mac]} and {device.id}, "
                    f"{device.id} takes precedence for lookups"
                )
            mac_owner[mac] = device.id

        devices.append(device)

    logger.info(f"Loaded inventory with {len(devices)} devices")
    return NetworkConfig(devices=devices, root=root, visibility_ttl=ttl)


def _process_device(raw: Any, ssh_defaults: Dict[str, Any], ttl: float) -> DeviceConfig:
    if not isinstance(raw, dict):
        raise InventoryError(f"Device entry must be a mapping, got {raw!r}")

    device_id = raw.get("id")
    if not device_id:
        raise InventoryError(f"Device without id: {raw!r}")
    device_id = str(device_id)
    if ":" in device_id:
        raise InventoryError(f"Device id must not contain ':': {device_id}")

    raw_macs = raw.get("mac")
    if isinstance(raw_macs, str):
        raw_macs = [raw_macs]
    if not raw_macs:
        raise InventoryError(f"Device {device_id} has no MAC address")

    macs = []
    for value in raw_macs:
        try:
            macs.append(normalize_mac(str(value)))
        except ValueError as e:
            raise InventoryError(f"Device {device_id}: {e}")

    device_type = str(raw.get("type", "unknown")).lower()
    if device_type not in DEVICE_TYPES:
        raise InventoryError(f"Device {device_id}: unknown type {device_type!r}")

    ssh = None
    if raw.get("ssh"):
        ssh = dict(ssh_defaults)
        ssh.update(raw["ssh"])
        unknown = set(ssh) - set(SSH_DEFAULTS) - {"hostname"}
        if unknown:
            raise InventoryError(
                f"Device {device_id}: unknown ssh settings {', '.join(sorted(unknown))}"
            )

    ports: List[PortConfig] = []
    port_ids = set()
    for raw_port in raw.get("ports") or []:
        if not isinstance(raw_port, dict) or not raw_port.get("id"):
            raise InventoryError(f"Device {device_id}: port without id: {raw_port!r}")

        port_id = str(raw_port["id"])
        if port_id in port_ids:
            raise InventoryError(f"Device {device_id}: duplicate port id {port_id}")
        port_ids.add(port_id)

        pollers = [
            PortPoller(
                source=_process_source(p, device_id, ssh),
                format=_process_format(p, PORT_FORMATS, device_id),
                ttl=ttl,
            )
            for p in raw_port.get("pollers") or []
        ]
        ports.append(PortConfig(id=port_id, name=_optional_str(raw_port.get("name")), pollers=pollers))

    device_pollers = [
        DevicePoller(
            source=_process_source(p, device_id, ssh),
            format=_process_format(p, DEVICE_FORMATS, device_id),
            ttl=ttl,
        )
        for p in raw.get("pollers") or []
    ]

    return DeviceConfig(
        id=device_id,
        macs=macs,
        name=_optional_str(raw.get("name")),
        device_type=device_type,
        ports=ports,
        pollers=device_pollers,
        ssh=ssh or {},
    )


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _process_source(raw: Any, device_id: str, ssh: Optional[Dict[str, Any]]) -> Source:
    if not isinstance(raw, dict):
        raise InventoryError(f"Device {device_id}: poller must be a mapping, got {raw!r}")

    kind = raw.get("type")
    if kind == "file":
        if not raw.get("file"):
            raise InventoryError(f"Device {device_id}: file poller without 'file'")
        return FileSource(file=str(raw["file"]))

    if kind == "command":
        if not raw.get("command"):
            raise InventoryError(f"Device {device_id}: command poller without 'command'")
        if not ssh or not ssh.get("hostname"):
            raise InventoryError(
                f"Device {device_id}: command poller needs an 'ssh' block with a hostname"
            )
        return CommandSource(command=str(raw["command"]), ssh=dict(ssh))

    raise InventoryError(f"Device {device_id}: unknown poller type {kind!r}")


def _process_format(raw: Dict[str, Any], formats: Dict[str, Any], device_id: str) -> str:
    fmt = raw.get("format")
    if fmt not in formats:
        raise InventoryError(
            f"Device {device_id}: unknown format {fmt!r}, "
            f"expected one of {', '.join(sorted(formats))}"
        )
    return fmt
