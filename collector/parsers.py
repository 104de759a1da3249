"""
Visibility report parsers

Turn the text output of common tools into sets of visible MAC addresses:
- hostapd: station list (``hostapd_cli all_sta``), one set per port
- fdb: Linux bridge forwarding database (``bridge fdb show``), per port
- swc: swconfig ARL table (``swconfig dev switch0 get arl_table``), per port

Every parser stamps all entries with the same expiry and silently drops
addresses that are not universally administered unicast.
"""

import re
import logging
from typing import Callable, Dict

from engine.expiry import ExpiringSet

from .mac import normalize_mac, is_valid_mac

logger = logging.getLogger(__name__)

PortVisibility = Dict[str, ExpiringSet]

_SWCONFIG_LINE = re.compile(r'^Port\s+(\S+?):?\s+MAC\s+(\S+)')


def parse_hostapd(data: str, expiry: float) -> ExpiringSet:
    """
    Parse a hostapd station dump.

    Station entries start with a line holding only the station MAC, followed
    by ``key=value`` lines which are ignored.
    """
    visible: ExpiringSet = ExpiringSet()

    for line in data.split('\n'):
        line = line.strip()
        if len(line) != 17 or line[2] != ':':
            continue

        try:
            mac = normalize_mac(line)
        except ValueError:
            continue

        if not is_valid_mac(mac):
            continue

        logger.debug(f"hostapd reported hardware {mac}")
        visible.insert(mac, expiry)

    return visible


def parse_fdb(data: str, expiry: float) -> PortVisibility:
    """
    Parse ``bridge fdb show`` output.

    Lines look like ``aa:bb:cc:dd:ee:ff dev eth1 master br-lan``. Entries
    flagged ``permanent`` or ``self`` describe the bridge itself and are
    skipped.
    """
    ports: PortVisibility = {}

    for line in data.split('\n'):
        parts = line.split()
        if not parts:
            continue

        try:
            mac = normalize_mac(parts[0])
        except ValueError:
            continue

        if not is_valid_mac(mac):
            continue

        if len(parts) < 3 or parts[1] != 'dev':
            logger.warning(f"fdb line appears invalid, missing dev: {line.strip()}")
            continue

        port = parts[2]
        flags = set(parts[3:])
        if 'permanent' in flags or 'self' in flags:
            continue

        logger.debug(f"fdb reported hardware {mac} on {port}")
        ports.setdefault(port, ExpiringSet()).insert(mac, expiry)

    return ports


def parse_swconfig(data: str, expiry: float) -> PortVisibility:
    """Parse a swconfig ARL table, lines look like ``Port 2: MAC aa:bb:cc:dd:ee:ff``."""
    ports: PortVisibility = {}

    for line in data.split('\n'):
        line = line.strip()
        if not line.startswith('Port'):
            continue

        match = _SWCONFIG_LINE.match(line)
        if not match:
            logger.warning(f"swconfig line appears invalid, missing mac: {line}")
            continue

        port, addr = match.groups()
        try:
            mac = normalize_mac(addr)
        except ValueError:
            continue

        if not is_valid_mac(mac):
            continue

        logger.debug(f"swconfig reported hardware {mac} on port {port}")
        ports.setdefault(port, ExpiringSet()).insert(mac, expiry)

    return ports


PORT_FORMATS: Dict[str, Callable[[str, float], ExpiringSet]] = {
    "hostapd": parse_hostapd,
}

DEVICE_FORMATS: Dict[str, Callable[[str, float], PortVisibility]] = {
    "fdb": parse_fdb,
    "swc": parse_swconfig,
}
