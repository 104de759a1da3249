"""
Collector module - Visibility report collection

Contains:
- mac: MAC address normalisation and validity checks
- parsers: hostapd, bridge fdb and swconfig report parsers
- pollers: Port and device collectors reading files or SSH command output
"""

from .mac import normalize_mac, is_valid_mac
from .parsers import parse_hostapd, parse_fdb, parse_swconfig
from .pollers import (
    PortPoller,
    DevicePoller,
    FileSource,
    CommandSource,
    PollError,
    PollIOError,
    PollParseError,
)

__all__ = [
    'normalize_mac',
    'is_valid_mac',
    'parse_hostapd',
    'parse_fdb',
    'parse_swconfig',
    'PortPoller',
    'DevicePoller',
    'FileSource',
    'CommandSource',
    'PollError',
    'PollIOError',
    'PollParseError',
]
