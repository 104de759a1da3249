"""
Collectors

A collector reads a visibility report from a source and parses it with one
of the known formats. Port pollers yield a single set of visible MACs,
device pollers a set per switch/bridge port.

Sources:
- FileSource: a file relative to the collector root directory
- CommandSource: a command run on the device over SSH
"""

import os
import time
import logging
from typing import Any, Callable, Dict, Optional, Union
from dataclasses import dataclass, field

from engine.expiry import ExpiringSet
from ssh_client import SSHClient, SSHClientError

from .parsers import PORT_FORMATS, DEVICE_FORMATS, PortVisibility

logger = logging.getLogger(__name__)

# Seconds a reported MAC stays visible after the report was read
DEFAULT_VISIBILITY_TTL = 5.0


class PollError(Exception):
    """Base class for collector failures; aborts the running poll cycle."""
    pass


class PollIOError(PollError):
    """The collector could not read its source."""
    pass


class PollParseError(PollError):
    """The source was read but its content could not be interpreted."""
    pass


def _decode(raw: bytes, origin: str) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise PollParseError(f"{origin} is not valid UTF-8: {e}")


@dataclass
class FileSource:
    """Report stored in a file, path relative to the collector root."""
    file: str

    def read(self, root: str) -> str:
        path = os.path.join(root, self.file)
        try:
            with open(path, "rb") as f:
                raw = f.read()
        except OSError as e:
            raise PollIOError(f"Failed to read {path}: {e}")
        return _decode(raw, path)

    def describe(self) -> str:
        return f"file {self.file}"


@dataclass
class CommandSource:
    """Report produced by running a command on the device over SSH."""
    command: str
    ssh: Dict[str, Any] = field(default_factory=dict)
    client_factory: Callable[..., SSHClient] = field(default=SSHClient, repr=False, compare=False)

    def read(self, root: str) -> str:
        if not self.ssh.get("hostname"):
            raise PollIOError(f"No SSH hostname configured for command '{self.command}'")

        try:
            with self.client_factory(**self.ssh) as client:
                raw = client.execute(self.command)
        except SSHClientError as e:
            raise PollIOError(str(e))
        return _decode(raw, f"output of '{self.command}'")

    def describe(self) -> str:
        return f"command '{self.command}' on {self.ssh.get('hostname', '?')}"


Source = Union[FileSource, CommandSource]


@dataclass
class PortPoller:
    """Collector reporting the MACs visible on a single port."""
    source: Source
    format: str
    ttl: float = DEFAULT_VISIBILITY_TTL

    def poll(self, root: str, now: Optional[float] = None) -> ExpiringSet:
        """
        Read and parse the report.

        Raises:
            PollIOError: Source unreadable
            PollParseError: Unknown format or undecodable content
        """
        parser = PORT_FORMATS.get(self.format)
        if parser is None:
            raise PollParseError(f"Unknown port report format: {self.format}")

        if now is None:
            now = time.monotonic()

        data = self.source.read(root)
        visible = parser(data, now + self.ttl)
        logger.debug(f"{self.source.describe()} ({self.format}): {len(visible)} visible")
        return visible


@dataclass
class DevicePoller:
    """Collector reporting visible MACs for several ports of one device."""
    source: Source
    format: str
    ttl: float = DEFAULT_VISIBILITY_TTL

    def poll(self, root: str, now: Optional[float] = None) -> PortVisibility:
        """
        Read and parse the report into a port id to visible set mapping.

        Raises:
            PollIOError: Source unreadable
            PollParseError: Unknown format or undecodable content
        """
        parser = DEVICE_FORMATS.get(self.format)
        if parser is None:
            raise PollParseError(f"Unknown device report format: {self.format}")

        if now is None:
            now = time.monotonic()

        data = self.source.read(root)
        ports = parser(data, now + self.ttl)
        logger.debug(
            f"{self.source.describe()} ({self.format}): "
            f"{sum(len(v) for v in ports.values())} visible on {len(ports)} ports"
        )
        return ports
