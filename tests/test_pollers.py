"""Tests for collectors and their sources."""

from unittest.mock import MagicMock

import pytest

from collector.pollers import (
    CommandSource, DevicePoller, FileSource, PollIOError, PollParseError, PortPoller
)
from ssh_client import SSHClientError


def _client_factory(output=b"", error=None):
    client = MagicMock()
    client.__enter__.return_value = client
    client.__exit__.return_value = False
    if error is not None:
        client.execute.side_effect = error
    else:
        client.execute.return_value = output
    return MagicMock(return_value=client), client


class TestFileSource:
    def test_reads_relative_to_root(self, tmp_path):
        (tmp_path / "stations.txt").write_text("00:11:22:33:44:55\n")
        assert FileSource("stations.txt").read(str(tmp_path)) == "00:11:22:33:44:55\n"

    def test_missing_file(self, tmp_path):
        with pytest.raises(PollIOError):
            FileSource("missing.txt").read(str(tmp_path))

    def test_undecodable_file(self, tmp_path):
        (tmp_path / "bad.txt").write_bytes(b"\xff\xfe\x00garbage\x80")
        with pytest.raises(PollParseError):
            FileSource("bad.txt").read(str(tmp_path))


class TestCommandSource:
    def test_runs_command_over_ssh(self):
        factory, client = _client_factory(b"00:11:22:33:44:55 dev lan1\n")
        source = CommandSource(
            command="bridge fdb show",
            ssh={"hostname": "192.0.2.1", "username": "root"},
            client_factory=factory,
        )
        assert source.read(".") == "00:11:22:33:44:55 dev lan1\n"
        factory.assert_called_once_with(hostname="192.0.2.1", username="root")
        client.execute.assert_called_once_with("bridge fdb show")

    def test_ssh_failure_is_io_error(self):
        factory, _ = _client_factory(error=SSHClientError("connection refused"))
        source = CommandSource(command="true", ssh={"hostname": "h"}, client_factory=factory)
        with pytest.raises(PollIOError, match="connection refused"):
            source.read(".")

    def test_missing_hostname(self):
        with pytest.raises(PollIOError):
            CommandSource(command="true").read(".")


class TestPortPoller:
    def test_expiry_is_now_plus_ttl(self, tmp_path):
        (tmp_path / "sta.txt").write_text("00:11:22:33:44:55\n00:11:22:33:44:66\n")
        poller = PortPoller(FileSource("sta.txt"), "hostapd", ttl=5.0)
        visible = poller.poll(str(tmp_path), now=100.0)
        assert sorted(visible) == ["00:11:22:33:44:55", "00:11:22:33:44:66"]
        assert visible.expiry("00:11:22:33:44:55") == 105.0

    def test_unknown_format(self, tmp_path):
        (tmp_path / "sta.txt").write_text("")
        with pytest.raises(PollParseError):
            PortPoller(FileSource("sta.txt"), "fdb").poll(str(tmp_path), now=0.0)

    def test_io_error_propagates(self, tmp_path):
        with pytest.raises(PollIOError):
            PortPoller(FileSource("nope.txt"), "hostapd").poll(str(tmp_path))


class TestDevicePoller:
    def test_fdb_by_port(self, tmp_path):
        (tmp_path / "fdb.txt").write_text(
            "00:11:22:33:44:55 dev lan1 master br-lan\n"
            "00:11:22:33:44:66 dev wan master br-lan\n"
        )
        poller = DevicePoller(FileSource("fdb.txt"), "fdb", ttl=2.0)
        ports = poller.poll(str(tmp_path), now=10.0)
        assert sorted(ports) == ["lan1", "wan"]
        assert ports["wan"].expiry("00:11:22:33:44:66") == 12.0

    def test_swconfig_over_ssh(self):
        factory, _ = _client_factory(b"Port 1: MAC 00:11:22:33:44:55\n")
        source = CommandSource(command="swconfig dev switch0 get arl_table",
                               ssh={"hostname": "sw"}, client_factory=factory)
        ports = DevicePoller(source, "swc").poll(".", now=0.0)
        assert list(ports) == ["1"]

    def test_unknown_format(self, tmp_path):
        with pytest.raises(PollParseError):
            DevicePoller(FileSource("x"), "hostapd").poll(str(tmp_path))
