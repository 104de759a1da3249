"""
SSH Client

Runs report commands (``bridge fdb show``, ``hostapd_cli all_sta`` ...) on
network devices so command collectors can parse their output.
"""

import os
import logging
from typing import Optional

import paramiko

logger = logging.getLogger(__name__)


class SSHClientError(Exception):
    """Exception raised for SSH connection or command failures."""
    pass


class SSHClient:
    """
    Thin paramiko wrapper with key or password authentication.

    Usable as a context manager; execute() connects lazily.
    """

    def __init__(
        self,
        hostname: str,
        port: int = 22,
        username: str = "root",
        auth_type: str = "key",
        key_file: Optional[str] = None,
        password: Optional[str] = None,
        timeout: int = 10
    ):
        self.hostname = hostname
        self.port = port
        self.username = username
        self.auth_type = auth_type
        self.key_file = key_file
        self.password = password
        self.timeout = timeout

        self._client: Optional[paramiko.SSHClient] = None

    @property
    def connected(self) -> bool:
        return self._client is not None

    def connect(self) -> None:
        """
        Open the connection if it is not open yet.

        Raises:
            SSHClientError: On authentication, protocol or network failure
        """
        if self._client is not None:
            return

        kwargs = {
            "hostname": self.hostname,
            "port": self.port,
            "username": self.username,
            "timeout": self.timeout,
            "allow_agent": False,
            "look_for_keys": False,
        }

        if self.auth_type == "key":
            key_path = os.path.expanduser(self.key_file) if self.key_file else None
            if key_path and os.path.isfile(key_path):
                kwargs["key_filename"] = key_path
            else:
                if key_path:
                    logger.warning(f"Key file not found: {key_path}")
                kwargs["allow_agent"] = True
                kwargs["look_for_keys"] = True
        elif self.auth_type == "password":
            if not self.password:
                raise SSHClientError("Password authentication requires a password")
            kwargs["password"] = self.password
        else:
            raise SSHClientError(f"Unknown auth_type: {self.auth_type}")

        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        try:
            logger.debug(f"Connecting to {self.hostname}:{self.port} as {self.username}")
            client.connect(**kwargs)
        except paramiko.AuthenticationException as e:
            raise SSHClientError(f"Authentication failed for {self.hostname}: {e}")
        except paramiko.SSHException as e:
            raise SSHClientError(f"SSH error connecting to {self.hostname}: {e}")
        except OSError as e:
            raise SSHClientError(f"Network error connecting to {self.hostname}: {e}")

        self._client = client

    def execute(self, cmd: str, check: bool = True) -> bytes:
        """
        Run a command and return its raw stdout.

        Args:
            cmd: Command line to run on the device
            check: Raise when the command exits non-zero

        Raises:
            SSHClientError: If the command cannot be run, or fails with check set
        """
        self.connect()

        try:
            logger.debug(f"Executing on {self.hostname}: {cmd}")
            _stdin, stdout, stderr = self._client.exec_command(cmd, timeout=self.timeout)
            output = stdout.read()
            error = stderr.read().decode("utf-8", errors="replace").strip()
            exit_status = stdout.channel.recv_exit_status()
        except (paramiko.SSHException, OSError) as e:
            raise SSHClientError(f"Failed to execute command on {self.hostname}: {e}")

        if exit_status != 0:
            if check:
                raise SSHClientError(
                    f"Command '{cmd}' on {self.hostname} exited with {exit_status}: {error}"
                )
            logger.debug(f"Command returned {exit_status}: {error}")

        return output

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.debug(f"Disconnected from {self.hostname}")

    def __enter__(self) -> "SSHClient":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"SSHClient({self.username}@{self.hostname}:{self.port})"
