from __future__ import annotations
from typing import Optional
import paramiko

from .exceptions import ConnectionError
from .logging import get_logger

logger = get_logger(__name__)


class RemoteSession:
    """
    Authenticated SSH connection to a single host.

    - Owns the underlying paramiko Transport and its socket
    - Opens exec channels on demand
    - Supports with-context management
    """
    def __init__(
        self,
        transport: paramiko.Transport,
        host: str,
        port: int,
        user: str,
    ) -> None:
        self.transport = transport
        self.host = host
        self.port = port
        self.user = user

    def is_active(self) -> bool:
        return self.transport.is_active() and self.transport.is_authenticated()

    def open_channel(self, timeout: Optional[float] = None) -> paramiko.Channel:
        """Open a new session channel for command execution"""
        if not self.transport.is_active():
            raise ConnectionError(f"SSH connection to {self.host} is closed")
        try:
            return self.transport.open_session(timeout=timeout)
        except paramiko.SSHException as e:
            raise ConnectionError(f"Failed to open channel on {self.host}: {e}") from e

    def close(self) -> None:
        logger.debug("Closing SSH connection to %s:%d", self.host, self.port)
        self.transport.close()

    # --------------------
    # Context manager
    # --------------------
    def __enter__(self) -> RemoteSession:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"RemoteSession({self.user}@{self.host}:{self.port})"
