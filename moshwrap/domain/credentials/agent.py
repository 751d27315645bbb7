"""
SSH agent credential source

Connects to the local ssh-agent over its Unix socket. Identities are exposed as
paramiko AgentKey objects that sign through the agent, so no private key
material ever enters this process.
"""
from __future__ import annotations
import os
import socket
from typing import Optional, Tuple

import paramiko
from paramiko.agent import AgentSSH

from ...core.constants import AGENT_SOCKET_ENV, DEFAULT_SSH_TIMEOUT
from ...core.exceptions import CredentialError
from ...core.logging import get_logger

logger = get_logger(__name__)


class AgentCredentials(AgentSSH):
    """
    Client side of an ssh-agent connection with a bounded connect timeout.

    Use as a context manager so the agent socket is closed on every exit path:

        with AgentCredentials.connect(timeout=5) as creds:
            establish(..., credentials=creds)
    """

    def __init__(self, socket_path: str):
        super().__init__()
        self.socket_path = socket_path

    @classmethod
    def connect(
        cls,
        socket_path: Optional[str] = None,
        timeout: float = DEFAULT_SSH_TIMEOUT,
    ) -> AgentCredentials:
        """
        Connect to the agent and list its identities.

        Args:
            socket_path: Agent socket path (default: $SSH_AUTH_SOCK)
            timeout: Connect timeout in seconds

        Raises:
            CredentialError: If the agent cannot be reached or queried
        """
        path = socket_path or os.environ.get(AGENT_SOCKET_ENV)
        if not path:
            raise CredentialError(f"{AGENT_SOCKET_ENV} is not set, no ssh-agent available")
        if not hasattr(socket, "AF_UNIX"):
            raise CredentialError("ssh-agent sockets are not supported on this platform")

        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        sock.settimeout(timeout)
        try:
            sock.connect(path)
        except socket.timeout as e:
            sock.close()
            raise CredentialError(f"timed out connecting to ssh-agent at {path}") from e
        except OSError as e:
            sock.close()
            raise CredentialError(f"cannot connect to ssh-agent at {path}: {e.strerror or e}") from e

        # Signing may wait on agent confirmation prompts
        sock.settimeout(None)

        agent = cls(path)
        try:
            agent._connect(sock)
        except (paramiko.SSHException, OSError, EOFError) as e:
            agent.close()
            raise CredentialError(f"cannot list ssh-agent identities: {e}") from e

        logger.debug("ssh-agent at %s offers %d identities", path, len(agent.keys))
        return agent

    @property
    def keys(self) -> Tuple[paramiko.AgentKey, ...]:
        return self.get_keys()

    def close(self) -> None:
        """Close the agent connection"""
        self._close()

    def __enter__(self) -> AgentCredentials:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
