"""
SSH session establishment

Dial (directly or through a proxy), handshake, verify the host key, then
authenticate with the ssh-agent identities.
"""
from typing import List, Optional, Sequence

import paramiko

from ...core.constants import DEFAULT_SSH_PORT, DEFAULT_SSH_TIMEOUT
from ...core.exceptions import HandshakeError
from ...core.interfaces import Dialer, HostVerifier
from ...core.logging import get_logger, get_stderr_console
from ...core.session import RemoteSession
from ..credentials import AgentCredentials
from ..trust import fingerprint
from .dialer import dialer_from_environment

logger = get_logger(__name__)


def host_key_name(address: str, port: int) -> str:
    """Name under which known_hosts records the host"""
    if port == DEFAULT_SSH_PORT:
        return address
    return f"[{address}]:{port}"


def keyboard_challenge(title: str, instructions: str, prompts: Sequence) -> List[str]:
    """
    Keyboard-interactive handler that only answers empty challenges.

    After successful authentication some servers send a challenge without
    questions whose title and instructions should be shown to the user.
    """
    if prompts:
        raise HandshakeError("keyboard-interactive challenge is not supported")
    console = get_stderr_console()
    if title:
        console.print(title, markup=False, highlight=False)
    if instructions:
        console.print(instructions, markup=False, highlight=False)
    return []


def _authenticate(
    transport: paramiko.Transport,
    login: str,
    credentials: AgentCredentials,
    keyboard_interactive: bool,
    host: str,
) -> None:
    attempts: List[str] = []

    for key in credentials.keys:
        key_id = f"{key.get_name()} {fingerprint(key)}"
        try:
            transport.auth_publickey(login, key)
        except paramiko.AuthenticationException as e:
            logger.debug("Key %s rejected for %s@%s: %s", key_id, login, host, e)
            attempts.append(f"publickey ({key_id}): {e}")
            continue
        except (paramiko.SSHException, OSError, EOFError) as e:
            raise HandshakeError(f"authentication to {host} failed: {e}") from e
        if transport.is_authenticated():
            logger.info("Authenticated as %s@%s with %s", login, host, key_id)
            return
        attempts.append(f"publickey ({key_id}): partial success")

    if keyboard_interactive:
        try:
            transport.auth_interactive(login, keyboard_challenge)
        except HandshakeError:
            raise
        except paramiko.AuthenticationException as e:
            attempts.append(f"keyboard-interactive: {e}")
        except (paramiko.SSHException, OSError, EOFError) as e:
            raise HandshakeError(f"authentication to {host} failed: {e}") from e
        else:
            if transport.is_authenticated():
                logger.info("Authenticated as %s@%s with keyboard-interactive", login, host)
                return
            attempts.append("keyboard-interactive: partial success")

    if not attempts:
        raise HandshakeError(
            f"unable to authenticate {login}@{host}: ssh-agent has no identities"
        )
    raise HandshakeError(
        f"unable to authenticate {login}@{host}, attempted: " + "; ".join(attempts)
    )


def establish(
    address: str,
    port: int,
    login: str,
    verifier: HostVerifier,
    credentials: AgentCredentials,
    timeout: float = DEFAULT_SSH_TIMEOUT,
    dialer: Optional[Dialer] = None,
    keyboard_interactive: bool = False,
) -> RemoteSession:
    """
    Open an authenticated SSH session.

    Args:
        address: Remote host name or address
        port: Remote SSH port
        login: Remote user name
        verifier: Host key verification strategy
        credentials: ssh-agent identities, the only authentication method
        timeout: TCP connect timeout in seconds
        dialer: TCP dialer (default: configured from ALL_PROXY / NO_PROXY)
        keyboard_interactive: Also try keyboard-interactive with empty challenges

    Returns:
        Authenticated RemoteSession

    Raises:
        ProxyError: If the proxy connection fails
        HandshakeError: If the connection, handshake or authentication fails
        HostKeyVerificationError: If the host key is not trusted
    """
    if dialer is None:
        dialer = dialer_from_environment()

    sock = dialer.dial(address, port, timeout)
    try:
        transport = paramiko.Transport(sock)
    except (paramiko.SSHException, OSError) as e:
        sock.close()
        raise HandshakeError(f"cannot set up SSH transport to {address}:{port}: {e}") from e

    try:
        try:
            transport.start_client()
        except (paramiko.SSHException, OSError, EOFError) as e:
            raise HandshakeError(f"SSH handshake with {address}:{port} failed: {e}") from e

        verifier.verify(host_key_name(address, port), transport.get_remote_server_key())
        _authenticate(transport, login, credentials, keyboard_interactive, address)
    except BaseException:
        transport.close()
        sock.close()
        raise

    logger.info("SSH session established to %s@%s:%d", login, address, port)
    return RemoteSession(transport, address, port, login)
