"""
Remote mosh-server invocation
"""
import os
import shlex
from typing import Optional, Tuple

import paramiko

from ...core.constants import DEFAULT_SERVER_PROGRAM, DEFAULT_TERM
from ...core.exceptions import ConnectionError, RemoteExecutionError
from ...core.logging import get_logger
from ...core.session import RemoteSession
from ...core.utils import get_terminal_size

logger = get_logger(__name__)

READ_CHUNK = 32768


def build_command(port_spec: str, server: str = DEFAULT_SERVER_PROGRAM) -> str:
    """Remote command line starting a new mosh-server on port_spec"""
    return f"{shlex.quote(server)} new -p {shlex.quote(port_spec)}"


def _read_until_eof(channel: paramiko.Channel) -> bytes:
    chunks = []
    while True:
        data = channel.recv(READ_CHUNK)
        if not data:
            break
        chunks.append(data)
    return b"".join(chunks)


def run_bootstrap(
    session: RemoteSession,
    port_spec: str,
    size: Optional[Tuple[int, int]] = None,
    server: str = DEFAULT_SERVER_PROGRAM,
    term: Optional[str] = None,
) -> bytes:
    """
    Start mosh-server on the remote host and capture its output.

    Args:
        session: Authenticated session
        port_spec: UDP port or colon-separated port range
        size: (width, height) of the pty (default: local terminal size)
        server: mosh-server program on the remote host
        term: Terminal type for the pty (default: $TERM)

    Returns:
        Combined stdout and stderr of the command

    Raises:
        ConnectionError: If the channel or pty cannot be set up
        RemoteExecutionError: If the command exits with a non-zero status
    """
    width, height = size or get_terminal_size()
    term = term or os.environ.get("TERM") or DEFAULT_TERM
    command = build_command(port_spec, server)

    channel = session.open_channel()
    try:
        try:
            channel.get_pty(term=term, width=width, height=height)
            channel.set_combine_stderr(True)
            logger.debug("Running %r on %s (pty %dx%d, %s)", command, session.host, width, height, term)
            channel.exec_command(command)
            output = _read_until_eof(channel)
            exit_status = channel.recv_exit_status()
        except (paramiko.SSHException, OSError, EOFError) as e:
            raise ConnectionError(f"running {command!r} on {session.host} failed: {e}") from e
    finally:
        channel.close()

    if exit_status != 0:
        raise RemoteExecutionError(command, exit_status, output)
    return output
