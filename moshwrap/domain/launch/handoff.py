"""
Hand-off to the local mosh-client
"""
import os
import subprocess
import sys
from typing import Dict, List, Mapping, NoReturn, Optional

from ...core.constants import MOSH_KEY_ENV
from ...core.exceptions import HandoffError
from ...core.logging import get_logger

logger = get_logger(__name__)


def client_argv(client_path: str, address: str, port: int) -> List[str]:
    return [os.path.basename(client_path) or client_path, address, str(port)]


def client_env(secret: str, environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Current environment plus MOSH_KEY"""
    env = dict(os.environ if environ is None else environ)
    env[MOSH_KEY_ENV] = secret
    return env


def exec_client(client_path: str, address: str, port: int, secret: str) -> NoReturn:
    """
    Replace the current process with mosh-client.

    Where process replacement is not available the client is spawned instead
    and this process exits with its status once it finishes.

    Raises:
        HandoffError: If the client cannot be started
    """
    argv = client_argv(client_path, address, port)
    env = client_env(secret)
    logger.info("Starting %s %s %d", client_path, address, port)

    for stream in (sys.stdout, sys.stderr):
        stream.flush()

    if os.name == "posix":
        try:
            os.execve(client_path, argv, env)
        except OSError as e:
            raise HandoffError(f"cannot execute {client_path}: {e.strerror or e}") from e

    try:
        completed = subprocess.run([client_path] + argv[1:], env=env)
    except OSError as e:
        raise HandoffError(f"cannot start {client_path}: {e.strerror or e}") from e
    sys.exit(completed.returncode)
