"""
Core utility functions
"""
import os
import sys
import shutil
import socket
from typing import Tuple

from .constants import DEFAULT_TERM_WIDTH, DEFAULT_TERM_HEIGHT
from .exceptions import ConfigError


# ============================================================
# Local Environment
# ============================================================

def get_terminal_size() -> Tuple[int, int]:
    """
    Size of the terminal attached to stdin.

    Returns:
        (width, height), or the 80x25 default when stdin is not a terminal
    """
    try:
        size = os.get_terminal_size(sys.stdin.fileno())
    except (OSError, ValueError, AttributeError):
        return DEFAULT_TERM_WIDTH, DEFAULT_TERM_HEIGHT
    if size.columns <= 0 or size.lines <= 0:
        return DEFAULT_TERM_WIDTH, DEFAULT_TERM_HEIGHT
    return size.columns, size.lines


def find_program(name: str) -> str:
    """
    Locate an executable on PATH.

    Raises:
        ConfigError: If the program cannot be found
    """
    if os.path.dirname(name):
        if os.path.isfile(name) and os.access(name, os.X_OK):
            return name
        raise ConfigError(f"{name} is not an executable file")

    path = shutil.which(name)
    if path is None:
        raise ConfigError(f"{name} not found in PATH")
    return path


# ============================================================
# Name Resolution
# ============================================================

def resolve_address(host: str) -> str:
    """
    Resolve host to its first IP address.

    Args:
        host: Hostname or literal address

    Returns:
        IP address as string

    Raises:
        ConfigError: If the name does not resolve
    """
    try:
        infos = socket.getaddrinfo(host, None, proto=socket.IPPROTO_TCP)
    except (socket.gaierror, UnicodeError) as e:
        raise ConfigError(f"cannot resolve {host!r}: {e}") from e
    if not infos:
        raise ConfigError(f"name {host!r} resolved to no addresses")
    return infos[0][4][0]
