"""
Core infrastructure layer
"""
from .session import RemoteSession
from .constants import *
from .exceptions import *
from .logging import setup_logging, get_logger, get_stdout_console, get_stderr_console
from .interfaces import HostVerifier, Dialer
from .utils import get_terminal_size, find_program, resolve_address

__all__ = [
    "RemoteSession",
    "setup_logging",
    "get_logger",
    "get_stdout_console",
    "get_stderr_console",
    "HostVerifier",
    "Dialer",
    "get_terminal_size",
    "find_program",
    "resolve_address",
]
