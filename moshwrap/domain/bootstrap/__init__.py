"""
mosh-server bootstrap: remote invocation and response parsing
"""
from .invoker import build_command, run_bootstrap
from .response import BootstrapResponse, format_connect_line, parse_response

__all__ = [
    "build_command",
    "run_bootstrap",
    "BootstrapResponse",
    "format_connect_line",
    "parse_response",
]
