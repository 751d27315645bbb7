"""
moshwrap - mosh launcher that plays well with SOCKS and HTTP proxies

Starts mosh-server over an SSH connection and hands over to mosh-client:
- Host keys verified against known_hosts (fails closed)
- Authentication through ssh-agent only
- SSH connection through ALL_PROXY (socks5, http) when configured
"""

__version__ = "0.1.0"

from .core import RemoteSession, setup_logging

from .domain.trust import (
    FingerprintVerifier,
    KnownHostsVerifier,
    TrustedHostSet,
    load_trust_store,
)
from .domain.credentials import AgentCredentials
from .domain.transport import establish, dialer_from_environment
from .domain.bootstrap import BootstrapResponse, parse_response, run_bootstrap
from .domain.launch import LaunchConfig, LaunchService

__all__ = [
    # Version
    "__version__",
    # Core
    "RemoteSession",
    "setup_logging",
    # Trust store
    "FingerprintVerifier",
    "KnownHostsVerifier",
    "TrustedHostSet",
    "load_trust_store",
    # Credentials
    "AgentCredentials",
    # Transport
    "establish",
    "dialer_from_environment",
    # Bootstrap
    "BootstrapResponse",
    "parse_response",
    "run_bootstrap",
    # Launch
    "LaunchConfig",
    "LaunchService",
]
