"""
Network dialing and SSH session establishment
"""
from .dialer import (
    DirectDialer,
    Socks5Dialer,
    HttpConnectDialer,
    PerHostDialer,
    NoProxy,
    dialer_from_url,
    dialer_from_environment,
)
from .establish import establish, host_key_name

__all__ = [
    "DirectDialer",
    "Socks5Dialer",
    "HttpConnectDialer",
    "PerHostDialer",
    "NoProxy",
    "dialer_from_url",
    "dialer_from_environment",
    "establish",
    "host_key_name",
]
