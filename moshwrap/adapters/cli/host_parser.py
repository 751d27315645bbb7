"""
Host string parser

Handles parsing of host strings in various formats:
- hostname
- user@hostname
- user@hostname:port
- user@[v6-address]:port
"""
from typing import Optional, Tuple


def parse_host_string(
    host: str,
    user: Optional[str] = None,
    port: Optional[int] = None,
) -> Tuple[str, Optional[str], Optional[int]]:
    """
    Parse host string into components.

    Explicit user and port arguments take precedence over the ones embedded
    in the host string.

    Returns:
        Tuple of (hostname, user, port)

    Examples:
        parse_host_string("server") -> ("server", None, None)
        parse_host_string("user@server") -> ("server", "user", None)
        parse_host_string("user@server:2222") -> ("server", "user", 2222)
        parse_host_string("user@server:2222", port=3333) -> ("server", "user", 3333)
        parse_host_string("[::1]:2222") -> ("::1", None, 2222)
    """
    parsed_user = user
    parsed_port = port
    host_part = host

    if "@" in host:
        embedded_user, host_part = host.rsplit("@", 1)
        if not parsed_user and embedded_user:
            parsed_user = embedded_user

    embedded_port = None
    if host_part.startswith("["):
        # Bracketed IPv6 literal, optionally followed by :port
        address, sep, rest = host_part[1:].partition("]")
        if sep:
            host_part = address
            if rest.startswith(":") and rest[1:].isdigit():
                embedded_port = int(rest[1:])
    elif host_part.count(":") == 1:
        name, port_str = host_part.split(":", 1)
        if port_str.isdigit():
            host_part = name
            embedded_port = int(port_str)

    if parsed_port is None:
        parsed_port = embedded_port

    return host_part, parsed_user, parsed_port
