"""
TCP dialers: direct, SOCKS5 and HTTP CONNECT proxies

The proxy is taken from ALL_PROXY / all_proxy, with NO_PROXY / no_proxy
listing hosts, domains and networks that are dialed directly.
"""
import base64
import ipaddress
import os
import socket
import struct
from enum import IntEnum
from typing import List, Mapping, Optional, Tuple, Type, Union
from urllib.parse import SplitResult, unquote, urlsplit

from ...core.constants import (
    DEFAULT_HTTP_PROXY_PORT,
    DEFAULT_SOCKS_PORT,
    NO_PROXY_ENV_VARS,
    PROXY_ENV_VARS,
)
from ...core.exceptions import ConnectionError, HandshakeError, ProxyError
from ...core.interfaces import Dialer
from ...core.logging import get_logger

logger = get_logger(__name__)


# ============================================================================
# SOCKS5 Protocol Constants
# ============================================================================

SOCKS5_VERSION = 0x05
SOCKS5_AUTH_VERSION = 0x01


class SOCKS5Method(IntEnum):
    """SOCKS5 authentication methods"""
    NO_AUTH = 0x00
    GSSAPI = 0x01
    USERNAME_PASSWORD = 0x02
    NO_ACCEPTABLE = 0xFF


class SOCKS5Command(IntEnum):
    """SOCKS5 commands"""
    CONNECT = 0x01
    BIND = 0x02
    UDP_ASSOCIATE = 0x03


class SOCKS5AddressType(IntEnum):
    """SOCKS5 address types"""
    IPV4 = 0x01
    DOMAIN = 0x03
    IPV6 = 0x04


class SOCKS5Reply(IntEnum):
    """SOCKS5 reply codes"""
    SUCCESS = 0x00
    GENERAL_FAILURE = 0x01
    CONNECTION_NOT_ALLOWED = 0x02
    NETWORK_UNREACHABLE = 0x03
    HOST_UNREACHABLE = 0x04
    CONNECTION_REFUSED = 0x05
    TTL_EXPIRED = 0x06
    COMMAND_NOT_SUPPORTED = 0x07
    ADDRESS_TYPE_NOT_SUPPORTED = 0x08


# ============================================================================
# Helpers
# ============================================================================

def _open_tcp(
    host: str,
    port: int,
    timeout: float,
    error_cls: Type[ConnectionError],
) -> socket.socket:
    try:
        return socket.create_connection((host, port), timeout=timeout)
    except socket.timeout as e:
        raise error_cls(f"timed out connecting to {host}:{port}") from e
    except OSError as e:
        raise error_cls(f"cannot connect to {host}:{port}: {e.strerror or e}") from e


def _recv_exact(sock: socket.socket, n: int) -> bytes:
    buf = b""
    while len(buf) < n:
        chunk = sock.recv(n - len(buf))
        if not chunk:
            raise ProxyError("proxy closed the connection during negotiation")
        buf += chunk
    return buf


def _format_hostport(host: str, port: int) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


# ============================================================================
# Dialers
# ============================================================================

class DirectDialer(Dialer):
    """Plain TCP connection"""

    def dial(self, host: str, port: int, timeout: float) -> socket.socket:
        logger.debug("Dialing %s directly", _format_hostport(host, port))
        sock = _open_tcp(host, port, timeout, HandshakeError)
        sock.settimeout(None)
        return sock

    def __repr__(self) -> str:
        return "DirectDialer()"


class Socks5Dialer(Dialer):
    """
    SOCKS5 CONNECT client (RFC 1928), with optional username/password
    authentication (RFC 1929).

    Hostnames are sent to the proxy unresolved.
    """

    def __init__(
        self,
        proxy_host: str,
        proxy_port: int = DEFAULT_SOCKS_PORT,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ):
        self.proxy_host = proxy_host
        self.proxy_port = proxy_port
        self.username = username
        self.password = password

    def dial(self, host: str, port: int, timeout: float) -> socket.socket:
        logger.debug(
            "Dialing %s via SOCKS5 proxy %s",
            _format_hostport(host, port),
            _format_hostport(self.proxy_host, self.proxy_port),
        )
        sock = _open_tcp(self.proxy_host, self.proxy_port, timeout, ProxyError)
        try:
            self._authenticate(sock)
            self._connect(sock, host, port)
        except socket.timeout as e:
            sock.close()
            raise ProxyError(f"SOCKS5 proxy {self.proxy_host} timed out") from e
        except OSError as e:
            sock.close()
            raise ProxyError(f"SOCKS5 proxy {self.proxy_host} failed: {e}") from e
        except ProxyError:
            sock.close()
            raise
        sock.settimeout(None)
        return sock

    def _authenticate(self, sock: socket.socket) -> None:
        methods = [SOCKS5Method.NO_AUTH]
        if self.username is not None:
            methods.append(SOCKS5Method.USERNAME_PASSWORD)
        sock.sendall(bytes([SOCKS5_VERSION, len(methods), *methods]))

        version, method = _recv_exact(sock, 2)
        if version != SOCKS5_VERSION:
            raise ProxyError(f"unexpected SOCKS version {version} from proxy")
        if method == SOCKS5Method.NO_AUTH:
            return
        if method == SOCKS5Method.USERNAME_PASSWORD and self.username is not None:
            user = self.username.encode("utf-8")
            password = (self.password or "").encode("utf-8")
            if len(user) > 255 or len(password) > 255:
                raise ProxyError("SOCKS5 username or password too long")
            sock.sendall(
                bytes([SOCKS5_AUTH_VERSION, len(user)]) + user + bytes([len(password)]) + password
            )
            _, status = _recv_exact(sock, 2)
            if status != 0:
                raise ProxyError("SOCKS5 proxy rejected username/password")
            return
        raise ProxyError("SOCKS5 proxy accepted none of the offered authentication methods")

    def _connect(self, sock: socket.socket, host: str, port: int) -> None:
        request = bytes([SOCKS5_VERSION, SOCKS5Command.CONNECT, 0])
        try:
            ip = ipaddress.ip_address(host)
        except ValueError:
            try:
                name = host.encode("idna")
            except UnicodeError as e:
                raise ProxyError(f"invalid hostname for SOCKS5: {host}") from e
            if len(name) > 255:
                raise ProxyError(f"hostname too long for SOCKS5: {host}")
            request += bytes([SOCKS5AddressType.DOMAIN, len(name)]) + name
        else:
            atype = SOCKS5AddressType.IPV4 if ip.version == 4 else SOCKS5AddressType.IPV6
            request += bytes([atype]) + ip.packed
        request += struct.pack(">H", port)
        sock.sendall(request)

        version, reply, _, atype = _recv_exact(sock, 4)
        if version != SOCKS5_VERSION:
            raise ProxyError(f"unexpected SOCKS version {version} from proxy")
        if reply != SOCKS5Reply.SUCCESS:
            try:
                reason = SOCKS5Reply(reply).name.lower().replace("_", " ")
            except ValueError:
                reason = f"unknown reply code {reply}"
            raise ProxyError(f"SOCKS5 proxy could not connect to {_format_hostport(host, port)}: {reason}")

        # Discard the bound address
        if atype == SOCKS5AddressType.IPV4:
            _recv_exact(sock, 4)
        elif atype == SOCKS5AddressType.IPV6:
            _recv_exact(sock, 16)
        elif atype == SOCKS5AddressType.DOMAIN:
            (length,) = _recv_exact(sock, 1)
            _recv_exact(sock, length)
        else:
            raise ProxyError(f"SOCKS5 proxy returned unknown address type {atype}")
        _recv_exact(sock, 2)

    def __repr__(self) -> str:
        return f"Socks5Dialer({_format_hostport(self.proxy_host, self.proxy_port)})"


class HttpConnectDialer(Dialer):
    """HTTP proxy tunnel using the CONNECT method"""

    max_header_bytes = 16 * 1024

    def __init__(
        self,
        proxy_host: str,
        proxy_port: int = DEFAULT_HTTP_PROXY_PORT,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ):
        self.proxy_host = proxy_host
        self.proxy_port = proxy_port
        self.username = username
        self.password = password

    def dial(self, host: str, port: int, timeout: float) -> socket.socket:
        target = _format_hostport(host, port)
        logger.debug(
            "Dialing %s via HTTP proxy %s",
            target,
            _format_hostport(self.proxy_host, self.proxy_port),
        )
        sock = _open_tcp(self.proxy_host, self.proxy_port, timeout, ProxyError)
        try:
            request = f"CONNECT {target} HTTP/1.1\r\nHost: {target}\r\n"
            if self.username is not None:
                token = base64.b64encode(
                    f"{self.username}:{self.password or ''}".encode("utf-8")
                ).decode("ascii")
                request += f"Proxy-Authorization: Basic {token}\r\n"
            request += "\r\n"
            sock.sendall(request.encode("utf-8"))
            status_line = self._read_response(sock)
        except socket.timeout as e:
            sock.close()
            raise ProxyError(f"HTTP proxy {self.proxy_host} timed out") from e
        except OSError as e:
            sock.close()
            raise ProxyError(f"HTTP proxy {self.proxy_host} failed: {e}") from e
        except ProxyError:
            sock.close()
            raise

        parts = status_line.split(None, 2)
        if len(parts) < 2 or not parts[0].startswith("HTTP/") or parts[1] != "200":
            sock.close()
            raise ProxyError(f"HTTP proxy refused CONNECT to {target}: {status_line}")
        sock.settimeout(None)
        return sock

    def _read_response(self, sock: socket.socket) -> str:
        """Read response headers up to the blank line, return the status line"""
        data = b""
        while not data.endswith(b"\r\n\r\n"):
            chunk = sock.recv(1)
            if not chunk:
                raise ProxyError("HTTP proxy closed the connection")
            data += chunk
            if len(data) > self.max_header_bytes:
                raise ProxyError("HTTP proxy response headers too large")
        return data.split(b"\r\n", 1)[0].decode("latin-1").strip()

    def __repr__(self) -> str:
        return f"HttpConnectDialer({_format_hostport(self.proxy_host, self.proxy_port)})"


# ============================================================================
# Environment Configuration
# ============================================================================

class NoProxy:
    """NO_PROXY matcher: hosts, .domain zones, IP addresses and CIDR networks"""

    def __init__(self, spec: str = ""):
        self.match_all = False
        self.hosts: List[str] = []
        self.zones: List[str] = []
        self.networks: List[Union[ipaddress.IPv4Network, ipaddress.IPv6Network]] = []

        for raw in spec.split(","):
            entry = raw.strip().lower()
            if not entry:
                continue
            if entry == "*":
                self.match_all = True
                continue
            if "/" in entry:
                try:
                    self.networks.append(ipaddress.ip_network(entry, strict=False))
                except ValueError:
                    logger.warning("Ignoring invalid NO_PROXY network %r", entry)
                continue
            host = self._strip_port(entry)
            try:
                self.networks.append(ipaddress.ip_network(host))
                continue
            except ValueError:
                pass
            if host.startswith("*."):
                self.zones.append(host[1:])
            elif host.startswith("."):
                self.zones.append(host)
            else:
                self.hosts.append(host)

    @staticmethod
    def _strip_port(entry: str) -> str:
        if entry.startswith("["):
            return entry[1:].split("]", 1)[0]
        if entry.count(":") == 1:
            return entry.split(":", 1)[0]
        return entry

    def matches(self, host: str) -> bool:
        if self.match_all:
            return True
        host = host.lower().rstrip(".")
        try:
            ip = ipaddress.ip_address(host)
        except ValueError:
            ip = None
        if ip is not None:
            return any(ip in net for net in self.networks)
        if host in self.hosts:
            return True
        return any(host.endswith(zone) or host == zone[1:] for zone in self.zones)

    def __bool__(self) -> bool:
        return self.match_all or bool(self.hosts or self.zones or self.networks)


class PerHostDialer(Dialer):
    """Routes through the proxy unless NO_PROXY matches the target host"""

    def __init__(self, proxy: Dialer, bypass: NoProxy, direct: Optional[Dialer] = None):
        self.proxy = proxy
        self.bypass = bypass
        self.direct = direct or DirectDialer()

    def dial(self, host: str, port: int, timeout: float) -> socket.socket:
        if self.bypass.matches(host):
            return self.direct.dial(host, port, timeout)
        return self.proxy.dial(host, port, timeout)

    def __repr__(self) -> str:
        return f"PerHostDialer({self.proxy!r})"


def _first_env(environ: Mapping[str, str], names: Tuple[str, ...]) -> str:
    for name in names:
        value = environ.get(name)
        if value:
            return value
    return ""


def dialer_from_url(url: str) -> Dialer:
    """
    Build a proxy dialer from a proxy URL.

    Supported schemes: socks5, socks5h, http.

    Raises:
        ProxyError: If the URL is invalid or the scheme unsupported
    """
    if "://" not in url:
        url = "socks5://" + url
    try:
        parts: SplitResult = urlsplit(url)
        port = parts.port
    except ValueError as e:
        raise ProxyError(f"invalid proxy URL {url!r}: {e}") from e
    if not parts.hostname:
        raise ProxyError(f"invalid proxy URL {url!r}: missing host")

    username = unquote(parts.username) if parts.username is not None else None
    password = unquote(parts.password) if parts.password is not None else None

    scheme = parts.scheme.lower()
    if scheme in ("socks5", "socks5h"):
        return Socks5Dialer(parts.hostname, port or DEFAULT_SOCKS_PORT, username, password)
    if scheme == "http":
        return HttpConnectDialer(parts.hostname, port or DEFAULT_HTTP_PROXY_PORT, username, password)
    raise ProxyError(f"unsupported proxy scheme {parts.scheme!r} in {url!r}")


def dialer_from_environment(environ: Optional[Mapping[str, str]] = None) -> Dialer:
    """
    Dialer configured from ALL_PROXY and NO_PROXY.

    Args:
        environ: Environment mapping (default: os.environ)

    Returns:
        DirectDialer when no proxy is configured, otherwise a proxy dialer
        (wrapped in PerHostDialer when NO_PROXY is set)
    """
    if environ is None:
        environ = os.environ

    proxy_url = _first_env(environ, PROXY_ENV_VARS)
    if not proxy_url:
        return DirectDialer()

    proxy = dialer_from_url(proxy_url)
    bypass = NoProxy(_first_env(environ, NO_PROXY_ENV_VARS))
    if bypass:
        return PerHostDialer(proxy, bypass)
    return proxy
