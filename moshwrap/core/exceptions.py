"""
Unified exception definitions
"""
from typing import Optional


class MoshError(Exception):
    """Base exception class"""
    pass


class ConfigError(MoshError):
    """Configuration error"""
    pass


class TrustStoreError(MoshError):
    """Known hosts file could not be loaded"""

    def __init__(self, path: str, message: str, lineno: Optional[int] = None):
        self.path = path
        self.lineno = lineno
        if lineno is not None:
            super().__init__(f"{path}:{lineno}: {message}")
        else:
            super().__init__(f"{path}: {message}")


class HostKeyVerificationError(MoshError):
    """Remote host presented a key that is not trusted"""

    def __init__(self, hostname: str, fingerprint: str, reason: str = "not found in trust store"):
        self.hostname = hostname
        self.fingerprint = fingerprint
        super().__init__(f"host key {fingerprint} presented by {hostname} {reason}")


class CredentialError(MoshError):
    """SSH agent error"""
    pass


class ConnectionError(MoshError):
    """Connection error"""
    pass


class HandshakeError(ConnectionError):
    """SSH handshake or authentication failed"""
    pass


class ProxyError(ConnectionError):
    """Proxy error"""
    pass


class RemoteExecutionError(MoshError):
    """Bootstrap command exited with a non-zero status"""

    def __init__(self, command: str, exit_status: int, output: bytes):
        self.command = command
        self.exit_status = exit_status
        self.output = output
        super().__init__(f"remote command {command!r} exited with status {exit_status}")


class ResponseParseError(MoshError):
    """Bootstrap output could not be parsed"""
    pass


class MarkerNotFoundError(ResponseParseError):
    """No 'MOSH CONNECT' line in bootstrap output"""
    pass


class MalformedResponseError(ResponseParseError):
    """'MOSH CONNECT' line has unexpected shape"""

    def __init__(self, message: str, line: str):
        self.line = line
        super().__init__(message)


class InvalidPortError(MalformedResponseError):
    """Port field of the 'MOSH CONNECT' line is not numeric"""
    pass


class HandoffError(MoshError):
    """Client program could not be started"""
    pass
