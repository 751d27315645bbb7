"""
Launch domain models
"""
import os
from dataclasses import dataclass, field
from typing import Any, Dict

from ...core.constants import (
    DEFAULT_CLIENT_PROGRAM,
    DEFAULT_KNOWN_HOSTS,
    DEFAULT_MOSH_PORTS,
    DEFAULT_SERVER_PROGRAM,
    DEFAULT_SSH_PORT,
    DEFAULT_SSH_TIMEOUT,
)
from ...core.exceptions import ConfigError


def default_login() -> str:
    return os.environ.get("MOSH_USER") or os.environ.get("USER") or ""


def default_ports() -> str:
    return os.environ.get("MOSH_PORTS") or DEFAULT_MOSH_PORTS


@dataclass
class LaunchConfig:
    """Settings for one mosh launch"""
    host: str
    login: str = field(default_factory=default_login)
    ssh_port: int = DEFAULT_SSH_PORT
    mosh_ports: str = field(default_factory=default_ports)
    timeout: float = DEFAULT_SSH_TIMEOUT
    known_hosts: str = DEFAULT_KNOWN_HOSTS
    server: str = DEFAULT_SERVER_PROGRAM
    client: str = DEFAULT_CLIENT_PROGRAM
    strict_host_match: bool = False
    keyboard_interactive: bool = False

    def validate(self) -> None:
        """Validate configuration"""
        if not self.host:
            raise ConfigError("remote host is required")
        if not self.login:
            raise ConfigError("login name is required (set --login, MOSH_USER or USER)")
        if not (1 <= self.ssh_port <= 65535):
            raise ConfigError(f"Invalid ssh port: {self.ssh_port}")
        if self.timeout <= 0:
            raise ConfigError(f"Invalid timeout: {self.timeout}")
        self._validate_ports(self.mosh_ports)

    @staticmethod
    def _validate_ports(spec: str) -> None:
        parts = spec.split(":")
        if len(parts) > 2 or not all(p.isdigit() for p in parts):
            raise ConfigError(f"Invalid mosh port or range: {spec!r}")
        ports = [int(p) for p in parts]
        if any(not (0 <= p <= 65535) for p in ports):
            raise ConfigError(f"Invalid mosh port or range: {spec!r}")
        if len(ports) == 2 and ports[0] > ports[1]:
            raise ConfigError(f"Invalid mosh port range: {spec!r}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "host": self.host,
            "login": self.login,
            "ssh_port": self.ssh_port,
            "mosh_ports": self.mosh_ports,
            "timeout": self.timeout,
            "known_hosts": self.known_hosts,
            "server": self.server,
            "client": self.client,
            "strict_host_match": self.strict_host_match,
            "keyboard_interactive": self.keyboard_interactive,
        }

    @staticmethod
    def _flag(data: Dict[str, Any], key: str) -> bool:
        value = data.get(key, False)
        if not isinstance(value, bool):
            raise ConfigError(f"Invalid value for {key}: {value!r} (expected true or false)")
        return value

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LaunchConfig":
        """Create from dictionary"""
        try:
            return cls(
                host=str(data.get("host") or ""),
                login=str(data.get("login") or default_login()),
                ssh_port=int(data.get("ssh_port", DEFAULT_SSH_PORT)),
                mosh_ports=str(data.get("mosh_ports") or default_ports()),
                timeout=float(data.get("timeout", DEFAULT_SSH_TIMEOUT)),
                known_hosts=str(data.get("known_hosts") or DEFAULT_KNOWN_HOSTS),
                server=str(data.get("server") or DEFAULT_SERVER_PROGRAM),
                client=str(data.get("client") or DEFAULT_CLIENT_PROGRAM),
                strict_host_match=cls._flag(data, "strict_host_match"),
                keyboard_interactive=cls._flag(data, "keyboard_interactive"),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration value: {e}") from e
