"""
Configuration loader with priority: CLI > env > TOML > defaults
"""
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ...core.constants import DEFAULT_CONFIG_PATH
from ...core.exceptions import ConfigError
from ...domain.launch import LaunchConfig


class ConfigLoader:
    """Configuration loader with priority support"""

    env_mappings = {
        "MOSH_USER": "login",
        "MOSH_PORTS": "mosh_ports",
        "MOSH_SSH_PORT": "ssh_port",
        "MOSH_TIMEOUT": "timeout",
        "MOSH_KNOWN_HOSTS": "known_hosts",
    }

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = os.environ if environ is None else environ

    def load_toml(self, path: Path) -> Dict[str, Any]:
        """Load TOML configuration file"""
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            return tomllib.loads(path.read_text(encoding='utf-8'))
        except (tomllib.TOMLDecodeError, OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"Failed to parse TOML configuration {path}: {e}") from e

    def select_host(self, cfg: Dict[str, Any], host: Optional[str]) -> Dict[str, Any]:
        """
        Flatten a TOML document for one host.

        Top-level keys are defaults; a [hosts."<name>"] table overrides them
        when <name> is the host given on the command line.
        """
        hosts = cfg.get("hosts", {})
        if not isinstance(hosts, dict):
            raise ConfigError("'hosts' must be a table")
        result = {k: v for k, v in cfg.items() if k != "hosts"}
        if host and host in hosts:
            entry = hosts[host]
            if not isinstance(entry, dict):
                raise ConfigError(f"'hosts.{host}' must be a table")
            result = self._deep_merge(result, entry)
            # An alias may name a different real host
            result.setdefault("host", host)
        return result

    def load_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables"""
        config = {}
        for env_key, config_key in self.env_mappings.items():
            value = self._environ.get(env_key)
            if value:
                config[config_key] = value
        return config

    def merge_configs(self, *configs: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge multiple configurations with priority.
        Later configs override earlier ones.
        """
        result = {}

        for config in configs:
            result = self._deep_merge(result, config)

        return result

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries"""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def load(
        self,
        host: str,
        toml_path: Optional[Path] = None,
        cli_overrides: Optional[Dict[str, Any]] = None,
        use_env: bool = True,
    ) -> LaunchConfig:
        """
        Load configuration with priority: CLI > env > TOML > defaults

        Args:
            host: Host given on the command line
            toml_path: Path to TOML configuration file (default file is used if it exists)
            cli_overrides: CLI parameter overrides, None values are ignored
            use_env: Whether to load from environment variables

        Returns:
            Validated LaunchConfig
        """
        configs = [{"host": host}]

        if toml_path is None:
            default_path = Path(DEFAULT_CONFIG_PATH).expanduser()
            if default_path.exists():
                toml_path = default_path
        if toml_path:
            configs.append(self.select_host(self.load_toml(toml_path), host))

        if use_env:
            env_config = self.load_env()
            if env_config:
                configs.append(env_config)

        if cli_overrides:
            configs.append({k: v for k, v in cli_overrides.items() if v is not None})

        config = LaunchConfig.from_dict(self.merge_configs(*configs))
        config.validate()
        return config
