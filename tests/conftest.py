"""Shared fixtures."""

from pathlib import Path

import paramiko
import pytest


@pytest.fixture(scope="session")
def host_key() -> paramiko.ECDSAKey:
    """Host key of the server under test."""
    return paramiko.ECDSAKey.generate()


@pytest.fixture(scope="session")
def other_key() -> paramiko.ECDSAKey:
    """A key nobody trusts."""
    return paramiko.ECDSAKey.generate()


def known_hosts_line(hosts: str, key: paramiko.PKey, marker: str = "") -> str:
    line = f"{hosts} {key.get_name()} {key.get_base64()}"
    return f"{marker} {line}" if marker else line


@pytest.fixture
def known_hosts(tmp_path: Path, host_key: paramiko.PKey) -> Path:
    """known_hosts file trusting host_key for example.com."""
    path = tmp_path / "known_hosts"
    path.write_text(
        "# managed by hand\n"
        "\n"
        + known_hosts_line("example.com,192.0.2.10", host_key)
        + "\n"
    )
    return path
