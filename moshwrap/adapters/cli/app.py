"""
Main CLI application
"""
import sys
import typer
from pathlib import Path
from typing import Optional

from rich.markup import escape

from ...core.constants import DEFAULT_MOSH_PORTS, DEFAULT_SSH_PORT, DEFAULT_SSH_TIMEOUT
from ...core.exceptions import MoshError, RemoteExecutionError
from ...core.logging import setup_logging, get_logger, get_stderr_console
from ...domain.launch import LaunchService
from ..config import ConfigLoader
from .host_parser import parse_host_string

logger = get_logger(__name__)
stderr_console = get_stderr_console()

app = typer.Typer(
    name="mosh",
    add_completion=False,
    help="Start a mosh session over SSH, through SOCKS5/HTTP proxies if configured",
    rich_markup_mode="rich",
)


def _write_remote_output(output: bytes) -> None:
    """Show mosh-server diagnostics exactly as received"""
    if not output:
        return
    sys.stdout.flush()
    buffer = getattr(sys.stderr, "buffer", None)
    if buffer is not None:
        buffer.write(output)
        buffer.flush()
    else:
        sys.stderr.write(output.decode("utf-8", errors="replace"))
        sys.stderr.flush()


@app.command()
def main(
    host: str = typer.Argument(..., help="Remote host (supports user@host and user@host:port)"),
    ssh_port: Optional[int] = typer.Option(
        None, "--sshport", help=f"SSH port to use (default: {DEFAULT_SSH_PORT})"
    ),
    login: Optional[str] = typer.Option(
        None, "--login", "-l", help="Login name (default: $MOSH_USER or $USER)"
    ),
    ports: Optional[str] = typer.Option(
        None, "--ports", "-p",
        help=f"Server-side UDP port or colon-separated range (default: $MOSH_PORTS or {DEFAULT_MOSH_PORTS})",
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help=f"SSH connect timeout in seconds (default: {DEFAULT_SSH_TIMEOUT:g})"
    ),
    known_hosts: Optional[str] = typer.Option(
        None, "--known-hosts", help="known_hosts file (default: ~/.ssh/known_hosts)"
    ),
    strict_host_match: Optional[bool] = typer.Option(
        None, "--strict-host-match/--any-host-match",
        help="Require the host key to be listed for this host, not just anywhere in known_hosts",
    ),
    keyboard_interactive: Optional[bool] = typer.Option(
        None, "--keyboard-interactive/--no-keyboard-interactive",
        help="Also accept keyboard-interactive authentication without prompts",
    ),
    server: Optional[str] = typer.Option(
        None, "--server", help="mosh-server program on the remote host"
    ),
    client: Optional[str] = typer.Option(
        None, "--client", help="Local mosh-client program"
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Configuration file path (TOML)"
    ),
    log_level: str = typer.Option(
        "WARNING", "--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    ),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Log file path"),
):
    """
    Start mosh-server on HOST over SSH and hand over to mosh-client.

    The host key must be listed in known_hosts and authentication uses the
    keys held by ssh-agent ($SSH_AUTH_SOCK). Set ALL_PROXY (socks5:// or
    http://) to reach the SSH server through a proxy.

    Examples:
        mosh myserver
        mosh user@host -p 60001
        mosh user@host:2222 --timeout 10
    """
    setup_logging(level=log_level, log_file=log_file)

    parsed_host, parsed_user, parsed_port = parse_host_string(host, login, ssh_port)
    cli_overrides = {
        "login": parsed_user,
        "ssh_port": parsed_port,
        "mosh_ports": ports,
        "timeout": timeout,
        "known_hosts": known_hosts,
        "strict_host_match": strict_host_match,
        "keyboard_interactive": keyboard_interactive,
        "server": server,
        "client": client,
    }

    try:
        config = ConfigLoader().load(parsed_host, toml_path=config_file, cli_overrides=cli_overrides)
        LaunchService(config).launch()
    except RemoteExecutionError as e:
        _write_remote_output(e.output)
        stderr_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    except MoshError as e:
        stderr_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        stderr_console.print("Interrupted")
        raise typer.Exit(130)
    except Exception as e:
        logger.exception("Unexpected error")
        stderr_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


def run():
    """CLI entry point"""
    app()


if __name__ == "__main__":
    run()
