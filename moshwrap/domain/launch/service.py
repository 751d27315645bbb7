"""
Launch service: ties trust store, agent, SSH session and mosh-server together
"""
from typing import NoReturn, Optional, Tuple

from ...core.interfaces import Dialer, HostVerifier
from ...core.logging import get_logger
from ...core.utils import find_program, resolve_address
from ..bootstrap import BootstrapResponse, parse_response, run_bootstrap
from ..credentials import AgentCredentials
from ..transport import establish
from ..trust import FingerprintVerifier, KnownHostsVerifier
from .handoff import exec_client
from .models import LaunchConfig

logger = get_logger(__name__)


class LaunchService:
    """Launch service"""

    def __init__(self, config: LaunchConfig, dialer: Optional[Dialer] = None):
        """
        Initialize launch service.

        Args:
            config: Launch configuration
            dialer: TCP dialer override (default: from ALL_PROXY / NO_PROXY)
        """
        self.config = config
        self.dialer = dialer

    def build_verifier(self) -> HostVerifier:
        """Load the trust store; fails closed if it is missing or malformed"""
        if self.config.strict_host_match:
            return KnownHostsVerifier.from_file(self.config.known_hosts)
        return FingerprintVerifier.from_file(self.config.known_hosts)

    def start_server(self, size: Optional[Tuple[int, int]] = None) -> BootstrapResponse:
        """
        Start mosh-server on the remote host.

        Args:
            size: pty size override (default: local terminal size)

        Returns:
            Port and session key reported by mosh-server
        """
        cfg = self.config
        verifier = self.build_verifier()

        with AgentCredentials.connect(timeout=cfg.timeout) as credentials:
            session = establish(
                cfg.host,
                cfg.ssh_port,
                cfg.login,
                verifier,
                credentials,
                timeout=cfg.timeout,
                dialer=self.dialer,
                keyboard_interactive=cfg.keyboard_interactive,
            )

        with session:
            output = run_bootstrap(session, cfg.mosh_ports, size=size, server=cfg.server)

        response = parse_response(output)
        logger.info("mosh-server on %s listening on UDP port %d", cfg.host, response.port)
        return response

    def launch(self) -> NoReturn:
        """Start mosh-server and replace this process with mosh-client"""
        self.config.validate()
        address = resolve_address(self.config.host)
        client_path = find_program(self.config.client)
        logger.debug("Resolved %s to %s, client %s", self.config.host, address, client_path)

        response = self.start_server()
        exec_client(client_path, address, response.port, response.secret)
