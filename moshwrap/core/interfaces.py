"""
Core interfaces for dependency injection
"""
import socket
from abc import ABC, abstractmethod

import paramiko


class HostVerifier(ABC):
    """Remote host key verification strategy"""

    @abstractmethod
    def verify(self, hostname: str, key: paramiko.PKey) -> None:
        """
        Accept or reject the key presented by hostname.

        Raises:
            HostKeyVerificationError: If the key is not trusted
        """
        pass


class Dialer(ABC):
    """TCP dialer, direct or through a proxy"""

    @abstractmethod
    def dial(self, host: str, port: int, timeout: float) -> socket.socket:
        """Open a TCP connection to host:port"""
        pass
