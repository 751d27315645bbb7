"""
Launch domain
"""
from .models import LaunchConfig
from .service import LaunchService
from .handoff import client_argv, client_env, exec_client

__all__ = [
    "LaunchConfig",
    "LaunchService",
    "client_argv",
    "client_env",
    "exec_client",
]
