"""
Credential sources
"""
from .agent import AgentCredentials

__all__ = ["AgentCredentials"]
