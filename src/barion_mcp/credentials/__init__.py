"""
Credential specifications for the Barion MCP server.
"""

from .barion import BARION_CREDENTIALS, PAYMENT_TOOLS, WALLET_TOOLS
from .base import CredentialSpec

__all__ = ["BARION_CREDENTIALS", "CredentialSpec", "PAYMENT_TOOLS", "WALLET_TOOLS"]
