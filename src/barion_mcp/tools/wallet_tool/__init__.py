"""
Barion Wallet Tool - Accounts, statements, withdrawals and email transfers.
"""

from .wallet_tool import register_tools

__all__ = ["register_tools"]
