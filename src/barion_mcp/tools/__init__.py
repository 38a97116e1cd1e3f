"""
Tool registry for the Barion MCP server.

Payment tools are registered when a POSKey is configured, wallet tools when
a wallet API key is configured.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastmcp import FastMCP

from .payment_tool import register_tools as register_payment_tools
from .wallet_tool import register_tools as register_wallet_tools

if TYPE_CHECKING:
    from barion_mcp.config import BarionConfig

logger = logging.getLogger(__name__)


def register_all_tools(mcp: FastMCP, config: BarionConfig) -> list[str]:
    """Register every tool the configured credentials allow and return their names."""
    registered: list[str] = []

    if config.pos_key is not None:
        registered.extend(register_payment_tools(mcp, config))
    if config.api_key is not None:
        registered.extend(register_wallet_tools(mcp, config))

    logger.info("Registered %d Barion tools: %s", len(registered), ", ".join(registered))
    return registered


__all__ = ["register_all_tools"]
