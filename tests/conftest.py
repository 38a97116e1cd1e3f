"""
Shared fixtures for Barion MCP tests.
"""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest
from fastmcp import FastMCP
from pydantic import SecretStr

from barion_mcp.config import BarionConfig

TEST_POS_KEY = "test-pos-key-0123456789"
TEST_API_KEY = "test-api-key-9876543210"


@pytest.fixture
def mcp() -> FastMCP:
    return FastMCP("test-barion")


@pytest.fixture
def config() -> BarionConfig:
    return BarionConfig(
        pos_key=SecretStr(TEST_POS_KEY),
        api_key=SecretStr(TEST_API_KEY),
        environment="test",
    )


@pytest.fixture
def make_response() -> Callable[..., httpx.Response]:
    """Factory for real httpx responses, so status/reason/text behave as in production."""

    def _make(
        status_code: int = 200,
        json_data: Any = None,
        text: str | None = None,
        method: str = "GET",
        url: str = "https://api.test.barion.com/",
    ) -> httpx.Response:
        request = httpx.Request(method, url)
        if text is not None:
            return httpx.Response(status_code, text=text, request=request)
        return httpx.Response(status_code, json=json_data if json_data is not None else {}, request=request)

    return _make


@pytest.fixture
def tool_fn(mcp: FastMCP) -> Callable[[str], Callable[..., Any]]:
    """Look up the raw function behind a registered tool."""

    def _get(name: str) -> Callable[..., Any]:
        return mcp._tool_manager._tools[name].fn

    return _get
