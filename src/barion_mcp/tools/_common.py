"""
Pieces shared by the payment and wallet tool modules.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import Annotated, Any

from fastmcp.exceptions import ToolError
from mcp.types import ToolAnnotations
from pydantic import Field

from barion_mcp.error_formatting import format_barion_error
from barion_mcp.errors import BarionError
from barion_mcp.formatting import Formatter, format_response
from barion_mcp.models import DetailLevel, ResponseFormat

logger = logging.getLogger(__name__)

READ_ONLY = ToolAnnotations(
    readOnlyHint=True,
    destructiveHint=False,
    idempotentHint=True,
    openWorldHint=True,
)

MUTATING = ToolAnnotations(
    readOnlyHint=False,
    destructiveHint=False,
    idempotentHint=False,
    openWorldHint=True,
)

FormatParam = Annotated[
    ResponseFormat,
    Field(
        description='Response format: "json" for full JSON response, '
        '"markdown" for human-readable summary'
    ),
]

DetailParam = Annotated[
    DetailLevel,
    Field(
        description='Detail level: "concise" for summary, "detailed" for complete information'
    ),
]

ListDetailParam = Annotated[
    DetailLevel,
    Field(
        description='Detail level: "concise" for summary (first 10 transactions), '
        '"detailed" for all transactions'
    ),
]


async def run_tool(
    operation_name: str,
    call: Awaitable[Any],
    format: ResponseFormat,
    detail: DetailLevel,
    formatter: Formatter | None,
) -> str:
    """
    Await one client call and format its result.

    Barion failures become a ToolError whose text is the remediation message,
    which FastMCP returns as a single error-flagged text block.
    """
    try:
        result = await call
    except BarionError as e:
        logger.info("%s failed: %s", operation_name, e)
        raise ToolError(format_barion_error(operation_name, e)) from e
    return format_response(result, format, detail, formatter)
