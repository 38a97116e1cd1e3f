"""
Response formatting for tool output.

Every tool answers with one text block: either pretty-printed JSON or a
markdown summary. All output is capped at ``CHARACTER_LIMIT`` characters so
large statements do not overflow the assistant's context.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

from barion_mcp.models import DetailLevel, ResponseFormat

CHARACTER_LIMIT = 25000

# Concise transaction lists show this many entries.
CONCISE_LIST_SIZE = 10

Formatter = Callable[[Any, DetailLevel], str]


def to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def truncate_if_needed(text: str, limit: int = CHARACTER_LIMIT) -> str:
    """Truncate text that exceeds ``limit``, appending a marker with the original length."""
    if len(text) <= limit:
        return text

    shown = limit - 200
    return (
        f"{text[:shown]}\n\n"
        f"[... Output truncated. Total length: {len(text)} characters. "
        f"Showing first {shown} characters ...]"
    )


def format_response(
    data: Any,
    format: ResponseFormat = "markdown",
    detail: DetailLevel = "concise",
    formatter: Formatter | None = None,
) -> str:
    """Render ``data`` as JSON or through ``formatter``, then truncate."""
    if format == "json" or formatter is None:
        return truncate_if_needed(to_json(data))
    return truncate_if_needed(formatter(data, detail))


def _get(data: Any, key: str, default: Any = "N/A") -> Any:
    if not isinstance(data, dict):
        return default
    value = data.get(key)
    return default if value in (None, "") else value


def _signed(amount: Any) -> str:
    if not isinstance(amount, (int, float)):
        amount = 0
    return f"+{amount}" if amount >= 0 else f"{amount}"


STATUS_MARKERS = {
    "Succeeded": "✓ Payment completed successfully",
    "Prepared": "⏳ Waiting for customer to complete payment",
    "Failed": "✗ Payment failed",
}


def format_payment_state(data: Any, detail: DetailLevel) -> str:
    """Format a GetPaymentState (or Start) payload."""
    status = _get(data, "Status", "Unknown")
    currency = _get(data, "Currency", "")

    if detail == "concise":
        lines = [
            f"Payment {_get(data, 'PaymentId')}",
            f"Status: {status}",
            f"Type: {_get(data, 'PaymentType')}",
            f"Amount: {_get(data, 'Total', 0)} {currency}",
            f"Created: {_get(data, 'CreatedAt')}",
        ]
        if status in STATUS_MARKERS:
            lines.append(STATUS_MARKERS[status])
        return "\n".join(lines)

    output = "## Payment Details\n\n"
    output += f"**Payment ID:** {_get(data, 'PaymentId')}\n"
    output += f"**Status:** {status}\n"
    output += f"**Type:** {_get(data, 'PaymentType')}\n"
    output += f"**Currency:** {_get(data, 'Currency')}\n"
    output += f"**Total Amount:** {_get(data, 'Total', 0)}\n"
    output += f"**Created:** {_get(data, 'CreatedAt')}\n"

    gateway_url = _get(data, "GatewayUrl", None)
    if gateway_url:
        output += f"**Gateway URL:** {gateway_url}\n"

    transactions = _get(data, "Transactions", [])
    if isinstance(transactions, list) and transactions:
        output += "\n### Transactions\n\n"
        for idx, t in enumerate(transactions, start=1):
            output += f"**Transaction {idx}:**\n"
            output += f"- ID: {_get(t, 'TransactionId')}\n"
            output += f"- Status: {_get(t, 'Status')}\n"
            output += f"- Amount: {_get(t, 'Total', 0)} {currency}\n"
            output += f"- Payee: {_get(t, 'Payee')}\n\n"

    errors = _get(data, "Errors", [])
    if isinstance(errors, list) and errors:
        output += "\n### Errors\n\n"
        for e in errors:
            output += f"- {_get(e, 'Title', 'Error')}: {_get(e, 'Description', '')}\n"

    return output


def format_wallet_accounts(data: Any, detail: DetailLevel) -> str:
    """Format a list of wallet accounts."""
    accounts = data if isinstance(data, list) else []

    if detail == "concise":
        if not accounts:
            return "No wallet accounts found"
        output = "Wallet Balances:\n"
        for acc in accounts:
            output += f"{_get(acc, 'Currency')}: {_get(acc, 'Balance', 0)}\n"
        return output

    if not accounts:
        return "## Wallet Accounts\n\nNo accounts found."

    output = f"## Wallet Accounts ({len(accounts)} total)\n\n"
    for idx, acc in enumerate(accounts, start=1):
        output += f"### Account {idx}\n"
        output += f"- **Currency:** {_get(acc, 'Currency')}\n"
        output += f"- **Balance:** {_get(acc, 'Balance', 0)}\n"
        output += f"- **Account ID:** {_get(acc, 'Id')}\n"
        output += f"- **Owner:** {_get(acc, 'Owner')}\n\n"
    return output


def format_wallet_statement(data: Any, detail: DetailLevel) -> str:
    """Format a list of statement/history entries, newest first as returned upstream."""
    transactions = data if isinstance(data, list) else []

    if detail == "concise":
        if not transactions:
            return "No transactions found for this period"

        output = f"{len(transactions)} transactions found\n\n"
        for t in transactions[:CONCISE_LIST_SIZE]:
            output += (
                f"{_get(t, 'TransactionTime')}: {_signed(_get(t, 'Amount', 0))} "
                f"{_get(t, 'Currency', '')} - {_get(t, 'Type')}\n"
            )
        if len(transactions) > CONCISE_LIST_SIZE:
            output += f"\n... and {len(transactions) - CONCISE_LIST_SIZE} more transactions"
        return output

    if not transactions:
        return "## Wallet Statement\n\nNo transactions found for this period."

    output = f"## Wallet Statement ({len(transactions)} transactions)\n\n"
    for idx, t in enumerate(transactions, start=1):
        output += f"### Transaction {idx}\n"
        output += f"- **Date/Time:** {_get(t, 'TransactionTime')}\n"
        output += f"- **Type:** {_get(t, 'Type')}\n"
        output += f"- **Amount:** {_signed(_get(t, 'Amount', 0))} {_get(t, 'Currency', '')}\n"
        output += f"- **Comment:** {_get(t, 'Comment')}\n"
        output += f"- **Transaction ID:** {_get(t, 'TransactionId')}\n\n"
    return output


def format_success_response(data: Any, operation_name: str, detail: DetailLevel) -> str:
    """Format the result of a mutating operation."""
    if detail == "concise":
        return f"✓ {operation_name} completed successfully"

    output = f"## {operation_name} - Success\n\n"
    for key, label in (
        ("PaymentId", "Payment ID"),
        ("Status", "Status"),
        ("TransactionId", "Transaction ID"),
    ):
        value = _get(data, key, None)
        if value:
            output += f"**{label}:** {value}\n"

    output += f"\n### Full Response\n\n```json\n{to_json(data)}\n```"
    return output


def success_formatter(operation_name: str) -> Formatter:
    """Bind an operation name to :func:`format_success_response`."""

    def _format(data: Any, detail: DetailLevel) -> str:
        return format_success_response(data, operation_name, detail)

    return _format
