"""Tests for tool output formatting."""

import json

import pytest

from barion_mcp.formatting import (
    CHARACTER_LIMIT,
    format_payment_state,
    format_response,
    format_success_response,
    format_wallet_accounts,
    format_wallet_statement,
    to_json,
    truncate_if_needed,
)


def _entries(count):
    return [
        {
            "TransactionId": f"t-{i}",
            "TransactionTime": f"2025-01-{i + 1:02d}T08:00:00Z",
            "Amount": 10 * i if i % 2 else -5,
            "Currency": "HUF",
            "Type": "Transfer",
            "Comment": "",
        }
        for i in range(count)
    ]


class TestTruncation:
    def test_short_text_unchanged(self):
        assert truncate_if_needed("hello") == "hello"

    def test_text_at_limit_unchanged(self):
        text = "x" * CHARACTER_LIMIT
        assert truncate_if_needed(text) == text

    def test_long_text_truncated_with_marker(self):
        text = "y" * (CHARACTER_LIMIT + 500)
        result = truncate_if_needed(text)

        assert len(result) <= CHARACTER_LIMIT
        assert result.startswith("y" * (CHARACTER_LIMIT - 200))
        assert result.endswith(
            f"[... Output truncated. Total length: {CHARACTER_LIMIT + 500} characters. "
            f"Showing first {CHARACTER_LIMIT - 200} characters ...]"
        )

    def test_truncation_is_idempotent(self):
        once = truncate_if_needed("z" * (CHARACTER_LIMIT * 2))
        assert truncate_if_needed(once) == once

    def test_custom_limit(self):
        result = truncate_if_needed("a" * 1000, limit=500)
        assert result.startswith("a" * 300 + "\n\n[... Output truncated. Total length: 1000")


class TestFormatResponse:
    def test_json_format_is_raw_payload(self):
        data = {"PaymentId": "p", "Amount": 1.5, "Name": "Árvíztűrő"}
        result = format_response(data, "json", "detailed", format_wallet_accounts)

        assert result == to_json(data)
        assert json.loads(result) == data
        assert "Árvíztűrő" in result

    def test_missing_formatter_falls_back_to_json(self):
        assert format_response([1, 2], "markdown") == to_json([1, 2])

    def test_markdown_output_is_capped(self):
        result = format_response(_entries(500), "markdown", "detailed", format_wallet_statement)
        assert len(result) <= CHARACTER_LIMIT
        assert "[... Output truncated." in result


class TestPaymentState:
    @pytest.mark.parametrize(
        "status, marker",
        [
            ("Succeeded", "✓ Payment completed successfully"),
            ("Prepared", "⏳ Waiting for customer to complete payment"),
            ("Failed", "✗ Payment failed"),
        ],
    )
    def test_concise_status_marker(self, status, marker):
        result = format_payment_state({"PaymentId": "p-1", "Status": status}, "concise")
        assert result.splitlines()[-1] == marker

    def test_concise_without_marker(self):
        result = format_payment_state({"PaymentId": "p-1", "Status": "Reserved"}, "concise")
        assert result.splitlines()[-1] == "Created: N/A"

    def test_detailed_lists_transactions_and_errors(self):
        data = {
            "PaymentId": "p-1",
            "Status": "Succeeded",
            "Currency": "EUR",
            "Total": 20,
            "Transactions": [{"TransactionId": "t-1", "Status": "Succeeded", "Total": 20}],
            "Errors": [{"Title": "Warn", "Description": "Something"}],
        }
        result = format_payment_state(data, "detailed")

        assert result.startswith("## Payment Details")
        assert "- ID: t-1" in result
        assert "- Amount: 20 EUR" in result
        assert "- Warn: Something" in result


class TestWalletFormatters:
    def test_accounts_concise_empty(self):
        assert format_wallet_accounts([], "concise") == "No wallet accounts found"

    def test_accounts_detailed_empty(self):
        assert format_wallet_accounts([], "detailed") == "## Wallet Accounts\n\nNo accounts found."

    def test_statement_concise_shows_first_ten(self):
        result = format_wallet_statement(_entries(13), "concise")

        assert result.startswith("13 transactions found")
        assert "2025-01-10T08:00:00Z" in result
        assert "2025-01-11T08:00:00Z" not in result
        assert result.count("Transfer") == 10
        assert result.endswith("... and 3 more transactions")

    def test_statement_signs_amounts(self):
        result = format_wallet_statement(_entries(2), "concise")
        assert ": -5 HUF - Transfer" in result
        assert ": +10 HUF - Transfer" in result

    def test_statement_detailed_shows_all(self):
        result = format_wallet_statement(_entries(13), "detailed")

        assert result.startswith("## Wallet Statement (13 transactions)")
        assert "### Transaction 13" in result

    @pytest.mark.parametrize("payload", [None, {"unexpected": True}, "text", [None, 3]])
    def test_formatters_tolerate_malformed_payloads(self, payload):
        for detail in ("concise", "detailed"):
            assert isinstance(format_wallet_statement(payload, detail), str)
            assert isinstance(format_wallet_accounts(payload, detail), str)
            assert isinstance(format_payment_state(payload, detail), str)


class TestSuccessResponse:
    def test_concise(self):
        assert (
            format_success_response({}, "Withdrawal Initiated", "concise")
            == "✓ Withdrawal Initiated completed successfully"
        )

    def test_detailed(self):
        data = {"PaymentId": "p-1", "Status": "Succeeded"}
        result = format_success_response(data, "Refund Processed", "detailed")

        assert result.startswith("## Refund Processed - Success")
        assert "**Payment ID:** p-1" in result
        assert "**Transaction ID:**" not in result
        assert result.endswith(f"```json\n{to_json(data)}\n```")
