"""Tests for the Barion payment tool."""

from __future__ import annotations

import json
import logging
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from fastmcp.exceptions import ToolError
from pydantic import ValidationError

from barion_mcp.credentials import PAYMENT_TOOLS
from barion_mcp.errors import NetworkFailure, TransportFailure, UpstreamError
from barion_mcp.models import (
    CancelAuthorizationRequest,
    FinishReservationRequest,
    PaymentItem,
    PaymentTransaction,
    RefundPaymentRequest,
    StartPaymentRequest,
    TransactionTotal,
)
from barion_mcp.tools.payment_tool import register_tools
from barion_mcp.tools.payment_tool.payment_tool import (
    CANCEL_AUTHORIZATION_FIELDS,
    CAPTURE_PAYMENT_FIELDS,
    FINISH_RESERVATION_FIELDS,
    PAYMENT_ITEM_FIELDS,
    POS_TRANSACTION_FIELDS,
    REFUND_PAYMENT_FIELDS,
    START_PAYMENT_FIELDS,
    TRANSACTION_TOTAL_FIELDS,
    _BarionPaymentClient,
)

TEST_POS_KEY = "test-pos-key-0123456789"

PATCH_TARGET = "httpx.AsyncClient.request"


def _transaction(**overrides):
    data = {
        "posTransactionId": "tx-1",
        "payee": "shop@example.com",
        "total": 1000,
        "items": [
            {
                "name": "Widget",
                "description": "A widget",
                "quantity": 2,
                "unit": "piece",
                "unitPrice": 500,
                "itemTotal": 1000,
            }
        ],
    }
    data.update(overrides)
    return data


def _start_request() -> StartPaymentRequest:
    return StartPaymentRequest.model_validate(
        {
            "paymentType": "Immediate",
            "currency": "EUR",
            "transactions": [_transaction()],
            "redirectUrl": "https://myshop.com/payment/return",
            "callbackUrl": "https://myshop.com/api/barion/callback",
        }
    )


def _aliases(model) -> set[str]:
    return {field.alias for field in model.model_fields.values()}


class TestFieldMaps:
    """Every request field maps to exactly one upstream field."""

    @pytest.mark.parametrize(
        "model, field_map",
        [
            (StartPaymentRequest, START_PAYMENT_FIELDS),
            (PaymentTransaction, POS_TRANSACTION_FIELDS),
            (PaymentItem, PAYMENT_ITEM_FIELDS),
            (TransactionTotal, TRANSACTION_TOTAL_FIELDS),
            (FinishReservationRequest, FINISH_RESERVATION_FIELDS),
            (FinishReservationRequest, CAPTURE_PAYMENT_FIELDS),
            (RefundPaymentRequest, REFUND_PAYMENT_FIELDS),
            (CancelAuthorizationRequest, CANCEL_AUTHORIZATION_FIELDS),
        ],
    )
    def test_field_map_is_total_and_one_to_one(self, model, field_map):
        assert set(field_map) == _aliases(model)
        assert len(set(field_map.values())) == len(field_map)


class TestBarionPaymentClient:
    def setup_method(self):
        self.client = _BarionPaymentClient(TEST_POS_KEY, "test")

    def test_base_url_by_environment(self):
        assert self.client._base_url == "https://api.test.barion.com"
        assert _BarionPaymentClient("k", "prod")._base_url == "https://api.barion.com"

    @pytest.mark.asyncio
    async def test_start_payment_payload(self, make_response):
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_request:
            mock_request.return_value = make_response(
                200, {"PaymentId": "pay-1", "Status": "Prepared", "GatewayUrl": "https://gw"}
            )

            result = await self.client.start_payment(_start_request())

        assert result["PaymentId"] == "pay-1"
        args, kwargs = mock_request.call_args
        assert args == ("POST", "https://api.test.barion.com/v2/Payment/Start")
        payload = kwargs["json"]
        assert payload["POSKey"] == TEST_POS_KEY
        assert payload["PaymentType"] == "Immediate"
        assert payload["Currency"] == "EUR"
        assert payload["RedirectUrl"] == "https://myshop.com/payment/return"
        assert payload["FundingSources"] == ["All"]
        assert payload["GuestCheckOut"] is True
        assert payload["Locale"] == "en-US"
        assert payload["PaymentRequestId"].startswith("PAY-")

        transaction = payload["Transactions"][0]
        assert transaction["POSTransactionId"] == "tx-1"
        assert transaction["Payee"] == "shop@example.com"
        assert transaction["Items"][0]["UnitPrice"] == 500
        assert transaction["Items"][0]["ItemTotal"] == 1000
        assert "unitPrice" not in transaction["Items"][0]

    @pytest.mark.asyncio
    async def test_start_payment_keeps_given_request_id(self, make_response):
        request = _start_request().model_copy(update={"payment_request_id": "ORDER-42"})
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_request:
            mock_request.return_value = make_response(200, {"PaymentId": "pay-1"})
            await self.client.start_payment(request)

        assert mock_request.call_args.kwargs["json"]["PaymentRequestId"] == "ORDER-42"

    @pytest.mark.asyncio
    async def test_get_payment_state_uses_query_string(self, make_response):
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_request:
            mock_request.return_value = make_response(200, {"PaymentId": "pay-1"})
            await self.client.get_payment_state("pay-1")

        args, kwargs = mock_request.call_args
        assert args == ("GET", "https://api.test.barion.com/v2/Payment/GetPaymentState")
        assert kwargs["params"] == {"POSKey": TEST_POS_KEY, "PaymentId": "pay-1"}
        assert "json" not in kwargs

    @pytest.mark.asyncio
    async def test_refund_defaults_comment(self, make_response):
        request = RefundPaymentRequest(payment_id="pay-1", transaction_id="t-1", amount=250)
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_request:
            mock_request.return_value = make_response(200, {"IsSuccessful": True})
            await self.client.refund_payment(request)

        payload = mock_request.call_args.kwargs["json"]
        assert payload["AmountToRefund"] == 250
        assert payload["TransactionId"] == "t-1"
        assert payload["Comment"] == ""

    @pytest.mark.asyncio
    async def test_capture_renames_transactions(self, make_response):
        request = FinishReservationRequest(
            payment_id="pay-1",
            transactions=[TransactionTotal(transaction_id="t-1", total=90)],
        )
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_request:
            mock_request.return_value = make_response(200, {"IsSuccessful": True})
            await self.client.finish_reservation(request)

        args, kwargs = mock_request.call_args
        assert args[1].endswith("/v2/Payment/FinishReservation")
        assert kwargs["json"]["Transactions"] == [{"TransactionId": "t-1", "Total": 90}]

    @pytest.mark.asyncio
    async def test_upstream_errors_raise(self, make_response):
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_request:
            mock_request.return_value = make_response(
                200,
                {
                    "Errors": [
                        {
                            "ErrorCode": "InvalidPaymentState",
                            "Title": "Bad state",
                            "Description": "Payment is not reserved",
                        }
                    ]
                },
            )
            with pytest.raises(UpstreamError) as exc_info:
                await self.client.get_payment_state("pay-1")

        assert exc_info.value.error_codes == ["InvalidPaymentState"]
        assert "Barion API Error: InvalidPaymentState: Bad state - Payment is not reserved" in str(
            exc_info.value
        )

    @pytest.mark.asyncio
    async def test_empty_error_list_is_success(self, make_response):
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_request:
            mock_request.return_value = make_response(200, {"PaymentId": "pay-1", "Errors": []})
            result = await self.client.get_payment_state("pay-1")

        assert result["PaymentId"] == "pay-1"

    @pytest.mark.asyncio
    async def test_http_error_raises_transport_failure(self, make_response):
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_request:
            mock_request.return_value = make_response(404, text="Payment not found")
            with pytest.raises(TransportFailure) as exc_info:
                await self.client.get_payment_state("missing")

        assert exc_info.value.status_code == 404
        assert exc_info.value.body == "Payment not found"
        assert str(exc_info.value) == "HTTP 404: Not Found - Payment not found"

    @pytest.mark.asyncio
    async def test_connect_error_raises_network_failure(self):
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_request:
            mock_request.side_effect = httpx.ConnectError("Connection refused")
            with pytest.raises(NetworkFailure):
                await self.client.get_payment_state("pay-1")

    @pytest.mark.asyncio
    async def test_pos_key_never_logged(self, make_response, caplog):
        caplog.set_level(logging.DEBUG, logger="barion_mcp")
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_request:
            mock_request.return_value = make_response(200, {"PaymentId": "pay-1"})
            await self.client.start_payment(_start_request())
            await self.client.get_payment_state("pay-1")

        assert "POSKey" in caplog.text
        assert TEST_POS_KEY not in caplog.text

    @pytest.mark.asyncio
    async def test_pos_key_masked_in_http_library_logs(self, caplog):
        caplog.set_level(logging.DEBUG)
        caplog.set_level(logging.DEBUG, logger="httpx")
        with patch(
            "httpx.AsyncHTTPTransport.handle_async_request", new_callable=AsyncMock
        ) as mock_send:
            mock_send.return_value = httpx.Response(200, json={"PaymentId": "pay-1"})
            await self.client.get_payment_state("pay-1")

        sent = mock_send.call_args.args[0]
        assert sent.url.params["POSKey"] == TEST_POS_KEY
        assert "HTTP Request: GET" in caplog.text
        assert "POSKey=***&PaymentId=pay-1" in caplog.text
        assert TEST_POS_KEY not in caplog.text

    @pytest.mark.asyncio
    async def test_urls_forwarded_verbatim(self, make_response):
        request = StartPaymentRequest.model_validate(
            {
                "paymentType": "Immediate",
                "currency": "EUR",
                "transactions": [_transaction()],
                "redirectUrl": "https://myshop.com",
                "callbackUrl": "https://MyShop.com/cb?order=1&x=%20y",
            }
        )
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_request:
            mock_request.return_value = make_response(200, {"PaymentId": "pay-1"})
            await self.client.start_payment(request)

        payload = mock_request.call_args.kwargs["json"]
        assert payload["RedirectUrl"] == "https://myshop.com"
        assert payload["CallbackUrl"] == "https://MyShop.com/cb?order=1&x=%20y"

    def test_invalid_url_rejected(self):
        with pytest.raises(ValidationError):
            StartPaymentRequest.model_validate(
                {
                    "paymentType": "Immediate",
                    "currency": "EUR",
                    "transactions": [_transaction()],
                    "redirectUrl": "not a url",
                    "callbackUrl": "https://myshop.com/api/barion/callback",
                }
            )


class TestPaymentTools:
    def test_registration(self, mcp, config):
        names = register_tools(mcp, config)

        assert names == PAYMENT_TOOLS
        assert set(names) == set(mcp._tool_manager._tools)

    def test_hints(self, mcp, config):
        register_tools(mcp, config)
        tools = mcp._tool_manager._tools

        assert tools["get_payment_state"].annotations.readOnlyHint is True
        assert tools["get_payment_state"].annotations.idempotentHint is True
        assert tools["refund_payment"].annotations.readOnlyHint is False
        assert tools["refund_payment"].annotations.idempotentHint is False

    def test_schema_uses_public_parameter_names(self, mcp, config):
        register_tools(mcp, config)
        schema = mcp._tool_manager._tools["start_payment"].parameters

        assert {"paymentType", "currency", "transactions", "redirectUrl", "callbackUrl"} <= set(
            schema["properties"]
        )
        assert "Start a new Barion payment transaction." in (
            mcp._tool_manager._tools["start_payment"].description
        )

    @pytest.mark.asyncio
    async def test_get_payment_state_succeeded(self, mcp, config, tool_fn, make_response):
        register_tools(mcp, config)
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_request:
            mock_request.return_value = make_response(
                200,
                {"PaymentId": "pay-1", "Status": "Succeeded", "Total": 1000, "Currency": "HUF"},
            )
            result = await tool_fn("get_payment_state")(paymentId="pay-1")

        assert "Payment pay-1" in result
        assert "✓ Payment completed successfully" in result
        assert "✗ Payment failed" not in result

    @pytest.mark.asyncio
    async def test_get_payment_state_json(self, mcp, config, tool_fn, make_response):
        payload = {"PaymentId": "pay-1", "Status": "Failed"}
        register_tools(mcp, config)
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_request:
            mock_request.return_value = make_response(200, payload)
            result = await tool_fn("get_payment_state")(paymentId="pay-1", format="json")

        assert json.loads(result) == payload

    @pytest.mark.asyncio
    async def test_start_payment_tool(self, mcp, config, tool_fn, make_response):
        register_tools(mcp, config)
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_request:
            mock_request.return_value = make_response(
                200, {"PaymentId": "pay-9", "Status": "Prepared"}
            )
            result = await tool_fn("start_payment")(
                paymentType="Reservation",
                currency="HUF",
                transactions=[_transaction()],
                redirectUrl="https://myshop.com/payment/return",
                callbackUrl="https://myshop.com/api/barion/callback",
                detail="detailed",
            )

        assert result.startswith("## Payment Created - Success")
        assert "**Payment ID:** pay-9" in result
        assert mock_request.call_args.kwargs["json"]["PaymentType"] == "Reservation"

    @pytest.mark.asyncio
    async def test_refund_tool_concise(self, mcp, config, tool_fn, make_response):
        register_tools(mcp, config)
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_request:
            mock_request.return_value = make_response(200, {"IsSuccessful": True})
            result = await tool_fn("refund_payment")(
                paymentId="pay-1", transactionId="t-1", amount=10, comment="Returned"
            )

        assert result == "✓ Refund Processed completed successfully"
        assert mock_request.call_args.kwargs["json"]["Comment"] == "Returned"

    @pytest.mark.asyncio
    async def test_not_found_transaction_is_tool_error(self, mcp, config, tool_fn, make_response):
        register_tools(mcp, config)
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_request:
            mock_request.return_value = make_response(404, text="Transaction does not exist")
            with pytest.raises(ToolError) as exc_info:
                await tool_fn("capture_payment")(
                    paymentId="pay-1",
                    transactions=[{"transactionId": "t-404", "total": 5}],
                )

        message = str(exc_info.value)
        assert message.startswith("❌ Not Found: Capture Payment")
        assert "Get valid TransactionId from get_payment_state" in message
        assert "Original error: HTTP 404: Not Found - Transaction does not exist" in message

    @pytest.mark.asyncio
    async def test_cancel_authorization_upstream_error(self, mcp, config, tool_fn, make_response):
        register_tools(mcp, config)
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_request:
            mock_request.return_value = make_response(
                200,
                {"Errors": [{"ErrorCode": "InvalidPaymentState", "Title": "t", "Description": "d"}]},
            )
            with pytest.raises(ToolError) as exc_info:
                await tool_fn("cancel_authorization")(paymentId="pay-1")

        assert "**Invalid Payment State**" in str(exc_info.value)

    def test_requires_pos_key(self, mcp, config):
        with pytest.raises(ValueError):
            register_tools(mcp, config.model_copy(update={"pos_key": None}))
