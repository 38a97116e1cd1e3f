"""
Barion Payment Tool - Start, inspect, capture and refund Barion payments.

Supports:
- POSKey authentication (BARION_POS_KEY), sent in the request body or query string

Use Cases:
- Start Immediate, Reservation and DelayedCapture payments
- Check payment state and retrieve transaction IDs
- Finish reservations and capture delayed-capture payments
- Issue full or partial refunds
- Cancel authorizations and release held funds

API Reference: https://docs.barion.com/Payment-Start-v2
"""

from __future__ import annotations

import time
import uuid
from typing import TYPE_CHECKING, Annotated, Any

from fastmcp import FastMCP
from pydantic import Field

from barion_mcp.credentials import PAYMENT_TOOLS
from barion_mcp.formatting import format_payment_state, success_formatter
from barion_mcp.models import (
    CancelAuthorizationRequest,
    CapturePaymentRequest,
    Currency,
    FinishReservationRequest,
    HttpUrlString,
    PaymentTransaction,
    PaymentType,
    RefundPaymentRequest,
    StartPaymentRequest,
    TransactionTotal,
)
from barion_mcp.tools._common import MUTATING, READ_ONLY, DetailParam, FormatParam, run_tool
from barion_mcp.transport import BarionHttpClient, rename_fields

if TYPE_CHECKING:
    from barion_mcp.config import BarionConfig

START_PAYMENT_FIELDS = {
    "paymentType": "PaymentType",
    "currency": "Currency",
    "transactions": "Transactions",
    "redirectUrl": "RedirectUrl",
    "callbackUrl": "CallbackUrl",
    "paymentRequestId": "PaymentRequestId",
}

POS_TRANSACTION_FIELDS = {
    "posTransactionId": "POSTransactionId",
    "payee": "Payee",
    "total": "Total",
    "items": "Items",
}

PAYMENT_ITEM_FIELDS = {
    "name": "Name",
    "description": "Description",
    "quantity": "Quantity",
    "unit": "Unit",
    "unitPrice": "UnitPrice",
    "itemTotal": "ItemTotal",
}

TRANSACTION_TOTAL_FIELDS = {
    "transactionId": "TransactionId",
    "total": "Total",
}

GET_PAYMENT_STATE_FIELDS = {"paymentId": "PaymentId"}

FINISH_RESERVATION_FIELDS = {
    "paymentId": "PaymentId",
    "transactions": "Transactions",
}

CAPTURE_PAYMENT_FIELDS = {
    "paymentId": "PaymentId",
    "transactions": "Transactions",
}

REFUND_PAYMENT_FIELDS = {
    "paymentId": "PaymentId",
    "transactionId": "TransactionId",
    "amount": "AmountToRefund",
    "comment": "Comment",
}

CANCEL_AUTHORIZATION_FIELDS = {"paymentId": "PaymentId"}


def generate_payment_request_id() -> str:
    """Build a unique PaymentRequestId such as ``PAY-1730000000000-1a2b3c4d5``."""
    return f"PAY-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


def _transaction_totals(transactions: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [rename_fields(t, TRANSACTION_TOTAL_FIELDS) for t in transactions]


class _BarionPaymentClient(BarionHttpClient):
    """Internal client wrapping the Barion Payment API (POSKey authentication)."""

    api_name = "Barion API"

    def __init__(self, pos_key: str, environment: str = "test"):
        super().__init__(environment)
        self._pos_key = pos_key

    def _auth_params(self) -> dict[str, Any]:
        return {"POSKey": self._pos_key}

    async def start_payment(self, request: StartPaymentRequest) -> dict[str, Any]:
        """Create a payment and return its PaymentId and GatewayUrl."""
        values = request.model_dump(by_alias=True, mode="json")
        values["paymentRequestId"] = values["paymentRequestId"] or generate_payment_request_id()

        payload = rename_fields(values, START_PAYMENT_FIELDS)
        transactions = []
        for t in payload["Transactions"]:
            transaction = rename_fields(t, POS_TRANSACTION_FIELDS)
            transaction["Items"] = [rename_fields(i, PAYMENT_ITEM_FIELDS) for i in transaction["Items"]]
            transactions.append(transaction)
        payload["Transactions"] = transactions
        payload["FundingSources"] = ["All"]
        payload["GuestCheckOut"] = True
        payload["Locale"] = "en-US"

        return await self._request("/v2/Payment/Start", payload)

    async def get_payment_state(self, payment_id: str) -> dict[str, Any]:
        """Get the current state of a payment."""
        params = rename_fields({"paymentId": payment_id}, GET_PAYMENT_STATE_FIELDS)
        return await self._request("/v2/Payment/GetPaymentState", params, method="GET")

    async def finish_reservation(self, request: FinishReservationRequest) -> dict[str, Any]:
        """Capture funds of a Reservation payment."""
        payload = rename_fields(request.model_dump(by_alias=True), FINISH_RESERVATION_FIELDS)
        payload["Transactions"] = _transaction_totals(payload["Transactions"])
        return await self._request("/v2/Payment/FinishReservation", payload)

    async def refund_payment(self, request: RefundPaymentRequest) -> dict[str, Any]:
        """Refund part or all of a succeeded transaction."""
        payload = rename_fields(request.model_dump(by_alias=True), REFUND_PAYMENT_FIELDS)
        payload["Comment"] = payload["Comment"] or ""
        return await self._request("/v2/Payment/Refund", payload)

    async def capture_payment(self, request: CapturePaymentRequest) -> dict[str, Any]:
        """Capture funds of a DelayedCapture payment."""
        payload = rename_fields(request.model_dump(by_alias=True), CAPTURE_PAYMENT_FIELDS)
        payload["Transactions"] = _transaction_totals(payload["Transactions"])
        return await self._request("/v2/Payment/Capture", payload)

    async def cancel_authorization(self, request: CancelAuthorizationRequest) -> dict[str, Any]:
        """Release the hold of an authorized DelayedCapture payment."""
        payload = rename_fields(request.model_dump(by_alias=True), CANCEL_AUTHORIZATION_FIELDS)
        return await self._request("/v2/Payment/CancelAuthorization", payload)


def register_tools(mcp: FastMCP, config: BarionConfig) -> list[str]:
    """Register Barion payment tools with the MCP server."""
    if config.pos_key is None:
        raise ValueError("Payment tools require a POSKey")
    client = _BarionPaymentClient(config.pos_key.get_secret_value(), config.environment)

    @mcp.tool(annotations=MUTATING)
    async def start_payment(
        paymentType: Annotated[PaymentType, Field(description="The type of payment")],
        currency: Annotated[
            Currency,
            Field(
                description="Currency code: HUF (Hungarian Forint), EUR (Euro), "
                "USD (US Dollar), or CZK (Czech Koruna)"
            ),
        ],
        transactions: Annotated[
            list[PaymentTransaction], Field(description="Array of transactions")
        ],
        redirectUrl: Annotated[
            HttpUrlString,
            Field(
                description="URL where the customer will be redirected after completing payment "
                '(success or failure). Example: "https://myshop.com/payment/return"'
            ),
        ],
        callbackUrl: Annotated[
            HttpUrlString,
            Field(
                description="URL where Barion will POST payment status change notifications "
                "(webhook). Your server should listen here and call get_payment_state when "
                'notified. Example: "https://myshop.com/api/barion/callback"'
            ),
        ],
        format: FormatParam = "markdown",
        detail: DetailParam = "concise",
    ) -> str:
        """Start a new Barion payment transaction.

        Creates a payment request and returns a payment URL where the customer can complete the payment. This is the primary tool for initiating any payment flow in Barion.

        PAYMENT TYPES:
        - Immediate: Funds are captured immediately upon successful payment completion. Use this for standard e-commerce purchases.
        - Reservation: Funds are reserved (authorized) but not captured. You must call finish_reservation within 7 days to capture the funds. Use this for hotel bookings, car rentals, or pre-orders where final amount may change.
        - DelayedCapture: Similar to Reservation but uses a different API endpoint for capture. You must call capture_payment to finalize. Use this when you need more control over the capture timing.

        WORKFLOW:
        1. Call this tool to create the payment (provide callbackUrl for status notifications)
        2. Redirect the customer to the returned GatewayUrl
        3. Customer completes payment on Barion's secure payment page
        4. Barion sends a callback notification to your callbackUrl when payment status changes
        5. Customer is redirected back to your redirectUrl
        6. When you receive the callback, use get_payment_state to get complete payment details
        7. For Reservation payments, call finish_reservation to capture funds
        8. For DelayedCapture payments, call capture_payment to capture funds

        CALLBACK MECHANISM:
        The callbackUrl parameter is crucial - Barion will POST payment status updates to this URL whenever the payment state changes (e.g., Prepared → Started → Succeeded). This webhook approach is preferred over polling get_payment_state repeatedly. Set up an endpoint to receive these callbacks and trigger get_payment_state when notified.

        RESPONSE:
        Returns a PaymentId (unique identifier for this payment), PaymentRequestId (your reference), Status (payment state), and GatewayUrl (where to send the customer).

        IMPORTANT: The payee email must be a registered Barion merchant account. All amounts must be positive numbers. The redirectUrl and callbackUrl must be valid HTTPS URLs (HTTP allowed only in test environment).
        """
        request = StartPaymentRequest(
            payment_type=paymentType,
            currency=currency,
            transactions=transactions,
            redirect_url=redirectUrl,
            callback_url=callbackUrl,
        )
        return await run_tool(
            "Start Payment",
            client.start_payment(request),
            format,
            detail,
            success_formatter("Payment Created"),
        )

    @mcp.tool(annotations=READ_ONLY)
    async def get_payment_state(
        paymentId: Annotated[str, Field(description="The Barion payment ID")],
        format: FormatParam = "markdown",
        detail: DetailParam = "concise",
    ) -> str:
        """Get the current state and details of a payment transaction.

        Retrieves comprehensive information about a payment including its status, transactions, amounts, and customer details. Use this tool to verify payment completion, check transaction status, or retrieve payment details for reporting.

        COMMON USE CASES:
        - Verify payment was completed successfully after customer returns from payment gateway
        - Check if reserved/authorized funds are ready to be captured
        - Monitor payment status for reconciliation
        - Retrieve transaction IDs needed for refunds or captures
        - Get payment history and audit trail

        PAYMENT STATES:
        - Prepared: Payment created but customer hasn't started the payment process
        - Started: Customer is on the payment page
        - InProgress: Payment processing in progress
        - Reserved: Funds are reserved (for Reservation payments)
        - Authorized: Payment authorized (for DelayedCapture payments)
        - Succeeded: Payment completed successfully
        - Failed: Payment failed
        - Canceled: Payment was canceled
        - Expired: Payment request expired (customer didn't complete in time)

        RESPONSE:
        Returns complete payment details including Status, Transactions (with TransactionId needed for refunds/captures), Total amount, Currency, PaymentType, and timestamps.

        IMPORTANT - DO NOT POLL:
        After creating a payment with start_payment, DO NOT repeatedly poll this endpoint to detect status changes. Instead, Barion will send a callback to the callbackUrl you provided in start_payment whenever the payment status changes. When you receive the callback notification, THEN call this tool to get the updated payment details. This is more efficient and prevents unnecessary API calls.
        """
        return await run_tool(
            "Get Payment State",
            client.get_payment_state(paymentId),
            format,
            detail,
            format_payment_state,
        )

    @mcp.tool(annotations=MUTATING)
    async def finish_reservation(
        paymentId: Annotated[str, Field(description="The Barion payment ID")],
        transactions: Annotated[
            list[TransactionTotal], Field(description="Array of transactions to finish")
        ],
        format: FormatParam = "markdown",
        detail: DetailParam = "concise",
    ) -> str:
        """Finish (capture) a reserved payment to transfer funds from customer to merchant.

        Captures funds that were previously reserved using the 'Reservation' payment type. This finalizes the payment and transfers the money. You must call this within 7 days of the reservation, or the funds will be automatically released back to the customer.

        WHEN TO USE:
        - After creating a payment with paymentType='Reservation' that completed successfully (Status=Reserved)
        - When you're ready to finalize the transaction (e.g., hotel checkout, final invoice calculated, goods shipped)
        - To capture partial amounts if the final total is less than reserved (e.g., minibar charges less than deposit)

        WORKFLOW:
        1. Create payment with start_payment using paymentType='Reservation'
        2. Customer completes payment (funds are reserved)
        3. Use get_payment_state to verify Status=Reserved and get TransactionId
        4. Provide service or prepare goods
        5. Call this tool to capture the funds (full or partial amount)

        PARTIAL CAPTURES:
        You can capture less than the reserved amount by specifying a lower total. The remaining funds are released back to the customer. You cannot capture MORE than the reserved amount.

        IMPORTANT:
        - Must be called within 7 days of reservation or funds auto-release
        - Can be called multiple times per payment, but total payment amount cannot exceed initial total
        - Payment must be in Reserved status
        - Use the TransactionId from get_payment_state response
        """
        request = FinishReservationRequest(payment_id=paymentId, transactions=transactions)
        return await run_tool(
            "Finish Reservation",
            client.finish_reservation(request),
            format,
            detail,
            success_formatter("Reservation Captured"),
        )

    @mcp.tool(annotations=MUTATING)
    async def refund_payment(
        paymentId: Annotated[str, Field(description="The Barion payment ID")],
        transactionId: Annotated[str, Field(description="The transaction ID to refund")],
        amount: Annotated[
            float,
            Field(
                gt=0,
                description="Amount to refund (must be positive, cannot exceed original "
                "transaction amount)",
            ),
        ],
        comment: Annotated[
            str | None, Field(description="Optional comment for the refund")
        ] = None,
        format: FormatParam = "markdown",
        detail: DetailParam = "concise",
    ) -> str:
        """Refund a completed payment transaction, returning funds to the customer.

        Issues a full or partial refund for a successfully completed payment (Status=Succeeded). The refund is processed immediately and funds are returned to the customer's original payment method.

        WHEN TO USE:
        - Customer requests a refund for returned goods or canceled service
        - Need to correct an overcharge or billing error
        - Partial refunds for damaged items or partial returns
        - Order cancellation after payment was captured

        REFUND TYPES:
        - Full Refund: Specify the full transaction amount
        - Partial Refund: Specify any amount up to the original transaction total
        - Multiple Partial Refunds: You can refund multiple times until the full amount is refunded

        WORKFLOW:
        1. Use get_payment_state to verify payment Status=Succeeded
        2. Retrieve the TransactionId from the payment state response
        3. Call this tool with the PaymentId, TransactionId, and amount to refund
        4. Optionally provide a comment explaining the refund reason (visible to customer)
        5. Funds are returned to customer's account within 1-5 business days

        LIMITATIONS:
        - Can only refund Succeeded payments
        - Cannot refund more than the original transaction amount
        - Total refunds cannot exceed original transaction total
        - Refund must be in the same currency as the original payment

        TIP: Always include a descriptive comment to help with record-keeping and customer service. Examples: "Product returned - Defective item", "Order cancelled by customer", "Billing correction - overcharged by 10 EUR".
        """
        request = RefundPaymentRequest(
            payment_id=paymentId,
            transaction_id=transactionId,
            amount=amount,
            comment=comment,
        )
        return await run_tool(
            "Refund Payment",
            client.refund_payment(request),
            format,
            detail,
            success_formatter("Refund Processed"),
        )

    @mcp.tool(annotations=MUTATING)
    async def capture_payment(
        paymentId: Annotated[str, Field(description="The Barion payment ID")],
        transactions: Annotated[
            list[TransactionTotal], Field(description="Array of transactions to capture")
        ],
        format: FormatParam = "markdown",
        detail: DetailParam = "concise",
    ) -> str:
        """Capture a previously authorized payment to transfer funds from customer to merchant.

        Finalizes a payment that was created with paymentType='DelayedCapture'. This captures the authorized funds and completes the transaction. Similar to finish_reservation but uses a different API endpoint specifically for DelayedCapture payment types.

        WHEN TO USE:
        - After creating a payment with paymentType='DelayedCapture' that completed successfully (Status=Authorized)
        - When you're ready to finalize the transaction and capture the funds
        - For business models requiring authorization before capture (pre-orders, custom manufacturing, etc.)

        DIFFERENCE FROM FINISH_RESERVATION:
        - finish_reservation: Used for paymentType='Reservation'
        - capture_payment: Used for paymentType='DelayedCapture'
        Both accomplish the same goal (capturing authorized funds) but use different API endpoints based on the original payment type.

        WORKFLOW:
        1. Create payment with start_payment using paymentType='DelayedCapture'
        2. Customer completes payment (funds are authorized)
        3. Use get_payment_state to verify Status=Authorized and get TransactionId
        4. Provide service, manufacture goods, or complete your side of the transaction
        5. Call this tool to capture the authorized funds (full or partial amount)

        PARTIAL CAPTURES:
        You can capture less than the authorized amount by specifying a lower total. The remaining authorization is released. You cannot capture MORE than the authorized amount.

        IMPORTANT:
        - Payment must be in Authorized status
        - Use the TransactionId from get_payment_state response
        - Can only be called once per payment
        - Check Barion's time limits for DelayedCapture (varies by payment method)
        """
        request = CapturePaymentRequest(payment_id=paymentId, transactions=transactions)
        return await run_tool(
            "Capture Payment",
            client.capture_payment(request),
            format,
            detail,
            success_formatter("Payment Captured"),
        )

    @mcp.tool(annotations=MUTATING)
    async def cancel_authorization(
        paymentId: Annotated[str, Field(description="The Barion payment ID to cancel")],
        format: FormatParam = "markdown",
        detail: DetailParam = "concise",
    ) -> str:
        """Cancel an authorized payment and release the held funds back to the customer.

        Cancels a payment that was created with paymentType='DelayedCapture' and is currently in Authorized status. This releases the authorization hold and returns the funds to the customer immediately. Use this when you decide not to capture an authorized payment.

        WHEN TO USE:
        - Order is cancelled before fulfillment
        - Product is out of stock and cannot be delivered
        - Customer requests cancellation of their order
        - Unable to fulfill the service for any reason
        - Fraud detection flags the transaction
        - Want to release funds without waiting for automatic authorization expiry

        WORKFLOW:
        1. Payment was created with paymentType='DelayedCapture' and Status=Authorized
        2. Decide not to proceed with capturing the payment
        3. Call this tool with the PaymentId
        4. Authorization is cancelled and funds are released immediately
        5. Payment status changes to Canceled

        ALTERNATIVE:
        If you don't call this tool, the authorization will automatically expire based on the payment method's time limits (typically 7-30 days). However, calling this tool releases funds immediately rather than making the customer wait.

        IMPORTANT:
        - Can only cancel payments in Authorized status
        - Cannot be used for Reservation payment type (those auto-release after 7 days)
        - Cannot be undone - once cancelled, you cannot capture the funds
        - If you need to charge the customer later, they must make a new payment

        USE CASE EXAMPLE:
        Customer orders a custom product. Payment is authorized (DelayedCapture). During manufacturing, you discover you cannot source materials. Cancel the authorization to immediately release customer's funds rather than making them wait for auto-expiry.
        """
        request = CancelAuthorizationRequest(payment_id=paymentId)
        return await run_tool(
            "Cancel Authorization",
            client.cancel_authorization(request),
            format,
            detail,
            success_formatter("Authorization Cancelled"),
        )

    return list(PAYMENT_TOOLS)
