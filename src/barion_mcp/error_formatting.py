"""
Actionable, assistant-friendly error messages for failed Barion calls.

The formatter is presentational only: it picks a template from the error
variant (and, inside a variant, from keywords or upstream error codes) and
always ends with the original error text.
"""

from __future__ import annotations

from barion_mcp.errors import NetworkFailure, TransportFailure, UpstreamError

SERVER_ERROR_STATUSES = frozenset({500, 502, 503})


def format_barion_error(operation_name: str, error: BaseException) -> str:
    """Turn a caught error into a remediation message for ``operation_name``."""
    error_message = str(error)

    if isinstance(error, TransportFailure):
        if error.status_code in (401, 403):
            return _format_authentication_error(operation_name, error)
        if error.status_code == 400:
            return _format_validation_error(operation_name, error)
        if error.status_code == 404:
            return _format_not_found_error(operation_name, error)
        if error.status_code in SERVER_ERROR_STATUSES:
            return _format_server_error(operation_name, error_message)

    if isinstance(error, UpstreamError):
        return _format_upstream_error(operation_name, error)

    if isinstance(error, NetworkFailure):
        return _format_network_error(operation_name, error_message)

    return (
        f"❌ {operation_name} failed: {error_message}\n\n"
        "Troubleshooting:\n"
        "- Verify all required parameters are provided\n"
        "- Check that values are in correct format\n"
        "- Ensure sufficient balance/permissions for this operation"
    )


def _format_authentication_error(operation_name: str, error: TransportFailure) -> str:
    env = "test" if "test.barion.com" in error.url else "prod"

    return f"""❌ Authentication Failed: {operation_name}

**Issue:** Invalid or missing credentials for Barion {env} environment.

**Possible Causes:**
1. POSKey or API Key is incorrect or expired
2. Using test credentials in production environment (or vice versa)
3. Credentials not properly configured in environment variables

**How to Fix:**
- For payment operations: Verify BARION_POS_KEY is correct for {env} environment
- For wallet operations: Verify BARION_API_KEY is correct for {env} environment
- Check environment setting: Currently using '{env}' - is this correct?
- Get credentials from: https://secure.test.barion.com/ (test) or https://secure.barion.com/ (prod)

**Next Steps:**
1. Double-check your credentials in .env file or environment variables
2. Ensure you're using {env} credentials for {env} API
3. Try regenerating your API keys if credentials are old

Original error: {error}"""


VALIDATION_GUIDANCE: list[tuple[tuple[str, ...], str]] = [
    (
        ("currency",),
        "\n**Issue:** Invalid currency code.\n**Fix:** Use uppercase currency codes: HUF, EUR, USD, or CZK",
    ),
    (
        ("email",),
        "\n**Issue:** Invalid email address.\n**Fix:** Provide a valid email in format: user@example.com",
    ),
    (
        ("amount", "total"),
        "\n**Issue:** Invalid amount value.\n**Fix:** Ensure amount is a positive number and does not "
        "exceed available balance or reservation amount",
    ),
    (
        ("paymenttype",),
        '\n**Issue:** Invalid payment type.\n**Fix:** Use one of: "Immediate", "Reservation", or '
        '"DelayedCapture"',
    ),
    (
        ("payee",),
        "\n**Issue:** Invalid payee email.\n**Fix:** Payee must be a registered Barion merchant "
        "account email",
    ),
]

NOT_FOUND_GUIDANCE: list[tuple[tuple[str, ...], str]] = [
    (
        ("payment",),
        "\n**Likely Issue:** Payment ID does not exist or has been deleted.\n**Fix:** Use "
        "get_payment_state with a valid PaymentId from a recent start_payment call",
    ),
    (
        ("transaction",),
        "\n**Likely Issue:** Transaction ID not found.\n**Fix:** Get valid TransactionId from "
        "get_payment_state response before attempting refund/capture",
    ),
    (
        ("account",),
        "\n**Likely Issue:** Account ID not found.\n**Fix:** Use get_wallet_accounts to retrieve "
        "valid Account IDs",
    ),
]


def _match_keywords(text: str, table: list[tuple[tuple[str, ...], str]]) -> str:
    lowered = text.lower()
    for keywords, guidance in table:
        if any(keyword in lowered for keyword in keywords):
            return guidance
    return ""


def _format_validation_error(operation_name: str, error: TransportFailure) -> str:
    guidance = _match_keywords(f"{error.reason} {error.body}", VALIDATION_GUIDANCE)

    return f"""❌ Validation Error: {operation_name}

**Issue:** Request contains invalid or missing data.
{guidance}

**Common Validation Errors:**
- Currency codes must be uppercase (HUF, EUR, USD, CZK)
- Amounts must be positive numbers
- Email addresses must be valid and properly formatted
- Payment types: "Immediate", "Reservation", or "DelayedCapture"
- Dates/times must be in correct format

**Next Steps:**
1. Review all parameter values for correct format
2. Check API documentation for required fields
3. Validate amounts are within acceptable limits

Original error: {error}"""


def _format_not_found_error(operation_name: str, error: TransportFailure) -> str:
    specific = _match_keywords(f"{error.reason} {error.body}", NOT_FOUND_GUIDANCE)

    return f"""❌ Not Found: {operation_name}

**Issue:** The requested resource does not exist.
{specific}

**Common Causes:**
- Using an incorrect or expired ID
- Resource was already deleted or cancelled
- Typo in the ID value
- Using test IDs in production (or vice versa)

**Next Steps:**
1. Verify the ID is correct and was recently created
2. Check you're in the correct environment (test vs prod)
3. For payment operations: Use get_payment_state to verify payment exists
4. For wallet operations: Use get_wallet_accounts to get valid account IDs

Original error: {error}"""


def _format_server_error(operation_name: str, error_message: str) -> str:
    return f"""❌ Server Error: {operation_name}

**Issue:** Barion API server encountered an error.

**This is typically a temporary issue on Barion's side.**

**What to do:**
1. Wait 30-60 seconds and retry the operation
2. Check Barion status page: https://status.barion.com (if available)
3. If error persists for >5 minutes, contact Barion support

**Note:** Your request may or may not have been processed. Before retrying:
- For payment operations: Check get_payment_state to see if payment was created
- For financial operations: Check get_wallet_statement to see if transaction was recorded
- Avoid duplicate submissions that could result in double-charging

Original error: {error_message}"""


def _format_network_error(operation_name: str, error_message: str) -> str:
    return f"""❌ Network Error: {operation_name}

**Issue:** Cannot connect to Barion API.

**Possible Causes:**
1. No internet connection
2. Firewall blocking access to Barion API
3. DNS resolution failure
4. Barion API is temporarily down

**How to Fix:**
1. Check your internet connection
2. Verify firewall allows connections to:
   - https://api.test.barion.com (test environment)
   - https://api.barion.com (production environment)
3. Try accessing Barion website in browser to confirm connectivity
4. If behind corporate proxy, ensure proxy is configured correctly

**Next Steps:**
1. Test connectivity: curl https://api.test.barion.com
2. Check DNS: nslookup api.barion.com
3. Retry operation once connectivity is restored

Original error: {error_message}"""


UPSTREAM_GUIDANCE: list[tuple[tuple[str, ...], str]] = [
    (
        ("ModelValidation", "InvalidInput"),
        """
**Barion Validation Error**

The request data failed Barion's validation rules.

**Common Issues:**
- Required fields are missing
- Values are in incorrect format
- Currency mismatch (e.g., trying to refund EUR when payment was HUF)
- Amount exceeds maximum allowed or available balance

**How to Fix:**
1. Check all required parameters are provided
2. Verify currency codes match across related operations
3. Ensure amounts don't exceed limits or available funds
4. Validate email addresses are properly formatted""",
    ),
    (
        ("PaymentNotFound", "TransactionNotFound"),
        """
**Resource Not Found**

The payment or transaction ID does not exist.

**How to Fix:**
1. Use get_payment_state first to verify the payment exists
2. Copy the exact PaymentId from the start_payment response
3. For transactions: Get TransactionId from get_payment_state response
4. Ensure you're using the correct environment (test vs prod)""",
    ),
    (
        ("InvalidPaymentState", "StateError"),
        """
**Invalid Payment State**

The operation cannot be performed in the current payment state.

**Common Issues:**
- Trying to capture a payment that's not Reserved/Authorized
- Attempting to refund a payment that hasn't Succeeded
- Trying to finish a reservation that's already captured

**How to Fix:**
1. Use get_payment_state to check current payment status
2. Valid state transitions:
   - Reservation → finish_reservation (when Status=Reserved)
   - DelayedCapture → capture_payment (when Status=Authorized)
   - Succeeded → refund_payment (when Status=Succeeded)
3. Wait for customer to complete payment before attempting capture/refund""",
    ),
    (
        ("InsufficientFunds",),
        """
**Insufficient Funds**

The wallet does not have enough balance for this operation.

**How to Fix:**
1. Use get_wallet_balance to check available funds
2. Ensure sufficient balance in the specified currency
3. Reduce withdrawal/transfer amount
4. Add funds to wallet before retrying""",
    ),
    (
        ("AmountTooHigh", "ExceedsMaximum"),
        """
**Amount Exceeds Maximum**

The amount is higher than allowed or available.

**How to Fix:**
1. For captures/refunds: Amount cannot exceed original payment amount
2. For withdrawals: Amount cannot exceed available balance
3. Check Barion's limits for your account type
4. Reduce the amount and retry""",
    ),
    (
        ("Expired", "TimeLimit"),
        """
**Operation Timeout**

The operation window has expired.

**Common Causes:**
- Reservation not captured within 7 days
- Payment authorization expired
- Customer didn't complete payment in time

**How to Fix:**
1. For reservations: Capture within 7 days or funds auto-release
2. For expired payments: Create a new payment - old one cannot be recovered
3. Check get_payment_state to see if payment is still active""",
    ),
    (
        ("Unauthorized", "Permission"),
        """
**Permission Denied**

Your account doesn't have permission for this operation.

**How to Fix:**
1. Verify you're using the correct API key/POSKey
2. Check your Barion account permissions
3. Ensure account is fully verified for this operation type
4. Contact Barion support to enable required permissions""",
    ),
]


def _format_upstream_error(operation_name: str, error: UpstreamError) -> str:
    # Codes are matched on the structured entries; titles cover responses without a code.
    markers = " ".join(f"{e.error_code} {e.title}" for e in error.errors)
    guidance = ""
    for codes, text in UPSTREAM_GUIDANCE:
        if any(code in markers for code in codes):
            guidance = text
            break

    return f"""❌ {operation_name} Failed - Barion API Error

{guidance}

**Full Error Details:**
{error}

**General Troubleshooting:**
1. Check payment state with get_payment_state before operations
2. Verify all amounts are correct and within limits
3. Ensure currencies match across related operations
4. Review Barion API documentation for specific error codes"""
