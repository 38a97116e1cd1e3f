"""
Barion credential specifications.

Payment tools authenticate with the shop's POSKey, wallet tools with the
user's wallet API key. Either one is enough to start the server.
"""

from .base import CredentialSpec

PAYMENT_TOOLS = [
    "start_payment",
    "get_payment_state",
    "finish_reservation",
    "refund_payment",
    "capture_payment",
    "cancel_authorization",
]

WALLET_TOOLS = [
    "get_wallet_accounts",
    "get_wallet_balance",
    "get_wallet_statement",
    "withdraw_to_bank",
    "get_user_history",
    "send_money",
]

BARION_CREDENTIALS = {
    "barion_pos_key": CredentialSpec(
        env_var="BARION_POS_KEY",
        cli_flag="poskey",
        description="Barion POSKey for payment operations",
        help_url="https://docs.barion.com/Getting_started",
        required=False,
        tools=PAYMENT_TOOLS,
    ),
    "barion_api_key": CredentialSpec(
        env_var="BARION_API_KEY",
        cli_flag="api_key",
        description="Barion API Key for wallet operations",
        help_url="https://docs.barion.com/Getting_started",
        required=False,
        tools=WALLET_TOOLS,
    ),
    "barion_environment": CredentialSpec(
        env_var="BARION_ENVIRONMENT",
        cli_flag="environment",
        description="Barion environment: test or prod (default: test)",
        required=False,
    ),
}
