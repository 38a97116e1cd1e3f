"""
Request models for Barion payment and wallet operations.

Attributes are snake_case; each model accepts and dumps the lowerCamel names
used by the tool schemas (``posTransactionId``, ``unitPrice``, ...). The
clients rename those to Barion's PascalCase fields.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    HttpUrl,
    TypeAdapter,
    WithJsonSchema,
)
from pydantic.alias_generators import to_camel

Currency = Literal["HUF", "EUR", "USD", "CZK"]
HistoryCurrency = Literal["HUF", "EUR", "USD", "CZK", "RON", "PLN"]
PaymentType = Literal["Immediate", "Reservation", "DelayedCapture"]
ResponseFormat = Literal["json", "markdown"]
DetailLevel = Literal["concise", "detailed"]

PaymentStatus = Literal[
    "Prepared",
    "Started",
    "InProgress",
    "Waiting",
    "Reserved",
    "Authorized",
    "Canceled",
    "Succeeded",
    "Failed",
    "PartiallySucceeded",
    "Expired",
]
TransactionStatus = Literal[
    "Prepared",
    "Started",
    "Succeeded",
    "Timeout",
    "ShopCanceled",
    "UserCanceled",
    "Reserved",
    "Authorized",
    "Expired",
    "Refunded",
    "PartiallyRefunded",
]

# Upstream caps a single history page at 20 entries.
MAX_HISTORY_LIMIT = 20

_HTTP_URL = TypeAdapter(HttpUrl)


def _check_http_url(value: str) -> str:
    # Validate only; upstream receives the caller's string unchanged.
    _HTTP_URL.validate_python(value)
    return value


HttpUrlString = Annotated[
    str,
    AfterValidator(_check_http_url),
    WithJsonSchema({"type": "string", "format": "uri", "minLength": 1}),
]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PaymentItem(_CamelModel):
    name: Annotated[str, Field(description="Item name")]
    description: Annotated[str, Field(description="Item description")]
    quantity: Annotated[float, Field(gt=0, description="Quantity (must be positive)")]
    unit: Annotated[str, Field(description="Unit (e.g., piece, hour)")]
    unit_price: Annotated[float, Field(gt=0, description="Unit price (must be positive)")]
    item_total: Annotated[
        float, Field(gt=0, description="Total price for this item (must be positive)")
    ]


class PaymentTransaction(_CamelModel):
    pos_transaction_id: Annotated[str, Field(description="Unique ID for this transaction")]
    payee: Annotated[
        EmailStr,
        Field(description="Email address of the payee (must be a registered Barion user)"),
    ]
    total: Annotated[float, Field(gt=0, description="Total amount (must be positive)")]
    items: list[PaymentItem]


class TransactionTotal(_CamelModel):
    transaction_id: Annotated[str, Field(description="The transaction ID")]
    total: Annotated[float, Field(gt=0, description="Amount to capture (must be positive)")]


class StartPaymentRequest(_CamelModel):
    payment_type: PaymentType
    currency: Currency
    transactions: list[PaymentTransaction]
    redirect_url: HttpUrlString
    callback_url: HttpUrlString
    payment_request_id: str | None = None


class FinishReservationRequest(_CamelModel):
    payment_id: str
    transactions: list[TransactionTotal]


class CapturePaymentRequest(_CamelModel):
    payment_id: str
    transactions: list[TransactionTotal]


class RefundPaymentRequest(_CamelModel):
    payment_id: str
    transaction_id: str
    amount: float = Field(gt=0)
    comment: str | None = None


class CancelAuthorizationRequest(_CamelModel):
    payment_id: str


class StatementRequest(_CamelModel):
    year: int
    month: int = Field(ge=1, le=12)
    currency: Currency | None = None


class UserHistoryRequest(_CamelModel):
    last_request_time: str | None = None
    last_visible_item_id: str | None = None
    limit: int | None = Field(default=None, ge=1)
    currency: HistoryCurrency | None = None


class WithdrawRequest(_CamelModel):
    currency: Currency
    amount: float = Field(gt=0)
    account_number: str
    account_holder_name: str
    swift: str
    comment: str | None = None


class SendMoneyRequest(_CamelModel):
    recipient_email: EmailStr
    currency: Currency
    amount: float = Field(gt=0)
    comment: str | None = None
    source_account_id: str | None = None
