"""Request schemas for the payment endpoints."""
from typing import Annotated

from pydantic import Field, StringConstraints

from momo_relay.models.transaction import TransactionStatus, TransactionType

from .base import CamelModel
from .transaction import DecimalText

PhoneNumber = Annotated[str, StringConstraints(strip_whitespace=True, min_length=10, max_length=20)]
Description = Annotated[
    str,
    StringConstraints(min_length=4, max_length=22, pattern=r"^[a-zA-Z0-9 ]*$"),
]


class PredictProviderRequest(CamelModel):
    phone_number: PhoneNumber


class TransferRequest(CamelModel):
    """Common body of deposit and payout initiation requests."""

    phone_number: PhoneNumber
    provider: str = Field(min_length=1)
    amount: DecimalText
    currency: str = Field(min_length=3, max_length=3)
    description: Description | None = None


class DepositRequest(TransferRequest):
    pass


class PayoutRequest(TransferRequest):
    pass


class HostedPaymentRequest(CamelModel):
    """Body of a hosted (widget) payment request; the provider is picked on the hosted page."""

    phone_number: PhoneNumber
    amount: DecimalText
    currency: str = Field(min_length=3, max_length=3)
    country: str = Field(min_length=3, max_length=3)
    description: Description | None = None


class HostedPaymentResponse(CamelModel):
    transaction_id: str
    redirect_url: str


class PaymentStatusResponse(CamelModel):
    transaction_id: str
    type: TransactionType
    status: TransactionStatus
    error: str | None = None
