"""Transaction schemas."""
from datetime import datetime
from typing import Annotated, Any

from pydantic import ConfigDict, Field, field_validator

from momo_relay.models.transaction import TransactionStatus, TransactionType
from momo_relay.utils.time import ensure_utc

from .base import CamelModel

DecimalText = Annotated[str, Field(pattern=r"^\d+(\.\d+)?$", max_length=32)]


class Transaction(CamelModel):
    """One money-movement attempt as held by the store."""

    id: str
    type: TransactionType
    status: TransactionStatus
    amount: DecimalText
    currency: str
    country: str = ""
    phone_number: str
    provider: str = ""
    description: str | None = None
    provider_transaction_id: str | None = None
    pawapay_response: str | None = None
    error_message: str | None = None
    created: datetime
    updated: datetime

    model_config = ConfigDict(from_attributes=True, frozen=True)

    @field_validator("created", "updated")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class TransactionCreate(CamelModel):
    """Fields supplied when a transaction is first recorded."""

    id: str = Field(min_length=1)
    type: TransactionType
    status: TransactionStatus = TransactionStatus.PENDING
    amount: DecimalText
    currency: str = Field(min_length=1)
    country: str = ""
    phone_number: str = Field(min_length=1)
    provider: str = ""
    description: str | None = None
    provider_transaction_id: str | None = None
    pawapay_response: str | None = None
    error_message: str | None = None

    model_config = ConfigDict(extra="forbid")


class TransactionUpdate(CamelModel):
    """Partial update; only explicitly set fields are merged."""

    status: TransactionStatus | None = None
    country: str | None = None
    provider: str | None = None
    provider_transaction_id: str | None = None
    pawapay_response: str | None = None
    error_message: str | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("status", "country", "provider")
    @classmethod
    def _not_null(cls, value: Any) -> Any:
        # Validators only run for explicitly supplied values.
        if value is None:
            raise ValueError("field cannot be set to null")
        return value

    def changes(self) -> dict[str, Any]:
        """Return the explicitly set fields keyed by attribute name."""

        return self.model_dump(exclude_unset=True)


class TransactionRead(CamelModel):
    """Public view of a transaction; the raw gateway snapshot is withheld."""

    id: str
    type: TransactionType
    status: TransactionStatus
    amount: str
    currency: str
    country: str
    phone_number: str
    provider: str
    description: str | None
    provider_transaction_id: str | None
    error_message: str | None
    created: datetime
    updated: datetime

    model_config = ConfigDict(from_attributes=True)
