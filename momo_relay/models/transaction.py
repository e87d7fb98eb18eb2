"""Transaction model."""
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import DateTime, Enum as SqlEnum, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from momo_relay.utils.time import utcnow

from .base import Base


class TransactionStatus(str, PyEnum):
    """Statuses a stored transaction can hold."""

    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class TransactionType(str, PyEnum):
    DEPOSIT = "DEPOSIT"
    PAYOUT = "PAYOUT"


class TransactionRow(Base):
    """Durable representation of one deposit or payout attempt."""

    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_created", "created"),
        Index("ix_transactions_type", "type"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    type: Mapped[TransactionType] = mapped_column(SqlEnum(TransactionType), nullable=False)
    status: Mapped[TransactionStatus] = mapped_column(SqlEnum(TransactionStatus), nullable=False)
    # Exact decimal text, never a float column.
    amount: Mapped[str] = mapped_column(String(32), nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False)
    country: Mapped[str] = mapped_column(String(8), nullable=False, default="")
    phone_number: Mapped[str] = mapped_column(String(32), nullable=False)
    provider: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    description: Mapped[str | None] = mapped_column(String(64), nullable=True)
    provider_transaction_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    pawapay_response: Mapped[str | None] = mapped_column(Text, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
