"""ORM models package."""
from .base import Base
from .provider import ProviderRow
from .transaction import TransactionRow, TransactionStatus, TransactionType

__all__ = [
    "Base",
    "ProviderRow",
    "TransactionRow",
    "TransactionStatus",
    "TransactionType",
]
