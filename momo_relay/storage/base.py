"""Storage contracts shared by the in-memory and SQL backends."""
from __future__ import annotations

from abc import ABC, abstractmethod

from momo_relay.models.transaction import TransactionType
from momo_relay.schemas.provider import Provider, ProviderCreate
from momo_relay.schemas.transaction import Transaction, TransactionCreate, TransactionUpdate


class StorageError(Exception):
    """Base class for storage failures."""


class DuplicateTransactionError(StorageError):
    def __init__(self, transaction_id: str) -> None:
        super().__init__(f"Transaction {transaction_id} already exists")
        self.transaction_id = transaction_id


class DuplicateProviderError(StorageError):
    def __init__(self, code: str) -> None:
        super().__init__(f"Provider {code} already exists")
        self.code = code


class TransactionStore(ABC):
    """Keyed transaction records. Every operation is awaitable so a durable
    backend can replace the in-memory one without touching call sites."""

    @abstractmethod
    async def get(self, transaction_id: str) -> Transaction | None:
        """Return the transaction or ``None`` when the id is unknown."""

    @abstractmethod
    async def create(self, data: TransactionCreate) -> Transaction:
        """Persist a new record with ``created``/``updated`` set to now."""

    @abstractmethod
    async def update(self, transaction_id: str, updates: TransactionUpdate) -> Transaction | None:
        """Merge the explicitly set fields of ``updates`` and bump ``updated``.

        Fields absent from ``updates`` are left untouched. Returns ``None``
        when the id is unknown.
        """

    @abstractmethod
    async def list_all(self) -> list[Transaction]:
        """Return every transaction, newest ``created`` first."""

    @abstractmethod
    async def list_by_type(self, transaction_type: TransactionType) -> list[Transaction]:
        """Return transactions of one type, newest ``created`` first."""


class ProviderCatalog(ABC):
    """Reference data about providers. Listings only ever include active providers."""

    @abstractmethod
    async def get(self, code: str) -> Provider | None: ...

    @abstractmethod
    async def list_by_country(self, country: str) -> list[Provider]: ...

    @abstractmethod
    async def list_all(self) -> list[Provider]: ...

    @abstractmethod
    async def create(self, data: ProviderCreate) -> Provider: ...


__all__ = [
    "DuplicateProviderError",
    "DuplicateTransactionError",
    "ProviderCatalog",
    "StorageError",
    "TransactionStore",
]
