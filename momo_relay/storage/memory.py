"""In-memory storage backend."""
from __future__ import annotations

from collections.abc import Iterable
from uuid import uuid4

from momo_relay.models.transaction import TransactionType
from momo_relay.schemas.provider import Provider, ProviderCreate
from momo_relay.schemas.transaction import Transaction, TransactionCreate, TransactionUpdate
from momo_relay.utils.time import utcnow

from .base import DuplicateProviderError, DuplicateTransactionError, ProviderCatalog, TransactionStore

DEFAULT_PROVIDERS: tuple[ProviderCreate, ...] = (
    # Rwanda
    ProviderCreate(code="MTN_MOMO_RWA", display_name="MTN Rwanda", country="RWA", currency="RWF"),
    ProviderCreate(code="AIRTEL_RWA", display_name="Airtel Rwanda", country="RWA", currency="RWF"),
    # Uganda
    ProviderCreate(code="MTN_MOMO_UGA", display_name="MTN Uganda", country="UGA", currency="UGX"),
    ProviderCreate(code="AIRTEL_UGA", display_name="Airtel Uganda", country="UGA", currency="UGX"),
    # Kenya
    ProviderCreate(code="MPESA", display_name="M-Pesa", country="KEN", currency="KES"),
    ProviderCreate(code="AIRTEL_KEN", display_name="Airtel Kenya", country="KEN", currency="KES"),
)


def _newest_first(transactions: Iterable[Transaction]) -> list[Transaction]:
    return sorted(transactions, key=lambda txn: txn.created, reverse=True)


class MemoryTransactionStore(TransactionStore):
    """Dict-backed store. Each operation completes without yielding to the
    event loop, so a single call is never interleaved with another."""

    def __init__(self) -> None:
        self._transactions: dict[str, Transaction] = {}

    async def get(self, transaction_id: str) -> Transaction | None:
        return self._transactions.get(transaction_id)

    async def create(self, data: TransactionCreate) -> Transaction:
        if data.id in self._transactions:
            raise DuplicateTransactionError(data.id)
        now = utcnow()
        transaction = Transaction(**data.model_dump(), created=now, updated=now)
        self._transactions[transaction.id] = transaction
        return transaction

    async def update(self, transaction_id: str, updates: TransactionUpdate) -> Transaction | None:
        existing = self._transactions.get(transaction_id)
        if existing is None:
            return None
        merged = existing.model_copy(update={**updates.changes(), "updated": utcnow()})
        self._transactions[transaction_id] = merged
        return merged

    async def list_all(self) -> list[Transaction]:
        return _newest_first(self._transactions.values())

    async def list_by_type(self, transaction_type: TransactionType) -> list[Transaction]:
        return _newest_first(txn for txn in self._transactions.values() if txn.type == transaction_type)


class MemoryProviderCatalog(ProviderCatalog):
    """Provider catalog keyed by provider code, seeded on construction."""

    def __init__(self, seed: Iterable[ProviderCreate] = DEFAULT_PROVIDERS) -> None:
        self._providers: dict[str, Provider] = {}
        for data in seed:
            self._insert(data)

    def _insert(self, data: ProviderCreate) -> Provider:
        if data.code in self._providers:
            raise DuplicateProviderError(data.code)
        provider = Provider(id=str(uuid4()), **data.model_dump())
        self._providers[provider.code] = provider
        return provider

    async def get(self, code: str) -> Provider | None:
        return self._providers.get(code)

    async def list_by_country(self, country: str) -> list[Provider]:
        return [p for p in self._providers.values() if p.country == country and p.is_active]

    async def list_all(self) -> list[Provider]:
        return [p for p in self._providers.values() if p.is_active]

    async def create(self, data: ProviderCreate) -> Provider:
        return self._insert(data)


__all__ = ["DEFAULT_PROVIDERS", "MemoryProviderCatalog", "MemoryTransactionStore"]
