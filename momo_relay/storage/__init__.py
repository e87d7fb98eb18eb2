"""Transaction store and provider catalog backends."""
from .base import (
    DuplicateProviderError,
    DuplicateTransactionError,
    ProviderCatalog,
    StorageError,
    TransactionStore,
)
from .memory import DEFAULT_PROVIDERS, MemoryProviderCatalog, MemoryTransactionStore
from .sql import SqlProviderCatalog, SqlTransactionStore

__all__ = [
    "DEFAULT_PROVIDERS",
    "DuplicateProviderError",
    "DuplicateTransactionError",
    "MemoryProviderCatalog",
    "MemoryTransactionStore",
    "ProviderCatalog",
    "SqlProviderCatalog",
    "SqlTransactionStore",
    "StorageError",
    "TransactionStore",
]
