"""SQLAlchemy storage backend.

Sessions are synchronous, as elsewhere in the codebase; each coroutine hands
its session work to Starlette's threadpool so the event loop never blocks.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from uuid import uuid4

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from starlette.concurrency import run_in_threadpool

from momo_relay.models.provider import ProviderRow
from momo_relay.models.transaction import TransactionRow, TransactionType
from momo_relay.schemas.provider import Provider, ProviderCreate
from momo_relay.schemas.transaction import Transaction, TransactionCreate, TransactionUpdate
from momo_relay.utils.time import utcnow

from .base import DuplicateProviderError, DuplicateTransactionError, ProviderCatalog, TransactionStore

logger = logging.getLogger(__name__)


class SqlTransactionStore(TransactionStore):
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    async def get(self, transaction_id: str) -> Transaction | None:
        return await run_in_threadpool(self._get, transaction_id)

    async def create(self, data: TransactionCreate) -> Transaction:
        return await run_in_threadpool(self._create, data)

    async def update(self, transaction_id: str, updates: TransactionUpdate) -> Transaction | None:
        return await run_in_threadpool(self._update, transaction_id, updates)

    async def list_all(self) -> list[Transaction]:
        return await run_in_threadpool(self._list, None)

    async def list_by_type(self, transaction_type: TransactionType) -> list[Transaction]:
        return await run_in_threadpool(self._list, transaction_type)

    def _get(self, transaction_id: str) -> Transaction | None:
        with self._session_factory() as session:
            row = session.get(TransactionRow, transaction_id)
            return Transaction.model_validate(row) if row is not None else None

    def _create(self, data: TransactionCreate) -> Transaction:
        now = utcnow()
        row = TransactionRow(**data.model_dump(), created=now, updated=now)
        with self._session_factory() as session:
            session.add(row)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateTransactionError(data.id) from exc
            return Transaction.model_validate(row)

    def _update(self, transaction_id: str, updates: TransactionUpdate) -> Transaction | None:
        with self._session_factory() as session:
            row = session.get(TransactionRow, transaction_id)
            if row is None:
                return None
            for field, value in updates.changes().items():
                setattr(row, field, value)
            row.updated = utcnow()
            session.commit()
            return Transaction.model_validate(row)

    def _list(self, transaction_type: TransactionType | None) -> list[Transaction]:
        stmt = select(TransactionRow).order_by(TransactionRow.created.desc())
        if transaction_type is not None:
            stmt = stmt.where(TransactionRow.type == transaction_type)
        with self._session_factory() as session:
            return [Transaction.model_validate(row) for row in session.scalars(stmt)]


class SqlProviderCatalog(ProviderCatalog):
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def seed(self, providers: Iterable[ProviderCreate]) -> int:
        """Insert ``providers`` when the table is empty; return how many were added."""

        with self._session_factory() as session:
            existing = session.scalar(select(func.count()).select_from(ProviderRow))
            if existing:
                return 0
            rows = [ProviderRow(id=str(uuid4()), **data.model_dump()) for data in providers]
            session.add_all(rows)
            session.commit()
        logger.info("Provider catalog seeded", extra={"count": len(rows)})
        return len(rows)

    async def get(self, code: str) -> Provider | None:
        return await run_in_threadpool(self._get, code)

    async def list_by_country(self, country: str) -> list[Provider]:
        return await run_in_threadpool(self._list, country)

    async def list_all(self) -> list[Provider]:
        return await run_in_threadpool(self._list, None)

    async def create(self, data: ProviderCreate) -> Provider:
        return await run_in_threadpool(self._create, data)

    def _get(self, code: str) -> Provider | None:
        with self._session_factory() as session:
            row = session.scalars(select(ProviderRow).where(ProviderRow.code == code)).one_or_none()
            return Provider.model_validate(row) if row is not None else None

    def _list(self, country: str | None) -> list[Provider]:
        stmt = select(ProviderRow).where(ProviderRow.is_active.is_(True)).order_by(ProviderRow.code)
        if country is not None:
            stmt = stmt.where(ProviderRow.country == country)
        with self._session_factory() as session:
            return [Provider.model_validate(row) for row in session.scalars(stmt)]

    def _create(self, data: ProviderCreate) -> Provider:
        row = ProviderRow(id=str(uuid4()), **data.model_dump())
        with self._session_factory() as session:
            session.add(row)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateProviderError(data.code) from exc
            return Provider.model_validate(row)


__all__ = ["SqlProviderCatalog", "SqlTransactionStore"]
