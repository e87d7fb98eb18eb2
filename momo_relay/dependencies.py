"""Service construction and FastAPI dependency providers.

Everything a request needs is built once by :func:`build_services` and hung
on ``app.state``; routers reach it through the ``get_*`` dependencies below
rather than through module globals.
"""
from __future__ import annotations

from dataclasses import dataclass

import httpx
from fastapi import Request
from sqlalchemy.engine import Engine

from momo_relay.config import Settings
from momo_relay.core.logging import get_logger
from momo_relay.db import create_all, create_db_engine, make_sessionmaker
from momo_relay.services.gateway import PawaPayGateway
from momo_relay.services.orchestrator import PaymentOrchestrator
from momo_relay.storage import (
    DEFAULT_PROVIDERS,
    MemoryProviderCatalog,
    MemoryTransactionStore,
    ProviderCatalog,
    SqlProviderCatalog,
    SqlTransactionStore,
    TransactionStore,
)

logger = get_logger(__name__)


@dataclass
class Services:
    settings: Settings
    store: TransactionStore
    providers: ProviderCatalog
    gateway: PawaPayGateway
    orchestrator: PaymentOrchestrator
    engine: Engine | None = None

    async def aclose(self) -> None:
        await self.gateway.aclose()
        if self.engine is not None:
            self.engine.dispose()


def build_services(settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None) -> Services:
    """Construct the store, catalog, gateway and orchestrator for one application.

    ``transport`` replaces the network layer of both gateway clients (tests
    pass an ``httpx.MockTransport``).
    """

    engine: Engine | None = None
    store: TransactionStore
    providers: ProviderCatalog
    if settings.STORE_BACKEND == "sql":
        engine = create_db_engine(settings.database_url)
        create_all(engine)
        session_factory = make_sessionmaker(engine)
        store = SqlTransactionStore(session_factory)
        sql_providers = SqlProviderCatalog(session_factory)
        sql_providers.seed(DEFAULT_PROVIDERS)
        providers = sql_providers
    else:
        store = MemoryTransactionStore()
        providers = MemoryProviderCatalog()

    gateway = PawaPayGateway.from_settings(settings, transport)
    orchestrator = PaymentOrchestrator(
        store,
        gateway,
        public_base_url=settings.PUBLIC_BASE_URL,
        assume_completed_on_return_failure=settings.ASSUME_COMPLETED_ON_RETURN_FAILURE,
        logger=get_logger("momo_relay.orchestrator", settings.ORCHESTRATOR_LOG_LEVEL),
    )
    logger.info("Services built", extra={"store_backend": settings.STORE_BACKEND})
    return Services(
        settings=settings,
        store=store,
        providers=providers,
        gateway=gateway,
        orchestrator=orchestrator,
        engine=engine,
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_orchestrator(request: Request) -> PaymentOrchestrator:
    return get_services(request).orchestrator


def get_provider_catalog(request: Request) -> ProviderCatalog:
    return get_services(request).providers


def get_app_settings(request: Request) -> Settings:
    return get_services(request).settings


__all__ = [
    "Services",
    "build_services",
    "get_app_settings",
    "get_orchestrator",
    "get_provider_catalog",
    "get_services",
]
