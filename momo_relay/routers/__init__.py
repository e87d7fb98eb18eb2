"""API routers for the relay."""
from fastapi import APIRouter

from . import callbacks, gateway, health, payments, providers, transactions


def get_api_router() -> APIRouter:
    """Return the root API router."""

    api_router = APIRouter()
    api_router.include_router(health.router)
    api_router.include_router(gateway.router)
    api_router.include_router(payments.router)
    api_router.include_router(transactions.router)
    api_router.include_router(providers.router)
    api_router.include_router(callbacks.router)
    return api_router
