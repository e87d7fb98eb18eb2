"""Health check endpoint."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from momo_relay.config import Settings
from momo_relay.dependencies import get_app_settings

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", summary="Health check")
async def healthcheck(request: Request, settings: Settings = Depends(get_app_settings)) -> dict[str, object]:
    """Return configuration flags an operator needs to reason about reconciliation."""

    scheduler = getattr(request.app.state, "scheduler", None)
    return {
        "status": "ok",
        "env": settings.app_env,
        "store_backend": settings.STORE_BACKEND,
        "gateway_token_configured": not settings.token_is_placeholder,
        "callback_signature_status": "ok" if settings.PAWAPAY_CALLBACK_SECRET else "missing",
        "return_fallback_assumes_completed": settings.ASSUME_COMPLETED_ON_RETURN_FAILURE,
        "scheduler_config_enabled": settings.SCHEDULER_ENABLED,
        "scheduler_running": scheduler is not None and scheduler.running,
    }
