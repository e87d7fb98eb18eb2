"""Pass-through lookups against the pawaPay API."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status

from momo_relay.dependencies import get_orchestrator
from momo_relay.schemas.payments import PredictProviderRequest
from momo_relay.services.gateway import GatewayError
from momo_relay.services.orchestrator import PaymentOrchestrator
from momo_relay.utils.errors import error_response

router = APIRouter(prefix="/api", tags=["gateway"])


@router.get("/active-config/{country}")
async def active_config(
    country: str,
    operation_type: str | None = Query(default=None, alias="operationType"),
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
) -> Any:
    """Active providers and limits for a country, as configured on the merchant account."""

    try:
        return await orchestrator.active_configuration(
            country, operation_type
        )
    except GatewayError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_response(exc.message),
        )


@router.post("/predict-provider")
async def predict_provider(
    payload: PredictProviderRequest,
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
) -> Any:
    try:
        return await orchestrator.predict_provider(payload.phone_number)
    except GatewayError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_response(exc.message),
        )


__all__ = ["router"]
