"""Routes the gateway and the hosted payment page call back into."""
from __future__ import annotations

import json
import logging
from urllib.parse import quote, urlencode

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import RedirectResponse

from momo_relay.config import Settings
from momo_relay.dependencies import get_app_settings, get_orchestrator
from momo_relay.services import webhooks
from momo_relay.services.orchestrator import (
    InvalidCallbackError,
    PaymentOrchestrator,
    ReturnOutcome,
    TransactionNotFoundError,
)
from momo_relay.utils.errors import error_response

logger = logging.getLogger(__name__)

router = APIRouter(tags=["callbacks"])


@router.post("/api/callback", status_code=status.HTTP_200_OK)
async def gateway_callback(
    request: Request,
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, bool]:
    raw_body = await request.body()
    if settings.PAWAPAY_CALLBACK_SECRET:
        webhooks.verify_callback_signature(
            raw_body, dict(request.headers), settings.PAWAPAY_CALLBACK_SECRET
        )

    try:
        payload = json.loads(raw_body or b"null")
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_response("Callback body is not valid JSON"),
        )

    try:
        await orchestrator.handle_callback(payload)
    except InvalidCallbackError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error_response(str(exc)))
    except TransactionNotFoundError as exc:
        logger.warning("Callback for unknown transaction", extra={"transaction_id": exc.transaction_id})
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_response("Transaction not found", transactionId=exc.transaction_id),
        )
    return {"success": True}


def _outcome_location(outcome: ReturnOutcome, settings: Settings) -> str:
    if outcome.succeeded:
        return f"{settings.RECEIPT_PATH}?{urlencode({'id': outcome.transaction_id})}"

    transaction = outcome.transaction
    data = {
        "transactionId": outcome.transaction_id,
        "status": transaction.status.value if transaction else "FAILED",
        "error": outcome.error,
        "amount": transaction.amount if transaction else None,
        "currency": transaction.currency if transaction else None,
        "phoneNumber": transaction.phone_number if transaction else None,
    }
    data = {key: value for key, value in data.items() if value is not None}
    return f"{settings.PAYMENT_FAILED_PATH}?data={quote(json.dumps(data), safe='')}"


@router.get("/payment-return")
async def payment_return(
    deposit_id: str | None = Query(default=None, alias="depositId"),
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
    settings: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    """Land the browser on the receipt or the failure page; never on an error page."""

    try:
        outcome = await orchestrator.handle_return(deposit_id)
    except Exception:  # noqa: BLE001
        logger.exception("Payment return handling failed", extra={"transaction_id": deposit_id})
        outcome = ReturnOutcome(deposit_id or "", False, error="Payment could not be confirmed")
    return RedirectResponse(_outcome_location(outcome, settings), status_code=status.HTTP_302_FOUND)


__all__ = ["router"]
