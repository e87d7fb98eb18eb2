"""Deposit, payout and hosted payment endpoints."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from momo_relay.dependencies import get_orchestrator
from momo_relay.models.transaction import TransactionType
from momo_relay.schemas.payments import (
    DepositRequest,
    HostedPaymentRequest,
    HostedPaymentResponse,
    PaymentStatusResponse,
    PayoutRequest,
)
from momo_relay.services.orchestrator import (
    InitiationError,
    InitiationResult,
    PaymentOrchestrator,
    StatusCheckResult,
    TransactionNotFoundError,
)
from momo_relay.utils.errors import error_response

router = APIRouter(prefix="/api", tags=["payments"])


def _initiation_failed(exc: InitiationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=error_response(exc.message, transactionId=exc.transaction_id),
    )


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=error_response("Transaction not found"),
    )


def _status_payload(result: StatusCheckResult) -> Any:
    if result.reconciled:
        return result.gateway_response
    return {
        "transactionId": result.transaction.id,
        "status": result.transaction.status.value,
        "error": result.error,
    }


@router.post("/deposits")
async def create_deposit(
    payload: DepositRequest,
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    try:
        result: InitiationResult = await orchestrator.initiate_deposit(payload)
    except InitiationError as exc:
        raise _initiation_failed(exc)
    return result.as_payload()


@router.post("/payouts")
async def create_payout(
    payload: PayoutRequest,
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    try:
        result = await orchestrator.initiate_payout(payload)
    except InitiationError as exc:
        raise _initiation_failed(exc)
    return result.as_payload()


@router.get("/deposits/{transaction_id}/status")
async def deposit_status(
    transaction_id: str,
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
) -> Any:
    """Gateway status of a deposit; falls back to the stored status when the gateway is unreachable."""

    try:
        result = await orchestrator.check_status(transaction_id, TransactionType.DEPOSIT)
    except TransactionNotFoundError:
        raise _not_found()
    return _status_payload(result)


@router.get("/payouts/{transaction_id}/status")
async def payout_status(
    transaction_id: str,
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
) -> Any:
    try:
        result = await orchestrator.check_status(transaction_id, TransactionType.PAYOUT)
    except TransactionNotFoundError:
        raise _not_found()
    return _status_payload(result)


@router.get("/payment-status/{transaction_id}", response_model=PaymentStatusResponse)
async def payment_status(
    transaction_id: str,
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
) -> PaymentStatusResponse:
    """Reconciled local status, whatever the transaction type. Polled by the embed helper."""

    try:
        result = await orchestrator.check_status(transaction_id)
    except TransactionNotFoundError:
        raise _not_found()
    return PaymentStatusResponse(
        transaction_id=result.transaction.id,
        type=result.transaction.type,
        status=result.transaction.status,
        error=result.error,
    )


@router.post("/hosted-payment", response_model=HostedPaymentResponse)
async def create_hosted_payment(
    payload: HostedPaymentRequest,
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
) -> HostedPaymentResponse:
    try:
        result = await orchestrator.create_hosted_payment(payload)
    except InitiationError as exc:
        raise _initiation_failed(exc)
    return HostedPaymentResponse(transaction_id=result.transaction.id, redirect_url=result.redirect_url)


__all__ = ["router"]
