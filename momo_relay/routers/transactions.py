"""Transaction history endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from momo_relay.dependencies import get_orchestrator
from momo_relay.models.transaction import TransactionType
from momo_relay.schemas.transaction import Transaction, TransactionRead
from momo_relay.services.orchestrator import PaymentOrchestrator, TransactionNotFoundError
from momo_relay.utils.errors import error_response

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


@router.get("", response_model=list[Transaction])
async def list_transactions(
    transaction_type: TransactionType | None = Query(default=None, alias="type"),
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
) -> list[Transaction]:
    """All transactions, newest first, optionally restricted to one type."""

    return await orchestrator.list_transactions(transaction_type)


@router.get("/{transaction_id}", response_model=TransactionRead)
async def get_transaction(
    transaction_id: str,
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
) -> TransactionRead:
    try:
        transaction = await orchestrator.get_transaction(transaction_id)
    except TransactionNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_response("Transaction not found"),
        )
    return TransactionRead.model_validate(transaction, from_attributes=True)


__all__ = ["router"]
