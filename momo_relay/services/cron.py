"""Background jobs for the reconciliation sweep."""
from __future__ import annotations

import logging

from momo_relay.models.transaction import TransactionStatus
from momo_relay.services.orchestrator import PaymentOrchestrator

logger = logging.getLogger(__name__)

OPEN_STATUSES = {TransactionStatus.PENDING, TransactionStatus.ACCEPTED}


async def reconcile_pending_once(orchestrator: PaymentOrchestrator) -> int:
    """Poll the gateway for every transaction that has not reached a final status.

    Returns the number of transactions whose stored status changed.
    """

    changed = 0
    for transaction in await orchestrator.list_transactions():
        if transaction.status not in OPEN_STATUSES:
            continue
        result = await orchestrator.check_status(transaction.id)
        if result.transaction.status != transaction.status:
            changed += 1
    if changed:
        logger.info("Reconciliation sweep updated transactions", extra={"changed": changed})
    return changed
