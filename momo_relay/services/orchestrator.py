"""
Transaction orchestration and status reconciliation.

A transaction's status can be reported by four independent channels:

1. the gateway's answer to the initiation call,
2. status polls (client-driven or the background sweep),
3. the gateway's webhook callback,
4. the user's browser returning from the hosted payment page.

None of them is ordered relative to the others. Every channel merges only the
fields it knows about, and whichever merge lands last wins. Gateway failures
are caught here and never escape as raw exceptions: initiation records the
attempt as FAILED, polls fall back to the stored status, and the return flow
applies the configured fallback.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from momo_relay.models.transaction import TransactionStatus, TransactionType
from momo_relay.schemas.payments import HostedPaymentRequest, TransferRequest
from momo_relay.schemas.transaction import Transaction, TransactionCreate, TransactionUpdate
from momo_relay.services.gateway import GatewayError, PawaPayGateway
from momo_relay.services.normalizer import failure_message, optional_text, status_of
from momo_relay.storage.base import TransactionStore

RETURN_FALLBACK_NOTE = "Status check failed after the hosted payment page; assumed COMPLETED"
MISSING_REDIRECT_MESSAGE = "Widget session response did not include a redirect URL"


class TransactionNotFoundError(Exception):
    def __init__(self, transaction_id: str) -> None:
        super().__init__(f"Transaction {transaction_id} not found")
        self.transaction_id = transaction_id


class InitiationError(Exception):
    """The gateway refused or could not take a new transaction; it is recorded as FAILED."""

    def __init__(self, transaction_id: str, message: str) -> None:
        super().__init__(message)
        self.transaction_id = transaction_id
        self.message = message


class InvalidCallbackError(Exception):
    """The webhook body does not reference a transaction."""


@dataclass(frozen=True)
class InitiationResult:
    transaction: Transaction
    gateway_response: Any

    def as_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"transactionId": self.transaction.id}
        if isinstance(self.gateway_response, Mapping):
            payload.update(self.gateway_response)
        return payload


@dataclass(frozen=True)
class HostedPaymentResult:
    transaction: Transaction
    redirect_url: str


@dataclass(frozen=True)
class StatusCheckResult:
    """Outcome of a poll. ``gateway_response`` is ``None`` when the gateway
    could not be queried and ``transaction`` holds the last known state."""

    transaction: Transaction
    gateway_response: Any = None
    error: str | None = None

    @property
    def reconciled(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ReturnOutcome:
    transaction_id: str
    succeeded: bool
    transaction: Transaction | None = None
    error: str | None = None
    assumed: bool = False


def _serialize(payload: Any) -> str:
    return json.dumps(payload, separators=(",", ":"), default=str)


class PaymentOrchestrator:
    """Sole writer of transaction status."""

    def __init__(
        self,
        store: TransactionStore,
        gateway: PawaPayGateway,
        *,
        public_base_url: str,
        assume_completed_on_return_failure: bool = True,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._public_base_url = public_base_url.rstrip("/")
        self._assume_completed_on_return_failure = assume_completed_on_return_failure
        self._logger = logger or logging.getLogger(__name__)

    # --- pass-through lookups ---------------------------------------------

    async def predict_provider(self, phone_number: str) -> Any:
        return await self._gateway.predict_provider(phone_number)

    async def active_configuration(self, country: str, operation_type: str | None = None) -> Any:
        return await self._gateway.active_configuration(country, operation_type)

    # --- reads ---------------------------------------------------------------

    async def get_transaction(self, transaction_id: str) -> Transaction:
        transaction = await self._store.get(transaction_id)
        if transaction is None:
            raise TransactionNotFoundError(transaction_id)
        return transaction

    async def list_transactions(self, transaction_type: TransactionType | None = None) -> list[Transaction]:
        if transaction_type is None:
            return await self._store.list_all()
        return await self._store.list_by_type(transaction_type)

    # --- initiation ------------------------------------------------------------

    async def initiate_deposit(self, request: TransferRequest) -> InitiationResult:
        return await self._initiate(TransactionType.DEPOSIT, request)

    async def initiate_payout(self, request: TransferRequest) -> InitiationResult:
        return await self._initiate(TransactionType.PAYOUT, request)

    async def _initiate(self, transaction_type: TransactionType, request: TransferRequest) -> InitiationResult:
        transaction = await self._create_pending(
            transaction_type,
            amount=request.amount,
            currency=request.currency,
            phone_number=request.phone_number,
            provider=request.provider,
            description=request.description,
        )
        call = (
            self._gateway.initiate_deposit
            if transaction_type is TransactionType.DEPOSIT
            else self._gateway.initiate_payout
        )
        try:
            response = await call(
                transaction.id,
                amount=request.amount,
                currency=request.currency,
                phone_number=request.phone_number,
                provider=request.provider,
                description=request.description,
            )
        except GatewayError as exc:
            await self._record_initiation_failure(transaction.id, exc.message)
            raise InitiationError(transaction.id, exc.message) from exc

        merged = await self._merge_initiation(transaction, response)
        self._logger.info(
            "Transaction initiated",
            extra={
                "transaction_id": merged.id,
                "type": merged.type.value,
                "status": merged.status.value,
            },
        )
        return InitiationResult(merged, response)

    async def create_hosted_payment(self, request: HostedPaymentRequest) -> HostedPaymentResult:
        """Record a PENDING deposit and open a widget session for it."""

        transaction = await self._create_pending(
            TransactionType.DEPOSIT,
            amount=request.amount,
            currency=request.currency,
            phone_number=request.phone_number,
            description=request.description,
            country=request.country,
        )
        return_url = f"{self._public_base_url}/payment-return?depositId={transaction.id}"
        try:
            response = await self._gateway.create_widget_session(
                transaction.id,
                return_url=return_url,
                amount=request.amount,
                country=request.country,
                phone_number=request.phone_number,
                description=request.description,
            )
        except GatewayError as exc:
            await self._record_initiation_failure(transaction.id, exc.message)
            raise InitiationError(transaction.id, exc.message) from exc

        redirect_url = optional_text(response, "redirectUrl")
        if redirect_url is None:
            await self._record_initiation_failure(
                transaction.id, MISSING_REDIRECT_MESSAGE, response=response
            )
            raise InitiationError(transaction.id, MISSING_REDIRECT_MESSAGE)

        updated = await self._store.update(
            transaction.id, TransactionUpdate(pawapay_response=_serialize(response))
        )
        self._logger.info("Hosted payment session created", extra={"transaction_id": transaction.id})
        return HostedPaymentResult(updated or transaction, redirect_url)

    async def _create_pending(
        self,
        transaction_type: TransactionType,
        *,
        amount: str,
        currency: str,
        phone_number: str,
        provider: str = "",
        description: str | None = None,
        country: str = "",
    ) -> Transaction:
        return await self._store.create(
            TransactionCreate(
                id=str(uuid4()),
                type=transaction_type,
                status=TransactionStatus.PENDING,
                amount=amount,
                currency=currency,
                country=country,
                phone_number=phone_number,
                provider=provider,
                description=description,
            )
        )

    async def _merge_initiation(self, transaction: Transaction, response: Any) -> Transaction:
        changes: dict[str, Any] = {"pawapay_response": _serialize(response)}
        status = status_of(response)
        if status is not None:
            changes["status"] = status
            if status is TransactionStatus.FAILED:
                changes["error_message"] = failure_message(response)
        country = optional_text(response, "country")
        if country is not None:
            changes["country"] = country
        updated = await self._store.update(transaction.id, TransactionUpdate(**changes))
        return updated or transaction

    async def _record_initiation_failure(
        self, transaction_id: str, message: str, *, response: Any = None
    ) -> None:
        changes: dict[str, Any] = {"status": TransactionStatus.FAILED, "error_message": message}
        if response is not None:
            changes["pawapay_response"] = _serialize(response)
        await self._store.update(transaction_id, TransactionUpdate(**changes))
        self._logger.warning(
            "Transaction initiation failed",
            extra={"transaction_id": transaction_id, "error": message},
        )

    # --- polling -----------------------------------------------------------------

    async def check_status(
        self, transaction_id: str, transaction_type: TransactionType | None = None
    ) -> StatusCheckResult:
        """Ask the gateway for the current status and merge it when it changed.

        ``transaction_type`` selects the deposit or payout status endpoint; by
        default the stored type is used. An unreachable gateway is not an
        error: the stored transaction is returned untouched together with the
        failure message.
        """

        transaction = await self.get_transaction(transaction_id)
        try:
            response = await self._fetch_status(transaction_id, transaction_type or transaction.type)
        except GatewayError as exc:
            self._logger.warning(
                "Status check failed; serving stored status",
                extra={
                    "transaction_id": transaction_id,
                    "status": transaction.status.value,
                    "error": exc.message,
                },
            )
            return StatusCheckResult(transaction, None, exc.message)

        current = await self._reconcile(transaction, response)
        return StatusCheckResult(current, response)

    async def _fetch_status(self, transaction_id: str, transaction_type: TransactionType) -> Any:
        if transaction_type is TransactionType.PAYOUT:
            return await self._gateway.payout_status(transaction_id)
        return await self._gateway.deposit_status(transaction_id)

    async def _reconcile(self, transaction: Transaction, response: Any) -> Transaction:
        status = status_of(response)
        if status is None or status == transaction.status:
            return transaction

        changes: dict[str, Any] = {"status": status, "pawapay_response": _serialize(response)}
        provider_transaction_id = optional_text(response, "providerTransactionId")
        if provider_transaction_id is not None:
            changes["provider_transaction_id"] = provider_transaction_id
        if status is TransactionStatus.FAILED:
            changes["error_message"] = failure_message(response)
        updated = await self._store.update(transaction.id, TransactionUpdate(**changes))
        self._logger.info(
            "Transaction status reconciled",
            extra={
                "transaction_id": transaction.id,
                "previous_status": transaction.status.value,
                "status": status.value,
            },
        )
        return updated or transaction

    # --- webhook ---------------------------------------------------------------------

    async def handle_callback(self, payload: Any) -> Transaction:
        """Merge a gateway callback into the referenced transaction.

        The merge is unconditional: the callback overwrites whatever status is
        stored, even a final one.
        """

        if not isinstance(payload, Mapping):
            raise InvalidCallbackError("Callback body must be a JSON object")
        transaction_id = payload.get("depositId") or payload.get("payoutId")
        if not transaction_id:
            raise InvalidCallbackError("No transaction ID in callback")
        transaction_id = str(transaction_id)

        changes: dict[str, Any] = {"pawapay_response": _serialize(payload)}
        status = status_of(payload)
        if status is not None:
            changes["status"] = status
            if status is TransactionStatus.FAILED:
                changes["error_message"] = failure_message(payload)
        provider_transaction_id = optional_text(payload, "providerTransactionId")
        if provider_transaction_id is not None:
            changes["provider_transaction_id"] = provider_transaction_id
        country = optional_text(payload, "country")
        if country is not None:
            changes["country"] = country

        updated = await self._store.update(transaction_id, TransactionUpdate(**changes))
        if updated is None:
            raise TransactionNotFoundError(transaction_id)
        self._logger.info(
            "Callback applied",
            extra={"transaction_id": transaction_id, "status": updated.status.value},
        )
        return updated

    # --- return from the hosted page ------------------------------------------------

    async def handle_return(self, transaction_id: str | None) -> ReturnOutcome:
        """Decide where a browser coming back from the hosted page should land."""

        if not transaction_id:
            return ReturnOutcome("", False, error="Missing transaction reference")
        transaction = await self._store.get(transaction_id)
        if transaction is None:
            return ReturnOutcome(transaction_id, False, error="Transaction not found")

        try:
            response = await self._fetch_status(transaction_id, transaction.type)
        except GatewayError as exc:
            return await self._return_fallback(transaction, exc.message)

        current = await self._reconcile(transaction, response)
        succeeded = current.status is TransactionStatus.COMPLETED
        return ReturnOutcome(
            transaction_id,
            succeeded,
            current,
            error=None if succeeded else current.error_message,
        )

    async def _return_fallback(self, transaction: Transaction, message: str) -> ReturnOutcome:
        if not self._assume_completed_on_return_failure:
            self._logger.warning(
                "Return status check failed; routing by stored status",
                extra={"transaction_id": transaction.id, "error": message},
            )
            return ReturnOutcome(
                transaction.id,
                transaction.status is TransactionStatus.COMPLETED,
                transaction,
                error=message,
            )

        note = {"note": RETURN_FALLBACK_NOTE, "error": message}
        updated = await self._store.update(
            transaction.id,
            TransactionUpdate(status=TransactionStatus.COMPLETED, pawapay_response=_serialize(note)),
        )
        self._logger.warning(
            "Return status check failed; assuming COMPLETED",
            extra={"transaction_id": transaction.id, "error": message},
        )
        return ReturnOutcome(transaction.id, True, updated or transaction, error=message, assumed=True)


__all__ = [
    "HostedPaymentResult",
    "InitiationError",
    "InitiationResult",
    "InvalidCallbackError",
    "PaymentOrchestrator",
    "ReturnOutcome",
    "StatusCheckResult",
    "TransactionNotFoundError",
]
