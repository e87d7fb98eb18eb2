"""
Maps pawaPay payloads onto the local transaction vocabulary.

pawaPay reports more states than the relay stores (initiation answers such as
``REJECTED`` or ``DUPLICATE_IGNORED``, in-flight states such as ``ENQUEUED``).
Everything is folded into the four local statuses; anything unrecognised maps
to ``None`` and must not be written.
"""
from typing import Any, Mapping, Optional

from momo_relay.models.transaction import TransactionStatus

GATEWAY_STATES = {
    "PENDING": TransactionStatus.PENDING,
    # Accepted for processing, final outcome not known yet
    "ACCEPTED": TransactionStatus.ACCEPTED,
    "ENQUEUED": TransactionStatus.ACCEPTED,
    "SUBMITTED": TransactionStatus.ACCEPTED,
    "PROCESSING": TransactionStatus.ACCEPTED,
    "IN_RECONCILIATION": TransactionStatus.ACCEPTED,
    # Final
    "COMPLETED": TransactionStatus.COMPLETED,
    "FAILED": TransactionStatus.FAILED,
    "REJECTED": TransactionStatus.FAILED,
}

# Wrapper statuses of the v2 "check status" answer; the real state is in ``data``.
ENVELOPE_STATES = {"FOUND", "NOT_FOUND"}

DEFAULT_FAILURE_MESSAGE = "Transaction failed at the payment gateway"


def unwrap(payload: Any) -> Mapping[str, Any]:
    """Return the transaction-level object of a gateway payload.

    ``{"status": "FOUND", "data": {...}}`` becomes ``{...}``; plain payloads are
    returned as they are and non-mapping payloads become an empty mapping.
    """
    if not isinstance(payload, Mapping):
        return {}
    data = payload.get("data")
    if payload.get("status") in ENVELOPE_STATES and isinstance(data, Mapping):
        return data
    return payload


def normalize_status(raw_status: Any) -> Optional[TransactionStatus]:
    if not isinstance(raw_status, str):
        return None
    return GATEWAY_STATES.get(raw_status.strip().upper())


def status_of(payload: Any) -> Optional[TransactionStatus]:
    """Local status carried by a gateway payload, or ``None`` when unusable."""
    return normalize_status(unwrap(payload).get("status"))


def failure_message(payload: Any) -> str:
    """Human readable reason attached to a rejected or failed payload."""
    body = unwrap(payload)
    for key, message_key in (("rejectionReason", "rejectionMessage"), ("failureReason", "failureMessage")):
        reason = body.get(key)
        if isinstance(reason, Mapping):
            message = reason.get(message_key) or reason.get(key.replace("Reason", "Code"))
            if message:
                return str(message)
        elif isinstance(reason, str) and reason:
            return reason
    return DEFAULT_FAILURE_MESSAGE


def optional_text(payload: Any, key: str) -> Optional[str]:
    """``payload[key]`` as text when present and non-empty."""
    value = unwrap(payload).get(key)
    if value is None or value == "":
        return None
    return str(value)
