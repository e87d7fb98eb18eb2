"""Optional shared-secret verification of gateway callbacks."""
from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Mapping

from fastapi import HTTPException, status

from momo_relay.utils.errors import error_response

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Callback-Signature"


def _get_header(headers: Mapping[str, str], key: str) -> str | None:
    for h_key, value in headers.items():
        if h_key.lower() == key.lower():
            return value
    return None


def _secret_fingerprint(secret: str) -> str:
    """Deterministic marker for logs instead of the raw secret."""

    return f"sha256:{hashlib.sha256(secret.encode()).hexdigest()[:8]}"


def compute_callback_signature(secret: str, body: bytes) -> str:
    """Hex HMAC-SHA256 of the raw callback body."""

    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_callback_signature(raw_body: bytes, headers: Mapping[str, str], secret: str) -> None:
    """Raise 401 unless the signature header matches ``raw_body``."""

    provided = _get_header(headers, SIGNATURE_HEADER)
    if not provided:
        logger.warning("Callback signature missing", extra={"secret": _secret_fingerprint(secret)})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error_response("Callback signature missing"),
        )

    expected = compute_callback_signature(secret, raw_body)
    if not hmac.compare_digest(expected, provided.strip().lower()):
        logger.warning("Callback signature mismatch", extra={"secret": _secret_fingerprint(secret)})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error_response("Invalid callback signature"),
        )


__all__ = ["SIGNATURE_HEADER", "compute_callback_signature", "verify_callback_signature"]
