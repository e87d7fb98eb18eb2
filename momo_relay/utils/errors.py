"""Utility helpers for standardized error responses."""
from typing import Any


def error_response(message: str, **fields: Any) -> dict[str, Any]:
    """Return the flat ``{"error": ...}`` payload the browser client expects.

    Extra keyword arguments (``transactionId``, ``status``, ``details``) are
    added next to the message; ``None`` values are dropped.
    """

    payload: dict[str, Any] = {key: value for key, value in fields.items() if value is not None}
    payload["error"] = message
    return payload
