"""httpx wrapper around the pawaPay REST API.

Two :class:`PawaPayClient` objects share one calling contract: one points at
the standard transactional API, the other at the widget (hosted payment page)
API. :class:`PawaPayGateway` picks the right one per operation.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any

import httpx

from momo_relay.config import Settings

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"\D")


class GatewayError(Exception):
    """The processor answered with a non-success status or could not be reached.

    ``status_code`` is ``None`` for network failures, timeouts and unparseable
    bodies.
    """

    def __init__(self, message: str, *, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body


class PawaPayClient:
    """Authenticated JSON calls against a single pawaPay base URL. No retries."""

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        name: str = "standard",
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.name = name
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def call(
        self,
        endpoint: str,
        method: str = "GET",
        body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        Raises:
            GatewayError: on a non-2xx answer, a transport failure, or a body
                that is not JSON.
        """

        url = f"{self.base_url}{endpoint}"
        content = json.dumps(body) if body is not None and method.upper() != "GET" else None
        try:
            response = await self._client.request(method.upper(), url, content=content, params=params)
        except httpx.HTTPError as exc:
            logger.warning(
                "pawaPay request failed",
                extra={"client": self.name, "endpoint": endpoint, "error": str(exc)},
            )
            raise GatewayError(f"PawaPay API request failed: {exc}") from exc

        if not response.is_success:
            logger.warning(
                "pawaPay returned an error status",
                extra={"client": self.name, "endpoint": endpoint, "status_code": response.status_code},
            )
            raise GatewayError(
                f"PawaPay API Error: {response.status_code} - {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise GatewayError(
                f"PawaPay API returned invalid JSON: {exc}",
                body=response.text,
            ) from exc

    async def aclose(self) -> None:
        await self._client.aclose()


class PawaPayGateway:
    """The operations the relay needs, each bound to the right client."""

    def __init__(self, standard: PawaPayClient, widget: PawaPayClient) -> None:
        self.standard = standard
        self.widget = widget

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None
    ) -> "PawaPayGateway":
        timeout = settings.GATEWAY_TIMEOUT_SECONDS
        return cls(
            standard=PawaPayClient(
                settings.PAWAPAY_API_BASE,
                settings.PAWAPAY_API_TOKEN,
                name="standard",
                timeout=timeout,
                transport=transport,
            ),
            widget=PawaPayClient(
                settings.PAWAPAY_WIDGET_API_BASE,
                settings.PAWAPAY_API_TOKEN,
                name="widget",
                timeout=timeout,
                transport=transport,
            ),
        )

    async def predict_provider(self, phone_number: str) -> Any:
        return await self.standard.call("/predict-provider", "POST", {"phoneNumber": phone_number})

    async def active_configuration(self, country: str, operation_type: str | None = None) -> Any:
        params = {"country": country}
        if operation_type:
            params["operationType"] = operation_type
        return await self.standard.call("/active-conf", params=params)

    async def initiate_deposit(
        self,
        deposit_id: str,
        *,
        amount: str,
        currency: str,
        phone_number: str,
        provider: str,
        description: str | None = None,
    ) -> Any:
        body: dict[str, Any] = {
            "depositId": deposit_id,
            "amount": amount,
            "currency": currency,
            "payer": {
                "type": "MMO",
                "accountDetails": {"phoneNumber": phone_number, "provider": provider},
            },
        }
        if description:
            body["customerMessage"] = description
        return await self.standard.call("/deposits", "POST", body)

    async def initiate_payout(
        self,
        payout_id: str,
        *,
        amount: str,
        currency: str,
        phone_number: str,
        provider: str,
        description: str | None = None,
    ) -> Any:
        body: dict[str, Any] = {
            "payoutId": payout_id,
            "amount": amount,
            "currency": currency,
            "recipient": {
                "type": "MMO",
                "accountDetails": {"phoneNumber": phone_number, "provider": provider},
            },
        }
        if description:
            body["customerMessage"] = description
        return await self.standard.call("/payouts", "POST", body)

    async def deposit_status(self, deposit_id: str) -> Any:
        return await self.standard.call(f"/deposits/{deposit_id}/status")

    async def payout_status(self, payout_id: str) -> Any:
        return await self.standard.call(f"/payouts/{payout_id}/status")

    async def create_widget_session(
        self,
        deposit_id: str,
        *,
        return_url: str,
        amount: str,
        country: str,
        phone_number: str,
        description: str | None = None,
        language: str = "EN",
    ) -> Any:
        """Open a hosted payment page session; the answer carries ``redirectUrl``."""

        body: dict[str, Any] = {
            "depositId": deposit_id,
            "returnUrl": return_url,
            "amount": amount,
            "country": country,
            "msisdn": _NON_DIGITS.sub("", phone_number),
            "language": language,
        }
        if description:
            body["statementDescription"] = description
        return await self.widget.call("/widget/sessions", "POST", body)

    async def aclose(self) -> None:
        await self.standard.aclose()
        await self.widget.aclose()


__all__ = ["GatewayError", "PawaPayClient", "PawaPayGateway"]
