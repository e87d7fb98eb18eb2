"""Test configuration."""
from __future__ import annotations

import json
import os
from collections.abc import AsyncIterator
from typing import Any

import httpx
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

# --- Default env for the module-level app
os.environ.setdefault("APP_ENV", "dev")
os.environ.setdefault("STORE_BACKEND", "memory")

from momo_relay.config import Settings  # noqa: E402
from momo_relay.dependencies import Services, build_services  # noqa: E402
from momo_relay.main import create_app  # noqa: E402

STANDARD_BASE = "https://pawapay.test/v2"
WIDGET_BASE = "https://pawapay.test/v1"


class FakePawaPay:
    """In-process stand-in for the pawaPay API, served through ``httpx.MockTransport``.

    ``statuses`` holds the status reported by the status endpoints per id.
    The ``fail_*`` switches make the matching endpoints misbehave.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.statuses: dict[str, str] = {}
        self.initiation_status = "ACCEPTED"
        self.initiation_extra: dict[str, Any] = {}
        self.fail_initiation: int | None = None
        self.fail_status_network = False
        self.fail_passthrough: int | None = None
        self.widget_redirect: str | None = "https://paywith.pawapay.test/session/abc"

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        body = json.loads(request.content) if request.content else None

        if path.endswith("/status"):
            if self.fail_status_network:
                raise httpx.ConnectError("connection refused", request=request)
            transaction_id = path.split("/")[-2]
            id_key = "payoutId" if "/payouts/" in path else "depositId"
            status = self.statuses.get(transaction_id)
            if status is None:
                return httpx.Response(200, json={"status": "NOT_FOUND"})
            data = {id_key: transaction_id, "status": status, "providerTransactionId": f"ptx-{transaction_id[:8]}"}
            if status == "FAILED":
                data["failureReason"] = {"failureCode": "PAYER_NOT_FOUND", "failureMessage": "Payer not found"}
            return httpx.Response(200, json={"status": "FOUND", "data": data})

        if path.endswith("/deposits") or path.endswith("/payouts"):
            if self.fail_initiation is not None:
                return httpx.Response(self.fail_initiation, text='{"errorMessage":"upstream rejected"}')
            id_key = "depositId" if path.endswith("/deposits") else "payoutId"
            return httpx.Response(
                200,
                json={id_key: body[id_key], "status": self.initiation_status, **self.initiation_extra},
            )

        if path.endswith("/widget/sessions"):
            if self.fail_initiation is not None:
                return httpx.Response(self.fail_initiation, text="widget unavailable")
            payload = {"depositId": body["depositId"]}
            if self.widget_redirect:
                payload["redirectUrl"] = self.widget_redirect
            return httpx.Response(200, json=payload)

        if self.fail_passthrough is not None and path.endswith(("/predict-provider", "/active-conf")):
            return httpx.Response(self.fail_passthrough, text="lookup unavailable")

        if path.endswith("/predict-provider"):
            return httpx.Response(
                200,
                json={"country": "RWA", "provider": "MTN_MOMO_RWA", "phoneNumber": body["phoneNumber"].lstrip("+")},
            )

        if path.endswith("/active-conf"):
            return httpx.Response(
                200,
                json={"companyName": "Demo", "countries": [{"country": request.url.params.get("country")}]},
            )

        return httpx.Response(404, json={"error": "unknown endpoint"})


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def fake_pawapay() -> FakePawaPay:
    return FakePawaPay()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        app_env="dev",
        PAWAPAY_API_BASE=STANDARD_BASE,
        PAWAPAY_WIDGET_API_BASE=WIDGET_BASE,
        PAWAPAY_API_TOKEN="test-token",
        PUBLIC_BASE_URL="https://relay.test",
        STORE_BACKEND="memory",
    )


@pytest.fixture
async def services(settings: Settings, fake_pawapay: FakePawaPay) -> AsyncIterator[Services]:
    built = build_services(settings, transport=httpx.MockTransport(fake_pawapay.handler))
    try:
        yield built
    finally:
        await built.aclose()


@pytest.fixture
def app(services: Services) -> FastAPI:
    return create_app(services.settings, services)


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as async_client:
        yield async_client


@pytest.fixture
def deposit_body() -> dict[str, str]:
    return {
        "phoneNumber": "+250783456789",
        "provider": "MTN_MOMO_RWA",
        "amount": "1000",
        "currency": "RWF",
        "description": "Order 42",
    }
