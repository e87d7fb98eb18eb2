"""End-to-end tests of the HTTP surface."""
import json
from urllib.parse import parse_qs, unquote, urlparse

import pytest

from momo_relay.models.transaction import TransactionStatus
from momo_relay.schemas.provider import ProviderCreate
from momo_relay.services.webhooks import SIGNATURE_HEADER, compute_callback_signature


@pytest.mark.anyio
async def test_create_deposit_returns_transaction_id_and_gateway_fields(client, deposit_body):
    response = await client.post("/api/deposits", json=deposit_body)

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ACCEPTED"
    assert payload["depositId"] == payload["transactionId"]


@pytest.mark.anyio
async def test_deposit_validation_error_creates_nothing(client, services, deposit_body):
    deposit_body["amount"] = "-5"
    deposit_body.pop("provider")

    response = await client.post("/api/deposits", json=deposit_body)

    assert response.status_code == 400
    payload = response.json()
    assert payload["error"] == "Invalid request"
    fields = {detail["field"] for detail in payload["details"]}
    assert {"amount", "provider"} <= fields
    assert await services.store.list_all() == []


@pytest.mark.anyio
async def test_deposit_description_must_be_alphanumeric(client, deposit_body):
    deposit_body["description"] = "Order #42!"

    response = await client.post("/api/deposits", json=deposit_body)

    assert response.status_code == 400


@pytest.mark.anyio
async def test_deposit_gateway_failure_reports_transaction_id(client, services, fake_pawapay, deposit_body):
    fake_pawapay.fail_initiation = 500

    response = await client.post("/api/deposits", json=deposit_body)

    assert response.status_code == 500
    payload = response.json()
    assert payload["error"]
    stored = await services.store.get(payload["transactionId"])
    assert stored.status == TransactionStatus.FAILED
    assert stored.error_message


@pytest.mark.anyio
async def test_create_payout(client, deposit_body):
    response = await client.post("/api/payouts", json=deposit_body)

    assert response.status_code == 200
    assert response.json()["payoutId"] == response.json()["transactionId"]


@pytest.mark.anyio
async def test_status_endpoint_passes_gateway_answer_through(client, fake_pawapay, deposit_body):
    created = (await client.post("/api/deposits", json=deposit_body)).json()
    fake_pawapay.statuses[created["transactionId"]] = "COMPLETED"

    response = await client.get(f"/api/deposits/{created['transactionId']}/status")

    assert response.status_code == 200
    assert response.json()["status"] == "FOUND"
    assert response.json()["data"]["status"] == "COMPLETED"


@pytest.mark.anyio
async def test_status_endpoint_falls_back_to_stored_status(client, fake_pawapay, deposit_body):
    created = (await client.post("/api/deposits", json=deposit_body)).json()
    fake_pawapay.fail_status_network = True

    response = await client.get(f"/api/deposits/{created['transactionId']}/status")

    assert response.status_code == 200
    payload = response.json()
    assert payload["transactionId"] == created["transactionId"]
    assert payload["status"] == "ACCEPTED"
    assert payload["error"]


@pytest.mark.anyio
@pytest.mark.parametrize("kind", ["deposits", "payouts"])
async def test_status_endpoint_unknown_id_is_404(client, kind):
    response = await client.get(f"/api/{kind}/unknown/status")

    assert response.status_code == 404
    assert response.json() == {"error": "Transaction not found"}


@pytest.mark.anyio
async def test_payment_status_reports_local_status(client, fake_pawapay, deposit_body):
    created = (await client.post("/api/payouts", json=deposit_body)).json()
    fake_pawapay.statuses[created["transactionId"]] = "COMPLETED"

    response = await client.get(f"/api/payment-status/{created['transactionId']}")

    assert response.status_code == 200
    assert response.json() == {
        "transactionId": created["transactionId"],
        "type": "PAYOUT",
        "status": "COMPLETED",
        "error": None,
    }


@pytest.mark.anyio
async def test_transactions_listing_and_lookup(client, deposit_body):
    deposit = (await client.post("/api/deposits", json=deposit_body)).json()
    payout = (await client.post("/api/payouts", json=deposit_body)).json()

    listing = await client.get("/api/transactions")
    assert listing.status_code == 200
    assert {txn["id"] for txn in listing.json()} == {deposit["transactionId"], payout["transactionId"]}

    payouts = await client.get("/api/transactions", params={"type": "PAYOUT"})
    assert [txn["id"] for txn in payouts.json()] == [payout["transactionId"]]

    single = await client.get(f"/api/transactions/{deposit['transactionId']}")
    assert single.status_code == 200
    body = single.json()
    assert body["phoneNumber"] == "+250783456789"
    assert body["status"] == "ACCEPTED"
    assert "pawapayResponse" not in body


@pytest.mark.anyio
async def test_transaction_lookup_unknown_is_404(client):
    response = await client.get("/api/transactions/unknown")

    assert response.status_code == 404
    assert response.json()["error"] == "Transaction not found"


@pytest.mark.anyio
async def test_providers_by_country(client):
    response = await client.get("/api/providers/RWA")

    assert response.status_code == 200
    codes = {provider["code"] for provider in response.json()}
    assert codes == {"MTN_MOMO_RWA", "AIRTEL_RWA"}
    assert all(provider["isActive"] for provider in response.json())


@pytest.mark.anyio
async def test_predict_provider_and_active_config_pass_through(client, fake_pawapay):
    predicted = await client.post("/api/predict-provider", json={"phoneNumber": "+250783456789"})
    assert predicted.status_code == 200
    assert predicted.json()["provider"] == "MTN_MOMO_RWA"

    config = await client.get("/api/active-config/RWA", params={"operationType": "DEPOSIT"})
    assert config.status_code == 200
    assert config.json()["countries"][0]["country"] == "RWA"
    assert fake_pawapay.requests[-1].url.params["operationType"] == "DEPOSIT"


@pytest.mark.anyio
async def test_active_config_forwards_any_operation_type(client, fake_pawapay):
    response = await client.get("/api/active-config/RWA", params={"operationType": "REFUND"})

    assert response.status_code == 200
    forwarded = fake_pawapay.requests[-1]
    assert forwarded.url.path == "/v2/active-conf"
    assert forwarded.url.params["operationType"] == "REFUND"


@pytest.mark.anyio
async def test_active_config_gateway_failure_is_500(client, fake_pawapay):
    fake_pawapay.fail_passthrough = 503

    response = await client.get("/api/active-config/RWA")

    assert response.status_code == 500
    assert response.json() == {"error": "PawaPay API Error: 503 - lookup unavailable"}


@pytest.mark.anyio
async def test_predict_provider_gateway_failure_is_400(client, fake_pawapay):
    fake_pawapay.fail_passthrough = 502

    response = await client.post("/api/predict-provider", json={"phoneNumber": "+250783456789"})

    assert response.status_code == 400
    assert response.json() == {"error": "PawaPay API Error: 502 - lookup unavailable"}


@pytest.mark.anyio
async def test_providers_listing_excludes_inactive(client, services):
    await services.providers.create(
        ProviderCreate(code="VODACOM_TZA", display_name="Vodacom Tanzania", country="TZA", currency="TZS", is_active=False)
    )

    response = await client.get("/api/providers")

    assert response.status_code == 200
    codes = {provider["code"] for provider in response.json()}
    assert codes == {"MTN_MOMO_RWA", "AIRTEL_RWA", "MTN_MOMO_UGA", "AIRTEL_UGA", "MPESA", "AIRTEL_KEN"}
    assert all(provider["isActive"] for provider in response.json())
    assert (await client.get("/api/providers/TZA")).json() == []


@pytest.mark.anyio
async def test_hosted_payment_returns_redirect(client, fake_pawapay):
    response = await client.post(
        "/api/hosted-payment",
        json={"phoneNumber": "+250783456789", "amount": "1500", "currency": "RWF", "country": "RWA"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["redirectUrl"] == fake_pawapay.widget_redirect
    assert payload["transactionId"]


@pytest.mark.anyio
async def test_hosted_payment_gateway_failure_is_500(client, fake_pawapay):
    fake_pawapay.fail_initiation = 503

    response = await client.post(
        "/api/hosted-payment",
        json={"phoneNumber": "+250783456789", "amount": "1500", "currency": "RWF", "country": "RWA"},
    )

    assert response.status_code == 500
    assert response.json()["transactionId"]


@pytest.mark.anyio
async def test_payment_return_redirects_to_receipt_on_completed(client, fake_pawapay, deposit_body):
    created = (await client.post("/api/deposits", json=deposit_body)).json()
    fake_pawapay.statuses[created["transactionId"]] = "COMPLETED"

    response = await client.get("/payment-return", params={"depositId": created["transactionId"]})

    assert response.status_code == 302
    assert response.headers["location"] == f"/receipt?id={created['transactionId']}"


@pytest.mark.anyio
async def test_payment_return_assumes_completed_when_status_check_fails(client, services, fake_pawapay, deposit_body):
    created = (await client.post("/api/deposits", json=deposit_body)).json()
    fake_pawapay.fail_status_network = True

    response = await client.get("/payment-return", params={"depositId": created["transactionId"]})

    assert response.status_code == 302
    assert response.headers["location"].startswith("/receipt?")
    stored = await services.store.get(created["transactionId"])
    assert stored.status == TransactionStatus.COMPLETED


@pytest.mark.anyio
async def test_payment_return_redirects_to_failure_page(client, fake_pawapay, deposit_body):
    created = (await client.post("/api/deposits", json=deposit_body)).json()
    fake_pawapay.statuses[created["transactionId"]] = "FAILED"

    response = await client.get("/payment-return", params={"depositId": created["transactionId"]})

    assert response.status_code == 302
    location = urlparse(response.headers["location"])
    assert location.path == "/payment-failed"
    data = json.loads(unquote(parse_qs(location.query)["data"][0]))
    assert data["transactionId"] == created["transactionId"]
    assert data["status"] == "FAILED"
    assert data["error"] == "Payer not found"
    assert data["amount"] == "1000"


@pytest.mark.anyio
async def test_payment_return_without_reference_goes_to_failure_page(client):
    response = await client.get("/payment-return")

    assert response.status_code == 302
    assert response.headers["location"].startswith("/payment-failed?data=")


@pytest.mark.anyio
async def test_callback_completes_referenced_deposit(client, services, deposit_body):
    created = (await client.post("/api/deposits", json=deposit_body)).json()

    response = await client.post(
        "/api/callback", json={"depositId": created["transactionId"], "status": "COMPLETED"}
    )

    assert response.status_code == 200
    assert response.json() == {"success": True}
    stored = await services.store.get(created["transactionId"])
    assert stored.status == TransactionStatus.COMPLETED


@pytest.mark.anyio
async def test_callback_errors(client):
    missing_id = await client.post("/api/callback", json={"status": "COMPLETED"})
    assert missing_id.status_code == 400

    not_json = await client.post(
        "/api/callback", content=b"not json", headers={"Content-Type": "application/json"}
    )
    assert not_json.status_code == 400

    unknown = await client.post("/api/callback", json={"depositId": "ghost", "status": "COMPLETED"})
    assert unknown.status_code == 404
    assert unknown.json() == {"error": "Transaction not found", "transactionId": "ghost"}


@pytest.mark.anyio
async def test_callback_signature_enforced_when_secret_configured(client, services, deposit_body):
    services.settings.PAWAPAY_CALLBACK_SECRET = "whsec-test"
    created = (await client.post("/api/deposits", json=deposit_body)).json()
    raw = json.dumps({"depositId": created["transactionId"], "status": "COMPLETED"}).encode()

    unsigned = await client.post("/api/callback", content=raw, headers={"Content-Type": "application/json"})
    assert unsigned.status_code == 401
    assert unsigned.json() == {"error": "Callback signature missing"}

    forged = await client.post(
        "/api/callback",
        content=raw,
        headers={"Content-Type": "application/json", SIGNATURE_HEADER: "0" * 64},
    )
    assert forged.status_code == 401
    assert (await services.store.get(created["transactionId"])).status == TransactionStatus.ACCEPTED

    signed = await client.post(
        "/api/callback",
        content=raw,
        headers={
            "Content-Type": "application/json",
            SIGNATURE_HEADER: compute_callback_signature("whsec-test", raw),
        },
    )
    assert signed.status_code == 200
    assert (await services.store.get(created["transactionId"])).status == TransactionStatus.COMPLETED
