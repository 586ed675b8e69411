import hashlib
import hmac
import json
import time

import pytest

from terrin.config import settings


async def _project_conversation(client, headers, project_id, participant_id):
    resp = await client.post(
        "/api/conversations",
        headers=headers,
        json={"project_id": project_id, "participants": [participant_id]},
    )
    return resp.json()


async def _create_payment(client, headers, project_id, payee_id, conversation_id=None, amount=1000):
    body = {"project_id": project_id, "amount": amount, "payee_id": payee_id}
    if conversation_id:
        body["conversation_id"] = conversation_id
    return await client.post("/api/payments/create", headers=headers, json=body)


def _event(event_type: str, intent_id: str, payment_id: str) -> bytes:
    return json.dumps(
        {
            "type": event_type,
            "data": {"object": {"id": intent_id, "metadata": {"payment_id": payment_id}}},
        }
    ).encode()


@pytest.mark.asyncio
async def test_create_payment_intent(client, auth_headers):
    response = await client.post(
        "/api/create-payment-intent", headers=auth_headers, json={"amount": 49.99}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["payment_intent_id"].startswith("pi_")
    assert data["client_secret"]


@pytest.mark.asyncio
async def test_create_payment_intent_minimum(client, auth_headers):
    response = await client.post(
        "/api/create-payment-intent", headers=auth_headers, json={"amount": 0.25}
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_payments_not_configured(client, auth_headers, monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_SECRET_KEY", "")
    response = await client.post(
        "/api/create-payment-intent", headers=auth_headers, json={"amount": 10}
    )
    assert response.status_code == 501


@pytest.mark.asyncio
async def test_create_payment_with_platform_fee(
    client, project, auth_headers, professional_user, onboarded_contractor
):
    response = await _create_payment(
        client, auth_headers, project["id"], str(professional_user.id), amount=1000
    )
    assert response.status_code == 201
    data = response.json()
    assert data["amount"] == 1000.0
    assert data["platform_fee"] == 50.0
    assert data["payment_intent_id"].startswith("pi_")

    listing = await client.get(f"/api/projects/{project['id']}/payments", headers=auth_headers)
    payments = listing.json()
    assert len(payments) == 1
    assert payments[0]["status"] == "pending"
    assert payments[0]["contractor_id"] == str(onboarded_contractor.id)


@pytest.mark.asyncio
async def test_create_payment_missing_fields(client, auth_headers):
    response = await client.post("/api/payments/create", headers=auth_headers, json={"amount": 10})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_payment_payee_not_onboarded(
    client, project, auth_headers, professional_user, contractor
):
    response = await _create_payment(client, auth_headers, project["id"], str(professional_user.id))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_cannot_pay_yourself(client, project, auth_headers, homeowner_user):
    response = await _create_payment(client, auth_headers, project["id"], str(homeowner_user.id))
    assert response.status_code == 400
    assert response.json()["message"] == "You cannot pay yourself"


@pytest.mark.asyncio
async def test_webhook_success_posts_system_message(
    client, project, auth_headers, professional_user, onboarded_contractor
):
    conversation = await _project_conversation(
        client, auth_headers, project["id"], str(professional_user.id)
    )
    created = await _create_payment(
        client, auth_headers, project["id"], str(professional_user.id), conversation["id"]
    )
    payment = created.json()

    response = await client.post(
        "/api/payments/webhook",
        content=_event("payment_intent.succeeded", payment["payment_intent_id"], payment["payment_id"]),
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 200
    assert response.json() == {"received": True}

    payments = await client.get(
        f"/api/conversations/{conversation['id']}/payments", headers=auth_headers
    )
    assert payments.json()[0]["status"] == "succeeded"

    messages = await client.get(
        f"/api/conversations/{conversation['id']}/messages", headers=auth_headers
    )
    system = [m for m in messages.json() if m["message_type"] == "system"]
    assert len(system) == 1
    assert system[0]["sender_id"] is None
    assert system[0]["content"] == (
        "Payment of $1,000.00 completed. The professional receives $950.00 "
        "after the $50.00 platform fee (5%)."
    )


@pytest.mark.asyncio
async def test_webhook_failed_payment(
    client, project, auth_headers, professional_user, onboarded_contractor
):
    created = await _create_payment(client, auth_headers, project["id"], str(professional_user.id))
    payment = created.json()

    await client.post(
        "/api/payments/webhook",
        content=_event(
            "payment_intent.payment_failed", payment["payment_intent_id"], payment["payment_id"]
        ),
    )
    listing = await client.get(f"/api/projects/{project['id']}/payments", headers=auth_headers)
    assert listing.json()[0]["status"] == "failed"


@pytest.mark.asyncio
async def test_webhook_signature_verified(client, monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", "whsec_test")
    payload = json.dumps({"type": "payment_intent.created", "data": {"object": {}}})

    bad = await client.post(
        "/api/payments/webhook",
        content=payload,
        headers={"Stripe-Signature": "t=123,v1=deadbeef"},
    )
    assert bad.status_code == 400
    assert bad.json()["message"] == "Invalid webhook signature"

    timestamp = str(int(time.time()))
    signature = hmac.new(
        b"whsec_test", f"{timestamp}.{payload}".encode(), hashlib.sha256
    ).hexdigest()
    good = await client.post(
        "/api/payments/webhook",
        content=payload,
        headers={"Stripe-Signature": f"t={timestamp},v1={signature}"},
    )
    assert good.status_code == 200


@pytest.mark.asyncio
async def test_create_account_link(client, contractor, professional_headers):
    response = await client.post(
        "/api/stripe/create-account-link",
        headers={**professional_headers, "Origin": "https://app.terrin.test"},
    )
    assert response.status_code == 200
    assert response.json()["url"].startswith("https://connect.stripe.com/")
    assert contractor.stripe_account_id.startswith("acct_")


@pytest.mark.asyncio
async def test_account_status_marks_onboarding(client, contractor, professional_headers):
    before = await client.get("/api/stripe/account-status", headers=professional_headers)
    assert before.json()["has_account"] is False

    await client.post("/api/stripe/create-account-link", headers=professional_headers)
    after = await client.get("/api/stripe/account-status", headers=professional_headers)
    data = after.json()
    assert data["has_account"] is True
    assert data["onboarding_complete"] is True


@pytest.mark.asyncio
async def test_dashboard_link_requires_account(client, contractor, professional_headers):
    response = await client.post("/api/stripe/dashboard-link", headers=professional_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_account_link_requires_profile(client, professional_headers):
    response = await client.post("/api/stripe/create-account-link", headers=professional_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_earnings_include_succeeded_payments(
    client, project, auth_headers, professional_headers, professional_user, onboarded_contractor
):
    created = await _create_payment(
        client, auth_headers, project["id"], str(professional_user.id), amount=200
    )
    payment = created.json()
    await client.post(
        "/api/payments/webhook",
        content=_event("payment_intent.succeeded", payment["payment_intent_id"], payment["payment_id"]),
    )

    response = await client.get(
        f"/api/contractors/{onboarded_contractor.id}/earnings", headers=professional_headers
    )
    data = response.json()
    assert data["total_earned"] == 200.0
    assert data["platform_fees"] == 10.0
    assert data["net_earned"] == 190.0
    assert data["payment_count"] == 1
