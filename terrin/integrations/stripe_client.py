"""Stripe Connect integration client.

Calls the Stripe REST API with form-encoded requests. Keys starting with
``mock_`` return canned objects for development; an empty key means
payments are not configured at all.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time
import uuid
from datetime import datetime, timezone
from typing import Any

import httpx

from terrin.common.exceptions import ExternalServiceError, NotConfiguredError
from terrin.config import settings
from terrin.integrations.base import BaseIntegration

WEBHOOK_TOLERANCE_SECONDS = 300


def _is_mock() -> bool:
    return settings.STRIPE_SECRET_KEY.startswith("mock_")


def _now() -> int:
    return int(datetime.now(timezone.utc).timestamp())


def platform_fee_cents(amount: float, percent: float | None = None) -> int:
    """Fee the platform keeps on a charge of ``amount`` dollars."""
    if percent is None:
        percent = settings.PLATFORM_FEE_PERCENT
    return round(amount * 100 * percent / 100)


class StripeClient(BaseIntegration):
    """Connected accounts, destination charges and payouts."""

    BASE_URL = "https://api.stripe.com/v1"

    def __init__(self) -> None:
        super().__init__("stripe")

    @staticmethod
    def is_configured() -> bool:
        return bool(settings.STRIPE_SECRET_KEY.strip())

    def ensure_configured(self) -> None:
        if not self.is_configured():
            raise NotConfiguredError("Stripe")

    def _headers(self, account_id: str | None = None) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {settings.STRIPE_SECRET_KEY}"}
        if account_id:
            headers["Stripe-Account"] = account_id
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        data: dict[str, Any] | None = None,
        account_id: str | None = None,
    ) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=30) as client:
                resp = await client.request(
                    method,
                    f"{self.BASE_URL}{path}",
                    headers=self._headers(account_id),
                    data=data,
                )
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPStatusError as e:
            message = e.response.text
            try:
                message = e.response.json()["error"]["message"]
            except (ValueError, KeyError, TypeError):
                pass
            self.logger.error("Stripe %s %s failed: %s", method, path, message)
            raise ExternalServiceError("Stripe", message) from e
        except httpx.HTTPError as e:
            self.logger.error("Stripe %s %s failed: %s", method, path, e)
            raise ExternalServiceError("Stripe", str(e)) from e

    async def health_check(self) -> bool:
        if not self.is_configured():
            return False
        if _is_mock():
            self.logger.info("Stripe health check: OK (mock)")
            return True
        try:
            await self._request("GET", "/balance")
            return True
        except ExternalServiceError:
            return False

    # ------------------------------------------------------------------
    # Connected accounts
    # ------------------------------------------------------------------

    async def create_express_account(
        self, email: str | None, metadata: dict[str, str] | None = None
    ) -> dict[str, Any]:
        self.ensure_configured()
        if not _is_mock():
            payload: dict[str, Any] = {
                "type": "express",
                "capabilities[card_payments][requested]": "true",
                "capabilities[transfers][requested]": "true",
            }
            if email:
                payload["email"] = email
            for k, v in (metadata or {}).items():
                payload[f"metadata[{k}]"] = v
            data = await self._request("POST", "/accounts", payload)
            self.logger.info("Created Stripe Express account: %s", data["id"])
            return data

        account_id = f"acct_{uuid.uuid4().hex[:16]}"
        self.logger.info("Mock Stripe account created: %s", account_id)
        return {
            "id": account_id,
            "object": "account",
            "type": "express",
            "email": email,
            "charges_enabled": False,
            "payouts_enabled": False,
            "details_submitted": False,
            "metadata": metadata or {},
            "created": _now(),
        }

    async def create_account_link(
        self, account_id: str, refresh_url: str, return_url: str
    ) -> dict[str, Any]:
        self.ensure_configured()
        if not _is_mock():
            return await self._request(
                "POST",
                "/account_links",
                {
                    "account": account_id,
                    "refresh_url": refresh_url,
                    "return_url": return_url,
                    "type": "account_onboarding",
                },
            )

        return {
            "object": "account_link",
            "url": f"https://connect.stripe.com/setup/e/{account_id}/{uuid.uuid4().hex[:12]}",
            "created": _now(),
            "expires_at": _now() + 300,
        }

    async def create_login_link(self, account_id: str) -> dict[str, Any]:
        self.ensure_configured()
        if not _is_mock():
            return await self._request("POST", f"/accounts/{account_id}/login_links")

        return {
            "object": "login_link",
            "url": f"https://connect.stripe.com/express/{account_id}/{uuid.uuid4().hex[:12]}",
            "created": _now(),
        }

    async def retrieve_account(self, account_id: str) -> dict[str, Any]:
        self.ensure_configured()
        if not _is_mock():
            return await self._request("GET", f"/accounts/{account_id}")

        return {
            "id": account_id,
            "object": "account",
            "charges_enabled": True,
            "payouts_enabled": True,
            "details_submitted": True,
            "requirements": {"currently_due": [], "past_due": []},
        }

    # ------------------------------------------------------------------
    # Payment intents
    # ------------------------------------------------------------------

    async def create_payment_intent(
        self,
        amount_cents: int,
        currency: str = "usd",
        description: str = "",
        metadata: dict[str, str] | None = None,
        application_fee_amount: int | None = None,
        destination_account: str | None = None,
    ) -> dict[str, Any]:
        self.ensure_configured()
        if not _is_mock():
            payload: dict[str, Any] = {
                "amount": amount_cents,
                "currency": currency,
                "automatic_payment_methods[enabled]": "true",
            }
            if description:
                payload["description"] = description
            if application_fee_amount is not None:
                payload["application_fee_amount"] = application_fee_amount
            if destination_account:
                payload["transfer_data[destination]"] = destination_account
            for k, v in (metadata or {}).items():
                payload[f"metadata[{k}]"] = v
            data = await self._request("POST", "/payment_intents", payload)
            self.logger.info("Created payment intent: %s ($%.2f)", data["id"], amount_cents / 100)
            return data

        pi_id = f"pi_{uuid.uuid4().hex[:24]}"
        self.logger.info("Mock payment intent: %s ($%.2f)", pi_id, amount_cents / 100)
        return {
            "id": pi_id,
            "object": "payment_intent",
            "amount": amount_cents,
            "currency": currency,
            "status": "requires_payment_method",
            "client_secret": f"{pi_id}_secret_{uuid.uuid4().hex[:12]}",
            "description": description,
            "application_fee_amount": application_fee_amount,
            "transfer_data": {"destination": destination_account} if destination_account else None,
            "metadata": metadata or {},
            "created": _now(),
        }

    # ------------------------------------------------------------------
    # Balances and payouts (on the connected account)
    # ------------------------------------------------------------------

    async def retrieve_balance(self, account_id: str) -> dict[str, Any]:
        self.ensure_configured()
        if not _is_mock():
            return await self._request("GET", "/balance", account_id=account_id)

        return {
            "object": "balance",
            "available": [{"amount": 0, "currency": "usd"}],
            "pending": [{"amount": 0, "currency": "usd"}],
        }

    async def create_payout(
        self, account_id: str, amount_cents: int, currency: str = "usd"
    ) -> dict[str, Any]:
        self.ensure_configured()
        if not _is_mock():
            data = await self._request(
                "POST",
                "/payouts",
                {"amount": amount_cents, "currency": currency},
                account_id=account_id,
            )
            self.logger.info("Created payout %s on %s", data["id"], account_id)
            return data

        po_id = f"po_{uuid.uuid4().hex[:24]}"
        self.logger.info("Mock payout %s on %s ($%.2f)", po_id, account_id, amount_cents / 100)
        return {
            "id": po_id,
            "object": "payout",
            "amount": amount_cents,
            "currency": currency,
            "status": "pending",
            "arrival_date": _now() + 2 * 86400,
            "created": _now(),
        }

    # ------------------------------------------------------------------
    # Webhook signature verification
    # ------------------------------------------------------------------

    def verify_webhook_signature(self, payload: bytes, sig_header: str | None) -> dict[str, Any]:
        """Verify a ``Stripe-Signature`` header and return the parsed event.

        Raises ``ValueError`` on a missing, malformed or mismatched
        signature. Without a webhook secret the payload is trusted as-is.
        """
        webhook_secret = settings.STRIPE_WEBHOOK_SECRET

        if not webhook_secret:
            return json.loads(payload)

        if not sig_header:
            raise ValueError("Missing Stripe-Signature header")

        timestamp = ""
        signatures = []
        for item in sig_header.split(","):
            key, sep, value = item.strip().partition("=")
            if not sep:
                continue
            if key == "t":
                timestamp = value
            elif key == "v1":
                signatures.append(value)
        if not timestamp or not signatures:
            raise ValueError("Malformed Stripe-Signature header")

        signed_payload = f"{timestamp}.{payload.decode()}"
        expected = hmac.new(
            webhook_secret.encode(), signed_payload.encode(), hashlib.sha256
        ).hexdigest()

        if not any(hmac.compare_digest(expected, s) for s in signatures):
            raise ValueError("Invalid Stripe webhook signature")

        if abs(time.time() - int(timestamp)) > WEBHOOK_TOLERANCE_SECONDS:
            raise ValueError("Stripe webhook timestamp too old")

        return json.loads(payload)
