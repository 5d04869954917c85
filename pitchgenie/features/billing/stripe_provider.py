"""
Stripe billing provider.

Webhook payloads are verified with the Stripe signature and then parsed
from the raw JSON body into a BillingWebhookResult.
"""
import json
import os
from typing import Any, Dict, Mapping, Optional
from datetime import datetime, timezone
import stripe

from pitchgenie.features.billing.provider import (
    BillingProviderError,
    BillingWebhookError,
    BillingWebhookResult,
)
from pitchgenie.features.subscription.plans import plan_for_price

# Stripe subscription statuses folded onto the statuses stored locally
_STATUS_MAP = {
    "active": "active",
    "trialing": "active",
    "past_due": "past_due",
    "unpaid": "past_due",
    "canceled": "canceled",
    "incomplete": "incomplete",
    "incomplete_expired": "canceled",
    "paused": "past_due",
}


def _ts(value: Optional[int]) -> Optional[datetime]:
    return datetime.fromtimestamp(value, timezone.utc) if value else None


def normalize_status(status: Optional[str]) -> Optional[str]:
    if status is None:
        return None
    return _STATUS_MAP.get(status, "incomplete")


class StripeProvider:
    """BillingProvider backed by the Stripe API (module-level api_key)."""

    def __init__(self, secret_key: Optional[str] = None, webhook_secret: Optional[str] = None):
        self.secret_key = secret_key or os.getenv("STRIPE_SECRET_KEY")
        self.webhook_secret = webhook_secret or os.getenv("STRIPE_WEBHOOK_SECRET")
        if not self.secret_key:
            raise BillingProviderError("STRIPE_SECRET_KEY not configured")
        stripe.api_key = self.secret_key

    @staticmethod
    def _call(action: str, create, **params):
        try:
            return create(**params)
        except stripe.StripeError as e:
            raise BillingProviderError(f"Stripe {action} failed: {e}") from e

    def create_customer(self, user_id: str, email: Optional[str] = None, name: Optional[str] = None) -> str:
        params: Dict[str, Any] = {"metadata": {"userId": user_id}}
        if email:
            params["email"] = email
        if name:
            params["name"] = name
        return self._call("customer creation", stripe.Customer.create, **params).id

    def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> str:
        session = self._call(
            "checkout",
            stripe.checkout.Session.create,
            customer=customer_id,
            mode="subscription",
            payment_method_types=["card"],
            line_items=[{"price": price_id, "quantity": 1}],
            billing_address_collection="required",
            allow_promotion_codes=True,
            success_url=success_url,
            cancel_url=cancel_url,
            metadata=metadata or {},
        )
        return session.url

    def create_portal_session(self, customer_id: str, return_url: str) -> str:
        return self._call(
            "portal", stripe.billing_portal.Session.create, customer=customer_id, return_url=return_url
        ).url

    def handle_webhook(self, headers: Mapping[str, str], body: bytes) -> BillingWebhookResult:
        if not self.webhook_secret:
            raise BillingWebhookError("STRIPE_WEBHOOK_SECRET not configured")
        signature = next((v for k, v in headers.items() if k.lower() == "stripe-signature"), None)
        if not signature:
            raise BillingWebhookError("Missing stripe-signature header")

        try:
            stripe.Webhook.construct_event(body, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as e:
            raise BillingWebhookError(f"Invalid signature: {e}") from e
        except ValueError as e:
            raise BillingWebhookError(f"Invalid payload: {e}") from e

        try:
            event = json.loads(body)
        except ValueError as e:
            raise BillingWebhookError(f"Invalid payload: {e}") from e
        return parse_event(event)


def parse_event(event: Dict[str, Any]) -> BillingWebhookResult:
    """Normalize a Stripe event dict into a BillingWebhookResult."""
    event_type = event["type"]
    data = event.get("data", {}).get("object", {}) or {}
    metadata = data.get("metadata") or {}

    result = BillingWebhookResult(
        event_id=event["id"],
        event_type=event_type,
        user_id=metadata.get("userId"),
        customer_id=data.get("customer"),
        metadata=metadata,
    )

    if event_type == "checkout.session.completed":
        result.subscription_id = data.get("subscription")
        result.plan = (metadata.get("planType") or "").upper() or None
        result.status = "active"

    elif event_type.startswith("customer.subscription."):
        result.subscription_id = data.get("id")
        result.status = normalize_status(data.get("status"))
        result.cancel_at_period_end = bool(data.get("cancel_at_period_end", False))

        items = (data.get("items") or {}).get("data") or []
        first = items[0] if items else {}
        result.price_id = (first.get("price") or {}).get("id")
        result.plan = plan_for_price(result.price_id) or ((metadata.get("planType") or "").upper() or None)

        # Newer API versions report the billing period per item
        result.current_period_start = _ts(data.get("current_period_start") or first.get("current_period_start"))
        result.current_period_end = _ts(data.get("current_period_end") or first.get("current_period_end"))

    return result
