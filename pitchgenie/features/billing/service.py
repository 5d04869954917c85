"""
Billing service orchestrator.

Coordinates:
- Stripe customer creation (stored on the user's subscription row)
- Checkout and portal sessions
- Idempotent webhook processing into user_subscriptions

Billing is optional: without STRIPE_SECRET_KEY the service reports itself
disabled and callers degrade (503 for checkout/portal, 204 for webhooks).
"""
import hashlib
import logging
import os
from typing import Mapping, Optional
from datetime import datetime, timezone
from sqlalchemy import select, insert, update
from sqlalchemy.exc import IntegrityError

from pitchgenie.core.config import settings
from pitchgenie.core.database import get_db_session, billing_events
from pitchgenie.core.errors import BillingDisabledError, NotFoundError, ValidationError
from pitchgenie.features.billing.provider import (
    BillingProvider,
    BillingProviderError,
    BillingWebhookError,
    BillingWebhookResult,
)
from pitchgenie.features.billing.stripe_provider import StripeProvider
from pitchgenie.features.subscription.plans import DEFAULT_PLAN, PLANS
from pitchgenie.features.subscription.service import (
    find_subscription_by_customer,
    get_user_subscription,
    update_user_subscription,
)

logger = logging.getLogger("pitchgenie")


def billing_enabled() -> bool:
    """Check if billing is enabled (Stripe configured)."""
    return bool(os.getenv("STRIPE_SECRET_KEY"))


def get_provider() -> Optional[BillingProvider]:
    """Get billing provider if billing is enabled."""
    if not billing_enabled():
        return None
    try:
        return StripeProvider()
    except BillingProviderError:
        return None


def _require_provider() -> BillingProvider:
    provider = get_provider()
    if provider is None:
        raise BillingDisabledError("Stripe is disabled in this deployment")
    return provider


def resolve_checkout_plan(price_id: Optional[str], plan_type: Optional[str]) -> str:
    """Validate a checkout request; returns the plan id.

    A plan with a configured Stripe price only accepts that price.
    """
    plan_id = (plan_type or "").upper()
    plan = PLANS.get(plan_id)
    if not price_id or plan is None or plan_id == DEFAULT_PLAN:
        raise ValidationError("Invalid plan")
    expected = plan.stripe_price_id
    if expected and expected != price_id:
        raise ValidationError("Invalid plan")
    return plan_id


def start_checkout(
    user_id: str,
    price_id: Optional[str],
    plan_type: Optional[str],
    *,
    email: Optional[str] = None,
    name: Optional[str] = None,
) -> str:
    """
    Start a subscription checkout for the user and return the Checkout URL.

    Raises:
        BillingDisabledError: Stripe not configured
        ValidationError: unknown plan or mismatched price
        BillingProviderError: Stripe API failure
    """
    provider = _require_provider()
    plan_id = resolve_checkout_plan(price_id, plan_type)

    subscription = get_user_subscription(user_id)
    customer_id = subscription.stripe_customer_id
    if not customer_id:
        customer_id = provider.create_customer(user_id, email, name)
        update_user_subscription(user_id, stripe_customer_id=customer_id)

    return provider.create_checkout_session(
        customer_id=customer_id,
        price_id=price_id,
        success_url=f"{settings.APP_URL}/billing?success=true",
        cancel_url=f"{settings.APP_URL}/pricing?canceled=true",
        metadata={"userId": user_id, "planType": plan_id},
    )


def start_portal(user_id: str, return_url: Optional[str] = None) -> str:
    """Return a billing portal URL for a user who has a Stripe customer."""
    provider = _require_provider()
    subscription = get_user_subscription(user_id)
    if not subscription.stripe_customer_id:
        raise NotFoundError("Customer not found. Complete checkout first.")
    return provider.create_portal_session(
        customer_id=subscription.stripe_customer_id,
        return_url=return_url or f"{settings.APP_URL}/billing",
    )


def _resolve_user_id(result: BillingWebhookResult) -> Optional[str]:
    if result.user_id:
        return result.user_id
    if result.customer_id:
        existing = find_subscription_by_customer(result.customer_id)
        if existing:
            return existing.user_id
    return None


def apply_webhook_result(result: BillingWebhookResult) -> bool:
    """Apply a verified event to user_subscriptions. Returns False when ignored."""
    user_id = _resolve_user_id(result)
    if not user_id:
        logger.warning("billing.webhook.unmatched", extra={"event_type": result.event_type, "event_id": result.event_id})
        return False

    if result.event_type == "checkout.session.completed":
        updates = {
            "status": "active",
            "stripe_customer_id": result.customer_id,
            "stripe_subscription_id": result.subscription_id,
            "cancel_at_period_end": False,
        }
        if result.plan in PLANS:
            updates["plan"] = result.plan
        update_user_subscription(user_id, **updates)
        return True

    if result.event_type == "customer.subscription.updated":
        updates = {
            "status": result.status or "active",
            "stripe_customer_id": result.customer_id,
            "stripe_subscription_id": result.subscription_id,
            "stripe_price_id": result.price_id,
            "current_period_start": result.current_period_start,
            "current_period_end": result.current_period_end,
            "cancel_at_period_end": result.cancel_at_period_end,
        }
        if result.plan in PLANS:
            updates["plan"] = result.plan
        update_user_subscription(user_id, **updates)
        return True

    if result.event_type == "customer.subscription.deleted":
        update_user_subscription(
            user_id,
            plan=DEFAULT_PLAN,
            status="canceled",
            stripe_subscription_id=None,
            stripe_price_id=None,
            cancel_at_period_end=False,
        )
        return True

    return False


def _claim_event(result: BillingWebhookResult, body: bytes) -> bool:
    """Record the event id; False once the event has been applied.

    A recorded but unprocessed event (an earlier delivery failed while
    applying) is claimed again so the redelivery can apply it.
    """
    row = {
        "stripe_event_id": result.event_id,
        "event_type": result.event_type,
        "payload_hash": hashlib.sha256(body).hexdigest(),
        "processed": False,
        "created_at": datetime.now(timezone.utc),
    }
    try:
        with get_db_session() as session:
            seen = session.execute(
                select(billing_events.c.processed).where(billing_events.c.stripe_event_id == result.event_id)
            ).first()
            if seen is not None:
                return not seen.processed
            session.execute(insert(billing_events).values(**row))
    except IntegrityError:
        # Concurrent redelivery inserted it first
        return False
    return True


def _finish_event(event_id: str, **values) -> None:
    with get_db_session() as session:
        session.execute(
            update(billing_events).where(billing_events.c.stripe_event_id == event_id).values(**values)
        )


def process_webhook_event(headers: Mapping[str, str], body: bytes) -> BillingWebhookResult:
    """Verify, deduplicate by Stripe event id, then apply to the subscription.

    A failure while applying is stored on the event row and re-raised.
    """
    provider = get_provider()
    if provider is None:
        raise BillingWebhookError("Billing not enabled")

    result = provider.handle_webhook(headers, body)
    if not _claim_event(result, body):
        logger.info("billing.webhook.duplicate", extra={"event_id": result.event_id})
        return result

    try:
        apply_webhook_result(result)
    except Exception as exc:
        _finish_event(result.event_id, error=str(exc))
        raise
    _finish_event(result.event_id, processed=True, processed_at=datetime.now(timezone.utc), error=None)
    return result
