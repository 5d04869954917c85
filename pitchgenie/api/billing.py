"""
Billing API routes.

- POST /api/stripe/create-checkout: Stripe Checkout URL for a paid plan
- POST /api/stripe/create-portal: Stripe billing portal URL
- POST /api/stripe/webhook: Stripe events (204 no-op while billing is disabled)
- GET  /api/subscription: plan, limits and this month's usage
- GET  /api/plans: plan catalogue
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from pitchgenie.core.auth import get_current_session, get_current_user_id
from pitchgenie.core.errors import AppError, UpstreamError, ValidationError
from pitchgenie.core.logging import get_request_id, log_event
from pitchgenie.features.billing.provider import BillingProviderError, BillingWebhookError
from pitchgenie.features.billing.service import (
    billing_enabled,
    process_webhook_event,
    start_checkout,
    start_portal,
)
from pitchgenie.features.subscription.plans import PLANS
from pitchgenie.features.subscription.service import get_usage_summary

logger = logging.getLogger("pitchgenie")

router = APIRouter(prefix="/api/stripe", tags=["billing"])
subscription_router = APIRouter(tags=["billing"])


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    price_id: Optional[str] = None
    plan_type: Optional[str] = None


class PortalRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    return_url: Optional[str] = None


def _rid(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None) or get_request_id()


@router.post("/create-checkout")
async def create_checkout(body: CheckoutRequest, request: Request, session: dict = Depends(get_current_session)):
    rid = _rid(request)
    user_id = session["sub"]
    try:
        url = start_checkout(
            user_id,
            body.price_id,
            body.plan_type,
            email=session.get("email"),
            name=session.get("name"),
        )
    except AppError as exc:
        exc.request_id = exc.request_id or rid
        raise
    except BillingProviderError as exc:
        logger.error("billing.checkout_failed", exc_info=True, extra={"request_id": rid, "user_id": user_id})
        raise UpstreamError("Internal server error", request_id=rid) from exc

    log_event("info", "billing.checkout_started", request_id=rid, user_id=user_id, event_type="billing",
              extra={"plan": body.plan_type})
    return {"url": url}


@router.post("/create-portal")
async def create_portal(request: Request, body: Optional[PortalRequest] = None, user_id: str = Depends(get_current_user_id)):
    rid = _rid(request)
    try:
        url = start_portal(user_id, body.return_url if body else None)
    except AppError as exc:
        exc.request_id = exc.request_id or rid
        raise
    except BillingProviderError as exc:
        logger.error("billing.portal_failed", exc_info=True, extra={"request_id": rid, "user_id": user_id})
        raise UpstreamError("Internal server error", request_id=rid) from exc
    return {"url": url}


@router.post("/webhook")
async def handle_webhook(request: Request):
    """Stripe webhook. Signature is verified against the raw body."""
    if not billing_enabled():
        return Response(status_code=204)

    rid = _rid(request)
    body = await request.body()
    headers = dict(request.headers)

    try:
        result = process_webhook_event(headers, body)
    except BillingWebhookError as exc:
        log_event("warning", "billing.webhook_rejected", request_id=rid, event_type="billing",
                  error_code="invalid_webhook", extra={"reason": str(exc)})
        raise ValidationError("Invalid webhook", request_id=rid) from exc
    except Exception as exc:
        logger.error("billing.webhook_failed", exc_info=True, extra={"request_id": rid})
        raise UpstreamError("Webhook handler failed", request_id=rid) from exc

    log_event("info", "billing.webhook", request_id=rid, user_id=result.user_id, event_type=result.event_type,
              extra={"event_id": result.event_id})
    return {"received": True, "event_id": result.event_id}


@subscription_router.get("/api/subscription")
async def read_subscription(user_id: str = Depends(get_current_user_id)):
    summary = get_usage_summary(user_id)
    summary["billing_enabled"] = billing_enabled()
    return summary


@subscription_router.get("/api/plans")
async def list_plans():
    return {"plans": [plan.as_dict() for plan in PLANS.values()]}
