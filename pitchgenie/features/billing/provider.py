"""
Payment provider interface used by billing/service.py.

Stripe is the only implementation (stripe_provider.py); tests substitute a
mock with the same methods.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Protocol


class BillingProviderError(Exception):
    """The provider API call failed."""


class BillingWebhookError(BillingProviderError):
    """A webhook delivery could not be verified or parsed."""


@dataclass
class BillingWebhookResult:
    """What PitchGenie needs from a webhook event, independent of Stripe's shapes."""
    event_id: str
    event_type: str
    user_id: Optional[str] = None
    customer_id: Optional[str] = None
    subscription_id: Optional[str] = None
    plan: Optional[str] = None
    price_id: Optional[str] = None
    status: Optional[str] = None
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict)


class BillingProvider(Protocol):
    def create_customer(self, user_id: str, email: Optional[str] = None, name: Optional[str] = None) -> str:
        """Returns the provider's customer id."""

    def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> str:
        """Returns the hosted checkout URL for a monthly subscription."""

    def create_portal_session(self, customer_id: str, return_url: str) -> str:
        """Returns the hosted self-service billing URL."""

    def handle_webhook(self, headers: Mapping[str, str], body: bytes) -> BillingWebhookResult:
        """Verify the raw delivery and normalize it; raises BillingWebhookError."""
