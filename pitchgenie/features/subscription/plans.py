"""
Subscription plan catalogue.

The catalogue is static and read-only; Stripe price ids are resolved from
configuration at call time so a deployment can change them without code.
"""
import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

UNLIMITED = -1
DEFAULT_PLAN = "FREE"


@dataclass(frozen=True)
class PlanLimits:
    proposals: int
    pitch_decks: int

    def for_kind(self, kind: str) -> int:
        if kind == "proposals":
            return self.proposals
        if kind == "pitch_decks":
            return self.pitch_decks
        raise KeyError(kind)


@dataclass(frozen=True)
class Plan:
    id: str
    name: str
    price: int  # USD per month
    limits: PlanLimits
    features: tuple[str, ...]
    price_env: Optional[str] = None

    @property
    def stripe_price_id(self) -> Optional[str]:
        return os.getenv(self.price_env) if self.price_env else None

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "limits": {"proposals": self.limits.proposals, "pitch_decks": self.limits.pitch_decks},
            "features": list(self.features),
        }


PLANS: Mapping[str, Plan] = MappingProxyType({
    "FREE": Plan(
        id="FREE",
        name="Free",
        price=0,
        limits=PlanLimits(proposals=5, pitch_decks=3),
        features=("5 proposals/month", "3 pitch decks/month", "Basic templates"),
    ),
    "PRO": Plan(
        id="PRO",
        name="Pro",
        price=19,
        limits=PlanLimits(proposals=UNLIMITED, pitch_decks=UNLIMITED),
        features=("Unlimited proposals", "Unlimited pitch decks", "Premium templates", "Priority support"),
        price_env="STRIPE_PRICE_PRO",
    ),
    "ENTERPRISE": Plan(
        id="ENTERPRISE",
        name="Enterprise",
        price=49,
        limits=PlanLimits(proposals=UNLIMITED, pitch_decks=UNLIMITED),
        features=(
            "Everything in Pro",
            "Custom branding",
            "Team collaboration",
            "Advanced analytics",
            "Dedicated support",
        ),
        price_env="STRIPE_PRICE_ENTERPRISE",
    ),
})


def get_plan(plan_id: Optional[str]) -> Plan:
    """Plan for an id; unknown or missing ids resolve to FREE."""
    return PLANS.get((plan_id or DEFAULT_PLAN).upper(), PLANS[DEFAULT_PLAN])


def plan_for_price(price_id: Optional[str]) -> Optional[str]:
    """Map a Stripe price id back to a plan id (None when unmapped)."""
    if not price_id:
        return None
    for plan in PLANS.values():
        if plan.stripe_price_id and plan.stripe_price_id == price_id:
            return plan.id
    return None
