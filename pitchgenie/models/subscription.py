from datetime import datetime
from typing import Any, Dict, Literal, Optional
from pydantic import BaseModel, ConfigDict

PlanName = Literal["FREE", "PRO", "ENTERPRISE"]
SubscriptionStatus = Literal["active", "canceled", "past_due", "incomplete"]
UsageKind = Literal["proposals", "pitch_decks"]


class UserSubscription(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    plan: PlanName = "FREE"
    status: SubscriptionStatus = "active"
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    stripe_price_id: Optional[str] = None
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool = False

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "UserSubscription":
        return cls(**{k: v for k, v in row.items() if k in cls.model_fields})


class MonthlyUsage(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    month: str  # YYYY-MM
    proposals: int = 0
    pitch_decks: int = 0

    def count(self, kind: UsageKind) -> int:
        return self.proposals if kind == "proposals" else self.pitch_decks
