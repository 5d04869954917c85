"""
Subscription and monthly usage service.

Handles:
- Lazy FREE subscription creation
- Monthly usage rows keyed by (user_id, YYYY-MM)
- The generation gate (can_user_generate) and atomic counter increments

The gate and the increment are separate steps: the check runs before the
model call and the increment after the document is stored. Two concurrent
requests at the limit can therefore both pass; counters never go down.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from sqlalchemy import select, insert, update
from sqlalchemy.exc import IntegrityError

from pitchgenie.core.database import get_db_session, user_subscriptions, usage
from pitchgenie.core.errors import ValidationError
from pitchgenie.features.subscription.plans import UNLIMITED, get_plan
from pitchgenie.models.subscription import MonthlyUsage, UserSubscription

USAGE_KINDS = ("proposals", "pitch_decks")


def current_month(now: Optional[datetime] = None) -> str:
    """Usage bucket for a moment in time, as YYYY-MM in UTC."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m")


def _require_user(user_id: str) -> None:
    if not user_id:
        raise ValidationError("User ID is required")


def _require_kind(kind: str) -> None:
    if kind not in USAGE_KINDS:
        raise ValidationError(f"Unknown usage type: {kind}")


def _select_subscription(user_id: str) -> Optional[Dict[str, Any]]:
    with get_db_session() as session:
        row = session.execute(
            select(user_subscriptions).where(user_subscriptions.c.user_id == user_id)
        ).mappings().first()
        return dict(row) if row else None


def get_user_subscription(user_id: str) -> UserSubscription:
    """Return the user's subscription, creating a FREE/active one on first read."""
    _require_user(user_id)

    row = _select_subscription(user_id)
    if row:
        return UserSubscription.from_row(row)

    now = datetime.now(timezone.utc)
    try:
        with get_db_session() as session:
            session.execute(
                insert(user_subscriptions).values(
                    user_id=user_id,
                    plan="FREE",
                    status="active",
                    cancel_at_period_end=False,
                    created_at=now,
                    updated_at=now,
                )
            )
    except IntegrityError:
        # Another request created it first
        pass

    return UserSubscription.from_row(_select_subscription(user_id))


def update_user_subscription(user_id: str, **updates: Any) -> UserSubscription:
    """Upsert subscription fields. New rows default to FREE/active."""
    _require_user(user_id)
    now = datetime.now(timezone.utc)
    values = {k: v for k, v in updates.items() if k in user_subscriptions.c}
    values["updated_at"] = now

    with get_db_session() as session:
        result = session.execute(
            update(user_subscriptions)
            .where(user_subscriptions.c.user_id == user_id)
            .values(**values)
        )
        updated = result.rowcount

    if not updated:
        row = {"plan": "FREE", "status": "active", "cancel_at_period_end": False, "created_at": now}
        row.update(values)
        try:
            with get_db_session() as session:
                session.execute(insert(user_subscriptions).values(user_id=user_id, **row))
        except IntegrityError:
            with get_db_session() as session:
                session.execute(
                    update(user_subscriptions)
                    .where(user_subscriptions.c.user_id == user_id)
                    .values(**values)
                )

    return UserSubscription.from_row(_select_subscription(user_id))


def find_subscription_by_customer(stripe_customer_id: str) -> Optional[UserSubscription]:
    with get_db_session() as session:
        row = session.execute(
            select(user_subscriptions).where(user_subscriptions.c.stripe_customer_id == stripe_customer_id)
        ).mappings().first()
        return UserSubscription.from_row(dict(row)) if row else None


def _select_usage(user_id: str, month: str) -> Optional[Dict[str, Any]]:
    with get_db_session() as session:
        row = session.execute(
            select(usage.c.proposals, usage.c.pitch_decks).where(
                usage.c.user_id == user_id,
                usage.c.month == month,
            )
        ).mappings().first()
        return dict(row) if row else None


def get_user_usage(user_id: str, now: Optional[datetime] = None) -> MonthlyUsage:
    """Return this month's counters, creating a zeroed row when absent."""
    _require_user(user_id)
    month = current_month(now)

    row = _select_usage(user_id, month)
    if row is None:
        ts = datetime.now(timezone.utc)
        try:
            with get_db_session() as session:
                session.execute(
                    insert(usage).values(
                        user_id=user_id,
                        month=month,
                        proposals=0,
                        pitch_decks=0,
                        created_at=ts,
                        updated_at=ts,
                    )
                )
        except IntegrityError:
            pass
        row = _select_usage(user_id, month) or {"proposals": 0, "pitch_decks": 0}

    return MonthlyUsage(user_id=user_id, month=month, **row)


def increment_usage(user_id: str, kind: str, now: Optional[datetime] = None) -> None:
    """Add one to this month's counter for `kind`.

    The update is `col = col + 1` in SQL so concurrent increments are never lost.
    """
    _require_user(user_id)
    _require_kind(kind)
    month = current_month(now)
    column = usage.c[kind]
    ts = datetime.now(timezone.utc)

    def _bump() -> int:
        with get_db_session() as session:
            result = session.execute(
                update(usage)
                .where(usage.c.user_id == user_id, usage.c.month == month)
                .values({column: column + 1, usage.c.updated_at: ts})
            )
            return result.rowcount

    if _bump():
        return

    counts = {"proposals": 0, "pitch_decks": 0}
    counts[kind] = 1
    try:
        with get_db_session() as session:
            session.execute(
                insert(usage).values(user_id=user_id, month=month, created_at=ts, updated_at=ts, **counts)
            )
    except IntegrityError:
        # Row appeared between the update and the insert
        _bump()


def can_user_generate(user_id: str, kind: str, now: Optional[datetime] = None) -> bool:
    """True when the user's plan allows one more `kind` this month."""
    _require_kind(kind)
    subscription = get_user_subscription(user_id)
    limit = get_plan(subscription.plan).limits.for_kind(kind)
    if limit == UNLIMITED:
        return True

    return get_user_usage(user_id, now).count(kind) < limit


def get_usage_summary(user_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    subscription = get_user_subscription(user_id)
    plan = get_plan(subscription.plan)
    monthly = get_user_usage(user_id, now)
    return {
        "plan": plan.as_dict(),
        "status": subscription.status,
        "cancel_at_period_end": subscription.cancel_at_period_end,
        "current_period_end": subscription.current_period_end.isoformat() if subscription.current_period_end else None,
        "month": monthly.month,
        "usage": {"proposals": monthly.proposals, "pitch_decks": monthly.pitch_decks},
        "limits": {"proposals": plan.limits.proposals, "pitch_decks": plan.limits.pitch_decks},
    }
