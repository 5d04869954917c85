"""Usage gate: lazy subscription/usage rows, plan limits and counters."""
from datetime import datetime, timezone

import pytest
from sqlalchemy import select, func

from pitchgenie.core.database import get_db_session, usage, user_subscriptions
from pitchgenie.core.errors import ValidationError
from pitchgenie.features.subscription.plans import PLANS, get_plan, plan_for_price
from pitchgenie.features.subscription.service import (
    can_user_generate,
    current_month,
    get_usage_summary,
    get_user_subscription,
    get_user_usage,
    increment_usage,
    update_user_subscription,
)

JAN = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)
FEB = datetime(2025, 2, 1, 0, 0, tzinfo=timezone.utc)


def _usage_rows(user_id):
    with get_db_session() as session:
        return session.execute(select(func.count()).select_from(usage).where(usage.c.user_id == user_id)).scalar_one()


def test_plan_table_is_read_only():
    with pytest.raises(TypeError):
        PLANS["FREE"] = PLANS["PRO"]
    assert get_plan("free").limits.proposals == 5
    assert get_plan("nonsense").id == "FREE"
    assert PLANS["PRO"].limits.pitch_decks == -1


def test_plan_for_price_uses_configured_prices(monkeypatch):
    monkeypatch.setenv("STRIPE_PRICE_PRO", "price_pro")
    monkeypatch.setenv("STRIPE_PRICE_ENTERPRISE", "price_ent")
    assert plan_for_price("price_pro") == "PRO"
    assert plan_for_price("price_ent") == "ENTERPRISE"
    assert plan_for_price("price_other") is None


def test_current_month_is_utc():
    assert current_month(JAN) == "2025-01"
    assert current_month(datetime(2025, 1, 31, 23, 30, tzinfo=timezone.utc)) == "2025-01"


def test_subscription_is_created_lazily_as_free_active():
    sub = get_user_subscription("user_lazy")
    assert sub.plan == "FREE"
    assert sub.status == "active"
    # A second read does not create a second row
    get_user_subscription("user_lazy")
    with get_db_session() as session:
        count = session.execute(
            select(func.count()).select_from(user_subscriptions).where(user_subscriptions.c.user_id == "user_lazy")
        ).scalar_one()
    assert count == 1


def test_empty_user_id_is_rejected():
    with pytest.raises(ValidationError):
        get_user_subscription("")


def test_usage_row_created_with_zero_counters():
    monthly = get_user_usage("user_zero", JAN)
    assert (monthly.month, monthly.proposals, monthly.pitch_decks) == ("2025-01", 0, 0)
    assert _usage_rows("user_zero") == 1


def test_increment_creates_row_then_adds():
    increment_usage("user_inc", "proposals", JAN)
    assert get_user_usage("user_inc", JAN).proposals == 1
    increment_usage("user_inc", "proposals", JAN)
    increment_usage("user_inc", "pitch_decks", JAN)
    monthly = get_user_usage("user_inc", JAN)
    assert (monthly.proposals, monthly.pitch_decks) == (2, 1)
    assert _usage_rows("user_inc") == 1


def test_increment_rejects_unknown_kind():
    with pytest.raises(ValidationError):
        increment_usage("user_inc", "slides", JAN)


def test_free_plan_allows_exactly_five_proposals():
    for _ in range(4):
        increment_usage("user_free", "proposals", JAN)
    assert can_user_generate("user_free", "proposals", JAN) is True
    increment_usage("user_free", "proposals", JAN)
    assert can_user_generate("user_free", "proposals", JAN) is False
    # Pitch decks are counted separately
    assert can_user_generate("user_free", "pitch_decks", JAN) is True


def test_free_plan_pitch_deck_limit_is_three():
    for _ in range(3):
        increment_usage("user_decks", "pitch_decks", JAN)
    assert can_user_generate("user_decks", "pitch_decks", JAN) is False


def test_new_month_resets_allowance():
    for _ in range(5):
        increment_usage("user_month", "proposals", JAN)
    assert can_user_generate("user_month", "proposals", JAN) is False
    assert can_user_generate("user_month", "proposals", FEB) is True
    assert get_user_usage("user_month", FEB).proposals == 0


def test_unlimited_plan_ignores_counter():
    update_user_subscription("user_pro", plan="PRO")
    for _ in range(50):
        increment_usage("user_pro", "proposals", JAN)
    assert can_user_generate("user_pro", "proposals", JAN) is True
    assert can_user_generate("user_pro", "pitch_decks", JAN) is True


def test_update_user_subscription_upserts():
    sub = update_user_subscription("user_new", plan="ENTERPRISE", stripe_customer_id="cus_1")
    assert sub.plan == "ENTERPRISE"
    assert sub.status == "active"
    sub = update_user_subscription("user_new", status="past_due")
    assert sub.plan == "ENTERPRISE"
    assert sub.status == "past_due"
    assert sub.stripe_customer_id == "cus_1"


def test_usage_summary_shape():
    increment_usage("user_sum", "pitch_decks", JAN)
    summary = get_usage_summary("user_sum", JAN)
    assert summary["plan"]["id"] == "FREE"
    assert summary["usage"] == {"proposals": 0, "pitch_decks": 1}
    assert summary["limits"] == {"proposals": 5, "pitch_decks": 3}
    assert summary["month"] == "2025-01"
