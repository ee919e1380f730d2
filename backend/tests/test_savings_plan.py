from datetime import date
from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[2]))

from backend.app.errors import InvalidInput
from backend.app.insights.savings_plan import classify_plan, compute_savings_plan

TODAY = date(2024, 1, 1)
# 302 days ahead, which rounds up to 10 average-length months.
TEN_MONTHS_OUT = date(2024, 10, 29)


def _plan(target_amount=3000.0, target_date=TEN_MONTHS_OUT, income=2000.0, spending=1500.0, **kwargs):
    kwargs.setdefault("current_balance", 0.0)
    return compute_savings_plan(
        target_amount,
        target_date,
        today=TODAY,
        estimated_monthly_income=income,
        estimated_monthly_spending=spending,
        **kwargs,
    )


def test_ten_month_goal_needs_three_hundred_per_month():
    plan = _plan(current_savings=0.0)

    assert plan.days_remaining == 302
    assert plan.months_remaining == 10
    assert plan.amount_still_needed == 3000.0
    assert plan.required_monthly_savings == pytest.approx(300.0)
    assert plan.required_daily_savings == pytest.approx(3000.0 / 302)
    assert plan.required_savings_rate == pytest.approx(0.15)
    assert plan.estimated_savings_capacity == 500.0
    assert plan.status == "on_track"


def test_current_savings_overrides_balance():
    plan = _plan(current_savings=1000.0, current_balance=2500.0)
    assert plan.effective_current_savings == 1000.0
    assert plan.amount_still_needed == 2000.0

    from_balance = _plan(current_balance=2500.0)
    assert from_balance.effective_current_savings == 2500.0
    assert from_balance.amount_still_needed == 500.0


def test_stretch_and_unrealistic_carry_notes():
    stretch = _plan(income=2000.0, spending=1800.0)
    assert stretch.status == "stretch"
    assert stretch.notes

    unrealistic = _plan(income=200.0, spending=100.0)
    assert unrealistic.status == "unrealistic"
    assert unrealistic.notes


def test_reached_target_is_on_track():
    plan = _plan(current_savings=5000.0, income=0.0, spending=0.0)
    assert plan.amount_still_needed == 0.0
    assert plan.required_monthly_savings == 0.0
    assert plan.status == "on_track"


def test_past_target_date_requires_everything_now():
    plan = _plan(target_date=date(2023, 12, 1))
    assert plan.months_remaining == 0
    assert plan.days_remaining < 0
    assert plan.required_monthly_savings == 3000.0
    assert plan.required_daily_savings == 3000.0


def test_required_monthly_savings_grows_with_target():
    amounts = [500.0, 1000.0, 3000.0, 10000.0]
    required = [_plan(target_amount=a).required_monthly_savings for a in amounts]
    assert required == sorted(required)


def test_no_income_means_full_savings_rate():
    plan = _plan(income=0.0, spending=0.0)
    assert plan.required_savings_rate == 1.0
    assert plan.status == "unrealistic"


@pytest.mark.parametrize("target", [0.0, -10.0])
def test_target_amount_must_be_positive(target):
    with pytest.raises(InvalidInput):
        _plan(target_amount=target)


def test_negative_current_savings_rejected():
    with pytest.raises(InvalidInput):
        _plan(current_savings=-1.0)


def test_unparseable_target_date_rejected():
    with pytest.raises(InvalidInput):
        _plan(target_date="next spring")


def test_classify_plan_boundaries():
    assert classify_plan(500.0, 500.0, 2000.0) == "on_track"
    assert classify_plan(2000.0, 500.0, 2000.0) == "stretch"
    assert classify_plan(2000.01, 500.0, 2000.0) == "unrealistic"


def test_more_current_savings_never_raises_the_monthly_need():
    saved = [0.0, 250.0, 1000.0, 2999.0, 4000.0]
    required = [_plan(current_savings=s).required_monthly_savings for s in saved]
    assert required == sorted(required, reverse=True)


def test_single_small_income_still_covers_three_hundred():
    plan = _plan(income=500.0, spending=0.0, current_savings=0.0)
    assert plan.amount_still_needed == 3000.0
    assert plan.required_monthly_savings == pytest.approx(300.0)
    assert plan.required_savings_rate == pytest.approx(0.6)
    assert plan.status == "on_track"


def test_reached_target_is_on_track_even_with_negative_capacity():
    plan = _plan(current_savings=3500.0, income=1000.0, spending=1800.0)
    assert plan.estimated_savings_capacity == -800.0
    assert plan.amount_still_needed == 0.0
    assert plan.status == "on_track"
    assert "Current savings already cover the target amount." in plan.notes
