from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[2]))

from backend.app.insights.scoring import compute_health_score, grade_for
from backend.app.insights.seasonality import MonthlyPoint


def _points(n: int, income: float, spending: float, z_score: float = 0.0):
    return [
        MonthlyPoint(
            month=f"2024-{i + 1:02d}",
            income=income,
            spending=spending,
            net=income - spending,
            z_score=z_score,
        )
        for i in range(n)
    ]


@pytest.mark.parametrize(
    "score,grade",
    [(100.0, "A"), (85.0, "A"), (84.999, "B"), (70.0, "B"), (69.99, "C"), (55.0, "C"), (40.0, "D"), (39.9, "E"), (0.0, "E")],
)
def test_grade_thresholds(score, grade):
    assert grade_for(score) == grade


def test_quiet_ledger_scores_full_marks():
    health = compute_health_score(_points(12, 0.0, 0.0), period_months=12)
    assert health.score == 100.0
    assert health.grade == "A"
    assert health.months_in_red == 0
    assert health.explanation == ["Volatility (mean |z-score|): 0.00"]


def test_months_in_red_penalty():
    health = compute_health_score(_points(12, 0.0, 100.0), period_months=12)
    assert health.months_in_red == 12
    assert health.score == pytest.approx(64.0)
    assert health.grade == "C"
    assert health.explanation[0] == "12 month(s) with negative net cashflow"


def test_score_is_bounded_at_zero():
    health = compute_health_score(_points(20, 10.0, 1000.0, z_score=10.0), period_months=20)
    assert health.score == 0.0
    assert health.grade == "E"
    assert any(line.startswith("Negative savings rate") for line in health.explanation)


def test_score_is_bounded_at_hundred():
    health = compute_health_score(
        _points(6, 5000.0, 1000.0),
        period_months=6,
        top_category="Rent",
        top_source="Salary",
    )
    assert health.savings_rate == pytest.approx(0.8)
    assert health.score == 100.0
    assert "Good savings rate (80%)" in health.explanation
    assert health.top_category == "Rent"
    assert health.top_source == "Salary"


def test_volatility_is_mean_absolute_z():
    points = _points(2, 100.0, 100.0, z_score=1.0)
    points[1] = MonthlyPoint(month="2024-02", income=100.0, spending=100.0, net=0.0, z_score=-3.0)
    health = compute_health_score(points, period_months=2)
    assert health.volatility == pytest.approx(2.0)
    assert health.score == pytest.approx(90.0)
