from __future__ import annotations

import math
from datetime import date

import pytest

from core.domain import Expense, TrendDirection
from core.services.analytics.trends import (
    budget_vs_actual,
    build_forecast,
    build_monthly_buckets,
    expense_frequency,
    merge_monthly_buckets,
    month_over_month_change,
    seasonal_variance,
    segment_trends,
    trend_direction,
)

AS_OF = date(2024, 3, 15)


def _expense(amount, when, category="General"):
    return Expense(id=f"e-{amount}-{when}", workspace_id="ws", amount=amount, category=category, expense_date=when)


def _buckets(expenses, window=6):
    return build_monthly_buckets(
        expenses,
        as_of=AS_OF,
        date_of=lambda e: e.expense_date,
        amount_of=lambda e: e.amount,
        window=window,
    )


@pytest.mark.parametrize("window", [3, 6, 12, 24])
def test_empty_input_still_yields_full_window(window):
    buckets = _buckets([], window)

    assert len(buckets) == window
    assert all(bucket.total == 0 and bucket.count == 0 for bucket in buckets)
    assert buckets[-1].period_key == "2024-03"
    starts = [bucket.period_start for bucket in buckets]
    assert starts == sorted(starts)


def test_buckets_cover_consecutive_months_oldest_first():
    expenses = [
        _expense(100, date(2024, 3, 1)),
        _expense(40, date(2024, 1, 20)),
        _expense(60, date(2024, 1, 5)),
        _expense(999, date(2023, 5, 1)),  # outside the window
        _expense(10, None),  # undated
    ]

    buckets = _buckets(expenses)

    assert [b.period_key for b in buckets] == ["2023-10", "2023-11", "2023-12", "2024-01", "2024-02", "2024-03"]
    assert [b.label for b in buckets][:2] == ["Oct 23", "Nov 23"]
    assert buckets[3].total == 100 and buckets[3].count == 2
    assert buckets[4].total == 0
    assert buckets[5].total == 100


def test_invalid_window_falls_back_to_six():
    assert len(_buckets([], "bogus")) == 6
    assert len(_buckets([], "1y")) == 12


def test_forecast_uses_last_three_buckets():
    expenses = [
        _expense(600, date(2023, 12, 3)),
        _expense(300, date(2024, 1, 3)),
        _expense(0, date(2024, 2, 3)),
        _expense(150, date(2024, 3, 3)),
    ]
    buckets = _buckets(expenses)

    forecast = build_forecast(buckets, 1050)

    assert forecast.avg_monthly_velocity == pytest.approx(150.0)
    assert forecast.forecasted_spend == pytest.approx(1050 + 450)
    assert forecast.horizon_months == 3


def test_forecast_with_short_history_is_finite():
    short = _buckets([_expense(90, date(2024, 3, 2))])[-2:]
    forecast = build_forecast(short, 90)
    assert forecast.avg_monthly_velocity == pytest.approx(45.0)

    empty = build_forecast([], 0)
    assert empty.forecasted_spend == 0.0
    assert math.isfinite(empty.avg_monthly_velocity)


def test_budget_vs_actual_uses_flat_monthly_budget():
    buckets = _buckets([_expense(150, date(2024, 3, 2))], 3)
    points = budget_vs_actual(buckets, 1200)

    assert [p.budget for p in points] == [100.0, 100.0, 100.0]
    assert points[-1].variance == pytest.approx(50.0)


def test_expense_frequency_average_per_bucket():
    buckets = _buckets([_expense(30, date(2024, 3, 2)), _expense(10, date(2024, 3, 9))], 3)
    points = expense_frequency(buckets)

    assert points[-1].count == 2
    assert points[-1].average_amount == pytest.approx(20.0)
    assert points[0].average_amount == 0.0


def test_trend_direction_thresholds():
    assert trend_direction(111, 100) == (pytest.approx(11.0), TrendDirection.UP)
    assert trend_direction(89, 100)[1] == TrendDirection.DOWN
    assert trend_direction(105, 100)[1] == TrendDirection.STABLE
    assert trend_direction(500, 0) == (None, TrendDirection.STABLE)


def test_segment_trends_compare_equal_length_periods():
    expenses = [
        _expense(200, date(2024, 3, 10), "Travel"),
        _expense(100, date(2024, 2, 20), "Travel"),
        _expense(50, date(2024, 3, 5), "Food"),
        _expense(80, date(2024, 2, 20), "Food"),
        _expense(70, date(2024, 3, 12), "Office"),
    ]

    rows = segment_trends(
        expenses,
        key_of=lambda e: e.category,
        amount_of=lambda e: e.amount,
        date_of=lambda e: e.expense_date,
        period_start=date(2024, 3, 1),
        as_of=AS_OF,
    )
    by_key = {row.key: row for row in rows}

    assert [row.key for row in rows] == ["Travel", "Food", "Office"]
    assert by_key["Travel"].current == 200 and by_key["Travel"].previous == 100
    assert by_key["Travel"].direction == TrendDirection.UP
    assert by_key["Food"].direction == TrendDirection.DOWN
    assert by_key["Office"].direction == TrendDirection.STABLE
    assert by_key["Office"].change_percent is None
    assert sum(row.percentage for row in rows) == pytest.approx(100.0)


def test_month_over_month_and_seasonal_variance():
    expenses = [_expense(150, date(2024, 3, 1)), _expense(100, date(2024, 2, 10))]
    change = month_over_month_change(
        expenses, as_of=AS_OF, date_of=lambda e: e.expense_date, amount_of=lambda e: e.amount
    )
    assert change == pytest.approx(50.0)

    buckets = _buckets(expenses, 3)
    assert seasonal_variance(buckets, 50.0) == pytest.approx(300.0)
    assert seasonal_variance(buckets, 0.0) == 0.0


def test_merge_monthly_buckets_sums_by_period():
    left = _buckets([_expense(10, date(2024, 3, 1))], 3)
    right = _buckets([_expense(5, date(2024, 3, 2)), _expense(7, date(2024, 1, 2))], 3)

    merged = merge_monthly_buckets(left, right)

    assert [b.period_key for b in merged] == ["2024-01", "2024-02", "2024-03"]
    assert [b.total for b in merged] == [7, 0, 15]
    assert merged[-1].count == 2
