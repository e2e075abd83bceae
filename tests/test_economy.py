"""
Tests for churn and NPS drift.
"""

import pytest

from core.economy import apply_churn, calculate_churn_rate, nps_target, update_nps
from core.market import MARKET_CATALOG, build_condition


def test_churn_takes_a_quarter_of_monthly_rate(bare_state):
    bare_state.mrr = 10_000.0
    bare_state.churn_rate = 8.0
    lost = apply_churn(bare_state)
    assert lost == pytest.approx(200.0)
    assert bare_state.mrr == pytest.approx(9_800.0)


def test_churn_scaled_by_market(bare_state):
    bare_state.mrr = 10_000.0
    bare_state.churn_rate = 10.0
    recession = build_condition(MARKET_CATALOG["Recession"], duration=4, week=0)
    assert apply_churn(bare_state, [recession]) == pytest.approx(325.0)


def test_churn_with_no_revenue(bare_state):
    assert apply_churn(bare_state) == 0.0
    assert bare_state.mrr == 0.0


@pytest.mark.parametrize(
    "debt,velocity,expected",
    [(10.0, 1.0, 30.0), (50.0, 1.0, 25.0), (80.0, 0.5, 15.0), (10.0, 1.5, 35.0)],
)
def test_nps_target(debt, velocity, expected):
    assert nps_target(debt, velocity) == expected


def test_nps_moves_a_tenth_toward_target(bare_state):
    bare_state.nps = 0.0
    assert update_nps(bare_state) == pytest.approx(3.0)


@pytest.mark.parametrize(
    "nps,incidents,expected",
    [(60.0, 0, 3.0), (30.0, 0, 4.0), (0.0, 0, 5.0), (-50.0, 0, 7.0), (0.0, 2, 7.0),(-50.0, 40, 20.0)],
)
def test_churn_rate_from_sentiment(nps, incidents, expected):
    assert calculate_churn_rate(nps, incidents) == expected


def test_churn_rate_floor():
    assert calculate_churn_rate(100.0, 0) >= 1.0
