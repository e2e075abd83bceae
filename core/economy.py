"""
core.economy
Weekly revenue erosion and customer sentiment drift.
"""

from __future__ import annotations

from typing import List, Optional

from .market import MarketCondition, calculate_market_adjusted_metric
from .state import GameState, clamp

NPS_SMOOTHING = 0.1
NPS_BASELINE = 30.0
CHURN_BOUNDS = (1.0, 20.0)


def apply_churn(state: GameState, conditions: Optional[List[MarketCondition]] = None) -> float:
    """Decay mrr by a quarter of the monthly churn rate. Returns MRR lost.

    Active market conditions may scale the churn rate used for this tick.
    """
    rate = state.churn_rate
    if conditions:
        rate = calculate_market_adjusted_metric(rate, "churn_rate", conditions)
    rate = clamp(rate, 0.0, 100.0)
    lost = state.mrr * (rate / 100.0 / 4.0)
    state.mrr = max(0.0, state.mrr - lost)
    return lost


def nps_target(tech_debt: float, velocity: float) -> float:
    penalty = 0.0
    if tech_debt > 70.0:
        penalty = -10.0
    elif tech_debt > 40.0:
        penalty = -5.0

    bonus = 0.0
    if velocity > 1.2:
        bonus = 5.0
    elif velocity < 0.8:
        bonus = -5.0
    return NPS_BASELINE + bonus + penalty


def update_nps(state: GameState) -> float:
    target = nps_target(state.tech_debt, state.velocity)
    state.nps = clamp(state.nps * (1.0 - NPS_SMOOTHING) + target * NPS_SMOOTHING, -100.0, 100.0)
    return state.nps


def calculate_churn_rate(nps: float, incidents: int) -> float:
    """Monthly churn implied by sentiment and open incidents."""
    rate = 5.0
    if nps > 50.0:
        rate -= 2.0
    elif nps > 20.0:
        rate -= 1.0
    elif nps < -20.0:
        rate += 2.0
    rate += float(incidents)
    return clamp(rate, CHURN_BOUNDS[0], CHURN_BOUNDS[1])
