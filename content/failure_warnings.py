"""content.failure_warnings

Default structural WarningProvider: flags failure modes before they become
defeats, with a rough countdown where one can be estimated.
"""

from __future__ import annotations

import math
from typing import Callable, List, Optional

from core.state import GameState, WeekSnapshot

from .schemas import DEFAULT_CAP, FailureWarning, rank_warnings, validate_warning


def count_declining_weeks(history: List[WeekSnapshot], metric: Callable[[WeekSnapshot], float], window: int = 8) -> int:
    """Week-over-week drops within the trailing window."""
    recent = history[-window:]
    return sum(1 for a, b in zip(recent, recent[1:]) if metric(b) < metric(a))


def _tier(value: float, critical: float, danger: float, *, below: bool = True) -> str:
    if below:
        return "Critical" if value < critical else "Danger" if value < danger else "Caution"
    return "Critical" if value > critical else "Danger" if value > danger else "Caution"


def _weeks(n: float, lo: int = 1, hi: int = 20) -> int:
    return int(max(lo, min(hi, n)))


def _death_march(s: GameState) -> Optional[FailureWarning]:
    declining = count_declining_weeks(s.history, lambda h: h.morale)
    if s.morale >= 50.0 or declining < 3:
        return None
    recent = s.history[-4:]
    trend = recent[-1].morale - recent[0].morale if len(recent) >= 2 else 0.0
    until = _weeks((s.morale - 20.0) / abs(trend)) if trend < 0 else None
    return FailureWarning("death_march", "Death March", _tier(s.morale, 30.0, 40.0),
                          f"Morale at {s.morale:.0f}%, declining for {declining} weeks.",
                          until, ["Take a break", "Coach the team on morale", "Cut scope"])


def _technical_bankruptcy(s: GameState) -> Optional[FailureWarning]:
    if s.tech_debt <= 70.0:
        return None
    return FailureWarning("technical_bankruptcy", "Technical Bankruptcy", _tier(s.tech_debt, 90.0, 80.0, below=False),
                          f"Tech debt at {s.tech_debt:.0f}.",
                          _weeks((95.0 - s.tech_debt) / 2.0), ["Refactor", "Ship with Polish quality"])


def _customer_exodus(s: GameState) -> Optional[FailureWarning]:
    if s.churn_rate <= 12.0 or s.wau <= 100:
        return None
    return FailureWarning("customer_exodus", "Customer Exodus", _tier(s.churn_rate, 20.0, 15.0, below=False),
                          f"Churning {s.churn_rate:.0f}% of customers a month.",
                          _weeks((s.reputation - 15.0) / (s.churn_rate * 0.5)),
                          ["Talk to churned customers", "Run an onboarding experiment"])


def _cash_crunch(s: GameState) -> Optional[FailureWarning]:
    if math.isinf(s.runway_months) or s.runway_months >= 6.0:
        return None
    return FailureWarning("cash_crunch", "Cash Crunch", _tier(s.runway_months, 2.0, 3.0),
                          f"{s.runway_months:.1f} months of runway.",
                          int(max(0.0, (s.runway_months - 1.0) * 4.0)),
                          ["Fundraise", "Cut burn", "Close revenue"])


def _velocity_collapse(s: GameState) -> Optional[FailureWarning]:
    if s.velocity >= 0.6:
        return None
    return FailureWarning("velocity_collapse", "Velocity Collapse", _tier(s.velocity, 0.4, 0.5),
                          f"Velocity at {s.velocity:.2f}.",
                          _weeks((s.velocity - 0.3) / 0.05 * 4.0, lo=2), ["Refactor", "Improve process"])


def _reputation_crisis(s: GameState) -> Optional[FailureWarning]:
    if s.reputation >= 40.0:
        return None
    return FailureWarning("reputation_crisis", "Reputation Crisis", _tier(s.reputation, 25.0, 30.0),
                          f"Reputation at {s.reputation:.0f}.",
                          _weeks((s.reputation - 10.0) / 2.0, hi=15), ["DevRel", "Publish content"])


CHECKS = (_death_march, _technical_bankruptcy, _customer_exodus, _cash_crunch, _velocity_collapse, _reputation_crisis)


class DefaultWarningProvider:
    def generate_warnings(self, previous: GameState, current: GameState, *, cap: int = DEFAULT_CAP) -> List[FailureWarning]:
        found: List[FailureWarning] = []
        for check in CHECKS:
            w = check(current)
            if w is not None:
                validate_warning(w)
                found.append(w)
        return rank_warnings(found, cap)
