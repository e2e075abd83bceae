"""
core.effects
Stat-name keyed mutation rules shared by actions, events and bonuses:
- StatEffect records (old/new/delta)
- apply_stat_change dispatch
- magnitude scaling for market effectiveness

Bounds are enforced afterwards by GameState.update_derived_metrics().
"""

from __future__ import annotations

import random
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, List, Optional

from .rng import chance
from .state import GameState

MORALE = "Morale"
REPUTATION = "Reputation"
TECH_DEBT = "Tech Debt"
VELOCITY = "Velocity"
WAU = "WAU"
WAU_GROWTH = "WAU Growth"
MRR = "MRR"
BURN = "Burn"
BANK = "Bank"
FOUNDER_EQUITY = "Founder Equity"
CHURN_RATE = "Churn Rate"
FOCUS = "Focus"
COMPLIANCE_RISK = "Compliance Risk"
NPS = "NPS"
TEAM_SIZE = "Team Size"
INCIDENTS = "Incidents"
GAME_END = "Game End"
BURNOUT_RISK = "Burnout Risk"

MIN_FOCUS_SLOTS = 2


@dataclass(frozen=True)
class StatEffect:
    stat_name: str
    old_value: float
    new_value: float
    delta: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _add_attr(attr: str) -> Callable[[GameState, float], None]:
    def _apply(state: GameState, change: float) -> None:
        setattr(state, attr, getattr(state, attr) + change)

    return _apply


def _wau(state: GameState, change: float) -> None:
    state.wau = max(0, int(state.wau + change))


def _focus(state: GameState, change: float) -> None:
    state.focus_slots = max(MIN_FOCUS_SLOTS, int(state.focus_slots + int(change)))


def _team(state: GameState, change: float) -> None:
    state.team_size = max(1, int(state.team_size + int(change)))


def _incidents(state: GameState, change: float) -> None:
    state.incident_count = max(0, int(state.incident_count + int(change)))


_NUMERIC: Dict[str, tuple] = {
    MORALE: ("morale", _add_attr("morale")),
    REPUTATION: ("reputation", _add_attr("reputation")),
    TECH_DEBT: ("tech_debt", _add_attr("tech_debt")),
    VELOCITY: ("velocity", _add_attr("velocity")),
    WAU: ("wau", _wau),
    WAU_GROWTH: ("wau_growth_rate", _add_attr("wau_growth_rate")),
    MRR: ("mrr", _add_attr("mrr")),
    BURN: ("burn", _add_attr("burn")),
    BANK: ("bank", _add_attr("bank")),
    FOUNDER_EQUITY: ("founder_equity", _add_attr("founder_equity")),
    CHURN_RATE: ("churn_rate", _add_attr("churn_rate")),
    FOCUS: ("focus_slots", _focus),
    COMPLIANCE_RISK: ("compliance_risk", _add_attr("compliance_risk")),
    NPS: ("nps", _add_attr("nps")),
    TEAM_SIZE: ("team_size", _team),
    INCIDENTS: ("incident_count", _incidents),
}

KNOWN_STATS = frozenset([*_NUMERIC.keys(), GAME_END, BURNOUT_RISK])


def stat_attr(stat_name: str) -> str:
    if stat_name not in _NUMERIC:
        raise ValueError(f"Unknown stat: {stat_name}")
    return _NUMERIC[stat_name][0]


def read_stat(state: GameState, stat_name: str) -> float:
    return float(getattr(state, stat_attr(stat_name)))


def apply_stat_change(state: GameState, stat_name: str, change: float, rng: Optional[random.Random] = None) -> StatEffect:
    """Apply one named change and return what happened.

    "Game End" marks the session as acquired. "Burnout Risk" is a percent chance
    that founder morale collapses to zero (needs an rng).
    """
    if stat_name == GAME_END:
        state.outcome = "Acquired"
        return StatEffect(stat_name, 0.0, 1.0, 1.0)
    if stat_name == BURNOUT_RISK:
        old = float(state.morale)
        if rng is None:
            raise ValueError("Burnout Risk needs an rng")
        if chance(rng, float(change) / 100.0):
            state.morale = 0.0
        return StatEffect(MORALE, old, float(state.morale), float(state.morale) - old)

    if stat_name not in _NUMERIC:
        raise ValueError(f"Unknown stat: {stat_name}")
    attr, fn = _NUMERIC[stat_name]
    old = float(getattr(state, attr))
    fn(state, float(change))
    new = float(getattr(state, attr))
    return StatEffect(stat_name, old, new, new - old)


def apply_changes(state: GameState, changes: List[tuple], rng: Optional[random.Random] = None) -> List[StatEffect]:
    """Apply [(stat_name, change), ...] in order."""
    return [apply_stat_change(state, name, change, rng) for name, change in changes]


def scale(change: float, effectiveness: float) -> float:
    """Scale an effect magnitude by a market effectiveness multiplier."""
    return float(change) * float(effectiveness)
