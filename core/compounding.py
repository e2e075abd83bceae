"""
core.compounding
Escalating rewards for sustained good practice.

Each effect has a gate on the current state, a predicate evaluated over trailing
WeekSnapshots, a minimum unbroken run, and a strength that grows with the run
length up to a ceiling.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

from . import effects as fx
from .effects import StatEffect
from .state import GameState, WeekSnapshot

DEFAULT_LOOKBACK = 12


def _ratio(num: float, den: float) -> float:
    if den <= 0:
        return float("inf") if num > 0 else 0.0
    return num / den


@dataclass(frozen=True)
class CompoundingEffect:
    id: str
    name: str
    gate: Callable[[GameState], bool]
    predicate: Callable[[WeekSnapshot], bool]
    min_weeks: int
    cap: float
    # (stat, value per unit of strength, multiplicative)
    bonuses: Tuple[Tuple[str, float, bool], ...]


@dataclass(frozen=True)
class CompoundingBonus:
    effect_id: str
    name: str
    weeks: int
    strength: float
    bonuses: Tuple[Tuple[str, float, bool], ...]

    def to_dict(self) -> Dict[str, object]:
        return {
            "effect_id": self.effect_id,
            "name": self.name,
            "weeks": int(self.weeks),
            "strength": float(self.strength),
            "bonuses": [{"stat_name": s, "value": float(v), "multiplicative": bool(m)} for s, v, m in self.bonuses],
        }


COMPOUNDING_EFFECTS: Tuple[CompoundingEffect, ...] = (
    CompoundingEffect(
        "engineering_excellence", "Engineering Excellence",
        gate=lambda s: s.tech_debt < 25.0 and s.velocity > 0.8,
        predicate=lambda h: h.momentum > 0.7,
        min_weeks=4, cap=2.0,
        bonuses=((fx.VELOCITY, 0.05, True), (fx.MORALE, 5.0, False)),
    ),
    CompoundingEffect(
        "customer_love", "Customer Love",
        gate=lambda s: s.nps > 60.0 and s.wau > 200,
        predicate=lambda h: h.reputation > 60.0,
        min_weeks=6, cap=2.0,
        bonuses=((fx.WAU_GROWTH, 3.0, False), (fx.CHURN_RATE, -2.0, False)),
    ),
    CompoundingEffect(
        "strong_culture", "Strong Culture",
        gate=lambda s: s.morale > 75.0,
        predicate=lambda h: h.morale > 75.0,
        min_weeks=8, cap=2.0,
        bonuses=((fx.VELOCITY, 0.1, True), (fx.REPUTATION, 5.0, False)),
    ),
    CompoundingEffect(
        "financial_discipline", "Financial Discipline",
        gate=lambda s: s.runway_months > 12.0 and _ratio(s.mrr, s.burn) > 0.5,
        predicate=lambda h: _ratio(h.bank, h.burn) > 3.0,
        min_weeks=8, cap=2.0,
        bonuses=((fx.REPUTATION, 10.0, False), (fx.MORALE, 5.0, False)),
    ),
    CompoundingEffect(
        "momentum_master", "Momentum Master",
        gate=lambda s: s.wau_growth_rate > 8.0 and s.churn_rate < 8.0,
        predicate=lambda h: h.wau >= 10,
        min_weeks=6, cap=2.0,
        bonuses=((fx.WAU_GROWTH, 2.0, False), (fx.REPUTATION, 8.0, False)),
    ),
    CompoundingEffect(
        "sustainable_pace", "Sustainable Pace",
        gate=lambda s: s.morale > 65.0 and s.velocity > 0.7,
        predicate=lambda h: h.morale > 60.0,
        min_weeks=10, cap=1.5,
        # offsets the weekly morale decay
        bonuses=((fx.MORALE, 0.6, False), (fx.VELOCITY, 0.05, True)),
    ),
)


def count_consecutive_weeks(history: List[WeekSnapshot], max_lookback: int, predicate: Callable[[WeekSnapshot], bool]) -> int:
    """Unbroken run, most recent snapshot backwards, within the lookback window."""
    run = 0
    window = history[-max_lookback:] if max_lookback > 0 else []
    for snap in reversed(window):
        if not predicate(snap):
            break
        run += 1
    return run


def check_compounding_effects(state: GameState, lookback: int = DEFAULT_LOOKBACK) -> List[CompoundingBonus]:
    out: List[CompoundingBonus] = []
    for eff in COMPOUNDING_EFFECTS:
        if not eff.gate(state):
            continue
        weeks = count_consecutive_weeks(state.history, lookback, eff.predicate)
        if weeks < eff.min_weeks:
            continue
        strength = min(weeks / float(eff.min_weeks), eff.cap)
        scaled = tuple((stat, value * strength, mult) for stat, value, mult in eff.bonuses)
        out.append(CompoundingBonus(eff.id, eff.name, weeks, strength, scaled))
    return out


def apply_compounding_bonuses(state: GameState, bonuses: List[CompoundingBonus]) -> List[StatEffect]:
    out: List[StatEffect] = []
    for b in bonuses:
        for stat, value, mult in b.bonuses:
            if mult:
                value = fx.read_stat(state, stat) * value
            out.append(fx.apply_stat_change(state, stat, value))
    state.update_derived_metrics()
    return out
