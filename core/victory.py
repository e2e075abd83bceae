"""
core.victory
Escape-velocity tracking and end-of-game detection.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .state import GameState

VICTORY_STREAK_WEEKS = 12

OUT_OF_MONEY = "OutOfMoney"
FOUNDER_BURNOUT = "FounderBurnout"
REPUTATION_DESTROYED = "ReputationDestroyed"
ESCAPE_VELOCITY = "EscapeVelocity"
ACQUIRED = "Acquired"

DEFEAT_ORDER = (OUT_OF_MONEY, FOUNDER_BURNOUT, REPUTATION_DESTROYED)


@dataclass(frozen=True)
class Outcome:
    kind: str  # "victory" | "defeat" | "acquired"
    reason: str
    week: int

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "reason": self.reason, "week": int(self.week)}


def update_escape_velocity_progress(state: GameState) -> int:
    """Recompute the four gates from the current state; returns the streak."""
    p = state.escape_velocity_progress
    p.revenue_covers_burn = state.mrr >= state.burn
    p.growth_sustained = state.wau_growth_rate >= 10.0
    p.customer_love = state.nps >= 30.0
    p.founder_healthy = state.morale > 40.0

    if p.all_conditions_met():
        p.streak_weeks += 1
    else:
        p.streak_weeks = 0
    return p.streak_weeks


def check_victory(state: GameState, streak_weeks: int = VICTORY_STREAK_WEEKS) -> bool:
    return state.escape_velocity_progress.streak_weeks >= streak_weeks


def check_defeat_conditions(state: GameState) -> List[str]:
    """Every defeat predicate that holds, most severe first."""
    out: List[str] = []
    if state.bank <= 0.0 or state.runway_months <= 0.0:
        out.append(OUT_OF_MONEY)
    if state.morale <= 0.0:
        out.append(FOUNDER_BURNOUT)
    if state.reputation <= 10.0:
        out.append(REPUTATION_DESTROYED)
    return out


def evaluate_outcome(state: GameState, streak_weeks: int = VICTORY_STREAK_WEEKS) -> Optional[Outcome]:
    """Single resolved outcome for the week, or None while the game goes on.

    Defeat wins over everything else; an accepted acquisition wins over
    escape velocity.
    """
    defeats = check_defeat_conditions(state)
    if defeats:
        return Outcome("defeat", defeats[0], state.week)
    if state.outcome == ACQUIRED:
        return Outcome("acquired", ACQUIRED, state.week)
    if check_victory(state, streak_weeks):
        return Outcome("victory", ESCAPE_VELOCITY, state.week)
    return None
