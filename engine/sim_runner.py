"""engine.sim_runner

Headless runner for quick sanity checks.

This keeps tests deterministic and CI-friendly: a tiny scripted policy picks
actions each week and every dilemma is resolved with its first choice.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from core.actions import Action
from core.modes import INDIE_BOOTSTRAP
from core.state import GameState

from .config import EngineConfig
from .logging import make_run_export
from .pipeline import apply_choice, resolve_turn, start_game


@dataclass
class ScriptedPolicy:
    """Deterministic founder for tests. Fills focus slots from a priority list."""

    refactor_above: float = 50.0
    break_below: float = 50.0
    raise_below_runway: float = 6.0

    def choose(self, state: GameState) -> List[Action]:
        wanted: List[Action] = []
        if state.morale < self.break_below:
            wanted.append(Action.of("TakeBreak"))
        if state.runway_months < self.raise_below_runway:
            wanted.append(Action.of("Fundraise"))
        if state.tech_debt > self.refactor_above:
            wanted.append(Action.of("RefactorCode", depth="Medium"))
        if state.incident_count > 0:
            wanted.append(Action.of("IncidentResponse"))
        wanted.append(Action.of("ShipFeature", quality="Balanced"))
        wanted.append(Action.of("FounderLedSales", call_count=5))
        wanted.append(Action.of("ContentLaunch"))

        unlocked = set(state.unlocked_actions)
        budget = state.focus_slots
        out: List[Action] = []
        for a in wanted:
            if a.kind in unlocked and a.focus_cost <= budget:
                out.append(a)
                budget -= a.focus_cost
        return out


def run_headless_sim(weeks: int = 12, difficulty: str = INDIE_BOOTSTRAP, seed: int = 123) -> Dict[str, Any]:
    """Run a deterministic simulation and return summary."""
    cfg = EngineConfig(base_seed=int(seed))
    state = start_game(difficulty, cfg, game_id=f"sim-{int(seed)}")
    initial = state
    policy = ScriptedPolicy()
    logs: List[Dict[str, Any]] = []
    outcome = None

    for _ in range(int(weeks)):
        result = resolve_turn(state, policy.choose(state), config=cfg)
        state = result.state
        for ev in result.candidate_events:
            if ev.is_dilemma:
                state = apply_choice(state, ev, 0, config=cfg)
        logs.append(result.to_log())
        if result.outcome is not None:
            outcome = result.outcome
            break

    return {
        "weeks": len(logs),
        "final": state,
        "outcome": outcome.to_dict() if outcome else None,
        "logs": logs,
        "export": make_run_export(seed=int(seed), config=cfg.to_dict(), initial_state=initial, week_logs=logs),
    }
