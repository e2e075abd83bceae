"""engine.pipeline

Core week flow (headless).

Responsibilities:
- Validate a submitted turn (focus budget, unlocked actions) before touching state
- Run the fixed per-week order: actions -> synergies -> specialization ->
  compounding -> economy -> escape velocity -> market/competitors ->
  progression -> advance week -> insights/warnings -> next week's events
- Resolve dilemma choices

Entry points take a GameState and return a new one; the caller's object is
never mutated. This layer is UI-agnostic.
"""

from __future__ import annotations

import copy
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from core.actions import ACTION_SPECS, Action, ActionResult, action_kinds, resolve_action, total_focus_cost
from core.competitors import update_competitive_landscape
from core.compounding import CompoundingBonus, apply_compounding_bonuses, check_compounding_effects
from core.customers import prune_churned, update_customer_book
from core.economy import apply_churn, update_nps
from core.events import GameEvent, apply_choice_by_index, check_for_events
from core.market import MarketCondition, get_action_effectiveness_modifier, roll_market_conditions
from core.progression import (
    MilestoneEvent,
    SeasonalChallenge,
    apply_unlocks,
    check_milestone_events,
    generate_seasonal_challenge,
)
from core.rng import rng_from
from core.state import ActionHistoryEntry, GameState, new_game
from core.synergies import ActionSynergy, apply_synergy_bonuses, check_action_synergies, detect_specialization_path
from core.victory import Outcome, evaluate_outcome, update_escape_velocity_progress

from content.failure_warnings import DefaultWarningProvider
from content.insights import DefaultInsightProvider
from content.personas import name_unnamed
from content.providers.base import InsightProvider, PersonaProvider, WarningProvider
from content.schemas import FailureWarning, Insight

from .config import EngineConfig

logger = logging.getLogger(__name__)

# stats compared in week logs
LOG_STATS = (
    "week", "bank", "burn", "runway_months", "mrr", "wau", "wau_growth_rate", "churn_rate",
    "morale", "reputation", "nps", "tech_debt", "compliance_risk", "velocity", "momentum",
    "founder_equity", "focus_slots", "team_size", "incident_count",
)


class TurnRejected(ValueError):
    """A submitted turn failed validation; nothing was applied."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


@dataclass
class TurnResult:
    state: GameState
    action_results: List[ActionResult] = field(default_factory=list)
    insights: List[Insight] = field(default_factory=list)
    warnings: List[FailureWarning] = field(default_factory=list)
    compounding_bonuses: List[CompoundingBonus] = field(default_factory=list)
    candidate_events: List[GameEvent] = field(default_factory=list)
    synergies: List[ActionSynergy] = field(default_factory=list)
    active_conditions: List[MarketCondition] = field(default_factory=list)
    newly_unlocked: List[str] = field(default_factory=list)
    milestone: Optional[MilestoneEvent] = None
    seasonal_challenge: Optional[SeasonalChallenge] = None
    specialization: Optional[str] = None
    outcome: Optional[Outcome] = None
    before: Dict[str, Any] = field(default_factory=dict)

    def to_log(self) -> Dict[str, Any]:
        return {
            "week": int(self.before.get("week", self.state.week - 1)),
            "before": dict(self.before),
            "after": stats_snapshot(self.state),
            "actions": [r.to_dict() for r in self.action_results],
            "synergies": [s.id for s in self.synergies],
            "compounding_bonuses": [b.to_dict() for b in self.compounding_bonuses],
            "events": [e.to_dict() for e in self.candidate_events],
            "conditions": [c.to_dict() for c in self.active_conditions],
            "newly_unlocked": list(self.newly_unlocked),
            "milestone": self.milestone.to_dict() if self.milestone else None,
            "seasonal_challenge": self.seasonal_challenge.to_dict() if self.seasonal_challenge else None,
            "specialization": self.specialization,
            "outcome": self.outcome.to_dict() if self.outcome else None,
            "insights": [i.to_dict() for i in self.insights],
            "warnings": [w.to_dict() for w in self.warnings],
        }


def stats_snapshot(state: GameState) -> Dict[str, Any]:
    return {k: getattr(state, k) for k in LOG_STATS}


def _persona_rng(state: GameState, config: EngineConfig) -> random.Random:
    # separate stream so naming never shifts simulation draws
    return rng_from("personas", state.game_id, state.week, base_seed=int(config.base_seed))


def start_game(
    difficulty: str,
    config: Optional[EngineConfig] = None,
    *,
    game_id: Optional[str] = None,
    personas: Optional[PersonaProvider] = None,
) -> GameState:
    config = config or EngineConfig()
    rng = rng_from("start", difficulty, game_id or "", base_seed=int(config.base_seed))
    state = new_game(difficulty, rng, game_id=game_id)
    name_unnamed(state.customers, state.competitors, _persona_rng(state, config), personas)
    logger.info("new game %s (%s)", state.game_id, state.difficulty)
    return state


def validate_turn(state: GameState, actions: Sequence[Action]) -> None:
    """Raise TurnRejected if the turn cannot be applied as submitted."""
    for a in actions:
        if not a.kind or a.kind not in ACTION_SPECS:
            raise TurnRejected(f"unknown action kind: {a.kind!r}")
    cost = total_focus_cost(list(actions))
    if cost > state.focus_slots:
        raise TurnRejected(f"focus budget exceeded: {cost} > {state.focus_slots}")
    unlocked = set(state.unlocked_actions)
    for a in actions:
        if a.kind not in unlocked:
            raise TurnRejected(f"action not unlocked: {a.kind}")


def resolve_turn(
    state: GameState,
    actions: Sequence[Action],
    *,
    config: Optional[EngineConfig] = None,
    rng: Optional[random.Random] = None,
    insights: Optional[InsightProvider] = None,
    warnings: Optional[WarningProvider] = None,
    personas: Optional[PersonaProvider] = None,
) -> TurnResult:
    """Resolve one week. Returns a TurnResult holding the new state.

    Raises TurnRejected (input untouched) on a focus-budget or unlock violation.
    """
    config = config or EngineConfig()
    try:
        validate_turn(state, actions)
    except TurnRejected as e:
        logger.info("turn rejected (game=%s week=%d): %s", state.game_id, state.week, e.reason)
        raise

    previous = copy.deepcopy(state)
    s = copy.deepcopy(state)
    if rng is None:
        rng = rng_from("turn", s.game_id, s.week, base_seed=int(config.base_seed))
    kinds = action_kinds(list(actions))
    before = stats_snapshot(s)

    # 1) actions, in submitted order, scaled by market effectiveness
    results: List[ActionResult] = []
    for a in actions:
        eff = get_action_effectiveness_modifier(a.kind, s.active_market_conditions)
        results.append(resolve_action(s, a, rng, eff))
        logger.debug("action %s eff=%.2f success=%s", a.kind, eff, results[-1].success)
    s.update_derived_metrics()

    # 2) same-turn synergies
    synergies = check_action_synergies(kinds)
    apply_synergy_bonuses(s, synergies)

    # 3) specialization from trailing history + this turn
    s.specialization_path = detect_specialization_path(s.action_history, kinds)
    s.action_history.append(ActionHistoryEntry(week=s.week, actions=list(kinds)))

    # 4) compounding
    bonuses = check_compounding_effects(s, config.compounding_lookback)
    apply_compounding_bonuses(s, bonuses)

    # 5) economy + customer book
    apply_churn(s, s.active_market_conditions)
    update_nps(s)
    churned = update_customer_book(s.customers, nps=s.nps, tech_debt=s.tech_debt, velocity=s.velocity, rng=rng)
    if churned:
        logger.debug("customers churned: %s", [c.id for c in churned])
    prune_churned(s.customers)
    s.update_derived_metrics()

    # 6) escape velocity gates
    update_escape_velocity_progress(s)

    # 7) market conditions + rival moves
    roll_market_conditions(s, rng)
    update_competitive_landscape(s.competitors, week=s.week, player_velocity=s.velocity, rng=rng)

    # 8) progression
    newly_unlocked = apply_unlocks(s)
    milestone = check_milestone_events(s)
    seasonal = generate_seasonal_challenge(s.week)

    # 9) advance the week
    s.advance_week(rng, history_limit=config.history_limit, action_history_limit=config.action_history_limit)
    name_unnamed(s.customers, s.competitors, _persona_rng(s, config), personas)

    outcome = evaluate_outcome(s, config.victory_streak_weeks)
    if outcome is not None:
        logger.info("game %s ended week %d: %s (%s)", s.game_id, s.week, outcome.kind, outcome.reason)

    # 10) collaborators
    insight_items = (insights or DefaultInsightProvider()).generate_insights(previous, s, cap=config.insight_cap)
    warning_items = (warnings or DefaultWarningProvider()).generate_warnings(previous, s, cap=config.insight_cap)

    # 11) next week's events
    events = check_for_events(s, rng, max_events=config.max_events_per_week)

    return TurnResult(
        state=s,
        action_results=results,
        insights=list(insight_items)[: config.insight_cap],
        warnings=list(warning_items)[: config.insight_cap],
        compounding_bonuses=bonuses,
        candidate_events=events,
        synergies=synergies,
        active_conditions=list(s.active_market_conditions),
        newly_unlocked=newly_unlocked,
        milestone=milestone,
        seasonal_challenge=seasonal,
        specialization=s.specialization_path,
        outcome=outcome,
        before=before,
    )


def apply_choice(
    state: GameState,
    event: GameEvent,
    choice_index: int,
    *,
    rng: Optional[random.Random] = None,
    config: Optional[EngineConfig] = None,
) -> GameState:
    """Apply a dilemma choice to a copy of state.

    Raises core.events.InvalidChoice if the index is out of range or the event
    is not a dilemma.
    """
    config = config or EngineConfig()
    s = copy.deepcopy(state)
    if rng is None:
        rng = rng_from("choice", s.game_id, s.week, event.id, int(choice_index), base_seed=int(config.base_seed))
    apply_choice_by_index(s, event, choice_index, rng)
    return s
