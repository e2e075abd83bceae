"""
core.market
Time-boxed global market conditions.

- weighted catalog of 12 conditions, each with named multiplicative modifiers
- weekly aging (saturating decrement, expired conditions dropped) + a 15% roll
- composed metric multipliers and per-action effectiveness lookup
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .rng import chance, weighted_pick
from .state import GameState, clamp

logger = logging.getLogger(__name__)

NEW_CONDITION_PROBABILITY = 0.15
DURATION_RANGE = (4, 8)
NEUTRAL_THREAT = 0.5
EFFECTIVENESS_BOUNDS = (0.5, 2.0)

# weekly points per unit of multiplier deviation
MARKET_DRIFT = {
    "morale": 10.0,
    "reputation": 10.0,
    "compliance_risk": 10.0,
    "velocity": 0.1,
}


@dataclass(frozen=True)
class MarketModifier:
    metric: str
    multiplier: float


@dataclass
class MarketCondition:
    id: str
    duration_weeks: int
    modifiers: List[MarketModifier] = field(default_factory=list)
    started_week: int = 0

    def multiplier_for(self, metric: str) -> float:
        out = 1.0
        for m in self.modifiers:
            if m.metric == metric:
                out *= m.multiplier
        return out

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "duration_weeks": int(self.duration_weeks),
            "started_week": int(self.started_week),
            "modifiers": [{"metric": m.metric, "multiplier": float(m.multiplier)} for m in self.modifiers],
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "MarketCondition":
        cid = str(d.get("id"))
        if cid not in MARKET_CATALOG:
            raise ValueError(f"Unknown market condition: {cid}")
        return cls(
            id=cid,
            duration_weeks=max(0, int(d.get("duration_weeks", 0))),
            started_week=int(d.get("started_week", 0)),
            modifiers=[MarketModifier(str(m["metric"]), float(m["multiplier"])) for m in list(d.get("modifiers") or [])],
        )


@dataclass(frozen=True)
class MarketSpec:
    id: str
    weight: float
    modifiers: Tuple[Tuple[str, float], ...]
    effectiveness: Tuple[Tuple[str, float], ...]
    competitor_scaled: bool = False


MARKET_CATALOG: Dict[str, MarketSpec] = {
    s.id: s
    for s in (
        MarketSpec(
            "BullMarket", 8.0,
            (("fundraising_success", 1.3), ("wau_growth", 1.2), ("burn", 1.15)),
            (("Fundraise", 1.5), ("PaidAds", 1.1)),
        ),
        MarketSpec(
            "Recession", 6.0,
            (("fundraising_success", 0.6), ("wau_growth", 0.9), ("churn_rate", 1.3), ("burn", 0.8)),
            (("Fundraise", 0.6), ("Hire", 0.8)),
        ),
        MarketSpec(
            "CompetitorLaunch", 10.0,
            (("wau_growth", 0.85), ("reputation", 0.9), ("churn_rate", 1.05)),
            (("PaidAds", 0.7), ("ContentLaunch", 0.9)),
            competitor_scaled=True,
        ),
        MarketSpec(
            "TechBoom", 8.0,
            (("hiring_cost", 1.5), ("velocity", 1.2), ("fundraising_success", 1.25)),
            (("Hire", 1.2), ("Fundraise", 1.25)),
        ),
        MarketSpec(
            "RegulationChange", 6.0,
            (("compliance_risk", 1.4), ("velocity", 0.85)),
            (("ComplianceWork", 1.2), ("ShipFeature", 0.9)),
        ),
        MarketSpec(
            "TalentWar", 7.0,
            (("hiring_cost", 1.6), ("morale", 0.9), ("hire_velocity_bonus", 1.2)),
            (("Hire", 0.7), ("Coach", 1.1)),
        ),
        MarketSpec(
            "ViralTrend", 6.0,
            (("wau_growth", 1.4), ("reputation", 1.1)),
            (("ContentLaunch", 1.3), ("PaidAds", 1.2)),
        ),
        MarketSpec(
            "SupplyChainDisruption", 5.0,
            (("velocity", 0.8), ("burn", 1.1)),
            (("ProcessImprovement", 1.1), ("IncidentResponse", 0.9)),
        ),
        MarketSpec(
            "EconomicStimulus", 6.0,
            (("fundraising_success", 1.2), ("wau_growth", 1.1)),
            (("Fundraise", 1.2), ("FounderLedSales", 1.1)),
        ),
        MarketSpec(
            "IndustryConsolidation", 5.0,
            (("fundraising_success", 1.15), ("reputation", 0.95)),
            (("Fundraise", 1.15), ("DevRel", 0.95)),
        ),
        MarketSpec(
            "TechCrunch", 5.0,
            (("reputation", 1.2), ("wau_growth", 1.15)),
            (("ContentLaunch", 1.2), ("DevRel", 1.1)),
        ),
        MarketSpec(
            "DataBreachScare", 5.0,
            (("compliance_risk", 1.3), ("reputation", 0.95)),
            (("ComplianceWork", 1.3), ("IncidentResponse", 1.1)),
        ),
    )
}


def competitor_threat(state: GameState) -> float:
    """0..1 pressure from the most threatening active rival.

    With no active rival the pressure is neutral (0.5), which leaves competitor
    scaled modifiers at their catalog values.
    """
    from .competitors import get_most_threatening_competitor, threat_score

    top = get_most_threatening_competitor(state.competitors)
    if top is None:
        return NEUTRAL_THREAT
    return clamp(threat_score(top) / 100.0, 0.0, 1.0)


def catalog_weights(state: GameState) -> Dict[str, float]:
    """Draw weights for conditions not already active."""
    from .modes import get_mode_spec

    active = {c.id for c in state.active_market_conditions}
    weights: Dict[str, float] = {}
    for cid, spec in MARKET_CATALOG.items():
        if cid in active:
            continue
        w = spec.weight
        if cid == "RegulationChange":
            w *= get_mode_spec(state.difficulty).compliance_burden
        weights[cid] = w
    return weights


def build_condition(spec: MarketSpec, *, duration: int, week: int, threat: float = NEUTRAL_THREAT) -> MarketCondition:
    mods: List[MarketModifier] = []
    for metric, mult in spec.modifiers:
        if spec.competitor_scaled:
            # deviation from neutral grows with rival pressure: 0.5x .. 1.5x
            mult = 1.0 + (mult - 1.0) * (0.5 + threat)
        mods.append(MarketModifier(metric, float(mult)))
    return MarketCondition(id=spec.id, duration_weeks=int(duration), modifiers=mods, started_week=int(week))


def update_market_conditions(conditions: List[MarketCondition]) -> List[str]:
    """Age every condition by one week (in place). Returns ids that expired."""
    expired: List[str] = []
    for c in conditions:
        c.duration_weeks = max(0, int(c.duration_weeks) - 1)
    for c in [c for c in conditions if c.duration_weeks <= 0]:
        expired.append(c.id)
        conditions.remove(c)
    return expired


def generate_market_condition(state: GameState, rng: random.Random) -> Optional[MarketCondition]:
    if not chance(rng, NEW_CONDITION_PROBABILITY):
        return None
    cid = weighted_pick(rng, catalog_weights(state))
    if cid is None:
        return None
    spec = MARKET_CATALOG[cid]
    duration = DURATION_RANGE[0] + rng.randint(0, DURATION_RANGE[1] - DURATION_RANGE[0])
    threat = competitor_threat(state) if spec.competitor_scaled else 0.0
    return build_condition(spec, duration=duration, week=state.week, threat=threat)


def roll_market_conditions(state: GameState, rng: random.Random) -> Tuple[List[str], Optional[MarketCondition]]:
    """Weekly lifecycle: age, drop expired, maybe start a new condition."""
    expired = update_market_conditions(state.active_market_conditions)
    new = generate_market_condition(state, rng)
    if new is not None:
        state.active_market_conditions.append(new)
        logger.info("market condition started: %s for %d weeks", new.id, new.duration_weeks)
    for cid in expired:
        logger.debug("market condition expired: %s", cid)
    return expired, new


def calculate_market_adjusted_metric(base: float, metric: str, conditions: List[MarketCondition]) -> float:
    out = float(base)
    for c in conditions:
        out *= c.multiplier_for(metric)
    return out


def apply_market_drift(state: GameState) -> Dict[str, float]:
    """Nudge bounded stats by one week of market pressure (in place).

    Each stat moves by (multiplier - 1) * its drift scale, so a 0.9 morale
    modifier costs one morale point per week. Returns the applied deltas.
    """
    applied: Dict[str, float] = {}
    for metric, scale in MARKET_DRIFT.items():
        mult = calculate_market_adjusted_metric(1.0, metric, state.active_market_conditions)
        if mult == 1.0:
            continue
        delta = (mult - 1.0) * scale
        setattr(state, metric, getattr(state, metric) + delta)
        applied[metric] = delta
    return applied


def get_action_effectiveness_modifier(action_kind: str, conditions: List[MarketCondition]) -> float:
    out = 1.0
    for c in conditions:
        spec = MARKET_CATALOG.get(c.id)
        if spec is None:
            continue
        for kind, mult in spec.effectiveness:
            if kind == action_kind:
                out *= mult
    return clamp(out, EFFECTIVENESS_BOUNDS[0], EFFECTIVENESS_BOUNDS[1])
