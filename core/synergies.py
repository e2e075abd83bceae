"""
core.synergies
Same-turn action combinations and long-run specialization.

Detection is pure: it only looks at the set of action kinds submitted in a turn
(parameters ignored). Bonuses are applied in one batch after every action has
resolved.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from . import effects as fx
from .effects import StatEffect
from .state import ActionHistoryEntry, GameState, clamp

SPECIALIZATION_WINDOW = 8
SPECIALIZATION_THRESHOLD = 0.6

PRODUCT_EXCELLENCE = "ProductExcellence"
GROWTH_HACKING = "GrowthHacking"
OPERATIONAL_EFFICIENCY = "OperationalEfficiency"
CUSTOMER_OBSESSED = "CustomerObsessed"

CATEGORIES: Dict[str, str] = {
    "ShipFeature": "product",
    "RefactorCode": "product",
    "RunExperiment": "product",
    "FounderLedSales": "growth",
    "ContentLaunch": "growth",
    "DevRel": "growth",
    "PaidAds": "growth",
    "ComplianceWork": "ops",
    "IncidentResponse": "ops",
    "ProcessImprovement": "ops",
    "Hire": "team",
    "Coach": "team",
    "Fire": "team",
    # TakeBreak / Fundraise count toward the total only
}


@dataclass(frozen=True)
class SynergyBonus:
    stat_name: str
    value: float
    multiplicative: bool = False


@dataclass(frozen=True)
class ActionSynergy:
    id: str
    name: str
    required: FrozenSet[str]
    bonuses: Tuple[SynergyBonus, ...]

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "required": sorted(self.required),
            "bonuses": [
                {"stat_name": b.stat_name, "value": float(b.value), "multiplicative": bool(b.multiplicative)}
                for b in self.bonuses
            ],
        }


def _syn(sid: str, name: str, kinds: Iterable[str], *bonuses: SynergyBonus) -> ActionSynergy:
    return ActionSynergy(id=sid, name=name, required=frozenset(kinds), bonuses=tuple(bonuses))


def _add(stat: str, value: float) -> SynergyBonus:
    return SynergyBonus(stat, value, False)


def _mul(stat: str, value: float) -> SynergyBonus:
    return SynergyBonus(stat, value, True)


SYNERGY_CATALOG: Tuple[ActionSynergy, ...] = (
    _syn("launch_momentum", "Launch Momentum", ["ShipFeature", "ContentLaunch"], _mul(fx.WAU, 0.15)),
    _syn("product_credibility", "Product Credibility", ["ShipFeature", "DevRel"], _add(fx.REPUTATION, 10.0), _mul(fx.WAU, 0.05)),
    _syn("feature_launch", "Feature Launch Campaign", ["ShipFeature", "PaidAds"], _mul(fx.WAU, 0.2), _mul(fx.BURN, -0.1)),
    _syn("engineering_excellence", "Engineering Excellence", ["RefactorCode", "Coach"], _add(fx.VELOCITY, 0.2)),
    _syn("technical_foundation", "Technical Foundation", ["RefactorCode", "ProcessImprovement"], _add(fx.VELOCITY, 0.15), _add(fx.TECH_DEBT, -10.0)),
    _syn("data_driven_content", "Data-Driven Content", ["RunExperiment", "ContentLaunch"], _mul(fx.REPUTATION, 0.1)),
    _syn("credibility_boost", "Credibility Boost", ["FounderLedSales", "DevRel"], _add(fx.REPUTATION, 10.0)),
    _syn("sales_team", "Sales Team Building", ["FounderLedSales", "Coach"], _mul(fx.MRR, 0.1)),
    _syn("community_building", "Community Building", ["ContentLaunch", "DevRel"], _mul(fx.WAU, 0.2), _add(fx.REPUTATION, 15.0)),
    _syn("integrated_marketing", "Integrated Marketing", ["ContentLaunch", "PaidAds"], _mul(fx.WAU, 0.5)),
    _syn("full_funnel", "Full Funnel", ["DevRel", "PaidAds"], _mul(fx.WAU, 0.25)),
    _syn("team_development", "Team Development", ["Hire", "Coach"], _add(fx.VELOCITY, 0.15), _add(fx.MORALE, 10.0)),
    _syn("scalable_operations", "Scalable Operations", ["Hire", "ProcessImprovement"], _mul(fx.BURN, -0.15), _add(fx.VELOCITY, 0.1)),
    _syn("regulatory_excellence", "Regulatory Excellence", ["ComplianceWork", "ProcessImprovement"], _add(fx.COMPLIANCE_RISK, -20.0)),
    _syn("incident_prevention", "Incident Prevention", ["IncidentResponse", "ProcessImprovement"], _add(fx.TECH_DEBT, -5.0)),
    _syn("growth_capital", "Growth Capital", ["Fundraise", "Hire"], _mul(fx.VELOCITY, 0.2)),
    _syn("marketing_budget", "Marketing Budget", ["Fundraise", "PaidAds"], _mul(fx.WAU, 0.3)),
    _syn("founder_wellness", "Founder Wellness", ["TakeBreak", "Coach"], _add(fx.MORALE, 20.0), _add(fx.REPUTATION, 5.0)),
    _syn("team_restructuring", "Team Restructuring", ["Fire", "Hire"], _add(fx.VELOCITY, 0.1), _add(fx.MORALE, -5.0)),
    _syn("optimized_ads", "Optimized Ads", ["RunExperiment", "PaidAds"], _mul(fx.WAU, 0.15)),
)


def check_action_synergies(kinds: Iterable[str]) -> List[ActionSynergy]:
    present = frozenset(kinds)
    return [s for s in SYNERGY_CATALOG if s.required <= present]


def _apply_bonus(state: GameState, bonus: SynergyBonus) -> StatEffect:
    stat = bonus.stat_name
    attr = fx.stat_attr(stat)
    old = float(getattr(state, attr))
    new = old * (1.0 + bonus.value) if bonus.multiplicative else old + bonus.value

    if stat == fx.WAU:
        state.wau = max(0, int(round(new)))
    elif stat in (fx.MRR, fx.BURN):
        setattr(state, attr, max(0.0, new))
    elif stat == fx.VELOCITY:
        state.velocity = clamp(new, 0.0, 5.0)
    else:
        setattr(state, attr, clamp(new, 0.0, 100.0))

    final = float(getattr(state, attr))
    return StatEffect(stat, old, final, final - old)


def apply_synergy_bonuses(state: GameState, synergies: List[ActionSynergy]) -> List[StatEffect]:
    out: List[StatEffect] = []
    for syn in synergies:
        for bonus in syn.bonuses:
            out.append(_apply_bonus(state, bonus))
    state.update_derived_metrics()
    return out


def calculate_action_combo_score(synergies: List[ActionSynergy]) -> float:
    total = sum(b.value for s in synergies for b in s.bonuses)
    return min(2.0, 0.3 * len(synergies) + 0.1 * total)


def detect_specialization_path(
    action_history: List[ActionHistoryEntry],
    current_kinds: Iterable[str],
    window: int = SPECIALIZATION_WINDOW,
) -> Optional[str]:
    """Classify the trailing window of actions (plus this turn) into a path."""
    kinds: List[str] = []
    for entry in action_history[-window:] if window > 0 else []:
        kinds.extend(entry.actions)
    kinds.extend(current_kinds)
    if not kinds:
        return None

    counts = {"product": 0, "growth": 0, "ops": 0, "team": 0}
    for k in kinds:
        cat = CATEGORIES.get(k)
        if cat:
            counts[cat] += 1
    total = float(len(kinds))
    share = {k: v / total for k, v in counts.items()}

    if share["product"] >= SPECIALIZATION_THRESHOLD:
        return PRODUCT_EXCELLENCE
    if share["growth"] >= SPECIALIZATION_THRESHOLD:
        return GROWTH_HACKING
    if share["ops"] >= SPECIALIZATION_THRESHOLD:
        return OPERATIONAL_EFFICIENCY
    if share["growth"] + share["team"] * 0.5 >= SPECIALIZATION_THRESHOLD:
        return CUSTOMER_OBSESSED
    return None
