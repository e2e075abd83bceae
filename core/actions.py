"""
core.actions
Player actions and their bounded-random effect formulas.

Each action kind is a stable string key. Parameters live on the Action record
and are normalized against ACTION_SPECS (defaults + allowed values).

The resolver never checks the focus budget; the turn pipeline does that before
anything is applied.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Tuple

from . import effects as fx
from .customers import new_customer
from .effects import StatEffect
from .market import calculate_market_adjusted_metric
from .rng import chance
from .state import GameState, clamp

SHIP_FEATURE = "ShipFeature"
FOUNDER_LED_SALES = "FounderLedSales"
HIRE = "Hire"
FUNDRAISE = "Fundraise"
TAKE_BREAK = "TakeBreak"
REFACTOR_CODE = "RefactorCode"
RUN_EXPERIMENT = "RunExperiment"
CONTENT_LAUNCH = "ContentLaunch"
DEV_REL = "DevRel"
PAID_ADS = "PaidAds"
COACH = "Coach"
FIRE = "Fire"
COMPLIANCE_WORK = "ComplianceWork"
INCIDENT_RESPONSE = "IncidentResponse"
PROCESS_IMPROVEMENT = "ProcessImprovement"


@dataclass(frozen=True)
class ActionSpec:
    kind: str
    focus_cost: int
    defaults: Mapping[str, Any] = field(default_factory=dict)
    choices: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)


ACTION_SPECS: Dict[str, ActionSpec] = {
    SHIP_FEATURE: ActionSpec(SHIP_FEATURE, 1, {"quality": "Balanced"}, {"quality": ("Quick", "Balanced", "Polish")}),
    FOUNDER_LED_SALES: ActionSpec(FOUNDER_LED_SALES, 1, {"call_count": 5}),
    HIRE: ActionSpec(HIRE, 2),
    FUNDRAISE: ActionSpec(FUNDRAISE, 2, {"target": 500_000.0}),
    TAKE_BREAK: ActionSpec(TAKE_BREAK, 1),
    REFACTOR_CODE: ActionSpec(REFACTOR_CODE, 1, {"depth": "Surface"}, {"depth": ("Surface", "Medium", "Deep")}),
    RUN_EXPERIMENT: ActionSpec(RUN_EXPERIMENT, 1, {"category": "Pricing"}, {"category": ("Pricing", "Onboarding", "Channel")}),
    CONTENT_LAUNCH: ActionSpec(
        CONTENT_LAUNCH, 1, {"content_type": "BlogPost"}, {"content_type": ("BlogPost", "Tutorial", "CaseStudy", "Video")}
    ),
    DEV_REL: ActionSpec(
        DEV_REL, 2, {"event_type": "Conference"}, {"event_type": ("Conference", "Podcast", "OpenSource", "Workshop")}
    ),
    PAID_ADS: ActionSpec(
        PAID_ADS, 1, {"budget": 5_000.0, "channel": "Social"}, {"channel": ("Google", "Social", "Display", "Influencer")}
    ),
    COACH: ActionSpec(COACH, 1, {"focus": "Skills"}, {"focus": ("Skills", "Morale", "Alignment", "Performance")}),
    FIRE: ActionSpec(FIRE, 1, {"reason": "Performance"}, {"reason": ("Performance", "Culture", "Budget")}),
    COMPLIANCE_WORK: ActionSpec(COMPLIANCE_WORK, 1, {"hours": 4}),
    INCIDENT_RESPONSE: ActionSpec(INCIDENT_RESPONSE, 1),
    PROCESS_IMPROVEMENT: ActionSpec(PROCESS_IMPROVEMENT, 1),
}

ALL_ACTION_KINDS = tuple(ACTION_SPECS.keys())


@dataclass(frozen=True)
class Action:
    kind: str
    params: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def of(cls, kind: str, **params: Any) -> "Action":
        """Build a validated action, filling parameter defaults."""
        spec = ACTION_SPECS.get(kind)
        if spec is None:
            raise ValueError(f"Unknown action kind: {kind}")
        unknown = set(params) - set(spec.defaults)
        if unknown:
            raise ValueError(f"{kind}: unknown parameters {sorted(unknown)}")
        merged = {**dict(spec.defaults), **params}
        for name, allowed in spec.choices.items():
            if merged[name] not in allowed:
                raise ValueError(f"{kind}: {name} must be one of {allowed}")
        for name in ("call_count", "hours"):
            if name in merged and int(merged[name]) < 0:
                raise ValueError(f"{kind}: {name} must be >= 0")
        for name in ("target", "budget"):
            if name in merged and float(merged[name]) < 0:
                raise ValueError(f"{kind}: {name} must be >= 0")
        return cls(kind=kind, params=merged)

    @property
    def focus_cost(self) -> int:
        return focus_cost(self.kind)

    def param(self, name: str) -> Any:
        if name in self.params:
            return self.params[name]
        return ACTION_SPECS[self.kind].defaults[name]

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "params": dict(self.params)}

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Action":
        return cls.of(str(d.get("kind")), **dict(d.get("params") or {}))


def focus_cost(kind: str) -> int:
    spec = ACTION_SPECS.get(kind)
    if spec is None:
        raise ValueError(f"Unknown action kind: {kind}")
    return spec.focus_cost


def total_focus_cost(actions: List[Action]) -> int:
    return sum(a.focus_cost for a in actions)


@dataclass(frozen=True)
class ActionResult:
    kind: str
    success: bool
    message: str
    effects: List[StatEffect]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "success": bool(self.success),
            "message": self.message,
            "effects": [e.to_dict() for e in self.effects],
        }


Resolver = Callable[[GameState, Action, random.Random, float, List[StatEffect]], Tuple[bool, str]]


def _u(rng: random.Random, lo: float, hi: float) -> float:
    return rng.uniform(lo, hi)


# -------------------------
# Core five
# -------------------------

# quality -> ((wau base, var), (debt base, var), (morale base, var))
SHIP_TEMPLATES: Dict[str, Tuple[Tuple[float, float], Tuple[float, float], Tuple[float, float]]] = {
    "Quick": ((3.0, 1.5), (6.0, 2.0), (-1.0, 0.5)),
    "Balanced": ((4.0, 1.5), (2.0, 1.0), (1.0, 0.5)),
    "Polish": ((2.0, 1.0), (-3.0, 1.0), (3.0, 1.0)),
}


def _ship_feature(state: GameState, action: Action, rng: random.Random, eff: float, out: List[StatEffect]) -> Tuple[bool, str]:
    quality = action.param("quality")
    (wb, wv), (db, dv), (mb, mv) = SHIP_TEMPLATES[quality]
    boost = rng.uniform(wb - wv, wb + wv) * eff
    debt = rng.uniform(db - dv, db + dv)
    morale = rng.uniform(mb - mv, mb + mv)

    old_wau = state.wau
    state.wau = max(0, int(state.wau * (1.0 + boost / 100.0)))
    out.append(StatEffect(fx.WAU, float(old_wau), float(state.wau), float(state.wau - old_wau)))
    out.append(fx.apply_stat_change(state, fx.TECH_DEBT, debt))
    out.append(fx.apply_stat_change(state, fx.MORALE, morale))

    old_vel = state.velocity
    state.velocity = 1.0 - clamp(state.tech_debt, 0.0, 100.0) / 200.0
    out.append(StatEffect(fx.VELOCITY, old_vel, state.velocity, state.velocity - old_vel))
    return True, f"Shipped a {quality.lower()} feature (+{boost:.1f}% WAU)"


def _founder_led_sales(state: GameState, action: Action, rng: random.Random, eff: float, out: List[StatEffect]) -> Tuple[bool, str]:
    calls = int(action.param("call_count"))
    p = 0.05 + state.reputation / 200.0
    gained = 0.0
    deals = 0
    for _ in range(calls):
        if not chance(rng, p):
            continue
        deal = 500.0 * (0.8 + rng.uniform(0.0, 0.4)) * eff
        gained += deal
        deals += 1
        state.customers.append(
            new_customer(customer_id=f"cus-{state.next_customer_id}", mrr=deal, week=state.week, rng=rng)
        )
        state.next_customer_id += 1
    if gained > 0:
        out.append(fx.apply_stat_change(state, fx.MRR, gained))
    out.append(fx.apply_stat_change(state, fx.MORALE, -0.5 * calls))
    out.append(fx.apply_stat_change(state, fx.REPUTATION, 1.0))
    return gained > 0, f"Closed {deals} of {calls} calls (+${gained:,.0f} MRR)"


def _hire(state: GameState, action: Action, rng: random.Random, eff: float, out: List[StatEffect]) -> Tuple[bool, str]:
    cost = calculate_market_adjusted_metric(10_000.0, "hiring_cost", state.active_market_conditions)
    velocity = calculate_market_adjusted_metric(0.1, "hire_velocity_bonus", state.active_market_conditions) * eff
    out.append(fx.apply_stat_change(state, fx.BURN, cost))
    out.append(fx.apply_stat_change(state, fx.VELOCITY, velocity))
    out.append(fx.apply_stat_change(state, fx.MORALE, 5.0))
    out.append(fx.apply_stat_change(state, fx.TEAM_SIZE, 1))
    return True, f"Hired a new team member (team of {state.team_size})"


def fundraise_probability(state: GameState) -> float:
    """Pre-clamp success probability: 0.3 + rep/200 + momentum/100."""
    return 0.3 + state.reputation / 200.0 + state.momentum / 100.0


def _fundraise(state: GameState, action: Action, rng: random.Random, eff: float, out: List[StatEffect]) -> Tuple[bool, str]:
    target = float(action.param("target"))
    p = calculate_market_adjusted_metric(fundraise_probability(state), "fundraising_success", state.active_market_conditions)
    p = clamp(p, 0.0, 0.8)
    if chance(rng, p):
        raised = target * eff
        out.append(fx.apply_stat_change(state, fx.BANK, raised))
        out.append(fx.apply_stat_change(state, fx.FOUNDER_EQUITY, -(raised / 5_000_000.0) * 20.0))
        return True, f"Raised ${raised:,.0f}"
    out.append(fx.apply_stat_change(state, fx.MORALE, -10.0))
    return False, "Investors passed on the round"


def _take_break(state: GameState, action: Action, rng: random.Random, eff: float, out: List[StatEffect]) -> Tuple[bool, str]:
    out.append(fx.apply_stat_change(state, fx.MORALE, 15.0 * eff))
    out.append(fx.apply_stat_change(state, fx.WAU_GROWTH, -2.0))
    return True, "Took a week to recharge"


# -------------------------
# Unlockable actions
# -------------------------

REFACTOR_TABLE = {"Surface": (10.0, 0.05, 2.0), "Medium": (20.0, 0.12, 5.0), "Deep": (35.0, 0.2, 10.0)}


def _refactor_code(state: GameState, action: Action, rng: random.Random, eff: float, out: List[StatEffect]) -> Tuple[bool, str]:
    depth = action.param("depth")
    base, vel, morale = REFACTOR_TABLE[depth]
    debt_mod = 1.2 if state.tech_debt > 50.0 else 1.0
    reduction = base * debt_mod * _u(rng, 0.8, 1.2) * eff
    out.append(fx.apply_stat_change(state, fx.TECH_DEBT, -reduction))
    out.append(fx.apply_stat_change(state, fx.VELOCITY, vel * _u(rng, 0.9, 1.1) * eff))
    out.append(fx.apply_stat_change(state, fx.MORALE, -morale * _u(rng, 0.9, 1.1)))
    return True, f"{depth} refactor paid down {reduction:.1f} debt"


def _run_experiment(state: GameState, action: Action, rng: random.Random, eff: float, out: List[StatEffect]) -> Tuple[bool, str]:
    category = action.param("category")
    if not chance(rng, 0.6):
        out.append(fx.apply_stat_change(state, fx.MORALE, -2.0))
        return False, f"{category} experiment failed"
    if category == "Pricing":
        out.append(fx.apply_stat_change(state, fx.MRR, state.mrr * 0.05 * _u(rng, 0.8, 1.2) * eff))
    elif category == "Onboarding":
        out.append(fx.apply_stat_change(state, fx.WAU, state.wau * 0.03 * _u(rng, 0.8, 1.2) * eff))
        out.append(fx.apply_stat_change(state, fx.CHURN_RATE, -state.churn_rate * 0.05))
    else:
        out.append(fx.apply_stat_change(state, fx.REPUTATION, 5.0 * _u(rng, 0.8, 1.2) * eff))
    return True, f"{category} experiment worked"


CONTENT_TABLE = {"BlogPost": (2.0, 2.0), "Tutorial": (4.0, 3.0), "CaseStudy": (3.0, 4.0), "Video": (5.0, 5.0)}


def _content_launch(state: GameState, action: Action, rng: random.Random, eff: float, out: List[StatEffect]) -> Tuple[bool, str]:
    content_type = action.param("content_type")
    wau_base, rep_base = CONTENT_TABLE[content_type]
    wau_gain = wau_base * (0.8 + state.reputation / 100.0) * _u(rng, 0.8, 1.2) * eff
    out.append(fx.apply_stat_change(state, fx.WAU, wau_gain))
    out.append(fx.apply_stat_change(state, fx.REPUTATION, rep_base * _u(rng, 0.9, 1.1) * eff))
    return True, f"Published a {content_type}"


DEVREL_TABLE = {"Conference": 12.0, "Podcast": 8.0, "OpenSource": 6.0, "Workshop": 10.0}


def _dev_rel(state: GameState, action: Action, rng: random.Random, eff: float, out: List[StatEffect]) -> Tuple[bool, str]:
    event_type = action.param("event_type")
    rep_gain = DEVREL_TABLE[event_type] * _u(rng, 0.9, 1.1) * eff
    out.append(fx.apply_stat_change(state, fx.REPUTATION, rep_gain))
    out.append(fx.apply_stat_change(state, fx.WAU, rep_gain * 0.5 * _u(rng, 0.8, 1.2)))
    out.append(fx.apply_stat_change(state, fx.MORALE, 5.0 * _u(rng, 0.9, 1.1) * eff))
    return True, f"Showed up at a {event_type}"


AD_CHANNELS = {"Google": 0.8, "Social": 1.0, "Display": 0.6, "Influencer": 1.2}


def _paid_ads(state: GameState, action: Action, rng: random.Random, eff: float, out: List[StatEffect]) -> Tuple[bool, str]:
    budget = float(action.param("budget"))
    channel = action.param("channel")
    gain = AD_CHANNELS[channel] * _u(rng, 0.8, 1.2) * budget / 10_000.0 * eff
    out.append(fx.apply_stat_change(state, fx.WAU, gain))
    out.append(fx.apply_stat_change(state, fx.BANK, -budget))
    return gain > 0, f"Spent ${budget:,.0f} on {channel} ads"


COACH_TABLE = {"Skills": (0.08, 2.0), "Morale": (0.02, 8.0), "Alignment": (0.05, 4.0), "Performance": (0.1, 3.0)}


def _coach(state: GameState, action: Action, rng: random.Random, eff: float, out: List[StatEffect]) -> Tuple[bool, str]:
    focus = action.param("focus")
    vel, morale = COACH_TABLE[focus]
    out.append(fx.apply_stat_change(state, fx.VELOCITY, vel * _u(rng, 0.9, 1.1) * eff))
    out.append(fx.apply_stat_change(state, fx.MORALE, morale * _u(rng, 0.9, 1.1) * eff))
    return True, f"Coached the team on {focus.lower()}"


FIRE_TABLE = {"Performance": (-8.0, -0.05), "Culture": (-12.0, -0.08), "Budget": (-5.0, -0.02)}


def _fire(state: GameState, action: Action, rng: random.Random, eff: float, out: List[StatEffect]) -> Tuple[bool, str]:
    if state.team_size < 2:
        return False, "No one left to let go"
    reason = action.param("reason")
    morale, vel = FIRE_TABLE[reason]
    saved = min(state.burn, 8_000.0 * _u(rng, 0.8, 1.2) * eff)
    out.append(fx.apply_stat_change(state, fx.BURN, -saved))
    out.append(fx.apply_stat_change(state, fx.MORALE, morale))
    out.append(fx.apply_stat_change(state, fx.VELOCITY, vel))
    out.append(fx.apply_stat_change(state, fx.TEAM_SIZE, -1))
    return True, f"Let someone go ({reason.lower()})"


def _compliance_work(state: GameState, action: Action, rng: random.Random, eff: float, out: List[StatEffect]) -> Tuple[bool, str]:
    hours = int(action.param("hours"))
    out.append(fx.apply_stat_change(state, fx.COMPLIANCE_RISK, -hours * 2.0 * _u(rng, 0.9, 1.1) * eff))
    out.append(fx.apply_stat_change(state, fx.MORALE, -hours * 0.3 * _u(rng, 0.9, 1.1)))
    return True, f"Spent {hours}h on compliance"


def _incident_response(state: GameState, action: Action, rng: random.Random, eff: float, out: List[StatEffect]) -> Tuple[bool, str]:
    out.append(fx.apply_stat_change(state, fx.REPUTATION, -5.0 * _u(rng, 0.8, 1.2) / eff))
    out.append(fx.apply_stat_change(state, fx.MORALE, -15.0 * _u(rng, 0.9, 1.1) / eff))
    out.append(fx.apply_stat_change(state, fx.INCIDENTS, -1))
    return True, "Handled the incident"


def _process_improvement(state: GameState, action: Action, rng: random.Random, eff: float, out: List[StatEffect]) -> Tuple[bool, str]:
    out.append(fx.apply_stat_change(state, fx.VELOCITY, 0.08 * _u(rng, 0.9, 1.1) * eff))
    out.append(fx.apply_stat_change(state, fx.MORALE, 3.0 * _u(rng, 0.9, 1.1) * eff))
    return True, "Tightened up the process"


RESOLVERS: Dict[str, Resolver] = {
    SHIP_FEATURE: _ship_feature,
    FOUNDER_LED_SALES: _founder_led_sales,
    HIRE: _hire,
    FUNDRAISE: _fundraise,
    TAKE_BREAK: _take_break,
    REFACTOR_CODE: _refactor_code,
    RUN_EXPERIMENT: _run_experiment,
    CONTENT_LAUNCH: _content_launch,
    DEV_REL: _dev_rel,
    PAID_ADS: _paid_ads,
    COACH: _coach,
    FIRE: _fire,
    COMPLIANCE_WORK: _compliance_work,
    INCIDENT_RESPONSE: _incident_response,
    PROCESS_IMPROVEMENT: _process_improvement,
}


def resolve_action(state: GameState, action: Action, rng: random.Random, effectiveness: float = 1.0) -> ActionResult:
    """Apply one action to state (mutates) and return its effect records.

    `effectiveness` scales the gains an action produces; costs it pays
    (money, morale, debt) are unaffected.
    """
    resolver = RESOLVERS.get(action.kind)
    if resolver is None:
        raise ValueError(f"Unknown action kind: {action.kind}")
    out: List[StatEffect] = []
    success, message = resolver(state, action, rng, max(float(effectiveness), 1e-9), out)
    return ActionResult(kind=action.kind, success=bool(success), message=message, effects=out)


def action_kinds(actions: List[Action]) -> List[str]:
    return [a.kind for a in actions]
