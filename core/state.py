"""
core.state
Core domain data models (UI independent).

GameState is the single mutable aggregate of one session. Subsystems mutate it
during a turn; the engine hands copies across its boundary.
"""

from __future__ import annotations

import math
import random
import uuid
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

if TYPE_CHECKING:
    from .competitors import Competitor
    from .customers import Customer
    from .market import MarketCondition


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


Delta = Dict[str, float]

HISTORY_LIMIT = 52
ACTION_HISTORY_LIMIT = 12
VELOCITY_BAND = (0.1, 3.0)

STARTING_ACTIONS = ["ShipFeature", "FounderLedSales", "Hire", "Fundraise", "TakeBreak"]


@dataclass(frozen=True)
class WeekSnapshot:
    """End-of-week record kept in GameState.history."""
    week: int
    bank: float
    mrr: float
    burn: float
    wau: int
    morale: float
    reputation: float
    momentum: float


@dataclass
class EscapeVelocityProgress:
    revenue_covers_burn: bool = False  # mrr >= burn
    growth_sustained: bool = False     # wau growth >= 10%
    customer_love: bool = False        # nps >= 30
    founder_healthy: bool = False      # morale > 40
    streak_weeks: int = 0

    def all_conditions_met(self) -> bool:
        return self.revenue_covers_burn and self.growth_sustained and self.customer_love and self.founder_healthy


@dataclass(frozen=True)
class ActionHistoryEntry:
    week: int
    actions: List[str]


@dataclass
class GameState:
    """Whole simulation record.

    Bounded stats are kept inside their ranges by update_derived_metrics(),
    which every subsystem calls after mutating.
    """

    game_id: str
    difficulty: str
    week: int = 0

    # financial
    bank: float = 0.0
    burn: float = 0.0           # monthly
    runway_months: float = 0.0  # derived
    focus_slots: int = 3

    # growth
    mrr: float = 0.0
    wau: int = 100
    wau_growth_rate: float = 0.0  # % week over week
    churn_rate: float = 5.0       # monthly %

    # health
    morale: float = 80.0
    reputation: float = 50.0
    nps: float = 0.0

    # product
    tech_debt: float = 10.0
    compliance_risk: float = 20.0
    velocity: float = 1.0

    # ownership
    founder_equity: float = 100.0
    option_pool: float = 0.0

    momentum: float = 0.0  # derived
    escape_velocity_progress: EscapeVelocityProgress = field(default_factory=EscapeVelocityProgress)

    history: List[WeekSnapshot] = field(default_factory=list)
    event_cooldowns: Dict[str, int] = field(default_factory=dict)
    active_market_conditions: List["MarketCondition"] = field(default_factory=list)
    unlocked_actions: List[str] = field(default_factory=lambda: list(STARTING_ACTIONS))
    action_history: List[ActionHistoryEntry] = field(default_factory=list)
    specialization_path: Optional[str] = None

    team_size: int = 1
    incident_count: int = 0
    customers: List["Customer"] = field(default_factory=list)
    next_customer_id: int = 1
    competitors: List["Competitor"] = field(default_factory=list)
    outcome: Optional[str] = None

    # -------------------------
    # Derived metrics
    # -------------------------

    def update_derived_metrics(self) -> None:
        self.runway_months = self.bank / self.burn if self.burn > 0 else math.inf
        self.momentum = (self.wau_growth_rate / 100.0 + 1.0) * self.velocity * (self.morale / 100.0)

        self.morale = clamp(self.morale, 0.0, 100.0)
        self.reputation = clamp(self.reputation, 0.0, 100.0)
        self.tech_debt = clamp(self.tech_debt, 0.0, 100.0)
        self.compliance_risk = clamp(self.compliance_risk, 0.0, 100.0)
        self.churn_rate = clamp(self.churn_rate, 0.0, 100.0)
        self.nps = clamp(self.nps, -100.0, 100.0)
        self.velocity = clamp(self.velocity, VELOCITY_BAND[0], VELOCITY_BAND[1])
        self.wau = max(0, int(self.wau))

    def save_snapshot(self, limit: int = HISTORY_LIMIT) -> WeekSnapshot:
        snap = WeekSnapshot(
            week=int(self.week),
            bank=float(self.bank),
            mrr=float(self.mrr),
            burn=float(self.burn),
            wau=int(self.wau),
            morale=float(self.morale),
            reputation=float(self.reputation),
            momentum=float(self.momentum),
        )
        self.history.append(snap)
        while len(self.history) > limit:
            self.history.pop(0)
        return snap

    def advance_week(
        self,
        rng: random.Random,
        *,
        history_limit: int = HISTORY_LIMIT,
        action_history_limit: int = ACTION_HISTORY_LIMIT,
    ) -> None:
        """Passive weekly economics: cashflow, organic growth, decay, snapshot.

        Active market conditions scale the burn paid this week and the organic
        growth step. The stored burn and growth rate stay market-neutral so a
        condition never compounds into them.
        """
        from .market import apply_market_drift, calculate_market_adjusted_metric
        from .rng import chance

        conds = self.active_market_conditions
        self.week += 1

        # monthly amounts, weekly tick
        self.bank -= calculate_market_adjusted_metric(self.burn, "burn", conds) / 4.0
        self.bank += self.mrr / 4.0

        growth_mult = calculate_market_adjusted_metric(1.0, "wau_growth", conds)
        prev_wau = int(self.wau)
        self.wau = max(0, int(self.wau * (1.0 + self.wau_growth_rate * growth_mult / 100.0)))
        if prev_wau > 0:
            self.wau_growth_rate = (self.wau - prev_wau) / prev_wau * 100.0 / growth_mult

        self.morale -= 0.5
        apply_market_drift(self)
        if self.velocity > 1.2:
            self.tech_debt += 0.5

        if len(self.action_history) > action_history_limit:
            del self.action_history[: len(self.action_history) - action_history_limit]

        if self.tech_debt > 80.0 and chance(rng, 0.1):
            self.incident_count += 1

        self.update_derived_metrics()
        self.save_snapshot(history_limit)

    # -------------------------
    # Serialization
    # -------------------------

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["runway_months"] = None if math.isinf(self.runway_months) else float(self.runway_months)
        d["customers"] = [c.to_dict() for c in self.customers]
        d["competitors"] = [c.to_dict() for c in self.competitors]
        d["active_market_conditions"] = [m.to_dict() for m in self.active_market_conditions]
        return d

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "GameState":
        from .competitors import Competitor
        from .customers import Customer
        from .market import MarketCondition
        from .modes import require_mode

        difficulty = str(d.get("difficulty", ""))
        require_mode(difficulty)

        runway = d.get("runway_months")
        ev = dict(d.get("escape_velocity_progress") or {})
        customers = [Customer.from_dict(c) for c in list(d.get("customers") or [])]
        return cls(
            game_id=str(d.get("game_id") or uuid.uuid4().hex),
            difficulty=difficulty,
            week=int(d.get("week", 0)),
            bank=float(d.get("bank", 0.0)),
            burn=float(d.get("burn", 0.0)),
            runway_months=math.inf if runway is None else float(runway),
            focus_slots=int(d.get("focus_slots", 3)),
            mrr=float(d.get("mrr", 0.0)),
            wau=int(d.get("wau", 0)),
            wau_growth_rate=float(d.get("wau_growth_rate", 0.0)),
            churn_rate=float(d.get("churn_rate", 5.0)),
            morale=float(d.get("morale", 80.0)),
            reputation=float(d.get("reputation", 50.0)),
            nps=float(d.get("nps", 0.0)),
            tech_debt=float(d.get("tech_debt", 10.0)),
            compliance_risk=float(d.get("compliance_risk", 20.0)),
            velocity=float(d.get("velocity", 1.0)),
            founder_equity=float(d.get("founder_equity", 100.0)),
            option_pool=float(d.get("option_pool", 0.0)),
            momentum=float(d.get("momentum", 0.0)),
            escape_velocity_progress=EscapeVelocityProgress(
                revenue_covers_burn=bool(ev.get("revenue_covers_burn", False)),
                growth_sustained=bool(ev.get("growth_sustained", False)),
                customer_love=bool(ev.get("customer_love", False)),
                founder_healthy=bool(ev.get("founder_healthy", False)),
                streak_weeks=int(ev.get("streak_weeks", 0)),
            ),
            history=[WeekSnapshot(**dict(s)) for s in list(d.get("history") or [])],
            event_cooldowns={str(k): int(v) for k, v in dict(d.get("event_cooldowns") or {}).items()},
            active_market_conditions=[MarketCondition.from_dict(m) for m in list(d.get("active_market_conditions") or [])],
            unlocked_actions=[str(a) for a in list(d.get("unlocked_actions") or STARTING_ACTIONS)],
            action_history=[
                ActionHistoryEntry(week=int(e["week"]), actions=[str(a) for a in e["actions"]])
                for e in list(d.get("action_history") or [])
            ],
            specialization_path=d.get("specialization_path"),
            team_size=int(d.get("team_size", 1)),
            incident_count=int(d.get("incident_count", 0)),
            customers=customers,
            next_customer_id=int(d.get("next_customer_id", len(customers) + 1)),
            competitors=[Competitor.from_dict(c) for c in list(d.get("competitors") or [])],
            outcome=d.get("outcome"),
        )


def new_game(difficulty: str, rng: random.Random, *, game_id: Optional[str] = None) -> GameState:
    """Fresh session with difficulty-specific bank, burn and rivals.

    Keep it in core so headless tests and any front end share the same baseline.
    """
    from .competitors import generate_competitors
    from .modes import require_mode

    spec = require_mode(difficulty)
    state = GameState(
        game_id=game_id or uuid.UUID(int=rng.getrandbits(128)).hex,
        difficulty=spec.key,
        bank=float(spec.starting_bank),
        burn=float(spec.starting_burn),
    )
    state.competitors = generate_competitors(spec, 0, rng)
    state.update_derived_metrics()
    state.save_snapshot()
    return state
