"""
core.competitors
Rival companies: funding, feature parity, pricing posture, and the moves they make.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .modes import ModeSpec
from .rng import chance, weighted_pick
from .state import clamp

FUNDING_STAGES = ("Bootstrapped", "Seed", "SeriesA", "SeriesB", "SeriesC", "PublicCompany")
LATE_STAGES = frozenset({"SeriesA", "SeriesB", "SeriesC", "PublicCompany"})

PRICING_STRATEGIES: Dict[str, float] = {
    "Freemium": 40.0,
    "Undercut": 20.0,
    "Premium": 20.0,
    "Enterprise": 15.0,
    "OpenSource": 5.0,
}

ACTION_TYPES = (
    "FeatureLaunch",
    "PricingChange",
    "FundingRound",
    "Acquisition",
    "ProductPivot",
    "MarketingBlitz",
    "TalentPoach",
    "PartnershipAnnouncement",
)

# (lo, hi) total funding per stage
FUNDING_RANGES: Dict[str, tuple] = {
    "Bootstrapped": (0.0, 0.0),
    "Seed": (500_000.0, 2_000_000.0),
    "SeriesA": (5_000_000.0, 15_000_000.0),
    "SeriesB": (20_000_000.0, 50_000_000.0),
    "SeriesC": (50_000_000.0, 100_000_000.0),
    "PublicCompany": (100_000_000.0, 500_000_000.0),
}


@dataclass
class CompetitorAction:
    week: int
    action_type: str
    amount: Optional[float] = None


@dataclass
class Competitor:
    id: str
    funding_stage: str
    feature_parity: float
    pricing_strategy: str
    aggressiveness: float
    total_funding: float
    team_size: int
    market_share: float = 0.0
    last_action_week: int = 0
    action_history: List[CompetitorAction] = field(default_factory=list)
    is_acquired: bool = False
    name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "funding_stage": self.funding_stage,
            "feature_parity": float(self.feature_parity),
            "pricing_strategy": self.pricing_strategy,
            "aggressiveness": float(self.aggressiveness),
            "total_funding": float(self.total_funding),
            "team_size": int(self.team_size),
            "market_share": float(self.market_share),
            "last_action_week": int(self.last_action_week),
            "action_history": [
                {"week": int(a.week), "action_type": a.action_type, "amount": a.amount} for a in self.action_history
            ],
            "is_acquired": bool(self.is_acquired),
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Competitor":
        stage = str(d.get("funding_stage", "Seed"))
        if stage not in FUNDING_STAGES:
            raise ValueError(f"Unknown funding stage: {stage}")
        return cls(
            id=str(d["id"]),
            name=str(d.get("name", "") or ""),
            funding_stage=stage,
            feature_parity=float(d.get("feature_parity", 40.0)),
            pricing_strategy=str(d.get("pricing_strategy", "Freemium")),
            aggressiveness=float(d.get("aggressiveness", 0.5)),
            total_funding=float(d.get("total_funding", 0.0)),
            team_size=int(d.get("team_size", 1)),
            market_share=float(d.get("market_share", 0.0)),
            last_action_week=int(d.get("last_action_week", 0)),
            action_history=[
                CompetitorAction(
                    week=int(a.get("week", 0)),
                    action_type=str(a.get("action_type")),
                    amount=None if a.get("amount") is None else float(a["amount"]),
                )
                for a in list(d.get("action_history") or [])
            ],
            is_acquired=bool(d.get("is_acquired", False)),
        )


def funding_stage_to_amount(stage: str, rng: random.Random) -> float:
    lo, hi = FUNDING_RANGES.get(stage, (0.0, 0.0))
    return rng.uniform(lo, hi) if hi > 0 else 0.0


def calculate_competitor_team_size(funding: float) -> int:
    # ~$150k per employee
    return min(500, max(1, int(funding / 150_000.0)))


def competitor_velocity(c: Competitor) -> float:
    return c.team_size * 0.1 + c.total_funding * 0.0001


def threat_score(c: Competitor) -> float:
    return c.feature_parity * c.market_share * c.aggressiveness


def calculate_feature_parity(c: Competitor, player_velocity: float) -> float:
    ratio = competitor_velocity(c) / max(player_velocity, 0.1)
    return clamp(c.feature_parity + (ratio - 1.0) * 5.0, 0.0, 100.0)


def update_competitor_state(c: Competitor, player_velocity: float) -> None:
    c.feature_parity = calculate_feature_parity(c, player_velocity)
    c.market_share = max(c.feature_parity * c.aggressiveness / 100.0, 1.0)


def determine_funding_stage(spec: ModeSpec, rng: random.Random) -> str:
    return weighted_pick(rng, dict(spec.funding_stages)) or "Seed"


def determine_pricing_strategy(rng: random.Random) -> str:
    return weighted_pick(rng, PRICING_STRATEGIES) or "Freemium"


def generate_competitor(spec: ModeSpec, week: int, rng: random.Random, index: int) -> Competitor:
    stage = determine_funding_stage(spec, rng)
    funding = funding_stage_to_amount(stage, rng)
    lo, hi = spec.aggressiveness
    c = Competitor(
        id=f"rival-{index}",
        funding_stage=stage,
        feature_parity=rng.uniform(20.0, 60.0),
        pricing_strategy=determine_pricing_strategy(rng),
        aggressiveness=rng.uniform(lo, hi),
        total_funding=funding,
        team_size=calculate_competitor_team_size(funding),
        last_action_week=int(week),
    )
    c.market_share = max(c.feature_parity * c.aggressiveness / 100.0, 1.0)
    return c


def generate_competitors(spec: ModeSpec, week: int, rng: random.Random) -> List[Competitor]:
    lo, hi = spec.competitor_count
    n = rng.randint(lo, hi)
    return [generate_competitor(spec, week, rng, i + 1) for i in range(n)]


def active_competitors(competitors: List[Competitor]) -> List[Competitor]:
    return [c for c in competitors if not c.is_acquired]


def get_most_threatening_competitor(competitors: List[Competitor]) -> Optional[Competitor]:
    active = active_competitors(competitors)
    if not active:
        return None
    return max(active, key=threat_score)


def get_random_competitor(competitors: List[Competitor], rng: random.Random) -> Optional[Competitor]:
    active = active_competitors(competitors)
    if not active:
        return None
    return active[rng.randrange(len(active))]


def get_recently_funded_competitors(competitors: List[Competitor], week: int, lookback_weeks: int) -> List[Competitor]:
    return [
        c
        for c in competitors
        if any(a.action_type == "FundingRound" and week - a.week <= lookback_weeks for a in c.action_history)
    ]


def generate_competitor_action(c: Competitor, week: int, rng: random.Random) -> Optional[CompetitorAction]:
    if not chance(rng, c.aggressiveness * 0.3):
        return None
    kind = ACTION_TYPES[rng.randrange(len(ACTION_TYPES))]
    amount: Optional[float] = None
    if kind == "FundingRound":
        amount = float(c.total_funding)
    elif kind == "Acquisition":
        amount = float(rng.randint(50, 200)) * 1_000_000.0
    return CompetitorAction(week=int(week), action_type=kind, amount=amount)


def update_competitive_landscape(competitors: List[Competitor], *, week: int, player_velocity: float, rng: random.Random) -> List[CompetitorAction]:
    """Weekly rival moves + parity/share drift. Returns the moves made this week."""
    moves: List[CompetitorAction] = []
    for c in active_competitors(competitors):
        update_competitor_state(c, player_velocity)
        move = generate_competitor_action(c, week, rng)
        if move is None:
            continue
        c.action_history.append(move)
        c.last_action_week = int(week)
        moves.append(move)
    return moves
