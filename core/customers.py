"""
core.customers
Structural customer records: segment, lifecycle stage, satisfaction, revenue.

Display text (company names, stories, quotes) is supplied by a persona provider;
the simulation only reads the structural fields.
"""

from __future__ import annotations

import random
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Mapping, Optional

from .state import clamp

ENTERPRISE = "Enterprise"
SMB = "SMB"
SELF_SERVE = "SelfServe"
SEGMENTS = (ENTERPRISE, SMB, SELF_SERVE)

ONBOARDING = "Onboarding"
ACTIVE = "Active"
CHAMPION = "Champion"
AT_RISK = "AtRisk"
CHURNED = "Churned"
LIFECYCLE_STAGES = (ONBOARDING, ACTIVE, CHAMPION, AT_RISK, CHURNED)

# churned records kept on the book for display
CHURNED_RETENTION = 10

# initial satisfaction (lo, hi) per segment
INITIAL_SATISFACTION: Dict[str, tuple] = {
    ENTERPRISE: (70.0, 90.0),
    SMB: (65.0, 90.0),
    SELF_SERVE: (60.0, 90.0),
}


@dataclass
class Customer:
    id: str
    segment: str
    join_week: int
    satisfaction: float
    lifecycle_stage: str = ONBOARDING
    mrr_contribution: float = 0.0
    is_champion: bool = False
    name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Customer":
        segment = str(d.get("segment", SELF_SERVE))
        stage = str(d.get("lifecycle_stage", ONBOARDING))
        if segment not in SEGMENTS:
            raise ValueError(f"Unknown customer segment: {segment}")
        if stage not in LIFECYCLE_STAGES:
            raise ValueError(f"Unknown lifecycle stage: {stage}")
        return cls(
            id=str(d["id"]),
            segment=segment,
            join_week=int(d.get("join_week", 0)),
            satisfaction=float(d.get("satisfaction", 70.0)),
            lifecycle_stage=stage,
            mrr_contribution=float(d.get("mrr_contribution", 0.0)),
            is_champion=bool(d.get("is_champion", False)),
            name=str(d.get("name", "") or ""),
        )


def calculate_segment_from_mrr(mrr: float) -> str:
    if mrr > 2000.0:
        return ENTERPRISE
    if mrr > 200.0:
        return SMB
    return SELF_SERVE


def new_customer(*, customer_id: str, mrr: float, week: int, rng: random.Random, name: str = "") -> Customer:
    segment = calculate_segment_from_mrr(mrr)
    lo, hi = INITIAL_SATISFACTION[segment]
    return Customer(
        id=customer_id,
        segment=segment,
        join_week=int(week),
        satisfaction=rng.uniform(lo, hi),
        mrr_contribution=float(mrr),
        name=name,
    )


def update_customer_satisfaction(customer: Customer, nps: float, tech_debt: float, velocity: float, rng: random.Random) -> None:
    change = rng.uniform(-5.0, 5.0)
    if nps > 40.0:
        change += 3.0
    elif nps < 20.0:
        change -= 3.0
    if tech_debt > 70.0:
        change -= 2.0
    if velocity > 1.2:
        change += 2.0
    elif velocity < 0.8:
        change -= 2.0
    customer.satisfaction = clamp(customer.satisfaction + change, 0.0, 100.0)


def update_customer_lifecycle(customer: Customer) -> None:
    stage = customer.lifecycle_stage
    sat = customer.satisfaction
    if stage == ONBOARDING:
        if sat > 50.0:
            customer.lifecycle_stage = ACTIVE
    elif stage == ACTIVE:
        if sat > 80.0:
            customer.lifecycle_stage = CHAMPION
            customer.is_champion = True
        elif sat < 40.0:
            customer.lifecycle_stage = AT_RISK
    elif stage == CHAMPION:
        if sat < 60.0:
            customer.lifecycle_stage = ACTIVE
            customer.is_champion = False
    elif stage == AT_RISK:
        if sat > 60.0:
            customer.lifecycle_stage = ACTIVE
        elif sat < 30.0:
            customer.lifecycle_stage = CHURNED
    # churned customers stay churned


def update_customer_book(customers: List[Customer], *, nps: float, tech_debt: float, velocity: float, rng: random.Random) -> List[Customer]:
    """Weekly satisfaction drift + lifecycle transitions. Returns customers that churned this week."""
    churned: List[Customer] = []
    for c in customers:
        if c.lifecycle_stage == CHURNED:
            continue
        update_customer_satisfaction(c, nps, tech_debt, velocity, rng)
        update_customer_lifecycle(c)
        if c.lifecycle_stage == CHURNED:
            churned.append(c)
    return churned


def prune_churned(customers: List[Customer], keep: int = CHURNED_RETENTION) -> List[Customer]:
    """Drop all but the `keep` most recently joined churned records (in place). Returns the dropped."""
    gone = [c for c in customers if c.lifecycle_stage == CHURNED]
    dropped = gone[: max(0, len(gone) - keep)]
    if dropped:
        ids = {id(c) for c in dropped}
        customers[:] = [c for c in customers if id(c) not in ids]
    return dropped


def get_customers_by_segment(customers: List[Customer], segment: str) -> List[Customer]:
    return [c for c in customers if c.segment == segment]


def get_customers_by_lifecycle(customers: List[Customer], stage: str) -> List[Customer]:
    return [c for c in customers if c.lifecycle_stage == stage]


def get_champions(customers: List[Customer]) -> List[Customer]:
    return [c for c in customers if c.is_champion]


def get_at_risk_customers(customers: List[Customer]) -> List[Customer]:
    return get_customers_by_lifecycle(customers, AT_RISK)


def get_random_customer(customers: List[Customer], rng: random.Random, segment: Optional[str] = None) -> Optional[Customer]:
    pool = get_customers_by_segment(customers, segment) if segment else list(customers)
    if not pool:
        return None
    return pool[rng.randrange(len(pool))]
