"""
core.events
Conditional narrative events.

Each catalog entry has a prerequisite over GameState, an independent trigger
probability and a cooldown. A weekly pass collects candidates, caps them,
applies automatic effects right away and leaves dilemmas for the caller to
resolve with apply_choice_by_index().

Effect magnitudes are multiplied by the difficulty mode's event modifier, except
for the special "Game End" and "Burnout Risk" effects.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from . import effects as fx
from .competitors import (
    LATE_STAGES,
    Competitor,
    active_competitors,
    get_most_threatening_competitor,
)
from .customers import ACTIVE, AT_RISK, CHAMPION, ENTERPRISE, Customer
from .effects import StatEffect
from .modes import REGULATED_FINTECH, get_mode_spec
from .rng import chance, pick
from .state import GameState

logger = logging.getLogger(__name__)

MAX_EVENTS_PER_WEEK = 2

AUTOMATIC = "Automatic"
DILEMMA = "Dilemma"

UNSCALED_STATS = frozenset({fx.GAME_END, fx.BURNOUT_RISK})


class InvalidChoice(ValueError):
    pass


@dataclass(frozen=True)
class EventEffect:
    stat_name: str
    change: float

    def to_dict(self) -> Dict[str, Any]:
        return {"stat_name": self.stat_name, "change": float(self.change)}


@dataclass(frozen=True)
class EventChoice:
    label: str
    description: str
    effects: Tuple[EventEffect, ...]
    wisdom: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "description": self.description,
            "wisdom": self.wisdom,
            "effects": [e.to_dict() for e in self.effects],
        }


@dataclass(frozen=True)
class GameEvent:
    id: str
    week: int
    title: str
    description: str
    event_type: str
    effects: Tuple[EventEffect, ...] = ()
    choices: Tuple[EventChoice, ...] = ()
    cooldown_weeks: int = 0
    follow_up_event_id: Optional[str] = None
    difficulty_modifier: float = 1.0

    @property
    def is_dilemma(self) -> bool:
        return self.event_type == DILEMMA

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "week": int(self.week),
            "title": self.title,
            "description": self.description,
            "event_type": self.event_type,
            "effects": [e.to_dict() for e in self.effects],
            "choices": [c.to_dict() for c in self.choices],
            "cooldown_weeks": int(self.cooldown_weeks),
            "follow_up_event_id": self.follow_up_event_id,
            "difficulty_modifier": float(self.difficulty_modifier),
        }


# -------------------------
# Catalog
# -------------------------

@dataclass(frozen=True)
class Draft:
    """Unscaled event body produced by a catalog builder."""
    title: str
    description: str
    effects: Tuple[EventEffect, ...] = ()
    choices: Tuple[EventChoice, ...] = ()
    follow_up_event_id: Optional[str] = None


# prerequisite(state, rng) -> subject (truthy) or None
Prerequisite = Callable[[GameState, random.Random], Any]
Builder = Callable[[GameState, Any, random.Random], Draft]


@dataclass(frozen=True)
class EventSpec:
    id: str
    probability: float
    cooldown_weeks: int
    prerequisite: Prerequisite
    build: Builder


def _e(stat: str, change: float) -> EventEffect:
    return EventEffect(stat, float(change))


def _c(label: str, description: str, *effects: EventEffect, wisdom: str = "") -> EventChoice:
    return EventChoice(label, description, tuple(effects), wisdom)


def _when(pred: Callable[[GameState], bool]) -> Prerequisite:
    return lambda s, rng: True if pred(s) else None


def _customer_name(c: Optional[Customer]) -> str:
    return (c.name if c is not None and c.name else "A customer")


def _competitor_name(c: Optional[Competitor]) -> str:
    return (c.name if c is not None and c.name else "A competitor")


def _pick_customer(pred: Callable[[Customer], bool]) -> Prerequisite:
    def _pre(s: GameState, rng: random.Random) -> Optional[Customer]:
        return pick(rng, [c for c in s.customers if pred(c)])

    return _pre


def _pick_competitor(pred: Callable[[Competitor], bool]) -> Prerequisite:
    def _pre(s: GameState, rng: random.Random) -> Optional[Competitor]:
        return pick(rng, [c for c in active_competitors(s.competitors) if pred(c)])

    return _pre


def _top_rival_outpacing(s: GameState, rng: random.Random) -> Optional[Competitor]:
    top = get_most_threatening_competitor(s.competitors)
    if top is not None and top.feature_parity > 70.0 and s.velocity < 1.0:
        return top
    return None


def _growth_stagnant(s: GameState) -> bool:
    return len(s.history) >= 8 and all(h.momentum < 0.03 for h in s.history[-8:])


def _founder_exhausted(s: GameState) -> bool:
    return len(s.history) >= 4 and all(h.morale < 30.0 for h in s.history[-4:])


def _tech_debt_crisis(s: GameState, _: Any, rng: random.Random) -> Draft:
    return Draft(
        "Production Outage",
        "Technical debt caused a critical outage. Customers are frustrated.",
        choices=(
            _c("All Hands on Deck", "Drop everything and fix it now.",
               _e(fx.MORALE, -15), _e(fx.REPUTATION, -10), _e(fx.VELOCITY, -0.15),
               wisdom="Crisis mode treats symptoms, not the disease. This will happen again."),
            _c("Proper Fix + Communication", "Fix the root cause and tell customers what happened.",
               _e(fx.MORALE, -5), _e(fx.TECH_DEBT, -10), _e(fx.REPUTATION, 5), _e(fx.WAU, -50),
               wisdom="Customers respect honesty more than perfection."),
        ),
    )


def _viral_moment(s: GameState, _: Any, rng: random.Random) -> Draft:
    who = _customer_name(pick(rng, s.customers))
    return Draft(
        f"{who} loves your product",
        "A success story is going viral and infrastructure is near capacity.",
        choices=(
            _c("Scale Infrastructure Quickly", "Pay to handle the load and capture the growth.",
               _e(fx.WAU, 5000), _e(fx.BURN, 2000), _e(fx.REPUTATION, 15)),
            _c("Let It Ride", "Current infrastructure should handle most of it.",
               _e(fx.WAU, 2000), _e(fx.REPUTATION, -5)),
        ),
        follow_up_event_id="viral_moment_gone_wrong",
    )


def _major_client_deal(s: GameState, _: Any, rng: random.Random) -> Draft:
    deal = 5000.0 + rng.uniform(0.0, 3000.0)
    return Draft(
        "Enterprise upgrade on the table",
        "A large client wants custom features on an aggressive timeline.",
        choices=(
            _c("Take the Deal - Ship Fast", "Promise the timeline.",
               _e(fx.MRR, deal), _e(fx.MORALE, -20), _e(fx.TECH_DEBT, 25), _e(fx.REPUTATION, 10)),
            _c("Negotiate Realistic Timeline", "Smaller deal, sane schedule.",
               _e(fx.MRR, deal * 0.6), _e(fx.MORALE, 5), _e(fx.TECH_DEBT, -5)),
        ),
    )


def _customer_churn_warning(s: GameState, customer: Customer, rng: random.Random) -> Draft:
    return Draft(
        f"{_customer_name(customer)} is considering leaving",
        "Usage is dropping and support tickets are piling up.",
        choices=(
            _c("Reach out personally", "Founder call to understand the problem.",
               _e(fx.MORALE, 5), _e(fx.NPS, 5)),
            _c("Let them go", "Not every customer is a fit.",
               _e(fx.FOCUS, 1), _e(fx.MRR, -customer.mrr_contribution)),
        ),
    )


def _big_logo_signs(s: GameState, customer: Customer, rng: random.Random) -> Draft:
    return Draft(
        f"{_customer_name(customer)} joins your customer roster",
        "A recognizable enterprise logo signed on.",
        choices=(
            _c("Feature Them Prominently", "Case study, homepage logo, launch post.",
               _e(fx.REPUTATION, 15), _e(fx.FOCUS, -1)),
            _c("Mention in Newsletter", "Low-key announcement.", _e(fx.REPUTATION, 5)),
            _c("Keep It Quiet", "Focus on making them successful.", _e(fx.NPS, 3)),
        ),
    )


def _customer_champion(s: GameState, customer: Customer, rng: random.Random) -> Draft:
    return Draft(
        f"{_customer_name(customer)} becomes your biggest advocate",
        "They keep referring peers and talking about you in public.",
        choices=(
            _c("Partner with Them for Marketing", "Co-marketing campaign.",
               _e(fx.REPUTATION, 20), _e(fx.WAU, 300), _e(fx.NPS, 15)),
            _c("Ask for a Testimonial", "A quote and a logo.", _e(fx.REPUTATION, 8), _e(fx.NPS, 5)),
            _c("Focus on Serving Them Well", "Keep them delighted.", _e(fx.NPS, 8)),
        ),
    )


def _competitor_feature_launch(s: GameState, rival: Competitor, rng: random.Random) -> Draft:
    return Draft(
        f"{_competitor_name(rival)} launches a feature you don't have",
        "Customers are asking when you will ship it.",
        choices=(
            _c("Rush to match their feature", "Ship a copy fast.",
               _e(fx.TECH_DEBT, 15), _e(fx.VELOCITY, 0.2), _e(fx.MORALE, -5)),
            _c("Build it properly, take time", "Do it right.",
               _e(fx.VELOCITY, 0.1), _e(fx.MORALE, -10), _e(fx.REPUTATION, -5)),
            _c("Ignore it, focus on differentiation", "Stay on your roadmap.",
               _e(fx.MORALE, 10), _e(fx.REPUTATION, 5)),
        ),
    )


def _pricing_war(s: GameState, rival: Competitor, rng: random.Random) -> Draft:
    return Draft(
        f"{_competitor_name(rival)} slashes prices",
        "Prospects are using the new price as leverage.",
        choices=(
            _c("Match their pricing", "Protect the base.",
               _e(fx.MRR, -0.2 * s.mrr), _e(fx.NPS, 5), _e(fx.REPUTATION, -10)),
            _c("Hold pricing, emphasize value", "Sell on value.",
               _e(fx.REPUTATION, 10), _e(fx.CHURN_RATE, 10), _e(fx.MORALE, 5)),
            _c("Raise prices, go upmarket", "Serve buyers who pay for quality.",
               _e(fx.MRR, 0.15 * s.mrr), _e(fx.CHURN_RATE, -20), _e(fx.REPUTATION, 15)),
        ),
    )


def _competitor_funding(s: GameState, rival: Competitor, rng: random.Random) -> Draft:
    return Draft(
        f"{_competitor_name(rival)} raises a big round",
        "They will be hiring aggressively and spending on marketing.",
        choices=(
            _c("Accelerate fundraising", "Raise before the window closes.",
               _e(fx.REPUTATION, 10), _e(fx.MORALE, -5)),
            _c("Focus on profitability", "Default alive beats default funded.",
               _e(fx.MORALE, 15), _e(fx.REPUTATION, -10), _e(fx.VELOCITY, 0.1)),
            _c("Ignore the noise", "Keep executing.", _e(fx.MORALE, 5)),
        ),
    )


def _competitor_acquisition_opportunity(s: GameState, rival: Competitor, rng: random.Random) -> Draft:
    return Draft(
        f"{_competitor_name(rival)} gets acquired",
        "Acquirers are now looking at the rest of the space.",
        choices=(
            _c("Signal openness to acquisition", "Let bankers know you would listen.",
               _e(fx.REPUTATION, 20), _e(fx.MORALE, -10)),
            _c("Publicly commit to independence", "Tell the market you are here to stay.",
               _e(fx.MORALE, 15), _e(fx.REPUTATION, 10)),
            _c("Stay quiet, keep options open", "Say nothing."),
        ),
    )


def _talent_poaching(s: GameState, rival: Competitor, rng: random.Random) -> Draft:
    return Draft(
        f"{_competitor_name(rival)} is poaching your team",
        "Recruiters are offering your engineers large raises.",
        choices=(
            _c("Match their offers", "Pay to keep people.",
               _e(fx.BURN, 0.3 * s.burn), _e(fx.MORALE, 10)),
            _c("Improve culture, not compensation", "Give people reasons to stay.",
               _e(fx.MORALE, 5), _e(fx.VELOCITY, 0.1)),
            _c("Let them go, hire differently", "Accept the losses.",
               _e(fx.MORALE, -20), _e(fx.VELOCITY, -0.2), _e(fx.BURN, -0.1 * s.burn)),
        ),
    )


def _competitor_pivot(s: GameState, rival: Competitor, rng: random.Random) -> Draft:
    return Draft(
        f"{_competitor_name(rival)} pivots away from your market",
        "One less rival chasing your customers.",
        effects=(_e(fx.MORALE, 10), _e(fx.REPUTATION, 5)),
    )


VC_OFFER_AMOUNT = 2_000_000.0


def _vc_offer(s: GameState, _: Any, rng: random.Random) -> Draft:
    return Draft(
        "VC term sheet",
        f"A fund offers ${VC_OFFER_AMOUNT / 1_000_000.0:.0f}M for 20% and an aggressive growth plan.",
        choices=(
            _c("Take the Money - Growth Mode", "Raise and spend.",
               _e(fx.BANK, VC_OFFER_AMOUNT), _e(fx.FOUNDER_EQUITY, -20), _e(fx.BURN, 2.0 * s.burn),
               _e(fx.REPUTATION, 15),
               wisdom="Venture money comes with venture expectations."),
            _c("Stay Bootstrapped", "Keep control.", _e(fx.MORALE, 10), _e(fx.FOCUS, 1)),
        ),
    )


def _key_employee_burnout(s: GameState, _: Any, rng: random.Random) -> Draft:
    return Draft(
        "Senior engineer exhausted",
        "Your most productive engineer is running on fumes.",
        choices=(
            _c("Push Through - We're So Close", "Ask for one more sprint.",
               _e(fx.MORALE, -15), _e(fx.VELOCITY, -0.2), _e(fx.REPUTATION, -10)),
            _c("Give Them a Real Break", "Two weeks fully offline.",
               _e(fx.MORALE, 25), _e(fx.VELOCITY, -0.1), _e(fx.REPUTATION, 5)),
        ),
    )


def _competitor_launch(s: GameState, _: Any, rng: random.Random) -> Draft:
    return Draft(
        "Well-funded competitor launches",
        "A new entrant is going after your users.",
        effects=(_e(fx.WAU_GROWTH, -5), _e(fx.MORALE, -5)),
    )


def _pivot_opportunity(s: GameState, _: Any, rng: random.Random) -> Draft:
    return Draft(
        "Growth stagnation crisis",
        "Momentum has been flat for two months.",
        choices=(
            _c("Pivot to New Market", "Start over with what you learned.",
               _e(fx.WAU, -0.5 * s.wau), _e(fx.REPUTATION, 50), _e(fx.MORALE, -20)),
            _c("Double Down on Current Strategy", "Stay the course.",
               _e(fx.FOCUS, 1), _e(fx.REPUTATION, -10)),
        ),
    )


def _acquisition_offer(s: GameState, _: Any, rng: random.Random) -> Draft:
    return Draft(
        "Strategic acquisition offer",
        "A larger company wants to buy you.",
        choices=(
            _c("Accept the Offer", "Sell the company.", _e(fx.GAME_END, 1)),
            _c("Decline and Keep Building", "You are not done yet.",
               _e(fx.MORALE, 20), _e(fx.REPUTATION, 15)),
        ),
    )


def _key_partnership(s: GameState, _: Any, rng: random.Random) -> Draft:
    return Draft(
        "Strategic partnership opportunity",
        "A platform wants to bundle your product.",
        choices=(
            _c("Accept Exclusive Partnership", "Big distribution, big strings.",
               _e(fx.MRR, 20000), _e(fx.FOUNDER_EQUITY, -30)),
            _c("Non-Exclusive Agreement", "Smaller deal, no lock-in.", _e(fx.MRR, 8000)),
        ),
    )


def _team_conflict(s: GameState, _: Any, rng: random.Random) -> Draft:
    return Draft(
        "Major team conflict",
        "Engineering and sales disagree about the roadmap.",
        choices=(
            _c("Side with Engineer", "Protect the codebase.",
               _e(fx.VELOCITY, 0.1), _e(fx.MRR, -5000)),
            _c("Side with Sales", "Close the deals.", _e(fx.MRR, 5000), _e(fx.TECH_DEBT, 15)),
            _c("Mediate and Find Compromise", "Slow, painful alignment.",
               _e(fx.MORALE, -15), _e(fx.FOCUS, -1)),
        ),
    )


def _press_opportunity(s: GameState, _: Any, rng: random.Random) -> Draft:
    return Draft(
        "Major press interview",
        "A large publication wants a founder interview.",
        choices=(
            _c("Accept the Interview", "Spend the time on press.",
               _e(fx.REPUTATION, 30), _e(fx.WAU, 500), _e(fx.FOCUS, -2)),
            _c("Decline Politely", "Stay heads down.", _e(fx.REPUTATION, -5), _e(fx.VELOCITY, 0.1)),
        ),
    )


def _technical_rewrite(s: GameState, _: Any, rng: random.Random) -> Draft:
    return Draft(
        "Technical debt crisis",
        "The codebase is fighting every change.",
        choices=(
            _c("Full Rewrite", "Start clean.", _e(fx.TECH_DEBT, -60), _e(fx.WAU_GROWTH, -40)),
            _c("Incremental Refactor", "Pay it down piece by piece.",
               _e(fx.TECH_DEBT, -30), _e(fx.VELOCITY, -0.1)),
            _c("Keep Patching", "Ship around it.", _e(fx.TECH_DEBT, 5)),
        ),
    )


def _competitor_acquisition(s: GameState, _: Any, rng: random.Random) -> Draft:
    return Draft(
        "Competitor acquisition opportunity",
        "A struggling rival is for sale.",
        choices=(
            _c("Acquire the Competitor", "Buy their users and their problems.",
               _e(fx.WAU, 500), _e(fx.BANK, -100000), _e(fx.BURN, 15000), _e(fx.TECH_DEBT, 20)),
            _c("Compete Head-On", "Win the market the hard way.", _e(fx.WAU_GROWTH, -10)),
        ),
    )


def _regulatory_audit(s: GameState, _: Any, rng: random.Random) -> Draft:
    return Draft(
        "Regulatory audit",
        "The regulator has scheduled a review.",
        choices=(
            _c("Full Compliance Sprint", "Everyone on compliance.",
               _e(fx.COMPLIANCE_RISK, -50), _e(fx.BANK, -30000), _e(fx.FOCUS, -3)),
            _c("Minimal Compliance", "Do the minimum.",
               _e(fx.COMPLIANCE_RISK, -20), _e(fx.BANK, -10000)),
        ),
    )


def _viral_moment_gone_wrong(s: GameState, _: Any, rng: random.Random) -> Draft:
    return Draft(
        "Viral growth overload",
        "Traffic is outgrowing the infrastructure.",
        choices=(
            _c("Scale Infrastructure Fast", "Pay whatever it takes.", _e(fx.BANK, -50000)),
            _c("Let It Crash", "Ride it out.", _e(fx.WAU, -0.4 * s.wau), _e(fx.REPUTATION, -25)),
        ),
    )


def _founder_health_crisis(s: GameState, _: Any, rng: random.Random) -> Draft:
    return Draft(
        "Founder burnout crisis",
        "A month of running on empty is catching up with you.",
        choices=(
            _c("Take Extended Break", "Step away and recover.", _e(fx.MORALE, 40), _e(fx.MRR, -10000)),
            _c("Push Through", "Keep going.", _e(fx.BURNOUT_RISK, 50),
               wisdom="Founders are the single point of failure."),
        ),
    )


def _automatic(title: str, *effects: EventEffect) -> Builder:
    return lambda s, subject, rng: Draft(title, title, effects=tuple(effects))


_ALWAYS: Prerequisite = lambda s, rng: True

EVENT_CATALOG: Tuple[EventSpec, ...] = (
    EventSpec("tech_debt_crisis", 0.3, 8, _when(lambda s: s.tech_debt > 70.0), _tech_debt_crisis),
    EventSpec("viral_moment", 0.15, 12,
              _when(lambda s: s.nps > 60.0 and s.tech_debt < 35.0 and s.wau > 200), _viral_moment),
    EventSpec("major_client_deal", 0.2, 10,
              _when(lambda s: s.mrr > 2000.0 and s.reputation > 50.0), _major_client_deal),
    EventSpec("customer_churn_warning", 0.25, 6, _pick_customer(lambda c: c.lifecycle_stage == AT_RISK),
              _customer_churn_warning),
    EventSpec("big_logo_signs", 0.25, 8,
              _pick_customer(lambda c: c.lifecycle_stage == ACTIVE and c.segment == ENTERPRISE and c.mrr_contribution > 5000.0),
              _big_logo_signs),
    EventSpec("customer_champion", 0.2, 10, _pick_customer(lambda c: c.lifecycle_stage == CHAMPION), _customer_champion),
    EventSpec("competitor_feature_launch", 0.2, 8,
              _top_rival_outpacing,
              _competitor_feature_launch),
    EventSpec("pricing_war", 0.15, 10, _pick_competitor(lambda c: c.pricing_strategy == "Undercut"), _pricing_war),
    EventSpec("competitor_funding", 0.25, 12,
              _pick_competitor(lambda c: any(a.action_type == "FundingRound" for a in c.action_history)),
              _competitor_funding),
    EventSpec("competitor_acquisition_opportunity", 0.1, 16,
              lambda s, rng: pick(rng, active_competitors(s.competitors))
              if s.mrr > 50_000.0 and s.reputation > 60.0 and s.nps > 40.0 else None,
              _competitor_acquisition_opportunity),
    EventSpec("talent_poaching", 0.12, 10,
              lambda s, rng: pick(rng, [c for c in active_competitors(s.competitors) if c.funding_stage in LATE_STAGES])
              if s.morale > 70.0 else None,
              _talent_poaching),
    EventSpec("competitor_pivot", 0.08, 20, _pick_competitor(lambda c: c.feature_parity < 40.0), _competitor_pivot),
    EventSpec("vc_offer", 0.15, 16,
              _when(lambda s: s.runway_months > 18.0 and s.wau > 500 and s.reputation > 60.0), _vc_offer),
    EventSpec("key_employee_burnout", 0.25, 12, _when(lambda s: s.morale < 50.0 and s.week > 12), _key_employee_burnout),
    EventSpec("competitor_launch", 0.1, 6, _when(lambda s: s.week > 8), _competitor_launch),
    EventSpec("pivot_opportunity", 0.4, 16, _when(_growth_stagnant), _pivot_opportunity),
    EventSpec("acquisition_offer", 0.2, 20,
              _when(lambda s: s.reputation > 70.0 and s.mrr > 50_000.0), _acquisition_offer),
    EventSpec("key_partnership", 0.15, 12, _when(lambda s: s.reputation > 60.0), _key_partnership),
    EventSpec("team_conflict", 0.3, 10, _when(lambda s: s.morale < 60.0 and s.team_size > 3), _team_conflict),
    EventSpec("press_opportunity", 0.2, 14, _when(lambda s: s.wau > 1000 and s.reputation > 50.0), _press_opportunity),
    EventSpec("technical_rewrite", 0.35, 18,
              _when(lambda s: s.tech_debt > 80.0 and s.velocity < 0.5), _technical_rewrite),
    EventSpec("competitor_acquisition", 0.1, 15, _when(lambda s: s.week > 20), _competitor_acquisition),
    EventSpec("regulatory_audit", 0.4, 12,
              _when(lambda s: s.difficulty == REGULATED_FINTECH and s.compliance_risk > 60.0), _regulatory_audit),
    EventSpec("viral_moment_gone_wrong", 0.25, 10, _when(lambda s: s.wau_growth_rate > 30.0), _viral_moment_gone_wrong),
    EventSpec("founder_health_crisis", 0.3, 20, _when(_founder_exhausted), _founder_health_crisis),
    # background noise
    EventSpec("press_mention", 0.05, 4, _ALWAYS,
              _automatic("Positive press mention", _e(fx.REPUTATION, 5), _e(fx.WAU, 50))),
    EventSpec("customer_testimonial", 0.03, 6, _ALWAYS,
              _automatic("Glowing customer testimonial", _e(fx.NPS, 10), _e(fx.REPUTATION, 3))),
    EventSpec("competitor_failure", 0.02, 8, _ALWAYS,
              _automatic("Competitor shuts down", _e(fx.WAU, 200), _e(fx.MORALE, 5))),
    EventSpec("talent_joins", 0.04, 10, _ALWAYS,
              _automatic("Star talent joins the team", _e(fx.VELOCITY, 0.15), _e(fx.MORALE, 8))),
    EventSpec("server_outage", 0.06, 3, _ALWAYS,
              _automatic("Unexpected server outage", _e(fx.REPUTATION, -5), _e(fx.WAU, -20))),
    EventSpec("customer_complaint", 0.04, 5, _ALWAYS,
              _automatic("Public customer complaint", _e(fx.NPS, -8), _e(fx.REPUTATION, -3))),
    EventSpec("competitor_feature", 0.03, 7, _ALWAYS,
              _automatic("Competitor launches a key feature", _e(fx.CHURN_RATE, 2), _e(fx.MORALE, -3))),
    EventSpec("key_person_sick", 0.02, 9, _ALWAYS,
              _automatic("Key team member out sick", _e(fx.VELOCITY, -0.1), _e(fx.MORALE, -2))),
    EventSpec("market_shift", 0.03, 12, _ALWAYS,
              _automatic("Market trend shift", _e(fx.TECH_DEBT, 5), _e(fx.MORALE, -2))),
    EventSpec("new_regulation", 0.02, 15, _ALWAYS,
              _automatic("New industry regulation", _e(fx.COMPLIANCE_RISK, 10))),
    EventSpec("industry_trend", 0.04, 10, _ALWAYS,
              _automatic("Industry trend emerges", _e(fx.REPUTATION, 2))),
)

EVENT_SPECS: Dict[str, EventSpec] = {spec.id: spec for spec in EVENT_CATALOG}


# -------------------------
# Engine
# -------------------------

def can_trigger(cooldowns: Dict[str, int], event_id: str) -> bool:
    return int(cooldowns.get(event_id, 0)) == 0


def decrement_cooldowns(cooldowns: Dict[str, int]) -> None:
    for k, v in cooldowns.items():
        if v > 0:
            cooldowns[k] = v - 1


def _scale_effects(effects: Tuple[EventEffect, ...], dmod: float) -> Tuple[EventEffect, ...]:
    return tuple(e if e.stat_name in UNSCALED_STATS else EventEffect(e.stat_name, e.change * dmod) for e in effects)


def build_event(spec: EventSpec, draft: Draft, *, week: int, dmod: float) -> GameEvent:
    return GameEvent(
        id=spec.id,
        week=int(week),
        title=draft.title,
        description=draft.description,
        event_type=DILEMMA if draft.choices else AUTOMATIC,
        effects=_scale_effects(draft.effects, dmod),
        choices=tuple(
            EventChoice(c.label, c.description, _scale_effects(c.effects, dmod), c.wisdom) for c in draft.choices
        ),
        cooldown_weeks=spec.cooldown_weeks,
        follow_up_event_id=draft.follow_up_event_id,
        difficulty_modifier=float(dmod),
    )


def check_for_events(state: GameState, rng: random.Random, max_events: int = MAX_EVENTS_PER_WEEK) -> List[GameEvent]:
    """One weekly evaluation pass (mutates cooldowns and applies automatic effects).

    An event emitted in a pass gets cooldown_weeks, then every nonzero cooldown
    drops by one, so an event fired at week W is next eligible at W + cooldown.
    """
    dmod = get_mode_spec(state.difficulty).event_difficulty
    candidates: List[GameEvent] = []
    for spec in EVENT_CATALOG:
        if not can_trigger(state.event_cooldowns, spec.id):
            continue
        subject = spec.prerequisite(state, rng)
        if not subject:
            continue
        if not chance(rng, spec.probability):
            continue
        candidates.append(build_event(spec, spec.build(state, subject, rng), week=state.week, dmod=dmod))

    if len(candidates) > max_events:
        rng.shuffle(candidates)
        del candidates[max(0, max_events):]

    for ev in candidates:
        state.event_cooldowns[ev.id] = ev.cooldown_weeks
        logger.info("event fired: %s (%s) week=%d", ev.id, ev.event_type, state.week)
        if not ev.is_dilemma:
            fx.apply_changes(state, [(e.stat_name, e.change) for e in ev.effects], rng)

    decrement_cooldowns(state.event_cooldowns)
    state.update_derived_metrics()
    return candidates


def apply_event_choice(state: GameState, choice: EventChoice, rng: random.Random) -> List[StatEffect]:
    out = fx.apply_changes(state, [(e.stat_name, e.change) for e in choice.effects], rng)
    state.update_derived_metrics()
    return out


def apply_choice_by_index(state: GameState, event: GameEvent, index: int, rng: random.Random) -> List[StatEffect]:
    if not event.is_dilemma:
        raise InvalidChoice(f"{event.id} is not a dilemma")
    if not 0 <= int(index) < len(event.choices):
        raise InvalidChoice(f"{event.id}: choice {index} out of range (0..{len(event.choices) - 1})")
    choice = event.choices[int(index)]
    logger.info("dilemma resolved: %s -> %s", event.id, choice.label)
    return apply_event_choice(state, choice, rng)
