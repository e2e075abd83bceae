"""content.insights

Default structural InsightProvider: compares the state before and after a turn
and reports what changed in plain terms. Capped and ranked, most severe first.
"""

from __future__ import annotations

from typing import List, Optional

from core.state import GameState

from .schemas import DEFAULT_CAP, Insight, rank_insights, validate_insight

BREAK_KIND = "TakeBreak"


def weeks_since_break(state: GameState) -> int:
    """Weeks since the last TakeBreak in the retained action history.

    With no break on record, counts the whole retained window (or the week
    number when the game is younger than that).
    """
    for entry in reversed(state.action_history):
        if BREAK_KIND in entry.actions:
            return max(0, int(state.week) - int(entry.week))
    return int(state.week)


def _morale(prev: GameState, curr: GameState) -> Optional[Insight]:
    drop = prev.morale - curr.morale
    if drop > 10.0:
        if curr.morale < 40.0:
            sev = "Critical"
        elif curr.morale < 60.0:
            sev = "Warning"
        else:
            sev = "Info"
        return Insight("Morale", sev, "Team Morale Declining",
                       f"Morale fell {drop:.0f} points to {curr.morale:.0f}%.",
                       "Take a break or coach the team before it compounds.")
    if prev.morale > 75.0 and curr.morale > 75.0:
        return Insight("Morale", "Info", "Strong Team Culture",
                       f"Morale is holding at {curr.morale:.0f}%.",
                       "Protect it: sustainable pace beats heroics.")
    return None


def _tech_debt(prev: GameState, curr: GameState) -> Optional[Insight]:
    if prev.tech_debt <= 60.0 < curr.tech_debt:
        sev = "Critical" if curr.tech_debt > 80.0 else "Warning"
        return Insight("TechnicalDebt", sev, "Technical Debt Accumulating",
                       f"Tech debt crossed 60 (now {curr.tech_debt:.0f}).",
                       "Schedule a refactor before velocity drops further.")
    if curr.tech_debt < 30.0 and curr.velocity > 0.8:
        return Insight("TechnicalDebt", "Info", "Engineering Excellence",
                       "Low debt and healthy velocity.", "")
    return None


def _runway(prev: GameState, curr: GameState) -> Optional[Insight]:
    if curr.runway_months < 6.0:
        sev = "Critical" if curr.runway_months < 3.0 else "Warning"
        return Insight("Runway", sev, "Runway Running Low",
                       f"{curr.runway_months:.1f} months of runway left.",
                       "Cut burn, close revenue, or raise now.")
    if curr.runway_months > 18.0 and curr.burn > 0.0 and curr.mrr / curr.burn > 0.5:
        return Insight("Runway", "Info", "Financial Discipline Pays Off",
                       f"Revenue covers {curr.mrr / curr.burn:.0%} of burn.", "")
    return None


def _growth(prev: GameState, curr: GameState) -> Optional[Insight]:
    if curr.wau_growth_rate < 2.0 and curr.week > 8:
        return Insight("Growth", "Warning", "Growth Stagnating",
                       f"WAU growth is {curr.wau_growth_rate:.1f}% week over week.",
                       "Try a new channel or an onboarding experiment.")
    if curr.wau_growth_rate > 10.0 and curr.churn_rate > 10.0:
        return Insight("Growth", "Warning", "Leaky Bucket",
                       f"Growing {curr.wau_growth_rate:.0f}% but churning {curr.churn_rate:.0f}% a month.",
                       "Fix retention before pouring in more users.")
    return None


def _velocity(prev: GameState, curr: GameState) -> Optional[Insight]:
    if prev.velocity >= 0.7 > curr.velocity:
        return Insight("Velocity", "Warning", "Shipping Velocity Declining",
                       f"Velocity dropped to {curr.velocity:.2f}.",
                       "Find the bottleneck: debt, morale or complexity.")
    return None


def _burnout(prev: GameState, curr: GameState) -> Optional[Insight]:
    since = weeks_since_break(curr)
    if since > 8 and curr.morale < 70.0:
        return Insight("Burnout", "Critical", "Burnout Risk",
                       f"{since} weeks without a break, morale at {curr.morale:.0f}%.",
                       "Take a real break this week.")
    return None


def _customers(prev: GameState, curr: GameState) -> Optional[Insight]:
    if curr.nps > 70.0 and curr.wau > 500:
        return Insight("CustomerSatisfaction", "Info", "Customers Love Your Product",
                       f"NPS {curr.nps:.0f} across {curr.wau} weekly users.", "")
    return None


RULES = (_morale, _tech_debt, _runway, _growth, _velocity, _burnout, _customers)


class DefaultInsightProvider:
    def generate_insights(self, previous: GameState, current: GameState, *, cap: int = DEFAULT_CAP) -> List[Insight]:
        found: List[Insight] = []
        for rule in RULES:
            ins = rule(previous, current)
            if ins is not None:
                validate_insight(ins)
                found.append(ins)
        return rank_insights(found, cap)
