"""
core.progression
Action unlocks, milestone weeks and seasonal challenges.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from .actions import (
    COACH,
    COMPLIANCE_WORK,
    CONTENT_LAUNCH,
    DEV_REL,
    FIRE,
    INCIDENT_RESPONSE,
    PAID_ADS,
    PROCESS_IMPROVEMENT,
    REFACTOR_CODE,
    RUN_EXPERIMENT,
)
from .state import STARTING_ACTIONS, GameState


@dataclass(frozen=True)
class Unlock:
    kind: str
    condition: Callable[[GameState], bool]
    description: str


def _week_at_least(n: int) -> Callable[[GameState], bool]:
    return lambda s: s.week >= n


UNLOCKS: Tuple[Unlock, ...] = (
    Unlock(REFACTOR_CODE, _week_at_least(5), "Refactoring to manage tech debt"),
    Unlock(CONTENT_LAUNCH, _week_at_least(5), "Content marketing to build reputation"),
    Unlock(COACH, _week_at_least(5), "Team coaching"),
    Unlock(RUN_EXPERIMENT, lambda s: s.wau >= 500, "Experiments once there are enough users"),
    Unlock(COMPLIANCE_WORK, _week_at_least(9), "Compliance work"),
    Unlock(DEV_REL, _week_at_least(13), "Developer relations events"),
    Unlock(PAID_ADS, _week_at_least(13), "Paid advertising"),
    Unlock(PROCESS_IMPROVEMENT, _week_at_least(13), "Process improvements"),
    # the founder alone cannot be let go
    Unlock(FIRE, lambda s: s.team_size >= 2, "Firing once there is someone to fire"),
    Unlock(INCIDENT_RESPONSE, lambda s: s.incident_count >= 1, "Incident response after the first crisis"),
)


@dataclass(frozen=True)
class MilestoneEvent:
    week: int
    title: str
    description: str
    rewards: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["rewards"] = list(self.rewards)
        return d


@dataclass(frozen=True)
class SeasonalChallenge:
    week_trigger: int
    challenge_type: str
    difficulty_modifier: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


MILESTONES: Dict[int, MilestoneEvent] = {
    12: MilestoneEvent(12, "Quarter Review", "Investors are checking in. Board pressure is mounting.",
                       ("+10 reputation", "Fundraising bonus")),
    26: MilestoneEvent(26, "Half-Year Milestone", "Major strategic decision point.",
                       ("Strategic insight", "New action unlocked")),
    39: MilestoneEvent(39, "Scaling Challenges", "New complexity as the company scales.",
                       ("Process improvements", "Team bonuses")),
    52: MilestoneEvent(52, "Year One Complete", "A full year survived.",
                       ("Meta progression unlocked", "Starting bonuses")),
}

SEASONAL_CHALLENGES: Dict[int, SeasonalChallenge] = {
    13: SeasonalChallenge(13, "Hiring Freeze", 1.2),
    26: SeasonalChallenge(26, "Feature Sprint", 1.5),
    39: SeasonalChallenge(39, "Fundraising Window", 0.8),
}


def check_unlocks(state: GameState) -> List[str]:
    """Kinds whose condition now holds and that are not unlocked yet."""
    have = set(state.unlocked_actions)
    return [u.kind for u in UNLOCKS if u.kind not in have and u.condition(state)]


def apply_unlocks(state: GameState) -> List[str]:
    new = check_unlocks(state)
    state.unlocked_actions.extend(new)
    return new


def get_available_actions(state: GameState) -> List[str]:
    out = list(STARTING_ACTIONS)
    for kind in state.unlocked_actions:
        if kind not in out:
            out.append(kind)
    return out


def check_milestone_events(state: GameState) -> Optional[MilestoneEvent]:
    return MILESTONES.get(state.week)


def generate_seasonal_challenge(week: int) -> Optional[SeasonalChallenge]:
    if week <= 0 or week % 13 != 0:
        return None
    return SEASONAL_CHALLENGES.get(week)
