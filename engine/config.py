"""engine.config

Engine configuration passed in by the caller.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict

from core.state import ACTION_HISTORY_LIMIT, HISTORY_LIMIT


@dataclass(frozen=True)
class EngineConfig:
    base_seed: int = 0
    max_events_per_week: int = 2
    history_limit: int = HISTORY_LIMIT
    action_history_limit: int = ACTION_HISTORY_LIMIT
    insight_cap: int = 3
    compounding_lookback: int = 12
    victory_streak_weeks: int = 12

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
