"""content.providers.base

Provider interfaces.

The engine calls these collaborators around a turn; none of them can change
the simulation. Insight/warning providers read (previous, current) state pairs;
a persona provider only names things.
"""

from __future__ import annotations

import random
from typing import List, Protocol

from core.state import GameState

from ..schemas import FailureWarning, Insight


class InsightProvider(Protocol):
    def generate_insights(self, previous: GameState, current: GameState, *, cap: int = 3) -> List[Insight]:
        """Severity-ranked, at most `cap` items."""
        ...


class WarningProvider(Protocol):
    def generate_warnings(self, previous: GameState, current: GameState, *, cap: int = 3) -> List[FailureWarning]:
        ...


class PersonaProvider(Protocol):
    def customer_name(self, segment: str, rng: random.Random) -> str: ...

    def competitor_name(self, rng: random.Random) -> str: ...
