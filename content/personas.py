"""content.personas

Default PersonaProvider: plain, deterministic names for customers and rivals.
"""

from __future__ import annotations

import random
from typing import List, Optional

from core.competitors import Competitor
from core.customers import Customer

from .providers.base import PersonaProvider

_PREFIXES = ("North", "Blue", "Iron", "Bright", "Quiet", "Silver", "Red", "Open", "Swift", "Clear")
_SUFFIXES = {
    "Enterprise": ("Holdings", "Group", "Systems"),
    "SMB": ("Studio", "Labs", "Works"),
    "SelfServe": ("App", "Co", "HQ"),
}
_RIVAL_SUFFIXES = ("ly", "io", "ify", "Hub", "Base", "Stack")


class DefaultPersonaProvider:
    def customer_name(self, segment: str, rng: random.Random) -> str:
        suffixes = _SUFFIXES.get(segment, _SUFFIXES["SMB"])
        return f"{rng.choice(_PREFIXES)} {rng.choice(suffixes)}"

    def competitor_name(self, rng: random.Random) -> str:
        return f"{rng.choice(_PREFIXES)}{rng.choice(_RIVAL_SUFFIXES)}"


def name_unnamed(
    customers: List[Customer],
    competitors: List[Competitor],
    rng: random.Random,
    personas: Optional[PersonaProvider] = None,
) -> None:
    """Fill in empty display names in place. Structural fields are untouched."""
    p = personas or DefaultPersonaProvider()
    for c in customers:
        if not c.name:
            c.name = p.customer_name(c.segment, rng)
    for r in competitors:
        if not r.name:
            r.name = p.competitor_name(rng)
