"""
core.rng
Deterministic RNG helpers that do NOT rely on Python's built-in hash().

Goal:
- Same (base_seed + inputs) => same Random stream across platforms & runs.
- One Random instance is created per turn and threaded through every roll.
"""

from __future__ import annotations

import hashlib
import json
import random
from typing import Any, Mapping, Optional, Sequence, TypeVar

T = TypeVar("T")


def stable_int_seed(*parts: Any, salt: str = "founder-week") -> int:
    """Return a stable 32-bit integer seed derived from arbitrary inputs.

    Uses SHA-256 over a canonical JSON representation of `parts`.
    Output is 0..2**32-1 (works with random.Random).
    """
    payload = json.dumps(parts, sort_keys=True, ensure_ascii=False, separators=(",", ":"), default=str)
    h = hashlib.sha256((salt + "|" + payload).encode("utf-8")).digest()
    return int.from_bytes(h[:4], "big", signed=False)


def rng_from(*parts: Any, base_seed: int) -> random.Random:
    """Create a Random instance from (base_seed + parts)."""
    seed = stable_int_seed(base_seed, *parts)
    return random.Random(seed)


def chance(rng: random.Random, p: float) -> bool:
    """Bernoulli trial. p outside [0, 1] is saturated, never an error."""
    p = max(0.0, min(1.0, float(p)))
    if p <= 0.0:
        return False
    if p >= 1.0:
        return True
    return rng.random() < p


def jitter(rng: random.Random, lo: float, hi: float) -> float:
    return rng.uniform(float(lo), float(hi))


def weighted_pick(rng: random.Random, weights: Mapping[str, float]) -> Optional[str]:
    """Pick a key proportionally to its weight. Non-positive weights never win."""
    keys = [k for k, w in weights.items() if float(w) > 0.0]
    if not keys:
        return None
    total = sum(float(weights[k]) for k in keys)
    roll = rng.uniform(0.0, total)
    acc = 0.0
    for k in keys:
        acc += float(weights[k])
        if roll <= acc:
            return k
    return keys[-1]


def pick(rng: random.Random, items: Sequence[T]) -> Optional[T]:
    if not items:
        return None
    return items[rng.randrange(len(items))]
