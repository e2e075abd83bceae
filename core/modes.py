"""
core.modes
Difficulty specifications (starting economy, event pressure, competitive field).

Kept in core so balancing lives in one place.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

INDIE_BOOTSTRAP = "IndieBootstrap"
VC_TRACK = "VCTrack"
REGULATED_FINTECH = "RegulatedFintech"
INFRA_DEV_TOOL = "InfraDevTool"


@dataclass(frozen=True)
class ModeSpec:
    key: str
    desc: str
    starting_bank: float
    starting_burn: float
    compliance_burden: float
    event_difficulty: float
    competitor_count: Tuple[int, int]
    aggressiveness: Tuple[float, float]
    # (stage, weight) pairs for rival funding at game start
    funding_stages: Tuple[Tuple[str, float], ...]


DEFAULT_MODES: Dict[str, ModeSpec] = {
    INDIE_BOOTSTRAP: ModeSpec(
        key=INDIE_BOOTSTRAP,
        desc="Bootstrapped solo founder. Tiny bank, tiny burn, forgiving events.",
        starting_bank=50_000.0,
        starting_burn=8_000.0,
        compliance_burden=0.3,
        event_difficulty=1.0,
        competitor_count=(2, 3),
        aggressiveness=(0.3, 0.6),
        funding_stages=(("Bootstrapped", 0.7), ("Seed", 0.3)),
    ),
    VC_TRACK: ModeSpec(
        key=VC_TRACK,
        desc="Venture-backed. Big bank, big burn, growth expected yesterday.",
        starting_bank=1_000_000.0,
        starting_burn=80_000.0,
        compliance_burden=0.5,
        event_difficulty=1.2,
        competitor_count=(3, 4),
        aggressiveness=(0.5, 0.8),
        funding_stages=(("Seed", 1.0), ("SeriesA", 1.0), ("SeriesB", 1.0)),
    ),
    REGULATED_FINTECH: ModeSpec(
        key=REGULATED_FINTECH,
        desc="Regulated fintech. Audits happen, compliance is never optional.",
        starting_bank=500_000.0,
        starting_burn=40_000.0,
        compliance_burden=2.0,
        event_difficulty=1.5,
        competitor_count=(2, 3),
        aggressiveness=(0.4, 0.7),
        funding_stages=(("SeriesA", 1.0), ("SeriesB", 1.0), ("SeriesC", 1.0)),
    ),
    INFRA_DEV_TOOL: ModeSpec(
        key=INFRA_DEV_TOOL,
        desc="Infrastructure / developer tooling. Crowded market, technical buyers.",
        starting_bank=300_000.0,
        starting_burn=25_000.0,
        compliance_burden=0.7,
        event_difficulty=1.3,
        competitor_count=(3, 4),
        aggressiveness=(0.6, 0.9),
        funding_stages=(("Seed", 1.0), ("SeriesA", 1.0), ("SeriesB", 1.0)),
    ),
}


def get_mode_spec(mode_key: str) -> ModeSpec:
    return DEFAULT_MODES.get(mode_key, DEFAULT_MODES[INDIE_BOOTSTRAP])


def require_mode(mode_key: str) -> ModeSpec:
    """Strict lookup used when creating or loading a game."""
    if mode_key not in DEFAULT_MODES:
        raise ValueError(f"Unknown difficulty: {mode_key}")
    return DEFAULT_MODES[mode_key]
