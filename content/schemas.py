"""content.schemas

Contracts for the records produced by the insight/warning collaborators:
- Insight: a weekly observation (category, severity, title, message, tip).
- FailureWarning: a looming failure mode (severity, optional countdown, remedy).

The engine never reads these for simulation; it only surfaces them. Validation
keeps a misbehaving provider from handing the caller malformed records.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence

INSIGHT_CATEGORIES = {
    "Morale",
    "TechnicalDebt",
    "Runway",
    "Growth",
    "CustomerSatisfaction",
    "Velocity",
    "Burnout",
}

# higher rank = more severe
INSIGHT_SEVERITY = {"Info": 0, "Warning": 1, "Critical": 2}
WARNING_SEVERITY = {"Watch": 0, "Caution": 1, "Danger": 2, "Critical": 3}

DEFAULT_CAP = 3


@dataclass(frozen=True)
class Insight:
    category: str
    severity: str
    title: str
    message: str
    actionable_tip: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FailureWarning:
    id: str
    title: str
    severity: str
    message: str
    weeks_until: Optional[int] = None
    remedies: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["remedies"] = list(self.remedies)
        return d


def validate_insight(i: Insight) -> None:
    if i.category not in INSIGHT_CATEGORIES:
        raise ValueError(f"insight.category invalid: {i.category}")
    if i.severity not in INSIGHT_SEVERITY:
        raise ValueError(f"insight.severity invalid: {i.severity}")
    if not (i.title or "").strip():
        raise ValueError("insight.title empty")
    if not (i.message or "").strip():
        raise ValueError("insight.message empty")


def validate_warning(w: FailureWarning) -> None:
    if not (w.id or "").strip():
        raise ValueError("warning.id empty")
    if w.severity not in WARNING_SEVERITY:
        raise ValueError(f"warning.severity invalid: {w.severity}")
    if not (w.title or "").strip():
        raise ValueError("warning.title empty")
    if w.weeks_until is not None and int(w.weeks_until) < 0:
        raise ValueError("warning.weeks_until must be >= 0")


def rank_insights(items: Sequence[Insight], cap: int = DEFAULT_CAP) -> List[Insight]:
    """Most severe first (stable within a severity), truncated to cap."""
    out = sorted(items, key=lambda i: -INSIGHT_SEVERITY[i.severity])
    return out[: max(0, int(cap))]


def rank_warnings(items: Sequence[FailureWarning], cap: int = DEFAULT_CAP) -> List[FailureWarning]:
    out = sorted(items, key=lambda w: -WARNING_SEVERITY[w.severity])
    return out[: max(0, int(cap))]
