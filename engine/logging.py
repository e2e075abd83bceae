"""engine.logging

Small helpers for storing run logs.

A run log is JSON-serializable so it can be exported/imported later.
"""

from __future__ import annotations

import json
import math
from typing import Any, Dict, List

from core.state import GameState


def _finite(obj: Any) -> Any:
    # json has no Infinity; infinite runway is written as null
    if isinstance(obj, float) and math.isinf(obj):
        return None
    if isinstance(obj, dict):
        return {k: _finite(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_finite(v) for v in obj]
    return obj


def make_run_export(*, seed: int, config: Dict[str, Any], initial_state: GameState, week_logs: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "version": 1,
        "seed": int(seed),
        "config": dict(config),
        "initial_state": initial_state.to_dict(),
        "week_logs": list(week_logs),
    }


def dumps_run_export(obj: Dict[str, Any]) -> str:
    return json.dumps(_finite(obj), ensure_ascii=False, indent=2, sort_keys=True, allow_nan=False)
