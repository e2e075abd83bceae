"""
Tests for the headless scripted runner.
"""

import json

from core.modes import DEFAULT_MODES
from engine.logging import dumps_run_export
from engine.sim_runner import ScriptedPolicy, run_headless_sim


def test_same_seed_same_run():
    a = run_headless_sim(weeks=12, seed=42)
    b = run_headless_sim(weeks=12, seed=42)
    assert a["final"].to_dict() == b["final"].to_dict()
    assert dumps_run_export(a["export"]) == dumps_run_export(b["export"])


def test_runs_every_difficulty():
    for difficulty in DEFAULT_MODES:
        out = run_headless_sim(weeks=8, difficulty=difficulty, seed=5)
        assert 1 <= out["weeks"] <= 8
        assert out["final"].difficulty == difficulty


def test_export_round_trips_through_json():
    out = run_headless_sim(weeks=6, seed=9)
    data = json.loads(dumps_run_export(out["export"]))
    assert data["seed"] == 9
    assert len(data["week_logs"]) == out["weeks"]
    assert data["config"]["base_seed"] == 9


def test_policy_respects_focus_and_unlocks(indie):
    indie.morale = 20.0
    indie.tech_debt = 90.0
    picked = ScriptedPolicy().choose(indie)
    assert sum(a.focus_cost for a in picked) <= indie.focus_slots
    assert all(a.kind in indie.unlocked_actions for a in picked)
    assert picked[0].kind == "TakeBreak"
