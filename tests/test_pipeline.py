"""
Tests for the weekly turn pipeline: validation, ordering, determinism, bounds.
"""

import copy
import json
import math

import pytest

from core.actions import Action
from core.customers import CHURNED, CHURNED_RETENTION, SMB, Customer
from core.events import AUTOMATIC, DILEMMA, EventChoice, GameEvent, InvalidChoice
from core.modes import INDIE_BOOTSTRAP
from engine.config import EngineConfig
from engine.logging import dumps_run_export, make_run_export
from engine.pipeline import TurnRejected, apply_choice, resolve_turn, start_game
from engine.sim_runner import ScriptedPolicy


def _bounded(state):
    assert 0.0 <= state.morale <= 100.0
    assert 0.0 <= state.reputation <= 100.0
    assert 0.0 <= state.tech_debt <= 100.0
    assert 0.0 <= state.compliance_risk <= 100.0
    assert -100.0 <= state.nps <= 100.0
    assert 0.1 <= state.velocity <= 3.0
    assert state.wau >= 0
    assert state.focus_slots >= 2


class TestValidation:
    def test_focus_budget(self, indie, config):
        snapshot = copy.deepcopy(indie)
        with pytest.raises(TurnRejected) as exc:
            resolve_turn(indie, [Action.of("Hire"), Action.of("Fundraise")], config=config)
        assert exc.value.reason == "focus budget exceeded: 4 > 3"
        assert indie == snapshot

    def test_locked_action(self, indie, config):
        snapshot = copy.deepcopy(indie)
        with pytest.raises(TurnRejected) as exc:
            resolve_turn(indie, [Action.of("PaidAds")], config=config)
        assert "not unlocked" in exc.value.reason
        assert indie == snapshot

    def test_empty_turn_is_allowed(self, indie, config):
        result = resolve_turn(indie, [], config=config)
        assert result.state.week == indie.week + 1


class TestResolveTurn:
    def test_take_break_week(self, indie, config, monkeypatch):
        monkeypatch.setattr("core.events.EVENT_CATALOG", ())
        monkeypatch.setattr("core.market.NEW_CONDITION_PROBABILITY", 0.0)
        result = resolve_turn(indie, [Action.of("TakeBreak")], config=config)
        assert result.state.morale == pytest.approx(94.5)
        assert result.state.week == 1

    def test_solo_fire_leaves_burn(self, indie, config):
        indie.unlocked_actions.append("Fire")
        state = indie
        for _ in range(3):
            result = resolve_turn(state, [Action.of("Fire")], config=config)
            assert result.action_results[0].success is False
            state = result.state
        assert state.burn == indie.burn
        assert state.team_size == 1
        assert math.isfinite(state.runway_months)

    def test_churned_customers_are_pruned(self, indie, config):
        indie.customers = [
            Customer(id=f"cus-{i}", segment=SMB, join_week=0, satisfaction=5.0, lifecycle_stage=CHURNED)
            for i in range(1, 25)
        ]
        indie.next_customer_id = 25
        result = resolve_turn(indie, [], config=config)
        churned = [c for c in result.state.customers if c.lifecycle_stage == CHURNED]
        assert len(churned) == CHURNED_RETENTION
        assert churned[-1].id == "cus-24"
        assert len(indie.customers) == 24

    def test_input_is_not_mutated(self, indie, config):
        snapshot = copy.deepcopy(indie)
        resolve_turn(indie, [Action.of("ShipFeature"), Action.of("FounderLedSales")], config=config)
        assert indie == snapshot

    def test_deterministic(self, indie, config):
        actions = [Action.of("ShipFeature", quality="Quick"), Action.of("FounderLedSales", call_count=10)]
        a = resolve_turn(indie, actions, config=config)
        b = resolve_turn(indie, actions, config=config)
        assert a.state.to_dict() == b.state.to_dict()
        assert a.to_log() == b.to_log()

    def test_seed_changes_outcome(self, indie):
        actions = [Action.of("FounderLedSales", call_count=20)]
        runs = {
            json.dumps(resolve_turn(indie, actions, config=EngineConfig(base_seed=s)).state.to_dict(), sort_keys=True, default=str)
            for s in range(5)
        }
        assert len(runs) > 1

    def test_synergy_and_history_recorded(self, indie, config):
        indie.week = 5
        indie.unlocked_actions.append("ContentLaunch")
        result = resolve_turn(indie, [Action.of("ShipFeature"), Action.of("ContentLaunch")], config=config)
        assert [s.id for s in result.synergies] == ["launch_momentum"]
        entry = result.state.action_history[-1]
        assert (entry.week, entry.actions) == (5, ["ShipFeature", "ContentLaunch"])

    def test_unlocks_reported(self, indie, config):
        indie.week = 5
        result = resolve_turn(indie, [], config=config)
        assert {"RefactorCode", "ContentLaunch", "Coach"} <= set(result.newly_unlocked)

    def test_at_most_two_events(self, any_difficulty):
        cfg = EngineConfig(base_seed=3)
        state = start_game(any_difficulty, cfg, game_id="cap")
        for _ in range(20):
            result = resolve_turn(state, [], config=cfg)
            assert len(result.candidate_events) <= 2
            assert len(result.insights) <= 3
            assert len(result.warnings) <= 3
            state = result.state
            if result.outcome:
                break


class TestLongRun:
    def test_bounds_and_streak_hold(self, any_difficulty):
        cfg = EngineConfig(base_seed=21)
        state = start_game(any_difficulty, cfg, game_id="long")
        policy = ScriptedPolicy()
        for _ in range(40):
            before = state.escape_velocity_progress.streak_weeks
            result = resolve_turn(state, policy.choose(state), config=cfg)
            state = result.state
            _bounded(state)
            streak = state.escape_velocity_progress.streak_weeks
            assert streak in (0, before + 1)
            assert len(state.history) <= cfg.history_limit
            assert all(v >= 0 for v in state.event_cooldowns.values())
            for ev in result.candidate_events:
                if ev.is_dilemma:
                    state = apply_choice(state, ev, 0, config=cfg)
                    _bounded(state)
            if result.outcome:
                break


class TestApplyChoice:
    @pytest.fixture
    def dilemma(self):
        return GameEvent(
            id="vc_offer", week=0, title="t", description="d", event_type=DILEMMA,
            choices=(EventChoice("a", "a", ()),),
        )

    def test_out_of_range(self, indie, dilemma):
        snapshot = copy.deepcopy(indie)
        with pytest.raises(InvalidChoice):
            apply_choice(indie, dilemma, 3)
        assert indie == snapshot

    def test_not_a_dilemma(self, indie):
        ev = GameEvent(id="press_mention", week=0, title="t", description="d", event_type=AUTOMATIC)
        with pytest.raises(InvalidChoice):
            apply_choice(indie, ev, 0)

    def test_returns_new_state(self, indie, dilemma):
        out = apply_choice(indie, dilemma, 0)
        assert out is not indie
        assert out == indie


def test_log_export_is_json(indie, config):
    logs = []
    state = indie
    for _ in range(3):
        result = resolve_turn(state, [Action.of("ShipFeature")], config=config)
        logs.append(result.to_log())
        state = result.state
    text = dumps_run_export(make_run_export(seed=7, config=config.to_dict(), initial_state=indie, week_logs=logs))
    data = json.loads(text)
    assert data["seed"] == 7
    assert [w["week"] for w in data["week_logs"]] == [0, 1, 2]
    assert data["initial_state"]["difficulty"] == INDIE_BOOTSTRAP
