"""
Tests for the event catalog, cooldowns, difficulty scaling and dilemma choices.
"""

import random

import pytest

from core import effects as fx
from core.events import (
    AUTOMATIC,
    DILEMMA,
    EVENT_CATALOG,
    EVENT_SPECS,
    Draft,
    EventEffect,
    EventSpec,
    InvalidChoice,
    apply_choice_by_index,
    build_event,
    check_for_events,
)
from core.victory import evaluate_outcome


def _always(event_id, *effects, cooldown=8):
    return EventSpec(
        event_id, 1.0, cooldown,
        lambda s, rng: True,
        lambda s, subject, rng: Draft(event_id, event_id, effects=tuple(effects)),
    )


class TestCatalog:
    def test_ids_unique(self):
        assert len(EVENT_SPECS) == len(EVENT_CATALOG)

    def test_probabilities_and_cooldowns_sane(self):
        for spec in EVENT_CATALOG:
            assert 0.0 < spec.probability <= 1.0
            assert spec.cooldown_weeks > 0

    def test_dilemmas_have_two_choices(self, indie):
        rng = random.Random(0)
        for eid in ("vc_offer", "acquisition_offer", "pivot_opportunity", "key_employee_burnout"):
            ev = build_event(EVENT_SPECS[eid], EVENT_SPECS[eid].build(indie, True, rng), week=1, dmod=1.0)
            assert ev.event_type == DILEMMA
            assert len(ev.choices) == 2


class TestCooldowns:
    def test_fires_again_only_after_cooldown(self, bare_state, monkeypatch):
        monkeypatch.setattr("core.events.EVENT_CATALOG", (_always("ping", EventEffect(fx.MORALE, 0.0)),))
        rng = random.Random(3)
        fired = []
        for week in range(20):
            bare_state.week = week
            if check_for_events(bare_state, rng):
                fired.append(week)
        assert fired == [0, 8, 16]

    def test_cooldowns_never_negative(self, indie):
        rng = random.Random(8)
        for _ in range(150):
            check_for_events(indie, rng)
            assert all(v >= 0 for v in indie.event_cooldowns.values())

    def test_weekly_cap(self, bare_state, monkeypatch):
        specs = tuple(_always(f"e{i}", EventEffect(fx.MORALE, 0.0)) for i in range(5))
        monkeypatch.setattr("core.events.EVENT_CATALOG", specs)
        events = check_for_events(bare_state, random.Random(1), max_events=2)
        assert len(events) == 2
        on_cooldown = {k for k, v in bare_state.event_cooldowns.items() if v > 0}
        assert on_cooldown == {e.id for e in events}


class TestEffects:
    def test_automatic_effects_applied_immediately(self, bare_state, monkeypatch):
        monkeypatch.setattr("core.events.EVENT_CATALOG", (_always("press", EventEffect(fx.REPUTATION, 5.0)),))
        (ev,) = check_for_events(bare_state, random.Random(1))
        assert ev.event_type == AUTOMATIC
        assert bare_state.reputation == pytest.approx(55.0)

    def test_difficulty_scales_effects(self):
        spec = _always("hit")
        draft = Draft("hit", "hit", effects=(EventEffect(fx.MORALE, -15.0), EventEffect(fx.GAME_END, 1.0)))
        ev = build_event(spec, draft, week=3, dmod=1.2)
        assert ev.effects[0].change == pytest.approx(-18.0)
        assert ev.effects[1].change == 1.0
        assert ev.difficulty_modifier == 1.2

    def test_burnout_risk_certain(self, bare_state):
        fx.apply_stat_change(bare_state, fx.BURNOUT_RISK, 100.0, random.Random(1))
        assert bare_state.morale == 0.0

    def test_burnout_risk_needs_rng(self, bare_state):
        with pytest.raises(ValueError):
            fx.apply_stat_change(bare_state, fx.BURNOUT_RISK, 50.0)


class TestChoices:
    @pytest.fixture
    def offer(self, bare_state):
        spec = EVENT_SPECS["acquisition_offer"]
        return build_event(spec, spec.build(bare_state, True, random.Random(0)), week=0, dmod=1.0)

    def test_accepting_acquisition_ends_game(self, bare_state, offer):
        apply_choice_by_index(bare_state, offer, 0, random.Random(0))
        assert evaluate_outcome(bare_state).kind == "acquired"

    def test_declining_keeps_playing(self, bare_state, offer):
        apply_choice_by_index(bare_state, offer, 1, random.Random(0))
        assert bare_state.outcome is None
        assert bare_state.morale == 100.0

    @pytest.mark.parametrize("index", [-1, 2, 9])
    def test_out_of_range(self, bare_state, offer, index):
        with pytest.raises(InvalidChoice):
            apply_choice_by_index(bare_state, offer, index, random.Random(0))

    def test_automatic_event_has_no_choices(self, bare_state):
        ev = build_event(_always("x"), Draft("x", "x", effects=(EventEffect(fx.MORALE, 1.0),)), week=0, dmod=1.0)
        with pytest.raises(InvalidChoice):
            apply_choice_by_index(bare_state, ev, 0, random.Random(0))
