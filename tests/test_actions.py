"""
Tests for action construction and per-kind effect formulas.
"""

import copy
import random

import pytest

from core import effects as fx
from core.actions import (
    ACTION_SPECS,
    Action,
    focus_cost,
    fundraise_probability,
    resolve_action,
    total_focus_cost,
)
from core.market import MARKET_CATALOG, build_condition


class TestActionRecords:
    def test_defaults_filled(self):
        a = Action.of("ShipFeature")
        assert a.param("quality") == "Balanced"

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            Action.of("Teleport")

    def test_bad_choice_value(self):
        with pytest.raises(ValueError):
            Action.of("ShipFeature", quality="Sloppy")

    def test_unknown_parameter(self):
        with pytest.raises(ValueError):
            Action.of("Hire", seniority="Staff")

    def test_focus_costs(self):
        assert focus_cost("Hire") == 2
        assert focus_cost("Fundraise") == 2
        assert focus_cost("DevRel") == 2
        assert focus_cost("TakeBreak") == 1
        assert total_focus_cost([Action.of("Hire"), Action.of("ShipFeature")]) == 3

    def test_dict_round_trip(self):
        a = Action.of("PaidAds", budget=2_500.0, channel="Google")
        assert Action.from_dict(a.to_dict()) == a

    def test_every_kind_has_a_resolver(self, bare_state):
        for kind in ACTION_SPECS:
            state = copy.deepcopy(bare_state)
            result = resolve_action(state, Action.of(kind), random.Random(5))
            assert result.kind == kind
            assert isinstance(result.message, str) and result.message


class TestTakeBreak:
    def test_morale_plus_fifteen_then_weekly_decay(self, bare_state):
        rng = random.Random(9)
        resolve_action(bare_state, Action.of("TakeBreak"), rng)
        assert bare_state.morale == pytest.approx(95.0)
        bare_state.advance_week(rng)
        assert bare_state.morale == pytest.approx(94.5)


class TestShipFeature:
    def test_quick_wau_within_declared_variance(self, bare_state):
        for seed in range(200):
            state = copy.deepcopy(bare_state)
            state.wau = 100
            resolve_action(state, Action.of("ShipFeature", quality="Quick"), random.Random(seed))
            assert int(100 * 1.015) <= state.wau <= int(100 * 1.045)

    def test_velocity_tracks_debt(self, bare_state):
        resolve_action(bare_state, Action.of("ShipFeature", quality="Quick"), random.Random(1))
        assert bare_state.velocity == pytest.approx(1.0 - bare_state.tech_debt / 200.0)

    def test_polish_pays_down_debt(self, bare_state):
        resolve_action(bare_state, Action.of("ShipFeature", quality="Polish"), random.Random(1))
        assert bare_state.tech_debt < 10.0


class TestFundraise:
    def test_probability_formula(self, bare_state):
        bare_state.reputation = 50.0
        bare_state.momentum = 0.0
        assert fundraise_probability(bare_state) == pytest.approx(0.55)

    def test_empirical_success_rate(self, bare_state):
        bare_state.reputation = 50.0
        bare_state.momentum = 0.0
        rng = random.Random(2024)
        wins = 0
        trials = 1000
        for _ in range(trials):
            state = copy.deepcopy(bare_state)
            if resolve_action(state, Action.of("Fundraise"), rng).success:
                wins += 1
        assert 0.50 <= wins / trials <= 0.60

    def test_success_dilutes_and_failure_hurts_morale(self, bare_state):
        bare_state.reputation = 100.0
        bare_state.momentum = 100.0  # saturates at the 0.8 cap
        for seed in range(30):
            state = copy.deepcopy(bare_state)
            r = resolve_action(state, Action.of("Fundraise", target=1_000_000.0), random.Random(seed))
            if r.success:
                assert state.bank == pytest.approx(bare_state.bank + 1_000_000.0)
                assert state.founder_equity == pytest.approx(96.0)
            else:
                assert state.morale == pytest.approx(bare_state.morale - 10.0)


class TestFounderLedSales:
    def test_deals_create_customers(self, bare_state):
        bare_state.reputation = 100.0
        resolve_action(bare_state, Action.of("FounderLedSales", call_count=40), random.Random(3))
        assert bare_state.mrr > 0
        assert bare_state.customers
        assert sum(c.mrr_contribution for c in bare_state.customers) == pytest.approx(bare_state.mrr)

    def test_zero_calls(self, bare_state):
        r = resolve_action(bare_state, Action.of("FounderLedSales", call_count=0), random.Random(3))
        assert r.success is False
        assert bare_state.mrr == 0

    def test_customer_ids_stay_unique_after_removal(self, bare_state):
        bare_state.reputation = 100.0
        rng = random.Random(3)
        resolve_action(bare_state, Action.of("FounderLedSales", call_count=40), rng)
        first = {c.id for c in bare_state.customers}
        del bare_state.customers[0]
        resolve_action(bare_state, Action.of("FounderLedSales", call_count=40), rng)
        ids = [c.id for c in bare_state.customers]
        assert len(ids) == len(set(ids))
        assert bare_state.next_customer_id == len(ids) + 2
        assert first.isdisjoint(ids[len(first) - 1:])


class TestFire:
    def test_cuts_burn_and_shrinks_team(self, bare_state):
        bare_state.team_size = 3
        r = resolve_action(bare_state, Action.of("Fire"), random.Random(2))
        assert r.success
        assert bare_state.burn < 8_000.0
        assert bare_state.team_size == 2

    def test_solo_founder_cannot_fire(self, bare_state):
        bare_state.unlocked_actions.append("Fire")
        snapshot = copy.deepcopy(bare_state)
        rng = random.Random(2)
        for _ in range(3):
            r = resolve_action(bare_state, Action.of("Fire"), rng)
            assert r.success is False
            assert r.effects == []
        assert bare_state == snapshot
        assert bare_state.burn == 8_000.0


class TestMarketEffectiveness:
    def test_take_break_gain_scales(self, bare_state):
        bare_state.morale = 50.0
        resolve_action(bare_state, Action.of("TakeBreak"), random.Random(1), effectiveness=2.0)
        assert bare_state.morale == pytest.approx(80.0)

    def test_hire_cost_uses_market_multiplier(self, bare_state):
        bare_state.active_market_conditions = [build_condition(MARKET_CATALOG["TalentWar"], duration=4, week=0)]
        r = resolve_action(bare_state, Action.of("Hire"), random.Random(1))
        burn = next(e for e in r.effects if e.stat_name == fx.BURN)
        assert burn.delta == pytest.approx(16_000.0)
        assert bare_state.team_size == 2

    def test_incident_response_losses_shrink_with_effectiveness(self, bare_state):
        bare_state.incident_count = 1
        low = copy.deepcopy(bare_state)
        high = copy.deepcopy(bare_state)
        resolve_action(low, Action.of("IncidentResponse"), random.Random(4), effectiveness=1.0)
        resolve_action(high, Action.of("IncidentResponse"), random.Random(4), effectiveness=2.0)
        assert high.morale > low.morale
        assert low.incident_count == 0
