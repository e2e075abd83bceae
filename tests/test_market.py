"""
Tests for market condition lifecycle and modifiers.
"""

import random

import pytest

from core.market import (
    MARKET_CATALOG,
    MarketCondition,
    apply_market_drift,
    build_condition,
    calculate_market_adjusted_metric,
    catalog_weights,
    competitor_threat,
    generate_market_condition,
    get_action_effectiveness_modifier,
    roll_market_conditions,
    update_market_conditions,
)
from core.modes import REGULATED_FINTECH


def _cond(cid, duration=4):
    return build_condition(MARKET_CATALOG[cid], duration=duration, week=0)


class TestLifecycle:
    def test_aging_drops_expired(self):
        conds = [_cond("BullMarket", 1), _cond("Recession", 3)]
        expired = update_market_conditions(conds)
        assert expired == ["BullMarket"]
        assert [(c.id, c.duration_weeks) for c in conds] == [("Recession", 2)]

    def test_duration_never_negative(self):
        c = MarketCondition("BullMarket", 0)
        update_market_conditions([c])
        assert c.duration_weeks == 0

    def test_new_condition_duration_range(self, bare_state):
        seen = 0
        for seed in range(300):
            cond = generate_market_condition(bare_state, random.Random(seed))
            if cond is None:
                continue
            seen += 1
            assert 4 <= cond.duration_weeks <= 8
            assert cond.id in MARKET_CATALOG
        assert seen > 0

    def test_roll_never_duplicates_active(self, bare_state):
        rng = random.Random(11)
        for _ in range(200):
            roll_market_conditions(bare_state, rng)
            ids = [c.id for c in bare_state.active_market_conditions]
            assert len(ids) == len(set(ids))


class TestModifiers:
    def test_adjusted_metric_composes(self):
        conds = [_cond("BullMarket"), _cond("ViralTrend")]
        assert calculate_market_adjusted_metric(100.0, "wau_growth", conds) == pytest.approx(168.0)

    def test_unrelated_metric_untouched(self):
        assert calculate_market_adjusted_metric(100.0, "nps", [_cond("BullMarket")]) == 100.0

    def test_effectiveness_clamped(self):
        conds = [_cond("BullMarket"), _cond("TechBoom"), _cond("EconomicStimulus")]
        assert get_action_effectiveness_modifier("Fundraise", conds) == 2.0

    def test_effectiveness_floor(self):
        conds = [_cond("Recession")]
        assert get_action_effectiveness_modifier("Fundraise", conds) == pytest.approx(0.6)
        assert get_action_effectiveness_modifier("ShipFeature", []) == 1.0

    def test_competitor_launch_scales_with_threat(self):
        calm = build_condition(MARKET_CATALOG["CompetitorLaunch"], duration=4, week=0, threat=0.0)
        hot = build_condition(MARKET_CATALOG["CompetitorLaunch"], duration=4, week=0, threat=1.0)
        assert calm.multiplier_for("wau_growth") == pytest.approx(0.925)
        assert hot.multiplier_for("wau_growth") == pytest.approx(0.775)

    def test_competitor_launch_without_rivals_uses_catalog_values(self, bare_state, monkeypatch):
        monkeypatch.setattr("core.market.NEW_CONDITION_PROBABILITY", 1.0)
        monkeypatch.setattr("core.market.catalog_weights", lambda state: {"CompetitorLaunch": 1.0})
        assert bare_state.competitors == []
        assert competitor_threat(bare_state) == 0.5
        cond = generate_market_condition(bare_state, random.Random(3))
        assert cond.id == "CompetitorLaunch"
        assert cond.multiplier_for("wau_growth") == pytest.approx(0.85)
        assert cond.multiplier_for("reputation") == pytest.approx(0.9)


class TestDrift:
    def test_no_conditions_no_drift(self, bare_state):
        assert apply_market_drift(bare_state) == {}
        assert bare_state.morale == 80.0

    def test_velocity_drift_is_small(self, bare_state):
        bare_state.active_market_conditions = [_cond("SupplyChainDisruption")]
        deltas = apply_market_drift(bare_state)
        assert deltas == {"velocity": pytest.approx(-0.02)}
        assert bare_state.velocity == pytest.approx(0.98)


class TestWeights:
    def test_regulation_weighted_for_fintech(self, bare_state):
        bare_state.difficulty = REGULATED_FINTECH
        assert catalog_weights(bare_state)["RegulationChange"] == pytest.approx(12.0)

    def test_active_conditions_excluded(self, bare_state):
        bare_state.active_market_conditions = [_cond("TalentWar")]
        assert "TalentWar" not in catalog_weights(bare_state)

    def test_round_trip(self):
        c = _cond("TechCrunch", 6)
        assert MarketCondition.from_dict(c.to_dict()) == c
