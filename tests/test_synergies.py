"""
Tests for same-turn synergies and specialization paths.
"""

import pytest

from core.state import ActionHistoryEntry
from core.synergies import (
    CUSTOMER_OBSESSED,
    GROWTH_HACKING,
    OPERATIONAL_EFFICIENCY,
    PRODUCT_EXCELLENCE,
    apply_synergy_bonuses,
    calculate_action_combo_score,
    check_action_synergies,
    detect_specialization_path,
)


def _ids(kinds):
    return {s.id for s in check_action_synergies(kinds)}


class TestDetection:
    def test_requires_every_member(self):
        assert "launch_momentum" in _ids(["ShipFeature", "ContentLaunch"])
        assert "launch_momentum" not in _ids(["ShipFeature"])

    def test_extra_kinds_do_not_block(self):
        ids = _ids(["ShipFeature", "ContentLaunch", "DevRel"])
        assert {"launch_momentum", "product_credibility", "community_building"} <= ids

    def test_duplicates_count_once(self):
        assert _ids(["ShipFeature", "ShipFeature"]) == set()

    def test_empty_turn(self):
        assert check_action_synergies([]) == []


class TestBonuses:
    def test_launch_momentum_multiplies_wau(self, bare_state):
        bare_state.wau = 1000
        apply_synergy_bonuses(bare_state, check_action_synergies(["ShipFeature", "ContentLaunch"]))
        assert bare_state.wau == 1150

    def test_additive_bonus_is_clamped(self, bare_state):
        bare_state.morale = 95.0
        apply_synergy_bonuses(bare_state, check_action_synergies(["TakeBreak", "Coach"]))
        assert bare_state.morale == 100.0
        assert bare_state.reputation == pytest.approx(55.0)

    def test_combo_score(self):
        syns = check_action_synergies(["ShipFeature", "ContentLaunch"])
        assert calculate_action_combo_score(syns) == pytest.approx(0.315)
        assert calculate_action_combo_score([]) == 0.0

    def test_combo_score_ceiling(self):
        kinds = ["ShipFeature", "ContentLaunch", "DevRel", "PaidAds", "RunExperiment", "FounderLedSales", "Coach"]
        assert calculate_action_combo_score(check_action_synergies(kinds)) == 2.0


class TestSpecialization:
    @pytest.mark.parametrize(
        "kinds,expected",
        [
            (["ShipFeature", "RefactorCode", "RunExperiment"], PRODUCT_EXCELLENCE),
            (["FounderLedSales", "ContentLaunch", "PaidAds"], GROWTH_HACKING),
            (["ComplianceWork", "IncidentResponse", "ProcessImprovement"], OPERATIONAL_EFFICIENCY),
            (["FounderLedSales", "Hire", "Coach"], CUSTOMER_OBSESSED),
            (["ShipFeature", "FounderLedSales", "TakeBreak"], None),
            ([], None),
        ],
    )
    def test_paths(self, kinds, expected):
        assert detect_specialization_path([], kinds) == expected

    def test_window_uses_trailing_history(self):
        history = [ActionHistoryEntry(week=w, actions=["ShipFeature"]) for w in range(8)]
        assert detect_specialization_path(history, ["TakeBreak"]) == PRODUCT_EXCELLENCE

    def test_old_history_falls_out_of_window(self):
        old = [ActionHistoryEntry(week=w, actions=["ShipFeature"]) for w in range(10)]
        recent = [ActionHistoryEntry(week=10 + w, actions=["TakeBreak"]) for w in range(8)]
        assert detect_specialization_path(old + recent, []) is None
