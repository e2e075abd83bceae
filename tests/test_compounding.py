"""
Tests for compounding effects over trailing week snapshots.
"""

import pytest

from core.compounding import apply_compounding_bonuses, check_compounding_effects, count_consecutive_weeks
from core.state import WeekSnapshot


def _snap(week, **kw):
    base = dict(bank=50_000.0, mrr=0.0, burn=8_000.0, wau=100, morale=80.0, reputation=50.0, momentum=0.5)
    base.update(kw)
    return WeekSnapshot(week=week, **base)


class TestConsecutiveWeeks:
    def test_counts_back_from_latest(self):
        history = [_snap(w) for w in range(6)]
        assert count_consecutive_weeks(history, 12, lambda h: h.morale > 75.0) == 6

    def test_stops_at_first_break(self):
        history = [_snap(0), _snap(1, morale=40.0), _snap(2), _snap(3)]
        assert count_consecutive_weeks(history, 12, lambda h: h.morale > 75.0) == 2

    def test_respects_lookback(self):
        history = [_snap(w) for w in range(20)]
        assert count_consecutive_weeks(history, 12, lambda h: True) == 12

    def test_empty_history(self):
        assert count_consecutive_weeks([], 12, lambda h: True) == 0


class TestStrongCulture:
    @pytest.fixture
    def cultured(self, bare_state):
        bare_state.history = [_snap(w) for w in range(9)]
        return bare_state

    def test_only_strong_culture_qualifies(self, cultured):
        bonuses = check_compounding_effects(cultured)
        assert [b.effect_id for b in bonuses] == ["strong_culture"]
        assert bonuses[0].weeks == 9
        assert bonuses[0].strength == pytest.approx(1.125)

    def test_bonus_applied(self, cultured):
        apply_compounding_bonuses(cultured, check_compounding_effects(cultured))
        assert cultured.velocity == pytest.approx(1.1125)
        assert cultured.reputation == pytest.approx(55.625)

    def test_strength_is_capped(self, bare_state):
        bare_state.history = [_snap(w) for w in range(40)]
        bonuses = {b.effect_id: b for b in check_compounding_effects(bare_state, lookback=40)}
        assert bonuses["strong_culture"].strength == 2.0
        assert bonuses["sustainable_pace"].strength == 1.5

    def test_gate_blocks_even_with_history(self, cultured):
        cultured.morale = 60.0
        assert "strong_culture" not in {b.effect_id for b in check_compounding_effects(cultured)}

    def test_short_run_does_not_qualify(self, bare_state):
        bare_state.history = [_snap(w) for w in range(7)]
        assert check_compounding_effects(bare_state) == []
