"""
Tests for pot settlement.
"""

import pytest
from mentalpoker.core.settlement import fold_payout, showdown_payout, uncalled_excess


class TestFoldPayout:
    def test_pot_to_other_seat(self):
        payout = fold_payout(13, folder=1)
        assert payout.amounts == (13, 0)
        assert payout.winner == 0
        assert payout.reason == "fold"

    def test_folder_zero(self):
        assert fold_payout(3, folder=0).amounts == (0, 3)


class TestShowdownPayout:
    """Lower values are stronger hands."""

    def test_lower_value_wins(self):
        payout = showdown_payout(40, [1600, 323], button=0)
        assert payout.winner == 1
        assert payout.amounts == (0, 40)
        assert payout.total == 40

    def test_even_split(self):
        payout = showdown_payout(40, [7462, 7462], button=1)
        assert payout.winner is None
        assert payout.amounts == (20, 20)
        assert payout.reason == "split"

    @pytest.mark.parametrize("button,expected", [(0, (21, 20)), (1, (20, 21))])
    def test_odd_chip_to_button(self, button, expected):
        payout = showdown_payout(41, [5, 5], button=button)
        assert payout.amounts == expected
        assert payout.total == 41

    @pytest.mark.parametrize("values", [[0, 5], [5, 0], [5]])
    def test_missing_value(self, values):
        with pytest.raises(ValueError):
            showdown_payout(10, values, button=0)


class TestUncalledExcess:
    def test_covered(self):
        assert uncalled_excess(10, 50) == 0
        assert uncalled_excess(50, 50) == 0

    def test_short_stack(self):
        assert uncalled_excess(60, 48) == 12
