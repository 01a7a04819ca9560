"""
Tests for slab geometry helpers.
"""

import pytest

from slabman.geometry import (
    LENGTHWISE,
    WIDTHWISE,
    cuts_per_unit,
    fits,
    is_exact,
    offcut,
)


class TestFits:
    """Tests for fits() (area-based)."""

    def test_larger_slab_fits(self):
        assert fits(10, 10, 4, 2)

    def test_same_area_fits(self):
        assert fits(5, 3, 3, 5)

    def test_smaller_slab_does_not_fit(self):
        assert not fits(3, 2, 4, 2)

    def test_area_only_approximation(self):
        """A 10x1 strip 'fits' a 3x3 piece by area although nothing can be cut."""
        assert fits(10, 1, 3, 3)
        assert cuts_per_unit(10, 1, 3, 3).count == 0


class TestIsExact:

    def test_within_epsilon(self):
        assert is_exact(5.005, 3, 5, 3)

    def test_outside_epsilon(self):
        assert not is_exact(5.02, 3, 5, 3)

    def test_rotated_is_not_exact(self):
        assert not is_exact(3, 5, 5, 3)


class TestCutsPerUnit:
    """Tests for cuts_per_unit()."""

    def test_tie_goes_lengthwise(self):
        """10x10 into 4x2: 2*5 either way."""
        pattern = cuts_per_unit(10, 10, 4, 2)

        assert pattern.count == 10
        assert pattern.orientation == LENGTHWISE
        assert pattern.waste == pytest.approx(20)

    def test_widthwise_wins(self):
        """5x3 into 3x5 only works rotated."""
        pattern = cuts_per_unit(5, 3, 3, 5)

        assert pattern.count == 1
        assert pattern.orientation == WIDTHWISE
        assert pattern.waste == pytest.approx(0)

    def test_nothing_fits(self):
        pattern = cuts_per_unit(3, 3, 4, 2)

        assert pattern.count == 0
        assert not pattern.can_cut

    def test_float_drift_does_not_lose_a_piece(self):
        """0.3 * 3 is 0.8999999999999999 but still holds three 0.3 pieces."""
        assert cuts_per_unit(0.3 * 3, 0.3, 0.3, 0.3).count == 3


class TestOffcut:
    """Tests for offcut() (remnant geometry)."""

    def test_side_strip_larger(self):
        """10x7 with 4x2 pieces: 2 cols, 3 rows. Top 10x1, side 2x6."""
        assert offcut(10, 7, 4, 2, LENGTHWISE) == pytest.approx((2.0, 6.0))

    def test_top_strip_larger(self):
        """10x5 with 3x2 pieces: 3 cols, 2 rows. Top 10x1, side 1x4."""
        assert offcut(10, 5, 3, 2, LENGTHWISE) == pytest.approx((10.0, 1.0))

    def test_widthwise_orientation_swaps_piece(self):
        """5x3 with 3x5 pieces laid widthwise leaves nothing."""
        length, width = offcut(5, 3, 3, 5, WIDTHWISE)

        assert length * width == pytest.approx(0)
