"""
Tests for the pure allocation planner.
"""

import pytest

from slabman.exceptions import SlabValidationError
from slabman.services.allocation import (
    CUT,
    EXACT,
    PARTIAL,
    AllocationCandidate,
    SlabRequest,
    has_enough_quantity,
    plan_allocation,
    rank_candidates,
)


def lot(lot_id, length, width, slab_count):
    return AllocationCandidate(
        lot_id=lot_id,
        length=length,
        width=width,
        slab_count=slab_count,
        quantity=length * width * slab_count,
    )


class TestSlabRequest:
    """Tests for SlabRequest validation."""

    @pytest.mark.parametrize('length,width', [(0, 2), (-1, 2), (2, float('nan')), (2, None)])
    def test_invalid_dimensions(self, length, width):
        with pytest.raises(SlabValidationError) as exc:
            SlabRequest(length=length, width=width, count=1)

        assert exc.value.code == 'INVALID_DIMENSIONS'

    @pytest.mark.parametrize('count', [0, -2, 1.5, True])
    def test_invalid_count(self, count):
        with pytest.raises(SlabValidationError) as exc:
            SlabRequest(length=4, width=2, count=count)

        assert exc.value.code == 'INVALID_COUNT'

    def test_area(self):
        request = SlabRequest(length=4, width=2, count=3)

        assert request.piece_area == 8
        assert request.area == 24


class TestPlanAllocation:
    """Tests for plan_allocation()."""

    def test_exact_lot(self):
        """2 slabs of 5x3 from one exact 5x3x4 lot."""
        plan = plan_allocation(SlabRequest(5, 3, 2), [lot(1, 5, 3, 4)])

        assert plan.can_fulfill
        assert len(plan.steps) == 1
        step = plan.steps[0]
        assert step.kind == EXACT
        assert step.slabs_used == 2
        assert step.remaining_slabs == 2
        assert step.waste == 0
        assert plan.total_allocated == pytest.approx(30)
        assert plan.total_waste == 0

    def test_partial_cut_consumes_lot(self):
        """3 slabs of 4x2 from one 10x10 slab: 3 of 10 cuts used."""
        plan = plan_allocation(SlabRequest(4, 2, 3), [lot(1, 10, 10, 1)])

        assert plan.can_fulfill
        step = plan.steps[0]
        assert step.kind == PARTIAL
        assert step.slabs_used == 1
        assert step.pieces == 3
        assert step.cuts_per_slab == 10
        assert step.consumes_lot
        assert step.waste == pytest.approx(76)
        assert plan.total_allocated == pytest.approx(24)

    def test_shortfall_message(self):
        """Request beyond stock reports the missing slab count."""
        request = SlabRequest(5, 3, 4)
        candidates = [lot(1, 5, 3, 1)]

        assert not has_enough_quantity(request, candidates)

        plan = plan_allocation(request, candidates)

        assert not plan.can_fulfill
        assert plan.shortfall == 3
        assert plan.message == 'Estoque insuficiente. Faltam 3 chapa(s) de 5x3.'

    def test_full_cut(self):
        """All pieces from the slabs used are taken."""
        plan = plan_allocation(SlabRequest(4, 2, 20), [lot(1, 10, 10, 3)])

        step = plan.steps[0]
        assert step.kind == CUT
        assert step.slabs_used == 2
        assert step.remaining_slabs == 1
        assert step.waste == pytest.approx(40)

    def test_slab_count_caps_usage(self):
        """Enough area is not enough when pieces don't tile."""
        request = SlabRequest(4, 2, 25)
        candidates = [lot(1, 10, 10, 2)]

        assert has_enough_quantity(request, candidates)

        plan = plan_allocation(request, candidates)

        assert plan.steps[0].slabs_used == 2
        assert plan.steps[0].pieces == 20
        assert plan.shortfall == 5

    def test_exact_preferred_over_larger(self):
        """Exact lot is consumed before cutting a bigger one."""
        request = SlabRequest(5, 3, 3)
        plan = plan_allocation(request, [lot(1, 10, 10, 5), lot(2, 5, 3, 1)])

        assert plan.can_fulfill
        assert [s.lot_id for s in plan.steps] == [2, 1]
        assert plan.steps[0].kind == EXACT
        assert plan.steps[1].kind == PARTIAL
        assert plan.steps[1].pieces == 2

    def test_uncuttable_lot_skipped(self):
        """3x3 covers 4x2 by area but yields no piece."""
        plan = plan_allocation(SlabRequest(4, 2, 1), [lot(1, 3, 3, 5)])

        assert plan.steps == ()
        assert plan.shortfall == 1

    def test_empty_candidates(self):
        plan = plan_allocation(SlabRequest(4, 2, 1), [])

        assert not plan.can_fulfill
        assert plan.total_allocated == 0

    def test_input_untouched(self):
        candidates = [lot(1, 10, 10, 1), lot(2, 5, 3, 2)]
        snapshot = list(candidates)

        plan_allocation(SlabRequest(5, 3, 2), candidates)

        assert candidates == snapshot


class TestRankCandidates:
    """Tests for the ranking comparator."""

    def test_more_cuts_then_less_waste(self):
        request = SlabRequest(2, 2, 1)
        a = lot(1, 4, 4, 1)   # 4 cuts, no waste
        b = lot(2, 6, 2, 1)   # 3 cuts
        c = lot(3, 5, 5, 1)   # 4 cuts, 9 waste

        ranked = rank_candidates(request, [b, c, a])

        assert [x.lot_id for x in ranked] == [1, 3, 2]

    def test_larger_lot_breaks_tie(self):
        request = SlabRequest(2, 2, 1)

        ranked = rank_candidates(request, [lot(1, 4, 4, 1), lot(2, 4, 4, 3)])

        assert [x.lot_id for x in ranked] == [2, 1]

    def test_full_tie_keeps_order(self):
        request = SlabRequest(2, 2, 1)

        ranked = rank_candidates(request, [lot(7, 4, 4, 1), lot(3, 4, 4, 1)])

        assert [x.lot_id for x in ranked] == [7, 3]

    def test_waste_within_epsilon_is_tie(self):
        request = SlabRequest(2, 2, 1)
        a = lot(1, 4.001, 4, 1)
        b = lot(2, 4, 4, 1)

        ranked = rank_candidates(request, [a, b])

        assert [x.lot_id for x in ranked] == [1, 2]
