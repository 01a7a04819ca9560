"""
Integration tests for the reservation transaction.

Covers whole-pool properties: area bookkeeping across several lots,
agreement between the quick area check and the planner, rollback on
failure mid-sequence and optimistic write guards.
"""

from unittest import mock

import pytest
from django.db import DatabaseError

from slabman import stock
from slabman.exceptions import InsufficientStock, StorageConflict
from slabman.models import (
    Direction,
    LedgerEntry,
    LotOrigin,
    MaterialShade,
    Reservation,
    StockLot,
    StockStatus,
)
from slabman.services.allocation import AllocationCandidate, plan_allocation
from slabman.services.queries import build_request
from slabman.services.reservations import StockReservations


pytestmark = pytest.mark.django_db


def snapshot(material, shade='A'):
    return sorted(
        StockLot.objects.for_pool(material, shade)
        .values_list('pk', 'length', 'width', 'slab_count', 'quantity')
    )


def ledger_net(material, shade='A'):
    """Signed ledger sum of a pool; deliveries hand over stock already out."""
    entries = LedgerEntry.objects.filter(material=material, shade=shade)
    return sum(e.signed_quantity for e in entries if e.metadata.get('kind') != 'delivery')


class TestAreaConservation:
    """before == after + allocated + waste - remnant area."""

    @pytest.mark.parametrize('length,width,count', [
        (5, 3, 2),     # exact only
        (4, 2, 16),    # cut with remnant
        (4, 2, 30),    # several lots, one consumed
        (2, 2, 1),     # single piece from the best cutter
    ])
    def test_conserved(self, travertino, receive, pool_area, length, width, count):
        receive(5, 3, 3)
        receive(10, 7, 3)
        receive(10, 10, 1)
        before = pool_area()

        result = stock.reserve(travertino, 'A', length, width, count, client_name='Ana')

        after = pool_area()
        assert before == pytest.approx(
            after + result.total_allocated + result.total_waste - result.remnant_area
        )
        assert result.total_remaining == pytest.approx(after)
        assert ledger_net(travertino) == pytest.approx(after)

    def test_ledger_matches_pool(self, travertino, receive, pool_area):
        """Cuts, remnants and releases all net out to the lot totals."""
        receive(10, 7, 3)

        result = stock.reserve(travertino, 'A', 4, 2, 6, client_name='Ana')

        assert result.remnants_created == 1
        assert pool_area() == pytest.approx(152)
        assert ledger_net(travertino) == pytest.approx(pool_area())
        out = LedgerEntry.objects.filter(direction=Direction.OUT)
        assert out.count() == len(result.steps)

        stock.release(result.reservation_ids[0])

        assert ledger_net(travertino) == pytest.approx(pool_area())

    def test_delivery_not_counted_against_pool(self, travertino, receive, pool_area):
        receive(5, 3, 1)
        receive(10, 10, 2)

        result = stock.reserve(travertino, 'A', 5, 3, 4, client_name='Ana')
        stock.deliver(result.reservation_ids[0])

        assert ledger_net(travertino) == pytest.approx(pool_area())

    def test_release_after_remnant(self, travertino, receive, pool_area):
        """Released stock comes back as requested, remnants stay."""
        receive(10, 7, 3)

        result = stock.reserve(travertino, 'A', 4, 2, 6, client_name='Ana')
        stock.release(result.reservation_ids[0])

        origins = sorted(StockLot.objects.values_list('origin', flat=True))
        assert origins == [LotOrigin.RECEIVED, LotOrigin.RELEASED, LotOrigin.REMNANT]
        assert pool_area() == pytest.approx(140 + 12 + 48)


class TestFastPathAgreement:
    """has_enough_quantity() and reserve() never disagree."""

    @pytest.mark.parametrize('count', [1, 4, 5, 6, 12])
    def test_agreement(self, travertino, receive, count):
        receive(5, 3, 2)
        receive(7, 4, 2)
        enough = stock.has_enough_quantity(travertino, 'A', 5, 3, count)
        plan = stock.plan(travertino, 'A', 5, 3, count)

        # A plan that can be fulfilled always passed the quick check
        if plan.can_fulfill:
            assert enough

        if not enough:
            with pytest.raises(InsufficientStock) as exc:
                stock.reserve(travertino, 'A', 5, 3, count, client_name='Ana')
            assert exc.value.code == 'INSUFFICIENT_AREA'
        elif plan.can_fulfill:
            stock.reserve(travertino, 'A', 5, 3, count, client_name='Ana')
        else:
            with pytest.raises(InsufficientStock) as exc:
                stock.reserve(travertino, 'A', 5, 3, count, client_name='Ana')
            assert exc.value.code == 'INSUFFICIENT_SLABS'

    def test_no_slab_lots(self, travertino):
        stock.receive(travertino, 'A', quantity=1000)

        assert not stock.has_enough_quantity(travertino, 'A', 1, 1, 1)
        assert not stock.plan(travertino, 'A', 1, 1, 1).can_fulfill


class TestRollback:
    """A failure anywhere in reserve() leaves storage untouched."""

    @pytest.fixture
    def stocked(self, travertino, receive):
        receive(5, 3, 1)
        receive(10, 7, 3)
        return travertino

    def assert_untouched(self, material, before):
        assert snapshot(material) == before
        assert not Reservation.objects.exists()
        assert not LedgerEntry.objects.filter(direction=Direction.OUT).exists()
        assert not StockLot.objects.filter(origin=LotOrigin.REMNANT).exists()

    def test_failure_after_all_writes(self, stocked, django_capture_on_commit_callbacks):
        before = snapshot(stocked)

        with mock.patch(
            'slabman.services.reservations.refresh_status',
            side_effect=RuntimeError('boom'),
        ):
            with django_capture_on_commit_callbacks() as callbacks:
                with pytest.raises(RuntimeError):
                    stock.reserve(stocked, 'A', 4, 2, 7, client_name='Ana')

        self.assert_untouched(stocked, before)
        assert callbacks == []

    def test_failure_between_lots(self, stocked):
        """First lot (exact) already written when the second step fails."""
        before = snapshot(stocked)

        with mock.patch(
            'slabman.services.reservations._remnant_geometry',
            side_effect=RuntimeError('boom'),
        ):
            with pytest.raises(RuntimeError):
                stock.reserve(stocked, 'A', 5, 3, 3, client_name='Ana')

        self.assert_untouched(stocked, before)

    def test_status_not_changed(self, stocked):
        with mock.patch(
            'slabman.services.reservations.LedgerEntry.objects.create',
            side_effect=DatabaseError('disk full'),
        ):
            with pytest.raises(DatabaseError):
                stock.reserve(stocked, 'A', 5, 3, 1, client_name='Ana')

        pool = MaterialShade.objects.get(material=stocked, shade='A')
        assert pool.status == StockStatus.IN_STOCK
        assert StockLot.objects.count() == 2


class TestStorageConflict:
    """Lot writes are guarded by the slab count read at planning time."""

    def stale_step(self, travertino, lot, length, width, count):
        request = build_request(length, width, count)
        plan = plan_allocation(request, [AllocationCandidate.from_lot(lot)])
        reservation = Reservation.objects.create(
            material=travertino,
            shade=lot.shade,
            quantity=plan.total_allocated,
            length=request.length,
            width=request.width,
            slab_count=request.count,
            client_name='Ana',
        )
        return plan.steps[0], request, reservation

    def test_stale_update(self, travertino, receive):
        lot = receive(5, 3, 4)
        step, request, reservation = self.stale_step(travertino, lot, 5, 3, 2)

        # Someone else took a slab in the meantime
        StockLot.objects.filter(pk=lot.pk).update(slab_count=3, quantity=45)

        with pytest.raises(StorageConflict) as exc:
            StockReservations._apply_step(lot, step, request, reservation)

        assert exc.value.code == 'CONCURRENT_MODIFICATION'
        assert StockLot.objects.get(pk=lot.pk).slab_count == 3

    def test_stale_delete(self, travertino, receive):
        lot = receive(5, 3, 2)
        step, request, reservation = self.stale_step(travertino, lot, 5, 3, 2)
        assert step.consumes_lot

        StockLot.objects.filter(pk=lot.pk).update(slab_count=1, quantity=15)

        with pytest.raises(StorageConflict):
            StockReservations._apply_step(lot, step, request, reservation)

        assert StockLot.objects.filter(pk=lot.pk).exists()

    def test_lock_failure(self, travertino, receive):
        receive(5, 3, 2)

        with mock.patch(
            'slabman.services.reservations.resolve_shade',
            side_effect=DatabaseError('could not obtain lock'),
        ):
            with pytest.raises(StorageConflict) as exc:
                stock.reserve(travertino, 'A', 5, 3, 1, client_name='Ana')

        assert exc.value.data['shade'] == 'A'
        assert not Reservation.objects.exists()
