"""
Stock reservations — reservation lifecycle (reserve, release, deliver).

All methods use transaction.atomic(). The (material, shade) pool row is
selected for update before any lot is read, so at most one mutation per
pool is in flight. Lot writes are additionally guarded by the slab count
read at planning time; a mismatch raises StorageConflict and rolls the
whole operation back.
"""

import logging
from dataclasses import dataclass

from django.db import DatabaseError, transaction
from django.utils import timezone

from slabman.conf import slabman_settings
from slabman.exceptions import (
    IllegalTransition,
    InsufficientStock,
    NotFound,
    SlabValidationError,
    StorageConflict,
)
from slabman.geometry import offcut
from slabman.models.enums import Direction, LotOrigin, ReservationStatus
from slabman.models.ledger import LedgerEntry
from slabman.models.lot import StockLot
from slabman.models.material import MaterialShade
from slabman.models.reservation import Reservation
from slabman.services.alerts import refresh_status
from slabman.services.allocation import (
    EXACT,
    AllocationCandidate,
    AllocationPlan,
    AllocationStep,
    SlabRequest,
    has_enough_quantity,
    plan_allocation,
    total_area,
)
from slabman.services.queries import build_request, resolve_material, resolve_shade

logger = logging.getLogger('slabman')


def parse_reservation_id(reservation_id) -> int:
    """Extract PK from "res:{pk}" (plain ints are accepted too)."""
    if isinstance(reservation_id, int) and not isinstance(reservation_id, bool):
        return reservation_id
    if isinstance(reservation_id, str) and reservation_id.startswith('res:'):
        try:
            return int(reservation_id.split(':')[1])
        except (IndexError, ValueError):
            pass
    raise NotFound('RESERVATION_NOT_FOUND', reservation_id=reservation_id)


@dataclass(frozen=True)
class ReservationResult:
    """Outcome of a successful reserve()."""

    reservations: tuple[Reservation, ...]
    plan: AllocationPlan
    lots_updated: int
    lots_deleted: int
    remnants: tuple[StockLot, ...]
    total_remaining: float
    status: str

    @property
    def reservation_ids(self) -> list[str]:
        return [r.reservation_id for r in self.reservations]

    @property
    def total_allocated(self) -> float:
        return self.plan.total_allocated

    @property
    def total_waste(self) -> float:
        return self.plan.total_waste

    @property
    def steps(self) -> tuple[AllocationStep, ...]:
        return self.plan.steps

    @property
    def remnants_created(self) -> int:
        return len(self.remnants)

    @property
    def remnant_area(self) -> float:
        return sum(lot.quantity for lot in self.remnants)

    def as_dict(self) -> dict:
        return {
            'reservation_ids': self.reservation_ids,
            'total_allocated': self.total_allocated,
            'total_waste': self.total_waste,
            'steps': [s.as_dict() for s in self.steps],
            'lots_updated': self.lots_updated,
            'lots_deleted': self.lots_deleted,
            'remnants_created': self.remnants_created,
            'total_remaining': self.total_remaining,
            'status': self.status,
        }


def _conflict(material, shade, **data) -> StorageConflict:
    return StorageConflict('CONCURRENT_MODIFICATION', material=str(material), shade=shade, **data)


def _lock_pool(material, shade) -> MaterialShade:
    """Select the active pool row for update."""
    qs = MaterialShade.objects.select_for_update(nowait=slabman_settings.LOCK_NOWAIT)
    try:
        return resolve_shade(material, shade, qs)
    except DatabaseError as exc:
        raise _conflict(material, shade) from exc


def _lock_lots(material, shade) -> list[StockLot]:
    """Pool lots, oldest first, selected for update."""
    qs = StockLot.objects.select_for_update(nowait=slabman_settings.LOCK_NOWAIT)
    try:
        return list(qs.for_pool(material, shade).fifo())
    except DatabaseError as exc:
        raise _conflict(material, shade) from exc


def _remnant_geometry(lot: StockLot, step: AllocationStep,
                      request: SlabRequest) -> tuple[float, float] | None:
    """
    Offcut worth keeping as a new lot, or None.

    Only cut steps that leave slabs on the source lot produce remnants. The
    offcut must exceed REMNANT_MIN_WASTE per slab and REMNANT_MIN_SIDE on
    both axes.
    """
    if step.kind == EXACT or step.consumes_lot:
        return None

    waste_per_slab = lot.slab_area - step.cuts_per_slab * request.piece_area
    if waste_per_slab <= slabman_settings.REMNANT_MIN_WASTE:
        return None

    length, width = offcut(lot.length, lot.width, request.length, request.width, step.orientation)
    min_side = slabman_settings.REMNANT_MIN_SIDE
    if length <= min_side or width <= min_side:
        return None
    return length, width


class StockReservations:
    """Reservation lifecycle methods."""

    @classmethod
    def reserve(cls, material, shade, length, width, count, client_name, *,
                barcode=None, user=None, client_phone='', client_email='',
                notes='') -> ReservationResult:
        """
        Plan and reserve count slabs of length x width.

        1. Validates input (nothing is read before this)
        2. Locks the pool, checks shade and barcode
        3. Plans over the pool's slab lots (oldest first)
        4. Applies the plan: shrink/delete lots, create remnants (each with
           its IN entry), one Reservation, one OUT ledger entry per lot
        5. Recomputes pool status (low stock signalled after commit)

        Returns:
            ReservationResult

        Raises:
            SlabValidationError: bad dimensions/count, missing client name
            NotFound: unknown material, inactive shade, barcode mismatch
            InsufficientStock: no slab lots, not enough area, or slabs that
                cannot be cut to size (shortfall in data)
            StorageConflict: pool changed under us; retry the whole call
        """
        request = build_request(length, width, count)
        if not shade:
            raise SlabValidationError('MISSING_FIELD', field='shade')
        client_name = (client_name or '').strip()
        if not client_name:
            raise SlabValidationError('MISSING_FIELD', field='client_name')

        material = resolve_material(material)
        epsilon = slabman_settings.AREA_EPSILON

        with transaction.atomic():
            pool = _lock_pool(material, shade)

            if barcode and barcode != pool.barcode:
                raise NotFound(
                    'BARCODE_MISMATCH',
                    f"Código de barras {barcode} não pertence a {material.name} ({pool.shade})",
                    barcode=barcode,
                    material=material.name,
                    shade=pool.shade,
                )

            lots = {lot.pk: lot for lot in _lock_lots(material, pool.shade)}
            candidates = [
                candidate for candidate in map(AllocationCandidate.from_lot, lots.values())
                if candidate is not None
            ]

            if not candidates:
                raise InsufficientStock(
                    'NO_SLAB_STOCK',
                    available=0.0,
                    requested=request.area,
                    shortfall=request.count,
                )

            if not has_enough_quantity(request, candidates, epsilon):
                available = total_area(candidates)
                raise InsufficientStock(
                    'INSUFFICIENT_AREA',
                    f"Área insuficiente: solicitado {request.area:g}, "
                    f"disponível {available:g} {material.unit}",
                    available=available,
                    requested=request.area,
                    shortfall=request.area - available,
                )

            plan = plan_allocation(request, candidates, epsilon)
            if not plan.can_fulfill:
                raise InsufficientStock(
                    'INSUFFICIENT_SLABS',
                    plan.message,
                    requested=request.count,
                    shortfall=plan.shortfall,
                )

            reservation = Reservation.objects.create(
                material=material,
                shade=pool.shade,
                quantity=plan.total_allocated,
                length=request.length,
                width=request.width,
                slab_count=request.count,
                client_name=client_name,
                client_phone=client_phone or '',
                client_email=client_email or '',
                notes=notes or '',
                reserved_by=user,
                metadata={
                    'steps': [step.as_dict() for step in plan.steps],
                    'total_waste': plan.total_waste,
                },
            )

            lots_updated = lots_deleted = 0
            remnants = []
            for step in plan.steps:
                deleted, remnant = cls._apply_step(lots[step.lot_id], step, request, reservation, user)
                if deleted:
                    lots_deleted += 1
                else:
                    lots_updated += 1
                if remnant is not None:
                    remnants.append(remnant)

            status, total = refresh_status(pool)

            logger.info(
                "slab.reserve.created",
                extra={
                    "material": material.name,
                    "shade": pool.shade,
                    "request": f"{request.count}x {request.length:g}x{request.width:g}",
                    "reservation_id": reservation.reservation_id,
                    "allocated": plan.total_allocated,
                    "waste": plan.total_waste,
                    "lots_updated": lots_updated,
                    "lots_deleted": lots_deleted,
                    "remnants": len(remnants),
                },
            )
            return ReservationResult(
                reservations=(reservation,),
                plan=plan,
                lots_updated=lots_updated,
                lots_deleted=lots_deleted,
                remnants=tuple(remnants),
                total_remaining=total,
                status=status,
            )

    @classmethod
    def _apply_step(cls, lot: StockLot, step: AllocationStep, request: SlabRequest,
                    reservation: Reservation, user=None) -> tuple[bool, StockLot | None]:
        """
        Write one plan step to storage.

        The OUT entry carries the whole slab area taken from the lot (used
        area plus waste). A kept offcut comes back in as its own IN entry,
        so the ledger nets to the pool total.

        Returns:
            (lot_deleted, remnant_lot_or_None)

        Raises:
            StorageConflict: the lot no longer has the slab count it was
                planned with
        """
        LedgerEntry.objects.create(
            material_id=lot.material_id,
            shade=lot.shade,
            direction=Direction.OUT,
            quantity=step.slabs_used * lot.slab_area,
            lot=lot,
            reservation=reservation,
            reason=f"Reservado para {reservation.client_name}",
            notes=reservation.notes,
            user=user,
            metadata={
                'lot_id': lot.pk,
                'kind': step.kind,
                'slabs_used': step.slabs_used,
                'pieces': step.pieces,
                'area_used': step.area_used,
                'waste': step.waste,
            },
        )

        guarded = StockLot.objects.filter(pk=lot.pk, slab_count=lot.slab_count)

        if step.consumes_lot:
            _, per_model = guarded.delete()
            if not per_model.get(StockLot._meta.label, 0):
                raise _conflict(lot.material_id, lot.shade, lot_id=lot.pk)
            return True, None

        remaining = step.remaining_slabs
        updated = guarded.update(
            slab_count=remaining,
            quantity=remaining * lot.length * lot.width,
            updated_at=timezone.now(),
        )
        if not updated:
            raise _conflict(lot.material_id, lot.shade, lot_id=lot.pk)

        geometry = _remnant_geometry(lot, step, request)
        if geometry is None:
            return False, None

        length, width = geometry
        remnant = StockLot.objects.create(
            material_id=lot.material_id,
            shade=lot.shade,
            quantity=length * width * step.slabs_used,
            length=length,
            width=width,
            slab_count=step.slabs_used,
            origin=LotOrigin.REMNANT,
            parent_id=lot.pk,
            batch_number=lot.batch_number,
            location=lot.location,
            supplier=lot.supplier,
            metadata={'reservation_id': reservation.pk},
        )
        LedgerEntry.objects.create(
            material_id=lot.material_id,
            shade=lot.shade,
            direction=Direction.IN,
            quantity=remnant.quantity,
            lot=remnant,
            reservation=reservation,
            reason="Sobra de corte",
            user=user,
            metadata={'lot_id': remnant.pk, 'kind': 'remnant', 'parent_id': lot.pk},
        )
        logger.info(
            "slab.remnant.created",
            extra={"lot_id": remnant.pk, "parent_id": lot.pk, "size": f"{length:g}x{width:g}"},
        )
        return False, remnant

    @classmethod
    def _lock_reservation(cls, reservation_id, action: str) -> Reservation:
        pk = parse_reservation_id(reservation_id)
        try:
            reservation = Reservation.objects.select_for_update().select_related('material').get(pk=pk)
        except Reservation.DoesNotExist:
            raise NotFound('RESERVATION_NOT_FOUND', reservation_id=reservation_id) from None

        if not reservation.is_active:
            raise IllegalTransition(
                'INVALID_STATUS',
                f"Não é possível {action} reserva com status "
                f"{ReservationStatus(reservation.status).label}",
                current=reservation.status,
                expected=ReservationStatus.RESERVED,
            )
        return reservation

    @classmethod
    def release(cls, reservation_id, user=None, reason=None) -> StockLot:
        """
        Release reservation; its slabs go back to stock as a new lot.

        Transition: RESERVED -> RELEASED

        Returns:
            The restored StockLot
        """
        with transaction.atomic():
            reservation = cls._lock_reservation(reservation_id, 'liberar')
            try:
                pool = MaterialShade.objects.select_for_update().get(
                    material_id=reservation.material_id, shade=reservation.shade,
                )
            except DatabaseError as exc:
                raise _conflict(reservation.material, reservation.shade) from exc

            lot = StockLot.objects.create(
                material_id=reservation.material_id,
                shade=reservation.shade,
                quantity=reservation.length * reservation.width * reservation.slab_count,
                length=reservation.length,
                width=reservation.width,
                slab_count=reservation.slab_count,
                origin=LotOrigin.RELEASED,
                metadata={'reservation_id': reservation.pk},
            )
            LedgerEntry.objects.create(
                material_id=reservation.material_id,
                shade=reservation.shade,
                direction=Direction.IN,
                quantity=lot.quantity,
                lot=lot,
                reservation=reservation,
                reason=reason or f"Reserva liberada: {reservation.client_name}",
                notes=reservation.notes,
                user=user,
                metadata={'lot_id': lot.pk, 'kind': 'release'},
            )

            reservation.status = ReservationStatus.RELEASED
            reservation.released_at = timezone.now()
            reservation.save(update_fields=['status', 'released_at'])

            status, total = refresh_status(pool)

            logger.info(
                "slab.reservation.released",
                extra={
                    "reservation_id": reservation.reservation_id,
                    "lot_id": lot.pk,
                    "qty": lot.quantity,
                    "status": status,
                },
            )
            return lot

    @classmethod
    def deliver(cls, reservation_id, user=None) -> Reservation:
        """
        Deliver reserved slabs to the client. Stock is not restored.

        Transition: RESERVED -> DELIVERED
        """
        with transaction.atomic():
            reservation = cls._lock_reservation(reservation_id, 'entregar')

            LedgerEntry.objects.create(
                material_id=reservation.material_id,
                shade=reservation.shade,
                direction=Direction.OUT,
                quantity=reservation.quantity,
                reservation=reservation,
                reason=f"Entregue para {reservation.client_name}",
                notes=(
                    f"Entrega: {reservation.slab_count} chapa(s) de "
                    f"{reservation.length:g}x{reservation.width:g}. {reservation.notes}"
                ).strip(),
                user=user,
                metadata={'kind': 'delivery'},
            )

            reservation.status = ReservationStatus.DELIVERED
            reservation.delivered_at = timezone.now()
            reservation.save(update_fields=['status', 'delivered_at'])

            logger.info(
                "slab.reservation.delivered",
                extra={"reservation_id": reservation.reservation_id, "qty": reservation.quantity},
            )
            return reservation
