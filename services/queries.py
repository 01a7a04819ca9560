"""
Stock queries — read-only operations.

All methods are classmethod on Stock and use no locking.
"""

import math

from slabman.conf import slabman_settings
from slabman.exceptions import NotFound, SlabValidationError
from slabman.models.enums import Shade
from slabman.models.ledger import LedgerEntry
from slabman.models.lot import StockLot
from slabman.models.material import MaterialShade, MaterialType
from slabman.models.reservation import Reservation
from slabman.services.allocation import (
    AllocationCandidate,
    AllocationPlan,
    SlabRequest,
    plan_allocation,
)
from slabman.services.allocation import has_enough_quantity as _has_enough


def resolve_material(material) -> MaterialType:
    """MaterialType from an instance, a pk or a name."""
    if isinstance(material, MaterialType):
        return material
    if material is None or material == '':
        raise SlabValidationError('MISSING_FIELD', field='material')
    qs = MaterialType.objects.all()
    found = qs.filter(pk=material).first() if isinstance(material, int) else qs.filter(name=material).first()
    if found is None:
        raise NotFound('MATERIAL_NOT_FOUND', material=material)
    return found


def resolve_shade(material: MaterialType, shade, queryset=None) -> MaterialShade:
    """Active MaterialShade row for (material, shade)."""
    if not shade:
        raise SlabValidationError('MISSING_FIELD', field='shade')
    if shade not in Shade.values:
        raise NotFound('SHADE_NOT_ACTIVE', material=material.name, shade=shade)
    qs = queryset if queryset is not None else MaterialShade.objects.all()
    found = qs.filter(material=material, shade=shade, is_active=True).first()
    if found is None:
        raise NotFound(
            'SHADE_NOT_ACTIVE',
            f"Tonalidade {shade} não está ativa para {material.name}",
            material=material.name,
            shade=shade,
        )
    return found


def build_request(length, width, count) -> SlabRequest:
    """SlabRequest from loosely typed input (forms, JSON)."""
    try:
        length = float(length)
        width = float(width)
    except (TypeError, ValueError):
        raise SlabValidationError('INVALID_DIMENSIONS', length=length, width=width) from None
    if not (math.isfinite(length) and math.isfinite(width)):
        raise SlabValidationError('INVALID_DIMENSIONS', length=length, width=width)

    if isinstance(count, float) and count.is_integer():
        count = int(count)
    elif isinstance(count, str) and count.strip().isdigit():
        count = int(count)
    return SlabRequest(length=length, width=width, count=count)


class StockQueries:
    """Read-only stock query methods."""

    @classmethod
    def available(cls, material, shade) -> float:
        """
        Total area on hand for (material, shade).

        Includes lots without slab geometry.
        """
        material = resolve_material(material)
        return StockLot.objects.for_pool(material, shade).total_quantity()

    @classmethod
    def candidates(cls, material, shade) -> list[AllocationCandidate]:
        """Planning view of the pool's slab lots, oldest first."""
        material = resolve_material(material)
        lots = StockLot.objects.for_pool(material, shade).with_geometry().fifo()
        return [AllocationCandidate.from_lot(lot) for lot in lots]

    @classmethod
    def has_enough_quantity(cls, material, shade, length, width, count) -> bool:
        """
        Advisory pre-check: is there enough slab area for the request?

        False means reserve() will raise InsufficientStock. True does not
        guarantee success (slab shapes may not tile the request).

        Raises:
            SlabValidationError: bad dimensions or count
            NotFound: unknown material or inactive shade
        """
        request = build_request(length, width, count)
        material = resolve_material(material)
        resolve_shade(material, shade)
        return _has_enough(
            request,
            cls.candidates(material, shade),
            epsilon=slabman_settings.AREA_EPSILON,
        )

    @classmethod
    def plan(cls, material, shade, length, width, count) -> AllocationPlan:
        """Preview the allocation for a request. Nothing is written."""
        request = build_request(length, width, count)
        material = resolve_material(material)
        resolve_shade(material, shade)
        return plan_allocation(
            request,
            cls.candidates(material, shade),
            epsilon=slabman_settings.AREA_EPSILON,
        )

    @classmethod
    def list_lots(cls, material=None, shade=None, include_empty: bool = False):
        """List lots with filters, oldest first."""
        qs = StockLot.objects.select_related('material')

        if material is not None:
            qs = qs.filter(material=resolve_material(material))

        if shade is not None:
            qs = qs.filter(shade=shade)

        if not include_empty:
            qs = qs.filter(quantity__gt=0)

        return qs.fifo()

    @classmethod
    def get_reservation(cls, reservation_id) -> Reservation:
        from slabman.services.reservations import parse_reservation_id

        pk = parse_reservation_id(reservation_id)
        try:
            return Reservation.objects.select_related('material').get(pk=pk)
        except Reservation.DoesNotExist:
            raise NotFound('RESERVATION_NOT_FOUND', reservation_id=reservation_id) from None

    @classmethod
    def list_reservations(cls, status=None, search: str = ''):
        """Reservations, newest first."""
        qs = Reservation.objects.select_related('material')
        if status:
            qs = qs.filter(status=status)
        return qs.search(search)

    @classmethod
    def ledger(cls, material=None, direction=None):
        """Ledger entries, oldest first."""
        qs = LedgerEntry.objects.select_related('material')
        if material is not None:
            qs = qs.filter(material=resolve_material(material))
        if direction:
            qs = qs.filter(direction=direction)
        return qs
