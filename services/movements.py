"""
Stock movements — stock-in and coarse area removal.

All methods use transaction.atomic() with the pool row locked.
"""

import logging
import re

from django.db import transaction

from slabman.conf import slabman_settings
from slabman.exceptions import InsufficientStock, SlabValidationError
from slabman.models.enums import Direction, LotOrigin
from slabman.models.ledger import LedgerEntry
from slabman.models.lot import StockLot
from slabman.models.material import MaterialShade
from slabman.services.alerts import refresh_status
from slabman.services.queries import build_request, resolve_material, resolve_shade

logger = logging.getLogger('slabman')


def next_batch_number(material) -> str:
    """
    Next batch number for a material: {PREFIX}-B{n}.

    Prefix is the first four letters of the name, upper-cased
    (Travertino -> TRAV-B1, TRAV-B2, ...).
    """
    prefix = re.sub(r'\s+', '', material.name).upper()[:4] or 'SLAB'
    pattern = re.compile(rf'^{re.escape(prefix)}-B(\d+)$', re.IGNORECASE)

    highest = 0
    numbers = StockLot.objects.filter(material=material).exclude(batch_number='') \
        .values_list('batch_number', flat=True)
    for number in numbers:
        match = pattern.match(number)
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{prefix}-B{highest + 1}"


def _area(quantity) -> float:
    try:
        quantity = float(quantity)
    except (TypeError, ValueError):
        raise SlabValidationError('INVALID_QUANTITY', requested=quantity) from None
    if not quantity > 0:
        raise SlabValidationError('INVALID_QUANTITY', requested=quantity)
    return quantity


def _take(lot: StockLot, quantity: float, *, user, reason, notes) -> LedgerEntry:
    """Shrink or delete a locked area lot and write its OUT entry."""
    lot_id = lot.pk
    remaining = max(lot.quantity - quantity, 0.0)
    if remaining <= slabman_settings.AREA_EPSILON:
        lot.delete()
        lot_ref = None
    else:
        lot.quantity = remaining
        lot.save(update_fields=['quantity', 'updated_at'])
        lot_ref = lot

    return LedgerEntry.objects.create(
        material_id=lot.material_id,
        shade=lot.shade,
        direction=Direction.OUT,
        quantity=quantity,
        lot=lot_ref,
        reason=reason,
        notes=notes,
        user=user,
        metadata={'lot_id': lot_id},
    )


class StockMovements:
    """Stock-in and coarse area removal methods."""

    @classmethod
    def receive(cls, material, shade, *, length=None, width=None, slab_count=None,
                quantity=None, location='', supplier='', batch_number='',
                user=None, reason='Entrada', notes='', **metadata) -> StockLot:
        """
        Stock entry. Always creates a new lot.

        With geometry (length, width, slab_count) the quantity is computed.
        Without geometry a positive quantity is required and the lot is
        area bookkeeping only.

        Raises:
            SlabValidationError: partial geometry, bad dimensions or quantity
            NotFound: unknown material or inactive shade
        """
        geometry = (length, width, slab_count)
        if any(v is not None for v in geometry):
            if any(v is None for v in geometry):
                raise SlabValidationError(
                    'INVALID_GEOMETRY', length=length, width=width, slab_count=slab_count,
                )
            request = build_request(length, width, slab_count)
            length, width, slab_count = request.length, request.width, request.count
            quantity = request.area
        else:
            try:
                quantity = float(quantity)
            except (TypeError, ValueError):
                raise SlabValidationError('INVALID_QUANTITY', requested=quantity) from None
            if not quantity > 0:
                raise SlabValidationError('INVALID_QUANTITY', requested=quantity)

        material = resolve_material(material)

        with transaction.atomic():
            pool = resolve_shade(material, shade, MaterialShade.objects.select_for_update())

            lot = StockLot.objects.create(
                material=material,
                shade=pool.shade,
                quantity=quantity,
                length=length,
                width=width,
                slab_count=slab_count,
                origin=LotOrigin.RECEIVED,
                batch_number=batch_number or next_batch_number(material),
                location=location,
                supplier=supplier,
                metadata=metadata,
            )
            LedgerEntry.objects.create(
                material=material,
                shade=pool.shade,
                direction=Direction.IN,
                quantity=quantity,
                lot=lot,
                reason=reason,
                notes=notes,
                user=user,
                metadata={'lot_id': lot.pk, 'batch_number': lot.batch_number},
            )
            status, total = refresh_status(pool)

            logger.info(
                "slab.receive",
                extra={
                    "material": material.name,
                    "shade": pool.shade,
                    "qty": quantity,
                    "lot_id": lot.pk,
                    "batch": lot.batch_number,
                    "status": status,
                },
            )
            return lot

    @classmethod
    def issue(cls, quantity, lot, user=None, reason='Saída', notes='') -> LedgerEntry:
        """
        Remove area from a lot without slab geometry.

        Slab lots are only consumed through reserve(), which keeps their
        geometry consistent.

        Raises:
            SlabValidationError('LOT_HAS_GEOMETRY'): lot has slab geometry
            InsufficientStock('INSUFFICIENT_QUANTITY'): quantity > lot.quantity
        """
        quantity = _area(quantity)

        with transaction.atomic():
            pool = MaterialShade.objects.select_for_update().get(
                material_id=lot.material_id, shade=lot.shade,
            )
            locked_lot = StockLot.objects.select_for_update().get(pk=lot.pk)

            if locked_lot.has_geometry:
                raise SlabValidationError('LOT_HAS_GEOMETRY', lot_id=lot.pk)

            if locked_lot.quantity + slabman_settings.AREA_EPSILON < quantity:
                raise InsufficientStock(
                    'INSUFFICIENT_QUANTITY',
                    available=locked_lot.quantity,
                    requested=quantity,
                    shortfall=quantity - locked_lot.quantity,
                )

            entry = _take(locked_lot, quantity, user=user, reason=reason, notes=notes)
            refresh_status(pool)

            logger.info(
                "slab.issue",
                extra={"lot_id": lot.pk, "qty": quantity, "reason": reason},
            )
            return entry

    @classmethod
    def remove(cls, material, shade, quantity, user=None, reason='Saída',
               notes='') -> list[LedgerEntry]:
        """
        Remove area from a pool, oldest lot first, across batches.

        Only lots without slab geometry take part. Lots that reach zero are
        deleted, the last one touched is shrunk.

        Returns:
            One OUT LedgerEntry per lot touched, oldest first

        Raises:
            InsufficientStock('INSUFFICIENT_QUANTITY'): the pool's area lots
                hold less than quantity (nothing is removed)
        """
        quantity = _area(quantity)
        material = resolve_material(material)
        epsilon = slabman_settings.AREA_EPSILON

        with transaction.atomic():
            pool = resolve_shade(material, shade, MaterialShade.objects.select_for_update())
            lots = list(
                StockLot.objects.select_for_update()
                .for_pool(material, pool.shade)
                .area_only()
                .fifo()
            )

            available = sum(lot.quantity for lot in lots)
            if available + epsilon < quantity:
                raise InsufficientStock(
                    'INSUFFICIENT_QUANTITY',
                    available=available,
                    requested=quantity,
                    shortfall=quantity - available,
                )

            entries = []
            left = quantity
            for lot in lots:
                if left <= epsilon:
                    break
                taken = min(lot.quantity, left)
                entries.append(_take(lot, taken, user=user, reason=reason, notes=notes))
                left -= taken

            status, total = refresh_status(pool)

            logger.info(
                "slab.remove",
                extra={
                    "material": material.name,
                    "shade": pool.shade,
                    "qty": quantity,
                    "lots": [e.metadata['lot_id'] for e in entries],
                    "status": status,
                },
            )
            return entries
