"""
Stock status — recompute pool status and signal low stock.

Usage:
    from slabman.services.alerts import refresh_status, check_alerts

    # After any change to a (material, shade) pool, inside its transaction
    status, total = refresh_status(material_shade)

    # Periodic sweep (celery beat, cron)
    triggered = check_alerts()
    # Returns list of (MaterialShade, total) tuples
"""

import logging

from django.db import transaction

from slabman.conf import slabman_settings
from slabman.models.enums import StockStatus
from slabman.models.lot import StockLot
from slabman.models.material import MaterialShade
from slabman.signals import low_stock

logger = logging.getLogger('slabman')


def status_for(total: float, threshold: float, epsilon: float) -> str:
    """OUT_OF_STOCK at zero, LOW_STOCK below threshold, IN_STOCK otherwise."""
    if total <= epsilon:
        return StockStatus.OUT_OF_STOCK
    if total < threshold:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def pool_total(material, shade) -> float:
    """Remaining area across all lots of (material, shade)."""
    return StockLot.objects.for_pool(material, shade).total_quantity()


def _threshold(material_shade: MaterialShade) -> float:
    if material_shade.low_stock_threshold is not None:
        return material_shade.low_stock_threshold
    return slabman_settings.LOW_STOCK_THRESHOLD


def _emit(material_shade: MaterialShade, total: float, status: str) -> None:
    logger.warning(
        "slab.alert.low_stock",
        extra={
            "material": material_shade.material.name,
            "shade": material_shade.shade,
            "total": total,
            "status": status,
        },
    )
    responses = low_stock.send_robust(
        sender=MaterialShade,
        material_shade=material_shade,
        total=total,
        status=status,
    )
    for receiver, response in responses:
        if isinstance(response, Exception):
            logger.error(
                "slab.alert.failed",
                exc_info=response,
                extra={
                    "material": material_shade.material.name,
                    "shade": material_shade.shade,
                    "receiver": getattr(receiver, "__qualname__", repr(receiver)),
                },
            )


def refresh_status(material_shade: MaterialShade) -> tuple[str, float]:
    """
    Recompute and persist the status of one (material, shade) pool.

    Low/out of stock is signalled after the surrounding transaction commits,
    so a rolled-back change never notifies. A failing receiver is logged
    and never reaches the caller: the stock change is already committed.

    Returns:
        (status, total)
    """
    total = pool_total(material_shade.material_id, material_shade.shade)
    status = status_for(total, _threshold(material_shade), slabman_settings.AREA_EPSILON)

    if material_shade.status != status:
        material_shade.status = status
        material_shade.save(update_fields=['status', 'updated_at'])

    if status in (StockStatus.LOW_STOCK, StockStatus.OUT_OF_STOCK):
        transaction.on_commit(lambda: _emit(material_shade, total, status), robust=True)

    return status, total


def check_alerts(material=None) -> list[tuple[MaterialShade, float]]:
    """
    Recompute every active pool and return the low ones.

    Args:
        material: Optional MaterialType to restrict the sweep (None = all).

    Returns:
        List of (material_shade, total) tuples for LOW_STOCK/OUT_OF_STOCK pools.
    """
    qs = MaterialShade.objects.filter(is_active=True).select_related('material')
    if material is not None:
        qs = qs.filter(material=material)

    triggered = []
    for material_shade in qs:
        with transaction.atomic():
            status, total = refresh_status(material_shade)
        if status != StockStatus.IN_STOCK:
            triggered.append((material_shade, total))

    return triggered
