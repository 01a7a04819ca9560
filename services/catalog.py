"""
Stock catalog — material types and their shades.

Shade prices live in one MaterialShade row per (material, shade), keyed by
the Shade enum.
"""

import logging
import random
import re
from decimal import Decimal, InvalidOperation

from django.db import IntegrityError, transaction

from slabman.conf import slabman_settings
from slabman.exceptions import NotFound, SlabValidationError, StorageConflict
from slabman.models.enums import Shade
from slabman.models.material import MaterialShade, MaterialType
from slabman.services.queries import resolve_material, resolve_shade

logger = logging.getLogger('slabman')

# 4 digits first, widened when the space gets crowded
BARCODE_DIGITS = (4, 5, 6)
BARCODE_ATTEMPTS = 8000
# inserts retried when a barcode is taken between check and insert
BARCODE_INSERT_RETRIES = 3


def _price(value, shade) -> Decimal:
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise SlabValidationError('INVALID_PRICE', shade=shade, value=value) from None
    if not price.is_finite() or price < 0:
        raise SlabValidationError('INVALID_PRICE', shade=shade, value=value)
    return price


def generate_barcode(material_name: str, shade: str) -> str:
    """
    Unique barcode for a (material, shade): {PREFIX}-{SHADE}-{NNNN}.

    Examples: Travertino / AA -> TRA-AA-4821, Travertino / B- -> TRA-BM-1290
    """
    prefix = re.sub(r'\s+', '', material_name).upper()[:3] or 'SLB'
    shade_code = shade.upper().replace('-', 'M')

    for digits in BARCODE_DIGITS:
        low, high = 10 ** (digits - 1), 10 ** digits - 1
        for _ in range(BARCODE_ATTEMPTS):
            barcode = f"{prefix}-{shade_code}-{random.randint(low, high)}"
            if not MaterialShade.objects.filter(barcode=barcode).exists():
                return barcode

    raise RuntimeError(f"Não foi possível gerar código de barras para {material_name}-{shade}")


def _insert_shade(material, shade, cost, sale) -> MaterialShade:
    """
    Insert a shade row with a fresh barcode.

    Raises:
        StorageConflict: the (material, shade) row was created concurrently,
            or every barcode drawn was taken before the insert
    """
    for _ in range(BARCODE_INSERT_RETRIES):
        try:
            with transaction.atomic():
                return MaterialShade.objects.create(
                    material=material,
                    shade=shade,
                    cost_price=cost,
                    sale_price=sale,
                    barcode=generate_barcode(material.name, shade),
                )
        except IntegrityError:
            if MaterialShade.objects.filter(material=material, shade=shade).exists():
                break
            logger.warning(
                "slab.barcode.collision",
                extra={"material": material.name, "shade": shade},
            )
    raise StorageConflict('CONCURRENT_MODIFICATION', material=material.name, shade=shade)


class StockCatalog:
    """Material type and shade methods."""

    @classmethod
    def create_material(cls, name: str, shades: dict, unit: str | None = None,
                        notes: str = '') -> MaterialType:
        """
        Create a material type with its active shades.

        Args:
            name: Unique material name
            shades: {Shade: (cost_price, sale_price)}, at least one entry
            unit: Area unit label (default SLABMAN['DEFAULT_UNIT'])

        Raises:
            SlabValidationError: empty name, no shades, bad price, duplicate name
        """
        name = (name or '').strip()
        if not name:
            raise SlabValidationError('MISSING_FIELD', field='name')
        if not shades:
            raise SlabValidationError('MISSING_FIELD', field='shades')

        rows = {}
        for shade, prices in shades.items():
            if shade not in Shade.values:
                raise SlabValidationError('MISSING_FIELD', field='shade', value=shade)
            cost, sale = prices
            rows[shade] = (_price(cost, shade), _price(sale, shade))

        with transaction.atomic():
            if MaterialType.objects.filter(name=name).exists():
                raise SlabValidationError('MATERIAL_EXISTS', name=name)

            try:
                with transaction.atomic():
                    material = MaterialType.objects.create(
                        name=name,
                        unit=unit or slabman_settings.DEFAULT_UNIT,
                        notes=notes,
                    )
            except IntegrityError:
                raise SlabValidationError('MATERIAL_EXISTS', name=name) from None

            for shade, (cost, sale) in rows.items():
                _insert_shade(material, shade, cost, sale)

        logger.info(
            "slab.material.created",
            extra={"material": name, "shades": sorted(rows)},
        )
        return material

    @classmethod
    def activate_shade(cls, material, shade, cost_price, sale_price) -> MaterialShade:
        """Activate (or re-price) a shade, creating its row if needed."""
        material = resolve_material(material)
        if shade not in Shade.values:
            raise SlabValidationError('MISSING_FIELD', field='shade', value=shade)
        cost, sale = _price(cost_price, shade), _price(sale_price, shade)

        with transaction.atomic():
            row = MaterialShade.objects.select_for_update().filter(
                material=material, shade=shade,
            ).first()
            if row is None:
                row = _insert_shade(material, shade, cost, sale)
            else:
                row.is_active = True
                row.cost_price = cost
                row.sale_price = sale
                row.save(update_fields=['is_active', 'cost_price', 'sale_price', 'updated_at'])

        logger.info(
            "slab.shade.activated",
            extra={"material": material.name, "shade": shade},
        )
        return row

    @classmethod
    def deactivate_shade(cls, material, shade) -> MaterialShade:
        """Stop taking orders for a shade. Existing lots are kept."""
        material = resolve_material(material)
        with transaction.atomic():
            row = resolve_shade(material, shade, MaterialShade.objects.select_for_update())
            row.is_active = False
            row.save(update_fields=['is_active', 'updated_at'])

        logger.info(
            "slab.shade.deactivated",
            extra={"material": material.name, "shade": shade},
        )
        return row

    @classmethod
    def price(cls, material, shade) -> tuple[Decimal, Decimal]:
        """(cost_price, sale_price) of an active shade."""
        material = resolve_material(material)
        row = resolve_shade(material, shade)
        return row.cost_price, row.sale_price

    @classmethod
    def find_by_barcode(cls, barcode: str) -> MaterialShade:
        row = MaterialShade.objects.select_related('material').filter(barcode=barcode).first()
        if row is None:
            raise NotFound('BARCODE_MISMATCH', barcode=barcode)
        return row
