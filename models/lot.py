"""
StockLot model — a stored quantity of one (material, shade), optionally in slabs.
"""

from django.db import models
from django.db.models import Q, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from slabman.models.enums import LotOrigin, Shade


class StockLotQuerySet(models.QuerySet):
    """Custom QuerySet for StockLot with convenience filters."""

    def for_pool(self, material, shade):
        """Lots of one (material, shade)."""
        return self.filter(material=material, shade=shade)

    def with_geometry(self):
        """Lots that can take part in slab allocation."""
        return self.filter(slab_count__isnull=False)

    def area_only(self):
        """Lots kept as area bookkeeping, without slab geometry."""
        return self.filter(slab_count__isnull=True)

    def fifo(self):
        """Oldest first."""
        return self.order_by('created_at', 'pk')

    def total_quantity(self) -> float:
        return self.aggregate(t=Coalesce(Sum('quantity'), 0.0))['t']


class StockLot(models.Model):
    """
    Stock of one (material, shade).

    Geometry (length, width, slab_count) is all present or all absent.
    With geometry: quantity == length * width * slab_count.
    Without geometry the lot is area bookkeeping only and is never planned.

    Lots are shrunk or deleted by reservations, never grown: new stock,
    remnants and released reservations always create new lots.
    """

    material = models.ForeignKey(
        'slabman.MaterialType',
        on_delete=models.CASCADE,
        related_name='lots',
        verbose_name=_('Material'),
    )
    shade = models.CharField(
        max_length=4,
        choices=Shade.choices,
        verbose_name=_('Tonalidade'),
    )

    quantity = models.FloatField(default=0.0, verbose_name=_('Quantidade (área)'))
    length = models.FloatField(null=True, blank=True, verbose_name=_('Comprimento'))
    width = models.FloatField(null=True, blank=True, verbose_name=_('Largura'))
    slab_count = models.PositiveIntegerField(
        null=True,
        blank=True,
        verbose_name=_('Número de chapas'),
    )

    origin = models.CharField(
        max_length=20,
        choices=LotOrigin.choices,
        default=LotOrigin.RECEIVED,
        verbose_name=_('Origem'),
    )
    parent = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='remnants',
        verbose_name=_('Lote de origem'),
        help_text=_('Preenchido em sobras de corte'),
    )
    batch_number = models.CharField(max_length=50, blank=True, default='', verbose_name=_('Lote'))
    location = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Local'))
    supplier = models.CharField(max_length=200, blank=True, default='', verbose_name=_('Fornecedor'))
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = StockLotQuerySet.as_manager()

    class Meta:
        verbose_name = _('Lote de Estoque')
        verbose_name_plural = _('Lotes de Estoque')
        ordering = ['created_at', 'pk']
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gte=0),
                name='stock_lot_quantity_non_negative',
            ),
            models.CheckConstraint(
                condition=(
                    Q(length__isnull=True, width__isnull=True, slab_count__isnull=True)
                    | Q(length__isnull=False, width__isnull=False, slab_count__isnull=False)
                ),
                name='stock_lot_geometry_all_or_none',
            ),
        ]
        indexes = [
            models.Index(fields=['material', 'shade', 'created_at'], name='stock_lot_pool_idx'),
        ]

    @property
    def has_geometry(self) -> bool:
        return self.slab_count is not None

    @property
    def slab_area(self) -> float | None:
        """Area of one slab, None without geometry."""
        if not self.has_geometry:
            return None
        return self.length * self.width

    def expected_quantity(self) -> float | None:
        """Quantity implied by geometry, None without geometry."""
        if not self.has_geometry:
            return None
        return self.length * self.width * self.slab_count

    def __str__(self) -> str:
        size = f" {self.length:g}x{self.width:g} x{self.slab_count}" if self.has_geometry else ""
        return f"{self.material_id}/{self.shade}{size}: {self.quantity:g}"
