"""
MaterialType and MaterialShade models — what is stocked and at which grade.
"""

from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _

from slabman.models.enums import Shade, StockStatus


class MaterialType(models.Model):
    """
    A stone type (e.g. Travertino, Ônix).

    Shades are not columns here: each orderable grade is a MaterialShade
    row, so "shade not active" is a single lookup miss.
    """

    name = models.CharField(
        max_length=100,
        unique=True,
        verbose_name=_('Nome'),
    )
    unit = models.CharField(
        max_length=20,
        default='sq ft',
        verbose_name=_('Unidade'),
    )
    notes = models.TextField(blank=True, default='', verbose_name=_('Observações'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Tipo de Material')
        verbose_name_plural = _('Tipos de Material')
        ordering = ['name']

    @property
    def active_shades(self) -> list[str]:
        return list(
            self.shades.filter(is_active=True)
            .order_by('shade')
            .values_list('shade', flat=True)
        )

    def __str__(self) -> str:
        return self.name


class MaterialShade(models.Model):
    """
    One grade of a material, with its own prices, barcode and stock status.

    The row doubles as the lock target for its stock pool: every mutation of
    (material, shade) lots selects this row for update first.
    """

    material = models.ForeignKey(
        MaterialType,
        on_delete=models.CASCADE,
        related_name='shades',
        verbose_name=_('Material'),
    )
    shade = models.CharField(
        max_length=4,
        choices=Shade.choices,
        verbose_name=_('Tonalidade'),
    )
    is_active = models.BooleanField(default=True, verbose_name=_('Ativa'))

    cost_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0'),
        verbose_name=_('Preço de custo'),
    )
    sale_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0'),
        verbose_name=_('Preço de venda'),
    )
    barcode = models.CharField(
        max_length=50,
        unique=True,
        null=True,
        blank=True,
        verbose_name=_('Código de barras'),
    )

    status = models.CharField(
        max_length=20,
        choices=StockStatus.choices,
        default=StockStatus.OUT_OF_STOCK,
        db_index=True,
        verbose_name=_('Status'),
    )
    low_stock_threshold = models.FloatField(
        null=True,
        blank=True,
        verbose_name=_('Limite de estoque baixo'),
        help_text=_('Vazio = usa SLABMAN["LOW_STOCK_THRESHOLD"]'),
    )

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Tonalidade')
        verbose_name_plural = _('Tonalidades')
        ordering = ['material', 'shade']
        constraints = [
            models.UniqueConstraint(
                fields=['material', 'shade'],
                name='unique_material_shade',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.material.name} ({self.shade})"
