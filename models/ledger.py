"""
LedgerEntry model — immutable audit trail of quantity changes.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from slabman.models.enums import Direction, Shade


class LedgerEntry(models.Model):
    """
    Immutable record of a quantity change for a material.

    Rules:
    - NEVER update() or delete()
    - Corrections are new entries in the opposite direction
    - Lots can disappear after the entry is written; the source lot id is
      kept in metadata['lot_id'] so the trail survives
    - Signed entries of a pool net to its lot total; delivery entries
      (metadata['kind'] == 'delivery') record a hand-over of stock that
      already left the pool and are not part of that sum
    """

    material = models.ForeignKey(
        'slabman.MaterialType',
        on_delete=models.CASCADE,
        related_name='ledger',
        verbose_name=_('Material'),
    )
    shade = models.CharField(max_length=4, choices=Shade.choices, blank=True, default='',
                             verbose_name=_('Tonalidade'))
    direction = models.CharField(max_length=3, choices=Direction.choices, verbose_name=_('Tipo'))
    quantity = models.FloatField(verbose_name=_('Quantidade (área)'))

    lot = models.ForeignKey(
        'slabman.StockLot',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='ledger',
        verbose_name=_('Lote'),
    )
    reservation = models.ForeignKey(
        'slabman.Reservation',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='ledger',
        verbose_name=_('Reserva'),
    )

    reason = models.CharField(
        max_length=255,
        verbose_name=_('Motivo'),
        help_text=_('Obrigatório. Ex: "Reservado para Ana", "Entrada fornecedor"'),
    )
    notes = models.TextField(blank=True, default='', verbose_name=_('Observações'))
    metadata = models.JSONField(default=dict, blank=True, verbose_name=_('Metadados'))

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Usuário'),
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Data/Hora'))

    class Meta:
        verbose_name = _('Movimento')
        verbose_name_plural = _('Movimentos')
        ordering = ['created_at', 'pk']
        indexes = [
            models.Index(fields=['material', 'created_at'], name='ledger_material_created_idx'),
        ]

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValueError(
                "Movimentos são imutáveis. "
                "Para corrigir, crie um novo movimento no sentido inverso."
            )
        if not self.reason:
            raise ValueError("Motivo é obrigatório")
        if self.quantity is None or self.quantity <= 0:
            raise ValueError("Quantidade do movimento deve ser positiva")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        """Prevent deletion — entries are immutable."""
        raise ValueError(
            "Movimentos são imutáveis. "
            "Para estornar, crie um novo movimento no sentido inverso."
        )

    @property
    def signed_quantity(self) -> float:
        return self.quantity if self.direction == Direction.IN else -self.quantity

    def __str__(self) -> str:
        signal = '+' if self.direction == Direction.IN else '-'
        return f"{signal}{self.quantity:g} | {self.reason}"
