"""
Reservation model — a client's committed hold on slab stock.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from slabman.models.enums import ReservationStatus, Shade


class ReservationQuerySet(models.QuerySet):

    def search(self, term: str):
        """Match material name, shade or client contact."""
        if not term:
            return self
        return self.filter(
            models.Q(material__name__icontains=term)
            | models.Q(shade__iexact=term)
            | models.Q(client_name__icontains=term)
            | models.Q(client_phone__icontains=term)
            | models.Q(client_email__icontains=term)
        )


class Reservation(models.Model):
    """
    Stock reserved for a client.

    LIFECYCLE:

        ┌──────────┐   release()   ┌──────────┐
        │ RESERVED │ ────────────► │ RELEASED │  (stock restored as new lot)
        └──────────┘               └──────────┘
             │
             │ deliver()           ┌───────────┐
             └───────────────────► │ DELIVERED │  (stock leaves for good)
                                   └───────────┘

    Stock is taken out of the lots when the reservation is created, so the
    reservation keeps its own snapshot of quantity and geometry: it may have
    been assembled from several lots, some of them deleted since.
    """

    material = models.ForeignKey(
        'slabman.MaterialType',
        on_delete=models.PROTECT,
        related_name='reservations',
        verbose_name=_('Material'),
    )
    shade = models.CharField(max_length=4, choices=Shade.choices, verbose_name=_('Tonalidade'))

    quantity = models.FloatField(verbose_name=_('Quantidade (área)'))
    length = models.FloatField(verbose_name=_('Comprimento'))
    width = models.FloatField(verbose_name=_('Largura'))
    slab_count = models.PositiveIntegerField(verbose_name=_('Número de chapas'))

    client_name = models.CharField(max_length=200, verbose_name=_('Cliente'))
    client_phone = models.CharField(max_length=50, blank=True, default='', verbose_name=_('Telefone'))
    client_email = models.CharField(max_length=200, blank=True, default='', verbose_name=_('E-mail'))
    notes = models.TextField(blank=True, default='', verbose_name=_('Observações'))
    reserved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Reservado por'),
    )

    status = models.CharField(
        max_length=20,
        choices=ReservationStatus.choices,
        default=ReservationStatus.RESERVED,
        db_index=True,
        verbose_name=_('Status'),
    )
    reserved_at = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Reservado em'))
    released_at = models.DateTimeField(null=True, blank=True, verbose_name=_('Liberado em'))
    delivered_at = models.DateTimeField(null=True, blank=True, verbose_name=_('Entregue em'))

    # Per-lot allocation summary written at reservation time
    metadata = models.JSONField(default=dict, blank=True)

    objects = ReservationQuerySet.as_manager()

    class Meta:
        verbose_name = _('Reserva')
        verbose_name_plural = _('Reservas')
        ordering = ['-reserved_at']
        indexes = [
            models.Index(fields=['material', 'shade', 'status'], name='reservation_pool_status_idx'),
        ]

    @property
    def is_active(self) -> bool:
        return self.status == ReservationStatus.RESERVED

    @property
    def reservation_id(self) -> str:
        """Return reservation identifier in standard format."""
        return f"res:{self.pk}"

    def __str__(self) -> str:
        return (
            f"{self.reservation_id} {self.slab_count}x {self.length:g}x{self.width:g} "
            f"{self.shade} → {self.client_name} [{self.status}]"
        )
