"""
Enums for Slabman models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class Shade(models.TextChoices):
    """Quality grade of a material. Each shade is priced and stocked on its own."""
    AA = 'AA', _('AA')
    A = 'A', _('A')
    B = 'B', _('B')
    B_MINUS = 'B-', _('B-')


class StockStatus(models.TextChoices):
    """Aggregate stock level of a (material, shade) pool."""
    IN_STOCK = 'in_stock', _('Em estoque')
    LOW_STOCK = 'low_stock', _('Estoque baixo')
    OUT_OF_STOCK = 'out_of_stock', _('Sem estoque')


class LotOrigin(models.TextChoices):
    """
    How a lot entered stock.

    RECEIVED: stock-in from a supplier
    REMNANT:  offcut left over after cutting a larger slab
    RELEASED: restored from a released reservation
    """
    RECEIVED = 'received', _('Entrada')
    REMNANT = 'remnant', _('Sobra de corte')
    RELEASED = 'released', _('Reserva liberada')


class ReservationStatus(models.TextChoices):
    """Reservation lifecycle status."""
    RESERVED = 'reserved', _('Reservado')      # Stock already taken out of lots
    RELEASED = 'released', _('Liberado')       # Stock restored as a new lot
    DELIVERED = 'delivered', _('Entregue')     # Handed to the client
    CANCELLED = 'cancelled', _('Cancelado')


class Direction(models.TextChoices):
    """Ledger entry direction."""
    IN = 'IN', _('Entrada')
    OUT = 'OUT', _('Saída')
