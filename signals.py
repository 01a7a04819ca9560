"""
Slabman signals.

low_stock is sent after commit when a (material, shade) pool drops to
LOW_STOCK or OUT_OF_STOCK. Receivers get:
    material_shade: MaterialShade
    total: remaining area
    status: StockStatus value

Usage:
    from django.dispatch import receiver
    from slabman.signals import low_stock

    @receiver(low_stock)
    def notify(sender, material_shade, total, status, **kwargs):
        Notification.objects.create(...)
"""

from django.dispatch import Signal

low_stock = Signal()
