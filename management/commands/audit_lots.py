"""
Management command to audit slab lots.

Checks quantity == length * width * slab_count on every lot with geometry
and recomputes the status of every active (material, shade) pool.

Usage:
    python manage.py audit_lots
    python manage.py audit_lots --fix
"""

import logging

from django.core.management.base import BaseCommand
from django.db import transaction

from slabman.conf import slabman_settings
from slabman.models import StockLot
from slabman.services.alerts import check_alerts

logger = logging.getLogger('slabman')


class Command(BaseCommand):
    """Audit lots command."""

    help = 'Confere a geometria dos lotes e recalcula o status do estoque'

    def add_arguments(self, parser):
        parser.add_argument(
            '--fix',
            action='store_true',
            help='Corrige a quantidade dos lotes inconsistentes'
        )

    def handle(self, *args, **options):
        epsilon = slabman_settings.AREA_EPSILON
        broken = 0

        for lot in list(StockLot.objects.with_geometry()):
            expected = lot.expected_quantity()
            if abs(lot.quantity - expected) <= epsilon:
                continue

            broken += 1
            self.stdout.write(
                f'Lote {lot.pk}: quantidade {lot.quantity:g}, esperado {expected:g}'
            )
            if options['fix']:
                with transaction.atomic():
                    StockLot.objects.filter(pk=lot.pk).update(quantity=expected)
                logger.warning(
                    "slab.audit.fixed",
                    extra={"lot_id": lot.pk, "old": lot.quantity, "new": expected},
                )

        low = check_alerts()

        if not broken:
            self.stdout.write(self.style.SUCCESS('Nenhum lote inconsistente'))
        elif options['fix']:
            self.stdout.write(self.style.SUCCESS(f'{broken} lote(s) corrigido(s)'))
        else:
            self.stdout.write(self.style.WARNING(f'{broken} lote(s) inconsistente(s)'))
        self.stdout.write(f'{len(low)} tonalidade(s) com estoque baixo')
