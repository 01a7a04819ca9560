"""
Initial migration for Slabman models.
"""

from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


SHADE_CHOICES = [('AA', 'AA'), ('A', 'A'), ('B', 'B'), ('B-', 'B-')]


class Migration(migrations.Migration):
    """Create Slabman models: MaterialType, MaterialShade, StockLot, Reservation, LedgerEntry."""

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='MaterialType',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, unique=True, verbose_name='Nome')),
                ('unit', models.CharField(default='sq ft', max_length=20, verbose_name='Unidade')),
                ('notes', models.TextField(blank=True, default='', verbose_name='Observações')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Tipo de Material',
                'verbose_name_plural': 'Tipos de Material',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='MaterialShade',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('shade', models.CharField(choices=SHADE_CHOICES, max_length=4, verbose_name='Tonalidade')),
                ('is_active', models.BooleanField(default=True, verbose_name='Ativa')),
                ('cost_price', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12, verbose_name='Preço de custo')),
                ('sale_price', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12, verbose_name='Preço de venda')),
                ('barcode', models.CharField(blank=True, max_length=50, null=True, unique=True, verbose_name='Código de barras')),
                ('status', models.CharField(choices=[('in_stock', 'Em estoque'), ('low_stock', 'Estoque baixo'), ('out_of_stock', 'Sem estoque')], db_index=True, default='out_of_stock', max_length=20, verbose_name='Status')),
                ('low_stock_threshold', models.FloatField(blank=True, help_text='Vazio = usa SLABMAN["LOW_STOCK_THRESHOLD"]', null=True, verbose_name='Limite de estoque baixo')),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('material', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='shades', to='slabman.materialtype', verbose_name='Material')),
            ],
            options={
                'verbose_name': 'Tonalidade',
                'verbose_name_plural': 'Tonalidades',
                'ordering': ['material', 'shade'],
                'constraints': [
                    models.UniqueConstraint(fields=('material', 'shade'), name='unique_material_shade'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StockLot',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('shade', models.CharField(choices=SHADE_CHOICES, max_length=4, verbose_name='Tonalidade')),
                ('quantity', models.FloatField(default=0.0, verbose_name='Quantidade (área)')),
                ('length', models.FloatField(blank=True, null=True, verbose_name='Comprimento')),
                ('width', models.FloatField(blank=True, null=True, verbose_name='Largura')),
                ('slab_count', models.PositiveIntegerField(blank=True, null=True, verbose_name='Número de chapas')),
                ('origin', models.CharField(choices=[('received', 'Entrada'), ('remnant', 'Sobra de corte'), ('released', 'Reserva liberada')], default='received', max_length=20, verbose_name='Origem')),
                ('batch_number', models.CharField(blank=True, default='', max_length=50, verbose_name='Lote')),
                ('location', models.CharField(blank=True, default='', max_length=100, verbose_name='Local')),
                ('supplier', models.CharField(blank=True, default='', max_length=200, verbose_name='Fornecedor')),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('material', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lots', to='slabman.materialtype', verbose_name='Material')),
                ('parent', models.ForeignKey(blank=True, help_text='Preenchido em sobras de corte', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='remnants', to='slabman.stocklot', verbose_name='Lote de origem')),
            ],
            options={
                'verbose_name': 'Lote de Estoque',
                'verbose_name_plural': 'Lotes de Estoque',
                'ordering': ['created_at', 'pk'],
                'indexes': [
                    models.Index(fields=['material', 'shade', 'created_at'], name='stock_lot_pool_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('quantity__gte', 0)), name='stock_lot_quantity_non_negative'),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(('length__isnull', True), ('width__isnull', True), ('slab_count__isnull', True)),
                            models.Q(('length__isnull', False), ('width__isnull', False), ('slab_count__isnull', False)),
                            _connector='OR',
                        ),
                        name='stock_lot_geometry_all_or_none',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='Reservation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('shade', models.CharField(choices=SHADE_CHOICES, max_length=4, verbose_name='Tonalidade')),
                ('quantity', models.FloatField(verbose_name='Quantidade (área)')),
                ('length', models.FloatField(verbose_name='Comprimento')),
                ('width', models.FloatField(verbose_name='Largura')),
                ('slab_count', models.PositiveIntegerField(verbose_name='Número de chapas')),
                ('client_name', models.CharField(max_length=200, verbose_name='Cliente')),
                ('client_phone', models.CharField(blank=True, default='', max_length=50, verbose_name='Telefone')),
                ('client_email', models.CharField(blank=True, default='', max_length=200, verbose_name='E-mail')),
                ('notes', models.TextField(blank=True, default='', verbose_name='Observações')),
                ('status', models.CharField(choices=[('reserved', 'Reservado'), ('released', 'Liberado'), ('delivered', 'Entregue'), ('cancelled', 'Cancelado')], db_index=True, default='reserved', max_length=20, verbose_name='Status')),
                ('reserved_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Reservado em')),
                ('released_at', models.DateTimeField(blank=True, null=True, verbose_name='Liberado em')),
                ('delivered_at', models.DateTimeField(blank=True, null=True, verbose_name='Entregue em')),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('material', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='reservations', to='slabman.materialtype', verbose_name='Material')),
                ('reserved_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Reservado por')),
            ],
            options={
                'verbose_name': 'Reserva',
                'verbose_name_plural': 'Reservas',
                'ordering': ['-reserved_at'],
                'indexes': [
                    models.Index(fields=['material', 'shade', 'status'], name='reservation_pool_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='LedgerEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('shade', models.CharField(blank=True, choices=SHADE_CHOICES, default='', max_length=4, verbose_name='Tonalidade')),
                ('direction', models.CharField(choices=[('IN', 'Entrada'), ('OUT', 'Saída')], max_length=3, verbose_name='Tipo')),
                ('quantity', models.FloatField(verbose_name='Quantidade (área)')),
                ('reason', models.CharField(help_text='Obrigatório. Ex: "Reservado para Ana", "Entrada fornecedor"', max_length=255, verbose_name='Motivo')),
                ('notes', models.TextField(blank=True, default='', verbose_name='Observações')),
                ('metadata', models.JSONField(blank=True, default=dict, verbose_name='Metadados')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Data/Hora')),
                ('material', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='ledger', to='slabman.materialtype', verbose_name='Material')),
                ('lot', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='ledger', to='slabman.stocklot', verbose_name='Lote')),
                ('reservation', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='ledger', to='slabman.reservation', verbose_name='Reserva')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Usuário')),
            ],
            options={
                'verbose_name': 'Movimento',
                'verbose_name_plural': 'Movimentos',
                'ordering': ['created_at', 'pk'],
                'indexes': [
                    models.Index(fields=['material', 'created_at'], name='ledger_material_created_idx'),
                ],
            },
        ),
    ]
