"""
Pytest fixtures for Slabman tests.
"""

from decimal import Decimal

import pytest
from django.conf import settings


def pytest_configure():
    settings.configure(
        DATABASES={
            'default': {
                'ENGINE': 'django.db.backends.sqlite3',
                'NAME': ':memory:',
            }
        },
        INSTALLED_APPS=[
            'django.contrib.contenttypes',
            'django.contrib.auth',
            'slabman',
        ],
        DEFAULT_AUTO_FIELD='django.db.models.BigAutoField',
        USE_TZ=True,
        PASSWORD_HASHERS=['django.contrib.auth.hashers.MD5PasswordHasher'],
        SLABMAN={
            'LOW_STOCK_THRESHOLD': 100,
        },
    )


@pytest.fixture
def user(db):
    """Create a test user."""
    from django.contrib.auth import get_user_model

    return get_user_model().objects.create_user(
        username='testuser',
        password='testpass123'
    )


@pytest.fixture
def travertino(db):
    """Travertino with shades AA, A and B active (B- not carried)."""
    from slabman import stock

    return stock.create_material(
        'Travertino',
        shades={
            'AA': (Decimal('80.00'), Decimal('120.00')),
            'A': (Decimal('60.00'), Decimal('95.00')),
            'B': (Decimal('40.00'), Decimal('70.00')),
        },
    )


@pytest.fixture
def onix(db):
    """Ônix with a single active shade A."""
    from slabman import stock

    return stock.create_material(
        'Ônix',
        shades={'A': (Decimal('150.00'), Decimal('240.00'))},
    )


@pytest.fixture
def receive(travertino):
    """Receive slab lots of Travertino: receive(length, width, slab_count, shade='A')."""
    from slabman import stock

    def _receive(length, width, slab_count, shade='A', **kwargs):
        return stock.receive(
            travertino, shade,
            length=length, width=width, slab_count=slab_count,
            reason='Entrada teste', **kwargs
        )

    return _receive


@pytest.fixture
def pool_area(travertino):
    """Current total area of a Travertino pool."""
    from slabman.models import StockLot

    def _area(shade='A'):
        return StockLot.objects.for_pool(travertino, shade).total_quantity()

    return _area
