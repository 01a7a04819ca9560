"""
Stock services — modular organization of slab stock operations.

Re-exports all public classes:
    from slabman.services import StockQueries, StockMovements, StockReservations, StockCatalog
"""

from slabman.services.catalog import StockCatalog
from slabman.services.movements import StockMovements
from slabman.services.queries import StockQueries
from slabman.services.reservations import ReservationResult, StockReservations

__all__ = [
    'StockQueries',
    'StockMovements',
    'StockReservations',
    'StockCatalog',
    'ReservationResult',
]
