"""
Stock Service — The single public interface for all slab stock operations.

Usage:
    from slabman import stock, SlabError
    from slabman.models import Shade

    stock.receive(travertino, Shade.A, length=10, width=10, slab_count=4)
    stock.has_enough_quantity(travertino, Shade.A, 4, 2, 3)   # True
    result = stock.reserve(travertino, Shade.A, 4, 2, 3, client_name='Ana')
    stock.deliver(result.reservation_ids[0])
"""

from slabman.services.catalog import StockCatalog
from slabman.services.movements import StockMovements
from slabman.services.queries import StockQueries
from slabman.services.reservations import StockReservations


class Stock(StockQueries, StockMovements, StockReservations, StockCatalog):
    """
    Single interface for all slab stock operations.

    Parameter convention: (material, shade, length, width, count, ...)
    Material may be a MaterialType, its pk or its name.

    IMPORTANT: All state-changing methods run in one atomic transaction
    with the (material, shade) pool locked. See each method's docstring.
    """
