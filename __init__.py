"""
Django Slabman — Slab stock, allocation and reservations for stone yards.

Uso:
    from slabman import stock, SlabError

    stock.receive(travertino, 'A', length=10, width=10, slab_count=4)
    result = stock.reserve(travertino, 'A', 4, 2, 3, client_name='Ana')
    stock.release(result.reservation_ids[0])
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'stock':
        from slabman.service import Stock
        return Stock
    elif name == 'SlabError':
        from slabman.exceptions import SlabError
        return SlabError
    elif name == 'MaterialType':
        from slabman.models.material import MaterialType
        return MaterialType
    elif name == 'MaterialShade':
        from slabman.models.material import MaterialShade
        return MaterialShade
    elif name == 'StockLot':
        from slabman.models.lot import StockLot
        return StockLot
    elif name == 'Reservation':
        from slabman.models.reservation import Reservation
        return Reservation
    elif name == 'LedgerEntry':
        from slabman.models.ledger import LedgerEntry
        return LedgerEntry
    elif name == 'Shade':
        from slabman.models.enums import Shade
        return Shade
    elif name == 'ReservationStatus':
        from slabman.models.enums import ReservationStatus
        return ReservationStatus
    elif name == 'StockStatus':
        from slabman.models.enums import StockStatus
        return StockStatus
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'stock',
    'SlabError',
    'MaterialType',
    'MaterialShade',
    'StockLot',
    'Reservation',
    'LedgerEntry',
    'Shade',
    'ReservationStatus',
    'StockStatus',
]

__version__ = '0.1.0'
