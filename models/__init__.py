"""
Slabman Models.

Core models for slab stock:
- MaterialType: What is stocked
- MaterialShade: Orderable grade of a material (prices, barcode, status)
- StockLot: Area and slab geometry of one lot
- Reservation: Client hold on stock
- LedgerEntry: Immutable ledger of quantity changes
"""

from slabman.models.enums import (
    Direction,
    LotOrigin,
    ReservationStatus,
    Shade,
    StockStatus,
)
from slabman.models.ledger import LedgerEntry
from slabman.models.lot import StockLot
from slabman.models.material import MaterialShade, MaterialType
from slabman.models.reservation import Reservation

__all__ = [
    'Shade',
    'StockStatus',
    'LotOrigin',
    'ReservationStatus',
    'Direction',
    'MaterialType',
    'MaterialShade',
    'StockLot',
    'Reservation',
    'LedgerEntry',
]
