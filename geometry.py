"""
Slab geometry — pure fit and cut helpers.

Decides whether a requested slab size fits a lot's slab size and how many
requested pieces one lot slab can be cut into.

Feasibility is area-based and tiling is modeled only as whole pieces laid
axis-aligned in one of two orientations. It does not prove that a physical
cut plan exists for every request.

Examples:
    - 10x10 slab, 4x2 pieces: 10 per slab either way, 20 sq ft waste
    - 5x3 slab, 3x5 pieces: 1 per slab (widthwise), no waste
    - 10x1 slab, 3x3 pieces: fits by area, but 0 pieces
"""

import math
from dataclasses import dataclass

LENGTHWISE = 'lengthwise'
WIDTHWISE = 'widthwise'

EPSILON = 0.01

# Guards floor() against 2.9999999 style float drift
_DRIFT = 1e-9


@dataclass(frozen=True)
class CutPattern:
    """Best tiling of requested pieces on one lot slab."""

    count: int
    waste: float
    orientation: str

    @property
    def can_cut(self) -> bool:
        return self.count > 0


def _whole(available: float, piece: float) -> int:
    """How many whole pieces fit along one axis."""
    return max(int(math.floor(available / piece + _DRIFT)), 0)


def fits(lot_length: float, lot_width: float,
         req_length: float, req_width: float) -> bool:
    """Is the lot slab at least as large (by area) as the requested slab?"""
    return lot_length * lot_width >= req_length * req_width


def is_exact(lot_length: float, lot_width: float,
             req_length: float, req_width: float,
             epsilon: float = EPSILON) -> bool:
    """Does the lot slab have exactly the requested dimensions?"""
    return (
        abs(lot_length - req_length) < epsilon
        and abs(lot_width - req_width) < epsilon
    )


def cuts_per_unit(lot_length: float, lot_width: float,
                  req_length: float, req_width: float) -> CutPattern:
    """
    How many requested pieces can be cut from one lot slab.

    Tries requested length along the lot length (lengthwise) and along the
    lot width (widthwise). The larger count wins; ties go lengthwise.

    Returns:
        CutPattern with count=0 when neither orientation yields a piece.
    """
    lengthwise = _whole(lot_length, req_length) * _whole(lot_width, req_width)
    widthwise = _whole(lot_length, req_width) * _whole(lot_width, req_length)

    if lengthwise >= widthwise:
        count, orientation = lengthwise, LENGTHWISE
    else:
        count, orientation = widthwise, WIDTHWISE

    waste = lot_length * lot_width - count * req_length * req_width
    return CutPattern(count=count, waste=waste, orientation=orientation)


def offcut(lot_length: float, lot_width: float,
           req_length: float, req_width: float,
           orientation: str = LENGTHWISE) -> tuple[float, float]:
    """
    Largest rectangular offcut left on one slab after tiling.

    Pieces are laid in a grid from one corner. Two strips remain: the
    full-length strip across the unused width, and the side strip beside
    the grid. The larger one (by area) is returned as (length, width);
    ties go to the full-length strip.
    """
    if orientation == LENGTHWISE:
        along_length, along_width = req_length, req_width
    else:
        along_length, along_width = req_width, req_length

    cols = _whole(lot_length, along_length)
    rows = _whole(lot_width, along_width)

    top = (lot_length, max(lot_width - rows * along_width, 0.0))
    side = (max(lot_length - cols * along_length, 0.0), rows * along_width)

    if side[0] * side[1] > top[0] * top[1]:
        return side
    return top
