"""
Slab allocation — pure planning over in-memory candidates.

No database access here. The reservation service projects lots into
AllocationCandidate, calls plan_allocation() and applies the plan.

Usage:
    request = SlabRequest(length=5, width=3, count=2)
    plan = plan_allocation(request, candidates)
    if plan.can_fulfill:
        for step in plan.steps:
            ...
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from functools import cmp_to_key

from slabman.exceptions import SlabValidationError
from slabman.geometry import EPSILON, cuts_per_unit, fits, is_exact

EXACT = 'exact'
CUT = 'cut'
PARTIAL = 'partial'


def _fmt(value: float) -> str:
    return f"{value:g}"


@dataclass(frozen=True)
class SlabRequest:
    """Requested slabs: count pieces of length x width."""

    length: float
    width: float
    count: int

    def __post_init__(self):
        for field in ('length', 'width'):
            value = getattr(self, field)
            if value is None or isinstance(value, bool) or not isinstance(value, (int, float)) \
                    or not math.isfinite(value) or value <= 0:
                raise SlabValidationError('INVALID_DIMENSIONS', field=field, value=value)
        if isinstance(self.count, bool) or not isinstance(self.count, int) or self.count <= 0:
            raise SlabValidationError('INVALID_COUNT', field='count', value=self.count)

    @property
    def piece_area(self) -> float:
        return self.length * self.width

    @property
    def area(self) -> float:
        return self.piece_area * self.count


@dataclass(frozen=True)
class AllocationCandidate:
    """Planning view of a lot with slab geometry."""

    lot_id: int
    length: float
    width: float
    slab_count: int
    quantity: float

    @classmethod
    def from_lot(cls, lot) -> AllocationCandidate | None:
        """Project a StockLot; None if the lot has no geometry."""
        if lot.slab_count is None:
            return None
        return cls(
            lot_id=lot.pk,
            length=lot.length,
            width=lot.width,
            slab_count=lot.slab_count,
            quantity=lot.quantity,
        )

    @property
    def slab_area(self) -> float:
        return self.length * self.width


@dataclass(frozen=True)
class AllocationStep:
    """What one lot contributes to the plan."""

    lot_id: int
    kind: str
    slabs_used: int
    pieces: int
    area_used: float
    remaining_slabs: int
    waste: float
    cuts_per_slab: int
    orientation: str | None = None

    @property
    def consumes_lot(self) -> bool:
        return self.remaining_slabs == 0

    def as_dict(self) -> dict:
        return {
            'lot_id': self.lot_id,
            'kind': self.kind,
            'slabs_used': self.slabs_used,
            'pieces': self.pieces,
            'area_used': self.area_used,
            'remaining_slabs': self.remaining_slabs,
            'waste': self.waste,
            'cuts_per_slab': self.cuts_per_slab,
            'orientation': self.orientation,
        }


@dataclass(frozen=True)
class AllocationPlan:
    """Ordered allocation steps plus totals."""

    request: SlabRequest
    steps: tuple[AllocationStep, ...]
    total_allocated: float
    total_waste: float
    shortfall: int
    message: str | None = None

    @property
    def can_fulfill(self) -> bool:
        return self.shortfall <= 0


def total_area(candidates) -> float:
    """Total area of the candidates."""
    return sum(c.quantity for c in candidates)


def has_enough_quantity(request: SlabRequest, candidates, epsilon: float = EPSILON) -> bool:
    """
    Quick area check before detailed planning.

    False means the plan cannot succeed. True does not mean it will:
    slab shapes may still not tile the request.
    """
    return total_area(candidates) + epsilon >= request.area


def compare_candidates(a: AllocationCandidate, b: AllocationCandidate,
                       request: SlabRequest, epsilon: float = EPSILON) -> int:
    """
    Ranking comparator (negative = a first).

    1. Exact-dimension matches first
    2. More pieces per slab first
    3. Less waste per slab first (differences within epsilon are ties)
    4. Larger lot area first
    """
    a_exact = is_exact(a.length, a.width, request.length, request.width, epsilon)
    b_exact = is_exact(b.length, b.width, request.length, request.width, epsilon)
    if a_exact != b_exact:
        return -1 if a_exact else 1

    a_cuts = cuts_per_unit(a.length, a.width, request.length, request.width)
    b_cuts = cuts_per_unit(b.length, b.width, request.length, request.width)
    if a_cuts.count != b_cuts.count:
        return b_cuts.count - a_cuts.count

    if abs(a_cuts.waste - b_cuts.waste) > epsilon:
        return -1 if a_cuts.waste < b_cuts.waste else 1

    if abs(a.quantity - b.quantity) > epsilon:
        return -1 if a.quantity > b.quantity else 1
    return 0


def rank_candidates(request: SlabRequest, candidates, epsilon: float = EPSILON) -> list[AllocationCandidate]:
    """Candidates in consumption order. Full ties keep input order."""
    return sorted(
        candidates,
        key=cmp_to_key(lambda a, b: compare_candidates(a, b, request, epsilon)),
    )


def _step_for(candidate: AllocationCandidate, request: SlabRequest,
              needed: int, epsilon: float) -> AllocationStep | None:
    if candidate.slab_count <= 0:
        return None

    if is_exact(candidate.length, candidate.width, request.length, request.width, epsilon):
        used = min(needed, candidate.slab_count)
        return AllocationStep(
            lot_id=candidate.lot_id,
            kind=EXACT,
            slabs_used=used,
            pieces=used,
            area_used=used * request.piece_area,
            remaining_slabs=candidate.slab_count - used,
            waste=0.0,
            cuts_per_slab=1,
        )

    if not fits(candidate.length, candidate.width, request.length, request.width):
        return None

    pattern = cuts_per_unit(candidate.length, candidate.width, request.length, request.width)
    if not pattern.can_cut:
        return None

    used = min(math.ceil(needed / pattern.count), candidate.slab_count)
    obtained = used * pattern.count
    pieces = min(obtained, needed)
    area_used = pieces * request.piece_area

    # Unused pieces of the last slab are waste too
    waste = used * candidate.slab_area - area_used
    if waste < epsilon:
        waste = 0.0

    return AllocationStep(
        lot_id=candidate.lot_id,
        kind=CUT if pieces == obtained else PARTIAL,
        slabs_used=used,
        pieces=pieces,
        area_used=area_used,
        remaining_slabs=candidate.slab_count - used,
        waste=waste,
        cuts_per_slab=pattern.count,
        orientation=pattern.orientation,
    )


def plan_allocation(request: SlabRequest, candidates, epsilon: float = EPSILON) -> AllocationPlan:
    """
    Greedy allocation over ranked candidates.

    Exact lots give one piece per slab. Larger lots are cut: enough slabs
    to cover what is still needed, capped by the lot's slab count.

    Returns:
        AllocationPlan; check plan.can_fulfill before applying it.
    """
    needed = request.count
    steps = []

    for candidate in rank_candidates(request, candidates, epsilon):
        if needed <= 0:
            break
        step = _step_for(candidate, request, needed, epsilon)
        if step is None:
            continue
        steps.append(step)
        needed -= step.pieces

    shortfall = max(needed, 0)
    message = None
    if shortfall:
        message = (
            f"Estoque insuficiente. Faltam {shortfall} chapa(s) de "
            f"{_fmt(request.length)}x{_fmt(request.width)}."
        )

    return AllocationPlan(
        request=request,
        steps=tuple(steps),
        total_allocated=sum(s.area_used for s in steps),
        total_waste=sum(s.waste for s in steps),
        shortfall=shortfall,
        message=message,
    )
