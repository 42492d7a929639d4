"""Basic definitions."""

from __future__ import annotations

from typing import Dict, Tuple

from .typing import Dimension, Direction

X, Y, Z, R, P = Direction.X, Direction.Y, Direction.Z, Direction.R, Direction.P

# Active directions per dimension, in the order used by every
# "for each active direction" loop (ascending ``Direction`` value).
ACTIVE_DIRECTIONS: Dict[Dimension, Tuple[Direction, ...]] = {
    Dimension.D1: (Z,),
    Dimension.D2: (X, Y),
    Dimension.D3: (X, Y, Z),
    Dimension.CYLINDRICAL: (Z, R),
}

# Order of positional coordinates accepted by ``vec()`` and ``ivec()``.
COORDINATE_ORDER: Dict[Dimension, Tuple[Direction, ...]] = {
    Dimension.D1: (Z,),
    Dimension.D2: (X, Y),
    Dimension.D3: (X, Y, Z),
    Dimension.CYLINDRICAL: (R, Z),
}

# Nesting order of the three loops over a flattened field array, outermost
# first, so that the innermost loop runs over unit stride.
TRAVERSAL_ORDER: Dict[Dimension, Tuple[Direction, Direction, Direction]] = {
    Dimension.D1: (X, Y, Z),
    Dimension.D2: (Z, X, Y),
    Dimension.D3: (X, Y, Z),
    Dimension.CYLINDRICAL: (P, R, Z),
}

# Every real direction, i.e. all but ``NO_DIRECTION``.
ALL_DIRECTIONS: Tuple[Direction, ...] = (X, Y, Z, R, P)

# Interpolation weights below this are dropped.
SMALL_WEIGHT = 1e-13

# Renormalization may push a weight below zero by at most this much.
NEGATIVE_WEIGHT_LIMIT = SMALL_WEIGHT * 1e5

# Compaction treats weights below this as empty slots.
COMPACTION_THRESHOLD = 2e-15

# Most stored components a derived component may be computed from.
MAX_DERIVED_FIELDS = 12
