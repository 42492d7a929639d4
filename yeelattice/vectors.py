"""Dimension-tagged continuous and integer lattice coordinates.

Both :py:class:`Vec` and :py:class:`IVec` are immutable values holding one
coordinate per active direction of their :py:class:`Dimension`. :py:class:`IVec`
coordinates are in *half-lattice* units: the Yee sub-lattice of a point is
encoded by the parity of each of its coordinates.

"""

from __future__ import annotations

from typing import Callable, Tuple, TypeVar

import numpy as np

from .defs import ACTIVE_DIRECTIONS, COORDINATE_ORDER, TRAVERSAL_ORDER
from .errors import ConfigurationError
from .typing import Dimension, Direction
from .utils import check_active, check_same_dim, direction_name

_C = TypeVar("_C", bound="_Coordinates")


class _Coordinates:
    """Storage shared by ``Vec`` and ``IVec``: one slot per ``Direction``."""

    __slots__ = ("dim", "_t")

    def __init__(self, dim: Dimension, slots: Tuple = (0, 0, 0, 0, 0)):
        self.dim = dim
        self._t = tuple(slots)

    def in_direction(self, d: Direction):
        check_active("in_direction", self.dim, d)
        return self._t[d]

    def with_direction(self: _C, d: Direction, value) -> _C:
        """Copy of ``self`` with the ``d`` coordinate replaced by ``value``."""
        check_active("with_direction", self.dim, d)
        t = list(self._t)
        t[d] = value
        return type(self)(self.dim, t)

    @property
    def x(self):
        return self.in_direction(Direction.X)

    @property
    def y(self):
        return self.in_direction(Direction.Y)

    @property
    def z(self):
        return self.in_direction(Direction.Z)

    @property
    def r(self):
        return self.in_direction(Direction.R)

    @property
    def p(self):
        return self.in_direction(Direction.P)

    def coordinates(self) -> Tuple:
        """Coordinates in the positional order accepted by ``vec()``/``ivec()``."""
        return tuple(self._t[d] for d in COORDINATE_ORDER[self.dim])

    def _combine(self: _C, other: _C, fn: Callable, operation: str) -> _C:
        check_same_dim(operation, self.dim, other.dim)
        t = list(self._t)
        for d in ACTIVE_DIRECTIONS[self.dim]:
            t[d] = fn(self._t[d], other._t[d])
        return type(self)(self.dim, t)

    def _map(self, fn: Callable, cls=None):
        t = [0, 0, 0, 0, 0]
        for d in ACTIVE_DIRECTIONS[self.dim]:
            t[d] = fn(self._t[d])
        return (cls or type(self))(self.dim, t)

    def __add__(self: _C, other: _C) -> _C:
        if type(other) is not type(self):
            return NotImplemented
        return self._combine(other, lambda a, b: a + b, "Addition")

    def __sub__(self: _C, other: _C) -> _C:
        if type(other) is not type(self):
            return NotImplemented
        return self._combine(other, lambda a, b: a - b, "Subtraction")

    def __neg__(self: _C) -> _C:
        return self._map(lambda a: -a)

    def __eq__(self, other) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.dim == other.dim and self._t == other._t

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.dim, self._t))

    def __repr__(self) -> str:
        coords = ", ".join(
            f"{direction_name(d)}={self._t[d]}" for d in COORDINATE_ORDER[self.dim]
        )
        return f"{type(self).__name__}({self.dim.value}, {coords})"


class Vec(_Coordinates):
    """Continuous coordinates."""

    __slots__ = ()

    def __mul__(self, s: float) -> Vec:
        return self._map(lambda a: a * s)

    __rmul__ = __mul__

    def __truediv__(self, s: float) -> Vec:
        return self._map(lambda a: a / s)

    def project_to_boundary(self, d: Direction, boundary_loc: float) -> float:
        """Distance from ``self`` to the plane at ``boundary_loc`` normal to ``d``."""
        return abs(boundary_loc - self.in_direction(d))

    def round_float(self) -> Vec:
        """Coordinates rounded to single precision, for approximate equality."""
        return self._map(lambda a: float(np.float32(a)))


class IVec(_Coordinates):
    """Integer lattice coordinates in half-lattice units."""

    __slots__ = ()

    def __mul__(self, s):
        if isinstance(s, (int, np.integer)):
            return self._map(lambda a: a * int(s))
        return self._map(lambda a: a * s, cls=Vec)

    __rmul__ = __mul__

    def round_up_to_even(self) -> IVec:
        """Odd coordinates moved one half-step away from zero."""
        return self._map(lambda a: a + (a % 2 if a >= 0 else -((-a) % 2)))

    def traversal_value(self, n: int) -> int:
        """Coordinate along the ``n`` th nested traversal direction, or ``0``."""
        d = TRAVERSAL_ORDER[self.dim][n]
        return self._t[d] if d in ACTIVE_DIRECTIONS[self.dim] else 0


def _from_coordinates(cls, dim: Dimension, coords: Tuple):
    order = COORDINATE_ORDER[dim]
    if len(coords) != len(order):
        raise ConfigurationError(
            f"{dim.value} coordinates take {len(order)} values, got {len(coords)}."
        )
    t = [0, 0, 0, 0, 0]
    for d, value in zip(order, coords):
        t[d] = value
    return cls(dim, t)


def vec(dim: Dimension, *coords: float) -> Vec:
    """``Vec`` from coordinates given as ``(z)``, ``(x, y)``, ``(x, y, z)`` or ``(r, z)``."""
    return _from_coordinates(Vec, dim, tuple(float(c) for c in coords))


def ivec(dim: Dimension, *coords: int) -> IVec:
    """``IVec`` from coordinates in the same positional order as ``vec()``."""
    return _from_coordinates(IVec, dim, tuple(int(c) for c in coords))


def veccyl(r: float, z: float) -> Vec:
    return vec(Dimension.CYLINDRICAL, r, z)


def iveccyl(r: int, z: int) -> IVec:
    return ivec(Dimension.CYLINDRICAL, r, z)


def zero_vec(dim: Dimension) -> Vec:
    return Vec(dim, (0.0,) * 5)


def zero_ivec(dim: Dimension) -> IVec:
    return IVec(dim)


def one_ivec(dim: Dimension) -> IVec:
    return zero_ivec(dim)._map(lambda _: 1)


def unit_ivec(dim: Dimension, d: Direction) -> IVec:
    return zero_ivec(dim).with_direction(d, 1)


def minimum(a: _C, b: _C) -> _C:
    """Per-direction minimum of ``a`` and ``b``."""
    return a._combine(b, min, "Minimum")


def maximum(a: _C, b: _C) -> _C:
    """Per-direction maximum of ``a`` and ``b``."""
    return a._combine(b, max, "Maximum")
