"""Axis-aligned boxes in continuous coordinates."""

from __future__ import annotations

import math

from .defs import ACTIVE_DIRECTIONS
from .typing import Dimension, Direction
from .utils import check_same_dim
from .vectors import Vec, maximum, minimum, zero_vec


class Volume:
    """Box spanned by two corners, normalized so that ``min <= max`` per axis.

    Used for source regions, flux planes and other continuous sub-regions of a
    simulation. A single point is a zero-extent volume.

    """

    __slots__ = ("dim", "min_corner", "max_corner")

    def __init__(self, corner1: Vec, corner2: Vec | None = None):
        if corner2 is None:
            corner2 = corner1
        self.dim = corner1.dim
        self.min_corner = minimum(corner1, corner2)
        self.max_corner = maximum(corner1, corner2)

    def in_direction_min(self, d: Direction) -> float:
        return self.min_corner.in_direction(d)

    def in_direction_max(self, d: Direction) -> float:
        return self.max_corner.in_direction(d)

    def in_direction(self, d: Direction) -> float:
        """Extent of the volume along ``d``."""
        return self.in_direction_max(d) - self.in_direction_min(d)

    def with_direction_min(self, d: Direction, value: float) -> Volume:
        return Volume(self.min_corner.with_direction(d, value), self.max_corner)

    def with_direction_max(self, d: Direction, value: float) -> Volume:
        return Volume(self.min_corner, self.max_corner.with_direction(d, value))

    def center(self) -> Vec:
        return (self.min_corner + self.max_corner) * 0.5

    def computational_volume(self) -> float:
        """Product of the extents along every active direction."""
        vol = 1.0
        for d in ACTIVE_DIRECTIONS[self.dim]:
            vol *= self.in_direction(d)
        return vol

    def integral_volume(self) -> float:
        """Integration measure of the volume, skipping zero-extent directions.

        In cylindrical coordinates the azimuthal ``2 pi r`` factor is taken at
        the mean radius of the volume.

        """
        vol = 1.0
        for d in ACTIVE_DIRECTIONS[self.dim]:
            if self.in_direction(d) != 0.0:
                vol *= self.in_direction(d)
        return vol * self._azimuthal_factor()

    def full_volume(self) -> float:
        """``computational_volume()`` with the cylindrical azimuthal factor."""
        return self.computational_volume() * self._azimuthal_factor()

    def _azimuthal_factor(self) -> float:
        if self.dim != Dimension.CYLINDRICAL:
            return 1.0
        r = Direction.R
        return math.pi * (self.in_direction_max(r) + self.in_direction_min(r))

    def diameter(self) -> float:
        """Largest extent of the volume."""
        return max([0.0] + [self.in_direction(d) for d in ACTIVE_DIRECTIONS[self.dim]])

    def intersect_with(self, other: Volume) -> Volume:
        """Overlap of ``self`` and ``other``, or the empty volume if disjoint."""
        check_same_dim("Volume intersection", self.dim, other.dim)
        lo = maximum(self.min_corner, other.min_corner)
        hi = minimum(self.max_corner, other.max_corner)
        for d in ACTIVE_DIRECTIONS[self.dim]:
            if lo.in_direction(d) > hi.in_direction(d):
                return empty_volume(self.dim)
        return Volume(lo, hi)

    def intersects(self, other: Volume) -> bool:
        check_same_dim("Volume intersection", self.dim, other.dim)
        return all(
            max(self.in_direction_min(d), other.in_direction_min(d))
            <= min(self.in_direction_max(d), other.in_direction_max(d))
            for d in ACTIVE_DIRECTIONS[self.dim]
        )

    def contains(self, p: Vec | Volume) -> bool:
        """``True`` iff ``p`` lies within ``self``, boundaries included."""
        if isinstance(p, Volume):
            return self.contains(p.min_corner) and self.contains(p.max_corner)
        check_same_dim("Volume containment", self.dim, p.dim)
        return all(
            self.in_direction_min(d) <= p.in_direction(d) <= self.in_direction_max(d)
            for d in ACTIVE_DIRECTIONS[self.dim]
        )

    def normal_direction(self) -> Direction:
        """Direction normal to a codimension-1 volume, else ``NO_DIRECTION``.

        For 1D volumes this is always ``Z``.

        """
        if self.dim == Dimension.D1:
            return Direction.Z
        flat = [d for d in ACTIVE_DIRECTIONS[self.dim] if self.in_direction(d) == 0]
        thick = [d for d in ACTIVE_DIRECTIONS[self.dim] if self.in_direction(d) > 0]
        if len(flat) == 1 and len(thick) == len(ACTIVE_DIRECTIONS[self.dim]) - 1:
            return flat[0]
        return Direction.NO_DIRECTION

    def round_float(self) -> Volume:
        """Corners rounded to single precision, for approximate comparisons."""
        return Volume(self.min_corner.round_float(), self.max_corner.round_float())

    def __eq__(self, other) -> bool:
        if not isinstance(other, Volume):
            return NotImplemented
        return self.min_corner == other.min_corner and self.max_corner == other.max_corner

    def __hash__(self) -> int:
        return hash((self.min_corner, self.max_corner))

    def __repr__(self) -> str:
        return f"Volume({self.min_corner!r}, {self.max_corner!r})"


def empty_volume(dim: Dimension) -> Volume:
    """Zero-extent volume at the origin."""
    return Volume(zero_vec(dim))
