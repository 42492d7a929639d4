"""Definition of and operations on the Yee lattice of a simulation volume.

NOTE: Lattice points are addressed by :py:class:`IVec` coordinates in
*half-lattice* units, so that every staggered Yee offset is an integer. A
component lives on the sub-lattice selected by :py:meth:`GridVolume.iyee_shift`:
the {xyz}-component of the electric field is shifted by a half-cell along
{xyz}, the magnetic field components are shifted along the axes perpendicular
to the component axis, and the material tags sit at the cell centers.

"""

from __future__ import annotations

import logging
import math
from typing import Iterator, List, Sequence, Tuple

import jax
import jax.numpy as jnp
import numpy as np

from . import components
from .defs import (
    ACTIVE_DIRECTIONS,
    COMPACTION_THRESHOLD,
    COORDINATE_ORDER,
    NEGATIVE_WEIGHT_LIMIT,
    SMALL_WEIGHT,
    TRAVERSAL_ORDER,
)
from .errors import ConfigurationError, GeometryInvariantViolation
from .typing import BoundarySide, Component, Dimension, Direction
from .utils import direction_name, round_half_away, trunc_div
from .vectors import (
    IVec,
    Vec,
    ivec,
    one_ivec,
    vec,
    veccyl,
    zero_ivec,
)
from .volumes import Volume, empty_volume

logger = logging.getLogger(__name__)

X, Y, Z, R, P = Direction.X, Direction.Y, Direction.Z, Direction.R, Direction.P


class GridVolume:
    """Discretized, lattice-aligned simulation domain.

    Maps between continuous coordinates, half-lattice :py:class:`IVec`
    coordinates and offsets into flattened per-component field arrays.

    Args:
        dim: Dimensionality of the lattice.
        a: Resolution, in lattice points per unit length.
        na: Number of cells along ``X`` (or ``R``).
        nb: Number of cells along ``Y``.
        nc: Number of cells along ``Z``.

    """

    def __init__(self, dim: Dimension, a: float, na: int, nb: int, nc: int):
        self.dim = dim
        self.a = a
        self.inva = 1.0 / a
        self.num = [na, nb, nc]
        self._num_changed()
        self.set_origin(zero_ivec(dim))

    def copy(self) -> GridVolume:
        gv = GridVolume(self.dim, self.a, *self.num)
        gv.set_origin(self.io)
        return gv

    def __eq__(self, other) -> bool:
        if not isinstance(other, GridVolume):
            return NotImplemented
        return (
            self.dim == other.dim
            and self.a == other.a
            and self.num == other.num
            and self.io == other.io
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"GridVolume({self.dim.value}, a={self.a}, num={self.num}, io={self.io!r})"

    def describe(self) -> str:
        """Extent of the volume along each active direction, for diagnostics."""
        return " \t".join(
            f"{direction_name(d)} ={self.origin.in_direction(d):5g} - "
            f"{self.origin.in_direction(d) + self.num_direction(d) / self.a:5g} "
            f"({self.num_direction(d) / self.a:5g})"
            for d in ACTIVE_DIRECTIONS[self.dim]
        )

    # Extents and strides.

    def num_direction(self, d: Direction) -> int:
        return self.num[d % 3]

    def set_num_direction(self, d: Direction, value: int) -> None:
        self.num[d % 3] = value
        self._num_changed()

    @property
    def nx(self) -> int:
        return self.num[0]

    @property
    def ny(self) -> int:
        return self.num[1]

    @property
    def nz(self) -> int:
        return self.num[2]

    @property
    def nr(self) -> int:
        return self.num[0]

    @property
    def ntot(self) -> int:
        """Number of array entries per component, including non-owned points."""
        return self._ntot

    def stride(self, d: Direction) -> int:
        """Flattened-array offset between adjacent lattice points along ``d``."""
        return self._strides[d]

    def _num_changed(self) -> None:
        self._ntot = 1
        for d in ACTIVE_DIRECTIONS[self.dim]:
            self._ntot *= self.num_direction(d) + 1
        self._strides = [0] * 6
        for d in ACTIVE_DIRECTIONS[self.dim]:
            if d == Z:
                self._strides[d] = 1
            elif d == R:
                self._strides[d] = self.nz + 1
            elif d == X:
                self._strides[d] = (self.nz + 1) * (self.ny + 1)
            elif d == Y:
                self._strides[d] = self.nz + 1

    def nowned_min(self) -> int:
        """Number of cells, i.e. a lower bound on ``nowned`` for any component."""
        n = 1
        for d in ACTIVE_DIRECTIONS[self.dim]:
            n *= self.num_direction(d)
        return n

    def nowned(self, c: Component) -> int:
        """Number of lattice points of ``c`` owned by this volume."""
        n = 1
        pt = self.big_corner() - self.little_owned_corner(c)
        for d in ACTIVE_DIRECTIONS[self.dim]:
            n *= pt.in_direction(d) // 2 + 1
        return n

    def traversal_direction(self, n: int) -> Direction:
        """Direction of the ``n`` th nested loop over a flattened field array."""
        return TRAVERSAL_ORDER[self.dim][n]

    def traversal_num(self, n: int) -> int:
        """Number of cells along ``traversal_direction(n)``, ``1`` if inactive."""
        d = self.traversal_direction(n)
        return self.num_direction(d) if d in ACTIVE_DIRECTIONS[self.dim] else 1

    # Origin.

    def __getitem__(self, p: IVec) -> Vec:
        """Continuous location of the lattice point ``p``."""
        return p * (0.5 * self.inva)

    def round_vec(self, p: Vec) -> IVec:
        """Nearest lattice point to ``p``."""
        out = zero_ivec(self.dim)
        for d in ACTIVE_DIRECTIONS[self.dim]:
            out = out.with_direction(d, round_half_away(p.in_direction(d) * 2 * self.a))
        return out

    def set_origin(self, o: IVec | Vec) -> None:
        if isinstance(o, Vec):
            o = self.round_vec(o)
        self.io = o
        self.origin = self[self.io]

    def set_origin_direction(self, d: Direction, o: int) -> None:
        self.set_origin(self.io.with_direction(d, o))

    def shift_origin(self, d: Direction, s: int) -> None:
        self.set_origin(self.io.with_direction(d, self.io.in_direction(d) + s))

    # Yee lattice.

    def iyee_shift(self, c: Component) -> IVec:
        """Half-lattice offset of the sub-lattice on which ``c`` lives."""
        out = zero_ivec(self.dim)
        cd = components.component_direction(c)
        for d in ACTIVE_DIRECTIONS[self.dim]:
            if (
                components.is_material(c)
                or ((components.is_electric(c) or components.is_D(c)) and d == cd)
                or ((components.is_magnetic(c) or components.is_B(c)) and d != cd)
            ):
                out = out.with_direction(d, 1)
        return out

    def yee_shift(self, c: Component) -> Vec:
        return self[self.iyee_shift(c)]

    def yee2cent_offsets(self, c: Component) -> Tuple[int, int]:
        """Array offsets to average with ``c`` to get it on the centered grid.

        The centered value at array index ``i`` is the average of ``c`` over
        ``i``, ``i + offset1``, ``i + offset2`` and ``i + offset1 + offset2``
        (either offset may be ``0`` when fewer points are needed).

        """
        offset1 = offset2 = 0
        shift = self.iyee_shift(c)
        for d in ACTIVE_DIRECTIONS[self.dim]:
            if not shift.in_direction(d):
                if offset2:
                    raise GeometryInvariantViolation(
                        f"yee2cent_offsets: weird yee shift {shift!r} for component "
                        f"{components.component_name(c)}"
                    )
                if offset1:
                    offset2 = self.stride(d)
                else:
                    offset1 = self.stride(d)
        return offset1, offset2

    def cent2yee_offsets(self, c: Component) -> Tuple[int, int]:
        """Offsets to average the centered grid over to get ``c``."""
        offset1, offset2 = self.yee2cent_offsets(c)
        return -offset1, -offset2

    def eps_component(self) -> Component:
        """Component that shares its sub-lattice with the material grid."""
        return {
            Dimension.D1: components.Hy,
            Dimension.D2: components.Hz,
            Dimension.D3: components.Dielectric,
            Dimension.CYLINDRICAL: components.Hp,
        }[self.dim]

    def has_field(self, c: Component) -> bool:
        """``True`` iff ``c`` is stored in simulations of this dimensionality."""
        if components.is_material(c):
            return True
        if self.dim == Dimension.D1:
            return c in (components.Ex, components.Hy, components.Dx, components.By)
        if self.dim == Dimension.CYLINDRICAL:
            return c.direction in (R, P, Z)
        return c.direction in (X, Y, Z)

    def has_boundary(self, side: BoundarySide, d: Direction) -> bool:
        if self.dim == Dimension.CYLINDRICAL:
            return d == Z or (
                d == R and (side == BoundarySide.HIGH or self.origin.r > 0)
            )
        return d in ACTIVE_DIRECTIONS[self.dim]

    # Corners.

    def little_corner(self) -> IVec:
        return self.io

    def big_corner(self) -> IVec:
        return self.io + self._num_ivec() * 2

    def _num_ivec(self) -> IVec:
        return ivec(self.dim, *(self.num_direction(d) for d in COORDINATE_ORDER[self.dim]))

    def little_owned_corner0(self, c: Component) -> IVec:
        return self.little_corner() + one_ivec(self.dim) * 2 - self.iyee_shift(c)

    def little_owned_corner(self, c: Component) -> IVec:
        """First lattice point of ``c`` owned by this volume."""
        iloc = self.little_owned_corner0(c)
        if self.dim == Dimension.CYLINDRICAL and self.origin.r == 0.0 and iloc.r == 2:
            iloc = iloc.with_direction(R, 0)
        return iloc

    def corner(self, side: BoundarySide) -> Vec:
        if side == BoundarySide.LOW:
            return self.origin
        out = self.origin
        for d in ACTIVE_DIRECTIONS[self.dim]:
            out = out.with_direction(
                d, out.in_direction(d) + self.num_direction(d) * self.inva
            )
        return out

    def surroundings(self) -> Volume:
        return Volume(self[self.little_corner()], self[self.big_corner()])

    def interior(self) -> Volume:
        return Volume(
            self[self.little_corner()],
            self[self.big_corner() - one_ivec(self.dim) * 2],
        )

    def icenter(self) -> IVec:
        """Lattice point at the center of the volume, used as symmetry point.

        ``icenter() - io`` is even along every direction so that rotations
        about it map the Yee lattice onto itself.

        """
        n = self._num_ivec()
        if self.dim == Dimension.CYLINDRICAL:
            n = n.with_direction(R, 0)
        return self.io + n.round_up_to_even()

    def center(self) -> Vec:
        return self[self.icenter()]

    # Ownership.

    def owns(self, p: IVec) -> bool:
        """``True`` iff this volume is the one that timesteps the point ``p``."""
        o = p - self.io
        if (
            self.dim == Dimension.CYLINDRICAL
            and self.origin.r == 0.0
            and o.r == 0
            and 0 < o.z <= self.nz * 2
        ):
            return True
        return all(
            0 < o.in_direction(d) <= self.num_direction(d) * 2
            for d in ACTIVE_DIRECTIONS[self.dim]
        )

    def contains(self, p: IVec | Vec) -> bool:
        """``True`` iff this volume has any information about ``p``.

        More lenient than :py:meth:`owns`: overlapping volumes may all contain a
        point although only one of them owns it.

        """
        if isinstance(p, IVec):
            o = p - self.io
            return all(
                0 <= o.in_direction(d) < (self.num_direction(d) + 1) * 2
                for d in ACTIVE_DIRECTIONS[self.dim]
            )
        o = p - self.origin
        return all(
            -self.inva <= o.in_direction(d) <= self.num_direction(d) * self.inva + self.inva
            for d in ACTIVE_DIRECTIONS[self.dim]
        )

    def get_boundary_icorners(self, c: Component, ib: int) -> Tuple[bool, IVec, IVec]:
        """Corners of the ``ib`` th boundary patch of ``c``.

        The boundary of a volume is the set of points that it contains but does
        not own, decomposed into disjoint boxes: for each active direction, the
        low side patch (if any) and then the high side patch (if any).

        Returns:
            ``(found, start, end)``, where for an invalid ``ib`` ``found`` is
            ``False`` and ``start > end``.

        """
        shift = self.iyee_shift(c)
        cl = self.little_corner() + shift
        cb = self.big_corner() + shift
        clo = self.little_owned_corner(c)
        cbo = self.big_corner() - shift
        cs, ce = cl, cb
        jb = 0
        for d in ACTIVE_DIRECTIONS[self.dim]:
            if cl.in_direction(d) < clo.in_direction(d):
                if jb == ib:
                    return True, cs, ce.with_direction(d, cs.in_direction(d))
                cs = cs.with_direction(d, clo.in_direction(d))
                jb += 1
            if cb.in_direction(d) > cbo.in_direction(d):
                if jb == ib:
                    return True, cs.with_direction(d, ce.in_direction(d)), ce
                ce = ce.with_direction(d, cbo.in_direction(d))
                jb += 1
        return False, one_ivec(self.dim), -one_ivec(self.dim)

    def boundary_icorners(self, c: Component) -> Iterator[Tuple[IVec, IVec]]:
        """All boundary patches of ``c``, in ``get_boundary_icorners`` order."""
        ib = 0
        while True:
            found, cs, ce = self.get_boundary_icorners(c, ib)
            if not found:
                return
            yield cs, ce
            ib += 1

    # Indexing.

    def index(self, c: Component, p: IVec) -> int:
        """Offset of the lattice point ``p`` in the flattened array of ``c``."""
        offset = p - self.io - self.iyee_shift(c)
        return sum(
            trunc_div(offset.in_direction(d), 2) * self.stride(d)
            for d in ACTIVE_DIRECTIONS[self.dim]
        )

    def iloc(self, c: Component, ind: int) -> IVec:
        """Lattice point at offset ``ind`` of the flattened array of ``c``."""
        out = zero_ivec(self.dim)
        for d in ACTIVE_DIRECTIONS[self.dim]:
            n = self.num_direction(d) + 1
            ind_over_stride = trunc_div(ind, self.stride(d))
            while ind_over_stride < 0:
                ind_over_stride += n
            out = out.with_direction(d, 2 * (ind_over_stride % n))
        return out + self.iyee_shift(c) + self.io

    def loc(self, c: Component, ind: int) -> Vec:
        return self[self.iloc(c, ind)]

    def dV(self, here: IVec, diameter: float = 1.0) -> Volume:
        """Volume element of width ``diameter`` cells around ``here``."""
        hinva = 0.5 * self.inva * diameter
        h = self[here]
        lo, hi = h, h
        for d in ACTIVE_DIRECTIONS[self.dim]:
            lo = lo.with_direction(d, h.in_direction(d) - hinva)
            hi = hi.with_direction(d, h.in_direction(d) + hinva)
        if self.dim == Dimension.CYLINDRICAL and here.r == 0:
            lo = lo.with_direction(R, 0.0)
        return Volume(lo, hi)

    def dV_index(self, c: Component, ind: int) -> Volume:
        """Volume element of array entry ``ind`` of ``c``, empty if not owned."""
        here = self.iloc(c, ind)
        if not self.owns(here):
            return empty_volume(self.dim)
        return self.dV(here)

    # Boundaries.

    def xmin(self) -> float:
        return self.origin.x + 0.25 * self.inva

    def xmax(self) -> float:
        return self.origin.x + self.nx * self.inva + 0.25 * self.inva

    def ymin(self) -> float:
        return self.origin.y + 0.25 * self.inva

    def ymax(self) -> float:
        return self.origin.y + self.ny * self.inva + 0.25 * self.inva

    def zmin(self) -> float:
        return self.origin.z + 0.25 * self.inva

    def zmax(self) -> float:
        return self.origin.z + self.nz * self.inva + 0.25 * self.inva

    def rmin(self) -> float:
        self._require_cylindrical("rmin")
        if self.origin.r == 0.0:
            return 0.0
        return self.origin.r + 0.25 * self.inva

    def rmax(self) -> float:
        self._require_cylindrical("rmax")
        return self.origin.r + self.nr * self.inva + 0.25 * self.inva

    def _require_cylindrical(self, operation: str) -> None:
        if self.dim != Dimension.CYLINDRICAL:
            raise ConfigurationError(f"No {operation} in {self.dim.value}.")

    def boundary_location(self, side: BoundarySide, d: Direction) -> float:
        """Location of the metallic wall on ``side`` of the volume along ``d``."""
        if d in (P, Direction.NO_DIRECTION):
            raise ConfigurationError(f"{direction_name(d)} has no boundary.")
        ind = self.ntot - 1 if side == BoundarySide.HIGH else 0
        if d in (X, Y):
            c = components.Ez
        elif d == R or self.dim == Dimension.CYLINDRICAL:
            c = components.Ep
        else:
            c = components.Ex
        return self.loc(c, ind).in_direction(d)

    def loc_at_resolution(self, index: int, res: float) -> Vec:
        """Center of cell ``index`` of a regular grid of resolution ``res``."""
        where = self.origin
        for d in (X, Y, Z, R):
            if self.has_boundary(BoundarySide.HIGH, d):
                dist = self.boundary_location(
                    BoundarySide.HIGH, d
                ) - self.boundary_location(BoundarySide.LOW, d)
                nhere = max(1, int(math.floor(dist * res + 0.5)))
                where = where.with_direction(
                    d, self.origin.in_direction(d) + ((index % nhere) + 0.5) / res
                )
                index //= nhere
        return where

    def ntot_at_resolution(self, res: float) -> int:
        mytot = 1
        for d in (X, Y, Z, R):
            if self.has_boundary(BoundarySide.HIGH, d):
                dist = self.boundary_location(
                    BoundarySide.HIGH, d
                ) - self.boundary_location(BoundarySide.LOW, d)
                mytot *= max(1, int(dist * res + 0.5))
        return mytot

    # Unit steps.

    def dr(self) -> Vec:
        self._require_cylindrical("dr")
        return veccyl(self.inva, 0.0)

    def dx(self) -> Vec:
        if self.dim == Dimension.D3:
            return vec(self.dim, self.inva, 0, 0)
        if self.dim == Dimension.D2:
            return vec(self.dim, self.inva, 0)
        raise ConfigurationError(f"No dx in {self.dim.value}.")

    def dy(self) -> Vec:
        if self.dim == Dimension.D3:
            return vec(self.dim, 0, self.inva, 0)
        if self.dim == Dimension.D2:
            return vec(self.dim, 0, self.inva)
        raise ConfigurationError(f"No dy in {self.dim.value}.")

    def dz(self) -> Vec:
        if self.dim == Dimension.CYLINDRICAL:
            return veccyl(0.0, self.inva)
        if self.dim == Dimension.D3:
            return vec(self.dim, 0, 0, self.inva)
        if self.dim == Dimension.D1:
            return vec(self.dim, self.inva)
        raise ConfigurationError(f"No dz in {self.dim.value}.")

    # Interpolation.

    def interpolate(self, c: Component, pc: Vec) -> Tuple[List[IVec], np.ndarray]:
        """Lattice points of ``c`` surrounding ``pc`` and multilinear weights.

        Weights sum to ``1``, weights below ``1e-13`` are dropped and the
        remaining ``(point, weight)`` pairs are compacted to the front.

        Returns:
            ``(locs, weights)`` with up to ``2 ** ndim`` entries each.

        """
        shift = self.iyee_shift(c)
        p = (pc - self.yee_shift(c)) * self.a
        middle = zero_ivec(self.dim)
        for d in ACTIVE_DIRECTIONS[self.dim]:
            middle = middle.with_direction(
                d, int(math.floor(p.in_direction(d))) * 2 + 1
            )
        middle = middle + shift
        midv = self[middle]
        dv = (pc - midv) * (2 * self.a)

        locs = [self.round_vec(midv)]
        weights = [1.0]
        for d in ACTIVE_DIRECTIONS[self.dim]:
            lo = middle.in_direction(d) - 1
            hi = middle.in_direction(d) + 1
            t = dv.in_direction(d)
            locs = [loc.with_direction(d, lo) for loc in locs] + [
                loc.with_direction(d, hi) for loc in locs
            ]
            weights = [w * 0.5 * (1.0 - t) for w in weights] + [
                w * 0.5 * (1.0 + t) for w in weights
            ]

        # Distribute the round-off residual evenly.
        residual = (1.0 - sum(weights)) / len(weights)
        weights = [w + residual for w in weights]
        for i, w in enumerate(weights):
            if w < 0.0:
                if -w >= NEGATIVE_WEIGHT_LIMIT:
                    raise GeometryInvariantViolation(
                        f"interpolate: large negative interpolation weight[{i}] = "
                        f"{w:e} for {components.component_name(c)} at {pc!r}"
                    )
                weights[i] = 0.0
            elif w < SMALL_WEIGHT:
                weights[i] = 0.0
        locs, weights = _compact(locs, weights)

        # Points exactly between lattice points get exactly equal weights.
        if weights and all(w == weights[0] for w in weights):
            weights = [1.0 / len(weights)] * len(weights)
        return locs, np.asarray(weights, dtype=float)

    def interpolate_indices(self, c: Component, p: Vec) -> Tuple[np.ndarray, np.ndarray]:
        """Owned array indices of ``c`` and weights for interpolating at ``p``.

        Returns:
            ``(indices, weights)`` restricted to points owned by this volume.

        """
        locs, weights = self.interpolate(c, p)
        weights = [w if self.owns(loc) else 0.0 for loc, w in zip(locs, weights)]
        locs, weights = _compact(locs, weights)
        indices = [self.index(c, loc) for loc in locs]
        if weights and not self.contains(p):
            logger.error(
                "Interpolated %r to lattice point %r (%r) in volume %s",
                p,
                locs[0],
                self[locs[0]],
                self.describe(),
            )
            raise GeometryInvariantViolation(
                f"interpolate: {components.component_name(c)} at {p!r} resolved to "
                f"owned point {locs[0]!r} of a volume that does not contain it."
            )
        weights = [w if 0 <= i < self.ntot else 0.0 for i, w in zip(indices, weights)]
        indices, weights = _compact(indices, weights)
        return np.asarray(indices, dtype=int), np.asarray(weights, dtype=float)

    # Intersection and splitting primitives.

    def intersection(self, other: GridVolume) -> GridVolume | None:
        """Overlap of ``self`` and ``other``, ``None`` if it holds no cells."""
        nums = [0, 0, 0]
        new_io = zero_ivec(self.dim)
        for d in ACTIVE_DIRECTIONS[self.dim]:
            minval = max(self.io.in_direction(d), other.io.in_direction(d))
            maxval = min(
                self.big_corner().in_direction(d), other.big_corner().in_direction(d)
            )
            if minval >= maxval:
                return None
            nums[d % 3] = (maxval - minval) // 2
            new_io = new_io.with_direction(d, minval)
        out = GridVolume(self.dim, self.a, *nums)
        out.set_origin(new_io)
        return out

    def decompose(self, other: GridVolume) -> Tuple[GridVolume, List[GridVolume]] | None:
        """Split ``self`` into its overlap with ``other`` and disjoint remainders.

        Returns:
            ``(intersection, others)`` where ``others`` are the slabs of
            ``self`` outside ``other``, or ``None`` if the two do not overlap.

        """
        intersection = self.intersection(other)
        if intersection is None:
            return None
        others = []
        rest = self.copy()
        for d in ACTIVE_DIRECTIONS[self.dim]:
            if rest.little_corner().in_direction(d) < other.little_corner().in_direction(d):
                thick = (
                    other.little_corner().in_direction(d)
                    - rest.little_corner().in_direction(d)
                ) // 2
                slab = rest.copy()
                slab.set_num_direction(d, thick)
                others.append(slab)
                rest.shift_origin(d, thick * 2)
                rest.set_num_direction(d, rest.num_direction(d) - thick)
                if rest.little_corner().in_direction(d) < other.little_corner().in_direction(d):
                    raise GeometryInvariantViolation(
                        f"decompose: little corners {self.little_corner()!r} and "
                        f"{other.little_corner()!r} differ by an odd integer."
                    )
            if rest.big_corner().in_direction(d) > other.big_corner().in_direction(d):
                thick = (
                    rest.big_corner().in_direction(d) - other.big_corner().in_direction(d)
                ) // 2
                slab = rest.copy()
                slab.set_num_direction(d, thick)
                slab.shift_origin(d, (rest.num_direction(d) - thick) * 2)
                others.append(slab)
                rest.set_num_direction(d, rest.num_direction(d) - thick)
                if rest.big_corner().in_direction(d) > other.big_corner().in_direction(d):
                    raise GeometryInvariantViolation(
                        f"decompose: big corners {self.big_corner()!r} and "
                        f"{other.big_corner()!r} differ by an odd integer."
                    )

        initial_points = self.nowned_min()
        final_points = intersection.nowned_min() + sum(o.nowned_min() for o in others)
        if initial_points != final_points:
            raise GeometryInvariantViolation(
                f"decompose: initial_points != final_points, "
                f"{initial_points}, {final_points}"
            )
        return intersection, others

    def longest_axis(self) -> Tuple[Direction | None, int]:
        """Direction with the most cells and its cell count, first one on ties."""
        bestd, bestlen = None, 0
        for i in range(3):
            if self.num[i] > bestlen:
                bestd, bestlen = Direction(i), self.num[i]
        if self.dim == Dimension.CYLINDRICAL and bestd == X:
            bestd = R
        return bestd, bestlen

    def split_at_fraction(self, want_high: bool, numer: int) -> GridVolume:
        """Low ``numer`` cells, or the high remainder, along the longest axis."""
        d, bestlen = self.longest_axis()
        if bestlen <= 1:
            raise GeometryInvariantViolation(
                f"split_at_fraction: no splittable axis in num = {self.num}"
            )
        if not 0 < numer < bestlen:
            raise GeometryInvariantViolation(
                f"split_at_fraction: cannot split {bestlen} cells at {numer}"
            )
        out = self.copy()
        if want_high:
            out.shift_origin(d, numer * 2)
            out.num[d % 3] -= numer
        else:
            out.num[d % 3] = numer
        out._num_changed()
        return out

    def halve(self, d: Direction) -> GridVolume:
        """Low half of the volume along ``d``, ending at ``icenter()``."""
        out = self.copy()
        out.set_num_direction(
            d, (self.icenter().in_direction(d) - self.io.in_direction(d)) // 2
        )
        return out

    def pad(self, d: Direction) -> GridVolume:
        out = self.copy()
        out.pad_self(d)
        return out

    def pad_self(self, d: Direction) -> None:
        """Grow the volume by one cell on both sides along ``d``."""
        self.num[d % 3] += 2
        self._num_changed()
        self.shift_origin(d, -2)


def _compact(values: Sequence, weights: Sequence[float]) -> Tuple[list, list]:
    """Move entries with negligible weight to the back and drop them."""
    values, weights = list(values), list(weights)
    i, remaining = 0, len(weights)
    while remaining:
        last = i + remaining - 1
        if abs(weights[i]) < COMPACTION_THRESHOLD:
            values[i], weights[i] = values[last], weights[last]
            weights[last] = 0.0
        else:
            i += 1
        remaining -= 1
    return values[:i], weights[:i]


def _cells(size: float, a: float) -> int:
    return 1 if size == 0 else int(size * a + 0.5)


def vol1d(zsize: float, a: float) -> GridVolume:
    return GridVolume(Dimension.D1, a, 0, 0, int(zsize * a + 0.5))


def vol2d(xsize: float, ysize: float, a: float) -> GridVolume:
    return GridVolume(Dimension.D2, a, _cells(xsize, a), _cells(ysize, a), 0)


def vol3d(xsize: float, ysize: float, zsize: float, a: float) -> GridVolume:
    return GridVolume(
        Dimension.D3, a, _cells(xsize, a), _cells(ysize, a), _cells(zsize, a)
    )


def volcyl(rsize: float, zsize: float, a: float) -> GridVolume:
    return GridVolume(Dimension.CYLINDRICAL, a, int(rsize * a + 0.5), 0, _cells(zsize, a))


def lattice_coordinates(gv: GridVolume, c: Component) -> jax.Array:
    """Lattice points of every array entry of ``c``.

    Returns:
        ``(ntot, ndim)`` array of half-lattice coordinates in flattened array
        order, with columns ordered as the active directions of ``gv.dim``.

    """
    ind = jnp.arange(gv.ntot)
    shift = gv.iyee_shift(c)
    return jnp.stack(
        [
            2 * ((ind // gv.stride(d)) % (gv.num_direction(d) + 1))
            + shift.in_direction(d)
            + gv.io.in_direction(d)
            for d in ACTIVE_DIRECTIONS[gv.dim]
        ],
        axis=-1,
    )


def ownership_mask(gv: GridVolume, c: Component) -> jax.Array:
    """``(ntot,)`` boolean array, ``True`` where ``gv`` owns the entry of ``c``."""
    dirs = ACTIVE_DIRECTIONS[gv.dim]
    o = lattice_coordinates(gv, c) - jnp.array([gv.io.in_direction(d) for d in dirs])
    n2 = jnp.array([2 * gv.num_direction(d) for d in dirs])
    owned = jnp.all((o > 0) & (o <= n2), axis=-1)
    if gv.dim == Dimension.CYLINDRICAL and gv.origin.r == 0.0:
        o_z, o_r = o[:, dirs.index(Z)], o[:, dirs.index(R)]
        owned = owned | ((o_r == 0) & (o_z > 0) & (o_z <= 2 * gv.nz))
    return owned
