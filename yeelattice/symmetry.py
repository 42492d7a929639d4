"""Point-group symmetries of a simulation cell.

A :py:class:`Symmetry` is a chain of generators, e.g. two mirror planes, whose
group elements are numbered ``0 <= n < multiplicity()``. Element ``n`` applies
the first generator ``n % g`` times and the rest of the chain ``n // g`` times,
where ``g`` is the order of the first generator.

"""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

import numpy as np

from . import components
from .defs import ACTIVE_DIRECTIONS, ALL_DIRECTIONS
from .errors import ConfigurationError
from .grids import GridVolume
from .typing import (
    AnyComponent,
    Component,
    DerivedComponent,
    Dimension,
    Direction,
    SignedDirection,
    SymmetryGenerator,
    VolumeEntry,
)
from .utils import check_active, direction_name
from .vectors import IVec, Vec, zero_ivec, zero_vec
from .volumes import Volume

logger = logging.getLogger(__name__)

X, Y, Z, R, P = Direction.X, Direction.Y, Direction.Z, Direction.R, Direction.P


def _identity_table() -> List[SignedDirection]:
    return [SignedDirection(d) for d in ALL_DIRECTIONS]


class Symmetry:
    """Group of rotations and reflections about a fixed point.

    Build instances with :py:func:`identity`, :py:func:`mirror`,
    :py:func:`rotate2`, :py:func:`rotate4` and
    :py:func:`r_to_minus_r_symmetry`, and combine them with ``+``.

    """

    def __init__(self, generators: Sequence[SymmetryGenerator] = ()):
        self.generators: List[SymmetryGenerator] = list(generators)

    def multiplicity(self) -> int:
        """Number of elements of the group, ``1`` for the identity."""
        g = 1
        for gen in self.generators:
            g *= gen.order
        return g

    def append(self, other: Symmetry) -> None:
        """Extend the chain with a copy of the generators of ``other``."""
        if other.multiplicity() == 1:
            return
        if self.multiplicity() == 1:
            self.generators = []
        self.generators.extend(other.generators)

    def __add__(self, other: Symmetry) -> Symmetry:
        if not isinstance(other, Symmetry):
            return NotImplemented
        out = Symmetry(self.generators)
        out.append(other)
        return out

    def __mul__(self, phase: complex) -> Symmetry:
        """Copy of ``self`` whose first generator picks up an extra ``phase``."""
        if not self.generators:
            return Symmetry()
        head = self.generators[0]
        return Symmetry(
            [head._replace(phase=head.phase * phase)] + self.generators[1:]
        )

    __rmul__ = __mul__

    def __eq__(self, other) -> bool:
        if not isinstance(other, Symmetry):
            return NotImplemented
        g = self.multiplicity()
        if g != other.multiplicity():
            return False
        return all(
            self.transform(d, sn) == other.transform(d, sn)
            for sn in range(1, g)
            for d in ALL_DIRECTIONS
        )

    __hash__ = None

    def __repr__(self) -> str:
        gens = ", ".join(
            f"{gen.order}-fold phase={gen.phase}" for gen in self.generators
        )
        return f"Symmetry([{gens}])"

    # Transforms.

    def transform(self, obj, n: int):
        """Image of ``obj`` under group element ``n``.

        Args:
            obj: A ``Direction`` (returns a :py:class:`SignedDirection`), an
              ``IVec`` or ``Vec`` (mapped about the fixed point), a ``Volume``
              (mapped corner by corner) or a component (returns the component
              of the same kind along the transformed direction).
            n: Group element. Any integer is accepted, and elements are
              taken modulo ``multiplicity()``.

        """
        if isinstance(obj, Direction):
            return self._transform_direction(obj, n)
        if isinstance(obj, IVec):
            return self._transform_point(obj, n, self._ipoint(), shifted=True)
        if isinstance(obj, Vec):
            return self._transform_point(obj, n, self._point(), shifted=True)
        if isinstance(obj, Volume):
            return Volume(
                self.transform(obj.min_corner, n), self.transform(obj.max_corner, n)
            )
        if isinstance(obj, (Component, DerivedComponent)):
            return components.direction_component(
                obj, self._transform_direction(obj.direction, n).direction
            )
        raise ConfigurationError(f"Cannot transform a {type(obj).__name__}.")

    def transform_unshifted(self, p: IVec, n: int) -> IVec:
        """Image of the offset ``p``, i.e. mapped about the origin."""
        return self._transform_point(p, n, zero_ivec(p.dim), shifted=False)

    def _point(self) -> Vec | None:
        return self.generators[0].point if self.generators else None

    def _ipoint(self) -> IVec | None:
        return self.generators[0].ipoint if self.generators else None

    def _transform_point(self, p, n: int, point, shifted: bool):
        if n % self.multiplicity() == 0:
            return p
        out = p
        for d in ACTIVE_DIRECTIONS[p.dim]:
            s = self._transform_direction(d, n)
            delta = p.in_direction(d) - (point.in_direction(d) if shifted else 0)
            if s.flipped:
                delta = -delta
            base = point.in_direction(s.direction) if shifted else 0
            out = out.with_direction(s.direction, base + delta)
        return out

    def _transform_direction(self, d: Direction, n: int) -> SignedDirection:
        if d == Direction.NO_DIRECTION:
            return SignedDirection(d)
        return _chain_transform(self.generators, d, n % self.multiplicity())

    # Phases.

    def phase_shift(self, c: AnyComponent, n: int) -> complex:
        """Factor relating ``c`` at a point to its image under element ``n``.

        Pseudovector fields (``H`` and ``B``) pick up an extra sign whenever the
        transform changes the handedness of the coordinate system.

        """
        if components.is_derived(c):
            if components.is_poynting(c):
                s = self._transform_direction(c.direction, n)
                ph = np.conj(s.phase) * s.phase
                return -ph if s.flipped else ph
            return 1.0
        if components.is_material(c):
            return 1.0

        s = self._transform_direction(c.direction, n)
        flip = s.flipped
        if components.is_magnetic(c) or components.is_B(c):
            have_one = have_two = False
            for d in ALL_DIRECTIONS:
                t = self._transform_direction(d, n)
                if t.flipped:
                    flip = not flip
                shift = (t.direction - d + 6) % 3
                have_one = have_one or shift == 1
                have_two = have_two or shift == 2
            if have_one and have_two:
                flip = not flip
        return -s.phase if flip else s.phase

    def is_primitive(self, p: IVec) -> bool:
        """``True`` iff ``p`` is the canonical representative of its orbit.

        Only meaningful for points on the Yee lattice.

        """
        for i in range(1, self.multiplicity()):
            pp = self.transform(p, i)
            if p.dim == Dimension.D2:
                if pp.x + pp.y < p.x + p.y:
                    return False
                if pp.x + pp.y == p.x + p.y and p.y > p.x and pp.y <= pp.x:
                    return False
            elif p.dim == Dimension.D3:
                keys_p = (p.x + p.y + p.z, p.x + p.y - p.z, p.x - p.y - p.z)
                keys_pp = (pp.x + pp.y + pp.z, pp.x + pp.y - pp.z, pp.x - pp.y - pp.z)
                if keys_pp < keys_p:
                    return False
            elif pp.z < p.z:
                return False
        return True

    # Reduction.

    def reduce(self, entries: Sequence[VolumeEntry]) -> List[VolumeEntry]:
        """Smallest list of entries equivalent to ``entries`` under the group.

        Entries that are images of one another are folded into the first one,
        with their weights scaled by the matching :py:meth:`phase_shift`. An
        entry that is its own image is cut in half along the first direction
        flipped by that element, keeping the high half, and its weight is
        accumulated accordingly. Entries whose weight ends up zero are dropped.

        Args:
            entries: Weighted ``(volume, component)`` pairs.

        Returns:
            Reduced entries, in order of first appearance.

        """
        g = self.multiplicity()
        folded: List[VolumeEntry] = []
        for entry in entries:
            for sn in range(g):
                volume = self.transform(entry.volume, sn).round_float()
                c = self.transform(entry.component, sn)
                i = _find(folded, volume, c)
                if i is not None:
                    folded[i] = folded[i]._replace(
                        weight=folded[i].weight
                        + entry.weight * self.phase_shift(entry.component, sn)
                    )
                    break
            else:
                if entry.weight != 0:
                    folded.append(entry)

        out = []
        for entry in folded:
            volume, c, weight = entry
            halve = set()
            for sn in range(1, g):
                if (
                    self.transform(c, sn) == c
                    and self.transform(volume, sn).round_float() == volume.round_float()
                ):
                    for d in ACTIVE_DIRECTIONS[volume.dim]:
                        if self._transform_direction(d, sn).flipped:
                            halve.add(d)
                            break
                    weight += entry.weight * self.phase_shift(c, sn)
            for d in ACTIVE_DIRECTIONS[volume.dim]:
                if d in halve:
                    volume = volume.with_direction_min(
                        d, volume.in_direction_min(d) + 0.5 * volume.in_direction(d)
                    )
            if weight != 0:
                out.append(VolumeEntry(volume, c, weight))
        logger.debug("reduced %d entries to %d under %r", len(entries), len(out), self)
        return out


def _chain_transform(
    generators: Sequence[SymmetryGenerator], d: Direction, n: int
) -> SignedDirection:
    """Image of ``d`` under element ``0 <= n < multiplicity`` of the chain."""
    if n == 0 or not generators:
        return SignedDirection(d)
    head, rest = generators[0], generators[1:]
    nme, nrest = n % head.order, n // head.order
    flipped, phase = False, 1.0
    for _ in range(nme):
        step = head.table[d]
        d = step.direction
        flipped ^= step.flipped
        phase *= head.phase
    if rest and nrest:
        tail = _chain_transform(rest, d, nrest)
        d = tail.direction
        flipped ^= tail.flipped
        phase *= tail.phase
    return SignedDirection(d, flipped, phase)


def _find(entries: Sequence[VolumeEntry], volume: Volume, c: AnyComponent) -> int | None:
    for i, entry in enumerate(entries):
        if entry.component == c and entry.volume.round_float() == volume:
            return i
    return None


def _generator(
    order: int,
    table: List[SignedDirection],
    gv: GridVolume | None,
    phase: complex = 1.0,
) -> Symmetry:
    if gv is None:
        point, ipoint = zero_vec(Dimension.CYLINDRICAL), zero_ivec(Dimension.CYLINDRICAL)
    else:
        point, ipoint = gv.center(), gv.icenter()
    return Symmetry([SymmetryGenerator(order, tuple(table), phase, point, ipoint)])


def identity() -> Symmetry:
    """The trivial group; neutral for ``+``."""
    return Symmetry()


def mirror(axis: Direction, gv: GridVolume) -> Symmetry:
    """Reflection through the plane normal to ``axis`` at the center of ``gv``."""
    check_active("mirror", gv.dim, axis)
    table = _identity_table()
    table[axis] = SignedDirection(axis, True)
    return _generator(2, table, gv)


def _check_rotation_axis(operation: str, axis: Direction) -> Tuple[Direction, Direction]:
    if axis > Z:
        raise ConfigurationError(
            f"Can only {operation} in 2D or 3D, not about {direction_name(axis)}."
        )
    return Direction((axis + 1) % 3), Direction((axis + 2) % 3)


def rotate2(axis: Direction, gv: GridVolume) -> Symmetry:
    """Rotation by 180 degrees about ``axis`` through the center of ``gv``."""
    a, b = _check_rotation_axis("rotate2", axis)
    table = _identity_table()
    table[a] = SignedDirection(a, True)
    table[b] = SignedDirection(b, True)
    return _generator(2, table, gv)


def rotate4(axis: Direction, gv: GridVolume) -> Symmetry:
    """Rotation by 90 degrees about ``axis`` through the center of ``gv``."""
    a, b = _check_rotation_axis("rotate4", axis)
    check_active("rotate4", gv.dim, a)
    check_active("rotate4", gv.dim, b)
    table = _identity_table()
    table[a] = SignedDirection(b, True)
    table[b] = SignedDirection(a)
    return _generator(4, table, gv)


def r_to_minus_r_symmetry(m: float) -> Symmetry:
    """Cylindrical ``r -> -r`` symmetry of fields with angular dependence ``exp(i m phi)``.

    The phase is exactly ``+1`` or ``-1`` for integer ``m`` and
    ``exp(i pi m)`` otherwise.

    """
    table = _identity_table()
    table[R] = SignedDirection(R, True)
    table[P] = SignedDirection(P, True)
    if m == int(m):
        phase = -1.0 if int(m) % 2 else 1.0
    else:
        phase = complex(np.exp(1j * np.pi * m))
    return _generator(2, table, None, phase)
