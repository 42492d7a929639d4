"""Basic types."""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, NamedTuple, Tuple, Union

if TYPE_CHECKING:
    from .grids import GridVolume
    from .vectors import IVec, Vec
    from .volumes import Volume

# NOTE: Please avoid including logic here! Included types should be trivially simple.


class Dimension(enum.Enum):
    """Dimensionality of a simulation, fixes which directions are active."""

    D1 = "1D"
    D2 = "2D"
    D3 = "3D"
    CYLINDRICAL = "Cylindrical"


class Direction(enum.IntEnum):
    """Spatial directions.

    The value of a direction modulo ``3`` is the slot of its extent in
    :py:attr:`GridVolume.num`, so that ``R`` shares a slot with ``X`` and ``P``
    with ``Y``.

    """

    X = 0
    Y = 1
    Z = 2
    R = 3
    P = 4
    NO_DIRECTION = 5


class BoundarySide(enum.Enum):
    HIGH = "high"
    LOW = "low"


class FieldType(enum.Enum):
    """Kind of stored field quantity."""

    E = "e"
    H = "h"
    D = "d"
    B = "b"
    DIELECTRIC = "eps"
    PERMEABILITY = "mu"


class DerivedKind(enum.Enum):
    """Kind of field quantity computed on demand from stored components."""

    POYNTING = "s"
    ENERGY_DENSITY = "energy"
    D_ENERGY_DENSITY = "denergy"
    H_ENERGY_DENSITY = "henergy"


class Component(NamedTuple):
    """Stored field quantity living on one sub-lattice of the Yee lattice.

    Args:
        field_type: Kind of the field.
        direction: Polarization of the field, ``NO_DIRECTION`` for the scalar
          material tags.

    """

    field_type: FieldType
    direction: Direction


class DerivedComponent(NamedTuple):
    """Field quantity computed from stored components and never stored.

    Args:
        kind: Kind of the derived quantity.
        direction: Flux direction for Poynting components, ``NO_DIRECTION``
          for energy densities.

    """

    kind: DerivedKind
    direction: Direction


# Either a stored or a derived component.
AnyComponent = Union[Component, DerivedComponent]


class SignedDirection(NamedTuple):
    """Image of a direction under a symmetry operation.

    Args:
        direction: Destination direction.
        flipped: ``True`` iff the destination axis is reversed.
        phase: Complex phase accumulated by the transform.

    """

    direction: Direction
    flipped: bool = False
    phase: complex = 1.0


class VolumeEntry(NamedTuple):
    """Weighted ``(volume, component)`` pair, e.g. a source or flux region.

    Args:
        volume: Region in continuous coordinates.
        component: Component that lives in ``volume``.
        weight: Complex weight of the region.

    """

    volume: Volume
    component: AnyComponent
    weight: complex


class EffortRegion(NamedTuple):
    """Sub-region of a simulation with a relative computational cost per point.

    Args:
        grid_volume: Lattice-aligned region.
        effort: Cost of a single lattice point within ``grid_volume``.

    """

    grid_volume: GridVolume
    effort: float


class SymmetryGenerator(NamedTuple):
    """Single link in the chain of generators of a point group.

    Args:
        order: Number of applications after which the generator is the
          identity.
        table: Image of every direction under one application, indexed by
          ``Direction``.
        phase: Phase picked up by the fields under one application.
        point: Fixed point of the generator.
        ipoint: Fixed point in half-lattice coordinates.

    """

    order: int
    table: Tuple[SignedDirection, ...]
    phase: complex
    point: Vec
    ipoint: IVec
