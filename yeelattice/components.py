"""Field component tags and their direction bookkeeping."""

from __future__ import annotations

from .errors import ConfigurationError
from .typing import (
    AnyComponent,
    Component,
    DerivedComponent,
    DerivedKind,
    Direction,
    FieldType,
)
from .utils import direction_name

X, Y, Z, R, P = Direction.X, Direction.Y, Direction.Z, Direction.R, Direction.P
NO_DIRECTION = Direction.NO_DIRECTION

Ex = Component(FieldType.E, X)
Ey = Component(FieldType.E, Y)
Er = Component(FieldType.E, R)
Ep = Component(FieldType.E, P)
Ez = Component(FieldType.E, Z)
Hx = Component(FieldType.H, X)
Hy = Component(FieldType.H, Y)
Hr = Component(FieldType.H, R)
Hp = Component(FieldType.H, P)
Hz = Component(FieldType.H, Z)
Dx = Component(FieldType.D, X)
Dy = Component(FieldType.D, Y)
Dr = Component(FieldType.D, R)
Dp = Component(FieldType.D, P)
Dz = Component(FieldType.D, Z)
Bx = Component(FieldType.B, X)
By = Component(FieldType.B, Y)
Br = Component(FieldType.B, R)
Bp = Component(FieldType.B, P)
Bz = Component(FieldType.B, Z)
Dielectric = Component(FieldType.DIELECTRIC, NO_DIRECTION)
Permeability = Component(FieldType.PERMEABILITY, NO_DIRECTION)

Sx = DerivedComponent(DerivedKind.POYNTING, X)
Sy = DerivedComponent(DerivedKind.POYNTING, Y)
Sr = DerivedComponent(DerivedKind.POYNTING, R)
Sp = DerivedComponent(DerivedKind.POYNTING, P)
Sz = DerivedComponent(DerivedKind.POYNTING, Z)
EnergyDensity = DerivedComponent(DerivedKind.ENERGY_DENSITY, NO_DIRECTION)
D_EnergyDensity = DerivedComponent(DerivedKind.D_ENERGY_DENSITY, NO_DIRECTION)
H_EnergyDensity = DerivedComponent(DerivedKind.H_ENERGY_DENSITY, NO_DIRECTION)

ELECTRIC_COMPONENTS = (Ex, Ey, Er, Ep, Ez)
MAGNETIC_COMPONENTS = (Hx, Hy, Hr, Hp, Hz)

_SCALAR_TYPES = (FieldType.DIELECTRIC, FieldType.PERMEABILITY)


def is_derived(c: AnyComponent) -> bool:
    return isinstance(c, DerivedComponent)


def is_poynting(c: AnyComponent) -> bool:
    return is_derived(c) and c.kind == DerivedKind.POYNTING


def is_electric(c: AnyComponent) -> bool:
    return not is_derived(c) and c.field_type == FieldType.E


def is_magnetic(c: AnyComponent) -> bool:
    return not is_derived(c) and c.field_type == FieldType.H


def is_D(c: AnyComponent) -> bool:
    return not is_derived(c) and c.field_type == FieldType.D


def is_B(c: AnyComponent) -> bool:
    return not is_derived(c) and c.field_type == FieldType.B


def is_material(c: AnyComponent) -> bool:
    """``True`` for the scalar ``Dielectric`` and ``Permeability`` tags."""
    return not is_derived(c) and c.field_type in _SCALAR_TYPES


def component_direction(c: AnyComponent) -> Direction:
    return c.direction


def direction_component(c: AnyComponent, d: Direction) -> AnyComponent:
    """Component of the same kind as ``c`` polarized along ``d``."""
    directionless = is_material(c) or (
        is_derived(c) and c.kind != DerivedKind.POYNTING
    )
    if directionless != (d == NO_DIRECTION):
        raise ConfigurationError(
            f"No component of the same kind as {component_name(c)} exists along "
            f"{direction_name(d)}."
        )
    return c._replace(direction=d)


def component_name(c: AnyComponent) -> str:
    """Lowercase name of ``c``, e.g. ``"ex"``, ``"eps"`` or ``"energy"``."""
    if is_derived(c):
        if c.kind == DerivedKind.POYNTING:
            return c.kind.value + _direction_suffix(c.direction)
        return c.kind.value
    if is_material(c):
        return c.field_type.value
    return c.field_type.value + _direction_suffix(c.direction)


def _direction_suffix(d: Direction) -> str:
    return "p" if d == P else direction_name(d)
