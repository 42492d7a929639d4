"""Computes derived field quantities from stored components."""

from __future__ import annotations

from typing import Callable, List, Mapping, Sequence, Tuple

import jax
import jax.numpy as jnp
from jax.typing import ArrayLike

from . import components
from .defs import MAX_DERIVED_FIELDS
from .errors import CapacityError, ConfigurationError
from .grids import GridVolume
from .typing import Component, DerivedComponent, DerivedKind, Direction

X, Y, Z, R, P = Direction.X, Direction.Y, Direction.Z, Direction.R, Direction.P

# Electric and magnetic components whose cross product is the Poynting flux.
_POYNTING_FACTORS = {
    X: (components.Ey, components.Hz),
    Y: (components.Ez, components.Hx),
    Z: (components.Ex, components.Hy),
    R: (components.Ep, components.Hz),
    P: (components.Ez, components.Hr),
}


def poynting(fields: Sequence[ArrayLike]) -> jax.Array:
    """``Re(conj(f0) f1) - Re(conj(f2) f3)``, i.e. one component of ``E x H``."""
    return jnp.real(jnp.conj(fields[0]) * fields[1]) - jnp.real(
        jnp.conj(fields[2]) * fields[3]
    )


def energy(fields: Sequence[ArrayLike]) -> jax.Array:
    """Half the sum of ``Re(conj(f[2k]) f[2k + 1])`` over consecutive pairs."""
    total = jnp.zeros(jnp.shape(fields[0])) if fields else jnp.zeros(())
    for k in range(len(fields) // 2):
        total = total + jnp.real(jnp.conj(fields[2 * k]) * fields[2 * k + 1])
    return 0.5 * total


def derived_component_func(
    c: DerivedComponent, gv: GridVolume
) -> Tuple[Callable[[Sequence[ArrayLike]], jax.Array], List[Component]]:
    """Function computing ``c`` and the stored components it takes, in order.

    Args:
        c: Derived component.
        gv: Grid volume, whose dimensionality fixes which components are stored.

    Returns:
        ``(fn, cs)`` such that ``fn([field[ci] for ci in cs])`` is ``c``.

    """
    if c.kind == DerivedKind.POYNTING:
        e, h = _POYNTING_FACTORS[c.direction]
        cs = [
            e,
            h,
            components.direction_component(components.Ex, h.direction),
            components.direction_component(components.Hx, e.direction),
        ]
        return poynting, cs

    cs = []
    if c.kind != DerivedKind.H_ENERGY_DENSITY:
        for c0 in components.ELECTRIC_COMPONENTS:
            if gv.has_field(c0):
                cs += [c0, components.direction_component(components.Dx, c0.direction)]
    if c.kind != DerivedKind.D_ENERGY_DENSITY:
        for c0 in components.MAGNETIC_COMPONENTS:
            if gv.has_field(c0):
                cs += [c0, components.direction_component(components.Bx, c0.direction)]
    if len(cs) > MAX_DERIVED_FIELDS:
        raise CapacityError(
            f"{components.component_name(c)} needs {len(cs)} field components, "
            f"at most {MAX_DERIVED_FIELDS} are supported."
        )
    return energy, cs


def evaluate(
    c: DerivedComponent, gv: GridVolume, fields: Mapping[Component, ArrayLike]
) -> jax.Array:
    """Derived component ``c`` computed pointwise from ``fields``."""
    fn, cs = derived_component_func(c, gv)
    missing = [components.component_name(ci) for ci in cs if ci not in fields]
    if missing:
        raise ConfigurationError(
            f"{components.component_name(c)} needs the missing field components "
            f"{', '.join(missing)}."
        )
    return fn([jnp.asarray(fields[ci]) for ci in cs])
