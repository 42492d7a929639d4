"""Utility functions."""

from __future__ import annotations

import math

from .defs import ACTIVE_DIRECTIONS
from .errors import ConfigurationError
from .typing import Dimension, Direction


def check_same_dim(operation: str, dim: Dimension, other: Dimension) -> None:
    """Raise ``ConfigurationError`` unless ``dim`` and ``other`` match."""
    if dim != other:
        raise ConfigurationError(
            f"{operation} requires operands of the same dimensionality, but got "
            f"{dim.value} and {other.value} operands."
        )


def check_active(operation: str, dim: Dimension, d: Direction) -> None:
    """Raise ``ConfigurationError`` unless ``d`` is active in ``dim``."""
    if d not in ACTIVE_DIRECTIONS[dim]:
        raise ConfigurationError(
            f"{operation}: direction {direction_name(d)} is not available in "
            f"{dim.value}, only "
            f"{', '.join(direction_name(a) for a in ACTIVE_DIRECTIONS[dim])} are."
        )


def direction_name(d: Direction) -> str:
    """Short lowercase name of ``d``."""
    if d == Direction.P:
        return "phi"
    if d == Direction.NO_DIRECTION:
        return "no_direction"
    return d.name.lower()


def round_half_away(x: float) -> int:
    """Nearest integer to ``x``, with halves rounded away from zero."""
    return int(math.floor(abs(x) + 0.5)) * (-1 if x < 0 else 1)


def trunc_div(a: int, b: int) -> int:
    """Integer division of ``a`` by ``b`` truncated towards zero."""
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q
