"""Exceptions raised on violated geometric preconditions.

None of these are meant to be recovered from: each one indicates inconsistent
input geometry or a logic defect upstream of this package.

"""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Operands are incompatible, e.g. of different dimensions."""


class GeometryInvariantViolation(RuntimeError):
    """A lattice invariant (parity, ownership, point count) was broken."""


class CapacityError(ValueError):
    """A fixed-size buffer would overflow."""
