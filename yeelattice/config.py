"""
TOML description of a simulation cell.

A cell file holds one ``[cell]`` table, any number of ``[[symmetry]]`` tables
and an optional ``[chunks]`` table::

    [cell]
    dimensions = "2D"
    size = [2.0, 1.0]
    resolution = 10
    center = [0.0, 0.0]

    [[symmetry]]
    kind = "mirror"
    direction = "x"
    phase = -1.0

    [chunks]
    num = 4

    [[chunks.effort]]
    min = [-1.0, -0.5]
    max = [0.0, 0.5]
    effort = 3.0

Coordinates are listed in the order taken by :py:func:`vec`. Sections are kept
as raw dicts; their meaning lives in the ``build_*`` functions.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List

from . import splitting, symmetry
from .defs import ACTIVE_DIRECTIONS, COORDINATE_ORDER
from .errors import ConfigurationError
from .grids import GridVolume
from .typing import Dimension, Direction, EffortRegion
from .utils import round_half_away
from .vectors import Vec, vec

logger = logging.getLogger(__name__)

_DIRECTIONS = {
    "x": Direction.X,
    "y": Direction.Y,
    "z": Direction.Z,
    "r": Direction.R,
    "p": Direction.P,
    "phi": Direction.P,
}


@dataclass
class CellConfig:
    """
    Cell configuration.

    ``cell`` is required, ``symmetry`` and ``chunks`` default to no symmetry
    and a single chunk.
    """
    cell: dict[str, Any]
    symmetry: list[dict[str, Any]] = field(default_factory=list)
    chunks: dict[str, Any] = field(default_factory=dict)


def load_config(path: str | Path) -> CellConfig:
    """Load a TOML cell file and return a CellConfig object."""
    path = Path(path)
    with open(path, "rb") as f:
        data = tomllib.load(f)
    logger.debug("loaded cell description from %s", path)
    return config_from_dict(data)


def config_from_dict(data: dict[str, Any]) -> CellConfig:
    """CellConfig from already parsed TOML data."""
    if "cell" not in data:
        raise ConfigurationError("A cell description needs a [cell] table.")
    unknown = set(data) - {"cell", "symmetry", "chunks"}
    if unknown:
        raise ConfigurationError(f"Unknown tables in cell description: {sorted(unknown)}")
    return CellConfig(
        cell=data["cell"],
        symmetry=data.get("symmetry", []),
        chunks=data.get("chunks", {}),
    )


def parse_dimension(value: str) -> Dimension:
    for dim in Dimension:
        if value.lower() == dim.value.lower():
            return dim
    raise ConfigurationError(
        f"Unknown dimensions {value!r}, expected one of "
        f"{', '.join(dim.value for dim in Dimension)}."
    )


def parse_direction(value: str) -> Direction:
    try:
        return _DIRECTIONS[value.lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown direction {value!r}, expected one of {', '.join(_DIRECTIONS)}."
        ) from None


def _coordinates(dim: Dimension, values, name: str) -> Vec:
    values = list(values)
    if len(values) != len(COORDINATE_ORDER[dim]):
        raise ConfigurationError(
            f"{name} takes {len(COORDINATE_ORDER[dim])} coordinates in {dim.value}, "
            f"got {values}."
        )
    return vec(dim, *values)


def _low_corner(dim: Dimension, size: Vec, center: Vec) -> Vec:
    """Corner of a box of ``size`` centered on ``center``; ``r`` always starts at 0."""
    corner = center - size * 0.5
    if dim == Dimension.CYLINDRICAL:
        corner = corner.with_direction(Direction.R, 0.0)
    return corner


def build_grid_volume(config: CellConfig) -> GridVolume:
    """GridVolume described by the ``[cell]`` table."""
    cell = config.cell
    try:
        dim = parse_dimension(cell["dimensions"])
        a = float(cell["resolution"])
        size = _coordinates(dim, cell["size"], "size")
    except KeyError as e:
        raise ConfigurationError(f"[cell] is missing the {e.args[0]!r} key.") from None
    if a <= 0:
        raise ConfigurationError(f"resolution must be positive, got {a}.")
    center = _coordinates(dim, cell.get("center", [0.0] * len(COORDINATE_ORDER[dim])), "center")

    num = [0, 0, 0]
    for d in ACTIVE_DIRECTIONS[dim]:
        if size.in_direction(d) < 0:
            raise ConfigurationError(f"size must not be negative, got {cell['size']}.")
        num[d % 3] = round_half_away(size.in_direction(d) * a)
    gv = GridVolume(dim, a, *num)
    gv.set_origin(_low_corner(dim, size, center))
    logger.info("cell %s", gv.describe())
    return gv


def build_symmetry(config: CellConfig, gv: GridVolume | None = None) -> symmetry.Symmetry:
    """Symmetry composed of every ``[[symmetry]]`` entry, in file order."""
    if gv is None:
        gv = build_grid_volume(config)
    out = symmetry.identity()
    for entry in config.symmetry:
        kind = entry.get("kind")
        if kind == "r_to_minus_r":
            s = symmetry.r_to_minus_r_symmetry(float(entry.get("m", 0.0)))
        elif kind in ("mirror", "rotate2", "rotate4"):
            if "direction" not in entry:
                raise ConfigurationError(f"{kind} symmetry needs a direction.")
            make = getattr(symmetry, kind)
            s = make(parse_direction(entry["direction"]), gv)
        else:
            raise ConfigurationError(
                f"Unknown symmetry kind {kind!r}, expected one of mirror, rotate2, "
                "rotate4 or r_to_minus_r."
            )
        if "phase" in entry:
            s = s * _phase(entry["phase"])
        out = out + s
    return out


def _phase(value) -> complex:
    """Phase given either as a real number or as a ``[re, im]`` pair."""
    if isinstance(value, (int, float)):
        return complex(value)
    if isinstance(value, list) and len(value) == 2:
        return complex(value[0], value[1])
    raise ConfigurationError(f"phase must be a number or a [re, im] pair, got {value!r}.")


def build_effort(config: CellConfig, gv: GridVolume | None = None) -> List[EffortRegion]:
    """Effort regions of ``[[chunks.effort]]``, snapped to the lattice of ``gv``."""
    if gv is None:
        gv = build_grid_volume(config)
    regions = []
    for entry in config.chunks.get("effort", []):
        try:
            lo = _coordinates(gv.dim, entry["min"], "min")
            hi = _coordinates(gv.dim, entry["max"], "max")
            effort = float(entry["effort"])
        except KeyError as e:
            raise ConfigurationError(
                f"[[chunks.effort]] is missing the {e.args[0]!r} key."
            ) from None
        # Corners snap to whole cells of gv, keeping the Yee parity of gv.io.
        region = GridVolume(gv.dim, gv.a, 0, 0, 0)
        io = gv.io
        for d in ACTIVE_DIRECTIONS[gv.dim]:
            if hi.in_direction(d) < lo.in_direction(d):
                raise ConfigurationError(f"effort box {entry} has min above max.")
            o = gv.origin.in_direction(d)
            ilo = round_half_away((lo.in_direction(d) - o) * gv.a)
            ihi = round_half_away((hi.in_direction(d) - o) * gv.a)
            region.set_num_direction(d, ihi - ilo)
            io = io.with_direction(d, gv.io.in_direction(d) + 2 * ilo)
        region.set_origin(io)
        regions.append(EffortRegion(region, effort))
    return regions


def plan_chunks(config: CellConfig) -> List[GridVolume]:
    """Partition of the cell into ``[chunks] num`` parts, by effort when given."""
    gv = build_grid_volume(config)
    n = int(config.chunks.get("num", 1))
    if n < 1:
        raise ConfigurationError(f"chunks.num must be at least 1, got {n}.")
    effort = build_effort(config, gv)
    return splitting.partition(gv, n, effort or None)
