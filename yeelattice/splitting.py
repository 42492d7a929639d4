"""Decomposition of a grid volume into balanced parts for parallel execution.

Both strategies recursively bisect the longest axis of a
:py:class:`GridVolume`. :py:func:`split` balances the number of cells while
:py:func:`split_by_effort` balances an externally supplied estimate of the
computational cost of each region.

"""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from .errors import ConfigurationError, GeometryInvariantViolation
from .grids import GridVolume
from .typing import EffortRegion

logger = logging.getLogger(__name__)


def split(gv: GridVolume, n: int, which: int) -> GridVolume:
    """Part ``which`` of ``gv`` split into ``n`` parts of similar size.

    Args:
        gv: Volume to split.
        n: Number of parts.
        which: Index of the requested part, in ``[0, n)``.

    Returns:
        A new :py:class:`GridVolume`; for ``n == 1`` a copy of ``gv``.

    """
    _check_split_args(gv, n, which)
    if n == 1:
        return gv.copy()

    # Try to get as close as we can...
    biglen = max(gv.num)
    split_point = int(biglen * (n // 2) / n + 0.5)
    num_low = int(split_point * n / biglen + 0.5)
    low, high = _bisect(gv, split_point)
    logger.debug(
        "split %r into %d parts at %d, %d parts low", gv, n, split_point, num_low
    )
    if which < num_low:
        return split(low, num_low, which)
    return split(high, n - num_low, which - num_low)


def split_by_effort(
    gv: GridVolume,
    n: int,
    which: int,
    effort: Sequence[EffortRegion] = (),
) -> GridVolume:
    """Part ``which`` of ``gv`` split into ``n`` parts of similar effort.

    Every candidate split point along the longest axis is scored by the
    heavier of ``left / (n // 2)`` and ``right / (n - n // 2)``, where
    ``left`` and ``right`` are the efforts of both sides. The best one wins and
    the parts are shared between the sides in proportion to their effort.

    Falls back to :py:func:`split` when ``effort`` is empty or when the
    proportional share would hand a side more parts than it has cells.

    Args:
        gv: Volume to split.
        n: Number of parts.
        which: Index of the requested part, in ``[0, n)``.
        effort: Regions with their per-point cost; points outside of every
          region cost nothing.

    """
    _check_split_args(gv, n, which)
    if not effort:
        return split(gv, n, which)
    if n == 1:
        return gv.copy()

    grid_points_owned = gv.nowned_min()
    splitdir, biglen = gv.longest_axis()

    best_split_measure, best_split_point, left_effort_fraction = 1e20, 0, 0.0
    for split_point in range(1, biglen):
        v_left = gv.copy()
        v_left.set_num_direction(splitdir, split_point)
        v_right = gv.copy()
        v_right.set_num_direction(splitdir, gv.num_direction(splitdir) - split_point)
        v_right.shift_origin(splitdir, split_point * 2)

        left, right = _effort(v_left, effort), _effort(v_right, effort)
        split_measure = max(left / (n // 2), right / (n - n // 2))
        if split_measure < best_split_measure:
            best_split_measure = split_measure
            best_split_point = split_point
            total = left + right
            left_effort_fraction = left / total if total else split_point / biglen

    num_low = int(left_effort_fraction * n + 0.5)
    points_low = best_split_point * (grid_points_owned // biglen)
    if (
        not 0 < num_low < n
        or num_low > points_low
        or n - num_low > grid_points_owned - points_low
    ):
        logger.debug(
            "effort split of %r into %d parts is degenerate, splitting by size", gv, n
        )
        return split(gv, n, which)

    low, high = _bisect(gv, best_split_point)
    logger.debug(
        "split %r into %d parts by effort at %d, %d parts low",
        gv,
        n,
        best_split_point,
        num_low,
    )
    if which < num_low:
        return split_by_effort(low, num_low, which, effort)
    return split_by_effort(high, n - num_low, which - num_low, effort)


def partition(
    gv: GridVolume,
    n: int,
    effort: Sequence[EffortRegion] | None = None,
) -> List[GridVolume]:
    """All ``n`` parts of ``gv``, checked to conserve the number of cells."""
    if effort:
        parts = [split_by_effort(gv, n, which, effort) for which in range(n)]
    else:
        parts = [split(gv, n, which) for which in range(n)]

    total = sum(part.nowned_min() for part in parts)
    if total != gv.nowned_min():
        raise GeometryInvariantViolation(
            f"partition: {n} parts of {gv!r} hold {total} points instead of "
            f"{gv.nowned_min()}"
        )
    logger.info("partitioned %s into %d parts", gv.describe(), n)
    return parts


def _check_split_args(gv: GridVolume, n: int, which: int) -> None:
    if n > gv.nowned_min():
        raise GeometryInvariantViolation(
            f"Cannot split {gv.nowned_min()} grid points into {n} parts"
        )
    if not 0 <= which < n:
        raise ConfigurationError(f"Part {which} does not exist in a split into {n}.")


def _bisect(gv: GridVolume, split_point: int) -> Tuple[GridVolume, GridVolume]:
    """Low and high halves of ``gv`` at ``split_point`` cells along its longest axis."""
    low = gv.split_at_fraction(False, split_point)
    high = gv.split_at_fraction(True, split_point)
    if low.nowned_min() + high.nowned_min() != gv.nowned_min():
        raise GeometryInvariantViolation(
            f"split: halves of {gv!r} at {split_point} hold {low.nowned_min()} + "
            f"{high.nowned_min()} points instead of {gv.nowned_min()}"
        )
    return low, high


def _effort(part: GridVolume, effort: Sequence[EffortRegion]) -> float:
    total = 0.0
    for region in effort:
        overlap = part.intersection(region.grid_volume)
        if overlap is not None:
            total += region.effort * overlap.ntot
    return total
