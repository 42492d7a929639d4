"""Lattice geometry, indexing and ownership of ``GridVolume``."""

from __future__ import annotations

import numpy as np
import pytest

from yeelattice import components, grids
from yeelattice.components import Dielectric, Er, Ep, Ex, Ey, Ez, Hp, Hr, Hx, Hy, Hz
from yeelattice.defs import ACTIVE_DIRECTIONS, SMALL_WEIGHT
from yeelattice.errors import ConfigurationError, GeometryInvariantViolation
from yeelattice.grids import GridVolume
from yeelattice.typing import BoundarySide, Component, Dimension, Direction, FieldType
from yeelattice.vectors import ivec, iveccyl, one_ivec, vec, veccyl
from yeelattice.volumes import Volume, empty_volume

D1, D2, D3, CYL = Dimension.D1, Dimension.D2, Dimension.D3, Dimension.CYLINDRICAL
X, Y, Z, R = Direction.X, Direction.Y, Direction.Z, Direction.R


def _shifted(gv, io):
    gv.set_origin(io)
    return gv


GRID_VOLUMES = [
    (_shifted(grids.vol1d(1.0, 10), ivec(D1, -6)), (Ex, Hy)),
    (_shifted(grids.vol2d(2.0, 1.0, 10), ivec(D2, -20, -10)), (Ex, Ey, Ez, Hx, Hz, Dielectric)),
    (grids.vol3d(1.0, 0.6, 0.8, 5), (Ex, Hy, Ez, Dielectric)),
    (grids.volcyl(1.0, 2.0, 5), (Er, Ep, Ez, Hr, Hp, Hz)),
]


@pytest.fixture
def gv2d():
    # 2 x 1 cell centered on the origin.
    gv = GridVolume(D2, 10, 20, 10, 0)
    gv.set_origin(ivec(D2, -20, -10))
    return gv


@pytest.mark.parametrize("gv,cs", GRID_VOLUMES)
def test_index_iloc_round_trip(gv, cs):
    for c in cs:
        for i in range(gv.ntot):
            assert gv.index(c, gv.iloc(c, i)) == i


@pytest.mark.parametrize("gv,cs", GRID_VOLUMES)
def test_lattice_coordinates_match_iloc(gv, cs):
    for c in cs:
        expected = [
            [gv.iloc(c, i).in_direction(d) for d in ACTIVE_DIRECTIONS[gv.dim]]
            for i in range(gv.ntot)
        ]
        np.testing.assert_array_equal(np.asarray(grids.lattice_coordinates(gv, c)), expected)


@pytest.mark.parametrize("gv,cs", GRID_VOLUMES)
def test_ownership_mask_matches_owns(gv, cs):
    for c in cs:
        expected = [gv.owns(gv.iloc(c, i)) for i in range(gv.ntot)]
        np.testing.assert_array_equal(np.asarray(grids.ownership_mask(gv, c)), expected)
        assert sum(expected) == gv.nowned(c)


def test_sizes_and_strides():
    gv = grids.vol2d(2.0, 1.0, 10)
    assert (gv.nx, gv.ny, gv.ntot) == (20, 10, 231)
    assert (gv.stride(X), gv.stride(Y)) == (11, 1)
    assert gv.nowned_min() == 200
    assert gv.nowned(Ez) == gv.nowned(Hz) == 200

    cyl = grids.volcyl(1.0, 2.0, 5)
    assert (cyl.nr, cyl.nz, cyl.ntot) == (5, 10, 66)
    assert (cyl.stride(Z), cyl.stride(R)) == (1, 11)


def test_iyee_shift():
    gv = grids.vol3d(1, 1, 1, 4)
    assert gv.iyee_shift(Ex) == ivec(D3, 1, 0, 0)
    assert gv.iyee_shift(Hx) == ivec(D3, 0, 1, 1)
    assert gv.iyee_shift(Dielectric) == ivec(D3, 1, 1, 1)
    assert grids.vol2d(1, 1, 4).iyee_shift(Ez) == ivec(D2, 0, 0)


def test_yee2cent_offsets():
    gv = grids.vol3d(1, 1, 1, 4)
    assert gv.yee2cent_offsets(Ex) == (gv.stride(Y), gv.stride(Z))
    assert gv.yee2cent_offsets(Dielectric) == (0, 0)
    assert gv.cent2yee_offsets(Hx) == (-gv.stride(X), 0)
    with pytest.raises(GeometryInvariantViolation, match=r"weird yee shift"):
        gv.yee2cent_offsets(Component(FieldType.E, Direction.NO_DIRECTION))


def test_center(gv2d):
    assert gv2d.icenter() == ivec(D2, 0, 0)
    assert gv2d.center() == vec(D2, 0, 0)
    cyl = grids.volcyl(1.0, 2.0, 5)
    assert cyl.icenter() == iveccyl(0, 10)


def test_owns_vs_contains_for_abutting_volumes():
    gv = grids.vol2d(2.0, 1.0, 10)
    low = gv.split_at_fraction(False, 10)
    high = gv.split_at_fraction(True, 10)
    assert high.io == ivec(D2, 20, 0)

    for y in range(2, 21, 2):
        p = ivec(D2, 20, y)
        assert low.owns(p) != high.owns(p)
        assert low.contains(p) and high.contains(p)

    for i in range(gv.ntot):
        p = gv.iloc(Ez, i)
        if gv.owns(p):
            assert low.owns(p) + high.owns(p) == 1


def test_cylindrical_axis_is_owned():
    cyl = grids.volcyl(1.0, 2.0, 5)
    assert cyl.owns(iveccyl(0, 2))
    assert not cyl.owns(iveccyl(0, 0))
    shifted = cyl.copy()
    shifted.set_origin(iveccyl(2, 0))
    assert not shifted.owns(iveccyl(2, 2))


def test_contains_vec(gv2d):
    assert gv2d.contains(vec(D2, 0.0, 0.0))
    assert gv2d.contains(vec(D2, -1.05, 0.55))
    assert not gv2d.contains(vec(D2, 1.2, 0.0))


def test_boundary_icorners():
    gv = grids.vol2d(2.0, 1.0, 10)
    patches = list(gv.boundary_icorners(Ez))
    assert patches == [
        (ivec(D2, 0, 0), ivec(D2, 0, 20)),
        (ivec(D2, 2, 0), ivec(D2, 40, 0)),
    ]
    found, start, end = gv.get_boundary_icorners(Ez, 2)
    assert not found
    assert (start, end) == (one_ivec(D2), -one_ivec(D2))


def test_interpolation_weights():
    gv = grids.vol2d(2.0, 1.0, 10)
    locs, weights = gv.interpolate(Ez, vec(D2, 0.73, 0.41))
    assert len(locs) == len(weights) == 4
    np.testing.assert_allclose(np.sum(weights), 1.0, atol=1e-9)
    assert all(w == 0 or w >= SMALL_WEIGHT for w in weights)
    assert {(p.x, p.y) for p in locs} == {(14, 8), (14, 10), (16, 8), (16, 10)}


@pytest.mark.parametrize(
    "c,point",
    [
        (Ez, (0.5, 0.5)),
        (Hz, (0.3, 0.71)),
        (Ex, (1.999, 0.001)),
        (Dielectric, (1.0, 0.25)),
    ],
)
def test_interpolation_weights_sum_to_one(c, point):
    gv = grids.vol2d(2.0, 1.0, 10)
    _, weights = gv.interpolate(c, vec(D2, *point))
    np.testing.assert_allclose(np.sum(weights), 1.0, atol=1e-9)
    assert all(w == 0 or w >= SMALL_WEIGHT for w in weights)


def test_interpolation_on_lattice_point():
    gv = grids.vol2d(2.0, 1.0, 10)
    locs, weights = gv.interpolate(Ez, vec(D2, 0.5, 0.5))
    assert locs == [ivec(D2, 10, 10)]
    np.testing.assert_array_equal(weights, [1.0])

    indices, weights = gv.interpolate_indices(Ez, vec(D2, 0.5, 0.5))
    np.testing.assert_array_equal(indices, [gv.index(Ez, ivec(D2, 10, 10))])
    np.testing.assert_array_equal(weights, [1.0])


def test_interpolation_far_away_is_empty():
    gv = grids.vol2d(2.0, 1.0, 10)
    indices, weights = gv.interpolate_indices(Ez, vec(D2, 5.0, 0.5))
    assert indices.size == weights.size == 0


def test_dV():
    gv = grids.vol2d(2.0, 1.0, 10)
    dv = gv.dV(ivec(D2, 10, 10))
    np.testing.assert_allclose(dv.min_corner.coordinates(), (0.45, 0.45))
    np.testing.assert_allclose(dv.max_corner.coordinates(), (0.55, 0.55))
    assert gv.dV_index(Ez, 0) == empty_volume(D2)

    cyl = grids.volcyl(1.0, 2.0, 5)
    assert cyl.dV(iveccyl(0, 4)).in_direction_min(R) == 0.0


def test_boundaries_and_resolution():
    gv = grids.vol2d(2.0, 1.0, 10)
    assert gv.boundary_location(BoundarySide.HIGH, X) == 2.0
    assert gv.boundary_location(BoundarySide.LOW, Y) == 0.0
    assert gv.ntot_at_resolution(5) == 50
    np.testing.assert_allclose(gv.loc_at_resolution(0, 5).coordinates(), (0.1, 0.1))
    np.testing.assert_allclose(gv.loc_at_resolution(11, 5).coordinates(), (0.3, 0.3))
    with pytest.raises(ConfigurationError, match=r"has no boundary"):
        gv.boundary_location(BoundarySide.HIGH, Direction.P)
    with pytest.raises(ConfigurationError, match=r"No rmin in 2D"):
        gv.rmin()


def test_has_boundary():
    cyl = grids.volcyl(1.0, 2.0, 5)
    assert cyl.has_boundary(BoundarySide.HIGH, R)
    assert not cyl.has_boundary(BoundarySide.LOW, R)
    assert cyl.has_boundary(BoundarySide.LOW, Z)


def test_has_field():
    gv = grids.vol1d(1.0, 10)
    assert gv.has_field(Ex) and gv.has_field(Hy)
    assert not gv.has_field(Ey)
    assert not grids.vol3d(1, 1, 1, 4).has_field(Er)
    assert grids.volcyl(1, 1, 4).has_field(Ep)


def test_intersection_and_decompose():
    gv = grids.vol2d(2.0, 1.0, 10)
    other = GridVolume(D2, 10, 10, 10, 0)
    other.set_origin(ivec(D2, 10, 0))

    overlap = gv.intersection(other)
    assert overlap.io == ivec(D2, 10, 0)
    assert (overlap.nx, overlap.ny) == (10, 10)

    intersection, others = gv.decompose(other)
    assert intersection == overlap
    assert [o.nowned_min() for o in others] == [50, 50]
    assert [o.io for o in others] == [ivec(D2, 0, 0), ivec(D2, 30, 0)]

    far = other.copy()
    far.set_origin(ivec(D2, 100, 0))
    assert gv.intersection(far) is None
    assert gv.decompose(far) is None


def test_decompose_odd_offset():
    gv = grids.vol2d(2.0, 1.0, 10)
    other = GridVolume(D2, 10, 10, 10, 0)
    other.set_origin(ivec(D2, 11, 0))
    with pytest.raises(GeometryInvariantViolation, match=r"odd integer"):
        gv.decompose(other)


def test_split_at_fraction():
    gv = grids.vol2d(2.0, 1.0, 10)
    assert gv.longest_axis() == (X, 20)
    low = gv.split_at_fraction(False, 7)
    high = gv.split_at_fraction(True, 7)
    assert (low.nx, high.nx, high.io.x) == (7, 13, 14)
    with pytest.raises(GeometryInvariantViolation, match=r"cannot split"):
        gv.split_at_fraction(False, 20)
    with pytest.raises(GeometryInvariantViolation, match=r"no splittable axis"):
        GridVolume(D2, 10, 1, 1, 0).split_at_fraction(False, 1)

    assert grids.volcyl(2.0, 1.0, 5).longest_axis() == (R, 10)


def test_halve_and_pad(gv2d):
    assert gv2d.halve(X).nx == 10
    padded = gv2d.pad(Y)
    assert padded.ny == 12
    assert padded.io == ivec(D2, -20, -12)
    assert gv2d.ny == 10


def test_origin_from_vec():
    gv = grids.vol2d(2.0, 1.0, 10)
    gv.set_origin(vec(D2, -1.0, -0.5))
    assert gv.io == ivec(D2, -20, -10)
    assert gv.round_vec(vec(D2, 0.025, -0.025)) == ivec(D2, 1, -1)


def test_copy_and_equality(gv2d):
    gv = gv2d.copy()
    assert gv == gv2d
    gv.shift_origin(X, 2)
    assert gv != gv2d
    assert "x =" in gv2d.describe()


def test_unit_steps():
    assert grids.vol2d(1, 1, 4).dx() == vec(D2, 0.25, 0)
    assert grids.volcyl(1, 1, 4).dr() == veccyl(0.25, 0)
    with pytest.raises(ConfigurationError, match=r"No dx in 1D"):
        grids.vol1d(1, 4).dx()


def test_surroundings(gv2d):
    assert gv2d.surroundings() == Volume(vec(D2, -1, -0.5), vec(D2, 1, 0.5))
    assert gv2d.eps_component() == components.Hz


def test_interior_and_edges(gv2d):
    inner = gv2d.interior()
    np.testing.assert_allclose(inner.min_corner.coordinates(), (-1.0, -0.5))
    np.testing.assert_allclose(inner.max_corner.coordinates(), (0.9, 0.4))
    edges = (gv2d.xmin(), gv2d.xmax(), gv2d.ymin(), gv2d.ymax())
    np.testing.assert_allclose(edges, (-0.975, 1.025, -0.475, 0.525))
    gv = grids.vol1d(1.0, 10)
    assert (gv.zmin(), gv.zmax()) == pytest.approx((0.025, 1.025))


def test_traversal_num(gv2d):
    assert [gv2d.traversal_num(n) for n in range(3)] == [1, 20, 10]
    cyl = grids.volcyl(1.0, 2.0, 5)
    assert [cyl.traversal_num(n) for n in range(3)] == [1, 5, 10]


def test_set_origin_direction(gv2d):
    gv2d.set_origin_direction(X, 0)
    assert gv2d.io == ivec(D2, 0, -10)
    assert gv2d.origin == vec(D2, 0.0, -0.5)


@pytest.mark.parametrize(
    "gv,c,expected",
    [
        (
            grids.vol2d(2.0, 1.0, 10),
            Hx,
            [(ivec(D2, 0, 1), ivec(D2, 0, 21)), (ivec(D2, 2, 21), ivec(D2, 40, 21))],
        ),
        (
            grids.vol2d(2.0, 1.0, 10),
            Hz,
            [(ivec(D2, 41, 1), ivec(D2, 41, 21)), (ivec(D2, 1, 21), ivec(D2, 39, 21))],
        ),
        (
            grids.vol3d(1.0, 1.0, 1.0, 5),
            Hx,
            [
                (ivec(D3, 0, 1, 1), ivec(D3, 0, 11, 11)),
                (ivec(D3, 2, 11, 1), ivec(D3, 10, 11, 11)),
                (ivec(D3, 2, 1, 11), ivec(D3, 10, 9, 11)),
            ],
        ),
        (
            grids.volcyl(1.0, 2.0, 5),
            Er,
            [(iveccyl(1, 0), iveccyl(11, 0)), (iveccyl(11, 2), iveccyl(11, 20))],
        ),
    ],
)
def test_boundary_icorners_low_then_high(gv, c, expected):
    assert list(gv.boundary_icorners(c)) == expected


def _patch_points(start, end):
    points = [start]
    for d in ACTIVE_DIRECTIONS[start.dim]:
        points = [
            p.with_direction(d, v)
            for p in points
            for v in range(start.in_direction(d), end.in_direction(d) + 1, 2)
        ]
    return points


@pytest.mark.parametrize(
    "gv,cs",
    [
        (grids.vol1d(1.0, 10), (Ex, Hy, Dielectric)),
        (grids.vol2d(2.0, 1.0, 10), (Ex, Ey, Ez, Hx, Hy, Hz, Dielectric)),
        (grids.vol3d(1.0, 0.6, 0.8, 5), (Ex, Ey, Ez, Hx, Hy, Hz, Dielectric)),
        (grids.volcyl(1.0, 2.0, 5), (Er, Ep, Ez, Hr, Hp, Hz, Dielectric)),
    ],
)
def test_boundary_patches_cover_points_not_owned(gv, cs):
    for c in cs:
        patched = [
            p for start, end in gv.boundary_icorners(c) for p in _patch_points(start, end)
        ]
        not_owned = {
            gv.iloc(c, i) for i in range(gv.ntot) if not gv.owns(gv.iloc(c, i))
        }
        assert len(patched) == len(set(patched))
        assert set(patched) == not_owned
