import math

import pytest

from snapbuild.tools.vector_math import (
    UP,
    Basis,
    Transform,
    Vec3,
    basis_from_up,
    rotate_about_axis,
)


def _is_orthonormal(basis, tol=1e-9):
    axes = (basis.x, basis.y, basis.z)
    for a in axes:
        if abs(a.length() - 1.0) > tol:
            return False
    return (
        abs(basis.x.dot(basis.y)) < tol
        and abs(basis.y.dot(basis.z)) < tol
        and abs(basis.z.dot(basis.x)) < tol
    )


def _finite(v):
    return all(math.isfinite(c) for c in v.as_tuple())


def test_straight_up_normal_gives_identity():
    basis = basis_from_up(UP)
    assert basis.x.is_close(Vec3(1, 0, 0))
    assert basis.y.is_close(Vec3(0, 1, 0))
    assert basis.z.is_close(Vec3(0, 0, 1))


@pytest.mark.parametrize("normal", [
    Vec3(0, 0, -1),
    Vec3(0, 0, 1),
    Vec3(0, 1e-5, -1),
])
def test_normal_parallel_to_forward_uses_fallback(normal):
    basis = basis_from_up(normal)
    for axis in (basis.x, basis.y, basis.z):
        assert _finite(axis)
    assert basis.y.is_close(normal.normalized())
    assert _is_orthonormal(basis)


def test_arbitrary_normal_is_right_handed():
    basis = basis_from_up(Vec3(1, 1, 0))
    assert _is_orthonormal(basis)
    assert basis.x.cross(basis.y).is_close(basis.z)
    assert basis.y.is_close(Vec3(1, 1, 0).normalized())


def test_rotation_about_up_is_counter_clockwise_from_above():
    rotated = rotate_about_axis(Vec3(1, 0, 0), UP, 90)
    assert rotated.is_close(Vec3(0, 0, -1))


def test_rotated_basis_keeps_axis():
    basis = Basis().rotated(UP, 45)
    assert basis.y.is_close(UP)
    assert _is_orthonormal(basis)


def test_transform_maps_local_points():
    transform = Transform(Basis().rotated(UP, 90), Vec3(2, 0, 0))
    assert transform.xform(Vec3(1, 0, 0)).is_close(Vec3(2, 0, -1))


def test_zero_vector_cannot_be_normalized():
    with pytest.raises(ValueError):
        Vec3(0, 0, 0).normalized()
