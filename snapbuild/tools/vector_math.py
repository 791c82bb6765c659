"""
Vector, basis and transform math for placement.

Conventions: Y is up, right-handed. A Basis stores its three axes as columns
(x = right, y = up, z = back), so a piece's "up" is basis.y. Positive angles
rotate counter-clockwise when looking down the rotation axis.
"""

import math
from dataclasses import dataclass

# Reference axis used to complete a basis from an up vector, and the fallback
# used when the up vector is (nearly) parallel to it.
FORWARD_AXIS = (0.0, 0.0, -1.0)
FALLBACK_AXIS = (0.0, 1.0, 0.0)
PARALLEL_EPSILON = 1e-3


@dataclass(frozen=True)
class Vec3:
    """Simple vector for placement calculations."""
    x: float
    y: float
    z: float

    def __add__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> "Vec3":
        return Vec3(self.x * scalar, self.y * scalar, self.z * scalar)

    __rmul__ = __mul__

    def __neg__(self) -> "Vec3":
        return Vec3(-self.x, -self.y, -self.z)

    def dot(self, other: "Vec3") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: "Vec3") -> "Vec3":
        return Vec3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def length(self) -> float:
        return math.sqrt(self.dot(self))

    def normalized(self) -> "Vec3":
        length = self.length()
        if length == 0.0:
            raise ValueError("Cannot normalize a zero-length vector")
        return self * (1.0 / length)

    def distance(self, other: "Vec3") -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        dz = self.z - other.z
        return math.sqrt(dx*dx + dy*dy + dz*dz)

    def is_close(self, other: "Vec3", tolerance: float = 1e-6) -> bool:
        return self.distance(other) <= tolerance

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    @classmethod
    def of(cls, values) -> "Vec3":
        """Build from any 3-sequence or object with x/y/z attributes."""
        if hasattr(values, "x"):
            return cls(float(values.x), float(values.y), float(values.z))
        x, y, z = values
        return cls(float(x), float(y), float(z))


ZERO = Vec3(0.0, 0.0, 0.0)
UP = Vec3(0.0, 1.0, 0.0)


def rotate_about_axis(point: Vec3, axis: Vec3, degrees: float) -> Vec3:
    """Rotate a vector around a unit axis (Rodrigues' formula)."""
    rad = math.radians(degrees)
    cos_r = math.cos(rad)
    sin_r = math.sin(rad)
    return (
        point * cos_r
        + axis.cross(point) * sin_r
        + axis * (axis.dot(point) * (1.0 - cos_r))
    )


@dataclass(frozen=True)
class Basis:
    """An orthonormal orientation stored as three axis columns."""
    x: Vec3 = Vec3(1.0, 0.0, 0.0)
    y: Vec3 = Vec3(0.0, 1.0, 0.0)
    z: Vec3 = Vec3(0.0, 0.0, 1.0)

    def xform(self, local: Vec3) -> Vec3:
        """Express a local-space vector in the parent space."""
        return self.x * local.x + self.y * local.y + self.z * local.z

    def rotated(self, axis: Vec3, degrees: float) -> "Basis":
        """Rotate every axis around a parent-space unit axis."""
        return Basis(
            rotate_about_axis(self.x, axis, degrees),
            rotate_about_axis(self.y, axis, degrees),
            rotate_about_axis(self.z, axis, degrees),
        )

    @property
    def up(self) -> Vec3:
        return self.y


IDENTITY = Basis()


def basis_from_up(up: Vec3) -> Basis:
    """
    Build an orthonormal basis whose Y axis points along `up`.

    The remaining axes are completed from the forward reference axis, so a
    straight-up normal yields the identity basis. When `up` is nearly parallel
    to forward the cross products degenerate, so the fallback axis is used
    instead. The result never contains NaNs for a non-zero `up`.
    """
    up = up.normalized()
    reference = Vec3(*FORWARD_AXIS)
    if abs(up.dot(reference)) > 1.0 - PARALLEL_EPSILON:
        reference = Vec3(*FALLBACK_AXIS)

    # Back axis is the reference direction projected off `up`, flipped.
    back = -(reference - up * up.dot(reference)).normalized()
    right = up.cross(back).normalized()
    return Basis(right, up, back)


@dataclass(frozen=True)
class Transform:
    """A rigid transform: orientation plus world position."""
    basis: Basis = IDENTITY
    origin: Vec3 = ZERO

    def xform(self, local: Vec3) -> Vec3:
        """Map a local point into world space."""
        return self.origin + self.basis.xform(local)
