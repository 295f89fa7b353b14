"""
Rotation Conversion

Quaternion <-> Euler conversions between the glTF convention (counterclockwise
quaternions, XYZ Euler) and the target engine convention (clockwise ZYX Euler).

Quaternions are plain [x, y, z, w] float arrays, the layout shared by glTF and
pyrr's quaternion functions.
Euler angles are always in degrees.
"""

import math
from enum import Enum
from typing import Optional

import numpy as np
from pyrr import quaternion

from ..config import settings


def _clamp_unit(value: float) -> float:
    """Clamp to [-1, 1] so asin/acos never see floating-point drift."""
    return max(-1.0, min(1.0, value))


def normalize_quaternion(quat) -> np.ndarray:
    """
    Normalize a quaternion, mapping degenerate input to identity.

    Args:
        quat: Quaternion-like [x, y, z, w]

    Returns:
        Unit quaternion [x, y, z, w]
    """
    q = np.asarray(quat, dtype=np.float64)
    length = float(np.linalg.norm(q))
    if length == 0.0 or not math.isfinite(length):
        return quaternion.create(dtype=np.float64)
    return quaternion.normalize(q)


def quaternion_to_euler(quat) -> np.ndarray:
    """
    Convert a quaternion to XYZ Euler angles (source asset convention).

    Args:
        quat: Quaternion-like [x, y, z, w]

    Returns:
        Array of (x, y, z) angles in degrees
    """
    x, y, z, w = normalize_quaternion(quat)
    test = x * z + y * w

    # Pitch at +/-90 degrees: fold everything into z
    if test > 0.499:
        return np.array([0.0, 90.0, math.degrees(2.0 * math.atan2(x, w))])
    if test < -0.499:
        return np.array([0.0, -90.0, -math.degrees(2.0 * math.atan2(x, w))])

    roll = math.atan2(2.0 * (-y * z + x * w), 1.0 - 2.0 * (x * x + y * y))
    pitch = math.asin(_clamp_unit(2.0 * test))
    yaw = math.atan2(2.0 * (-x * y + z * w), 1.0 - 2.0 * (y * y + z * z))

    return np.array([math.degrees(roll), math.degrees(pitch), math.degrees(yaw)])


def euler_to_quaternion(euler) -> np.ndarray:
    """
    Convert XYZ Euler angles in degrees to a quaternion.

    Args:
        euler: (x, y, z) angles in degrees

    Returns:
        Quaternion [x, y, z, w]
    """
    half_x, half_y, half_z = (math.radians(float(a)) * 0.5 for a in euler)
    sx, cx = math.sin(half_x), math.cos(half_x)
    sy, cy = math.sin(half_y), math.cos(half_y)
    sz, cz = math.sin(half_z), math.cos(half_z)

    return np.array([
        sx * cy * cz + sy * sz * cx,
        -sx * sz * cy + sy * cx * cz,
        sx * sy * cz + sz * cx * cy,
        -sx * sy * sz + cx * cy * cz,
    ])


def quaternion_to_zyx_euler(quat, gimbal_epsilon: Optional[float] = None) -> np.ndarray:
    """
    Convert a quaternion to ZYX Euler angles (target engine convention).

    Standard 3-2-1 decomposition. Both sine terms are clamped to [-1, 1];
    when |sin(roll)| saturates the yaw is ill-conditioned and forced to 0.

    Args:
        quat: Quaternion-like [x, y, z, w]
        gimbal_epsilon: Saturation tolerance (defaults to settings)

    Returns:
        Array of (roll, pitch, yaw) in degrees
    """
    if gimbal_epsilon is None:
        gimbal_epsilon = settings.GIMBAL_LOCK_EPSILON

    qx, qy, qz, qw = normalize_quaternion(quat)
    sqx, sqy, sqz = qx * qx, qy * qy, qz * qz

    sin_r_cos_p = _clamp_unit(2.0 * (qw * qx + qy * qz))
    cos_r_cos_p = 1.0 - 2.0 * (sqx + sqy)
    sin_p = _clamp_unit(2.0 * (qw * qy - qz * qx))

    roll = math.atan2(sin_r_cos_p, cos_r_cos_p)
    pitch = math.asin(sin_p)
    if abs(sin_r_cos_p) >= 1.0 - gimbal_epsilon:
        yaw = 0.0
    else:
        sin_y_cos_p = 2.0 * (qw * qz + qx * qy)
        cos_y_cos_p = 1.0 - 2.0 * (sqy + sqz)
        yaw = math.atan2(sin_y_cos_p, cos_y_cos_p)

    return np.array([math.degrees(roll), math.degrees(pitch), math.degrees(yaw)])


def quaternion_to_zyx_euler_alt(quat) -> np.ndarray:
    """
    Convert a quaternion to ZYX Euler angles using the engine's own formula.

    Agrees with quaternion_to_zyx_euler away from the poles. At the poles
    (|sin(pitch)| >= 1) roll is pinned to 0 and yaw absorbs the remainder.

    Args:
        quat: Quaternion-like [x, y, z, w]

    Returns:
        Array of (roll, pitch, yaw) in degrees
    """
    qx, qy, qz, qw = normalize_quaternion(quat)

    sinx_cosp = 2.0 * (qw * qx + qy * qz)
    cosx_cosp = 1.0 - 2.0 * (qx * qx + qy * qy)
    siny = 2.0 * (qw * qy - qz * qx)

    if siny >= 1.0 or siny <= -1.0:
        x = 0.0
        y = math.copysign(math.pi / 2.0, siny)
        z = math.atan2(2.0 * (qx * qy - qw * qz), 1.0 - 2.0 * (qx * qx + qz * qz))
    else:
        x = math.atan2(sinx_cosp, cosx_cosp)
        y = math.asin(siny)
        z = math.atan2(2.0 * (qw * qz + qx * qy), 1.0 - 2.0 * (qy * qy + qz * qz))

    return np.array([math.degrees(x), math.degrees(y), math.degrees(z)])


def euler_zyx_to_quaternion(euler) -> np.ndarray:
    """
    Convert ZYX Euler angles in degrees to a quaternion.

    Angles are reduced modulo 360 (keeping their sign) before the half-angle
    product so repeated accumulation never grows the trig arguments.

    Args:
        euler: (roll, pitch, yaw) in degrees

    Returns:
        Quaternion [x, y, z, w]
    """
    half_x, half_y, half_z = (
        math.radians(math.fmod(float(a), 360.0)) * 0.5 for a in euler
    )
    cx, sx = math.cos(half_x), math.sin(half_x)
    cy, sy = math.cos(half_y), math.sin(half_y)
    cz, sz = math.cos(half_z), math.sin(half_z)

    return np.array([
        sx * cy * cz - cx * sy * sz,
        cx * sy * cz + sx * cy * sz,
        cx * cy * sz - sx * sy * cz,
        cx * cy * cz + sx * sy * sz,
    ])


def slerp_quaternion(start, end, amount: float) -> np.ndarray:
    """
    Shortest-arc spherical interpolation between two quaternions.

    Args:
        start: Quaternion at amount 0
        end: Quaternion at amount 1
        amount: Interpolation factor

    Returns:
        Unit quaternion [x, y, z, w]
    """
    q0 = np.asarray(normalize_quaternion(start))
    q1 = np.asarray(normalize_quaternion(end))
    if float(np.dot(q0, q1)) < 0.0:
        q1 = -q1
    return normalize_quaternion(quaternion.slerp(q0, q1, float(amount)))


class RotationKind(Enum):
    """Representation held by a RotationTransform."""
    QUATERNION = "quaternion"
    EULER = "euler"


class RotationTransform:
    """
    Rotation stored either as a quaternion or as Euler degrees.

    Euler values carry their axis order: "XYZ" for values in the source
    convention, "ZYX" once remapped to the target engine.
    """

    def __init__(self, kind: RotationKind, value, order: str = "XYZ"):
        self.kind = kind
        if kind == RotationKind.QUATERNION:
            self.value = np.array(value, dtype=np.float64)
        else:
            self.value = np.array(value, dtype=np.float64)
        self.order = order

    @classmethod
    def from_quaternion(cls, quat) -> 'RotationTransform':
        return cls(RotationKind.QUATERNION, quat)

    @classmethod
    def from_euler(cls, degrees, order: str = "XYZ") -> 'RotationTransform':
        if order not in ("XYZ", "ZYX"):
            raise ValueError(f"Unsupported Euler order: {order}")
        return cls(RotationKind.EULER, degrees, order)

    @classmethod
    def identity(cls) -> 'RotationTransform':
        return cls.from_quaternion(quaternion.create(dtype=np.float64))

    @property
    def is_quaternion(self) -> bool:
        return self.kind == RotationKind.QUATERNION

    def as_quaternion(self) -> np.ndarray:
        """Inner value as a quaternion, converting by Euler order if needed."""
        if self.is_quaternion:
            return np.array(self.value)
        if self.order == "ZYX":
            return euler_zyx_to_quaternion(self.value)
        return euler_to_quaternion(self.value)

    def as_euler(self) -> np.ndarray:
        """Inner value as Euler degrees in this rotation's order."""
        if not self.is_quaternion:
            return np.array(self.value)
        if self.order == "ZYX":
            return quaternion_to_zyx_euler(self.value)
        return quaternion_to_euler(self.value)

    def to_quaternion(self) -> 'RotationTransform':
        if self.is_quaternion:
            return self
        return RotationTransform(RotationKind.QUATERNION, self.as_quaternion(), self.order)

    def to_euler(self) -> 'RotationTransform':
        if not self.is_quaternion:
            return self
        return RotationTransform(RotationKind.EULER, self.as_euler(), self.order)

    def slerp(self, other, amount: float) -> 'RotationTransform':
        """
        Slerp toward another rotation; the result is always a quaternion.

        Args:
            other: RotationTransform or raw [x, y, z, w]
            amount: Interpolation factor
        """
        if isinstance(other, RotationTransform):
            other = other.as_quaternion()
        result = slerp_quaternion(self.as_quaternion(), other, amount)
        return RotationTransform(RotationKind.QUATERNION, result, self.order)

    def is_identity(self, tolerance: float = 1e-6) -> bool:
        if self.is_quaternion:
            q = normalize_quaternion(self.value)
            return abs(abs(float(q[3])) - 1.0) <= tolerance
        return bool(np.all(np.abs(np.asarray(self.value)) <= tolerance))

    def copy(self) -> 'RotationTransform':
        return RotationTransform(self.kind, np.array(self.value), self.order)

    def __repr__(self):
        values = ", ".join(f"{v:.4f}" for v in np.asarray(self.value))
        if self.is_quaternion:
            return f"RotationTransform(quaternion=[{values}])"
        return f"RotationTransform(euler_{self.order.lower()}=[{values}])"
