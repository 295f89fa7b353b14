"""Rotation and transform math"""
from .rotation import (
    RotationKind,
    RotationTransform,
    euler_to_quaternion,
    euler_zyx_to_quaternion,
    quaternion_to_euler,
    quaternion_to_zyx_euler,
    quaternion_to_zyx_euler_alt,
    slerp_quaternion,
)
from .transform import CoordinateRemapError, DecomposedTransform

__all__ = [
    "RotationKind",
    "RotationTransform",
    "DecomposedTransform",
    "CoordinateRemapError",
    "quaternion_to_euler",
    "euler_to_quaternion",
    "quaternion_to_zyx_euler",
    "quaternion_to_zyx_euler_alt",
    "euler_zyx_to_quaternion",
    "slerp_quaternion",
]
