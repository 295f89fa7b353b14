"""
Interpolation

Stateless blending of a carried-forward property value toward a keyframe
value, one blend function per property kind.
"""

from typing import Callable, Dict

import numpy as np

from ..core.rotation import RotationTransform
from .animation import AnimationTarget, InterpolationType


class UnsupportedInterpolationError(NotImplementedError):
    """Raised when an interpolation mode cannot be evaluated (cubic spline)."""


def lerp_vector(previous, new_value, amount: float) -> np.ndarray:
    """Per-component linear interpolation of a 3-vector."""
    v0 = np.asarray(previous, dtype=np.float64)
    v1 = np.asarray(new_value, dtype=np.float64)
    return v0 * (1.0 - amount) + v1 * amount


def lerp_weights(previous, new_value, amount: float) -> np.ndarray:
    """Linear interpolation of morph weights; the shorter vector sets the length."""
    v0 = np.asarray(previous, dtype=np.float64)
    v1 = np.asarray(new_value, dtype=np.float64)
    n = min(len(v0), len(v1))
    return (1.0 - amount) * v0[:n] + amount * v1[:n]


def slerp_rotation(previous, new_value, amount: float) -> RotationTransform:
    """Shortest-arc slerp; ``new_value`` may be a RotationTransform or raw [x, y, z, w]."""
    if not isinstance(previous, RotationTransform):
        previous = RotationTransform.from_quaternion(previous)
    return previous.slerp(new_value, amount)


BLENDERS: Dict[AnimationTarget, Callable] = {
    AnimationTarget.TRANSLATION: lerp_vector,
    AnimationTarget.ROTATION: slerp_rotation,
    AnimationTarget.SCALE: lerp_vector,
    AnimationTarget.WEIGHTS: lerp_weights,
}


def combine(previous, new_value, interpolation: InterpolationType, amount: float, blend: Callable):
    """
    Combine a carried-forward value with the next keyframe value.

    Args:
        previous: Value currently held by the frame
        new_value: Keyframe value the channel is moving toward
        interpolation: Channel interpolation mode
        amount: Interpolation fraction
        blend: Linear blend for this value kind

    Returns:
        Combined value

    Raises:
        UnsupportedInterpolationError: For cubic spline channels
    """
    if interpolation == InterpolationType.NONE:
        # Undefined; the upcoming value is the least surprising choice
        return new_value
    if interpolation == InterpolationType.STEP:
        return previous
    if interpolation == InterpolationType.LINEAR:
        return blend(previous, new_value, amount)
    raise UnsupportedInterpolationError(f"{interpolation.value} interpolation is not supported")


def combine_property(target: AnimationTarget, previous, new_value,
                     interpolation: InterpolationType, amount: float):
    """combine() with the blend function chosen by property kind."""
    return combine(previous, new_value, interpolation, amount, BLENDERS[target])
