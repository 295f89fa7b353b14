"""Tests for interpolation modes"""

import math

import numpy as np
import pytest

from src.gltfanim.animation.animation import AnimationTarget, InterpolationType
from src.gltfanim.animation.interpolation import (
    UnsupportedInterpolationError,
    combine,
    combine_property,
    lerp_vector,
    lerp_weights,
)
from src.gltfanim.core.rotation import RotationTransform


def test_none_returns_next_value():
    """No interpolation jumps straight to the upcoming value"""
    result = combine_property(AnimationTarget.TRANSLATION, [0.0, 0.0, 0.0], [1.0, 2.0, 3.0],
                              InterpolationType.NONE, 0.25)
    assert np.array_equal(result, [1.0, 2.0, 3.0])


def test_step_returns_previous_value_unmodified():
    """Step holds the previous value until the keyframe time"""
    previous = np.array([0.1, 0.2, 0.3])
    result = combine_property(AnimationTarget.SCALE, previous, [5.0, 5.0, 5.0],
                              InterpolationType.STEP, 0.9)
    assert result is previous


@pytest.mark.parametrize("target, start, end", [
    (AnimationTarget.TRANSLATION, [0.0, 1.0, 2.0], [4.0, -1.0, 8.0]),
    (AnimationTarget.SCALE, [1.0, 1.0, 1.0], [2.0, 3.0, 4.0]),
    (AnimationTarget.WEIGHTS, [0.0, 0.5, 1.0, 0.0], [1.0, 0.5, 0.0, 0.25]),
])
def test_linear_endpoints(target, start, end):
    """Linear interpolation returns start at 0 and end at 1"""
    at_zero = combine_property(target, start, end, InterpolationType.LINEAR, 0.0)
    at_one = combine_property(target, start, end, InterpolationType.LINEAR, 1.0)
    assert np.allclose(at_zero, start, atol=1e-5)
    assert np.allclose(at_one, end, atol=1e-5)


def test_linear_vector_midpoint():
    """Vectors blend per component"""
    assert np.allclose(lerp_vector([0.0, 0.0, 0.0], [2.0, 4.0, -6.0], 0.5), [1.0, 2.0, -3.0])


def test_weights_blend_to_shorter_length():
    """Weight vectors of different lengths blend over the shared prefix"""
    result = lerp_weights([1.0, 1.0, 1.0, 1.0], [0.0, 0.0], 0.5)
    assert np.allclose(result, [0.5, 0.5])


def test_linear_rotation_uses_slerp():
    """Rotations interpolate along the arc, not per component"""
    start = RotationTransform.identity()
    end = [0.0, 1.0, 0.0, 0.0]  # 180 deg about Y

    result = combine_property(AnimationTarget.ROTATION, start, end, InterpolationType.LINEAR, 0.5)
    assert isinstance(result, RotationTransform)
    assert np.allclose(np.linalg.norm(result.value), 1.0)
    half = math.sqrt(0.5)
    assert np.allclose(np.abs(result.value), [0.0, half, 0.0, half], atol=1e-5)


def test_linear_rotation_endpoints():
    """Slerp at 0 and 1 returns the endpoints"""
    start = RotationTransform.from_quaternion([0.0, 0.0, 0.0, 1.0])
    end = np.array([0.0, 0.0, math.sin(math.pi / 6), math.cos(math.pi / 6)])

    at_zero = combine_property(AnimationTarget.ROTATION, start, end, InterpolationType.LINEAR, 0.0)
    at_one = combine_property(AnimationTarget.ROTATION, start, end, InterpolationType.LINEAR, 1.0)
    assert np.allclose(at_zero.value, start.value, atol=1e-5)
    assert np.allclose(at_one.value, end, atol=1e-5)


def test_cubic_is_unsupported():
    """Cubic spline is a reported failure, never a fallback"""
    with pytest.raises(UnsupportedInterpolationError):
        combine([0.0], [1.0], InterpolationType.CUBICSPLINE, 0.5, lerp_vector)


def test_unsupported_interpolation_is_not_implemented():
    """Callers can catch the failure as NotImplementedError"""
    with pytest.raises(NotImplementedError):
        combine_property(AnimationTarget.ROTATION, RotationTransform.identity(),
                         [0.0, 0.0, 0.0, 1.0], InterpolationType.CUBICSPLINE, 0.5)


def test_interpolation_from_gltf():
    """Sampler strings map onto interpolation types"""
    assert InterpolationType.from_gltf("STEP") == InterpolationType.STEP
    assert InterpolationType.from_gltf("CUBICSPLINE") == InterpolationType.CUBICSPLINE
    assert InterpolationType.from_gltf(None) == InterpolationType.LINEAR
    assert InterpolationType.from_gltf("BEZIER") == InterpolationType.LINEAR
