"""
Animation

Keyframe tracks as read from the asset, and the merged per-node
animation timeline produced from them.
"""

import bisect
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import numpy as np

from ..config import settings
from ..core.rotation import RotationTransform
from ..core.transform import DecomposedTransform

logger = logging.getLogger(__name__)


class MalformedChannelError(ValueError):
    """A channel whose keyframe stream cannot be read."""


class InterpolationType(Enum):
    """Animation interpolation types."""
    NONE = "NONE"
    STEP = "STEP"
    LINEAR = "LINEAR"
    CUBICSPLINE = "CUBICSPLINE"

    @classmethod
    def from_gltf(cls, name: Optional[str]) -> 'InterpolationType':
        """
        Map a glTF sampler interpolation string to an InterpolationType.

        Args:
            name: Sampler interpolation ("LINEAR", "STEP", "CUBICSPLINE") or None

        Returns:
            Matching InterpolationType (the configured default when missing)
        """
        if not name:
            name = settings.DEFAULT_INTERPOLATION
        try:
            return cls(name.upper())
        except ValueError:
            logger.warning("Unknown interpolation '%s', using LINEAR", name)
            return cls.LINEAR


class AnimationTarget(Enum):
    """Animation target properties."""
    TRANSLATION = "translation"
    ROTATION = "rotation"
    SCALE = "scale"
    WEIGHTS = "weights"  # Morph target weights

    @classmethod
    def from_gltf_path(cls, path: str) -> Optional['AnimationTarget']:
        """Return the target for a glTF channel path, or None if unknown."""
        try:
            return cls(path)
        except ValueError:
            return None


@dataclass
class RawPropertyTrack:
    """
    One decoded animation channel.

    ``values`` holds one row per keyframe: 3 floats for translation/scale,
    4 for rotation ([x, y, z, w]) and the fixed morph width for weights.
    """

    target: AnimationTarget
    times: np.ndarray
    values: Optional[np.ndarray]
    interpolation: InterpolationType = InterpolationType.LINEAR

    def __len__(self) -> int:
        return len(self.times)

    def validate(self):
        """
        Check the keyframe stream can be consumed.

        Raises:
            MalformedChannelError: If times or values are missing, or times decrease
        """
        if self.values is None or len(self.values) == 0:
            raise MalformedChannelError(f"{self.target.value} channel has no output values")
        if len(self.times) == 0:
            raise MalformedChannelError(f"{self.target.value} channel has no keyframe times")
        if np.any(np.diff(self.times) < 0.0):
            raise MalformedChannelError(f"{self.target.value} channel times are not monotonic")

    def time_at(self, index: int) -> Optional[float]:
        if 0 <= index < len(self.times):
            return float(self.times[index])
        return None

    def value_at(self, index: int):
        if self.values is not None and 0 <= index < len(self.values):
            return np.array(self.values[index], dtype=np.float64)
        return None

    def __repr__(self):
        n_values = 0 if self.values is None else len(self.values)
        return (
            f"RawPropertyTrack(target={self.target.value}, interpolation={self.interpolation.value}, "
            f"keyframes={len(self.times)}, values={n_values})"
        )


def fit_weights(weights, width: int) -> np.ndarray:
    """Pad with zeros or truncate a weight vector to ``width`` entries."""
    fitted = np.zeros(width, dtype=np.float64)
    if weights is not None:
        weights = np.asarray(weights, dtype=np.float64).ravel()[:width]
        fitted[:len(weights)] = weights
    return fitted


@dataclass
class AnimationValue:
    """Fully composed value of one frame: transform plus morph weights."""

    transform: DecomposedTransform = field(default_factory=DecomposedTransform)
    weights: np.ndarray = field(
        default_factory=lambda: np.zeros(settings.MORPH_WEIGHT_WIDTH, dtype=np.float64)
    )

    @classmethod
    def from_defaults(
        cls,
        transform: Optional[DecomposedTransform] = None,
        weights=None,
        width: Optional[int] = None,
    ) -> 'AnimationValue':
        """
        Build a node's rest-pose value.

        Args:
            transform: Rest-pose transform (identity when None)
            weights: Default morph weights (zeros when None)
            width: Morph weight width (defaults to settings)
        """
        if width is None:
            width = settings.MORPH_WEIGHT_WIDTH
        return cls(
            transform=transform.copy() if transform is not None else DecomposedTransform(),
            weights=fit_weights(weights, width),
        )

    def get(self, target: AnimationTarget):
        if target == AnimationTarget.TRANSLATION:
            return self.transform.translation
        if target == AnimationTarget.ROTATION:
            return self.transform.rotation
        if target == AnimationTarget.SCALE:
            return self.transform.scale
        return self.weights

    def set(self, target: AnimationTarget, value):
        """Replace one property with a copy of value; raw rotations are read as [x, y, z, w]."""
        if target == AnimationTarget.TRANSLATION:
            self.transform.translation = np.array(value, dtype=np.float64)
        elif target == AnimationTarget.ROTATION:
            if isinstance(value, RotationTransform):
                value = value.copy()
            else:
                value = RotationTransform.from_quaternion(value)
            self.transform.rotation = value
        elif target == AnimationTarget.SCALE:
            self.transform.scale = np.array(value, dtype=np.float64)
        else:
            self.weights = np.array(value, dtype=np.float64)

    def copy(self) -> 'AnimationValue':
        return AnimationValue(transform=self.transform.copy(), weights=np.array(self.weights))

    def to_target_coords(self, keep_rotation_format: bool) -> 'AnimationValue':
        return AnimationValue(
            transform=self.transform.to_target_coords(keep_rotation_format),
            weights=np.array(self.weights),
        )


@dataclass
class AnimationFrame:
    """One merged sample: time in seconds plus the composed value."""

    time: float
    value: AnimationValue

    def __repr__(self):
        return f"AnimationFrame(t={self.time:.3f}, v={self.value.transform})"


@dataclass
class InterpolationTargets:
    """Interpolation recorded for each animated property."""

    translation: InterpolationType = InterpolationType.NONE
    rotation: InterpolationType = InterpolationType.NONE
    scale: InterpolationType = InterpolationType.NONE
    weights: InterpolationType = InterpolationType.NONE

    def get(self, target: AnimationTarget) -> InterpolationType:
        return getattr(self, target.value)

    def set(self, target: AnimationTarget, interpolation: InterpolationType):
        setattr(self, target.value, interpolation)


@dataclass
class AnimationTrack:
    """
    Merged animation for a single node.

    Every frame carries all four properties; frame times increase strictly
    and ``duration`` is the last frame's time (0 when there are no frames).
    """

    target: int
    name: str = ""
    frames: List[AnimationFrame] = field(default_factory=list)
    interpolation: InterpolationTargets = field(default_factory=InterpolationTargets)
    duration: float = 0.0

    @property
    def times(self) -> List[float]:
        return [frame.time for frame in self.frames]

    def sample(self, time: float) -> Optional[AnimationValue]:
        """
        Sample the merged track at a given time.

        Args:
            time: Time in seconds, clamped to the track range

        Returns:
            Interpolated value, or None for an empty track
        """
        from .interpolation import combine_property

        if not self.frames:
            return None

        # Clamp time to animation range
        if time <= self.frames[0].time:
            return self.frames[0].value.copy()
        if time >= self.frames[-1].time:
            return self.frames[-1].value.copy()

        # Find surrounding frames
        i = bisect.bisect_right(self.times, time)
        k0 = self.frames[i - 1]
        k1 = self.frames[i]
        t = (time - k0.time) / (k1.time - k0.time)

        result = k0.value.copy()
        for target in AnimationTarget:
            mode = self.interpolation.get(target)
            if mode == InterpolationType.NONE:
                continue
            result.set(target, combine_property(
                target, k0.value.get(target), k1.value.get(target), mode, t
            ))
        return result

    def to_target_coords(self, keep_rotation_format: bool) -> 'AnimationTrack':
        """Copy of this track with every frame remapped into target coordinates."""
        return AnimationTrack(
            target=self.target,
            name=self.name,
            frames=[
                AnimationFrame(frame.time, frame.value.to_target_coords(keep_rotation_format))
                for frame in self.frames
            ],
            interpolation=InterpolationTargets(**vars(self.interpolation)),
            duration=self.duration,
        )

    def __repr__(self):
        return f"AnimationTrack(node={self.target}, name='{self.name}', duration={self.duration:.2f}s, frames={len(self.frames)})"
