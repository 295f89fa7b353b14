"""
gltfanim - glTF Animation Resampling

Merges independently timed glTF animation channels into one timeline per
node, with rotations remapped to a ZYX Euler target engine.
"""

# Configuration
from .config import settings

# Core math
from .core.rotation import RotationKind, RotationTransform
from .core.transform import CoordinateRemapError, DecomposedTransform

# Animation
from .animation import (
    AnimationFrame,
    AnimationSet,
    AnimationTarget,
    AnimationTrack,
    AnimationValue,
    ChannelExtractor,
    ClipSource,
    InterpolationType,
    MalformedChannelError,
    NodeDefaults,
    RawChannel,
    TimelineMerger,
    UnsupportedInterpolationError,
    build_animation_sets,
    resample_clip,
    resample_clips,
)

# Loaders
from .loaders import GltfAnimationLoader

__version__ = "0.1.0"
__all__ = [
    "settings",
    # Core
    "RotationKind",
    "RotationTransform",
    "DecomposedTransform",
    "CoordinateRemapError",
    # Animation
    "AnimationFrame",
    "AnimationSet",
    "AnimationTarget",
    "AnimationTrack",
    "AnimationValue",
    "ChannelExtractor",
    "ClipSource",
    "InterpolationType",
    "MalformedChannelError",
    "NodeDefaults",
    "RawChannel",
    "TimelineMerger",
    "UnsupportedInterpolationError",
    "build_animation_sets",
    "resample_clip",
    "resample_clips",
    # Loaders
    "GltfAnimationLoader",
]
