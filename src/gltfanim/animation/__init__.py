"""
Animation System

Resamples per-property glTF keyframe channels into one timeline per node.
"""

from .animation import (
    AnimationFrame, AnimationTarget, AnimationTrack, AnimationValue, InterpolationTargets,
    InterpolationType, MalformedChannelError, RawPropertyTrack
)
from .interpolation import UnsupportedInterpolationError, combine, combine_property
from .channel_extractor import ChannelExtractor, NodeChannels, NodeDefaults, RawChannel
from .timeline_merger import ChannelCursor, TimelineMerger
from .clip_resampler import AnimationSet, ClipSource, build_animation_sets, resample_clip, resample_clips

__all__ = [
    'AnimationFrame',
    'AnimationTarget',
    'AnimationTrack',
    'AnimationValue',
    'InterpolationTargets',
    'InterpolationType',
    'MalformedChannelError',
    'RawPropertyTrack',
    'UnsupportedInterpolationError',
    'combine',
    'combine_property',
    'ChannelExtractor',
    'NodeChannels',
    'NodeDefaults',
    'RawChannel',
    'ChannelCursor',
    'TimelineMerger',
    'AnimationSet',
    'ClipSource',
    'build_animation_sets',
    'resample_clip',
    'resample_clips',
]
