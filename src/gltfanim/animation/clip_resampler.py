"""
Clip Resampler

Runs extraction and merging for whole animation clips. Clips, and nodes
within a clip, share no state, so they are fanned out over a thread pool.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..config import settings
from .animation import AnimationTrack
from .channel_extractor import ChannelExtractor, NodeDefaults, RawChannel
from .timeline_merger import TimelineMerger

logger = logging.getLogger(__name__)


@dataclass
class ClipSource:
    """Raw channels of one animation clip plus the rest pose of the nodes it touches."""

    name: str
    channels: List[RawChannel] = field(default_factory=list)
    defaults: Dict[int, NodeDefaults] = field(default_factory=dict)


@dataclass
class AnimationSet:
    """A merged track in target engine coordinates, labelled with its clip name."""

    name: str
    track: AnimationTrack


def _workers(max_workers: Optional[int]) -> Optional[int]:
    return max_workers if max_workers is not None else settings.MAX_WORKERS


def resample_clip(
    clip: ClipSource,
    mode: Optional[str] = None,
    weight_width: Optional[int] = None,
    max_workers: Optional[int] = None,
) -> Dict[int, AnimationTrack]:
    """
    Merge every node of one clip.

    Args:
        clip: Clip channels and node defaults
        mode: Resampling mode (defaults to settings)
        weight_width: Morph weight width (defaults to settings)
        max_workers: Thread count for per-node merges (1 = serial)

    Returns:
        Dictionary mapping node id to its AnimationTrack

    Raises:
        UnsupportedInterpolationError: If any channel uses cubic spline interpolation
    """
    grouped = ChannelExtractor(weight_width).group(clip.channels, clip.defaults)
    merger = TimelineMerger(mode)
    nodes = list(grouped.values())
    workers = _workers(max_workers)

    if workers == 1 or len(nodes) <= 1:
        tracks = [merger.merge(node_channels, clip.name) for node_channels in nodes]
    else:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            tracks = list(executor.map(lambda nc: merger.merge(nc, clip.name), nodes))

    logger.debug("Clip '%s': %d node tracks", clip.name, len(tracks))
    return {track.target: track for track in tracks}


def resample_clips(
    clips: Dict[str, ClipSource],
    mode: Optional[str] = None,
    weight_width: Optional[int] = None,
    max_workers: Optional[int] = None,
) -> Dict[str, Dict[int, AnimationTrack]]:
    """
    Merge several clips, one task per clip.

    Args:
        clips: Clips by name
        mode: Resampling mode (defaults to settings)
        weight_width: Morph weight width (defaults to settings)
        max_workers: Thread count for the per-clip fan-out (1 = serial)

    Returns:
        Dictionary mapping clip name to its per-node tracks
    """
    names = list(clips)
    workers = _workers(max_workers)

    def run(name):
        # Nodes run serially inside a clip task
        return resample_clip(clips[name], mode, weight_width, max_workers=1)

    if workers == 1 or len(names) <= 1:
        results = [run(name) for name in names]
    else:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(run, names))

    return dict(zip(names, results))


def build_animation_sets(
    name: str,
    tracks: Dict[int, AnimationTrack],
    keep_rotation_format: Optional[bool] = None,
) -> List[AnimationSet]:
    """
    Convert merged tracks into target engine coordinates.

    Each frame is remapped exactly once here; tracks passed in must still be
    in glTF coordinates.

    Args:
        name: Clip name
        tracks: Per-node tracks from resample_clip
        keep_rotation_format: Keep rotations as quaternions (defaults to settings)

    Returns:
        One AnimationSet per node, ordered by node id
    """
    if keep_rotation_format is None:
        keep_rotation_format = settings.KEEP_ANIMATION_ROTATION_FORMAT

    return [
        AnimationSet(name=name, track=tracks[node].to_target_coords(keep_rotation_format))
        for node in sorted(tracks)
    ]
