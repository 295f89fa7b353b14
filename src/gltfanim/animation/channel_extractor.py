"""
Channel Extractor

Decodes raw animation channels into keyframe tracks and groups them by the
node they animate, alongside each node's rest-pose value.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import numpy as np

from ..config import settings
from ..core.transform import DecomposedTransform
from .animation import (
    AnimationTarget, AnimationValue, InterpolationType, MalformedChannelError,
    RawPropertyTrack, fit_weights
)

logger = logging.getLogger(__name__)

# Components per keyframe for fixed-size properties
VALUE_SIZES = {
    AnimationTarget.TRANSLATION: 3,
    AnimationTarget.ROTATION: 4,  # Quaternion (x, y, z, w)
    AnimationTarget.SCALE: 3,
}


@dataclass
class RawChannel:
    """
    One channel as handed over by the parser.

    ``values`` is the flat output accessor (None when it could not be read).
    """

    node: int
    target: AnimationTarget
    interpolation: InterpolationType
    times: np.ndarray
    values: Optional[np.ndarray]


@dataclass
class NodeDefaults:
    """Rest-pose values of a node."""

    transform: DecomposedTransform = field(default_factory=DecomposedTransform)
    weights: Optional[List[float]] = None


@dataclass
class NodeChannels:
    """All tracks touching one node, plus the value frame zero starts from."""

    node: int
    defaults: AnimationValue
    tracks: List[RawPropertyTrack] = field(default_factory=list)


def reshape_weights(values: np.ndarray, frame_count: int, width: int) -> np.ndarray:
    """
    Split a flat morph weight buffer into one fixed-width vector per frame.

    Args:
        values: Flat (weight_count * frame_count) floats
        frame_count: Number of keyframes
        width: Output width; vectors are zero padded or truncated

    Returns:
        Array of shape (n, width)
    """
    if frame_count <= 0:
        raise MalformedChannelError("weights channel has no keyframe times")

    weight_count = math.ceil(len(values) / frame_count)
    chunks = [values[i:i + weight_count] for i in range(0, len(values), weight_count)]
    return np.array([fit_weights(chunk, width) for chunk in chunks], dtype=np.float64)


class ChannelExtractor:
    """
    Groups the channels of one animation clip by target node.
    """

    def __init__(self, weight_width: Optional[int] = None):
        """
        Initialize extractor.

        Args:
            weight_width: Morph weight width (defaults to settings)
        """
        self.weight_width = weight_width if weight_width is not None else settings.MORPH_WEIGHT_WIDTH

    def decode_track(self, channel: RawChannel) -> RawPropertyTrack:
        """
        Decode one channel's flat output into per-keyframe values.

        Raises:
            MalformedChannelError: If the output stream is missing or mis-sized
        """
        times = np.asarray(channel.times if channel.times is not None else [], dtype=np.float64)
        track = RawPropertyTrack(
            target=channel.target,
            times=times,
            values=None,
            interpolation=channel.interpolation,
        )

        if channel.values is None or len(channel.values) == 0:
            raise MalformedChannelError(f"{channel.target.value} channel has no output values")

        flat = np.asarray(channel.values, dtype=np.float64).ravel()
        if channel.target == AnimationTarget.WEIGHTS:
            track.values = reshape_weights(flat, len(times), self.weight_width)
            return track

        size = VALUE_SIZES[channel.target]
        if len(flat) % size:
            raise MalformedChannelError(
                f"{channel.target.value} output has {len(flat)} floats, not a multiple of {size}"
            )
        track.values = flat.reshape(-1, size)
        return track

    def default_value(self, defaults: Optional[NodeDefaults]) -> AnimationValue:
        """Rest-pose value for a node (identity when the node is unknown)."""
        if defaults is None:
            return AnimationValue.from_defaults(width=self.weight_width)
        return AnimationValue.from_defaults(defaults.transform, defaults.weights, self.weight_width)

    def group(
        self,
        channels: Iterable[RawChannel],
        defaults: Optional[Dict[int, NodeDefaults]] = None,
    ) -> Dict[int, NodeChannels]:
        """
        Decode channels and group them by target node.

        Malformed channels are kept, with no values, so the merger can report
        them and finish them immediately.

        Args:
            channels: Channels of one animation clip
            defaults: Rest-pose values by node id

        Returns:
            Dictionary mapping node id to its NodeChannels
        """
        defaults = defaults or {}
        grouped: Dict[int, NodeChannels] = {}

        for channel in channels:
            entry = grouped.get(channel.node)
            if entry is None:
                entry = NodeChannels(
                    node=channel.node,
                    defaults=self.default_value(defaults.get(channel.node)),
                )
                grouped[channel.node] = entry

            try:
                track = self.decode_track(channel)
            except MalformedChannelError as e:
                logger.warning("Node %d: %s", channel.node, e)
                track = RawPropertyTrack(
                    target=channel.target,
                    times=np.asarray(channel.times if channel.times is not None else [], dtype=np.float64),
                    values=None,
                    interpolation=channel.interpolation,
                )
            entry.tracks.append(track)

        return grouped
