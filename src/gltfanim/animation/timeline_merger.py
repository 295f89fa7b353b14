"""
Timeline Merger

Merges the independently timed channels of one node into a single ordered
list of fully populated frames.

Each output frame is due at the smallest next keyframe time among the
channels that still have keyframes. When several channels are due at the same
time the first one encountered is picked; the composed frame is the same
whichever it is.
"""

import logging
from typing import List, Optional

from ..config import settings
from .animation import (
    AnimationFrame, AnimationTrack, AnimationValue, InterpolationType,
    MalformedChannelError, RawPropertyTrack
)
from .channel_extractor import NodeChannels
from .interpolation import UnsupportedInterpolationError, combine_property

logger = logging.getLogger(__name__)

RESAMPLING_MODES = ("bracketed", "legacy")


class ChannelCursor:
    """
    Iteration state over one track during a merge.

    States: active at ``index`` or ``finished``. A track that cannot be read
    starts out finished and contributes nothing.
    """

    def __init__(self, track: RawPropertyTrack, default, node: int = -1):
        """
        Initialize cursor.

        Args:
            track: Track to consume
            default: Node's rest-pose value for this property
            node: Node id (for diagnostics)
        """
        self.track = track
        self.node = node
        self.index = 0
        self.finished = False
        self.interpolation = track.interpolation
        self.default = default

        try:
            track.validate()
        except MalformedChannelError as e:
            logger.warning("Node %d: skipping malformed channel: %s", node, e)
            self.finished = True

    @property
    def target(self):
        return self.track.target

    def peek_time(self) -> Optional[float]:
        """Time of the next unread keyframe, or None once finished."""
        if self.finished:
            return None
        return self.track.time_at(self.index)

    def advance(self, value: AnimationValue, frame_time: float,
                previous_time: Optional[float], legacy: bool = False):
        """
        Contribute this channel's property to the frame due at ``frame_time``.

        A keyframe at exactly ``frame_time`` is written as-is. Otherwise the
        frame's carried-forward value is blended toward the next keyframe.

        Args:
            value: Frame value being composed (modified in place)
            frame_time: Time of the frame being composed
            previous_time: Time of the previous frame, None for frame zero
            legacy: Advance every frame with fraction key_time / frame_time
        """
        if self.finished:
            return

        key_time = self.track.time_at(self.index)
        key_value = self.track.value_at(self.index)
        if key_time is None or key_value is None:
            logger.warning(
                "Node %d: %s channel ran out of values at keyframe %d",
                self.node, self.target.value, self.index
            )
            self.finished = True
            return

        if key_time == frame_time:
            if not legacy:
                # Coincident keyframes (a jump): the last one at this time wins
                while self.track.time_at(self.index + 1) == frame_time and \
                        self.track.value_at(self.index + 1) is not None:
                    self.index += 1
                key_value = self.track.value_at(self.index)
            value.set(self.target, key_value)
            consumed = True
        else:
            if legacy:
                amount = key_time / frame_time if frame_time else 0.0
                consumed = True
            else:
                origin = previous_time if previous_time is not None else 0.0
                span = key_time - origin
                amount = (frame_time - origin) / span if span > 0.0 else 0.0
                consumed = False

            value.set(self.target, combine_property(
                self.target, value.get(self.target), key_value, self.interpolation, amount
            ))

        if consumed:
            self.index += 1
            if self.index >= len(self.track):
                self.finished = True

    def __repr__(self):
        state = "finished" if self.finished else f"index={self.index}"
        return f"ChannelCursor(node={self.node}, target={self.target.value}, {state})"


class TimelineMerger:
    """
    Streaming k-way merge of one node's channels into an AnimationTrack.
    """

    def __init__(self, mode: Optional[str] = None):
        """
        Initialize merger.

        Args:
            mode: "bracketed" or "legacy" (defaults to settings)
        """
        self.mode = mode or settings.RESAMPLING_MODE
        if self.mode not in RESAMPLING_MODES:
            raise ValueError(f"Unknown resampling mode: {self.mode}")

    @staticmethod
    def _next_due(cursors: List[ChannelCursor]) -> Optional[ChannelCursor]:
        active = [cursor for cursor in cursors if not cursor.finished]
        if not active:
            return None
        return min(active, key=lambda cursor: cursor.peek_time())

    def merge(self, node_channels: NodeChannels, name: str = "") -> AnimationTrack:
        """
        Merge every channel of a node into one timeline.

        Args:
            node_channels: The node's tracks and rest-pose value
            name: Animation clip name recorded on the track

        Returns:
            AnimationTrack with one frame per distinct keyframe time

        Raises:
            UnsupportedInterpolationError: If any channel uses cubic spline interpolation
        """
        node = node_channels.node
        track = AnimationTrack(target=node, name=name)
        legacy = self.mode == "legacy"

        for raw in node_channels.tracks:
            if raw.interpolation == InterpolationType.CUBICSPLINE:
                raise UnsupportedInterpolationError(
                    f"Node {node}: {raw.target.value} channel uses CUBICSPLINE interpolation"
                )

        cursors = [
            ChannelCursor(raw, node_channels.defaults.get(raw.target), node)
            for raw in node_channels.tracks
        ]

        for cursor in cursors:
            if cursor.finished:
                continue
            if track.interpolation.get(cursor.target) != InterpolationType.NONE:
                logger.debug("Node %d: several %s channels, the last one wins", node, cursor.target.value)
            track.interpolation.set(cursor.target, cursor.interpolation)

        frames: List[AnimationFrame] = []
        while True:
            due = self._next_due(cursors)
            if due is None:
                break
            frame_time = due.peek_time()

            if frames:
                value = frames[-1].value.copy()
                previous_time = frames[-1].time
            else:
                value = node_channels.defaults.copy()
                for cursor in cursors:
                    value.set(cursor.target, cursor.default)
                previous_time = None

            for cursor in cursors:
                cursor.advance(value, frame_time, previous_time, legacy)

            frames.append(AnimationFrame(frame_time, value))

        track.frames = frames
        # Times are relative to zero and monotonic
        track.duration = frames[-1].time if frames else 0.0

        logger.debug("Node %d: merged %d channels into %d frames", node, len(cursors), len(frames))
        return track
