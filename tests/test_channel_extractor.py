"""Tests for channel decoding and grouping"""

import logging

import numpy as np
import pytest

from src.gltfanim.animation.animation import AnimationTarget, InterpolationType, MalformedChannelError
from src.gltfanim.animation.channel_extractor import (
    ChannelExtractor,
    NodeDefaults,
    RawChannel,
    reshape_weights,
)
from src.gltfanim.core.transform import DecomposedTransform


def channel(node, target, times, values, interpolation=InterpolationType.LINEAR):
    return RawChannel(
        node=node,
        target=target,
        interpolation=interpolation,
        times=np.array(times, dtype=np.float32),
        values=None if values is None else np.array(values, dtype=np.float32),
    )


def test_group_by_target_node():
    """Every channel lands under the node it names"""
    channels = [
        channel(0, AnimationTarget.TRANSLATION, [0.0, 1.0], [0, 0, 0, 1, 1, 1]),
        channel(3, AnimationTarget.ROTATION, [0.0], [0, 0, 0, 1]),
        channel(0, AnimationTarget.SCALE, [0.0, 2.0], [1, 1, 1, 2, 2, 2]),
    ]
    grouped = ChannelExtractor().group(channels)

    assert set(grouped) == {0, 3}
    assert [t.target for t in grouped[0].tracks] == [AnimationTarget.TRANSLATION, AnimationTarget.SCALE]
    assert len(grouped[3].tracks) == 1
    assert grouped[3].tracks[0].values.shape == (1, 4)


def test_fixed_size_values_are_reshaped():
    """Translations decode to one 3-vector per keyframe"""
    track = ChannelExtractor().decode_track(
        channel(0, AnimationTarget.TRANSLATION, [0.0, 0.5, 1.0], [0, 0, 0, 1, 2, 3, 4, 5, 6])
    )
    assert track.values.shape == (3, 3)
    assert np.allclose(track.values[1], [1, 2, 3])
    assert track.interpolation == InterpolationType.LINEAR


def test_morph_weights_are_padded_per_frame():
    """Two morph targets over three frames pad out to width 4"""
    values = [0.1, 0.2, 0.3, 0.4, 0.5, 0.6]
    track = ChannelExtractor().decode_track(
        channel(0, AnimationTarget.WEIGHTS, [0.0, 1.0, 2.0], values)
    )

    assert track.values.shape == (3, 4)
    assert np.allclose(track.values[0], [0.1, 0.2, 0.0, 0.0])
    assert np.allclose(track.values[2], [0.5, 0.6, 0.0, 0.0])


def test_morph_weights_are_truncated_per_frame():
    """Six morph targets are cut down to the fixed width"""
    values = np.arange(12, dtype=np.float32)
    result = reshape_weights(values, 2, 4)

    assert result.shape == (2, 4)
    assert np.allclose(result[0], [0, 1, 2, 3])
    assert np.allclose(result[1], [6, 7, 8, 9])


def test_morph_weights_without_times_are_malformed():
    """A weight buffer cannot be split without keyframe times"""
    with pytest.raises(MalformedChannelError):
        reshape_weights(np.ones(4), 0, 4)


def test_default_weights_use_fixed_width():
    """Rest-pose weights are zero padded to width 4"""
    defaults = {0: NodeDefaults(weights=[0.75])}
    grouped = ChannelExtractor().group(
        [channel(0, AnimationTarget.WEIGHTS, [0.0], [0.25])], defaults
    )
    assert np.allclose(grouped[0].defaults.weights, [0.75, 0.0, 0.0, 0.0])


def test_defaults_come_from_node_rest_pose():
    """Frame-zero seed carries the node's transform"""
    rest = DecomposedTransform(translation=[0.0, 5.0, 0.0], scale=[2.0, 2.0, 2.0])
    grouped = ChannelExtractor().group(
        [channel(7, AnimationTarget.ROTATION, [0.0], [0, 0, 0, 1])],
        {7: NodeDefaults(transform=rest)},
    )

    seed = grouped[7].defaults
    assert np.allclose(seed.transform.translation, [0.0, 5.0, 0.0])
    assert np.allclose(seed.transform.scale, [2.0, 2.0, 2.0])
    # Seed is a copy
    seed.transform.translation[1] = 0.0
    assert rest.translation[1] == 5.0


def test_unknown_node_defaults_to_identity():
    """Nodes without rest-pose data still get their channels"""
    grouped = ChannelExtractor().group(
        [channel(42, AnimationTarget.SCALE, [0.0], [3, 3, 3])], {0: NodeDefaults()}
    )
    assert 42 in grouped
    assert grouped[42].defaults.transform.is_default()


def test_missing_values_are_kept_and_reported(caplog):
    """A channel without output data stays attributed to its node"""
    with caplog.at_level(logging.WARNING):
        grouped = ChannelExtractor().group(
            [channel(1, AnimationTarget.TRANSLATION, [0.0, 1.0], None)]
        )

    assert len(grouped[1].tracks) == 1
    assert grouped[1].tracks[0].values is None
    assert "no output values" in caplog.text


def test_missized_values_are_malformed():
    """Fixed-size properties need a whole number of vectors"""
    with pytest.raises(MalformedChannelError):
        ChannelExtractor().decode_track(
            channel(0, AnimationTarget.ROTATION, [0.0, 1.0], [0, 0, 0, 1, 0, 0])
        )


def test_custom_weight_width():
    """The morph width is configurable per extractor"""
    track = ChannelExtractor(weight_width=2).decode_track(
        channel(0, AnimationTarget.WEIGHTS, [0.0], [0.1, 0.2, 0.3])
    )
    assert track.values.shape == (1, 2)
