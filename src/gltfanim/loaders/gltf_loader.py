"""
GLTF/GLB Animation Loader

Reads animation channels and node rest poses from GLTF and GLB files.
"""

import logging
from pathlib import Path
from typing import Dict, Optional

import numpy as np
import pygltflib

from ..animation import (
    AnimationTarget, AnimationTrack, ClipSource, InterpolationType, NodeDefaults,
    RawChannel, resample_clips
)
from ..core.transform import DecomposedTransform

logger = logging.getLogger(__name__)

COMPONENT_TYPE_SIZES = {
    5120: 1,  # BYTE
    5121: 1,  # UNSIGNED_BYTE
    5122: 2,  # SHORT
    5123: 2,  # UNSIGNED_SHORT
    5125: 4,  # UNSIGNED_INT
    5126: 4,  # FLOAT
}

COMPONENT_COUNTS = {
    'SCALAR': 1,
    'VEC2': 2,
    'VEC3': 3,
    'VEC4': 4,
    'MAT2': 4,
    'MAT3': 9,
    'MAT4': 16,
}

DTYPE_MAP = {
    5120: np.int8,
    5121: np.uint8,
    5122: np.int16,
    5123: np.uint16,
    5125: np.uint32,
    5126: np.float32,
}

# Divisors for normalized integer accessors (glTF 2.0, 3.11)
NORMALIZED_DIVISORS = {
    5120: 127.0,
    5121: 255.0,
    5122: 32767.0,
    5123: 65535.0,
}


class GltfAnimationLoader:
    """
    Loads GLTF/GLB animation clips as raw channels for resampling.
    """

    def load(self, filepath: str) -> Dict[str, ClipSource]:
        """
        Load the animation clips of a GLTF or GLB file.

        Args:
            filepath: Path to .gltf or .glb file

        Returns:
            Dictionary mapping clip name to ClipSource
        """
        filepath = Path(filepath)
        logger.info("Loading animations: %s", filepath)

        gltf = pygltflib.GLTF2().load(str(filepath))
        return self.load_gltf(gltf)

    def load_gltf(self, gltf: pygltflib.GLTF2) -> Dict[str, ClipSource]:
        """
        Extract animation clips from an already parsed document.

        Args:
            gltf: GLTF data

        Returns:
            Dictionary mapping clip name to ClipSource
        """
        clips: Dict[str, ClipSource] = {}

        for anim_idx, gltf_anim in enumerate(gltf.animations or []):
            anim_name = gltf_anim.name if gltf_anim.name else f"Animation_{anim_idx}"
            if anim_name in clips:
                anim_name = f"{anim_name}_{anim_idx}"

            clip = ClipSource(name=anim_name)

            for channel in gltf_anim.channels:
                raw = self._load_channel(gltf, gltf_anim, channel)
                if raw is None:
                    continue
                clip.channels.append(raw)
                if raw.node not in clip.defaults:
                    clip.defaults[raw.node] = self._node_defaults(gltf, raw.node)

            logger.info("  Animation '%s': %d channels, %d nodes",
                        anim_name, len(clip.channels), len(clip.defaults))
            clips[anim_name] = clip

        return clips

    def resample(self, filepath: str, mode: Optional[str] = None,
                 max_workers: Optional[int] = None) -> Dict[str, Dict[int, AnimationTrack]]:
        """
        Load a file and merge every clip into per-node tracks.

        Args:
            filepath: Path to .gltf or .glb file
            mode: Resampling mode (defaults to settings)
            max_workers: Thread count for the per-clip fan-out

        Returns:
            Dictionary mapping clip name to node id to AnimationTrack
        """
        return resample_clips(self.load(filepath), mode=mode, max_workers=max_workers)

    def _load_channel(self, gltf: pygltflib.GLTF2, gltf_anim, channel) -> Optional[RawChannel]:
        """
        Read one channel's sampler data.

        Returns:
            RawChannel, or None when the channel has no usable target
        """
        target_node_idx = channel.target.node
        target_path = channel.target.path

        if target_node_idx is None:
            logger.warning("  Skipping channel without a target node (%s)", target_path)
            return None

        target_property = AnimationTarget.from_gltf_path(target_path)
        if target_property is None:
            logger.warning("  Unknown animation target path: %s", target_path)
            return None

        if channel.sampler is None or channel.sampler >= len(gltf_anim.samplers):
            logger.warning("  Channel %d.%s references a missing sampler", target_node_idx, target_path)
            return RawChannel(target_node_idx, target_property, InterpolationType.LINEAR,
                              np.zeros(0, dtype=np.float32), None)

        sampler = gltf_anim.samplers[channel.sampler]
        interpolation = InterpolationType.from_gltf(sampler.interpolation)

        times = self._get_accessor_data(gltf, sampler.input)
        values = self._get_accessor_data(gltf, sampler.output)

        if times is None or values is None:
            logger.warning("  Missing keyframe data for channel %d.%s", target_node_idx, target_path)

        return RawChannel(
            node=target_node_idx,
            target=target_property,
            interpolation=interpolation,
            times=times if times is not None else np.zeros(0, dtype=np.float32),
            values=values,
        )

    def _node_defaults(self, gltf: pygltflib.GLTF2, node_idx: int) -> NodeDefaults:
        """
        Rest pose of a node: its TRS (or decomposed matrix) and default morph weights.

        Node weights take precedence over the mesh's default weights. pygltflib's Node
        does not model ``weights``, so they are only seen when set on the object.
        """
        nodes = gltf.nodes or []
        if node_idx >= len(nodes):
            logger.warning("  Animation targets missing node %d, using identity rest pose", node_idx)
            return NodeDefaults()

        node = nodes[node_idx]
        transform = DecomposedTransform.from_gltf_node(
            translation=node.translation,
            rotation=node.rotation,
            scale=node.scale,
            matrix=node.matrix,
        )

        weights = getattr(node, "weights", None)
        if not weights and node.mesh is not None and node.mesh < len(gltf.meshes or []):
            weights = gltf.meshes[node.mesh].weights

        return NodeDefaults(transform=transform, weights=list(weights) if weights else None)

    def _get_accessor_data(self, gltf: pygltflib.GLTF2, accessor_idx: Optional[int]) -> Optional[np.ndarray]:
        """
        Get data from an accessor.

        Sparse substitutions are applied on top of the base data (zeros when
        the accessor has no bufferView).

        Args:
            gltf: GLTF data
            accessor_idx: Accessor index

        Returns:
            Flat float32 numpy array, or None if the accessor cannot be read
        """
        if accessor_idx is None or accessor_idx >= len(gltf.accessors or []):
            return None

        accessor = gltf.accessors[accessor_idx]
        component_count = COMPONENT_COUNTS[accessor.type]

        if accessor.bufferView is None:
            # Sparse-only or uninitialized accessors start from zeros
            array = np.zeros(accessor.count * component_count, dtype='f4')
        else:
            array = self._read_elements(
                gltf, accessor.bufferView, accessor.byteOffset or 0,
                accessor.count, accessor.componentType, component_count
            )
            if array is None:
                logger.warning("  Accessor %d is truncated", accessor_idx)
                return None

        if accessor.sparse is not None and accessor.sparse.count:
            array = self._apply_sparse(gltf, accessor, array, accessor_idx)

        if accessor.normalized and accessor.componentType in NORMALIZED_DIVISORS:
            array = np.maximum(array / NORMALIZED_DIVISORS[accessor.componentType], -1.0)

        return array.astype('f4')

    def _apply_sparse(self, gltf: pygltflib.GLTF2, accessor, array: np.ndarray, accessor_idx: int) -> np.ndarray:
        """
        Overwrite the elements named by a sparse accessor's indices.

        Returns:
            Flat float32 array with the substitutions applied
        """
        sparse = accessor.sparse
        component_count = COMPONENT_COUNTS[accessor.type]

        indices = self._read_elements(
            gltf, sparse.indices.bufferView, sparse.indices.byteOffset or 0,
            sparse.count, sparse.indices.componentType, 1
        )
        values = self._read_elements(
            gltf, sparse.values.bufferView, sparse.values.byteOffset or 0,
            sparse.count, accessor.componentType, component_count
        )
        if indices is None or values is None:
            logger.warning("  Accessor %d has unreadable sparse data, using base values", accessor_idx)
            return array

        indices = indices.astype(np.int64)
        in_range = indices < accessor.count
        if not np.all(in_range):
            logger.warning("  Accessor %d has sparse indices past its count", accessor_idx)

        rows = array.reshape(-1, component_count).copy()
        rows[indices[in_range]] = values.reshape(-1, component_count)[in_range]
        return rows.ravel()

    def _read_elements(self, gltf: pygltflib.GLTF2, view_idx: int, byte_offset: int,
                       count: int, component_type: int, component_count: int) -> Optional[np.ndarray]:
        """
        Read ``count`` elements from a bufferView as a flat float32 array.

        Returns:
            Array of count * component_count floats, or None if the data is short
        """
        buffer_view = gltf.bufferViews[view_idx]
        buffer = gltf.buffers[buffer_view.buffer]

        # Get buffer data
        if buffer.uri:
            # External buffer file
            buffer_data = gltf.get_data_from_buffer_uri(buffer.uri)
        else:
            # Embedded buffer (GLB)
            buffer_data = gltf.binary_blob()

        if buffer_data is None:
            return None

        # Calculate offset and stride
        offset = (buffer_view.byteOffset or 0) + byte_offset
        stride = buffer_view.byteStride or 0

        element_size = COMPONENT_TYPE_SIZES[component_type] * component_count

        # Extract data
        if stride == 0 or stride == element_size:
            # Tightly packed
            end_offset = offset + count * element_size
            data = buffer_data[offset:end_offset]
        else:
            # Strided data
            data = bytearray()
            for i in range(count):
                element_offset = offset + i * stride
                data.extend(buffer_data[element_offset:element_offset + element_size])

        if len(data) < count * element_size:
            return None

        # Convert to numpy array
        return np.frombuffer(bytes(data), dtype=DTYPE_MAP[component_type]).astype('f4')
