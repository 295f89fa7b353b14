"""
Decomposed Transform

Translation / rotation / scale triple plus the one-way remap from glTF
coordinates into target engine coordinates.
"""

from typing import Optional, Sequence

import numpy as np
from pyrr import matrix44

from .rotation import RotationTransform, normalize_quaternion, quaternion_to_zyx_euler


class CoordinateRemapError(ValueError):
    """Raised when a transform is remapped into target coordinates twice."""


class DecomposedTransform:
    """
    A transform expressed as separate translation, rotation and scale.

    ``in_target_coords`` records whether the remap has already been applied.
    """

    def __init__(
        self,
        translation=None,
        rotation: Optional[RotationTransform] = None,
        scale=None,
        in_target_coords: bool = False,
    ):
        self.translation = np.array(
            translation if translation is not None else [0.0, 0.0, 0.0], dtype=np.float64
        )
        self.rotation = rotation if rotation is not None else RotationTransform.identity()
        self.scale = np.array(
            scale if scale is not None else [1.0, 1.0, 1.0], dtype=np.float64
        )
        self.in_target_coords = in_target_coords

    @classmethod
    def identity(cls) -> 'DecomposedTransform':
        return cls()

    @classmethod
    def from_gltf_node(
        cls,
        translation: Optional[Sequence[float]] = None,
        rotation: Optional[Sequence[float]] = None,
        scale: Optional[Sequence[float]] = None,
        matrix: Optional[Sequence[float]] = None,
    ) -> 'DecomposedTransform':
        """
        Build a transform from glTF node fields.

        Args:
            translation: [x, y, z] or None
            rotation: [x, y, z, w] or None
            scale: [x, y, z] or None
            matrix: 16 column-major floats, takes precedence when present

        Returns:
            DecomposedTransform in source coordinates
        """
        if matrix is not None and len(matrix) == 16:
            return cls.from_matrix(matrix)

        return cls(
            translation=translation,
            rotation=RotationTransform.from_quaternion(rotation) if rotation is not None else None,
            scale=scale,
        )

    @classmethod
    def from_matrix(cls, matrix: Sequence[float]) -> 'DecomposedTransform':
        """
        Decompose a column-major glTF matrix into TRS.

        Assumes no shear, as glTF requires for animated nodes.
        """
        # Column-major floats read row by row give pyrr's row-vector layout
        m = np.array(matrix, dtype=np.float64).reshape(4, 4)
        with np.errstate(divide='ignore', invalid='ignore'):
            scale, rotation, translation = matrix44.decompose(m)

        # A mirrored basis is carried by a negative X scale
        scale = np.abs(scale)
        if np.linalg.det(m[:3, :3]) < 0.0:
            scale[0] = -scale[0]

        return cls(
            translation=translation,
            rotation=RotationTransform.from_quaternion(normalize_quaternion(rotation)),
            scale=scale,
        )

    def is_default(self) -> bool:
        """True when this transform does nothing."""
        return (
            bool(np.allclose(self.translation, 0.0))
            and self.rotation.is_identity()
            and bool(np.allclose(self.scale, 1.0))
        )

    def to_target_coords(self, keep_rotation_format: bool) -> 'DecomposedTransform':
        """
        Remap this transform from glTF coordinates into target coordinates.

        The vertical axis is flipped and the rotation handedness reversed. The
        target engine uses clockwise ZYX Euler angles, so quaternion rotations
        are converted to ZYX Euler unless ``keep_rotation_format`` asks to keep
        them as quaternions (animated rotations are slerped downstream).

        Args:
            keep_rotation_format: Keep quaternion rotations as quaternions

        Returns:
            New DecomposedTransform flagged as in target coordinates

        Raises:
            CoordinateRemapError: If this transform was already remapped
        """
        if self.in_target_coords:
            raise CoordinateRemapError("transform is already in target coordinates")

        translation = np.array(self.translation)
        translation[1] = -translation[1]

        if self.rotation.is_quaternion:
            x, y, z, w = np.asarray(self.rotation.value, dtype=np.float64)
            flipped = [-x, y, -z, w]
            if keep_rotation_format:
                rotation = RotationTransform.from_quaternion(flipped)
                rotation.order = "ZYX"
            else:
                rotation = RotationTransform.from_euler(quaternion_to_zyx_euler(flipped), order="ZYX")
        else:
            euler = np.array(quaternion_to_zyx_euler(self.rotation.as_quaternion()))
            euler[0] = -euler[0]
            euler[2] = -euler[2]
            rotation = RotationTransform.from_euler(euler, order="ZYX")

        return DecomposedTransform(
            translation=translation,
            rotation=rotation,
            scale=np.array(self.scale),
            in_target_coords=True,
        )

    def copy(self) -> 'DecomposedTransform':
        return DecomposedTransform(
            translation=np.array(self.translation),
            rotation=self.rotation.copy(),
            scale=np.array(self.scale),
            in_target_coords=self.in_target_coords,
        )

    def __repr__(self):
        return (
            f"DecomposedTransform(t={np.round(np.asarray(self.translation), 4).tolist()}, "
            f"r={self.rotation}, s={np.round(np.asarray(self.scale), 4).tolist()})"
        )
