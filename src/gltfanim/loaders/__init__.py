"""Loader utilities for glTF animation data."""

from .gltf_loader import GltfAnimationLoader

__all__ = ['GltfAnimationLoader']
