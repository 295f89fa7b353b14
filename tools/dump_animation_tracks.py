#!/usr/bin/env python3
"""
Dump the merged animation tracks of a GLTF/GLB file.

Prints one line per (clip, node) track, and every frame with ``--verbose``.

Usage:
    python tools/dump_animation_tracks.py path/to/model.glb --target-coords
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import Sequence

import numpy as np

ROOT = Path(__file__).resolve().parents[1]

SRC_DIR = ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))


def _format_frame(frame) -> str:
    transform = frame.value.transform
    t = np.round(np.asarray(transform.translation), 4).tolist()
    r = np.round(np.asarray(transform.rotation.value), 4).tolist()
    s = np.round(np.asarray(transform.scale), 4).tolist()
    w = np.round(frame.value.weights, 4).tolist()
    return f"    t={frame.time:8.4f}  T={t}  R={r}  S={s}  W={w}"


def cli(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Resample the animation channels of a glTF file and print the merged tracks.",
    )
    parser.add_argument("path", help="GLTF or GLB file to inspect.")
    parser.add_argument(
        "--mode",
        choices=("bracketed", "legacy"),
        default=None,
        help="Resampling mode (defaults to the configured mode).",
    )
    parser.add_argument(
        "--target-coords",
        action="store_true",
        help="Remap frames into target engine coordinates before printing.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print every frame, not just a summary per track.",
    )
    args = parser.parse_args(argv)

    from gltfanim import GltfAnimationLoader, UnsupportedInterpolationError, build_animation_sets, settings

    logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)

    if not Path(args.path).exists():
        parser.error(f"File not found: {args.path}")

    try:
        clips = GltfAnimationLoader().resample(args.path, mode=args.mode)
    except UnsupportedInterpolationError as exc:
        print(f"Unsupported animation: {exc}", file=sys.stderr)
        return 2

    if not clips:
        print("No animations found.")
        return 0

    for clip_name, tracks in clips.items():
        if args.target_coords:
            ordered = [anim_set.track for anim_set in build_animation_sets(clip_name, tracks)]
        else:
            ordered = [tracks[node] for node in sorted(tracks)]

        print(f"{clip_name}: {len(ordered)} tracks")
        for track in ordered:
            interp = track.interpolation
            print(
                f"  node {track.target:4d}  frames={len(track.frames):5d}  duration={track.duration:.3f}s  "
                f"T={interp.translation.value} R={interp.rotation.value} "
                f"S={interp.scale.value} W={interp.weights.value}"
            )
            if args.verbose:
                for frame in track.frames:
                    print(_format_frame(frame))

    return 0


if __name__ == "__main__":
    raise SystemExit(cli())
