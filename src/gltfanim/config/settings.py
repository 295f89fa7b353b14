"""
Animation Resampling Settings

All configuration constants for the resampling pipeline.
Modify these values (or config/animation.json) to change behavior.
"""

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# ============================================================================
# Project Paths
# ============================================================================

PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"
OVERRIDES_PATH = CONFIG_DIR / "animation.json"

# ============================================================================
# Channel Extraction
# ============================================================================

# Morph weight vectors are always padded/truncated to this width
MORPH_WEIGHT_WIDTH = 4

# Interpolation used when a sampler does not declare one (glTF default)
DEFAULT_INTERPOLATION = "LINEAR"

# ============================================================================
# Timeline Merging
# ============================================================================

# "bracketed": cursors advance only when their keyframe is reached and
#              interpolate across the surrounding keyframes
# "legacy":    every cursor advances once per frame, fraction = key_time / frame_time
RESAMPLING_MODE = "bracketed"

# Worker count for per-clip and per-node fan-out (None = executor default, 1 = serial)
MAX_WORKERS = None

# ============================================================================
# Rotation Conversion
# ============================================================================

# |sin(roll)| at or above 1 - epsilon is treated as gimbal lock (yaw forced to 0)
GIMBAL_LOCK_EPSILON = 1e-6

# Keep animated rotations as quaternions when converting to target coordinates
# (the renderer slerps between frames)
KEEP_ANIMATION_ROTATION_FORMAT = True

# ============================================================================
# Logging
# ============================================================================

LOG_LEVEL = "WARNING"
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

# ============================================================================
# Overrides - Loaded from JSON Config
# ============================================================================

_OVERRIDABLE = (
    "MORPH_WEIGHT_WIDTH",
    "DEFAULT_INTERPOLATION",
    "RESAMPLING_MODE",
    "MAX_WORKERS",
    "GIMBAL_LOCK_EPSILON",
    "KEEP_ANIMATION_ROTATION_FORMAT",
    "LOG_LEVEL",
    "LOG_FORMAT",
)


def _load_overrides(config_path: Path = OVERRIDES_PATH) -> dict:
    """
    Load setting overrides from JSON configuration file.

    Keys are matched case-insensitively against the overridable constants;
    anything else is ignored.

    Returns:
        Dictionary mapping constant names to override values
    """
    if not config_path.exists():
        return {}

    try:
        with open(config_path, 'r') as f:
            config = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Could not read settings overrides at %s: %s", config_path, e)
        return {}

    if not isinstance(config, dict):
        logger.warning("Settings overrides at %s must be a JSON object", config_path)
        return {}

    overrides = {}
    for key, value in config.items():
        name = str(key).upper()
        if name in _OVERRIDABLE:
            overrides[name] = value
    return overrides


globals().update(_load_overrides())
