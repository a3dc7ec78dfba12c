"""
Configuration
=============
Central registry for the two engine tunables, their UI bounds, and the viewer
defaults. Values can be overridden through environment variables:

    ELECTRON_CLOUD_LOG_LEVEL   logging level name (default INFO)
    ELECTRON_CLOUD_NUM_POINTS  default number of points
    ELECTRON_CLOUD_CUTOFF      default probability cutoff
    ELECTRON_CLOUD_SEED        default sampling seed
"""
import logging
import os

logger = logging.getLogger(__name__)


def _env_number(name, default, cast, low=None, high=None):
    """Read a numeric override, falling back to ``default`` when missing or out of range."""
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a valid %s", name, raw, cast.__name__)
        return default
    if (low is not None and value < low) or (high is not None and value > high):
        logger.warning("Ignoring %s=%r: outside [%s, %s]", name, raw, low, high)
        return default
    return value


# -- Engine tunables --
MIN_NUM_POINTS: int = 100
MAX_NUM_POINTS: int = 20_000
NUM_POINTS_STEP: int = 100
DEFAULT_NUM_POINTS: int = _env_number("ELECTRON_CLOUD_NUM_POINTS", 3000, int, MIN_NUM_POINTS, MAX_NUM_POINTS)

MIN_CUTOFF: float = 0.0
MAX_CUTOFF: float = 1.0
DEFAULT_CUTOFF: float = _env_number("ELECTRON_CLOUD_CUTOFF", 0.05, float, MIN_CUTOFF, MAX_CUTOFF)

DEFAULT_SEED: int = _env_number("ELECTRON_CLOUD_SEED", 42, int, 0)

# -- Viewer --
DEFAULT_STATE_KEY = (1, 0, 0)
DEFAULT_PARTICLE_SIZE: float = 1.5
DEFAULT_OPACITY: float = 0.85
DEFAULT_ROTATION_SPEED: float = 1.0
VIEWER_HEIGHT: int = 700

LOG_LEVEL: str = os.environ.get("ELECTRON_CLOUD_LOG_LEVEL", "INFO").upper()
