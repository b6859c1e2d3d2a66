"""
Centralized configuration constants for the shadow-preserving cutout pipeline.

Ground rules:
- one key color per image
- every stage allocates its own output buffer
"""

# Sentinel for "no seed reachable" in the chamfer distance field.
INF = 1e6
# Guards the distance normalization against a uniform-color image.
EPS = 1e-6

LUMA_WEIGHTS = (0.2989, 0.5870, 0.1140)

# Stock parameter set (caller-side defaults; the core itself takes every field explicitly).
DEFAULT_PARAMS = {
    # RGB distance (0-128) still counted as background.
    "color_tolerance": 15.0,
    # Multiplier on color_tolerance where the shadow fade ends (1-100).
    "fade_strength": 50.0,
    # Pixels eroded from the object edge (0-50).
    "shave_px": 0.0,
    # Soft-edge ramp width in pixels (0-100). Values > 5 can open a gap between object and shadow.
    "feather_width": 0.0,
    # Raw alpha separating solid object from shadow (1-254).
    "object_threshold": 210,
    "edge_desat": 1.0,
    "edge_dark": 0.0,
    # Brightness scale of the grayscale output (0 = black, 1 = original luma).
    "global_dark_factor": 0.0,
    # Shadow densification (1-3), like stacking the layer on itself.
    "alpha_boost": 2.5,
    "auto_detect_bg": True,
    "manual_bg_color": (0, 255, 0),
}

ALLOWED_EXTS = {".jpg", ".jpeg", ".png"}
MAX_FILES = 10
DEFAULT_WORKERS = 1

OUTPUT_PREFIX = "processed_"
ARCHIVE_NAME = "shadowcast_batch.zip"
MANIFEST_NAME = "manifest.json"

# Before/after sheet
COMPARE_CHECKER_SIZE = 16
COMPARE_CHECKER_COLORS = ((235, 235, 235), (200, 200, 200))
COMPARE_GAP = 8
