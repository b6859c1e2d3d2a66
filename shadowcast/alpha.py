from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from .config import EPS
from .raster import Raster


@dataclass(frozen=True)
class FadeThresholds:
    """Alpha-shaper cut points in normalized-distance space."""

    opaque_dist_norm: float
    clear_dist_norm: float

    @property
    def has_fade_zone(self) -> bool:
        return self.clear_dist_norm > self.opaque_dist_norm


def chroma_distance(raster: Raster, key: Sequence[float]) -> Tuple[np.ndarray, float]:
    """
    Euclidean RGB distance of every pixel to the key color (input alpha ignored).

    Returns:
      - dist: float32 (H, W)
      - max_dist: largest distance, taken before the float32 cast
    """
    rgb = raster.rgb.astype(np.float64)
    dr = rgb[..., 0] - float(key[0])
    dg = rgb[..., 1] - float(key[1])
    db = rgb[..., 2] - float(key[2])
    d = np.sqrt(dr * dr + dg * dg + db * db)
    return d.astype(np.float32), float(d.max())


def normalize_distance(dist: np.ndarray, max_dist: float) -> np.ndarray:
    """
    Scale distances into [0, 1). EPS keeps a uniform image (max_dist == 0) at 0 everywhere.
    Kept in float64 so threshold comparisons see the same values the fade math does.
    """
    return dist.astype(np.float64) / (float(max_dist) + EPS)


def fade_thresholds(color_tolerance: float, fade_strength: float) -> FadeThresholds:
    return FadeThresholds(
        opaque_dist_norm=float(color_tolerance) / 255.0,
        clear_dist_norm=(float(color_tolerance) * float(fade_strength)) / 255.0,
    )


def shape_alpha(dist_norm: np.ndarray, color_tolerance: float, fade_strength: float) -> np.ndarray:
    """
    Three-zone raw alpha (uint8):
      - dist_norm <= opaque           -> 0 (background)
      - dist_norm >  clear            -> 255
      - opaque < dist_norm <= clear   -> floor(255 * linear fade)

    The zones are checked in that order. When the fade zone has zero (or negative) width,
    the middle band is empty and every pixel above `opaque` is 255, so no division by zero
    can occur.
    """
    th = fade_thresholds(color_tolerance, fade_strength)
    raw = np.zeros(dist_norm.shape, dtype=np.uint8)

    # the opaque cut wins over the clear cut when fade_strength < 1
    raw[(dist_norm > th.opaque_dist_norm) & (dist_norm > th.clear_dist_norm)] = 255
    fading = (dist_norm > th.opaque_dist_norm) & (dist_norm <= th.clear_dist_norm)
    if th.has_fade_zone and fading.any():
        span = th.clear_dist_norm - th.opaque_dist_norm
        fade = (dist_norm[fading] - th.opaque_dist_norm) / span
        raw[fading] = np.floor(255.0 * fade).astype(np.uint8)
    return raw


def classify_masks(raw_alpha: np.ndarray, object_threshold: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Split raw alpha into (object_mask, shadow_mask), both uint8 0/1.
    Pixels with raw alpha 0 are in neither mask.
    """
    thr = int(object_threshold)
    a = raw_alpha.astype(np.int32)
    object_mask = (a >= thr).astype(np.uint8)
    shadow_mask = ((a > 0) & (a < thr)).astype(np.uint8)
    return object_mask, shadow_mask
