from __future__ import annotations

import numpy as np

from .config import LUMA_WEIGHTS
from .raster import Raster


def composite_alpha(
    raw_alpha: np.ndarray,
    shaved_mask: np.ndarray,
    shadow_mask: np.ndarray,
    feather: np.ndarray,
    alpha_boost: float,
) -> np.ndarray:
    """
    Final per-pixel alpha (uint8):
      - shaved object      -> raw * feather
      - else shadow        -> raw (untouched by shave/feather)
      - else               -> 0
    then any non-zero value is multiplied by alpha_boost and capped at 255.
    Fractions are truncated toward zero when stored.
    """
    shapes = {raw_alpha.shape, shaved_mask.shape, shadow_mask.shape, feather.shape}
    if len(shapes) != 1:
        raise ValueError(f"Field shapes do not match: {sorted(shapes)}")

    raw = raw_alpha.astype(np.float64)
    inside = shaved_mask == 1
    shadow_only = ~inside & (shadow_mask == 1)

    a = np.zeros(raw.shape, dtype=np.float64)
    a[inside] = raw[inside] * feather[inside].astype(np.float64)
    a[shadow_only] = raw[shadow_only]

    boosted = a > 0
    a[boosted] = np.minimum(255.0, a[boosted] * float(alpha_boost))
    return np.clip(a, 0.0, 255.0).astype(np.uint8)


def luma(rgb: np.ndarray) -> np.ndarray:
    """Grayscale value 0.2989R + 0.5870G + 0.1140B as float64 (H, W)."""
    rgb = rgb.astype(np.float64)
    wr, wg, wb = LUMA_WEIGHTS
    return wr * rgb[..., 0] + wg * rgb[..., 1] + wb * rgb[..., 2]


def desaturate_edges(raster: Raster, alpha: np.ndarray, edge_desat: float, edge_dark: float) -> np.ndarray:
    """
    Gray-blend and darken partially transparent pixels (0 < alpha < 255) of the original RGB.

    Returns float32 (H, W, 3) clipped to [0, 255]. compose_output() does not consume this;
    it is kept as a pipeline stage so the edge treatment stays inspectable.
    """
    rgb = raster.rgb.astype(np.float64)
    out = rgb.copy()
    edge = (alpha > 0) & (alpha < 255)
    if edge.any():
        gray = luma(rgb)[edge][:, None]
        blended = rgb[edge] * (1.0 - float(edge_desat)) + gray * float(edge_desat)
        out[edge] = blended * float(edge_dark)
    return np.clip(out, 0.0, 255.0).astype(np.float32)


def compose_output(raster: Raster, alpha: np.ndarray, global_dark_factor: float) -> Raster:
    """
    Build the output raster: R = G = B = clamp(luma(original) * global_dark_factor, 0, 255),
    rounded half-to-even, with `alpha` as the alpha channel.
    """
    if alpha.shape != (raster.height, raster.width):
        raise ValueError(f"Alpha shape {alpha.shape} does not match raster {(raster.height, raster.width)}")

    gray = np.clip(luma(raster.rgb) * float(global_dark_factor), 0.0, 255.0)
    g8 = np.rint(gray).astype(np.uint8)
    rgba = np.dstack([g8, g8, g8, alpha.astype(np.uint8, copy=False)])
    return Raster(rgba)
