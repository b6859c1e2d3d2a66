from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from .raster import Raster

KeyColor = Tuple[float, float, float]


def corner_samples(raster: Raster) -> np.ndarray:
    """RGB of the four corners, ordered (0,0), (W-1,0), (0,H-1), (W-1,H-1)."""
    rgb = raster.rgb
    h, w = raster.height, raster.width
    return np.stack(
        [rgb[0, 0], rgb[0, w - 1], rgb[h - 1, 0], rgb[h - 1, w - 1]],
    ).astype(np.float64)


def estimate_key_color(
    raster: Raster,
    auto_detect_bg: bool,
    manual_bg_color: Sequence[float],
) -> KeyColor:
    """
    Background key color: mean of the four corner pixels (not rounded) when auto-detecting,
    otherwise the caller-supplied color. For a 1x1 image all four samples are the same pixel.
    """
    if auto_detect_bg:
        mean = corner_samples(raster).sum(axis=0) / 4.0
        return (float(mean[0]), float(mean[1]), float(mean[2]))

    if len(manual_bg_color) != 3:
        raise ValueError(f"manual_bg_color must be an (r, g, b) triple, got {manual_bg_color!r}")
    r, g, b = manual_bg_color
    return (float(r), float(g), float(b))
