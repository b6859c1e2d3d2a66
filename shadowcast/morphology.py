from __future__ import annotations

import numpy as np

from .distance import chamfer_distance


def shave(object_mask: np.ndarray, shave_px: float) -> np.ndarray:
    """
    Erode the object mask inward by ~shave_px pixels to trim color-fringe halos.

    A pixel survives iff its inward chamfer distance is strictly greater than shave_px.
    shave_px <= 0 returns an unchanged copy.
    """
    if object_mask.ndim != 2:
        raise ValueError(f"Expected 2D mask, got shape={object_mask.shape}")
    if shave_px > 0:
        dist_inside = chamfer_distance(object_mask, invert=True)
        return (dist_inside > float(shave_px)).astype(np.uint8)
    return object_mask.astype(np.uint8, copy=True)


def feather(shaved_mask: np.ndarray, feather_width: float) -> np.ndarray:
    """
    Opacity ramp (float32, 0..1) growing inward from the shaved boundary.

    feather_width > 0: clamp(distance / feather_width, 0, 1); 0 on every pixel outside the
    shaved object, 1 from feather_width pixels inward.
    feather_width <= 0: hard edge, 1.0 on shaved pixels and 0.0 elsewhere.
    """
    if shaved_mask.ndim != 2:
        raise ValueError(f"Expected 2D mask, got shape={shaved_mask.shape}")
    if feather_width > 0:
        dist = chamfer_distance(shaved_mask, invert=True)
        ramp = np.clip(dist.astype(np.float64) / float(feather_width), 0.0, 1.0)
        return ramp.astype(np.float32)
    return np.where(shaved_mask == 1, 1.0, 0.0).astype(np.float32)
