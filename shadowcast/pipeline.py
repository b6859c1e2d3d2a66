from __future__ import annotations

import os
import time
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .alpha import chroma_distance, classify_masks, normalize_distance, shape_alpha
from .background import estimate_key_color
from .composite import compose_output, composite_alpha, desaturate_edges
from .contracts import AlgorithmParams
from .io import load_raster, save_rgba_png
from .morphology import feather, shave
from .raster import Raster


@dataclass(frozen=True)
class StageTimings:
    load_s: float
    process_s: float
    save_s: float
    total_s: float


@dataclass(frozen=True, eq=False)
class PipelineStages:
    """Every intermediate field of one run; each one is a separately allocated buffer."""

    key_color: Tuple[float, float, float]
    distance: np.ndarray
    max_dist: float
    dist_norm: np.ndarray
    raw_alpha: np.ndarray
    object_mask: np.ndarray
    shadow_mask: np.ndarray
    shaved_mask: np.ndarray
    feather: np.ndarray
    final_alpha: np.ndarray
    edge_rgb: np.ndarray
    output: Raster


def run_stages(raster: Raster, params: AlgorithmParams) -> PipelineStages:
    """
    Deterministic, linear pipeline:
      1) Background key color
      2) Chroma distance + normalization
      3) Raw alpha (opaque cut / fade / clear cut)
      4) Object vs shadow masks
      5) Shave
      6) Feather
      7) Final alpha (+ boost)
      8) Edge desaturation
      9) Grayscale output
    """
    key = estimate_key_color(raster, params.auto_detect_bg, params.manual_bg_color)

    dist, max_dist = chroma_distance(raster, key)
    dist_norm = normalize_distance(dist, max_dist)
    raw_alpha = shape_alpha(dist_norm, params.color_tolerance, params.fade_strength)

    object_mask, shadow_mask = classify_masks(raw_alpha, params.object_threshold)
    shaved = shave(object_mask, params.shave_px)
    ramp = feather(shaved, params.feather_width)

    final_alpha = composite_alpha(raw_alpha, shaved, shadow_mask, ramp, params.alpha_boost)
    edge_rgb = desaturate_edges(raster, final_alpha, params.edge_desat, params.edge_dark)
    output = compose_output(raster, final_alpha, params.global_dark_factor)

    return PipelineStages(
        key_color=key,
        distance=dist,
        max_dist=max_dist,
        dist_norm=dist_norm,
        raw_alpha=raw_alpha,
        object_mask=object_mask,
        shadow_mask=shadow_mask,
        shaved_mask=shaved,
        feather=ramp,
        final_alpha=final_alpha,
        edge_rgb=edge_rgb,
        output=output,
    )


def process(raster: Raster, params: AlgorithmParams) -> Raster:
    """Public entry point: RGBA raster in, shadow-preserving RGBA raster of the same size out."""
    return run_stages(raster, params).output


def process_image(
    image_path: str, out_path: str, params: AlgorithmParams
) -> Tuple[Raster, Raster, StageTimings]:
    """
    Load -> process -> save as PNG. Decode errors surface before any pixel stage runs.

    Returns (decoded source, result, timings) so callers never decode the file twice.
    """
    t0 = time.perf_counter()

    t_load0 = time.perf_counter()
    raster = load_raster(image_path)
    t_load1 = time.perf_counter()

    t_proc0 = time.perf_counter()
    result = process(raster, params)
    t_proc1 = time.perf_counter()

    t_save0 = time.perf_counter()
    out_dir = os.path.dirname(out_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    save_rgba_png(result, out_path)
    t_save1 = time.perf_counter()

    t1 = time.perf_counter()
    return raster, result, StageTimings(
        load_s=t_load1 - t_load0,
        process_s=t_proc1 - t_proc0,
        save_s=t_save1 - t_save0,
        total_s=t1 - t0,
    )
