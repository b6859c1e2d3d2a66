from __future__ import annotations

import json
import zipfile
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple

import cv2
import numpy as np
from PIL import Image

from .config import (
    COMPARE_CHECKER_COLORS,
    COMPARE_CHECKER_SIZE,
    COMPARE_GAP,
    DEFAULT_PARAMS,
    OUTPUT_PREFIX,
)
from .contracts import AlgorithmParams
from .raster import Raster


def load_raster(path: str) -> Raster:
    """
    Decode an image file into an RGBA Raster (uint8).

    Gray, BGR and BGRA sources are converted; 16-bit sources are reduced to 8 bits.
    """
    img = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if img is None:
        raise FileNotFoundError(f"Could not read image: {path}")

    if img.dtype == np.uint16:
        img = np.round(img.astype(np.float32) / 257.0).astype(np.uint8)
    elif img.dtype != np.uint8:
        raise ValueError(f"Unsupported pixel type {img.dtype} in {path}")

    if img.ndim == 2:
        rgba = cv2.cvtColor(img, cv2.COLOR_GRAY2RGBA)
    elif img.shape[2] == 3:
        rgba = cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)
    elif img.shape[2] == 4:
        rgba = cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)
    else:
        raise ValueError(f"Unsupported channel count {img.shape[2]} in {path}")
    return Raster(rgba)


def raster_to_pil(raster: Raster) -> Image.Image:
    return Image.fromarray(np.ascontiguousarray(raster.pixels))


def save_rgba_png(raster: Raster, out_path: str) -> None:
    """
    Save as lossless RGBA PNG.
    """
    raster_to_pil(raster).save(str(out_path), format="PNG", optimize=False)


def save_mask_png(field: np.ndarray, out_path: str, scale: float = 255.0) -> None:
    """Write a 2D mask / scalar field as an 8-bit grayscale PNG (debug output)."""
    if field.ndim != 2:
        raise ValueError(f"Expected 2D field, got shape={field.shape}")
    f = np.clip(field.astype(np.float64) * float(scale), 0.0, 255.0).astype(np.uint8)
    p = Path(out_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(f).save(str(p), format="PNG")


def write_json(path: str, data: Dict[str, Any]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")


def load_params(path: Optional[str] = None, **overrides) -> AlgorithmParams:
    """
    Stock parameters, updated from a JSON object file (snake_case or camelCase keys),
    then from keyword overrides. Unknown keys are ignored; bad values raise ValidationError.
    """
    merged: Dict[str, Any] = dict(DEFAULT_PARAMS)
    if path is not None:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise ValueError(f"Parameter file must hold a JSON object: {path}")
        merged.update(_snake_case_keys(payload))
    merged.update({k: v for k, v in overrides.items() if v is not None})
    return AlgorithmParams(**merged)


def _snake_case_keys(payload: Dict[str, Any]) -> Dict[str, Any]:
    fields = AlgorithmParams.model_fields
    by_alias = {f.alias: name for name, f in fields.items() if f.alias}
    out = {}
    for key, value in payload.items():
        name = by_alias.get(key, key)
        if name in fields:
            out[name] = value
    return out


def output_name_for(source_path: str) -> str:
    """Example: "shots/mug 1.jpg" -> "processed_mug 1.png" """
    return f"{OUTPUT_PREFIX}{Path(source_path).stem}.png"


def write_archive(paths: Iterable[str], archive_path: str) -> str:
    """Bundle produced PNGs into one zip (flat, by file name)."""
    p = Path(archive_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(str(p), "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for src in paths:
            zf.write(src, arcname=Path(src).name)
    return str(p)


def _checkerboard(h: int, w: int, size: int = COMPARE_CHECKER_SIZE) -> np.ndarray:
    ys, xs = np.indices((h, w))
    odd = ((ys // size) + (xs // size)) % 2 == 1
    light, dark = COMPARE_CHECKER_COLORS
    rgb = np.empty((h, w, 3), dtype=np.uint8)
    rgb[~odd] = light
    rgb[odd] = dark
    return np.dstack([rgb, np.full((h, w), 255, dtype=np.uint8)])


def make_comparison(
    before: Raster,
    after: Raster,
    background: Optional[Tuple[int, int, int]] = None,
    gap: int = COMPARE_GAP,
) -> Image.Image:
    """
    Side-by-side before/after sheet. The processed image is composited over a checkerboard
    (or a solid `background` color) so the preserved shadow is visible.
    """
    if (before.width, before.height) != (after.width, after.height):
        raise ValueError(
            f"Before/after sizes differ: {(before.width, before.height)} vs {(after.width, after.height)}"
        )
    h, w = after.height, after.width

    if background is None:
        base = _checkerboard(h, w)
    else:
        base = np.zeros((h, w, 4), dtype=np.uint8)
        base[..., :3] = background
        base[..., 3] = 255
    shown = Image.alpha_composite(Image.fromarray(base), raster_to_pil(after))

    left = Image.alpha_composite(Image.new("RGBA", (w, h), (255, 255, 255, 255)), raster_to_pil(before))

    sheet = Image.new("RGB", (2 * w + gap, h), (255, 255, 255))
    sheet.paste(left.convert("RGB"), (0, 0))
    sheet.paste(shown.convert("RGB"), (w + gap, 0))
    return sheet
