from __future__ import annotations

from dataclasses import dataclass

import numpy as np


class InvalidInputError(ValueError):
    """Raised when a raster cannot enter the pipeline (empty or malformed buffer)."""


@dataclass(frozen=True, eq=False)
class Raster:
    """
    RGBA image, row-major, origin top-left.

    `pixels` is a read-only uint8 ndarray of shape (H, W, 4); flat pixel index is y*W+x.
    """

    pixels: np.ndarray

    def __post_init__(self) -> None:
        px = self.pixels
        if not isinstance(px, np.ndarray) or px.ndim != 3 or px.shape[2] != 4:
            shape = getattr(px, "shape", None)
            raise InvalidInputError(f"Expected RGBA array (H,W,4), got shape={shape}")
        if px.shape[0] == 0 or px.shape[1] == 0:
            raise InvalidInputError(f"Empty raster: {px.shape[1]}x{px.shape[0]}")
        frozen = np.array(px, dtype=np.uint8, copy=True)
        frozen.setflags(write=False)
        object.__setattr__(self, "pixels", frozen)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def rgb(self) -> np.ndarray:
        return self.pixels[..., :3]

    @property
    def alpha(self) -> np.ndarray:
        return self.pixels[..., 3]

    @classmethod
    def from_bytes(cls, width: int, height: int, data: bytes) -> "Raster":
        """Build a Raster from a flat RGBA buffer of length width*height*4."""
        if width <= 0 or height <= 0:
            raise InvalidInputError(f"Invalid raster size: {(width, height)}")
        expected = width * height * 4
        if len(data) != expected:
            raise InvalidInputError(f"Buffer length {len(data)} != {width}*{height}*4 = {expected}")
        arr = np.frombuffer(bytes(data), dtype=np.uint8).reshape(height, width, 4)
        return cls(arr)

    @classmethod
    def from_rgb(cls, rgb: np.ndarray) -> "Raster":
        """Wrap an (H,W,3) uint8 array as a fully opaque Raster."""
        if rgb.ndim != 3 or rgb.shape[2] != 3:
            raise InvalidInputError(f"Expected RGB image (H,W,3), got shape={rgb.shape}")
        a = np.full(rgb.shape[:2] + (1,), 255, dtype=np.uint8)
        return cls(np.concatenate([rgb.astype(np.uint8, copy=False), a], axis=2))

    def to_bytes(self) -> bytes:
        return self.pixels.tobytes()
