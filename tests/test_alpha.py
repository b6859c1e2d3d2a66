import unittest

import numpy as np

from shadowcast.alpha import (
    chroma_distance,
    classify_masks,
    fade_thresholds,
    normalize_distance,
    shape_alpha,
)
from shadowcast.background import estimate_key_color
from shadowcast.raster import Raster


def _solid(h: int, w: int, rgb) -> np.ndarray:
    img = np.zeros((h, w, 4), dtype=np.uint8)
    img[..., :3] = rgb
    img[..., 3] = 255
    return img


class TestKeyColor(unittest.TestCase):
    def test_auto_detect_is_unrounded_corner_mean(self):
        img = _solid(3, 4, (0, 0, 0))
        img[0, 0, :3] = (10, 0, 0)
        img[0, 3, :3] = (11, 0, 0)
        img[2, 0, :3] = (0, 1, 0)
        img[2, 3, :3] = (0, 0, 3)
        img[1, 1, :3] = (255, 255, 255)  # interior pixels never sampled
        key = estimate_key_color(Raster(img), True, (0, 255, 0))
        self.assertEqual(key, (5.25, 0.25, 0.75))

    def test_single_pixel_image(self):
        key = estimate_key_color(Raster(_solid(1, 1, (9, 8, 7))), True, (0, 0, 0))
        self.assertEqual(key, (9.0, 8.0, 7.0))

    def test_manual_color_used_when_auto_off(self):
        key = estimate_key_color(Raster(_solid(2, 2, (1, 2, 3))), False, (0, 255, 0))
        self.assertEqual(key, (0.0, 255.0, 0.0))


class TestChromaDistance(unittest.TestCase):
    def test_distance_and_max(self):
        img = _solid(1, 2, (0, 255, 0))
        img[0, 1, :3] = (255, 0, 0)
        img[0, 1, 3] = 0  # input alpha is ignored
        dist, max_dist = chroma_distance(Raster(img), (0.0, 255.0, 0.0))

        self.assertEqual(dist.dtype, np.float32)
        self.assertEqual(dist[0, 0], 0.0)
        self.assertAlmostEqual(float(dist[0, 1]), np.sqrt(2 * 255.0**2), places=3)
        self.assertAlmostEqual(max_dist, np.sqrt(2 * 255.0**2), places=9)

    def test_uniform_image_normalizes_to_zero(self):
        dist, max_dist = chroma_distance(Raster(_solid(3, 3, (40, 50, 60))), (40, 50, 60))
        self.assertEqual(max_dist, 0.0)
        norm = normalize_distance(dist, max_dist)
        self.assertTrue(np.isfinite(norm).all())
        self.assertTrue((norm == 0).all())


class TestShapeAlpha(unittest.TestCase):
    def test_three_zones(self):
        th = fade_thresholds(15, 2)
        mid = (th.opaque_dist_norm + th.clear_dist_norm) / 2.0
        dist_norm = np.array([[0.0, th.opaque_dist_norm, mid, th.clear_dist_norm, 0.5]])
        raw = shape_alpha(dist_norm, 15, 2)

        self.assertEqual(raw.dtype, np.uint8)
        self.assertEqual(raw.tolist(), [[0, 0, 127, 255, 255]])

    def test_fade_is_floored(self):
        th = fade_thresholds(10, 3)
        # fade = 0.999 -> 254.745 -> 254
        d = th.opaque_dist_norm + 0.999 * (th.clear_dist_norm - th.opaque_dist_norm)
        raw = shape_alpha(np.array([[d]]), 10, 3)
        self.assertEqual(int(raw[0, 0]), 254)

    def test_zero_width_fade_zone_is_fully_opaque_above_cut(self):
        dist_norm = np.array([[0.0, 15 / 255.0, 0.06, 0.5, 1.0]])
        with np.errstate(all="raise"):
            raw = shape_alpha(dist_norm, 15, 1)
        self.assertEqual(raw.tolist(), [[0, 0, 255, 255, 255]])

    def test_inverted_fade_zone_does_not_divide(self):
        dist_norm = np.array([[0.01, 0.03, 0.9]])
        with np.errstate(all="raise"):
            raw = shape_alpha(dist_norm, 5, 0.5)
        self.assertEqual(raw.tolist(), [[0, 255, 255]])

    def test_opaque_cut_wins_when_clear_cut_is_lower(self):
        th = fade_thresholds(15, 0.5)
        # clear = 0.0294 < 0.04 <= opaque = 0.0588: still background
        dist_norm = np.array([[0.02, 0.04, th.opaque_dist_norm, 0.07]])
        raw = shape_alpha(dist_norm, 15, 0.5)
        self.assertEqual(raw.tolist(), [[0, 0, 0, 255]])

    def test_zero_fade_strength(self):
        th = fade_thresholds(15, 0)
        self.assertEqual(th.clear_dist_norm, 0.0)
        dist_norm = np.array([[0.0, 0.001, 0.04, th.opaque_dist_norm, 0.06, 1.0]])
        with np.errstate(all="raise"):
            raw = shape_alpha(dist_norm, 15, 0)
        self.assertEqual(raw.tolist(), [[0, 0, 0, 0, 255, 255]])

    def test_zero_fade_strength_keeps_near_key_pixels_transparent(self):
        img = _solid(3, 3, (0, 255, 0))
        img[1, 1, :3] = (0, 250, 0)
        img[1, 2, :3] = (255, 0, 0)
        dist, max_dist = chroma_distance(Raster(img), (0.0, 255.0, 0.0))
        raw = shape_alpha(normalize_distance(dist, max_dist), 15, 0)
        self.assertEqual(int(raw[1, 1]), 0)
        self.assertEqual(int(raw[1, 2]), 255)


class TestClassifyMasks(unittest.TestCase):
    def test_object_shadow_background_split(self):
        raw = np.array([[0, 1, 209, 210, 255]], dtype=np.uint8)
        obj, shadow = classify_masks(raw, 210)
        self.assertEqual(obj.tolist(), [[0, 0, 0, 1, 1]])
        self.assertEqual(shadow.tolist(), [[0, 1, 1, 0, 0]])
        self.assertFalse((obj & shadow).any())


if __name__ == "__main__":
    unittest.main()
