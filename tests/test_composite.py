import unittest

import numpy as np

from shadowcast.composite import compose_output, composite_alpha, desaturate_edges, luma
from shadowcast.raster import Raster


class TestCompositeAlpha(unittest.TestCase):
    def _run(self, raw, shaved, shadow, feather, boost):
        return composite_alpha(
            np.array([raw], dtype=np.uint8),
            np.array([shaved], dtype=np.uint8),
            np.array([shadow], dtype=np.uint8),
            np.array([feather], dtype=np.float32),
            boost,
        )[0].tolist()

    def test_object_shadow_background(self):
        out = self._run(
            raw=[255, 255, 100, 100, 0, 230],
            shaved=[1, 1, 0, 0, 0, 0],
            shadow=[0, 0, 1, 0, 0, 0],
            feather=[1.0, 0.5, 0.0, 0.0, 0.0, 0.0],
            boost=1.0,
        )
        # the last pixel is object before shave but not after: dropped
        self.assertEqual(out, [255, 127, 100, 0, 0, 0])

    def test_boost_caps_and_truncates(self):
        out = self._run(
            raw=[100, 120, 83, 0],
            shaved=[0, 0, 0, 0],
            shadow=[1, 1, 1, 0],
            feather=[0.0, 0.0, 0.0, 0.0],
            boost=2.5,
        )
        self.assertEqual(out, [250, 255, 207, 0])

    def test_shadow_ignores_feather(self):
        out = self._run(raw=[90], shaved=[0], shadow=[1], feather=[0.25], boost=1.0)
        self.assertEqual(out, [90])

    def test_range_for_random_inputs(self):
        rng = np.random.default_rng(3)
        raw = rng.integers(0, 256, size=(16, 16)).astype(np.uint8)
        shaved = (raw >= 200).astype(np.uint8)
        shadow = ((raw > 0) & (raw < 200)).astype(np.uint8)
        ramp = rng.random((16, 16)).astype(np.float32)
        out = composite_alpha(raw, shaved, shadow, ramp, 3.0)
        self.assertEqual(out.dtype, np.uint8)
        self.assertTrue((out[raw == 0] == 0).all())

    def test_shape_mismatch(self):
        with self.assertRaises(ValueError):
            composite_alpha(
                np.zeros((2, 2), np.uint8),
                np.zeros((2, 3), np.uint8),
                np.zeros((2, 2), np.uint8),
                np.zeros((2, 2), np.float32),
                1.0,
            )


class TestEdgeAndOutput(unittest.TestCase):
    def setUp(self):
        img = np.zeros((1, 3, 4), dtype=np.uint8)
        img[0, :, :3] = [(200, 100, 50), (200, 100, 50), (255, 255, 255)]
        img[..., 3] = 255
        self.raster = Raster(img)

    def test_desaturate_only_partial_alpha(self):
        alpha = np.array([[128, 255, 0]], dtype=np.uint8)
        edge = desaturate_edges(self.raster, alpha, edge_desat=1.0, edge_dark=0.5)
        gray = 0.2989 * 200 + 0.5870 * 100 + 0.1140 * 50

        self.assertEqual(edge.dtype, np.float32)
        np.testing.assert_allclose(edge[0, 0], [gray * 0.5] * 3, rtol=1e-6)
        np.testing.assert_array_equal(edge[0, 1], [200, 100, 50])
        np.testing.assert_array_equal(edge[0, 2], [255, 255, 255])

    def test_partial_desaturation_blend(self):
        alpha = np.array([[1, 0, 0]], dtype=np.uint8)
        edge = desaturate_edges(self.raster, alpha, edge_desat=0.5, edge_dark=1.0)
        gray = 0.2989 * 200 + 0.5870 * 100 + 0.1140 * 50
        np.testing.assert_allclose(edge[0, 0], [(200 + gray) / 2, (100 + gray) / 2, (50 + gray) / 2], rtol=1e-6)

    def test_output_is_gray_with_given_alpha(self):
        alpha = np.array([[128, 255, 0]], dtype=np.uint8)
        out = compose_output(self.raster, alpha, global_dark_factor=1.0)
        px = out.pixels

        self.assertEqual((out.width, out.height), (3, 1))
        self.assertTrue((px[..., 0] == px[..., 1]).all())
        self.assertTrue((px[..., 1] == px[..., 2]).all())
        np.testing.assert_array_equal(px[..., 3], alpha)
        self.assertEqual(int(px[0, 0, 0]), int(np.rint(luma(np.array([200, 100, 50])))))
        # 0.9999 * 255 rounds up to 255
        self.assertEqual(int(px[0, 2, 0]), 255)

    def test_output_darkening(self):
        alpha = np.zeros((1, 3), dtype=np.uint8)
        black = compose_output(self.raster, alpha, global_dark_factor=0.0)
        self.assertTrue((black.pixels[..., :3] == 0).all())
        half = compose_output(self.raster, alpha, global_dark_factor=0.5)
        self.assertEqual(int(half.pixels[0, 2, 0]), 127)


if __name__ == "__main__":
    unittest.main()
