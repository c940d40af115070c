import math
import torch
import unittest
import numpy as np

from ..point_sanitizer import sanitize_points, valid_coordinate_mask

"""
Unit tests for `point_sanitizer.py`: filtering of non-finite and subnormal
coordinates and stable de-duplication.
"""

SUBNORMAL = 5e-324 # Smallest positive subnormal float64


class TestValidCoordinateMask(unittest.TestCase):
    def test_mask(self):
        points = torch.tensor([[0., 0.], [math.nan, 1.], [1., math.inf], [SUBNORMAL, 1.], [-2.5, 3.]],
                              dtype=torch.float64)
        mask = valid_coordinate_mask(points)
        self.assertEqual(mask.tolist(), [True, False, False, False, True])


class TestSanitizePoints(unittest.TestCase):
    """Tests for `sanitize_points`."""

    def test_drops_invalid_coordinates(self):
        raw = [[math.nan, 0.], [math.inf, 1.], [1., -math.inf], [SUBNORMAL, 1.], [1., -SUBNORMAL], [1., 2.]]
        self.assertEqual(sanitize_points(raw).tolist(), [[1., 2.]])

    def test_zero_is_valid(self):
        self.assertEqual(sanitize_points([[0., 0.], [-0.0, 1.]]).tolist(), [[0., 0.], [-0.0, 1.]])

    def test_stable_dedup(self):
        """Duplicates collapse to their first occurrence and order is preserved."""
        raw = [[1., 1.], [0., 0.], [1., 1.], [2., 2.], [0., 0.]]
        self.assertEqual(sanitize_points(raw).tolist(), [[1., 1.], [0., 0.], [2., 2.]])

    def test_near_duplicates_are_kept(self):
        """Equality is exact: no tolerance is applied at this stage."""
        raw = [[1., 1.], [1. + 1e-12, 1.]]
        self.assertEqual(sanitize_points(raw).shape[0], 2)

    def test_output_never_larger_than_input(self):
        generator = torch.Generator().manual_seed(0)
        raw = torch.randint(0, 4, (50, 2), generator=generator).to(torch.float64)
        sanitized = sanitize_points(raw)
        self.assertLessEqual(sanitized.shape[0], raw.shape[0])
        self.assertEqual(len({tuple(p) for p in sanitized.tolist()}), sanitized.shape[0])

    def test_empty_input(self):
        self.assertEqual(sanitize_points([]).shape, (0, 2))

    def test_all_invalid_input(self):
        sanitized = sanitize_points([[math.nan, math.nan], [math.inf, 0.], [0., -math.inf]])
        self.assertEqual(sanitized.shape, (0, 2))

    def test_accepts_numpy_and_tensor(self):
        raw = np.array([[1., 2.], [1., 2.], [3., 4.]])
        self.assertEqual(sanitize_points(raw).tolist(), [[1., 2.], [3., 4.]])
        self.assertEqual(sanitize_points(torch.tensor(raw)).tolist(), [[1., 2.], [3., 4.]])

    def test_output_dtype(self):
        self.assertEqual(sanitize_points([[1, 2]]).dtype, torch.float64)

    def test_malformed_pair_raises(self):
        with self.assertRaises(ValueError):
            sanitize_points([[1., 2., 3.]])

    def test_pure(self):
        raw = torch.tensor([[1., 1.], [1., 1.]], dtype=torch.float64)
        sanitize_points(raw)
        self.assertEqual(raw.shape[0], 2, "Input must not be modified.")


if __name__ == '__main__':
    unittest.main()
