import math
import unittest

import numpy as np

from src.sparseforge.infrastructure.ops.negative_log_likelihood_cpu import negative_log_likelihood_forward_cpu


class TestNegativeLogLikelihoodForwardCpu(unittest.TestCase):
    def test_one_hot_target(self):
        predicted = np.array([[[0.5], [0.25], [0.25]]], dtype=np.float32)
        target = np.array([[[0.0], [1.0], [0.0]]], dtype=np.float32)
        y = negative_log_likelihood_forward_cpu(predicted, target)
        self.assertEqual(y.shape, (1, 1, 1))
        self.assertAlmostEqual(float(y[0, 0, 0]), -math.log(0.25), places=5)

    def test_zero_target_ignores_zero_prediction(self):
        predicted = np.array([[1.0, 0.0]], dtype=np.float32)
        target = np.array([[1.0, 0.0]], dtype=np.float32)
        y = negative_log_likelihood_forward_cpu(predicted, target)
        self.assertTrue(np.isfinite(y).all())
        self.assertAlmostEqual(float(y[0, 0]), 0.0)

    def test_scale_and_mask(self):
        predicted = np.full((2, 2, 3), 0.5, dtype=np.float32)
        target = np.full((2, 2, 3), 0.5, dtype=np.float32)
        mask = np.array([[[1.0, 0.0, 2.0]], [[0.5, 1.0, 1.0]]], dtype=np.float32)
        y = negative_log_likelihood_forward_cpu(predicted, target, mask, scale=2.0)
        expected = 2.0 * math.log(2.0) * mask
        np.testing.assert_allclose(y, expected, rtol=1e-6)

    def test_shape_checks(self):
        with self.assertRaises(ValueError):
            negative_log_likelihood_forward_cpu(np.ones((1, 2, 3)), np.ones((1, 3, 3)))
        with self.assertRaises(ValueError):
            negative_log_likelihood_forward_cpu(np.ones((1, 2, 3)), np.ones((1, 2, 3)), np.ones((1, 2, 3)))


if __name__ == "__main__":
    unittest.main()
