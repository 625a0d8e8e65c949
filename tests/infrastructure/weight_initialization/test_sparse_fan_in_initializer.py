import math
import unittest
import numpy as np

from src.sparseforge.domain.utils._weight_initialization import _sparse_fan_in_std
from src.sparseforge.infrastructure.utils.weight_initializer import (
    WeightInitializer,
    normal_with_rejection,
)


class TestSparseFanInStd(unittest.TestCase):
    def test_formula(self):
        self.assertAlmostEqual(_sparse_fan_in_std(1, 100, 9), math.sqrt(1.0 / (10.0 * 9.0)))
        self.assertAlmostEqual(_sparse_fan_in_std(4, 4, 1), math.sqrt(1.0 / 4.0))

    def test_non_positive_arguments_raise(self):
        for args in ((0, 1, 1), (1, 0, 1), (1, 1, 0)):
            with self.subTest(args=args):
                with self.assertRaises(ValueError):
                    _sparse_fan_in_std(*args)


class TestNormalWithRejection(unittest.TestCase):
    def test_tight_bound_is_enforced_by_resampling(self):
        rng = np.random.default_rng(3)
        values = normal_with_rejection(rng, 1.0, 10_000, max_abs_value=0.5)
        self.assertEqual(values.shape, (10_000,))
        self.assertEqual(values.dtype, np.float32)
        self.assertTrue((np.abs(values) <= 0.5).all())

    def test_same_seed_same_values(self):
        a = normal_with_rejection(np.random.default_rng(11), 2.0, 100, max_abs_value=3.0)
        b = normal_with_rejection(np.random.default_rng(11), 2.0, 100, max_abs_value=3.0)
        np.testing.assert_array_equal(a, b)


class TestSparseFanInNormal(unittest.TestCase):
    def setUp(self):
        self.init = WeightInitializer("sparse_fan_in_normal")

    def test_single_connection_respects_rejection_bound(self):
        # fan-in 1 for every output, 3x3 window, 100 outputs
        output_count, window_volume = 100, 9
        offsets = np.arange(output_count + 1, dtype=np.int32)
        bound = 100.0 * math.sqrt(1.0 / (math.sqrt(1.0 * output_count) * window_volume))
        for seed in range(5):
            with self.subTest(seed=seed):
                buf = np.zeros(output_count * window_volume, dtype=np.float32)
                self.init(
                    buf,
                    np.random.default_rng(seed),
                    row_offsets=offsets,
                    output_feature_map_count=output_count,
                    window_volume=window_volume,
                )
                self.assertTrue((np.abs(buf) <= bound).all())
                self.assertTrue((buf != 0).any())

    def test_std_tracks_per_output_fan_in(self):
        # output 0 has fan-in 1, output 1 has fan-in 49
        offsets = np.array([0, 1, 50], dtype=np.int32)
        window_volume = 400
        buf = np.zeros(50 * window_volume, dtype=np.float32)
        self.init(
            buf,
            np.random.default_rng(0),
            row_offsets=offsets,
            output_feature_map_count=2,
            window_volume=window_volume,
        )
        first = buf[:window_volume]
        second = buf[window_volume:]
        self.assertAlmostEqual(float(first.std()), _sparse_fan_in_std(1, 2, window_volume), delta=0.1 * _sparse_fan_in_std(1, 2, window_volume))
        self.assertAlmostEqual(float(second.std()), _sparse_fan_in_std(49, 2, window_volume), delta=0.05 * _sparse_fan_in_std(49, 2, window_volume))

    def test_outputs_without_connections_are_skipped(self):
        offsets = np.array([0, 0, 2, 2], dtype=np.int32)
        buf = np.zeros(2 * 4, dtype=np.float32)
        self.init(buf, np.random.default_rng(0), row_offsets=offsets, output_feature_map_count=3, window_volume=4)
        self.assertTrue((buf != 0).all())

    def test_offsets_length_mismatch_raises(self):
        with self.assertRaises(ValueError):
            self.init(
                np.zeros(4, dtype=np.float32),
                np.random.default_rng(0),
                row_offsets=np.array([0, 4], dtype=np.int32),
                output_feature_map_count=2,
                window_volume=1,
            )

    def test_buffer_size_mismatch_raises(self):
        with self.assertRaises(ValueError):
            self.init(
                np.zeros(5, dtype=np.float32),
                np.random.default_rng(0),
                row_offsets=np.array([0, 2, 4], dtype=np.int32),
                output_feature_map_count=2,
                window_volume=1,
            )


if __name__ == "__main__":
    unittest.main()
