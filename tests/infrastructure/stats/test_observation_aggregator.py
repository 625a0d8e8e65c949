import math
import threading
import unittest

import numpy as np

from src.sparseforge.domain._shape import ShapeDescriptor
from src.sparseforge.infrastructure.stats import FeatureMapDataStat, ObservationAggregator


class TestObservationAggregator(unittest.TestCase):
    def setUp(self):
        self.sink = ObservationAggregator()
        self.sink.set_config_map({"a": ShapeDescriptor(2, (3,)), "b": ShapeDescriptor(1)})

    def test_statistics(self):
        self.sink.write({"a": np.array([1, 2, 3, 4, 5, 6], dtype=np.float32), "b": np.array([2.0])})
        self.sink.write({"a": np.array([3, 4, 5, 6, 7, 8], dtype=np.float32), "b": np.array([4.0])})
        stats = self.sink.get_stat()

        self.assertEqual(self.sink.entry_count, 2)
        first = stats["a"][0]
        self.assertAlmostEqual(first.average, 3.0)
        self.assertAlmostEqual(first.std_dev, math.sqrt(64.0 / 6.0 - 9.0))
        self.assertEqual((first.min, first.max), (1.0, 5.0))
        second = stats["a"][1]
        self.assertAlmostEqual(second.average, 6.0)
        self.assertEqual((second.min, second.max), (4.0, 8.0))
        self.assertEqual(stats["b"], [FeatureMapDataStat(average=3.0, std_dev=1.0, min=2.0, max=4.0)])

    def test_layers_may_be_written_separately(self):
        self.sink.write({"b": np.array([1.0])})
        self.sink.write({"b": np.array([1.0])})
        self.assertEqual(self.sink.get_stat()["b"][0].std_dev, 0.0)

    def test_concurrent_writers(self):
        def producer():
            for _ in range(50):
                self.sink.write({"a": np.ones(6, dtype=np.float32)})

        threads = [threading.Thread(target=producer) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(self.sink.entry_count, 400)
        for stat in self.sink.get_stat()["a"]:
            self.assertAlmostEqual(stat.average, 1.0)
            self.assertAlmostEqual(stat.std_dev, 0.0)

    def test_set_config_map_resets(self):
        self.sink.write({"b": np.array([1.0])})
        self.sink.set_config_map({"c": ShapeDescriptor(1, (2,))})
        self.assertEqual(self.sink.entry_count, 0)
        with self.assertRaises(ValueError):
            self.sink.write({"b": np.array([1.0])})

    def test_invalid_writes(self):
        with self.assertRaises(ValueError):
            self.sink.write({"unknown": np.zeros(1)})
        with self.assertRaises(ValueError):
            self.sink.write({"a": np.zeros(5)})

    def test_zero_neuron_shape_rejected(self):
        with self.assertRaises(ValueError) as ctx:
            self.sink.set_config_map({"empty": ShapeDescriptor(2, (0,))})
        self.assertIn("empty", str(ctx.exception))
        self.sink.write({"b": np.array([1.0])})
        self.assertEqual(self.sink.entry_count, 1)

    def test_no_entries(self):
        with self.assertRaises(ValueError):
            self.sink.get_stat()


if __name__ == "__main__":
    unittest.main()
