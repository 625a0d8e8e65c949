import json
import tempfile
import unittest
from pathlib import Path

import numpy as np

from src.sparseforge.infrastructure.layers import NegativeLogLikelihoodLayer, PrefixSumLayer, SparseConvolutionLayer
from src.sparseforge.infrastructure.network import DATA_FORMAT, NetworkData, NetworkSchema


def _named(layer, name, *inputs):
    layer.instance_name = name
    layer.input_layer_instance_names = list(inputs)
    return layer


def _build_schema():
    return NetworkSchema(
        "toy",
        [
            _named(SparseConvolutionLayer([3], 4, 8, 16), "conv1", "x"),
            _named(PrefixSumLayer(2), "ps", "conv1"),
            _named(SparseConvolutionLayer([], 8, 3, 12, bias=False), "fc", "ps"),
            _named(NegativeLogLikelihoodLayer(), "loss", "fc", "y"),
        ],
    )


class TestNetworkData(unittest.TestCase):
    def test_only_layers_with_buffers_get_entries(self):
        data = NetworkData.from_schema(_build_schema())
        self.assertEqual(sorted(data.data), ["conv1", "fc"])
        self.assertEqual(data.data["conv1"].sizes(), [48, 8])
        self.assertEqual(data.data_custom["conv1"].sizes(), [16, 9])
        self.assertEqual(data.data["fc"].sizes(), [12])

    def test_randomize_fills_every_layer(self):
        schema = _build_schema()
        data = NetworkData.from_schema(schema)
        data.randomize(schema, np.random.default_rng(0))
        for name in ("conv1", "fc"):
            with self.subTest(layer=name):
                self.assertTrue((data.data[name][0] != 0).any())
                offsets = data.data_custom[name][1]
                self.assertEqual(int(offsets[-1]), schema.get_layer(name).feature_map_connection_count)

    def test_randomize_is_reproducible(self):
        schema = _build_schema()
        a = NetworkData.from_schema(schema)
        b = NetworkData.from_schema(schema)
        a.randomize(schema, np.random.default_rng(5))
        b.randomize(schema, np.random.default_rng(5))
        np.testing.assert_array_equal(a.data["fc"][0], b.data["fc"][0])
        np.testing.assert_array_equal(a.data_custom["conv1"][0], b.data_custom["conv1"][0])

    def test_check_consistency(self):
        schema = _build_schema()
        data = NetworkData.from_schema(schema)
        data.check_consistency(schema)
        del data.data["fc"]
        with self.assertRaises(ValueError):
            data.check_consistency(schema)

    def test_json_round_trip(self):
        schema = _build_schema()
        data = NetworkData.from_schema(schema)
        data.randomize(schema, np.random.default_rng(1))
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "data.json"
            data.save_json(path)
            self.assertEqual(json.loads(path.read_text(encoding="utf-8"))["format"], DATA_FORMAT)
            restored = NetworkData.load_json(path)
        restored.check_consistency(schema)
        for name in data.data:
            for original, loaded in zip(data.data[name], restored.data[name]):
                np.testing.assert_array_equal(original, loaded)
                self.assertEqual(loaded.dtype, np.float32)
            for original, loaded in zip(data.data_custom[name], restored.data_custom[name]):
                np.testing.assert_array_equal(original, loaded)
                self.assertEqual(loaded.dtype, np.int32)

    def test_average_data_summary(self):
        schema = _build_schema()
        data = NetworkData.from_schema(schema)
        lines = data.get_string_for_average_data(schema).splitlines()
        self.assertEqual(lines, ["conv1: 0: 0, 1: 0", "fc: 0: 0"])

    def test_unsupported_format(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "data.json"
            path.write_text(json.dumps({"format": "sparseforge.json.schema.v1"}), encoding="utf-8")
            with self.assertRaises(ValueError):
                NetworkData.load_json(path)


if __name__ == "__main__":
    unittest.main()
