import unittest

from src.sparseforge.domain._errors import MissingFieldError
from src.sparseforge.infrastructure.layers import (
    LayerFactory,
    NegativeLogLikelihoodLayer,
    PrefixSumLayer,
    SparseConvolutionLayer,
    default_layer_factory,
)
from src.sparseforge.infrastructure.serialization import LayerRecord


class TestLayerFactory(unittest.TestCase):
    def test_default_factory_has_builtin_layers(self):
        factory = default_layer_factory()
        self.assertEqual(factory.available(), ("NegativeLogLikelihood", "PrefixSum", "SparseConvolution"))
        self.assertEqual(len(factory), 3)
        self.assertIn("PrefixSum", factory)

    def test_type_ids_follow_registration_order(self):
        factory = default_layer_factory()
        self.assertEqual(factory.get_layer_type_id("NegativeLogLikelihood"), 0)
        self.assertEqual(factory.get_layer_type_id("PrefixSum"), 1)
        self.assertEqual(factory.get_layer_type_id("SparseConvolution"), 2)

    def test_factories_are_independent(self):
        a = default_layer_factory()
        b = default_layer_factory()
        a.unregister_layer("PrefixSum")
        self.assertNotIn("PrefixSum", a)
        self.assertIn("PrefixSum", b)

    def test_create_layer_returns_fresh_clone(self):
        factory = LayerFactory()
        factory.register_layer(PrefixSumLayer(2))
        first = factory.create_layer("PrefixSum")
        second = factory.create_layer("PrefixSum")
        self.assertIsInstance(first, PrefixSumLayer)
        self.assertIsNot(first, second)
        first.feature_map_segment_length = 9
        self.assertEqual(second.feature_map_segment_length, 2)
        self.assertEqual(factory.create_layer("PrefixSum").feature_map_segment_length, 2)

    def test_unknown_type(self):
        factory = default_layer_factory()
        with self.assertRaises(ValueError) as ctx:
            factory.create_layer("Convolution")
        self.assertIn("Available", str(ctx.exception))
        with self.assertRaises(ValueError):
            factory.get_layer_type_id("Convolution")

    def test_duplicate_registration(self):
        factory = LayerFactory()
        self.assertEqual(factory.register_layer(NegativeLogLikelihoodLayer()), 0)
        with self.assertRaises(ValueError):
            factory.register_layer(NegativeLogLikelihoodLayer(2.0))
        self.assertEqual(factory.register_layer(NegativeLogLikelihoodLayer(2.0), overwrite=True), 0)
        self.assertEqual(factory.create_layer("NegativeLogLikelihood").scale, 2.0)

    def test_unregister(self):
        factory = default_layer_factory()
        self.assertTrue(factory.unregister_layer("PrefixSum"))
        self.assertFalse(factory.unregister_layer("PrefixSum"))
        # ids are not reused
        self.assertEqual(factory.register_layer(PrefixSumLayer(1)), 3)

    def test_create_layer_from_record(self):
        source = SparseConvolutionLayer([3], 4, 6, feature_map_connection_sparsity_ratio=0.5)
        source.instance_name = "conv"
        source.input_layer_instance_names = ["x"]
        layer = default_layer_factory().create_layer_from_record(source.to_record())
        self.assertIsInstance(layer, SparseConvolutionLayer)
        self.assertEqual(layer.instance_name, "conv")
        self.assertEqual(layer.feature_map_connection_count, 12)

    def test_create_layer_from_incomplete_record(self):
        with self.assertRaises(MissingFieldError):
            default_layer_factory().create_layer_from_record(LayerRecord(name="ps", type="PrefixSum"))


if __name__ == "__main__":
    unittest.main()
