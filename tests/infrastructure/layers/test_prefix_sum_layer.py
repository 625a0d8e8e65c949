import unittest

from src.sparseforge.domain._errors import ConfigurationError, MissingFieldError, ShapeMismatchError
from src.sparseforge.domain._layer_action import LayerAction
from src.sparseforge.domain._shape import ShapeDescriptor
from src.sparseforge.infrastructure.layers import FLOAT_MAX, PrefixSumLayer
from src.sparseforge.infrastructure.serialization import LayerRecord, PrefixSumParam


class TestPrefixSumLayer(unittest.TestCase):
    def test_type_name(self):
        self.assertEqual(PrefixSumLayer(2).get_type_name(), "PrefixSum")

    def test_invalid_configuration(self):
        with self.assertRaises(ConfigurationError):
            PrefixSumLayer(0)
        with self.assertRaises(ConfigurationError):
            PrefixSumLayer(2, clamp_min=1.0, clamp_max=-1.0)

    def test_shape_passes_through(self):
        layer = PrefixSumLayer(3)
        shape = ShapeDescriptor(6, (4, 5))
        self.assertEqual(layer.get_output_layer_configuration_specific([shape]), shape)
        self.assertEqual(layer.get_input_layer_configuration_specific(shape, 0), shape)

    def test_segment_must_divide_feature_maps(self):
        with self.assertRaises(ShapeMismatchError) as ctx:
            PrefixSumLayer(4).get_output_layer_configuration_specific([ShapeDescriptor(6, (2,))])
        self.assertEqual((ctx.exception.expected, ctx.exception.actual), (4, 6))
        with self.assertRaises(ShapeMismatchError):
            PrefixSumLayer(4).get_input_layer_configuration_specific(ShapeDescriptor(6, (2,)), 0)

    def test_single_input_only(self):
        shape = ShapeDescriptor(2, (2,))
        with self.assertRaises(ShapeMismatchError):
            PrefixSumLayer(1).get_output_layer_configuration_specific([shape, shape])
        with self.assertRaises(ShapeMismatchError):
            PrefixSumLayer(1).get_input_layer_configuration_specific(shape, 1)

    def test_flops(self):
        inputs = [ShapeDescriptor(6, (2, 2))]
        plain = PrefixSumLayer(3)
        clamped = PrefixSumLayer(3, clamp_min=0.0)
        self.assertEqual(plain.get_flops_per_entry(inputs, LayerAction.forward()), 24)
        self.assertEqual(clamped.get_flops_per_entry(inputs, LayerAction.forward()), 72)
        self.assertEqual(plain.get_flops_per_entry(inputs, LayerAction.backward_data(0)), 24)
        self.assertEqual(plain.get_flops_per_entry(inputs, LayerAction.backward_weights()), 0)

    def test_no_learnable_data(self):
        layer = PrefixSumLayer(2)
        self.assertTrue(layer.is_empty_data())
        self.assertEqual(layer.get_data_custom_config(), [])
        self.assertEqual(layer.get_weight_decay_part_id_set(), set())

    def test_default_clamps_not_serialized(self):
        param = PrefixSumLayer(2).to_record().prefix_sum_param
        self.assertEqual(param, PrefixSumParam(feature_map_segment_length=2))

    def test_clamps_serialized_when_set(self):
        param = PrefixSumLayer(2, clamp_min=-1.5).to_record().prefix_sum_param
        self.assertEqual(param.clamp_min, -1.5)
        self.assertIsNone(param.clamp_max)

    def test_round_trip(self):
        for layer in (PrefixSumLayer(2), PrefixSumLayer(5, clamp_min=-1.0, clamp_max=3.0), PrefixSumLayer(1, clamp_max=0.5)):
            with self.subTest(layer=repr(layer)):
                restored = PrefixSumLayer.from_config(layer.get_config())
                self.assertEqual(restored.feature_map_segment_length, layer.feature_map_segment_length)
                self.assertEqual(restored.clamp_min, layer.clamp_min)
                self.assertEqual(restored.clamp_max, layer.clamp_max)

    def test_absent_clamps_take_defaults(self):
        layer = PrefixSumLayer(1, clamp_min=0.0, clamp_max=1.0)
        layer.read_record(LayerRecord(type="PrefixSum", prefix_sum_param=PrefixSumParam(feature_map_segment_length=4)))
        self.assertEqual(layer.feature_map_segment_length, 4)
        self.assertEqual(layer.clamp_min, -FLOAT_MAX)
        self.assertEqual(layer.clamp_max, FLOAT_MAX)
        self.assertFalse(layer.is_clamped)

    def test_missing_fields(self):
        layer = PrefixSumLayer(1)
        with self.assertRaises(MissingFieldError):
            layer.read_record(LayerRecord(type="PrefixSum"))
        with self.assertRaises(MissingFieldError) as ctx:
            layer.read_record(LayerRecord(type="PrefixSum", prefix_sum_param=PrefixSumParam()))
        self.assertEqual(ctx.exception.field_name, "prefix_sum_param.feature_map_segment_length")

    def test_failed_read_leaves_layer_unchanged(self):
        layer = PrefixSumLayer(2, clamp_min=-1.0)
        layer.instance_name = "cumsum"
        before = dict(vars(layer))
        record = LayerRecord(
            name="other",
            type="PrefixSum",
            prefix_sum_param=PrefixSumParam(feature_map_segment_length=3, clamp_min=2.0, clamp_max=1.0),
        )
        with self.assertRaises(ConfigurationError):
            layer.read_record(record)
        self.assertEqual(vars(layer), before)

        with self.assertRaises(ConfigurationError):
            layer.deserialize(record)
        self.assertEqual(vars(layer), before)

    def test_parameter_strings(self):
        self.assertEqual(PrefixSumLayer(3).get_parameter_strings(), ["segment length 3"])
        self.assertEqual(
            PrefixSumLayer(3, clamp_min=-1.0, clamp_max=1.0).get_parameter_strings(),
            ["segment length 3, clamp min -1, clamp max 1"],
        )


if __name__ == "__main__":
    unittest.main()
