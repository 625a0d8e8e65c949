import unittest

from src.sparseforge.domain._errors import (
    ConfigurationError,
    ConnectivityGenerationError,
    LayerError,
    MissingFieldError,
    ShapeMismatchError,
)


class TestLayerErrors(unittest.TestCase):
    def test_family(self):
        for cls in (ConfigurationError, ShapeMismatchError, MissingFieldError):
            with self.subTest(cls=cls.__name__):
                self.assertTrue(issubclass(cls, LayerError))
                self.assertTrue(issubclass(cls, ValueError))
        self.assertTrue(issubclass(ConnectivityGenerationError, RuntimeError))
        self.assertFalse(issubclass(ConnectivityGenerationError, LayerError))

    def test_configuration_error_names_field_and_layer(self):
        err = ConfigurationError("strides", "must be positive", layer_name="conv1", layer_type="SparseConvolution")
        self.assertEqual(err.field_name, "strides")
        self.assertIn("conv1", str(err))
        self.assertIn("SparseConvolution", str(err))
        self.assertIn("strides", str(err))

    def test_shape_mismatch_carries_both_sizes(self):
        err = ShapeMismatchError(
            "Feature map counts don't match",
            expected=10,
            actual=5,
            dimension=1,
            layer_type="NegativeLogLikelihood",
        )
        self.assertEqual((err.expected, err.actual, err.dimension), (10, 5, 1))
        msg = str(err)
        self.assertIn("10", msg)
        self.assertIn("5", msg)
        self.assertIn("dimension 1", msg)
        self.assertIn("NegativeLogLikelihood layer", msg)

    def test_missing_field_message(self):
        err = MissingFieldError("prefix_sum_param", layer_name="ps", layer_type="PrefixSum")
        self.assertEqual(err.field_name, "prefix_sum_param")
        self.assertEqual(str(err), "No prefix_sum_param specified for layer 'ps' of type PrefixSum")

    def test_generation_error_reports_restarts(self):
        err = ConnectivityGenerationError(7, "Failed")
        self.assertEqual(err.restarts, 7)
        self.assertIn("7", str(err))


if __name__ == "__main__":
    unittest.main()
