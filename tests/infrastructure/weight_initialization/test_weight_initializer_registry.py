import unittest
import numpy as np

from src.sparseforge.infrastructure.utils.weight_initializer import WeightInitializer


class TestWeightInitializerRegistry(unittest.TestCase):
    def test_available_contains_known_initializers(self):
        names = WeightInitializer.available()
        self.assertIn("zeros", names)
        self.assertIn("sparse_fan_in_normal", names)

    def test_available_is_sorted(self):
        names = WeightInitializer.available()
        self.assertEqual(list(names), sorted(names))

    def test_unknown_initializer_raises_value_error(self):
        with self.assertRaises(ValueError) as ctx:
            WeightInitializer("___does_not_exist___")
        msg = str(ctx.exception)
        self.assertIn("Unsupported initializer name", msg)
        self.assertIn("Available:", msg)

    def test_empty_name_rejected(self):
        with self.assertRaises(ValueError):
            WeightInitializer.register_initializer("")

    def test_register_initializer_no_overwrite_by_default(self):
        name = "__unit_test_initializer__"

        @WeightInitializer.register_initializer(name, overwrite=True)
        def init_a(buffer, generator):
            return buffer

        with self.assertRaises(ValueError):

            @WeightInitializer.register_initializer(name)
            def init_b(buffer, generator):
                return buffer

    def test_register_initializer_overwrite_true(self):
        name = "__unit_test_initializer_overwrite__"

        @WeightInitializer.register_initializer(name, overwrite=True)
        def init_a(buffer, generator):
            buffer[...] = 1.0
            return buffer

        @WeightInitializer.register_initializer(name, overwrite=True)
        def init_b(buffer, generator):
            buffer[...] = 2.0
            return buffer

        buf = np.zeros(3, dtype=np.float32)
        WeightInitializer(name)(buf, np.random.default_rng(0))
        np.testing.assert_array_equal(buf, np.full(3, 2.0, dtype=np.float32))

    def test_dispatch_forwards_generator_and_kwargs(self):
        name = "__unit_test_dispatch__"
        seen = {}

        @WeightInitializer.register_initializer(name, overwrite=True)
        def init(buffer, generator, *, fill):
            seen["generator"] = generator
            buffer[...] = fill
            return buffer

        rng = np.random.default_rng(1)
        buf = np.zeros((3, 5), dtype=np.float32)
        init_fn = WeightInitializer(name)
        self.assertEqual(init_fn.name, name)
        out = init_fn(buf, rng, fill=4.0)
        self.assertIs(out, buf)
        self.assertIs(seen["generator"], rng)
        self.assertTrue((buf == 4.0).all())


if __name__ == "__main__":
    unittest.main()
