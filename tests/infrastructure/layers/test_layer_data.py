import unittest
import numpy as np

from src.sparseforge.infrastructure.layers import LayerData, LayerDataConfiguration, LayerDataCustom


class TestLayerData(unittest.TestCase):
    def test_configuration_element_count(self):
        self.assertEqual(LayerDataConfiguration(1, 12, (3, 3)).element_count, 108)
        self.assertEqual(LayerDataConfiguration(1, 6).element_count, 6)

    def test_zeros(self):
        data = LayerData.zeros([4, 2])
        self.assertEqual(len(data), 2)
        self.assertEqual(data.sizes(), [4, 2])
        self.assertEqual(data[0].dtype, np.float32)
        self.assertTrue((data[0] == 0).all())

    def test_custom_data_is_integer(self):
        data = LayerDataCustom.zeros([3])
        self.assertEqual(data[0].dtype, np.int32)

    def test_setitem_checks_size(self):
        data = LayerData.zeros([3])
        data[0] = [1, 2, 3]
        np.testing.assert_array_equal(data[0], np.array([1, 2, 3], dtype=np.float32))
        with self.assertRaises(ValueError):
            data[0] = [1, 2]

    def test_check_consistency(self):
        data = LayerData.zeros([3, 1])
        data.check_consistency([3, 1])
        with self.assertRaises(ValueError):
            data.check_consistency([3])


if __name__ == "__main__":
    unittest.main()
