"""
Layer implementations and the layer registry.
"""

from ._layer import Layer
from ._layer_data import LayerData, LayerDataConfiguration, LayerDataCustom
from ._negative_log_likelihood import NegativeLogLikelihoodLayer
from ._prefix_sum import FLOAT_MAX, PrefixSumLayer
from ._sparse_convolution import SparseConvolutionLayer
from ._layer_factory import LayerFactory, default_layer_factory

__all__ = [
    Layer.__name__,
    LayerData.__name__,
    LayerDataConfiguration.__name__,
    LayerDataCustom.__name__,
    NegativeLogLikelihoodLayer.__name__,
    PrefixSumLayer.__name__,
    SparseConvolutionLayer.__name__,
    LayerFactory.__name__,
    default_layer_factory.__name__,
    "FLOAT_MAX",
]
