"""
sparseforge: layer definitions for sparsely connected neural networks.

The package is split into
- `domain`: contracts and value types (shapes, actions, errors),
- `infrastructure`: the concrete layers, their registry, the connectivity
  generator, weight initializers, serialization and network containers.

Commonly used names are re-exported here.
"""

from .domain import (
    ConfigurationError,
    ConnectivityGenerationError,
    ILayer,
    LayerAction,
    LayerActionType,
    LayerError,
    MissingFieldError,
    ShapeDescriptor,
    ShapeMismatchError,
)
from .infrastructure.connectivity import (
    ConnectivityGeneratorConfig,
    ConnectivityPattern,
    fill_connection_matrix,
)
from .infrastructure.layers import (
    Layer,
    LayerData,
    LayerDataCustom,
    LayerFactory,
    NegativeLogLikelihoodLayer,
    PrefixSumLayer,
    SparseConvolutionLayer,
    default_layer_factory,
)
from .infrastructure.network import NetworkData, NetworkSchema
from .infrastructure.serialization import LayerRecord
from .infrastructure.stats import FeatureMapDataStat, ObservationAggregator

__version__ = "0.1.0"

__all__ = [
    ConfigurationError.__name__,
    ConnectivityGenerationError.__name__,
    ILayer.__name__,
    LayerAction.__name__,
    LayerActionType.__name__,
    LayerError.__name__,
    MissingFieldError.__name__,
    ShapeDescriptor.__name__,
    ShapeMismatchError.__name__,
    ConnectivityGeneratorConfig.__name__,
    ConnectivityPattern.__name__,
    fill_connection_matrix.__name__,
    Layer.__name__,
    LayerData.__name__,
    LayerDataCustom.__name__,
    LayerFactory.__name__,
    NegativeLogLikelihoodLayer.__name__,
    PrefixSumLayer.__name__,
    SparseConvolutionLayer.__name__,
    default_layer_factory.__name__,
    NetworkData.__name__,
    NetworkSchema.__name__,
    LayerRecord.__name__,
    FeatureMapDataStat.__name__,
    ObservationAggregator.__name__,
]
