"""
Domain-level contracts and value types for sparseforge.

Nothing in this package depends on NumPy or on the infrastructure layer.
"""

from ._errors import (
    ConfigurationError,
    ConnectivityGenerationError,
    LayerError,
    MissingFieldError,
    ShapeMismatchError,
)
from ._layer import ILayer
from ._layer_action import LayerAction, LayerActionType
from ._shape import ShapeDescriptor

__all__ = [
    ConfigurationError.__name__,
    ConnectivityGenerationError.__name__,
    LayerError.__name__,
    MissingFieldError.__name__,
    ShapeMismatchError.__name__,
    ILayer.__name__,
    LayerAction.__name__,
    LayerActionType.__name__,
    ShapeDescriptor.__name__,
]
