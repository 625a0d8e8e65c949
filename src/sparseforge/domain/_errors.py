"""
Layer- and configuration-related exceptions for sparseforge.

This module defines the error taxonomy used by the layer catalog, the
serialization schema and the connectivity generator. Every error is raised
synchronously at the point of detection and propagated unchanged to the
caller; the library performs no local recovery.

Taxonomy
--------
- `ConfigurationError`:
    Invalid static parameters given at construction time (e.g. a zero window
    size, an edge count outside the admissible range).
- `ShapeMismatchError`:
    Runtime input shapes that are incompatible with a layer's configuration.
- `MissingFieldError`:
    A required field is absent while reading a layer record.
- `ConnectivityGenerationError`:
    The connectivity generator exhausted its restart ceiling. This signals a
    logic defect rather than bad user input, which is why it does not derive
    from `LayerError`.

The first three share `LayerError` so callers may catch the whole family.
"""

from __future__ import annotations

from typing import Any, Optional


def _describe_layer(layer_name: str, layer_type: str) -> str:
    if layer_name:
        return f"layer '{layer_name}' of type {layer_type}"
    return f"{layer_type} layer"


class LayerError(ValueError):
    """
    Base class of all user-facing layer errors.

    Attributes
    ----------
    layer_name : str
        Instance name of the offending layer (may be empty for anonymous
        layers).
    layer_type : str
        Stable type tag of the offending layer.
    """

    def __init__(self, message: str, *, layer_name: str = "", layer_type: str = "") -> None:
        super().__init__(message)
        self.layer_name = layer_name
        self.layer_type = layer_type


class ConfigurationError(LayerError):
    """
    Raised when a layer is constructed (or deserialized) with invalid
    static parameters.

    Attributes
    ----------
    field_name : str
        Name of the parameter that failed validation.
    """

    def __init__(
        self,
        field_name: str,
        message: str,
        *,
        layer_name: str = "",
        layer_type: str = "",
    ) -> None:
        prefix = _describe_layer(layer_name, layer_type) if layer_type else ""
        text = f"{prefix}: {field_name}: {message}" if prefix else f"{field_name}: {message}"
        super().__init__(text, layer_name=layer_name, layer_type=layer_type)
        self.field_name = field_name


class ShapeMismatchError(LayerError):
    """
    Raised when input shapes are incompatible with a layer's configuration.

    The message always names the layer and both conflicting values; the
    dimension index is included when the conflict is dimension-specific.

    Attributes
    ----------
    expected : Any
        The value required by the layer (or by the first input).
    actual : Any
        The value found in the offending input.
    dimension : Optional[int]
        Spatial dimension index of the conflict, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        expected: Any,
        actual: Any,
        dimension: Optional[int] = None,
        layer_name: str = "",
        layer_type: str = "",
    ) -> None:
        where = _describe_layer(layer_name, layer_type)
        dim_text = f" in dimension {dimension}" if dimension is not None else ""
        super().__init__(
            f"{message}{dim_text} for {where}: {expected} vs {actual}",
            layer_name=layer_name,
            layer_type=layer_type,
        )
        self.expected = expected
        self.actual = actual
        self.dimension = dimension


class MissingFieldError(LayerError):
    """
    Raised when a required field is absent from a layer record.

    Attributes
    ----------
    field_name : str
        Dotted path of the missing field (e.g.
        ``"sparse_convolution_param.input_feature_map_count"``).
    """

    def __init__(self, field_name: str, *, layer_name: str = "", layer_type: str = "") -> None:
        super().__init__(
            f"No {field_name} specified for {_describe_layer(layer_name, layer_type)}",
            layer_name=layer_name,
            layer_type=layer_type,
        )
        self.field_name = field_name


class ConnectivityGenerationError(RuntimeError):
    """
    Raised when the connectivity generator fails to place all edges within
    its restart ceiling.

    Attributes
    ----------
    restarts : int
        Number of relaxation restarts performed before giving up.
    """

    def __init__(self, restarts: int, message: str) -> None:
        super().__init__(f"{message} (after {restarts} restarts)")
        self.restarts = restarts
