"""
Layer interface definitions.

This module defines the domain-level contract every layer variant satisfies,
using structural subtyping via `typing.Protocol`.

A layer is a configured, stateless transform between tensors described by
`ShapeDescriptor`s. Independently of how (or whether) it is executed, a layer
can:

- infer its output shape from its input shapes, and optionally invert that
  computation for backward shape inference,
- estimate its compute cost for each phase,
- write and read its configuration through a typed layer record,
- declare the storage of its learnable parameter groups and initialize them,
- summarize its configuration in human-readable form.

Notes
-----
- The record type is owned by the infrastructure serialization package and is
  kept opaque (`Any`) here so the domain layer stays free of infrastructure
  imports.
- Random number generators are always supplied by the caller.
"""

from __future__ import annotations

from typing import Any, List, Optional, Protocol, Sequence, Set, runtime_checkable

from ._layer_action import LayerAction
from ._shape import ShapeDescriptor


@runtime_checkable
class ILayer(Protocol):
    """
    Domain-level layer interface.

    Any object implementing these methods is considered a valid layer,
    independent of inheritance.
    """

    instance_name: str
    input_layer_instance_names: List[str]

    def get_type_name(self) -> str:
        """
        Return the stable type tag used by registries and records.
        """
        ...

    def clone(self) -> "ILayer":
        """
        Return an independent copy of this layer.
        """
        ...

    def get_output_layer_configuration_specific(
        self, input_configuration_specific_list: Sequence[ShapeDescriptor]
    ) -> ShapeDescriptor:
        """
        Compute the output shape for the given input shapes.

        Raises
        ------
        ShapeMismatchError
            If the inputs are incompatible with the layer's configuration.
        """
        ...

    def get_input_layer_configuration_specific(
        self, output_configuration_specific: ShapeDescriptor, input_layer_id: int
    ) -> Optional[ShapeDescriptor]:
        """
        Infer the shape of input `input_layer_id` from the output shape.

        Returns
        -------
        Optional[ShapeDescriptor]
            The inferred input shape, or None if the layer cannot recover it.
        """
        ...

    def get_flops_per_entry(
        self,
        input_configuration_specific_list: Sequence[ShapeDescriptor],
        action: LayerAction,
    ) -> float:
        """
        Estimate floating-point operations for one entry and one phase.
        """
        ...

    def serialize(self, record: Any) -> None:
        """
        Write variant-specific configuration fields into `record`.
        """
        ...

    def deserialize(self, record: Any) -> None:
        """
        Read variant-specific configuration fields from `record`.

        Raises
        ------
        MissingFieldError
            If a required field is absent.
        """
        ...

    def get_parameter_strings(self) -> List[str]:
        """
        Return a deterministic one-line-per-group configuration summary.
        """
        ...

    def get_weight_decay_part_id_set(self) -> Set[int]:
        """
        Return the indices of parameter groups subject to weight decay.
        """
        ...
