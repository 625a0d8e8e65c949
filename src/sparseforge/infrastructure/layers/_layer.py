"""
Infrastructure layer base class.

This module provides the concrete `Layer` implementation satisfying the
domain-level `ILayer` protocol. It implements the behavior shared by every
layer variant:

- instance naming and input wiring (`instance_name`,
  `input_layer_instance_names`),
- cloning for registry-driven construction,
- record round trips (`to_record` / `read_record`) wrapped around the
  variant hooks `serialize` / `deserialize`,
- JSON configuration hooks (`get_config` / `from_config`),
- weight-store declaration defaults (no learnable groups),
- helpers that build errors carrying the layer's name and type.

Concrete variants override the shape, cost, serialization and (where they
own weights) data hooks.
"""

from __future__ import annotations

import copy
from typing import Any, ClassVar, Dict, List, Optional, Sequence, Set

import numpy as np
from typing_extensions import Self

from ...domain._errors import ConfigurationError, MissingFieldError, ShapeMismatchError
from ...domain._layer import ILayer
from ...domain._layer_action import LayerAction
from ...domain._shape import ShapeDescriptor
from ..serialization._json import record_from_dict, record_to_dict
from ..serialization._schema import LayerRecord
from ._layer_data import LayerData, LayerDataConfiguration, LayerDataCustom


class Layer(ILayer):
    """
    Base class for layer variants.

    Subclasses must define the class attribute `layer_type_name` and
    implement `get_output_layer_configuration_specific` and
    `get_flops_per_entry`. Every other hook has a sensible default for a
    parameter-free layer.

    Attributes
    ----------
    instance_name : str
        Name of this layer inside a network schema.
    input_layer_instance_names : list[str]
        Names of the layers (or external inputs) feeding this layer, in
        input-index order.
    """

    layer_type_name: ClassVar[str] = ""

    def __init__(self) -> None:
        self.instance_name: str = ""
        self.input_layer_instance_names: List[str] = []

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------
    def get_type_name(self) -> str:
        if not self.layer_type_name:
            raise NotImplementedError(f"{type(self).__name__} does not define layer_type_name")
        return self.layer_type_name

    def clone(self) -> "Layer":
        return copy.deepcopy(self)

    def check(self) -> None:
        """Validate the static configuration. Parameter-free layers accept any."""

    # ------------------------------------------------------------------
    # Shape inference and cost
    # ------------------------------------------------------------------
    def get_output_layer_configuration_specific(
        self, input_configuration_specific_list: Sequence[ShapeDescriptor]
    ) -> ShapeDescriptor:
        raise NotImplementedError

    def get_input_layer_configuration_specific(
        self, output_configuration_specific: ShapeDescriptor, input_layer_id: int
    ) -> Optional[ShapeDescriptor]:
        """
        Backward shape inference. The default declines (returns None).
        """
        return None

    def get_flops_per_entry(
        self,
        input_configuration_specific_list: Sequence[ShapeDescriptor],
        action: LayerAction,
    ) -> float:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def serialize(self, record: LayerRecord) -> None:
        """Write variant fields into `record`. Parameter-free layers write nothing."""

    def deserialize(self, record: LayerRecord) -> None:
        """Read variant fields from `record`. Parameter-free layers read nothing."""

    def to_record(self) -> LayerRecord:
        """
        Build the full record of this layer: name, type, inputs and the
        variant-specific block.
        """
        record = LayerRecord(
            name=self.instance_name,
            type=self.get_type_name(),
            input_layer_name=list(self.input_layer_instance_names),
        )
        self.serialize(record)
        return record

    def read_record(self, record: LayerRecord) -> None:
        """
        Restore name and inputs from `record`, then the variant fields.

        The record is read into a copy first; on failure this layer is left
        unchanged.
        """
        if record.type and record.type != self.get_type_name():
            raise ValueError(
                f"Record of type {record.type!r} cannot be read by {self.get_type_name()} layer"
            )
        staged = self.clone()
        staged.instance_name = record.name
        staged.input_layer_instance_names = list(record.input_layer_name)
        staged.deserialize(record)
        self.__dict__.update(staged.__dict__)

    def get_config(self) -> Dict[str, Any]:
        """
        Return a JSON-serializable configuration for this layer.
        """
        return record_to_dict(self.to_record())

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> Self:
        """
        Reconstruct a layer from a JSON configuration.

        The instance is created without running the variant constructor and
        populated entirely by `deserialize`, which validates it.
        """
        layer = cls.__new__(cls)
        Layer.__init__(layer)
        layer.read_record(record_from_dict(cfg))
        return layer

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------
    def get_parameter_strings(self) -> List[str]:
        return []

    def get_string_for_average_data(self, data: LayerData) -> str:
        """
        Return a one-line summary of mean absolute values per data group.
        """
        parts = []
        for idx, buffer in enumerate(data):
            mean_abs = float(np.mean(np.abs(buffer))) if buffer.size else 0.0
            parts.append(f"{idx}: {mean_abs:.6g}")
        return ", ".join(parts)

    # ------------------------------------------------------------------
    # Weight store
    # ------------------------------------------------------------------
    def get_layer_data_configuration_list(self) -> List[LayerDataConfiguration]:
        return []

    def get_data_config(self) -> List[int]:
        return [c.element_count for c in self.get_layer_data_configuration_list()]

    def get_data_custom_config(self) -> List[int]:
        return []

    def get_weight_decay_part_id_set(self) -> Set[int]:
        return set()

    def is_empty_data(self) -> bool:
        return not self.get_data_config()

    def create_layer_data(self) -> LayerData:
        return LayerData.zeros(self.get_data_config())

    def create_layer_data_custom(self) -> LayerDataCustom:
        return LayerDataCustom.zeros(self.get_data_custom_config())

    def randomize_data(
        self,
        data: LayerData,
        data_custom: LayerDataCustom,
        generator: np.random.Generator,
    ) -> None:
        """
        Initialize parameters in place. Parameter-free layers do nothing.
        """

    # ------------------------------------------------------------------
    # Error helpers
    # ------------------------------------------------------------------
    def _shape_mismatch(
        self, message: str, expected: Any, actual: Any, dimension: Optional[int] = None
    ) -> ShapeMismatchError:
        return ShapeMismatchError(
            message,
            expected=expected,
            actual=actual,
            dimension=dimension,
            layer_name=self.instance_name,
            layer_type=self.get_type_name(),
        )

    def _configuration_error(self, field_name: str, message: str) -> ConfigurationError:
        return ConfigurationError(
            field_name,
            message,
            layer_name=self.instance_name,
            layer_type=self.get_type_name(),
        )

    def _missing_field(self, field_name: str) -> MissingFieldError:
        return MissingFieldError(
            field_name, layer_name=self.instance_name, layer_type=self.get_type_name()
        )

    def _assign_checked(self, **fields: Any) -> None:
        """
        Set `fields` on this layer only if the resulting configuration passes
        `check()`.
        """
        staged = copy.copy(self)
        staged.__dict__.update(fields)
        staged.check()
        self.__dict__.update(fields)

    def _check_input_count(
        self, input_configuration_specific_list: Sequence[ShapeDescriptor], minimum: int, maximum: int
    ) -> None:
        count = len(input_configuration_specific_list)
        if count < minimum or count > maximum:
            expected = str(minimum) if minimum == maximum else f"{minimum}..{maximum}"
            raise self._shape_mismatch("Input count mismatch", expected, count)

    def __repr__(self) -> str:
        params = "; ".join(s for s in self.get_parameter_strings() if s)
        name = f"{self.instance_name!r}, " if self.instance_name else ""
        return f"{type(self).__name__}({name}{params})"
