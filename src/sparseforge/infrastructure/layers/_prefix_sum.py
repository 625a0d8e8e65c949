"""
Clamped prefix-sum layer.

Computes a running sum along the feature-map axis that restarts at every
segment of `feature_map_segment_length` feature maps, clamping each output
to ``[clamp_min, clamp_max]``. Spatial positions are independent.

The transform preserves the input shape, so both forward and backward shape
inference are pass-through checks.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np

from ...domain._layer_action import LayerAction, LayerActionType
from ...domain._shape import ShapeDescriptor
from ..serialization._schema import LayerRecord
from ._layer import Layer

FLOAT_MAX = float(np.finfo(np.float32).max)


class PrefixSumLayer(Layer):
    """
    Segmented, clamped cumulative sum over feature maps.

    Parameters
    ----------
    feature_map_segment_length : int
        Number of consecutive feature maps summed together. Must divide the
        input feature-map count.
    clamp_min, clamp_max : float, optional
        Output bounds. Default to the float32 range (no clamping).
    """

    layer_type_name = "PrefixSum"

    def __init__(
        self,
        feature_map_segment_length: int,
        clamp_min: float = -FLOAT_MAX,
        clamp_max: float = FLOAT_MAX,
    ) -> None:
        super().__init__()
        self.feature_map_segment_length = int(feature_map_segment_length)
        self.clamp_min = float(clamp_min)
        self.clamp_max = float(clamp_max)
        self.check()

    def check(self) -> None:
        if self.feature_map_segment_length <= 0:
            raise self._configuration_error(
                "feature_map_segment_length",
                f"must be positive, got {self.feature_map_segment_length}",
            )
        if self.clamp_min > self.clamp_max:
            raise self._configuration_error(
                "clamp_min",
                f"{self.clamp_min:g} is greater than clamp_max {self.clamp_max:g}",
            )

    @property
    def is_clamped(self) -> bool:
        return self.clamp_min != -FLOAT_MAX or self.clamp_max != FLOAT_MAX

    def get_output_layer_configuration_specific(
        self, input_configuration_specific_list: Sequence[ShapeDescriptor]
    ) -> ShapeDescriptor:
        self._check_input_count(input_configuration_specific_list, 1, 1)
        input_shape = input_configuration_specific_list[0]
        if input_shape.feature_map_count % self.feature_map_segment_length != 0:
            raise self._shape_mismatch(
                "Feature map count is not a multiple of the segment length",
                self.feature_map_segment_length,
                input_shape.feature_map_count,
            )
        return input_shape

    def get_input_layer_configuration_specific(
        self, output_configuration_specific: ShapeDescriptor, input_layer_id: int
    ) -> Optional[ShapeDescriptor]:
        if input_layer_id != 0:
            raise self._shape_mismatch("Input index out of range", 0, input_layer_id)
        return self.get_output_layer_configuration_specific([output_configuration_specific])

    def get_flops_per_entry(
        self,
        input_configuration_specific_list: Sequence[ShapeDescriptor],
        action: LayerAction,
    ) -> float:
        neuron_count = self.get_output_layer_configuration_specific(
            input_configuration_specific_list
        ).neuron_count
        if action.action_type is LayerActionType.FORWARD:
            clamp_flops = 2 * neuron_count if self.is_clamped else 0
            return float(neuron_count + clamp_flops)
        if action.action_type is LayerActionType.BACKWARD_DATA:
            return float(neuron_count)
        return 0.0

    def serialize(self, record: LayerRecord) -> None:
        param = record.mutable_prefix_sum_param()
        param.feature_map_segment_length = self.feature_map_segment_length
        if self.clamp_min != -FLOAT_MAX:
            param.clamp_min = self.clamp_min
        if self.clamp_max != FLOAT_MAX:
            param.clamp_max = self.clamp_max

    def deserialize(self, record: LayerRecord) -> None:
        param = record.prefix_sum_param
        if param is None:
            raise self._missing_field("prefix_sum_param")
        if param.feature_map_segment_length is None:
            raise self._missing_field("prefix_sum_param.feature_map_segment_length")
        self._assign_checked(
            feature_map_segment_length=int(param.feature_map_segment_length),
            clamp_min=-FLOAT_MAX if param.clamp_min is None else float(param.clamp_min),
            clamp_max=FLOAT_MAX if param.clamp_max is None else float(param.clamp_max),
        )

    def get_parameter_strings(self) -> List[str]:
        text = f"segment length {self.feature_map_segment_length}"
        if self.clamp_min != -FLOAT_MAX:
            text += f", clamp min {self.clamp_min:g}"
        if self.clamp_max != FLOAT_MAX:
            text += f", clamp max {self.clamp_max:g}"
        return [text]
