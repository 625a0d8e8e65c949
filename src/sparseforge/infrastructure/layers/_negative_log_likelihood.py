"""
Negative log-likelihood loss layer.

The layer takes predicted probabilities (input 0), target distributions
(input 1) and, optionally, a per-neuron scale map (input 2). It has no
learnable parameters and collapses the feature-map axis to a single loss map
that preserves the spatial dimensions:

    loss[n] = -scale * mask[n] * sum_fm(target[fm, n] * log(predicted[fm, n]))

Shape rules
-----------
- inputs 0 and 1 share feature-map count and per-feature-map neuron count,
- input 2, when present, has exactly one feature map and the same
  per-feature-map neuron count,
- the output is ``(1, input0.dimension_sizes)``.

The loss cannot recover its inputs' shapes from its output, so backward shape
inference is not supported.
"""

from __future__ import annotations

from typing import List, Sequence

from ...domain._layer_action import LayerAction, LayerActionType
from ...domain._shape import ShapeDescriptor
from ..serialization._schema import LayerRecord
from ._layer import Layer


class NegativeLogLikelihoodLayer(Layer):
    """
    Paired-input negative log-likelihood loss.

    Parameters
    ----------
    scale : float, optional
        Constant multiplier applied to the loss. Defaults to 1.0.
    """

    layer_type_name = "NegativeLogLikelihood"

    def __init__(self, scale: float = 1.0) -> None:
        super().__init__()
        self.scale = float(scale)

    def get_output_layer_configuration_specific(
        self, input_configuration_specific_list: Sequence[ShapeDescriptor]
    ) -> ShapeDescriptor:
        self._check_input_count(input_configuration_specific_list, 2, 3)
        predicted = input_configuration_specific_list[0]
        target = input_configuration_specific_list[1]

        if predicted.feature_map_count != target.feature_map_count:
            raise self._shape_mismatch(
                "Feature map counts in 2 input layers don't match",
                predicted.feature_map_count,
                target.feature_map_count,
            )
        if predicted.neuron_count_per_feature_map != target.neuron_count_per_feature_map:
            raise self._shape_mismatch(
                "Neuron count per feature map mismatch in 2 input layers",
                predicted.neuron_count_per_feature_map,
                target.neuron_count_per_feature_map,
            )

        if len(input_configuration_specific_list) > 2:
            scaling = input_configuration_specific_list[2]
            if scaling.feature_map_count != 1:
                raise self._shape_mismatch(
                    "Feature map count for scaling input should be 1",
                    1,
                    scaling.feature_map_count,
                )
            if scaling.neuron_count_per_feature_map != predicted.neuron_count_per_feature_map:
                raise self._shape_mismatch(
                    "Neuron count per feature map for scaling input mismatch",
                    predicted.neuron_count_per_feature_map,
                    scaling.neuron_count_per_feature_map,
                )

        return ShapeDescriptor(1, predicted.dimension_sizes)

    def get_flops_per_entry(
        self,
        input_configuration_specific_list: Sequence[ShapeDescriptor],
        action: LayerAction,
    ) -> float:
        if action.action_type is LayerActionType.FORWARD:
            neuron_count = self.get_output_layer_configuration_specific(
                input_configuration_specific_list
            ).neuron_count
            per_item_flops = input_configuration_specific_list[0].feature_map_count * 3
            return float(neuron_count) * float(per_item_flops)
        if action.action_type is LayerActionType.BACKWARD_DATA:
            neuron_count = input_configuration_specific_list[action.backprop_index].neuron_count
            return float(neuron_count) * 2.0
        return 0.0

    def serialize(self, record: LayerRecord) -> None:
        if self.scale != 1.0:
            record.mutable_negative_log_likelihood_param().scale = self.scale

    def deserialize(self, record: LayerRecord) -> None:
        param = record.negative_log_likelihood_param
        if param is None or param.scale is None:
            self.scale = 1.0
        else:
            self.scale = float(param.scale)

    def get_parameter_strings(self) -> List[str]:
        if self.scale != 1.0:
            return [f"scale {self.scale:g}"]
        return [""]
