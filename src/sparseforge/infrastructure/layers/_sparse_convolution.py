"""
Sparse convolution layer.

A sparse convolution connects each output feature map to a subset of the
input feature maps. The subset is chosen once, at weight initialization, by
the connectivity generator; every connection owns a full window of weights.

Design overview
---------------
- The layer is a stateless transform once configured. Its work is in
  construction-time validation, shape algebra and weight initialization.
- Sparsity is given either as an explicit connection (edge) count or as a
  sparsity ratio. Both converge on `feature_map_connection_count`; the ratio
  is kept so the layer serializes the way it was specified.
- Parameter groups:
    0. weights, ``feature_map_connection_count * prod(window_sizes)`` values,
       one window block per connection in CSR order,
    1. bias (optional), ``output_feature_map_count`` values.
- Custom (index) groups:
    0. CSR column indices, ``feature_map_connection_count`` entries,
    1. CSR row offsets, ``output_feature_map_count + 1`` entries.

Shape semantics
---------------
For every spatial dimension ``d``:

    out[d] = floor((in[d] + left_pad[d] + right_pad[d] - window[d]) / stride[d]) + 1
    in[d]  = (out[d] - 1) * stride[d] + window[d] - left_pad[d] - right_pad[d]

Example
-------
>>> layer = SparseConvolutionLayer([3, 3], 8, 16, feature_map_connection_sparsity_ratio=0.25)
>>> layer.get_output_layer_configuration_specific([ShapeDescriptor(8, (10, 10))])
ShapeDescriptor(feature_map_count=16, dimension_sizes=(8, 8))
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Set

import numpy as np

from ...domain._layer_action import LayerAction, LayerActionType
from ...domain._shape import ShapeDescriptor
from ..connectivity._generator import ConnectivityPattern, fill_connection_matrix
from ..serialization._schema import LayerRecord, SparseConvolutionDimensionParam
from ..utils.weight_initializer import WeightInitializer
from ._layer import Layer
from ._layer_data import LayerData, LayerDataConfiguration, LayerDataCustom

logger = logging.getLogger(__name__)


def _connection_count_from_ratio(
    input_feature_map_count: int, output_feature_map_count: int, ratio: float
) -> int:
    return int(input_feature_map_count * output_feature_map_count * ratio + 0.5)


class SparseConvolutionLayer(Layer):
    """
    N-dimensional convolution with sparse feature-map connectivity.

    Parameters
    ----------
    window_sizes : Sequence[int]
        Window size per spatial dimension (empty for a fully connected layer).
    input_feature_map_count : int
        Number of input feature maps.
    output_feature_map_count : int
        Number of output feature maps.
    feature_map_connection_count : int, optional
        Exact number of (output, input) feature-map connections.
    feature_map_connection_sparsity_ratio : float, optional
        Fraction of all possible connections to keep. Mutually exclusive
        with `feature_map_connection_count`.
    left_zero_padding, right_zero_padding : Sequence[int], optional
        Zero padding per dimension. Default to zeros.
    strides : Sequence[int], optional
        Stride per dimension. Default to ones.
    bias : bool, optional
        Whether the layer owns a bias group. Defaults to True.

    Raises
    ------
    ConfigurationError
        If the sparsity is not specified exactly once, a per-dimension list
        has the wrong length, or `check()` fails.
    """

    layer_type_name = "SparseConvolution"

    def __init__(
        self,
        window_sizes: Sequence[int],
        input_feature_map_count: int,
        output_feature_map_count: int,
        feature_map_connection_count: Optional[int] = None,
        *,
        feature_map_connection_sparsity_ratio: Optional[float] = None,
        left_zero_padding: Optional[Sequence[int]] = None,
        right_zero_padding: Optional[Sequence[int]] = None,
        strides: Optional[Sequence[int]] = None,
        bias: bool = True,
    ) -> None:
        super().__init__()
        self.window_sizes: List[int] = [int(w) for w in window_sizes]
        self.input_feature_map_count = int(input_feature_map_count)
        self.output_feature_map_count = int(output_feature_map_count)
        self.bias = bool(bias)

        if (feature_map_connection_count is None) == (feature_map_connection_sparsity_ratio is None):
            raise self._configuration_error(
                "feature_map_connection_count",
                "specify exactly one of feature_map_connection_count and "
                "feature_map_connection_sparsity_ratio",
            )
        if feature_map_connection_sparsity_ratio is not None:
            self.feature_map_connection_sparsity_ratio: Optional[float] = float(
                feature_map_connection_sparsity_ratio
            )
            self.feature_map_connection_count = _connection_count_from_ratio(
                self.input_feature_map_count,
                self.output_feature_map_count,
                self.feature_map_connection_sparsity_ratio,
            )
        else:
            self.feature_map_connection_sparsity_ratio = None
            self.feature_map_connection_count = int(feature_map_connection_count)

        self.left_zero_padding = self._per_dimension("left_zero_padding", left_zero_padding, 0)
        self.right_zero_padding = self._per_dimension("right_zero_padding", right_zero_padding, 0)
        self.strides = self._per_dimension("strides", strides, 1)

        self.check()

    def _per_dimension(self, field_name: str, values: Optional[Sequence[int]], default: int) -> List[int]:
        if values is None or len(values) == 0:
            return [default] * len(self.window_sizes)
        if len(values) != len(self.window_sizes):
            raise self._configuration_error(
                field_name,
                f"invalid dimension count {len(values)}, expected {len(self.window_sizes)}",
            )
        return [int(v) for v in values]

    def check(self) -> None:
        """
        Validate the static configuration.

        Raises
        ------
        ConfigurationError
            Naming the first failing field.
        """
        for i, w in enumerate(self.window_sizes):
            if w <= 0:
                raise self._configuration_error(
                    "window_sizes", f"window size of dimension {i} must be positive, got {w}"
                )

        if self.input_feature_map_count <= 0:
            raise self._configuration_error(
                "input_feature_map_count", f"must be positive, got {self.input_feature_map_count}"
            )
        if self.output_feature_map_count <= 0:
            raise self._configuration_error(
                "output_feature_map_count", f"must be positive, got {self.output_feature_map_count}"
            )

        if self.feature_map_connection_sparsity_ratio is not None and not (
            0.0 <= self.feature_map_connection_sparsity_ratio <= 1.0
        ):
            raise self._configuration_error(
                "feature_map_connection_sparsity_ratio",
                f"must lie in [0, 1], got {self.feature_map_connection_sparsity_ratio}",
            )

        count = self.feature_map_connection_count
        if count < self.input_feature_map_count:
            raise self._configuration_error(
                "feature_map_connection_count",
                f"{count} may not be smaller than input_feature_map_count {self.input_feature_map_count}",
            )
        if count < self.output_feature_map_count:
            raise self._configuration_error(
                "feature_map_connection_count",
                f"{count} may not be smaller than output_feature_map_count {self.output_feature_map_count}",
            )
        dense_count = self.input_feature_map_count * self.output_feature_map_count
        if count > dense_count:
            raise self._configuration_error(
                "feature_map_connection_count",
                f"{count} may not be larger than in dense case ({dense_count})",
            )

        for i, (pad, w) in enumerate(zip(self.left_zero_padding, self.window_sizes)):
            if pad >= w:
                raise self._configuration_error(
                    "left_zero_padding",
                    f"padding {pad} of dimension {i} is greater or equal than window size {w}",
                )
        for i, (pad, w) in enumerate(zip(self.right_zero_padding, self.window_sizes)):
            if pad >= w:
                raise self._configuration_error(
                    "right_zero_padding",
                    f"padding {pad} of dimension {i} is greater or equal than window size {w}",
                )
        for i, s in enumerate(self.strides):
            if s <= 0:
                raise self._configuration_error("strides", f"stride of dimension {i} must be positive, got {s}")

    @property
    def window_volume(self) -> int:
        volume = 1
        for w in self.window_sizes:
            volume *= w
        return volume

    # ------------------------------------------------------------------
    # Shape inference
    # ------------------------------------------------------------------
    def get_output_layer_configuration_specific(
        self, input_configuration_specific_list: Sequence[ShapeDescriptor]
    ) -> ShapeDescriptor:
        self._check_input_count(input_configuration_specific_list, 1, 1)
        input_shape = input_configuration_specific_list[0]

        if input_shape.feature_map_count != self.input_feature_map_count:
            raise self._shape_mismatch(
                "Feature map count in layer and input configuration don't match",
                self.input_feature_map_count,
                input_shape.feature_map_count,
            )
        if input_shape.dimension_count != len(self.window_sizes):
            raise self._shape_mismatch(
                "Dimension count in layer and input configuration don't match",
                len(self.window_sizes),
                input_shape.dimension_count,
            )

        output_sizes = []
        for i, w in enumerate(self.window_sizes):
            total = input_shape.dimension_sizes[i] + self.left_zero_padding[i] + self.right_zero_padding[i]
            if total < w:
                raise self._shape_mismatch(
                    "Total dimension size (with padding) is smaller than window size",
                    w,
                    total,
                    dimension=i,
                )
            output_sizes.append((total - w) // self.strides[i] + 1)

        return ShapeDescriptor(self.output_feature_map_count, tuple(output_sizes))

    def get_input_layer_configuration_specific(
        self, output_configuration_specific: ShapeDescriptor, input_layer_id: int
    ) -> Optional[ShapeDescriptor]:
        if input_layer_id != 0:
            raise self._shape_mismatch("Input index out of range", 0, input_layer_id)
        if output_configuration_specific.feature_map_count != self.output_feature_map_count:
            raise self._shape_mismatch(
                "Feature map count in layer and output configuration don't match",
                self.output_feature_map_count,
                output_configuration_specific.feature_map_count,
            )
        if output_configuration_specific.dimension_count != len(self.window_sizes):
            raise self._shape_mismatch(
                "Dimension count in layer and output configuration don't match",
                len(self.window_sizes),
                output_configuration_specific.dimension_count,
            )

        input_sizes = []
        for i, w in enumerate(self.window_sizes):
            out = output_configuration_specific.dimension_sizes[i]
            size = (out - 1) * self.strides[i] + w - self.left_zero_padding[i] - self.right_zero_padding[i]
            if out < 1 or size < 0:
                raise self._shape_mismatch(
                    "Output dimension size cannot be produced by this layer", 1, out, dimension=i
                )
            input_sizes.append(size)

        return ShapeDescriptor(self.input_feature_map_count, tuple(input_sizes))

    def get_flops_per_entry(
        self,
        input_configuration_specific_list: Sequence[ShapeDescriptor],
        action: LayerAction,
    ) -> float:
        output_shape = self.get_output_layer_configuration_specific(input_configuration_specific_list)
        output_neuron_count = output_shape.neuron_count_per_feature_map
        weight_count = self.feature_map_connection_count * self.window_volume
        bias_flops = self.output_feature_map_count * output_neuron_count if self.bias else 0

        if action.action_type is LayerActionType.FORWARD:
            per_item_flops = 2 * weight_count - self.output_feature_map_count
            return float(output_neuron_count) * float(per_item_flops) + float(bias_flops)
        if action.action_type is LayerActionType.BACKWARD_DATA:
            input_neuron_count = input_configuration_specific_list[0].neuron_count_per_feature_map
            per_item_flops = 2 * weight_count - self.input_feature_map_count
            return float(input_neuron_count) * float(per_item_flops)
        if action.action_type is LayerActionType.BACKWARD_WEIGHTS:
            return float(2 * weight_count * output_neuron_count - weight_count) + float(bias_flops)
        return 0.0

    # ------------------------------------------------------------------
    # Weight store
    # ------------------------------------------------------------------
    def get_layer_data_configuration_list(self) -> List[LayerDataConfiguration]:
        res = [LayerDataConfiguration(1, self.feature_map_connection_count, tuple(self.window_sizes))]
        if self.bias:
            res.append(LayerDataConfiguration(1, self.output_feature_map_count, ()))
        return res

    def get_data_custom_config(self) -> List[int]:
        return [self.feature_map_connection_count, self.output_feature_map_count + 1]

    def get_weight_decay_part_id_set(self) -> Set[int]:
        return {0}

    def randomize_data(
        self,
        data: LayerData,
        data_custom: LayerDataCustom,
        generator: np.random.Generator,
    ) -> None:
        """
        Generate the connectivity, then draw weights conditioned on it.
        """
        self.randomize_custom_data(data_custom, generator)
        self.randomize_weights(data, data_custom, generator)

    def randomize_custom_data(
        self, data_custom: LayerDataCustom, generator: np.random.Generator
    ) -> ConnectivityPattern:
        data_custom.check_consistency(self.get_data_custom_config())
        pattern = fill_connection_matrix(
            generator,
            self.output_feature_map_count,
            self.input_feature_map_count,
            self.feature_map_connection_count,
        )
        data_custom[0] = pattern.column_indices
        data_custom[1] = pattern.row_offsets
        return pattern

    def randomize_weights(
        self,
        data: LayerData,
        data_custom: LayerDataCustom,
        generator: np.random.Generator,
    ) -> None:
        data.check_consistency(self.get_data_config())
        WeightInitializer("sparse_fan_in_normal")(
            data[0],
            generator,
            row_offsets=data_custom[1],
            output_feature_map_count=self.output_feature_map_count,
            window_volume=self.window_volume,
        )
        if self.bias:
            WeightInitializer("zeros")(data[1], generator)
        logger.debug(
            "Randomized %s: %d weights over %d connections",
            self.instance_name or self.layer_type_name,
            data[0].size,
            self.feature_map_connection_count,
        )

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def serialize(self, record: LayerRecord) -> None:
        param = record.mutable_sparse_convolution_param()
        param.output_feature_map_count = self.output_feature_map_count
        param.input_feature_map_count = self.input_feature_map_count
        if not self.bias:
            param.bias = False

        if self.feature_map_connection_sparsity_ratio is not None:
            param.feature_map_connection_sparsity_ratio = self.feature_map_connection_sparsity_ratio
        else:
            param.feature_map_connection_count = self.feature_map_connection_count

        param.dimension_param = []
        for i, w in enumerate(self.window_sizes):
            dim_param = SparseConvolutionDimensionParam(kernel_size=w)
            if self.left_zero_padding[i] > 0:
                dim_param.left_padding = self.left_zero_padding[i]
            if self.right_zero_padding[i] > 0:
                dim_param.right_padding = self.right_zero_padding[i]
            if self.strides[i] > 1:
                dim_param.stride = self.strides[i]
            param.dimension_param.append(dim_param)

    def deserialize(self, record: LayerRecord) -> None:
        param = record.sparse_convolution_param
        if param is None:
            raise self._missing_field("sparse_convolution_param")
        if param.input_feature_map_count is None:
            raise self._missing_field("sparse_convolution_param.input_feature_map_count")
        if param.output_feature_map_count is None:
            raise self._missing_field("sparse_convolution_param.output_feature_map_count")

        input_feature_map_count = int(param.input_feature_map_count)
        output_feature_map_count = int(param.output_feature_map_count)

        window_sizes, left, right, strides = [], [], [], []
        for i, dim_param in enumerate(param.dimension_param):
            if dim_param.kernel_size is None:
                raise self._missing_field(f"sparse_convolution_param.dimension_param[{i}].kernel_size")
            window_sizes.append(int(dim_param.kernel_size))
            left.append(int(dim_param.left_padding or 0))
            right.append(int(dim_param.right_padding or 0))
            strides.append(1 if dim_param.stride is None else int(dim_param.stride))

        if param.feature_map_connection_count is not None:
            ratio = None
            connection_count = int(param.feature_map_connection_count)
        elif param.feature_map_connection_sparsity_ratio is not None:
            ratio = float(param.feature_map_connection_sparsity_ratio)
            connection_count = _connection_count_from_ratio(
                input_feature_map_count, output_feature_map_count, ratio
            )
        else:
            raise self._missing_field("sparse_convolution_param.feature_map_connection_count")

        self._assign_checked(
            input_feature_map_count=input_feature_map_count,
            output_feature_map_count=output_feature_map_count,
            bias=True if param.bias is None else bool(param.bias),
            window_sizes=window_sizes,
            left_zero_padding=left,
            right_zero_padding=right,
            strides=strides,
            feature_map_connection_sparsity_ratio=ratio,
            feature_map_connection_count=connection_count,
        )

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------
    def get_parameter_strings(self) -> List[str]:
        if self.window_sizes:
            text = "x".join(str(w) for w in self.window_sizes)
        else:
            text = "fc"
        text += f", fm {self.input_feature_map_count}x{self.output_feature_map_count}"

        if any(l != 0 or r != 0 for l, r in zip(self.left_zero_padding, self.right_zero_padding)):
            pads = []
            for l, r in zip(self.left_zero_padding, self.right_zero_padding):
                pads.append(str(l) if l == r else f"{l}_{r}")
            text += ", pad " + "x".join(pads)

        if any(s != 1 for s in self.strides):
            text += ", stride " + "x".join(str(s) for s in self.strides)

        if not self.bias:
            text += ", w/out bias"

        if self.feature_map_connection_sparsity_ratio is not None:
            sparsity = f"sparsity ratio {self.feature_map_connection_sparsity_ratio:.5f}"
        else:
            sparsity = f"connections {self.feature_map_connection_count}"

        return [text, sparsity]
