"""
Typed layer record schema.

Each layer writes its configuration into a `LayerRecord`, a plain dataclass
tree with one optional parameter block per layer variant. A field whose value
is `None` is *absent*: writers leave default-valued fields absent, and readers
substitute the documented default for absent optional fields while raising
`MissingFieldError` for absent required ones.

Records are converted to and from JSON-safe dictionaries by
`record_to_dict` / `record_from_dict` in the sibling `_json` module.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class NegativeLogLikelihoodParam:
    scale: Optional[float] = None


@dataclass
class PrefixSumParam:
    feature_map_segment_length: Optional[int] = None
    clamp_min: Optional[float] = None
    clamp_max: Optional[float] = None


@dataclass
class SparseConvolutionDimensionParam:
    """
    Per-dimension window configuration.

    Defaults when absent: paddings 0, stride 1. `kernel_size` is required.
    """

    kernel_size: Optional[int] = None
    left_padding: Optional[int] = None
    right_padding: Optional[int] = None
    stride: Optional[int] = None


@dataclass
class SparseConvolutionParam:
    """
    Sparse convolution configuration block.

    Exactly one of `feature_map_connection_count` and
    `feature_map_connection_sparsity_ratio` is expected; the count wins when
    both are present. `bias` defaults to True when absent.
    """

    input_feature_map_count: Optional[int] = None
    output_feature_map_count: Optional[int] = None
    feature_map_connection_count: Optional[int] = None
    feature_map_connection_sparsity_ratio: Optional[float] = None
    bias: Optional[bool] = None
    dimension_param: List[SparseConvolutionDimensionParam] = field(default_factory=list)


@dataclass
class LayerRecord:
    """
    Serialized form of one layer in a network schema.

    Attributes
    ----------
    name : str
        Instance name of the layer.
    type : str
        Stable type tag, resolved through a `LayerFactory` when reading.
    input_layer_name : list[str]
        Instance names of the layers (or external inputs) feeding this layer.
    negative_log_likelihood_param, prefix_sum_param, sparse_convolution_param
        Variant-specific configuration blocks; at most the one matching
        `type` is populated.
    """

    name: str = ""
    type: str = ""
    input_layer_name: List[str] = field(default_factory=list)
    negative_log_likelihood_param: Optional[NegativeLogLikelihoodParam] = None
    prefix_sum_param: Optional[PrefixSumParam] = None
    sparse_convolution_param: Optional[SparseConvolutionParam] = None

    def mutable_negative_log_likelihood_param(self) -> NegativeLogLikelihoodParam:
        if self.negative_log_likelihood_param is None:
            self.negative_log_likelihood_param = NegativeLogLikelihoodParam()
        return self.negative_log_likelihood_param

    def mutable_prefix_sum_param(self) -> PrefixSumParam:
        if self.prefix_sum_param is None:
            self.prefix_sum_param = PrefixSumParam()
        return self.prefix_sum_param

    def mutable_sparse_convolution_param(self) -> SparseConvolutionParam:
        if self.sparse_convolution_param is None:
            self.sparse_convolution_param = SparseConvolutionParam()
        return self.sparse_convolution_param
