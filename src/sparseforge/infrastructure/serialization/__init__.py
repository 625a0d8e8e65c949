"""
Typed layer record schema and its JSON conversion.
"""

from ._schema import (
    LayerRecord,
    NegativeLogLikelihoodParam,
    PrefixSumParam,
    SparseConvolutionDimensionParam,
    SparseConvolutionParam,
)
from ._json import record_from_dict, record_to_dict, records_to_list

__all__ = [
    LayerRecord.__name__,
    NegativeLogLikelihoodParam.__name__,
    PrefixSumParam.__name__,
    SparseConvolutionDimensionParam.__name__,
    SparseConvolutionParam.__name__,
    record_from_dict.__name__,
    record_to_dict.__name__,
    records_to_list.__name__,
]
