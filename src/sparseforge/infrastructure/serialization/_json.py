"""
JSON conversion for layer records.

Records become plain nested dicts that `json` can write directly. Absent
(None) fields and empty lists are left out. Reading a dict back rejects keys
the record dataclasses do not define.
"""

from __future__ import annotations

import dataclasses
from typing import Any, Dict, List, Type, TypeVar

from ._schema import (
    LayerRecord,
    NegativeLogLikelihoodParam,
    PrefixSumParam,
    SparseConvolutionDimensionParam,
    SparseConvolutionParam,
)

T = TypeVar("T")

_NESTED: Dict[str, type] = {
    "negative_log_likelihood_param": NegativeLogLikelihoodParam,
    "prefix_sum_param": PrefixSumParam,
    "sparse_convolution_param": SparseConvolutionParam,
}


def _to_dict(obj: Any) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for f in dataclasses.fields(obj):
        value = getattr(obj, f.name)
        if value is None:
            continue
        if dataclasses.is_dataclass(value):
            out[f.name] = _to_dict(value)
        elif isinstance(value, list):
            if not value:
                continue
            out[f.name] = [_to_dict(v) if dataclasses.is_dataclass(v) else v for v in value]
        else:
            out[f.name] = value
    return out


def _from_dict(cls: Type[T], data: Dict[str, Any]) -> T:
    names = {f.name for f in dataclasses.fields(cls)}
    unknown = sorted(set(data) - names)
    if unknown:
        raise ValueError(f"Unknown field(s) for {cls.__name__}: {', '.join(unknown)}")
    return cls(**data)


def record_to_dict(record: LayerRecord) -> Dict[str, Any]:
    """
    Convert a `LayerRecord` into a JSON-safe dict.

    Absent (None) fields and empty lists are omitted, so a record written
    by a default-configured layer stays minimal.
    """
    return _to_dict(record)


def record_from_dict(data: Dict[str, Any]) -> LayerRecord:
    """
    Rebuild a `LayerRecord` from a dict produced by `record_to_dict`.

    Raises
    ------
    ValueError
        If the dict contains keys the schema does not define.
    """
    payload = dict(data)
    for key, cls in _NESTED.items():
        if payload.get(key) is not None:
            block = dict(payload[key])
            if cls is SparseConvolutionParam and "dimension_param" in block:
                block["dimension_param"] = [
                    _from_dict(SparseConvolutionDimensionParam, d)
                    for d in block["dimension_param"]
                ]
            payload[key] = _from_dict(cls, block)
    if "input_layer_name" in payload:
        payload["input_layer_name"] = [str(n) for n in payload["input_layer_name"]]
    return _from_dict(LayerRecord, payload)


def records_to_list(records: List[LayerRecord]) -> List[Dict[str, Any]]:
    return [record_to_dict(r) for r in records]
