from __future__ import annotations

import base64
from typing import Any, Dict, Optional

import numpy as np


def bytes_to_b64_str(b: bytes) -> str:
    """
    Encode raw bytes into a base64 ASCII string (JSON-safe).
    """
    return base64.b64encode(b).decode("ascii")


def b64_str_to_bytes(s: str) -> bytes:
    """
    Decode a base64 ASCII string back into raw bytes.
    """
    return base64.b64decode(s.encode("ascii"))


def buffer_to_payload(arr: np.ndarray) -> Dict[str, Any]:
    """
    Serialize a parameter buffer into a JSON-safe payload.

    Returns
    -------
    dict
        {
          "b64": "<base64>",
          "dtype": "<numpy dtype str>",
          "shape": [...]
        }
    """
    a = np.ascontiguousarray(arr)
    return {
        "b64": bytes_to_b64_str(a.tobytes(order="C")),
        "dtype": a.dtype.str,  # e.g. "<f4"
        "shape": list(a.shape),
    }


def payload_to_buffer(
    payload: Dict[str, Any], *, expected_dtype: Optional[np.dtype] = None
) -> np.ndarray:
    """
    Deserialize a payload produced by `buffer_to_payload`.

    Parameters
    ----------
    payload:
        The JSON payload.
    expected_dtype:
        If given, the decoded buffer is cast to this dtype (e.g. float32 for
        weights, int32 for connectivity indices).

    Raises
    ------
    ValueError
        If the byte length does not match the declared dtype and shape.
    """
    b = b64_str_to_bytes(str(payload["b64"]))
    dtype = np.dtype(str(payload["dtype"]))
    shape = tuple(int(x) for x in payload["shape"])

    count = 1
    for d in shape:
        count *= d
    if len(b) != count * dtype.itemsize:
        raise ValueError(
            f"Payload size mismatch: {len(b)} bytes for shape {shape} and dtype {dtype.str}"
        )

    arr = np.frombuffer(b, dtype=dtype).reshape(shape)
    if expected_dtype is not None:
        return arr.astype(expected_dtype, copy=True)
    # Owning copy; frombuffer views are read-only
    return np.array(arr, copy=True, order="C")
