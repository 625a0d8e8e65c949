"""
CPU reference kernel for sparse N-dimensional convolution (NumPy backend).

This module provides a readable NumPy implementation of the sparse
convolution forward pass. It is the numerical ground truth for tests and for
any optimized backend.

Tensor layout
-------------
- input  : ``(N, C_in, *dims)``
- output : ``(N, C_out, *out_dims)``

Weights layout
--------------
Weights are a flat buffer with one window-sized block per connection, in CSR
order: the block of connection ``j`` (``row_offsets[o] <= j < row_offsets[o+1]``)
couples output feature map ``o`` with input feature map ``column_indices[j]``.

Design notes
------------
- Padding may be asymmetric (independent left and right zero padding).
- Windows are extracted with `numpy.lib.stride_tricks.sliding_window_view`
  and subsampled by the strides; each connection contributes one tensordot.
- The kernel performs no cross-correlation flip, matching the layer's
  convention.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view


def sparse_convolution_forward_cpu(
    x: np.ndarray,
    weights: np.ndarray,
    bias: Optional[np.ndarray],
    column_indices: np.ndarray,
    row_offsets: np.ndarray,
    window_sizes: Sequence[int],
    left_zero_padding: Sequence[int],
    right_zero_padding: Sequence[int],
    strides: Sequence[int],
) -> np.ndarray:
    """
    Compute the forward pass of a sparse convolution.

    Parameters
    ----------
    x : np.ndarray
        Input of shape (N, C_in, *dims).
    weights : np.ndarray
        Flat weights of length ``len(column_indices) * prod(window_sizes)``.
    bias : Optional[np.ndarray]
        Bias of length C_out, or None.
    column_indices, row_offsets : np.ndarray
        CSR connectivity; ``len(row_offsets) == C_out + 1``.
    window_sizes, left_zero_padding, right_zero_padding, strides : Sequence[int]
        Per-dimension geometry.

    Returns
    -------
    np.ndarray
        Output of shape (N, C_out, *out_dims).

    Raises
    ------
    ValueError
        If the buffers and geometry are inconsistent with `x`.
    """
    window_sizes = tuple(int(w) for w in window_sizes)
    dim_count = len(window_sizes)
    if x.ndim != dim_count + 2:
        raise ValueError(f"Expected input with {dim_count + 2} axes, got shape {x.shape}")

    row_offsets = np.asarray(row_offsets, dtype=np.int64)
    column_indices = np.asarray(column_indices, dtype=np.int64)
    output_feature_map_count = row_offsets.size - 1
    window_volume = int(np.prod(window_sizes, dtype=np.int64))

    if weights.size != column_indices.size * window_volume:
        raise ValueError(
            f"weights hold {weights.size} values, expected {column_indices.size * window_volume}"
        )
    if bias is not None and bias.size != output_feature_map_count:
        raise ValueError(f"bias shape mismatch: expected ({output_feature_map_count},), got {bias.shape}")
    if column_indices.size and int(column_indices.max()) >= x.shape[1]:
        raise ValueError(f"column index {int(column_indices.max())} out of range for {x.shape[1]} input feature maps")

    pad_width = [(0, 0), (0, 0)] + [
        (int(l), int(r)) for l, r in zip(left_zero_padding, right_zero_padding)
    ]
    x_pad = np.pad(x, pad_width, mode="constant", constant_values=0.0)

    if dim_count:
        spatial_axes = tuple(range(2, 2 + dim_count))
        windows = sliding_window_view(x_pad, window_sizes, axis=spatial_axes)
        stride_slices = (slice(None), slice(None)) + tuple(slice(None, None, int(s)) for s in strides)
        windows = windows[stride_slices]
    else:
        windows = x_pad
    out_dims = windows.shape[2 : 2 + dim_count]

    w_blocks = weights.reshape((column_indices.size,) + window_sizes)
    # window axes of one input feature map: (N, *out_dims, *window)
    window_axes = tuple(range(1 + dim_count, 1 + 2 * dim_count))

    y = np.zeros((x.shape[0], output_feature_map_count) + tuple(out_dims), dtype=x.dtype)
    for o in range(output_feature_map_count):
        for j in range(int(row_offsets[o]), int(row_offsets[o + 1])):
            i = int(column_indices[j])
            y[:, o] += np.tensordot(
                windows[:, i], w_blocks[j], axes=(window_axes, tuple(range(dim_count)))
            )
        if bias is not None:
            y[:, o] += bias[o]
    return y
