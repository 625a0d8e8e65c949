"""
Fan-in-aware normal initializer for sparsely connected layers.

Dense variance-scaling initializers (Xavier, Kaiming) compute one fan-in for
the whole weight tensor. In a sparse layer every output feature map has its
own number of connected inputs, so the standard deviation is recomputed per
output from that output's actual fan-in.

Provided initializers
---------------------
- ``sparse_fan_in_normal``:
    For output feature map ``o`` with fan-in ``k > 0``:

        std = sqrt(1 / (sqrt(k * output_feature_map_count) * window_volume))

    Draws with ``|w| > 100 * std`` are rejected and resampled. Outputs with no
    connections own no weights and are skipped.
"""

from __future__ import annotations

import numpy as np

from ._base import WeightInitializer
from ....domain.utils._weight_initialization import _sparse_fan_in_std

MAX_ABS_STD_MULTIPLE = 100.0


def normal_with_rejection(
    generator: np.random.Generator,
    std: float,
    size: int,
    *,
    max_abs_value: float,
    dtype: np.dtype = np.dtype(np.float32),
) -> np.ndarray:
    """
    Draw `size` zero-mean normal samples, resampling any draw whose magnitude
    exceeds `max_abs_value`.

    Parameters
    ----------
    generator:
        Caller-owned random generator.
    std:
        Standard deviation of the distribution.
    size:
        Number of samples.
    max_abs_value:
        Rejection threshold (inclusive bound on the returned magnitudes).
    dtype:
        Output dtype. Rejection is applied after the cast so the bound holds
        for the stored values.
    """
    values = generator.normal(0.0, std, size).astype(dtype, copy=False)
    rejected = np.flatnonzero(np.abs(values) > max_abs_value)
    while rejected.size > 0:
        values[rejected] = generator.normal(0.0, std, rejected.size).astype(dtype, copy=False)
        rejected = rejected[np.abs(values[rejected]) > max_abs_value]
    return values


@WeightInitializer.register_initializer("sparse_fan_in_normal")
def sparse_fan_in_normal(
    buffer: np.ndarray,
    generator: np.random.Generator,
    *,
    row_offsets: np.ndarray,
    output_feature_map_count: int,
    window_volume: int,
) -> np.ndarray:
    """
    Fill a CSR-ordered sparse weight buffer in-place.

    Parameters
    ----------
    buffer:
        Flat weight buffer of length ``row_offsets[-1] * window_volume``,
        laid out as one window-sized block per connection in CSR order.
    generator:
        Caller-owned random generator.
    row_offsets:
        CSR row offsets of length ``output_feature_map_count + 1``.
    output_feature_map_count:
        Number of output feature maps.
    window_volume:
        Product of the window sizes.

    Returns
    -------
    np.ndarray
        The initialized buffer (same object).
    """
    offsets = np.asarray(row_offsets, dtype=np.int64)
    if offsets.shape != (output_feature_map_count + 1,):
        raise ValueError(
            f"row_offsets must have length {output_feature_map_count + 1}, got {offsets.shape}"
        )
    expected = int(offsets[-1]) * int(window_volume)
    if buffer.size != expected:
        raise ValueError(f"Weight buffer holds {buffer.size} values, expected {expected}")

    for output_feature_map_id in range(output_feature_map_count):
        start = int(offsets[output_feature_map_id])
        stop = int(offsets[output_feature_map_id + 1])
        fan_in = stop - start
        if fan_in <= 0:
            continue
        std = _sparse_fan_in_std(fan_in, output_feature_map_count, window_volume)
        buffer[start * window_volume : stop * window_volume] = normal_with_rejection(
            generator,
            std,
            fan_in * window_volume,
            max_abs_value=MAX_ABS_STD_MULTIPLE * std,
            dtype=buffer.dtype,
        )
    return buffer
