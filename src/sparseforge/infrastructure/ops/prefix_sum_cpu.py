"""
CPU reference kernel for the segmented, clamped prefix sum (NumPy backend).

Tensor layout
-------------
``(N, C, *dims)`` in and out. The running sum runs along the feature-map
axis ``C`` and restarts every `feature_map_segment_length` feature maps.
"""

from __future__ import annotations

import numpy as np


def prefix_sum_forward_cpu(
    x: np.ndarray,
    feature_map_segment_length: int,
    clamp_min: float,
    clamp_max: float,
) -> np.ndarray:
    """
    Compute the segmented prefix sum of `x` and clamp every output.

    Only the outputs are clamped; the running sum itself is not.

    Raises
    ------
    ValueError
        If the feature-map count is not a multiple of the segment length.
    """
    segment = int(feature_map_segment_length)
    if segment <= 0:
        raise ValueError(f"feature_map_segment_length must be positive, got {segment}")
    n, c = x.shape[:2]
    if c % segment != 0:
        raise ValueError(f"feature map count {c} is not a multiple of segment length {segment}")

    segmented = x.reshape((n, c // segment, segment) + x.shape[2:])
    y = np.cumsum(segmented, axis=2, dtype=x.dtype).reshape(x.shape)
    return np.clip(y, clamp_min, clamp_max)
