"""
CPU reference kernel for the negative log-likelihood loss (NumPy backend).

Tensor layout
-------------
- predicted, target : ``(N, C, *dims)``
- scale (optional)  : ``(N, 1, *dims)``
- output            : ``(N, 1, *dims)``
"""

from __future__ import annotations

from typing import Optional

import numpy as np


def negative_log_likelihood_forward_cpu(
    predicted: np.ndarray,
    target: np.ndarray,
    scale_mask: Optional[np.ndarray] = None,
    *,
    scale: float = 1.0,
) -> np.ndarray:
    """
    Compute ``-scale * mask * sum_c(target * log(predicted))`` per position.

    Parameters
    ----------
    predicted : np.ndarray
        Predicted probabilities, shape (N, C, *dims).
    target : np.ndarray
        Target distribution, same shape as `predicted`.
    scale_mask : Optional[np.ndarray]
        Per-position multiplier of shape (N, 1, *dims). Defaults to ones.
    scale : float
        Constant multiplier.

    Returns
    -------
    np.ndarray
        Loss map of shape (N, 1, *dims).

    Notes
    -----
    Terms with a zero target contribute zero even where the prediction is
    zero.
    """
    if predicted.shape != target.shape:
        raise ValueError(f"predicted shape {predicted.shape} does not match target shape {target.shape}")

    with np.errstate(divide="ignore", invalid="ignore"):
        terms = np.where(target != 0, target * np.log(predicted), 0.0)
    y = -scale * terms.sum(axis=1, keepdims=True)

    if scale_mask is not None:
        expected = (predicted.shape[0], 1) + predicted.shape[2:]
        if scale_mask.shape != expected:
            raise ValueError(f"scale mask shape mismatch: expected {expected}, got {scale_mask.shape}")
        y = y * scale_mask
    return y.astype(predicted.dtype, copy=False)
