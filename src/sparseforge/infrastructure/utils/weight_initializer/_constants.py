"""
Constant weight initializer.

Registers ``zeros`` with the global `WeightInitializer` registry. Sparse
convolution uses it for its bias group.

The generator argument is accepted for signature uniformity and ignored.
"""

import numpy as np

from ._base import WeightInitializer


@WeightInitializer.register_initializer("zeros")
def zeros(buffer: np.ndarray, generator: np.random.Generator) -> np.ndarray:
    buffer.fill(0.0)
    return buffer
