"""
Weight initialization public API.

This module aggregates the supported weight initialization strategies and
registers them into the global `WeightInitializer` registry via import side
effects.

Importing this module ensures that all built-in initializers are available
for lookup and dispatch through `WeightInitializer`.

Exports
-------
- WeightInitializer:
    The registry-backed dispatcher.
- normal_with_rejection:
    Bounded normal sampler shared by the sparse initializer.
"""

from ._constants import *
from ._sparse import *
from ._base import WeightInitializer
from ._sparse import normal_with_rejection

__all__ = [
    WeightInitializer.__name__,
    normal_with_rejection.__name__,
]
