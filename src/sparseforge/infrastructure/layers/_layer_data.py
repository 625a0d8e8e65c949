"""
Parameter storage for layers.

A layer declares its learnable parameter groups through
`LayerDataConfiguration` entries; `LayerData` owns one flat float32 buffer per
group and `LayerDataCustom` owns one flat int32 buffer per auxiliary index
group (e.g. the CSR connectivity of a sparse convolution).

Buffers are created zero-filled, overwritten in place by randomization and
persisted through `NetworkData`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Sequence

import numpy as np


@dataclass(frozen=True)
class LayerDataConfiguration:
    """
    Storage-shape declaration of one parameter group.

    Attributes
    ----------
    input_feature_map_count : int
        Leading factor (1 for groups not indexed by input).
    output_feature_map_count : int
        Number of blocks in the group (connections, or output feature maps).
    dimension_sizes : tuple[int, ...]
        Spatial block shape (the window sizes; empty for biases).
    """

    input_feature_map_count: int
    output_feature_map_count: int
    dimension_sizes: tuple[int, ...] = field(default_factory=tuple)

    @property
    def element_count(self) -> int:
        count = int(self.input_feature_map_count) * int(self.output_feature_map_count)
        for d in self.dimension_sizes:
            count *= int(d)
        return count


class _BufferList:
    dtype: np.dtype = np.dtype(np.float32)

    def __init__(self, buffers: Sequence[np.ndarray] = ()) -> None:
        self._buffers: List[np.ndarray] = [
            np.ascontiguousarray(b, dtype=self.dtype).reshape(-1) for b in buffers
        ]

    @classmethod
    def zeros(cls, sizes: Sequence[int]):
        return cls([np.zeros(int(s), dtype=cls.dtype) for s in sizes])

    def __len__(self) -> int:
        return len(self._buffers)

    def __iter__(self) -> Iterator[np.ndarray]:
        return iter(self._buffers)

    def __getitem__(self, idx: int) -> np.ndarray:
        return self._buffers[idx]

    def __setitem__(self, idx: int, value: np.ndarray) -> None:
        arr = np.ascontiguousarray(value, dtype=self.dtype).reshape(-1)
        if arr.size != self._buffers[idx].size:
            raise ValueError(
                f"Buffer {idx} holds {self._buffers[idx].size} values, got {arr.size}"
            )
        self._buffers[idx][...] = arr

    def sizes(self) -> List[int]:
        return [int(b.size) for b in self._buffers]

    def check_consistency(self, expected_sizes: Sequence[int]) -> None:
        """
        Raise ValueError if the buffer sizes differ from `expected_sizes`.
        """
        actual = self.sizes()
        if actual != [int(s) for s in expected_sizes]:
            raise ValueError(
                f"{type(self).__name__} sizes {actual} do not match expected {list(expected_sizes)}"
            )


class LayerData(_BufferList):
    """
    Learnable parameter buffers of one layer (weights, bias, ...).
    """

    dtype = np.dtype(np.float32)


class LayerDataCustom(_BufferList):
    """
    Auxiliary integer buffers of one layer, such as connectivity indices.
    """

    dtype = np.dtype(np.int32)
