"""
Shape descriptor value type.

`ShapeDescriptor` describes the layout of one entry of a tensor flowing
between layers: a feature-map count plus the per-dimension spatial sizes.
It carries no batch axis; batching is a concern of the execution engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable


@dataclass(frozen=True)
class ShapeDescriptor:
    """
    Feature-map count plus spatial sizes of one tensor entry.

    Attributes
    ----------
    feature_map_count : int
        Number of feature maps (channels).
    dimension_sizes : tuple[int, ...]
        Spatial size of each dimension. An empty tuple describes a
        fully-connected (non-spatial) layout.
    """

    feature_map_count: int
    dimension_sizes: tuple[int, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        sizes = tuple(int(d) for d in self.dimension_sizes)
        if int(self.feature_map_count) < 0:
            raise ValueError(
                f"feature_map_count must be non-negative, got {self.feature_map_count}"
            )
        if any(d < 0 for d in sizes):
            raise ValueError(f"dimension_sizes must be non-negative, got {sizes}")
        object.__setattr__(self, "feature_map_count", int(self.feature_map_count))
        object.__setattr__(self, "dimension_sizes", sizes)

    @classmethod
    def of(cls, feature_map_count: int, *dimension_sizes: int) -> "ShapeDescriptor":
        """Shorthand constructor: ``ShapeDescriptor.of(8, 10, 10)``."""
        return cls(feature_map_count, tuple(dimension_sizes))

    @property
    def dimension_count(self) -> int:
        return len(self.dimension_sizes)

    @property
    def neuron_count_per_feature_map(self) -> int:
        count = 1
        for d in self.dimension_sizes:
            count *= d
        return count

    @property
    def neuron_count(self) -> int:
        return self.neuron_count_per_feature_map * self.feature_map_count

    def with_feature_map_count(self, feature_map_count: int) -> "ShapeDescriptor":
        return ShapeDescriptor(feature_map_count, self.dimension_sizes)

    def get_config(self) -> Dict[str, Any]:
        return {
            "feature_map_count": int(self.feature_map_count),
            "dimension_sizes": [int(d) for d in self.dimension_sizes],
        }

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "ShapeDescriptor":
        sizes: Iterable[int] = cfg.get("dimension_sizes", ()) or ()
        return cls(int(cfg["feature_map_count"]), tuple(int(d) for d in sizes))

    def __str__(self) -> str:
        if not self.dimension_sizes:
            return f"{self.feature_map_count}"
        dims = "x".join(str(d) for d in self.dimension_sizes)
        return f"{self.feature_map_count}x{dims}"
