"""
Running per-feature-map statistics over a stream of activations.

`ObservationAggregator` is a write-only sink: producers (possibly several
worker threads) call `write` with one entry's activations per layer, and a
consumer reads `get_stat` once the stream is done.

Thread safety
-------------
Each `write` computes its per-feature-map partial statistics without the
lock and merges them into the shared running statistics under a single
`threading.Lock`. `set_config_map` resets the store and must not race with
writers.
"""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass
from typing import Dict, List, Mapping

import numpy as np

from ...domain._shape import ShapeDescriptor


@dataclass(frozen=True)
class FeatureMapDataStat:
    """
    Summary statistics of one feature map over all written entries.
    """

    average: float
    std_dev: float
    min: float
    max: float


@dataclass
class _RunningStat:
    min_val: float = math.inf
    max_val: float = -math.inf
    total: float = 0.0
    total_squared: float = 0.0


class ObservationAggregator:
    """
    Lock-guarded accumulator of per-layer, per-feature-map statistics.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._running_stats: Dict[str, List[_RunningStat]] = {}
        self._neuron_counts: Dict[str, int] = {}
        self._entry_count = 0

    @property
    def entry_count(self) -> int:
        return self._entry_count

    def set_config_map(self, config_map: Mapping[str, ShapeDescriptor]) -> None:
        """
        Register the layers to observe and reset all statistics.

        Parameters
        ----------
        config_map : Mapping[str, ShapeDescriptor]
            Output shape of each observed layer.

        Raises
        ------
        ValueError
            If a shape has no neurons per feature map.
        """
        for name, shape in config_map.items():
            if shape.neuron_count_per_feature_map == 0:
                raise ValueError(f"Layer {name!r} has no neurons per feature map: {shape}")

        with self._lock:
            self._running_stats = {
                name: [_RunningStat() for _ in range(shape.feature_map_count)]
                for name, shape in config_map.items()
            }
            self._neuron_counts = {
                name: shape.neuron_count_per_feature_map for name, shape in config_map.items()
            }
            self._entry_count = 0

    def write(self, data_map: Mapping[str, np.ndarray]) -> None:
        """
        Accumulate one entry.

        Parameters
        ----------
        data_map : Mapping[str, np.ndarray]
            Activations of one entry per observed layer, feature-map major,
            with exactly ``feature_map_count * neuron_count_per_feature_map``
            values.

        Raises
        ------
        ValueError
            If a layer is not registered or its buffer has the wrong size.
        """
        partials = {}
        for name, values in data_map.items():
            if name not in self._running_stats:
                raise ValueError(f"Layer {name!r} is not registered for observation")
            feature_map_count = len(self._running_stats[name])
            neuron_count = self._neuron_counts[name]
            arr = np.asarray(values, dtype=np.float32).reshape(-1)
            if arr.size != feature_map_count * neuron_count:
                raise ValueError(
                    f"Layer {name!r} expects {feature_map_count * neuron_count} values, got {arr.size}"
                )
            per_fm = arr.reshape(feature_map_count, neuron_count).astype(np.float64)
            partials[name] = (
                per_fm.min(axis=1),
                per_fm.max(axis=1),
                per_fm.sum(axis=1),
                np.square(per_fm).sum(axis=1),
            )

        with self._lock:
            for name, (mins, maxs, sums, sums_squared) in partials.items():
                for stat, lo, hi, s, s2 in zip(self._running_stats[name], mins, maxs, sums, sums_squared):
                    stat.min_val = min(stat.min_val, float(lo))
                    stat.max_val = max(stat.max_val, float(hi))
                    stat.total += float(s)
                    stat.total_squared += float(s2)
            self._entry_count += 1

    def get_stat(self) -> Dict[str, List[FeatureMapDataStat]]:
        """
        Return average, standard deviation, min and max per feature map.

        Raises
        ------
        ValueError
            If no entry has been written yet.
        """
        with self._lock:
            if self._entry_count == 0:
                raise ValueError("No entries written to the aggregator")
            res: Dict[str, List[FeatureMapDataStat]] = {}
            for name, running_stats in self._running_stats.items():
                mult = 1.0 / (self._entry_count * self._neuron_counts[name])
                stats = []
                for stat in running_stats:
                    avg = stat.total * mult
                    avg_sq = stat.total_squared * mult
                    stats.append(
                        FeatureMapDataStat(
                            average=avg,
                            std_dev=math.sqrt(max(avg_sq - avg * avg, 0.0)),
                            min=stat.min_val,
                            max=stat.max_val,
                        )
                    )
                res[name] = stats
            return res
