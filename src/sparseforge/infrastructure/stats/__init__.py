"""
Diagnostic statistics sinks.
"""

from ._observation_aggregator import FeatureMapDataStat, ObservationAggregator

__all__ = [
    FeatureMapDataStat.__name__,
    ObservationAggregator.__name__,
]
