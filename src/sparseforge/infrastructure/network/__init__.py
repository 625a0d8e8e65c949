"""
Network-level containers: the layer schema and its parameter data.
"""

from ._network_schema import SCHEMA_FORMAT, NetworkSchema
from ._network_data import DATA_FORMAT, NetworkData

__all__ = [
    NetworkSchema.__name__,
    NetworkData.__name__,
    "SCHEMA_FORMAT",
    "DATA_FORMAT",
]
