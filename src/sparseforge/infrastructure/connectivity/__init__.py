"""
Feature-map connectivity generation for sparse layers.
"""

from ._config import ConnectivityGeneratorConfig
from ._generator import ConnectivityPattern, connection_matrix_to_csr, fill_connection_matrix

__all__ = [
    ConnectivityGeneratorConfig.__name__,
    ConnectivityPattern.__name__,
    connection_matrix_to_csr.__name__,
    fill_connection_matrix.__name__,
]
