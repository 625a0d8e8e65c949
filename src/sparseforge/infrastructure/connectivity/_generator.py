"""
Randomized degree-constrained bipartite connectivity generator.

This module builds the feature-map connectivity of a sparse layer: a boolean
matrix of shape ``(output_feature_map_count, input_feature_map_count)`` with
exactly ``connection_count`` true entries, spread as evenly as the integer
constraints allow over both outputs and inputs.

Algorithm
---------
Each generation attempt works with a ``margin`` (starting at 0):

1. Strict degree caps ``ceil(E / out) + margin`` for outputs and
   ``ceil(E / in) + margin`` for inputs, plus overflow caps
   ``max(cap + 1, int(cap * overflow_ratio))``. All caps are clamped to the
   dense degree so that a full node always leaves its availability list.
2. Availability lists hold the nodes still below each cap.
3. Edges are placed one at a time through a fallback ladder:

   - cursor tier: pair the cursor output with a random strict input,
   - strict tier: both endpoints random under the strict caps,
   - overflow tier: both endpoints random under the overflow caps.

   Strict exploration is switched off for the rest of the attempt once a
   strict tier fails or a strict list runs empty.
4. Degree bookkeeping removes nodes from a list when they reach its cap.
5. If no tier places an edge the attempt is abandoned, ``margin`` grows by
   one and generation restarts from the seed matrix. Once every cap has
   reached its dense limit, an exhaustive tier picks uniformly among the
   remaining unconnected pairs instead, so generation always terminates.

The result is intentionally randomized: only the edge count and the final
caps are guaranteed, not a canonical matrix.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from ...domain._errors import ConfigurationError, ConnectivityGenerationError
from ._config import ConnectivityGeneratorConfig

logger = logging.getLogger(__name__)


def connection_matrix_to_csr(connection_matrix: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compress a boolean connection matrix into row-major CSR form.

    Parameters
    ----------
    connection_matrix : np.ndarray
        Boolean matrix of shape (output_count, input_count).

    Returns
    -------
    tuple[np.ndarray, np.ndarray]
        ``(column_indices, row_offsets)`` as int32 arrays. For output ``o``
        the connected inputs are
        ``column_indices[row_offsets[o]:row_offsets[o + 1]]`` in ascending
        order.
    """
    matrix = np.asarray(connection_matrix, dtype=bool)
    if matrix.ndim != 2:
        raise ValueError(f"connection_matrix must be 2-D, got shape {matrix.shape}")
    _, column_indices = np.nonzero(matrix)
    row_offsets = np.zeros(matrix.shape[0] + 1, dtype=np.int32)
    np.cumsum(matrix.sum(axis=1), out=row_offsets[1:])
    return column_indices.astype(np.int32), row_offsets


@dataclass(frozen=True)
class ConnectivityPattern:
    """
    Generated feature-map connectivity in dense and CSR form.

    Attributes
    ----------
    connection_matrix : np.ndarray
        Boolean matrix of shape (output_count, input_count).
    column_indices : np.ndarray
        CSR column indices (int32), one per connection.
    row_offsets : np.ndarray
        CSR row offsets (int32), length output_count + 1.
    margin : int
        Relaxation margin of the successful attempt.
    max_output_connections, max_input_connections : int
        Strict caps of the successful attempt.
    max_output_connections_overflow, max_input_connections_overflow : int
        Overflow caps of the successful attempt; every final degree is
        bounded by these.
    """

    connection_matrix: np.ndarray
    column_indices: np.ndarray
    row_offsets: np.ndarray
    margin: int = 0
    max_output_connections: int = 0
    max_input_connections: int = 0
    max_output_connections_overflow: int = 0
    max_input_connections_overflow: int = 0

    @classmethod
    def from_matrix(cls, connection_matrix: np.ndarray, **caps: int) -> "ConnectivityPattern":
        matrix = np.array(connection_matrix, dtype=bool, copy=True)
        column_indices, row_offsets = connection_matrix_to_csr(matrix)
        matrix.setflags(write=False)
        column_indices.setflags(write=False)
        row_offsets.setflags(write=False)
        return cls(matrix, column_indices, row_offsets, **caps)

    @property
    def output_feature_map_count(self) -> int:
        return int(self.connection_matrix.shape[0])

    @property
    def input_feature_map_count(self) -> int:
        return int(self.connection_matrix.shape[1])

    @property
    def connection_count(self) -> int:
        return int(self.column_indices.size)

    @property
    def output_degrees(self) -> np.ndarray:
        return np.diff(self.row_offsets)

    @property
    def input_degrees(self) -> np.ndarray:
        return self.connection_matrix.sum(axis=0).astype(np.int32)


def _caps(
    connection_count: int, node_count: int, dense_degree: int, margin: int, overflow_ratio: float
) -> Tuple[int, int]:
    strict = min(math.ceil(connection_count / node_count) + margin, dense_degree)
    overflow = min(max(strict + 1, int(strict * overflow_ratio)), dense_degree)
    return strict, overflow


def _pick(values: List[int], generator: np.random.Generator) -> int:
    return values[int(generator.integers(len(values)))]


def _try_random_pairs(
    generator: np.random.Generator,
    matrix: np.ndarray,
    outputs: List[int],
    inputs: List[int],
    attempt_count: int,
) -> Optional[Tuple[int, int]]:
    if not outputs or not inputs:
        return None
    for _ in range(attempt_count):
        o = _pick(outputs, generator)
        i = _pick(inputs, generator)
        if not matrix[o, i]:
            return o, i
    return None


def _try_exhaustive(
    generator: np.random.Generator, matrix: np.ndarray
) -> Optional[Tuple[int, int]]:
    free = np.flatnonzero(~matrix)
    if free.size == 0:
        return None
    flat = int(free[int(generator.integers(free.size))])
    return divmod(flat, matrix.shape[1])


def _fill_attempt(
    generator: np.random.Generator,
    seed: np.ndarray,
    connection_count: int,
    margin: int,
    config: ConnectivityGeneratorConfig,
) -> Tuple[Optional[np.ndarray], dict]:
    matrix = seed.copy()
    output_count, input_count = matrix.shape

    out_cap, out_cap_overflow = _caps(
        connection_count, output_count, input_count, margin, config.overflow_ratio
    )
    in_cap, in_cap_overflow = _caps(
        connection_count, input_count, output_count, margin, config.overflow_ratio
    )
    caps = {
        "margin": margin,
        "max_output_connections": out_cap,
        "max_input_connections": in_cap,
        "max_output_connections_overflow": out_cap_overflow,
        "max_input_connections_overflow": in_cap_overflow,
    }
    saturated = out_cap == input_count and in_cap == output_count

    out_degrees = [int(d) for d in matrix.sum(axis=1)]
    in_degrees = [int(d) for d in matrix.sum(axis=0)]
    out_available = [o for o in range(output_count) if out_degrees[o] < out_cap]
    out_available_overflow = [o for o in range(output_count) if out_degrees[o] < out_cap_overflow]
    in_available = [i for i in range(input_count) if in_degrees[i] < in_cap]
    in_available_overflow = [i for i in range(input_count) if in_degrees[i] < in_cap_overflow]

    explore_strict = bool(out_available) and bool(in_available)
    cursor = 0
    exhaustive_used = False

    for _ in range(int(matrix.sum()), connection_count):
        pair: Optional[Tuple[int, int]] = None

        if explore_strict:
            o = out_available[cursor]
            for _attempt in range(config.cursor_attempt_count):
                i = _pick(in_available, generator)
                if not matrix[o, i]:
                    pair = (o, i)
                    break
            if pair is None:
                pair = _try_random_pairs(
                    generator, matrix, out_available, in_available, config.strict_attempt_count
                )
            explore_strict = pair is not None

        if pair is None:
            pair = _try_random_pairs(
                generator,
                matrix,
                out_available_overflow,
                in_available_overflow,
                config.overflow_attempt_count,
            )

        if pair is None and saturated:
            pair = _try_exhaustive(generator, matrix)
            exhaustive_used = True

        if pair is None:
            return None, caps

        o, i = pair
        matrix[o, i] = True

        out_degrees[o] += 1
        if out_degrees[o] == out_cap:
            out_available.remove(o)
        else:
            cursor += 1
        if out_degrees[o] == out_cap_overflow:
            out_available_overflow.remove(o)

        in_degrees[i] += 1
        if in_degrees[i] == in_cap:
            in_available.remove(i)
        if in_degrees[i] == in_cap_overflow:
            in_available_overflow.remove(i)

        if out_available:
            cursor %= len(out_available)

        if explore_strict:
            explore_strict = bool(out_available) and bool(in_available)

    if exhaustive_used:
        logger.warning(
            "Connectivity %dx%d with %d connections needed the exhaustive tier (margin %d)",
            output_count,
            input_count,
            connection_count,
            margin,
        )
    return matrix, caps


def fill_connection_matrix(
    generator: np.random.Generator,
    output_feature_map_count: int,
    input_feature_map_count: int,
    feature_map_connection_count: int,
    *,
    connection_matrix: Optional[np.ndarray] = None,
    config: Optional[ConnectivityGeneratorConfig] = None,
) -> ConnectivityPattern:
    """
    Generate a random bipartite connectivity with near-uniform degrees.

    Parameters
    ----------
    generator : np.random.Generator
        Caller-owned random generator; never seeded here.
    output_feature_map_count : int
        Number of output feature maps (matrix rows).
    input_feature_map_count : int
        Number of input feature maps (matrix columns).
    feature_map_connection_count : int
        Exact number of connections to place, within
        ``[max(out, in), out * in]``.
    connection_matrix : Optional[np.ndarray]
        Seed connections kept in every attempt. Defaults to no connections.
    config : Optional[ConnectivityGeneratorConfig]
        Tier sizes, overflow tolerance and restart ceiling.

    Returns
    -------
    ConnectivityPattern
        The generated connectivity and the caps it satisfies.

    Raises
    ------
    ConfigurationError
        If the counts are out of range or the seed does not fit.
    ConnectivityGenerationError
        If no attempt succeeds within ``config.max_restarts`` relaxations.
    """
    cfg = config if config is not None else ConnectivityGeneratorConfig()
    output_count = int(output_feature_map_count)
    input_count = int(input_feature_map_count)
    connection_count = int(feature_map_connection_count)

    if output_count <= 0:
        raise ConfigurationError("output_feature_map_count", f"must be positive, got {output_count}")
    if input_count <= 0:
        raise ConfigurationError("input_feature_map_count", f"must be positive, got {input_count}")
    if not max(output_count, input_count) <= connection_count <= output_count * input_count:
        raise ConfigurationError(
            "feature_map_connection_count",
            f"{connection_count} is outside "
            f"[{max(output_count, input_count)}, {output_count * input_count}]",
        )

    if connection_matrix is None:
        seed = np.zeros((output_count, input_count), dtype=bool)
    else:
        seed = np.array(connection_matrix, dtype=bool, copy=True)
        if seed.shape != (output_count, input_count):
            raise ConfigurationError(
                "connection_matrix",
                f"shape {seed.shape} does not match ({output_count}, {input_count})",
            )
        if int(seed.sum()) > connection_count:
            raise ConfigurationError(
                "connection_matrix",
                f"already holds {int(seed.sum())} connections, more than {connection_count}",
            )

    margin = 0
    for _restart in range(cfg.max_restarts + 1):
        matrix, caps = _fill_attempt(generator, seed, connection_count, margin, cfg)
        if matrix is not None:
            logger.debug(
                "Generated %dx%d connectivity with %d connections at margin %d",
                output_count,
                input_count,
                connection_count,
                margin,
            )
            return ConnectivityPattern.from_matrix(matrix, **caps)
        margin += 1
        logger.debug(
            "Connectivity %dx%d with %d connections: relaxing margin to %d",
            output_count,
            input_count,
            connection_count,
            margin,
        )

    raise ConnectivityGenerationError(
        cfg.max_restarts,
        f"Failed to place {connection_count} connections between "
        f"{output_count} outputs and {input_count} inputs",
    )
