"""
Layer registry mapping type tags to prototype layers.

A `LayerFactory` holds one sample (prototype) instance per layer type and
hands out clones of it. Each registered type also receives a stable integer
type id, assigned in registration order.

Factories are ordinary objects passed to the code that needs them (network
schema loading, record decoding); there is no process-wide instance.
`default_layer_factory()` builds a fresh factory with the built-in layers.
"""

from __future__ import annotations

import logging
from typing import Dict, Tuple

from ..serialization._schema import LayerRecord
from ._layer import Layer
from ._negative_log_likelihood import NegativeLogLikelihoodLayer
from ._prefix_sum import PrefixSumLayer
from ._sparse_convolution import SparseConvolutionLayer

logger = logging.getLogger(__name__)


class LayerFactory:
    """
    Registry of prototype layers keyed by type name.

    Notes
    -----
    - Type ids are never reused within one factory: unregistering a type
      frees its name but not its id.
    - Created layers are deep copies; mutating them never affects the
      registered sample.
    """

    def __init__(self) -> None:
        self._samples: Dict[str, Layer] = {}
        self._type_ids: Dict[str, int] = {}
        self._next_type_id = 0

    def register_layer(self, sample_layer: Layer, *, overwrite: bool = False) -> int:
        """
        Register `sample_layer` under its type name.

        Parameters
        ----------
        sample_layer : Layer
            Prototype instance; cloned on every `create_layer` call.
        overwrite : bool, optional
            Replace an existing sample of the same type (keeping its id).

        Returns
        -------
        int
            The type id of the registered type.

        Raises
        ------
        ValueError
            If the type is already registered and `overwrite` is False.
        """
        name = sample_layer.get_type_name()
        if name in self._samples and not overwrite:
            raise ValueError(f"Layer type already registered: {name!r}")

        self._samples[name] = sample_layer.clone()
        if name not in self._type_ids:
            self._type_ids[name] = self._next_type_id
            self._next_type_id += 1
        logger.debug("Registered layer type %s with id %d", name, self._type_ids[name])
        return self._type_ids[name]

    def unregister_layer(self, layer_type_name: str) -> bool:
        """
        Remove a layer type. Returns False if it was not registered.
        """
        if layer_type_name not in self._samples:
            return False
        del self._samples[layer_type_name]
        del self._type_ids[layer_type_name]
        return True

    def _lookup(self, layer_type_name: str) -> Layer:
        try:
            return self._samples[layer_type_name]
        except KeyError as e:
            available = ", ".join(self.available()) or "<none>"
            raise ValueError(
                f"Unknown layer type: {layer_type_name!r}. Available: {available}"
            ) from e

    def create_layer(self, layer_type_name: str) -> Layer:
        """Return a fresh clone of the sample registered under `layer_type_name`."""
        return self._lookup(layer_type_name).clone()

    def get_layer_type_id(self, layer_type_name: str) -> int:
        self._lookup(layer_type_name)
        return self._type_ids[layer_type_name]

    def available(self) -> Tuple[str, ...]:
        """Return registered type names (sorted)."""
        return tuple(sorted(self._samples))

    def create_layer_from_record(self, record: LayerRecord) -> Layer:
        """
        Build a layer of `record.type` and populate it from `record`.

        Raises
        ------
        ValueError
            If the type is unknown.
        MissingFieldError
            If the record lacks a required field of its variant.
        """
        layer = self.create_layer(record.type)
        layer.read_record(record)
        return layer

    def __contains__(self, layer_type_name: object) -> bool:
        return layer_type_name in self._samples

    def __len__(self) -> int:
        return len(self._samples)


def default_layer_factory() -> LayerFactory:
    """
    Return a new factory with the built-in layer types registered.
    """
    factory = LayerFactory()
    factory.register_layer(NegativeLogLikelihoodLayer())
    factory.register_layer(PrefixSumLayer(1))
    factory.register_layer(SparseConvolutionLayer([], 1, 1, 1))
    return factory
