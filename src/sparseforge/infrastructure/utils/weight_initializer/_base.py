"""
Weight initializer registry and dispatch utilities.

This module defines the concrete `WeightInitializer` used by the
infrastructure layer to apply registered weight initialization strategies to
flat parameter buffers (`numpy.ndarray`).

Design
------
- Initializers are registered by string name via a decorator-based registry.
- Each initializer is a callable ``init(buffer, generator, **kwargs)`` that
  fills `buffer` *in-place* from the caller's `numpy.random.Generator` and
  returns it. Initializers never create or seed their own generator.
- The dispatcher resolves an initializer by name at construction time and
  invokes it via `__call__`.

Usage example
-------------
Registering an initializer:

    @WeightInitializer.register_initializer("zeros")
    def zeros(buffer, generator):
        ...

Applying an initializer:

    init = WeightInitializer("sparse_fan_in_normal")
    init(weights, generator, row_offsets=offsets, ...)
"""

from __future__ import annotations

from typing import Any, Callable, ClassVar, Dict, TypeVar

import numpy as np

from ....domain.utils._weight_initialization import _WeightInitializer

T = TypeVar("T", bound=Callable[..., np.ndarray])


class WeightInitializer(_WeightInitializer):
    """
    Registry-backed weight initializer dispatcher.

    Usage
    -----
    Register:
        @WeightInitializer.register_initializer("zeros")
        def zeros(buffer, generator): ...

    Dispatch:
        init = WeightInitializer("zeros")
        init(buffer, generator)

    Notes
    -----
    - Initializers are stored by string name in a class-level registry.
    - The initializer callable should mutate `buffer` in-place and return it.
    """

    INITIALIZERS: ClassVar[Dict[str, Callable[..., np.ndarray]]] = {}

    def __init__(self, initializer_name: str) -> None:
        try:
            self._initializer: Callable[..., np.ndarray] = self.INITIALIZERS[
                initializer_name
            ]
        except KeyError as e:
            available = ", ".join(sorted(self.INITIALIZERS)) or "<none>"
            raise ValueError(
                f"Unsupported initializer name: {initializer_name!r}. "
                f"Available: {available}"
            ) from e
        self.name = initializer_name

    @classmethod
    def register_initializer(
        cls, name: str, *, overwrite: bool = False
    ) -> Callable[[T], T]:
        """
        Decorator to register a weight initializer under `name`.

        Parameters
        ----------
        name:
            Registry key used to retrieve the initializer later.
        overwrite:
            If False (default), raises if `name` is already registered.
        """
        if not isinstance(name, str) or not name:
            raise ValueError("Initializer name must be a non-empty string")

        def decorator(func: T) -> T:
            if not overwrite and name in cls.INITIALIZERS:
                raise ValueError(f"Initializer already registered: {name!r}")
            cls.INITIALIZERS[name] = func
            return func

        return decorator

    @classmethod
    def available(cls) -> tuple[str, ...]:
        """Return registered initializer names (sorted)."""
        return tuple(sorted(cls.INITIALIZERS))

    def __call__(
        self, buffer: np.ndarray, generator: np.random.Generator, *args: Any, **kwargs: Any
    ) -> np.ndarray:
        return self._initializer(buffer, generator, *args, **kwargs)
