"""
Abstract interfaces and utilities for weight initialization.

This module defines the abstract base class for weight initializers used
throughout the framework, along with shared helpers for the fan-in-aware
variance scaling used by sparsely connected layers.

The concrete implementation and registry logic live in the infrastructure
layer. This module exists in the domain layer to define contracts and shared
mathematical utilities without binding to any specific backend.
"""

import math
from abc import ABC
from typing import Any, Callable, Dict, TypeVar


T = TypeVar("T", bound=Callable[..., Any])


class _WeightInitializer(ABC):
    """
    Abstract base class for weight initializer dispatchers.

    This class defines the contract for registry-based weight initialization.
    Concrete subclasses are responsible for implementing registry behavior
    and dispatch logic.

    Design notes
    ------------
    - Initializers are identified by string names.
    - Each initializer is a callable that fills a flat parameter buffer
      in-place from a caller-supplied random generator and returns it.
    - This class does not prescribe how initializers are stored or invoked;
      it only defines the expected interface.
    """

    INITIALIZERS: Dict[str, Callable] = {}

    def __init__(self, initializer_name: str) -> None:
        """
        Construct a weight initializer dispatcher.

        Parameters
        ----------
        initializer_name:
            The string key identifying a registered initializer.
        """
        ...

    @classmethod
    def register_initializer(
        cls, name: str, *, overwrite: bool = False
    ) -> Callable[[T], T]:
        """
        Register a weight initializer under a given name.

        Parameters
        ----------
        name:
            Name used to identify the initializer.
        overwrite:
            Whether to allow overwriting an existing registration.

        Returns
        -------
        Callable
            A decorator that registers the initializer function.
        """
        ...

    @classmethod
    def available(cls) -> tuple[str, ...]:
        """
        Return the names of all registered initializers, sorted.
        """
        ...

    def __call__(self, buffer: Any, generator: Any, *args, **kwargs) -> Any:
        """
        Apply the initializer to a buffer.

        Parameters
        ----------
        buffer:
            The flat parameter buffer to fill in-place.
        generator:
            Random generator owned by the caller.
        *args, **kwargs:
            Optional arguments forwarded to the initializer.
        """
        ...


def _sparse_fan_in_std(
    fan_in: int, output_feature_map_count: int, window_volume: int
) -> float:
    """
    Standard deviation for one output unit of a sparsely connected layer.

    The effective fan is the geometric mean of the unit's actual fan-in
    (connected input feature maps) and the output feature-map count, scaled
    by the window volume:

        std = sqrt(1 / (sqrt(fan_in * output_feature_map_count) * window_volume))

    Parameters
    ----------
    fan_in:
        Number of input feature maps connected to this output (> 0).
    output_feature_map_count:
        Total number of output feature maps (> 0).
    window_volume:
        Product of the convolution window sizes (1 for fully connected).

    Returns
    -------
    float
        The standard deviation to sample this output's weights with.
    """
    if fan_in <= 0 or output_feature_map_count <= 0 or window_volume <= 0:
        raise ValueError(
            "fan_in, output_feature_map_count and window_volume must be positive, got "
            f"{fan_in}, {output_feature_map_count}, {window_volume}"
        )
    average_feature_map_count = math.sqrt(float(fan_in) * float(output_feature_map_count))
    return math.sqrt(1.0 / (average_feature_map_count * float(window_volume)))
