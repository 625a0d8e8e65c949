"""
Layer action descriptors.

A `LayerAction` selects which compute phase a question is about (forward,
backward with respect to one input, or backward with respect to the layer's
weights). Layers use it to pick the matching cost formula.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class LayerActionType(Enum):
    FORWARD = "forward"
    BACKWARD_DATA = "backward_data"
    BACKWARD_WEIGHTS = "backward_weights"


@dataclass(frozen=True)
class LayerAction:
    """
    Tagged compute phase.

    Attributes
    ----------
    action_type : LayerActionType
        Which phase the action denotes.
    backprop_index : int
        Index of the input the gradient flows to. Only meaningful for
        `LayerActionType.BACKWARD_DATA`; zero otherwise.
    """

    action_type: LayerActionType
    backprop_index: int = 0

    def __post_init__(self) -> None:
        if self.backprop_index < 0:
            raise ValueError(f"backprop_index must be non-negative, got {self.backprop_index}")
        if self.action_type is not LayerActionType.BACKWARD_DATA and self.backprop_index != 0:
            raise ValueError(
                f"backprop_index is only valid for backward_data actions, got {self.action_type.value}"
            )

    @classmethod
    def forward(cls) -> "LayerAction":
        return cls(LayerActionType.FORWARD)

    @classmethod
    def backward_data(cls, backprop_index: int = 0) -> "LayerAction":
        return cls(LayerActionType.BACKWARD_DATA, backprop_index)

    @classmethod
    def backward_weights(cls) -> "LayerAction":
        return cls(LayerActionType.BACKWARD_WEIGHTS)

    def __str__(self) -> str:
        if self.action_type is LayerActionType.BACKWARD_DATA:
            return f"{self.action_type.value}_{self.backprop_index}"
        return self.action_type.value
