"""
Configuration of the connectivity generator.

`ConnectivityGeneratorConfig` groups the try counts, the overflow ratio and
the restart ceiling used by `fill_connection_matrix`. It round-trips through
`get_config` / `from_config` like the layers do.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict

from typing_extensions import Self


@dataclass(frozen=True)
class ConnectivityGeneratorConfig:
    """
    Tunable constants of the connectivity generator.

    Attributes
    ----------
    cursor_attempt_count : int
        Tries per edge pairing the cursor output with a random strict input.
    strict_attempt_count : int
        Tries per edge with both endpoints random under the strict caps.
    overflow_attempt_count : int
        Tries per edge with both endpoints random under the overflow caps.
    overflow_ratio : float
        Relative tolerance of the overflow caps; an overflow cap is
        ``max(cap + 1, int(cap * overflow_ratio))``.
    max_restarts : int
        Ceiling on margin relaxations before `ConnectivityGenerationError`.
    """

    cursor_attempt_count: int = 20
    strict_attempt_count: int = 100
    overflow_attempt_count: int = 100
    overflow_ratio: float = 1.01
    max_restarts: int = 10_000

    def __post_init__(self) -> None:
        for name in ("cursor_attempt_count", "strict_attempt_count", "overflow_attempt_count"):
            if int(getattr(self, name)) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")
        if self.overflow_ratio < 1.0:
            raise ValueError(f"overflow_ratio must be >= 1.0, got {self.overflow_ratio}")
        if self.max_restarts < 0:
            raise ValueError(f"max_restarts must be non-negative, got {self.max_restarts}")

    def get_config(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> Self:
        return cls(**cfg)
