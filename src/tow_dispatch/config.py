"""Engine configuration."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_ADMISSIBILITY_CUTOFF = 10_000_000


@dataclass(frozen=True)
class DispatchConfig:
    """Tunable settings for matching and the order lifecycle.

    Attributes:
        admissibility_cutoff: Distances above this are treated as no route
        strict_transitions: Reject order status changes outside the
            transition table instead of writing them
    """

    admissibility_cutoff: int = DEFAULT_ADMISSIBILITY_CUTOFF
    strict_transitions: bool = False

    def __post_init__(self):
        """Validate configuration."""
        if not isinstance(self.admissibility_cutoff, int) or isinstance(
            self.admissibility_cutoff, bool
        ):
            raise TypeError("admissibility_cutoff must be an integer")
        if self.admissibility_cutoff <= 0:
            raise ValueError("admissibility_cutoff must be positive")
        if not isinstance(self.strict_transitions, bool):
            raise TypeError("strict_transitions must be a bool")


__all__ = ["DEFAULT_ADMISSIBILITY_CUTOFF", "DispatchConfig"]
