"""Sample-rate gating.

Kept apart from formatting so the random draw can be replaced with a
deterministic source.

Example:
    >>> decider = SamplingDecider(draw=FixedDraw(0.4))
    >>> decider.should_emit(0.5)
    True
    >>> decider.should_emit(0.3)
    False
"""

from __future__ import annotations

import random
from typing import Callable

DrawSource = Callable[[], float]


class FixedDraw:
    """Draw source that always returns the same value."""

    def __init__(self, value: float) -> None:
        self.value = value
        self.calls = 0

    def __call__(self) -> float:
        self.calls += 1
        return self.value


class SamplingDecider:
    """Decide whether a sampled occurrence should be sent."""

    def __init__(self, draw: DrawSource | None = None) -> None:
        """Initialize sampling decider.

        Args:
            draw: Zero-argument callable returning a float in [0, 1).
                Defaults to a private ``random.Random`` instance.
        """
        self._draw = draw or random.Random().random

    def should_emit(self, sample_rate: float) -> bool:
        """Return True iff this occurrence should be sent.

        A rate of 1.0 or more always passes without a draw.
        """
        if sample_rate >= 1.0:
            return True
        return self._draw() < sample_rate
