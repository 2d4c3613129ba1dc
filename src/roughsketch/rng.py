from __future__ import annotations

import random
from typing import Optional


class RandomSource:
    """Explicitly owned jitter source for one generation call.

    A non-zero integer seed gives a reproducible stream. ``None`` or ``0``
    seeds from OS entropy.
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        self.seed = int(seed) if seed else None
        self._rng = random.Random(self.seed)

    @property
    def reproducible(self) -> bool:
        return self.seed is not None

    def next_f64(self) -> float:
        return self._rng.random()

    def jitter(self, magnitude: float) -> float:
        return (self._rng.random() - 0.5) * magnitude

    def offset(self, low: float, high: float, scale: float = 1.0) -> float:
        return scale * (self._rng.random() * (high - low) + low)

    def spawn(self, delta: int = 1) -> "RandomSource":
        if self.seed is None:
            return RandomSource(None)
        return RandomSource(self.seed + delta)

    def __repr__(self) -> str:
        return f"RandomSource(seed={self.seed!r})"


__all__ = ["RandomSource"]
