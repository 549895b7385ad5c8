"""
Process-lifetime HSL color palette.

Colors are generated on demand and only ever appended, so asking for the
same (or a smaller) number of colors always returns the same prefix.
"""

from __future__ import annotations

import random
from typing import List, Optional

MIN_PALETTE = 20


def random_hsl(rng: random.Random) -> str:
    """A vibrant color: any hue, 60-99% saturation, 40-69% lightness."""
    hue = rng.randrange(360)
    saturation = 60 + rng.randrange(40)
    lightness = 40 + rng.randrange(30)
    return f"hsl({hue}, {saturation}%, {lightness}%)"


class ColorPalette:
    """Grow-only color cache with an ``ensure(n)`` / ``get(n)`` contract."""

    def __init__(self, seed: Optional[int] = None, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random(seed)
        self._colors: List[str] = []

    def __len__(self) -> int:
        return len(self._colors)

    def ensure(self, n: int) -> None:
        """Grow the cache to at least ``max(n, MIN_PALETTE)`` colors."""
        target = max(n, MIN_PALETTE)
        while len(self._colors) < target:
            self._colors.append(random_hsl(self._rng))

    def get(self, n: int = MIN_PALETTE) -> List[str]:
        if n <= 0:
            return []
        self.ensure(n)
        return list(self._colors[:n])
