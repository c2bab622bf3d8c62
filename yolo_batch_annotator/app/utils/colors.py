"""Color palette helpers for class-colored annotations."""
from __future__ import annotations

import colorsys
import random
from typing import List, Optional, Sequence, Tuple, TypeVar

RGB = Tuple[int, int, int]
T = TypeVar("T")


def hsv_to_rgb(h: float, s: float = 1.0, v: float = 1.0) -> RGB:
    """Convert an HSV triple in 0..1 to an RGB triple in 0..255."""

    r, g, b = colorsys.hsv_to_rgb(h, s, v)
    return (int(round(r * 255)), int(round(g * 255)), int(round(b * 255)))


def shuffle(sequence: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return a shuffled copy of ``sequence`` leaving the input untouched."""

    items = list(sequence)
    (rng or random.Random()).shuffle(items)
    return items


def spread_hues(count: int) -> List[RGB]:
    """Fully saturated colors with hues evenly spaced over ``count`` classes."""

    if count <= 0:
        return []
    return [hsv_to_rgb(index / count, 1.0, 1.0) for index in range(count)]


class ColorAssignment:
    """Maps a class index to an RGB color."""

    def __init__(self, colors: Sequence[RGB]) -> None:
        self._colors: List[RGB] = list(colors)

    @classmethod
    def generate(cls, count: int, rng: Optional[random.Random] = None) -> "ColorAssignment":
        return cls(shuffle(spread_hues(count), rng))

    def __len__(self) -> int:
        return len(self._colors)

    def __getitem__(self, class_index: int) -> RGB:
        return self._colors[class_index]

    @property
    def colors(self) -> List[RGB]:
        return list(self._colors)

    def bgr(self, class_index: int) -> RGB:
        r, g, b = self._colors[class_index]
        return (b, g, r)
