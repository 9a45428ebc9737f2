'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-03 10:05:00
 #  Modified time: 2025-11-03 10:05:00
 #  Description: Immutable geometric value types shared by the localization pipeline.
 #  Description (Legacy): Provides the axis-aligned box and the four-parameter
 #       regression delta used by anchor generation and target encoding.
'''

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class Box:
    """Axis-aligned box in continuous pixel coordinates.

    Attributes:
        x1: Left edge.
        y1: Top edge.
        x2: Right edge, ``x2 >= x1``.
        y2: Bottom edge, ``y2 >= y1``.
    """

    x1: float
    y1: float
    x2: float
    y2: float

    def __post_init__(self) -> None:
        if self.x2 < self.x1 or self.y2 < self.y1:
            raise ValueError(f"Invalid box corners: {self.as_tuple()}")

    @property
    def width(self) -> float:
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        return self.y2 - self.y1

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def center(self) -> Tuple[float, float]:
        return self.x1 + 0.5 * self.width, self.y1 + 0.5 * self.height

    def is_degenerate(self) -> bool:
        return self.width <= 0.0 or self.height <= 0.0

    def intersection(self, other: "Box") -> Optional["Box"]:
        """Return the overlapping region, or ``None`` when the boxes are disjoint."""
        x1 = max(self.x1, other.x1)
        y1 = max(self.y1, other.y1)
        x2 = min(self.x2, other.x2)
        y2 = min(self.y2, other.y2)
        if x2 < x1 or y2 < y1:
            return None
        return Box(x1, y1, x2, y2)

    def intersection_area(self, other: "Box") -> float:
        overlap = self.intersection(other)
        return overlap.area if overlap is not None else 0.0

    def union_area(self, other: "Box") -> float:
        return self.area + other.area - self.intersection_area(other)

    def translate(self, dx: float, dy: float) -> "Box":
        return Box(self.x1 + dx, self.y1 + dy, self.x2 + dx, self.y2 + dy)

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return self.x1, self.y1, self.x2, self.y2


@dataclass(frozen=True)
class Target:
    """Regression delta of a ground-truth box relative to an anchor."""

    dx: float = 0.0
    dy: float = 0.0
    dw: float = 0.0
    dh: float = 0.0

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return self.dx, self.dy, self.dw, self.dh


def boxes_to_array(boxes: Iterable[Box]) -> np.ndarray:
    """Stack boxes into an ``(N, 4)`` float64 array."""
    rows = [box.as_tuple() for box in boxes]
    if not rows:
        return np.zeros((0, 4), dtype=np.float64)
    return np.asarray(rows, dtype=np.float64)


def array_to_boxes(array: np.ndarray) -> List[Box]:
    values = np.asarray(array, dtype=np.float64).reshape(-1, 4)
    return [Box(*(float(v) for v in row)) for row in values]


__all__ = ["Box", "Target", "boxes_to_array", "array_to_boxes"]
