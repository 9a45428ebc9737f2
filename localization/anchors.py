'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-03 11:00:00
 #  Modified time: 2025-11-04 09:15:00
 #  Description: Anchor lattice construction for region-proposal target generation.
 #  Description (Legacy): Enumerates aspect ratios and scales around a reference
 #       window and tiles the resulting base anchors over the maximum image extent.
'''

from __future__ import annotations

import logging
from typing import List, Sequence

import numpy as np

from .boxes import Box, array_to_boxes
from .config import LocalizationConfig

LOGGER = logging.getLogger("gai_localization.anchors")


def _whctrs(anchor: np.ndarray) -> tuple[float, float, float, float]:
    width = anchor[2] - anchor[0]
    height = anchor[3] - anchor[1]
    return width, height, anchor[0] + 0.5 * width, anchor[1] + 0.5 * height


def _mkanchors(widths: np.ndarray, heights: np.ndarray, x_ctr: float, y_ctr: float) -> np.ndarray:
    widths = widths[:, np.newaxis]
    heights = heights[:, np.newaxis]
    return np.hstack(
        (
            x_ctr - 0.5 * widths,
            y_ctr - 0.5 * heights,
            x_ctr + 0.5 * widths,
            y_ctr + 0.5 * heights,
        )
    )


def _ratio_enum(anchor: np.ndarray, ratios: np.ndarray) -> np.ndarray:
    # ratio is height / width; area of the reference window is preserved
    width, height, x_ctr, y_ctr = _whctrs(anchor)
    size_ratios = (width * height) / ratios
    widths = np.round(np.sqrt(size_ratios))
    heights = np.round(widths * ratios)
    return _mkanchors(widths, heights, x_ctr, y_ctr)


def _scale_enum(anchor: np.ndarray, scales: np.ndarray) -> np.ndarray:
    width, height, x_ctr, y_ctr = _whctrs(anchor)
    return _mkanchors(width * scales, height * scales, x_ctr, y_ctr)


def generate_base_anchors(base_size: int, ratios: Sequence[float], scales: Sequence[float]) -> np.ndarray:
    """Enumerate ratio x scale anchors around the ``(0, 0, base_size, base_size)`` window.

    Rows are ordered ratio-major, so base anchor ``ratio_index * len(scales) + scale_index``
    holds the given ratio/scale combination.
    """
    reference = np.array([0.0, 0.0, float(base_size), float(base_size)])
    ratio_anchors = _ratio_enum(reference, np.asarray(ratios, dtype=np.float64))
    return np.vstack(
        [_scale_enum(ratio_anchors[idx], np.asarray(scales, dtype=np.float64)) for idx in range(ratio_anchors.shape[0])]
    )


def total_anchors(config: LocalizationConfig) -> int:
    return config.total_anchors()


class AnchorLattice:
    """Read-only lattice of every anchor over the maximum supported image extent.

    Lattice index ``cell_index * num_base_anchors + base_index`` where cells are
    enumerated row-major over a ``grid_size x grid_size`` grid with spacing
    ``feature_stride``.
    """

    def __init__(self, base_anchors: np.ndarray, grid_size: int, stride: int) -> None:
        shift_x = np.arange(0, grid_size) * stride
        shift_y = np.arange(0, grid_size) * stride
        shift_x, shift_y = np.meshgrid(shift_x, shift_y)
        shifts = np.vstack((shift_x.ravel(), shift_y.ravel(), shift_x.ravel(), shift_y.ravel())).transpose()

        num_base = base_anchors.shape[0]
        num_cells = shifts.shape[0]
        anchors = base_anchors.reshape((1, num_base, 4)) + shifts.reshape((num_cells, 1, 4)).astype(np.float64)
        anchors = anchors.reshape((num_cells * num_base, 4))
        anchors.setflags(write=False)
        base = base_anchors.copy()
        base.setflags(write=False)

        self._anchors = anchors
        self._base_anchors = base
        self.grid_size = grid_size
        self.stride = stride

    @classmethod
    def generate(cls, config: LocalizationConfig) -> "AnchorLattice":
        base_anchors = generate_base_anchors(config.base_size, config.ratios, config.scales)
        lattice = cls(base_anchors, config.grid_size, config.feature_stride)
        LOGGER.info(
            "Generated anchor lattice: %d base anchors x %d cells = %d anchors (stride=%d)",
            base_anchors.shape[0],
            config.grid_size ** 2,
            len(lattice),
            config.feature_stride,
        )
        return lattice

    def __len__(self) -> int:
        return int(self._anchors.shape[0])

    @property
    def anchors(self) -> np.ndarray:
        """``(N, 4)`` read-only array of ``(x1, y1, x2, y2)`` rows."""
        return self._anchors

    @property
    def base_anchors(self) -> np.ndarray:
        return self._base_anchors

    @property
    def num_base_anchors(self) -> int:
        return int(self._base_anchors.shape[0])

    def boxes(self) -> List[Box]:
        return array_to_boxes(self._anchors)


def inside_image_bounds(width: float, height: float, lattice: AnchorLattice | np.ndarray) -> np.ndarray:
    """Indices, in lattice order, of anchors lying entirely within ``[0, width] x [0, height]``."""
    anchors = lattice.anchors if isinstance(lattice, AnchorLattice) else np.asarray(lattice).reshape(-1, 4)
    keep = (
        (anchors[:, 0] >= 0)
        & (anchors[:, 1] >= 0)
        & (anchors[:, 2] <= width)
        & (anchors[:, 3] <= height)
    )
    return np.flatnonzero(keep)


__all__ = ["AnchorLattice", "generate_base_anchors", "inside_image_bounds", "total_anchors"]
