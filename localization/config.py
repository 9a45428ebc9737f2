'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-03 10:20:00
 #  Modified time: 2025-11-04 16:40:00
 #  Description: Validated configuration for anchor target generation.
 #  Description (Legacy): Normalizes the ``image`` and ``localization`` sections of
 #       the YAML configuration into an immutable dataclass shared by every
 #       pipeline instance.
'''

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

import numpy as np

DEFAULT_SEED = 1

_OUTPUT_TYPES: Dict[str, np.dtype] = {
    "float": np.dtype(np.float32),
    "float32": np.dtype(np.float32),
    "double": np.dtype(np.float64),
    "float64": np.dtype(np.float64),
    "half": np.dtype(np.float16),
    "float16": np.dtype(np.float16),
}


@dataclass(frozen=True)
class LocalizationConfig:
    """Normalized configuration for anchor labeling and regression targets."""

    labels: Tuple[str, ...]
    rois_per_image: int = 256
    min_size: int = 600
    max_size: int = 1000
    base_size: int = 16
    scaling_factor: float = 1.0 / 16.0
    ratios: Tuple[float, ...] = (0.5, 1.0, 2.0)
    scales: Tuple[float, ...] = (8.0, 16.0, 32.0)
    negative_overlap: float = 0.3
    positive_overlap: float = 0.7
    foreground_fraction: float = 0.5
    max_gt_boxes: int = 64
    type_string: str = "float"
    seed: int = DEFAULT_SEED
    label_map: Dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "labels", tuple(str(label) for label in self.labels))
        object.__setattr__(self, "ratios", tuple(float(ratio) for ratio in self.ratios))
        object.__setattr__(self, "scales", tuple(float(scale) for scale in self.scales))

        if not self.labels:
            raise ValueError("labels must be a non-empty list of class names")
        if len(set(self.labels)) != len(self.labels):
            raise ValueError("labels must not contain duplicates")
        if self.rois_per_image <= 0:
            raise ValueError("rois_per_image must be a positive integer")
        if self.base_size <= 0:
            raise ValueError("base_size must be a positive integer")
        if self.scaling_factor <= 0.0:
            raise ValueError("scaling_factor must be positive")
        if not self.ratios or any(ratio <= 0.0 for ratio in self.ratios):
            raise ValueError("ratios must be a non-empty list of positive values")
        if not self.scales or any(scale <= 0.0 for scale in self.scales):
            raise ValueError("scales must be a non-empty list of positive values")
        for name in ("negative_overlap", "positive_overlap", "foreground_fraction"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")
        if self.negative_overlap > self.positive_overlap:
            raise ValueError("negative_overlap must be <= positive_overlap")
        if self.max_gt_boxes <= 0:
            raise ValueError("max_gt_boxes must be a positive integer")
        if self.min_size <= 0 or self.max_size < self.min_size:
            raise ValueError("image sizes must satisfy 0 < min_size <= max_size")
        if self.type_string not in _OUTPUT_TYPES:
            raise ValueError(f"Unsupported output type: {self.type_string!r}")
        if self.grid_size < 1:
            raise ValueError("max_size * scaling_factor must cover at least one grid cell")

        object.__setattr__(self, "label_map", {name: idx for idx, name in enumerate(self.labels)})

    @classmethod
    def from_config(cls, raw_config: Dict[str, Any]) -> "LocalizationConfig":
        section = raw_config.get("localization", {}) if "localization" in raw_config else raw_config
        image_section = raw_config.get("image", {})
        labels = section.get("labels")
        if labels is None:
            raise ValueError("localization.labels is required")
        seed = section.get("seed")
        return cls(
            labels=tuple(labels),
            rois_per_image=int(section.get("rois_per_image", 256)),
            min_size=int(image_section.get("min_size", section.get("min_size", 600))),
            max_size=int(image_section.get("max_size", section.get("max_size", 1000))),
            base_size=int(section.get("base_size", 16)),
            scaling_factor=float(section.get("scaling_factor", 1.0 / 16.0)),
            ratios=tuple(section.get("ratios", (0.5, 1.0, 2.0))),
            scales=tuple(section.get("scales", (8.0, 16.0, 32.0))),
            negative_overlap=float(section.get("negative_overlap", 0.3)),
            positive_overlap=float(section.get("positive_overlap", 0.7)),
            foreground_fraction=float(section.get("foreground_fraction", 0.5)),
            max_gt_boxes=int(section.get("max_gt_boxes", 64)),
            type_string=str(section.get("type_string", "float")),
            seed=int(seed) if seed is not None else DEFAULT_SEED,
        )

    @property
    def grid_size(self) -> int:
        return int(math.floor(self.max_size * self.scaling_factor))

    @property
    def feature_stride(self) -> int:
        return int(round(1.0 / self.scaling_factor))

    @property
    def num_base_anchors(self) -> int:
        return len(self.ratios) * len(self.scales)

    @property
    def output_dtype(self) -> np.dtype:
        return _OUTPUT_TYPES[self.type_string]

    def total_anchors(self) -> int:
        return self.num_base_anchors * self.grid_size ** 2


__all__ = ["DEFAULT_SEED", "LocalizationConfig"]
