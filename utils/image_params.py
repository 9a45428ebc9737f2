'''
 # @ Copyright: @copyright (c) 2025 Gahan AI Private Limited
 # @ Author: Pallab Maji
 # @ Create Time: 2025-11-04 10:30:00
 # @ Modified time: 2025-11-05 14:05:00
 # @ Description: Per-item geometric transform parameters (crop, scale, flip).
 # @ Description (Legacy): Mirrors the resize policy applied to training images so that
 #      ground-truth boxes can be remapped into the output image frame.
'''

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Tuple

from localization.boxes import Box
from localization.config import DEFAULT_SEED


@dataclass(frozen=True)
class ImageParams:
    """Geometric transform applied to one image.

    Attributes:
        cropbox: Region of the source image that is kept, in source pixels.
        image_scale: Factor applied to the cropped region.
        flip: Whether the output is mirrored horizontally.
        output_size: ``(width, height)`` of the transformed image.
    """

    cropbox: Box
    image_scale: float
    output_size: Tuple[int, int]
    flip: bool = False

    def __post_init__(self) -> None:
        if self.image_scale <= 0.0:
            raise ValueError("image_scale must be positive")
        if self.output_size[0] <= 0 or self.output_size[1] <= 0:
            raise ValueError(f"Invalid output size: {self.output_size}")

    def apply(self, box: Box) -> Box:
        """Map a source-image box into the output image, clipped to its bounds."""
        out_w, out_h = self.output_size
        x1 = (box.x1 - self.cropbox.x1) * self.image_scale
        y1 = (box.y1 - self.cropbox.y1) * self.image_scale
        x2 = (box.x2 - self.cropbox.x1) * self.image_scale
        y2 = (box.y2 - self.cropbox.y1) * self.image_scale
        if self.flip:
            x1, x2 = out_w - x2, out_w - x1
        x1 = min(max(x1, 0.0), out_w)
        x2 = min(max(x2, 0.0), out_w)
        y1 = min(max(y1, 0.0), out_h)
        y2 = min(max(y2, 0.0), out_h)
        return Box(x1, y1, x2, y2)


class ImageParamsFactory:
    """Builds :class:`ImageParams` with the shorter side scaled to ``min_size``.

    The longer side is capped at ``max_size``. Flipping is drawn from the
    factory's own random stream when enabled.
    """

    def __init__(self, min_size: int, max_size: int, flip_enable: bool = False, seed: int = DEFAULT_SEED) -> None:
        if min_size <= 0 or max_size < min_size:
            raise ValueError("image sizes must satisfy 0 < min_size <= max_size")
        self.min_size = int(min_size)
        self.max_size = int(max_size)
        self.flip_enable = bool(flip_enable)
        self._random = random.Random(seed)

    def reseed(self, seed: int) -> None:
        self._random = random.Random(seed)

    def make(self, width: int, height: int) -> ImageParams:
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid image size: {width}x{height}")
        scale = self.min_size / min(width, height)
        if round(max(width, height) * scale) > self.max_size:
            scale = self.max_size / max(width, height)
        output_size = (max(1, int(round(width * scale))), max(1, int(round(height * scale))))
        flip = self.flip_enable and self._random.random() < 0.5
        return ImageParams(
            cropbox=Box(0.0, 0.0, float(width), float(height)),
            image_scale=scale,
            output_size=output_size,
            flip=flip,
        )


__all__ = ["ImageParams", "ImageParamsFactory"]
