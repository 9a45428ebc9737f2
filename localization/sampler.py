'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-03 14:00:00
 #  Modified time: 2025-11-05 10:20:00
 #  Description: Foreground/background labeling and balanced anchor subsampling.
 #  Description (Legacy): Labels in-bounds anchors from their overlap with the
 #       ground truth, forces the best anchor of every ground-truth box to
 #       foreground, and subsamples both classes to a fixed count using a
 #       private random stream.
'''

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .config import DEFAULT_SEED

LOGGER = logging.getLogger("gai_localization.sampler")

IGNORE = -1
BACKGROUND = 0
FOREGROUND = 1


@dataclass
class SampleResult:
    """Sampled anchors, indexed locally into the in-bounds anchor set.

    Attributes:
        labels: Label per in-bounds anchor after subsampling (-1 / 0 / 1).
        indices: Ascending local indices of the retained anchors.
        sampled_labels: Label (0 or 1) of each retained anchor.
        gt_index: Matched ground-truth index of each retained anchor, -1 for background.
    """

    labels: np.ndarray
    indices: np.ndarray
    sampled_labels: np.ndarray
    gt_index: np.ndarray

    @property
    def num_foreground(self) -> int:
        return int(np.count_nonzero(self.sampled_labels == FOREGROUND))

    @property
    def num_background(self) -> int:
        return int(np.count_nonzero(self.sampled_labels == BACKGROUND))


class AnchorSampler:
    """Assigns anchor labels and keeps a class-balanced subset of them.

    The sampler owns its random generator; an instance must not be shared
    between concurrently running workers.
    """

    def __init__(
        self,
        *,
        rois_per_image: int,
        foreground_fraction: float,
        positive_overlap: float,
        negative_overlap: float,
        seed: int = DEFAULT_SEED,
    ) -> None:
        if negative_overlap > positive_overlap:
            raise ValueError("negative_overlap must be <= positive_overlap")
        self.rois_per_image = int(rois_per_image)
        self.foreground_fraction = float(foreground_fraction)
        self.positive_overlap = float(positive_overlap)
        self.negative_overlap = float(negative_overlap)
        self._rng = np.random.default_rng(seed)

    def reseed(self, seed: int) -> None:
        self._rng = np.random.default_rng(seed)

    def label(self, overlaps: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Label anchors from an ``(num_anchors, num_gt)`` IOU matrix.

        Returns:
            ``(labels, argmax_overlaps)`` where ``argmax_overlaps`` is the matched
            ground-truth index of each anchor (meaningful only for foreground).
        """
        num_anchors, num_gt = overlaps.shape
        labels = np.full(num_anchors, IGNORE, dtype=np.int32)
        if num_anchors == 0:
            return labels, np.zeros(0, dtype=np.int64)
        if num_gt == 0:
            labels[:] = BACKGROUND
            return labels, np.zeros(num_anchors, dtype=np.int64)

        argmax_overlaps = overlaps.argmax(axis=1)
        max_overlaps = overlaps[np.arange(num_anchors), argmax_overlaps]

        labels[max_overlaps < self.negative_overlap] = BACKGROUND

        # np.argmax keeps the first maximum: ties go to the lowest anchor index
        gt_argmax_overlaps = overlaps.argmax(axis=0)
        gt_max_overlaps = overlaps[gt_argmax_overlaps, np.arange(num_gt)]
        # a gt box touching no in-bounds anchor has no best anchor to force
        for gt_idx in np.flatnonzero(gt_max_overlaps > 0.0):
            anchor_idx = gt_argmax_overlaps[gt_idx]
            labels[anchor_idx] = FOREGROUND
            argmax_overlaps[anchor_idx] = gt_idx

        labels[max_overlaps >= self.positive_overlap] = FOREGROUND
        return labels, argmax_overlaps

    def subsample(self, labels: np.ndarray) -> np.ndarray:
        """Disable excess foreground then background labels in a copy of ``labels``."""
        labels = labels.copy()
        num_fg = int(self.foreground_fraction * self.rois_per_image)
        fg_inds = np.flatnonzero(labels == FOREGROUND)
        if fg_inds.size > num_fg:
            disable = self._rng.permutation(fg_inds)[: fg_inds.size - num_fg]
            labels[disable] = IGNORE

        num_bg = self.rois_per_image - int(np.count_nonzero(labels == FOREGROUND))
        bg_inds = np.flatnonzero(labels == BACKGROUND)
        if bg_inds.size > num_bg:
            disable = self._rng.permutation(bg_inds)[: bg_inds.size - num_bg]
            labels[disable] = IGNORE
        return labels

    def sample(self, overlaps: np.ndarray) -> SampleResult:
        overlaps = np.asarray(overlaps, dtype=np.float64)
        if overlaps.ndim != 2:
            raise ValueError(f"Expected a 2-D overlap matrix, got shape {overlaps.shape}")
        initial, argmax_overlaps = self.label(overlaps)
        labels = self.subsample(initial)

        indices = np.flatnonzero(labels != IGNORE)
        sampled_labels = labels[indices]
        gt_index = np.where(sampled_labels == FOREGROUND, argmax_overlaps[indices], -1).astype(np.int64)
        LOGGER.debug(
            "Sampled anchors: fg=%d/%d bg=%d/%d",
            int(np.count_nonzero(sampled_labels == FOREGROUND)),
            int(np.count_nonzero(initial == FOREGROUND)),
            int(np.count_nonzero(sampled_labels == BACKGROUND)),
            int(np.count_nonzero(initial == BACKGROUND)),
        )
        return SampleResult(labels=labels, indices=indices, sampled_labels=sampled_labels, gt_index=gt_index)


__all__ = ["AnchorSampler", "SampleResult", "IGNORE", "BACKGROUND", "FOREGROUND"]
