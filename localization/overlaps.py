'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-03 11:40:00
 #  Modified time: 2025-11-03 11:40:00
 #  Description: Pairwise intersection-over-union between anchors and ground-truth boxes.
'''

from __future__ import annotations

import numpy as np

from .boxes import Box


def box_iou(first: Box, second: Box) -> float:
    """IOU of two boxes; zero when either box has no area."""
    if first.is_degenerate() or second.is_degenerate():
        return 0.0
    inter = first.intersection_area(second)
    union = first.area + second.area - inter
    return inter / union if union > 0.0 else 0.0


def compute_overlaps(anchors: np.ndarray, gt_boxes: np.ndarray) -> np.ndarray:
    """Compute the ``(num_anchors, num_gt)`` IOU matrix.

    Args:
        anchors: ``(N, 4)`` array of ``(x1, y1, x2, y2)`` rows.
        gt_boxes: ``(K, 4)`` array of ``(x1, y1, x2, y2)`` rows.

    Returns:
        Array of shape ``(N, K)`` with values in ``[0, 1]``. Pairs involving a
        zero-area box are 0.
    """
    anchors = np.asarray(anchors, dtype=np.float64).reshape(-1, 4)
    gt_boxes = np.asarray(gt_boxes, dtype=np.float64).reshape(-1, 4)
    overlaps = np.zeros((anchors.shape[0], gt_boxes.shape[0]), dtype=np.float64)
    if overlaps.size == 0:
        return overlaps

    anchor_areas = (anchors[:, 2] - anchors[:, 0]) * (anchors[:, 3] - anchors[:, 1])
    gt_areas = (gt_boxes[:, 2] - gt_boxes[:, 0]) * (gt_boxes[:, 3] - gt_boxes[:, 1])

    iw = np.minimum(anchors[:, None, 2], gt_boxes[None, :, 2]) - np.maximum(anchors[:, None, 0], gt_boxes[None, :, 0])
    ih = np.minimum(anchors[:, None, 3], gt_boxes[None, :, 3]) - np.maximum(anchors[:, None, 1], gt_boxes[None, :, 1])
    intersection = np.clip(iw, 0.0, None) * np.clip(ih, 0.0, None)
    union = anchor_areas[:, None] + gt_areas[None, :] - intersection

    valid = (anchor_areas[:, None] > 0.0) & (gt_areas[None, :] > 0.0) & (union > 0.0)
    np.divide(intersection, union, out=overlaps, where=valid)
    return overlaps


__all__ = ["box_iou", "compute_overlaps"]
