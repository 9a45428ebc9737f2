'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-03 12:10:00
 #  Modified time: 2025-11-03 15:30:00
 #  Description: Bounding-box regression target encoding and decoding.
 #  Description (Legacy): Parameterizes a ground-truth box as center offsets
 #       normalized by the anchor size and log-space width/height ratios.
'''

from __future__ import annotations

import numpy as np

from .boxes import Box, Target


class TargetEncoder:
    """Converts (anchor, ground-truth) pairs into ``(dx, dy, dw, dh)`` deltas and back."""

    @staticmethod
    def encode(anchor: Box, gt: Box) -> Target:
        if anchor.is_degenerate() or gt.is_degenerate():
            raise ValueError(f"Cannot encode degenerate boxes: anchor={anchor}, gt={gt}")
        ctr_x, ctr_y = anchor.center
        gt_ctr_x, gt_ctr_y = gt.center
        return Target(
            dx=(gt_ctr_x - ctr_x) / anchor.width,
            dy=(gt_ctr_y - ctr_y) / anchor.height,
            dw=float(np.log(gt.width / anchor.width)),
            dh=float(np.log(gt.height / anchor.height)),
        )

    @staticmethod
    def decode(anchor: Box, delta: Target) -> Box:
        if anchor.is_degenerate():
            raise ValueError(f"Cannot decode against degenerate anchor: {anchor}")
        ctr_x, ctr_y = anchor.center
        pred_ctr_x = delta.dx * anchor.width + ctr_x
        pred_ctr_y = delta.dy * anchor.height + ctr_y
        pred_w = float(np.exp(delta.dw)) * anchor.width
        pred_h = float(np.exp(delta.dh)) * anchor.height
        return Box(
            pred_ctr_x - 0.5 * pred_w,
            pred_ctr_y - 0.5 * pred_h,
            pred_ctr_x + 0.5 * pred_w,
            pred_ctr_y + 0.5 * pred_h,
        )

    @staticmethod
    def encode_batch(anchors: np.ndarray, gt_boxes: np.ndarray) -> np.ndarray:
        """Vectorized :meth:`encode` over matching ``(N, 4)`` rows."""
        anchors = np.asarray(anchors, dtype=np.float64).reshape(-1, 4)
        gt_boxes = np.asarray(gt_boxes, dtype=np.float64).reshape(-1, 4)
        if anchors.shape != gt_boxes.shape:
            raise ValueError(f"Anchor/target count mismatch: {anchors.shape} vs {gt_boxes.shape}")

        widths = anchors[:, 2] - anchors[:, 0]
        heights = anchors[:, 3] - anchors[:, 1]
        gt_widths = gt_boxes[:, 2] - gt_boxes[:, 0]
        gt_heights = gt_boxes[:, 3] - gt_boxes[:, 1]
        if np.any(widths <= 0) or np.any(heights <= 0) or np.any(gt_widths <= 0) or np.any(gt_heights <= 0):
            raise ValueError("Cannot encode degenerate boxes")

        ctr_x = anchors[:, 0] + 0.5 * widths
        ctr_y = anchors[:, 1] + 0.5 * heights
        gt_ctr_x = gt_boxes[:, 0] + 0.5 * gt_widths
        gt_ctr_y = gt_boxes[:, 1] + 0.5 * gt_heights

        return np.stack(
            (
                (gt_ctr_x - ctr_x) / widths,
                (gt_ctr_y - ctr_y) / heights,
                np.log(gt_widths / widths),
                np.log(gt_heights / heights),
            ),
            axis=1,
        )

    @staticmethod
    def decode_batch(anchors: np.ndarray, deltas: np.ndarray) -> np.ndarray:
        anchors = np.asarray(anchors, dtype=np.float64).reshape(-1, 4)
        deltas = np.asarray(deltas, dtype=np.float64).reshape(-1, 4)
        if anchors.shape != deltas.shape:
            raise ValueError(f"Anchor/delta count mismatch: {anchors.shape} vs {deltas.shape}")

        widths = anchors[:, 2] - anchors[:, 0]
        heights = anchors[:, 3] - anchors[:, 1]
        if np.any(widths <= 0) or np.any(heights <= 0):
            raise ValueError("Cannot decode against degenerate anchors")
        ctr_x = anchors[:, 0] + 0.5 * widths
        ctr_y = anchors[:, 1] + 0.5 * heights

        pred_ctr_x = deltas[:, 0] * widths + ctr_x
        pred_ctr_y = deltas[:, 1] * heights + ctr_y
        pred_w = np.exp(deltas[:, 2]) * widths
        pred_h = np.exp(deltas[:, 3]) * heights

        return np.stack(
            (
                pred_ctr_x - 0.5 * pred_w,
                pred_ctr_y - 0.5 * pred_h,
                pred_ctr_x + 0.5 * pred_w,
                pred_ctr_y + 0.5 * pred_h,
            ),
            axis=1,
        )


__all__ = ["TargetEncoder"]
