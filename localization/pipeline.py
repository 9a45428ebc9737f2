'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-04 11:30:00
 #  Modified time: 2025-11-06 17:45:00
 #  Description: Extract/transform/load stages producing region-proposal training targets.
 #  Description (Legacy): The extractor decodes annotation bytes, the transformer
 #       remaps ground truth and assigns anchor labels and regression targets, and
 #       the loader flattens the result into caller-owned fixed-size buffers.
'''

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Protocol, Tuple

import numpy as np

from utils import annotations as annotation_parser

from .anchors import AnchorLattice, inside_image_bounds
from .config import LocalizationConfig
from .encoding import TargetEncoder
from .interfaces import BufferSpec, Extractor, Loader, allocate_buffers
from .overlaps import compute_overlaps
from .sampler import BACKGROUND, FOREGROUND, IGNORE, AnchorSampler

if TYPE_CHECKING:
    from utils.annotations import AnnotatedBox
    from utils.image_params import ImageParams

LOGGER = logging.getLogger("gai_localization.pipeline")


@dataclass
class LocalizationDecoded:
    """Per-item record created by the extractor and filled in by the transformer."""

    width: int
    height: int
    boxes: List[AnnotatedBox] = field(default_factory=list)
    gt_boxes: np.ndarray = field(default_factory=lambda: np.zeros((0, 4), dtype=np.float64))
    gt_classes: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.int32))
    gt_difficult: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.int32))
    labels: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.int32))
    bbox_targets: np.ndarray = field(default_factory=lambda: np.zeros((0, 4), dtype=np.float64))
    anchor_index: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.int64))
    image_scale: float = 1.0
    output_image_size: Tuple[int, int] = (0, 0)

    @property
    def num_foreground(self) -> int:
        return int(np.count_nonzero(self.labels == FOREGROUND))

    @property
    def num_background(self) -> int:
        return int(np.count_nonzero(self.labels == BACKGROUND))


class LocalizationExtractor:
    def __init__(self, config: LocalizationConfig) -> None:
        self.label_map = dict(config.label_map)

    def extract(self, raw: bytes) -> Optional[LocalizationDecoded]:
        """Decode annotation bytes; ``None`` tells the caller to skip the item."""
        parsed = annotation_parser.try_parse_annotation(raw, self.label_map)
        if parsed is None:
            return None
        return LocalizationDecoded(width=parsed.width, height=parsed.height, boxes=list(parsed.boxes))


class LocalizationTransformer:
    """Assigns anchor labels and regression targets for one item at a time.

    Holds a private sampler stream, so each worker needs its own instance.
    The lattice may be shared between instances.
    """

    def __init__(
        self,
        config: LocalizationConfig,
        lattice: Optional[AnchorLattice] = None,
        seed: Optional[int] = None,
    ) -> None:
        self.config = config
        self.lattice = lattice if lattice is not None else AnchorLattice.generate(config)
        if len(self.lattice) != config.total_anchors():
            raise ValueError(
                f"Anchor lattice size {len(self.lattice)} does not match configuration ({config.total_anchors()})"
            )
        self.sampler = AnchorSampler(
            rois_per_image=config.rois_per_image,
            foreground_fraction=config.foreground_fraction,
            positive_overlap=config.positive_overlap,
            negative_overlap=config.negative_overlap,
            seed=seed if seed is not None else config.seed,
        )
        self.encoder = TargetEncoder()

    def reseed(self, seed: int) -> None:
        self.sampler.reseed(seed)

    def transform(self, params: ImageParams, decoded: LocalizationDecoded) -> LocalizationDecoded:
        kept = decoded.boxes[: self.config.max_gt_boxes]
        if len(decoded.boxes) > len(kept):
            LOGGER.debug("Dropping %d ground-truth boxes beyond max_gt_boxes=%d", len(decoded.boxes) - len(kept), len(kept))

        if kept:
            gt_boxes = np.asarray([params.apply(item.box).as_tuple() for item in kept], dtype=np.float64)
        else:
            gt_boxes = np.zeros((0, 4), dtype=np.float64)
        out_w, out_h = params.output_size

        inds_inside = inside_image_bounds(out_w, out_h, self.lattice)
        anchors = self.lattice.anchors[inds_inside]
        overlaps = compute_overlaps(anchors, gt_boxes)
        result = self.sampler.sample(overlaps)

        total = len(self.lattice)
        labels = np.full(total, IGNORE, dtype=np.int32)
        labels[inds_inside] = result.labels
        bbox_targets = np.zeros((total, 4), dtype=np.float64)

        foreground = result.sampled_labels == FOREGROUND
        fg_local = result.indices[foreground]
        if fg_local.size:
            deltas = self.encoder.encode_batch(anchors[fg_local], gt_boxes[result.gt_index[foreground]])
            bbox_targets[inds_inside[fg_local]] = deltas

        decoded.gt_boxes = gt_boxes
        decoded.gt_classes = np.asarray([item.label for item in kept], dtype=np.int32)
        decoded.gt_difficult = np.asarray([int(item.difficult) for item in kept], dtype=np.int32)
        decoded.labels = labels
        decoded.bbox_targets = bbox_targets
        decoded.anchor_index = inds_inside[result.indices]
        decoded.image_scale = float(params.image_scale)
        decoded.output_image_size = (int(out_w), int(out_h))
        return decoded


class LocalizationLoader:
    """Copies a transformed record into fixed-size flat buffers, zero padding the rest."""

    def __init__(self, config: LocalizationConfig) -> None:
        self.total_anchors = config.total_anchors()
        self.max_gt_boxes = config.max_gt_boxes
        self.rois_per_image = config.rois_per_image
        self.output_dtype = config.output_dtype

    def buffer_specs(self) -> Tuple[BufferSpec, ...]:
        int_type = np.dtype(np.int32)
        return (
            BufferSpec("labels", (self.total_anchors,), int_type),
            BufferSpec("bbox_targets", (self.total_anchors * 4,), self.output_dtype),
            BufferSpec("bbox_targets_mask", (self.total_anchors * 4,), self.output_dtype),
            BufferSpec("anchor_index", (self.rois_per_image,), int_type),
            BufferSpec("anchor_count", (1,), int_type),
            BufferSpec("image_shape", (2,), int_type),
            BufferSpec("image_scale", (1,), self.output_dtype),
            BufferSpec("gt_boxes", (self.max_gt_boxes * 4,), self.output_dtype),
            BufferSpec("gt_box_count", (1,), int_type),
            BufferSpec("gt_classes", (self.max_gt_boxes,), int_type),
            BufferSpec("gt_difficult", (self.max_gt_boxes,), int_type),
        )

    def allocate(self) -> Dict[str, np.ndarray]:
        return allocate_buffers(self.buffer_specs())

    def load(self, buffers: Mapping[str, np.ndarray], decoded: LocalizationDecoded) -> None:
        if decoded.labels.shape[0] != self.total_anchors:
            raise ValueError(f"Expected {self.total_anchors} anchor labels, got {decoded.labels.shape[0]}")
        if decoded.bbox_targets.shape != (self.total_anchors, 4):
            raise ValueError(f"Expected bbox targets of shape {(self.total_anchors, 4)}, got {decoded.bbox_targets.shape}")

        num_gt = min(decoded.gt_boxes.shape[0], self.max_gt_boxes)
        mask = np.repeat((decoded.labels == FOREGROUND).astype(np.float64), 4)
        values = {
            "labels": decoded.labels,
            "bbox_targets": decoded.bbox_targets.reshape(-1),
            "bbox_targets_mask": mask,
            "anchor_index": decoded.anchor_index,
            "anchor_count": [decoded.anchor_index.shape[0]],
            "image_shape": list(decoded.output_image_size),
            "image_scale": [decoded.image_scale],
            "gt_boxes": decoded.gt_boxes[:num_gt].reshape(-1),
            "gt_box_count": [num_gt],
            "gt_classes": decoded.gt_classes[:num_gt],
            "gt_difficult": decoded.gt_difficult[:num_gt],
        }
        for spec in self.buffer_specs():
            _fill_buffer(buffers, spec, values[spec.name])


def _fill_buffer(buffers: Mapping[str, np.ndarray], spec: BufferSpec, values: Any) -> None:
    if spec.name not in buffers:
        raise ValueError(f"Missing output buffer: {spec.name}")
    target = buffers[spec.name]
    if target.size != spec.size:
        raise ValueError(f"Output buffer {spec.name} has {target.size} elements, expected {spec.size}")
    source = np.asarray(values).reshape(-1)
    if source.size > spec.size:
        raise ValueError(f"Output buffer {spec.name} overflow: {source.size} > {spec.size}")
    flat = np.zeros(spec.size, dtype=target.dtype)
    flat[: source.size] = source
    target[...] = flat.reshape(target.shape)


class ParamsProvider(Protocol):
    def make(self, width: int, height: int) -> ImageParams:
        ...


class LocalizationPipeline:
    """Runs extractor, transformer and loader for one item at a time."""

    def __init__(
        self,
        config: LocalizationConfig,
        params_provider: ParamsProvider,
        lattice: Optional[AnchorLattice] = None,
        seed: Optional[int] = None,
    ) -> None:
        self.config = config
        self.params_provider = params_provider
        self.extractor: Extractor[LocalizationDecoded] = LocalizationExtractor(config)
        self.transformer = LocalizationTransformer(config, lattice=lattice, seed=seed)
        self.loader: Loader[LocalizationDecoded] = LocalizationLoader(config)

    def reseed(self, seed: int) -> None:
        self.transformer.reseed(seed)
        if hasattr(self.params_provider, "reseed"):
            self.params_provider.reseed(seed)

    def process(self, raw: bytes, buffers: Optional[Mapping[str, np.ndarray]] = None) -> Optional[Mapping[str, np.ndarray]]:
        """Build the output buffers for one annotation document, or ``None`` to skip it."""
        decoded = self.extractor.extract(raw)
        if decoded is None:
            return None
        params = self.params_provider.make(decoded.width, decoded.height)
        decoded = self.transformer.transform(params, decoded)
        if buffers is None:
            buffers = allocate_buffers(self.loader.buffer_specs())
        self.loader.load(buffers, decoded)
        return buffers


__all__ = [
    "LocalizationDecoded",
    "LocalizationExtractor",
    "LocalizationTransformer",
    "LocalizationLoader",
    "LocalizationPipeline",
]
