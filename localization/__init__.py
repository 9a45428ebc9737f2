'''
 # @ Copyright: @copyright (c) 2025 Gahan AI Private Limited
 # @ Author: Pallab Maji
 # @ Create Time: 2025-11-03 10:00:00
 # @ Modified time: 2025-11-06 17:45:00
 # @ Description: Public interface for anchor target generation.
 # @ Description (Legacy): This package exposes the anchor lattice, overlap and
 #      target-encoding helpers, the balanced anchor sampler, and the
 #      extract/transform/load stages that build region-proposal training targets.
'''

from .anchors import AnchorLattice, generate_base_anchors, inside_image_bounds, total_anchors
from .boxes import Box, Target
from .config import LocalizationConfig
from .encoding import TargetEncoder
from .interfaces import BufferSpec, allocate_buffers
from .overlaps import box_iou, compute_overlaps
from .pipeline import (
    LocalizationDecoded,
    LocalizationExtractor,
    LocalizationLoader,
    LocalizationPipeline,
    LocalizationTransformer,
)
from .sampler import BACKGROUND, FOREGROUND, IGNORE, AnchorSampler, SampleResult

__all__ = [
    "AnchorLattice",
    "AnchorSampler",
    "BACKGROUND",
    "Box",
    "BufferSpec",
    "FOREGROUND",
    "IGNORE",
    "LocalizationConfig",
    "LocalizationDecoded",
    "LocalizationExtractor",
    "LocalizationLoader",
    "LocalizationPipeline",
    "LocalizationTransformer",
    "SampleResult",
    "Target",
    "TargetEncoder",
    "allocate_buffers",
    "box_iou",
    "compute_overlaps",
    "generate_base_anchors",
    "inside_image_bounds",
    "total_anchors",
]
