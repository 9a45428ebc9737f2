'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-05 09:00:00
 #  Modified time: 2025-11-06 18:00:00
 #  Description: Tests for the extractor, transformer and loader stages on small lattices.
'''

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Dict, List, Sequence

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from localization import (  # noqa: E402
    AnchorLattice,
    Box,
    LocalizationConfig,
    LocalizationExtractor,
    LocalizationLoader,
    LocalizationPipeline,
    LocalizationTransformer,
    allocate_buffers,
)
from utils.image_params import ImageParams, ImageParamsFactory  # noqa: E402


def _config(**overrides) -> LocalizationConfig:
    values = dict(labels=("object", "person"), ratios=(1.0,), scales=(1.0,), min_size=32, max_size=32, seed=0)
    values.update(overrides)
    return LocalizationConfig(**values)


def _annotation(width: int, height: int, boxes: Sequence[Sequence[float]], names: Sequence[str] = ()) -> bytes:
    objects: List[Dict[str, object]] = []
    for index, (x1, y1, x2, y2) in enumerate(boxes):
        objects.append(
            {
                "name": names[index] if names else "object",
                "bndbox": {"xmin": x1, "ymin": y1, "xmax": x2, "ymax": y2},
                "difficult": index == 1,
            }
        )
    return json.dumps({"size": {"width": width, "height": height, "depth": 3}, "object": objects}).encode("utf-8")


def _identity(width: int = 32, height: int = 32, flip: bool = False) -> ImageParams:
    return ImageParams(cropbox=Box(0.0, 0.0, float(width), float(height)), image_scale=1.0, output_size=(width, height), flip=flip)


def _transform(config: LocalizationConfig, raw: bytes, params: ImageParams):
    decoded = LocalizationExtractor(config).extract(raw)
    assert decoded is not None
    return LocalizationTransformer(config).transform(params, decoded)


def test_single_matching_anchor_is_foreground() -> None:
    decoded = _transform(_config(), _annotation(32, 32, [(0, 0, 16, 16)]), _identity())
    np.testing.assert_array_equal(decoded.labels, [1, 0, 0, 0])
    np.testing.assert_allclose(decoded.bbox_targets, np.zeros((4, 4)))
    np.testing.assert_array_equal(decoded.anchor_index, [0, 1, 2, 3])
    assert decoded.num_foreground == 1
    assert decoded.num_background == 3


def test_foreground_anchor_gets_regression_target() -> None:
    decoded = _transform(_config(), _annotation(32, 32, [(16, 0, 32, 20)]), _identity())
    np.testing.assert_array_equal(decoded.labels, [0, 1, 0, 0])
    np.testing.assert_allclose(decoded.bbox_targets[1], [0.0, 0.125, 0.0, np.log(20.0 / 16.0)])
    np.testing.assert_allclose(decoded.bbox_targets[[0, 2, 3]], np.zeros((3, 4)))


def test_flip_mirrors_ground_truth() -> None:
    decoded = _transform(_config(), _annotation(32, 32, [(0, 0, 16, 16)]), _identity(flip=True))
    np.testing.assert_allclose(decoded.gt_boxes, [[16.0, 0.0, 32.0, 16.0]])
    np.testing.assert_array_equal(decoded.labels, [0, 1, 0, 0])


def test_scaled_image_remaps_ground_truth() -> None:
    config = _config()
    params = ImageParamsFactory(config.min_size, config.max_size).make(64, 64)
    assert params.image_scale == pytest.approx(0.5)
    assert params.output_size == (32, 32)
    decoded = _transform(config, _annotation(64, 64, [(0, 0, 32, 32)]), params)
    np.testing.assert_array_equal(decoded.labels, [1, 0, 0, 0])
    assert decoded.image_scale == pytest.approx(0.5)


def test_out_of_bounds_anchors_are_ignored() -> None:
    decoded = _transform(_config(), _annotation(24, 32, [(0, 0, 16, 16)]), _identity(width=24))
    np.testing.assert_array_equal(decoded.labels, [1, -1, 0, -1])
    np.testing.assert_array_equal(decoded.anchor_index, [0, 2])
    assert decoded.output_image_size == (24, 32)


def test_no_ground_truth_gives_background_only() -> None:
    decoded = _transform(_config(rois_per_image=2), _annotation(32, 32, []), _identity())
    assert decoded.num_foreground == 0
    assert decoded.num_background == 2
    assert np.count_nonzero(decoded.labels == -1) == 2
    np.testing.assert_allclose(decoded.bbox_targets, np.zeros((4, 4)))


def test_ground_truth_is_capped_at_max_boxes() -> None:
    config = _config(max_gt_boxes=2)
    raw = _annotation(32, 32, [(0, 0, 8, 8), (8, 8, 16, 16), (16, 16, 32, 32)], names=["object", "person", "object"])
    decoded = _transform(config, raw, _identity())
    np.testing.assert_allclose(decoded.gt_boxes, [[0, 0, 8, 8], [8, 8, 16, 16]])
    np.testing.assert_array_equal(decoded.gt_classes, [0, 1])
    np.testing.assert_array_equal(decoded.gt_difficult, [0, 1])


@pytest.mark.parametrize(
    "raw",
    [
        b"not json",
        b'{"object": []}',
        json.dumps({"size": {"width": 32, "height": 32}, "object": [{"name": "dog", "bndbox": {"xmin": 0, "ymin": 0, "xmax": 1, "ymax": 1}}]}).encode(),
        json.dumps({"size": {"width": 32, "height": 32}, "object": [{"name": "object", "bndbox": {"xmin": 9, "ymin": 0, "xmax": 1, "ymax": 1}}]}).encode(),
        b'{"size": {"width": 1e400, "height": 32}, "object": []}',
        b'{"size": {"width": NaN, "height": 32}, "object": []}',
        b'{"size": {"width": 32, "height": Infinity}, "object": []}',
        b'{"size": {"width": 32, "height": 32}, "object": [{"name": "object", "bndbox": {"xmin": NaN, "ymin": 0, "xmax": 8, "ymax": 8}}]}',
        b'{"size": {"width": ' + b"9" * 400 + b', "height": 32}, "object": []}',
    ],
)
def test_extractor_returns_none_for_bad_documents(raw: bytes) -> None:
    assert LocalizationExtractor(_config()).extract(raw) is None


def test_transformer_rejects_mismatched_lattice() -> None:
    other = AnchorLattice.generate(_config(max_size=48, min_size=48))
    with pytest.raises(ValueError):
        LocalizationTransformer(_config(), lattice=other)


def test_transformers_can_share_a_lattice() -> None:
    config = _config(ratios=(0.5, 1.0, 2.0), scales=(0.5, 1.0), min_size=64, max_size=64, rois_per_image=8)
    lattice = AnchorLattice.generate(config)
    raw = _annotation(64, 64, [(4, 4, 30, 40), (32, 20, 60, 60)])
    params = _identity(64, 64)
    first = LocalizationTransformer(config, lattice=lattice, seed=4).transform(params, LocalizationExtractor(config).extract(raw))
    second = LocalizationTransformer(config, lattice=lattice, seed=4).transform(params, LocalizationExtractor(config).extract(raw))
    np.testing.assert_array_equal(first.labels, second.labels)
    np.testing.assert_allclose(first.bbox_targets, second.bbox_targets)
    assert first.num_foreground + first.num_background <= 8


def test_default_seed_makes_sampling_reproducible() -> None:
    config = LocalizationConfig(labels=("object",), ratios=(1.0,), scales=(1.0,), min_size=32, max_size=32, rois_per_image=1)
    raw = _annotation(32, 32, [])
    draws = {
        tuple(LocalizationTransformer(config).transform(_identity(), LocalizationExtractor(config).extract(raw)).anchor_index)
        for _ in range(10)
    }
    assert len(draws) == 1

    flips = {ImageParamsFactory(32, 32, flip_enable=True).make(32, 32).flip for _ in range(10)}
    assert len(flips) == 1


def test_loader_fills_and_zero_pads_buffers() -> None:
    config = _config(max_gt_boxes=3)
    loader = LocalizationLoader(config)
    buffers = loader.allocate()
    for buffer in buffers.values():
        buffer[...] = 7
    decoded = _transform(config, _annotation(32, 32, [(16, 0, 32, 20)], names=["person"]), _identity())
    loader.load(buffers, decoded)

    assert buffers["labels"].dtype == np.int32
    assert buffers["bbox_targets"].dtype == np.float32
    np.testing.assert_array_equal(buffers["labels"], [0, 1, 0, 0])
    np.testing.assert_array_equal(buffers["bbox_targets_mask"], [0] * 4 + [1] * 4 + [0] * 8)
    np.testing.assert_allclose(buffers["bbox_targets"][4:8], [0.0, 0.125, 0.0, np.log(1.25)], rtol=1e-6)
    np.testing.assert_array_equal(buffers["anchor_index"], [0, 1, 2, 3] + [0] * (config.rois_per_image - 4))
    assert buffers["anchor_count"][0] == 4
    np.testing.assert_array_equal(buffers["image_shape"], [32, 32])
    assert buffers["image_scale"][0] == pytest.approx(1.0)
    np.testing.assert_allclose(buffers["gt_boxes"], [16, 0, 32, 20] + [0] * 8)
    assert buffers["gt_box_count"][0] == 1
    np.testing.assert_array_equal(buffers["gt_classes"], [1, 0, 0])
    np.testing.assert_array_equal(buffers["gt_difficult"], [0, 0, 0])


def test_loader_rejects_bad_buffers() -> None:
    config = _config()
    loader = LocalizationLoader(config)
    decoded = _transform(config, _annotation(32, 32, [(0, 0, 16, 16)]), _identity())

    buffers = loader.allocate()
    del buffers["gt_classes"]
    with pytest.raises(ValueError):
        loader.load(buffers, decoded)

    buffers = loader.allocate()
    buffers["labels"] = np.zeros(3, dtype=np.int32)
    with pytest.raises(ValueError):
        loader.load(buffers, decoded)

    decoded.labels = decoded.labels[:2]
    with pytest.raises(ValueError):
        loader.load(loader.allocate(), decoded)


def test_buffer_specs_describe_every_output() -> None:
    config = _config(type_string="double")
    specs = {spec.name: spec for spec in LocalizationLoader(config).buffer_specs()}
    assert specs["labels"].shape == (4,)
    assert specs["bbox_targets"].shape == (16,)
    assert specs["bbox_targets"].dtype == np.float64
    assert specs["anchor_index"].shape == (config.rois_per_image,)
    assert specs["gt_boxes"].size == config.max_gt_boxes * 4


def test_pipeline_processes_and_skips_items() -> None:
    config = _config()
    pipeline = LocalizationPipeline(config, ImageParamsFactory(config.min_size, config.max_size, seed=0))
    buffers = pipeline.process(_annotation(64, 64, [(0, 0, 32, 32)]))
    assert buffers is not None
    np.testing.assert_array_equal(buffers["labels"], [1, 0, 0, 0])
    assert pipeline.process(b"{}") is None

    caller_owned = allocate_buffers(pipeline.loader.buffer_specs())
    assert pipeline.process(_annotation(32, 32, []), caller_owned) is caller_owned
    np.testing.assert_array_equal(caller_owned["labels"], [0, 0, 0, 0])
