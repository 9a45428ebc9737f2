'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-05 11:00:00
 #  Modified time: 2025-11-06 11:15:00
 #  Description: Tests for configuration parsing, overrides, annotation decoding and image parameters.
'''

from __future__ import annotations

import json
import sys
from pathlib import Path

import numpy as np
import pytest
import yaml

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from localization import Box, LocalizationConfig  # noqa: E402
from localization.config import DEFAULT_SEED  # noqa: E402
from utils.annotations import AnnotationError, parse_annotation, try_parse_annotation  # noqa: E402
from utils.image_params import ImageParams, ImageParamsFactory  # noqa: E402
from utils.utils import apply_overrides, load_yaml_config, write_json  # noqa: E402


def test_project_config_is_valid() -> None:
    config = LocalizationConfig.from_config(load_yaml_config(PROJECT_ROOT / "config.yaml"))
    assert len(config.labels) == 20
    assert config.label_map["person"] == config.labels.index("person")
    assert config.grid_size == 62
    assert config.total_anchors() == 34596
    assert config.output_dtype == np.float32
    assert config.seed == 3


def test_from_config_reads_sections() -> None:
    raw = {
        "image": {"min_size": 300, "max_size": 500},
        "localization": {"labels": ["a", "b"], "ratios": [1], "scales": [4, 8], "rois_per_image": 64, "type_string": "double"},
    }
    config = LocalizationConfig.from_config(raw)
    assert (config.min_size, config.max_size) == (300, 500)
    assert config.ratios == (1.0,)
    assert config.scales == (4.0, 8.0)
    assert config.num_base_anchors == 2
    assert config.grid_size == 31
    assert config.output_dtype == np.float64
    assert config.seed == DEFAULT_SEED


def test_from_config_requires_labels() -> None:
    with pytest.raises(ValueError):
        LocalizationConfig.from_config({"localization": {"rois_per_image": 8}})


@pytest.mark.parametrize(
    "overrides",
    [
        {"labels": ()},
        {"labels": ("a", "a")},
        {"rois_per_image": 0},
        {"ratios": ()},
        {"scales": (1.0, -2.0)},
        {"negative_overlap": 0.8, "positive_overlap": 0.7},
        {"foreground_fraction": 1.5},
        {"max_gt_boxes": 0},
        {"min_size": 800, "max_size": 600},
        {"min_size": 8, "max_size": 8},
        {"type_string": "int8"},
        {"scaling_factor": 0.0},
    ],
)
def test_config_validation(overrides: dict) -> None:
    values = {"labels": ("a",)}
    values.update(overrides)
    with pytest.raises(ValueError):
        LocalizationConfig(**values)


def test_apply_overrides_parses_literals() -> None:
    base = {"localization": {"labels": ["a"], "ratios": [0.5, 1, 2]}}
    merged = apply_overrides(base, ["localization.ratios=[1.0]", "localization.rois_per_image=128", "image.flip_enable=True", "localization.type_string=double"])
    assert merged["localization"]["ratios"] == [1.0]
    assert merged["localization"]["rois_per_image"] == 128
    assert merged["image"]["flip_enable"] is True
    assert merged["localization"]["type_string"] == "double"
    assert base["localization"]["ratios"] == [0.5, 1, 2]


@pytest.mark.parametrize("override", ["localization.rois_per_image", "=3", "localization.labels.first=1"])
def test_apply_overrides_rejects_bad_input(override: str) -> None:
    with pytest.raises(ValueError):
        apply_overrides({"localization": {"labels": ["a"]}}, [override])


def test_yaml_and_json_helpers(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.safe_dump({"localization": {"labels": ["a"]}}), encoding="utf-8")
    assert load_yaml_config(config_path) == {"localization": {"labels": ["a"]}}

    with pytest.raises(FileNotFoundError):
        load_yaml_config(tmp_path / "missing.yaml")
    config_path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_yaml_config(config_path)

    write_json(tmp_path / "nested" / "out.json", {"written": 2})
    assert json.loads((tmp_path / "nested" / "out.json").read_text(encoding="utf-8")) == {"written": 2}


def test_parse_annotation_document() -> None:
    document = {
        "size": {"width": 500, "height": 375, "depth": 3},
        "object": [
            {"name": "dog", "bndbox": {"xmin": 48, "ymin": 240, "xmax": 195, "ymax": 371}, "difficult": 1},
            {"name": "person", "bndbox": {"xmin": 8.5, "ymin": 12, "xmax": 352, "ymax": 498}, "truncated": True},
        ],
    }
    parsed = parse_annotation(json.dumps(document).encode("utf-8"), {"person": 0, "dog": 1})
    assert (parsed.width, parsed.height) == (500, 375)
    assert parsed.boxes[0].box == Box(48.0, 240.0, 195.0, 371.0)
    assert parsed.boxes[0].label == 1 and parsed.boxes[0].difficult
    assert parsed.boxes[1].label == 0 and parsed.boxes[1].truncated and not parsed.boxes[1].difficult


@pytest.mark.parametrize(
    "document",
    [
        "[]",
        '{"size": {"width": 0, "height": 10}}',
        '{"size": {"width": "10", "height": 10}}',
        '{"size": {"width": 10, "height": 10}, "object": {}}',
        '{"size": {"width": 10, "height": 10}, "object": [{"name": "cat"}]}',
        '{"size": {"width": 10, "height": 10}, "object": [{"name": "dog", "bndbox": {"xmin": 1}}]}',
        '{"size": {"width": Infinity, "height": 10}}',
        '{"size": {"width": 1e400, "height": 10}}',
        '{"size": {"width": 10, "height": 10}, "object": [{"name": "dog", "bndbox": {"xmin": 0, "ymin": NaN, "xmax": 4, "ymax": 4}}]}',
    ],
)
def test_parse_annotation_errors(document: str) -> None:
    with pytest.raises(AnnotationError):
        parse_annotation(document, {"dog": 0})
    assert try_parse_annotation(document, {"dog": 0}) is None


def test_image_params_apply() -> None:
    params = ImageParams(cropbox=Box(10.0, 20.0, 110.0, 120.0), image_scale=2.0, output_size=(200, 200))
    assert params.apply(Box(20.0, 30.0, 60.0, 70.0)) == Box(20.0, 20.0, 100.0, 100.0)
    assert params.apply(Box(0.0, 0.0, 200.0, 50.0)) == Box(0.0, 0.0, 200.0, 60.0)
    flipped = ImageParams(cropbox=Box(10.0, 20.0, 110.0, 120.0), image_scale=2.0, output_size=(200, 200), flip=True)
    assert flipped.apply(Box(20.0, 30.0, 60.0, 70.0)) == Box(100.0, 20.0, 180.0, 100.0)
    with pytest.raises(ValueError):
        ImageParams(cropbox=Box(0.0, 0.0, 1.0, 1.0), image_scale=0.0, output_size=(1, 1))


def test_image_params_factory_resize_policy() -> None:
    factory = ImageParamsFactory(600, 1000)
    params = factory.make(500, 375)
    assert params.image_scale == pytest.approx(1.6)
    assert params.output_size == (800, 600)
    capped = factory.make(2000, 500)
    assert capped.image_scale == pytest.approx(0.5)
    assert capped.output_size == (1000, 250)
    assert not params.flip

    flips = [ImageParamsFactory(600, 1000, flip_enable=True, seed=1).make(500, 375).flip for _ in range(3)]
    assert len(set(flips)) == 1
    draws = {ImageParamsFactory(600, 1000, flip_enable=True, seed=seed).make(500, 375).flip for seed in range(16)}
    assert draws == {True, False}
