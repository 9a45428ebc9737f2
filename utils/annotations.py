'''
 # @ Copyright: @copyright (c) 2025 Gahan AI Private Limited
 # @ Author: Pallab Maji
 # @ Create Time: 2025-11-04 09:40:00
 # @ Modified time: 2025-11-04 09:40:00
 # @ Description: Parser for JSON bounding-box annotation documents.
 # @ Description (Legacy): Decodes the per-image annotation format (image size plus
 #      a list of named ``bndbox`` objects) into typed ground-truth records.
'''

from __future__ import annotations

import json
import math
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union

from localization.boxes import Box

LOGGER = logging.getLogger("gai_localization.annotations")


@dataclass(frozen=True)
class AnnotatedBox:
    """Ground-truth box with its class index and VOC-style flags."""

    box: Box
    label: int
    difficult: bool = False
    truncated: bool = False


@dataclass
class ParsedAnnotation:
    width: int
    height: int
    boxes: List[AnnotatedBox]


class AnnotationError(ValueError):
    """Raised when an annotation document cannot be decoded."""


def parse_annotation(raw: Union[bytes, str], label_map: Mapping[str, int]) -> ParsedAnnotation:
    """Decode one annotation document.

    Args:
        raw: UTF-8 JSON bytes (or text) of the form
            ``{"size": {"width": W, "height": H}, "object": [{"name": ..., "bndbox": {...}}]}``.
        label_map: Mapping from class name to class index.

    Raises:
        AnnotationError: If the document is malformed or references an unknown class.
    """
    try:
        document = json.loads(raw.decode("utf-8") if isinstance(raw, bytes) else raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise AnnotationError(f"Invalid annotation JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise AnnotationError(f"Expected a JSON object, got {type(document).__name__}")

    size = document.get("size")
    if not isinstance(size, dict):
        raise AnnotationError("Annotation is missing the 'size' object")
    width = _as_int(size, "width")
    height = _as_int(size, "height")
    if width <= 0 or height <= 0:
        raise AnnotationError(f"Invalid image size: {width}x{height}")

    objects = document.get("object", [])
    if not isinstance(objects, list):
        raise AnnotationError("'object' must be a list")

    boxes: List[AnnotatedBox] = []
    for index, obj in enumerate(objects):
        boxes.append(_parse_object(obj, index, label_map))
    return ParsedAnnotation(width=width, height=height, boxes=boxes)


def _parse_object(obj: Any, index: int, label_map: Mapping[str, int]) -> AnnotatedBox:
    if not isinstance(obj, dict):
        raise AnnotationError(f"Object {index} is not a JSON object")
    name = obj.get("name")
    if name not in label_map:
        raise AnnotationError(f"Object {index} has unknown label {name!r}")
    bndbox = obj.get("bndbox")
    if not isinstance(bndbox, dict):
        raise AnnotationError(f"Object {index} is missing 'bndbox'")
    try:
        box = Box(
            _as_float(bndbox, "xmin"),
            _as_float(bndbox, "ymin"),
            _as_float(bndbox, "xmax"),
            _as_float(bndbox, "ymax"),
        )
    except ValueError as exc:
        raise AnnotationError(f"Object {index}: {exc}") from exc
    return AnnotatedBox(
        box=box,
        label=int(label_map[name]),
        difficult=bool(obj.get("difficult", False)),
        truncated=bool(obj.get("truncated", False)),
    )


def _as_int(section: Dict[str, Any], key: str) -> int:
    return int(_as_float(section, key))


def _as_float(section: Dict[str, Any], key: str) -> float:
    value = section.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise AnnotationError(f"Field {key!r} must be numeric, got {value!r}")
    try:
        number = float(value)
    except OverflowError as exc:
        raise AnnotationError(f"Field {key!r} is out of range") from exc
    if not math.isfinite(number):
        raise AnnotationError(f"Field {key!r} must be finite, got {value!r}")
    return number


def try_parse_annotation(raw: Union[bytes, str], label_map: Mapping[str, int]) -> Optional[ParsedAnnotation]:
    """Like :func:`parse_annotation` but logs and returns ``None`` on failure."""
    try:
        return parse_annotation(raw, label_map)
    except AnnotationError as exc:
        LOGGER.warning("Skipping annotation: %s", exc)
        return None


__all__ = [
    "AnnotatedBox",
    "AnnotationError",
    "ParsedAnnotation",
    "parse_annotation",
    "try_parse_annotation",
]
