'''
 #  Copyright (c) 2025 Gahan AI Private Limited
 #  Author: Pallab Maji
 #  Create Time: 2025-11-04 11:10:00
 #  Modified time: 2025-11-04 11:10:00
 #  Description: Structural contracts for the extract/transform/load stages.
'''

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Protocol, Tuple, TypeVar

import numpy as np

DecodedT = TypeVar("DecodedT")
DecodedT_co = TypeVar("DecodedT_co", covariant=True)
ParamsT = TypeVar("ParamsT", contravariant=True)


@dataclass(frozen=True)
class BufferSpec:
    """Shape and element type of one caller-owned output buffer."""

    name: str
    shape: Tuple[int, ...]
    dtype: np.dtype

    @property
    def size(self) -> int:
        return int(np.prod(self.shape, dtype=np.int64))


class Extractor(Protocol[DecodedT_co]):
    def extract(self, raw: bytes) -> Optional[DecodedT_co]:
        ...


class Transformer(Protocol[ParamsT, DecodedT]):
    def transform(self, params: ParamsT, decoded: DecodedT) -> DecodedT:
        ...


class Loader(Protocol[DecodedT]):
    def buffer_specs(self) -> Tuple[BufferSpec, ...]:
        ...

    def load(self, buffers: Mapping[str, np.ndarray], decoded: DecodedT) -> None:
        ...


def allocate_buffers(specs: Tuple[BufferSpec, ...]) -> dict[str, np.ndarray]:
    """Allocate zeroed buffers matching ``specs``."""
    return {spec.name: np.zeros(spec.shape, dtype=spec.dtype) for spec in specs}


__all__ = ["BufferSpec", "Extractor", "Transformer", "Loader", "allocate_buffers"]
