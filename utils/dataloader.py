'''
 # @ Copyright: @copyright (c) 2025 Gahan AI Private Limited
 # @ Author: Pallab Maji
 # @ Create Time: 2025-10-30 15:48:40
 # @ Modified time: 2025-11-06 12:10:00
 # @ Description: PyTorch dataset and dataloader wiring for anchor target generation.
 # @ Description (Legacy): This is the localization dataloader utility module. This module
 #      1. reads annotation documents listed in a manifest.
 #      2. runs the extract/transform/load pipeline once per item.
 #      3. gives every dataloader worker its own reseeded transformer.
 #      4. collates the fixed-size target buffers into batched tensors.
'''

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import torch
from torch.utils.data import DataLoader, Dataset, get_worker_info

from localization.anchors import AnchorLattice
from localization.config import LocalizationConfig
from localization.pipeline import LocalizationPipeline

from .image_params import ImageParamsFactory

LOGGER = logging.getLogger("gai_localization.dataloader")

Sample = Tuple[int, Dict[str, torch.Tensor]]


class LocalizationDataset(Dataset):
    """Dataset producing anchor targets from raw annotation documents.

    Each item is the index and a dict of tensors named after the loader's
    buffers, or ``None`` when the annotation could not be decoded.
    """

    def __init__(
        self,
        records: Sequence[bytes],
        config: LocalizationConfig,
        flip_enable: bool = False,
        lattice: Optional[AnchorLattice] = None,
        seed: Optional[int] = None,
    ) -> None:
        self.records = list(records)
        self.config = config
        base_seed = seed if seed is not None else config.seed
        params_factory = ImageParamsFactory(config.min_size, config.max_size, flip_enable=flip_enable, seed=base_seed)
        self.pipeline = LocalizationPipeline(config, params_factory, lattice=lattice, seed=base_seed)

    def __len__(self) -> int:  # noqa: D401 - standard Dataset contract
        return len(self.records)

    def __getitem__(self, index: int) -> Optional[Sample]:
        buffers = self.pipeline.process(self.records[index])
        if buffers is None:
            return None
        return index, {name: torch.from_numpy(np.array(value, copy=True)) for name, value in buffers.items()}

    def reseed(self, seed: int) -> None:
        self.pipeline.reseed(seed)


class LocalizationCollate:
    """Stacks per-item buffers and drops items whose extraction failed."""

    def __call__(self, batch: List[Optional[Sample]]) -> Tuple[torch.Tensor, Dict[str, torch.Tensor]]:
        valid = [item for item in batch if item is not None]
        skipped = len(batch) - len(valid)
        if skipped:
            LOGGER.debug("Dropped %d undecodable items from batch", skipped)
        if not valid:
            return torch.zeros((0,), dtype=torch.int64), {}
        indices, targets = zip(*valid)
        stacked = {name: torch.stack([target[name] for target in targets], dim=0) for name in targets[0]}
        return torch.tensor(indices, dtype=torch.int64), stacked


def seed_worker(worker_id: int) -> None:
    """Reseed the worker's private copy of the pipeline from the torch worker seed."""
    worker_info = get_worker_info()
    if worker_info is None:
        return
    dataset = worker_info.dataset
    if isinstance(dataset, LocalizationDataset):
        dataset.reseed(int(worker_info.seed % (2 ** 32)))
        LOGGER.debug("Reseeded localization worker %d", worker_id)


def read_manifest(manifest: str | Path) -> List[Path]:
    """List annotation files from a directory of ``*.json`` files or a text manifest."""
    manifest_path = Path(manifest).expanduser()
    if manifest_path.is_dir():
        return sorted(manifest_path.glob("*.json"))
    if not manifest_path.is_file():
        raise FileNotFoundError(f"Manifest not found: {manifest_path}")
    entries: List[Path] = []
    for line in manifest_path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        entry = Path(line).expanduser()
        entries.append(entry if entry.is_absolute() else manifest_path.parent / entry)
    return entries


def load_records(paths: Sequence[Path]) -> List[bytes]:
    return [Path(path).read_bytes() for path in paths]


def create_dataloader(
    config: Dict[str, Any],
    records: Sequence[bytes],
    localization_config: Optional[LocalizationConfig] = None,
) -> DataLoader:
    dataloader_cfg = config.get("dataloader", {})
    image_cfg = config.get("image", {})
    localization_config = localization_config or LocalizationConfig.from_config(config)

    dataset = LocalizationDataset(
        records,
        localization_config,
        flip_enable=bool(image_cfg.get("flip_enable", False)),
    )
    num_workers = int(dataloader_cfg.get("num_workers", 0))
    dataloader_kwargs: Dict[str, Any] = {
        "dataset": dataset,
        "batch_size": int(dataloader_cfg.get("batch_size", 1)),
        "shuffle": bool(dataloader_cfg.get("shuffle", False)),
        "num_workers": num_workers,
        "pin_memory": bool(dataloader_cfg.get("pin_memory", False)),
        "collate_fn": LocalizationCollate(),
        "worker_init_fn": seed_worker,
    }
    if num_workers > 0 and "prefetch_factor" in dataloader_cfg:
        dataloader_kwargs["prefetch_factor"] = int(dataloader_cfg["prefetch_factor"])

    LOGGER.info(
        "Prepared localization dataloader: %d items, batch_size=%s, workers=%d, total_anchors=%d",
        len(dataset),
        dataloader_kwargs["batch_size"],
        num_workers,
        localization_config.total_anchors(),
    )
    return DataLoader(**dataloader_kwargs)


__all__ = [
    "LocalizationDataset",
    "LocalizationCollate",
    "create_dataloader",
    "load_records",
    "read_manifest",
    "seed_worker",
]
