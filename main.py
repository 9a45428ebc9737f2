'''
 # @ Copyright: @copyright (c) 2025 Gahan AI Private Limited
 # @ Author: Pallab Maji
 # @ Create Time: 2025-10-30 17:25:00
 # @ Modified time: 2025-11-06 18:20:00
 # @ Description: Command-line entry point for configuration-driven anchor target generation.
'''
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
from tqdm import tqdm

from localization import LocalizationConfig
from utils.dataloader import create_dataloader, load_records, read_manifest
from utils.utils import apply_overrides, ensure_dir, load_yaml_config, write_json

LOGGER = logging.getLogger("gai_localization.main")


def _setup_logging(log_level: str) -> None:
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="GAI region-proposal anchor target generation",
        epilog="""
Examples:
  python main.py --manifest data/annotations                 # Build targets for every *.json file
  python main.py --manifest train.txt --output-dir targets   # Use a text manifest of annotation paths
  python main.py --manifest data/annotations --set localization.rois_per_image=128
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=str,
        default="config.yaml",
        help="Path to the YAML configuration file",
    )
    parser.add_argument(
        "--manifest",
        type=str,
        required=True,
        help="Directory of annotation JSON files or a text file listing them",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default="./targets",
        help="Directory receiving one .npz file per item and a summary.json",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        nargs="*",
        default=[],
        help="Config overrides as section.key=value",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Only process the first N manifest entries",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    return parser.parse_args(argv)


def generate_targets(config: Dict[str, Any], manifest: str | Path, output_dir: str | Path, limit: Optional[int] = None) -> Dict[str, Any]:
    """Run the pipeline over a manifest and store per-item buffers as ``.npz`` files."""
    localization_config = LocalizationConfig.from_config(config)
    paths = read_manifest(manifest)
    if limit is not None:
        paths = paths[: max(0, limit)]
    if not paths:
        LOGGER.warning("Manifest %s lists no annotation files", manifest)

    output_path = ensure_dir(output_dir)
    dataloader = create_dataloader(config, load_records(paths), localization_config)

    written = 0
    foreground = 0
    background = 0
    for indices, buffers in tqdm(dataloader, desc="targets", unit="batch"):
        for row, item_index in enumerate(indices.tolist()):
            arrays = {name: tensor[row].numpy() for name, tensor in buffers.items()}
            labels = arrays["labels"]
            foreground += int(np.count_nonzero(labels == 1))
            background += int(np.count_nonzero(labels == 0))
            np.savez(output_path / f"{paths[item_index].stem}.npz", **arrays)
            written += 1

    summary = {
        "items": len(paths),
        "written": written,
        "skipped": len(paths) - written,
        "foreground_anchors": foreground,
        "background_anchors": background,
        "total_anchors": localization_config.total_anchors(),
        "rois_per_image": localization_config.rois_per_image,
    }
    write_json(output_path / "summary.json", summary)
    if summary["skipped"]:
        LOGGER.warning("Skipped %d items with undecodable annotations", summary["skipped"])
    LOGGER.info(
        "Target generation complete | written=%d | fg=%d | bg=%d",
        written,
        foreground,
        background,
    )
    return summary


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    _setup_logging(args.log_level)

    config_path = Path(args.config)
    LOGGER.info("Loading configuration from %s", config_path)
    config = apply_overrides(load_yaml_config(config_path), args.overrides)
    generate_targets(config, args.manifest, args.output_dir, limit=args.limit)


if __name__ == "__main__":
    main()
