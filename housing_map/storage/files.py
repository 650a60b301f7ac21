"""
File helpers for offline preprocessing of large GeoJSON exports.

`clean_geojson_file` makes a non-strict export parseable; `write_ndjson_chunks`
splits a FeatureCollection into the numbered NDJSON files the map loader
reads.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional, Union

from ..parsers.sanitize import clean_text, sanitize_feature

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 10000


def cleaned_path_for(input_path: Path) -> Path:
    """`districts.geojson` -> `districts.cleaned.geojson`."""
    if input_path.suffix.lower() == ".geojson":
        return input_path.with_name(f"{input_path.stem}.cleaned.geojson")
    return input_path.with_name(f"{input_path.name}.cleaned.geojson")


def clean_geojson_file(input_path: Union[str, Path]) -> Optional[Path]:
    """
    Write a cleaned copy of `input_path` next to it.

    Returns:
        Path of the cleaned file, or None when the input does not exist.
        The cleaned file is written even if it still fails to parse, since
        the NDJSON converter may cope with it; a warning is logged.
    """
    input_path = Path(input_path)
    if not input_path.exists():
        logger.warning(f"Input not found, skipping: {input_path}")
        return None

    cleaned = clean_text(input_path.read_text(encoding="utf-8"))
    try:
        json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning(f"Cleaned JSON still fails to parse for {input_path}: {e}")

    out_path = cleaned_path_for(input_path)
    out_path.write_text(cleaned, encoding="utf-8")
    logger.info(f"Wrote cleaned file: {out_path}")
    return out_path


def write_ndjson_chunks(
    input_path: Union[str, Path],
    out_dir: Union[str, Path],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    prefix: str = "construction_",
) -> List[Path]:
    """
    Split a FeatureCollection into `{prefix}{i}.ndjson` files of `chunk_size` features.

    Raises:
        FileNotFoundError: input does not exist
        ValueError: input is not valid JSON or not a FeatureCollection
    """
    input_path = Path(input_path)
    out_dir = Path(out_dir)
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if not input_path.exists():
        raise FileNotFoundError(f"Input file not found: {input_path}")

    logger.info(f"Reading {input_path} ...")
    try:
        # json accepts bare NaN/Infinity; sanitize_feature turns them into null on the way out.
        document = json.loads(input_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(
            f"Failed to parse {input_path}; run clean-geojson on it first ({e})"
        ) from e

    if not isinstance(document, dict) or document.get("type") != "FeatureCollection" or not isinstance(
        document.get("features"), list
    ):
        raise ValueError(f"{input_path} does not look like a GeoJSON FeatureCollection")

    features = document["features"]
    out_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"Found {len(features)} features. Writing NDJSON to {out_dir} (chunk={chunk_size})")

    written: List[Path] = []
    handle = None
    in_current = 0
    lines_written = 0
    try:
        for index, feature in enumerate(features):
            try:
                line = sanitize_feature(feature)
            except (TypeError, ValueError) as e:
                logger.warning(f"Skipping feature at index {index} due to serialization error: {e}")
                continue
            if handle is None or in_current >= chunk_size:
                if handle is not None:
                    handle.close()
                path = out_dir / f"{prefix}{len(written)}.ndjson"
                logger.info(f"Writing {path} ...")
                handle = path.open("w", encoding="utf-8")
                written.append(path)
                in_current = 0
            handle.write(line + "\n")
            in_current += 1
            lines_written += 1
    finally:
        if handle is not None:
            handle.close()

    logger.info(f"Wrote {lines_written} feature(s) across {len(written)} file(s)")
    return written
