"""
Flat-file storage for dataset packages and side reports.

There is no persistent store: every run regenerates its files in full.
"""

import json
import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from agridex.models.contracts import CardRecord, DatasetPackage

_UNSAFE_ID_CHARS = re.compile(r"[^a-z0-9]+")


def generated_at(override: str | None = None) -> str:
    """
    Return the generation timestamp for manifests (ISO-8601, UTC, "Z").

    Args:
        override: Fixed timestamp for reproducible output; used when non-blank
    """
    if override and override.strip():
        return override.strip()
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def version_from_timestamp(timestamp: str) -> str:
    """Dataset version label: the date part of the generation timestamp."""
    return timestamp[:10]


def safe_id(file_name: str) -> str:
    """
    Derive a dataset id fragment from a file name.

    "My Export (v2).csv" -> "my_export_v2"
    """
    stem = re.sub(r"\.(csv|json)$", "", file_name.lower())
    return _UNSAFE_ID_CHARS.sub("_", stem).strip("_")


def sort_cards_by_name(cards: list[CardRecord]) -> list[CardRecord]:
    return sorted(cards, key=lambda card: card.name.casefold())


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, list):
        return [_to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: _to_jsonable(item) for key, item in value.items()}
    return value


def write_json(path: Path, value: Any) -> Path:
    """Write JSON (pretty-printed, trailing newline), creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    content = json.dumps(_to_jsonable(value), indent=2, ensure_ascii=False)
    path.write_text(content + "\n", encoding="utf-8")
    return path


def write_text(path: Path, value: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(value, encoding="utf-8")
    return path


def read_json(path: Path) -> Any:
    """
    Read a JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the content is not valid JSON
    """
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def dataset_path(datasets_dir: Path, dataset_id: str) -> Path:
    return datasets_dir / f"{dataset_id}.json"


def write_package(datasets_dir: Path, package: DatasetPackage) -> Path:
    """Write a package to <datasets_dir>/<manifest.id>.json."""
    return write_json(dataset_path(datasets_dir, package.manifest.id), package)


def load_package(path: Path) -> DatasetPackage:
    """
    Load and parse a published package.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not a valid package (pydantic.ValidationError)
    """
    return DatasetPackage.model_validate(read_json(path))
