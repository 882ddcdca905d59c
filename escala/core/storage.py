# escala/core/storage.py
"""
Loading and saving store snapshots as JSON files.
"""

import json
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from escala.core.models import StoreSnapshot

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """A snapshot file or payload could not be read or validated."""


def _read_json(file_path: Path) -> Any:
    """Decoded JSON content of a snapshot file. Raises StorageError."""
    try:
        with file_path.open(encoding="utf-8") as fh:
            return json.load(fh)
    except OSError as e:
        logger.exception("Cannot open snapshot %s", file_path)
        raise StorageError(f"Cannot open snapshot {file_path}: {e}") from e
    except json.JSONDecodeError as e:
        logger.exception("Snapshot %s is not valid JSON", file_path)
        raise StorageError(f"Snapshot {file_path} is not valid JSON: {e}") from e


def parse_snapshot(data: Any, source: str = "payload") -> StoreSnapshot:
    """
    Validate raw JSON data as a store snapshot.
    Raises:
        StorageError: If the data does not describe a valid snapshot
    """
    try:
        if not isinstance(data, dict):
            raise TypeError("Expected snapshot dict")
        return StoreSnapshot.model_validate(data)
    except (TypeError, ValidationError) as e:
        logger.exception("Failed to parse snapshot from %s", source)
        raise StorageError(f"Could not parse snapshot from {source}: {e}") from e


def load_snapshot(file_path: Path) -> StoreSnapshot:
    """
    Load a store snapshot from a JSON file.
    Raises:
        StorageError: If file cannot be loaded or parsed
    """
    return parse_snapshot(_read_json(file_path), str(file_path))


def load_seed(file_path: Path) -> StoreSnapshot | None:
    """Load the optional seed snapshot; None when the file does not exist."""
    if not file_path.exists():
        logger.info("No seed file at %s, starting with an empty store", file_path)
        return None
    return load_snapshot(file_path)


def write_json_safely(file_path: Path, data: dict | list) -> None:
    """
    Safely write JSON to a file using atomic write pattern.
    Writes to a temp file first, then replaces the original.
    """
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        mode="w", encoding="utf-8", dir=file_path.parent, delete=False, suffix=".tmp"
    ) as tmp_file:
        json.dump(data, tmp_file, indent=4, ensure_ascii=False)
        tmp_path = tmp_file.name

    shutil.move(tmp_path, file_path)


def save_snapshot(file_path: Path, snapshot: StoreSnapshot) -> None:
    write_json_safely(file_path, snapshot.model_dump(mode="json", by_alias=True))
    logger.info("Snapshot written to %s", file_path)
