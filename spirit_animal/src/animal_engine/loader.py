from __future__ import annotations
import json
import logging
from typing import Any, List, Optional
from .models import AnimalRecord, Dataset
from .config import DATA_PATH

log = logging.getLogger(__name__)

# Served when the catalog file is missing or unusable
FALLBACK_DATASET: Dataset = (
    AnimalRecord("Elephant", "A large mammal with a trunk"),
    AnimalRecord("Giraffe", "The tallest land animal"),
    AnimalRecord("Penguin", "A flightless bird from Antarctica"),
)

class DatasetFormatError(ValueError):
    """The catalog parsed as JSON but is not a non-empty list of animals."""

def _to_record(i: int, row: Any) -> AnimalRecord:
    if not isinstance(row, dict) or not isinstance(row.get("name"), str):
        raise DatasetFormatError(f"entry {i}: expected an object with a string 'name'")
    desc = row.get("description")
    return AnimalRecord(name=row["name"], description=desc if isinstance(desc, str) else "")

def parse_dataset(raw: Any) -> Dataset:
    """Validate decoded JSON and freeze it into a Dataset."""
    if not isinstance(raw, list):
        raise DatasetFormatError("catalog must be a JSON array")
    records: List[AnimalRecord] = [_to_record(i, row) for i, row in enumerate(raw)]
    if not records:
        raise DatasetFormatError("catalog is empty")
    return tuple(records)

def load_dataset(path: Optional[str] = None) -> Dataset:
    """
    Read the animal catalog once. Never raises: any read/parse/shape problem
    is logged and the three-animal fallback catalog is returned instead.
    """
    path = path or DATA_PATH
    try:
        with open(path, "r", encoding="utf-8") as f:
            dataset = parse_dataset(json.load(f))
    except (OSError, ValueError, RecursionError) as exc:  # JSONDecodeError and DatasetFormatError are ValueErrors
        log.error("Error loading %s: %s; using fallback catalog", path, exc)
        return FALLBACK_DATASET
    log.info("Loaded %d animals from %s", len(dataset), path)
    return dataset
