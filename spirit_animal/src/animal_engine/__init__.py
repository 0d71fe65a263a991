"""Public API for the spirit-animal matching engine."""
from __future__ import annotations
from .engine import Engine
from .loader import load_dataset, FALLBACK_DATASET
from .models import AnimalRecord, MatchResult, ScoredAnimal
from .search import match, EmptyDatasetError

__all__ = [
    "Engine",
    "load_dataset",
    "FALLBACK_DATASET",
    "AnimalRecord",
    "MatchResult",
    "ScoredAnimal",
    "match",
    "EmptyDatasetError",
]
