from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Tuple

@dataclass(frozen=True)
class AnimalRecord:
    name: str
    description: str

# Immutable catalog shared read-only across requests
Dataset = Tuple[AnimalRecord, ...]

# lowercase letter -> occurrence count (absent letters are never stored)
LetterProfile = Dict[str, int]

@dataclass(frozen=True)
class ScoredAnimal:
    animal: AnimalRecord
    distance: int

@dataclass(frozen=True)
class MatchResult:
    selected: AnimalRecord
    min_distance: int
    tie_count: int
    normalized_name: str   # trimmed input, or "anonymous"
