from __future__ import annotations
import random
from typing import List, Optional, Protocol, Sequence, TypeVar
from .models import AnimalRecord, Dataset, LetterProfile, MatchResult, ScoredAnimal
from .normalize import letter_profile, normalize_name, distance

T = TypeVar("T")

class Chooser(Protocol):
    """Anything with random.Random's choice(); tests pass a seeded Random or a stub."""
    def choice(self, seq: Sequence[T]) -> T: ...

class EmptyDatasetError(RuntimeError):
    """Matching against an empty catalog. The loader guarantees this cannot happen."""

# Shared default source; Engine and tests may inject their own
_RNG = random.Random()

def score_animals(profile: LetterProfile, dataset: Dataset) -> List[ScoredAnimal]:
    """Distance from the caller's profile to every animal's name, in catalog order."""
    return [ScoredAnimal(a, distance(profile, letter_profile(a.name))) for a in dataset]

def closest(scored: List[ScoredAnimal]) -> tuple[int, List[AnimalRecord]]:
    """Return (min distance, tie set). The tie set keeps catalog order."""
    best = min(s.distance for s in scored)
    return best, [s.animal for s in scored if s.distance == best]

def match(raw_name: str, dataset: Dataset, *, rng: Optional[Chooser] = None) -> MatchResult:
    """
    /* ~~~ Pick the animal whose name has the closest letter profile ~~~ */
    Steps:
      1) trim the name (empty -> "anonymous") and profile it
      2) L1 distance against each animal name's profile
      3) keep every animal at the minimum distance
      4) choose one of them uniformly at random
    Only step 4 is non-deterministic.
    """
    if not dataset:
        raise EmptyDatasetError("match() called with an empty dataset")

    name = normalize_name(raw_name)
    scored = score_animals(letter_profile(name), dataset)
    best, ties = closest(scored)
    selected = (rng or _RNG).choice(ties)
    return MatchResult(
        selected=selected,
        min_distance=best,
        tie_count=len(ties),
        normalized_name=name,
    )
