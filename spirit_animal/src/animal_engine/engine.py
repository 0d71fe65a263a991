# animal_engine/engine.py
from __future__ import annotations

import logging
from typing import Optional

from .models import Dataset, MatchResult
from .loader import load_dataset
from .search import Chooser, match

log = logging.getLogger(__name__)


class Engine:
    """
    Thin orchestration layer that glues together:
      - the dataset store (loader.load_dataset),
      - the similarity matcher (search.match),
      - an injectable randomness source for tie-breaks.

    Public API (used by CLI/Flask):
      * load(path):   read the catalog once (falls back on failure, never raises)
      * match(name):  return a MatchResult for a raw visitor name
      * dataset / total_animals: read-only view of the catalog
      * shutdown():   drop the catalog

    Tests can pass `dataset=` to skip loading entirely.
    """

    # ------------- lifecycle -------------

    def __init__(self, dataset: Optional[Dataset] = None, *, rng: Optional[Chooser] = None) -> None:
        self._dataset: Optional[Dataset] = tuple(dataset) if dataset is not None else None
        self._rng = rng

    # /* ~~~ Read the catalog; a second call is a no-op unless reload=True ~~~ */
    def load(self, path: Optional[str] = None, *, reload: bool = False, verbose: bool = False) -> "Engine":
        if verbose:
            logging.basicConfig(level=logging.INFO)

        if self._dataset is not None and not reload:
            log.info("Engine load() skipped: %d animals already loaded", len(self._dataset))
            return self

        self._dataset = load_dataset(path)
        log.info("Engine load() complete: animals=%d", len(self._dataset))
        return self

    @property
    def loaded(self) -> bool:
        return self._dataset is not None

    @property
    def dataset(self) -> Dataset:
        if self._dataset is None:
            raise RuntimeError("Engine not initialized. Call load() first.")
        return self._dataset

    @property
    def total_animals(self) -> int:
        return len(self.dataset)

    # ------------- query -------------

    # /* ~~~ Match a visitor name against the catalog ~~~ */
    def match(self, name: str) -> MatchResult:
        result = match(name, self.dataset, rng=self._rng)
        log.debug(
            "match name=%r -> %s (distance=%d, ties=%d)",
            result.normalized_name, result.selected.name, result.min_distance, result.tie_count,
        )
        return result

    # ------------- teardown -------------

    def shutdown(self) -> None:
        self._dataset = None
        log.info("Engine shutdown complete")
