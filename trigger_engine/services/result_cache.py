"""
In-memory cache of the most recent classification run.

The cache holds an immutable snapshot and replaces it with a single reference
assignment, so a concurrent reader sees either the previous complete result set
or the new one, never a partial update. Writes are last-writer-wins.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime

import structlog

from trigger_engine.domain.models import ClassificationResult

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CachedRun:
    """One complete, immutable classification run."""

    results: tuple[ClassificationResult, ...]
    stored_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class ClassificationCache:
    """Latest ClassificationResult list, swapped atomically."""

    def __init__(self) -> None:
        self._run: CachedRun | None = None
        self.logger = logger.bind(component="classification_cache")

    def store(self, results: Iterable[ClassificationResult]) -> CachedRun:
        run = CachedRun(results=tuple(results))
        self._run = run
        self.logger.info("classification_cached", outcomes=len(run.results))
        return run

    def get(self) -> list[ClassificationResult] | None:
        run = self._run
        if run is None:
            return None
        return list(run.results)

    @property
    def stored_at(self) -> datetime | None:
        run = self._run
        return run.stored_at if run is not None else None

    def clear(self) -> None:
        self._run = None
