"""Comparison documents for compatibility checks.

A comparison source returns a previously published version of the document
under validation, or ``None`` when none is available. Fetched documents are
kept in an explicitly constructed, bounded TTL cache keyed by the stable
service identifier, and are never mutated once cached.
"""

import asyncio
import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from oaslint.config import ComparisonConfig
from oaslint.errors import ParseError
from oaslint.parser.document import SpecDocument, parse

logger = logging.getLogger(__name__)

BASELINE_SUFFIXES = (".yaml", ".yml", ".json")


class ComparisonSource(Protocol):
    """Collaborator supplying the comparison document for a run."""

    async def fetch(self, document: SpecDocument) -> SpecDocument | None:
        ...


class ComparisonCache:
    """Bounded cache of comparison documents with a time-to-live.

    A fresh entry is never replaced; it expires after ``ttl`` seconds and the
    least recently used entry is evicted beyond ``max_entries``.
    """

    def __init__(self, max_entries: int = 16, ttl: float = 300.0,
                 clock: Callable[[], float] = time.monotonic):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.max_entries = max_entries
        self.ttl = ttl
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, SpecDocument]] = OrderedDict()

    def get(self, key: str) -> SpecDocument | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, document = entry
        if self._clock() - stored_at > self.ttl:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return document

    def put(self, key: str, document: SpecDocument) -> SpecDocument:
        """Store ``document`` unless a fresh entry exists; returns the cached document."""
        existing = self.get(key)
        if existing is not None:
            return existing
        self._entries[key] = (self._clock(), document)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Evicted comparison document: {evicted}")
        return document

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)


class BaselineComparisonSource:
    """Loads comparison documents from ``<baseline_dir>/<identifier>.yaml``.

    The identifier comes from ``info.x-service``, then the configured
    ``services`` mapping of titles, then ``info.title``.
    """

    def __init__(self, baseline_dir: str | Path, services: dict[str, str] | None = None,
                 cache: ComparisonCache | None = None):
        self.baseline_dir = Path(baseline_dir)
        self.services = dict(services or {})
        self.cache = cache if cache is not None else ComparisonCache()

    @classmethod
    def from_config(cls, config: ComparisonConfig, cache: ComparisonCache | None = None) -> "BaselineComparisonSource":
        if cache is None:
            cache = ComparisonCache(max_entries=config.cache_size, ttl=config.cache_ttl)
        return cls(config.baseline_dir, config.services, cache)

    def identifier_for(self, document: SpecDocument) -> str | None:
        service = document.get("info", "x-service")
        if isinstance(service, str) and service.strip():
            return service.strip()
        title = document.title
        if title is None:
            return None
        return self.services.get(title, title)

    def baseline_path(self, identifier: str) -> Path | None:
        if not identifier or Path(identifier).name != identifier or identifier in (".", ".."):
            logger.warning(f"Ignoring unsafe comparison identifier: {identifier!r}")
            return None
        for suffix in BASELINE_SUFFIXES:
            candidate = self.baseline_dir / f"{identifier}{suffix}"
            if candidate.is_file():
                return candidate
        return None

    async def fetch(self, document: SpecDocument) -> SpecDocument | None:
        identifier = self.identifier_for(document)
        if identifier is None:
            logger.debug("No comparison identifier for document")
            return None

        cached = self.cache.get(identifier)
        if cached is not None:
            return cached

        path = self.baseline_path(identifier)
        if path is None:
            logger.debug(f"No baseline found for {identifier} in {self.baseline_dir}")
            return None

        try:
            text = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read baseline {path}: {e}")
            return None

        try:
            baseline = parse(text)
        except ParseError as e:
            logger.warning(f"Baseline {path} is not a valid document: {e}")
            return None

        return self.cache.put(identifier, baseline)
