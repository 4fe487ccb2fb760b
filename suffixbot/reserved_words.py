"""
Reserved-word deny-list source.

Loads domain labels that may never be registered from a line-oriented text
file, keeps them in a 24h cache (persisted between runs) and degrades to a
stale cache or a built-in list instead of failing.
"""

import asyncio
from collections.abc import Iterable
from datetime import timedelta
from pathlib import Path

from suffixbot.cache import CacheEntry, CacheFile, Clock, utc_now
from suffixbot.config import DEFAULT_FALLBACK_RESERVED_WORDS, RESERVED_WORD_PATTERN
from suffixbot.logging import get_logger

logger = get_logger("cache")


def parse_reserved_words(content: str) -> frozenset[str]:
    """
    Parse reserved-word file content.

    A line is a word iff it is non-empty after stripping, does not start
    with ``#`` or ``//`` and matches ``^[A-Za-z0-9-]+$``. Words are
    lowercased and deduplicated.
    """
    words = set()
    for raw in content.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or line.startswith("//"):
            continue
        if RESERVED_WORD_PATTERN.match(line):
            words.add(line.lower())
    return frozenset(words)


class ReservedWordsSource:
    """
    Cached reserved-word list.

    ``get_reserved_words`` never raises. Resolution order:

    1. fresh cache
    2. reload from ``path``
    3. previous cache, even if stale (warning)
    4. built-in fallback list (warning)
    """

    def __init__(
        self,
        path: Path,
        cache_file: Path | None = None,
        ttl: timedelta = timedelta(hours=24),
        fallback_words: Iterable[str] = DEFAULT_FALLBACK_RESERVED_WORDS,
        clock: Clock = utc_now,
    ) -> None:
        self.path = Path(path)
        self.ttl = ttl
        self.fallback_words = frozenset(word.lower() for word in fallback_words)
        self._clock = clock
        self._cache_file = CacheFile(cache_file, "words") if cache_file else None
        self._entry: CacheEntry[frozenset[str]] | None = None
        self.warning: str | None = None
        self._load_persisted()

    @property
    def entry(self) -> CacheEntry[frozenset[str]] | None:
        return self._entry

    async def get_reserved_words(self) -> frozenset[str]:
        """
        Return the reserved-word set (lowercase).

        When a stale cache or the built-in list is served, ``warning``
        describes the degradation until the next successful lookup.
        """
        self.warning = None
        entry = self._entry
        if entry is not None and entry.is_fresh(self._clock()):
            logger.debug("Using cached reserved words list")
            return entry.data

        logger.info("Reserved words cache expired or missing, reading %s", self.path)
        try:
            return await self.refresh()
        except (OSError, UnicodeDecodeError, ValueError) as e:
            logger.error("Failed to read reserved words from %s: %s", self.path, e)

        if self._entry is not None and self._entry.data:
            self.warning = "Reserved words list could not be refreshed; using expired cached copy"
            logger.warning(self.warning)
            return self._entry.data

        self.warning = "Reserved words list unavailable; using built-in fallback list"
        logger.warning(self.warning)
        return self.fallback_words

    async def refresh(self) -> frozenset[str]:
        """
        Reload the list from its source and replace the cache.

        Raises:
            OSError: If the file cannot be read
            ValueError: If the file yields no words
        """
        content = await asyncio.to_thread(self.path.read_text, encoding="utf-8")
        words = parse_reserved_words(content)
        if not words:
            raise ValueError(f"No reserved words found in {self.path}")

        entry = CacheEntry(data=words, loaded_at=self._clock(), ttl=self.ttl)
        self._entry = entry
        if self._cache_file is not None:
            self._cache_file.save(sorted(words), entry.loaded_at)

        logger.info("Loaded %d reserved words", len(words))
        return words

    def _load_persisted(self) -> None:
        if self._cache_file is None:
            return

        loaded = self._cache_file.load()
        if loaded is None:
            return

        data, loaded_at = loaded
        if not isinstance(data, list):
            logger.warning("Ignoring reserved words cache with unexpected shape")
            return

        words = frozenset(w.lower() for w in data if isinstance(w, str))
        self._entry = CacheEntry(data=words, loaded_at=loaded_at, ttl=self.ttl)
        logger.info(
            "Loaded %d reserved words from cache, cache time: %s",
            len(words),
            loaded_at.isoformat(),
        )
