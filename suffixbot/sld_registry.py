"""
Supported second-level-domain registry.

The registry is a JSON object keyed by suffix::

    {
      "no.kg": {
        "status": "live",
        "operator": {
          "organization": "...",
          "website": "...",
          "created_at": "...",
          "description": "..."
        }
      }
    }

It is an allow-list, so a single malformed entry rejects the whole load and
an unavailable registry fails suffix checks instead of accepting them.
"""

import asyncio
import json
from collections.abc import Mapping
from datetime import timedelta
from pathlib import Path
from typing import Any

from suffixbot.cache import CacheEntry, CacheFile, Clock, utc_now
from suffixbot.exceptions import RegistryFormatError, RegistryUnavailableError
from suffixbot.logging import get_logger
from suffixbot.types.registry import SLDEntry, SLDOperator

logger = get_logger("cache")

_OPERATOR_FIELDS = ("organization", "website", "created_at", "description")


def parse_registry(raw: Any) -> dict[str, SLDEntry]:
    """
    Validate and convert a raw registry payload.

    Raises:
        RegistryFormatError: If the payload or any entry has the wrong shape
    """
    if not isinstance(raw, dict):
        raise RegistryFormatError("SLD registry must be a JSON object keyed by suffix")

    entries: dict[str, SLDEntry] = {}
    for suffix, info in raw.items():
        if not isinstance(info, dict):
            raise RegistryFormatError(f"SLD entry '{suffix}' must be an object")

        status = info.get("status")
        if not status or not isinstance(status, str):
            raise RegistryFormatError(f"SLD entry '{suffix}' has no string status")

        operator = info.get("operator")
        if not isinstance(operator, dict):
            raise RegistryFormatError(f"SLD entry '{suffix}' has no operator object")

        if not operator.get("organization") or not isinstance(operator["organization"], str):
            raise RegistryFormatError(f"SLD entry '{suffix}' operator.organization must be a string")

        for name in _OPERATOR_FIELDS[1:]:
            if not isinstance(operator.get(name), str):
                raise RegistryFormatError(f"SLD entry '{suffix}' operator.{name} must be a string")

        entries[suffix] = SLDEntry(
            status=status,
            operator=SLDOperator(**{name: operator[name] for name in _OPERATOR_FIELDS}),
        )

    return entries


class SLDRegistry:
    """
    Cached SLD registry.

    Resolution order mirrors ``ReservedWordsSource`` except that there is
    no built-in fallback: with neither a readable source nor any previous
    cache, lookups raise ``RegistryUnavailableError``.
    """

    def __init__(
        self,
        path: Path,
        cache_file: Path | None = None,
        ttl: timedelta = timedelta(hours=24),
        clock: Clock = utc_now,
    ) -> None:
        self.path = Path(path)
        self.ttl = ttl
        self._clock = clock
        self._cache_file = CacheFile(cache_file, "sldList") if cache_file else None
        self._entry: CacheEntry[Mapping[str, SLDEntry]] | None = None
        self.warning: str | None = None
        self._load_persisted()

    async def entries(self) -> Mapping[str, SLDEntry]:
        """
        Return all registry entries.

        Raises:
            RegistryUnavailableError: If no registry data can be obtained
        """
        self.warning = None
        entry = self._entry
        if entry is not None and entry.is_fresh(self._clock()):
            return entry.data

        logger.info("SLD cache expired or missing, reading %s", self.path)
        try:
            return await self.refresh()
        except (OSError, UnicodeDecodeError, ValueError, RegistryFormatError) as e:
            logger.error("Failed to read SLD list from %s: %s", self.path, e)

        if self._entry is not None and self._entry.data:
            self.warning = "SLD list could not be refreshed; using expired cached copy"
            logger.warning(self.warning)
            return self._entry.data

        raise RegistryUnavailableError("SLD list unavailable")

    async def refresh(self) -> Mapping[str, SLDEntry]:
        """
        Reload the registry from its source and replace the cache.

        Raises:
            OSError: If the file cannot be read
            ValueError: If the file is not valid JSON or is empty
            RegistryFormatError: If any entry has the wrong shape
        """
        content = await asyncio.to_thread(self.path.read_text, encoding="utf-8")
        raw = json.loads(content)
        entries = parse_registry(raw)
        if not entries:
            raise ValueError(f"SLD list in {self.path} is empty")

        entry = CacheEntry(data=entries, loaded_at=self._clock(), ttl=self.ttl)
        self._entry = entry
        if self._cache_file is not None:
            self._cache_file.save(raw, entry.loaded_at)

        logger.info("Loaded %d SLDs", len(entries))
        return entries

    async def get_supported_suffixes(self) -> frozenset[str]:
        """Suffixes open for new registrations (status ``live``)."""
        entries = await self.entries()
        return frozenset(suffix for suffix, info in entries.items() if info.is_live)

    async def get_status(self, suffix: str) -> str | None:
        entries = await self.entries()
        info = entries.get(suffix)
        return info.status if info else None

    async def is_supported(self, suffix: str) -> bool:
        """True when the suffix is present in the registry, whatever its status."""
        entries = await self.entries()
        return suffix in entries

    async def is_available(self, suffix: str) -> bool:
        """True when the suffix is present and ``live``."""
        entries = await self.entries()
        info = entries.get(suffix)
        return info is not None and info.is_live

    def _load_persisted(self) -> None:
        if self._cache_file is None:
            return

        loaded = self._cache_file.load()
        if loaded is None:
            return

        data, loaded_at = loaded
        try:
            entries = parse_registry(data)
        except RegistryFormatError as e:
            logger.warning("Ignoring SLD cache: %s", e.message)
            return

        self._entry = CacheEntry(data=entries, loaded_at=loaded_at, ttl=self.ttl)
        logger.info(
            "Loaded %d SLDs from cache, cache time: %s", len(entries), loaded_at.isoformat()
        )
