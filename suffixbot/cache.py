"""
Time-based caches shared by the reserved-word and SLD registry sources.

A ``CacheEntry`` is replaced as a whole on every refresh, never mutated, so
concurrent refreshes within one process are last-writer-wins.
"""

import json
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Generic, TypeVar

from suffixbot.logging import get_logger

T = TypeVar("T")

Clock = Callable[[], datetime]

logger = get_logger("cache")


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(timezone.utc)


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)


def to_epoch_ms(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return (moment - _EPOCH) // _MILLISECOND


def from_epoch_ms(value: int | float) -> datetime:
    return _EPOCH + timedelta(milliseconds=value)


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """Loaded data plus the moment it was loaded."""

    data: T
    loaded_at: datetime
    ttl: timedelta

    def is_fresh(self, now: datetime) -> bool:
        """True while ``now`` is before ``loaded_at + ttl``."""
        return now - self.loaded_at < self.ttl


class CacheFile:
    """
    JSON persistence for a cache entry between process invocations.

    The on-disk layout is ``{<key>: <data>, "timestamp": <epoch ms>}``.
    """

    def __init__(self, path: Path, key: str) -> None:
        self.path = Path(path)
        self.key = key

    def load(self) -> tuple[Any, datetime] | None:
        """
        Read the persisted payload.

        Returns:
            ``(data, loaded_at)`` or None when the file is missing or unusable
        """
        if not self.path.exists():
            return None

        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Failed to load cache %s: %s", self.path, e)
            return None

        if not isinstance(payload, dict) or self.key not in payload:
            logger.warning("Ignoring cache %s: missing '%s'", self.path, self.key)
            return None

        timestamp = payload.get("timestamp") or 0
        if not isinstance(timestamp, (int, float)):
            timestamp = 0

        return payload[self.key], from_epoch_ms(timestamp)

    def save(self, data: Any, loaded_at: datetime) -> None:
        """Persist ``data``; failures are logged and do not affect the in-memory cache."""
        payload = {self.key: data, "timestamp": to_epoch_ms(loaded_at)}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as e:
            logger.error("Failed to update cache %s: %s", self.path, e)
