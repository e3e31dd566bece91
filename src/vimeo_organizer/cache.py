"""Time-bounded caches for folder resolution.

Caching strategy:
    - ``folders`` maps ``(parent_folder_id, folder_name)`` to the last resolved
      :class:`src.vimeo_organizer.models.Folder`. Entries expire a fixed time
      after insertion; re-inserting a key restarts its lifetime.
    - ``viability`` maps a strategy name to its last verdict. Verdicts are kept
      for the manager's lifetime unless a TTL is configured, and are flipped to
      ``False`` without re-probing when a strategy fails at runtime.

Expiry is checked on read and expired entries are purged on write, so no
timers are scheduled per entry. Both caches are guarded by a lock so one
manager can be shared between threads.
"""

import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Generic, Hashable, Optional, TypeVar

from .models import Folder, utcnow

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class TTLCache(Generic[K, V]):
    """Dict-backed cache with per-entry expiry.

    Args:
        ttl: Seconds an entry lives, or None for no expiry.
        clock: Monotonic time source (injectable for tests).
    """

    def __init__(
        self, ttl: Optional[float], clock: Callable[[], float] = time.monotonic
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[K, tuple[V, Optional[float]]] = {}
        self._lock = threading.Lock()

    def get(self, key: K) -> Optional[V]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: K, value: V) -> None:
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            expires_at = now + self.ttl if self.ttl is not None else None
            self._entries[key] = (value, expires_at)

    def delete(self, key: K) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> list[K]:
        with self._lock:
            now = self._clock()
            return [
                key
                for key, (_, expires_at) in self._entries.items()
                if expires_at is None or now < expires_at
            ]

    def __len__(self) -> int:
        return len(self.keys())

    def __contains__(self, key: object) -> bool:
        return self.get(key) is not None  # type: ignore[arg-type]

    def _purge_expired(self, now: float) -> None:
        expired = [
            key
            for key, (_, expires_at) in self._entries.items()
            if expires_at is not None and now >= expires_at
        ]
        for key in expired:
            del self._entries[key]


@dataclass(frozen=True)
class ViabilityRecord:
    """Cached viability verdict for one strategy."""

    viable: bool
    last_tested: datetime


class ResolutionCache:
    """
    Folder and strategy-viability caches for one folder manager.

    Attributes:
        folders: ``(parent_id, name)`` -> resolved folder.
        viability: strategy name -> :class:`ViabilityRecord`.
    """

    def __init__(
        self,
        folder_ttl: float,
        viability_ttl: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.folders: TTLCache[tuple[str, str], Folder] = TTLCache(folder_ttl, clock)
        self.viability: TTLCache[str, ViabilityRecord] = TTLCache(viability_ttl, clock)

    def get_folder(self, parent_id: str, name: str) -> Optional[Folder]:
        return self.folders.get((parent_id, name))

    def set_folder(self, parent_id: str, name: str, folder: Folder) -> None:
        self.folders.set((parent_id, name), folder)

    def get_viability(self, strategy: str) -> Optional[ViabilityRecord]:
        return self.viability.get(strategy)

    def set_viability(self, strategy: str, viable: bool) -> ViabilityRecord:
        record = ViabilityRecord(viable=viable, last_tested=utcnow())
        self.viability.set(strategy, record)
        return record

    def clear(self) -> None:
        """Reset both caches unconditionally."""
        self.folders.clear()
        self.viability.clear()
