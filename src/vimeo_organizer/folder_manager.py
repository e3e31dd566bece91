"""Folder organization and resolution.

Objective:
    Find or create a named folder under a parent folder in Vimeo, whose API
    does not reliably support nested folders. Several strategies achieve the
    same logical outcome; this module tries them in priority order, detects
    folders left behind by earlier (possibly obsolete) strategies, and caches
    both resolved folders and strategy viability.

Responsibilities:
    - Resolve-or-create an organized folder (:meth:`VimeoFolderManager.create_organized_folder`).
    - Search folders by name.
    - Report strategy viability for operational visibility.
    - Expose the (stubbed) hierarchy and bulk-reorganize contracts.

Resolution flow (per call):
    cache check -> strategy selection -> for each candidate:
    viability check -> existing lookup -> create. The first success wins and
    is cached. A strategy that fails to look up or create is marked
    non-viable for the rest of the session. When no candidate succeeds,
    :class:`AllStrategiesExhausted` is raised.

High-level call tree:
    - :class:`VimeoFolderManager`
        - :meth:`create_organized_folder`
            - :meth:`_key_lock` (one in-flight resolution per key)
            - :meth:`_select_strategies`
            - :meth:`_resolve`
                - :meth:`_ensure_viable` -> :meth:`FolderStrategy.can_create`
                - :meth:`_find_existing` -> :meth:`FolderStrategy.find_existing`
                - :meth:`FolderStrategy.create`
        - :meth:`search_folders`
        - :meth:`get_folder_hierarchy`
        - :meth:`organize_existing_videos`
        - :meth:`clear_cache` / :meth:`get_strategy_stats` / :meth:`probe_strategies`

Operational notes:
    - The manager holds no long-lived locks. Per-key locks only serialize
      concurrent resolutions of the same ``(parent, name)`` pair and are
      dropped once no caller waits on them.
    - Retry settings apply to individual HTTP calls inside
      :class:`VimeoClient`, never to re-running the strategy chain.
"""

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional

import requests

from .cache import ResolutionCache, ViabilityRecord
from .config import (
    OrganizationConfig,
    Settings,
    StrategyName,
    get_settings,
    parse_strategy_name,
)
from .exceptions import AllStrategiesExhausted, RemoteLookupFailed, StrategyNonViable
from .models import (
    BulkOrganizeResult,
    Folder,
    FolderHierarchy,
    ResolutionResult,
    StrategyStats,
)
from .strategies import STRATEGY_CLASSES, FolderStrategy, build_strategies
from .vimeo_client import VimeoClient

logger = logging.getLogger(__name__)

CACHE_STRATEGY = "cache"


@dataclass
class _KeyLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


class VimeoFolderManager:
    """
    Resolves organized folders through a priority-ordered strategy chain.

    Attributes:
        config: Read-only organization configuration.
        client: Vimeo API client.
        strategies: Enabled strategies, lowest priority value first.
        cache: Folder and viability caches.
    """

    def __init__(
        self,
        config: OrganizationConfig,
        client: Optional[VimeoClient] = None,
        strategies: Optional[list[FolderStrategy]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize folder manager.

        Args:
            config: Organization configuration.
            client: Vimeo client (built from ``config`` if None).
            strategies: Strategies to use (the configured set if None).
            clock: Monotonic time source for cache expiry.
        """
        self.config = config
        self.client = client or VimeoClient(config)
        if strategies is None:
            strategies = build_strategies(self.client, config.active_strategies())
        self.strategies: list[FolderStrategy] = sorted(strategies, key=lambda s: s.priority)
        self.cache = ResolutionCache(
            folder_ttl=config.folder_cache_ttl,
            viability_ttl=config.viability_cache_ttl,
            clock=clock,
        )
        self._key_locks: dict[tuple[str, str], _KeyLock] = {}
        self._key_locks_guard = threading.Lock()

        logger.debug(
            f"Preferred pattern {config.organization_pattern.value}; "
            f"declared fallbacks: {[s.value for s in config.fallback_strategies]}"
        )

    def create_organized_folder(
        self,
        parent_folder_id: str,
        folder_name: str,
        force_strategy: Optional[str] = None,
        skip_cache: bool = False,
    ) -> ResolutionResult:
        """Find or create an organized folder under a parent.

        Args:
            parent_folder_id: Parent folder id.
            folder_name: Child folder name (e.g. a user's display name).
            force_strategy: Only try this strategy (name or alias).
            skip_cache: Bypass the folder cache lookup.

        Returns:
            ResolutionResult: Resolved folder with provenance.

        Raises:
            AllStrategiesExhausted: If no strategy could resolve the folder.
            ValueError: If ``force_strategy`` is not a known strategy.
        """
        logger.info(f'Resolving organized folder "{folder_name}" under {parent_folder_id}')

        candidates = self._select_strategies(force_strategy)

        if not skip_cache:
            cached = self._from_cache(parent_folder_id, folder_name)
            if cached:
                return cached

        with self._key_lock(parent_folder_id, folder_name):
            if not skip_cache:
                # Another caller may have resolved this key while we waited.
                cached = self._from_cache(parent_folder_id, folder_name)
                if cached:
                    return cached
            return self._resolve(parent_folder_id, folder_name, candidates)

    def _from_cache(self, parent_folder_id: str, folder_name: str) -> Optional[ResolutionResult]:
        cached = self.cache.get_folder(parent_folder_id, folder_name)
        if not cached:
            return None
        logger.debug(f"Found cached folder: {cached.name}")
        return ResolutionResult(
            folder=cached,
            strategy=CACHE_STRATEGY,
            was_existing=True,
            organization_pattern=self.config.organization_pattern.value,
        )

    def _select_strategies(self, force_strategy: Optional[str]) -> list[FolderStrategy]:
        """Return the candidates for one resolution.

        A pinned strategy yields a singleton list; it is built on demand when
        it is not among the configured strategies.
        """
        if not force_strategy:
            return list(self.strategies)

        name = parse_strategy_name(force_strategy)
        for strategy in self.strategies:
            if strategy.name == name:
                return [strategy]
        return [STRATEGY_CLASSES[name](self.client)]

    def _resolve(
        self,
        parent_folder_id: str,
        folder_name: str,
        candidates: list[FolderStrategy],
    ) -> ResolutionResult:
        attempts: dict[str, str] = {}

        for strategy in candidates:
            name = strategy.name.value
            logger.debug(f"Trying strategy: {name}")

            try:
                self._ensure_viable(strategy)
            except StrategyNonViable:
                logger.debug(f"Strategy {name} not viable")
                attempts[name] = "not viable"
                continue

            try:
                existing = self._find_existing(strategy, parent_folder_id, folder_name)
                if existing:
                    logger.info(f"Found existing folder with {name}: {existing.name}")
                    return self._resolved(parent_folder_id, folder_name, existing, name, True)

                new_folder = strategy.create(parent_folder_id, folder_name, self.config)
            except Exception as e:
                logger.warning(f"Strategy {name} failed: {e}")
                self.cache.set_viability(name, False)
                attempts[name] = str(e)
                continue

            logger.info(f"Created folder with {name}: {new_folder.name}")
            return self._resolved(parent_folder_id, folder_name, new_folder, name, False)

        logger.error(
            f'All folder organization strategies failed for "{folder_name}": {attempts}'
        )
        raise AllStrategiesExhausted(folder_name, parent_folder_id, attempts)

    def _resolved(
        self,
        parent_folder_id: str,
        folder_name: str,
        folder: Folder,
        strategy: str,
        was_existing: bool,
    ) -> ResolutionResult:
        self.cache.set_folder(parent_folder_id, folder_name, folder)
        return ResolutionResult(
            folder=folder,
            strategy=strategy,
            was_existing=was_existing,
            organization_pattern=self.config.organization_pattern.value,
        )

    def _ensure_viable(self, strategy: FolderStrategy) -> None:
        """Check (and cache) a strategy's viability.

        Raises:
            StrategyNonViable: If the strategy cannot be used.
        """
        name = strategy.name.value
        record = self.cache.get_viability(name)

        if record is None:
            record = self._test_viability(strategy)

        if not record.viable:
            raise StrategyNonViable(name)

    def _test_viability(self, strategy: FolderStrategy) -> ViabilityRecord:
        name = strategy.name.value
        try:
            viable = strategy.can_create(self.config)
        except Exception as e:
            logger.debug(f"Viability test for {name} raised: {e}")
            viable = False
        logger.debug(f"Strategy {name} viability tested: {viable}")
        return self.cache.set_viability(name, viable)

    def probe_strategies(self) -> dict[str, StrategyStats]:
        """Test every strategy that has no cached verdict and return stats.

        Cached verdicts, including ones set by runtime failures, are kept
        until they expire or :meth:`clear_cache` is called.
        """
        for strategy in self.strategies:
            if self.cache.get_viability(strategy.name.value) is None:
                self._test_viability(strategy)
        return self.get_strategy_stats()

    def _find_existing(
        self, strategy: FolderStrategy, parent_folder_id: str, folder_name: str
    ) -> Optional[Folder]:
        """Look for an existing folder; lookup failures count as no match."""
        try:
            return strategy.find_existing(parent_folder_id, folder_name, self.config)
        except RemoteLookupFailed as e:
            logger.warning(f"{e}; treating as no existing folder")
            return None

    @contextmanager
    def _key_lock(self, parent_folder_id: str, folder_name: str) -> Iterator[None]:
        """Serialize resolutions of the same key within this manager."""
        key = (parent_folder_id, folder_name)
        with self._key_locks_guard:
            entry = self._key_locks.get(key)
            if entry is None:
                entry = self._key_locks[key] = _KeyLock()
            entry.holders += 1

        try:
            with entry.lock:
                yield
        finally:
            with self._key_locks_guard:
                entry.holders -= 1
                if entry.holders == 0:
                    self._key_locks.pop(key, None)

    def search_folders(self, search_term: str) -> list[Folder]:
        """Search top-level folders by name (case-insensitive substring).

        Remote failures are logged and yield an empty list.

        Args:
            search_term: Text to look for in folder names.

        Returns:
            list[Folder]: Matching folders.
        """
        try:
            folders = self.client.list_folders()
        except requests.RequestException as e:
            logger.error(f"Search failed: {e}")
            return []

        term = (search_term or "").lower()
        return [folder for folder in folders if term in folder.name.lower()]

    def get_folder_hierarchy(self, folder_id: str) -> FolderHierarchy:
        """Return path information for a folder.

        Only the folder itself is fetched; ancestor traversal is not
        implemented, so the result is marked incomplete.

        Raises:
            requests.HTTPError: If the folder cannot be fetched.
        """
        folder = self.client.get_folder(folder_id)
        return FolderHierarchy(folder=folder, path=[folder.name], complete=False)

    def organize_existing_videos(self, organization_rules: dict[str, str]) -> BulkOrganizeResult:
        """Bulk-reassign existing videos into folders by pattern rules.

        Not supported: the result always reports ``supported=False`` and
        nothing is moved.

        Args:
            organization_rules: Pattern -> folder name.

        Returns:
            BulkOrganizeResult: Zero moved, zero errors.
        """
        logger.warning(
            "Bulk organization is not supported; ignoring %s rule(s)",
            len(organization_rules or {}),
        )
        return BulkOrganizeResult(moved=0, errors=0, supported=False)

    def add_video_to_folder(self, folder_id: str, video_id: str) -> bool:
        """Place an uploaded video into a resolved folder."""
        return self.client.add_video_to_folder(folder_id, video_id)

    def clear_cache(self) -> None:
        """Reset the folder and viability caches."""
        self.cache.clear()
        logger.debug("Cleared folder and strategy caches")

    def get_strategy_stats(self) -> dict[str, StrategyStats]:
        """Return last known viability for every strategy.

        Returns:
            dict[str, StrategyStats]: Strategy name -> stats. Untested
            strategies report ``viable=False`` and ``last_tested=None``.
        """
        stats: dict[str, StrategyStats] = {}
        for name in sorted(StrategyName, key=lambda s: s.priority):
            record = self.cache.get_viability(name.value)
            if record is None:
                stats[name.value] = StrategyStats()
            else:
                stats[name.value] = StrategyStats(
                    viable=record.viable, last_tested=record.last_tested
                )
        return stats


def create_folder_manager(settings: Optional[Settings] = None) -> VimeoFolderManager:
    """Build a folder manager from environment settings.

    Args:
        settings: Application settings (loads from env if None).

    Returns:
        VimeoFolderManager: A new manager instance.
    """
    settings = settings or get_settings()
    return VimeoFolderManager(settings.organization_config())
