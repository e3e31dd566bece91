"""Folder organization strategies.

Objective:
    Vimeo does not reliably support nested folders across accounts. Each
    strategy here is one technique for realizing a child folder under a parent
    folder; the folder manager tries them in priority order.

Strategies (lower priority runs first):
    1. :class:`NativeNestedStrategy` - true sub-folder via the projects API.
    2. :class:`VirtualPathStrategy` - flat folder named ``Parent/Child``.
    3. :class:`EnhancedFlatStrategy` - flat folder named ``📁 SSR • Child``
       (or a custom ``{name}`` pattern).
    4. :class:`ShowcaseStrategy` - showcase adapted into a folder.

Contract (identical for every strategy):
    - :meth:`FolderStrategy.can_create` never mutates remote state and never
      raises; transport errors mean "not viable".
    - :meth:`FolderStrategy.find_existing` checks the current naming
      convention and historical ones, in a fixed order. Transport errors raise
      :class:`RemoteLookupFailed`.
    - :meth:`FolderStrategy.create` raises :class:`RemoteCreationFailed` on
      non-2xx responses.

Strategies hold no per-resolution state; caching lives in the manager.
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, Optional
from urllib.parse import quote

import requests

from .config import OrganizationConfig, StrategyName
from .exceptions import RemoteCreationFailed, RemoteLookupFailed
from .models import Folder
from .vimeo_client import VimeoClient

logger = logging.getLogger(__name__)

CREATED_BY = "VimeoFolderManager"


def find_by_names(folders: Iterable[Folder], candidates: Iterable[str]) -> Optional[Folder]:
    """Return the first folder matching the earliest candidate name.

    Candidate order wins over listing order, so the current naming convention
    is preferred over legacy ones when both exist.

    Args:
        folders: Folders to search.
        candidates: Exact names to try, in order.

    Returns:
        Optional[Folder]: Matching folder, or None.
    """
    by_name: dict[str, Folder] = {}
    for folder in folders:
        by_name.setdefault(folder.name, folder)

    for candidate in candidates:
        match = by_name.get(candidate)
        if match:
            return match
    return None


def _unique(names: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    ordered = []
    for name in names:
        if name and name not in seen:
            seen.add(name)
            ordered.append(name)
    return ordered


class FolderStrategy(ABC):
    """
    One technique for realizing a child folder under a parent folder.

    Attributes:
        client: Vimeo API client used for all remote calls.
    """

    name: StrategyName

    def __init__(self, client: VimeoClient) -> None:
        self.client = client

    @property
    def priority(self) -> int:
        return self.name.priority

    @abstractmethod
    def can_create(self, config: OrganizationConfig) -> bool:
        """Return whether this technique is usable for the account."""

    @abstractmethod
    def find_existing(
        self, parent_id: str, child_name: str, config: OrganizationConfig
    ) -> Optional[Folder]:
        """Return an existing folder satisfying this technique, if any."""

    @abstractmethod
    def create(self, parent_id: str, child_name: str, config: OrganizationConfig) -> Folder:
        """Create a new folder using this technique."""

    def _lookup_failed(self, error: Exception) -> RemoteLookupFailed:
        return RemoteLookupFailed(self.name.value, str(error))

    def _creation_failed(self, error: requests.RequestException) -> RemoteCreationFailed:
        response = getattr(error, "response", None)
        status_code = getattr(response, "status_code", None)
        message = getattr(response, "text", None) or str(error)
        return RemoteCreationFailed(self.name.value, status_code, message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name.value!r}, priority={self.priority})"


class NativeNestedStrategy(FolderStrategy):
    """True sub-folders via ``/me/projects/{parent}/folders``."""

    name = StrategyName.NATIVE_NESTED

    def can_create(self, config: OrganizationConfig) -> bool:
        if not config.parent_folder_id:
            logger.debug("No parent folder configured; nested folders not testable")
            return False

        safe_parent_id = quote(config.parent_folder_id, safe="")
        try:
            status = self.client.probe(f"/me/projects/{safe_parent_id}/folders")
        except requests.RequestException as e:
            logger.debug(f"Nested folder probe failed: {e}")
            return False
        return status != 404

    def find_existing(
        self, parent_id: str, child_name: str, config: OrganizationConfig
    ) -> Optional[Folder]:
        try:
            children = self.client.list_project_folders(parent_id)
        except requests.RequestException as e:
            raise self._lookup_failed(e) from e
        return find_by_names(children, [child_name])

    def create(self, parent_id: str, child_name: str, config: OrganizationConfig) -> Folder:
        try:
            return self.client.create_project_folder(
                parent_id,
                child_name,
                description=f"Nested folder created by {CREATED_BY}",
            )
        except requests.RequestException as e:
            raise self._creation_failed(e) from e


class VirtualPathStrategy(FolderStrategy):
    """Flat folders whose name encodes the path, e.g. ``Parent/Child``.

    Lookup falls back to a bare ``Child`` folder: earlier runs created flat
    folders before virtual paths were adopted, and those are reused.
    """

    name = StrategyName.VIRTUAL_PATH

    @staticmethod
    def virtual_name(child_name: str, config: OrganizationConfig) -> str:
        separator = config.naming_convention.path_separator
        return f"{config.display_parent_name}{separator}{child_name}"

    def can_create(self, config: OrganizationConfig) -> bool:
        return True

    def find_existing(
        self, parent_id: str, child_name: str, config: OrganizationConfig
    ) -> Optional[Folder]:
        virtual_name = self.virtual_name(child_name, config)
        try:
            folders = self.client.list_folders()
        except requests.RequestException as e:
            raise self._lookup_failed(e) from e

        existing = find_by_names(folders, [virtual_name])
        if existing:
            logger.debug(f"Found existing virtual path folder: {existing.name}")
            return existing

        existing = find_by_names(folders, [child_name])
        if existing:
            logger.info(f"Found existing legacy folder: {existing.name}, will reuse it")
        return existing

    def create(self, parent_id: str, child_name: str, config: OrganizationConfig) -> Folder:
        virtual_name = self.virtual_name(child_name, config)
        try:
            return self.client.create_folder(
                virtual_name,
                description=(
                    f"Virtual nested folder: {config.display_parent_name} > {child_name}"
                ),
            )
        except requests.RequestException as e:
            raise self._creation_failed(e) from e


class EnhancedFlatStrategy(FolderStrategy):
    """Flat folders with a visual marker, e.g. ``📁 SSR • Child``.

    Lookup order: current enhanced name, each legacy pattern, bare name.
    """

    name = StrategyName.ENHANCED_FLAT

    @staticmethod
    def candidate_names(child_name: str, config: OrganizationConfig) -> list[str]:
        naming = config.naming_convention
        return _unique(
            [naming.enhanced_name(child_name), *naming.legacy_names(child_name), child_name]
        )

    def can_create(self, config: OrganizationConfig) -> bool:
        return True

    def find_existing(
        self, parent_id: str, child_name: str, config: OrganizationConfig
    ) -> Optional[Folder]:
        try:
            folders = self.client.list_folders()
        except requests.RequestException as e:
            raise self._lookup_failed(e) from e
        return find_by_names(folders, self.candidate_names(child_name, config))

    def create(self, parent_id: str, child_name: str, config: OrganizationConfig) -> Folder:
        enhanced_name = config.naming_convention.enhanced_name(child_name)
        try:
            return self.client.create_folder(
                enhanced_name,
                description=(
                    f"Enhanced folder for {child_name} • Auto-organized by {CREATED_BY}"
                ),
            )
        except requests.RequestException as e:
            raise self._creation_failed(e) from e


class ShowcaseStrategy(FolderStrategy):
    """Showcases (albums) standing in for folders."""

    name = StrategyName.SHOWCASE

    def can_create(self, config: OrganizationConfig) -> bool:
        try:
            status = self.client.probe("/me/albums")
        except requests.RequestException as e:
            logger.debug(f"Showcase probe failed: {e}")
            return False
        return 200 <= status < 300

    def find_existing(
        self, parent_id: str, child_name: str, config: OrganizationConfig
    ) -> Optional[Folder]:
        try:
            albums = self.client.list_albums()
        except requests.RequestException as e:
            raise self._lookup_failed(e) from e

        for album in albums:
            if album.get("name") == child_name:
                return Folder.from_album(album)
        return None

    def create(self, parent_id: str, child_name: str, config: OrganizationConfig) -> Folder:
        try:
            album = self.client.create_album(
                child_name, description=f"Showcase for {child_name} videos"
            )
        except requests.RequestException as e:
            raise self._creation_failed(e) from e
        return Folder.from_album(album)


STRATEGY_CLASSES: dict[StrategyName, type[FolderStrategy]] = {
    StrategyName.NATIVE_NESTED: NativeNestedStrategy,
    StrategyName.VIRTUAL_PATH: VirtualPathStrategy,
    StrategyName.ENHANCED_FLAT: EnhancedFlatStrategy,
    StrategyName.SHOWCASE: ShowcaseStrategy,
}


def build_strategies(
    client: VimeoClient, names: Optional[Iterable[StrategyName]] = None
) -> list[FolderStrategy]:
    """Instantiate strategies sorted by priority.

    Args:
        client: Vimeo client shared by all strategies.
        names: Strategies to build (all when None).

    Returns:
        list[FolderStrategy]: Strategies, lowest priority value first.
    """
    selected = list(names) if names is not None else list(StrategyName)
    strategies = [STRATEGY_CLASSES[name](client) for name in selected]
    return sorted(strategies, key=lambda s: s.priority)
