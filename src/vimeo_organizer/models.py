"""Pydantic data models used across the application.

Objective:
    Centralize the strongly-typed data structures representing:
    - Folder-like resources returned by the Vimeo API (folders, projects,
      showcases adapted into the same shape)
    - Resolution results returned by the folder manager
    - Introspection and auxiliary operation results

Design notes:
    - Field names match the Vimeo API payloads (``created_time``,
      ``resource_key``), so responses validate directly.
    - Showcase (album) payloads are adapted into :class:`Folder` by
      :meth:`Folder.from_album`; callers never see the album type.

Call tree usage:
    - :class:`src.vimeo_organizer.vimeo_client.VimeoClient`:
        - validates responses into :class:`Folder`
    - :class:`src.vimeo_organizer.folder_manager.VimeoFolderManager`:
        - returns :class:`ResolutionResult`, :class:`StrategyStats`,
          :class:`FolderHierarchy`, :class:`BulkOrganizeResult`
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class Folder(BaseModel):
    """
    Vimeo folder (project) or an adapted showcase.

    Attributes:
        uri: Opaque resource reference, e.g. ``/users/1/projects/26555277``.
        name: Display name.
        created_time: Creation timestamp.
        modified_time: Last modification timestamp.
        resource_key: Opaque resource key.
        description: Optional free-text description.
    """

    uri: str
    name: str
    created_time: Optional[datetime] = None
    modified_time: Optional[datetime] = None
    resource_key: str = ""
    description: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @property
    def id(self) -> str:
        """Return the trailing id segment of :attr:`uri`."""
        return self.uri.rstrip("/").rsplit("/", 1)[-1]

    @classmethod
    def from_album(cls, payload: dict[str, Any]) -> "Folder":
        """Adapt a showcase (album) payload into a folder.

        Only the shared fields are kept so the album type never leaks out.

        Args:
            payload: Album JSON returned by ``/me/albums``.

        Returns:
            Folder: Folder-shaped view of the album.
        """
        return cls.model_validate(
            {
                "uri": payload.get("uri"),
                "name": payload.get("name"),
                "created_time": payload.get("created_time"),
                "modified_time": payload.get("modified_time"),
                "resource_key": payload.get("resource_key") or "",
                "description": payload.get("description"),
            }
        )


class ResolutionResult(BaseModel):
    """
    Result of resolving (finding or creating) an organized folder.

    Attributes:
        folder: The resolved folder.
        strategy: Strategy name that produced it, or ``"cache"``.
        was_existing: True when found rather than newly created.
        created_at: When the resolution happened.
        organization_pattern: Configured preferred pattern.
    """

    folder: Folder
    strategy: str
    was_existing: bool
    created_at: datetime = Field(default_factory=utcnow)
    organization_pattern: Optional[str] = None


class StrategyStats(BaseModel):
    """Last known viability of a strategy.

    ``last_tested`` is None when the strategy has not been probed since the
    last cache reset.
    """

    viable: bool = False
    last_tested: Optional[datetime] = None


class FolderHierarchy(BaseModel):
    """Path information for a folder.

    Ancestor traversal is not implemented: ``path`` holds only the folder's own
    name and ``complete`` is always False.
    """

    folder: Folder
    path: list[str]
    complete: bool = False


class BulkOrganizeResult(BaseModel):
    """Outcome of a bulk reorganization request."""

    moved: int = 0
    errors: int = 0
    supported: bool = False
