"""Error taxonomy for folder organization.

Only :class:`AllStrategiesExhausted` ever reaches callers of
:class:`src.vimeo_organizer.folder_manager.VimeoFolderManager`; the other
errors are absorbed by the manager and turned into strategy fallthrough.
"""

from typing import Optional


class OrganizerError(Exception):
    """Base class for folder organization errors."""


class StrategyNonViable(OrganizerError):
    """A strategy cannot be used for the current account."""

    def __init__(self, strategy: str) -> None:
        self.strategy = strategy
        super().__init__(f"Strategy {strategy} is not viable")


class RemoteLookupFailed(OrganizerError):
    """Listing existing folders failed on the remote side."""

    def __init__(self, strategy: str, message: str) -> None:
        self.strategy = strategy
        self.message = message
        super().__init__(f"Lookup failed for strategy {strategy}: {message}")


class RemoteCreationFailed(OrganizerError):
    """Creating a folder failed on the remote side.

    Attributes:
        strategy: Strategy that attempted the creation.
        status_code: HTTP status, or None when no response was received.
        message: Response body or transport error text.
    """

    def __init__(
        self, strategy: str, status_code: Optional[int], message: str
    ) -> None:
        self.strategy = strategy
        self.status_code = status_code
        self.message = message
        status = status_code if status_code is not None else "no response"
        super().__init__(f"Failed to create folder with {strategy} ({status}): {message}")


class AllStrategiesExhausted(OrganizerError):
    """Every candidate strategy was non-viable or failed.

    Attributes:
        folder_name: Requested folder name.
        parent_folder_id: Requested parent folder id.
        attempts: Strategy name -> reason it was skipped or failed.
    """

    def __init__(
        self,
        folder_name: str,
        parent_folder_id: str,
        attempts: Optional[dict[str, str]] = None,
    ) -> None:
        self.folder_name = folder_name
        self.parent_folder_id = parent_folder_id
        self.attempts = dict(attempts or {})
        super().__init__(
            f'All folder organization strategies failed for "{folder_name}" '
            f"(parent {parent_folder_id})"
        )
