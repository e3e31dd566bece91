"""Vimeo API client for folder operations.

Objective:
    Provide a thin wrapper around the Vimeo endpoints used by this project.
    This module centralizes HTTP request construction, authentication and
    version headers, retries, and Pydantic validation of responses.

Responsibilities:
    - Issue authenticated HTTP requests to Vimeo (via :class:`requests`).
    - List and create folders, nested project folders and showcases.
    - Probe endpoints for capability detection.
    - Add videos to folders.

High-level call tree:
    - Public API:
        - :meth:`VimeoClient.list_folders` -> returns :class:`src.vimeo_organizer.models.Folder`
        - :meth:`VimeoClient.list_project_folders`
        - :meth:`VimeoClient.create_folder` / :meth:`VimeoClient.create_project_folder`
        - :meth:`VimeoClient.list_albums` / :meth:`VimeoClient.create_album`
        - :meth:`VimeoClient.get_folder`
        - :meth:`VimeoClient.probe`
        - :meth:`VimeoClient.add_video_to_folder`
    - Internal helpers:
        - :meth:`VimeoClient._make_request` (auth, retries, error handling)
        - :meth:`VimeoClient._paginate` (follows ``paging.next``)

Vimeo endpoints used:
    - ``GET /me/folders`` / ``POST /me/folders``
    - ``GET /me/projects/{id}/folders`` / ``POST /me/projects/{id}/folders``
    - ``GET /me/albums`` / ``POST /me/albums``
    - ``GET /me/folders/{id}``
    - ``PUT /me/folders/{id}/videos/{video_id}``

Error handling:
    - HTTP errors are logged and raised from :meth:`_make_request`.
    - Idempotent requests are retried on connection errors, timeouts, 429 and
      5xx responses. POST is never retried.
"""

import logging
import time
from typing import AbstractSet, Any, Optional
from urllib.parse import quote

import requests

from .config import OrganizationConfig
from .models import Folder

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})
RETRYABLE_METHODS = frozenset({"GET", "PUT", "DELETE"})
FOLDER_FIELDS = "uri,name,created_time,modified_time,resource_key,description"


class VimeoClient:
    """
    Client for interacting with the Vimeo API for folder operations.

    This class is intentionally state-light: it only holds the
    configuration it builds URLs and headers from.

    Attributes:
        config: Organization configuration (token, base URL, retries).
    """

    def __init__(self, config: OrganizationConfig) -> None:
        """
        Initialize Vimeo client.

        Args:
            config: Organization configuration.
        """
        self.config = config

    def get_auth_headers(self) -> dict[str, str]:
        """Return the bearer and API version headers."""
        return {
            "Authorization": f"Bearer {self.config.access_token}",
            "Content-Type": "application/json",
            "Accept": f"application/vnd.vimeo.*+json;version={self.config.api_version}",
        }

    def _send(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        json_data: Optional[dict] = None,
    ) -> requests.Response:
        """Send one request, retrying idempotent methods on transient failures.

        Args:
            method: HTTP method.
            endpoint: API path (may already carry a query string).
            params: Query parameters.
            json_data: JSON body data.

        Returns:
            requests.Response: The last response received.

        Raises:
            requests.RequestException: If no response could be obtained.
        """
        url = f"{self.config.api_base_url}{endpoint}"
        retry = self.config.retry_options
        attempts = 1 + (retry.max_retries if method.upper() in RETRYABLE_METHODS else 0)

        for attempt in range(1, attempts + 1):
            try:
                response = requests.request(
                    method=method,
                    url=url,
                    headers=self.get_auth_headers(),
                    params=params,
                    json=json_data,
                    timeout=self.config.request_timeout,
                )
            except (requests.ConnectionError, requests.Timeout) as e:
                if attempt >= attempts:
                    raise
                logger.debug(
                    "Vimeo request failed (%s %s, attempt %s/%s): %s",
                    method,
                    endpoint,
                    attempt,
                    attempts,
                    e,
                )
                time.sleep(retry.retry_delay)
                continue

            if response.status_code in RETRYABLE_STATUSES and attempt < attempts:
                logger.debug(
                    "Vimeo returned %s for %s %s; retrying (attempt %s/%s)",
                    response.status_code,
                    method,
                    endpoint,
                    attempt,
                    attempts,
                )
                time.sleep(retry.retry_delay)
                continue

            return response

        raise RuntimeError("unreachable")  # pragma: no cover

    def _make_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        json_data: Optional[dict] = None,
        suppress_statuses: Optional[AbstractSet[int]] = None,
    ) -> dict:
        """Make an authenticated request to Vimeo.

        This helper:
        - Adds auth and version headers.
        - Applies the configured timeout and retries.
        - Raises for non-2xx responses.
        - Returns decoded JSON or ``{}`` for 204 responses.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE).
            endpoint: API endpoint path.
            params: Query parameters.
            json_data: JSON body data.
            suppress_statuses: Non-2xx statuses logged at debug level only.

        Returns:
            dict: Response JSON data.

        Raises:
            requests.HTTPError: If request fails.
        """
        response = self._send(method, endpoint, params=params, json_data=json_data)

        if not response.ok:
            suppress = suppress_statuses and response.status_code in suppress_statuses
            if suppress:
                logger.debug(
                    "Vimeo API expected non-2xx: %s - %s",
                    response.status_code,
                    response.text,
                )
            else:
                logger.error(
                    f"Vimeo API error: {response.status_code} - {response.text}"
                )
            response.raise_for_status()

        if response.status_code == 204 or not response.content:
            return {}

        return response.json()

    def _paginate(self, endpoint: str, params: Optional[dict] = None) -> list[dict]:
        """Collect ``data`` items across pages.

        Follows ``paging.next`` until it is empty or ``max_pages`` is reached.

        Args:
            endpoint: First page endpoint.
            params: Query parameters for the first page.

        Returns:
            list[dict]: Raw items from every page.
        """
        items: list[dict] = []
        next_endpoint: Optional[str] = endpoint
        next_params = params
        pages = 0

        while next_endpoint and pages < self.config.max_pages:
            response = self._make_request("GET", next_endpoint, params=next_params)
            items.extend(response.get("data") or [])
            pages += 1
            next_endpoint = (response.get("paging") or {}).get("next")
            # The next link already carries its own query string.
            next_params = None

        if next_endpoint:
            logger.warning(
                "Stopped paging %s after %s pages; results may be incomplete",
                endpoint,
                pages,
            )
        return items

    def _to_folders(self, items: list[dict]) -> list[Folder]:
        folders = []
        for item in items:
            try:
                folders.append(Folder.model_validate(item))
            except Exception as e:
                logger.warning(f"Failed to parse folder: {e}")
                continue
        return folders

    def list_folders(self) -> list[Folder]:
        """List all top-level folders of the account.

        Returns:
            list[Folder]: Folders across all pages.
        """
        params = {"per_page": 100, "fields": FOLDER_FIELDS}
        folders = self._to_folders(self._paginate("/me/folders", params=params))
        logger.debug(f"Found {len(folders)} folders")
        return folders

    def list_project_folders(self, parent_folder_id: str) -> list[Folder]:
        """List direct sub-folders of a project through the nested endpoint.

        Args:
            parent_folder_id: Parent project id.

        Returns:
            list[Folder]: Direct child folders.
        """
        safe_parent_id = quote(parent_folder_id, safe="")
        endpoint = f"/me/projects/{safe_parent_id}/folders"
        params = {"per_page": 100, "fields": FOLDER_FIELDS}
        return self._to_folders(self._paginate(endpoint, params=params))

    def create_folder(self, name: str, description: Optional[str] = None) -> Folder:
        """Create a top-level folder.

        Args:
            name: Folder display name.
            description: Optional description.

        Returns:
            Folder: Created folder.

        Raises:
            requests.HTTPError: If Vimeo rejects the request.
        """
        json_data: dict[str, Any] = {"name": name}
        if description:
            json_data["description"] = description

        response = self._make_request("POST", "/me/folders", json_data=json_data)
        folder = Folder.model_validate(response)
        logger.debug(f"Created folder: {name}")
        return folder

    def create_project_folder(
        self, parent_folder_id: str, name: str, description: Optional[str] = None
    ) -> Folder:
        """Create a folder nested inside a project.

        Args:
            parent_folder_id: Parent project id.
            name: Folder display name.
            description: Optional description.

        Returns:
            Folder: Created folder.

        Raises:
            requests.HTTPError: If Vimeo rejects the request.
        """
        safe_parent_id = quote(parent_folder_id, safe="")
        endpoint = f"/me/projects/{safe_parent_id}/folders"
        json_data: dict[str, Any] = {"name": name}
        if description:
            json_data["description"] = description

        response = self._make_request("POST", endpoint, json_data=json_data)
        folder = Folder.model_validate(response)
        logger.debug(f"Created nested folder: {name} under {parent_folder_id}")
        return folder

    def list_albums(self) -> list[dict]:
        """List showcases (albums) as raw payloads."""
        return self._paginate("/me/albums", params={"per_page": 100})

    def create_album(self, name: str, description: Optional[str] = None) -> dict:
        """Create a showcase (album).

        Args:
            name: Showcase name.
            description: Optional description.

        Returns:
            dict: Raw album payload.

        Raises:
            requests.HTTPError: If Vimeo rejects the request.
        """
        json_data: dict[str, Any] = {
            "name": name,
            "sort": "added_last",
            "theme": "standard",
        }
        if description:
            json_data["description"] = description
        return self._make_request("POST", "/me/albums", json_data=json_data)

    def get_folder(self, folder_id: str) -> Folder:
        """Fetch a single folder by id.

        Raises:
            requests.HTTPError: If the folder cannot be fetched.
        """
        safe_folder_id = quote(folder_id, safe="")
        response = self._make_request(
            "GET", f"/me/folders/{safe_folder_id}", params={"fields": FOLDER_FIELDS}
        )
        return Folder.model_validate(response)

    def probe(self, endpoint: str) -> int:
        """Issue a GET and return its status code without raising on non-2xx.

        Args:
            endpoint: API path to probe.

        Returns:
            int: HTTP status code.

        Raises:
            requests.RequestException: If no response could be obtained.
        """
        response = self._send("GET", endpoint, params={"per_page": 1})
        logger.debug("Probe %s -> %s", endpoint, response.status_code)
        return response.status_code

    def add_video_to_folder(self, folder_id: str, video_id: str) -> bool:
        """Place a video into a folder.

        Failures are logged and returned as ``False`` since a failed move is a
        per-video error rather than a fatal one.

        Args:
            folder_id: Destination folder id.
            video_id: Video id.

        Returns:
            bool: True if successful.
        """
        safe_folder_id = quote(folder_id, safe="")
        safe_video_id = quote(video_id, safe="")
        endpoint = f"/me/folders/{safe_folder_id}/videos/{safe_video_id}"

        try:
            self._make_request("PUT", endpoint)
            logger.debug(f"Added video {video_id} to folder {folder_id}")
            return True
        except requests.RequestException as e:
            logger.error(f"Failed to add video {video_id} to folder {folder_id}: {e}")
            return False
