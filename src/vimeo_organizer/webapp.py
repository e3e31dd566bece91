"""FastAPI JSON API for the Vimeo Folder Organizer.

Objective:
    Expose the folder manager to the rest of the application (upload
    pipeline, admin screens) over HTTP. Business logic stays in
    :mod:`src.vimeo_organizer.folder_manager`; this module only parses
    requests and renders responses.

High-level call tree:
    - :func:`create_app`:
        - ``GET /health`` -> :func:`health`
        - ``POST /api/folders`` -> :func:`resolve_folder`
        - ``GET /api/folders/search`` -> :func:`search_folders`
        - ``GET /api/folders/{folder_id}/hierarchy`` -> :func:`folder_hierarchy`
        - ``PUT /api/folders/{folder_id}/videos/{video_id}`` -> :func:`add_video`
        - ``GET /api/strategies`` -> :func:`strategy_stats`
        - ``POST /api/cache/clear`` -> :func:`clear_cache`
    - :func:`get_folder_manager`:
        - returns the process-wide
          :class:`src.vimeo_organizer.folder_manager.VimeoFolderManager`.

Operational notes:
    - The manager is shared across requests so its caches are effective.
    - For tests, :func:`get_folder_manager` is overridden via
      ``app.dependency_overrides``.
    - Run with ``python -m uvicorn src.vimeo_organizer.webapp:app``.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Optional

import requests
from fastapi import Depends, FastAPI, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .exceptions import AllStrategiesExhausted
from .folder_manager import VimeoFolderManager, create_folder_manager


class ResolveFolderRequest(BaseModel):
    """Body of ``POST /api/folders``."""

    parent_folder_id: str
    folder_name: str
    force_strategy: Optional[str] = None
    skip_cache: bool = False


@lru_cache(maxsize=1)
def get_folder_manager() -> VimeoFolderManager:
    """Return the shared :class:`VimeoFolderManager`.

    Production code builds it once from environment settings; tests can
    override this dependency with a stub object.

    Returns:
        VimeoFolderManager: The shared manager.
    """

    return create_folder_manager()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: FastAPI app.
    """

    app = FastAPI(title="Vimeo Folder Organizer")

    @app.get("/health")
    def health() -> dict[str, str]:
        """Health check endpoint. Performs no external calls."""

        return {"status": "ok"}

    @app.post("/api/folders")
    def resolve_folder(
        payload: ResolveFolderRequest,
        manager: VimeoFolderManager = Depends(get_folder_manager),
    ) -> Any:
        """Find or create an organized folder.

        Expected request body:
            ``{"parent_folder_id": "26555277", "folder_name": "Jordan Lee"}``

        Returns:
            Any: The resolution result, or a 502 payload when every strategy
            failed.
        """

        try:
            result = manager.create_organized_folder(
                payload.parent_folder_id,
                payload.folder_name,
                force_strategy=payload.force_strategy,
                skip_cache=payload.skip_cache,
            )
        except AllStrategiesExhausted as e:
            return JSONResponse(
                {
                    "error": "all_strategies_exhausted",
                    "folder_name": e.folder_name,
                    "parent_folder_id": e.parent_folder_id,
                    "attempts": e.attempts,
                    "message": str(e),
                },
                status_code=502,
            )
        except ValueError as e:
            return JSONResponse(
                {"error": "invalid_request", "message": str(e)}, status_code=400
            )

        return result.model_dump(mode="json")

    @app.get("/api/folders/search")
    def search_folders(
        term: str = Query(default=""),
        manager: VimeoFolderManager = Depends(get_folder_manager),
    ) -> dict[str, Any]:
        """Search folders by name (case-insensitive)."""

        folders = manager.search_folders(term)
        return {
            "folders": [f.model_dump(mode="json") for f in folders],
            "total": len(folders),
        }

    @app.get("/api/folders/{folder_id}/hierarchy")
    def folder_hierarchy(
        folder_id: str,
        manager: VimeoFolderManager = Depends(get_folder_manager),
    ) -> Any:
        """Return path information for a folder."""

        try:
            hierarchy = manager.get_folder_hierarchy(folder_id)
        except requests.HTTPError as e:
            status = getattr(getattr(e, "response", None), "status_code", None)
            return JSONResponse(
                {"error": "folder_unavailable", "message": str(e)},
                status_code=404 if status == 404 else 502,
            )
        return hierarchy.model_dump(mode="json")

    @app.put("/api/folders/{folder_id}/videos/{video_id}")
    def add_video(
        folder_id: str,
        video_id: str,
        manager: VimeoFolderManager = Depends(get_folder_manager),
    ) -> Any:
        """Place a video into a folder."""

        if not manager.add_video_to_folder(folder_id, video_id):
            return JSONResponse(
                {"error": "move_failed", "folder_id": folder_id, "video_id": video_id},
                status_code=502,
            )
        return {"folder_id": folder_id, "video_id": video_id, "success": True}

    @app.get("/api/strategies")
    def strategy_stats(
        manager: VimeoFolderManager = Depends(get_folder_manager),
    ) -> dict[str, Any]:
        """Return last known viability per strategy."""

        stats = manager.get_strategy_stats()
        return {name: item.model_dump(mode="json") for name, item in stats.items()}

    @app.post("/api/cache/clear")
    def clear_cache(
        manager: VimeoFolderManager = Depends(get_folder_manager),
    ) -> dict[str, str]:
        """Reset the folder and viability caches."""

        manager.clear_cache()
        return {"status": "cleared"}

    return app


app = create_app()
