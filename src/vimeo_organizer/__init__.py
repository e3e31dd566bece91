"""Vimeo Folder Organizer package.

Objective:
    Find or create organized folders in Vimeo for screen recordings, even
    though Vimeo does not reliably support nested folders:
    - Try several organization strategies in priority order (native nesting,
      virtual paths, enhanced flat names, showcases).
    - Reuse folders created by earlier naming schemes.
    - Cache resolved folders and strategy viability.

Key modules:
    - :mod:`src.vimeo_organizer.config`:
        Settings, organization patterns, naming conventions.
    - :mod:`src.vimeo_organizer.vimeo_client`:
        Vimeo API wrapper for folders, projects and showcases.
    - :mod:`src.vimeo_organizer.strategies`:
        The four folder strategies.
    - :mod:`src.vimeo_organizer.cache`:
        Folder and viability caches.
    - :mod:`src.vimeo_organizer.folder_manager`:
        Strategy fallback chain and auxiliary operations.
    - :mod:`src.vimeo_organizer.cli` / :mod:`src.vimeo_organizer.webapp`:
        User-facing entrypoints.
"""

__version__ = "0.1.0"
