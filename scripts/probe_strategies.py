"""Utility script to check which folder strategies work for this account.

Vimeo enables nested folders and showcases per account, without
documentation. Run this after changing plans or tokens to see which
strategies the organizer will actually use.

Usage:
    python scripts/probe_strategies.py
"""

import logging

from src.vimeo_organizer.config import get_settings
from src.vimeo_organizer.folder_manager import VimeoFolderManager

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main():
    """Probe every configured strategy and log the verdicts."""
    logger.info("Starting strategy probe")

    settings = get_settings()
    config = settings.organization_config()
    manager = VimeoFolderManager(config)

    logger.info(
        f"Parent folder: {config.parent_folder_name or '-'} ({config.parent_folder_id or '-'})"
    )
    logger.info(f"Preferred pattern: {config.organization_pattern.value}")

    stats = manager.probe_strategies()

    first_viable = None
    for strategy in manager.strategies:
        name = strategy.name.value
        verdict = "viable" if stats[name].viable else "NOT viable"
        logger.info(f"  [{strategy.priority}] {name}: {verdict}")
        if stats[name].viable and first_viable is None:
            first_viable = name

    logger.info("=" * 60)
    if first_viable:
        logger.info(f"New folders will be created with: {first_viable}")
    else:
        logger.error("No strategy is viable; folder resolution will fail")
    logger.info("=" * 60)


if __name__ == "__main__":
    main()
