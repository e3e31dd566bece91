"""
Tests for the folder_manager module.
"""

import threading
import time

import pytest
import requests
from unittest.mock import MagicMock

from src.vimeo_organizer.config import OrganizationConfig, OrganizationPattern, StrategyName
from src.vimeo_organizer.exceptions import AllStrategiesExhausted
from src.vimeo_organizer.folder_manager import VimeoFolderManager
from src.vimeo_organizer.models import Folder
from src.vimeo_organizer.strategies import build_strategies

PARENT_ID = "26555277"
NESTED_ENDPOINT = f"/me/projects/{PARENT_ID}/folders"


def _folder(folder_id: str, name: str) -> Folder:
    return Folder(uri=f"/users/1/projects/{folder_id}", name=name)


def _http_error(status: int) -> requests.HTTPError:
    return requests.HTTPError(response=MagicMock(status_code=status, text="error"))


def _probe_statuses(nested: int = 404, albums: int = 200):
    statuses = {NESTED_ENDPOINT: nested, "/me/albums": albums}
    return lambda endpoint: statuses[endpoint]


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def config():
    """Sparky-style organization config with all strategies enabled."""
    return OrganizationConfig(
        access_token="token",
        parent_folder_id=PARENT_ID,
        parent_folder_name="Sparky Screen Recordings",
    )


@pytest.fixture
def mock_client():
    """Mock Vimeo client for an empty account without nested folders."""
    client = MagicMock()
    client.probe.side_effect = _probe_statuses()
    client.list_folders.return_value = []
    client.list_project_folders.return_value = []
    client.list_albums.return_value = []
    client.create_folder.side_effect = lambda name, description=None: _folder("900", name)
    return client


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def manager(config, mock_client, clock):
    return VimeoFolderManager(config, client=mock_client, clock=clock)


class TestCreateOrganizedFolder:
    """Tests for resolve-or-create."""

    def test_empty_account_creates_virtual_path_folder(self, manager, mock_client):
        result = manager.create_organized_folder(PARENT_ID, "Jordan Lee")

        assert result.strategy == "virtual-path"
        assert result.was_existing is False
        assert result.folder.name == "Sparky Screen Recordings/Jordan Lee"
        mock_client.create_folder.assert_called_once()
        mock_client.create_project_folder.assert_not_called()

    def test_repeat_call_served_from_cache(self, manager, mock_client):
        first = manager.create_organized_folder(PARENT_ID, "Jordan Lee")
        mock_client.reset_mock()

        second = manager.create_organized_folder(PARENT_ID, "Jordan Lee")

        assert second.folder.id == first.folder.id
        assert second.strategy == "cache"
        assert second.was_existing is True
        assert mock_client.mock_calls == []

    def test_skip_cache_finds_existing(self, manager, mock_client):
        first = manager.create_organized_folder(PARENT_ID, "Jordan Lee")
        mock_client.list_folders.return_value = [first.folder]

        second = manager.create_organized_folder(PARENT_ID, "Jordan Lee", skip_cache=True)

        assert second.folder.id == first.folder.id
        assert second.strategy == "virtual-path"
        assert second.was_existing is True
        assert mock_client.create_folder.call_count == 1

    def test_cache_expires_after_ttl(self, manager, mock_client, clock):
        first = manager.create_organized_folder(PARENT_ID, "Jordan Lee")
        mock_client.list_folders.return_value = [first.folder]

        clock.now += 301
        second = manager.create_organized_folder(PARENT_ID, "Jordan Lee")

        assert second.strategy == "virtual-path"
        assert second.was_existing is True

    def test_legacy_flat_folder_is_reused(self, manager, mock_client):
        mock_client.list_folders.return_value = [_folder("42", "Jordan Lee")]

        result = manager.create_organized_folder(PARENT_ID, "Jordan Lee")

        assert result.folder.id == "42"
        assert result.strategy == "virtual-path"
        assert result.was_existing is True
        mock_client.create_folder.assert_not_called()

    def test_nested_folders_used_when_available(self, manager, mock_client):
        mock_client.probe.side_effect = _probe_statuses(nested=200)
        mock_client.create_project_folder.return_value = _folder("7", "Jordan Lee")

        result = manager.create_organized_folder(PARENT_ID, "Jordan Lee")

        assert result.strategy == "native-nested"
        assert result.was_existing is False
        mock_client.create_folder.assert_not_called()

    def test_non_viable_top_strategy_never_reported(self, manager):
        result = manager.create_organized_folder(PARENT_ID, "Jordan Lee")

        assert result.strategy != "native-nested"

    def test_creation_failure_falls_through_to_enhanced_flat(self, manager, mock_client):
        mock_client.create_folder.side_effect = [
            _http_error(500),
            _folder("901", "📁 SSR • Jordan Lee"),
        ]

        result = manager.create_organized_folder(PARENT_ID, "Jordan Lee")

        assert result.strategy == "enhanced-flat"
        assert result.folder.name == "📁 SSR • Jordan Lee"
        assert mock_client.create_folder.call_args_list[1].args[0] == "📁 SSR • Jordan Lee"
        assert manager.get_strategy_stats()["virtual-path"].viable is False

    def test_failed_strategy_not_retried_for_other_names(self, manager, mock_client):
        mock_client.create_folder.side_effect = [
            _http_error(500),
            _folder("901", "📁 SSR • Jordan Lee"),
            _folder("902", "📁 SSR • Alex Kim"),
        ]
        manager.create_organized_folder(PARENT_ID, "Jordan Lee")

        result = manager.create_organized_folder(PARENT_ID, "Alex Kim")

        assert result.strategy == "enhanced-flat"
        created_names = [c.args[0] for c in mock_client.create_folder.call_args_list]
        assert "Sparky Screen Recordings/Alex Kim" not in created_names

    def test_viability_probed_once_per_session(self, manager, mock_client):
        manager.create_organized_folder(PARENT_ID, "Jordan Lee")
        manager.create_organized_folder(PARENT_ID, "Alex Kim")

        assert mock_client.probe.call_count == 1

    def test_clear_cache_reprobes(self, manager, mock_client):
        manager.create_organized_folder(PARENT_ID, "Jordan Lee")
        manager.clear_cache()

        manager.create_organized_folder(PARENT_ID, "Jordan Lee")

        assert mock_client.probe.call_count == 2

    def test_clear_cache_reprobes_showcase(self, manager, mock_client):
        mock_client.create_album.return_value = {"uri": "/users/1/albums/5", "name": "Jordan Lee"}
        manager.create_organized_folder(PARENT_ID, "Jordan Lee", force_strategy="showcase")
        manager.create_organized_folder(PARENT_ID, "Alex Kim", force_strategy="showcase")
        manager.clear_cache()

        manager.create_organized_folder(PARENT_ID, "Jordan Lee", force_strategy="showcase")

        album_probes = [c for c in mock_client.probe.call_args_list if c.args == ("/me/albums",)]
        assert len(album_probes) == 2

    def test_clear_cache_restores_failed_strategy(self, manager, mock_client):
        mock_client.create_folder.side_effect = [
            _http_error(500),
            _folder("901", "📁 SSR • Jordan Lee"),
            _folder("902", "Sparky Screen Recordings/Alex Kim"),
        ]
        manager.create_organized_folder(PARENT_ID, "Jordan Lee")
        manager.clear_cache()

        result = manager.create_organized_folder(PARENT_ID, "Alex Kim")

        assert result.strategy == "virtual-path"

    def test_lookup_failure_is_not_fatal(self, manager, mock_client):
        mock_client.list_folders.side_effect = requests.ConnectionError("down")

        result = manager.create_organized_folder(PARENT_ID, "Jordan Lee")

        assert result.strategy == "virtual-path"
        assert result.was_existing is False
        assert manager.get_strategy_stats()["virtual-path"].viable is True

    def test_all_strategies_exhausted(self, manager, mock_client):
        mock_client.probe.side_effect = _probe_statuses(nested=404, albums=403)
        mock_client.create_folder.side_effect = _http_error(500)

        with pytest.raises(AllStrategiesExhausted) as excinfo:
            manager.create_organized_folder(PARENT_ID, "Jordan Lee")

        error = excinfo.value
        assert error.folder_name == "Jordan Lee"
        assert error.parent_folder_id == PARENT_ID
        assert error.attempts["native-nested"] == "not viable"
        assert error.attempts["showcase"] == "not viable"
        assert "virtual-path" in error.attempts
        assert manager.cache.get_folder(PARENT_ID, "Jordan Lee") is None

    def test_failed_creation_not_cached(self, manager, mock_client):
        mock_client.create_folder.side_effect = _http_error(500)

        with pytest.raises(AllStrategiesExhausted):
            manager.create_organized_folder(PARENT_ID, "Jordan Lee", force_strategy="virtual-path")

        assert len(manager.cache.folders) == 0


class TestStrategySelection:
    """Tests for strategy pinning and configured strategy sets."""

    def test_force_strategy_tries_only_that_strategy(self, manager, mock_client):
        mock_client.create_album.return_value = {"uri": "/users/1/albums/5", "name": "Jordan Lee"}

        result = manager.create_organized_folder(
            PARENT_ID, "Jordan Lee", force_strategy="showcase"
        )

        assert result.strategy == "showcase"
        assert result.folder.id == "5"
        mock_client.probe.assert_called_once_with("/me/albums")
        mock_client.create_folder.assert_not_called()

    def test_force_strategy_accepts_alias(self, manager, mock_client):
        with pytest.raises(AllStrategiesExhausted):
            manager.create_organized_folder(PARENT_ID, "Jordan Lee", force_strategy="nested")

        mock_client.probe.assert_called_once_with(NESTED_ENDPOINT)

    def test_force_unknown_strategy(self, manager):
        with pytest.raises(ValueError):
            manager.create_organized_folder(PARENT_ID, "Jordan Lee", force_strategy="bogus")

    def test_fallbacks_do_not_disable_showcase(self, mock_client):
        config = OrganizationConfig(
            access_token="token",
            parent_folder_id=PARENT_ID,
            parent_folder_name="Sparky Screen Recordings",
            organization_pattern=OrganizationPattern.ENHANCED_FLAT,
            fallback_strategies=["virtual-path", "nested"],
        )
        mock_client.create_folder.side_effect = _http_error(500)
        mock_client.create_album.return_value = {"uri": "/users/1/albums/5", "name": "Jordan Lee"}
        manager = VimeoFolderManager(config, client=mock_client)

        result = manager.create_organized_folder(PARENT_ID, "Jordan Lee")

        assert [s.name.value for s in manager.strategies] == [
            "native-nested",
            "virtual-path",
            "enhanced-flat",
            "showcase",
        ]
        assert result.strategy == "showcase"
        assert result.organization_pattern == "enhanced-flat"

    def test_pinned_strategy_outside_configured_set_is_reported(self, config, mock_client):
        manager = VimeoFolderManager(
            config,
            client=mock_client,
            strategies=build_strategies(mock_client, [StrategyName.VIRTUAL_PATH]),
        )
        mock_client.create_album.return_value = {"uri": "/users/1/albums/5", "name": "Jordan Lee"}

        manager.create_organized_folder(PARENT_ID, "Jordan Lee", force_strategy="showcase")

        stats = manager.get_strategy_stats()
        assert stats["showcase"].viable is True
        assert stats["showcase"].last_tested is not None


class TestConcurrency:
    """Tests for per-key single-flight resolution."""

    def test_same_key_created_once(self, manager, mock_client):
        def slow_create(name, description=None):
            time.sleep(0.05)
            return _folder("900", name)

        mock_client.create_folder.side_effect = slow_create
        results = []

        def resolve():
            results.append(manager.create_organized_folder(PARENT_ID, "Jordan Lee"))

        threads = [threading.Thread(target=resolve) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert mock_client.create_folder.call_count == 1
        assert {r.folder.id for r in results} == {"900"}
        assert sum(1 for r in results if r.strategy == "cache") == 3
        assert manager._key_locks == {}


class TestAuxiliaryOperations:
    """Tests for search, hierarchy, stats and bulk organize."""

    def test_search_is_case_insensitive(self, manager, mock_client):
        mock_client.list_folders.return_value = [
            _folder("1", "Sparky Screen Recordings/Jordan Lee"),
            _folder("2", "📁 SSR • Jordan Lee"),
            _folder("3", "Alex Kim"),
        ]

        found = manager.search_folders("jordan")

        assert [f.id for f in found] == ["1", "2"]

    def test_search_failure_returns_empty(self, manager, mock_client):
        mock_client.list_folders.side_effect = _http_error(503)

        assert manager.search_folders("jordan") == []

    def test_hierarchy_is_single_element(self, manager, mock_client):
        mock_client.get_folder.return_value = _folder("42", "Jordan Lee")

        hierarchy = manager.get_folder_hierarchy("42")

        assert hierarchy.path == ["Jordan Lee"]
        assert hierarchy.complete is False

    def test_organize_existing_videos_unsupported(self, manager, mock_client):
        result = manager.organize_existing_videos({"Jordan*": "Jordan Lee"})

        assert (result.moved, result.errors, result.supported) == (0, 0, False)
        assert mock_client.mock_calls == []

    def test_stats_before_any_resolution(self, manager):
        stats = manager.get_strategy_stats()

        assert list(stats) == ["native-nested", "virtual-path", "enhanced-flat", "showcase"]
        assert all(s.viable is False and s.last_tested is None for s in stats.values())

    def test_stats_after_resolution(self, manager):
        manager.create_organized_folder(PARENT_ID, "Jordan Lee")

        stats = manager.get_strategy_stats()

        assert stats["native-nested"].viable is False
        assert stats["native-nested"].last_tested is not None
        assert stats["virtual-path"].viable is True
        assert stats["showcase"].last_tested is None

    def test_probe_strategies_tests_everything(self, manager, mock_client):
        stats = manager.probe_strategies()

        assert stats["showcase"].viable is True
        assert stats["native-nested"].viable is False
        assert mock_client.probe.call_count == 2

    def test_probe_strategies_keeps_runtime_failure(self, manager, mock_client):
        mock_client.create_folder.side_effect = [
            _http_error(500),
            _folder("901", "📁 SSR • Jordan Lee"),
        ]
        manager.create_organized_folder(PARENT_ID, "Jordan Lee")
        assert manager.get_strategy_stats()["virtual-path"].viable is False

        stats = manager.probe_strategies()

        assert stats["virtual-path"].viable is False
        assert stats["showcase"].viable is True
        assert mock_client.probe.call_count == 2
