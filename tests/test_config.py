import pytest
from pydantic import ValidationError

from src.vimeo_organizer.config import (
    OrganizationConfig,
    OrganizationPattern,
    Settings,
    StrategyName,
    parse_strategy_name,
)


def _settings(**overrides) -> Settings:
    values = {"vimeo_access_token": "token", "_env_file": None}
    values.update(overrides)
    return Settings(**values)


def test_settings_build_default_organization_config() -> None:
    """Defaults reproduce the Sparky naming convention and 5 minute cache."""

    config = _settings().organization_config()

    assert config.access_token == "token"
    assert config.folder_cache_ttl == 300
    assert config.viability_cache_ttl is None
    assert config.naming_convention.enhanced_name("Jordan Lee") == "📁 SSR • Jordan Lee"
    assert config.naming_convention.legacy_names("Jordan Lee") == [
        "SSR - Jordan Lee",
        "📁 SSR • Jordan Lee",
    ]
    assert config.active_strategies() == list(StrategyName)


def test_settings_parse_comma_separated_fallbacks() -> None:
    settings = _settings(
        organization_pattern="enhanced-flat",
        fallback_strategies="virtual-path, nested",
        parent_folder_id="26555277",
        parent_folder_name="Sparky Screen Recordings",
        max_retries=5,
        retry_delay=2,
    )

    config = settings.organization_config()

    assert config.fallback_strategies == (
        StrategyName.VIRTUAL_PATH,
        StrategyName.NATIVE_NESTED,
    )
    assert config.active_strategies() == list(StrategyName)
    assert config.retry_options.max_retries == 5
    assert config.retry_options.retry_delay == 2


def test_unknown_fallback_strategy_rejected() -> None:
    with pytest.raises(ValidationError):
        _settings(fallback_strategies="virtual-path,teleport").organization_config()


def test_settings_read_environment(monkeypatch) -> None:
    monkeypatch.setenv("VIMEO_ACCESS_TOKEN", "env-token")
    monkeypatch.setenv("NAMING_USE_EMOJI", "false")
    monkeypatch.setenv("FOLDER_CACHE_TTL", "60")

    config = Settings(_env_file=None).organization_config()

    assert config.access_token == "env-token"
    assert config.folder_cache_ttl == 60
    assert config.naming_convention.enhanced_name("Jordan Lee") == "SSR • Jordan Lee"


def test_organization_config_is_read_only() -> None:
    config = OrganizationConfig(access_token="token")

    with pytest.raises(ValidationError):
        config.parent_folder_id = "other"


@pytest.mark.parametrize(
    "value, expected",
    [
        ("native-nested", StrategyName.NATIVE_NESTED),
        ("nested", StrategyName.NATIVE_NESTED),
        ("FLAT", StrategyName.ENHANCED_FLAT),
        (" showcase ", StrategyName.SHOWCASE),
    ],
)
def test_parse_strategy_name(value, expected) -> None:
    assert parse_strategy_name(value) == expected


def test_pattern_maps_to_strategy() -> None:
    assert OrganizationPattern.FLAT.strategy == StrategyName.ENHANCED_FLAT
    assert OrganizationPattern.NESTED.strategy == StrategyName.NATIVE_NESTED


def test_legacy_patterns_read_as_json_list(monkeypatch) -> None:
    """Patterns containing commas survive environment parsing."""

    monkeypatch.setenv("VIMEO_ACCESS_TOKEN", "env-token")
    monkeypatch.setenv("LEGACY_NAMING_PATTERNS", '["SSR, {name}", "Recordings - {name}"]')

    config = Settings(_env_file=None).organization_config()

    assert config.naming_convention.legacy_names("Jordan Lee") == [
        "SSR, Jordan Lee",
        "Recordings - Jordan Lee",
    ]
