"""Application configuration and settings.

Objective:
    Provide a single source of truth for runtime configuration used by the
    folder organizer (Vimeo credentials, parent folder, naming convention,
    strategy selection, retry and cache behavior).

Responsibilities:
    - Define the canonical set of organization patterns
      (:class:`OrganizationPattern`) and strategy names (:class:`StrategyName`).
    - Load environment-driven settings via :class:`Settings` (Pydantic
      BaseSettings).
    - Build the read-only :class:`OrganizationConfig` handed to
      :class:`src.vimeo_organizer.folder_manager.VimeoFolderManager`.

High-level call tree:
    - :func:`get_settings` -> returns :class:`Settings`
    - :meth:`Settings.organization_config` -> returns :class:`OrganizationConfig`
        - :attr:`Settings.fallback_strategy_list`
        - :attr:`Settings.legacy_pattern_list`
    - :meth:`OrganizationConfig.active_strategies`

Operational notes:
    - ``Settings`` loads from ``.env`` by default via ``pydantic-settings``.
    - Most modules accept an ``OrganizationConfig`` explicitly to enable
      testing; entrypoints fall back to :func:`get_settings`.
"""

from enum import Enum
from typing import Optional
import logging

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://api.vimeo.com"
DEFAULT_API_VERSION = "3.4"
DEFAULT_FOLDER_CACHE_TTL = 300.0
DEFAULT_PARENT_NAME = "Parent"
DEFAULT_LEGACY_PATTERNS = ("SSR - {name}", "📁 SSR • {name}")


class StrategyName(str, Enum):
    """Closed set of folder strategies, in priority order.

    The Enum values are the names reported in resolution results and stats.
    """

    NATIVE_NESTED = "native-nested"
    VIRTUAL_PATH = "virtual-path"
    ENHANCED_FLAT = "enhanced-flat"
    SHOWCASE = "showcase"

    @property
    def priority(self) -> int:
        """Return the fixed priority (lower runs first)."""
        return _STRATEGY_PRIORITY[self]


_STRATEGY_PRIORITY = {
    StrategyName.NATIVE_NESTED: 1,
    StrategyName.VIRTUAL_PATH: 2,
    StrategyName.ENHANCED_FLAT: 3,
    StrategyName.SHOWCASE: 4,
}


class OrganizationPattern(str, Enum):
    """Preferred organization pattern for a deployment."""

    NESTED = "nested"
    FLAT = "flat"
    VIRTUAL_PATH = "virtual-path"
    SHOWCASE = "showcase"
    ENHANCED_FLAT = "enhanced-flat"

    @property
    def strategy(self) -> StrategyName:
        """Return the strategy realizing this pattern."""
        return _PATTERN_STRATEGY[self]


_PATTERN_STRATEGY = {
    OrganizationPattern.NESTED: StrategyName.NATIVE_NESTED,
    OrganizationPattern.FLAT: StrategyName.ENHANCED_FLAT,
    OrganizationPattern.VIRTUAL_PATH: StrategyName.VIRTUAL_PATH,
    OrganizationPattern.SHOWCASE: StrategyName.SHOWCASE,
    OrganizationPattern.ENHANCED_FLAT: StrategyName.ENHANCED_FLAT,
}

# Names accepted in FALLBACK_STRATEGIES besides the canonical strategy names.
_STRATEGY_ALIASES = {
    "nested": StrategyName.NATIVE_NESTED,
    "nested-folders": StrategyName.NATIVE_NESTED,
    "flat": StrategyName.ENHANCED_FLAT,
}


def parse_strategy_name(value: str) -> StrategyName:
    """Resolve a strategy name or alias.

    Args:
        value: Canonical name (``virtual-path``) or alias (``nested``).

    Returns:
        StrategyName: The matching strategy.

    Raises:
        ValueError: If the name is unknown.
    """
    normalized = (value or "").strip().lower()
    if normalized in _STRATEGY_ALIASES:
        return _STRATEGY_ALIASES[normalized]
    try:
        return StrategyName(normalized)
    except ValueError:
        raise ValueError(f"Unknown folder strategy: {value!r}") from None


class NamingConvention(BaseModel):
    """How flat folder names encode their parent.

    Attributes:
        prefix: Text marker placed before the separator.
        separator: Separator between the marker and the child name.
        use_emoji: Whether to lead the marker with :attr:`emoji`.
        emoji: Emoji marker used when ``use_emoji`` is set.
        custom_pattern: Full pattern with a ``{name}`` placeholder; overrides
            prefix/separator when set.
        path_separator: Separator used by virtual-path names.
        legacy_patterns: Historical ``{name}`` patterns still recognized when
            looking for existing folders.
    """

    model_config = ConfigDict(frozen=True)

    prefix: str = "SSR"
    separator: str = " • "
    use_emoji: bool = True
    emoji: str = "📁"
    custom_pattern: Optional[str] = None
    path_separator: str = "/"
    legacy_patterns: tuple[str, ...] = DEFAULT_LEGACY_PATTERNS

    @field_validator("custom_pattern")
    @classmethod
    def _require_placeholder(cls, value: Optional[str]) -> Optional[str]:
        if value and "{name}" not in value:
            raise ValueError("custom_pattern must contain a {name} placeholder")
        return value or None

    @property
    def marker(self) -> str:
        """Return the leading marker (emoji plus prefix when enabled)."""
        if self.use_emoji and self.emoji:
            return f"{self.emoji} {self.prefix}".strip()
        return self.prefix

    def enhanced_name(self, child_name: str) -> str:
        """Build the current enhanced-flat name for a child folder."""
        if self.custom_pattern:
            return self.custom_pattern.replace("{name}", child_name)
        return f"{self.marker}{self.separator}{child_name}"

    def legacy_names(self, child_name: str) -> list[str]:
        """Expand :attr:`legacy_patterns` for a child folder."""
        return [pattern.replace("{name}", child_name) for pattern in self.legacy_patterns]


class RetryOptions(BaseModel):
    """Per-HTTP-call retry parameters."""

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(default=3, ge=0)
    retry_delay: float = Field(default=1.0, ge=0)


class OrganizationConfig(BaseModel):
    """Read-only configuration for one folder manager instance.

    Attributes:
        access_token: Vimeo bearer token.
        parent_folder_id: Top-level parent folder (project) id.
        parent_folder_name: Display name of the parent folder.
        organization_pattern: Preferred pattern.
        naming_convention: Flat naming rules.
        fallback_strategies: Operator-declared fallbacks, validated and logged
            but never used to disable a strategy.
        retry_options: Per-request retry parameters.
        folder_cache_ttl: Seconds a resolved folder stays cached.
        viability_cache_ttl: Seconds a viability verdict stays cached
            (None keeps it for the manager's lifetime).
    """

    model_config = ConfigDict(frozen=True)

    access_token: str
    parent_folder_id: Optional[str] = None
    parent_folder_name: Optional[str] = None
    organization_pattern: OrganizationPattern = OrganizationPattern.ENHANCED_FLAT
    naming_convention: NamingConvention = Field(default_factory=NamingConvention)
    fallback_strategies: tuple[StrategyName, ...] = ()
    retry_options: RetryOptions = Field(default_factory=RetryOptions)
    folder_cache_ttl: float = Field(default=DEFAULT_FOLDER_CACHE_TTL, gt=0)
    viability_cache_ttl: Optional[float] = Field(default=None, gt=0)
    api_base_url: str = DEFAULT_API_BASE_URL
    api_version: str = DEFAULT_API_VERSION
    request_timeout: float = Field(default=30.0, gt=0)
    max_pages: int = Field(default=20, ge=1)

    @field_validator("fallback_strategies", mode="before")
    @classmethod
    def _parse_fallbacks(cls, value):
        if value is None:
            return ()
        return tuple(
            v if isinstance(v, StrategyName) else parse_strategy_name(v) for v in value
        )

    @property
    def display_parent_name(self) -> str:
        """Return the parent name used for virtual paths."""
        return self.parent_folder_name or DEFAULT_PARENT_NAME

    def active_strategies(self) -> list[StrategyName]:
        """Return every strategy in fixed priority order.

        The preferred pattern and the fallback list never remove a strategy
        from the chain.

        Returns:
            list[StrategyName]: Strategies sorted by priority.
        """
        return sorted(StrategyName, key=lambda s: s.priority)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    The settings model is intentionally flat and human-editable via `.env`.
    Comma-separated fields are parsed by the ``*_list`` properties.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Vimeo API
    vimeo_access_token: str = Field(..., description="Vimeo personal access token")
    vimeo_api_base_url: str = Field(default=DEFAULT_API_BASE_URL)
    vimeo_api_version: str = Field(default=DEFAULT_API_VERSION)
    request_timeout: float = Field(default=30.0, gt=0, description="Seconds per request")

    # Organization
    parent_folder_id: Optional[str] = Field(
        default=None, description="Top-level parent folder (project) id"
    )
    parent_folder_name: Optional[str] = Field(
        default=None, description="Display name of the parent folder"
    )
    organization_pattern: OrganizationPattern = Field(
        default=OrganizationPattern.ENHANCED_FLAT
    )
    naming_prefix: str = Field(default="SSR")
    naming_separator: str = Field(default=" • ")
    naming_use_emoji: bool = Field(default=True)
    naming_emoji: str = Field(default="📁")
    naming_custom_pattern: Optional[str] = Field(
        default=None, description="Custom folder name pattern with a {name} placeholder"
    )
    legacy_naming_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_LEGACY_PATTERNS),
        description='Historical naming patterns as a JSON list, e.g. ["SSR - {name}"]',
    )
    fallback_strategies: str = Field(
        default="", description="Comma-separated fallback strategy names"
    )

    # Retry and caching
    max_retries: int = Field(default=3, ge=0)
    retry_delay: float = Field(default=1.0, ge=0, description="Seconds between retries")
    folder_cache_ttl: float = Field(default=DEFAULT_FOLDER_CACHE_TTL, gt=0)
    viability_cache_ttl: Optional[float] = Field(default=None, gt=0)
    max_pages: int = Field(default=20, ge=1)

    log_level: str = Field(default="INFO", description="Logging level")

    @property
    def fallback_strategy_list(self) -> list[str]:
        """Parse fallback strategy names from comma-separated string."""
        if not self.fallback_strategies:
            return []
        return [name.strip() for name in self.fallback_strategies.split(",") if name.strip()]

    @property
    def legacy_pattern_list(self) -> list[str]:
        """Return the non-blank legacy naming patterns."""
        return [p for p in self.legacy_naming_patterns if p.strip()]

    def organization_config(self) -> OrganizationConfig:
        """
        Build the read-only configuration for a folder manager.

        Returns:
            OrganizationConfig: Immutable organization configuration.

        Raises:
            ValidationError: If a fallback strategy name is unknown.
        """
        naming = NamingConvention(
            prefix=self.naming_prefix,
            separator=self.naming_separator,
            use_emoji=self.naming_use_emoji,
            emoji=self.naming_emoji,
            custom_pattern=self.naming_custom_pattern,
            legacy_patterns=tuple(self.legacy_pattern_list),
        )
        return OrganizationConfig(
            access_token=self.vimeo_access_token,
            parent_folder_id=self.parent_folder_id,
            parent_folder_name=self.parent_folder_name,
            organization_pattern=self.organization_pattern,
            naming_convention=naming,
            fallback_strategies=self.fallback_strategy_list,
            retry_options=RetryOptions(
                max_retries=self.max_retries, retry_delay=self.retry_delay
            ),
            folder_cache_ttl=self.folder_cache_ttl,
            viability_cache_ttl=self.viability_cache_ttl,
            api_base_url=self.vimeo_api_base_url,
            api_version=self.vimeo_api_version,
            request_timeout=self.request_timeout,
            max_pages=self.max_pages,
        )


def get_settings() -> Settings:
    """
    Load and return application settings.

    For tests, construct :class:`OrganizationConfig` directly instead.

    Returns:
        Settings: Application settings instance.

    Raises:
        ValidationError: If required environment variables are missing.
    """
    return Settings()
