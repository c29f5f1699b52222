"""
Configuration Module - Load and validate application settings.
==============================================================

Loads configuration from:
1. config/settings.yaml (defaults)
2. Environment variables from .env file
3. Environment variables from system

Environment variables override YAML defaults.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file early
load_dotenv()


def _find_project_root() -> Path:
    """Find the project root directory by looking for pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path.cwd()


PROJECT_ROOT = _find_project_root()
CONFIG_DIR = PROJECT_ROOT / "config"
DEFAULT_CONFIG_FILE = CONFIG_DIR / "settings.yaml"


# ─────────────────────────────────────────────────────────────────────────────
# Nested Configuration Models
# ─────────────────────────────────────────────────────────────────────────────


def _default_mcgill_terms() -> list[str]:
    return [f"{year}-{year + 1}" for year in range(2009, 2024)]


class LoaderConfig(BaseModel):
    """Crawl settings for the catalog and schedule builder."""

    user_agent: str = "mcgill-courses/0.1.0"
    timeout: int = 30

    # Delays are in seconds
    course_delay: float = 0.0
    page_delay: float = 0.0

    retries: int = 10
    retry_delay: float = 1.0
    extraction_attempts: int = 5
    extraction_retry_delay: float = 0.5

    batch_size: int = 20
    workers: int = 8

    mcgill_terms: list[str] = Field(default_factory=_default_mcgill_terms)
    vsb_terms: list[str] = Field(default_factory=lambda: ["202305", "202309", "202401"])
    scrape_vsb: bool = False

    base_url: str = "https://www.mcgill.ca"
    vsb_url: str = "https://vsb.mcgill.ca/vsb/getclassdata.jsp"

    @field_validator("vsb_terms", mode="before")
    @classmethod
    def coerce_vsb_terms(cls, v: Any) -> Any:
        """YAML reads bare session codes as integers."""
        if isinstance(v, list):
            return [str(item) for item in v]
        return v

    @field_validator("batch_size", "workers", "extraction_attempts")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v


class StorageConfig(BaseModel):
    """Course store settings."""

    database_path: str = "data/courses.db"
    search_limit: int = 10


class PathsConfig(BaseModel):
    """Data paths configuration."""

    data_dir: str = "data"
    courses_dir: str = "data/courses"

    def resolve(self, base_path: Path) -> "ResolvedPaths":
        """Resolve paths relative to a base path."""
        return ResolvedPaths(
            data_dir=base_path / self.data_dir,
            courses_dir=base_path / self.courses_dir,
        )


class ResolvedPaths(BaseModel):
    """Resolved absolute paths."""

    data_dir: Path
    courses_dir: Path

    model_config = {"arbitrary_types_allowed": True}


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = "INFO"
    format: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    rich_console: bool = True
    file: str = ""


# ─────────────────────────────────────────────────────────────────────────────
# Main Settings Class
# ─────────────────────────────────────────────────────────────────────────────


class Settings(BaseSettings):
    """
    Main application settings.

    Loads from:
    1. config/settings.yaml (defaults)
    2. Environment variables

    Environment variables override YAML settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Top-level environment overrides
    user_agent: Optional[str] = Field(default=None, validation_alias="USER_AGENT")
    database_path: Optional[str] = Field(default=None, validation_alias="DATABASE_PATH")
    log_level: Optional[str] = Field(default=None, validation_alias="LOG_LEVEL")

    # Nested configurations (from YAML)
    loader: LoaderConfig = Field(default_factory=LoaderConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    _project_root: Path = PROJECT_ROOT
    _resolved_paths: Optional[ResolvedPaths] = None

    @property
    def project_root(self) -> Path:
        """Get the project root directory."""
        return self._project_root

    @property
    def resolved_paths(self) -> ResolvedPaths:
        """Get resolved absolute paths."""
        if self._resolved_paths is None:
            self._resolved_paths = self.paths.resolve(self._project_root)
        return self._resolved_paths

    def get_effective_user_agent(self) -> str:
        """Get the effective user agent (env override or config)."""
        return self.user_agent or self.loader.user_agent

    def get_effective_database_path(self) -> Path:
        """Get the effective database path, resolved against the project root."""
        path = Path(self.database_path or self.storage.database_path)
        if not path.is_absolute():
            path = self._project_root / path
        return path

    def get_effective_log_level(self) -> str:
        """Get the effective log level (env override or config)."""
        if self.log_level:
            return self.log_level.upper()
        return self.logging.level.upper()


def _load_yaml_config(config_path: Path) -> dict[str, Any]:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
        return data if data else {}


def _create_settings(config_path: Optional[Path] = None) -> Settings:
    """Create settings instance by merging YAML defaults with environment."""
    if config_path is None:
        config_path = DEFAULT_CONFIG_FILE

    yaml_config = _load_yaml_config(config_path)

    return Settings(**yaml_config)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the singleton settings instance.

    Returns:
        Settings instance with merged configuration

    Example:
        >>> settings = get_settings()
        >>> print(settings.loader.batch_size)
        20
    """
    return _create_settings()


def reload_settings() -> Settings:
    """
    Force reload of settings (clears cache).

    Returns:
        Fresh Settings instance
    """
    get_settings.cache_clear()
    return get_settings()
