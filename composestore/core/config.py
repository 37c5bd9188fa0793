"""
Centralized Configuration Management for composestore

Provides pydantic-based configuration with:
- Environment variable loading (.env support)
- Type validation
- Default values

Usage:
    from composestore.core.config import get_config

    config = get_config()
    print(config.data_dir)
    print(config.default_appstore_urls)
"""

from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_APPSTORE_URL = "https://github.com/IceWhaleTech/_appstore/archive/refs/heads/main.zip"


class AppManagementConfig(BaseSettings):
    """
    Central configuration for composestore

    All settings can be overridden via environment variables with COMPOSESTORE_ prefix.
    For example: COMPOSESTORE_DATA_DIR, COMPOSESTORE_LOG_LEVEL, etc.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="COMPOSESTORE_",
        case_sensitive=False,
        extra="ignore",
    )

    # ============================================
    # Application Configuration
    # ============================================

    environment: str = Field(
        default="development",
        description="Environment: development, staging, production"
    )

    debug: bool = Field(
        default=False,
        description="Expose exception details in 500 responses (never in production)"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )

    log_file: Optional[Path] = Field(
        default=None,
        description="Optional log file; background registration errors are written here"
    )

    # ============================================
    # Storage Configuration
    # ============================================

    data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".composestore",
        description="Root directory for persisted app store sources and downloads"
    )

    apps_dir: Path = Field(
        default_factory=lambda: Path.home() / ".composestore" / "apps",
        description="Directory holding one sub-directory per installed compose app"
    )

    # ============================================
    # App Store Configuration
    # ============================================

    default_appstore_urls: List[str] = Field(
        default_factory=lambda: [DEFAULT_APPSTORE_URL],
        description="App store sources used when no source list has been persisted yet"
    )

    registration_timeout: float = Field(
        default=300.0,
        description="Seconds a background app store registration may run before it is cancelled"
    )

    registration_workers: int = Field(
        default=2,
        description="Number of worker threads running app store registrations"
    )

    download_timeout: float = Field(
        default=60.0,
        description="HTTP timeout in seconds for app store archive downloads"
    )

    # ============================================
    # Server Configuration
    # ============================================

    host: str = Field(default="127.0.0.1", description="API bind host")
    port: int = Field(default=8090, description="API bind port")

    # ============================================
    # Derived paths
    # ============================================

    @property
    def sources_file(self) -> Path:
        """JSON file persisting the registered app store list."""
        return self.data_dir / "appstores.json"

    @property
    def appstore_dir(self) -> Path:
        """Directory where remote app stores are downloaded and extracted."""
        return self.data_dir / "appstore"

    # ============================================
    # Validators
    # ============================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(
                f"log_level must be one of: {', '.join(valid_levels)}"
            )
        return v.upper()

    @field_validator("registration_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError("registration_workers must be at least 1")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


# Global config instance
_config: Optional[AppManagementConfig] = None


def get_config() -> AppManagementConfig:
    """Get the process-wide configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = AppManagementConfig()
    return _config


def reset_config() -> None:
    """Drop the cached configuration (used by tests)."""
    global _config
    _config = None
