"""Pydantic settings for configuration management."""

from pathlib import Path
from typing import Optional, Dict, Any
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import yaml

from .exceptions import ConfigurationError


DEFAULT_SITE_DESCRIPTION = "বাংলা মুভি, সিরিয়াল এবং টিভি শো ডাউনলোড করার জন্য সেরা ওয়েবসাইট।"


class SiteDefaults(BaseSettings):
    """Site-wide fallback values used when the settings row is empty."""
    model_config = SettingsConfigDict(env_prefix="SERIALSEO_SITE_", extra="ignore")

    site_url: str = Field(default="https://www.btspro24.com", description="Public site origin")
    site_title: str = Field(default="BTSPRO24", description="Fallback site title")
    site_description: str = Field(default=DEFAULT_SITE_DESCRIPTION, description="Fallback site description")
    og_image_path: str = Field(default="/og-image.png", description="Default Open Graph image path")
    logo_path: str = Field(default="/logo.png", description="Publisher logo path")
    language: str = Field(default="bn", description="Document language")

    # HTTP caching
    cache_max_age: int = Field(default=3600, description="Cache-Control max-age in seconds")

    # Sitemaps
    episodes_per_sitemap: int = Field(default=1000, description="Episodes per paginated sitemap")

    @field_validator("site_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v):
        """Normalise the origin so paths can be appended directly."""
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @field_validator("episodes_per_sitemap")
    @classmethod
    def positive_page_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError("episodes_per_sitemap must be at least 1")
        return v


class Settings(BaseSettings):
    """Main application settings."""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SERIALSEO_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Content store
    database_url: str = Field(
        default="sqlite:///data/content.db",
        description="SQLAlchemy URL of the content database"
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements")

    # Logging
    log_dir: Path = Field(default=Path("data/logs"), description="Log directory")
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Log format: json, text")
    log_to_file: bool = Field(default=False, description="Write logs to log_dir")

    # API server
    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8000, description="Bind port")

    site: SiteDefaults = Field(default_factory=SiteDefaults)

    @field_validator("log_format")
    @classmethod
    def known_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return v

    def ensure_directories(self):
        """Create directories needed by file-backed settings."""
        if self.log_to_file:
            self.log_dir.mkdir(parents=True, exist_ok=True)

        if self.database_url.startswith("sqlite:///") and ":memory:" not in self.database_url:
            db_path = Path(self.database_url[len("sqlite:///"):])
            db_path.parent.mkdir(parents=True, exist_ok=True)

    def to_dict(self) -> Dict[str, Any]:
        """Export settings as dict."""
        return self.model_dump(mode="json")


# Global settings cache
_settings_cache: Optional[Settings] = None


def get_settings(config_path: Optional[Path] = None) -> Settings:
    """Get or create settings instance."""
    global _settings_cache

    if _settings_cache is not None:
        return _settings_cache

    # Load from YAML if provided
    if config_path and config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}", config_key=str(config_path))

        if not isinstance(config_data, dict):
            raise ConfigurationError("Config file must contain a mapping", config_key=str(config_path))

        # Merge with environment variables
        settings = Settings(**config_data)
    else:
        # Load from environment only
        settings = Settings()

    settings.ensure_directories()

    _settings_cache = settings
    return settings


def reload_settings(config_path: Optional[Path] = None) -> Settings:
    """Force reload settings."""
    global _settings_cache
    _settings_cache = None
    return get_settings(config_path)
