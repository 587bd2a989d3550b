"""
Configuration management for OpenLRS.
Loads from config/openlrs.yaml and environment variables.
"""

from pathlib import Path
from typing import Optional, Dict, Any
import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator


class ApiConfig(BaseSettings):
    """API server configuration."""
    host: str = Field(default="0.0.0.0", alias="API_HOST")
    port: int = Field(default=8000, alias="API_PORT")
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])
    rate_limit_requests_per_minute: int = Field(default=120, alias="API_RATE_LIMIT_RPM")
    # Only enable behind a proxy that sets X-Rate-Limit-Key itself
    trust_rate_limit_key_header: bool = Field(default=False, alias="API_TRUST_RATE_LIMIT_KEY_HEADER")

    model_config = SettingsConfigDict(env_prefix="API_", extra="ignore", populate_by_name=True)


class StoreConfig(BaseSettings):
    """Statement store configuration."""
    backend: str = Field(default="sqlite", alias="STORE_BACKEND")  # sqlite, memory
    db_path: Path = Field(default=Path("data/statements.sqlite"), alias="STORE_DB_PATH")
    busy_timeout_seconds: float = Field(default=30.0)

    model_config = SettingsConfigDict(env_prefix="STORE_", extra="ignore", populate_by_name=True)

    @field_validator("backend")
    @classmethod
    def _known_backend(cls, value: str) -> str:
        value = value.lower()
        if value not in ("sqlite", "memory"):
            raise ValueError(f"Unknown store backend: {value}")
        return value


class StatementConfig(BaseSettings):
    """Statement ingestion and query configuration."""
    xapi_version: str = Field(default="1.0.0", alias="XAPI_VERSION")
    default_page_size: int = Field(default=50, ge=1)
    max_page_size: int = Field(default=500, ge=1)
    default_authority: Optional[str] = Field(default=None, alias="LRS_DEFAULT_AUTHORITY")

    model_config = SettingsConfigDict(env_prefix="STATEMENTS_", extra="ignore", populate_by_name=True)


class LRSSettings(BaseSettings):
    """Main OpenLRS configuration."""
    env: str = Field(default="dev", alias="LRS_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: Optional[Path] = Field(default=Path("logs/openlrs.log"), alias="LOG_FILE")

    # Sub-configurations
    api: ApiConfig = Field(default_factory=ApiConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    statements: StatementConfig = Field(default_factory=StatementConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
        populate_by_name=True,
    )

    @classmethod
    def load_from_yaml(cls, config_path: Optional[Path] = None) -> "LRSSettings":
        """Load settings from YAML file and merge with environment variables."""
        if config_path is None:
            config_path = Path("config/openlrs.yaml")

        config_dict: Dict[str, Any] = {}

        if config_path.exists():
            with open(config_path, "r", encoding="utf-8") as f:
                yaml_data = yaml.safe_load(f) or {}
                config_dict = yaml_data.get("openlrs", {})

        # Flatten api.rate_limit.* if present
        if "api" in config_dict and isinstance(config_dict["api"], dict):
            api_cfg = dict(config_dict["api"])
            rate_limit = api_cfg.pop("rate_limit", None)
            if isinstance(rate_limit, dict) and "requests_per_minute" in rate_limit:
                api_cfg["rate_limit_requests_per_minute"] = rate_limit["requests_per_minute"]
            if isinstance(rate_limit, dict) and "trust_key_header" in rate_limit:
                api_cfg["trust_rate_limit_key_header"] = rate_limit["trust_key_header"]
            config_dict["api"] = api_cfg

        return cls(**config_dict)


# Global settings instance
_settings: Optional[LRSSettings] = None


def get_settings() -> LRSSettings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = LRSSettings.load_from_yaml()
    return _settings


# Alias for convenience
settings = get_settings()
