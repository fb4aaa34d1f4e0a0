"""
Centralized Configuration System for SheetLens

Type-safe configuration built on Pydantic Settings. Each concern gets its own
settings group so services and tests can read exactly what they need.

Features:
- Environment variable binding with defaults
- Hierarchical configuration structure
- Single source of truth for all settings
- Test-friendly reload
"""

import json
import os
from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment types"""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class NumericLocale(str, Enum):
    """How ambiguous decimal/thousands separators are resolved"""
    AUTO = "auto"
    COMMA_DECIMAL = "comma_decimal"
    DOT_DECIMAL = "dot_decimal"


class ServiceSettings(BaseSettings):
    """HTTP service configuration settings"""

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("DOCKER_CONTAINER") else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    service_host: str = Field(
        default="0.0.0.0",
        description="Bind host for the SheetLens service"
    )
    service_port: int = Field(
        default=8004,
        description="Bind port for the SheetLens service"
    )

    # CORS Configuration
    cors_enabled: bool = Field(
        default=True,
        description="Enable CORS"
    )
    cors_origins: str = Field(
        default='["*"]',
        description="CORS allowed origins (JSON array string)"
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from JSON string"""
        try:
            origins = json.loads(self.cors_origins)
        except (json.JSONDecodeError, TypeError):
            return ["*"]
        if isinstance(origins, str):
            return [origins]
        return [str(o) for o in origins] or ["*"]


class IngestionSettings(BaseSettings):
    """Table extraction and type inference tuning"""

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("DOCKER_CONTAINER") else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    currency_symbol: str = Field(
        default="R$",
        description="Currency symbol recognised in monetary cells"
    )
    numeric_locale: NumericLocale = Field(
        default=NumericLocale.AUTO,
        description="Decimal separator policy for ambiguous numbers"
    )
    csv_delimiter: str = Field(
        default="auto",
        description="CSV delimiter, or 'auto' to sniff from the first line"
    )
    header_scan_rows: int = Field(
        default=25,
        ge=1,
        description="Rows scored as header candidates during data-table detection"
    )
    header_lookahead_rows: int = Field(
        default=3,
        ge=1,
        description="Rows after a header candidate that must hold a numeric cell"
    )
    fallback_scan_rows: int = Field(
        default=15,
        ge=1,
        description="Rows scanned by the generic header fallback"
    )
    budget_lookahead_rows: int = Field(
        default=10,
        ge=1,
        description="Rows after a planned/actual header searched for monetary rows"
    )
    type_inference_sample_size: int = Field(
        default=1000,
        ge=1,
        description="Max non-empty values per column used for type detection"
    )

    @field_validator("csv_delimiter", mode="before")
    @classmethod
    def normalize_delimiter(cls, v):
        if v is None or str(v) == "":
            return "auto"
        text = str(v)
        if text.lower() in ("tab", "\\t"):
            return "\t"
        return text


class ChartSettings(BaseSettings):
    """Chart suggestion and series settings"""

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("DOCKER_CONTAINER") else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    chart_max_points: int = Field(
        default=100,
        ge=1,
        description="Upper bound on points returned for one chart series"
    )
    chart_max_suggestions: int = Field(
        default=6,
        ge=1,
        description="Upper bound on chart suggestions per analysis"
    )


class StorageSettings(BaseSettings):
    """Processed file storage settings"""

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("DOCKER_CONTAINER") else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    file_cache_enabled: bool = Field(
        default=True,
        description="Mirror processed files to a best-effort JSON disk cache"
    )
    file_cache_dir: str = Field(
        default=".cache",
        description="Directory holding one JSON document per file id"
    )


class ApplicationSettings(BaseSettings):
    """Main application settings - aggregates all other settings"""

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("DOCKER_CONTAINER") else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment and basic settings
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment"
    )
    debug: bool = Field(
        default=False,
        description="Serve tracebacks on unhandled errors (FastAPI debug)"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )

    # Nested settings
    services: ServiceSettings = Field(default_factory=ServiceSettings)
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)
    charts: ChartSettings = Field(default_factory=ChartSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)

    @property
    def is_development(self) -> bool:
        """Check if running in development mode"""
        return self.environment == Environment.DEVELOPMENT


settings = ApplicationSettings()


def get_settings() -> ApplicationSettings:
    """
    Get the global settings instance

    Usable with FastAPI's Depends() for dependency injection.

    Returns:
        ApplicationSettings: The global settings instance
    """
    return settings


def reload_settings(overrides: Optional[dict] = None) -> ApplicationSettings:
    """
    Reload settings from environment (useful for testing)

    Returns:
        ApplicationSettings: New settings instance with reloaded values
    """
    global settings
    settings = ApplicationSettings(**(overrides or {}))
    return settings
