"""
Configuration package for SheetLens
"""

from .settings import (
    ApplicationSettings,
    ChartSettings,
    Environment,
    IngestionSettings,
    NumericLocale,
    ServiceSettings,
    StorageSettings,
    get_settings,
    reload_settings,
)

__all__ = [
    "ApplicationSettings",
    "ChartSettings",
    "Environment",
    "IngestionSettings",
    "NumericLocale",
    "ServiceSettings",
    "StorageSettings",
    "get_settings",
    "reload_settings",
]
