"""
Configuration module with strongly typed settings.

Usage:
    from bracketpool.config import settings
    
    print(settings.contest.tournament_year)
    print(settings.api.port)
"""
from .settings import (
    Settings,
    ContestSettings,
    ApiSettings,
    ObservabilitySettings,
)

# Singleton instance - validates on import
settings = Settings()

__all__ = [
    "settings",
    "Settings",
    "ContestSettings",
    "ApiSettings",
    "ObservabilitySettings",
]
