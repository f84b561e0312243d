"""
FastAPI dependencies for configuration and time.

Tests replace these through ``app.dependency_overrides``.
"""
from functools import lru_cache

from bracketpool.config import settings
from bracketpool.gate import Clock, utc_now
from bracketpool.loaders import build_site_config_provider, load_tournament_config
from bracketpool.site_config import SiteConfig, SiteConfigProvider
from bracketpool.tournament import TournamentConfig


@lru_cache
def get_tournament_config() -> TournamentConfig:
    return load_tournament_config(settings.contest)


@lru_cache
def get_site_config_provider() -> SiteConfigProvider:
    return build_site_config_provider(settings.contest)


def get_site_config() -> SiteConfig:
    return get_site_config_provider().get()


def get_clock() -> Clock:
    return utc_now
