"""
Builds runtime configuration objects from application settings.
"""
import json
from pathlib import Path
from typing import Optional

from .cache import TTLCache
from .config import ContestSettings
from .site_config import SiteConfigProvider
from .tournament import TournamentConfig, default_tournament_config


def load_tournament_config(contest: ContestSettings, path: Optional[Path] = None) -> TournamentConfig:
    """
    Tournament config from a JSON file, or the 64-team default.

    Tie-breaker policy from settings applies unless the file sets its own.
    """
    path = path or contest.tournament_config_path
    if path is None:
        config = default_tournament_config(tie_breaker_required=contest.tie_breaker_required)
    else:
        with open(path, "r") as f:
            data = json.load(f)
        data.setdefault("tieBreakerRequired", contest.tie_breaker_required)
        config = TournamentConfig.from_dict(data)
        if "tieBreakerRange" in data:
            return config
    config.tie_breaker_range = (contest.tie_breaker_low, contest.tie_breaker_high)
    return config.check()


def read_site_config_file(path: Path) -> str:
    return Path(path).read_text(encoding="utf-8")


def build_site_config_provider(
    contest: ContestSettings,
    cache: Optional[TTLCache] = None,
    path: Optional[Path] = None,
) -> SiteConfigProvider:
    """
    Provider backed by a local CSV export of the parameter sheet.

    With no path configured every read fails over to the fallback config.
    """
    path = path or contest.site_config_path

    def fetch() -> str:
        if path is None:
            raise FileNotFoundError("No site config sheet configured")
        return read_site_config_file(path)

    return SiteConfigProvider(
        fetch=fetch,
        cache=cache,
        ttl_seconds=contest.site_config_ttl_seconds,
    )
