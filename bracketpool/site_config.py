"""
Site configuration.

Admins maintain a two-column ``parameter,value`` sheet; its CSV export is
parsed into a typed SiteConfig. When the sheet cannot be fetched or read,
the in-process fallback is served instead.
"""
import io
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import polars as pl
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .cache import TTLCache
from .exceptions import SiteConfigUnavailableError
from .utils.observability import Logger, get_metrics

logger = Logger(__name__)

SITE_CONFIG_CACHE_KEY = "site_config"


class SiteConfig(BaseModel):
    """
    Admin-editable site parameters.

    Accepts the sheet's snake_case parameter names and the camelCase keys
    used by JSON clients.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    tournament_year: str = Field(default="2026")
    site_name: str = Field(default="Warren's March Madness")

    # Submission gate
    stop_submit_toggle: bool = Field(default=False, description="Manually disable submissions")
    stop_submit_date_time: Optional[datetime] = Field(default=None, description="Submission deadline")
    final_message_submit_off: str = Field(default="Bracket submissions are currently disabled.")
    final_message_too_late: str = Field(default="Bracket submissions are closed. The deadline has passed.")

    # Tie breaker bounds
    tie_breaker_low: int = Field(default=50, ge=0)
    tie_breaker_high: int = Field(default=500, ge=0)

    @field_validator("stop_submit_toggle", mode="before")
    @classmethod
    def parse_toggle(cls, v: Any) -> Any:
        if isinstance(v, str):
            normalized = v.strip().lower()
            if normalized in ("yes", "y", "true", "1", "on"):
                return True
            if normalized in ("no", "n", "false", "0", "off", ""):
                return False
        return v

    @field_validator("stop_submit_date_time", mode="before")
    @classmethod
    def parse_deadline(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("stop_submit_date_time")
    @classmethod
    def deadline_is_aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        # Naive timestamps are read as UTC
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator("tie_breaker_high")
    @classmethod
    def high_gte_low(cls, v, info):
        if "tie_breaker_low" in info.data and v < info.data["tie_breaker_low"]:
            raise ValueError("tie_breaker_high must be >= tie_breaker_low")
        return v


FALLBACK_SITE_CONFIG = SiteConfig()


def parse_parameter_sheet(csv_text: str) -> SiteConfig:
    """
    Parse the CSV export of the parameter sheet.

    The first row is a header; the first two columns are read as
    parameter name and value. Blank values keep their defaults.

    Raises:
        SiteConfigUnavailableError: the text is not a readable sheet or a
            value fails validation
    """
    try:
        df = pl.read_csv(
            io.StringIO(csv_text),
            has_header=True,
            infer_schema_length=0,
            truncate_ragged_lines=True,
        )
    except pl.exceptions.PolarsError as e:
        raise SiteConfigUnavailableError(f"Unreadable parameter sheet: {e}") from e

    if df.width < 2:
        raise SiteConfigUnavailableError("Parameter sheet needs a parameter and a value column")

    param_col, value_col = df.columns[0], df.columns[1]
    values = {}
    for row in df.select(param_col, value_col).iter_rows():
        parameter, value = row
        if not parameter or value is None or not value.strip():
            continue
        values[parameter.strip()] = value.strip()

    try:
        return SiteConfig.model_validate(values)
    except ValidationError as e:
        raise SiteConfigUnavailableError(f"Invalid parameter sheet: {e}") from e


class SiteConfigProvider:
    """
    Serves the current SiteConfig, caching the parsed sheet.

    Args:
        fetch: returns the sheet's CSV text; the transport is the caller's
        cache: TTL cache shared with other reference data
        ttl_seconds: how long a fetched config stays fresh
        fallback_ttl_seconds: how long the fallback is served before retrying
    """

    def __init__(
        self,
        fetch: Callable[[], str],
        cache: Optional[TTLCache] = None,
        ttl_seconds: float = 300.0,
        fallback_ttl_seconds: float = 60.0,
        fallback: SiteConfig = FALLBACK_SITE_CONFIG,
    ):
        self.fetch = fetch
        self.cache = cache if cache is not None else TTLCache(default_ttl=ttl_seconds)
        self.ttl_seconds = ttl_seconds
        self.fallback_ttl_seconds = fallback_ttl_seconds
        self.fallback = fallback

    def get(self) -> SiteConfig:
        cached = self.cache.get(SITE_CONFIG_CACHE_KEY)
        if cached is not None:
            return cached

        try:
            config = parse_parameter_sheet(self.fetch())
        except Exception as e:
            logger.log_error("site_config_fetch_failed", error=str(e), exc_info=e)
            get_metrics().site_config_fallbacks.inc()
            self.cache.set(SITE_CONFIG_CACHE_KEY, self.fallback, ttl=self.fallback_ttl_seconds)
            return self.fallback

        self.cache.set(SITE_CONFIG_CACHE_KEY, config, ttl=self.ttl_seconds)
        logger.log_event("site_config_refreshed", ttl=self.ttl_seconds)
        return config

    def refresh(self) -> SiteConfig:
        """Drop the cached copy and fetch again."""
        self.cache.expire(SITE_CONFIG_CACHE_KEY)
        return self.get()
