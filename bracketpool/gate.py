"""
Submission Gate.

Decides whether new brackets are accepted right now. Two independent
triggers close the gate: the admin toggle and the submission deadline.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional, Union

from pydantic import ValidationError

from .exceptions import ConfigurationError
from .site_config import SiteConfig

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SubmissionDecision:
    """Outcome of the gate. ``reason`` is only set when submissions are blocked."""
    allowed: bool
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"allowed": self.allowed}
        if self.reason is not None:
            data["reason"] = self.reason
        return data


def check_submission_allowed(
    site_config: Union[SiteConfig, Mapping[str, Any]],
    clock: Clock = utc_now,
) -> SubmissionDecision:
    """
    Check whether bracket creation/submission is currently allowed.

    Args:
        site_config: SiteConfig, or a mapping with at least
            ``stop_submit_toggle`` and ``stop_submit_date_time``
        clock: returns the current time as an aware datetime

    Returns:
        SubmissionDecision; blocked when the toggle is on, or when a
        deadline is set and now is at or past it

    Raises:
        ConfigurationError: site_config is missing or cannot be parsed
    """
    config = _coerce(site_config)

    if config.stop_submit_toggle:
        return SubmissionDecision(allowed=False, reason=config.final_message_submit_off)
    if config.stop_submit_date_time is not None and clock() >= config.stop_submit_date_time:
        return SubmissionDecision(allowed=False, reason=config.final_message_too_late)
    return SubmissionDecision(allowed=True)


def _coerce(site_config: Union[SiteConfig, Mapping[str, Any]]) -> SiteConfig:
    if isinstance(site_config, SiteConfig):
        return site_config
    if not isinstance(site_config, Mapping):
        raise ConfigurationError("Site config is required to check submissions")
    try:
        return SiteConfig.model_validate(dict(site_config))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid site config: {e}") from e
