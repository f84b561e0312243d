"""
Bracket pool contest core.

Validates tournament bracket submissions, gates new submissions on the
admin toggle and deadline, and scores brackets into standings.
"""
from .bracket import (
    Bracket,
    BracketSubmission,
    BracketValidationResult,
    Game,
    SlotKey,
    Team,
)
from .exceptions import (
    BracketPoolError,
    ConfigurationError,
    SiteConfigUnavailableError,
    SubmissionShapeError,
)
from .gate import SubmissionDecision, check_submission_allowed
from .tournament import (
    RoundConfig,
    TournamentConfig,
    default_tournament_config,
    generate_bracket_structure,
    seed_first_round,
)
from .validation import validate_bracket_submission

__version__ = "1.0.0"

__all__ = [
    "Bracket",
    "BracketSubmission",
    "BracketValidationResult",
    "Game",
    "SlotKey",
    "Team",
    "BracketPoolError",
    "ConfigurationError",
    "SiteConfigUnavailableError",
    "SubmissionShapeError",
    "SubmissionDecision",
    "check_submission_allowed",
    "RoundConfig",
    "TournamentConfig",
    "default_tournament_config",
    "generate_bracket_structure",
    "seed_first_round",
    "validate_bracket_submission",
]
