"""
Bracket Submission Validation.

Checks a player's picks against the tournament topology:

- every slot of the season has exactly one entry
- every pick is one of the two teams playing that game
- every later-round team is the winner picked in its feeder game
- the player name and email are present and well formed
- the tie breaker is present (advisory) and inside the allowed range

Problems are collected as errors (fatal) or warnings (advisory). The only
exceptions raised are for contract violations: a payload whose shape
cannot be read at all, or an invalid tournament configuration.

Validation does no logging and touches no metrics; callers record outcomes.
"""
import re
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .bracket import BracketSubmission, BracketValidationResult, Game, SlotKey
from .exceptions import ConfigurationError, SubmissionShapeError
from .tournament import TournamentConfig

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_NAME_LENGTH = 2


def validate_bracket_submission(
    submission: Any,
    config: TournamentConfig,
) -> BracketValidationResult:
    """
    Validate a bracket submission against a tournament configuration.

    Args:
        submission: BracketSubmission or the decoded JSON payload
        config: season topology and rules

    Returns:
        BracketValidationResult; ``is_valid`` is True iff there are no errors

    Raises:
        SubmissionShapeError: payload is not an object or games is not a list
        ConfigurationError: config is missing or inconsistent
    """
    if config is None:
        raise ConfigurationError("A tournament config is required to validate brackets")
    config.check()

    submission = BracketSubmission.from_dict(submission)
    if not isinstance(submission.games, (list, tuple)):
        raise SubmissionShapeError("games must be a list")

    errors: List[str] = []
    warnings: List[str] = []

    _check_identity(submission, errors, warnings)
    entries = _index_entries(submission.games, config, errors)

    for slot in config.slots:
        if slot not in entries:
            errors.append(f"Missing pick for {config.describe(slot)}")

    participants = _resolve_participants(entries, config)
    for slot in config.slots:
        game = entries.get(slot)
        if game is None:
            continue
        if slot.round == 1:
            _check_seeding(game, config, errors)
        else:
            _check_progression(game, entries, config, errors)
        _check_pick(game, entries, participants, config, errors)

    _check_tie_breaker(submission.tie_breaker, config, errors, warnings)

    return BracketValidationResult(errors=errors, warnings=warnings)


# =============================================================================
# CHECKS
# =============================================================================

def _check_identity(submission: BracketSubmission, errors: List[str], warnings: List[str]) -> None:
    name = submission.player_name
    if not isinstance(name, str) or not name.strip():
        errors.append("Player name is required")
    elif len(name.strip()) < MIN_NAME_LENGTH:
        warnings.append("Player name is very short")

    email = submission.player_email
    if not isinstance(email, str) or not email.strip():
        errors.append("Player email is required")
    elif not EMAIL_PATTERN.match(email.strip()):
        errors.append("Valid email address is required")


def _index_entries(games: List[Any], config: TournamentConfig, errors: List[str]) -> Dict[SlotKey, Game]:
    """Parse entries into games keyed by slot, reporting unreadable, unknown and duplicate ones."""
    known = set(config.slots)
    entries: Dict[SlotKey, Game] = {}
    for index, raw in enumerate(games, start=1):
        if isinstance(raw, Game):
            game = raw
        elif isinstance(raw, Mapping):
            try:
                game = Game.from_dict(raw)
            except ValueError as e:
                errors.append(f"Game entry {index}: {e}")
                continue
        else:
            errors.append(f"Game entry {index} is not an object")
            continue

        slot = game.slot
        if slot not in known:
            errors.append(
                f"Game entry {index}: round {slot.round} game {slot.game_number} is not part of this tournament"
            )
        elif slot in entries:
            errors.append(f"{config.describe(slot)} appears more than once")
        else:
            entries[slot] = game
    return entries


def _resolve_participants(
    entries: Dict[SlotKey, Game],
    config: TournamentConfig,
) -> Dict[SlotKey, Tuple[Optional[str], Optional[str]]]:
    """
    Team ids playing in each slot.

    Submitted teams take precedence; otherwise round 1 falls back to the
    seeded matchup and later rounds to the winners picked in the feeders.
    """
    participants = {}
    for slot in config.slots:
        game = entries.get(slot)
        submitted = (
            game.team1.id if game is not None and game.team1 else None,
            game.team2.id if game is not None and game.team2 else None,
        )
        if slot.round == 1:
            seeded = (config.first_round or {}).get(slot, (None, None))
            designated = seeded
        else:
            designated = tuple(
                entries[f].winner_id if f in entries else None
                for f in config.feeders[slot]
            )
        participants[slot] = (submitted[0] or designated[0], submitted[1] or designated[1])
    return participants


def _check_seeding(game: Game, config: TournamentConfig, errors: List[str]) -> None:
    if not config.first_round:
        return
    seeded = config.first_round.get(game.slot)
    if seeded is None or game.team1 is None or game.team2 is None:
        return
    if {game.team1.id, game.team2.id} != set(seeded):
        errors.append(
            f"{config.describe(game.slot)}: '{game.team1.name}' vs '{game.team2.name}' "
            f"does not match the seeded matchup '{seeded[0]}' vs '{seeded[1]}'"
        )


def _check_progression(
    game: Game,
    entries: Dict[SlotKey, Game],
    config: TournamentConfig,
    errors: List[str],
) -> None:
    label = config.describe(game.slot)
    for position, team, feeder in (
        ("team1", game.team1, config.feeders[game.slot][0]),
        ("team2", game.team2, config.feeders[game.slot][1]),
    ):
        if team is None:
            continue
        feeder_game = entries.get(feeder)
        required = feeder_game.winner if feeder_game is not None else None
        if required is not None and required.id != team.id:
            errors.append(
                f"{label}: {position} '{team.name}' does not match the winner of "
                f"{config.describe(feeder)} ('{required.name}')"
            )


def _check_pick(
    game: Game,
    entries: Dict[SlotKey, Game],
    participants: Dict[SlotKey, Tuple[Optional[str], Optional[str]]],
    config: TournamentConfig,
    errors: List[str],
) -> None:
    label = config.describe(game.slot)
    winner = game.winner
    if winner is None:
        errors.append(f"{label}: no winner selected")
        return

    teams = participants[game.slot]
    if winner.id in teams:
        return

    eliminated_in = _find_elimination(winner.id, game.slot, entries, participants, config)
    if eliminated_in is not None:
        beaten_by = entries[eliminated_in].winner
        errors.append(
            f"{label}: pick '{winner.name}' was eliminated in {config.describe(eliminated_in)} "
            f"(winner '{beaten_by.name}')"
        )
        return

    shown = " vs ".join(t if t is not None else "TBD" for t in teams)
    errors.append(f"{label}: pick '{winner.name}' is not one of the teams in this game ({shown})")


def _find_elimination(
    team_id: str,
    slot: SlotKey,
    entries: Dict[SlotKey, Game],
    participants: Dict[SlotKey, Tuple[Optional[str], Optional[str]]],
    config: TournamentConfig,
) -> Optional[SlotKey]:
    """Nearest upstream game in which ``team_id`` played and was not picked to win."""
    frontier = list(config.feeders.get(slot, ()))
    while frontier:
        upstream = []
        for feeder in frontier:
            feeder_game = entries.get(feeder)
            if (
                feeder_game is not None
                and feeder_game.winner is not None
                and team_id in participants[feeder]
                and feeder_game.winner_id != team_id
            ):
                return feeder
            upstream.extend(config.feeders.get(feeder, ()))
        frontier = upstream
    return None


def _check_tie_breaker(value: Any, config: TournamentConfig, errors: List[str], warnings: List[str]) -> None:
    if value is None or value == "":
        if config.tie_breaker_required:
            warnings.append("Tie breaker is missing")
        return

    if isinstance(value, bool):
        errors.append("Tie breaker must be a whole number")
        return
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        errors.append("Tie breaker must be a whole number")
        return
    if isinstance(value, float) and value != number:
        errors.append("Tie breaker must be a whole number")
        return

    if config.tie_breaker_range is not None:
        low, high = config.tie_breaker_range
        if number < low or number > high:
            errors.append(f"Tie breaker must be between {low} and {high}")

