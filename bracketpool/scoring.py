"""
Bracket Scoring and Standings.

Points are awarded per correct pick using the round's point value from
the tournament config. Standings rank brackets by points, then by how
close the tie breaker came to the real championship total, then by
submission time.
"""
from dataclasses import replace
from datetime import timezone
from typing import Dict, Iterable, List, Optional, Set

import polars as pl

from .bracket import Bracket, Game, SlotKey
from .tournament import TournamentConfig
from .utils.observability import Logger, get_metrics

logger = Logger(__name__)

STANDINGS_SCHEMA = {
    "rank": pl.UInt32,
    "bracket_id": pl.String,
    "player_name": pl.String,
    "player_email": pl.String,
    "total_points": pl.Int64,
    "correct_picks": pl.Int64,
    "max_possible": pl.Int64,
    "tie_breaker": pl.Int64,
    "tie_breaker_diff": pl.Int64,
    "is_complete": pl.Boolean,
    "submitted_at": pl.Datetime("us", "UTC"),
}


def _completed_results(results: Iterable[Game]) -> Dict[SlotKey, Game]:
    return {g.slot: g for g in results if g.completed and g.winner is not None}


def _eliminated_teams(completed: Dict[SlotKey, Game]) -> Set[str]:
    """Teams that lost a completed game."""
    eliminated = set()
    for game in completed.values():
        for team_id in game.team_ids:
            if team_id != game.winner.id:
                eliminated.add(team_id)
    return eliminated


def calculate_bracket_points(bracket: Bracket, results: Iterable[Game], config: TournamentConfig) -> int:
    """Sum of round points for every pick that matches a completed result."""
    completed = _completed_results(results)
    total = 0
    for slot, pick in bracket.picks.items():
        result = completed.get(slot)
        if result is not None and result.winner.id == pick:
            total += config.round_points(slot.round)
    return total


def is_bracket_complete(bracket: Bracket, config: TournamentConfig) -> bool:
    """True when every slot of the tournament has a pick."""
    picks = bracket.picks
    return all(slot in picks for slot in config.slots)


def score_bracket(bracket: Bracket, results: Iterable[Game], config: TournamentConfig) -> Bracket:
    """Copy of ``bracket`` with derived points and completeness filled in."""
    return replace(
        bracket,
        total_points=calculate_bracket_points(bracket, results, config),
        is_complete=is_bracket_complete(bracket, config),
    )


def _bracket_row(
    bracket: Bracket,
    completed: Dict[SlotKey, Game],
    eliminated: Set[str],
    config: TournamentConfig,
    actual_tie_breaker: Optional[int],
) -> dict:
    points = 0
    correct = 0
    still_possible = 0
    for slot, pick in bracket.picks.items():
        result = completed.get(slot)
        value = config.round_points(slot.round)
        if result is not None:
            if result.winner.id == pick:
                points += value
                correct += 1
        elif pick not in eliminated:
            still_possible += value

    submitted_at = bracket.submitted_at
    if submitted_at is not None:
        submitted_at = (
            submitted_at.replace(tzinfo=timezone.utc)
            if submitted_at.tzinfo is None
            else submitted_at.astimezone(timezone.utc)
        )

    diff = None
    if bracket.tie_breaker is not None and actual_tie_breaker is not None:
        diff = abs(bracket.tie_breaker - actual_tie_breaker)

    return {
        "bracket_id": bracket.id,
        "player_name": bracket.player_name,
        "player_email": bracket.player_email,
        "total_points": points,
        "correct_picks": correct,
        "max_possible": points + still_possible,
        "tie_breaker": bracket.tie_breaker,
        "tie_breaker_diff": diff,
        "is_complete": is_bracket_complete(bracket, config),
        "submitted_at": submitted_at,
    }


def compute_standings(
    brackets: List[Bracket],
    results: Iterable[Game],
    config: TournamentConfig,
    actual_tie_breaker: Optional[int] = None,
) -> pl.DataFrame:
    """
    Rank brackets against real-world results.

    Args:
        brackets: submitted brackets
        results: real games; only completed games with a winner count
        config: tournament config supplying round points
        actual_tie_breaker: real championship total, once known

    Returns:
        DataFrame with one row per bracket, best first. Brackets with equal
        points and equal tie-breaker distance share the same rank.
    """
    completed = _completed_results(results)
    eliminated = _eliminated_teams(completed)

    rows = [_bracket_row(b, completed, eliminated, config, actual_tie_breaker) for b in brackets]
    schema = {k: v for k, v in STANDINGS_SCHEMA.items() if k != "rank"}
    if not rows:
        return pl.DataFrame(schema=STANDINGS_SCHEMA)

    standings = (
        pl.DataFrame(rows, schema=schema)
        .sort(
            ["total_points", "tie_breaker_diff", "submitted_at"],
            descending=[True, False, False],
            nulls_last=True,
        )
        .with_row_index("position", offset=1)
        .with_columns(
            pl.col("position").min().over(["total_points", "tie_breaker_diff"]).alias("rank")
        )
        .drop("position")
        .select(list(STANDINGS_SCHEMA))
    )

    get_metrics().last_standings_size.set(len(standings))
    logger.log_event("standings_computed", brackets=len(standings), completed_games=len(completed))
    return standings
