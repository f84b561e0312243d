#!/usr/bin/env python
"""
Bracket Pool - Unified CLI
"""
import argparse
import json
import sys
from pathlib import Path

import polars as pl

from bracketpool.bracket import Bracket, Game
from bracketpool.config import settings
from bracketpool.exceptions import BracketPoolError
from bracketpool.gate import check_submission_allowed
from bracketpool.loaders import build_site_config_provider, load_tournament_config
from bracketpool.monitoring import record_gate_decision, record_validation
from bracketpool.scoring import compute_standings
from bracketpool.utils.observability import Logger, initialize_observability
from bracketpool.validation import validate_bracket_submission

logger = Logger(__name__)


def _read_json(path: str):
    with open(path, "r") as f:
        return json.load(f)


def cmd_validate(args):
    """Validate a bracket submission file."""
    config = load_tournament_config(settings.contest, path=Path(args.config) if args.config else None)
    submission = _read_json(args.file)

    logger.log_event("validate_command_started", file=args.file)
    result = validate_bracket_submission(submission, config)
    record_validation(result, source="cli")

    print(json.dumps(result.to_dict(), indent=2))
    return 0 if result.is_valid else 1


def cmd_check_creation(args):
    """Report whether bracket submissions are open."""
    provider = build_site_config_provider(
        settings.contest,
        path=Path(args.site_config) if args.site_config else None,
    )
    site_config = provider.get()
    decision = check_submission_allowed(site_config)
    record_gate_decision(decision, site_config, source="cli")

    if decision.allowed:
        print("Bracket submissions are OPEN")
    else:
        print(f"Bracket submissions are CLOSED: {decision.reason}")
    return 0


def cmd_standings(args):
    """Print standings for stored brackets against real results."""
    config = load_tournament_config(settings.contest)
    brackets = [Bracket.from_dict(b) for b in _read_json(args.brackets)]
    results = [Game.from_dict(g) for g in _read_json(args.results)]

    table = compute_standings(brackets, results, config, actual_tie_breaker=args.tie_breaker)
    if len(table) == 0:
        print("No brackets to rank")
        return 0

    if args.output:
        table.write_csv(args.output)
        print(f"Standings written to {args.output}")
        return 0

    print(f"\n=== STANDINGS ({len(table)}) ===\n")
    for row in table.head(args.limit).iter_rows(named=True):
        tb = f" | TB diff {row['tie_breaker_diff']}" if row["tie_breaker_diff"] is not None else ""
        print(f"#{row['rank']:<3} {row['player_name']:<30} {row['total_points']:>4} pts "
              f"(max {row['max_possible']}){tb}")
    return 0


def cmd_structure(args):
    """Print the slot topology of the configured tournament."""
    config = load_tournament_config(settings.contest)

    rows = []
    for slot in config.slots:
        feeders = config.feeders.get(slot)
        rows.append({
            "round": slot.round,
            "game": slot.game_number,
            "label": config.describe(slot),
            "points": config.round_points(slot.round),
            "fed_by": " + ".join(config.describe(f) for f in feeders) if feeders else "",
        })

    with pl.Config(tbl_rows=len(rows), fmt_str_lengths=60):
        print(pl.DataFrame(rows))
    return 0


def cmd_serve(args):
    """Run the HTTP API."""
    import uvicorn
    uvicorn.run("bracketpool.api.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def main():
    parser = argparse.ArgumentParser(description="Bracket Pool")
    subs = parser.add_subparsers(dest="cmd", required=True)

    # Validate
    p = subs.add_parser("validate", help="Validate a bracket submission JSON file")
    p.add_argument("file")
    p.add_argument("--config", help="Tournament config JSON (default: 64-team season)")
    p.set_defaults(func=cmd_validate)

    # Check creation
    p = subs.add_parser("check-creation", help="Check whether submissions are open")
    p.add_argument("--site-config", help="CSV export of the parameter sheet")
    p.set_defaults(func=cmd_check_creation)

    # Standings
    p = subs.add_parser("standings", help="Rank brackets against results")
    p.add_argument("brackets", help="JSON list of brackets")
    p.add_argument("results", help="JSON list of real games")
    p.add_argument("--tie-breaker", type=int, default=None, help="Actual championship total")
    p.add_argument("--limit", type=int, default=25)
    p.add_argument("--output", help="Write the full table to CSV")
    p.set_defaults(func=cmd_standings)

    # Structure
    p = subs.add_parser("structure", help="Show bracket topology")
    p.set_defaults(func=cmd_structure)

    # Serve
    p = subs.add_parser("serve", help="Run the API server")
    p.add_argument("--host", default=settings.api.host)
    p.add_argument("--port", type=int, default=settings.api.port)
    p.add_argument("--reload", action="store_true")
    p.set_defaults(func=cmd_serve)

    args = parser.parse_args()
    initialize_observability(
        environment=settings.observability.environment,
        log_level=settings.observability.log_level,
    )

    try:
        return args.func(args)
    except BracketPoolError as e:
        logger.log_error("command_failed", command=args.cmd, error=str(e))
        print(f"ERROR: {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
