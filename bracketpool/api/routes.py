from dataclasses import replace
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from bracketpool import __version__
from bracketpool.api.dependencies import get_clock, get_site_config, get_tournament_config
from bracketpool.api.schema import (
    CheckCreationResponse,
    StandingsRequest,
    StandingsResponse,
    ValidationResponse,
)
from bracketpool.bracket import Bracket, Game
from bracketpool.exceptions import SubmissionShapeError
from bracketpool.gate import Clock, check_submission_allowed
from bracketpool.monitoring import record_gate_decision, record_validation
from bracketpool.scoring import compute_standings
from bracketpool.site_config import SiteConfig
from bracketpool.tournament import TournamentConfig
from bracketpool.utils.observability import Logger, get_metrics
from bracketpool.validation import validate_bracket_submission

router = APIRouter()
logger = Logger(__name__)
metrics = get_metrics()

INVALID_SUBMISSION = "Invalid bracket submission"


def _with_site_rules(config: TournamentConfig, site_config: SiteConfig) -> TournamentConfig:
    """Tie-breaker bounds are maintained by admins in the site config."""
    return replace(config, tie_breaker_range=(site_config.tie_breaker_low, site_config.tie_breaker_high))


def _invalid_submission(error: SubmissionShapeError) -> JSONResponse:
    metrics.contract_violations.labels(error_type=type(error).__name__).inc()
    logger.log_warning("bracket_submission_malformed", error=str(error))
    return JSONResponse(status_code=400, content={"success": False, "error": INVALID_SUBMISSION})


@router.get("/health")
def health_check():
    """
    Service health check.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": __version__,
    }


@router.get("/metrics")
def metrics_endpoint():
    """
    Expose Prometheus metrics.
    """
    return Response(generate_latest(metrics.registry), media_type=CONTENT_TYPE_LATEST)


@router.get(
    "/bracket/check-creation",
    response_model=CheckCreationResponse,
    response_model_exclude_none=True,
)
def check_creation(
    site_config: SiteConfig = Depends(get_site_config),
    clock: Clock = Depends(get_clock),
):
    """
    Report whether bracket creation is currently allowed.
    """
    decision = check_submission_allowed(site_config, clock=clock)
    record_gate_decision(decision, site_config, source="api")
    return {"success": True, **decision.to_dict()}


@router.post("/bracket/validate", response_model=ValidationResponse)
def validate_bracket(
    payload: Any = Body(...),
    config: TournamentConfig = Depends(get_tournament_config),
    site_config: SiteConfig = Depends(get_site_config),
):
    """
    Validate a bracket without submitting it. An invalid bracket is still a
    successful response.
    """
    try:
        result = validate_bracket_submission(payload, _with_site_rules(config, site_config))
    except SubmissionShapeError as e:
        return _invalid_submission(e)
    record_validation(result, source="api")
    return {"success": True, "validation": result.to_dict()}


@router.post("/bracket", response_model=ValidationResponse)
def submit_bracket(
    payload: Any = Body(...),
    config: TournamentConfig = Depends(get_tournament_config),
    site_config: SiteConfig = Depends(get_site_config),
    clock: Clock = Depends(get_clock),
):
    """
    Submit a new bracket: the submission gate is consulted first, then the
    bracket is validated. Storing accepted brackets is the caller's job.
    """
    decision = check_submission_allowed(site_config, clock=clock)
    record_gate_decision(decision, site_config, source="api")
    if not decision.allowed:
        logger.log_event("bracket_submission_blocked", reason=decision.reason)
        return JSONResponse(
            status_code=403,
            content={"success": False, "allowed": False, "reason": decision.reason},
        )

    try:
        result = validate_bracket_submission(payload, _with_site_rules(config, site_config))
    except SubmissionShapeError as e:
        return _invalid_submission(e)

    record_validation(result, source="api")
    return {"success": True, "validation": result.to_dict()}


@router.post("/standings", response_model=StandingsResponse)
def standings(
    request: StandingsRequest,
    config: TournamentConfig = Depends(get_tournament_config),
):
    """
    Rank posted brackets against posted results.
    """
    try:
        brackets = [Bracket.from_dict(b) for b in request.brackets]
        results = [Game.from_dict(g) for g in request.results]
    except (AttributeError, KeyError, TypeError, ValueError, OverflowError) as e:
        metrics.contract_violations.labels(error_type=type(e).__name__).inc()
        logger.log_warning("standings_request_malformed", error=str(e))
        return JSONResponse(status_code=400, content={"success": False, "error": "Invalid standings request"})

    table = compute_standings(brackets, results, config, actual_tie_breaker=request.actualTieBreaker)
    rows = table.drop("player_email").to_dicts()
    return {
        "success": True,
        "count": len(rows),
        "standings": rows,
        "generated_at": datetime.now().isoformat(),
    }
