"""
Outcome recording for the validator and the submission gate.

Both checks are side-effect free; the API handlers and CLI commands call
these after each check to emit the log event and bump the counters.
"""
from .bracket import BracketValidationResult
from .gate import SubmissionDecision
from .site_config import SiteConfig
from .utils.observability import Logger, get_metrics

logger = Logger(__name__)


def record_validation(result: BracketValidationResult, source: str) -> None:
    outcome = "valid" if result.is_valid else "invalid"
    get_metrics().bracket_validations.labels(outcome=outcome).inc()
    logger.log_event(
        "bracket_validated",
        source=source,
        is_valid=result.is_valid,
        error_count=len(result.errors),
        warning_count=len(result.warnings),
    )


def gate_label(decision: SubmissionDecision, site_config: SiteConfig) -> str:
    """Metric label naming which trigger, if any, closed the gate."""
    if decision.allowed:
        return "allowed"
    # The toggle wins when both triggers fire
    return "disabled" if site_config.stop_submit_toggle else "deadline_passed"


def record_gate_decision(decision: SubmissionDecision, site_config: SiteConfig, source: str) -> None:
    label = gate_label(decision, site_config)
    get_metrics().submission_gate_decisions.labels(decision=label).inc()
    logger.log_event("submission_gate_checked", source=source, decision=label)
