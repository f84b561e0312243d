# bracketpool/utils/observability.py
import logging
import os
from typing import Optional
import structlog
import contextvars
from prometheus_client import Counter, Histogram, Gauge, CollectorRegistry

# Correlation ID for request tracing
CORRELATION_ID = contextvars.ContextVar('correlation_id', default=None)

class ObservabilityConfig:
    """Configuration for observability stack."""

    def __init__(self):
        self.environment = os.getenv('ENVIRONMENT', 'development')
        self.log_level = os.getenv('LOG_LEVEL', 'INFO')
        self.enable_metrics = os.getenv('ENABLE_METRICS', 'true').lower() == 'true'
        self.log_format = 'json' if self.environment == 'production' else 'console'

class MetricsRegistry:
    """Centralized metrics management."""

    def __init__(self):
        self.registry = CollectorRegistry()
        self._init_metrics()

    def _init_metrics(self):
        """Initialize all metrics with proper naming conventions."""

        # HISTOGRAMS (timing data)
        self.request_latency = Histogram(
            'api_request_latency_seconds',
            'API request latency in seconds',
            labelnames=['route'],
            buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0),
            registry=self.registry
        )

        # COUNTERS (monotonic increases)
        self.bracket_validations = Counter(
            'bracket_validations_total',
            'Bracket submissions validated',
            labelnames=['outcome'],  # 'valid' or 'invalid'
            registry=self.registry
        )

        self.submission_gate_decisions = Counter(
            'submission_gate_decisions_total',
            'Submission gate decisions',
            labelnames=['decision'],  # 'allowed', 'disabled', 'deadline_passed'
            registry=self.registry
        )

        self.site_config_fallbacks = Counter(
            'site_config_fallbacks_total',
            'Times the fallback site config was served',
            registry=self.registry
        )

        self.contract_violations = Counter(
            'contract_violations_total',
            'Requests rejected for malformed payloads or configuration',
            labelnames=['error_type'],
            registry=self.registry
        )

        # GAUGES (point-in-time snapshots)
        self.last_standings_size = Gauge(
            'standings_brackets_ranked',
            'Number of brackets in the last computed standings',
            registry=self.registry
        )

class StructlogConfig:
    """Structured logging configuration."""

    @staticmethod
    def configure(env: str = 'development', log_level: str = 'INFO'):
        """
        Configure structlog with environment-appropriate settings.

        Production: JSON output (machine-readable)
        Development: Console output (human-readable)
        """

        shared_processors = [
            # Add correlation ID to all logs
            structlog.contextvars.merge_contextvars,
            # Add log level
            structlog.processors.add_log_level,
            # Add timestamp
            structlog.processors.TimeStamper(fmt='iso'),
            # Add exception info
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
        ]

        if env == 'production':
            processors = shared_processors + [
                structlog.processors.dict_tracebacks,
                structlog.processors.JSONRenderer(),
            ]
        else:
            processors = shared_processors + [
                structlog.dev.ConsoleRenderer(),
            ]

        structlog.configure(
            processors=processors,
            wrapper_class=structlog.make_filtering_bound_logger(
                logging.getLevelName(log_level.upper())
            ),
            context_class=dict,
            logger_factory=structlog.PrintLoggerFactory(),
            cache_logger_on_first_use=True,
        )

class Logger:
    """Wrapper for structured logging with context awareness."""

    def __init__(self, module_name: str):
        self.logger = structlog.get_logger(module_name)
        self.module_name = module_name

    def with_correlation_id(self, correlation_id: str):
        """Bind correlation ID to all subsequent logs."""
        CORRELATION_ID.set(correlation_id)
        return self.logger.bind(correlation_id=correlation_id)

    def log_event(self, event: str, **kwargs):
        """Log structured event with automatic context."""
        corr_id = CORRELATION_ID.get()
        ctx = {'correlation_id': corr_id, 'module': self.module_name}
        ctx.update(kwargs)
        return self.logger.info(event, **ctx)

    def log_warning(self, event: str, **kwargs):
        """Log a recoverable problem."""
        corr_id = CORRELATION_ID.get()
        ctx = {'correlation_id': corr_id, 'module': self.module_name}
        ctx.update(kwargs)
        return self.logger.warning(event, **ctx)

    def log_error(self, event: str, exc_info=None, **kwargs):
        """Log error with exception details."""
        corr_id = CORRELATION_ID.get()
        ctx = {'correlation_id': corr_id, 'module': self.module_name}
        ctx.update(kwargs)
        return self.logger.error(event, exc_info=exc_info, **ctx)

def initialize_observability(environment: Optional[str] = None, log_level: Optional[str] = None):
    """One-stop initialization for all observability components."""
    config = ObservabilityConfig()
    environment = environment or config.environment
    config.log_level = log_level or config.log_level
    config.log_format = "json" if environment == "production" else "console"
    StructlogConfig.configure(env=environment, log_level=config.log_level)
    metrics = MetricsRegistry()

    logger = structlog.get_logger(__name__)
    logger.info(
        'observability_initialized',
        environment=environment,
        log_format=config.log_format,
        metrics_enabled=config.enable_metrics,
    )

    return metrics, config

# Global metrics instance
METRICS = None
CONFIG = None

def get_metrics() -> MetricsRegistry:
    """Lazy-load metrics singleton."""
    global METRICS, CONFIG
    if METRICS is None:
        METRICS, CONFIG = initialize_observability()
    return METRICS
