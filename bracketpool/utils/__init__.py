# Utils module
from .observability import (
    CORRELATION_ID,
    Logger,
    MetricsRegistry,
    get_metrics,
    initialize_observability,
)

__all__ = [
    "CORRELATION_ID",
    "Logger",
    "MetricsRegistry",
    "get_metrics",
    "initialize_observability",
]
