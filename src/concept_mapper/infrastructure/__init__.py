"""
Infrastructure Components - Logging and monitoring

This module provides:
- Prometheus metrics and duration trackers
- Structured logging configuration

License: MIT
"""

from .monitoring import (
    setup_prometheus_metrics,
    query_duration_tracker,
    embedding_duration_tracker,
    vector_search_duration_tracker,
    llm_generation_duration_tracker,
    record_error,
)
from .logging_config import (
    setup_logging,
    setup_production_logging,
    setup_development_logging,
    JSONFormatter,
)

__all__ = [
    "setup_prometheus_metrics",
    "query_duration_tracker",
    "embedding_duration_tracker",
    "vector_search_duration_tracker",
    "llm_generation_duration_tracker",
    "record_error",
    "setup_logging",
    "setup_production_logging",
    "setup_development_logging",
    "JSONFormatter",
]
