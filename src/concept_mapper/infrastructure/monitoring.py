"""
Monitoring - Prometheus metrics and performance tracking

Part of the Concept Mapper implementation.

License: MIT
"""

import time
import logging
from contextlib import contextmanager

logger = logging.getLogger(__name__)

# Prometheus metrics (initialized lazily)
_metrics_initialized = False
REQUEST_COUNT = None
REQUEST_DURATION = None
QUERY_DURATION = None
EMBEDDING_DURATION = None
VECTOR_SEARCH_DURATION = None
LLM_GENERATION_DURATION = None
ERROR_COUNT = None
INDEX_SIZE = None


def setup_prometheus_metrics() -> None:
    """Initialize Prometheus metrics for the concept mapper."""
    global _metrics_initialized
    global REQUEST_COUNT, REQUEST_DURATION, QUERY_DURATION
    global EMBEDDING_DURATION, VECTOR_SEARCH_DURATION, LLM_GENERATION_DURATION
    global ERROR_COUNT, INDEX_SIZE

    if _metrics_initialized:
        return

    try:
        from prometheus_client import Counter, Histogram, Gauge

        # HTTP request metrics
        REQUEST_COUNT = Counter(
            "concept_mapper_http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
        )

        REQUEST_DURATION = Histogram(
            "concept_mapper_http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
        )

        # Pipeline metrics
        QUERY_DURATION = Histogram(
            "concept_mapper_query_duration_seconds",
            "Concept mapping query duration in seconds",
            ["outcome"],
        )

        EMBEDDING_DURATION = Histogram(
            "concept_mapper_embedding_duration_seconds", "Embedding request duration in seconds"
        )

        VECTOR_SEARCH_DURATION = Histogram(
            "concept_mapper_vector_search_duration_seconds", "Vector search duration in seconds"
        )

        LLM_GENERATION_DURATION = Histogram(
            "concept_mapper_llm_generation_duration_seconds",
            "Model generation duration in seconds",
            ["model"],
        )

        ERROR_COUNT = Counter(
            "concept_mapper_errors_total", "Total errors", ["error_type", "component"]
        )

        INDEX_SIZE = Gauge("concept_mapper_index_vectors", "Number of vectors in the index")

        _metrics_initialized = True
        logger.info("Prometheus metrics initialized")

    except ImportError:
        logger.warning("prometheus_client not available. Metrics disabled.")


@contextmanager
def query_duration_tracker():
    """
    Context manager to track end-to-end query duration.

    Usage:
        with query_duration_tracker():
            # Process query
            pass
    """
    start_time = time.time()
    outcome = "success"
    try:
        yield
    except Exception:
        outcome = "error"
        raise
    finally:
        if QUERY_DURATION:
            QUERY_DURATION.labels(outcome=outcome).observe(time.time() - start_time)


@contextmanager
def embedding_duration_tracker():
    """Context manager to track embedding request duration."""
    start_time = time.time()
    try:
        yield
    finally:
        if EMBEDDING_DURATION:
            EMBEDDING_DURATION.observe(time.time() - start_time)


@contextmanager
def vector_search_duration_tracker():
    """Context manager to track vector search duration."""
    start_time = time.time()
    try:
        yield
    finally:
        if VECTOR_SEARCH_DURATION:
            VECTOR_SEARCH_DURATION.observe(time.time() - start_time)


@contextmanager
def llm_generation_duration_tracker(model: str = "unknown"):
    """
    Context manager to track model generation duration.

    Args:
        model: Model name for labeling
    """
    start_time = time.time()
    try:
        yield
    finally:
        if LLM_GENERATION_DURATION:
            LLM_GENERATION_DURATION.labels(model=model).observe(time.time() - start_time)


def record_request(method: str, endpoint: str, status_code: int, duration: float) -> None:
    """Record one HTTP request."""
    if REQUEST_COUNT:
        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status_code=status_code).inc()
    if REQUEST_DURATION:
        REQUEST_DURATION.labels(method=method, endpoint=endpoint).observe(duration)


def record_error(error_type: str, component: str) -> None:
    """
    Record an error occurrence.

    Args:
        error_type: Type of error (e.g., 'UpstreamError', 'ResponseFormatError')
        component: Component where error occurred (e.g., 'embedding', 'llm')
    """
    if ERROR_COUNT:
        ERROR_COUNT.labels(error_type=error_type, component=component).inc()


def set_index_size(size: int) -> None:
    """Publish the number of indexed vectors."""
    if INDEX_SIZE:
        INDEX_SIZE.set(size)


def metrics_enabled() -> bool:
    return _metrics_initialized

