"""
Exceptions - Typed error taxonomy for the concept mapping service

Part of the Concept Mapper implementation.

License: MIT
"""

from typing import Optional


class ConceptMapperError(Exception):
    """Base class for all concept mapper errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class IngestionError(ConceptMapperError):
    """Raised when source documents cannot be loaded or embedded."""

    def __init__(self, message: str, source: Optional[str] = None):
        self.source = source
        super().__init__(message)


class NotReadyError(ConceptMapperError):
    """Raised when a query arrives before the index has been built."""

    pass


class InvalidInputError(ConceptMapperError):
    """Raised when the transcript segment is empty or not text."""

    pass


class UpstreamError(ConceptMapperError):
    """
    Raised when the embedding provider or the generative model fails.

    Attributes:
        component: Which upstream failed ('embedding' or 'llm')
        timed_out: True when the call exceeded its timeout
    """

    def __init__(self, message: str, component: str = "unknown", timed_out: bool = False):
        self.component = component
        self.timed_out = timed_out
        super().__init__(message)


class ResponseFormatError(ConceptMapperError):
    """
    Raised when a model reply cannot be parsed into a list of objects.

    The raw reply is always attached for diagnostics.
    """

    def __init__(self, message: str, raw_response: str = "", details: Optional[str] = None):
        self.raw_response = raw_response
        self.details = details
        super().__init__(message)
