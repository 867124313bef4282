"""
API Dependencies - Dependency injection for FastAPI

Part of the Concept Mapper implementation.

License: MIT
"""

from fastapi import Request

from ..service import ConceptMappingService


def get_mapping_service(request: Request) -> ConceptMappingService:
    """Return the service instance created at application startup."""
    return request.app.state.mapping_service
