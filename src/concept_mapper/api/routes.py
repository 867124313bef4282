"""
API Routes - HTTP endpoints for concept mapping

Part of the Concept Mapper implementation.

License: MIT
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from typing import List, Dict, Any, Optional
import logging

from .dependencies import get_mapping_service
from ..core.citation import parse_reference
from ..service import ConceptMappingService

logger = logging.getLogger(__name__)

router = APIRouter()


# Request/Response models
class MapRequest(BaseModel):
    """Request model for concept mapping."""

    transcript: Optional[str] = Field(default=None, description="Video transcript segment")


class ConceptItem(BaseModel):
    """One concept as returned to the reader app."""

    concept: str
    explanation: str
    reference: str


class CitationModel(BaseModel):
    """Reference string split into its parts."""

    grade: str
    subject: str
    chapter: str
    section: str
    page: str
    formatted: str


class DetailedConceptItem(ConceptItem):
    """Concept with its parsed citation."""

    citation: CitationModel


class SourceItem(BaseModel):
    """A chunk that was given to the model as context."""

    rank: int
    score: float
    source_file: str
    page_count: Optional[int] = None
    sequence_index: int
    preview: str


class DetailedMapResponse(BaseModel):
    """Response model for detailed concept mapping."""

    concepts: List[DetailedConceptItem]
    sources: List[SourceItem]
    context_used: bool
    metadata: Dict[str, Any]


class ErrorResponse(BaseModel):
    """Error response model."""

    message: str
    error_details: Optional[str] = None
    raw_response: Optional[str] = None


ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Empty or invalid transcript"},
    502: {"model": ErrorResponse, "description": "Upstream model failure or unparseable reply"},
    503: {"model": ErrorResponse, "description": "Index still being built"},
    504: {"model": ErrorResponse, "description": "Upstream call timed out"},
}


@router.post("/map", response_model=List[ConceptItem], responses=ERROR_RESPONSES, tags=["Mapping"])
async def map_concepts(
    request: MapRequest,
    service: ConceptMappingService = Depends(get_mapping_service),
):
    """
    Map a transcript segment to textbook concepts.

    Returns:
        JSON array of {concept, explanation, reference}
    """
    result = await service.map_concepts_async(request.transcript)
    logger.info(f"Returning {len(result.concepts)} concepts")
    return [concept.to_dict() for concept in result.concepts]


@router.post(
    "/map/detailed",
    response_model=DetailedMapResponse,
    responses=ERROR_RESPONSES,
    tags=["Mapping"],
)
async def map_concepts_detailed(
    request: MapRequest,
    service: ConceptMappingService = Depends(get_mapping_service),
):
    """
    Map a transcript segment and include parsed citations and retrieval sources.
    """
    result = await service.map_concepts_async(request.transcript)

    concepts = []
    for concept in result.concepts:
        citation = parse_reference(concept.reference)
        concepts.append(
            {
                **concept.to_dict(),
                "citation": {
                    "grade": citation.grade,
                    "subject": citation.subject,
                    "chapter": citation.chapter,
                    "section": citation.section,
                    "page": citation.page,
                    "formatted": citation.format(),
                },
            }
        )

    return {
        "concepts": concepts,
        "sources": [source.to_dict() for source in result.sources],
        "context_used": result.context_used,
        "metadata": result.metadata,
    }
