"""
Concept Mapper - Map educational video transcripts to NCERT textbook concepts

This package provides the components needed to ingest a textbook corpus,
build an in-memory vector index and serve concept mapping queries.

Ingestion:
- Document loading (PDF, DOCX, plain text)
- Overlapping character chunking
- Embedding generation and vector indexing

Query:
- Retrieval of the most similar chunks
- Prompted concept identification with a generative model
- Parsing of model replies and textbook citations

Service:
- FastAPI server with a readiness gate
- Monitoring and logging

License: MIT
"""

__version__ = "1.0.0"

# Core exports
from .core.document_loader import DocumentLoader
from .core.chunker import TextChunker
from .core.embedding_generator import EmbeddingProvider, EmbeddingGenerator
from .core.generative_model import GenerativeModel, OpenAIChatModel
from .core.vector_store import VectorStoreBase, InMemoryVectorStore
from .core.query import ConceptMappingPipeline, QueryState
from .core.response_parser import parse_concepts_response
from .core.citation import parse_reference
from .core.models import Chunk, ConceptResult, Citation, MappingResult

# Service exports
from .service import ConceptMappingService, IndexState

# Error exports
from .exceptions import (
    ConceptMapperError,
    IngestionError,
    NotReadyError,
    InvalidInputError,
    UpstreamError,
    ResponseFormatError,
)

# Infrastructure exports
from .infrastructure.monitoring import setup_prometheus_metrics, query_duration_tracker

# Configuration exports
from .config import MapperConfig, ConfigManager, load_config

# Utility exports
from .utils.helpers import truncate_text, format_duration

__all__ = [
    # Core
    "DocumentLoader",
    "TextChunker",
    "EmbeddingProvider",
    "EmbeddingGenerator",
    "GenerativeModel",
    "OpenAIChatModel",
    "VectorStoreBase",
    "InMemoryVectorStore",
    "ConceptMappingPipeline",
    "QueryState",
    "parse_concepts_response",
    "parse_reference",
    "Chunk",
    "ConceptResult",
    "Citation",
    "MappingResult",
    # Service
    "ConceptMappingService",
    "IndexState",
    # Errors
    "ConceptMapperError",
    "IngestionError",
    "NotReadyError",
    "InvalidInputError",
    "UpstreamError",
    "ResponseFormatError",
    # Infrastructure
    "setup_prometheus_metrics",
    "query_duration_tracker",
    # Configuration
    "MapperConfig",
    "ConfigManager",
    "load_config",
    # Utilities
    "truncate_text",
    "format_duration",
]
