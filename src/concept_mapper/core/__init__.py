"""
Core Components - Ingestion and retrieval building blocks

This module contains:
- Document loading and chunking
- Embedding generation
- In-memory vector index
- Concept mapping query pipeline and response parsing

License: MIT
"""

from .models import RawDocument, Chunk, IndexedVector, SearchResult, ConceptResult, Citation, MappingResult
from .document_loader import DocumentLoader, load_documents
from .chunker import TextChunker
from .embedding_generator import EmbeddingProvider, EmbeddingGenerator
from .generative_model import GenerativeModel, OpenAIChatModel
from .vector_store import VectorStoreBase, InMemoryVectorStore
from .query import ConceptMappingPipeline, QueryState
from .response_parser import parse_concepts_response, is_no_concepts_reply, to_concept_results
from .citation import parse_reference

__all__ = [
    "RawDocument",
    "Chunk",
    "IndexedVector",
    "SearchResult",
    "ConceptResult",
    "Citation",
    "MappingResult",
    "DocumentLoader",
    "load_documents",
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
    "is_no_concepts_reply",
    "to_concept_results",
    "parse_reference",
]
