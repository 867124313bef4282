"""
Concept Mapping Service - Build-once, read-many owner of the index and models

Part of the Concept Mapper implementation.

License: MIT
"""

from typing import Dict, Any, Optional
from enum import Enum
from pathlib import Path
import asyncio
import logging
import threading
import time

from .config import MapperConfig
from .core.chunker import TextChunker
from .core.document_loader import DocumentLoader
from .core.embedding_generator import EmbeddingGenerator
from .core.generative_model import OpenAIChatModel
from .core.models import MappingResult
from .core.query import ConceptMappingPipeline
from .core.vector_store import InMemoryVectorStore
from .exceptions import IngestionError, NotReadyError

logger = logging.getLogger(__name__)


class IndexState(Enum):
    """Lifecycle of the vector index within one process."""

    PENDING = "pending"
    INGESTING = "ingesting"
    READY = "ready"
    FAILED = "failed"


class ConceptMappingService:
    """
    Concept mapping service constructed once at startup.

    Owns the loader, chunker, providers, vector index and query pipeline,
    and gates queries on the index being fully built.
    """

    def __init__(
        self,
        config: MapperConfig,
        embedding_provider=None,
        model=None,
        loader: Optional[DocumentLoader] = None,
        chunker: Optional[TextChunker] = None,
        vector_store=None,
    ):
        """
        Initialize the service; nothing is loaded until build_index().

        Args:
            config: Loaded configuration
            embedding_provider: EmbeddingProvider (default: OpenAI embeddings)
            model: GenerativeModel (default: OpenAI chat model)
            loader: Document loader (default from config)
            chunker: Text chunker (default from config)
            vector_store: Empty vector index (default: in-memory)
        """
        self.config = config

        self.embedding_provider = embedding_provider or EmbeddingGenerator(
            model=config.embedding.model,
            batch_size=config.embedding.batch_size,
            timeout=config.embedding.timeout,
            max_retries=config.embedding.max_retries,
        )
        self.model = model or OpenAIChatModel(
            model=config.llm.model,
            temperature=config.llm.temperature,
            max_tokens=config.llm.max_tokens,
            timeout=config.llm.timeout,
            max_retries=config.llm.max_retries,
        )
        self.loader = loader or DocumentLoader(
            extensions=config.ingestion.file_extensions, strict=config.ingestion.strict
        )
        self.chunker = chunker or TextChunker(
            chunk_size=config.ingestion.chunk_size, chunk_overlap=config.ingestion.chunk_overlap
        )
        self.vector_store = vector_store if vector_store is not None else InMemoryVectorStore()

        self.pipeline = ConceptMappingPipeline(
            embedding_provider=self.embedding_provider,
            vector_store=self.vector_store,
            model=self.model,
            top_k=config.retrieval.top_k,
            max_context_length=config.retrieval.max_context_length,
            call_timeout=config.retrieval.call_timeout,
            max_workers=config.retrieval.max_workers,
        )

        self._state = IndexState.PENDING
        self._state_lock = threading.Lock()
        self.ingestion_error: Optional[str] = None
        self.ingestion_stats: Dict[str, Any] = {}

    @property
    def state(self) -> IndexState:
        return self._state

    def is_ready(self) -> bool:
        """Check if the service can answer queries."""
        return self._state is IndexState.READY

    def build_index(self) -> Dict[str, Any]:
        """
        Load, chunk and embed the source documents.

        Returns:
            Ingestion statistics

        Raises:
            IngestionError: If any document cannot be loaded or embedded
        """
        with self._state_lock:
            if self._state is IndexState.READY:
                return self.ingestion_stats
            if self._state is IndexState.INGESTING:
                raise RuntimeError("Ingestion is already running")
            if self._state is IndexState.FAILED:
                raise IngestionError(
                    f"Ingestion already failed for this process: {self.ingestion_error}"
                )
            self._state = IndexState.INGESTING

        start_time = time.time()
        documents_dir = Path(self.config.ingestion.documents_dir)
        logger.info(f"Starting ingestion from {documents_dir}")

        try:
            documents = self.loader.load_documents(documents_dir)
            chunks = self.chunker.split_documents(documents)
            if not chunks:
                logger.warning("Source documents produced no chunks; index will be empty")

            self.vector_store.build(
                chunks,
                self.embedding_provider,
                batch_size=self.config.embedding.batch_size,
                max_workers=self.config.ingestion.max_concurrency,
            )
        except Exception as e:
            self.ingestion_error = str(e)
            self._state = IndexState.FAILED
            logger.critical(f"Failed to initialize concept mapping index: {str(e)}", exc_info=True)
            if isinstance(e, IngestionError):
                raise
            raise IngestionError(f"Ingestion failed: {str(e)}") from e

        self.ingestion_stats = {
            "documents": len(documents),
            "chunks": len(chunks),
            "dimension": self.vector_store.dimension,
            "duration": round(time.time() - start_time, 3),
        }
        self._state = IndexState.READY
        logger.info("Vector index is ready for queries", extra=self.ingestion_stats)

        return self.ingestion_stats

    async def initialize(self) -> Dict[str, Any]:
        """Build the index in a worker thread without blocking the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.build_index)

    def _ensure_ready(self) -> None:
        state = self._state
        if state is IndexState.READY:
            return
        if state is IndexState.FAILED:
            raise NotReadyError(
                "AI mapping service failed to initialize. Please check the backend logs."
            )
        raise NotReadyError(
            "AI mapping service not initialized yet. Please try again once ingestion completes."
        )

    def map_concepts(self, transcript: str) -> MappingResult:
        """
        Map a transcript segment to textbook concepts.

        Raises:
            NotReadyError: If the index is not built
            InvalidInputError: If the transcript is empty
            UpstreamError: If a provider call fails or times out
            ResponseFormatError: If the model reply cannot be parsed
        """
        self._ensure_ready()
        return self.pipeline.query(transcript)

    async def map_concepts_async(self, transcript: str) -> MappingResult:
        """Run map_concepts in a worker thread."""
        self._ensure_ready()
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.pipeline.query, transcript)

    def stats(self) -> Dict[str, Any]:
        """Index and ingestion statistics."""
        return {"state": self._state.value, "index": self.vector_store.stats(), **self.ingestion_stats}

    def health_check(self) -> Dict[str, Any]:
        """
        Health status of the service.

        Returns:
            Dictionary with readiness, index statistics and providers
        """
        return {
            "healthy": self._state is not IndexState.FAILED,
            "state": self._state.value,
            "index": self.vector_store.stats(),
            "ingestion": self.ingestion_stats,
            "error": self.ingestion_error,
            "models": {
                "embedding": getattr(self.embedding_provider, "model", "unknown"),
                "llm": getattr(self.model, "model", "unknown"),
            },
            "timestamp": time.time(),
        }

    def close(self) -> None:
        """Cleanup resources on shutdown."""
        logger.info("Cleaning up concept mapping service resources")
        self.pipeline.close()
