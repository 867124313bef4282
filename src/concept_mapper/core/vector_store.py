"""
Vector Store - In-memory storage and similarity search for chunk embeddings

Part of the Concept Mapper implementation.
Ingestion and query: Vector index

License: MIT
"""

from typing import List, Dict, Any, Optional, Sequence
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
import logging
import threading
import time

import numpy as np

from .models import Chunk, IndexedVector, SearchResult
from ..exceptions import IngestionError, NotReadyError
from ..infrastructure.monitoring import set_index_size

logger = logging.getLogger(__name__)


class VectorStoreBase(ABC):
    """Abstract base class for vector indexes."""

    @abstractmethod
    def build(self, chunks: Sequence[Chunk], embedder, **kwargs: Any) -> None:
        """Embed and store every chunk."""
        pass

    @abstractmethod
    def search(self, query_vector: Sequence[float], k: int = 5) -> List[SearchResult]:
        """Return the k most similar chunks."""
        pass

    @abstractmethod
    def is_ready(self) -> bool:
        """Check whether the index has been built."""
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass


class InMemoryVectorStore(VectorStoreBase):
    """
    Exact cosine-similarity index held in a numpy matrix.

    The index is built once and is read-only afterwards. A linear scan is
    fast enough for a few thousand chunks. Searches may run concurrently
    because the arrays are published only after a successful build and
    never mutated.
    """

    def __init__(self) -> None:
        self._entries: List[IndexedVector] = []
        self._matrix: Optional[np.ndarray] = None
        self._dimension: Optional[int] = None
        self._ready = False
        self._build_lock = threading.Lock()
        self._build_started = False

    @property
    def dimension(self) -> Optional[int]:
        return self._dimension

    @property
    def entries(self) -> List[IndexedVector]:
        return list(self._entries)

    def is_ready(self) -> bool:
        return self._ready

    def __len__(self) -> int:
        return len(self._entries)

    def build(
        self,
        chunks: Sequence[Chunk],
        embedder,
        batch_size: int = 100,
        max_workers: int = 3,
    ) -> None:
        """
        Embed every chunk and publish the index.

        Args:
            chunks: Chunks to index, in insertion order
            embedder: EmbeddingProvider used for every chunk
            batch_size: Number of chunks per embedding call
            max_workers: Maximum concurrent embedding calls

        Raises:
            IngestionError: If any chunk fails to embed; nothing is published
            RuntimeError: If the index was already built
        """
        with self._build_lock:
            if self._build_started:
                raise RuntimeError("Vector index is read-only once built")
            self._build_started = True

        start_time = time.time()
        chunks = list(chunks)
        logger.info(f"Building vector index from {len(chunks)} chunks")

        try:
            vectors = self._embed_chunks(chunks, embedder, batch_size, max_workers)
            matrix = self._to_matrix(vectors)
        except IngestionError:
            self._build_started = False
            raise
        except Exception as e:
            self._build_started = False
            logger.error(f"Error building vector index: {str(e)}")
            raise IngestionError(f"Failed to embed chunks: {str(e)}") from e

        self._entries = [
            IndexedVector(chunk=chunk, vector=tuple(float(x) for x in vector))
            for chunk, vector in zip(chunks, vectors)
        ]
        self._dimension = matrix.shape[1] if len(chunks) else None
        self._matrix = self._normalize(matrix)
        self._ready = True
        set_index_size(len(self._entries))

        logger.info(
            f"Vector index ready with {len(self._entries)} vectors "
            f"in {time.time() - start_time:.2f} seconds"
        )

    def _embed_chunks(
        self, chunks: List[Chunk], embedder, batch_size: int, max_workers: int
    ) -> List[List[float]]:
        batches = [chunks[i : i + batch_size] for i in range(0, len(chunks), batch_size)]
        if not batches:
            return []

        def embed_batch(batch: List[Chunk]) -> List[List[float]]:
            vectors = embedder.embed_batch([chunk.text for chunk in batch])
            if len(vectors) != len(batch):
                raise IngestionError(
                    f"Embedding provider returned {len(vectors)} vectors for {len(batch)} chunks"
                )
            return vectors

        # map() yields in submission order, so vectors stay aligned with chunks
        with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
            results = list(executor.map(embed_batch, batches))

        vectors: List[List[float]] = []
        for batch_vectors in results:
            vectors.extend(batch_vectors)
        return vectors

    def _to_matrix(self, vectors: List[List[float]]) -> np.ndarray:
        if not vectors:
            return np.zeros((0, 0), dtype=np.float64)

        dimensions = {len(vector) for vector in vectors}
        if len(dimensions) != 1:
            raise IngestionError(f"Inconsistent embedding dimensions: {sorted(dimensions)}")
        if 0 in dimensions:
            raise IngestionError("Embedding provider returned empty vectors")

        return np.asarray(vectors, dtype=np.float64)

    @staticmethod
    def _normalize(matrix: np.ndarray) -> np.ndarray:
        """Scale rows to unit length; zero rows stay zero."""
        if matrix.size == 0:
            return matrix
        norms = np.linalg.norm(matrix, axis=1, keepdims=True)
        return np.divide(matrix, norms, out=np.zeros_like(matrix), where=norms > 0)

    def search(self, query_vector: Sequence[float], k: int = 5) -> List[SearchResult]:
        """
        Search for the chunks most similar to a query vector.

        Args:
            query_vector: Query embedding
            k: Maximum number of results

        Returns:
            Results ordered by descending cosine similarity, ties broken by
            insertion order

        Raises:
            NotReadyError: If the index has not been built
            ValueError: If k is negative or the query has the wrong dimension
        """
        if not self._ready:
            raise NotReadyError("Vector index has not been built yet")
        if k < 0:
            raise ValueError(f"k must be non-negative, got {k}")
        if k == 0 or not self._entries:
            return []

        query = np.asarray(query_vector, dtype=np.float64).ravel()
        if query.shape[0] != self._dimension:
            raise ValueError(
                f"Query dimension {query.shape[0]} does not match index dimension {self._dimension}"
            )

        norm = np.linalg.norm(query)
        if norm == 0:
            scores = np.zeros(len(self._entries))
        else:
            scores = self._matrix @ (query / norm)

        # Stable sort on the negated scores keeps earlier insertions first on ties
        order = np.argsort(-scores, kind="stable")[:k]

        return [
            SearchResult(chunk=self._entries[i].chunk, score=float(scores[i]), rank=rank)
            for rank, i in enumerate(order, start=1)
        ]

    def stats(self) -> Dict[str, Any]:
        """Summary of the index contents."""
        return {
            "ready": self._ready,
            "vectors": len(self._entries),
            "dimension": self._dimension,
            "sources": len({entry.chunk.source_path for entry in self._entries}),
        }
