"""
Embedding Generator - Turn chunks and transcript segments into vectors

Part of the Concept Mapper implementation.
Ingestion and query: Embedding provider

License: MIT
"""

from typing import List, Optional, Sequence
from abc import ABC, abstractmethod
import logging
import time

import openai

from ..exceptions import UpstreamError
from ..infrastructure.monitoring import embedding_duration_tracker

logger = logging.getLogger(__name__)


class EmbeddingProvider(ABC):
    """Narrow interface over a remote embedding model."""

    @abstractmethod
    def embed(self, text: str) -> List[float]:
        """Embed a single text."""
        pass

    def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        """Embed several texts; providers with a batch endpoint override this."""
        return [self.embed(text) for text in texts]


class EmbeddingGenerator(EmbeddingProvider):
    """
    Generate embeddings using OpenAI's embedding models.

    Every vector returned during one process lifetime has the same dimension;
    a provider answering with a different size is reported as an upstream
    failure.
    """

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        batch_size: int = 100,
        timeout: float = 30.0,
        max_retries: int = 0,
        client=None,
    ):
        """
        Initialize the embedding generator.

        Args:
            model: OpenAI embedding model to use
            batch_size: Number of texts to send in each request
            timeout: Per-request timeout in seconds
            max_retries: Retries performed by the SDK itself
            client: Pre-built OpenAI client (optional)
        """
        self.model = model
        self.batch_size = batch_size
        self.timeout = timeout
        self.max_retries = max_retries
        self._client = client
        self.dimension: Optional[int] = None

    @property
    def client(self):
        """Lazy initialization of OpenAI client."""
        if self._client is None:
            self._client = openai.OpenAI(timeout=self.timeout, max_retries=self.max_retries)
        return self._client

    def embed(self, text: str) -> List[float]:
        """
        Generate embedding for a single text.

        Raises:
            ValueError: If text is empty
            UpstreamError: If the provider call fails or times out
        """
        if not text.strip():
            raise ValueError("Text to embed cannot be empty")

        return self._request([text])[0]

    def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        """
        Generate embeddings for many texts, ``batch_size`` per request.

        Returns:
            One vector per input text, in input order
        """
        if not texts:
            return []

        vectors: List[List[float]] = []
        for i in range(0, len(texts), self.batch_size):
            vectors.extend(self._request(list(texts[i : i + self.batch_size])))
        return vectors

    def _request(self, texts: List[str]) -> List[List[float]]:
        start_time = time.time()
        try:
            with embedding_duration_tracker():
                response = self.client.embeddings.create(input=texts, model=self.model)
        except openai.APITimeoutError as e:
            logger.error(f"Embedding request timed out after {time.time() - start_time:.2f}s")
            raise UpstreamError(
                f"Embedding request timed out: {str(e)}", component="embedding", timed_out=True
            ) from e
        except Exception as e:
            logger.error(f"Error generating embeddings: {str(e)}")
            raise UpstreamError(f"Embedding request failed: {str(e)}", component="embedding") from e

        vectors = [list(item.embedding) for item in response.data]
        if len(vectors) != len(texts):
            raise UpstreamError(
                f"Embedding provider returned {len(vectors)} vectors for {len(texts)} texts",
                component="embedding",
            )

        for vector in vectors:
            self._check_dimension(vector)

        return vectors

    def _check_dimension(self, vector: List[float]) -> None:
        if self.dimension is None:
            self.dimension = len(vector)
            logger.info(f"Embedding dimension detected: {self.dimension}")
        elif len(vector) != self.dimension:
            raise UpstreamError(
                f"Embedding dimension changed from {self.dimension} to {len(vector)}",
                component="embedding",
            )
