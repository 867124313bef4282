"""
Test Configuration - Shared test fixtures and setup

This module provides common test fixtures and configuration for the test suite.
"""

import pytest
import time
from typing import List, Sequence
from pathlib import Path

# Import test modules
import sys

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from concept_mapper.config import MapperConfig
from concept_mapper.core import Chunk, EmbeddingProvider, GenerativeModel, TextChunker
from concept_mapper.service import ConceptMappingService

VOCABULARY = [
    "inertia",
    "force",
    "motion",
    "newton",
    "photosynthesis",
    "chlorophyll",
    "light",
    "plant",
]

NEWTON_TEXT = (
    "NCERT Class 9 Science, Chapter 9: Force and Laws of Motion. "
    "Newton's first law of motion states that an object remains at rest or in uniform "
    "motion unless an external force acts on it. This tendency of objects to resist a "
    "change in their state of motion is called inertia."
)

PHOTOSYNTHESIS_TEXT = (
    "NCERT Class 10 Science, Chapter 6: Life Processes. "
    "Photosynthesis is the process by which a green plant uses light energy absorbed "
    "by chlorophyll to make food from carbon dioxide and water."
)

WORK_REPLY = (
    "Here you go:\n```json\n"
    '[{"concept":"Work","explanation":"...","reference":"NCERT Class 11, Chapter 6, Page 10"}]'
    "\n```"
)


class KeywordEmbeddingProvider(EmbeddingProvider):
    """Deterministic embeddings: one dimension per vocabulary word."""

    model = "keyword-counts"

    def __init__(self, fail_on: str = None, delay: float = 0.0):
        self.fail_on = fail_on
        self.delay = delay
        self.calls: List[str] = []

    def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        if self.delay:
            time.sleep(self.delay)
        if self.fail_on is not None and self.fail_on in text:
            raise RuntimeError(f"embedding service rejected text containing {self.fail_on!r}")
        lowered = text.lower()
        return [float(lowered.count(word)) for word in VOCABULARY]

    def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        return [self.embed(text) for text in texts]


class ScriptedModel(GenerativeModel):
    """Returns a fixed reply (or raises) and records every prompt."""

    model = "scripted-model"

    def __init__(self, reply: str = "[]", error: Exception = None, delay: float = 0.0):
        self.reply = reply
        self.error = error
        self.delay = delay
        self.prompts: List[str] = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def embedding_provider() -> KeywordEmbeddingProvider:
    """Keyword-count embedding provider."""
    return KeywordEmbeddingProvider()


@pytest.fixture
def scripted_model() -> ScriptedModel:
    """Model that answers with a single fenced concept."""
    return ScriptedModel(reply=WORK_REPLY)


@pytest.fixture
def documents_dir(tmp_path) -> Path:
    """Directory with one physics and one biology chapter."""
    docs = tmp_path / "ncert"
    docs.mkdir()
    (docs / "physics_ch9.txt").write_text(NEWTON_TEXT, encoding="utf-8")
    (docs / "biology_ch6.txt").write_text(PHOTOSYNTHESIS_TEXT, encoding="utf-8")
    return docs


@pytest.fixture
def sample_chunks() -> List[Chunk]:
    """Chunks of both sample chapters."""
    chunker = TextChunker(chunk_size=1000, chunk_overlap=200)
    return chunker.split_text(NEWTON_TEXT, "physics_ch9.txt") + chunker.split_text(
        PHOTOSYNTHESIS_TEXT, "biology_ch6.txt", page_count=12
    )


@pytest.fixture
def mapper_config(documents_dir) -> MapperConfig:
    """Configuration pointing at the sample chapters, ingesting at startup."""
    config = MapperConfig()
    config.ingestion.documents_dir = str(documents_dir)
    config.ingestion.background = False
    config.retrieval.call_timeout = 5.0
    return config


@pytest.fixture
def mapping_service(mapper_config, embedding_provider, scripted_model):
    """Service wired to the fake providers; the index is not built yet."""
    service = ConceptMappingService(
        mapper_config, embedding_provider=embedding_provider, model=scripted_model
    )
    yield service
    service.close()

