"""
Data Model - Value types shared by ingestion and query processing

Part of the Concept Mapper implementation.

License: MIT
"""

from dataclasses import dataclass, field, asdict
from typing import List, Dict, Any, Optional, Tuple

NOT_AVAILABLE = "N/A"


@dataclass(frozen=True)
class RawDocument:
    """One text block extracted from a source document."""

    text: str
    source_path: str
    page_count: Optional[int] = None


@dataclass(frozen=True)
class Chunk:
    """A bounded window of source text with provenance metadata."""

    text: str
    source_path: str
    page_count: Optional[int]
    sequence_index: int


@dataclass(frozen=True)
class IndexedVector:
    """A chunk together with its embedding."""

    chunk: Chunk
    vector: Tuple[float, ...]

    @property
    def dimension(self) -> int:
        return len(self.vector)


@dataclass(frozen=True)
class SearchResult:
    """A single nearest-neighbour hit."""

    chunk: Chunk
    score: float
    rank: int

    def to_dict(self, preview_length: int = 200) -> Dict[str, Any]:
        text = self.chunk.text
        return {
            "rank": self.rank,
            "score": round(self.score, 4),
            "source_file": self.chunk.source_path,
            "page_count": self.chunk.page_count,
            "sequence_index": self.chunk.sequence_index,
            "preview": text[:preview_length] + "..." if len(text) > preview_length else text,
        }


@dataclass(frozen=True)
class ConceptResult:
    """One concept identified by the model."""

    concept: str
    explanation: str
    reference: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class Citation:
    """Structured view of a human-readable textbook reference."""

    grade: str = NOT_AVAILABLE
    subject: str = NOT_AVAILABLE
    chapter: str = NOT_AVAILABLE
    section: str = NOT_AVAILABLE
    page: str = NOT_AVAILABLE
    original_reference: str = ""

    def format(self) -> str:
        """Render the citation the way the reader app displays it."""
        return (
            f"NCERT, Grade {self.grade} {self.subject}, Chapter {self.chapter}, "
            f"Section {self.section}, p. {self.page}"
        )

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass
class MappingResult:
    """Outcome of one concept mapping query."""

    concepts: List[ConceptResult]
    sources: List[SearchResult] = field(default_factory=list)
    context_used: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict)
