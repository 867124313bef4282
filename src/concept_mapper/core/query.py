"""
Query Processing - Retrieval-augmented concept mapping for transcript segments

Part of the Concept Mapper implementation.
Query: Embed, search, build context, invoke model, parse reply

License: MIT
"""

from typing import List, Optional, Callable, Any
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from enum import Enum
import logging
import os
import time
import uuid

from .models import MappingResult, SearchResult
from .response_parser import parse_concepts_response, is_no_concepts_reply, to_concept_results
from ..exceptions import (
    ConceptMapperError,
    InvalidInputError,
    NotReadyError,
    UpstreamError,
)
from ..infrastructure.monitoring import (
    query_duration_tracker,
    vector_search_duration_tracker,
    record_error,
)
from ..utils.helpers import truncate_text

logger = logging.getLogger(__name__)

NO_CONTEXT_SENTINEL = "No relevant context found from NCERT textbooks."
CONTEXT_SEPARATOR = "\n\n---\n\n"

CONCEPT_MAPPING_PROMPT = """Given the following context from NCERT textbooks:
---
{context}
---
And the following video transcript segment:
"{question}"

Identify 3-5 distinct scientific/mathematical/historical concepts or topics from the NCERT context that are directly related to the video transcript segment. For each concept, provide:
1. The concept name.
2. A brief, 1-2 sentence explanation of the concept based on the NCERT context.
3. A specific reference from the NCERT context (e.g., "NCERT Class 10 Science, Chapter 3, Page 50, Paragraph 2"). If specific page/paragraph not possible, provide chapter name.

If no direct concepts are found, state "No direct concepts found based on the provided context."
Provide the output as a JSON array of objects, like so:
[
    {{
        "concept": "Concept Name",
        "explanation": "Brief explanation...",
        "reference": "NCERT Class X Subject, Chapter Y, Page Z"
    }}
]
"""


class QueryState(Enum):
    """Stages a single concept mapping query moves through."""

    IDLE = "idle"
    EMBEDDING_QUERY = "embedding_query"
    SEARCHING = "searching"
    BUILDING_CONTEXT = "building_context"
    INVOKING_MODEL = "invoking_model"
    PARSING_RESPONSE = "parsing_response"
    DONE = "done"
    FAILED = "failed"


class ConceptMappingPipeline:
    """
    End-to-end concept mapping for one transcript segment at a time.

    The pipeline holds no per-query state, so one instance serves
    concurrent queries against the same built index.
    """

    def __init__(
        self,
        embedding_provider,
        vector_store,
        model,
        top_k: int = 5,
        max_context_length: Optional[int] = None,
        call_timeout: Optional[float] = 60.0,
        max_workers: int = 8,
    ):
        """
        Initialize the pipeline.

        Args:
            embedding_provider: EmbeddingProvider used at ingestion time
            vector_store: Built VectorStoreBase instance
            model: GenerativeModel used to identify concepts
            top_k: Number of chunks to retrieve
            max_context_length: Maximum context length in characters (None for no limit)
            call_timeout: Seconds allowed for each embedding or model call
            max_workers: Threads shared by the timed provider calls of all
                concurrent queries
        """
        if top_k < 1:
            raise ValueError("top_k must be at least 1")

        self.embedding_provider = embedding_provider
        self.vector_store = vector_store
        self.model = model
        self.top_k = top_k
        self.max_context_length = max_context_length
        self.call_timeout = call_timeout
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="concept-mapper-call"
        )

    def query(self, transcript: str) -> MappingResult:
        """
        Map a transcript segment to textbook concepts.

        Args:
            transcript: Transcript segment to analyse

        Returns:
            MappingResult with the concepts, the chunks used as context and
            timing metadata

        Raises:
            InvalidInputError: If the transcript is empty; nothing is called
            UpstreamError: If the embedding or model call fails or times out
            ResponseFormatError: If the model reply cannot be parsed
        """
        if not isinstance(transcript, str) or not transcript.strip():
            raise InvalidInputError("Transcript segment is required for concept mapping.")

        query_id = uuid.uuid4().hex[:12]
        state = QueryState.IDLE
        timings = {}
        start_time = time.time()

        logger.info(
            f"Mapping concepts for transcript: {truncate_text(transcript, 100)}",
            extra={"query_id": query_id, "transcript_length": len(transcript)},
        )

        try:
            with query_duration_tracker():
                state = self._transition(query_id, state, QueryState.EMBEDDING_QUERY)
                step_start = time.time()
                query_vector = self._call_with_timeout(
                    self.embedding_provider.embed, transcript, "embedding"
                )
                timings["embedding_time"] = time.time() - step_start

                state = self._transition(query_id, state, QueryState.SEARCHING)
                step_start = time.time()
                search_results = self._search(query_vector)
                timings["search_time"] = time.time() - step_start

                state = self._transition(query_id, state, QueryState.BUILDING_CONTEXT)
                context = self.build_context(search_results)
                prompt = self.build_prompt(transcript, context)

                state = self._transition(query_id, state, QueryState.INVOKING_MODEL)
                step_start = time.time()
                reply = self._call_with_timeout(self.model.complete, prompt, "llm")
                timings["generation_time"] = time.time() - step_start
                logger.debug("Raw AI response", extra={"query_id": query_id, "raw_response": reply})

                state = self._transition(query_id, state, QueryState.PARSING_RESPONSE)
                no_concepts = is_no_concepts_reply(reply)
                concepts = [] if no_concepts else to_concept_results(parse_concepts_response(reply))

                state = self._transition(query_id, state, QueryState.DONE)

        except ConceptMapperError as e:
            logger.error(
                f"Query failed while {state.value}: {e.message}",
                extra={"query_id": query_id, "error_type": type(e).__name__},
            )
            record_error(type(e).__name__, getattr(e, "component", state.value))
            self._transition(query_id, state, QueryState.FAILED)
            raise

        total_time = time.time() - start_time
        logger.info(
            f"Query completed with {len(concepts)} concepts in {total_time:.2f}s",
            extra={"query_id": query_id, "num_sources": len(search_results)},
        )

        return MappingResult(
            concepts=concepts,
            sources=search_results,
            context_used=bool(search_results),
            metadata={
                "query_id": query_id,
                "query_time": total_time,
                **timings,
                "num_sources": len(search_results),
                "model": getattr(self.model, "model", "unknown"),
                "no_concepts_reply": no_concepts,
            },
        )

    def _transition(self, query_id: str, current: QueryState, target: QueryState) -> QueryState:
        logger.debug(f"Query {query_id}: {current.value} -> {target.value}")
        return target

    def _search(self, query_vector: List[float]) -> List[SearchResult]:
        try:
            with vector_search_duration_tracker():
                results = self.vector_store.search(query_vector, k=self.top_k)
        except NotReadyError:
            logger.warning("Vector index not ready; continuing without context")
            return []

        if not results:
            logger.warning("No relevant documents found in vector index for the query")
        return results

    def _call_with_timeout(self, func: Callable[[str], Any], argument: str, component: str) -> Any:
        """
        Run a provider call, mapping failures and timeouts to UpstreamError.

        The timeout covers time spent queued for a worker as well as the call
        itself. A call that times out keeps its worker until the SDK returns,
        so the SDK client timeout is the real upper bound on how long a worker
        stays busy; size max_workers for the expected number of slow calls.
        """
        try:
            if self.call_timeout is None:
                return func(argument)

            future = self._executor.submit(func, argument)
            try:
                return future.result(timeout=self.call_timeout)
            except FuturesTimeoutError as e:
                future.cancel()
                raise UpstreamError(
                    f"{component} call exceeded {self.call_timeout}s timeout",
                    component=component,
                    timed_out=True,
                ) from e

        except UpstreamError:
            raise
        except Exception as e:
            raise UpstreamError(f"{component} call failed: {str(e)}", component=component) from e

    def build_context(self, search_results: List[SearchResult]) -> str:
        """
        Build context string from search results, most similar first.

        Args:
            search_results: Ranked search results

        Returns:
            Formatted context string, or the no-context sentinel
        """
        context_parts = []
        current_length = 0

        for i, result in enumerate(search_results, start=1):
            content = result.chunk.text.strip()
            if not content:
                continue

            header = f"Document {i}"
            if result.chunk.source_path:
                header += f" (Source: {os.path.basename(result.chunk.source_path)})"
            if result.chunk.page_count:
                header += f" (Pages: {result.chunk.page_count})"

            separator_length = len(CONTEXT_SEPARATOR) if context_parts else 0
            formatted_content = f"{header}:\n{content}"

            if self.max_context_length is not None and (
                current_length + separator_length + len(formatted_content) > self.max_context_length
            ):
                remaining_space = (
                    self.max_context_length - current_length - separator_length - len(f"{header}:\n...")
                )
                if remaining_space > 100:
                    context_parts.append(f"{header}:\n{content[:remaining_space]}...")
                break

            context_parts.append(formatted_content)
            current_length += separator_length + len(formatted_content)

        if not context_parts:
            return NO_CONTEXT_SENTINEL

        return CONTEXT_SEPARATOR.join(context_parts)

    def build_prompt(self, transcript: str, context: str) -> str:
        """Render the concept mapping prompt."""
        return CONCEPT_MAPPING_PROMPT.format(context=context, question=transcript)

    def close(self) -> None:
        """Release the worker threads used for timed calls."""
        self._executor.shutdown(wait=False)
