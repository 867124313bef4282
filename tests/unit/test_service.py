"""
Unit Tests for Concept Mapping Service

Tests the service lifecycle including:
- Readiness gate before, during and after ingestion
- All-or-nothing ingestion failures
- Health reporting
"""

import asyncio
import pytest

from concept_mapper.core.models import MappingResult
from concept_mapper.exceptions import IngestionError, NotReadyError
from concept_mapper.service import ConceptMappingService, IndexState

from conftest import KeywordEmbeddingProvider, ScriptedModel


class TestConceptMappingService:
    """Test cases for ConceptMappingService class."""

    def test_starts_pending(self, mapping_service):
        assert mapping_service.state is IndexState.PENDING
        assert not mapping_service.is_ready()

    def test_query_before_ingestion_rejected(self, mapping_service, scripted_model):
        with pytest.raises(NotReadyError, match="not initialized"):
            mapping_service.map_concepts("What is inertia?")

        assert scripted_model.prompts == []

    def test_readiness_checked_before_input(self, mapping_service):
        with pytest.raises(NotReadyError):
            mapping_service.map_concepts("")

    def test_build_index(self, mapping_service):
        stats = mapping_service.build_index()

        assert mapping_service.state is IndexState.READY
        assert stats["documents"] == 2
        assert stats["chunks"] == 2
        assert stats["dimension"] == 8
        assert stats["duration"] >= 0

    def test_build_index_is_idempotent_once_ready(self, mapping_service, embedding_provider):
        first = mapping_service.build_index()
        calls = len(embedding_provider.calls)

        assert mapping_service.build_index() == first
        assert len(embedding_provider.calls) == calls

    def test_map_concepts_after_ingestion(self, mapping_service):
        mapping_service.build_index()

        result = mapping_service.map_concepts("What is inertia?")

        assert isinstance(result, MappingResult)
        assert result.concepts[0].concept == "Work"
        assert result.sources[0].chunk.source_path.endswith("physics_ch9.txt")

    def test_missing_documents_fail_permanently(self, mapper_config, tmp_path):
        mapper_config.ingestion.documents_dir = str(tmp_path / "missing")
        service = ConceptMappingService(
            mapper_config, embedding_provider=KeywordEmbeddingProvider(), model=ScriptedModel()
        )

        with pytest.raises(IngestionError):
            service.build_index()

        assert service.state is IndexState.FAILED
        assert "not found" in service.ingestion_error
        with pytest.raises(NotReadyError, match="failed to initialize"):
            service.map_concepts("What is inertia?")
        with pytest.raises(IngestionError, match="already failed"):
            service.build_index()
        service.close()

    def test_embedding_failure_leaves_index_unpublished(self, mapper_config):
        service = ConceptMappingService(
            mapper_config,
            embedding_provider=KeywordEmbeddingProvider(fail_on="Photosynthesis"),
            model=ScriptedModel(),
        )

        with pytest.raises(IngestionError):
            service.build_index()

        assert service.state is IndexState.FAILED
        assert not service.vector_store.is_ready()
        assert len(service.vector_store) == 0
        service.close()

    def test_initialize_runs_in_worker(self, mapping_service):
        stats = asyncio.run(mapping_service.initialize())

        assert stats["chunks"] == 2
        assert mapping_service.is_ready()

    def test_map_concepts_async(self, mapping_service):
        mapping_service.build_index()

        result = asyncio.run(mapping_service.map_concepts_async("How do plants use light?"))

        assert result.sources[0].chunk.source_path.endswith("biology_ch6.txt")

    def test_map_concepts_async_not_ready(self, mapping_service):
        with pytest.raises(NotReadyError):
            asyncio.run(mapping_service.map_concepts_async("What is inertia?"))

    def test_health_check(self, mapping_service):
        pending = mapping_service.health_check()
        assert pending["healthy"]
        assert pending["state"] == "pending"
        assert pending["index"]["ready"] is False

        mapping_service.build_index()
        ready = mapping_service.health_check()

        assert ready["state"] == "ready"
        assert ready["index"]["vectors"] == 2
        assert ready["models"] == {"embedding": "keyword-counts", "llm": "scripted-model"}
        assert ready["error"] is None

    def test_stats(self, mapping_service):
        mapping_service.build_index()

        stats = mapping_service.stats()

        assert stats["state"] == "ready"
        assert stats["documents"] == 2
        assert stats["index"]["sources"] == 2

    def test_defaults_built_from_config(self, mapper_config):
        mapper_config.llm.model = "gpt-test"
        mapper_config.ingestion.chunk_size = 300
        mapper_config.ingestion.chunk_overlap = 30
        service = ConceptMappingService(mapper_config)

        assert service.model.model == "gpt-test"
        assert service.chunker.chunk_size == 300
        assert service.chunker.chunk_overlap == 30
        assert service.pipeline.top_k == mapper_config.retrieval.top_k
        service.close()

    def test_call_pool_sized_from_config(self, mapper_config):
        mapper_config.retrieval.max_workers = 3
        service = ConceptMappingService(
            mapper_config, embedding_provider=KeywordEmbeddingProvider(), model=ScriptedModel()
        )

        assert service.pipeline._executor._max_workers == 3
        service.close()
