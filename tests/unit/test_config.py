"""
Unit Tests for Configuration Management

Tests configuration loading from defaults, YAML files and the environment.
"""

import pytest
import yaml

from concept_mapper.config import ConfigManager, MapperConfig

ENV_NAMES = [
    "ENVIRONMENT",
    "EMBEDDING_MODEL",
    "EMBEDDING_BATCH_SIZE",
    "LLM_MODEL",
    "LLM_TEMPERATURE",
    "DOCUMENTS_DIR",
    "CHUNK_SIZE",
    "CHUNK_OVERLAP",
    "INGESTION_BACKGROUND",
    "INGESTION_STRICT",
    "RETRIEVAL_TOP_K",
    "MAX_CONTEXT_LENGTH",
    "CALL_TIMEOUT",
    "RETRIEVAL_MAX_WORKERS",
    "LOG_LEVEL",
    "API_PORT",
    "PORT",
    "CORS_ORIGINS",
]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def load(config_path=None) -> MapperConfig:
    return ConfigManager(config_path, load_env_file=False).load_config()


class TestConfigManager:
    """Test cases for ConfigManager class."""

    def test_defaults(self):
        config = load()

        assert config.ingestion.chunk_size == 1000
        assert config.ingestion.chunk_overlap == 200
        assert config.ingestion.background is True
        assert config.retrieval.top_k == 5
        assert config.llm.temperature == 0.5
        assert config.api.port == 3000

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("DOCUMENTS_DIR", "/srv/ncert")
        monkeypatch.setenv("CHUNK_SIZE", "500")
        monkeypatch.setenv("CHUNK_OVERLAP", "50")
        monkeypatch.setenv("LLM_MODEL", "gpt-4o-mini")
        monkeypatch.setenv("INGESTION_BACKGROUND", "false")
        monkeypatch.setenv("RETRIEVAL_TOP_K", "3")
        monkeypatch.setenv("CORS_ORIGINS", "http://localhost:5173, https://reader.example.org")
        monkeypatch.setenv("PORT", "8080")

        config = load()

        assert config.ingestion.documents_dir == "/srv/ncert"
        assert config.ingestion.chunk_size == 500
        assert config.ingestion.chunk_overlap == 50
        assert config.llm.model == "gpt-4o-mini"
        assert config.ingestion.background is False
        assert config.retrieval.top_k == 3
        assert config.api.cors_origins == ["http://localhost:5173", "https://reader.example.org"]
        assert config.api.port == 8080

    def test_retrieval_max_workers(self, monkeypatch):
        monkeypatch.setenv("RETRIEVAL_MAX_WORKERS", "16")
        assert load().retrieval.max_workers == 16

    def test_invalid_max_workers(self, monkeypatch):
        monkeypatch.setenv("RETRIEVAL_MAX_WORKERS", "0")

        with pytest.raises(ValueError, match="max workers"):
            load()

    def test_api_port_wins_over_port(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("API_PORT", "9000")

        assert load().api.port == 9000

    def test_zero_context_length_means_unlimited(self, monkeypatch):
        monkeypatch.setenv("MAX_CONTEXT_LENGTH", "0")
        assert load().retrieval.max_context_length is None

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text(
            yaml.safe_dump(
                {
                    "environment": "staging",
                    "ingestion": {"chunk_size": 800, "strict": False},
                    "llm": {"temperature": 0.2},
                    "unknown_section": {"x": 1},
                }
            ),
            encoding="utf-8",
        )

        config = load(str(path))

        assert config.environment == "staging"
        assert config.ingestion.chunk_size == 800
        assert config.ingestion.strict is False
        assert config.llm.temperature == 0.2

    def test_environment_beats_yaml(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yml"
        path.write_text("retrieval:\n  top_k: 7\n", encoding="utf-8")
        monkeypatch.setenv("RETRIEVAL_TOP_K", "2")

        assert load(str(path)).retrieval.top_k == 2

    def test_missing_yaml_file(self, tmp_path):
        with pytest.raises(ValueError, match="not found"):
            load(str(tmp_path / "absent.yml"))

    def test_yaml_must_be_mapping(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ValueError, match="mapping"):
            load(str(path))

    def test_validation_lists_every_error(self, monkeypatch):
        monkeypatch.setenv("CHUNK_SIZE", "100")
        monkeypatch.setenv("CHUNK_OVERLAP", "100")
        monkeypatch.setenv("RETRIEVAL_TOP_K", "0")
        monkeypatch.setenv("LOG_LEVEL", "LOUD")

        with pytest.raises(ValueError) as exc_info:
            load()

        message = str(exc_info.value)
        assert "Chunk overlap" in message
        assert "top_k" in message
        assert "Log level" in message

    def test_config_is_cached(self):
        manager = ConfigManager(load_env_file=False)
        assert manager.get_config() is manager.load_config()

    def test_to_dict(self):
        data = ConfigManager(load_env_file=False).to_dict()

        assert data["ingestion"]["chunk_overlap"] == 200
        assert data["api"]["cors_origins"] == ["*"]
