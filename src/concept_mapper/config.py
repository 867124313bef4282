"""
Configuration Management - Centralized configuration for the concept mapper

Part of the Concept Mapper implementation.

License: MIT
"""

import os
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
from pathlib import Path
import logging

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)


@dataclass
class EmbeddingConfig:
    """Configuration for embedding generation."""

    model: str = "text-embedding-3-small"
    batch_size: int = 100
    timeout: float = 30.0
    max_retries: int = 0


@dataclass
class LLMConfig:
    """Configuration for the generative model."""

    model: str = "gpt-4.1"
    max_tokens: int = 1000
    temperature: float = 0.5
    timeout: float = 60.0
    max_retries: int = 0


@dataclass
class IngestionConfig:
    """Configuration for building the vector index."""

    documents_dir: str = "./data/ncert_pdfs"
    file_extensions: List[str] = field(default_factory=lambda: [".pdf", ".docx", ".txt", ".md"])
    chunk_size: int = 1000
    chunk_overlap: int = 200
    max_concurrency: int = 3
    background: bool = True
    strict: bool = True


@dataclass
class RetrievalConfig:
    """Configuration for query-time retrieval."""

    top_k: int = 5
    max_context_length: Optional[int] = 12000
    call_timeout: float = 60.0
    max_workers: int = 8


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"
    format_type: str = "simple"
    log_file: Optional[str] = None


@dataclass
class APIConfig:
    """Configuration for the HTTP server."""

    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: List[str] = field(default_factory=lambda: ["*"])


@dataclass
class MapperConfig:
    """Main concept mapper configuration."""

    environment: str = "development"

    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    ingestion: IngestionConfig = field(default_factory=IngestionConfig)
    retrieval: RetrievalConfig = field(default_factory=RetrievalConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    api: APIConfig = field(default_factory=APIConfig)


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).lower() in ("1", "true", "yes")


def _env_list(name: str, default: List[str]) -> List[str]:
    value = os.getenv(name)
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


class ConfigManager:
    """
    Configuration manager for loading and validating configuration.

    Sources, lowest precedence first: dataclass defaults, an optional YAML
    file, environment variables (a local .env file is loaded first).
    """

    def __init__(self, config_path: Optional[str] = None, load_env_file: bool = True):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to YAML configuration file (optional)
            load_env_file: Load variables from a .env file before reading the environment
        """
        self.config_path = config_path
        self.load_env_file = load_env_file
        self._config: Optional[MapperConfig] = None

    def load_config(self) -> MapperConfig:
        """
        Load configuration from files and environment variables.

        Returns:
            MapperConfig instance

        Raises:
            ValueError: If the resulting configuration is invalid
        """
        if self._config is not None:
            return self._config

        if self.load_env_file:
            load_dotenv()

        config = MapperConfig()

        if self.config_path:
            config = self._load_from_file(config, self.config_path)

        config = self._load_from_env(config)
        self._validate_config(config)

        self._config = config
        logger.info(f"Configuration loaded for environment: {config.environment}")

        return config

    def _load_from_file(self, config: MapperConfig, file_path: str) -> MapperConfig:
        """Load configuration from YAML file."""
        path = Path(file_path)
        if not path.exists():
            raise ValueError(f"Configuration file not found: {file_path}")

        with open(path, "r", encoding="utf-8") as f:
            file_config = yaml.safe_load(f) or {}

        if not isinstance(file_config, dict):
            raise ValueError(f"Configuration file must hold a mapping: {file_path}")

        self._update_config_from_dict(config, file_config)
        logger.info(f"Configuration loaded from file: {file_path}")

        return config

    def _load_from_env(self, config: MapperConfig) -> MapperConfig:
        """Load configuration from environment variables."""

        config.environment = os.getenv("ENVIRONMENT", config.environment)

        # Embedding
        config.embedding.model = os.getenv("EMBEDDING_MODEL", config.embedding.model)
        config.embedding.batch_size = int(
            os.getenv("EMBEDDING_BATCH_SIZE", str(config.embedding.batch_size))
        )
        config.embedding.timeout = float(
            os.getenv("EMBEDDING_TIMEOUT", str(config.embedding.timeout))
        )

        # LLM
        config.llm.model = os.getenv("LLM_MODEL", config.llm.model)
        config.llm.max_tokens = int(os.getenv("LLM_MAX_TOKENS", str(config.llm.max_tokens)))
        config.llm.temperature = float(os.getenv("LLM_TEMPERATURE", str(config.llm.temperature)))
        config.llm.timeout = float(os.getenv("LLM_TIMEOUT", str(config.llm.timeout)))

        # Ingestion
        config.ingestion.documents_dir = os.getenv("DOCUMENTS_DIR", config.ingestion.documents_dir)
        config.ingestion.chunk_size = int(os.getenv("CHUNK_SIZE", str(config.ingestion.chunk_size)))
        config.ingestion.chunk_overlap = int(
            os.getenv("CHUNK_OVERLAP", str(config.ingestion.chunk_overlap))
        )
        config.ingestion.max_concurrency = int(
            os.getenv("INGESTION_MAX_CONCURRENCY", str(config.ingestion.max_concurrency))
        )
        config.ingestion.background = _env_bool("INGESTION_BACKGROUND", config.ingestion.background)
        config.ingestion.strict = _env_bool("INGESTION_STRICT", config.ingestion.strict)

        # Retrieval
        config.retrieval.top_k = int(os.getenv("RETRIEVAL_TOP_K", str(config.retrieval.top_k)))
        max_context_env = os.getenv("MAX_CONTEXT_LENGTH")
        if max_context_env:
            config.retrieval.max_context_length = int(max_context_env) or None
        config.retrieval.call_timeout = float(
            os.getenv("CALL_TIMEOUT", str(config.retrieval.call_timeout))
        )
        config.retrieval.max_workers = int(
            os.getenv("RETRIEVAL_MAX_WORKERS", str(config.retrieval.max_workers))
        )

        # Logging
        config.logging.level = os.getenv("LOG_LEVEL", config.logging.level)
        config.logging.format_type = os.getenv("LOG_FORMAT", config.logging.format_type)
        config.logging.log_file = os.getenv("LOG_FILE", config.logging.log_file)

        # API
        config.api.host = os.getenv("API_HOST", config.api.host)
        config.api.port = int(os.getenv("API_PORT", os.getenv("PORT", str(config.api.port))))
        config.api.cors_origins = _env_list("CORS_ORIGINS", config.api.cors_origins)

        return config

    def _update_config_from_dict(self, config: MapperConfig, config_dict: Dict[str, Any]) -> None:
        """Update configuration from dictionary."""
        for section_name, section_config in config_dict.items():
            if not hasattr(config, section_name):
                logger.warning(f"Ignoring unknown configuration section: {section_name}")
                continue

            if isinstance(section_config, dict):
                section_obj = getattr(config, section_name)
                for key, value in section_config.items():
                    if hasattr(section_obj, key):
                        setattr(section_obj, key, value)
                    else:
                        logger.warning(f"Ignoring unknown configuration key: {section_name}.{key}")
            else:
                setattr(config, section_name, section_config)

    def _validate_config(self, config: MapperConfig) -> None:
        """Validate configuration values."""
        errors = []

        if config.embedding.batch_size < 1:
            errors.append("Embedding batch size must be at least 1")

        if config.embedding.timeout <= 0 or config.llm.timeout <= 0:
            errors.append("Provider timeouts must be positive")

        if config.llm.max_tokens < 1:
            errors.append("LLM max tokens must be at least 1")

        if not (0.0 <= config.llm.temperature <= 2.0):
            errors.append("LLM temperature must be between 0.0 and 2.0")

        if config.ingestion.chunk_size < 1:
            errors.append("Chunk size must be at least 1")

        if not (0 <= config.ingestion.chunk_overlap < config.ingestion.chunk_size):
            errors.append("Chunk overlap must be non-negative and less than chunk size")

        if config.ingestion.max_concurrency < 1:
            errors.append("Ingestion concurrency must be at least 1")

        if config.retrieval.top_k < 1:
            errors.append("Retrieval top_k must be at least 1")

        if config.retrieval.call_timeout <= 0:
            errors.append("Call timeout must be positive")

        if config.retrieval.max_workers < 1:
            errors.append("Retrieval max workers must be at least 1")

        if config.api.port < 1 or config.api.port > 65535:
            errors.append("API port must be between 1 and 65535")

        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if config.logging.level.upper() not in valid_log_levels:
            errors.append(f"Log level must be one of: {', '.join(valid_log_levels)}")

        if errors:
            error_message = "Configuration validation errors:\n" + "\n".join(
                f"- {error}" for error in errors
            )
            raise ValueError(error_message)

    def get_config(self) -> MapperConfig:
        """Get the current configuration, loading if necessary."""
        if self._config is None:
            return self.load_config()
        return self._config

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        config = self.get_config()

        def dataclass_to_dict(obj):
            if hasattr(obj, "__dataclass_fields__"):
                return {
                    field_name: dataclass_to_dict(getattr(obj, field_name))
                    for field_name in obj.__dataclass_fields__
                }
            return obj

        return dataclass_to_dict(config)


def load_config(config_path: Optional[str] = None) -> MapperConfig:
    """Load a fresh configuration from the environment and an optional YAML file."""
    return ConfigManager(config_path).load_config()
