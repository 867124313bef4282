"""
Command Line Interface - Ingest, query and serve from the shell

Part of the Concept Mapper implementation.

License: MIT
"""

from typing import List, Optional
import argparse
import json
import logging
import sys

from .config import ConfigManager
from .core.citation import parse_reference
from .exceptions import ConceptMapperError
from .infrastructure.logging_config import setup_logging
from .service import ConceptMappingService
from .utils.helpers import format_duration

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="concept-mapper",
        description="Map video transcript segments to NCERT textbook concepts",
    )
    parser.add_argument("--config", help="Path to a YAML configuration file")
    parser.add_argument("--log-level", help="Override the configured log level")

    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Build the vector index and report statistics")
    ingest.add_argument("--documents-dir", help="Directory holding the textbook files")

    map_cmd = subparsers.add_parser("map", help="Map one transcript segment")
    map_cmd.add_argument("transcript", help="Transcript segment text")
    map_cmd.add_argument("--documents-dir", help="Directory holding the textbook files")
    map_cmd.add_argument(
        "--detailed", action="store_true", help="Include citations, sources and timings"
    )

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", help="Bind address")
    serve.add_argument("--port", type=int, help="Bind port")

    subparsers.add_parser("config", help="Print the effective configuration")

    return parser


def _ingest(service: ConceptMappingService) -> int:
    stats = service.build_index()
    print(f"Documents:  {stats['documents']}")
    print(f"Chunks:     {stats['chunks']}")
    print(f"Dimension:  {stats['dimension']}")
    print(f"Duration:   {format_duration(stats['duration'])}")
    return 0


def _map(service: ConceptMappingService, transcript: str, detailed: bool) -> int:
    service.build_index()
    result = service.map_concepts(transcript)

    if not detailed:
        output = [concept.to_dict() for concept in result.concepts]
    else:
        output = {
            "concepts": [
                {**concept.to_dict(), "citation": parse_reference(concept.reference).to_dict()}
                for concept in result.concepts
            ],
            "sources": [source.to_dict() for source in result.sources],
            "context_used": result.context_used,
            "metadata": result.metadata,
        }

    print(json.dumps(output, indent=2, ensure_ascii=False))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the concept-mapper console script."""
    args = build_parser().parse_args(argv)

    manager = ConfigManager(args.config)
    config = manager.load_config()

    if args.log_level:
        config.logging.level = args.log_level.upper()
    setup_logging(config.logging.level, config.logging.format_type, config.logging.log_file)

    if args.command == "config":
        print(json.dumps(manager.to_dict(), indent=2))
        return 0

    if args.command == "serve":
        from .api.main import main as serve_main

        if args.host:
            config.api.host = args.host
        if args.port:
            config.api.port = args.port
        serve_main(config)
        return 0

    if args.documents_dir:
        config.ingestion.documents_dir = args.documents_dir

    service = ConceptMappingService(config)
    try:
        if args.command == "ingest":
            return _ingest(service)
        return _map(service, args.transcript, args.detailed)
    except ConceptMapperError as e:
        logger.error(f"{type(e).__name__}: {e.message}")
        raw_response = getattr(e, "raw_response", None)
        if raw_response:
            print(f"Raw response: {raw_response}", file=sys.stderr)
        return 1
    finally:
        service.close()


if __name__ == "__main__":
    sys.exit(main())
