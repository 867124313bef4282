"""
FastAPI Application - HTTP entry point for the concept mapper

Part of the Concept Mapper implementation.

License: MIT
"""

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from contextlib import asynccontextmanager
from typing import Optional
import asyncio
import logging
import time

from .routes import router
from ..config import MapperConfig, load_config
from ..exceptions import (
    IngestionError,
    InvalidInputError,
    NotReadyError,
    ResponseFormatError,
    UpstreamError,
)
from ..infrastructure.monitoring import setup_prometheus_metrics, record_request, metrics_enabled
from ..service import ConceptMappingService

logger = logging.getLogger(__name__)


async def _ingest_in_background(service: ConceptMappingService) -> None:
    """Build the index; failures leave the service permanently not ready."""
    try:
        await service.initialize()
    except IngestionError as e:
        logger.critical(f"Ingestion failed, queries will be rejected: {e.message}")
    except Exception as e:
        logger.critical(f"Unexpected ingestion failure: {str(e)}", exc_info=True)


def create_app(
    config: Optional[MapperConfig] = None,
    service: Optional[ConceptMappingService] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        config: Configuration (loaded from the environment when omitted)
        service: Pre-built service (constructed from config when omitted)

    Returns:
        Configured FastAPI application
    """
    config = config or load_config()
    service = service or ConceptMappingService(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager for startup and shutdown tasks."""
        logger.info("Starting concept mapper API")

        if config.ingestion.background:
            app.state.ingestion_task = asyncio.create_task(_ingest_in_background(service))
        else:
            # IngestionError propagates and aborts startup
            await service.initialize()

        logger.info("Concept mapper API startup complete")

        yield

        logger.info("Shutting down concept mapper API")
        task = getattr(app.state, "ingestion_task", None)
        if task is not None and not task.done():
            task.cancel()
        service.close()

    setup_prometheus_metrics()

    app = FastAPI(
        title="Concept Mapper API",
        description="Maps educational video transcripts to NCERT textbook concepts",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.mapping_service = service
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_monitoring(request: Request, call_next):
        """Add timing and metrics to all requests."""
        start_time = time.time()
        logger.debug(f"Incoming request - Method: {request.method}, Path: {request.url.path}")

        response = await call_next(request)

        duration = time.time() - start_time
        record_request(request.method, request.url.path, response.status_code, duration)
        response.headers["X-Process-Time"] = str(duration)

        return response

    register_exception_handlers(app)

    @app.get("/", response_class=PlainTextResponse, tags=["Health"])
    async def root():
        return "Concept mapper is running!"

    @app.get("/health", tags=["Health"])
    async def health_check():
        """
        Health check endpoint for load balancer and monitoring.

        Returns:
            Dictionary with service health status
        """
        status = service.health_check()
        if not status["healthy"]:
            raise HTTPException(status_code=503, detail=f"Service unhealthy: {status['error']}")
        return {"status": "healthy", "version": "1.0.0", **status}

    @app.get("/ready", tags=["Health"])
    async def readiness_check():
        """
        Readiness check: 503 until the vector index has been built.
        """
        if not service.is_ready():
            raise HTTPException(status_code=503, detail=f"Service not ready: {service.state.value}")
        return {"status": "ready", "timestamp": time.time()}

    @app.get("/live", tags=["Health"])
    async def liveness_check():
        """Simple response indicating service is alive."""
        return {"status": "alive", "timestamp": time.time()}

    @app.get("/metrics", tags=["Monitoring"])
    async def get_metrics():
        """Prometheus metrics endpoint."""
        if not metrics_enabled():
            raise HTTPException(status_code=404, detail="Metrics disabled")
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(router, prefix="/api")

    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Translate the error taxonomy into HTTP responses."""

    @app.exception_handler(NotReadyError)
    async def not_ready_handler(request: Request, exc: NotReadyError):
        logger.warning(f"Rejected request while not ready: {exc.message}")
        return JSONResponse(status_code=503, content={"message": exc.message})

    @app.exception_handler(InvalidInputError)
    async def invalid_input_handler(request: Request, exc: InvalidInputError):
        return JSONResponse(status_code=400, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "message": "Transcript segment is required for concept mapping.",
                "error_details": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(ResponseFormatError)
    async def response_format_handler(request: Request, exc: ResponseFormatError):
        logger.error(f"Failed to parse model reply: {exc.details}")
        return JSONResponse(
            status_code=502,
            content={
                "message": "AI response could not be parsed. Raw response: " + exc.raw_response,
                "error_details": exc.details or exc.message,
                "raw_response": exc.raw_response,
            },
        )

    @app.exception_handler(UpstreamError)
    async def upstream_handler(request: Request, exc: UpstreamError):
        return JSONResponse(
            status_code=504 if exc.timed_out else 502,
            content={"message": "Failed to map concepts", "error_details": exc.message},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"message": "An unexpected server error occurred.", "error_details": str(exc)},
        )


def main(config: Optional[MapperConfig] = None) -> None:
    """Run the API server with uvicorn."""
    import uvicorn

    from ..infrastructure.logging_config import setup_logging

    config = config or load_config()
    setup_logging(config.logging.level, config.logging.format_type, config.logging.log_file)

    uvicorn.run(create_app(config), host=config.api.host, port=config.api.port, log_level="info")


if __name__ == "__main__":
    main()
