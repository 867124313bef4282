"""
HTTP API - FastAPI server for concept mapping

This module provides:
- FastAPI application factory with health, readiness and metrics endpoints
- The /api/map concept mapping endpoints
- Dependency injection of the startup-built service

License: MIT
"""

from .main import create_app, main
from .dependencies import get_mapping_service

__all__ = [
    "create_app",
    "main",
    "get_mapping_service",
]
