"""
Feature Registry - API.

============================================================
RESPONSIBILITY
============================================================
Assembles the FastAPI application:

- /specs   registration and retrieval of specs
- /jobs    ingestion job ledger
- /health  liveness and database reachability

The database is initialized when the application starts.
============================================================
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from core.config import RegistryConfig
from jobs.router import router as jobs_router
from registry.router import router as specs_router
from storage.database import dispose_engine, initialize_database, verify_database_connection
from storage.repositories.exceptions import RepositoryException

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


class HealthResponse(BaseModel):
    status: str
    database: str
    timestamp: str
    version: str = VERSION


def create_app(config: Optional[RegistryConfig] = None) -> FastAPI:
    """Build the application; config defaults to the environment."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        registry_config = config or RegistryConfig.from_env()
        errors = registry_config.validate()
        if errors:
            raise ValueError(f"Invalid configuration: {errors}")
        initialize_database(registry_config)
        logger.info(f"Feature registry started ({registry_config.environment})")
        yield
        dispose_engine()
        logger.info("Feature registry stopped")

    app = FastAPI(
        title="Feature Registry API",
        description="Registry of entities, features, feature groups, storage and ingestion jobs",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.include_router(specs_router)
    app.include_router(jobs_router)

    @app.exception_handler(RepositoryException)
    async def repository_error_handler(request: Request, exc: RepositoryException):
        logger.error(f"Unhandled storage error on {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"detail": exc.message})

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    def health_check():
        """Health check endpoint."""
        try:
            verify_database_connection()
            database = "ok"
        except RepositoryException:
            database = "unavailable"
        return HealthResponse(
            status="healthy" if database == "ok" else "degraded",
            database=database,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    return app


app = create_app()
