#!/usr/bin/env python3

import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.auth import verify_token
from .core.config import taxonomy_config
from .core.logging import setup_logging
from .models.models import (
    ColumnDetectionRequest,
    ColumnDetectionResponse,
    EcosystemRequest,
    EcosystemResponse,
    LabeledTreeRequest,
    ReferencedTreeRequest,
    TreeResponse,
)

logger = logging.getLogger(__name__)

# Application start time for uptime calculation
_app_start_time = time.time()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    setup_logging()
    logger.info(
        f"Starting taxonomy API service (max rows={taxonomy_config.MAX_IMPORT_ROWS}, "
        f"max entities={taxonomy_config.MAX_ENTITIES})"
    )

    yield

    logger.info("Shutting down taxonomy API service")


app = FastAPI(
    title="Compliance Taxonomy API",
    description="API building framework, pole and category hierarchies from flat data",
    version=os.getenv("APP_VERSION", "unknown"),
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=taxonomy_config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_version_header(request, call_next):
    """Add version information to response headers"""
    response = await call_next(request)
    response.headers["X-API-Version"] = os.getenv("APP_VERSION", "unknown")
    return response


@app.get("/healthz")
async def health_check():
    """Liveness probe - checks if application is alive and can serve requests"""
    current_time = time.time()
    return {
        "status": "healthy",
        "timestamp": current_time,
        "uptime": current_time - _app_start_time,
        "api_version": os.getenv("APP_VERSION", "unknown"),
        "git_commit": os.getenv("GIT_COMMIT", "unknown"),
    }


@app.get("/readyz")
async def readiness_check():
    """Readiness probe - the service has no backing store, ready once started"""
    return {
        "status": "ready",
        "limits": {
            "labeled": taxonomy_config.get_limit("labeled"),
            "referenced": taxonomy_config.get_limit("referenced"),
        },
    }


@app.post("/api/taxonomy/columns", response_model=ColumnDetectionResponse)
async def detect_columns(
    request: ColumnDetectionRequest,
    token: str = Depends(verify_token)
):
    """Detect the semantic field carried by each spreadsheet header"""
    from .handlers.taxonomy import handle_detect_columns
    return handle_detect_columns(request)


@app.post("/api/taxonomy/labeled-tree", response_model=TreeResponse)
async def build_labeled_tree(
    request: LabeledTreeRequest,
    token: str = Depends(verify_token)
):
    """Build a framework hierarchy from spreadsheet rows.

    Args:
        request: Headers, data rows, optional column overrides and file name

    Returns:
        Tree with requirements attached, column mapping and warnings
    """
    from .handlers.taxonomy import handle_labeled_tree
    return handle_labeled_tree(request)


@app.post("/api/taxonomy/referenced-tree", response_model=TreeResponse)
async def build_referenced_tree(
    request: ReferencedTreeRequest,
    token: str = Depends(verify_token)
):
    """Build a hierarchy from entities referencing their parent by id"""
    from .handlers.taxonomy import handle_referenced_tree
    return handle_referenced_tree(request)


@app.post("/api/taxonomy/ecosystem", response_model=EcosystemResponse)
async def build_ecosystem(
    request: EcosystemRequest,
    token: str = Depends(verify_token)
):
    """Build the internal pole tree and external category tree with organization totals"""
    from .handlers.taxonomy import handle_ecosystem
    return handle_ecosystem(request)


if __name__ == "__main__":
    import uvicorn
    host = os.getenv("API_HOST", "0.0.0.0")  # nosec B104
    port = int(os.getenv("API_PORT", "8000"))
    uvicorn.run(app, host=host, port=port)
