"""
================================================================================
DREAMCUT API v3.0
================================================================================
FastAPI application hosting the creative brief engine.

Endpoints:
- POST /api/dreamcut/query-analyzer  - Analyze a request, return the brief
- GET  /api/dreamcut/query-analyzer  - Expected input description
- GET  /api/dreamcut/health          - Engine health
- GET  /health                       - Service health
- GET  /metrics                      - Prometheus metrics

================================================================================
Author: Barrios A2I | Version: 3.0.0 | DREAMCUT v3.0
================================================================================
"""

import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from dreamcut.collaborators import HttpAnalysisClient
from dreamcut.config import DreamcutConfig
from dreamcut.router import initialize_dreamcut, router as dreamcut_router, shutdown_dreamcut
from storage.brief_store import BriefStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}'
)
logger = logging.getLogger(__name__)

START_TIME = time.time()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    logger.info("Starting DREAMCUT API v3.0...")

    store = BriefStore() if DreamcutConfig.PERSIST_BRIEFS else None
    if store is not None and not store.enabled:
        logger.warning("Brief persistence requested but Supabase is not configured")

    initialize_dreamcut(HttpAnalysisClient(), store=store)
    logger.info(f"Analyzer endpoint: {DreamcutConfig.ANALYZER_URL}")
    logger.info("DREAMCUT API v3.0 READY")

    yield

    logger.info("Shutting down DREAMCUT API...")
    await shutdown_dreamcut()


app = FastAPI(
    title="DREAMCUT API",
    description="""
    Creative brief engine.

    ## Pipeline Flow
    1. Query analysis (required)
    2. Per-asset analysis (when assets are attached)
    3. Creative synthesis
    4. Final summarization
    5. Brief assembly: enriched assets, conflicts, creative options, pipeline
    """,
    version="3.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv(
        "DREAMCUT_CORS_ORIGINS",
        "http://localhost:3000,http://localhost:5173"
    ).split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(dreamcut_router)


@app.get("/health", tags=["Health"])
async def health_check():
    return {
        "status": "healthy",
        "version": "3.0.0",
        "uptime_seconds": time.time() - START_TIME,
    }


@app.get("/metrics", tags=["Observability"])
async def prometheus_metrics():
    """Prometheus metrics endpoint"""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


@app.get("/", tags=["Root"])
async def root():
    """API root - returns basic info"""
    return {
        "name": "DREAMCUT API",
        "version": "3.0.0",
        "status": "operational",
        "docs": "/docs",
        "health": "/health",
        "metrics": "/metrics"
    }


# =============================================================================
# RUN SERVER
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "dreamcut_api:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("DREAMCUT_RELOAD", "false").lower() == "true"
    )
