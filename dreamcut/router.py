"""
================================================================================
DREAMCUT v3.0 - FastAPI Router
================================================================================
API routes for the creative brief engine.

Endpoints:
- POST /api/dreamcut/query-analyzer    - Analyze a request, return the brief
- GET  /api/dreamcut/query-analyzer    - Describe the expected input
- GET  /api/dreamcut/health            - Health check
- GET  /api/dreamcut/graph-structure   - Pipeline graph for UI

Author: Barrios A2I | DREAMCUT v3.0
================================================================================
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .collaborators import AnalysisClient, HttpAnalysisClient
from .config import DreamcutConfig
from .errors import AnalysisError, ValidationError
from .graph_nodes import BriefPipeline
from .observability import BriefEventSink

logger = logging.getLogger(__name__)


class DreamcutHealthResponse(BaseModel):
    """DREAMCUT health check response"""
    status: str
    version: str
    schema_version: str
    persistence: bool


# =============================================================================
# ROUTER INSTANCE
# =============================================================================

router = APIRouter(prefix="/api/dreamcut", tags=["DREAMCUT Creative Briefs"])

# Global state (initialized from the app lifespan)
pipeline: Optional[BriefPipeline] = None


def initialize_dreamcut(
    client: Optional[AnalysisClient] = None,
    store=None,
    sink: Optional[BriefEventSink] = None,
) -> BriefPipeline:
    """Initialize DREAMCUT components (called from the app lifespan)"""
    global pipeline

    pipeline = BriefPipeline(client or HttpAnalysisClient(), sink=sink, store=store)
    logger.info("DREAMCUT v3.0 initialized")
    return pipeline


async def shutdown_dreamcut() -> None:
    global pipeline

    if pipeline is not None:
        await pipeline.close()
    pipeline = None


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post("/query-analyzer")
async def analyze_query(request: Request):
    """Validate the request, run the four analysis stages and return the brief"""
    if not pipeline:
        raise HTTPException(status_code=503, detail="DREAMCUT not initialized")

    try:
        body = await request.json()
    except ValueError:
        error = ValidationError({"body": ["Malformed JSON body"]})
        return JSONResponse(status_code=400, content=error.to_dict())

    try:
        return await pipeline.analyze(body)
    except ValidationError as e:
        logger.warning(f"Rejected brief request: {list(e.details)}")
        return JSONResponse(status_code=400, content=e.to_dict())
    except AnalysisError as e:
        logger.error(f"Brief analysis failed: {e.message}")
        return JSONResponse(status_code=500, content=e.to_dict())


@router.get("/query-analyzer")
async def describe_query_analyzer():
    """Self-description of the expected input"""
    return {
        "name": "DreamCut Query Analyzer - Rich JSON Version",
        "description": "Comprehensive creative director grade analysis with rich JSON output",
        "version": DreamcutConfig.SCHEMA_VERSION,
        "expectedInput": {
            "userId": "string",
            "prompt": "string",
            "intent": "image | video | audio | mixed (optional)",
            "options": {
                "durationSeconds": "number (optional)",
                "aspectRatio": "string (optional)",
                "imageCount": "number (optional)",
                "platform": "string (optional)",
            },
            "assets": [{
                "url": "string",
                "type": "image | video | audio",
                "filename": "string",
                "userDescription": "string (optional)",
            }],
        },
        "legacyInput": {
            "query": "string",
            "assets": [{"url": "string", "mediaType": "image | video | audio", "metadata": "object (optional)"}],
            "intent": "image | video | audio | mix (optional)",
            "outputImages": "integer 1-20 (optional)",
            "outputVideoSeconds": "integer 5-180 (optional)",
            "preferences": {"aspect_ratio": "string (optional)", "platform_target": "string (optional)"},
        },
        "features": [
            "Creative director grade analysis",
            "Asset role determination",
            "Conflict detection and resolution",
            "Multiple creative options generation",
            "Pipeline recommendations",
            "Quality scoring",
            "Edit recommendations",
        ],
    }


@router.get("/health", response_model=DreamcutHealthResponse)
async def dreamcut_health():
    """DREAMCUT health check"""
    store = pipeline.store if pipeline else None
    return DreamcutHealthResponse(
        status="healthy" if pipeline else "initializing",
        version="3.0.0",
        schema_version=DreamcutConfig.SCHEMA_VERSION,
        persistence=bool(store is not None and getattr(store, "enabled", False)),
    )


@router.get("/graph-structure")
async def get_graph_structure():
    """Get pipeline graph structure for visualization"""
    if not pipeline:
        raise HTTPException(status_code=503, detail="DREAMCUT not initialized")
    return pipeline.get_graph_structure()
