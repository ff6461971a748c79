"""
================================================================================
DREAMCUT v3.0 - Creative Brief Engine
================================================================================
Turns a free-text creative request plus uploaded assets into a versioned
creative brief: normalized intent, enriched assets, conflicts, ranked
creative options and a recommended production pipeline.
================================================================================
"""

__version__ = "3.0.0"

from .state_machine import (
    AssetRole,
    BriefPhase,
    BriefState,
    CreativeBrief,
    CreativeOption,
    EnrichedAsset,
    MediaType,
    NormalizedRequest,
    OutputIntent,
    RequestShape,
)

from .errors import AnalysisError, DreamcutError, PersistenceWarning, ValidationError
from .collaborators import AnalysisClient, HttpAnalysisClient
from .graph_nodes import BriefPipeline
from .normalizer import normalize_request
from .config import DreamcutConfig

__all__ = [
    "__version__",
    "AssetRole",
    "BriefPhase",
    "BriefState",
    "CreativeBrief",
    "CreativeOption",
    "EnrichedAsset",
    "MediaType",
    "NormalizedRequest",
    "OutputIntent",
    "RequestShape",
    "AnalysisError",
    "DreamcutError",
    "PersistenceWarning",
    "ValidationError",
    "AnalysisClient",
    "HttpAnalysisClient",
    "BriefPipeline",
    "normalize_request",
    "DreamcutConfig",
]
