"""
================================================================================
DREAMCUT v3.0 - STATE MACHINE
================================================================================
Request, asset and brief models plus the immutable run state that the stage
nodes fold their results into.

Serialized brief fields are camelCase (alias generator); Python attributes
stay snake_case. Every state update returns a new BriefState.

Author: Barrios A2I | DREAMCUT v3.0
================================================================================
"""

import logging
import time
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Annotated, Any, Dict, List, Mapping, Optional, Tuple, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

from .payloads import AssetAnalysisReport, FinalSummary, QueryAnalysis, SynthesisReport

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# READ-ONLY CONTAINERS
# =============================================================================

def freeze(value: Any) -> Any:
    """Mappings become read-only proxies and lists become tuples, recursively"""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    return value


def thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [thaw(item) for item in value]
    return value


V = TypeVar("V")

# Free-form analyzer data, frozen on the brief and plain JSON when serialized
FrozenJson = Annotated[Any, AfterValidator(freeze), PlainSerializer(thaw)]
FrozenMap = Annotated[Dict[str, V], AfterValidator(freeze), PlainSerializer(thaw)]


# =============================================================================
# ENUMS
# =============================================================================

class MediaType(str, Enum):
    """Asset media kinds"""
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"


class OutputIntent(str, Enum):
    """What the user wants produced"""
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    MIXED = "mixed"


class RequestShape(str, Enum):
    """Which inbound schema the request arrived in"""
    LEGACY = "legacy"
    MODERN = "modern"


class AssetRole(str, Enum):
    """Semantic function of an asset in the production"""
    VOICEOVER = "voiceover narration"
    PRIMARY_FOOTAGE = "primary footage"
    STYLE_REFERENCE = "style reference"
    SUPPORTING = "supporting content"


class Workload(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class BriefPhase(str, Enum):
    """Run phases, one per stage plus assembly"""
    INIT = "init"
    QUERY_ANALYSIS = "query_analysis"
    ASSET_ANALYSIS = "asset_analysis"
    SYNTHESIS = "synthesis"
    SUMMARIZATION = "summarization"
    ASSEMBLY = "assembly"
    COMPLETED = "completed"
    FAILED = "failed"


class StageStatus(str, Enum):
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


# Stage names as they appear in events, metrics and processingInsights
STAGE_QUERY = "queryAnalysis"
STAGE_ASSETS = "assetAnalysis"
STAGE_SYNTHESIS = "creativeSynthesis"
STAGE_SUMMARY = "finalSummarization"
STAGES = (STAGE_QUERY, STAGE_ASSETS, STAGE_SYNTHESIS, STAGE_SUMMARY)


# =============================================================================
# REQUEST MODELS
# =============================================================================

class BriefModel(BaseModel):
    """camelCase on the wire, snake_case in Python. Instances are immutable."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class RequestOptions(BriefModel):
    duration_seconds: Optional[float] = None
    aspect_ratio: Optional[str] = None
    image_count: Optional[int] = None
    platform: Optional[str] = None


class RawAsset(BriefModel):
    """Uploaded asset with its engine-assigned id"""
    id: str
    url: str
    type: MediaType
    filename: str
    user_description: Optional[str] = None


class NormalizedRequest(BriefModel):
    """Canonical request, independent of the inbound shape"""
    user_id: str
    prompt: str = Field(min_length=1)
    intent: Optional[OutputIntent] = None
    options: RequestOptions = Field(default_factory=RequestOptions)
    assets: List[RawAsset] = Field(default_factory=list)
    shape: RequestShape = RequestShape.MODERN
    raw_body: Dict[str, Any] = Field(default_factory=dict, exclude=True)


# =============================================================================
# BRIEF MODELS
# =============================================================================

class AssetMeta(BriefModel):
    """Observable technical properties"""
    resolution: Optional[str] = None
    duration_seconds: Optional[float] = None
    fps: Optional[float] = None
    bitrate: Optional[float] = None
    sample_rate: Optional[float] = None
    channels: Optional[int] = None

    @property
    def dimensions(self) -> Optional[tuple]:
        if not self.resolution:
            return None
        try:
            width, height = (int(part) for part in self.resolution.split("x"))
        except ValueError:
            return None
        return width, height


class AssetInsights(BriefModel):
    """Semantic fields derived from asset analysis"""
    caption: Optional[str] = None
    objects: FrozenJson = ()
    style: FrozenJson = None
    mood: FrozenJson = None
    transcript: Optional[str] = None
    language: Optional[str] = None
    tone: FrozenJson = None
    scenes: FrozenJson = ()
    motion: FrozenJson = None
    has_audio: Optional[bool] = None
    recommended_edits: Tuple[str, ...] = ()


class EnrichedAsset(RawAsset):
    detected_mime: str
    size_bytes: int = 0
    meta: AssetMeta = Field(default_factory=AssetMeta)
    analysis: AssetInsights = Field(default_factory=AssetInsights)
    quality_score: float = 0.5
    role: AssetRole = AssetRole.SUPPORTING


class Conflict(BriefModel):
    """Declared constraint vs observed asset property"""
    issue: str
    resolution: str
    kind: str = Field(default="", exclude=True)
    asset_id: Optional[str] = Field(default=None, exclude=True)


class CreativeOption(BriefModel):
    id: str
    title: str
    short: str
    reasons: Tuple[str, ...] = ()
    estimated_workload: Workload = Workload.MEDIUM
    confidence: Optional[float] = None
    source: Optional[str] = None


class PipelineRecommendation(BriefModel):
    preprocessing: Tuple[str, ...]
    generation_models: FrozenMap[str] = Field(default_factory=dict, validate_default=True)
    integration: str = "standard pipeline execution"
    estimated_time: Optional[str] = None
    success_probability: float = 0.8


class QualityMetrics(BriefModel):
    overall_confidence: float
    analysis_quality: float
    completion_status: str
    feasibility_score: float
    raw_confidence: Optional[float] = Field(default=None, exclude=True)
    raw_feasibility: Optional[float] = Field(default=None, exclude=True)
    raw_analysis_quality: Optional[float] = Field(default=None, exclude=True)


class PromptInsights(BriefModel):
    user_intent_description: str
    reformulated_prompt: str
    suggested_improvements: Tuple[str, ...] = ()
    clarity_score: int = 5
    content_type_analysis: FrozenMap[Any] = Field(default_factory=dict, validate_default=True)


class BriefConstraints(BriefModel):
    """Effective constraints after merging request options with query analysis"""
    duration_seconds: Optional[float] = None
    aspect_ratio: str = "16:9"
    image_count: Optional[int] = None
    platform: str = "social"
    resolution: Optional[str] = None
    quality_level: str = "high"


class GlobalAnalysis(BriefModel):
    goal: str
    constraints: BriefConstraints
    asset_roles: FrozenMap[AssetRole] = Field(default_factory=dict, validate_default=True)
    conflicts: Tuple[Conflict, ...] = ()
    identified_challenges: FrozenJson = ()
    creative_direction: FrozenMap[Any] = Field(default_factory=dict, validate_default=True)


class ProcessingInsights(BriefModel):
    total_processing_time_ms: float
    step_breakdown: FrozenMap[StageStatus]
    stage_timings: FrozenMap[float] = Field(default_factory=dict, validate_default=True)
    quality_metrics: QualityMetrics


class CreativeBrief(BriefModel):
    """Final artifact. Nested models, lists and mappings are all read-only."""

    id: str
    version: str
    created_at: str
    user_id: str
    user_prompt: str
    intent: OutputIntent
    options: RequestOptions
    prompt_analysis: PromptInsights
    assets: Tuple[EnrichedAsset, ...] = ()
    final_analysis: FrozenJson = Field(default=None, alias="final_analysis")
    global_analysis: GlobalAnalysis
    creative_options: Tuple[CreativeOption, ...]
    recommended_pipeline: PipelineRecommendation
    warnings: Tuple[str, ...] = ()
    recommendations: FrozenJson = ()
    processing_insights: ProcessingInsights

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# RUN STATE
# =============================================================================

class ErrorRecord(BaseModel):
    """Error tracking for stage failures"""
    phase: str
    message: str
    timestamp: datetime = Field(default_factory=utcnow)
    recoverable: bool = True


class DegradedStage(BaseModel):
    """A non-fatal stage that produced nothing usable. Never raised."""
    stage: str
    reason: str


class BriefState(BaseModel):
    """
    Immutable state for one brief run.
    Stage payloads are None until their stage completes.
    """
    # Identity
    run_id: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    version: int = 1
    started_at: float = Field(default_factory=time.perf_counter)

    phase: BriefPhase = BriefPhase.INIT
    request: NormalizedRequest

    # Derived before stage 2
    intent: OutputIntent = OutputIntent.IMAGE
    constraints: BriefConstraints = Field(default_factory=BriefConstraints)
    prompt_insights: Optional[PromptInsights] = None

    # Stage payloads
    query_analysis: Optional[QueryAnalysis] = None
    asset_analysis: Optional[AssetAnalysisReport] = None
    synthesis: Optional[SynthesisReport] = None
    summary: Optional[FinalSummary] = None
    summary_payload: Optional[Dict[str, Any]] = None

    # Tracking
    stage_status: Dict[str, StageStatus] = Field(default_factory=dict)
    stage_timings_ms: Dict[str, float] = Field(default_factory=dict)
    degraded: List[DegradedStage] = Field(default_factory=list)
    phase_history: List[Dict[str, Any]] = Field(default_factory=list)
    errors: List[ErrorRecord] = Field(default_factory=list)

    # Output
    brief: Optional[CreativeBrief] = None
    quality: Optional[QualityMetrics] = None
    processing_time_ms: float = 0.0

    def transition_to(self, new_phase: BriefPhase, **kwargs) -> "BriefState":
        """
        Create a new state with updated phase.
        Immutable - returns new instance.
        """
        history_entry = {
            "from": self.phase.value,
            "to": new_phase.value,
            "timestamp": utcnow().isoformat(),
            "version": self.version,
        }
        return self.model_copy(update={
            "phase": new_phase,
            "phase_history": self.phase_history + [history_entry],
            "updated_at": utcnow(),
            "version": self.version + 1,
            **kwargs,
        })

    def add_error(self, phase: str, message: str, recoverable: bool = True) -> "BriefState":
        """Add an error and return new state"""
        error = ErrorRecord(phase=phase, message=message, recoverable=recoverable)
        return self.model_copy(update={
            "errors": self.errors + [error],
            "updated_at": utcnow(),
        })

    def record_stage(
        self,
        stage: str,
        status: StageStatus,
        duration_ms: Optional[float] = None,
        **kwargs,
    ) -> "BriefState":
        """Fold a stage outcome into a new state"""
        timings = dict(self.stage_timings_ms)
        if duration_ms is not None:
            timings[stage] = round(duration_ms, 2)
        return self.model_copy(update={
            "stage_status": {**self.stage_status, stage: status},
            "stage_timings_ms": timings,
            "updated_at": utcnow(),
            **kwargs,
        })

    def with_degraded(self, stage: str, reason: str) -> "BriefState":
        return self.model_copy(update={
            "degraded": self.degraded + [DegradedStage(stage=stage, reason=reason)],
            "updated_at": utcnow(),
        })

    @property
    def is_degraded(self) -> bool:
        return bool(self.degraded)
