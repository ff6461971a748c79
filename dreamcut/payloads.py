"""
================================================================================
DREAMCUT v3.0 - COLLABORATOR PAYLOADS
================================================================================
Typed views over the results returned by the four external analysis stages
(query analysis, asset analysis, creative synthesis, final summarization),
plus the tagged result type every stage call is folded into.

The analyzers own these shapes, so every model is lenient: unknown keys are
kept, every field is optional, null lists come back as empty lists and a
field of the wrong type falls back to its default. A dict never fails to
parse.
Downstream code reads typed attributes instead of dereferencing raw dicts.

Author: Barrios A2I | DREAMCUT v3.0
================================================================================
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
)
from pydantic import ValidationError as PydanticValidationError


# =============================================================================
# STAGE RESULTS
# =============================================================================

@dataclass(frozen=True)
class StageOk:
    """Stage returned a usable payload"""
    value: Dict[str, Any]
    kind: Literal["ok"] = "ok"


@dataclass(frozen=True)
class StageFailure:
    """Stage failed, raised, or returned nothing usable"""
    message: str
    kind: Literal["error"] = "error"


StageResult = Union[StageOk, StageFailure]


def fold_envelope(envelope: Any) -> StageResult:
    """Fold a collaborator envelope {success, result, error} into a StageResult"""
    if not isinstance(envelope, dict):
        return StageFailure(message="Collaborator returned a non-object response")

    result = envelope.get("result")
    if envelope.get("success") and result:
        if not isinstance(result, dict):
            return StageFailure(message="Collaborator result is not an object")
        return StageOk(value=result)

    return StageFailure(message=str(envelope.get("error") or "Stage returned no result"))


# =============================================================================
# BASE
# =============================================================================

class Payload(BaseModel):
    """Lenient base for analyzer-owned structures"""
    model_config = ConfigDict(extra="allow")

    @field_validator("*", mode="wrap")
    @classmethod
    def _default_on_error(
        cls,
        value: Any,
        handler: ValidatorFunctionWrapHandler,
        info: ValidationInfo,
    ) -> Any:
        # a mistyped field falls back to its default, the rest of the payload is kept
        try:
            return handler(value)
        except PydanticValidationError:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


# =============================================================================
# STEP 1: QUERY ANALYSIS
# =============================================================================

class ParsedIntent(Payload):
    primary_output_type: Optional[str] = None
    confidence: Optional[float] = None
    secondary_outputs: List[Any] = Field(default_factory=list)

    @field_validator("secondary_outputs", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> List[Any]:
        return _as_list(value)


class QueryConstraints(Payload):
    duration_seconds: Optional[float] = None
    aspect_ratio: Optional[str] = None
    platform: List[str] = Field(default_factory=list)
    image_count: Optional[int] = None
    resolution: Optional[str] = None

    @field_validator("platform", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> List[Any]:
        return _as_list(value)


class TechnicalSpecs(Payload):
    quality_level: Optional[str] = None


class QueryModifiers(Payload):
    style: List[str] = Field(default_factory=list)
    mood: List[str] = Field(default_factory=list)
    technical_specs: TechnicalSpecs = Field(default_factory=TechnicalSpecs)

    @field_validator("style", "mood", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> List[Any]:
        return _as_list(value)

    @field_validator("technical_specs", mode="before")
    @classmethod
    def _specs(cls, value: Any) -> Any:
        return value or {}


class QueryGaps(Payload):
    missing_style_direction: bool = False
    missing_target_audience: bool = False

    @field_validator("missing_style_direction", "missing_target_audience", mode="before")
    @classmethod
    def _truthy(cls, value: Any) -> bool:
        return bool(value)


class AlternativeInterpretation(Payload):
    interpretation: Optional[str] = None
    reasoning: Optional[str] = None
    supporting_elements: List[str] = Field(default_factory=list)
    confidence: Optional[float] = None

    @field_validator("supporting_elements", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> List[Any]:
        return _as_list(value)


class CreativeReframing(Payload):
    alternative_interpretations: List[AlternativeInterpretation] = Field(default_factory=list)

    @field_validator("alternative_interpretations", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> List[Any]:
        return _as_list(value)


class QueryAnalysis(Payload):
    """Step 1 result"""
    normalized_prompt: Optional[str] = None
    intent: ParsedIntent = Field(default_factory=ParsedIntent)
    constraints: QueryConstraints = Field(default_factory=QueryConstraints)
    modifiers: QueryModifiers = Field(default_factory=QueryModifiers)
    gaps: QueryGaps = Field(default_factory=QueryGaps)
    creative_reframing: CreativeReframing = Field(default_factory=CreativeReframing)

    @field_validator("intent", "constraints", "modifiers", "gaps", "creative_reframing", mode="before")
    @classmethod
    def _objects(cls, value: Any) -> Any:
        return value or {}


# =============================================================================
# STEP 2: ASSET ANALYSIS
# =============================================================================

class Dimensions(Payload):
    width: Optional[int] = None
    height: Optional[int] = None


class AssetTechnicalMetadata(Payload):
    dimensions: Optional[Dimensions] = None
    duration_seconds: Optional[float] = None
    fps: Optional[float] = None
    bitrate: Optional[float] = None
    sample_rate: Optional[float] = None
    channels: Optional[int] = None
    file_size: Optional[int] = None
    quality_score: Optional[float] = None
    has_audio: Optional[bool] = None


class AssetContentAnalysis(Payload):
    primary_description: Optional[str] = None
    objects_detected: List[Any] = Field(default_factory=list)
    style_analysis: Optional[Any] = None
    mood_assessment: Optional[Any] = None
    transcript: Optional[str] = None
    detected_language: Optional[str] = None
    detected_tone: Optional[Any] = None
    scenes_detected: List[Any] = Field(default_factory=list)
    motion_type: Optional[Any] = None

    @field_validator("objects_detected", "scenes_detected", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> List[Any]:
        return _as_list(value)


class QueryAlignment(Payload):
    role_in_project: Optional[str] = None


class AssetAnalysis(Payload):
    """Analysis record for a single asset"""
    asset_id: Optional[str] = None
    asset_type: Optional[str] = None
    metadata: AssetTechnicalMetadata = Field(default_factory=AssetTechnicalMetadata)
    content_analysis: AssetContentAnalysis = Field(default_factory=AssetContentAnalysis)
    alignment_with_query: QueryAlignment = Field(default_factory=QueryAlignment)

    @field_validator("metadata", "content_analysis", "alignment_with_query", mode="before")
    @classmethod
    def _objects(cls, value: Any) -> Any:
        return value or {}


class AssetSummary(Payload):
    overall_quality_score: Optional[float] = None


class AssetAnalysisReport(Payload):
    """Step 2 result. asset_analyses stays raw so one bad record cannot sink the rest."""
    asset_analyses: List[Any] = Field(default_factory=list)
    summary: AssetSummary = Field(default_factory=AssetSummary)

    @field_validator("asset_analyses", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> List[Any]:
        return _as_list(value)

    @field_validator("summary", mode="before")
    @classmethod
    def _summary(cls, value: Any) -> Any:
        return value or {}


# =============================================================================
# STEP 3: CREATIVE SYNTHESIS
# =============================================================================

class CreativeSynthesis(Payload):
    summary: Optional[str] = None
    style_fusion_strategy: Optional[str] = None
    narrative_structure: Optional[str] = None
    unified_creative_direction: Optional[Any] = None


class IdentifiedGap(Payload):
    gap_type: Optional[str] = None
    description: Optional[str] = None
    impact_level: Optional[str] = None
    suggested_resolution: Optional[str] = None


class GapAnalysis(Payload):
    identified_gaps: List[IdentifiedGap] = Field(default_factory=list)

    @field_validator("identified_gaps", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> List[Any]:
        return _as_list(value)


class SynthesisMetadata(Payload):
    synthesis_confidence: Optional[float] = None


class SynthesisReport(Payload):
    """Step 3 result"""
    creative_synthesis: Optional[CreativeSynthesis] = None
    gap_analysis: GapAnalysis = Field(default_factory=GapAnalysis)
    synthesis_metadata: SynthesisMetadata = Field(default_factory=SynthesisMetadata)

    @field_validator("gap_analysis", "synthesis_metadata", mode="before")
    @classmethod
    def _objects(cls, value: Any) -> Any:
        return value or {}


# =============================================================================
# STEP 4: FINAL SUMMARIZATION
# =============================================================================

class ProjectFeasibility(Payload):
    overall_feasibility: Optional[float] = None


class GlobalUnderstanding(Payload):
    unified_creative_direction: Dict[str, Any] = Field(default_factory=dict)
    identified_challenges: List[Any] = Field(default_factory=list)
    project_feasibility: ProjectFeasibility = Field(default_factory=ProjectFeasibility)

    @field_validator("identified_challenges", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> List[Any]:
        return _as_list(value)

    @field_validator("unified_creative_direction", "project_feasibility", mode="before")
    @classmethod
    def _objects(cls, value: Any) -> Any:
        return value or {}


class AlternativeApproach(Payload):
    approach_name: Optional[str] = None
    description: Optional[str] = None
    creative_direction: Optional[str] = None
    supporting_elements: List[str] = Field(default_factory=list)
    advantages: List[str] = Field(default_factory=list)
    confidence_score: Optional[float] = None

    @field_validator("supporting_elements", "advantages", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> List[Any]:
        return _as_list(value)


class SummaryCreativeOptions(Payload):
    alternative_approaches: List[AlternativeApproach] = Field(default_factory=list)

    @field_validator("alternative_approaches", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> List[Any]:
        return _as_list(value)


class ConfidenceBreakdown(Payload):
    overall_confidence: Optional[float] = None


class ProcessingInsightsPayload(Payload):
    confidence_breakdown: ConfidenceBreakdown = Field(default_factory=ConfidenceBreakdown)

    @field_validator("confidence_breakdown", mode="before")
    @classmethod
    def _objects(cls, value: Any) -> Any:
        return value or {}


class AnalysisMetadata(Payload):
    quality_score: Optional[float] = None
    completion_status: Optional[str] = None


class PipelineRecommendationsPayload(Payload):
    integration_strategy: Optional[str] = None
    estimated_total_time: Optional[str] = None
    overall_success_probability: Optional[float] = None


class FinalSummary(Payload):
    """Step 4 result"""
    global_understanding: GlobalUnderstanding = Field(default_factory=GlobalUnderstanding)
    creative_options: SummaryCreativeOptions = Field(default_factory=SummaryCreativeOptions)
    processing_insights: ProcessingInsightsPayload = Field(default_factory=ProcessingInsightsPayload)
    analysis_metadata: AnalysisMetadata = Field(default_factory=AnalysisMetadata)
    pipeline_recommendations: PipelineRecommendationsPayload = Field(
        default_factory=PipelineRecommendationsPayload
    )

    @field_validator(
        "global_understanding", "creative_options", "processing_insights",
        "analysis_metadata", "pipeline_recommendations", mode="before"
    )
    @classmethod
    def _objects(cls, value: Any) -> Any:
        return value or {}
