"""
================================================================================
DREAMCUT v3.0 - RESPONSE ASSEMBLER
================================================================================
Composes the enriched assets, conflicts, options, pipeline and scores into
one CreativeBrief, then renders it in the envelope matching the inbound
request shape:

- modern: the brief itself
- legacy: {success, brief: {briefId, createdAt, request, analysis, plan,
  status, ...brief}}

Both envelopes are rendered from the same brief object.

Author: Barrios A2I | DREAMCUT v3.0
================================================================================
"""

import logging
import secrets
import time
from typing import Any, Dict, List, Optional, Sequence

from .config import DreamcutConfig
from .conflicts import detect_conflicts
from .creative_options import rank_options
from .enrichment import enrich_assets
from .payloads import FinalSummary
from .pipeline_builder import LOW_QUALITY_THRESHOLD, build_pipeline
from .prompt_analysis import analyze_prompt
from .state_machine import (
    STAGE_ASSETS,
    STAGE_QUERY,
    STAGE_SUMMARY,
    STAGE_SYNTHESIS,
    STAGES,
    BriefState,
    CreativeBrief,
    EnrichedAsset,
    GlobalAnalysis,
    OutputIntent,
    ProcessingInsights,
    QualityMetrics,
    RequestOptions,
    RequestShape,
    StageStatus,
)

logger = logging.getLogger(__name__)

VAGUE_PROMPT_LENGTH = 5
LOW_SUMMARY_QUALITY = 5
DEFAULT_DURATION_SECONDS = 30

DEGRADED_WARNINGS = {
    STAGE_ASSETS: "Asset analysis unavailable - assets use default metadata and quality",
    STAGE_SYNTHESIS: "Creative synthesis unavailable - creative options are rule-based",
    STAGE_SUMMARY: "Final summarization unavailable - creative direction is rule-based",
}

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def new_brief_id() -> str:
    """dq_<base36 millis>_<6 random chars>"""
    millis = int(time.time() * 1000)
    encoded = ""
    while millis:
        millis, remainder = divmod(millis, 36)
        encoded = _BASE36[remainder] + encoded
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"dq_{encoded or '0'}_{suffix}"


# =============================================================================
# RULE-BASED SECTIONS
# =============================================================================

def build_warnings(state: BriefState) -> List[str]:
    warnings = []
    query = state.query_analysis

    if query is not None and query.gaps.missing_style_direction:
        warnings.append("No specific style direction provided - will use default styling")
    if query is not None and query.gaps.missing_target_audience:
        warnings.append("Target audience not specified - optimizing for general viewers")

    assets = state.asset_analysis
    overall = assets.summary.overall_quality_score if assets is not None else None
    if overall is not None and overall < LOW_SUMMARY_QUALITY:
        warnings.append("Some assets have low quality - enhancement recommended")

    synthesis = state.synthesis
    if synthesis is not None and any(
        gap.impact_level == "critical" for gap in synthesis.gap_analysis.identified_gaps
    ):
        warnings.append("Critical gaps identified - manual review recommended")

    for degraded in state.degraded:
        warnings.append(DEGRADED_WARNINGS.get(degraded.stage, f"{degraded.stage} unavailable"))

    return warnings


def build_challenges(
    prompt: str,
    assets: Sequence[EnrichedAsset],
    summary: Optional[FinalSummary],
) -> List[Any]:
    if summary is not None and summary.global_understanding.identified_challenges:
        return list(summary.global_understanding.identified_challenges)

    challenges = []
    if len(prompt) < VAGUE_PROMPT_LENGTH:
        challenges.append({
            "type": "clarity",
            "description": f'User prompt "{prompt}" is vague and requires interpretation.',
            "impact": "moderate",
        })
    if not assets:
        challenges.append({
            "type": "resource",
            "description": "No primary content assets identified for the project",
            "impact": "major",
        })
    if any(asset.quality_score < LOW_QUALITY_THRESHOLD for asset in assets):
        challenges.append({
            "type": "quality",
            "description": "Some assets require quality enhancement before processing",
            "impact": "moderate",
        })
    return challenges


def core_concept(prompt: str, intent: OutputIntent) -> str:
    if len(prompt) < VAGUE_PROMPT_LENGTH:
        return f"Create engaging {intent.value} content that captures attention and tells a compelling story."
    return f'Transform "{prompt}" into professional {intent.value} content with creative enhancement.'


def build_creative_direction(
    prompt: str,
    intent: OutputIntent,
    summary: Optional[FinalSummary],
) -> Dict[str, Any]:
    direction = dict(summary.global_understanding.unified_creative_direction) if summary else {}
    direction.setdefault("core_concept", core_concept(prompt, intent))
    direction.setdefault("visual_approach", "Apply platform-appropriate styling with professional enhancement")
    direction.setdefault("style_direction", "Modern, clean, and engaging visual style")
    direction.setdefault("mood_atmosphere", "Maintain consistent mood throughout the content")
    return {key: value for key, value in direction.items() if value is not None}


def build_recommendations(prompt: str) -> List[Dict[str, str]]:
    recommendations = []
    if len(prompt) < VAGUE_PROMPT_LENGTH:
        recommendations.append({
            "type": "clarity",
            "recommendation": "Encourage user to refine prompt with more specific details.",
            "priority": "important",
        })
    recommendations.append({
        "type": "quality",
        "recommendation": "Enhance asset quality before applying creative direction.",
        "priority": "recommended",
    })
    recommendations.append({
        "type": "creative",
        "recommendation": "Offer multiple style treatments for user approval.",
        "priority": "recommended",
    })
    return recommendations


def _goal(state: BriefState) -> str:
    summary = state.summary
    if summary is not None:
        concept = summary.global_understanding.unified_creative_direction.get("core_concept")
        if concept:
            return str(concept)
    if state.prompt_insights is not None:
        return state.prompt_insights.user_intent_description
    return core_concept(state.request.prompt, state.intent)


# =============================================================================
# ASSEMBLY
# =============================================================================

def assemble_brief(
    state: BriefState,
    quality: QualityMetrics,
    processing_time_ms: float,
) -> CreativeBrief:
    """Fold a finished run state into the immutable brief"""
    request = state.request
    constraints = state.constraints
    query = state.query_analysis
    style_modifiers = list(query.modifiers.style) if query is not None else []
    requested_duration = request.options.duration_seconds

    assets = enrich_assets(
        request.assets,
        state.asset_analysis,
        state.intent,
        style_modifiers=style_modifiers,
        target_duration=requested_duration,
    )

    global_analysis = GlobalAnalysis(
        goal=_goal(state),
        constraints=constraints,
        asset_roles={asset.id: asset.role for asset in assets},
        conflicts=detect_conflicts(assets, requested_duration, request.options.aspect_ratio),
        identified_challenges=build_challenges(request.prompt, assets, state.summary),
        creative_direction=build_creative_direction(request.prompt, state.intent, state.summary),
    )

    step_breakdown = {STAGE_QUERY: StageStatus.COMPLETED}
    for stage in STAGES[1:]:
        step_breakdown[stage] = state.stage_status.get(stage, StageStatus.SKIPPED)

    return CreativeBrief(
        id=state.run_id,
        version=DreamcutConfig.SCHEMA_VERSION,
        created_at=state.created_at.isoformat(),
        user_id=request.user_id,
        user_prompt=request.prompt,
        intent=state.intent,
        options=RequestOptions(
            duration_seconds=constraints.duration_seconds or DEFAULT_DURATION_SECONDS,
            aspect_ratio=constraints.aspect_ratio,
            image_count=constraints.image_count,
            platform=constraints.platform,
        ),
        prompt_analysis=state.prompt_insights or analyze_prompt(request.prompt, state.intent, request.options),
        assets=assets,
        final_analysis=state.summary_payload,
        global_analysis=global_analysis,
        creative_options=rank_options(
            state.intent,
            assets,
            query=query,
            synthesis=state.synthesis,
            summary=state.summary,
        ),
        recommended_pipeline=build_pipeline(assets, style_modifiers, state.summary),
        warnings=build_warnings(state),
        recommendations=build_recommendations(request.prompt),
        processing_insights=ProcessingInsights(
            total_processing_time_ms=round(processing_time_ms, 2),
            step_breakdown=step_breakdown,
            stage_timings=dict(state.stage_timings_ms),
            quality_metrics=quality,
        ),
    )


# =============================================================================
# ENVELOPES
# =============================================================================

def to_modern(brief: CreativeBrief) -> Dict[str, Any]:
    return brief.to_payload()


def to_legacy(brief: CreativeBrief, raw_body: Dict[str, Any]) -> Dict[str, Any]:
    payload = brief.to_payload()
    return {
        "success": True,
        "brief": {
            "briefId": brief.id,
            "createdAt": brief.created_at,
            "request": raw_body,
            "analysis": {
                "comprehensive": payload,
                "final_analysis": payload["final_analysis"],
            },
            "plan": {
                "assetProcessing": {},
                "creativeOptions": payload["creativeOptions"],
                "costEstimate": 0,
            },
            "status": "analyzed",
            **payload,
        },
    }


def render(brief: CreativeBrief, shape: RequestShape, raw_body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Envelope matching the inbound request shape"""
    if shape is RequestShape.LEGACY:
        return to_legacy(brief, raw_body or {})
    return to_modern(brief)
