"""
================================================================================
DREAMCUT v3.0 - CREATIVE OPTIONS RANKER
================================================================================
Merges analyzer-suggested alternatives with rule-based fallbacks.

Order:
  (a) summarizer alternative approaches, then query-analysis alternative
      interpretations -> opt_A, opt_B, ...
  (b) synthesis style fusion / narrative structure -> opt_style_N, opt_narrative_N
  (c) opt_standard, then intent-based fallbacks, until at least two exist

Author: Barrios A2I | DREAMCUT v3.0
================================================================================
"""

from typing import List, Optional, Sequence

from .payloads import FinalSummary, QueryAnalysis, SynthesisReport
from .state_machine import CreativeOption, EnrichedAsset, MediaType, OutputIntent, Workload

MIN_OPTIONS = 2
DEFAULT_APPROACH_CONFIDENCE = 0.7

STANDARD_OPTION = CreativeOption(
    id="opt_standard",
    title="Standard Production",
    short="Professional execution following best practices",
    reasons=["reliable results", "efficient processing"],
    estimated_workload=Workload.LOW,
    source="fallback",
)

_VIDEO_FOOTAGE_FALLBACKS = [
    CreativeOption(
        id="opt_calm",
        title="Calm Professional Style",
        short="Smooth, serene video with professional pacing and refined aesthetics.",
        reasons=["Matches calm mood of footage", "Professional and platform-friendly"],
        estimated_workload=Workload.LOW,
        source="fallback",
    ),
    CreativeOption(
        id="opt_energetic",
        title="Energetic Social Style",
        short="Fast-paced, engaging video with dynamic transitions and vibrant colors.",
        reasons=["More engaging for social media", "Adds energy despite vague prompt"],
        estimated_workload=Workload.MEDIUM,
        source="fallback",
    ),
]

_VIDEO_FALLBACKS = [
    CreativeOption(
        id="opt_minimal",
        title="Minimal Clean Style",
        short="Clean, simple approach focusing on clarity and professional presentation.",
        reasons=["Works with any content type", "Safe and reliable"],
        estimated_workload=Workload.LOW,
        source="fallback",
    ),
]

_IMAGE_FALLBACKS = [
    CreativeOption(
        id="opt_modern",
        title="Modern Professional",
        short="Contemporary design with clean lines and professional aesthetics.",
        reasons=["Versatile and professional", "Works across platforms"],
        estimated_workload=Workload.LOW,
        source="fallback",
    ),
    CreativeOption(
        id="opt_creative",
        title="Creative Artistic",
        short="Artistic approach with creative elements and visual interest.",
        reasons=["More engaging and memorable", "Stands out on social media"],
        estimated_workload=Workload.MEDIUM,
        source="fallback",
    ),
]

DEFAULT_OPTION = CreativeOption(
    id="opt_default",
    title="Default Professional",
    short="Professional approach with platform-appropriate styling.",
    reasons=["Reliable and safe choice", "Works for any content"],
    estimated_workload=Workload.LOW,
    source="fallback",
)


def workload_for(confidence: Optional[float]) -> Workload:
    if confidence is not None and confidence > 0.8:
        return Workload.LOW
    if confidence is not None and confidence > 0.6:
        return Workload.MEDIUM
    return Workload.HIGH


def sequential_id(index: int) -> str:
    """opt_A .. opt_Z, opt_AA, opt_AB, ..."""
    letters = ""
    index += 1
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(65 + remainder) + letters
    return f"opt_{letters}"


def _interpretation_options(
    query: Optional[QueryAnalysis],
    summary: Optional[FinalSummary],
) -> List[CreativeOption]:
    options = []

    if summary is not None:
        for approach in summary.creative_options.alternative_approaches:
            confidence = approach.confidence_score
            if confidence is None:
                confidence = DEFAULT_APPROACH_CONFIDENCE
            position = len(options)
            options.append(CreativeOption(
                id=sequential_id(position),
                title=approach.approach_name or f"Creative Option {position + 1}",
                short=approach.description or approach.creative_direction or "Alternative creative approach",
                reasons=approach.supporting_elements or approach.advantages or ["creative variation"],
                estimated_workload=workload_for(confidence),
                confidence=confidence,
                source="final_summarization",
            ))

    if query is not None:
        for alternative in query.creative_reframing.alternative_interpretations:
            position = len(options)
            options.append(CreativeOption(
                id=sequential_id(position),
                title=alternative.interpretation or f"Creative Option {position + 1}",
                short=alternative.reasoning or "Alternative creative approach",
                reasons=alternative.supporting_elements or ["creative variation"],
                estimated_workload=workload_for(alternative.confidence),
                confidence=alternative.confidence,
                source="query_analysis",
            ))

    return options


def _synthesis_options(synthesis: Optional[SynthesisReport], offset: int) -> List[CreativeOption]:
    if synthesis is None or synthesis.creative_synthesis is None:
        return []

    creative = synthesis.creative_synthesis
    options = []
    if creative.style_fusion_strategy:
        options.append(CreativeOption(
            id=f"opt_style_{offset + len(options)}",
            title="Style Fusion Approach",
            short=creative.style_fusion_strategy,
            reasons=["leverage multiple styles", "create unique aesthetic"],
            estimated_workload=Workload.MEDIUM,
            source="synthesis",
        ))
    if creative.narrative_structure:
        options.append(CreativeOption(
            id=f"opt_narrative_{offset + len(options)}",
            title="Narrative-Driven Structure",
            short=creative.narrative_structure,
            reasons=["clear story progression", "engaging flow"],
            estimated_workload=Workload.MEDIUM,
            source="synthesis",
        ))
    return options


def fallback_options(intent: OutputIntent, assets: Sequence[EnrichedAsset]) -> List[CreativeOption]:
    if intent is OutputIntent.VIDEO:
        if any(asset.type is MediaType.VIDEO for asset in assets):
            return list(_VIDEO_FOOTAGE_FALLBACKS)
        return list(_VIDEO_FALLBACKS) + [DEFAULT_OPTION]
    if intent is OutputIntent.IMAGE:
        return list(_IMAGE_FALLBACKS)
    return [DEFAULT_OPTION]


def rank_options(
    intent: OutputIntent,
    assets: Sequence[EnrichedAsset],
    query: Optional[QueryAnalysis] = None,
    synthesis: Optional[SynthesisReport] = None,
    summary: Optional[FinalSummary] = None,
) -> List[CreativeOption]:
    """Always returns at least two options with unique ids"""
    options = _interpretation_options(query, summary)
    options += _synthesis_options(synthesis, len(options))

    if len(options) < MIN_OPTIONS:
        options.append(STANDARD_OPTION)

    seen = {option.id for option in options}
    for option in fallback_options(intent, assets):
        if len(options) >= MIN_OPTIONS:
            break
        if option.id not in seen:
            options.append(option)
            seen.add(option.id)

    return options
