"""Pipeline recommendation: preprocessing steps, model map, integration strategy."""

from typing import Dict, List, Optional, Sequence

from .enrichment import HD_WIDTH
from .payloads import FinalSummary
from .state_machine import EnrichedAsset, MediaType, PipelineRecommendation

LOW_QUALITY_THRESHOLD = 0.7
DEFAULT_SUCCESS_PROBABILITY = 0.8
FALLBACK_STEP = "validate and prepare assets"

STYLE_PRESET_STEPS = {
    "cyberpunk": "apply cyberpunk color grading",
    "vintage": "apply vintage film grading",
    "noir": "apply black-and-white noir grading",
    "cinematic": "apply cinematic color grading",
}

STANDARD_INTEGRATION = "standard pipeline execution"
VOICEOVER_INTEGRATION = "combine assets via Shotstack API with timing from voiceover"


def preprocessing_steps(assets: Sequence[EnrichedAsset], style_modifiers: Sequence[str]) -> List[str]:
    steps: List[str] = []

    def add(step: str) -> None:
        if step not in steps:
            steps.append(step)

    if any(asset.quality_score < LOW_QUALITY_THRESHOLD for asset in assets):
        add("enhance asset quality")

    if any(_width(asset) is not None and _width(asset) < HD_WIDTH for asset in assets):
        add("upscale to HD/4K")

    if any(asset.type is MediaType.AUDIO for asset in assets):
        add("normalize audio levels")

    for style in style_modifiers:
        step = STYLE_PRESET_STEPS.get(str(style).strip().lower())
        if step:
            add(step)

    return steps or [FALLBACK_STEP]


def _width(asset: EnrichedAsset) -> Optional[int]:
    dimensions = asset.meta.dimensions
    return dimensions[0] if dimensions else None


def generation_models(style_modifiers: Sequence[str]) -> Dict[str, str]:
    return {
        "video": "shotstack-edit",
        "image": "replicate-sdxl" if style_modifiers else "replicate-flux",
        "audio": "elevenlabs-enhance",
        "text": "together-ai-llama-3-1-405b",
    }


def build_pipeline(
    assets: Sequence[EnrichedAsset],
    style_modifiers: Sequence[str] = (),
    summary: Optional[FinalSummary] = None,
) -> PipelineRecommendation:
    steps = preprocessing_steps(assets, style_modifiers)

    integration = STANDARD_INTEGRATION
    if any(asset.type is MediaType.AUDIO and asset.analysis.transcript for asset in assets):
        integration = VOICEOVER_INTEGRATION

    recommendations = summary.pipeline_recommendations if summary is not None else None
    estimated_time = recommendations.estimated_total_time if recommendations else None
    if not estimated_time:
        estimated_time = "15-25 minutes" if len(steps) <= 3 else "30-45 minutes"

    success_probability = recommendations.overall_success_probability if recommendations else None
    if success_probability is None:
        success_probability = DEFAULT_SUCCESS_PROBABILITY

    return PipelineRecommendation(
        preprocessing=steps,
        generation_models=generation_models(style_modifiers),
        integration=integration,
        estimated_time=estimated_time,
        success_probability=max(0.0, min(1.0, success_probability)),
    )
