"""
================================================================================
DREAMCUT v3.0 - ASSET ENRICHMENT & ROLES
================================================================================
Merges per-asset analysis records into observable metadata, derives the
recommended edit list per media type and assigns each asset one role.

An asset without an analysis record keeps empty meta/analysis and a 0.5
quality score. Nothing here raises on missing analysis.

Author: Barrios A2I | DREAMCUT v3.0
================================================================================
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from .payloads import AssetAnalysis, AssetAnalysisReport
from .state_machine import (
    AssetInsights,
    AssetMeta,
    AssetRole,
    EnrichedAsset,
    MediaType,
    OutputIntent,
    RawAsset,
)

logger = logging.getLogger(__name__)

HD_WIDTH = 1920
LOW_QUALITY_SCORE = 6
DEFAULT_QUALITY_SCORE = 5
PRIMARY_CONTENT_ROLE = "primary_content"
REFERENCE_MARKERS = ("reference", "style")

MIME_TYPES = {
    MediaType.IMAGE: ({"jpg": "image/jpeg", "jpeg": "image/jpeg", "png": "image/png",
                       "gif": "image/gif", "webp": "image/webp"}, "image/jpeg"),
    MediaType.VIDEO: ({"mp4": "video/mp4", "webm": "video/webm", "mov": "video/quicktime",
                       "avi": "video/x-msvideo"}, "video/mp4"),
    MediaType.AUDIO: ({"mp3": "audio/mpeg", "wav": "audio/wav", "ogg": "audio/ogg",
                       "m4a": "audio/mp4"}, "audio/mpeg"),
}


def format_seconds(value: float) -> str:
    """45.0 -> '45s', 12.5 -> '12.5s'"""
    number = float(value)
    return f"{int(number)}s" if number.is_integer() else f"{number}s"


def detect_mime(media_type: MediaType, filename: str) -> str:
    mapping, default = MIME_TYPES[media_type]
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return mapping.get(extension, default)


# =============================================================================
# ANALYSIS MATCHING
# =============================================================================

def _parse_record(record: Any) -> Optional[AssetAnalysis]:
    if not isinstance(record, dict):
        logger.warning(f"Skipping asset analysis record of type {type(record).__name__}")
        return None
    return AssetAnalysis.model_validate(record)


def match_analyses(
    assets: Sequence[RawAsset],
    report: Optional[AssetAnalysisReport],
) -> List[Optional[AssetAnalysis]]:
    """
    Pair each asset with its analysis record.

    Records carrying a known asset_id are matched by id; the rest fall back
    to position. A record that is not an object counts as absent.
    """
    if report is None:
        return [None] * len(assets)

    records = [_parse_record(record) for record in report.asset_analyses]
    known_ids = {asset.id for asset in assets}
    by_id = {
        record.asset_id: record
        for record in records
        if record is not None and record.asset_id in known_ids
    }

    matched = []
    for index, asset in enumerate(assets):
        record = by_id.get(asset.id)
        if record is None and index < len(records):
            positional = records[index]
            if positional is not None and positional.asset_id not in known_ids:
                record = positional
        matched.append(record)
    return matched


# =============================================================================
# EDITS & ROLES
# =============================================================================

def derive_edits(
    media_type: MediaType,
    analysis: AssetAnalysis,
    style_modifiers: Sequence[str],
    target_duration: Optional[float],
) -> List[str]:
    """Recommended edits, in rule order"""
    metadata = analysis.metadata
    width = metadata.dimensions.width if metadata.dimensions else None
    edits = []

    if metadata.quality_score is not None and metadata.quality_score < LOW_QUALITY_SCORE:
        edits.append("enhance-quality")

    if media_type is MediaType.IMAGE:
        if width is not None and width < HD_WIDTH:
            edits.append("upscale")
        if style_modifiers:
            edits.append("style-transfer")
        edits.append("enhance-contrast")

    elif media_type is MediaType.VIDEO:
        duration = metadata.duration_seconds
        if target_duration and duration is not None and duration > target_duration:
            edits.append(f"trim-to-{format_seconds(target_duration)}")
        if width is not None and width < HD_WIDTH:
            edits.append("upscale")
        edits.append("adjust-color-grading")

    elif media_type is MediaType.AUDIO:
        edits.append("normalize-volume")
        if analysis.alignment_with_query.role_in_project == PRIMARY_CONTENT_ROLE:
            edits.append("sync-with-video")

    return edits


def assign_role(asset: EnrichedAsset, intent: OutputIntent) -> AssetRole:
    """First match wins: sync edit, matching type, reference wording, fallback"""
    if "sync-with-video" in asset.analysis.recommended_edits:
        return AssetRole.VOICEOVER
    if asset.type.value == intent.value:
        return AssetRole.PRIMARY_FOOTAGE
    description = (asset.user_description or "").lower()
    if any(marker in description for marker in REFERENCE_MARKERS):
        return AssetRole.STYLE_REFERENCE
    return AssetRole.SUPPORTING


# =============================================================================
# ENRICHMENT
# =============================================================================

def quality_from_analysis(analysis: Optional[AssetAnalysis]) -> float:
    """0-10 analyzer score normalized to 0-1"""
    if analysis is None:
        return DEFAULT_QUALITY_SCORE / 10
    score = analysis.metadata.quality_score
    raw = DEFAULT_QUALITY_SCORE if score is None else score
    return max(0.0, min(1.0, raw / 10))


def enrich_asset(
    asset: RawAsset,
    analysis: Optional[AssetAnalysis],
    intent: OutputIntent,
    style_modifiers: Sequence[str] = (),
    target_duration: Optional[float] = None,
) -> EnrichedAsset:
    base: Dict[str, Any] = {
        **asset.model_dump(),
        "detected_mime": detect_mime(asset.type, asset.filename),
        "quality_score": quality_from_analysis(analysis),
    }

    if analysis is not None:
        metadata = analysis.metadata
        content = analysis.content_analysis
        dimensions = metadata.dimensions
        has_dimensions = dimensions is not None and dimensions.width and dimensions.height

        base["size_bytes"] = metadata.file_size or 0
        base["meta"] = AssetMeta(
            resolution=f"{dimensions.width}x{dimensions.height}" if has_dimensions else None,
            duration_seconds=metadata.duration_seconds,
            fps=metadata.fps,
            bitrate=metadata.bitrate,
            sample_rate=metadata.sample_rate,
            channels=metadata.channels,
        )
        base["analysis"] = AssetInsights(
            caption=content.primary_description,
            objects=content.objects_detected,
            style=content.style_analysis,
            mood=content.mood_assessment,
            transcript=content.transcript,
            language=content.detected_language,
            tone=content.detected_tone,
            scenes=content.scenes_detected,
            motion=content.motion_type,
            has_audio=metadata.has_audio,
            recommended_edits=derive_edits(asset.type, analysis, style_modifiers, target_duration),
        )

    enriched = EnrichedAsset(**base)
    return enriched.model_copy(update={"role": assign_role(enriched, intent)})


def enrich_assets(
    assets: Sequence[RawAsset],
    report: Optional[AssetAnalysisReport],
    intent: OutputIntent,
    style_modifiers: Sequence[str] = (),
    target_duration: Optional[float] = None,
) -> List[EnrichedAsset]:
    records = match_analyses(assets, report)
    return [
        enrich_asset(asset, record, intent, style_modifiers, target_duration)
        for asset, record in zip(assets, records)
    ]
