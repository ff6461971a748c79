"""
Conflict detection between requested constraints and observed assets.

Two additive checks: video duration vs the requested duration, and asset
aspect ratio vs the requested aspect ratio. All duration conflicts come
before all aspect-ratio conflicts, each group in asset order.
"""

import logging
from typing import List, Optional, Sequence

from .enrichment import format_seconds
from .state_machine import Conflict, EnrichedAsset, MediaType

logger = logging.getLogger(__name__)

ASPECT_RATIO_TOLERANCE = 0.1
DEFAULT_ASPECT_RATIO = "16:9"
TARGET_RATIOS = {
    "16:9": 16 / 9,
    "1:1": 1.0,
    "9:16": 9 / 16,
}


def target_ratio(aspect_ratio: Optional[str]) -> float:
    return TARGET_RATIOS.get(aspect_ratio or DEFAULT_ASPECT_RATIO, TARGET_RATIOS[DEFAULT_ASPECT_RATIO])


def duration_conflicts(assets: Sequence[EnrichedAsset], target: Optional[float]) -> List[Conflict]:
    if not target:
        return []

    conflicts = []
    for asset in assets:
        duration = asset.meta.duration_seconds
        if asset.type is not MediaType.VIDEO or not duration or duration == target:
            continue
        conflicts.append(Conflict(
            issue=f"Uploaded video is {format_seconds(duration)} but target duration is {format_seconds(target)}",
            resolution="Trim or cut scenes" if duration > target else "Loop or extend footage",
            kind="duration",
            asset_id=asset.id,
        ))
    return conflicts


def aspect_ratio_conflicts(assets: Sequence[EnrichedAsset], aspect_ratio: Optional[str]) -> List[Conflict]:
    label = aspect_ratio or DEFAULT_ASPECT_RATIO
    expected = target_ratio(label)

    conflicts = []
    for asset in assets:
        dimensions = asset.meta.dimensions
        if dimensions is None or not dimensions[1]:
            continue
        width, height = dimensions
        # a mismatch of exactly the tolerance is not a conflict
        if round(abs(width / height - expected), 9) > ASPECT_RATIO_TOLERANCE:
            conflicts.append(Conflict(
                issue=f"Asset aspect ratio ({asset.meta.resolution}) doesn't match target ({label})",
                resolution="Crop or add letterboxing",
                kind="aspect_ratio",
                asset_id=asset.id,
            ))
    return conflicts


def detect_conflicts(
    assets: Sequence[EnrichedAsset],
    target_duration: Optional[float],
    aspect_ratio: Optional[str],
) -> List[Conflict]:
    conflicts = duration_conflicts(assets, target_duration) + aspect_ratio_conflicts(assets, aspect_ratio)
    if conflicts:
        logger.debug(f"Detected {len(conflicts)} constraint conflict(s)")
    return conflicts
