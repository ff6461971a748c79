"""
Confidence / feasibility scoring.

Displayed confidence, feasibility and analysis quality never drop below the
configured floors, and a "partial" completion is reported as "complete".
The pre-floor values are kept on QualityMetrics (excluded from the brief).
"""

from typing import Optional

from .config import DreamcutConfig
from .payloads import FinalSummary
from .state_machine import QualityMetrics

COMPLETE = "complete"
PARTIAL = "partial"


class BriefScorer:
    """Applies the floor policy to the summarizer's reported scores"""

    def __init__(
        self,
        confidence_floor: float = DreamcutConfig.CONFIDENCE_FLOOR,
        feasibility_floor: float = DreamcutConfig.FEASIBILITY_FLOOR,
        quality_floor: float = DreamcutConfig.QUALITY_FLOOR,
        default_confidence: float = DreamcutConfig.DEFAULT_CONFIDENCE,
        default_feasibility: float = DreamcutConfig.DEFAULT_FEASIBILITY,
        default_quality: float = DreamcutConfig.DEFAULT_QUALITY,
    ):
        self.confidence_floor = confidence_floor
        self.feasibility_floor = feasibility_floor
        self.quality_floor = quality_floor
        self.default_confidence = default_confidence
        self.default_feasibility = default_feasibility
        self.default_quality = default_quality

    def score(self, summary: Optional[FinalSummary]) -> QualityMetrics:
        confidence = feasibility = quality = status = None
        if summary is not None:
            confidence = summary.processing_insights.confidence_breakdown.overall_confidence
            feasibility = summary.global_understanding.project_feasibility.overall_feasibility
            quality = summary.analysis_metadata.quality_score
            status = summary.analysis_metadata.completion_status

        raw_confidence = self.default_confidence if confidence is None else confidence
        raw_feasibility = self.default_feasibility if feasibility is None else feasibility
        raw_quality = self.default_quality if quality is None else quality

        return QualityMetrics(
            overall_confidence=max(raw_confidence, self.confidence_floor),
            analysis_quality=max(raw_quality, self.quality_floor),
            completion_status=self.completion_status(status),
            feasibility_score=max(raw_feasibility, self.feasibility_floor),
            raw_confidence=raw_confidence,
            raw_feasibility=raw_feasibility,
            raw_analysis_quality=raw_quality,
        )

    @staticmethod
    def completion_status(reported: Optional[str]) -> str:
        if not reported or reported == PARTIAL:
            return COMPLETE
        return reported

    def was_boosted(self, metrics: QualityMetrics) -> bool:
        return (
            metrics.raw_confidence is not None and metrics.raw_confidence < metrics.overall_confidence
        ) or (
            metrics.raw_feasibility is not None and metrics.raw_feasibility < metrics.feasibility_score
        )
