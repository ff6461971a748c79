"""
Shared fixtures for the DREAMCUT test suite.

FakeAnalysisClient stands in for the four analyzer stages; RecordingSink
captures pipeline events instead of logging them.
"""
import copy
from typing import Any, Dict, List, Optional

import pytest

from dreamcut.collaborators import AnalysisClient
from dreamcut.graph_nodes import BriefPipeline
from dreamcut.observability import BriefEventSink


def ok(result: Dict[str, Any]) -> Dict[str, Any]:
    return {"success": True, "result": result, "error": None}


def failed(error: str = "analyzer offline") -> Dict[str, Any]:
    return {"success": False, "result": None, "error": error}


QUERY_RESULT = {
    "normalized_prompt": "make a promo video",
    "intent": {"primary_output_type": "video", "confidence": 0.9, "secondary_outputs": []},
    "constraints": {"duration_seconds": None, "aspect_ratio": None, "platform": ["instagram"]},
    "modifiers": {"style": [], "mood": ["upbeat"], "technical_specs": {"quality_level": "high"}},
    "gaps": {"missing_style_direction": True, "missing_target_audience": False},
    "creative_reframing": {"alternative_interpretations": []},
}

SYNTHESIS_RESULT = {
    "creative_synthesis": {
        "summary": "Upbeat product reel",
        "style_fusion_strategy": None,
        "narrative_structure": None,
    },
    "gap_analysis": {"identified_gaps": []},
    "synthesis_metadata": {"synthesis_confidence": 0.8},
}

SUMMARY_RESULT = {
    "global_understanding": {
        "unified_creative_direction": {"core_concept": "Fast-cut product reel"},
        "identified_challenges": [],
        "project_feasibility": {"overall_feasibility": 0.4},
    },
    "creative_options": {"alternative_approaches": []},
    "processing_insights": {"confidence_breakdown": {"overall_confidence": 0.5}},
    "analysis_metadata": {"quality_score": 7, "completion_status": "partial"},
    "pipeline_recommendations": {"estimated_total_time": "20 minutes", "overall_success_probability": 0.9},
}


def video_analysis(asset_id: str = "ast_vid01", duration: float = 45, width: int = 1920,
                   height: int = 1080, quality: float = 8) -> Dict[str, Any]:
    return {
        "asset_id": asset_id,
        "asset_type": "video",
        "metadata": {
            "dimensions": {"width": width, "height": height},
            "duration_seconds": duration,
            "fps": 30,
            "file_size": 1048576,
            "quality_score": quality,
            "has_audio": True,
        },
        "content_analysis": {
            "primary_description": "A skateboarder at sunset",
            "objects_detected": ["skateboard", "person"],
            "mood_assessment": "energetic",
            "scenes_detected": ["street"],
        },
        "alignment_with_query": {"role_in_project": "primary_content"},
    }


class FakeAnalysisClient(AnalysisClient):
    """
    In-memory analyzer. Each stage answers with the configured envelope, or
    raises it when it is an exception instance.
    """

    def __init__(
        self,
        query: Any = None,
        assets: Any = None,
        synthesis: Any = None,
        summary: Any = None,
    ):
        self.responses = {
            "query": query if query is not None else ok(copy.deepcopy(QUERY_RESULT)),
            "assets": assets if assets is not None else ok({"asset_analyses": [video_analysis()], "summary": {}}),
            "synthesis": synthesis if synthesis is not None else ok(copy.deepcopy(SYNTHESIS_RESULT)),
            "summary": summary if summary is not None else ok(copy.deepcopy(SUMMARY_RESULT)),
        }
        self.calls: List[tuple] = []
        self.closed = False

    def _answer(self, stage: str, *args: Any) -> Dict[str, Any]:
        self.calls.append((stage, args))
        response = self.responses[stage]
        if isinstance(response, Exception):
            raise response
        return response

    async def analyze_query(self, prompt, options):
        return self._answer("query", prompt, options)

    async def analyze_assets(self, assets, prompt):
        return self._answer("assets", assets, prompt)

    async def synthesize(self, query_result, asset_result):
        return self._answer("synthesis", query_result, asset_result)

    async def summarize(self, query_result, asset_result, synthesis_result, timings, options):
        return self._answer("summary", query_result, asset_result, synthesis_result, timings, options)

    async def close(self):
        self.closed = True

    def stages_called(self) -> List[str]:
        return [stage for stage, _ in self.calls]


class RecordingSink(BriefEventSink):
    """Collects (event, run_id, stage, fields) tuples"""

    def __init__(self):
        self.events: List[tuple] = []

    def emit(self, event: str, run_id: str, stage: Optional[str] = None, **fields: Any) -> None:
        self.events.append((event, run_id, stage, fields))

    def names(self) -> List[str]:
        return [event for event, _, _, _ in self.events]

    def for_stage(self, stage: str) -> List[str]:
        return [event for event, _, event_stage, _ in self.events if event_stage == stage]


class FakeTable:
    def __init__(self, owner, name):
        self.owner = owner
        self.name = name
        self._record = None

    def insert(self, record):
        self._record = record
        return self

    def execute(self):
        if self.owner.fail_with is not None:
            raise self.owner.fail_with
        self.owner.rows.setdefault(self.name, []).append(self._record)
        return self


class FakeSupabase:
    """Minimal stand-in for supabase.Client: table(...).insert(...).execute()"""

    def __init__(self, fail_with: Optional[Exception] = None):
        self.rows: Dict[str, List[Dict[str, Any]]] = {}
        self.fail_with = fail_with

    def table(self, name):
        return FakeTable(self, name)


def modern_body(**overrides: Any) -> Dict[str, Any]:
    body = {
        "userId": "user_42",
        "prompt": "make a promo video for my skate shop",
        "intent": "video",
        "options": {"durationSeconds": 30, "aspectRatio": "16:9"},
        "assets": [],
    }
    body.update(overrides)
    return body


def legacy_body(**overrides: Any) -> Dict[str, Any]:
    body = {
        "query": "make a promo video for my skate shop",
        "intent": "video",
        "outputVideoSeconds": 30,
        "preferences": {"aspect_ratio": "16:9", "platform_target": "instagram"},
        "assets": [],
    }
    body.update(overrides)
    return body


@pytest.fixture
def client():
    return FakeAnalysisClient()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def pipeline(client, sink):
    return BriefPipeline(client, sink=sink)
