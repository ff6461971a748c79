"""
Tests for brief assembly and response envelopes
Run with: python -m pytest tests/test_assembler.py -v
"""
import asyncio
import re

import pytest
from pydantic import ValidationError as PydanticValidationError

from conftest import FakeAnalysisClient, RecordingSink, legacy_body, modern_body, ok, video_analysis
from dreamcut.assembler import (
    build_challenges,
    build_recommendations,
    new_brief_id,
    render,
    to_legacy,
    to_modern,
)
from dreamcut.graph_nodes import BriefPipeline
from dreamcut.normalizer import normalize_request
from dreamcut.state_machine import RequestShape


def brief_for(body, client=None):
    pipeline = BriefPipeline(client or FakeAnalysisClient(), sink=RecordingSink())
    request = normalize_request(body)
    return asyncio.run(pipeline.run(request)).brief, request


class TestEnvelopes:
    """Both envelopes come from the same brief object"""

    def test_legacy_and_modern_carry_the_same_data(self):
        client = FakeAnalysisClient(assets=ok({"asset_analyses": [video_analysis()], "summary": {}}))
        body = legacy_body(assets=[{"url": "https://cdn.example.com/ride.mp4", "mediaType": "video"}])
        brief, request = brief_for(body, client)

        modern = to_modern(brief)
        legacy = to_legacy(brief, request.raw_body)
        wrapped = legacy["brief"]

        assert legacy["success"] is True
        assert wrapped["assets"] == modern["assets"]
        assert wrapped["creativeOptions"] == modern["creativeOptions"]
        assert wrapped["plan"]["creativeOptions"] == modern["creativeOptions"]
        assert wrapped["analysis"]["comprehensive"] == modern
        assert wrapped["briefId"] == modern["id"]
        assert wrapped["request"] == body
        assert wrapped["status"] == "analyzed"
        assert wrapped["plan"]["costEstimate"] == 0

    def test_render_picks_envelope_by_shape(self):
        brief, request = brief_for(modern_body())
        assert render(brief, RequestShape.MODERN) == to_modern(brief)
        assert "brief" in render(brief, RequestShape.LEGACY, request.raw_body)

    def test_payload_keys_are_camel_case(self):
        payload = to_modern(brief_for(modern_body())[0])
        for key in ("userId", "userPrompt", "promptAnalysis", "globalAnalysis",
                    "creativeOptions", "recommendedPipeline", "processingInsights", "final_analysis"):
            assert key in payload, f"missing {key}"
        assert payload["version"] == "3.0-rich"
        assert payload["options"]["durationSeconds"] == 30


class TestBriefSections:

    def test_brief_id_format(self):
        assert re.fullmatch(r"dq_[0-9a-z]+_[0-9a-z]{6}", new_brief_id())

    def test_warnings_from_query_gaps(self):
        brief, _ = brief_for(modern_body())
        assert "No specific style direction provided - will use default styling" in brief.warnings
        assert not any("Target audience" in w for w in brief.warnings)

    def test_rule_based_challenges(self):
        challenges = build_challenges("cat", [], None)
        assert [c["type"] for c in challenges] == ["clarity", "resource"]

    def test_vague_prompt_recommendation(self):
        recommendations = build_recommendations("hey")
        assert recommendations[0]["priority"] == "important"
        assert len(recommendations) == 3
        assert len(build_recommendations("a detailed prompt")) == 2

    def test_options_echo_defaults_duration(self):
        body = modern_body(intent="image")
        del body["options"]
        brief, _ = brief_for(body)
        assert brief.options.duration_seconds == 30
        assert brief.options.aspect_ratio == "16:9"
        assert brief.options.platform == "instagram"

    def test_brief_is_frozen(self):
        brief, _ = brief_for(modern_body())
        with pytest.raises(PydanticValidationError):
            brief.warnings = []

    def test_nested_containers_are_read_only(self):
        body = modern_body(assets=[{"url": "https://cdn.example.com/ride.mp4", "type": "video", "filename": "ride.mp4"}])
        brief, _ = brief_for(body)

        with pytest.raises(AttributeError):
            brief.creative_options.append(brief.creative_options[0])
        with pytest.raises(TypeError):
            brief.global_analysis.asset_roles["ast_extra"] = "supporting content"
        with pytest.raises(TypeError):
            brief.final_analysis["global_understanding"]["identified_challenges"] = []
        with pytest.raises(PydanticValidationError):
            brief.assets[0].analysis.caption = "edited"
        with pytest.raises(PydanticValidationError):
            brief.processing_insights.quality_metrics.overall_confidence = 0.1

    def test_read_only_containers_serialize_as_json(self):
        brief, _ = brief_for(modern_body(assets=[
            {"url": "https://cdn.example.com/ride.mp4", "type": "video", "filename": "ride.mp4"},
        ]))
        payload = to_modern(brief)

        assert isinstance(payload["assets"], list)
        assert isinstance(payload["creativeOptions"][0]["reasons"], list)
        assert payload["globalAnalysis"]["assetRoles"] == {"ast_vid01": "primary footage"}
        assert isinstance(payload["final_analysis"]["global_understanding"], dict)
        assert isinstance(payload["processingInsights"]["stepBreakdown"], dict)
        assert payload["assets"][0]["analysis"]["objects"] == ["skateboard", "person"]
