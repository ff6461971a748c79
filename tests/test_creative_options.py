"""
Tests for the creative options ranker
Run with: python -m pytest tests/test_creative_options.py -v
"""
from dreamcut.creative_options import rank_options, sequential_id, workload_for
from dreamcut.payloads import FinalSummary, QueryAnalysis, SynthesisReport
from dreamcut.state_machine import EnrichedAsset, MediaType, OutputIntent, Workload


def video_asset():
    return EnrichedAsset(
        id="ast_vid01",
        url="https://cdn.example.com/a.mp4",
        type=MediaType.VIDEO,
        filename="a.mp4",
        detected_mime="video/mp4",
    )


class TestFallbacks:
    """At least two options, whatever the upstream stages returned"""

    def test_every_intent_gets_two_options(self):
        for intent in OutputIntent:
            for assets in ([], [video_asset()]):
                options = rank_options(intent, assets)
                assert len(options) >= 2, f"{intent.value} produced {len(options)} option(s)"
                assert len({o.id for o in options}) == len(options)

    def test_video_without_footage(self):
        options = rank_options(OutputIntent.VIDEO, [])
        assert [o.id for o in options] == ["opt_standard", "opt_minimal"]

    def test_video_with_footage(self):
        options = rank_options(OutputIntent.VIDEO, [video_asset()])
        assert [o.id for o in options] == ["opt_standard", "opt_calm"]

    def test_image(self):
        options = rank_options(OutputIntent.IMAGE, [])
        assert [o.id for o in options] == ["opt_standard", "opt_modern"]


class TestAnalyzerOptions:

    def test_summary_approaches_then_interpretations(self):
        summary = FinalSummary.model_validate({"creative_options": {"alternative_approaches": [
            {"approach_name": "Retro VHS", "description": "Grainy 90s look", "confidence_score": 0.9},
        ]}})
        query = QueryAnalysis.model_validate({"creative_reframing": {"alternative_interpretations": [
            {"interpretation": "Brand story", "reasoning": "Tell the founding story", "confidence": 0.5},
        ]}})
        options = rank_options(OutputIntent.VIDEO, [], query=query, summary=summary)
        assert [o.id for o in options] == ["opt_A", "opt_B"]
        assert options[0].title == "Retro VHS"
        assert options[0].estimated_workload is Workload.LOW
        assert options[1].source == "query_analysis"
        assert options[1].estimated_workload is Workload.HIGH

    def test_approach_without_confidence_defaults(self):
        summary = FinalSummary.model_validate({"creative_options": {"alternative_approaches": [
            {"approach_name": "Minimal"},
        ]}})
        options = rank_options(OutputIntent.IMAGE, [], summary=summary)
        assert options[0].confidence == 0.7
        assert options[0].estimated_workload is Workload.MEDIUM

    def test_synthesis_options(self):
        synthesis = SynthesisReport.model_validate({"creative_synthesis": {
            "style_fusion_strategy": "Blend neon with film grain",
            "narrative_structure": "Three-act build",
        }})
        options = rank_options(OutputIntent.VIDEO, [], synthesis=synthesis)
        assert [o.id for o in options] == ["opt_style_0", "opt_narrative_1"]

    def test_single_analyzer_option_is_padded(self):
        query = QueryAnalysis.model_validate({"creative_reframing": {"alternative_interpretations": [
            {"interpretation": "Brand story"},
        ]}})
        options = rank_options(OutputIntent.AUDIO, [], query=query)
        assert [o.id for o in options] == ["opt_A", "opt_standard"]


class TestHelpers:

    def test_sequential_ids(self):
        assert sequential_id(0) == "opt_A"
        assert sequential_id(25) == "opt_Z"
        assert sequential_id(26) == "opt_AA"

    def test_workload_bands(self):
        assert workload_for(0.81) is Workload.LOW
        assert workload_for(0.7) is Workload.MEDIUM
        assert workload_for(None) is Workload.HIGH
