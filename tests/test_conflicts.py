"""
Tests for constraint conflict detection
Run with: python -m pytest tests/test_conflicts.py -v
"""
from dreamcut.conflicts import aspect_ratio_conflicts, detect_conflicts, duration_conflicts
from dreamcut.state_machine import AssetMeta, EnrichedAsset, MediaType


def asset(asset_id="ast_vid01", media_type=MediaType.VIDEO, resolution=None, duration=None):
    return EnrichedAsset(
        id=asset_id,
        url="https://cdn.example.com/a",
        type=media_type,
        filename="a",
        detected_mime="video/mp4",
        meta=AssetMeta(resolution=resolution, duration_seconds=duration),
    )


class TestDurationConflicts:

    def test_longer_video_is_trimmed(self):
        conflicts = duration_conflicts([asset(duration=45)], 30)
        assert len(conflicts) == 1
        assert "45s" in conflicts[0].issue
        assert "30s" in conflicts[0].issue
        assert conflicts[0].resolution == "Trim or cut scenes"

    def test_shorter_video_is_extended(self):
        conflicts = duration_conflicts([asset(duration=10)], 30)
        assert conflicts[0].resolution == "Loop or extend footage"

    def test_matching_duration(self):
        assert duration_conflicts([asset(duration=30)], 30) == []

    def test_no_target_duration(self):
        assert duration_conflicts([asset(duration=45)], None) == []

    def test_only_video_is_checked(self):
        audio = asset("ast_aud01", MediaType.AUDIO, duration=45)
        assert duration_conflicts([audio], 30) == []


class TestAspectRatioConflicts:
    """Conflict iff |w/h - target| > 0.1"""

    def test_boundary_is_not_a_conflict(self):
        assert aspect_ratio_conflicts([asset(resolution="900x1000")], "1:1") == []

    def test_just_past_boundary(self):
        conflicts = aspect_ratio_conflicts([asset(resolution="899x1000")], "1:1")
        assert len(conflicts) == 1
        assert conflicts[0].resolution == "Crop or add letterboxing"
        assert "899x1000" in conflicts[0].issue

    def test_portrait_against_widescreen(self):
        assert len(aspect_ratio_conflicts([asset(resolution="1080x1920")], "16:9")) == 1

    def test_unknown_ratio_uses_widescreen(self):
        assert aspect_ratio_conflicts([asset(resolution="1920x1080")], "4:3") == []

    def test_unknown_resolution_is_skipped(self):
        assert aspect_ratio_conflicts([asset()], "1:1") == []


class TestDetectConflicts:

    def test_duration_conflicts_come_first(self):
        assets = [
            asset("ast_img01", MediaType.IMAGE, resolution="1000x1000"),
            asset("ast_vid02", resolution="1920x1080", duration=45),
        ]
        conflicts = detect_conflicts(assets, 30, "16:9")
        assert [c.kind for c in conflicts] == ["duration", "aspect_ratio"]
        assert [c.asset_id for c in conflicts] == ["ast_vid02", "ast_img01"]

    def test_conflict_serializes_issue_and_resolution_only(self):
        conflict = detect_conflicts([asset(duration=45)], 30, None)[0]
        assert set(conflict.model_dump(by_alias=True)) == {"issue", "resolution"}
