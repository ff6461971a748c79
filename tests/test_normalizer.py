"""
Tests for request normalization (legacy and modern shapes)
Run with: python -m pytest tests/test_normalizer.py -v
"""
import pytest

from conftest import legacy_body, modern_body
from dreamcut.errors import ValidationError
from dreamcut.normalizer import asset_id, filename_from_url, normalize_request
from dreamcut.state_machine import MediaType, OutputIntent, RequestShape


class TestShapeDetection:
    """A `query` key selects the legacy schema"""

    def test_modern_body(self):
        request = normalize_request(modern_body())
        assert request.shape is RequestShape.MODERN
        assert request.user_id == "user_42"
        assert request.intent is OutputIntent.VIDEO
        assert request.options.duration_seconds == 30
        assert request.options.aspect_ratio == "16:9"

    def test_legacy_body(self):
        request = normalize_request(legacy_body())
        assert request.shape is RequestShape.LEGACY
        assert request.user_id == "legacy_user"
        assert request.prompt == "make a promo video for my skate shop"
        assert request.options.duration_seconds == 30
        assert request.options.platform == "instagram"

    def test_legacy_mix_intent_becomes_mixed(self):
        request = normalize_request(legacy_body(intent="mix"))
        assert request.intent is OutputIntent.MIXED

    def test_raw_body_is_kept_but_not_serialized(self):
        body = legacy_body()
        request = normalize_request(body)
        assert request.raw_body == body
        assert "rawBody" not in request.model_dump(by_alias=True)


class TestAssets:

    def test_modern_assets_get_typed_ids(self):
        request = normalize_request(modern_body(assets=[
            {"url": "https://cdn.example.com/a.png", "type": "image", "filename": "a.png"},
            {"url": "https://cdn.example.com/b.mp4", "type": "video", "filename": "b.mp4",
             "userDescription": "style reference"},
        ]))
        assert [a.id for a in request.assets] == ["ast_img01", "ast_vid02"]
        assert request.assets[1].user_description == "style reference"

    def test_legacy_assets_take_filename_from_url(self):
        request = normalize_request(legacy_body(assets=[
            {"url": "https://cdn.example.com/clips/ride.mp4", "mediaType": "video",
             "metadata": {"description": "my footage"}},
        ]))
        asset = request.assets[0]
        assert asset.type is MediaType.VIDEO
        assert asset.filename == "ride.mp4"
        assert asset.user_description == "my footage"

    def test_asset_id_format(self):
        assert asset_id(MediaType.AUDIO, 3) == "ast_aud03"

    def test_filename_fallback(self):
        assert filename_from_url("https://cdn.example.com/", 2) == "asset_2"


class TestValidationErrors:
    """Schema failures raise ValidationError with dotted field paths"""

    def test_non_object_body(self):
        with pytest.raises(ValidationError) as exc:
            normalize_request(["not", "an", "object"])
        assert exc.value.details == {"body": ["Expected a JSON object"]}

    def test_missing_prompt(self):
        body = modern_body()
        del body["prompt"]
        with pytest.raises(ValidationError) as exc:
            normalize_request(body)
        assert "prompt" in exc.value.details

    def test_blank_prompt(self):
        with pytest.raises(ValidationError) as exc:
            normalize_request(modern_body(prompt="   "))
        assert exc.value.details["prompt"] == ["Prompt is required"]

    def test_blank_legacy_query(self):
        with pytest.raises(ValidationError) as exc:
            normalize_request(legacy_body(query=""))
        assert exc.value.details["query"] == ["Query is required"]

    def test_invalid_asset_url(self):
        with pytest.raises(ValidationError) as exc:
            normalize_request(modern_body(assets=[
                {"url": "not-a-url", "type": "image", "filename": "a.png"},
            ]))
        assert exc.value.details["assets.0.url"] == ["Invalid asset URL"]

    def test_unknown_media_type(self):
        with pytest.raises(ValidationError) as exc:
            normalize_request(modern_body(assets=[
                {"url": "https://cdn.example.com/a.gif", "type": "gif", "filename": "a.gif"},
            ]))
        assert "assets.0.type" in exc.value.details

    def test_legacy_output_images_range(self):
        with pytest.raises(ValidationError) as exc:
            normalize_request(legacy_body(outputImages=25))
        assert "outputImages" in exc.value.details

    def test_legacy_video_seconds_range(self):
        with pytest.raises(ValidationError) as exc:
            normalize_request(legacy_body(outputVideoSeconds=2))
        assert "outputVideoSeconds" in exc.value.details

    def test_error_payload(self):
        error = ValidationError({"prompt": ["Prompt is required"]})
        assert error.to_dict() == {
            "success": False,
            "error": "Invalid request format",
            "details": {"prompt": ["Prompt is required"]},
        }
