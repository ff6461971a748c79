"""
================================================================================
DREAMCUT v3.0 - REQUEST NORMALIZER
================================================================================
Accepts either inbound request shape and produces one NormalizedRequest.

- Legacy: {query, assets[{url, mediaType, metadata}], intent, outputImages,
  outputVideoSeconds, preferences{aspect_ratio, platform_target}, budget_credits}
- Modern: {userId, prompt, intent, options{...}, assets[{url, type, filename,
  userDescription}]}

The shape is detected by the presence of a `query` key. Validation failures
raise ValidationError with a dotted-path field map; no stage runs.

Author: Barrios A2I | DREAMCUT v3.0
================================================================================
"""

import logging
from typing import Any, Dict, List, Literal, Optional, Union
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticCustomError

from .errors import ValidationError
from .state_machine import (
    MediaType,
    NormalizedRequest,
    OutputIntent,
    RawAsset,
    RequestOptions,
    RequestShape,
)

logger = logging.getLogger(__name__)

LEGACY_USER_ID = "legacy_user"

ASSET_ID_PREFIX = {
    MediaType.IMAGE: "img",
    MediaType.VIDEO: "vid",
    MediaType.AUDIO: "aud",
}

MediaKind = Literal["image", "video", "audio"]


def _check_url(value: str) -> str:
    parsed = urlparse(value)
    if not parsed.scheme or not parsed.netloc:
        raise PydanticCustomError("url_parsing", "Invalid asset URL")
    return value


# =============================================================================
# INBOUND SCHEMAS
# =============================================================================

class _Inbound(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore")


class LegacyAsset(_Inbound):
    id: Optional[str] = None
    url: str
    mediaType: MediaKind
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("url")
    @classmethod
    def _url(cls, value: str) -> str:
        return _check_url(value)


class LegacyPreferences(_Inbound):
    aspect_ratio: Optional[str] = None
    platform_target: Optional[str] = None


class LegacyRequest(_Inbound):
    query: str
    assets: List[LegacyAsset] = Field(default_factory=list)
    intent: Optional[Literal["image", "video", "audio", "mix"]] = None
    outputImages: Optional[int] = Field(default=None, ge=1, le=20)
    outputVideoSeconds: Optional[int] = Field(default=None, ge=5, le=180)
    preferences: Optional[LegacyPreferences] = None
    budget_credits: Optional[Union[int, float]] = None

    @field_validator("query")
    @classmethod
    def _query_required(cls, value: str) -> str:
        if not value.strip():
            raise PydanticCustomError("required", "Query is required")
        return value


class ModernOptions(_Inbound):
    durationSeconds: Optional[Union[int, float]] = None
    aspectRatio: Optional[str] = None
    imageCount: Optional[Union[int, float]] = None
    platform: Optional[str] = None


class ModernAsset(_Inbound):
    url: str
    type: MediaKind
    filename: str
    userDescription: Optional[str] = None

    @field_validator("url")
    @classmethod
    def _url(cls, value: str) -> str:
        return _check_url(value)


class ModernRequest(_Inbound):
    userId: str
    prompt: str
    intent: Optional[Literal["image", "video", "audio", "mixed"]] = None
    options: Optional[ModernOptions] = None
    assets: List[ModernAsset] = Field(default_factory=list)

    @field_validator("prompt")
    @classmethod
    def _prompt_required(cls, value: str) -> str:
        if not value.strip():
            raise PydanticCustomError("required", "Prompt is required")
        return value


# =============================================================================
# NORMALIZATION
# =============================================================================

def field_errors(exc: PydanticValidationError) -> Dict[str, List[str]]:
    """Flatten pydantic errors into {"assets.0.url": ["Invalid asset URL"]}"""
    details: Dict[str, List[str]] = {}
    for error in exc.errors():
        path = ".".join(str(part) for part in error["loc"]) or "body"
        details.setdefault(path, []).append(error["msg"])
    return details


def asset_id(media_type: MediaType, ordinal: int) -> str:
    """ast_img01, ast_vid02, ... ordinal is 1-based across all assets"""
    return f"ast_{ASSET_ID_PREFIX[media_type]}{ordinal:02d}"


def filename_from_url(url: str, index: int) -> str:
    segment = urlparse(url).path.rstrip("/").split("/")[-1]
    return segment or f"asset_{index}"


def detect_shape(body: Dict[str, Any]) -> RequestShape:
    return RequestShape.LEGACY if "query" in body else RequestShape.MODERN


def normalize_request(body: Any) -> NormalizedRequest:
    """
    Validate a raw JSON body and map it to the canonical request.

    Raises:
        ValidationError: body is not an object or fails its schema
    """
    if not isinstance(body, dict):
        raise ValidationError({"body": ["Expected a JSON object"]})

    shape = detect_shape(body)
    logger.debug(f"Detected {shape.value} request format")

    if shape is RequestShape.LEGACY:
        return _normalize_legacy(body)
    return _normalize_modern(body)


def _normalize_legacy(body: Dict[str, Any]) -> NormalizedRequest:
    try:
        data = LegacyRequest.model_validate(body)
    except PydanticValidationError as e:
        logger.warning(f"Legacy validation failed: {e.error_count()} error(s)")
        raise ValidationError(field_errors(e)) from e

    preferences = data.preferences or LegacyPreferences()
    options = RequestOptions(
        duration_seconds=data.outputVideoSeconds,
        aspect_ratio=preferences.aspect_ratio,
        image_count=data.outputImages,
        platform=preferences.platform_target,
    )

    assets = []
    for index, asset in enumerate(data.assets):
        media_type = MediaType(asset.mediaType)
        description = (asset.metadata or {}).get("description")
        assets.append(RawAsset(
            id=asset_id(media_type, index + 1),
            url=asset.url,
            type=media_type,
            filename=filename_from_url(asset.url, index),
            user_description=description if isinstance(description, str) else None,
        ))

    intent = "mixed" if data.intent == "mix" else data.intent

    return NormalizedRequest(
        user_id=LEGACY_USER_ID,
        prompt=data.query,
        intent=OutputIntent(intent) if intent else None,
        options=options,
        assets=assets,
        shape=RequestShape.LEGACY,
        raw_body=body,
    )


def _normalize_modern(body: Dict[str, Any]) -> NormalizedRequest:
    try:
        data = ModernRequest.model_validate(body)
    except PydanticValidationError as e:
        logger.warning(f"Modern validation failed: {e.error_count()} error(s)")
        raise ValidationError(field_errors(e)) from e

    raw_options = data.options or ModernOptions()
    options = RequestOptions(
        duration_seconds=raw_options.durationSeconds,
        aspect_ratio=raw_options.aspectRatio,
        image_count=int(raw_options.imageCount) if raw_options.imageCount is not None else None,
        platform=raw_options.platform,
    )

    assets = [
        RawAsset(
            id=asset_id(MediaType(asset.type), index + 1),
            url=asset.url,
            type=MediaType(asset.type),
            filename=asset.filename,
            user_description=asset.userDescription,
        )
        for index, asset in enumerate(data.assets)
    ]

    return NormalizedRequest(
        user_id=data.userId,
        prompt=data.prompt,
        intent=OutputIntent(data.intent) if data.intent else None,
        options=options,
        assets=assets,
        shape=RequestShape.MODERN,
        raw_body=body,
    )
