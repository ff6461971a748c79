"""
================================================================================
DREAMCUT v3.0 - ANALYSIS COLLABORATORS
================================================================================
Boundary to the four external analysis stages. The engine only sees the
envelope {success, result, error}; what the analyzers do internally is
opaque to it.

HttpAnalysisClient talks to the step1..step4 analyzer endpoints over httpx.
Tests substitute an in-memory AnalysisClient.

Author: Barrios A2I | DREAMCUT v3.0
================================================================================
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx

from .config import DreamcutConfig
from .state_machine import RawAsset

logger = logging.getLogger(__name__)

Envelope = Dict[str, Any]


class AnalysisClient(ABC):
    """The four analysis stages. Each returns an envelope and may raise."""

    @abstractmethod
    async def analyze_query(self, prompt: str, options: Dict[str, Any]) -> Envelope:
        pass

    @abstractmethod
    async def analyze_assets(self, assets: List[RawAsset], prompt: str) -> Envelope:
        pass

    @abstractmethod
    async def synthesize(self, query_result: Dict[str, Any], asset_result: Dict[str, Any]) -> Envelope:
        pass

    @abstractmethod
    async def summarize(
        self,
        query_result: Dict[str, Any],
        asset_result: Dict[str, Any],
        synthesis_result: Dict[str, Any],
        timings: Dict[str, float],
        options: Dict[str, Any],
    ) -> Envelope:
        pass

    async def close(self) -> None:
        """Release transport resources"""


class HttpAnalysisClient(AnalysisClient):
    """
    Calls the analyzer service:

    - POST /api/dreamcut/step1-analyzer          -> query_analysis
    - POST /api/dreamcut/step2-asset-analyzer    -> analysis_result
    - POST /api/dreamcut/step3-combination-analyzer -> unified_understanding
    - POST /api/dreamcut/step4-json-summarizer   -> final_analysis
    """

    STEP1_PATH = "/api/dreamcut/step1-analyzer"
    STEP2_PATH = "/api/dreamcut/step2-asset-analyzer"
    STEP3_PATH = "/api/dreamcut/step3-combination-analyzer"
    STEP4_PATH = "/api/dreamcut/step4-json-summarizer"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = (base_url or DreamcutConfig.ANALYZER_URL).rstrip("/")
        self.client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or DreamcutConfig.ANALYZER_TIMEOUT,
        )

    async def close(self) -> None:
        await self.client.aclose()

    async def _post(self, path: str, payload: Dict[str, Any], result_key: str) -> Envelope:
        try:
            response = await self.client.post(path, json=payload)
        except httpx.HTTPError as e:
            logger.warning(f"Analyzer {path} unreachable: {e}")
            return {"success": False, "result": None, "error": f"Analyzer unreachable: {e}"}

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code != 200:
            error = body.get("error") if isinstance(body, dict) else None
            logger.warning(f"Analyzer {path} returned {response.status_code}")
            return {
                "success": False,
                "result": None,
                "error": error or f"Analyzer returned HTTP {response.status_code}",
            }

        if not isinstance(body, dict):
            return {"success": False, "result": None, "error": "Analyzer returned a non-object body"}

        return {
            "success": bool(body.get("success", True)),
            "result": body.get(result_key),
            "error": body.get("error"),
        }

    async def analyze_query(self, prompt: str, options: Dict[str, Any]) -> Envelope:
        return await self._post(self.STEP1_PATH, {"query": prompt, "options": options}, "query_analysis")

    async def analyze_assets(self, assets: List[RawAsset], prompt: str) -> Envelope:
        payload = {
            "user_query": prompt,
            "assets": [
                {
                    "id": asset.id,
                    "url": asset.url,
                    "media_type": asset.type.value,
                    "user_description": asset.user_description,
                    "metadata": {"filename": asset.filename},
                }
                for asset in assets
            ],
        }
        return await self._post(self.STEP2_PATH, payload, "analysis_result")

    async def synthesize(self, query_result: Dict[str, Any], asset_result: Dict[str, Any]) -> Envelope:
        payload = {"query_analysis": query_result, "asset_analysis": asset_result}
        return await self._post(self.STEP3_PATH, payload, "unified_understanding")

    async def summarize(
        self,
        query_result: Dict[str, Any],
        asset_result: Dict[str, Any],
        synthesis_result: Dict[str, Any],
        timings: Dict[str, float],
        options: Dict[str, Any],
    ) -> Envelope:
        payload = {
            "query_analysis": query_result,
            "asset_analysis": asset_result,
            "unified_understanding": synthesis_result,
            "processing_times": {
                "step1_ms": timings.get("step1_ms", 0),
                "step2_ms": timings.get("step2_ms", 0),
                "step3_ms": timings.get("step3_ms", 0),
            },
            "options": options,
        }
        return await self._post(self.STEP4_PATH, payload, "final_analysis")
