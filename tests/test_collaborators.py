"""
Tests for the HTTP analysis client and envelope folding
Run with: python -m pytest tests/test_collaborators.py -v
"""
import asyncio
import json

import httpx

from dreamcut.collaborators import HttpAnalysisClient
from dreamcut.payloads import StageFailure, StageOk, fold_envelope
from dreamcut.state_machine import MediaType, RawAsset


def client_for(handler) -> HttpAnalysisClient:
    transport = httpx.MockTransport(handler)
    http = httpx.AsyncClient(base_url="http://analyzer", transport=transport)
    return HttpAnalysisClient(base_url="http://analyzer", client=http)


class TestFoldEnvelope:

    def test_ok(self):
        assert fold_envelope({"success": True, "result": {"a": 1}}) == StageOk(value={"a": 1})

    def test_error_message_is_kept(self):
        assert fold_envelope({"success": False, "error": "quota"}) == StageFailure(message="quota")

    def test_success_without_result(self):
        assert fold_envelope({"success": True, "result": None}) == StageFailure(message="Stage returned no result")

    def test_non_object(self):
        assert isinstance(fold_envelope("nope"), StageFailure)
        assert isinstance(fold_envelope({"success": True, "result": ["x"]}), StageFailure)


class TestHttpAnalysisClient:

    def test_step1_request_and_result_key(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True, "query_analysis": {"intent": {}}})

        envelope = asyncio.run(client_for(handler).analyze_query("a cat", {"aspectRatio": "1:1"}))
        assert seen["path"] == "/api/dreamcut/step1-analyzer"
        assert seen["body"] == {"query": "a cat", "options": {"aspectRatio": "1:1"}}
        assert envelope == {"success": True, "result": {"intent": {}}, "error": None}

    def test_step2_asset_payload(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True, "analysis_result": {"asset_analyses": []}})

        asset = RawAsset(id="ast_img01", url="https://cdn.example.com/a.png", type=MediaType.IMAGE,
                         filename="a.png")
        envelope = asyncio.run(client_for(handler).analyze_assets([asset], "a cat"))
        assert seen["body"]["user_query"] == "a cat"
        assert seen["body"]["assets"][0]["id"] == "ast_img01"
        assert seen["body"]["assets"][0]["media_type"] == "image"
        assert envelope["result"] == {"asset_analyses": []}

    def test_http_error_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, json={"error": "upstream timeout"})

        envelope = asyncio.run(client_for(handler).synthesize({}, {}))
        assert envelope == {"success": False, "result": None, "error": "upstream timeout"}

    def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        envelope = asyncio.run(client_for(handler).summarize({}, {}, {}, {"step1_ms": 5}, {}))
        assert envelope["success"] is False
        assert "Analyzer unreachable" in envelope["error"]
