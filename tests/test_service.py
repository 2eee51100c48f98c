"""Tests for the tool adapter envelope logic."""

from __future__ import annotations

import json
from typing import Any, Dict

import httpx
import pytest

from openapi_adapter.config import Settings
from openapi_adapter.executors import RequestDispatcher
from openapi_adapter.openapi import OperationExtractor
from openapi_adapter.service import ToolAdapter


def _adapter(spec: Dict[str, Any], settings: Settings, handler: Any) -> ToolAdapter:
    operations = OperationExtractor().extract_operations(spec)
    dispatcher = RequestDispatcher(settings, transport=httpx.MockTransport(handler))
    return ToolAdapter(operations, "https://api.example.com", dispatcher)


def _unreachable(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected request to {request.url}")


class TestListTools:
    def test_maps_operations_to_tools(
        self, sample_spec: Dict[str, Any], settings: Settings
    ) -> None:
        tools = _adapter(sample_spec, settings, _unreachable).list_tools()

        assert [tool["name"] for tool in tools] == [
            "healthCheck",
            "getUserById",
            "put__users_id_",
        ]
        assert tools[0]["description"] == "Health check endpoint"
        assert tools[2]["description"] == "Replace a user"
        assert tools[1]["inputSchema"]["required"] == ["id"]

    def test_empty_catalog_lists_no_tools(self, settings: Settings) -> None:
        assert _adapter({"paths": {}}, settings, _unreachable).list_tools() == []


class TestCallTool:
    @pytest.mark.anyio()
    async def test_unknown_operation_is_an_error_result(
        self, sample_spec: Dict[str, Any], settings: Settings
    ) -> None:
        adapter = _adapter(sample_spec, settings, _unreachable)

        result = await adapter.call_tool("doesNotExist", {})

        assert result["isError"] is True
        assert result["content"][0]["type"] == "text"
        assert "Unknown operation" in result["content"][0]["text"]

    @pytest.mark.anyio()
    async def test_json_response_is_serialized(
        self, sample_spec: Dict[str, Any], settings: Settings
    ) -> None:
        adapter = _adapter(
            sample_spec, settings, lambda request: httpx.Response(200, json={"status": "up"})
        )

        result = await adapter.call_tool("healthCheck", {})

        assert result["isError"] is False
        payload = json.loads(result["content"][0]["text"])
        assert payload["status"] == 200
        assert payload["body"] == {"status": "up"}
        assert payload["headers"]["content-type"] == "application/json"

    @pytest.mark.anyio()
    async def test_text_response_is_wrapped_the_same_way(
        self, sample_spec: Dict[str, Any], settings: Settings
    ) -> None:
        adapter = _adapter(sample_spec, settings, lambda request: httpx.Response(200, text="OK"))

        result = await adapter.call_tool("healthCheck", None)

        payload = json.loads(result["content"][0]["text"])
        assert set(payload) == {"status", "headers", "body"}
        assert payload["body"] == "OK"

    @pytest.mark.anyio()
    async def test_error_status_is_flagged(
        self, sample_spec: Dict[str, Any], settings: Settings
    ) -> None:
        adapter = _adapter(
            sample_spec, settings, lambda request: httpx.Response(500, text="boom")
        )

        result = await adapter.call_tool("getUserById", {"id": "1"})

        assert result["isError"] is True
        assert json.loads(result["content"][0]["text"])["status"] == 500

    @pytest.mark.anyio()
    async def test_network_failure_does_not_propagate(
        self, sample_spec: Dict[str, Any], settings: Settings
    ) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        adapter = _adapter(sample_spec, settings, refuse)

        result = await adapter.call_tool("healthCheck", {})
        follow_up = await adapter.call_tool("missing", {})

        assert result["isError"] is True
        assert result["content"][0]["text"].startswith("Error: API request failed")
        assert follow_up["isError"] is True

    @pytest.mark.anyio()
    async def test_later_duplicate_id_shadows_earlier(self, settings: Settings) -> None:
        spec = {
            "paths": {
                "/first": {"get": {"operationId": "same"}},
                "/second": {"get": {"operationId": "same"}},
            }
        }
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            return httpx.Response(200, json={})

        adapter = _adapter(spec, settings, handler)

        await adapter.call_tool("same", {})

        assert len(adapter.list_tools()) == 2
        assert seen == ["/second"]
