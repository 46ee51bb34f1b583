"""Tests for the MCP JSON-RPC HTTP transport."""

import json

import pytest

from rules_mcp.config import settings
from rules_mcp.mcp_transport import TOOL_DEFINITIONS, tool_content


def _rpc(method: str, params: dict | None = None, id: int | None = 1) -> dict:
    body = {"jsonrpc": "2.0", "method": method}
    if params is not None:
        body["params"] = params
    if id is not None:
        body["id"] = id
    return body


def test_tool_content_passes_text_through():
    assert tool_content("テキスト") == {"content": [{"type": "text", "text": "テキスト"}]}


def test_tool_content_serializes_structures():
    text = tool_content({"name": "ルール"})["content"][0]["text"]
    assert json.loads(text) == {"name": "ルール"}
    assert "ルール" in text


class TestMethods:
    def test_initialize(self, client):
        response = client.post("/mcp", json=_rpc("initialize", {}))
        assert response.status_code == 200
        result = response.json()["result"]
        assert result["serverInfo"]["name"] == "rules-mcp"
        assert result["capabilities"] == {"tools": {}}

    def test_tools_list(self, client):
        result = client.post("/mcp", json=_rpc("tools/list")).json()["result"]
        assert [t["name"] for t in result["tools"]] == [t["name"] for t in TOOL_DEFINITIONS]
        assert {"get_rules", "list_rule_sections", "list_rule_sets"} == {t["name"] for t in result["tools"]}

    def test_ping(self, client):
        assert client.post("/mcp", json=_rpc("ping")).json()["result"] == {}

    def test_unknown_method(self, client):
        error = client.post("/mcp", json=_rpc("resources/list")).json()["error"]
        assert error["code"] == -32601

    def test_notification_has_no_response(self, client):
        response = client.post("/mcp", json=_rpc("notifications/initialized", id=None))
        assert response.status_code == 204

    def test_batch(self, client):
        response = client.post("/mcp", json=[_rpc("ping", id=1), _rpc("tools/list", id=2)])
        assert [r["id"] for r in response.json()] == [1, 2]

    def test_parse_error(self, client):
        response = client.post("/mcp", content=b"{not json", headers={"Content-Type": "application/json"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == -32700

    def test_payload_too_large(self, client, monkeypatch):
        monkeypatch.setattr(settings, "max_json_payload_size", 10)
        response = client.post("/mcp", json=_rpc("ping"))
        assert response.status_code == 413


class TestToolsCall:
    def test_query(self, client):
        params = {"name": "get_rules", "arguments": {"query": "use client"}}
        result = client.post("/mcp", json=_rpc("tools/call", params)).json()["result"]
        text = result["content"][0]["text"]
        assert text.startswith('# "use client" に関連するルール:\n\n## データフェッチ:')

    def test_list_rule_sections_returns_json_text(self, client):
        params = {"name": "list_rule_sections", "arguments": {"filter": "キャッシュ"}}
        result = client.post("/mcp", json=_rpc("tools/call", params)).json()["result"]
        data = json.loads(result["content"][0]["text"])
        assert data["sections"][0]["title"] == "キャッシュ戦略:"

    def test_unknown_tool(self, client):
        params = {"name": "get-alerts", "arguments": {"state": "CA"}}
        error = client.post("/mcp", json=_rpc("tools/call", params)).json()["error"]
        assert error["code"] == -32602
        assert error["message"] == "Unknown tool: get-alerts"

    def test_invalid_params(self, client):
        params = {"name": "get_rules", "arguments": {"query": ""}}
        error = client.post("/mcp", json=_rpc("tools/call", params)).json()["error"]
        assert error["code"] == -32602
        assert error["message"].startswith("Invalid parameter")


class TestApiKey:
    @pytest.fixture(autouse=True)
    def _require_key(self, rules_dir, monkeypatch):
        monkeypatch.setattr(settings, "api_key", "secret")

    def test_missing_key_rejected(self, client):
        response = client.post("/mcp", json=_rpc("ping"))
        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Invalid API key", "usage": {"latency_ms": 0}}

    def test_bearer_token(self, client):
        response = client.post("/mcp", json=_rpc("ping"), headers={"Authorization": "Bearer secret"})
        assert response.status_code == 200

    def test_x_api_key_header(self, client):
        response = client.post("/mcp", json=_rpc("ping"), headers={"X-API-Key": "secret"})
        assert response.status_code == 200

    def test_wrong_key(self, client):
        response = client.post("/mcp", json=_rpc("ping"), headers={"X-API-Key": "nope"})
        assert response.status_code == 401
