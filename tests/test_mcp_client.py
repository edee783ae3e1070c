#!/usr/bin/env python3
"""Tests for tool discovery and invocation over JSON-RPC."""

import json
from unittest.mock import Mock

import pytest
import requests

from chat.mcp_client import ToolRegistry, parse_tool_content
from util.errors import ProtocolError, ServiceConnectionError, ToolExecutionError


def _response(payload, status_code=200, content_type="application/json"):
    response = Mock()
    response.status_code = status_code
    response.headers = {"content-type": content_type}
    response.text = payload if isinstance(payload, str) else json.dumps(payload)
    if isinstance(payload, str):
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def http():
    return Mock()


@pytest.fixture
def registry(http):
    return ToolRegistry("http://localhost:8080/", timeout=5, session=http)


class TestDiscoverTools:
    def test_request_shape(self, registry, http):
        http.post.return_value = _response({"jsonrpc": "2.0", "id": 1, "result": {"tools": []}})

        registry.discover_tools()

        args, kwargs = http.post.call_args
        assert args[0] == "http://localhost:8080/mcp"
        assert kwargs["json"] == {"jsonrpc": "2.0", "id": 1, "method": "tools/list"}
        assert kwargs["timeout"] == 5
        assert "application/json" in kwargs["headers"]["Accept"]

    def test_zero_tools(self, registry, http):
        http.post.return_value = _response({"jsonrpc": "2.0", "id": 1, "result": {"tools": []}})

        assert registry.discover_tools() == []
        assert registry.tools == []

    def test_maps_schemas_to_llm_format(self, registry, http):
        schema = {"type": "object", "properties": {"search": {"type": "string"}}, "required": ["search"]}
        http.post.return_value = _response(
            {
                "jsonrpc": "2.0",
                "id": 1,
                "result": {
                    "tools": [
                        {"name": "get-user-details", "description": "Find a user", "inputSchema": schema},
                        {"name": "ping"},
                    ]
                },
            }
        )

        tools = registry.discover_tools()

        assert tools[0].to_llm_tool() == {
            "type": "function",
            "function": {"name": "get-user-details", "description": "Find a user", "parameters": schema},
        }
        assert tools[1].description == ""
        assert tools[1].input_schema == {"type": "object", "properties": {}}

    def test_error_object(self, registry, http):
        http.post.return_value = _response(
            {"jsonrpc": "2.0", "id": 1, "error": {"code": -32601, "message": "Method not found"}}
        )

        with pytest.raises(ProtocolError, match="Method not found"):
            registry.discover_tools()

    def test_error_string(self, registry, http):
        http.post.return_value = _response({"jsonrpc": "2.0", "id": 1, "error": "bad request"})

        with pytest.raises(ProtocolError, match="MCP error: bad request"):
            registry.discover_tools()

    def test_result_without_tools(self, registry, http):
        http.post.return_value = _response({"jsonrpc": "2.0", "id": 1, "result": {}})

        with pytest.raises(ProtocolError):
            registry.discover_tools()

    def test_undecodable_body(self, registry, http):
        http.post.return_value = _response("<html>oops</html>")

        with pytest.raises(ProtocolError, match="decoding"):
            registry.discover_tools()

    def test_http_error_status(self, registry, http):
        http.post.return_value = _response("Not Found", status_code=404)

        with pytest.raises(ProtocolError, match="404"):
            registry.discover_tools()

    def test_connection_refused(self, registry, http):
        http.post.side_effect = requests.ConnectionError("connection refused")

        with pytest.raises(ServiceConnectionError):
            registry.discover_tools()

    def test_event_stream_body(self, registry, http):
        payload = {"jsonrpc": "2.0", "id": 1, "result": {"tools": [{"name": "ping"}]}}
        http.post.return_value = _response(
            f"event: message\ndata: {json.dumps(payload)}\n\n", content_type="text/event-stream"
        )

        tools = registry.discover_tools()

        assert [t.name for t in tools] == ["ping"]


class TestInvoke:
    def test_request_shape_and_ids(self, registry, http):
        http.post.return_value = _response(
            {"jsonrpc": "2.0", "id": 1, "result": {"content": [{"type": "text", "text": "ok"}]}}
        )

        registry.invoke("get-user-posts", {"slack_user_id": "U1"})
        registry.invoke("get-user-posts", {"slack_user_id": "U2"})

        first = http.post.call_args_list[0].kwargs["json"]
        second = http.post.call_args_list[1].kwargs["json"]
        assert first["method"] == "tools/call"
        assert first["params"] == {"name": "get-user-posts", "arguments": {"slack_user_id": "U1"}}
        assert second["id"] == first["id"] + 1

    def test_text_blocks(self, registry, http):
        http.post.return_value = _response(
            {
                "jsonrpc": "2.0",
                "id": 1,
                "result": {
                    "content": [{"type": "text", "text": "line one"}, {"type": "text", "text": "line two"}],
                    "isError": False,
                },
            }
        )

        assert registry.invoke("x", {}) == "line one\nline two"

    def test_error_object_raises_tool_error(self, registry, http):
        http.post.return_value = _response(
            {"jsonrpc": "2.0", "id": 1, "error": {"code": -32602, "message": "Unknown tool"}}
        )

        with pytest.raises(ToolExecutionError, match="Unknown tool"):
            registry.invoke("missing", {})

    def test_is_error_result(self, registry, http):
        http.post.return_value = _response(
            {
                "jsonrpc": "2.0",
                "id": 1,
                "result": {"content": [{"type": "text", "text": "invalid_auth"}], "isError": True},
            }
        )

        with pytest.raises(ToolExecutionError, match="invalid_auth"):
            registry.invoke("get-user-details", {"search": "a"})

    def test_transport_failure_is_tool_error(self, registry, http):
        http.post.side_effect = requests.Timeout("read timed out")

        with pytest.raises(ToolExecutionError, match="timed out"):
            registry.invoke("x", {})

    def test_missing_result(self, registry, http):
        http.post.return_value = _response({"jsonrpc": "2.0", "id": 1})

        with pytest.raises(ToolExecutionError):
            registry.invoke("x", {})


class TestParseToolContent:
    def test_nested_records(self):
        content = [[{"Message": "hi", "Author": "alice"}, {"Message": "yo", "Author": "bob"}]]

        text = parse_tool_content(content)

        assert text == "\n".join(json.dumps(r, indent=2) for r in content[0])

    def test_nested_records_across_groups(self):
        text = parse_tool_content([[{"a": 1}], [{"b": 2}]])

        assert text == '{\n  "a": 1\n}\n{\n  "b": 2\n}'

    def test_content_blocks(self):
        content = [{"type": "text", "text": "first"}, {"type": "image", "data": "AAA", "mimeType": "image/png"}]

        text = parse_tool_content(content)

        assert text.splitlines()[0] == "first"
        assert json.loads(text.splitlines()[1])["type"] == "image"

    def test_falls_back_to_raw_json(self):
        assert parse_tool_content({"unexpected": True}) == '{"unexpected": true}'
        assert parse_tool_content("plain") == '"plain"'

    def test_mixed_list_falls_back(self):
        assert parse_tool_content([1, "two"]) == '[1, "two"]'
