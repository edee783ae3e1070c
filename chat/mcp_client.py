"""JSON-RPC client for an MCP tool server."""

import itertools
import json
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests

from chat.types import ToolDefinition
from util.errors import ProtocolError, ServiceConnectionError, ToolExecutionError

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"
MCP_ENDPOINT = "/mcp"
ACCEPT_HEADER = "application/json, text/event-stream"


class _ShapeMismatch(Exception):
    pass


def _parse_nested_records(content: Any) -> str:
    """`[[{...}, {...}], ...]`: each record as indented JSON, one per block."""
    if not isinstance(content, list) or not all(isinstance(group, list) for group in content):
        raise _ShapeMismatch()
    records = [item for group in content for item in group]
    if not all(isinstance(item, dict) for item in records):
        raise _ShapeMismatch()
    return "\n".join(json.dumps(item, indent=2) for item in records)


def _parse_content_blocks(content: Any) -> str:
    """`[{"type": "text", "text": ...}, ...]`: the standard MCP content list."""
    if not isinstance(content, list) or not all(isinstance(block, dict) for block in content):
        raise _ShapeMismatch()
    parts = []
    for block in content:
        if block.get("type", "text") == "text":
            parts.append(block.get("text", ""))
        else:
            parts.append(json.dumps(block))
    return "\n".join(parts)


# Tried in order; the first parser that accepts the payload wins.
RESULT_PARSERS: Tuple[Callable[[Any], str], ...] = (
    _parse_nested_records,
    _parse_content_blocks,
)


def parse_tool_content(content: Any) -> str:
    """Render a `tools/call` result payload as text for the model."""
    for parser in RESULT_PARSERS:
        try:
            return parser(content)
        except _ShapeMismatch:
            continue
    return json.dumps(content)


def _decode_body(response: requests.Response) -> Dict[str, Any]:
    """Decode a JSON body, or the last event of a `text/event-stream` body."""
    content_type = response.headers.get("content-type", "")
    if content_type.startswith("text/event-stream"):
        data_lines = [
            line[len("data:"):].strip()
            for line in response.text.splitlines()
            if line.startswith("data:")
        ]
        if not data_lines:
            raise ValueError("event stream carried no data")
        payload = json.loads(data_lines[-1])
    else:
        payload = response.json()
    if not isinstance(payload, dict):
        raise ValueError("response is not a JSON object")
    return payload


class ToolRegistry:
    """Discovers and invokes tools on an MCP server at `<base_url>/mcp`."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.endpoint = base_url.rstrip("/") + MCP_ENDPOINT
        self.timeout = timeout
        self.http = session or requests.Session()
        self.tools: List[ToolDefinition] = []
        self._ids = itertools.count(1)

    def _post(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        request = {"jsonrpc": JSONRPC_VERSION, "id": next(self._ids), "method": method}
        if params is not None:
            request["params"] = params

        logger.debug(f"Sending MCP request: {json.dumps(request)}")
        try:
            response = self.http.post(
                self.endpoint,
                json=request,
                headers={"Accept": ACCEPT_HEADER},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ServiceConnectionError(f"error connecting to MCP server: {e}") from e

        logger.debug(f"MCP response status: {response.status_code}")
        logger.debug(f"MCP response body: {response.text}")

        if response.status_code >= 400:
            raise ProtocolError(
                f"MCP server returned status {response.status_code}: {response.text}"
            )
        try:
            return _decode_body(response)
        except ValueError as e:
            raise ProtocolError(f"error decoding MCP response: {e}") from e

    def discover_tools(self) -> List[ToolDefinition]:
        """Fetch `tools/list` and cache the result on `self.tools`."""
        payload = self._post("tools/list")

        error = payload.get("error")
        if error:
            message = error.get("message", error) if isinstance(error, dict) else error
            raise ProtocolError(f"MCP error: {message}")

        result = payload.get("result")
        tools = result.get("tools") if isinstance(result, dict) else None
        if not isinstance(tools, list):
            raise ProtocolError("MCP tools/list result has no tools list")

        try:
            self.tools = [ToolDefinition.from_mcp(item) for item in tools]
        except (KeyError, TypeError, AttributeError) as e:
            raise ProtocolError(f"malformed tool definition: {e}") from e

        logger.info(f"Loaded {len(self.tools)} MCP tools")
        return self.tools

    def invoke(self, name: str, arguments: Dict[str, Any]) -> str:
        """Call a tool and return its result as text.

        Every failure, including transport errors, surfaces as
        ToolExecutionError.
        """
        try:
            payload = self._post("tools/call", {"name": name, "arguments": arguments})
        except (ServiceConnectionError, ProtocolError) as e:
            raise ToolExecutionError(str(e)) from e

        error = payload.get("error")
        if error:
            message = error.get("message", error) if isinstance(error, dict) else error
            raise ToolExecutionError(f"MCP tool error: {message}")

        result = payload.get("result")
        if not isinstance(result, dict):
            raise ToolExecutionError("MCP tools/call response has no result")

        content = result.get("content")
        logger.debug(f"Tool content: {json.dumps(content)}")

        if result.get("isError"):
            detail = parse_tool_content(content) if content else ""
            raise ToolExecutionError(
                f"MCP tool returned error: {detail}" if detail else "MCP tool returned error"
            )

        return parse_tool_content(content)
