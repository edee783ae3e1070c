"""HTTP client for a local Ollama server."""

import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from chat.types import Message, ToolDefinition
from util.errors import ProtocolError, ServiceConnectionError

logger = logging.getLogger(__name__)


class OllamaClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 120.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = self.base_url + path
        try:
            response = self.http.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise ServiceConnectionError(f"error connecting to ollama at {url}: {e}") from e

        if response.status_code != 200:
            raise ProtocolError(
                f"ollama API error (status {response.status_code}): {response.text}"
            )
        try:
            payload = response.json()
        except ValueError as e:
            raise ProtocolError(f"error decoding ollama response: {e}") from e
        if not isinstance(payload, dict):
            raise ProtocolError("ollama response is not a JSON object")
        return payload

    def chat(
        self,
        model: str,
        messages: Sequence[Message],
        tools: Sequence[ToolDefinition] = (),
    ) -> Message:
        """Send one non-streaming chat request and return the reply message.

        The `tools` field is only sent when at least one tool is available.
        """
        body: Dict[str, Any] = {
            "model": model,
            "messages": [m.to_dict() for m in messages],
            "stream": False,
        }
        if tools:
            body["tools"] = [t.to_llm_tool() for t in tools]

        logger.debug(f"Chat request: model={model} messages={len(messages)} tools={len(tools)}")
        payload = self._request("POST", "/api/chat", json=body)

        message = payload.get("message")
        if not isinstance(message, dict):
            raise ProtocolError("ollama response has no message")
        try:
            return Message.from_dict(message)
        except (AttributeError, TypeError) as e:
            raise ProtocolError(f"malformed ollama message: {e}") from e

    def list_models(self) -> List[str]:
        payload = self._request("GET", "/api/tags")
        models = payload.get("models") or []
        if not isinstance(models, list) or not all(isinstance(m, dict) for m in models):
            raise ProtocolError("ollama tags response has a malformed models list")
        return [m.get("name", "") for m in models]
