"""Tool-call resolution loop for a chat session.

Each round sends the whole conversation to the model. When the reply
requests tools, every request is invoked once, in order, and its result
is appended as a `tool` message before the next round. The loop ends on
the first reply without tool calls.
"""

import json
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from chat.mcp_client import ToolRegistry
from chat.ollama_client import OllamaClient
from chat.types import TOOL, Message, ToolCall, ToolDefinition
from util.errors import ArgumentError, ToolExecutionError, ToolLoopLimitError

logger = logging.getLogger(__name__)

MessageCallback = Callable[[Message], None]


def parse_tool_arguments(call: ToolCall) -> Dict[str, Any]:
    """Normalize the arguments of a tool call to a dict.

    Models send either a JSON object or a JSON-encoded string.
    """
    raw = call.arguments
    if raw is None or raw == "":
        return {}
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except ValueError as e:
            raise ArgumentError(f"error parsing tool arguments for {call.name}: {e}") from e
        if isinstance(parsed, dict):
            return parsed
    raise ArgumentError(
        f"error parsing tool arguments for {call.name}: expected an object, got {raw!r}"
    )


class ChatSession:
    def __init__(
        self,
        llm: OllamaClient,
        model: str,
        registry: Optional[ToolRegistry] = None,
        max_tool_rounds: int = 10,
        on_message: Optional[MessageCallback] = None,
    ):
        self.llm = llm
        self.model = model
        self.registry = registry
        self.max_tool_rounds = max_tool_rounds
        self.on_message = on_message

    @property
    def tools(self) -> List[ToolDefinition]:
        return self.registry.tools if self.registry else []

    def _append(self, conversation: List[Message], message: Message):
        conversation.append(message)
        if self.on_message:
            self.on_message(message)

    def _run_tool(self, call: ToolCall) -> str:
        arguments = parse_tool_arguments(call)
        logger.debug(f"Parsed arguments for {call.name}: {arguments}")

        if self.registry is None:
            return f"Error calling tool: no tool server configured for {call.name}"
        try:
            result = self.registry.invoke(call.name, arguments)
        except ToolExecutionError as e:
            logger.debug(f"Tool call failed: {e}")
            return f"Error calling tool: {e}"

        logger.debug(f"Tool result: {result}")
        return result

    def run(self, conversation: Sequence[Message]) -> List[Message]:
        """Drive the model until it answers without requesting tools.

        Returns a new list; `conversation` itself is left untouched so a
        failed round can be discarded by the caller.
        """
        messages = list(conversation)
        tool_rounds = 0

        while True:
            reply = self.llm.chat(self.model, messages, self.tools)
            self._append(messages, reply)

            if not reply.tool_calls:
                return messages

            tool_rounds += 1
            if tool_rounds > self.max_tool_rounds:
                raise ToolLoopLimitError(
                    f"model requested tools for more than {self.max_tool_rounds} rounds"
                )

            for call in reply.tool_calls:
                result = self._run_tool(call)
                self._append(messages, Message(role=TOOL, content=result, tool_name=call.name))
