"""Conversation data exchanged with the LLM and the tool server."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

USER = "user"
ASSISTANT = "assistant"
TOOL = "tool"
SYSTEM = "system"

EMPTY_SCHEMA = {"type": "object", "properties": {}}


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str = ""
    input_schema: Dict[str, Any] = field(default_factory=lambda: dict(EMPTY_SCHEMA))

    @classmethod
    def from_mcp(cls, data: Dict[str, Any]) -> "ToolDefinition":
        return cls(
            name=data["name"],
            description=data.get("description") or "",
            input_schema=data.get("inputSchema") or dict(EMPTY_SCHEMA),
        )

    def to_llm_tool(self) -> Dict[str, Any]:
        """Convert to the function-calling shape the chat endpoint expects."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema,
            },
        }


@dataclass
class ToolCall:
    """A tool invocation requested by the model.

    `arguments` is kept as received: a mapping, a JSON string, or None.
    """

    name: str
    arguments: Any = None
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToolCall":
        function = data.get("function") or {}
        return cls(
            name=function.get("name", ""),
            arguments=function.get("arguments"),
            id=data.get("id"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {"type": "function", "function": {"name": self.name, "arguments": self.arguments}}
        if self.id:
            data["id"] = self.id
        return data


@dataclass
class Message:
    role: str
    content: str = ""
    tool_calls: List[ToolCall] = field(default_factory=list)
    tool_name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        return cls(
            role=data.get("role", ASSISTANT),
            content=data.get("content") or "",
            tool_calls=[ToolCall.from_dict(c) for c in data.get("tool_calls") or []],
            tool_name=data.get("tool_name"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {"role": self.role, "content": self.content}
        if self.tool_calls:
            data["tool_calls"] = [call.to_dict() for call in self.tool_calls]
        if self.tool_name:
            data["tool_name"] = self.tool_name
        return data
