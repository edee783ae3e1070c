from typing import Iterable

from chat.types import ASSISTANT, TOOL, USER, Message, ToolDefinition

TOOL_PREVIEW_LENGTH = 100


def display_message(msg: Message, debug: bool = False) -> None:
    """Display message content in a clean format."""

    if msg.role == USER:
        print(f"User: {msg.content}")
    elif msg.role == ASSISTANT:
        for call in msg.tool_calls:
            print(f"🔧 Using tool: {call.name}")
            if debug and call.arguments:
                print(f"  Input: {call.arguments}")
    elif msg.role == TOOL:
        if debug:
            preview = msg.content[:TOOL_PREVIEW_LENGTH] if msg.content else "None"
            print(f"Tool Result ({msg.tool_name}): {preview}...")


def display_tools(tools: Iterable[ToolDefinition]) -> None:
    tools = list(tools)
    if not tools:
        print("No MCP tools available")
        return
    print("Available MCP tools:")
    for tool in tools:
        print(f"  - {tool.name}: {tool.description}")


def display_models(models: Iterable[str], current: str = "") -> None:
    print("Available models:")
    for model in models:
        if model == current:
            print(f"  * {model} (current)")
        else:
            print(f"  - {model}")


def last_assistant_text(conversation: Iterable[Message]) -> str:
    """Content of the latest assistant message that has any text."""
    for msg in reversed(list(conversation)):
        if msg.role == ASSISTANT and msg.content:
            return msg.content
    return ""
