"""Command-line chat with a local Ollama model and MCP tools."""

import argparse
import logging
import sys
from typing import Callable, List, Optional

from chat.config import (
    DEFAULT_LLM_TIMEOUT,
    DEFAULT_MAX_TOOL_ROUNDS,
    DEFAULT_MCP_TIMEOUT,
    DEFAULT_MCP_URL,
    DEFAULT_MODEL,
    DEFAULT_OLLAMA_URL,
    ChatConfig,
)
from chat.mcp_client import ToolRegistry
from chat.ollama_client import OllamaClient
from chat.session import ChatSession
from chat.types import ASSISTANT, USER, Message
from util.errors import SlackChatError
from util.messages import display_message, display_models, display_tools, last_assistant_text


QUIT_COMMANDS = ("quit", "exit")

HELP_TEXT = """Type 'quit', 'exit', or press Ctrl+C to exit
Type '/clear' to clear conversation history
Type '/models' to list available models
Type '/tools' to list available MCP tools
Type '/model <name>' to switch models
---"""


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Ollama CLI chat with MCP integration")
    parser.add_argument("--model", default=DEFAULT_MODEL, help="Ollama model to use")
    parser.add_argument("--url", default=DEFAULT_OLLAMA_URL, help="Ollama server URL")
    parser.add_argument("--mcp", default=DEFAULT_MCP_URL, help="MCP server URL (empty to disable)")
    parser.add_argument("--list", action="store_true", help="List available models")
    parser.add_argument("--tools", action="store_true", help="List available MCP tools")
    parser.add_argument("--message", default="", help="Send a single message and exit")
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    parser.add_argument(
        "--max-rounds",
        type=int,
        default=DEFAULT_MAX_TOOL_ROUNDS,
        help="Maximum tool-call rounds per message",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_LLM_TIMEOUT,
        help="Ollama request timeout in seconds",
    )
    parser.add_argument(
        "--mcp-timeout",
        type=float,
        default=DEFAULT_MCP_TIMEOUT,
        help="MCP request timeout in seconds",
    )
    return parser.parse_args(argv)


def load_tools(config: ChatConfig) -> Optional[ToolRegistry]:
    """Connect to the MCP server; on failure continue without tools."""
    if not config.tools_enabled:
        return None

    print(f"Loading MCP tools from {config.mcp_url}...")
    registry = ToolRegistry(config.mcp_url, timeout=config.mcp_timeout)
    try:
        registry.discover_tools()
    except SlackChatError as e:
        print(f"Warning: Could not load MCP tools: {e}")
        print("Continuing without MCP integration...")
        return None

    print(f"Loaded {len(registry.tools)} MCP tools")
    return registry


class InteractiveChat:
    """REPL state: the active session and the conversation it owns."""

    def __init__(self, session: ChatSession, config: ChatConfig):
        self.session = session
        self.config = config
        self.conversation: List[Message] = []
        self.running = True

    def print_banner(self):
        print("Ollama CLI Chat with MCP Integration")
        print(f"Connected to Ollama: {self.config.ollama_url}")
        if self.session.registry is not None:
            print(f"Connected to MCP: {self.config.mcp_url} ({len(self.session.tools)} tools available)")
        print(f"Using model: {self.session.model}")
        print(HELP_TEXT)

    def handle_command(self, line: str) -> bool:
        """Run an in-session command. Returns False if `line` is not one."""
        if line in QUIT_COMMANDS:
            print("Goodbye!")
            self.running = False
        elif line == "/clear":
            self.conversation = []
            print("Conversation cleared.")
        elif line == "/models":
            try:
                display_models(self.session.llm.list_models(), current=self.session.model)
            except SlackChatError as e:
                print(f"Error listing models: {e}")
        elif line == "/tools":
            display_tools(self.session.tools)
        elif line == "/model" or line.startswith("/model "):
            name = line[len("/model"):].strip()
            if name:
                self.session.model = name
                print(f"Switched to model: {name}")
            else:
                print("Usage: /model <model_name>")
        else:
            return False
        return True

    def send(self, text: str) -> Optional[str]:
        """Run one exchange. On failure the conversation is left as it was."""
        pending = self.conversation + [Message(role=USER, content=text)]
        print("Processing...", end="", flush=True)
        try:
            updated = self.session.run(pending)
        except SlackChatError as e:
            print(f"\nError: {e}")
            return None

        self.conversation = updated
        # Clear the "Processing..." line
        print("\r" + " " * 15 + "\r", end="")

        reply = last_assistant_text(updated)
        if reply:
            print(f"Assistant: {reply}")
        return reply

    def run(self, read_line: Callable[[str], str] = input):
        self.print_banner()
        while self.running:
            try:
                line = read_line("\n> ").strip()
            except EOFError:
                break
            if not line:
                continue
            if self.handle_command(line):
                continue
            self.send(line)


def run_one_shot(session: ChatSession, text: str) -> int:
    try:
        conversation = session.run([Message(role=USER, content=text)])
    except SlackChatError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for msg in conversation:
        if msg.role == ASSISTANT and msg.content:
            print(msg.content)
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)
    config = ChatConfig.from_args(args)

    logging.basicConfig(level=logging.DEBUG if config.debug else logging.WARNING)

    registry = load_tools(config)

    if args.tools:
        display_tools(registry.tools if registry else [])
        return 0

    llm = OllamaClient(config.ollama_url, timeout=config.llm_timeout)

    if args.list:
        try:
            models = llm.list_models()
        except SlackChatError as e:
            print(f"Error listing models: {e}", file=sys.stderr)
            return 1
        display_models(models)
        return 0

    session = ChatSession(
        llm,
        config.model,
        registry=registry,
        max_tool_rounds=config.max_tool_rounds,
        on_message=lambda msg: display_message(msg, debug=config.debug),
    )

    if args.message:
        return run_one_shot(session, args.message)

    try:
        InteractiveChat(session, config).run()
    except KeyboardInterrupt:
        print("\nGoodbye!")
    return 0
