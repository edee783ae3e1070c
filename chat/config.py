from dataclasses import dataclass

DEFAULT_OLLAMA_URL = "http://localhost:11434"
DEFAULT_MCP_URL = "http://localhost:8080"
DEFAULT_MODEL = "llama3.2:latest"
DEFAULT_MAX_TOOL_ROUNDS = 10
DEFAULT_LLM_TIMEOUT = 120.0
DEFAULT_MCP_TIMEOUT = 30.0


@dataclass(frozen=True)
class ChatConfig:
    """Settings for the local chat client, built from command-line flags."""

    model: str = DEFAULT_MODEL
    ollama_url: str = DEFAULT_OLLAMA_URL
    mcp_url: str = DEFAULT_MCP_URL
    max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS
    llm_timeout: float = DEFAULT_LLM_TIMEOUT
    mcp_timeout: float = DEFAULT_MCP_TIMEOUT
    debug: bool = False

    @classmethod
    def from_args(cls, args) -> "ChatConfig":
        return cls(
            model=args.model,
            ollama_url=args.url.rstrip("/"),
            mcp_url=args.mcp.strip().rstrip("/"),
            max_tool_rounds=args.max_rounds,
            llm_timeout=args.timeout,
            mcp_timeout=args.mcp_timeout,
            debug=args.debug,
        )

    @property
    def tools_enabled(self) -> bool:
        return bool(self.mcp_url)
