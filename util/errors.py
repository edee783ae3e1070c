"""Error types shared by the Slack tool server and the chat client."""


class SlackChatError(Exception):
    """Base class for every error raised by this project."""


class ServiceConnectionError(SlackChatError):
    """Network or transport failure talking to the LLM or the tool server."""


class ProtocolError(SlackChatError):
    """A service answered with an unexpected status or response shape."""


class ToolLoopLimitError(ProtocolError):
    """The model kept requesting tools past the configured round limit."""


class ToolExecutionError(SlackChatError):
    """A tool call failed. Reported back to the model as text."""


class ArgumentError(SlackChatError):
    """The model produced tool arguments that could not be parsed."""


class ConfigError(SlackChatError):
    """Required configuration is missing or invalid."""
