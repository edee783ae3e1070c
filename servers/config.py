import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from util.errors import ConfigError

DEFAULT_SEARCH_CHANNELS = ("concept-tech", "today-I-learned")
DEFAULT_SLACK_TIMEOUT = 30
DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8080
DEFAULT_PATH = "/mcp"


@dataclass(frozen=True)
class SlackConfig:
    """Settings for the Slack tool server, read once at startup."""

    slack_token: str
    search_channels: tuple[str, ...] = DEFAULT_SEARCH_CHANNELS
    slack_timeout: int = DEFAULT_SLACK_TIMEOUT
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    path: str = DEFAULT_PATH

    @classmethod
    def from_env(cls, env: Optional[dict] = None) -> "SlackConfig":
        """Build the config from the process environment (and `.env`).

        Raises ConfigError when SLACK_TOKEN is missing or a numeric
        setting does not parse.
        """
        if env is None:
            load_dotenv()
            env = os.environ

        slack_token = env.get("SLACK_TOKEN", "")
        if not slack_token:
            raise ConfigError("SLACK_TOKEN environment variable is required")

        channels = env.get("SLACK_SEARCH_CHANNELS", "")
        search_channels = tuple(
            c.strip().lstrip("#") for c in channels.split(",") if c.strip()
        )

        path = env.get("MCP_PATH", DEFAULT_PATH)
        if not path.startswith("/"):
            path = f"/{path}"

        return cls(
            slack_token=slack_token,
            search_channels=search_channels or DEFAULT_SEARCH_CHANNELS,
            slack_timeout=_int_setting(env, "SLACK_TIMEOUT", DEFAULT_SLACK_TIMEOUT),
            host=env.get("MCP_HOST", DEFAULT_HOST),
            port=_int_setting(env, "MCP_PORT", DEFAULT_PORT),
            path=path,
        )


def _int_setting(env, key: str, default: int) -> int:
    value = env.get(key)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {value!r}")
