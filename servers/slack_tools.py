"""Read-only Slack queries backing the MCP tools."""

import logging
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional

from slack_sdk import WebClient

from servers.config import SlackConfig

logger = logging.getLogger(__name__)

SEARCH_PAGE_SIZE = 100
TECHNOLOGY_SEARCH_COUNT = 20
DEFAULT_USER_POST_LIMIT = 200
USERS_PAGE_SIZE = 200
SLACKBOT_ID = "USLACKBOT"


@dataclass
class MessageInfo:
    message: str
    author: str
    author_slack_id: str
    posted: str
    permalink: Optional[str] = None
    channel: Optional[str] = None

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class SlackUser:
    slack_id: str
    slack_name: str
    real_name: str
    title: str = ""

    def to_dict(self) -> Dict:
        return asdict(self)


def _message_from_match(match: Dict) -> MessageInfo:
    channel = match.get("channel") or {}
    return MessageInfo(
        message=match.get("text", ""),
        author=match.get("username", ""),
        author_slack_id=match.get("user", ""),
        posted=match.get("ts", ""),
        permalink=match.get("permalink"),
        channel=channel.get("name") if isinstance(channel, dict) else None,
    )


def _is_active_user(member: Dict) -> bool:
    if member.get("deleted") or member.get("is_bot"):
        return False
    return member.get("id") != SLACKBOT_ID


class SlackService:
    """Thin wrapper around WebClient exposing the queries the tools need.

    Slack errors are not caught here; callers get SlackApiError.
    """

    def __init__(self, config: SlackConfig, client: Optional[WebClient] = None):
        self.config = config
        self.client = client or WebClient(
            token=config.slack_token, timeout=config.slack_timeout
        )

    def search_technology_posts(self, technology: str, channel: str) -> List[MessageInfo]:
        """Find posts in `channel` that carry the `:technology:` reaction."""
        query = f"has::{technology}: in:{channel}"
        logger.info(f"Searching Slack: {query}")

        result = self.client.search_messages(
            query=query,
            sort="score",
            sort_dir="desc",
            highlight=False,
            count=TECHNOLOGY_SEARCH_COUNT,
            page=1,
        )
        matches = result.get("messages", {}).get("matches", [])
        logger.info(f"Found {len(matches)} messages in {channel}")

        return [_message_from_match(match) for match in matches]

    def list_users(self) -> List[SlackUser]:
        """List active, non-bot workspace members."""
        users = []
        cursor = None

        while True:
            kwargs = {"limit": USERS_PAGE_SIZE}
            if cursor:
                kwargs["cursor"] = cursor
            result = self.client.users_list(**kwargs)

            for member in result.get("members", []):
                if not _is_active_user(member):
                    continue
                profile = member.get("profile") or {}
                users.append(
                    SlackUser(
                        slack_id=member.get("id", ""),
                        slack_name=member.get("name", ""),
                        real_name=member.get("real_name") or profile.get("real_name", ""),
                        title=profile.get("title", ""),
                    )
                )

            cursor = (result.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                break

        logger.info(f"Listed {len(users)} active users")
        return users

    def get_posts_by_user(
        self, slack_user_id: str, limit: int = DEFAULT_USER_POST_LIMIT
    ) -> List[MessageInfo]:
        """Return up to `limit` of the user's most recent posts, newest first."""
        query = f"from:<@{slack_user_id}>"
        page_size = min(SEARCH_PAGE_SIZE, limit)
        posts = []
        page = 1

        while len(posts) < limit:
            result = self.client.search_messages(
                query=query,
                sort="timestamp",
                sort_dir="desc",
                highlight=False,
                count=page_size,
                page=page,
            )
            messages = result.get("messages", {})
            matches = messages.get("matches", [])
            posts.extend(_message_from_match(match) for match in matches)

            page_count = messages.get("paging", {}).get("pages", 1)
            if not matches or page >= page_count:
                break
            page += 1

        logger.info(f"Fetched {len(posts)} posts for user {slack_user_id}")
        return posts[:limit]
