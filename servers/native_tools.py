"""Slack tools registered via Claude Agent SDK's MCP server mechanism."""

import json
import logging
from typing import Any, Dict, Iterable, List

from claude_agent_sdk import create_sdk_mcp_server, tool
from slack_sdk.errors import SlackApiError

from servers.config import DEFAULT_SEARCH_CHANNELS
from servers.slack_tools import SlackService

logger = logging.getLogger(__name__)

SERVER_NAME = "slack-tools"
SERVER_VERSION = "0.1.0"


def _text_response(text: str) -> Dict[str, Any]:
    return {"content": [{"type": "text", "text": text}]}


def _error_response(message: str) -> Dict[str, Any]:
    """Create standardized error response format."""
    return {
        "content": [{"type": "text", "text": message}],
        "is_error": True,
    }


def _records_response(records: Iterable) -> Dict[str, Any]:
    return _text_response(json.dumps([r.to_dict() for r in records], indent=2))


def _required_string(args: Dict[str, Any], key: str):
    value = args.get(key)
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip()


def build_slack_tools(
    service: SlackService, channels: Iterable[str] = DEFAULT_SEARCH_CHANNELS
) -> List:
    """Create the Slack tools bound to `service`."""
    channels = tuple(channels)

    @tool(
        "find-technology-posts",
        "Find posts about a specific technology. Returns an array containing "
        "the post, the author, the slack id of the author and the timestamp "
        "of the message.",
        {
            "type": "object",
            "properties": {
                "technology": {
                    "type": "string",
                    "description": "The technology to search for (e.g., python, react, golang)",
                },
            },
            "required": ["technology"],
        },
    )
    async def find_technology_posts(args: Dict[str, Any]) -> Dict[str, Any]:
        technology = _required_string(args, "technology")
        if not technology:
            return _error_response(
                "Error: 'technology' parameter is required and must be a string"
            )

        messages = []
        search_errors = []
        for channel in channels:
            try:
                messages.extend(service.search_technology_posts(technology, channel))
            except SlackApiError as e:
                logger.error(f"Error searching in {channel}: {str(e)}")
                search_errors.append(f"Error searching in {channel}: {str(e)}")
            except Exception as e:
                logger.error(f"Error searching in {channel}: {str(e)}", exc_info=True)
                search_errors.append(f"Error searching in {channel}: {str(e)}")

        if not messages and search_errors:
            return _error_response(
                f"Failed to retrieve messages: {'; '.join(search_errors)}"
            )

        return _records_response(messages)

    @tool(
        "get-user-details",
        "Get the details of a workspace member using their slack id or part "
        "of their name.",
        {
            "type": "object",
            "properties": {
                "search": {
                    "type": "string",
                    "description": "Search parameter, could be the slack id or part of the name of the user you are looking for",
                },
            },
            "required": ["search"],
        },
    )
    async def get_user_details(args: Dict[str, Any]) -> Dict[str, Any]:
        search = _required_string(args, "search")
        if not search:
            return _error_response(
                "Error: 'search' parameter is required and must be a string"
            )

        try:
            users = service.list_users()
        except SlackApiError as e:
            logger.error(f"Error fetching users: {str(e)}")
            return _error_response(f"Error fetching users: {str(e)}")
        except Exception as e:
            logger.error(f"Error fetching users: {str(e)}", exc_info=True)
            return _error_response(f"Error fetching users: {str(e)}")

        needle = search.lower()
        matches = [
            user
            for user in users
            if needle in user.slack_id.lower()
            or needle in user.slack_name.lower()
            or needle in user.real_name.lower()
        ]

        if not matches:
            return _text_response(f"No users found matching '{search}'")

        return _records_response(matches)

    @tool(
        "get-user-posts",
        "Retrieve the latest 200 posts of a user identified by their slack user id.",
        {
            "type": "object",
            "properties": {
                "slack_user_id": {
                    "type": "string",
                    "description": "Slack user id of the user to list the posts from",
                },
            },
            "required": ["slack_user_id"],
        },
    )
    async def get_user_posts(args: Dict[str, Any]) -> Dict[str, Any]:
        slack_user_id = _required_string(args, "slack_user_id")
        if not slack_user_id:
            return _error_response(
                "Error: slack user id is required and must be a string"
            )

        try:
            posts = service.get_posts_by_user(slack_user_id)
        except SlackApiError as e:
            logger.error(f"Error fetching user's posts: {str(e)}")
            return _error_response(f"Error fetching user's posts: {str(e)}")
        except Exception as e:
            logger.error(f"Error fetching user's posts: {str(e)}", exc_info=True)
            return _error_response(f"Error fetching user's posts: {str(e)}")

        return _records_response(posts)

    return [find_technology_posts, get_user_details, get_user_posts]


def create_slack_mcp_server(
    service: SlackService, channels: Iterable[str] = DEFAULT_SEARCH_CHANNELS
):
    """Bundle the Slack tools into an SDK MCP server config."""
    return create_sdk_mcp_server(
        name=SERVER_NAME,
        version=SERVER_VERSION,
        tools=build_slack_tools(service, channels),
    )
