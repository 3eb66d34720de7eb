"""
SlackConnector — Async-only Slack Web API integration block.

Wraps the Slack Web API as a declarative entity connector: channels,
messages, users, files, pins, search and more, all resolved through the
shared EndpointTable and walked with cursor paging.

Slack reports most failures as HTTP 200 with `"ok": false`; those
responses are treated as empty and logged with Slack's `error` string.

Usage:
    from connectkit.connectors import get_connector_registry
    slack = get_connector_registry().get("slack")
    channels = await slack.get_channels()
    history = await slack.get_messages("C0123456")
"""

from __future__ import annotations

import os
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field

from connectkit.config import ConnectKitSettings
from connectkit.connectors.http_client import AsyncRestClient
from connectkit.connectors.rest_connector import RestEntityConnector
from connectkit.errors import ConnectorConfigError
from connectkit.models import EntityDescriptor, HttpMethod
from connectkit.resolver import CursorPaging, EndpointTable, PagingStrategy

logger = structlog.get_logger(__name__)

SLACK_API_URL = "https://slack.com/api/"


# ── Models ───────────────────────────────────────────────────────────


class Channel(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str | None = None
    is_channel: bool | None = None
    is_private: bool | None = None
    is_archived: bool | None = None
    is_member: bool | None = None
    created: int | None = None
    num_members: int | None = None
    topic: dict[str, Any] | None = None
    purpose: dict[str, Any] | None = None


class Message(BaseModel):
    model_config = ConfigDict(extra="allow")

    ts: str | None = None
    type: str | None = None
    user: str | None = None
    text: str = ""
    thread_ts: str | None = None
    reply_count: int | None = None
    reactions: list[dict[str, Any]] = Field(default_factory=list)


class User(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str | None = None
    real_name: str | None = None
    deleted: bool = False
    is_bot: bool = False
    is_admin: bool | None = None
    tz: str | None = None
    profile: dict[str, Any] = Field(default_factory=dict)


class Team(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str | None = None
    domain: str | None = None
    email_domain: str | None = None
    icon: dict[str, Any] | None = None


# ── Connector ────────────────────────────────────────────────────────


class SlackConnector(RestEntityConnector):
    """
    Slack integration block — channels, messages, users and workspace data.

    Authenticates with a bot token (`SLACK_BOT_TOKEN`).
    """

    health_entity = "auth"

    def __init__(self, token: str | None = None, *, settings: ConnectKitSettings | None = None):
        self._token = token
        super().__init__(settings=settings)

    @property
    def name(self) -> str:
        return "slack"

    @property
    def icon(self) -> str:
        return "💬"

    @property
    def description(self) -> str:
        return "Read channels, messages and users from Slack; post messages"

    def build_endpoints(self) -> EndpointTable:
        return (
            EndpointTable.builder()
            .add("channels", "conversations.list", root="channels", description="Conversations visible to the token")
            .add(
                "messages",
                "conversations.history",
                root="messages",
                required=["channel"],
                description="Message history of one channel",
            )
            .add("users", "users.list", root="members", description="Workspace members")
            .add("files", "files.list", root="files")
            .add("reactions", "reactions.list", root="items")
            .add("pins", "pins.list", root="items", required=["channel"])
            .add("reminders", "reminders.list", root="reminders")
            .add("usergroups", "usergroups.list", root="usergroups")
            .add("team", "team.info", root="team", description="Workspace information")
            .add("auth", "auth.test", description="Identity of the token")
            .add(
                "search",
                "search.messages",
                root="messages.matches",
                required=["query"],
                description="Message search (user token required)",
            )
            .add("chat", "chat.postMessage", root="message", method=HttpMethod.POST)
            .alias("conversations", "channels")
            .build()
        )

    def build_paging(self) -> PagingStrategy:
        return CursorPaging(
            cursor_param="cursor",
            next_cursor_path="response_metadata.next_cursor",
            size_param="limit",
            max_page_size=1000,
        )

    def build_decoders(self) -> dict[str, type[BaseModel]]:
        return {
            "channels": Channel,
            "conversations": Channel,
            "messages": Message,
            "search": Message,
            "chat": Message,
            "users": User,
            "team": Team,
        }

    def create_client(self) -> AsyncRestClient:
        token = self._token or os.environ.get("SLACK_BOT_TOKEN", "")
        if not token:
            raise ConnectorConfigError(
                "SLACK_BOT_TOKEN environment variable is not set", connector_name=self.name
            )
        return AsyncRestClient(
            SLACK_API_URL,
            connector_name=self.name,
            headers={"Authorization": f"Bearer {token}"},
            settings=self.settings,
        )

    def accept_response(self, document: Any, descriptor: EntityDescriptor) -> bool:
        if isinstance(document, dict) and document.get("ok") is False:
            logger.warning(
                "slack_api_error",
                entity=descriptor.name,
                endpoint=descriptor.endpoint,
                error=document.get("error", "unknown_error"),
            )
            return False
        return True

    # ── Convenience ──────────────────────────────────────────────────

    async def get_channels(self, types: str | None = None) -> list[Channel]:
        """Channels visible to the token, e.g. types="public_channel,private_channel"."""
        filters = {"types": types} if types else None
        return await self.get_typed("channels", filters)

    async def get_messages(
        self,
        channel: str,
        oldest: str | None = None,
        latest: str | None = None,
    ) -> list[Message]:
        """Message history for `channel` (first page as returned by Slack)."""
        filters = {"channel": channel, "oldest": oldest, "latest": latest}
        return await self.get_typed("messages", {k: v for k, v in filters.items() if v})

    async def get_users(self) -> list[User]:
        return await self.get_typed("users")

    async def post_message(self, channel: str, text: str, thread_ts: str | None = None) -> Message | None:
        """Post `text` to `channel`. Returns the posted message, or None if Slack refused it."""
        payload: dict[str, Any] = {"channel": channel, "text": text}
        if thread_ts:
            payload["thread_ts"] = thread_ts
        records = await self.create_entity("chat", payload)
        logger.info("slack_message_posted", channel=channel, ok=bool(records))
        return Message.model_validate(records[0]) if records else None
