"""Minimal async Slack Web API client over httpx.

Only the handful of methods the shortcut needs.  Every call is one POST
to ``https://slack.com/api/<method>``; a response with ``ok: false`` (or a
non-2xx status) raises ``SlackAPIError``.  Nothing is retried here.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

import config
from utils import track_latency

log = logging.getLogger(__name__)


class SlackAPIError(RuntimeError):
    """A Slack Web API call failed."""

    def __init__(self, method: str, error: str, response: dict | None = None):
        super().__init__(f"{method} failed: {error}")
        self.method = method
        self.error = error
        self.response = response or {}


class LookupFailure(SlackAPIError):
    """A user or channel lookup failed for a reason we do not handle."""


class SlackClient:
    def __init__(
        self,
        token: str | None = None,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.token = token if token is not None else config.SLACK_OAUTH_TOKEN
        self.base_url = (base_url or config.SLACK_API_BASE).rstrip("/")
        self.timeout = timeout if timeout is not None else config.HTTP_TIMEOUT
        self._transport = transport

    async def call(self, method: str, **params: Any) -> dict:
        """POST ``params`` (form-encoded) to ``method`` and return the JSON body."""
        data = {
            key: json.dumps(value) if isinstance(value, (dict, list)) else value
            for key, value in params.items()
            if value is not None
        }
        headers = {"Authorization": f"Bearer {self.token}"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(f"{self.base_url}/{method}", data=data, headers=headers)
                resp.raise_for_status()
                body = resp.json()
        except httpx.HTTPStatusError as exc:
            raise SlackAPIError(method, f"http_{exc.response.status_code}") from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise SlackAPIError(method, type(exc).__name__) from exc

        if not body.get("ok"):
            raise SlackAPIError(method, str(body.get("error") or "unknown_error"), body)
        return body

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @track_latency("slack", "users.info")
    async def get_user_offset_minutes(self, user_id: str) -> int:
        """Timezone offset of ``user_id`` in minutes east of UTC."""
        try:
            body = await self.call("users.info", user=user_id)
        except SlackAPIError as exc:
            raise LookupFailure(exc.method, exc.error, exc.response) from exc
        # Slack reports tz_offset in seconds
        return int(body.get("user", {}).get("tz_offset", 0)) // 60

    @track_latency("slack", "conversations.info")
    async def get_channel_info(self, channel_id: str) -> dict:
        """Return ``{"exists": bool, "is_member": bool}`` for ``channel_id``."""
        try:
            body = await self.call(
                "conversations.info",
                channel=channel_id,
                include_num_members="false",
                include_locale="false",
            )
        except SlackAPIError as exc:
            if exc.error == "channel_not_found":
                return {"exists": False, "is_member": False}
            raise LookupFailure(exc.method, exc.error, exc.response) from exc
        return {"exists": True, "is_member": bool(body.get("channel", {}).get("is_member"))}

    @track_latency("slack", "conversations.join")
    async def join_channel(self, channel_id: str) -> None:
        await self.call("conversations.join", channel=channel_id)

    async def check_join_channel(self, channel_id: str) -> bool:
        """Whether the bot is (or just became) a member of ``channel_id``.

        A missing channel, or one the bot cannot join (private, archived),
        counts as "not in channel".  Other lookup errors propagate.
        """
        info = await self.get_channel_info(channel_id)
        if not info["exists"]:
            return False
        if info["is_member"]:
            return True
        try:
            await self.join_channel(channel_id)
        except SlackAPIError as exc:
            log.warning("Could not join channel %s: %s", channel_id, exc.error)
            return False
        log.info("Joined channel %s", channel_id)
        return True

    # ------------------------------------------------------------------
    # Output surfaces
    # ------------------------------------------------------------------

    @track_latency("slack", "chat.postMessage")
    async def post_thread_reply(self, channel_id: str, thread_ts: str, text: str) -> dict:
        return await self.call("chat.postMessage", channel=channel_id, thread_ts=thread_ts, text=text)

    @track_latency("slack", "chat.postEphemeral")
    async def post_ephemeral(self, channel_id: str, user_id: str, thread_ts: str | None, text: str) -> dict:
        return await self.call(
            "chat.postEphemeral",
            channel=channel_id,
            user=user_id,
            thread_ts=thread_ts,
            text=text,
        )

    @track_latency("slack", "views.open")
    async def open_view(self, trigger_id: str, view: dict) -> dict:
        return await self.call("views.open", trigger_id=trigger_id, view=view)
