"""Slack channel adapter: payload normalization and delivery routing."""

from __future__ import annotations

import logging

import blocks
import formatting
from channels.base import OutboundMessage, ShortcutInvocation, Surface
from slack_client import SlackClient

log = logging.getLogger(__name__)


def normalize_inbound(payload: dict) -> ShortcutInvocation:
    """Convert a ``message_action`` interactivity payload to a ShortcutInvocation."""
    message = payload.get("message") or {}
    return ShortcutInvocation(
        callback_id=payload.get("callback_id", ""),
        trigger_id=payload.get("trigger_id", ""),
        user_id=(payload.get("user") or {}).get("id", ""),
        channel_id=(payload.get("channel") or {}).get("id", ""),
        team_id=(payload.get("team") or {}).get("id", ""),
        message_text=message.get("text", ""),
        message_ts=message.get("ts", ""),
        message_user=message.get("user", ""),
    )


def route_delivery(invocation: ShortcutInvocation, converted: str, in_channel: bool) -> OutboundMessage:
    """Pick the surface for a converted message.

    ===========  ==========  ======================================
    is author    in channel  result
    ===========  ==========  ======================================
    yes          yes         quoted thread reply, visible to all
    yes          no          modal + hint to invite the bot
    no           any         modal + hint to ask the author
    ===========  ==========  ======================================
    """
    if not invocation.is_author:
        return OutboundMessage(
            text=converted,
            surface=Surface.MODAL,
            help_text=formatting.author_hint(invocation.message_user),
        )
    if in_channel:
        return OutboundMessage(
            text=formatting.thread_reply_text(invocation.message_user, converted),
            surface=Surface.THREAD,
        )
    return OutboundMessage(text=converted, surface=Surface.MODAL, help_text=formatting.invite_hint())


def no_match_notice() -> OutboundMessage:
    return OutboundMessage(text=formatting.no_match_text(), surface=Surface.EPHEMERAL)


async def send(message: OutboundMessage, invocation: ShortcutInvocation, client: SlackClient) -> dict:
    """Deliver ``message`` on its surface."""
    log.info(
        "Delivering %s reply for %s in %s",
        message.surface.value, invocation.message_ts, invocation.channel_id,
    )
    if message.surface is Surface.THREAD:
        return await client.post_thread_reply(invocation.channel_id, invocation.message_ts, message.text)
    if message.surface is Surface.EPHEMERAL:
        return await client.post_ephemeral(
            invocation.channel_id, invocation.user_id, invocation.message_ts, message.text,
        )
    return await client.open_view(invocation.trigger_id, blocks.message_modal(message.text, message.help_text))
