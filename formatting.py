"""Slack mrkdwn helpers: escaping user text and rendering date tokens."""

from __future__ import annotations

import logging
import math
import re
from datetime import datetime

import config

log = logging.getLogger(__name__)

# <!here>, <!channel>, <!subteam^S123|@team>, <!date^...>
_SPECIAL_MENTION_RE = re.compile(r"<\s*![^>]*>")
# <@U123> or <@U123|name>
_USER_MENTION_RE = re.compile(r"<@([A-Z0-9]+)(?:\|([^>]*))?>")
# <#C123> or <#C123|general>
_CHANNEL_MENTION_RE = re.compile(r"<#([A-Z0-9]+)(?:\|([^>]*))?>")

_FALLBACK_UNSAFE_RE = re.compile(r"\n|\^|\|")


def escape_message(text: str) -> str:
    """Escape user text so echoing it back cannot ping or inject markup.

    See https://api.slack.com/reference/surfaces/formatting#escaping
    """
    if not text:
        return ""

    escaped = text.replace("&", "&amp;")
    escaped = _SPECIAL_MENTION_RE.sub("group", escaped)
    escaped = _USER_MENTION_RE.sub(_user_placeholder, escaped)
    escaped = _CHANNEL_MENTION_RE.sub(_channel_placeholder, escaped)
    return escaped


def _user_placeholder(match: re.Match[str]) -> str:
    label = (match.group(2) or "").strip()
    return f"@{label}" if label else "someone"


def _channel_placeholder(match: re.Match[str]) -> str:
    label = (match.group(2) or "").strip()
    return f"#{label}" if label else "a channel"


def epoch_seconds(date: datetime) -> int:
    """Floor ``date`` to whole Unix seconds."""
    return math.floor(date.timestamp())


def localize_date(date: datetime, fallback_text: str) -> str:
    """Render ``date`` as a Slack ``<!date>`` token that shows in each viewer's timezone."""
    timestamp = epoch_seconds(date)
    link_to_time = f"{config.TIME_CONVERTER_URL}{timestamp}"
    # newline, caret and pipe delimit token parts
    fallback_text = _FALLBACK_UNSAFE_RE.sub(" ", fallback_text)
    return f"<!date^{timestamp}^{config.DATE_TOKEN_FORMAT}^{link_to_time}|{fallback_text}>"


def quote(text: str) -> str:
    """Blockquote every line, starting on a fresh line."""
    return "\n>" + text.replace("\n", "\n>")


def thread_reply_text(author_id: str, converted: str) -> str:
    return f":sparkles: Here's <@{author_id}>'s post in your timezone:\n" + quote(converted)


def invite_hint(bot_user_id: str | None = None) -> str:
    bot = bot_user_id or config.BOT_USER_ID
    return f"Hint: Want others to be able to see this? Invite <@{bot}> to the channel."


def author_hint(author_id: str) -> str:
    return (
        f"By the way, you should ask <@{author_id}> to trigger this on their own message: "
        "I'll reply in-thread and magically convert the times for everyone."
    )


def no_match_text(issues_url: str | None = None) -> str:
    url = issues_url or config.ISSUES_URL
    return (
        "I couldn't find a time in the message to convert. "
        f"If you think this is in error, please <{url}|file an issue>."
    )
