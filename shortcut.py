"""Handler for the "convert times" message shortcut.

One call per trigger.  Looks up the author's timezone, localizes the
message, then replies in-thread, in a modal, or with an ephemeral notice.
Any failure is logged and reported; the trigger is acknowledged on every
path.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from channels import slack as slack_channel
from channels.base import ShortcutInvocation
from dateparse import DateParser
from localize import localize_message
from slack_client import SlackClient
from telemetry import ErrorReporter
from utils import parse_slack_ts

log = logging.getLogger(__name__)

Ack = Callable[[], Awaitable[Any]]


async def localize_message_shortcut(
    invocation: ShortcutInvocation,
    ack: Ack,
    *,
    client: SlackClient,
    reporter: ErrorReporter | None = None,
    parser: DateParser | None = None,
) -> None:
    span_texts: list[str] = []
    try:
        reference = parse_slack_ts(invocation.message_ts)
        # Times in a message are written in its author's timezone.
        offset = await client.get_user_offset_minutes(invocation.message_user)

        localized = localize_message(invocation.message_text, reference, offset, parser=parser)
        span_texts = [span.text for span in localized.spans]

        if not localized.has_matches:
            log.info("No times found in %s/%s", invocation.channel_id, invocation.message_ts)
            await slack_channel.send(slack_channel.no_match_notice(), invocation, client)
            return

        log.info(
            "Converted %d span(s) in %s/%s for %s",
            len(span_texts), invocation.channel_id, invocation.message_ts, invocation.user_id,
        )
        in_channel = False
        if invocation.is_author:
            in_channel = await client.check_join_channel(invocation.channel_id)

        outbound = slack_channel.route_delivery(invocation, localized.text, in_channel)
        await slack_channel.send(outbound, invocation, client)
    except Exception as exc:
        log.error(
            "Shortcut %s failed for %s/%s",
            invocation.callback_id, invocation.channel_id, invocation.message_ts,
            exc_info=True,
        )
        if reporter is not None:
            await reporter.notify(exc, {**invocation.context(), "timeMatches": span_texts})
    finally:
        await ack()
