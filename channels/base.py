"""Normalized shapes for what comes in from Slack and what goes back out.

``ShortcutInvocation`` flattens a ``message_action`` payload into the few
fields the localizer needs.  ``OutboundMessage`` is the decided reply: the
text plus which surface carries it.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


# ---------------------------------------------------------------------------
# Inbound: one shortcut trigger
# ---------------------------------------------------------------------------

@dataclass
class ShortcutInvocation:
    """A message shortcut fired by a user on some message."""

    callback_id: str
    trigger_id: str
    user_id: str                  # who ran the shortcut
    channel_id: str
    team_id: str
    message_text: str
    message_ts: str
    message_user: str             # who wrote the message

    @property
    def is_author(self) -> bool:
        """The acting user wrote the message."""
        return bool(self.message_user) and self.message_user == self.user_id

    def context(self) -> dict:
        """Identifying fields for logs and error reports."""
        return {
            "message": {"ts": self.message_ts, "text": self.message_text},
            "channelId": self.channel_id,
            "userId": self.user_id,
            "teamId": self.team_id,
        }


# ---------------------------------------------------------------------------
# Outbound
# ---------------------------------------------------------------------------

class Surface(str, enum.Enum):
    THREAD = "thread"          # in-thread reply, visible to the channel
    MODAL = "modal"            # private modal to the acting user
    EPHEMERAL = "ephemeral"    # only-visible-to-you notice


@dataclass
class OutboundMessage:
    """Reply to deliver for one invocation."""

    text: str
    surface: Surface
    help_text: str = ""
