"""Slack channel layer for Jonathan.

Turns interactivity payloads into ``ShortcutInvocation`` objects and
delivers converted messages back on the right surface.
"""

from channels.base import (
    OutboundMessage,
    ShortcutInvocation,
    Surface,
)

__all__ = [
    "OutboundMessage",
    "ShortcutInvocation",
    "Surface",
]
