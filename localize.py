"""Message time-localization engine.

Pipeline for one message::

    raw text -> escape_message -> extract_spans -> resolve_timezone
             -> localize_message_times -> converted text

The converted text is the sanitized message with every retained span
replaced by a Slack ``<!date>`` token; everything between spans is copied
through untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import config
from dateparse import DateParser, DateparserBackend, ParseFailure
from formatting import escape_message, localize_date
from spans import TimeSpan
from utils import LatencyTracker

log = logging.getLogger(__name__)


@dataclass
class LocalizedMessage:
    text: str
    sanitized: str
    spans: list[TimeSpan] = field(default_factory=list)

    @property
    def has_matches(self) -> bool:
        return bool(self.spans)


def is_actionable(span: TimeSpan) -> bool:
    """A span needs a stated hour and must not be precise to the millisecond."""
    known = span.start.known
    return known.hour is not None and known.millisecond is None


def extract_spans(text: str, reference: datetime, parser: DateParser) -> list[TimeSpan]:
    """Find the date/time spans in ``text`` worth converting."""
    try:
        spans = list(parser.parse(text, reference))
    except Exception as exc:
        raise ParseFailure(f"date parser failed: {exc}") from exc

    # Walk backwards so deletions don't shift unvisited entries.
    for i in range(len(spans) - 1, -1, -1):
        if not is_actionable(spans[i]):
            log.debug("Dropping low-confidence match %r", spans[i].text)
            del spans[i]

    return drop_overlaps(text, spans)


def drop_overlaps(text: str, spans: list[TimeSpan]) -> list[TimeSpan]:
    """Order spans by position and discard any that overlap or overrun ``text``."""
    kept: list[TimeSpan] = []
    cursor = 0
    for span in sorted(spans, key=lambda s: s.index):
        if span.index < cursor or span.end_index > len(text) or text[span.index:span.end_index] != span.text:
            log.warning("Discarding span %r at %d: overlaps or does not match text", span.text, span.index)
            continue
        kept.append(span)
        cursor = span.end_index
    return kept


def resolve_timezone(span: TimeSpan, offset_minutes: int) -> TimeSpan:
    """Imply the user's offset wherever the parser did not settle a timezone."""
    return span.with_timezone_hint(offset_minutes)


def localize_message_times(message: str, spans: list[TimeSpan], offset_minutes: int) -> str:
    """Replace each span in ``message`` with its localized token(s)."""
    parts: list[str] = []
    cursor = 0
    for span in spans:
        parts.append(message[cursor:span.index])
        cursor = span.end_index

        span = resolve_timezone(span, offset_minutes)
        parts.append(localize_date(span.start.date(), span.text))

        if span.end is not None:
            parts.append(config.RANGE_SEPARATOR)
            parts.append(localize_date(span.end.date(), config.END_TIME_FALLBACK))

    parts.append(message[cursor:])
    return "".join(parts)


def offset_timezone(offset_minutes: int) -> timezone:
    return timezone(timedelta(minutes=offset_minutes))


def localize_message(
    text: str,
    reference: datetime,
    offset_minutes: int,
    parser: DateParser | None = None,
) -> LocalizedMessage:
    """Run the full pipeline on a raw Slack message.

    ``reference`` is when the message was posted; relative phrases such as
    "tomorrow" are read in the author's offset.
    """
    parser = parser or DateparserBackend()
    sanitized = escape_message(text)

    if reference.tzinfo is None:
        reference = reference.replace(tzinfo=timezone.utc)
    local_reference = reference.astimezone(offset_timezone(offset_minutes))

    with LatencyTracker("dateparse", "extract_spans"):
        spans = extract_spans(sanitized, local_reference, parser)

    if not spans:
        return LocalizedMessage(text=sanitized, sanitized=sanitized, spans=[])

    converted = localize_message_times(sanitized, spans, offset_minutes)
    return LocalizedMessage(text=converted, sanitized=sanitized, spans=spans)
