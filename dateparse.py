"""Date-parsing backend built on ``dateparser``.

``search_dates`` finds date expressions and resolves them against a
reference time, but it does not say which fields came from the text and
which were filled in.  It also tends to keep the reference clock for
phrases like "tomorrow at 9am".  This module reads the stated clock back
out of the matched substring, splits known from implied fields, and joins
"3pm to 5pm" style pairs into range spans.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Protocol

from dateparser.search import search_dates

import config
from spans import DATE_FIELDS, TIME_FIELDS, DateComponents, ParsedFields, TimeSpan

log = logging.getLogger(__name__)


class ParseFailure(RuntimeError):
    """The date-parsing backend raised while scanning a message."""


class DateParser(Protocol):
    def parse(self, text: str, reference: datetime) -> list[TimeSpan]:
        ...


_AMPM_RE = re.compile(
    r"\b(?P<hour>\d{1,2})(?::(?P<minute>\d{2}))?(?::(?P<second>\d{2}))?\s*(?P<meridiem>[ap])\.?\s?m\b\.?",
    re.IGNORECASE,
)
_24H_RE = re.compile(r"\b(?P<hour>\d{1,2}):(?P<minute>\d{2})(?::(?P<second>\d{2}))?\b")
_NAMED_TIME_RE = re.compile(r"\b(?:noon|midday|midnight)\b", re.IGNORECASE)
_OCLOCK_RE = re.compile(r"\b(?P<hour>\d{1,2})\s*o'?\s?clock\b", re.IGNORECASE)

# Any one clock expression, for finding two of them inside a single hit.
_ANY_CLOCK_RE = re.compile(
    r"\b\d{1,2}(?::\d{2}){0,2}\s*[ap]\.?\s?m\b\.?"
    r"|\b\d{1,2}:\d{2}(?::\d{2})?\b"
    r"|\b(?:noon|midday|midnight)\b"
    r"|\b\d{1,2}\s*o'?\s?clock\b",
    re.IGNORECASE,
)

# Instant-relative phrases resolve down to the reference's sub-second clock.
_INSTANT_RE = re.compile(
    r"\b(?:now|ago|in\s+(?:a|an|a\s+few|\d+)\s+(?:sec|secs|second|seconds|min|mins|minute|minutes|hr|hrs|hour|hours))\b",
    re.IGNORECASE,
)

# "may", "mar", "sat", "sun" and "wed" are ordinary words too, so they only
# count next to a day number or a clock.
_DATE_RE = re.compile(
    r"\b(?:today|tonight|tomorrow|tmrw|yesterday"
    r"|mon|tue|tues|thu|thur|thurs|fri"
    r"|monday|tuesday|wednesday|thursday|friday|saturday|sunday"
    r"|jan|feb|apr|jun|jul|aug|sep|sept|oct|nov|dec"
    r"|january|february|march|april|june|july|august|september|october|november|december)\b"
    r"|\b(?:may|mar)\.?\s+\d{1,2}(?:st|nd|rd|th)?\b"
    r"|\b\d{1,2}(?:st|nd|rd|th)?\s+(?:of\s+)?(?:may|mar)\b"
    r"|\b(?:sat|sun|wed)\.?\s+(?:at\s+)?\d"
    r"|\b(?:next|this|last)\s+(?:week|weekend|month|year)\b"
    r"|\bin\s+(?:a|an|\d+)\s+(?:days?|weeks?|months?|years?)\b"
    r"|\b\d{1,2}/\d{1,2}(?:/\d{2,4})?\b"
    r"|\b\d{4}-\d{2}-\d{2}\b",
    re.IGNORECASE,
)

_RANGE_GAP_RE = re.compile(r"^\s*(?:to|until|till|til|through|thru|-|–|—)\s*$", re.IGNORECASE)
_LEADING_CONNECTOR_RE = re.compile(r"^(?:to|until|till|til|through|thru|-|–|—)\s*", re.IGNORECASE)
_DATE_TIME_GAP_RE = re.compile(r"^\s*(?:,|at|on|@)?\s*$", re.IGNORECASE)


def clock_values(text: str) -> dict[str, int] | None:
    """Return the clock fields written in ``text`` with their values.

    An empty dict means no clock is written.  ``None`` means one is written
    but out of range ("13pm", "25:00").
    """
    match = _AMPM_RE.search(text)
    if match:
        hour = int(match.group("hour"))
        if not 1 <= hour <= 12:
            return None
        values = {"hour": hour % 12 + (12 if match.group("meridiem").lower() == "p" else 0)}
    else:
        match = _24H_RE.search(text)
        if match:
            values = {"hour": int(match.group("hour"))}
    if match:
        for name in ("minute", "second"):
            if match.group(name) is not None:
                values[name] = int(match.group(name))
        if values["hour"] > 23 or values.get("minute", 0) > 59 or values.get("second", 0) > 59:
            return None
        return values

    named = _NAMED_TIME_RE.search(text)
    if named:
        return {"hour": 0 if named.group(0).lower() == "midnight" else 12, "minute": 0}
    oclock = _OCLOCK_RE.search(text)
    if oclock:
        hour = int(oclock.group("hour"))
        return {"hour": hour, "minute": 0} if hour <= 23 else None
    return {}


def clock_fields(text: str) -> set[str]:
    """Return the clock fields spelled out in ``text``."""
    return set(clock_values(text) or ())


def known_field_names(text: str, dt: datetime) -> set[str]:
    """Decide which fields of ``dt`` were stated by ``text``."""
    names: set[str] = set()
    if _INSTANT_RE.search(text):
        names.update(TIME_FIELDS)
    else:
        names.update(clock_fields(text))
    if _DATE_RE.search(text):
        names.update(DATE_FIELDS)
    if dt.tzinfo is not None and dt.utcoffset() is not None:
        names.add("timezone_offset")
    return names


def components_for(text: str, dt: datetime, reference: datetime) -> DateComponents | None:
    """Split one hit into known and implied fields.

    A written clock overrides whatever ``dt`` carries, and anything below
    it defaults to zero.  Without a written date the reference's wall date
    is implied.  Returns ``None`` when the written clock is out of range.
    """
    values = ParsedFields.from_datetime(dt)
    names = known_field_names(text, dt)
    if not _INSTANT_RE.search(text):
        clock = clock_values(text)
        if clock is None:
            log.debug("Dropping %r: clock out of range", text)
            return None
        if clock:
            values = replace(values, **{"minute": 0, "second": 0, "millisecond": 0, **clock})
        if not names & set(DATE_FIELDS):
            values = replace(values, year=reference.year, month=reference.month, day=reference.day)

    known = ParsedFields(**{name: getattr(values, name) for name in names})
    return DateComponents(known=known, implied=values.without(known.present()))


def split_inner_range(matched: str, index: int) -> list[tuple[str, int]]:
    """Cut a single hit such as "3pm to 5pm" into its two clock sides."""
    clocks = list(_ANY_CLOCK_RE.finditer(matched))
    if len(clocks) >= 2 and _RANGE_GAP_RE.match(matched[clocks[0].end():clocks[1].start()]):
        cut = clocks[1].start()
        return [(matched[:clocks[0].end()], index), (matched[cut:], index + cut)]
    return [(matched, index)]


def _date_only(components: DateComponents) -> bool:
    return components.is_certain("day") and not components.is_certain("hour")


def _time_only(components: DateComponents) -> bool:
    return (
        components.is_certain("hour")
        and not components.is_certain("day")
        and not components.is_certain("millisecond")
    )


def join_date_time(message: str, first: TimeSpan, second: TimeSpan) -> TimeSpan | None:
    """Fuse a date-only hit with a neighbouring time-only hit.

    Returns ``None`` unless exactly one side states the date and the other
    states the clock.
    """
    if first.end is not None or second.end is not None:
        return None
    for date_part, time_part in ((first.start, second.start), (second.start, first.start)):
        if _date_only(date_part) and _time_only(time_part):
            known = time_part.known.merged_over(date_part.known)
            implied = replace(time_part.implied, **{n: date_part.get(n) for n in DATE_FIELDS})
            return TimeSpan(
                text=message[first.index:second.end_index],
                index=first.index,
                start=DateComponents(known=known, implied=implied.without(known.present())),
            )
    return None


def merge_date_times(message: str, spans: list[TimeSpan]) -> list[TimeSpan]:
    merged: list[TimeSpan] = []
    for span in spans:
        prev = merged[-1] if merged else None
        if (
            prev is not None
            and span.index >= prev.end_index
            and _DATE_TIME_GAP_RE.match(message[prev.end_index:span.index])
        ):
            joined = join_date_time(message, prev, span)
            if joined is not None:
                merged[-1] = joined
                continue
        merged.append(span)
    return merged


def join_range(message: str, first: TimeSpan, second: TimeSpan) -> TimeSpan:
    """Merge two adjacent spans into one range span.

    Date and timezone fields stated on one side are implied on the other,
    and an end that would land before its start rolls to the next day.
    """
    start, end = first.start, second.start
    shared = DATE_FIELDS + ("timezone_offset",)

    start = start.imply(**{n: end.get(n) for n in shared if end.is_certain(n) and not start.is_certain(n)})
    end = end.imply(**{n: start.get(n) for n in shared if start.is_certain(n) and not end.is_certain(n)})

    if not end.is_certain("day") and end.date() < start.date():
        bumped = end.date() + timedelta(days=1)
        end = end.imply(year=bumped.year, month=bumped.month, day=bumped.day)

    return TimeSpan(
        text=message[first.index:second.end_index],
        index=first.index,
        start=start,
        end=end,
    )


def merge_ranges(message: str, spans: list[TimeSpan]) -> list[TimeSpan]:
    merged: list[TimeSpan] = []
    for span in spans:
        prev = merged[-1] if merged else None
        if prev is None or prev.end is not None or span.index < prev.end_index:
            merged.append(span)
            continue
        # dateparser sometimes keeps the connector on the second hit ("to 5pm").
        lead = _LEADING_CONNECTOR_RE.match(span.text)
        gap = message[prev.end_index:span.index] + (lead.group(0) if lead else "")
        if _RANGE_GAP_RE.match(gap):
            merged[-1] = join_range(message, prev, span)
            continue
        merged.append(span)
    return merged


class DateparserBackend:
    """``DateParser`` implementation over ``dateparser.search.search_dates``."""

    def __init__(self, languages: list[str] | None = None, prefer_dates_from: str = "current_period"):
        self.languages = list(languages or config.DATE_LANGUAGES)
        self.prefer_dates_from = prefer_dates_from

    def _settings(self, reference: datetime) -> dict:
        # RELATIVE_BASE is wall time; the caller picks the zone via reference.tzinfo.
        return {
            "RELATIVE_BASE": reference.replace(tzinfo=None),
            "PREFER_DATES_FROM": self.prefer_dates_from,
        }

    def parse(self, text: str, reference: datetime) -> list[TimeSpan]:
        hits = search_dates(text, languages=self.languages, settings=self._settings(reference)) or []

        spans: list[TimeSpan] = []
        cursor = 0
        for matched, dt in hits:
            index = text.find(matched, cursor)
            if index < 0:
                log.debug("Could not locate match %r after offset %d", matched, cursor)
                continue
            cursor = index + len(matched)
            for piece, piece_index in split_inner_range(matched, index):
                components = components_for(piece, dt, reference)
                if components is not None:
                    spans.append(TimeSpan(text=piece, index=piece_index, start=components))

        return merge_ranges(text, merge_date_times(text, spans))
