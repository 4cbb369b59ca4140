"""Data model for date/time spans found in a message.

A ``TimeSpan`` is one match returned by the date-parsing backend.  Its
``start`` (and, for ranges, ``end``) is a ``DateComponents`` descriptor
that keeps two field sets apart:

- ``known``   fields read with certainty from the message text
- ``implied`` fields defaulted from context (reference time, user hint)

Everything here is frozen.  Adding a timezone hint produces a new
descriptor instead of mutating the parser's output.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timedelta, timezone

log = logging.getLogger(__name__)

DATE_FIELDS = ("year", "month", "day")
TIME_FIELDS = ("hour", "minute", "second", "millisecond")


@dataclass(frozen=True)
class ParsedFields:
    """Optional calendar/clock fields.  ``None`` means "not present"."""

    year: int | None = None
    month: int | None = None
    day: int | None = None
    hour: int | None = None
    minute: int | None = None
    second: int | None = None
    millisecond: int | None = None
    timezone_offset: int | None = None  # minutes east of UTC

    @classmethod
    def from_datetime(cls, dt: datetime) -> "ParsedFields":
        values = {
            "year": dt.year,
            "month": dt.month,
            "day": dt.day,
            "hour": dt.hour,
            "minute": dt.minute,
            "second": dt.second,
            "millisecond": dt.microsecond // 1000,
        }
        offset = dt.utcoffset()
        if offset is not None:
            values["timezone_offset"] = int(offset.total_seconds() // 60)
        return cls(**values)

    def present(self) -> set[str]:
        return {f.name for f in fields(self) if getattr(self, f.name) is not None}

    def merged_over(self, other: "ParsedFields") -> "ParsedFields":
        """Return a copy where our present fields win over ``other``'s."""
        return replace(other, **{name: getattr(self, name) for name in self.present()})

    def without(self, names: set[str]) -> "ParsedFields":
        return replace(self, **{name: None for name in names})


@dataclass(frozen=True)
class DateComponents:
    """Resolution descriptor for one end of a span."""

    known: ParsedFields = field(default_factory=ParsedFields)
    implied: ParsedFields = field(default_factory=ParsedFields)

    def get(self, name: str) -> int | None:
        value = getattr(self.known, name)
        if value is None:
            value = getattr(self.implied, name)
        return value

    def is_certain(self, name: str) -> bool:
        return getattr(self.known, name) is not None

    def imply(self, **values: int | None) -> "DateComponents":
        """Return a copy with ``values`` set as implied fields."""
        return replace(self, implied=replace(self.implied, **values))

    def with_implied_timezone(self, offset_minutes: int) -> "DateComponents":
        """Imply ``offset_minutes`` unless a timezone is already implied.

        Known values are never touched, so a zone written in the message
        still wins when the date is resolved.
        """
        if self.implied.timezone_offset is not None:
            return self
        return self.imply(timezone_offset=offset_minutes)

    def date(self) -> datetime:
        """Resolve into an aware ``datetime`` (known fields over implied)."""
        values = self.known.merged_over(self.implied)
        missing = [name for name in DATE_FIELDS if getattr(values, name) is None]
        if missing:
            raise ValueError(f"cannot resolve date without {', '.join(missing)}")

        offset = values.timezone_offset
        if offset is None:
            log.debug("No timezone known or implied; resolving as UTC")
            offset = 0

        return datetime(
            values.year,
            values.month,
            values.day,
            values.hour or 0,
            values.minute or 0,
            values.second or 0,
            (values.millisecond or 0) * 1000,
            tzinfo=timezone(timedelta(minutes=offset)),
        )


@dataclass(frozen=True)
class TimeSpan:
    """A date/time expression located in a (sanitized) message."""

    text: str
    index: int
    start: DateComponents
    end: DateComponents | None = None

    @property
    def end_index(self) -> int:
        return self.index + len(self.text)

    def with_timezone_hint(self, offset_minutes: int) -> "TimeSpan":
        return replace(
            self,
            start=self.start.with_implied_timezone(offset_minutes),
            end=self.end.with_implied_timezone(offset_minutes) if self.end is not None else None,
        )
