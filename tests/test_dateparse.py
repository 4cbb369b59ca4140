"""Tests for the dateparser-backed span parser.

``search_dates`` is patched with scripted hits so these tests pin down our
own bookkeeping (offsets, known/implied split, range joining) rather than
dateparser's heuristics.
"""
from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from dateparse import DateparserBackend, clock_fields, clock_values, known_field_names

_REFERENCE = datetime(2023, 11, 14, 17, 13, 20, tzinfo=timezone(timedelta(hours=-5)))


def _parse(text: str, hits):
    with patch("dateparse.search_dates", return_value=hits) as mock_search:
        spans = DateparserBackend(languages=["en"]).parse(text, _REFERENCE)
    return spans, mock_search


class TestClockFields(unittest.TestCase):
    def test_meridiem_hour_only(self):
        self.assertEqual(clock_fields("at 3pm"), {"hour"})
        self.assertEqual(clock_fields("5 p.m."), {"hour"})

    def test_meridiem_with_minutes(self):
        self.assertEqual(clock_fields("3:30 pm"), {"hour", "minute"})

    def test_24_hour_clock(self):
        self.assertEqual(clock_fields("15:45"), {"hour", "minute"})
        self.assertEqual(clock_fields("15:45:10"), {"hour", "minute", "second"})

    def test_named_times(self):
        self.assertEqual(clock_fields("noon"), {"hour", "minute"})
        self.assertEqual(clock_fields("5 o'clock"), {"hour", "minute"})

    def test_date_only(self):
        self.assertEqual(clock_fields("tomorrow"), set())
        self.assertEqual(clock_fields("March 3"), set())


class TestClockValues(unittest.TestCase):
    def test_meridiem_applied(self):
        self.assertEqual(clock_values("tomorrow at 9am"), {"hour": 9})
        self.assertEqual(clock_values("3:30 p.m."), {"hour": 15, "minute": 30})
        self.assertEqual(clock_values("12am"), {"hour": 0})
        self.assertEqual(clock_values("12pm"), {"hour": 12})

    def test_24_hour_and_named(self):
        self.assertEqual(clock_values("15:45:10"), {"hour": 15, "minute": 45, "second": 10})
        self.assertEqual(clock_values("midnight"), {"hour": 0, "minute": 0})
        self.assertEqual(clock_values("noon"), {"hour": 12, "minute": 0})

    def test_out_of_range(self):
        self.assertIsNone(clock_values("13pm"))
        self.assertIsNone(clock_values("25:00"))
        self.assertIsNone(clock_values("10:75"))

    def test_no_clock(self):
        self.assertEqual(clock_values("tomorrow"), {})


class TestKnownFieldNames(unittest.TestCase):
    def test_relative_instant_is_fully_specified(self):
        names = known_field_names("now", datetime(2023, 11, 14, 9, 1, 2, 3000))
        self.assertIn("millisecond", names)
        self.assertIn("hour", names)

    def test_in_minutes_is_fully_specified(self):
        self.assertIn("millisecond", known_field_names("in 5 minutes", datetime(2023, 11, 14)))

    def test_date_words_mark_date_known(self):
        names = known_field_names("tomorrow at 5pm", datetime(2023, 11, 15, 17))
        self.assertTrue({"year", "month", "day", "hour"} <= names)

    def test_aware_datetime_marks_timezone_known(self):
        dt = datetime(2023, 11, 15, 15, tzinfo=timezone(timedelta(hours=1)))
        self.assertIn("timezone_offset", known_field_names("3pm CET", dt))

    def test_ambiguous_words_need_a_day_number(self):
        dt = datetime(2023, 11, 14, 15)
        for text in ("I may be there at 3pm", "sun is out at 3pm", "wed the two teams at 3pm", "mar the paint at 3pm"):
            self.assertNotIn("day", known_field_names(text, dt), text)
        for text in ("May 5 at 3pm", "5th of May at 3pm", "Sat at 3pm", "wed 3pm"):
            self.assertIn("day", known_field_names(text, dt), text)

    def test_relative_week_marks_date_known(self):
        self.assertIn("day", known_field_names("next week at 3pm", datetime(2023, 11, 21, 15)))


class TestDateparserBackend(unittest.TestCase):
    def test_locates_spans_and_splits_fields(self):
        spans, _ = _parse("meet at 3pm ok", [("at 3pm", datetime(2023, 11, 14, 15, 0))])
        self.assertEqual(len(spans), 1)
        span = spans[0]
        self.assertEqual((span.text, span.index), ("at 3pm", 5))
        self.assertEqual(span.start.known.present(), {"hour"})
        self.assertEqual(span.start.implied.minute, 0)
        self.assertEqual(span.start.implied.day, 14)
        self.assertIsNone(span.start.implied.timezone_offset)
        self.assertIsNone(span.end)

    def test_relative_base_is_reference_wall_time(self):
        _, mock_search = _parse("nothing", None)
        settings = mock_search.call_args.kwargs["settings"]
        self.assertEqual(settings["RELATIVE_BASE"], datetime(2023, 11, 14, 17, 13, 20))
        self.assertEqual(settings["PREFER_DATES_FROM"], "current_period")
        self.assertEqual(mock_search.call_args.kwargs["languages"], ["en"])

    def test_no_hits(self):
        spans, _ = _parse("hello there", None)
        self.assertEqual(spans, [])

    def test_explicit_zone_is_known(self):
        est = timezone(timedelta(hours=-5))
        spans, _ = _parse("call 3pm EST", [("3pm EST", datetime(2023, 11, 14, 15, tzinfo=est))])
        self.assertEqual(spans[0].start.known.timezone_offset, -300)

    def test_repeated_text_gets_increasing_offsets(self):
        text = "3pm or 3pm"
        hits = [("3pm", datetime(2023, 11, 14, 15)), ("3pm", datetime(2023, 11, 14, 15))]
        spans, _ = _parse(text, hits)
        self.assertEqual([s.index for s in spans], [0, 7])

    def test_unlocatable_hit_skipped(self):
        spans, _ = _parse("at 3pm", [("at 4pm", datetime(2023, 11, 14, 16)), ("at 3pm", datetime(2023, 11, 14, 15))])
        self.assertEqual([s.text for s in spans], ["at 3pm"])

    def test_range_joined_and_date_shared(self):
        text = "let's meet at 3pm to 5pm tomorrow"
        hits = [
            ("at 3pm", datetime(2023, 11, 14, 15)),
            ("5pm tomorrow", datetime(2023, 11, 15, 17)),
        ]
        spans, _ = _parse(text, hits)
        self.assertEqual(len(spans), 1)
        span = spans[0]
        self.assertEqual(span.text, "at 3pm to 5pm tomorrow")
        self.assertEqual(span.index, text.index("at 3pm"))
        self.assertEqual(span.start.get("day"), 15)
        self.assertEqual(span.start.date(), datetime(2023, 11, 15, 15, tzinfo=timezone.utc))
        self.assertEqual(span.end.date(), datetime(2023, 11, 15, 17, tzinfo=timezone.utc))

    def test_range_end_rolls_past_midnight(self):
        text = "party 11pm - 1am"
        hits = [("11pm", datetime(2023, 11, 14, 23)), ("1am", datetime(2023, 11, 14, 1))]
        spans, _ = _parse(text, hits)
        self.assertEqual(len(spans), 1)
        self.assertEqual(spans[0].end.date(), datetime(2023, 11, 15, 1, tzinfo=timezone.utc))

    def test_range_shares_explicit_zone(self):
        cet = timezone(timedelta(hours=1))
        hits = [("3pm", datetime(2023, 11, 14, 15)), ("5pm CET", datetime(2023, 11, 14, 17, tzinfo=cet))]
        spans, _ = _parse("3pm to 5pm CET", hits)
        self.assertEqual(spans[0].start.implied.timezone_offset, 60)
        self.assertEqual(spans[0].end.known.timezone_offset, 60)

    def test_written_clock_overrides_parsed_clock(self):
        # dateparser keeps the reference clock for "tomorrow at 9am"
        for text in ("tomorrow at 9am", "9am tomorrow", "standup at 9am tomorrow"):
            spans, _ = _parse(text, [(text, datetime(2023, 11, 15, 17, 13, 20))])
            self.assertEqual(len(spans), 1, text)
            start = spans[0].start
            self.assertEqual((start.get("day"), start.get("hour"), start.get("minute"), start.get("second")), (15, 9, 0, 0))
            self.assertTrue(start.is_certain("hour"))
            self.assertFalse(start.is_certain("minute"))

    def test_out_of_range_clock_dropped(self):
        spans, _ = _parse("at 13pm", [("at 13pm", datetime(2023, 11, 14, 13))])
        self.assertEqual(spans, [])

    def test_undated_time_stays_on_reference_day(self):
        # posted 17:13 local; dateparser may roll "3pm" forward a day
        spans, _ = _parse("we met at 3pm", [("at 3pm", datetime(2023, 11, 15, 15))])
        self.assertEqual(spans[0].start.get("day"), 14)
        self.assertFalse(spans[0].start.is_certain("day"))

    def test_separate_date_and_time_hits_fused(self):
        text = "tomorrow at 9am works"
        hits = [("tomorrow", datetime(2023, 11, 15, 17, 13, 20)), ("9am", datetime(2023, 11, 14, 9))]
        spans, _ = _parse(text, hits)
        self.assertEqual(len(spans), 1)
        self.assertEqual(spans[0].text, "tomorrow at 9am")
        self.assertEqual(spans[0].start.date(), datetime(2023, 11, 15, 9, tzinfo=timezone.utc))
        self.assertTrue({"day", "hour"} <= spans[0].start.known.present())

    def test_range_inside_one_hit_is_split(self):
        text = "free 3pm - 5pm"
        spans, _ = _parse(text, [("3pm - 5pm", datetime(2023, 11, 14, 15))])
        self.assertEqual(len(spans), 1)
        self.assertEqual(spans[0].text, "3pm - 5pm")
        self.assertEqual(spans[0].start.get("hour"), 15)
        self.assertEqual(spans[0].end.get("hour"), 17)

    def test_connector_kept_on_second_hit(self):
        text = "at 3pm to 5pm tomorrow"
        hits = [
            ("at 3pm", datetime(2023, 11, 14, 15)),
            ("to 5pm", datetime(2023, 11, 14, 17)),
            ("tomorrow", datetime(2023, 11, 15, 17, 13, 20)),
        ]
        spans, _ = _parse(text, hits)
        self.assertEqual(len(spans), 1)
        self.assertEqual(spans[0].text, text)
        self.assertEqual(spans[0].start.date(), datetime(2023, 11, 15, 15, tzinfo=timezone.utc))
        self.assertEqual(spans[0].end.date(), datetime(2023, 11, 15, 17, tzinfo=timezone.utc))

    def test_non_range_gap_keeps_spans_apart(self):
        hits = [("at 3pm", datetime(2023, 11, 14, 15)), ("5pm", datetime(2023, 11, 14, 17))]
        spans, _ = _parse("at 3pm and 5pm", hits)
        self.assertEqual([s.text for s in spans], ["at 3pm", "5pm"])
        self.assertTrue(all(s.end is None for s in spans))


if __name__ == "__main__":
    unittest.main()
