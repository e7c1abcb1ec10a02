"""Experience period parsing and month arithmetic.

Open-ended ("Present") periods stay symbolic in the profile and are resolved
here against an explicit analysis time, never the wall clock.
"""

import re
from collections.abc import Iterable
from datetime import date, datetime

from models.schemas.profile import ExperienceEntry, YearMonth

PRESENT_WORDS = frozenset({"present", "current", "currently", "now", "today", "ongoing"})

_MONTH_MAP = {
    "jan": 1, "january": 1, "feb": 2, "february": 2, "mar": 3, "march": 3,
    "apr": 4, "april": 4, "may": 5, "jun": 6, "june": 6,
    "jul": 7, "july": 7, "aug": 8, "august": 8, "sep": 9, "sept": 9,
    "september": 9, "oct": 10, "october": 10, "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}

_ISO_RE = re.compile(r"^(\d{4})[-/.](\d{1,2})(?:[-/.]\d{1,2})?$")  # 2019-03, 2019/03/15
_MONTH_FIRST_RE = re.compile(r"^(\d{1,2})[-/.](\d{4})$")  # 03/2019
_NAMED_RE = re.compile(r"^([a-z]+)\.?,?\s*(\d{4})$")  # Jan 2019, March, 2019
_YEAR_RE = re.compile(r"^(\d{4})$")


class PeriodParseError(ValueError):
    """Raised when a period string cannot be read as a calendar month."""


def is_present(value: str | None) -> bool:
    """True for an empty end or a present/current marker."""
    if value is None:
        return True
    text = value.strip().lower().rstrip(".")
    return not text or text in PRESENT_WORDS


def parse_period(value: str) -> YearMonth:
    """Parse "Jan 2019", "January 2019", "2019-03", "03/2019" or "2019".

    A bare year means January of that year.
    """
    text = (value or "").strip().lower().rstrip(".")
    if not text:
        raise PeriodParseError("empty period")

    m = _ISO_RE.match(text)
    if m:
        return _year_month(int(m.group(1)), int(m.group(2)), value)
    m = _MONTH_FIRST_RE.match(text)
    if m:
        return _year_month(int(m.group(2)), int(m.group(1)), value)
    m = _NAMED_RE.match(text)
    if m and m.group(1) in _MONTH_MAP:
        return _year_month(int(m.group(2)), _MONTH_MAP[m.group(1)], value)
    m = _YEAR_RE.match(text)
    if m:
        return _year_month(int(m.group(1)), 1, value)
    raise PeriodParseError(f"unrecognized period {value!r}")


def _year_month(year: int, month: int, raw: str) -> YearMonth:
    if not 1900 <= year <= 2100 or not 1 <= month <= 12:
        raise PeriodParseError(f"period out of range: {raw!r}")
    return YearMonth(year=year, month=month)


def to_year_month(moment: date | datetime | YearMonth) -> YearMonth:
    if isinstance(moment, YearMonth):
        return moment
    return YearMonth(year=moment.year, month=moment.month)


def resolve_end(entry: ExperienceEntry, analysis_time: date | datetime) -> YearMonth:
    """End of the entry, with present resolved to the analysis month."""
    now = to_year_month(analysis_time)
    if entry.end is None:
        return now
    return entry.end if entry.end.index <= now.index else now


def months_between(start: YearMonth, end: YearMonth) -> int:
    """Whole months from start to end, 0 if end precedes start."""
    return max(0, end.index - start.index)


def entry_months(entry: ExperienceEntry, analysis_time: date | datetime) -> int:
    """Duration of one entry at the analysis time."""
    return months_between(entry.start, resolve_end(entry, analysis_time))


def union_months(entries: Iterable[ExperienceEntry], analysis_time: date | datetime) -> int:
    """Total months covered by the entries, counting overlapping spans once."""
    spans = sorted(
        (e.start.index, resolve_end(e, analysis_time).index) for e in entries
    )
    total = 0
    cur_start = cur_end = None
    for start, end in spans:
        if end <= start:
            continue
        if cur_end is None or start > cur_end:
            if cur_end is not None:
                total += cur_end - cur_start
            cur_start, cur_end = start, end
        else:
            cur_end = max(cur_end, end)
    if cur_end is not None:
        total += cur_end - cur_start
    return total


def years_since_end(entry: ExperienceEntry, analysis_time: date | datetime) -> float:
    """Years between the entry's end and the analysis time; 0 for current entries."""
    if entry.end is None:
        return 0.0
    return months_between(entry.end, to_year_month(analysis_time)) / 12.0
