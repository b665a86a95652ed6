"""
Pure parsers turning raw cell text into domain values.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar, Union

from .errors import UnmappedValue, UnparseableTime

T = TypeVar("T")


def boolean(value: str) -> bool:
    """Presence flag: any non-blank mark (usually "x") means True."""

    return str(value or "").strip() != ""


class _CatchAll:
    def __repr__(self) -> str:
        return "CATCH_ALL"


CATCH_ALL = _CatchAll()

Matcher = Union[str, Sequence[str], "re.Pattern[str]", _CatchAll]


def matches(value: str, matcher: Matcher) -> bool:
    if matcher is CATCH_ALL:
        return True
    if isinstance(matcher, str):
        return value == matcher
    if isinstance(matcher, re.Pattern):
        return matcher.search(value) is not None
    return any(value == candidate for candidate in matcher)


def map_input(mappings: Sequence[Tuple[Matcher, T]]) -> Callable[[str], T]:
    """
    Build a transform returning the output of the first matching pair.

    Matchers are an exact string, a list of alternatives, a compiled regex or
    CATCH_ALL. Values that match nothing raise UnmappedValue.
    """

    pairs = list(mappings)

    def mapper(value: str) -> T:
        for matcher, output in pairs:
            if matches(value, matcher):
                return output
        raise UnmappedValue(value)

    return mapper


def comma_separated_list(value: str) -> List[str]:
    return [item.strip() for item in str(value or "").split(",") if item.strip()]


def convert_to_id(value: str) -> str:
    """Slug used as a stable identifier, e.g. "Dr. Jane  Doe" -> "dr-jane-doe"."""

    lowered = str(value or "").lower()
    stripped = re.sub(r"[^a-z0-9 ]", "", lowered)
    return re.sub(r"\s+", "-", stripped.strip())


@dataclass(frozen=True)
class Individual:
    display_name: str
    id: str


def display_name_and_id(value: str) -> Individual:
    return Individual(display_name=value, id=convert_to_id(value))


def individuals_list(value: str) -> Tuple[Individual, ...]:
    return tuple(display_name_and_id(entry) for entry in comma_separated_list(value))


########################
# TIME OF DAY
########################


@dataclass(frozen=True, order=True)
class TimeOfDay:
    hour24: int
    minute: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.hour24 <= 23:
            raise ValueError(f"hour24 out of range: {self.hour24}")
        if not 0 <= self.minute <= 59:
            raise ValueError(f"minute out of range: {self.minute}")

    @classmethod
    def from_meridiem(cls, hour: int, minute: int, meridiem: str) -> "TimeOfDay":
        """Convert a 12-hour clock reading; 12 a.m. is hour 0, 12 p.m. is hour 12."""

        if not 1 <= hour <= 12:
            raise ValueError(f"hour out of range: {hour}")
        base = 0 if hour == 12 else hour
        return cls(base + (12 if meridiem == "pm" else 0), minute)

    def label(self) -> str:
        hour = self.hour24 % 12 or 12
        meridiem = "a.m." if self.hour24 < 12 else "p.m."
        return f"{hour}:{self.minute:02d} {meridiem}"


@dataclass(frozen=True)
class TimeRange:
    start: Optional[TimeOfDay] = None
    end: Optional[TimeOfDay] = None


_CLOCK = r"(?P<{name}_hour>\d{{1,2}}):(?P<{name}_minute>\d{{2}})"
_MERIDIEM = r"(?P<meridiem>[ap])\.?\s*m\.?"
_DASH = r"\s*[-–—]\s*"

UP_TO_PATTERN = re.compile(
    r"up\s+to\s+" + _CLOCK.format(name="end") + r"\s*" + _MERIDIEM, re.IGNORECASE
)
SINGLE_PATTERN = re.compile(_CLOCK.format(name="start") + r"\s*" + _MERIDIEM, re.IGNORECASE)
RANGE_PATTERN = re.compile(
    _CLOCK.format(name="start") + _DASH + _CLOCK.format(name="end") + r"\s*" + _MERIDIEM,
    re.IGNORECASE,
)


def _clock(match: "re.Match[str]", name: str, meridiem: str) -> TimeOfDay:
    return TimeOfDay.from_meridiem(
        int(match.group(f"{name}_hour")), int(match.group(f"{name}_minute")), meridiem
    )


def parse_time_range(text: str) -> TimeRange:
    """
    Interpret a schedule time label.

    Recognised shapes, tried in this order:

    1. ``Up to 2:30 p.m.``      -> end only
    2. ``9:00 a.m.``            -> start only
    3. ``11:00-1:00 p.m.``      -> start and end (hyphen or en dash)

    In a range only the end carries a meridiem. The start takes the same
    meridiem unless that would put it later than the end, in which case it is
    read as morning ("11:00-1:00 p.m." is 11:00 to 13:00). A parsed range
    therefore always has start <= end.

    A blank label has neither bound. Anything else raises UnparseableTime.
    """

    label = str(text or "").strip()
    if not label:
        return TimeRange()

    try:
        match = UP_TO_PATTERN.fullmatch(label)
        if match:
            return TimeRange(end=_clock(match, "end", _meridiem(match)))

        match = SINGLE_PATTERN.fullmatch(label)
        if match:
            return TimeRange(start=_clock(match, "start", _meridiem(match)))

        match = RANGE_PATTERN.fullmatch(label)
        if match:
            meridiem = _meridiem(match)
            end = _clock(match, "end", meridiem)
            start = _clock(match, "start", meridiem)
            if start > end:
                start = _clock(match, "start", "am")
            return TimeRange(start=start, end=end)
    except ValueError as exc:
        raise UnparseableTime(label) from exc

    raise UnparseableTime(label)


def _meridiem(match: "re.Match[str]") -> str:
    return "am" if match.group("meridiem").lower() == "a" else "pm"


def time_fields(text: str) -> Dict[str, Any]:
    """Fields spliced into a meeting record from its raw time column."""

    parsed = parse_time_range(text)
    return {"time": str(text or "").strip(), "start_time": parsed.start, "end_time": parsed.end}


########################
# DATES
########################

DATE_LABEL_FORMATS = (
    "%A, %B %d, %Y",
    "%A %B %d, %Y",
    "%B %d, %Y",
    "%A, %b %d, %Y",
    "%b %d, %Y",
    "%m/%d/%Y",
    "%Y-%m-%d",
)


def parse_date_label(label: str) -> Optional[date]:
    """Best-effort calendar date for a date label; None when unrecognised."""

    text = re.sub(r"\s+", " ", str(label or "")).strip()
    if not text:
        return None
    text = re.sub(r"(\d)(st|nd|rd|th)\b", r"\1", text)
    for fmt in DATE_LABEL_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def format_date_label(value: date) -> str:
    return f"{value:%A}, {value:%B} {value.day}, {value.year}"
