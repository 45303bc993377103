"""RRULE parsing, validation, description and expansion.

Rules are parsed into a RecurrenceRule model. Expansion walks the candidate days
of a dateutil rrule up to a bounded horizon and keeps the ones the rule selects.
Everything here is deterministic: same rule + anchor -> same output (or same
structured error).

Datetimes are handled as naive UTC. Timezone-aware anchors and UNTIL values are
converted to UTC and made naive before use.
"""

from __future__ import annotations

import calendar
import re
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterator, List, Optional, Set, Tuple

from dateutil import parser as date_parser
from dateutil import rrule as du_rrule
from dateutil.relativedelta import relativedelta
from pydantic import ValidationError

from taskintel.models.constants import MAX_RECURRENCE_INSTANCES, MAX_RECURRENCE_SEARCH_YEARS
from taskintel.models.recurrence import RecurrenceFrequency, RecurrenceRule, Weekday, WeekdaySpec


class RecurrenceError(ValueError):
    """Base class for recurrence precondition failures."""


class InvalidRecurrenceRuleError(RecurrenceError):
    def __init__(self, message: str, *, rule: Optional[str] = None):
        super().__init__(message)
        self.rule = rule


class MissingAnchorDateError(RecurrenceError):
    def __init__(self, message: str = "Due date is required for recurring tasks"):
        super().__init__(message)


class TemplateNotFoundError(RecurrenceError):
    def __init__(self, template_task_id: str):
        super().__init__(f"Recurring template {template_task_id} not found")
        self.template_task_id = template_task_id


_FREQ_MAP = {
    RecurrenceFrequency.DAILY: du_rrule.DAILY,
    RecurrenceFrequency.WEEKLY: du_rrule.WEEKLY,
    RecurrenceFrequency.MONTHLY: du_rrule.MONTHLY,
    RecurrenceFrequency.YEARLY: du_rrule.YEARLY,
}

_WD_MAP = {
    Weekday.MO: du_rrule.MO,
    Weekday.TU: du_rrule.TU,
    Weekday.WE: du_rrule.WE,
    Weekday.TH: du_rrule.TH,
    Weekday.FR: du_rrule.FR,
    Weekday.SA: du_rrule.SA,
    Weekday.SU: du_rrule.SU,
}

_WD_INDEX = {weekday: index for index, weekday in enumerate(Weekday)}

_PERIOD_UNITS = {
    RecurrenceFrequency.DAILY: "days",
    RecurrenceFrequency.WEEKLY: "weeks",
    RecurrenceFrequency.MONTHLY: "months",
    RecurrenceFrequency.YEARLY: "years",
}

_LATEST = datetime(9999, 12, 31, 23, 59, 59)

_WD_NAMES = {
    Weekday.MO: "Monday",
    Weekday.TU: "Tuesday",
    Weekday.WE: "Wednesday",
    Weekday.TH: "Thursday",
    Weekday.FR: "Friday",
    Weekday.SA: "Saturday",
    Weekday.SU: "Sunday",
}

_MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

_ORDINAL_WORDS = {1: "first", 2: "second", 3: "third", 4: "fourth", 5: "fifth", -1: "last", -2: "second to last"}

_BYDAY_RE = re.compile(r"^(?P<n>[+-]?\d{1,2})?(?P<day>MO|TU|WE|TH|FR|SA|SU)$")

_SUPPORTED_KEYS = {"FREQ", "INTERVAL", "COUNT", "UNTIL", "BYDAY", "BYMONTHDAY", "BYMONTH", "WKST"}


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _parse_int(key: str, raw: str, rule: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise InvalidRecurrenceRuleError(f"{key} must be an integer", rule=rule)


def _parse_int_list(key: str, raw: str, rule: str) -> List[int]:
    return [_parse_int(key, part, rule) for part in raw.split(",") if part]


def _parse_until(raw: str, rule: str) -> datetime:
    """Parse UNTIL; a date without a time covers that whole day."""
    try:
        until = to_naive_utc(date_parser.isoparse(raw))
    except ValueError:
        raise InvalidRecurrenceRuleError("UNTIL must be a date (YYYYMMDD) or date-time", rule=rule)
    if "T" not in raw:
        until = until + timedelta(days=1) - timedelta(microseconds=1)
    return until


def _parse_by_day(raw: str, rule: str) -> List[WeekdaySpec]:
    out: List[WeekdaySpec] = []
    for token in raw.split(","):
        m = _BYDAY_RE.match(token.strip())
        if not m:
            raise InvalidRecurrenceRuleError(f"Invalid BYDAY value: {token}", rule=rule)
        ordinal = int(m.group("n")) if m.group("n") else None
        try:
            out.append(WeekdaySpec(weekday=Weekday(m.group("day")), ordinal=ordinal))
        except ValidationError:
            raise InvalidRecurrenceRuleError(f"Invalid BYDAY ordinal: {token}", rule=rule)
    return out


def parse_rule_string(rule: str) -> RecurrenceRule:
    """Parse an RRULE string (with or without the leading 'RRULE:') into a model.

    Raises:
        InvalidRecurrenceRuleError: empty, malformed or unsupported rule
    """
    raw = (rule or "").strip()
    if raw.upper().startswith("RRULE:"):
        raw = raw[len("RRULE:"):]
    if not raw:
        raise InvalidRecurrenceRuleError("Recurrence rule is required", rule=rule)

    parts: dict[str, str] = {}
    for chunk in raw.split(";"):
        if not chunk.strip():
            continue
        if "=" not in chunk:
            raise InvalidRecurrenceRuleError(f"Malformed rule part: {chunk}", rule=rule)
        key, value = chunk.split("=", 1)
        key = key.strip().upper()
        value = value.strip().upper()
        if key not in _SUPPORTED_KEYS:
            raise InvalidRecurrenceRuleError(f"Unsupported rule part: {key}", rule=rule)
        if key in parts:
            raise InvalidRecurrenceRuleError(f"Duplicate rule part: {key}", rule=rule)
        parts[key] = value

    if "FREQ" not in parts:
        raise InvalidRecurrenceRuleError("FREQ is required", rule=rule)
    try:
        frequency = RecurrenceFrequency(parts["FREQ"])
    except ValueError:
        raise InvalidRecurrenceRuleError(f"Unsupported frequency: {parts['FREQ']}", rule=rule)

    fields: dict = {"frequency": frequency}
    if "INTERVAL" in parts:
        fields["interval"] = _parse_int("INTERVAL", parts["INTERVAL"], rule)
    if "COUNT" in parts:
        fields["count"] = _parse_int("COUNT", parts["COUNT"], rule)
    if "UNTIL" in parts:
        fields["until"] = _parse_until(parts["UNTIL"], rule)
    if "BYDAY" in parts:
        fields["by_day"] = _parse_by_day(parts["BYDAY"], rule)
    if "BYMONTHDAY" in parts:
        fields["by_month_day"] = _parse_int_list("BYMONTHDAY", parts["BYMONTHDAY"], rule)
    if "BYMONTH" in parts:
        fields["by_month"] = _parse_int_list("BYMONTH", parts["BYMONTH"], rule)
    if "WKST" in parts:
        try:
            fields["week_start"] = Weekday(parts["WKST"])
        except ValueError:
            raise InvalidRecurrenceRuleError(f"Invalid WKST value: {parts['WKST']}", rule=rule)

    try:
        return RecurrenceRule(**fields)
    except ValidationError as e:
        raise InvalidRecurrenceRuleError(str(e.errors()[0].get("msg", "Invalid rule")), rule=rule)


def parse_rule(rule: str, anchor: Optional[datetime]) -> RecurrenceRule:
    """Parse a rule and check it against its anchor date.

    Raises:
        MissingAnchorDateError: anchor is None
        InvalidRecurrenceRuleError: rule is malformed or UNTIL precedes the anchor
    """
    if anchor is None:
        raise MissingAnchorDateError()
    parsed = parse_rule_string(rule)
    if parsed.until is not None and parsed.until < to_naive_utc(anchor):
        raise InvalidRecurrenceRuleError("UNTIL is earlier than the anchor date", rule=rule)
    return parsed


def validate_rule(rule: Optional[str], anchor: Optional[datetime]) -> bool:
    """Return True if `rule` is a supported, consistent rule for `anchor`.

    Fails closed: no anchor, an unparsable rule or inconsistent bounds all
    return False. Never raises.
    """
    if not rule or not isinstance(rule, str):
        return False
    try:
        parse_rule(rule, anchor)
    except RecurrenceError:
        return False
    return True


def _ordinal_word(n: int) -> str:
    return _ORDINAL_WORDS.get(n, f"#{n}")


def _describe_by_day(specs: List[WeekdaySpec]) -> str:
    names = []
    for spec in specs:
        name = _WD_NAMES[Weekday(spec.weekday)]
        if spec.ordinal is not None:
            name = f"the {_ordinal_word(spec.ordinal)} {name}"
        names.append(name)
    return ", ".join(names)


def _describe_month_days(days: List[int]) -> str:
    labels = ["the last day" if d == -1 else (f"day {d}" if d > 0 else f"day {-d} from the end") for d in days]
    return ", ".join(labels)


def describe_parsed_rule(parsed: RecurrenceRule) -> str:
    freq = RecurrenceFrequency(parsed.frequency)
    unit = {
        RecurrenceFrequency.DAILY: ("Daily", "days"),
        RecurrenceFrequency.WEEKLY: ("Weekly", "weeks"),
        RecurrenceFrequency.MONTHLY: ("Monthly", "months"),
        RecurrenceFrequency.YEARLY: ("Yearly", "years"),
    }[freq]
    description = unit[0] if parsed.interval == 1 else f"Every {parsed.interval} {unit[1]}"

    if parsed.by_month:
        description += " in " + ", ".join(_MONTH_NAMES[m - 1] for m in parsed.by_month)
    if parsed.by_day:
        description += " on " + _describe_by_day(parsed.by_day)
    if parsed.by_month_day:
        description += " on " + _describe_month_days(parsed.by_month_day)

    if parsed.count is not None:
        description += f", {parsed.count} time" + ("" if parsed.count == 1 else "s")
    elif parsed.until is not None:
        description += f" until {parsed.until.strftime('%Y-%m-%d')}"
    return description


def describe_rule(rule: Optional[str], anchor: Optional[datetime] = None) -> str:
    """Human-readable, locale-agnostic phrase for a rule.

    Examples: "Weekly on Monday, 10 times", "Daily until 2025-12-31".
    Presentational only: never raises.
    """
    if not rule:
        return "No recurrence"
    try:
        parsed = parse_rule_string(rule)
    except RecurrenceError:
        return "Invalid recurrence rule"
    return describe_parsed_rule(parsed)


def _expansion_months(parsed: RecurrenceRule, anchor: datetime) -> List[int]:
    """Months a rule can match in, with the RRULE defaults taken from the anchor."""
    if parsed.by_month:
        return list(parsed.by_month)
    if (
        RecurrenceFrequency(parsed.frequency) == RecurrenceFrequency.YEARLY
        and not parsed.by_month_day
        and not parsed.by_day
    ):
        return [anchor.month]
    return []


def build_candidate_rrule(parsed: RecurrenceRule, anchor: datetime, until: datetime) -> du_rrule.rrule:
    """Build a dateutil rrule yielding every day of every period the rule selects.

    Every period contributes at least one candidate, so `until` always ends the
    iteration. The rule's own BY* filters are applied by `occurrence_filter`.
    """
    freq = RecurrenceFrequency(parsed.frequency)
    kwargs: dict = {
        "dtstart": anchor,
        "interval": parsed.interval,
        "until": until,
    }
    if parsed.week_start is not None:
        kwargs["wkst"] = _WD_MAP[Weekday(parsed.week_start)]
    if freq == RecurrenceFrequency.WEEKLY:
        kwargs["byweekday"] = list(_WD_MAP.values())
    elif freq == RecurrenceFrequency.MONTHLY:
        kwargs["bymonthday"] = list(range(1, 32))
    elif freq == RecurrenceFrequency.YEARLY:
        kwargs["bymonth"] = _expansion_months(parsed, anchor) or list(range(1, 13))
        kwargs["bymonthday"] = list(range(1, 32))
    return du_rrule.rrule(_FREQ_MAP[freq], **kwargs)


def _nth_weekday_matches(day: datetime, nth: Set[Tuple[int, int]], year_relative: bool) -> bool:
    if year_relative:
        index = day.timetuple().tm_yday
        length = 366 if calendar.isleap(day.year) else 365
    else:
        index = day.day
        length = calendar.monthrange(day.year, day.month)[1]
    forward = (index - 1) // 7 + 1
    backward = -((length - index) // 7 + 1)
    return (day.weekday(), forward) in nth or (day.weekday(), backward) in nth


def occurrence_filter(parsed: RecurrenceRule, anchor: datetime) -> Callable[[datetime], bool]:
    """Predicate selecting the candidate days that are real occurrences.

    Mirrors dateutil's rrule semantics: BY* parts are combined with AND, a
    BYDAY ordinal counts within the month (or the year for YEARLY without
    BYMONTH) and is ignored for DAILY and WEEKLY, and a rule without BYDAY or
    BYMONTHDAY repeats on the anchor's day.
    """
    freq = RecurrenceFrequency(parsed.frequency)
    months = set(_expansion_months(parsed, anchor))
    month_days = {d for d in parsed.by_month_day if d > 0}
    month_days_from_end = {d for d in parsed.by_month_day if d < 0}
    weekdays: Set[int] = set()
    nth_weekdays: Set[Tuple[int, int]] = set()
    for spec in parsed.by_day:
        index = _WD_INDEX[Weekday(spec.weekday)]
        if spec.ordinal is None or freq in (RecurrenceFrequency.DAILY, RecurrenceFrequency.WEEKLY):
            weekdays.add(index)
        else:
            nth_weekdays.add((index, spec.ordinal))

    if not parsed.by_month_day and not parsed.by_day:
        if freq in (RecurrenceFrequency.YEARLY, RecurrenceFrequency.MONTHLY):
            month_days = {anchor.day}
        elif freq == RecurrenceFrequency.WEEKLY:
            weekdays = {anchor.weekday()}
    year_relative = freq == RecurrenceFrequency.YEARLY and not parsed.by_month

    def matches(day: datetime) -> bool:
        if months and day.month not in months:
            return False
        if weekdays and day.weekday() not in weekdays:
            return False
        if nth_weekdays and not _nth_weekday_matches(day, nth_weekdays, year_relative):
            return False
        if month_days or month_days_from_end:
            length = calendar.monthrange(day.year, day.month)[1]
            if day.day not in month_days and day.day - length - 1 not in month_days_from_end:
                return False
        return True

    return matches


def search_horizon(parsed: RecurrenceRule, anchor: datetime, cap: int) -> datetime:
    """Latest instant searched for occurrences.

    Covers `cap` periods of the rule and at least MAX_RECURRENCE_SEARCH_YEARS,
    so a rule that can never match ends in bounded time.
    """
    unit = _PERIOD_UNITS[RecurrenceFrequency(parsed.frequency)]
    try:
        by_periods = anchor + relativedelta(**{unit: parsed.interval * cap})
    except (OverflowError, ValueError):
        return _LATEST
    try:
        by_years = anchor + relativedelta(years=MAX_RECURRENCE_SEARCH_YEARS)
    except (OverflowError, ValueError):
        return _LATEST
    return max(by_periods, by_years)


def iter_occurrences(
    rule: str,
    anchor: Optional[datetime],
    limit: int,
    until: Optional[datetime] = None,
) -> Iterator[datetime]:
    """Yield occurrences strictly after `anchor`, in chronological order.

    The anchor occurrence belongs to the template itself. Iteration stops at
    the first of: `limit` occurrences, the rule's own COUNT/UNTIL, `until`
    (inclusive), MAX_RECURRENCE_INSTANCES, or the search horizon.

    Raises:
        MissingAnchorDateError, InvalidRecurrenceRuleError
    """
    parsed = parse_rule(rule, anchor)
    start = to_naive_utc(anchor)
    end = to_naive_utc(until) if until is not None else None
    cap = min(limit, MAX_RECURRENCE_INSTANCES)

    stop = search_horizon(parsed, start, cap)
    if parsed.until is not None:
        stop = min(stop, parsed.until)
    matches = occurrence_filter(parsed, start)

    matched = 0
    produced = 0
    for candidate in build_candidate_rrule(parsed, start, stop):
        if produced >= cap:
            return
        if not matches(candidate):
            continue
        # COUNT includes the anchor occurrence
        matched += 1
        if parsed.count is not None and matched > parsed.count:
            return
        if candidate <= start:
            continue
        if end is not None and candidate > end:
            return
        produced += 1
        yield candidate
