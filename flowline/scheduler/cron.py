"""Five-field cron expressions: parsing, matching and next-run search.

Fields are minute, hour, day-of-month, month, day-of-week. Each field
accepts ``*``, a number, a comma list, an inclusive range ``a-b``, a
step ``*/n`` or a ranged step ``a-b/n``. Day-of-week runs 0-6 with
Sunday as 0 (7 is accepted as Sunday). Day-of-month and day-of-week
must both match.

Matching happens on the local calendar. Naive datetimes are treated as
local wall-clock time; aware datetimes are stepped in UTC and compared
in the requested zone, so DST gaps and repeats resolve naturally.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from flowline.exceptions import ConfigurationError, InvalidCronExpressionError

DEFAULT_MAX_YEARS = 5

# (name, lowest, highest) per field; day-of-week admits 7 as an alias of 0
_FIELDS: tuple[tuple[str, int, int], ...] = (
    ("minute", 0, 59),
    ("hour", 0, 23),
    ("day of month", 1, 31),
    ("month", 1, 12),
    ("day of week", 0, 7),
)


@dataclass(frozen=True)
class CronSchedule:
    """Parsed expression: the allowed values of each field."""

    expression: str
    minutes: frozenset[int]
    hours: frozenset[int]
    days: frozenset[int]
    months: frozenset[int]
    weekdays: frozenset[int]

    def matches_day(self, day: date) -> bool:
        # date.weekday() is Monday=0; cron is Sunday=0
        return (
            day.month in self.months
            and day.day in self.days
            and (day.weekday() + 1) % 7 in self.weekdays
        )

    def matches(self, moment: datetime) -> bool:
        return (
            moment.minute in self.minutes
            and moment.hour in self.hours
            and self.matches_day(moment.date())
        )


def _parse_int(text: str, expression: str) -> int:
    if not text.isdigit():
        raise InvalidCronExpressionError(
            f"Invalid cron expression '{expression}': '{text}' is not a number",
            expression=expression,
        )
    return int(text)


def _parse_field(text: str, name: str, low: int, high: int, expression: str) -> frozenset[int]:
    values: set[int] = set()
    for part in text.split(","):
        step = 1
        base = part
        if "/" in part:
            base, step_text = part.split("/", 1)
            step = _parse_int(step_text, expression)
            if step == 0:
                raise InvalidCronExpressionError(
                    f"Invalid cron expression '{expression}': zero step in {name}",
                    expression=expression,
                )

        if base == "*":
            start, end = low, high
        elif "-" in base:
            start_text, end_text = base.split("-", 1)
            start = _parse_int(start_text, expression)
            end = _parse_int(end_text, expression)
        else:
            start = _parse_int(base, expression)
            end = high if "/" in part else start

        if start < low or end > high or start > end:
            raise InvalidCronExpressionError(
                f"Invalid cron expression '{expression}': {name} '{part}' "
                f"outside {low}-{high}",
                expression=expression,
            )
        values.update(range(start, end + 1, step))
    return frozenset(values)


@lru_cache(maxsize=256)
def parse_cron(expression: str) -> CronSchedule:
    """Parse a 5-field expression.

    Raises:
        InvalidCronExpressionError: On wrong field count or bad syntax.
    """
    parts = expression.split()
    if len(parts) != len(_FIELDS):
        raise InvalidCronExpressionError(
            f"Invalid cron expression '{expression}': expected 5 fields, got {len(parts)}",
            expression=expression,
        )

    parsed = [
        _parse_field(text, name, low, high, expression)
        for text, (name, low, high) in zip(parts, _FIELDS, strict=True)
    ]
    weekdays = frozenset(0 if d == 7 else d for d in parsed[4])
    return CronSchedule(
        expression=expression,
        minutes=parsed[0],
        hours=parsed[1],
        days=parsed[2],
        months=parsed[3],
        weekdays=weekdays,
    )


def cron_matches(expression: str, moment: datetime) -> bool:
    """Whether ``moment`` (its own wall-clock fields) satisfies the expression."""
    return parse_cron(expression).matches(moment)


def _resolve_zone(tz: str | tzinfo | None, after: datetime) -> tzinfo:
    if tz is None:
        return after.tzinfo or UTC
    if isinstance(tz, str):
        try:
            return ZoneInfo(tz)
        except ZoneInfoNotFoundError as e:
            raise ConfigurationError(f"Unknown timezone '{tz}'") from e
    return tz


def _next_local_midnight(local: datetime) -> datetime:
    return datetime.combine(local.date() + timedelta(days=1), time(0), tzinfo=local.tzinfo)


def next_cron_run(
    expression: str,
    after: datetime,
    tz: str | tzinfo | None = None,
    max_years: int = DEFAULT_MAX_YEARS,
) -> datetime:
    """First minute strictly after ``after`` that matches ``expression``.

    Args:
        expression: 5-field cron expression.
        after: Reference time. Seconds and microseconds are dropped.
        tz: Zone whose calendar the fields refer to, for aware ``after``.
            Defaults to ``after``'s own zone. Ignored for naive input.
        max_years: Search horizon.

    Returns:
        Naive result for naive input, else an aware datetime in ``tz``.

    Raises:
        InvalidCronExpressionError: Bad syntax, or no match within the horizon.
        ConfigurationError: Unknown timezone name.
    """
    schedule = parse_cron(expression)
    naive = after.tzinfo is None
    zone = None if naive else _resolve_zone(tz, after)

    cursor = after.replace(second=0, microsecond=0)
    if not naive:
        cursor = cursor.astimezone(UTC)
    cursor += timedelta(minutes=1)
    horizon = cursor + timedelta(days=366 * max_years)

    while cursor <= horizon:
        local = cursor if naive else cursor.astimezone(zone)

        if not schedule.matches_day(local.date()):
            if naive:
                cursor = datetime.combine(local.date() + timedelta(days=1), time(0))
            else:
                cursor = _next_local_midnight(local).astimezone(UTC)
            continue

        if local.hour not in schedule.hours:
            cursor += timedelta(minutes=60 - local.minute)
            continue

        if local.minute in schedule.minutes:
            return local

        cursor += timedelta(minutes=1)

    raise InvalidCronExpressionError(
        f"Cron expression '{expression}' has no run within {max_years} years",
        expression=expression,
    )
