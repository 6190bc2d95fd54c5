"""Date normalization helpers.

Converts the ISO 8601 date and datetime strings found in Notion date
properties into the canonical forms used in ICS output: a UTC instant
rendered as ``yyyyMMddTHHmmssZ``, or a plain calendar date.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from icalendar import vDatetime


class InvalidDateError(ValueError):
    """Raised when a date value or zone name cannot be interpreted."""


def _resolve_zone(zone: str | None) -> timezone | ZoneInfo:
    if not zone:
        return timezone.utc
    try:
        return ZoneInfo(zone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise InvalidDateError(f"Unknown time zone: {zone!r}") from exc


def is_date_only(value: str) -> bool:
    """Return ``True`` if *value* is a bare date such as ``"2024-06-01"``.

    Both the extended (``2024-06-01``) and basic (``20240601``) forms are
    recognised. Anything carrying a time component returns ``False``.
    """
    if not isinstance(value, str):
        return False
    try:
        date.fromisoformat(value.strip())
    except ValueError:
        return False
    return True


def parse_date(value: str, zone: str | None = None) -> date | datetime:
    """Parse *value* into a canonical instant.

    :param value: An ISO 8601 date or datetime string.
    :param zone: IANA zone name used for datetimes without an offset.
        An explicit offset or ``Z`` in *value* always takes precedence.
        Defaults to UTC.
    :returns: A :class:`~datetime.date` for bare dates, otherwise an aware
        :class:`~datetime.datetime` in UTC truncated to whole seconds.
    :raises InvalidDateError: If *value* is not a recognised date shape or
        *zone* is not a known zone name.
    """
    if not isinstance(value, str):
        raise InvalidDateError(f"Expected a date string, got {value!r}")
    text = value.strip()
    if is_date_only(text):
        return date.fromisoformat(text)
    try:
        dt = datetime.fromisoformat(text)
    except ValueError as exc:
        raise InvalidDateError(f"Unrecognised date value: {value!r}") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=_resolve_zone(zone))
    return dt.astimezone(timezone.utc).replace(microsecond=0)


def local_date(value: str) -> date:
    """Return the calendar date written in *value*, ignoring any offset.

    ``"2024-06-03T23:30:00-05:00"`` yields ``date(2024, 6, 3)``; the date
    is taken as written rather than after conversion to UTC.

    :raises InvalidDateError: If *value* cannot be parsed.
    """
    if not isinstance(value, str):
        raise InvalidDateError(f"Expected a date string, got {value!r}")
    text = value.strip()
    if is_date_only(text):
        return date.fromisoformat(text)
    try:
        return datetime.fromisoformat(text).date()
    except ValueError as exc:
        raise InvalidDateError(f"Unrecognised date value: {value!r}") from exc


def reformat_date(value: str, zone: str | None = None) -> str:
    """Convert *value* to a UTC ICS date-time string.

    A bare date is taken as midnight in *zone* (or UTC).

    >>> reformat_date("2024-06-01T15:00:00-05:00")
    '20240601T200000Z'

    :param value: An ISO 8601 date or datetime string.
    :param zone: Optional IANA zone name for values without an offset.
    :returns: The instant formatted as ``yyyyMMddTHHmmssZ``.
    :raises InvalidDateError: If *value* or *zone* is invalid.
    """
    parsed = parse_date(value, zone)
    if not isinstance(parsed, datetime):
        midnight = datetime.combine(parsed, time(), tzinfo=_resolve_zone(zone))
        parsed = midnight.astimezone(timezone.utc)
    return vDatetime(parsed).to_ical().decode("utf-8")
