"""ICS serialization of calendar bundles.

Provides the :class:`CalendarEvent` and :class:`CalendarBundle` data
classes and :func:`build_ics`, which turns a bundle into RFC 5545 text
using :mod:`icalendar`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any

from icalendar import Calendar, Event

from .dates import InvalidDateError, is_date_only, local_date, parse_date

logger = logging.getLogger(__name__)

DISPLAY_TIMEZONE = "America/Chicago"
"""Value of the ``X-WR-TIMEZONE`` header. All event times are UTC."""

UID_NAMESPACE = "notion"
"""Suffix appended to record IDs to form ``UID`` values."""


class InvalidBundleError(ValueError):
    """Raised when a calendar bundle is structurally invalid."""


@dataclass
class CalendarEvent:
    """A single calendar record.

    :param id: Unique identifier of the source record.
    :param title: The display title of the event.
    :param start: ISO 8601 date or datetime string.
    :param end: Optional ISO 8601 date or datetime string.
    :param description: Free text description.
    :param location: Free text location.
    :param url: Link to the source record or event page.
    :param time_zone: IANA zone name for datetimes without an offset.
        ``None`` means UTC.
    """

    id: str
    title: str
    start: str
    end: str | None = None
    description: str = ""
    location: str = ""
    url: str = ""
    time_zone: str | None = None


@dataclass
class CalendarBundle:
    """A named, ordered collection of events."""

    name: str
    events: Sequence[CalendarEvent | Mapping[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CalendarBundle:
        """Build a bundle from ``{"name": ..., "events": [...]}``.

        ``calname`` is accepted as an alias for ``name``.

        :raises InvalidBundleError: If *data* is not a mapping.
        """
        if not isinstance(data, Mapping):
            raise InvalidBundleError("Calendar bundle must be a mapping")
        name = data.get("name") or data.get("calname")
        return cls(name=name, events=data.get("events"))


@dataclass
class SkippedEvent:
    """Diagnostic for an event left out of the output.

    :param index: Position of the record in the input sequence.
    :param event_id: The record ID, if it had one.
    :param reason: Human readable reason.
    """

    index: int
    event_id: str | None
    reason: str


@dataclass
class IcsResult:
    """The serialized calendar and the events that were skipped."""

    text: str
    skipped: list[SkippedEvent] = field(default_factory=list)


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _single_line(value: Any) -> str:
    """Drop CR and LF so a value cannot break out of its content line."""
    return str(value).replace("\r", "").replace("\n", "")


def _validate(bundle: CalendarBundle | Mapping[str, Any]) -> CalendarBundle:
    if isinstance(bundle, Mapping):
        bundle = CalendarBundle.from_dict(bundle)
    if not isinstance(bundle, CalendarBundle):
        raise InvalidBundleError(f"Unsupported calendar bundle: {bundle!r}")
    if not isinstance(bundle.name, str) or not bundle.name:
        raise InvalidBundleError("Calendar name must be a non-empty string")
    if not isinstance(bundle.events, Sequence) or isinstance(bundle.events, (str, bytes)):
        raise InvalidBundleError("Calendar events must be a sequence")
    return bundle


def _event_dates(record: Any) -> tuple[date, date | None]:
    """Return the ``DTSTART`` and ``DTEND`` values for *record*.

    Bare-date starts give :class:`~datetime.date` values with an
    exclusive end date, everything else gives UTC datetimes.

    :raises InvalidDateError: If a date needed for the output is invalid.
    """
    start = _field(record, "start")
    end = _field(record, "end")
    zone = _field(record, "time_zone")

    dtstart = parse_date(start, zone)

    # A bare date is always midnight, so the literal alone decides.
    if is_date_only(start):
        dtend = dtstart + timedelta(days=1)
        if end:
            try:
                dtend = local_date(end) + timedelta(days=1)
            except InvalidDateError:
                logger.warning(
                    "Ignoring invalid end %r for all-day event %s", end, _field(record, "id")
                )
        return dtstart, dtend

    return dtstart, parse_date(end, zone) if end else None


def _build_event(record: Any) -> Event:
    """Convert *record* to a ``VEVENT`` component.

    :raises InvalidDateError: If the record's dates cannot be parsed.
    """
    dtstart, dtend = _event_dates(record)

    event = Event()
    event.add("uid", f"{_single_line(_field(record, 'id'))}@{UID_NAMESPACE}")
    event.add("summary", str(_field(record, "title")))
    event.add("dtstart", dtstart)
    if dtend is not None:
        event.add("dtend", dtend)
    event.add("description", str(_field(record, "description") or ""))
    event.add("location", str(_field(record, "location") or ""))
    url = _field(record, "url")
    if url:
        event.add("url", _single_line(url))
    return event


def build_ics(bundle: CalendarBundle | Mapping[str, Any]) -> IcsResult:
    """Serialize *bundle* to ICS text.

    Events missing an ``id``, ``title`` or ``start``, or carrying dates
    that cannot be parsed, are left out. Each one is logged as a warning
    and reported in :attr:`IcsResult.skipped`; the rest of the calendar
    is still produced.

    :param bundle: A :class:`CalendarBundle` or an equivalent mapping.
    :returns: An :class:`IcsResult` with CRLF-terminated, folded text.
    :raises InvalidBundleError: If the bundle name or event sequence is
        invalid. Nothing is produced in that case.
    """
    bundle = _validate(bundle)

    cal = Calendar()
    cal.add("version", "2.0")
    cal.add("prodid", f"-//{bundle.name}//EN")
    cal.add("x-wr-calname", bundle.name)
    cal.add("x-wr-timezone", DISPLAY_TIMEZONE)
    skipped: list[SkippedEvent] = []

    for index, ev in enumerate(bundle.events):
        event_id = _field(ev, "id")
        if not (event_id and _field(ev, "title") and _field(ev, "start")):
            reason = "missing required fields (id, title, start)"
            logger.warning("Skipping event %d with %s: %r", index, reason, ev)
            skipped.append(SkippedEvent(index, event_id or None, reason))
            continue

        try:
            event = _build_event(ev)
        except InvalidDateError as exc:
            logger.warning("Skipping event %s: %s", event_id, exc)
            skipped.append(SkippedEvent(index, event_id, str(exc)))
            continue
        cal.add_component(event)

    return IcsResult(text=cal.to_ical(sorted=False).decode("utf-8"), skipped=skipped)


def create_ics(bundle: CalendarBundle | Mapping[str, Any]) -> str:
    """Serialize *bundle* and return only the ICS text.

    See :func:`build_ics` for the details.
    """
    return build_ics(bundle).text
