"""Exports a Notion data source as an ICS calendar.

This package exposes these public symbols:

* :class:`NotionIcs` — fetches a data source and produces ICS output.
* :class:`NotionClient` — client for the Notion data source API.
* :class:`CalendarEvent` / :class:`CalendarBundle` — input data classes.
* :func:`build_ics` / :func:`create_ics` — the ICS serializer.
* :func:`reformat_date` — converts ISO 8601 values to UTC ICS date-times.
"""

from .dates import InvalidDateError, reformat_date
from .ics import (
    CalendarBundle,
    CalendarEvent,
    IcsResult,
    InvalidBundleError,
    SkippedEvent,
    build_ics,
    create_ics,
)
from .notion import NotionClient, NotionError
from .notion_ics import NotionIcs

__all__ = [
    "CalendarBundle",
    "CalendarEvent",
    "IcsResult",
    "InvalidBundleError",
    "InvalidDateError",
    "NotionClient",
    "NotionError",
    "NotionIcs",
    "SkippedEvent",
    "build_ics",
    "create_ics",
    "reformat_date",
]
