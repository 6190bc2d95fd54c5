"""NotionIcs class module.

Provides the :class:`NotionIcs` class which fetches a Notion data source
and produces an ICS calendar from it.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from .ics import CalendarBundle, IcsResult, build_ics
from .notion import NotionClient, NotionError

PROPERTY_KEYS = ("title", "date", "description", "location", "url")
"""Event fields that can be mapped to Notion properties."""


class NotionIcs:
    """Fetches events from a Notion data source and produces ICS output.

    Properties are identified either by ID through *props* or by name
    through *property_names*. Names are resolved to IDs from the data
    source schema the first time they are needed.

    :param data_source_id: The Notion data source to read.
    :param api_key: Notion integration secret.
    :param calname: Display name of the calendar.
    :param props: Mapping of event field to property ID.
    :param property_names: Mapping of event field to property name.
    :param client: Optional preconfigured :class:`NotionClient`.

    Example usage::

        ics = NotionIcs(
            data_source_id="1f2e3d4c...",
            api_key="ntn_...",
            calname="Team events",
            property_names={"title": "Name", "date": "Date"},
        )
        ics.write_ics("calendar.ics")
    """

    def __init__(
        self,
        data_source_id: str,
        api_key: str,
        calname: str,
        props: Mapping[str, str] | None = None,
        property_names: Mapping[str, str] | None = None,
        client: NotionClient | None = None,
    ) -> None:
        self.data_source_id = data_source_id
        self.calname = calname
        self.props = dict(props or {})
        self.property_names = dict(property_names or {})
        self.client = client or NotionClient(api_key)

    def resolve_props(self) -> dict[str, str]:
        """Return the field to property ID mapping.

        Explicit IDs win over names.

        :raises NotionError: If a named property is not in the schema.
        """
        props = {k: v for k, v in self.props.items() if k in PROPERTY_KEYS and v}
        wanted = {
            key: name
            for key, name in self.property_names.items()
            if key in PROPERTY_KEYS and name and key not in props
        }
        if wanted:
            ids = self.client.property_ids(self.data_source_id)
            for key, name in wanted.items():
                if name not in ids:
                    raise NotionError(f"Property {name!r} not found in data source")
                props[key] = ids[name]
        return props

    def fetch_bundle(self) -> CalendarBundle:
        """Fetch the data source and return it as a calendar bundle."""
        return self.client.fetch_bundle(self.data_source_id, self.resolve_props(), self.calname)

    def build_calendar(self) -> IcsResult:
        """Fetch events and serialize them.

        :returns: The ICS text together with any skipped events.
        """
        return build_ics(self.fetch_bundle())

    def get_ics(self) -> str:
        """Fetch the data source and return it as an ICS string."""
        return self.build_calendar().text

    def write_ics(self, path: str | Path) -> None:
        """Fetch the data source and write the ICS data to a file.

        The file is written with CRLF line endings preserved.

        :param path: Destination file path. Parent directories must exist.
        """
        Path(path).write_text(self.get_ics(), encoding="utf-8", newline="")
