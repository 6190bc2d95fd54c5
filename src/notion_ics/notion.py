"""Notion data source client.

Fetches pages from a Notion data source and maps them onto
:class:`~notion_ics.ics.CalendarEvent` records.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import requests

from .ics import CalendarBundle, CalendarEvent

logger = logging.getLogger(__name__)

API_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2025-09-03"
DEFAULT_TITLE = "(No Title)"


class NotionError(RuntimeError):
    """Raised when the Notion API returns an error or unexpected data."""


def _plain_text(segments: list[dict[str, Any]] | None) -> str:
    """Concatenate the ``plain_text`` of rich text or title segments."""
    return "".join(s.get("plain_text", "") for s in segments or [])


def _properties_by_id(page: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
    """Index a page's properties by property ID instead of name."""
    return {
        prop["id"]: prop
        for prop in page.get("properties", {}).values()
        if isinstance(prop, dict) and "id" in prop
    }


def page_to_event(page: Mapping[str, Any], props: Mapping[str, str]) -> CalendarEvent | None:
    """Convert a Notion page into a :class:`CalendarEvent`.

    :param page: A page object from a data source query.
    :param props: Mapping of ``title``, ``date`` and optionally
        ``description``, ``location`` and ``url`` to property IDs.
    :returns: The event, or ``None`` if the page has no start date.
    """
    by_id = _properties_by_id(page)

    date_value = (by_id.get(props["date"]) or {}).get("date") or {}
    start = date_value.get("start")
    if not start:
        logger.warning("Skipping page %s with missing start date", page.get("id"))
        return None

    # Equal start and end means a single full day
    end = date_value.get("end")
    if end == start:
        end = None

    def rich_text(key: str) -> str:
        prop_id = props.get(key)
        if not prop_id:
            return ""
        return _plain_text((by_id.get(prop_id) or {}).get("rich_text"))

    url_prop = by_id.get(props["url"]) if props.get("url") else None

    return CalendarEvent(
        id=page.get("id", ""),
        title=_plain_text((by_id.get(props["title"]) or {}).get("title")) or DEFAULT_TITLE,
        start=start,
        end=end,
        description=rich_text("description"),
        location=rich_text("location"),
        url=(url_prop or {}).get("url") or "",
        time_zone=date_value.get("time_zone"),
    )


class NotionClient:
    """Minimal client for the Notion data source endpoints.

    :param api_key: Notion integration secret.
    :param session: Optional :class:`requests.Session` to send requests
        with.
    """

    def __init__(self, api_key: str, session: requests.Session | None = None) -> None:
        self.api_key = api_key
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> dict:
        """Send a request to the Notion API and return the decoded JSON.

        :raises NotionError: If the request fails or returns an error
            status.
        """
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Notion-Version": NOTION_VERSION,
            "Content-Type": "application/json",
        }
        try:
            resp = self.session.request(
                method, f"{API_URL}{path}", headers=headers, json=payload, timeout=30
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            logger.error("Notion request %s %s failed: %s", method, path, exc)
            raise NotionError(f"Notion request {method} {path} failed") from exc
        return resp.json()

    def fetch_schema(self, data_source_id: str) -> dict:
        """Return the data source object, including its property schema."""
        return self._request("GET", f"/data_sources/{data_source_id}")

    def property_ids(self, data_source_id: str) -> dict[str, str]:
        """Map each property name of the data source to its property ID.

        :raises NotionError: If the schema has no properties.
        """
        schema = self.fetch_schema(data_source_id)
        properties = schema.get("properties") if isinstance(schema, dict) else None
        if not properties:
            raise NotionError("Schema or properties is undefined")
        return {name: prop["id"] for name, prop in properties.items()}

    def query_pages(self, data_source_id: str, sort_property: str | None = None) -> list[dict]:
        """Return every page of the data source, following pagination.

        :param data_source_id: The data source to query.
        :param sort_property: Optional property ID to sort ascending by.
        """
        payload: dict[str, Any] = {}
        if sort_property:
            payload["sorts"] = [{"property": sort_property, "direction": "ascending"}]

        pages: list[dict] = []
        cursor = None
        while True:
            body = dict(payload)
            if cursor:
                body["start_cursor"] = cursor
            res = self._request("POST", f"/data_sources/{data_source_id}/query", body)
            pages.extend(res.get("results", []))
            cursor = res.get("next_cursor")
            if not res.get("has_more") or not cursor:
                break
        return pages

    def fetch_bundle(
        self, data_source_id: str, props: Mapping[str, str], calname: str
    ) -> CalendarBundle:
        """Query the data source and build a calendar bundle.

        :param data_source_id: The data source to query.
        :param props: Mapping of ``title`` and ``date`` (required) and
            ``description``, ``location``, ``url`` (optional) to property
            IDs.
        :param calname: Name of the resulting calendar.
        :raises NotionError: If a required property is not mapped or the
            API request fails.
        """
        missing = [key for key in ("title", "date") if not props.get(key)]
        if missing:
            raise NotionError(f"Missing property mapping for: {', '.join(missing)}")

        events = []
        for page in self.query_pages(data_source_id, sort_property=props["date"]):
            event = page_to_event(page, props)
            if event is not None:
                events.append(event)
        logger.info("Fetched %d events from data source %s", len(events), data_source_id)
        return CalendarBundle(name=calname, events=events)
