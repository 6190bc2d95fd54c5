"""Tests for the notion-ics command line."""

from unittest.mock import patch

import pytest

from notion_ics import IcsResult, NotionError, NotionIcs, SkippedEvent
from notion_ics.cli import main

ENV = {
    "NOTION_API_KEY": "secret",
    "NOTION_DATA_SOURCE_ID": "ds-123",
    "NOTION_CALENDAR_NAME": "Team",
    "NOTION_TITLE_PROPERTY": "Name",
    "NOTION_DATE_PROPERTY": "Date",
}
ICS_TEXT = "BEGIN:VCALENDAR\r\nVERSION:2.0\r\nEND:VCALENDAR\r\n"


@pytest.fixture(autouse=True)
def no_dotenv():
    """Keep a developer's .env file out of the tests."""
    with patch("notion_ics.cli.load_dotenv"):
        yield


@pytest.fixture()
def env(monkeypatch):
    for key in (
        "NOTION_DESCRIPTION_PROPERTY",
        "NOTION_LOCATION_PROPERTY",
        "NOTION_URL_PROPERTY",
    ):
        monkeypatch.delenv(key, raising=False)
    for key, value in ENV.items():
        monkeypatch.setenv(key, value)


def test_missing_settings_exit_code(monkeypatch):
    """Missing required settings exit with status 2."""
    for key in ENV:
        monkeypatch.delenv(key, raising=False)
    assert main([]) == 2


def test_writes_output_file(env, tmp_path):
    """The calendar is written byte for byte to --output."""
    out = tmp_path / "calendar.ics"
    with patch.object(NotionIcs, "build_calendar", return_value=IcsResult(ICS_TEXT)):
        assert main(["-o", str(out)]) == 0
    assert out.read_bytes() == ICS_TEXT.encode("utf-8")


def test_writes_stdout(env, capsys):
    """Without --output the calendar goes to stdout."""
    with patch.object(NotionIcs, "build_calendar", return_value=IcsResult(ICS_TEXT)):
        assert main([]) == 0
    assert capsys.readouterr().out.startswith("BEGIN:VCALENDAR")


def test_options_override_environment(env):
    """Command line options win over environment variables."""
    with patch("notion_ics.cli.NotionIcs") as mock_ics:
        mock_ics.return_value.build_calendar.return_value = IcsResult(ICS_TEXT)
        main(["--calname", "Other", "--location-property", "Where"])

    kwargs = mock_ics.call_args.kwargs
    assert kwargs["calname"] == "Other"
    assert kwargs["property_names"] == {"title": "Name", "date": "Date", "location": "Where"}


def test_notion_error_exit_code(env):
    """A Notion failure exits with status 1."""
    with patch.object(NotionIcs, "build_calendar", side_effect=NotionError("boom")):
        assert main([]) == 1


def test_skipped_events_are_reported(env, caplog):
    """The number of skipped events is logged."""
    result = IcsResult(ICS_TEXT, skipped=[SkippedEvent(0, None, "missing required fields")])
    with patch.object(NotionIcs, "build_calendar", return_value=result):
        assert main([]) == 0
    assert "1 event(s) were skipped" in caplog.text
