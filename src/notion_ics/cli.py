"""Command line entry point for ``notion-ics``.

Settings are read from the environment (a ``.env`` file is loaded if
present) and can be overridden with command line options.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys

from dotenv import load_dotenv

from .ics import InvalidBundleError
from .notion import NotionError
from .notion_ics import NotionIcs

logger = logging.getLogger(__name__)

ENV_PROPERTIES = {
    "title": "NOTION_TITLE_PROPERTY",
    "date": "NOTION_DATE_PROPERTY",
    "description": "NOTION_DESCRIPTION_PROPERTY",
    "location": "NOTION_LOCATION_PROPERTY",
    "url": "NOTION_URL_PROPERTY",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notion-ics",
        description="Export a Notion data source as an ICS calendar.",
    )
    parser.add_argument("--api-key", default=os.getenv("NOTION_API_KEY"))
    parser.add_argument("--data-source", default=os.getenv("NOTION_DATA_SOURCE_ID"))
    parser.add_argument("--calname", default=os.getenv("NOTION_CALENDAR_NAME"))
    for key, env in ENV_PROPERTIES.items():
        parser.add_argument(
            f"--{key}-property",
            dest=f"{key}_property",
            default=os.getenv(env),
            help=f"Name of the {key} property (env: {env})",
        )
    parser.add_argument("-o", "--output", help="Write to this file instead of stdout")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    missing = [
        opt
        for opt, value in (
            ("--api-key", args.api_key),
            ("--data-source", args.data_source),
            ("--calname", args.calname),
            ("--title-property", args.title_property),
            ("--date-property", args.date_property),
        )
        if not value
    ]
    if missing:
        logger.error("Missing required settings: %s", ", ".join(missing))
        return 2

    property_names = {key: getattr(args, f"{key}_property") for key in ENV_PROPERTIES}
    ics = NotionIcs(
        data_source_id=args.data_source,
        api_key=args.api_key,
        calname=args.calname,
        property_names={k: v for k, v in property_names.items() if v},
    )

    try:
        result = ics.build_calendar()
    except (NotionError, InvalidBundleError) as exc:
        logger.error("Export failed: %s", exc)
        return 1

    if result.skipped:
        logger.warning("%d event(s) were skipped", len(result.skipped))

    if args.output:
        with open(args.output, "w", encoding="utf-8", newline="") as fh:
            fh.write(result.text)
        logger.info("Wrote %s", args.output)
    else:
        sys.stdout.write(result.text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
