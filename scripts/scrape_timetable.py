"""Get a day's timetable, substitutions or cancellations from Schulmanager.

Standalone CLI script. Logs in with the account from .env, scrapes the
schedule, and prints JSON or a human-readable table on stdout. Diagnostics
go to stderr.

Run with:      python scripts/scrape_timetable.py
Debug:         python scripts/scrape_timetable.py --headed
Other day:     python scripts/scrape_timetable.py --date 2025-10-13
Tomorrow:      python scripts/scrape_timetable.py --date tomorrow --table
Changes only:  python scripts/scrape_timetable.py --substitutions
Cancelled:     python scripts/scrape_timetable.py --cancelled
Whole week:    python scripts/scrape_timetable.py --week

Exit codes:
  0 = success
  1 = error (message on stderr)
"""

import argparse
import asyncio
import json
import os
import sys

from dotenv import load_dotenv
from tenacity import (
    RetryError,
    retry,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
)

load_dotenv()

# Add project root to path for src imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.schulmanager.cache import TTLCache  # noqa: E402
from src.schulmanager.config import SchulmanagerConfig  # noqa: E402
from src.schulmanager.errors import AuthenticationError  # noqa: E402
from src.schulmanager.logging import get_logger, setup_logging  # noqa: E402
from src.schulmanager.models import Lesson, Substitution  # noqa: E402
from src.schulmanager.service import TimetableService  # noqa: E402
from src.schulmanager.session import SessionManager  # noqa: E402

log = get_logger("scrape_timetable")

LOGIN_ATTEMPTS = 3


def _parse_args() -> argparse.Namespace:
    """Parse CLI arguments using argparse."""
    parser = argparse.ArgumentParser(
        description="Get the class timetable from Schulmanager as JSON or table.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Launch browser in headed mode (visible window).",
    )
    parser.add_argument(
        "--date",
        type=str,
        default="today",
        help="Day to fetch: today, tomorrow or YYYY-MM-DD (default: today).",
    )
    parser.add_argument(
        "--table",
        action="store_true",
        help="Output a human-readable table instead of JSON.",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Write logs to stderr as JSON lines.",
    )

    view_group = parser.add_mutually_exclusive_group()
    view_group.add_argument(
        "--substitutions",
        action="store_true",
        help="Only lessons that changed or were cancelled.",
    )
    view_group.add_argument(
        "--cancelled",
        action="store_true",
        help="Only cancelled lessons.",
    )
    view_group.add_argument(
        "--week",
        action="store_true",
        help="Raw schedule of the whole week containing --date.",
    )
    return parser.parse_args()


def _format_table(rows: list[Lesson] | list[Substitution]) -> str:
    """Format lessons or substitutions as a human-readable table.

    Columns: Std | Time/Type | Subject | Teacher | Room | Note
    """
    if not rows:
        return "(no lessons)"

    headers = ["Std", "Time", "Subject", "Teacher", "Room", "Note"]
    lines: list[list[str]] = []
    for row in rows:
        if isinstance(row, Substitution):
            lines.append(
                [
                    str(row.lesson_number),
                    row.type.value,
                    row.original_subject,
                    row.substitute_teacher or row.original_teacher,
                    row.room or "-",
                    row.note or "",
                ]
            )
        else:
            status = "entfällt" if row.is_cancelled else (
                "Vertretung" if row.is_substitution else ""
            )
            lines.append(
                [
                    str(row.lesson_number),
                    f"{row.start_time}-{row.end_time}",
                    row.subject,
                    row.teacher,
                    row.room,
                    status,
                ]
            )

    widths = [len(h) for h in headers]
    for line in lines:
        for i, cell in enumerate(line):
            widths[i] = max(widths[i], len(cell))

    header_line = " | ".join(h.ljust(widths[i]) for i, h in enumerate(headers))
    separator = "-+-".join("-" * w for w in widths)
    row_lines = [
        " | ".join(cell.ljust(widths[i]) for i, cell in enumerate(line))
        for line in lines
    ]
    return "\n".join([header_line, separator, *row_lines])


async def _login(session: SessionManager, config: SchulmanagerConfig) -> None:
    """Log in, retrying a few times; the session itself never retries."""

    @retry(
        stop=stop_after_attempt(LOGIN_ATTEMPTS),
        wait=wait_fixed(5),
        retry=retry_if_result(lambda ok: not ok),
    )
    async def _attempt() -> bool:
        return await session.login(
            config.schulmanager_email, config.schulmanager_password
        )

    try:
        await _attempt()
    except RetryError as e:
        raise AuthenticationError(
            f"Failed to login to Schulmanager after {LOGIN_ATTEMPTS} attempts"
        ) from e


async def main(args: argparse.Namespace) -> None:
    config = SchulmanagerConfig()
    if args.headed:
        config.headless = False
    setup_logging(json_output=args.json_logs or config.log_json, log_level=config.log_level)

    if not config.has_credentials:
        raise AuthenticationError(
            "No credentials: set SCHULMANAGER_EMAIL and SCHULMANAGER_PASSWORD in .env"
        )

    async with SessionManager(config) as session:
        service = TimetableService(session, TTLCache(config.cache_default_ttl), config=config)
        await _login(session, config)

        if args.week:
            schedule = await service.week_schedule(args.date)
            output = {
                day: [slot.to_payload() for slot in slots]
                for day, slots in schedule.items()
            }
            print(json.dumps(output, indent=2, ensure_ascii=False))
            return

        if args.substitutions:
            rows = await service.substitutions_for(args.date)
        elif args.cancelled:
            rows = await service.cancelled_for(args.date)
        else:
            rows = await service.lessons_for(args.date)
        log.info("scrape_done", date=args.date, rows=len(rows))

        if args.table:
            print(_format_table(rows))
        else:
            print(
                json.dumps(
                    [row.to_payload() for row in rows], indent=2, ensure_ascii=False
                )
            )


if __name__ == "__main__":
    args = _parse_args()
    try:
        asyncio.run(main(args))
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
