"""Parse the rendered Schulmanager week view into raw slot records.

DOM structure of the schedule view (Angular, rendered client-side):
  table.calendar-table
    thead tr -> th "Stunde" + one th per day ("Mo\\n13.10.", "Di\\n14.10.", ...)
    tbody tr -> one row per lesson hour; first cell is the hour label
      td -> div.lesson-cell (absent for free slots)
        .timetable-left   subject (nested span for regular lessons,
                          bare text for cancelled ones)
        .timetable-right  teacher
        .timetable-bottom room
        .substitution-info / .change-info  optional change note

This is a pure transformation of page HTML, so it runs on a snapshot taken
with ``page.content()`` and is tested without a browser.
"""

from bs4 import BeautifulSoup, Tag

from src.schulmanager import markers
from src.schulmanager.logging import get_logger
from src.schulmanager.models import RawSlot, WeekSchedule

log = get_logger(__name__)

DEFAULT_TABLE_SELECTOR = ".calendar-table"


def _region_text(cell: Tag, selector: str) -> str:
    region = cell.select_one(selector)
    if region is None:
        return ""
    span = region.find("span")
    text = span.get_text() if span is not None else ""
    # An empty span falls back to the region's own text
    return (text or region.get_text()).strip()


def _day_labels(table: Tag) -> list[str]:
    headers = table.select("thead th")
    labels: list[str] = []
    for th in headers[1:]:  # first column is the hour label
        labels.append(th.get_text("\n").strip().split("\n")[0].strip())
    return labels


def _day_cells(row: Tag, day_count: int) -> list[Tag]:
    # Only td cells are day columns; a th hour label is never one
    cells = row.find_all("td", recursive=False)
    if len(cells) > day_count:
        cells = cells[1:]  # leading td hour label
    return cells


def parse_slot(marker: Tag, hour: int, day: str) -> RawSlot | None:
    """Build a RawSlot from one .lesson-cell, or None for a free period."""
    subject = _region_text(marker, markers.SUBJECT_REGION)
    if not subject:
        return None

    flags = markers.classify(marker)
    info = markers.substitution_info(marker)
    return RawSlot(
        hour=hour,
        day=day,
        subject=subject,
        teacher=_region_text(marker, markers.TEACHER_REGION),
        room=_region_text(marker, markers.ROOM_REGION),
        is_substitution=markers.CHANGED in flags,
        is_cancelled=markers.CANCELLED in flags,
        substitution_info=info or None,
    )


def parse_week_html(
    html: str, table_selector: str = DEFAULT_TABLE_SELECTOR
) -> WeekSchedule:
    """Extract the week grid from rendered page HTML.

    Args:
        html: Full page HTML after client-side rendering.
        table_selector: CSS selector of the schedule table.

    Returns:
        Mapping of day label to its lessons in row order. Every header day
        is present, possibly with an empty list. Empty when the table is
        missing.
    """
    soup = BeautifulSoup(html, "html.parser")
    table = soup.select_one(table_selector)
    if table is None:
        log.warning("schedule_table_missing", selector=table_selector)
        return {}

    days = _day_labels(table)
    schedule: WeekSchedule = {day: [] for day in days}

    for hour, row in enumerate(table.select("tbody tr"), start=1):
        for day, cell in zip(days, _day_cells(row, len(days))):
            marker = cell.select_one(markers.LESSON_MARKER)
            if marker is None:
                continue
            slot = parse_slot(marker, hour, day)
            if slot is not None:
                schedule[day].append(slot)

    log.debug(
        "week_parsed",
        days=len(days),
        slots=sum(len(slots) for slots in schedule.values()),
    )
    return schedule
