"""TimetablePage - weekly schedule view of Schulmanager.

Navigates to #/modules/schedules/view//?start=YYYY-MM-DD (the portal wants
the Monday of the week in the URL) and extracts the week grid.

The view is an Angular single-page app: the .calendar-table element is
attached before Angular has finished filling it in, so a fixed settle wait
runs before the element wait. Both are needed.
"""

from datetime import date, datetime, timedelta

from playwright.async_api import Page, TimeoutError as PlaywrightTimeoutError

from src.schulmanager.config import SchulmanagerConfig, get_config
from src.schulmanager.errors import NavigationError
from src.schulmanager.extract import parse_week_html
from src.schulmanager.logging import get_logger
from src.schulmanager.models import WeekSchedule

log = get_logger(__name__)


def monday_of(anchor: date | datetime) -> date:
    """Monday of the ISO week containing ``anchor`` (Sunday belongs to the
    week that started six days earlier)."""
    if isinstance(anchor, datetime):
        anchor = anchor.date()
    return anchor - timedelta(days=anchor.weekday())


class TimetablePage:
    """Weekly schedule view of the Schulmanager portal."""

    def __init__(self, page: Page, config: SchulmanagerConfig | None = None) -> None:
        self.page = page
        self.config = config or get_config()

    def week_url(self, monday: date) -> str:
        return self.config.schulmanager_schedule_url.format(monday=monday.isoformat())

    async def navigate_to_week(self, monday: date) -> None:
        """Open the schedule for the week starting at ``monday``.

        Args:
            monday: Monday of the target week.

        Raises:
            NavigationError: If the schedule table does not appear in time.
        """
        cfg = self.config
        url = self.week_url(monday)

        await self.page.goto(
            url, wait_until="domcontentloaded", timeout=cfg.navigation_timeout_ms
        )
        await self.page.wait_for_timeout(cfg.schedule_settle_ms)
        try:
            await self.page.wait_for_selector(
                cfg.schedule_table_selector,
                timeout=cfg.schedule_table_timeout_ms,
            )
        except PlaywrightTimeoutError as e:
            log.error("schedule_table_timeout", url=url)
            raise NavigationError(
                f"Schedule table did not load for week {monday.isoformat()}"
            ) from e

        log.info("week_navigated", monday=monday.isoformat(), url=url)

    async def extract_week(self) -> WeekSchedule:
        """Parse the currently rendered week grid."""
        html = await self.page.content()
        schedule = parse_week_html(html, self.config.schedule_table_selector)
        log.info(
            "week_extracted",
            days=list(schedule),
            lessons=sum(len(slots) for slots in schedule.values()),
        )
        return schedule
