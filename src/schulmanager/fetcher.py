"""Fetch one week of raw schedule data through the shared session."""

from datetime import date, datetime

from src.schulmanager.config import SchulmanagerConfig, get_config
from src.schulmanager.errors import NotAuthenticatedError
from src.schulmanager.logging import get_logger
from src.schulmanager.models import WeekSchedule
from src.schulmanager.pages.timetable import TimetablePage, monday_of
from src.schulmanager.session import SessionManager

log = get_logger(__name__)


class ScheduleFetcher:
    """Runs navigate -> settle -> table wait -> extract on a pooled page."""

    def __init__(
        self, session: SessionManager, config: SchulmanagerConfig | None = None
    ) -> None:
        self.session = session
        self.config = config or get_config()

    async def fetch_week(self, anchor: date | datetime | None = None) -> WeekSchedule:
        """Fetch the raw schedule of the week containing ``anchor``.

        Args:
            anchor: Any date in the target week, defaults to today.

        Returns:
            Mapping of day label to raw slots.

        Raises:
            NotAuthenticatedError: If the session has not logged in.
            NavigationError: If the schedule table never appears.
        """
        if not self.session.is_authenticated():
            raise NotAuthenticatedError()

        monday = monday_of(anchor or datetime.now())
        log.info("week_fetch_started", monday=monday.isoformat())

        async with self.session.acquire_page() as page:
            timetable = TimetablePage(page, self.config)
            await timetable.navigate_to_week(monday)
            return await timetable.extract_week()
