"""Timetable, substitution and cancellation operations behind a cache.

TimetableService is what a request handler calls. Each operation derives a
cache key from category, scope and date, and on a miss logs in lazily,
fetches the week and normalizes the requested view. The ``*_for`` methods
return models and let errors propagate; the envelope methods (``timetable``,
``substitutions``, ...) wrap results and errors into an ``ApiResponse``.
"""

import re
from datetime import date, datetime, timedelta
from typing import Any, Awaitable, Callable

from src.schulmanager import normalize
from src.schulmanager.cache import (
    TTLCache,
    cancelled_key,
    substitutions_key,
    timetable_key,
    week_key,
)
from src.schulmanager.config import (
    CANCELLED,
    SUBSTITUTIONS,
    TIMETABLE,
    SchulmanagerConfig,
    get_config,
)
from src.schulmanager.errors import (
    AuthenticationError,
    InvalidDateError,
    ScrapingError,
)
from src.schulmanager.fetcher import ScheduleFetcher
from src.schulmanager.logging import get_logger
from src.schulmanager.models import (
    ApiResponse,
    Lesson,
    RawSlot,
    Substitution,
    WeekSchedule,
)
from src.schulmanager.pages.timetable import monday_of
from src.schulmanager.session import SessionManager

log = get_logger(__name__)

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DateLike = date | datetime | str | None


def resolve_date(value: DateLike, today: date | None = None) -> date:
    """Turn "today", "tomorrow", a YYYY-MM-DD string or a date into a date.

    Raises:
        InvalidDateError: If a string is not a real YYYY-MM-DD date.
    """
    today = today or date.today()
    if value is None or value == "today":
        return today
    if value == "tomorrow":
        return today + timedelta(days=1)
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not _DATE_RE.match(value):
        raise InvalidDateError("Date must be in format YYYY-MM-DD")
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise InvalidDateError(f"Not a calendar date: {value}") from e


def _slots_payload(days: dict[str, list[RawSlot]]) -> dict[str, list[dict[str, Any]]]:
    return {day: [slot.to_payload() for slot in slots] for day, slots in days.items()}


class TimetableService:
    """Cached access to one Schulmanager account's timetable."""

    def __init__(
        self,
        session: SessionManager,
        cache: TTLCache,
        fetcher: ScheduleFetcher | None = None,
        config: SchulmanagerConfig | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.config = config or get_config()
        self.session = session
        self.cache = cache
        self.fetcher = fetcher or ScheduleFetcher(session, self.config)
        self._today = today

        if not self.config.has_credentials:
            log.warning(
                "credentials_missing",
                hint="set SCHULMANAGER_EMAIL and SCHULMANAGER_PASSWORD",
            )

    @property
    def scope(self) -> str:
        return self.config.cache_scope

    def resolve_date(self, value: DateLike) -> date:
        return resolve_date(value, self._today())

    async def ensure_session(self) -> None:
        """Log in with the configured account unless already authenticated.

        Raises:
            AuthenticationError: If the login attempt reports failure.
        """
        if self.session.is_authenticated():
            return
        ok = await self.session.login(
            self.config.schulmanager_email, self.config.schulmanager_password
        )
        if not ok:
            raise AuthenticationError("Failed to login to Schulmanager")

    async def _fetch_week(self, anchor: date) -> WeekSchedule:
        await self.ensure_session()
        return await self.fetcher.fetch_week(anchor)

    async def _lessons(self, day: date) -> list[Lesson]:
        week = await self._fetch_week(day)
        lessons = normalize.to_lessons(normalize.slots_for_date(week, day), day)
        log.info("lessons_resolved", date=day.isoformat(), count=len(lessons))
        return lessons

    # Core operations

    async def lessons_for(self, day: DateLike = "today") -> list[Lesson]:
        target = self.resolve_date(day)
        return await self.cache.get_or_set(
            timetable_key(self.scope, target.isoformat()),
            lambda: self._lessons(target),
            self.config.ttl_for(TIMETABLE),
        )

    async def substitutions_for(self, day: DateLike = "today") -> list[Substitution]:
        target = self.resolve_date(day)

        async def compute() -> list[Substitution]:
            return normalize.to_substitutions(await self._lessons(target))

        return await self.cache.get_or_set(
            substitutions_key(self.scope, target.isoformat()),
            compute,
            self.config.ttl_for(SUBSTITUTIONS),
        )

    async def cancelled_for(self, day: DateLike = "today") -> list[Lesson]:
        target = self.resolve_date(day)

        async def compute() -> list[Lesson]:
            return normalize.cancelled_only(await self._lessons(target))

        return await self.cache.get_or_set(
            cancelled_key(self.scope, target.isoformat()),
            compute,
            self.config.ttl_for(CANCELLED),
        )

    async def week_schedule(self, anchor: DateLike = "today") -> WeekSchedule:
        monday = monday_of(self.resolve_date(anchor))
        return await self.cache.get_or_set(
            week_key(TIMETABLE, self.scope, monday.isoformat()),
            lambda: self._fetch_week(monday),
            self.config.ttl_for(TIMETABLE),
        )

    async def week_cancelled(
        self, anchor: DateLike = "today"
    ) -> tuple[dict[str, list[RawSlot]], int]:
        monday = monday_of(self.resolve_date(anchor))

        async def compute() -> tuple[dict[str, list[RawSlot]], int]:
            return normalize.cancelled_by_day(await self._fetch_week(monday))

        return await self.cache.get_or_set(
            week_key(CANCELLED, self.scope, monday.isoformat()),
            compute,
            self.config.ttl_for(CANCELLED),
        )

    def invalidate(self, category: str | None = None) -> int:
        """Drop cached entries of one category, or everything."""
        if category is None:
            count = len(self.cache.keys())
            self.cache.flush()
            return count
        return self.cache.delete_prefix(f"{category}:")

    async def close(self) -> None:
        await self.session.close()

    # Response envelopes

    async def _respond(self, build: Callable[[], Awaitable[dict[str, Any]]]) -> ApiResponse:
        try:
            return ApiResponse.ok(await build())
        except ScrapingError as e:
            log.warning("request_failed", code=e.code, error=str(e))
            return ApiResponse.fail(e.code, str(e), e.status_code)
        except Exception as e:
            log.exception("request_error", error=str(e))
            return ApiResponse.fail("INTERNAL_ERROR", str(e), 500)

    async def timetable(self, day: DateLike = "today") -> ApiResponse:
        async def build() -> dict[str, Any]:
            target = self.resolve_date(day)
            lessons = await self.lessons_for(target)
            return {
                "date": target.isoformat(),
                "lessons": [lesson.to_payload() for lesson in lessons],
                "count": len(lessons),
            }

        return await self._respond(build)

    async def substitutions(self, day: DateLike = "today") -> ApiResponse:
        async def build() -> dict[str, Any]:
            target = self.resolve_date(day)
            substitutions = await self.substitutions_for(target)
            return {
                "date": target.isoformat(),
                "substitutions": [s.to_payload() for s in substitutions],
                "count": len(substitutions),
                "hasSubstitutions": bool(substitutions),
            }

        return await self._respond(build)

    async def cancelled(self, day: DateLike = "today") -> ApiResponse:
        async def build() -> dict[str, Any]:
            target = self.resolve_date(day)
            lessons = await self.cancelled_for(target)
            return {
                "date": target.isoformat(),
                "cancelledClasses": [lesson.to_payload() for lesson in lessons],
                "count": len(lessons),
                "hasCancellations": bool(lessons),
            }

        return await self._respond(build)

    async def week(self, anchor: DateLike = "today") -> ApiResponse:
        async def build() -> dict[str, Any]:
            monday = monday_of(self.resolve_date(anchor))
            schedule = await self.week_schedule(monday)
            iso_year, iso_week, _ = monday.isocalendar()
            return {
                "weekStart": monday.isoformat(),
                "weekNumber": iso_week,
                "year": iso_year,
                "schedule": _slots_payload(schedule),
            }

        return await self._respond(build)

    async def cancelled_week(self, anchor: DateLike = "today") -> ApiResponse:
        async def build() -> dict[str, Any]:
            monday = monday_of(self.resolve_date(anchor))
            days, total = await self.week_cancelled(monday)
            return {
                "weekStart": monday.isoformat(),
                "days": _slots_payload(days),
                "totalCancelled": total,
                "hasCancellations": total > 0,
            }

        return await self._respond(build)
