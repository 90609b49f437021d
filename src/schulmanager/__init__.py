"""Schulmanager timetable scraper.

Logs into Schulmanager Online with Playwright, extracts the weekly schedule
grid, and derives lessons, substitutions and cancellations from it behind a
short-lived in-memory cache.
"""

from src.schulmanager.cache import TTLCache
from src.schulmanager.fetcher import ScheduleFetcher
from src.schulmanager.models import Lesson, RawSlot, Substitution, SubstitutionType
from src.schulmanager.service import TimetableService
from src.schulmanager.session import SessionManager

__all__ = [
    "Lesson",
    "RawSlot",
    "ScheduleFetcher",
    "SessionManager",
    "Substitution",
    "SubstitutionType",
    "TTLCache",
    "TimetableService",
]
