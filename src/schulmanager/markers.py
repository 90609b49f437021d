"""Heuristic markers and selector chains for the Schulmanager markup.

Nothing here is confirmed against a real substitution week: the portal's
"changed" and "cancelled" signals were inferred from class names and German
phrases. A school theme that renames a class silently turns these rules into
false negatives. Update the tables, not the extraction code.
"""

from dataclasses import dataclass
from typing import Callable

from bs4 import Tag

CHANGED = "changed"
CANCELLED = "cancelled"

# Login form lookups, tried in order (first match wins).
EMAIL_SELECTORS: tuple[str, ...] = (
    '.login-form input[type="text"]',
    'input[type="email"]',
    'input[name="email"]',
    'input[placeholder*="E-Mail"]',
    "input#email",
)
PASSWORD_SELECTORS: tuple[str, ...] = (
    'input[type="password"]',
    'input[name="password"]',
    "input#password",
)
SUBMIT_SELECTORS: tuple[str, ...] = (
    ".login-form button",
    'button[type="submit"]',
)

# Grid structure of the schedule view.
LESSON_MARKER = ".lesson-cell"
SUBJECT_REGION = ".timetable-left"
TEACHER_REGION = ".timetable-right"
ROOM_REGION = ".timetable-bottom"
SUBSTITUTION_INFO = ".substitution-info, .change-info"
DEVIATION_BADGES = ".text-warning, .text-danger, .badge-warning"

CANCELLED_PHRASES: tuple[str, ...] = ("fällt aus", "entfällt")


@dataclass(frozen=True)
class MarkerRule:
    """One DOM signal and the classification it implies."""

    name: str
    classification: str
    matches: Callable[[Tag], bool]


def substitution_info(cell: Tag) -> str:
    """Free-text change note inside a lesson marker, or ""."""
    info = cell.select_one(SUBSTITUTION_INFO)
    return info.get_text().strip() if info is not None else ""


def _has_class(name: str) -> Callable[[Tag], bool]:
    return lambda cell: name in (cell.get("class") or [])


def _contains_text(phrase: str) -> Callable[[Tag], bool]:
    return lambda cell: phrase in cell.get_text()


MARKER_RULES: tuple[MarkerRule, ...] = (
    MarkerRule("class:substitution", CHANGED, _has_class("substitution")),
    MarkerRule("class:changed", CHANGED, _has_class("changed")),
    MarkerRule("class:cancelled", CHANGED, _has_class("cancelled")),
    MarkerRule("info-text", CHANGED, lambda cell: bool(substitution_info(cell))),
    MarkerRule(
        "warning-badge",
        CHANGED,
        lambda cell: cell.select_one(DEVIATION_BADGES) is not None,
    ),
    MarkerRule("class:cancelled", CANCELLED, _has_class("cancelled")),
    *(
        MarkerRule(f"text:{phrase}", CANCELLED, _contains_text(phrase))
        for phrase in CANCELLED_PHRASES
    ),
)


def classify(cell: Tag, rules: tuple[MarkerRule, ...] = MARKER_RULES) -> set[str]:
    """Return every classification whose rule fires for a lesson marker."""
    return {rule.classification for rule in rules if rule.matches(cell)}
