"""Turn raw week slots into lessons and derive substitutions from them.

Everything here is pure: no I/O, no clock reads.
"""

from datetime import date
from typing import Iterable

from src.schulmanager.models import (
    UNKNOWN,
    Lesson,
    RawSlot,
    Substitution,
    SubstitutionType,
    WeekSchedule,
)

NOTE_CANCELLED = "Stunde fällt aus"
NOTE_SUBSTITUTION = "Vertretung"

# date.weekday() -> column label used by the portal; weekends have no column
_DAY_LABELS = {0: "Mo", 1: "Di", 2: "Mi", 3: "Do", 4: "Fr"}


def lesson_times(hour: int) -> tuple[str, str]:
    """Approximate start/end clock times for a lesson hour.

    Assumes back-to-back 45 minute lessons from 08:00 with the start hour
    computed as 8 + floor((hour - 1) * 0.75). Not a real bell schedule, but
    clients rely on these exact values.
    """
    offset = hour - 1
    start_hour = 8 + (offset * 3) // 4
    start_minute = (offset * 45) % 60
    end_minute = (start_minute + 45) % 60
    end_hour = start_hour + (start_minute + 45) // 60
    return (
        f"{start_hour:02d}:{start_minute:02d}",
        f"{end_hour:02d}:{end_minute:02d}",
    )


def day_label_for(day: date) -> str | None:
    return _DAY_LABELS.get(day.weekday())


def slots_for_date(week: WeekSchedule, day: date) -> list[RawSlot]:
    """Slots of the week column matching ``day``; first containing key wins."""
    label = day_label_for(day)
    if label is None:
        return []
    for key, slots in week.items():
        if label in key:
            return slots
    return []


def to_lessons(slots: Iterable[RawSlot], day: date | str) -> list[Lesson]:
    """One Lesson per slot with a subject, in slot order."""
    iso = day if isinstance(day, str) else day.isoformat()
    lessons: list[Lesson] = []
    for slot in slots:
        if not slot.subject:
            continue
        start_time, end_time = lesson_times(slot.hour)
        lessons.append(
            Lesson.from_slot_data(
                date=iso,
                lesson_number=slot.hour,
                subject=slot.subject,
                teacher=slot.teacher,
                room=slot.room,
                start_time=start_time,
                end_time=end_time,
                is_substitution=slot.is_substitution,
                is_cancelled=slot.is_cancelled,
            )
        )
    return lessons


def classify_substitution(
    *,
    is_cancelled: bool,
    substitute_teacher: str | None = None,
    substitute_subject: str | None = None,
    room: str | None = None,
    original_room: str | None = None,
    note: str | None = None,
) -> SubstitutionType:
    """Pick the substitution type, strongest signal first.

    ROOM_CHANGE needs ``original_room``, which the extractor does not
    provide today.
    """
    if is_cancelled or (note and "fällt aus" in note.lower()):
        return SubstitutionType.CANCELLATION
    if substitute_teacher or substitute_subject:
        return SubstitutionType.SUBSTITUTION
    if room and original_room and room != original_room:
        return SubstitutionType.ROOM_CHANGE
    return SubstitutionType.OTHER


def to_substitution(lesson: Lesson) -> Substitution:
    if lesson.is_cancelled:
        original_teacher = UNKNOWN
        substitute_teacher = substitute_subject = None
        note = NOTE_CANCELLED
    else:
        original_teacher = lesson.teacher
        substitute_teacher = lesson.teacher
        substitute_subject = lesson.subject
        note = NOTE_SUBSTITUTION

    return Substitution(
        id=lesson.id,
        date=lesson.date,
        lesson_number=lesson.lesson_number,
        original_subject=lesson.subject,
        original_teacher=original_teacher,
        substitute_subject=substitute_subject,
        substitute_teacher=substitute_teacher,
        room=lesson.room,
        is_cancelled=lesson.is_cancelled,
        note=note,
        type=classify_substitution(
            is_cancelled=lesson.is_cancelled,
            substitute_teacher=substitute_teacher,
            substitute_subject=substitute_subject,
            room=lesson.room,
            note=note,
        ),
    )


def to_substitutions(lessons: Iterable[Lesson]) -> list[Substitution]:
    """One Substitution for every cancelled or changed lesson."""
    return [
        to_substitution(lesson)
        for lesson in lessons
        if lesson.is_cancelled or lesson.is_substitution
    ]


def cancelled_only(lessons: Iterable[Lesson]) -> list[Lesson]:
    return [lesson for lesson in lessons if lesson.is_cancelled]


def cancelled_by_day(week: WeekSchedule) -> tuple[dict[str, list[RawSlot]], int]:
    """Cancelled slots per day label plus the week total."""
    days = {day: [slot for slot in slots if slot.is_cancelled] for day, slots in week.items()}
    return days, sum(len(slots) for slots in days.values())
