"""Pydantic models for timetable data.

All data structures use Pydantic v2 for validation, serialization, and type
safety. Field names are snake_case in Python; ``to_payload()`` produces the
camelCase JSON the API consumers expect.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

NOT_AVAILABLE = "N/A"
UNKNOWN = "Unbekannt"


class RawSlot(BaseModel):
    """One lesson cell of the rendered weekly grid, before normalization.

    Produced by the document extractor for a single (day, hour) slot and
    consumed right away by the normalizer.
    """

    hour: int  # 1-based row position in the grid
    day: str = Field(default="", exclude=True)  # header label, e.g. "Mo 13.10."
    subject: str = Field(alias="class")  # .timetable-left
    teacher: str = ""  # .timetable-right
    room: str = ""  # .timetable-bottom
    is_substitution: bool = Field(default=False, alias="isSubstitution")
    is_cancelled: bool = Field(default=False, alias="isCancelled")
    substitution_info: str | None = Field(default=None, alias="substitutionInfo")

    model_config = {"populate_by_name": True}

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


WeekSchedule = dict[str, list[RawSlot]]


class Lesson(BaseModel):
    """A single school lesson on a concrete date."""

    id: str  # "{date}-{lesson_number}"
    subject: str
    teacher: str
    room: str
    start_time: str  # HH:MM
    end_time: str  # HH:MM
    lesson_number: int
    date: str  # YYYY-MM-DD
    is_substitution: bool = False
    is_cancelled: bool = False

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "alias_generator": to_camel,
    }

    @classmethod
    def from_slot_data(
        cls,
        *,
        date: str,
        lesson_number: int,
        subject: str,
        teacher: str,
        room: str,
        start_time: str,
        end_time: str,
        is_substitution: bool = False,
        is_cancelled: bool = False,
    ) -> "Lesson":
        """Build a lesson, substituting placeholders for blank labels."""
        return cls(
            id=f"{date}-{lesson_number}",
            subject=subject or UNKNOWN,
            teacher=teacher or NOT_AVAILABLE,
            room=room or NOT_AVAILABLE,
            start_time=start_time,
            end_time=end_time,
            lesson_number=lesson_number,
            date=date,
            is_substitution=is_substitution,
            is_cancelled=is_cancelled,
        )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)

    def to_speech(self) -> str:
        """German sentence for voice assistants."""
        if self.is_cancelled:
            return f"{self.subject} in der {self.lesson_number}. Stunde fällt aus"

        output = f"Um {self.start_time} Uhr {self.subject}"
        if self.is_substitution:
            output += f" mit Vertretung bei {self.teacher}"
        else:
            output += f" bei {self.teacher}"
        if self.room and self.room != NOT_AVAILABLE:
            output += f" in Raum {self.room}"
        return output

    def _at(self, clock_time: str) -> datetime:
        return datetime.fromisoformat(f"{self.date}T{clock_time}")

    def is_upcoming(self, now: datetime | None = None) -> bool:
        now = now or datetime.now()
        return self._at(self.start_time) > now

    def is_currently_active(self, now: datetime | None = None) -> bool:
        now = now or datetime.now()
        return self._at(self.start_time) <= now <= self._at(self.end_time)


class SubstitutionType(str, Enum):
    SUBSTITUTION = "substitution"
    CANCELLATION = "cancellation"
    ROOM_CHANGE = "room_change"
    TIME_CHANGE = "time_change"  # part of the wire format, never derived
    OTHER = "other"


class Substitution(BaseModel):
    """A deviation from the regular timetable, derived from a flagged lesson."""

    id: str
    date: str
    lesson_number: int
    original_subject: str
    original_teacher: str
    substitute_subject: str | None = None
    substitute_teacher: str | None = None
    room: str | None = None
    # Never filled by the extractor, so ROOM_CHANGE cannot be derived yet.
    original_room: str | None = None
    is_cancelled: bool = False
    note: str | None = None
    type: SubstitutionType = SubstitutionType.OTHER

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "alias_generator": to_camel,
    }

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")

    def to_speech(self) -> str:
        """German sentence for voice assistants."""
        prefix = f"{self.original_subject} in der {self.lesson_number}. Stunde"

        if self.type is SubstitutionType.CANCELLATION:
            return f"{prefix} fällt aus"

        if self.type is SubstitutionType.SUBSTITUTION:
            output = prefix
            if self.substitute_teacher:
                output += f" wird von {self.substitute_teacher} vertreten"
            if (
                self.substitute_subject
                and self.substitute_subject != self.original_subject
            ):
                output += f" mit {self.substitute_subject}"
            return output

        if self.type is SubstitutionType.ROOM_CHANGE:
            return f"{prefix} ist in Raum {self.room}"

        return f"{prefix}: {self.note or 'Änderung'}"

    def is_today(self, today: str | None = None) -> bool:
        today = today or datetime.now().date().isoformat()
        return self.date == today

    def is_upcoming(self, today: str | None = None) -> bool:
        today = today or datetime.now().date().isoformat()
        return self.date >= today


class ApiError(BaseModel):
    code: str
    message: str
    status_code: int

    model_config = {"populate_by_name": True, "alias_generator": to_camel}


class ApiResponse(BaseModel):
    """Uniform response envelope returned by every service operation."""

    success: bool
    data: dict[str, Any] | None = None
    error: ApiError | None = None
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    @classmethod
    def ok(cls, data: dict[str, Any]) -> "ApiResponse":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, code: str, message: str, status_code: int) -> "ApiResponse":
        return cls(
            success=False,
            error=ApiError(code=code, message=message, status_code=status_code),
        )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
