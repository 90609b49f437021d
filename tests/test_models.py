"""Tests for model serialization and voice output."""

from datetime import datetime

from src.schulmanager.models import ApiResponse, Lesson, Substitution, SubstitutionType


def _lesson(**overrides) -> Lesson:
    data = dict(
        date="2025-10-13",
        lesson_number=1,
        subject="Mathe",
        teacher="Schmidt",
        room="101",
        start_time="08:00",
        end_time="08:45",
    )
    data.update(overrides)
    return Lesson.from_slot_data(**data)


class TestLesson:
    def test_payload_is_camel_case(self):
        payload = _lesson().to_payload()
        assert payload["id"] == "2025-10-13-1"
        assert payload["startTime"] == "08:00"
        assert payload["lessonNumber"] == 1
        assert payload["isCancelled"] is False

    def test_speech(self):
        assert _lesson().to_speech() == "Um 08:00 Uhr Mathe bei Schmidt in Raum 101"
        assert (
            _lesson(is_substitution=True, room="").to_speech()
            == "Um 08:00 Uhr Mathe mit Vertretung bei Schmidt"
        )
        assert _lesson(is_cancelled=True).to_speech() == "Mathe in der 1. Stunde fällt aus"

    def test_timing(self):
        lesson = _lesson()
        assert lesson.is_upcoming(datetime(2025, 10, 13, 7, 59))
        assert not lesson.is_upcoming(datetime(2025, 10, 13, 8, 30))
        assert lesson.is_currently_active(datetime(2025, 10, 13, 8, 30))
        assert not lesson.is_currently_active(datetime(2025, 10, 13, 9, 0))


class TestSubstitution:
    def _sub(self, **overrides) -> Substitution:
        data = dict(
            id="2025-10-13-2",
            date="2025-10-13",
            lesson_number=2,
            original_subject="Deutsch",
            original_teacher="Meier",
        )
        data.update(overrides)
        return Substitution(**data)

    def test_payload_omits_absent_fields(self):
        payload = self._sub(type=SubstitutionType.CANCELLATION).to_payload()
        assert payload["type"] == "cancellation"
        assert payload["originalTeacher"] == "Meier"
        assert "substituteTeacher" not in payload

    def test_speech(self):
        assert (
            self._sub(type=SubstitutionType.CANCELLATION).to_speech()
            == "Deutsch in der 2. Stunde fällt aus"
        )
        assert (
            self._sub(
                type=SubstitutionType.SUBSTITUTION,
                substitute_teacher="Weber",
                substitute_subject="Englisch",
            ).to_speech()
            == "Deutsch in der 2. Stunde wird von Weber vertreten mit Englisch"
        )
        assert (
            self._sub(type=SubstitutionType.ROOM_CHANGE, room="204").to_speech()
            == "Deutsch in der 2. Stunde ist in Raum 204"
        )
        assert self._sub().to_speech() == "Deutsch in der 2. Stunde: Änderung"

    def test_dates(self):
        sub = self._sub()
        assert sub.is_today("2025-10-13")
        assert sub.is_upcoming("2025-10-12")
        assert not sub.is_upcoming("2025-10-14")


def test_error_envelope():
    payload = ApiResponse.fail("LOGIN_FAILED", "Failed to login", 502).to_payload()
    assert payload["success"] is False
    assert payload["error"] == {
        "code": "LOGIN_FAILED",
        "message": "Failed to login",
        "statusCode": 502,
    }
    assert "data" not in payload
    assert payload["timestamp"]
