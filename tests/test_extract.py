"""Tests for extract.py and the marker policy table."""

from bs4 import BeautifulSoup

from src.schulmanager import markers
from src.schulmanager.extract import parse_week_html
from tests.fakes import SIMPLE_WEEK_HTML


def _week(*cells: str, header: str = "<th>Mo</th><th>Di</th>") -> str:
    """Two-day table with one row whose data cells are ``cells``."""
    cells = cells + ("",) * (2 - len(cells))
    tds = "".join(f"<td>{c}</td>" for c in cells)
    return f"""
    <table class="calendar-table">
      <thead><tr><th>Stunde</th>{header}</tr></thead>
      <tbody><tr><td>1</td>{tds}</tr></tbody>
    </table>
    """


def _lesson(subject: str = "<span>Deutsch</span>", css: str = "", extra: str = "") -> str:
    return (
        f'<div class="lesson-cell {css}">'
        f'<div class="timetable-left">{subject}</div>'
        '<div class="timetable-right"><span>Meier</span></div>'
        '<div class="timetable-bottom"><span>204</span></div>'
        f"{extra}</div>"
    )


class TestParseWeekHtml:
    def test_single_monday_lesson(self):
        week = parse_week_html(SIMPLE_WEEK_HTML)
        assert list(week) == ["Mo", "Di", "Mi", "Do", "Fr"]
        assert [s.to_payload() for s in week["Mo"]] == [
            {
                "hour": 1,
                "class": "Mathe",
                "teacher": "Schmidt",
                "room": "101",
                "isSubstitution": False,
                "isCancelled": False,
            }
        ]
        assert all(week[day] == [] for day in ("Di", "Mi", "Do", "Fr"))

    def test_header_keeps_first_line_only(self):
        html = _week(_lesson(), "", header="<th>Mo<br/>13.10.</th><th>Di<br/>14.10.</th>")
        assert list(parse_week_html(html)) == ["Mo", "Di"]

    def test_hour_is_row_position(self):
        html = """
        <table class="calendar-table">
          <thead><tr><th></th><th>Mo</th></tr></thead>
          <tbody>
            <tr><td>1</td><td></td></tr>
            <tr><td>2</td><td></td></tr>
            <tr><td>3</td><td><div class="lesson-cell">
              <div class="timetable-left"><span>Sport</span></div></div></td></tr>
          </tbody>
        </table>
        """
        week = parse_week_html(html)
        assert [s.hour for s in week["Mo"]] == [3]

    def test_second_column_maps_to_second_day(self):
        week = parse_week_html(_week("", _lesson()))
        assert week["Mo"] == []
        assert week["Di"][0].subject == "Deutsch"
        assert week["Di"][0].day == "Di"

    def test_row_without_hour_cell(self):
        html = """
        <table class="calendar-table">
          <thead><tr><th>Stunde</th><th>Mo</th><th>Di</th></tr></thead>
          <tbody><tr><td></td><td><div class="lesson-cell">
            <div class="timetable-left">Chemie</div></div></td></tr></tbody>
        </table>
        """
        week = parse_week_html(html)
        assert week["Di"][0].subject == "Chemie"

    def test_short_row_with_th_hour_label(self):
        html = """
        <table class="calendar-table">
          <thead><tr><th>Stunde</th><th>Mo</th><th>Di</th></tr></thead>
          <tbody>
            <tr><th>1</th><td></td><td></td></tr>
            <tr><th>2</th><td><div class="lesson-cell">
              <div class="timetable-left"><span>Mathe</span></div></div></td></tr>
          </tbody>
        </table>
        """
        week = parse_week_html(html)
        assert [(s.subject, s.hour) for s in week["Mo"]] == [("Mathe", 2)]
        assert week["Di"] == []

    def test_full_row_with_th_hour_label(self):
        html = """
        <table class="calendar-table">
          <thead><tr><th>Stunde</th><th>Mo</th><th>Di</th></tr></thead>
          <tbody><tr><th>1</th><td></td><td><div class="lesson-cell">
            <div class="timetable-left">Kunst</div></div></td></tr></tbody>
        </table>
        """
        week = parse_week_html(html)
        assert week["Mo"] == []
        assert week["Di"][0].subject == "Kunst"

    def test_bare_text_without_span(self):
        week = parse_week_html(_week(_lesson(subject="Biologie")))
        assert week["Mo"][0].subject == "Biologie"

    def test_missing_regions_degrade_to_empty(self):
        html = _week('<div class="lesson-cell"><div class="timetable-left">Kunst</div></div>')
        slot = parse_week_html(html)["Mo"][0]
        assert (slot.subject, slot.teacher, slot.room) == ("Kunst", "", "")

    def test_empty_subject_is_dropped(self):
        week = parse_week_html(_week(_lesson(subject="<span> </span>"), _lesson()))
        assert week["Mo"] == []
        assert len(week["Di"]) == 1

    def test_cell_without_marker_is_skipped(self):
        week = parse_week_html(_week("<span>frei</span>"))
        assert week["Mo"] == []

    def test_missing_table(self):
        assert parse_week_html("<html><body><p>Loading…</p></body></html>") == {}


class TestDeviationMarkers:
    def _slot(self, cell: str):
        return parse_week_html(_week(cell))["Mo"][0]

    def test_plain_lesson_is_unflagged(self):
        slot = self._slot(_lesson())
        assert not slot.is_substitution
        assert not slot.is_cancelled
        assert slot.substitution_info is None

    def test_substitution_class(self):
        slot = self._slot(_lesson(css="substitution"))
        assert slot.is_substitution
        assert not slot.is_cancelled

    def test_changed_class(self):
        assert self._slot(_lesson(css="changed")).is_substitution

    def test_cancelled_class_sets_both_flags(self):
        slot = self._slot(_lesson(subject="Physik", css="cancelled"))
        assert slot.is_cancelled
        assert slot.is_substitution

    def test_warning_badge(self):
        slot = self._slot(_lesson(extra='<span class="badge badge-warning">!</span>'))
        assert slot.is_substitution
        assert not slot.is_cancelled

    def test_change_info_text(self):
        slot = self._slot(_lesson(extra='<div class="change-info"> Raum getauscht </div>'))
        assert slot.is_substitution
        assert slot.substitution_info == "Raum getauscht"

    def test_empty_change_info_does_not_flag(self):
        slot = self._slot(_lesson(extra='<div class="substitution-info"> </div>'))
        assert not slot.is_substitution

    def test_cancelled_phrases(self):
        for phrase in ("Stunde fällt aus", "entfällt"):
            slot = self._slot(
                _lesson(extra=f'<div class="substitution-info">{phrase}</div>')
            )
            assert slot.is_cancelled, phrase
            assert slot.is_substitution, phrase


class TestMarkerRules:
    def test_classify_uses_given_rules(self):
        cell = BeautifulSoup('<div class="lesson-cell ausfall"></div>', "html.parser").div
        assert markers.classify(cell) == set()

        rules = markers.MARKER_RULES + (
            markers.MarkerRule(
                "class:ausfall", markers.CANCELLED, lambda c: "ausfall" in c["class"]
            ),
        )
        assert markers.classify(cell, rules) == {markers.CANCELLED}

    def test_selector_chains_are_ordered(self):
        assert markers.EMAIL_SELECTORS[0] == '.login-form input[type="text"]'
        assert 'input[type="email"]' in markers.EMAIL_SELECTORS
        assert markers.PASSWORD_SELECTORS[0] == 'input[type="password"]'
