from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from studioboard.modules.appointments.ics import parse_dtstart, parse_ics, unescape_text, unfold_lines
from studioboard.modules.appointments.schemas import AppointmentOut
from studioboard.modules.calendar.aggregator import (
    bucket_appointments,
    bucket_projects,
    deadline_date,
    month_view,
    shift_month,
)
from studioboard.modules.projects.schemas import ProjectOut

SP = ZoneInfo("America/Sao_Paulo")


def _project(pid, end_date):
    return ProjectOut(id=pid, title=pid, stage="Ideias", owner_id="u1", end_date=end_date)


def test_shift_month_crosses_year_boundaries():
    assert shift_month(2024, 1, -1) == (2023, 12)
    assert shift_month(2024, 12, 1) == (2025, 1)
    assert shift_month(2024, 5, 0) == (2024, 5)


def test_deadline_date_accepts_dates_datetimes_and_strings():
    assert deadline_date(date(2024, 3, 10)) == date(2024, 3, 10)
    # data-hora usa o dia em UTC
    assert deadline_date(datetime(2024, 3, 10, 23, 0, tzinfo=SP)) == date(2024, 3, 11)
    assert deadline_date("2024-03-10") == date(2024, 3, 10)
    assert deadline_date("") is None
    assert deadline_date("not a date") is None


def test_projects_bucket_by_deadline_and_skip_missing():
    grouped = bucket_projects(
        [_project("a", date(2024, 2, 10)), _project("b", date(2024, 3, 1)), _project("c", None)], 2024, 2
    )
    assert list(grouped) == [10]
    assert grouped[10][0].id == "a"


def test_appointments_bucket_by_local_day():
    late = AppointmentOut(id="x", title="x", date=datetime(2024, 2, 2, 1, 30, tzinfo=timezone.utc), user_id="u")
    grouped = bucket_appointments([late], 2024, 2, SP)
    # 01:30 UTC ainda é dia 1 em São Paulo
    assert list(grouped) == [1]


def test_month_view_grid_metadata():
    view = month_view(2024, 2, [], [], SP, now=datetime(2024, 2, 15, 12, tzinfo=timezone.utc))
    assert view.days_in_month == 29
    # 1/2/2024 foi uma quinta-feira
    assert view.leading_blanks == 4
    assert view.today == 15

    other = month_view(2024, 9, [], [], SP, now=datetime(2024, 2, 15, 12, tzinfo=timezone.utc))
    assert other.leading_blanks == 0   # 1/9/2024 foi domingo
    assert other.today is None


ICS = (
    "BEGIN:VCALENDAR\r\n"
    "BEGIN:VEVENT\r\n"
    "SUMMARY:Gravação\\, estúdio A\r\n"
    "DESCRIPTION:Levar luzes\\ne tripé\r\n"
    "DTSTART:20240115T140000Z\r\n"
    "END:VEVENT\r\n"
    "BEGIN:VEVENT\r\n"
    "SUMMARY:Dia inteiro\r\n"
    "DTSTART;VALUE=DATE:20240116\r\n"
    "END:VEVENT\r\n"
    "BEGIN:VEVENT\r\n"
    "SUMMARY:Reunião com\r\n"
    "  cliente\r\n"
    "DTSTART;TZID=America/Sao_Paulo:20240117T090000\r\n"
    "END:VEVENT\r\n"
    "BEGIN:VEVENT\r\n"
    "DTSTART:20240118T090000Z\r\n"
    "END:VEVENT\r\n"
    "BEGIN:VEVENT\r\n"
    "SUMMARY:Sem início\r\n"
    "END:VEVENT\r\n"
    "END:VCALENDAR\r\n"
)


def test_parse_ics_reads_valid_events_and_skips_incomplete():
    result = parse_ics(ICS, SP)

    assert [e.title for e in result.events] == ["Gravação, estúdio A", "Dia inteiro", "Reunião com cliente"]
    assert result.skipped == 2
    first, all_day, floating = result.events
    assert first.date == datetime(2024, 1, 15, 14, 0, tzinfo=timezone.utc)
    assert first.description == "Levar luzes\ne tripé"
    # data pura: meia-noite local (UTC-3)
    assert all_day.date == datetime(2024, 1, 16, 3, 0, tzinfo=timezone.utc)
    assert floating.date == datetime(2024, 1, 17, 12, 0, tzinfo=timezone.utc)
    assert all_day.description == ""


def test_unterminated_block_is_skipped():
    result = parse_ics("BEGIN:VEVENT\nSUMMARY:x\nDTSTART:20240101T100000Z\n", SP)
    assert result.events == []
    assert result.skipped == 1


def test_helpers():
    assert unfold_lines("A:1\n B\nC:2") == ["A:1B", "C:2"]
    assert unescape_text("a\\;b\\\\c") == "a;b\\c"
    assert parse_dtstart("garbage", {}, SP) is None
    assert parse_dtstart("20240101T1000", {}, timezone.utc) == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)


def test_returning_to_a_month_reproduces_buckets():
    projects = [_project("a", date(2024, 2, 10)), _project("b", date(2024, 2, 10))]
    appointments = [AppointmentOut(id="x", title="x", date=datetime(2024, 2, 5, 15, tzinfo=timezone.utc), user_id="u")]
    now = datetime(2024, 2, 1, tzinfo=timezone.utc)

    first = month_view(2024, 2, projects, appointments, SP, now=now)
    year, month = shift_month(*shift_month(2024, 2, 1), -1)
    again = month_view(year, month, projects, appointments, SP, now=now)

    assert again == first
    assert [p.id for p in first.projects_by_day[10]] == ["a", "b"]


def test_alarm_inside_event_does_not_override_event_fields():
    content = (
        "BEGIN:VCALENDAR\n"
        "BEGIN:VEVENT\n"
        "SUMMARY:Kickoff\n"
        "DESCRIPTION:Reunião inicial\n"
        "BEGIN:VALARM\n"
        "ACTION:DISPLAY\n"
        "SUMMARY:Alarm notification\n"
        "DESCRIPTION:This is an event reminder\n"
        "TRIGGER:-P0DT0H10M0S\n"
        "END:VALARM\n"
        "DTSTART:20240301T120000Z\n"
        "END:VEVENT\n"
        "END:VCALENDAR\n"
    )
    [event] = parse_ics(content, SP).events

    assert (event.title, event.description) == ("Kickoff", "Reunião inicial")
    assert event.date == datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def test_unclosed_alarm_still_closes_the_event():
    content = (
        "BEGIN:VEVENT\nSUMMARY:Gravação\nDTSTART:20240301T120000Z\n"
        "BEGIN:VALARM\nSUMMARY:lembrete\n"
        "END:VEVENT\n"
    )
    result = parse_ics(content, SP)
    assert [e.title for e in result.events] == ["Gravação"]
    assert result.skipped == 0


def test_day_appointments_keep_input_order():
    later = AppointmentOut(id="b", title="b", date=datetime(2024, 2, 5, 20, tzinfo=timezone.utc), user_id="u")
    earlier = AppointmentOut(id="a", title="a", date=datetime(2024, 2, 5, 13, tzinfo=timezone.utc), user_id="u")
    view = month_view(2024, 2, [], [later, earlier], SP, now=datetime(2024, 2, 1, tzinfo=timezone.utc))
    assert [a.id for a in view.appointments_by_day[5]] == ["b", "a"]
