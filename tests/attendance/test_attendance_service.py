from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from src.eboo_gest.eboo_gest.attendance.service import AttendanceService
from src.eboo_gest.eboo_gest.attendance.timesheet import TimesheetService
from src.eboo_gest.eboo_gest.audit.service import AuditService
from src.eboo_gest.eboo_gest.core.enums import AuditCategory, WebhookEventType
from src.eboo_gest.eboo_gest.core.exceptions import ConflictError, ValidationError
from src.eboo_gest.eboo_gest.webhooks.service import WebhookService


@pytest.fixture
def svc(attendance_repo, employees_repo, audit_repo, webhooks_repo, clock):
    audit = AuditService(audit_repo, clock=clock)
    webhooks = WebhookService(webhooks_repo, clock=clock)
    return AttendanceService(attendance_repo, employees_repo, audit=audit, webhooks=webhooks, clock=clock)


@pytest.fixture
def awa(employees_repo):
    return employees_repo.add(business_id="biz-A", full_name="Awa", pin_code="1234")


def test_clock_in_then_out(svc, awa, clock, fixed_now):
    record = svc.clock_in(awa.employee_id, "biz-A")
    assert record.is_open
    assert record.clock_in == fixed_now

    clock.advance(hours=8, minutes=15)
    closed = svc.clock_out(record.attendance_id)

    assert not closed.is_open
    assert closed.worked_minutes() == 495
    assert svc.fetch_last_attendance(awa.employee_id) == closed


def test_second_clock_in_is_a_conflict(svc, awa):
    svc.clock_in(awa.employee_id, "biz-A")
    with pytest.raises(ConflictError):
        svc.clock_in(awa.employee_id, "biz-A")


def test_clock_in_checks_tenant(svc, awa):
    with pytest.raises(ValidationError):
        svc.clock_in(awa.employee_id, "biz-B")
    with pytest.raises(ValidationError):
        svc.clock_in("emp-unknown", "biz-A")


def test_clock_out_of_missing_or_closed_record(svc, awa):
    with pytest.raises(ValidationError):
        svc.clock_out(42)

    record = svc.clock_in(awa.employee_id, "biz-A")
    svc.clock_out(record.attendance_id)
    with pytest.raises(ValidationError):
        svc.clock_out(record.attendance_id)


def test_clock_out_never_before_clock_in(svc, awa, clock, fixed_now):
    record = svc.clock_in(awa.employee_id, "biz-A")
    clock.now = fixed_now - timedelta(minutes=10)

    closed = svc.clock_out(record.attendance_id)

    assert closed.clock_out == closed.clock_in


def test_audit_and_webhook_after_each_write(svc, awa, audit_repo, webhooks_repo, clock):
    record = svc.clock_in(awa.employee_id, "biz-A")
    clock.advance(hours=1)
    svc.clock_out(record.attendance_id)

    assert [log.action for log in audit_repo.logs] == ["clock_in", "clock_out"]
    assert all(log.category == AuditCategory.BUSINESS for log in audit_repo.logs)
    assert [e.event_type for e in webhooks_repo.events] == [
        WebhookEventType.EMPLOYEE_CLOCKED_IN,
        WebhookEventType.EMPLOYEE_CLOCKED_OUT,
    ]


def test_side_effect_failures_do_not_undo_clock_in(svc, awa, audit_repo, webhooks_repo, attendance_repo):
    audit_repo.fail = True
    webhooks_repo.fail = True

    record = svc.clock_in(awa.employee_id, "biz-A")

    assert attendance_repo.get_by_id(record.attendance_id).is_open


def test_history_is_newest_first(svc, awa, clock):
    for _ in range(3):
        r = svc.clock_in(awa.employee_id, "biz-A")
        clock.advance(hours=1)
        svc.clock_out(r.attendance_id)
        clock.advance(hours=1)

    history = svc.get_history(awa.employee_id, limit=2)
    assert len(history) == 2
    assert history[0].clock_in > history[1].clock_in


def test_timesheet_rows_and_summary(attendance_repo, employees_repo):
    awa = employees_repo.add(business_id="biz-A", full_name="Awa", pin_code="1111")
    paul = employees_repo.add(business_id="biz-A", full_name="Paul", pin_code="2222")
    other = employees_repo.add(business_id="biz-B", full_name="Zoe", pin_code="1111")

    def shift(emp, start: datetime, minutes: int, business_id: str = "biz-A"):
        rid = attendance_repo.open_shift(employee_id=emp.employee_id, business_id=business_id, clock_in=start)
        attendance_repo.close_shift(attendance_id=rid, clock_out=start + timedelta(minutes=minutes))

    shift(awa, datetime(2026, 3, 2, 8, 0), 480)
    shift(awa, datetime(2026, 3, 3, 8, 0), 240)
    shift(paul, datetime(2026, 3, 3, 9, 0), 90)
    shift(awa, datetime(2026, 3, 10, 8, 0), 60)
    shift(other, datetime(2026, 3, 2, 8, 0), 60, business_id="biz-B")
    attendance_repo.open_shift(employee_id=paul.employee_id, business_id="biz-A", clock_in=datetime(2026, 3, 4, 7, 0))

    data = TimesheetService(attendance_repo, employees_repo).build_timesheet(
        business_id="biz-A", start=date(2026, 3, 2), end=date(2026, 3, 4)
    )

    assert len(data.rows) == 4
    assert data.rows[0] == {
        "work_date": "2026-03-02",
        "employee_id": awa.employee_id,
        "full_name": "Awa",
        "clock_in": "08:00",
        "clock_out": "16:00",
        "worked_hours": "08:00",
    }
    assert data.rows[-1]["clock_out"] == "-"
    assert [(s["full_name"], s["total_hours"]) for s in data.summary] == [("Awa", "12:00"), ("Paul", "01:30")]


def test_timesheet_days_follow_business_offset(attendance_repo, employees_repo):
    awa = employees_repo.add(business_id="biz-A", full_name="Awa", pin_code="1111")
    # UTC 23:30 on March 1st is 00:30 on March 2nd in Douala (UTC+1).
    rid = attendance_repo.open_shift(employee_id=awa.employee_id, business_id="biz-A", clock_in=datetime(2026, 3, 1, 23, 30))
    attendance_repo.close_shift(attendance_id=rid, clock_out=datetime(2026, 3, 2, 3, 0))
    attendance_repo.open_shift(employee_id=awa.employee_id, business_id="biz-A", clock_in=datetime(2026, 3, 2, 23, 15))

    timesheets = TimesheetService(attendance_repo, employees_repo, utc_offset_minutes=60)
    march_2 = timesheets.build_timesheet(business_id="biz-A", start=date(2026, 3, 2), end=date(2026, 3, 2))
    march_1 = timesheets.build_timesheet(business_id="biz-A", start=date(2026, 3, 1), end=date(2026, 3, 1))

    assert [(r["work_date"], r["clock_in"], r["clock_out"], r["worked_hours"]) for r in march_2.rows] == [
        ("2026-03-02", "00:30", "04:00", "03:30")
    ]
    assert march_1.rows == []
