from __future__ import annotations

import pytest

from src.eboo_gest.eboo_gest.attendance.service import AttendanceService
from src.eboo_gest.eboo_gest.audit.service import AuditService
from src.eboo_gest.eboo_gest.core.exceptions import ValidationError
from src.eboo_gest.eboo_gest.gdpr.service import DataExportService


@pytest.fixture
def seeded(employees_repo, attendance_repo, audit_repo, clock):
    awa = employees_repo.add(business_id="biz-A", full_name="Awa", pin_code="1234", email="awa@example.cm")
    paul = employees_repo.add(business_id="biz-A", full_name="Paul", pin_code="5678")
    audit = AuditService(audit_repo, clock=clock)
    attendance = AttendanceService(attendance_repo, employees_repo, audit=audit, clock=clock)
    record = attendance.clock_in(awa.employee_id, "biz-A")
    clock.advance(hours=4)
    attendance.clock_out(record.attendance_id)
    attendance.clock_in(paul.employee_id, "biz-A")
    return awa, paul


@pytest.fixture
def exporter(employees_repo, attendance_repo, audit_repo, clock):
    return DataExportService(employees_repo, attendance_repo, audit_repo, clock=clock)


def test_export_employee(exporter, seeded):
    awa, _ = seeded

    data = exporter.export_employee("biz-A", awa.employee_id)

    assert data["format"] == "JSON"
    assert data["employee"]["email"] == "awa@example.cm"
    assert len(data["attendance"]) == 1
    assert {log["action"] for log in data["audit_logs"]} == {"clock_in", "clock_out"}
    assert "1234" not in str(data)
    assert "pin_code" not in data["employee"]


def test_export_business(exporter, seeded):
    data = exporter.export_business("biz-A")

    assert [e["full_name"] for e in data["employees"]] == ["Awa", "Paul"]
    assert len(data["attendance"]) == 2
    assert len(data["audit_logs"]) == 3
    assert "1234" not in str(data) and "5678" not in str(data)


def test_export_of_foreign_employee_is_refused(exporter, employees_repo):
    zoe = employees_repo.add(business_id="biz-B", full_name="Zoe", pin_code="0000")
    with pytest.raises(ValidationError):
        exporter.export_employee("biz-A", zoe.employee_id)


def test_export_filename(exporter, fixed_now):
    assert exporter.export_filename("emp-1") == "ebo-gest-data-emp-1-2026-03-02.json"
