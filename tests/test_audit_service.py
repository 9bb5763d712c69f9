from __future__ import annotations

from src.eboo_gest.eboo_gest.audit.model import AuditFilters
from src.eboo_gest.eboo_gest.audit.service import AuditService
from src.eboo_gest.eboo_gest.core.enums import AuditCategory, AuditSeverity


def test_log_action_appends(audit_repo, clock, fixed_now):
    svc = AuditService(audit_repo, clock=clock)

    log_id = svc.log_action(
        business_id="biz-A",
        actor_id="u1",
        action="export",
        resource="business",
        resource_id="biz-A",
        new_values={"format": "JSON"},
    )

    assert log_id == 1
    log = audit_repo.logs[0]
    assert log.created_at == fixed_now
    assert log.severity == AuditSeverity.MEDIUM
    assert log.category == AuditCategory.DATA
    assert log.to_dict()["timestamp"] == fixed_now.isoformat()


def test_persistence_failure_is_swallowed(audit_repo, clock, caplog):
    audit_repo.fail = True
    svc = AuditService(audit_repo, clock=clock)

    assert svc.log_security_action(business_id="biz-A", actor_id="kiosk", action="x", resource_id="biz-A") is None
    assert "Audit log append failed" in caplog.text


def test_helpers_set_category_and_severity(audit_repo, clock):
    svc = AuditService(audit_repo, clock=clock)
    svc.log_security_action(business_id="biz-A", actor_id="kiosk", action="kiosk_invalid_pin", resource_id="biz-A")
    svc.log_attendance_action(business_id="biz-A", employee_id="emp-1", action="clock_in", attendance_id=7)

    security, business = audit_repo.logs
    assert (security.category, security.severity) == (AuditCategory.SECURITY, AuditSeverity.HIGH)
    assert business.category == AuditCategory.BUSINESS
    assert business.resource_id == "7"
    assert business.actor_id == "emp-1"


def test_fetch_logs_newest_first_with_filters(audit_repo, clock):
    svc = AuditService(audit_repo, clock=clock)
    for action in ["a", "b", "c"]:
        svc.log_action(business_id="biz-A", actor_id="u1", action=action, resource="r", resource_id="1")
        clock.advance(minutes=1)
    svc.log_action(business_id="biz-B", actor_id="u1", action="other", resource="r", resource_id="1")

    assert [log.action for log in svc.fetch_logs("biz-A")] == ["c", "b", "a"]
    assert [log.action for log in svc.fetch_logs("biz-A", AuditFilters(action="b"))] == ["b"]
