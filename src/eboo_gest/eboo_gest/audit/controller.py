from __future__ import annotations

from datetime import datetime, time

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.web import current_actor, json_error, manager_required
from ..container import Container
from ..core.enums import AuditCategory, AuditSeverity
from .model import AuditFilters


def register(app: Flask, container: Container) -> None:
    def _filters_from_args() -> AuditFilters:
        args = request.args
        start = args.get("start")
        end = args.get("end")
        return AuditFilters(
            actor_id=args.get("actor_id") or None,
            action=args.get("action") or None,
            resource=args.get("resource") or None,
            resource_id=args.get("resource_id") or None,
            severity=AuditSeverity(args["severity"]) if args.get("severity") else None,
            category=AuditCategory(args["category"]) if args.get("category") else None,
            start=datetime.combine(parse_iso_date(start), time.min) if start else None,
            end=datetime.combine(parse_iso_date(end), time.max) if end else None,
        )

    @app.route("/api/audit-logs", methods=["GET"], endpoint="audit_logs")
    @manager_required
    def audit_logs():
        try:
            filters = _filters_from_args()
        except ValueError:
            return json_error("Filtres invalides", 400)

        limit = min(request.args.get("limit", type=int) or 200, 1000)
        logs = container.audit_service.fetch_logs(current_actor().business_id, filters, limit=limit)
        return jsonify({"success": True, "logs": [log.to_dict() for log in logs]})
