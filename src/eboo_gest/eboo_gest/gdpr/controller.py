from __future__ import annotations

import json

from flask import Flask

from ..common.logging_config import get_logger
from ..common.web import current_actor, json_error, manager_required
from ..container import Container
from ..core.exceptions import PersistenceError

logger = get_logger("gdpr.http")


def register(app: Flask, container: Container) -> None:
    def _attachment(payload: dict, subject_id: str):
        body = json.dumps(payload, ensure_ascii=False, indent=2, default=str).encode("utf-8")
        filename = container.export_service.export_filename(subject_id)
        return app.response_class(
            body,
            mimetype="application/json",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/api/gdpr/export", methods=["GET"], endpoint="gdpr_export_business")
    @manager_required
    def gdpr_export_business():
        business_id = current_actor().business_id
        try:
            payload = container.export_service.export_business(business_id)
        except PersistenceError:
            logger.exception("Data export failed for business %s", business_id)
            return json_error("Erreur lors de l'export des données", 500)
        return _attachment(payload, business_id)

    @app.route("/api/gdpr/export/<employee_id>", methods=["GET"], endpoint="gdpr_export_employee")
    @manager_required
    def gdpr_export_employee(employee_id: str):
        business_id = current_actor().business_id
        try:
            payload = container.export_service.export_employee(business_id, employee_id)
        except PersistenceError:
            logger.exception("Data export failed for employee %s", employee_id)
            return json_error("Erreur lors de l'export des données", 500)
        return _attachment(payload, employee_id)
