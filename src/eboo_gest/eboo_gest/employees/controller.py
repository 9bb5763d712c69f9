from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import current_actor, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    # Role checks live in EmployeeService; AuthorizationError maps to 403.

    @app.route("/api/employees", methods=["GET"], endpoint="employees_list")
    @login_required
    def employees_list():
        actor = current_actor()
        employees = container.employee_service.list_employees(actor.business_id)
        return jsonify({"success": True, "employees": [e.to_public_dict() for e in employees]})

    @app.route("/api/employees", methods=["POST"], endpoint="employees_create")
    @login_required
    def employees_create():
        actor = current_actor()
        data = request.get_json(silent=True) or {}
        employee = container.employee_service.create_employee(
            business_id=actor.business_id,
            actor_id=actor.user_id,
            actor_role=actor.role,
            full_name=str(data.get("full_name") or ""),
            role=data.get("role") or "staff",
            pin_code=str(data.get("pin_code") or ""),
            email=data.get("email"),
            phone=data.get("phone"),
        )
        return jsonify({"success": True, "employee": employee.to_public_dict()}), 201

    @app.route("/api/employees/<employee_id>", methods=["PUT", "PATCH"], endpoint="employees_update")
    @login_required
    def employees_update(employee_id: str):
        actor = current_actor()
        data = request.get_json(silent=True) or {}
        employee = container.employee_service.update_employee(
            business_id=actor.business_id,
            actor_id=actor.user_id,
            actor_role=actor.role,
            employee_id=employee_id,
            full_name=data.get("full_name"),
            role=data.get("role"),
            pin_code=str(data["pin_code"]) if data.get("pin_code") else None,
            email=data.get("email"),
            phone=data.get("phone"),
        )
        return jsonify({"success": True, "employee": employee.to_public_dict()})

    @app.route("/api/employees/<employee_id>", methods=["DELETE"], endpoint="employees_delete")
    @login_required
    def employees_delete(employee_id: str):
        actor = current_actor()
        container.employee_service.delete_employee(
            business_id=actor.business_id,
            actor_id=actor.user_id,
            actor_role=actor.role,
            employee_id=employee_id,
        )
        return jsonify({"success": True})
