from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import json_error, manager_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/webhooks", methods=["POST"], endpoint="webhooks_receive")
    def webhooks_receive():
        """Inbound events from the auth provider and partner backends."""
        if not container.webhook_service.verify_bearer(request.headers.get("Authorization")):
            return json_error("Non autorisé", 401)

        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            return json_error("Corps JSON invalide", 400)

        result = container.webhook_service.receive(body.get("type"), body.get("data"))
        if result is None:
            return jsonify({"success": True, "ignored": True})
        if not result.success:
            return json_error("Événement non enregistré", 500)
        return jsonify({"success": True, "event_id": result.event_id})

    @app.route("/api/webhooks/events", methods=["GET"], endpoint="webhooks_events")
    @manager_required
    def webhooks_events():
        limit = request.args.get("limit", type=int) or 50
        return jsonify({"success": True, "events": container.webhook_service.list_events(limit=limit)})

    @app.route("/api/webhooks/dispatch", methods=["POST"], endpoint="webhooks_dispatch")
    @manager_required
    def webhooks_dispatch():
        delivered = container.webhook_service.dispatch_pending()
        return jsonify({"success": True, "delivered": delivered})
