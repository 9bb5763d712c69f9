from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.logging_config import get_logger
from ..container import Container
from ..core.exceptions import OfflineError
from .model import FetchRequest

logger = get_logger("offline.http")

# Not forwarded upstream: hop-by-hop headers, the ones requests recomputes,
# and the back-office session cookie.
_DROPPED_HEADERS = frozenset(
    [
        "connection",
        "keep-alive",
        "proxy-authorization",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
        "host",
        "content-length",
        "cookie",
    ]
)


def register(app: Flask, container: Container) -> None:
    @app.route("/app/", defaults={"path": ""}, methods=["GET", "POST", "PUT", "PATCH", "DELETE"], endpoint="app_proxy_root")
    @app.route("/app/<path:path>", methods=["GET", "POST", "PUT", "PATCH", "DELETE"], endpoint="app_proxy")
    def app_proxy(path: str):
        url = "/" + path
        if request.query_string:
            url += "?" + request.query_string.decode("latin-1")
        headers = {k: v for k, v in request.headers.items() if k.lower() not in _DROPPED_HEADERS}

        fetch_request = FetchRequest(url=url, method=request.method, headers=headers, body=request.get_data())
        try:
            response = container.registration.fetch(fetch_request)
        except OfflineError as e:
            logger.info("No network and no cached copy for %s", url)
            return jsonify({"success": False, "offline": True, "message": str(e)}), 504
        return response.to_response()

    @app.route("/sw/register", methods=["POST"], endpoint="sw_register")
    def sw_register():
        """Install (and, when nothing waits on it, activate) the configured cache version."""
        worker = container.registration.register(container.new_worker())
        return jsonify(
            {
                "success": True,
                "version": worker.version,
                "state": worker.state.value,
                "active": container.registration.active.version if container.registration.active else None,
            }
        )

    @app.route("/sw/messages", methods=["POST"], endpoint="sw_messages")
    def sw_messages():
        data = request.get_json(silent=True) or {}
        reply = container.registration.post_message(data)
        return jsonify(reply if reply is not None else {})

    @app.route("/sw/push", methods=["POST"], endpoint="sw_push")
    def sw_push():
        worker = container.registration.require_active()
        notification = worker.handle_push(request.get_data())
        return jsonify(notification.to_dict())

    @app.route("/sw/notifications/click", methods=["POST"], endpoint="sw_notification_click")
    def sw_notification_click():
        worker = container.registration.require_active()
        data = request.get_json(silent=True) or {}
        shown = worker.notifications.shown
        if not shown:
            return jsonify({"success": True, "client": None})

        client = worker.handle_notification_click(shown[-1], str(data.get("action") or ""))
        return jsonify({"success": True, "client": client.url if client else None})

    @app.route("/sw/sync/<tag>", methods=["POST"], endpoint="sw_sync")
    def sw_sync(tag: str):
        container.registration.require_active().handle_sync(tag)
        return jsonify({"success": True, "tag": tag})
