from __future__ import annotations

import csv
import io
import uuid
from datetime import date, timedelta

import qrcode
from flask import Flask, jsonify, request, send_file, session

from ..common.datetime_utils import parse_iso_date
from ..common.web import current_actor, json_error, login_required, manager_required
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_REPORT_DAYS
from ..container import Container
from .kiosk import PinKiosk
from .timesheet import TIMESHEET_FIELDS

KIOSK_DEVICE_KEY = "kiosk_device_id"


def register(app: Flask, container: Container) -> None:
    def _kiosk() -> PinKiosk:
        device_id = session.get(KIOSK_DEVICE_KEY)
        if not device_id:
            device_id = uuid.uuid4().hex
            session[KIOSK_DEVICE_KEY] = device_id
        return container.kiosks.get(device_id, str(session["business_id"]))

    def _kiosk_response(kiosk: PinKiosk, **extra):
        payload = {
            "success": True,
            "kiosk": kiosk.snapshot(),
            "toasts": [t.to_dict() for t in kiosk.drain_toasts()],
        }
        payload.update(extra)
        return jsonify(payload)

    @app.route("/kiosk", methods=["GET"], endpoint="kiosk")
    @login_required
    def kiosk_state():
        kiosk = _kiosk()
        kiosk.expire_if_idle()
        return _kiosk_response(kiosk)

    @app.route("/kiosk/pin", methods=["POST"], endpoint="kiosk_pin")
    @login_required
    def kiosk_pin():
        data = request.get_json(silent=True) or {}
        kiosk = _kiosk()
        accepted = kiosk.submit_pin(str(data.get("pin", "")))
        return _kiosk_response(kiosk, accepted=accepted)

    @app.route("/kiosk/verify", methods=["POST"], endpoint="kiosk_verify")
    @login_required
    def kiosk_verify():
        kiosk = _kiosk()
        employee = kiosk.verify()
        return _kiosk_response(kiosk, identified=employee is not None)

    @app.route("/kiosk/clock-in", methods=["POST"], endpoint="kiosk_clock_in")
    @login_required
    def kiosk_clock_in():
        kiosk = _kiosk()
        record = kiosk.clock_in()
        return _kiosk_response(kiosk, recorded=record is not None)

    @app.route("/kiosk/clock-out", methods=["POST"], endpoint="kiosk_clock_out")
    @login_required
    def kiosk_clock_out():
        kiosk = _kiosk()
        record = kiosk.clock_out()
        return _kiosk_response(kiosk, recorded=record is not None)

    @app.route("/kiosk/reset", methods=["POST"], endpoint="kiosk_reset")
    @login_required
    def kiosk_reset():
        kiosk = _kiosk()
        kiosk.reset()
        response = _kiosk_response(kiosk)
        container.kiosks.drop(session[KIOSK_DEVICE_KEY])
        return response

    @app.route("/kiosk/qr.png", methods=["GET"], endpoint="kiosk_qr")
    @manager_required
    def kiosk_qr():
        """Pairing code: scanning it opens the kiosk page of this business."""
        base_url = str(app.config.get("PUBLIC_BASE_URL") or request.host_url).rstrip("/")
        token_data = f"{base_url}/kiosk?business={session['business_id']}"

        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_L,
            box_size=10,
            border=2,
        )
        qr.add_data(token_data)
        qr.make(fit=True)
        img = qr.make_image(fill_color="black", back_color="white")

        buf = io.BytesIO()
        img.save(buf, format="PNG")
        buf.seek(0)
        return send_file(buf, mimetype="image/png")

    # ===== HISTORY / REPORTS =====

    def _report_range() -> tuple[date, date]:
        today = date.today()
        start_s = request.args.get("start") or (today - timedelta(days=DEFAULT_REPORT_DAYS)).strftime("%Y-%m-%d")
        end_s = request.args.get("end") or today.strftime("%Y-%m-%d")
        return parse_iso_date(start_s), parse_iso_date(end_s)

    def _write_report_csv(*, data, filename: str):
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=TIMESHEET_FIELDS)
        writer.writeheader()
        for row in data.rows:
            writer.writerow(row)

        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/api/attendance/employees/<employee_id>", methods=["GET"], endpoint="attendance_history")
    @manager_required
    def attendance_history(employee_id: str):
        actor = current_actor()
        container.employee_service.get_employee(actor.business_id, employee_id)
        limit = request.args.get("limit", type=int) or DEFAULT_HISTORY_LIMIT
        records = container.attendance_service.get_history(employee_id, limit=limit)
        return jsonify({"success": True, "attendance": [r.to_dict() for r in records]})

    @app.route("/api/attendance/report", methods=["GET"], endpoint="attendance_report")
    @manager_required
    def attendance_report():
        try:
            start, end = _report_range()
        except ValueError:
            return json_error("Dates invalides (format attendu : AAAA-MM-JJ)", 400)
        data = container.timesheet_service.build_timesheet(business_id=current_actor().business_id, start=start, end=end)
        return jsonify(
            {
                "success": True,
                "start": start.strftime("%Y-%m-%d"),
                "end": end.strftime("%Y-%m-%d"),
                "rows": data.rows,
                "summary": data.summary,
            }
        )

    @app.route("/api/attendance/report.csv", methods=["GET"], endpoint="attendance_report_csv")
    @manager_required
    def attendance_report_csv():
        try:
            start, end = _report_range()
        except ValueError:
            return json_error("Dates invalides (format attendu : AAAA-MM-JJ)", 400)
        data = container.timesheet_service.build_timesheet(business_id=current_actor().business_id, start=start, end=end)

        filename = f"attendance_report_{start.strftime('%Y%m%d')}_{end.strftime('%Y%m%d')}.csv"
        return _write_report_csv(data=data, filename=filename)
