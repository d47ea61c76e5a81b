from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import acting_user_id, as_bool, json_body
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.timesheet_service

    @app.route("/api/timesheets", methods=["GET"], endpoint="list_timesheets")
    def list_timesheets():
        limit = request.args.get("limit", default=12, type=int)
        items = service.list_for_user(acting_user_id(), limit=limit)
        return jsonify([t.to_dict() for t in items])

    @app.route("/api/timesheets", methods=["POST"], endpoint="open_timesheet")
    def open_timesheet():
        data = json_body()
        raw = data.get("date")
        user_id = acting_user_id()
        anchor = parse_iso_date(raw) if raw else container.directory_service.today_for(user_id)
        timesheet = service.open_week(user_id=user_id, anchor=anchor)
        return jsonify(timesheet.to_dict()), 201

    @app.route("/api/timesheets/<timesheet_id>", methods=["GET"], endpoint="get_timesheet")
    def get_timesheet(timesheet_id: str):
        return jsonify(service.get(timesheet_id).to_dict())

    @app.route("/api/timesheets/<timesheet_id>/cells/<code>/<day>", methods=["PUT"], endpoint="upsert_cell")
    def upsert_cell(timesheet_id: str, code: str, day: str):
        timesheet = service.upsert_cell(timesheet_id, code=code, day=parse_iso_date(day), entry=json_body())
        return jsonify(timesheet.to_dict())

    @app.route("/api/timesheets/<timesheet_id>/cells/<code>/<day>", methods=["DELETE"], endpoint="remove_cell")
    def remove_cell(timesheet_id: str, code: str, day: str):
        timesheet = service.remove_cell(timesheet_id, code=code, day=parse_iso_date(day))
        return jsonify(timesheet.to_dict())

    @app.route("/api/timesheets/<timesheet_id>/codes/<code>", methods=["DELETE"], endpoint="remove_activity_code")
    def remove_activity_code(timesheet_id: str, code: str):
        return jsonify(service.remove_activity_code(timesheet_id, code=code).to_dict())

    @app.route("/api/timesheets/<timesheet_id>/days/<day>/send", methods=["POST"], endpoint="send_day")
    def send_day(timesheet_id: str, day: str):
        data = json_body()
        timesheet = service.send_day(
            timesheet_id,
            day=parse_iso_date(day),
            deficit_reason=data.get("deficit_reason"),
        )
        return jsonify(timesheet.to_dict())

    @app.route("/api/timesheets/<timesheet_id>/auto-send", methods=["POST"], endpoint="auto_send_week")
    def auto_send_week(timesheet_id: str):
        return jsonify(service.auto_send_week(timesheet_id).to_dict())

    @app.route(
        "/api/timesheets/<timesheet_id>/weekend-overrides/<day>",
        methods=["POST"],
        endpoint="allow_weekend",
    )
    def allow_weekend(timesheet_id: str, day: str):
        return jsonify(service.allow_weekend(timesheet_id, day=parse_iso_date(day)).to_dict())

    @app.route("/api/timesheets/<timesheet_id>/review", methods=["POST"], endpoint="review_timesheet")
    def review_timesheet(timesheet_id: str):
        data = json_body()
        return jsonify(service.review(timesheet_id, approve=as_bool(data.get("approve", True))).to_dict())
