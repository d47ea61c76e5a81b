from __future__ import annotations

from datetime import timedelta

from flask import Flask, jsonify, request

from ..common.http import acting_user_id, as_bool, json_body, query_date
from ..common.validators import require_non_empty
from ..container import Container
from ..core.constants import DEFAULT_REPORT_DAYS


def register(app: Flask, container: Container) -> None:
    directory = container.directory_service

    def _report_args():
        org_id = request.args.get("org_id")
        if not org_id:
            org_id = directory.require_member(acting_user_id()).org_id
        today = directory.local_today(directory.require_organization(org_id))
        end = query_date("end", today)
        start = query_date("start", end - timedelta(days=DEFAULT_REPORT_DAYS - 1))
        team_ids = request.args.getlist("team_id") or None
        return {"org_id": org_id, "start": start, "end": end, "team_ids": team_ids}

    @app.route("/api/kpis", methods=["GET"], endpoint="org_kpis")
    def org_kpis():
        snapshot = container.kpi_service.org_snapshot(**_report_args())
        return jsonify(snapshot.to_dict())

    @app.route("/api/reports", methods=["GET"], endpoint="attendance_report")
    def attendance_report():
        report = container.kpi_service.build_report(**_report_args())
        return jsonify(report.to_dict())

    @app.route("/api/timesheets/week", methods=["GET"], endpoint="timesheet_week")
    def timesheet_week():
        user_id = request.args.get("user_id") or acting_user_id()
        anchor = query_date("date") or directory.today_for(user_id)
        summary = container.kpi_service.week_summary(user_id=user_id, anchor=anchor)
        return jsonify(summary.to_dict())

    @app.route("/api/timesheets/week/approval", methods=["POST"], endpoint="timesheet_week_approval")
    def timesheet_week_approval():
        data = json_body()
        approval = container.kpi_service.approve_week(
            user_id=require_non_empty(str(data.get("user_id") or ""), "user_id"),
            week_key=require_non_empty(str(data.get("week_of") or ""), "week_of"),
            approve=as_bool(data.get("approve", True)),
            approver_id=acting_user_id(),
            note=data.get("note"),
        )
        return jsonify(approval.to_dict())
