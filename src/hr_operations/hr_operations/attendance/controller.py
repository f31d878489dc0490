from __future__ import annotations

from flask import Flask, current_app, request

from ..common.http import json_body, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/punch-in", methods=["POST"], endpoint="punch_in")
    def punch_in():
        data = json_body()
        result = container.attendance_service.punch_in(
            company_id=data.get("company_id"),
            user_id=data.get("user_id"),
            company_user_id=data.get("company_user_id"),
            time=data.get("punch_in"),
            location=data.get("punch_in_location"),
            device_id=data.get("device_id"),
            ip_address=data.get("ip_address") or request.remote_addr,
            remarks=data.get("remarks"),
            status=data.get("status"),
        )
        return ok(
            result.attendance,
            message="Punch In successful!",
            status=201,
            current_punch=result.punch,
            user_status=result.eligibility,
            shift=result.shift,
        )

    @app.route("/api/attendance/punch-out", methods=["POST"], endpoint="punch_out")
    def punch_out():
        data = json_body()
        result = container.attendance_service.punch_out(
            company_id=data.get("company_id"),
            user_id=data.get("user_id"),
            company_user_id=data.get("company_user_id"),
            time=data.get("punch_out"),
            location=data.get("punch_out_location"),
            remarks=data.get("remarks"),
            status=data.get("status"),
        )
        return ok(
            result.attendance,
            message="Punch Out successful!",
            current_punch=result.punch,
            user_status=result.eligibility,
        )

    @app.route("/api/attendance/status", methods=["GET"], endpoint="attendance_status")
    def attendance_status():
        result = container.attendance_service.check_status(
            company_id=request.args.get("company_id"),
            user_id=request.args.get("user_id"),
            company_user_id=request.args.get("company_user_id"),
            at=request.args.get("at"),
        )
        return ok(result)

    @app.route("/api/attendance", methods=["GET"], endpoint="list_attendance")
    def list_attendance():
        result = container.attendance_service.list(
            company_id=request.args.get("company_id", type=int),
            user_id=request.args.get("user_id", type=int),
            start_date=request.args.get("start_date"),
            end_date=request.args.get("end_date"),
            page=request.args.get("page"),
            limit=request.args.get("limit", current_app.config.get("DEFAULT_PAGE_SIZE")),
        )
        return ok(result["items"], pagination=result["pagination"])

    @app.route("/api/attendance/user", methods=["GET"], endpoint="user_attendance")
    def user_attendance():
        records = container.attendance_service.user_attendance(
            company_id=request.args.get("company_id"),
            user_id=request.args.get("user_id"),
            day=request.args.get("date"),
            start_date=request.args.get("start_date"),
            end_date=request.args.get("end_date"),
        )
        return ok(records)

    @app.route("/api/attendance/summary", methods=["GET"], endpoint="attendance_summary")
    def attendance_summary():
        summary = container.attendance_service.monthly_summary(
            company_id=request.args.get("company_id"),
            user_id=request.args.get("user_id"),
            month=request.args.get("month"),
        )
        return ok(summary)

    @app.route("/api/attendance/<int:attendance_id>", methods=["GET"], endpoint="get_attendance")
    def get_attendance(attendance_id: int):
        return ok(container.attendance_service.get(attendance_id))

    @app.route("/api/attendance/<int:attendance_id>", methods=["PATCH", "PUT"], endpoint="update_attendance")
    def update_attendance(attendance_id: int):
        data = json_body()
        attendance = container.attendance_service.update(
            attendance_id,
            status=data.get("status"),
            work_hours=data.get("work_hours"),
            overtime=data.get("overtime"),
        )
        return ok(attendance, message="Attendance updated successfully")

    @app.route("/api/attendance/<int:attendance_id>", methods=["DELETE"], endpoint="delete_attendance")
    def delete_attendance(attendance_id: int):
        container.attendance_service.remove(attendance_id)
        return ok(message="Attendance record deleted successfully")
