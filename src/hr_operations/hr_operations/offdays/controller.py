from __future__ import annotations

from flask import Flask, current_app, request

from ..common.http import json_body, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/company-offs", methods=["POST"], endpoint="create_company_off")
    def create_company_off():
        data = json_body()
        company_off = container.company_off_service.create(
            company_id=data.get("company_id"),
            week_days=data.get("week_days") or [],
            description=data.get("description"),
        )
        return ok(company_off, message="Company off saved successfully", status=201)

    @app.route("/api/company-offs", methods=["GET"], endpoint="list_company_offs")
    def list_company_offs():
        result = container.company_off_service.list(
            company_id=request.args.get("company_id", type=int),
            page=request.args.get("page"),
            limit=request.args.get("limit", current_app.config.get("DEFAULT_PAGE_SIZE")),
        )
        return ok(result["items"], pagination=result["pagination"])

    @app.route("/api/company-offs/<int:company_off_id>", methods=["GET"], endpoint="get_company_off")
    def get_company_off(company_off_id: int):
        return ok(container.company_off_service.get(company_off_id))

    @app.route("/api/company-offs/<int:company_off_id>", methods=["PATCH", "PUT"], endpoint="update_company_off")
    def update_company_off(company_off_id: int):
        data = json_body()
        company_off = container.company_off_service.update(
            company_off_id, week_days=data.get("week_days"), description=data.get("description")
        )
        return ok(company_off, message="Company off updated successfully")

    @app.route("/api/company-offs/<int:company_off_id>", methods=["DELETE"], endpoint="delete_company_off")
    def delete_company_off(company_off_id: int):
        container.company_off_service.delete(company_off_id)
        return ok(message="Company off deleted successfully")

    @app.route("/api/companies/<int:company_id>/week-off", methods=["GET"], endpoint="company_week_off")
    def company_week_off(company_id: int):
        return ok(container.company_off_service.week_off(company_id))

    @app.route("/api/off-days", methods=["POST"], endpoint="create_off_day")
    def create_off_day():
        data = json_body()
        off_day = container.off_day_service.create(
            company_id=data.get("company_id"),
            created_by=data.get("created_by"),
            name=data.get("name", ""),
            holiday_type=data.get("holiday_type", ""),
            from_date=data.get("from_date"),
            to_date=data.get("to_date"),
            start_time=data.get("start_time"),
            end_time=data.get("end_time"),
            description=data.get("description"),
            user_ids=data.get("user_ids"),
        )
        return ok(off_day, message="Off day created successfully", status=201)

    @app.route("/api/companies/<int:company_id>/off-days", methods=["GET"], endpoint="list_company_off_days")
    def list_company_off_days(company_id: int):
        off_days = container.off_day_service.list_for_company(
            company_id, from_date=request.args.get("from_date"), to_date=request.args.get("to_date")
        )
        return ok(off_days)

    @app.route("/api/company-users/<int:company_user_id>/off-days", methods=["GET"], endpoint="list_member_off_days")
    def list_member_off_days(company_user_id: int):
        if request.args.get("upcoming"):
            off_days = container.off_day_service.upcoming_for_member(
                company_user_id, days=request.args.get("days", default=30, type=int)
            )
        else:
            off_days = container.off_day_service.list_for_member(
                company_user_id, from_date=request.args.get("from_date"), to_date=request.args.get("to_date")
            )
        return ok(off_days)

    @app.route("/api/off-days/<int:off_day_id>", methods=["GET"], endpoint="get_off_day")
    def get_off_day(off_day_id: int):
        return ok(container.off_day_service.get(off_day_id))

    @app.route("/api/off-days/<int:off_day_id>", methods=["PATCH", "PUT"], endpoint="update_off_day")
    def update_off_day(off_day_id: int):
        return ok(container.off_day_service.update(off_day_id, json_body()), message="Off day updated successfully")

    @app.route("/api/off-days/<int:off_day_id>", methods=["DELETE"], endpoint="delete_off_day")
    def delete_off_day(off_day_id: int):
        container.off_day_service.delete(off_day_id)
        return ok(message="Off day deleted successfully")
