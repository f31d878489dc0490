from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_datetime
from ..common.http import json_body, ok
from ..container import Container


def _bool_arg(name: str):
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    return raw.lower() in ("1", "true", "yes")


def register(app: Flask, container: Container) -> None:
    @app.route("/api/shifts", methods=["POST"], endpoint="create_shift")
    def create_shift():
        data = json_body()
        shift = container.shift_service.create(
            company_id=data.get("company_id"),
            created_by=data.get("created_by"),
            attributes=data.get("shift_attributes") or [],
        )
        return ok(shift, message="Shift created successfully", status=201)

    @app.route("/api/shifts", methods=["GET"], endpoint="list_shifts")
    def list_shifts():
        shifts = container.shift_service.list(
            company_id=request.args.get("company_id", type=int),
            created_by=request.args.get("created_by", type=int),
            assigned_company_user_id=request.args.get("assigned_user_id", type=int),
            shift_name=request.args.get("shift_name"),
            is_active=_bool_arg("is_active"),
        )
        return ok(shifts, message="Shifts retrieved successfully")

    @app.route("/api/shifts/current", methods=["GET"], endpoint="current_shift")
    def current_shift():
        company_user_id = request.args.get("company_user_id", type=int) or 0
        company_id = request.args.get("company_id", type=int) or 0
        attribute = container.shift_service.current_shift(company_user_id=company_user_id, company_id=company_id)
        at = request.args.get("at")
        window = container.shift_service.check_window(
            company_user_id=company_user_id,
            company_id=company_id,
            now=parse_iso_datetime(at) if at else None,
        )
        return ok(attribute, window=window)

    @app.route("/api/shifts/<int:shift_id>", methods=["GET"], endpoint="get_shift")
    def get_shift(shift_id: int):
        return ok(container.shift_service.get(shift_id), message="Shift retrieved successfully")

    @app.route("/api/shifts/<int:shift_id>", methods=["PATCH", "PUT"], endpoint="update_shift")
    def update_shift(shift_id: int):
        data = json_body()
        shift = container.shift_service.update(
            shift_id, company_id=data.get("company_id"), created_by=data.get("created_by")
        )
        return ok(shift, message="Shift updated successfully")

    @app.route("/api/shifts/<int:shift_id>", methods=["DELETE"], endpoint="delete_shift")
    def delete_shift(shift_id: int):
        container.shift_service.delete(shift_id)
        return ok(message="Shift deleted successfully")

    @app.route("/api/shifts/assign", methods=["POST"], endpoint="assign_shift")
    def assign_shift():
        data = json_body()
        result = container.shift_service.assign(
            shift_attribute_id=data.get("shift_attribute_id"),
            assigned_user_ids=data.get("assigned_user_ids") or [],
            remove_user_ids=data.get("remove_user_ids"),
        )
        return ok(
            result.attribute,
            message="Shift assignments updated successfully",
            meta={
                "assignments_created": result.assignments_created,
                "existing_users_skipped": result.existing_users_skipped,
                "users_removed": result.users_removed,
            },
        )

    @app.route("/api/shift-attributes/<int:shift_attribute_id>", methods=["PATCH", "PUT"], endpoint="update_shift_attribute")
    def update_shift_attribute(shift_attribute_id: int):
        attribute = container.shift_service.update_attribute(shift_attribute_id, json_body())
        return ok(attribute, message="Shift attribute updated successfully")

    @app.route("/api/shift-attributes/<int:shift_attribute_id>", methods=["DELETE"], endpoint="delete_shift_attribute")
    def delete_shift_attribute(shift_attribute_id: int):
        container.shift_service.delete_attribute(shift_attribute_id)
        return ok(message="Shift attribute deleted successfully")
