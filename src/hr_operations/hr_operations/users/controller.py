from __future__ import annotations

from flask import Flask, request

from ..common.http import json_body, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/users", methods=["GET"], endpoint="list_users")
    def list_users():
        return ok(container.user_service.list_all())

    @app.route("/api/users", methods=["POST"], endpoint="create_user")
    def create_user():
        data = json_body()
        user = container.user_service.create(email=data.get("email", ""), is_active=bool(data.get("is_active", True)))
        return ok(user, message="User created successfully", status=201)

    @app.route("/api/users/<int:user_id>", methods=["GET"], endpoint="get_user")
    def get_user(user_id: int):
        return ok(container.user_service.get(user_id))

    @app.route("/api/users/<int:user_id>", methods=["PUT", "PATCH"], endpoint="update_user")
    def update_user(user_id: int):
        data = json_body()
        user = container.user_service.update(user_id, email=data.get("email"), is_active=data.get("is_active"))
        return ok(user, message="User updated successfully")

    @app.route("/api/users/<int:user_id>", methods=["DELETE"], endpoint="delete_user")
    def delete_user(user_id: int):
        container.user_service.delete(user_id)
        return ok(message="User deleted successfully")

    @app.route("/api/company-users", methods=["GET"], endpoint="list_company_users")
    def list_company_users():
        members = container.company_user_service.list(
            company_id=request.args.get("company_id", type=int),
            user_id=request.args.get("user_id", type=int),
        )
        return ok(members)

    @app.route("/api/company-users", methods=["POST"], endpoint="create_company_user")
    def create_company_user():
        data = json_body()
        member = container.company_user_service.create(
            user_id=data.get("user_id"),
            company_id=data.get("company_id"),
            role_id=data.get("role_id"),
            first_name=data.get("first_name"),
            middle_name=data.get("middle_name"),
            last_name=data.get("last_name"),
            status=data.get("status") or "PENDING",
            is_active=bool(data.get("is_active", True)),
        )
        return ok(member, message="Company user created successfully", status=201)

    @app.route("/api/company-users/<int:company_user_id>", methods=["GET"], endpoint="get_company_user")
    def get_company_user(company_user_id: int):
        return ok(container.company_user_service.get(company_user_id))

    @app.route("/api/company-users/<int:company_user_id>", methods=["PUT", "PATCH"], endpoint="update_company_user")
    def update_company_user(company_user_id: int):
        member = container.company_user_service.update(company_user_id, **json_body())
        return ok(member, message="Company user updated successfully")

    @app.route("/api/company-users/<int:company_user_id>/status", methods=["PATCH"], endpoint="update_company_user_status")
    def update_company_user_status(company_user_id: int):
        member = container.company_user_service.update_status(company_user_id, json_body().get("status"))
        return ok(member, message="Status updated successfully")

    @app.route("/api/company-users/<int:company_user_id>", methods=["DELETE"], endpoint="delete_company_user")
    def delete_company_user(company_user_id: int):
        container.company_user_service.delete(company_user_id)
        return ok(message="Company user deleted successfully")
