from __future__ import annotations

from flask import Flask

from ..common.http import json_body, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/companies", methods=["GET"], endpoint="list_companies")
    def list_companies():
        return ok(container.company_service.list_all())

    @app.route("/api/companies", methods=["POST"], endpoint="create_company")
    def create_company():
        data = json_body()
        company = container.company_service.create(
            name=data.get("name", ""),
            email=data.get("email"),
            phone=data.get("phone"),
            address=data.get("address"),
            is_active=bool(data.get("is_active", True)),
        )
        return ok(company, message="Company created successfully", status=201)

    @app.route("/api/companies/<int:company_id>", methods=["GET"], endpoint="get_company")
    def get_company(company_id: int):
        return ok(container.company_service.get(company_id))

    @app.route("/api/companies/<int:company_id>", methods=["PUT", "PATCH"], endpoint="update_company")
    def update_company(company_id: int):
        company = container.company_service.update(company_id, **json_body())
        return ok(company, message="Company updated successfully")

    @app.route("/api/companies/<int:company_id>", methods=["DELETE"], endpoint="delete_company")
    def delete_company(company_id: int):
        container.company_service.delete(company_id)
        return ok(message="Company deleted successfully")

    @app.route("/api/companies/<int:company_id>/roles", methods=["GET"], endpoint="list_company_roles")
    def list_company_roles(company_id: int):
        return ok(container.role_service.list_for_company(company_id))

    @app.route("/api/roles", methods=["POST"], endpoint="create_role")
    def create_role():
        data = json_body()
        role = container.role_service.create(
            company_id=data.get("company_id"),
            name=data.get("name", ""),
            description=data.get("description"),
        )
        return ok(role, message="Role created successfully", status=201)

    @app.route("/api/roles/<int:role_id>", methods=["GET"], endpoint="get_role")
    def get_role(role_id: int):
        return ok(container.role_service.get(role_id))

    @app.route("/api/roles/<int:role_id>", methods=["PUT", "PATCH"], endpoint="update_role")
    def update_role(role_id: int):
        data = json_body()
        role = container.role_service.update(role_id, name=data.get("name"), description=data.get("description"))
        return ok(role, message="Role updated successfully")

    @app.route("/api/roles/<int:role_id>", methods=["DELETE"], endpoint="delete_role")
    def delete_role(role_id: int):
        container.role_service.delete(role_id)
        return ok(message="Role deleted successfully")
