from __future__ import annotations

import os
import uuid
from typing import Optional

from flask import Flask, current_app, request
from werkzeug.utils import secure_filename

from ..common.http import json_body, ok
from ..container import Container
from .model import AttachmentUpload


def _payload() -> dict:
    # Multipart requests carry the fields as form data next to the file.
    if request.files:
        return request.form.to_dict()
    return json_body()


def _attachment(data: dict) -> tuple[Optional[AttachmentUpload], bool]:
    """The upload of this request and whether its file was written here."""
    file = request.files.get("attachment")
    if file is not None and file.filename:
        folder = current_app.config.get("UPLOAD_FOLDER", "uploads")
        os.makedirs(folder, exist_ok=True)
        name = secure_filename(file.filename)
        path = os.path.join(folder, f"{uuid.uuid4().hex}_{name}")
        file.save(path)
        return AttachmentUpload(
            storage_path=path,
            file_name=name,
            file_size=os.path.getsize(path),
            mime_type=file.mimetype,
        ), True
    meta = data.get("attachment")
    if isinstance(meta, dict):
        return AttachmentUpload(
            storage_path=meta.get("storage_path") or meta.get("path") or "",
            file_name=meta.get("file_name"),
            file_size=meta.get("file_size"),
            mime_type=meta.get("mime_type"),
        ), False
    return None, False


def register(app: Flask, container: Container) -> None:
    # --- leave-type allocations ---------------------------------------------

    @app.route("/api/leave-allocations", methods=["POST"], endpoint="create_leave_allocation")
    def create_leave_allocation():
        data = json_body()
        allocation = container.leave_allocation_service.create(
            company_id=data.get("company_id"),
            created_by=data.get("created_by"),
            attributes=data.get("leave_attributes") or [],
        )
        return ok(allocation, message="Leave allocation created successfully", status=201)

    @app.route("/api/leave-allocations", methods=["GET"], endpoint="list_leave_allocations")
    def list_leave_allocations():
        allocations = container.leave_allocation_service.list(
            company_id=request.args.get("company_id"),
            leave_name=request.args.get("leave_name"),
            role=request.args.get("role"),
            year=request.args.get("year"),
        )
        return ok(allocations)

    @app.route("/api/leave-allocations/user-records", methods=["GET"], endpoint="list_user_leave_records")
    def list_user_leave_records():
        records = container.leave_allocation_service.list_user_records(
            user_id=request.args.get("user_id"),
            company_user_id=request.args.get("company_user_id"),
            company_id=request.args.get("company_id"),
            year=request.args.get("year"),
        )
        return ok(records)

    @app.route("/api/leave-allocations/carry-forward-days", methods=["POST"], endpoint="add_carry_forward")
    def add_carry_forward():
        data = json_body()
        carry = container.leave_allocation_service.add_carry_forward(
            record_id=data.get("record_id"), days=data.get("days"), year=data.get("year")
        )
        return ok(carry, message="Carry forward days added successfully", status=201)

    @app.route(
        "/api/leave-allocations/carry-forward-days/<int:carry_forward_id>",
        methods=["DELETE"],
        endpoint="remove_carry_forward",
    )
    def remove_carry_forward(carry_forward_id: int):
        container.leave_allocation_service.remove_carry_forward(carry_forward_id)
        return ok(message="Carry forward days removed successfully")

    @app.route(
        "/api/leave-allocations/user-records/<int:record_id>/carry-forward-days",
        methods=["GET"],
        endpoint="list_carry_forwards",
    )
    def list_carry_forwards(record_id: int):
        return ok(container.leave_allocation_service.list_carry_forwards(record_id))

    @app.route("/api/leave-allocations/<int:allocation_id>", methods=["GET"], endpoint="get_leave_allocation")
    def get_leave_allocation(allocation_id: int):
        return ok(container.leave_allocation_service.get(allocation_id))

    @app.route(
        "/api/leave-allocations/<int:allocation_id>", methods=["PATCH", "PUT"], endpoint="update_leave_allocation"
    )
    def update_leave_allocation(allocation_id: int):
        data = json_body()
        allocation = container.leave_allocation_service.update(
            allocation_id,
            attributes=data.get("leave_attributes"),
            new_attributes=data.get("new_leave_attributes"),
        )
        return ok(allocation, message="Leave allocation updated successfully")

    @app.route("/api/leave-allocations/<int:allocation_id>", methods=["DELETE"], endpoint="delete_leave_allocation")
    def delete_leave_allocation(allocation_id: int):
        container.leave_allocation_service.remove(allocation_id)
        return ok(message="Leave allocation deleted successfully")

    # --- leave requests -----------------------------------------------------

    @app.route("/api/leaves", methods=["POST"], endpoint="create_leave")
    def create_leave():
        data = _payload()
        attachment, stored = _attachment(data)
        try:
            leave = container.leave_service.create_leave(
                company_id=data.get("company_id"),
                user_id=data.get("user_id"),
                company_user_id=data.get("company_user_id"),
                leave_type_id=data.get("leave_type_id"),
                start_date=data.get("start_date"),
                end_date=data.get("end_date"),
                reason=data.get("reason"),
                status=data.get("status"),
                approver_id=data.get("approver_id"),
                attachment=attachment,
            )
        except Exception:
            # No leave row will point at the file.
            if stored:
                os.remove(attachment.storage_path)
            raise
        return ok(leave, message="Leave created successfully", status=201)

    @app.route("/api/leaves", methods=["GET"], endpoint="list_leaves")
    def list_leaves():
        result = container.leave_service.list(
            company_id=request.args.get("company_id"),
            user_id=request.args.get("user_id"),
            status=request.args.get("status"),
            page=request.args.get("page"),
            limit=request.args.get("limit", current_app.config.get("DEFAULT_PAGE_SIZE")),
        )
        return ok(result["items"], pagination=result["pagination"])

    @app.route("/api/leaves/stats", methods=["GET"], endpoint="leave_stats")
    def leave_stats():
        return ok(container.leave_service.stats(request.args.get("company_id")))

    @app.route("/api/leaves/balance", methods=["GET"], endpoint="leave_balance")
    def leave_balance():
        balance = container.leave_service.balance(
            user_id=request.args.get("user_id"),
            company_id=request.args.get("company_id"),
            year=request.args.get("year"),
        )
        return ok(balance)

    @app.route("/api/leaves/user/<int:user_id>", methods=["GET"], endpoint="user_leaves")
    def user_leaves(user_id: int):
        leaves = container.leave_service.user_leaves(
            user_id=user_id,
            company_id=request.args.get("company_id"),
            year=request.args.get("year"),
            status=request.args.get("status"),
        )
        return ok(leaves)

    @app.route("/api/leaves/<int:leave_id>", methods=["GET"], endpoint="get_leave")
    def get_leave(leave_id: int):
        leave = container.leave_service.get(leave_id)
        return ok(leave, leave_days=leave.leave_days)

    @app.route("/api/leaves/<int:leave_id>", methods=["PATCH", "PUT"], endpoint="update_leave")
    def update_leave(leave_id: int):
        data = json_body()
        leave = container.leave_service.update_leave(
            leave_id,
            reason=data.get("reason"),
            approver_id=data.get("approver_id"),
            start_date=data.get("start_date"),
            end_date=data.get("end_date"),
        )
        return ok(leave, message="Leave updated successfully")

    @app.route("/api/leaves/<int:leave_id>", methods=["DELETE"], endpoint="delete_leave")
    def delete_leave(leave_id: int):
        container.leave_service.remove_leave(leave_id)
        return ok(message="Leave deleted successfully")

    @app.route("/api/leaves/<int:leave_id>/approve", methods=["POST", "PATCH"], endpoint="approve_leave")
    def approve_leave(leave_id: int):
        data = json_body()
        leave = container.leave_service.approve(leave_id, approver_id=data.get("approver_id"))
        return ok(leave, message="Leave approved successfully")

    @app.route("/api/leaves/<int:leave_id>/reject", methods=["POST", "PATCH"], endpoint="reject_leave")
    def reject_leave(leave_id: int):
        data = json_body()
        leave = container.leave_service.reject(
            leave_id, approver_id=data.get("approver_id"), reason=data.get("rejection_reason")
        )
        return ok(leave, message="Leave rejected successfully")

    @app.route("/api/leaves/<int:leave_id>/cancel", methods=["POST", "PATCH"], endpoint="cancel_leave")
    def cancel_leave(leave_id: int):
        return ok(container.leave_service.cancel(leave_id), message="Leave cancelled successfully")

    @app.route("/api/leaves/<int:leave_id>/status", methods=["PATCH", "PUT"], endpoint="change_leave_status")
    def change_leave_status(leave_id: int):
        data = json_body()
        leave = container.leave_service.change_status(
            leave_id,
            status=data.get("status"),
            approver_id=data.get("approver_id"),
            reason=data.get("rejection_reason"),
        )
        return ok(leave, message="Leave status updated successfully")

    @app.route("/api/leaves/<int:leave_id>/comments", methods=["POST"], endpoint="add_leave_comment")
    def add_leave_comment(leave_id: int):
        data = json_body()
        comment = container.leave_service.add_comment(
            leave_id, company_user_id=data.get("company_user_id"), comment=data.get("comment")
        )
        return ok(comment, message="Comment added successfully", status=201)
