from __future__ import annotations

import io
import os
from datetime import datetime

import pytest

from src.hr_operations.hr_operations.attendance.eligibility import EligibilityGate
from src.hr_operations.hr_operations.attendance.service import AttendanceService
from src.hr_operations.hr_operations.companies.model import Company
from src.hr_operations.hr_operations.companies.service import CompanyService, RoleService
from src.hr_operations.hr_operations.container import Container
from src.hr_operations.hr_operations.core.enums import CompanyUserStatus
from src.hr_operations.hr_operations.leaves.allocation_service import LeaveAllocationService
from src.hr_operations.hr_operations.leaves.service import LeaveService
from src.hr_operations.hr_operations.main import create_app
from src.hr_operations.hr_operations.offdays.service import CompanyOffService, OffDayService
from src.hr_operations.hr_operations.shifts.service import ShiftService
from src.hr_operations.hr_operations.users.model import CompanyUser
from src.hr_operations.hr_operations.users.service import CompanyUserService, UserService
from tests.fakes import (
    FakeTx,
    InMemoryAllocations,
    InMemoryAttendance,
    InMemoryCompanies,
    InMemoryCompanyOffs,
    InMemoryLeaveRecords,
    InMemoryLeaves,
    InMemoryMembers,
    InMemoryOffDays,
    InMemoryRoles,
    InMemoryShifts,
    InMemoryUsers,
)


def clock():
    return datetime(2026, 3, 1, 9)


@pytest.fixture()
def client(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    tx = FakeTx()
    companies = InMemoryCompanies(Company(1, "Acme"))
    roles = InMemoryRoles()
    users = InMemoryUsers()
    members = InMemoryMembers(CompanyUser(20, 10, 1, 1, "Engineer", status=CompanyUserStatus.ACTIVE))
    shifts = InMemoryShifts()
    company_offs = InMemoryCompanyOffs()
    off_days = InMemoryOffDays()
    leaves = InMemoryLeaves()
    allocations = InMemoryAllocations()
    records = InMemoryLeaveRecords(allocations)

    container = Container(
        conn=tx,
        company_service=CompanyService(companies),
        role_service=RoleService(roles, companies),
        user_service=UserService(users),
        company_user_service=CompanyUserService(members, users, companies, roles),
        shift_service=ShiftService(shifts, members, companies, tx),
        company_off_service=CompanyOffService(company_offs, companies),
        off_day_service=OffDayService(off_days, company_offs, companies, members, tx),
        attendance_service=AttendanceService(
            InMemoryAttendance(),
            companies,
            members,
            shifts,
            EligibilityGate(leaves, off_days, company_offs),
            tx,
            clock=clock,
        ),
        leave_allocation_service=LeaveAllocationService(allocations, records, companies, members, tx, clock=clock),
        leave_service=LeaveService(leaves, allocations, records, members, tx, clock=clock),
    )
    app = create_app(container)
    return app.test_client()


def _allocate(client, days=5):
    resp = client.post(
        "/api/leave-allocations",
        json={
            "company_id": 1,
            "created_by": 20,
            "leave_attributes": [{"leave_name": "Annual", "role": "Engineer", "allocated_days": days}],
        },
    )
    assert resp.status_code == 201
    return resp.get_json()["data"]["attributes"][0]["leave_attribute_id"]


def test_unknown_leave_is_a_json_404(client):
    resp = client.get("/api/leaves/999")
    assert resp.status_code == 404
    body = resp.get_json()
    assert body["success"] is False
    assert body["error"] == "NOT_FOUND"


def test_request_leave_over_http(client):
    leave_type_id = _allocate(client)
    resp = client.post(
        "/api/leaves",
        json={
            "company_id": 1,
            "user_id": 10,
            "leave_type_id": leave_type_id,
            "start_date": "2026-03-02",
            "end_date": "2026-03-03",
        },
    )
    assert resp.status_code == 201
    data = resp.get_json()["data"]
    assert data["status"] == "PENDING"
    assert data["start_date"] == "2026-03-02"

    listed = client.get("/api/leaves?company_id=1").get_json()
    assert [item["leave_id"] for item in listed["data"]] == [data["leave_id"]]
    assert listed["pagination"]["total"] == 1


def test_insufficient_balance_is_unprocessable(client):
    leave_type_id = _allocate(client, days=2)
    resp = client.post(
        "/api/leaves",
        json={
            "company_id": 1,
            "user_id": 10,
            "leave_type_id": leave_type_id,
            "start_date": "2026-03-02",
            "end_date": "2026-03-06",
        },
    )
    assert resp.status_code == 422
    assert resp.get_json()["error"] == "INSUFFICIENT_BALANCE"


def test_malformed_body_is_rejected(client):
    resp = client.post("/api/companies", data="[1]", content_type="application/json")
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "VALIDATION_ERROR"


def _multipart_leave(leave_type_id, end_date):
    return {
        "company_id": "1",
        "user_id": "10",
        "leave_type_id": str(leave_type_id),
        "start_date": "2026-03-02",
        "end_date": end_date,
        "attachment": (io.BytesIO(b"%PDF-1.4 doctor note"), "doctor note.pdf"),
    }


def test_uploaded_attachment_is_kept_with_its_leave(client, tmp_path):
    client.application.config["UPLOAD_FOLDER"] = str(tmp_path)
    leave_type_id = _allocate(client)

    resp = client.post(
        "/api/leaves", data=_multipart_leave(leave_type_id, "2026-03-03"), content_type="multipart/form-data"
    )

    assert resp.status_code == 201
    stored = os.listdir(tmp_path)
    assert len(stored) == 1
    assert stored[0].endswith("_doctor_note.pdf")


def test_failed_leave_request_discards_its_upload(client, tmp_path):
    client.application.config["UPLOAD_FOLDER"] = str(tmp_path)
    leave_type_id = _allocate(client, days=2)

    resp = client.post(
        "/api/leaves", data=_multipart_leave(leave_type_id, "2026-03-06"), content_type="multipart/form-data"
    )

    assert resp.status_code == 422
    assert os.listdir(tmp_path) == []
