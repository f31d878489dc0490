from __future__ import annotations

from dataclasses import dataclass

from .attendance.eligibility import EligibilityGate
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .companies.mysql_company_repository import MySQLCompanyRepository, MySQLRoleRepository
from .companies.service import CompanyService, RoleService
from .database.connection import DBConfig, DatabaseConnection
from .leaves.allocation_service import LeaveAllocationService
from .leaves.mysql_allocation_repository import MySQLAllocationRepository, MySQLLeaveRecordRepository
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.service import LeaveService
from .offdays.mysql_offday_repository import MySQLCompanyOffRepository, MySQLOffDayRepository
from .offdays.service import CompanyOffService, OffDayService
from .shifts.mysql_shift_repository import MySQLShiftRepository
from .shifts.service import ShiftService
from .users.mysql_user_repository import MySQLCompanyUserRepository, MySQLUserRepository
from .users.service import CompanyUserService, UserService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    company_service: CompanyService
    role_service: RoleService
    user_service: UserService
    company_user_service: CompanyUserService
    shift_service: ShiftService
    company_off_service: CompanyOffService
    off_day_service: OffDayService
    attendance_service: AttendanceService
    leave_allocation_service: LeaveAllocationService
    leave_service: LeaveService


def build_container(*, db_config: dict) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    companies_repo = MySQLCompanyRepository(conn)
    roles_repo = MySQLRoleRepository(conn)
    users_repo = MySQLUserRepository(conn)
    members_repo = MySQLCompanyUserRepository(conn)
    shifts_repo = MySQLShiftRepository(conn)
    company_offs_repo = MySQLCompanyOffRepository(conn)
    off_days_repo = MySQLOffDayRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    allocations_repo = MySQLAllocationRepository(conn)
    records_repo = MySQLLeaveRecordRepository(conn)
    leaves_repo = MySQLLeaveRepository(conn)

    gate = EligibilityGate(leaves_repo, off_days_repo, company_offs_repo)

    return Container(
        conn=conn,
        company_service=CompanyService(companies_repo),
        role_service=RoleService(roles_repo, companies_repo),
        user_service=UserService(users_repo),
        company_user_service=CompanyUserService(members_repo, users_repo, companies_repo, roles_repo),
        shift_service=ShiftService(shifts_repo, members_repo, companies_repo, conn),
        company_off_service=CompanyOffService(company_offs_repo, companies_repo),
        off_day_service=OffDayService(off_days_repo, company_offs_repo, companies_repo, members_repo, conn),
        attendance_service=AttendanceService(
            attendance_repo,
            companies_repo,
            members_repo,
            shifts_repo,
            gate,
            conn,
        ),
        leave_allocation_service=LeaveAllocationService(
            allocations_repo, records_repo, companies_repo, members_repo, conn
        ),
        leave_service=LeaveService(leaves_repo, allocations_repo, records_repo, members_repo, conn),
    )
