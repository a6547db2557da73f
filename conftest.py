"""Shared fixtures for the ledger test suite."""

import random
from datetime import date
from decimal import Decimal

import pytest

from core.audit.events import AuditLogger, InMemoryAuditBackend
from payroll.db import InMemoryLedgerStore, SqliteLedgerStore
from payroll.identifiers import new_identifier
from payroll.models import (
    Employee,
    EmployeeType,
    PaymentEntry,
    PaymentStatus,
    PayProfile,
    SalaryRecord,
)


SCHOOL_ID = "64b7f1f77bcf86cd79943901"
OTHER_SCHOOL_ID = "64b7f1f77bcf86cd79943902"
TODAY = date(2026, 5, 10)


@pytest.fixture
def school_id():
    return SCHOOL_ID


@pytest.fixture
def store():
    return InMemoryLedgerStore()


@pytest.fixture
def sqlite_store(tmp_path):
    return SqliteLedgerStore(tmp_path / "ledger.db")


@pytest.fixture(params=["memory", "sqlite"])
def any_store(request, tmp_path):
    """Run a test against both store implementations."""
    if request.param == "memory":
        return InMemoryLedgerStore()
    return SqliteLedgerStore(tmp_path / "ledger.db")


@pytest.fixture
def rng():
    return random.Random(42)


def make_employee(employee_type=EmployeeType.TEACHER, name="Sita Sharma", base_salary=None,
                  school_id=SCHOOL_ID, position=None):
    salary = None
    if base_salary is not None:
        salary = PayProfile(base_salary=Decimal(base_salary), net_salary=Decimal(base_salary))
    return Employee(
        school_id=school_id,
        employee_type=employee_type,
        name=name,
        position=position,
        salary=salary,
    )


def make_record(employee, employee_type=EmployeeType.TEACHER, base_salary=30000,
                payments=(), school_id=SCHOOL_ID, position="Teacher"):
    """Salary record referencing ``employee`` (an Employee, or any raw value)."""
    reference = employee.id if isinstance(employee, Employee) else employee
    return SalaryRecord(
        id=new_identifier(),
        school_id=school_id,
        employee_type=employee_type,
        employee=reference,
        position=position,
        base_salary=Decimal(base_salary),
        payment_history=[
            PaymentEntry(
                month="April",
                year=2026,
                amount=Decimal(amount),
                payment_date=date(2026, 4, 1),
                status=status,
                payment_method="bank",
            )
            for amount, status in payments
        ],
    )


@pytest.fixture
def roster(store):
    """Three teachers and two staff, none with pay configured."""
    employees = [
        make_employee(EmployeeType.TEACHER, "Sita Sharma"),
        make_employee(EmployeeType.TEACHER, "Ram Thapa"),
        make_employee(EmployeeType.TEACHER, "Gita Karki"),
        make_employee(EmployeeType.STAFF, "Maya Gurung", position="Accountant"),
        make_employee(EmployeeType.STAFF, "Bikash Rai"),
    ]
    for employee in employees:
        store.insert(employee)
    return employees


PAID = PaymentStatus.PAID
PENDING = PaymentStatus.PENDING
FAILED = PaymentStatus.FAILED


@pytest.fixture
def audit():
    logger = AuditLogger()
    logger.add_backend(InMemoryAuditBackend())
    return logger
