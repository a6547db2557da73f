"""Single-record ledger operations.

- assign_salary: create or update an employee's active salary record
- record_payment: append a paid entry to a record's history
- payment_history: read a record's history
- archive_salary: retire a record without deleting it
"""

from datetime import date
from typing import List, Optional

from core.audit.events import AuditEventType, AuditLogger
from core.observability.logging import get_logger
from payroll.calculator import Number, to_decimal
from payroll.db import LedgerStore
from payroll.errors import RecordNotFoundError
from payroll.models import (
    Allowances,
    Deductions,
    EmployeeType,
    PaymentEntry,
    PaymentStatus,
    RecordStatus,
    SalaryRecord,
)


logger = get_logger(__name__)


def _require(store: LedgerStore, salary_id: str) -> SalaryRecord:
    record = store.get(SalaryRecord, salary_id)
    if record is None:
        raise RecordNotFoundError(SalaryRecord.collection, salary_id)
    return record


def assign_salary(
    store: LedgerStore,
    school_id: str,
    employee_type: EmployeeType,
    employee_id: str,
    position: str,
    base_salary: Number,
    allowances: Optional[Allowances] = None,
    deductions: Optional[Deductions] = None,
    effective_date: Optional[date] = None,
    audit: Optional[AuditLogger] = None,
) -> SalaryRecord:
    """Set an employee's pay configuration.

    Updates the active record for (school, type, employee) in place when one
    exists; otherwise creates it. Payment history is never touched.
    """
    allowances = allowances or Allowances()
    deductions = deductions or Deductions()
    changes = {
        "position": position,
        "base_salary": to_decimal(base_salary),
        "allowances": allowances,
        "deductions": deductions,
        "effective_date": effective_date or date.today(),
    }

    existing = store.find_one(SalaryRecord, {
        "school_id": school_id,
        "employee_type": employee_type,
        "employee": employee_id,
        "status": RecordStatus.ACTIVE,
    })

    if existing is not None:
        record = store.update_by_id(SalaryRecord, existing.id, changes)
        logger.info(f"Updated salary record {existing.id}")
    else:
        record = SalaryRecord(
            school_id=school_id,
            employee_type=employee_type,
            employee=employee_id,
            **changes,
        )
        store.insert(record)
        logger.info(f"Created salary record {record.id}")

    if audit is not None:
        audit.log_info(
            AuditEventType.SALARY_ASSIGNED,
            f"Salary assigned: {record.base_salary}",
            school_id=school_id,
            salary_id=record.id,
            employee_id=employee_id,
        )
    return record


def record_payment(
    store: LedgerStore,
    salary_id: str,
    month: str,
    year: int,
    amount: Number,
    payment_method: str,
    today: Optional[date] = None,
    audit: Optional[AuditLogger] = None,
) -> SalaryRecord:
    """Append a paid entry dated today to a salary record."""
    record = _require(store, salary_id)
    entry = PaymentEntry(
        month=month,
        year=year,
        amount=to_decimal(amount),
        payment_date=today or date.today(),
        status=PaymentStatus.PAID,
        payment_method=payment_method,
    )
    updated = store.update_by_id(SalaryRecord, salary_id, {
        "payment_history": record.payment_history + [entry],
    })
    if audit is not None:
        audit.log_info(
            AuditEventType.PAYMENT_RECORDED,
            f"Payment recorded for {month} {year}: {entry.amount}",
            school_id=record.school_id,
            salary_id=salary_id,
        )
    return updated


def payment_history(store: LedgerStore, salary_id: str) -> List[PaymentEntry]:
    return _require(store, salary_id).payment_history


def archive_salary(
    store: LedgerStore,
    salary_id: str,
    audit: Optional[AuditLogger] = None,
) -> SalaryRecord:
    """Soft delete: mark the record archived so it drops out of active queries."""
    record = _require(store, salary_id)
    updated = store.update_by_id(SalaryRecord, salary_id, {"status": RecordStatus.ARCHIVED})
    if audit is not None:
        audit.log_info(
            AuditEventType.SALARY_ARCHIVED,
            "Salary record archived",
            school_id=record.school_id,
            salary_id=salary_id,
            details=record.audit_details(),
        )
    return updated
