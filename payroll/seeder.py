"""Ledger seeding.

Creates one active salary record, with generated pay figures and three months
of paid history, for every roster entry that lacks one. Seeding is idempotent:
an employee that already has an active record for the school is skipped.

The record insert, the roster mirror and the history append are separate
store calls. When either follow-up write fails the ledger record stays in
place and the employee's outcome is marked PARTIAL_WRITE, so the
inconsistency is visible in the result and the audit trail. Running the
seeder again does not repair it; it skips the employee because the ledger
record exists.

The existence check is read-then-write. Two processes seeding the same school
at once can both pass the check and create duplicates.
"""

import random
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Tuple

from core.audit.events import AuditEventType, AuditLogger
from core.observability.logging import get_logger, with_correlation
from payroll.calculator import PayBreakdown, compute_pay_for
from payroll.db import LedgerStore
from payroll.errors import PartialWriteError, StoreConnectionError
from payroll.history import DEFAULT_MONTHS_BACK, generate_history
from payroll.models import (
    Employee,
    EmployeeType,
    PaymentEntry,
    RecordStatus,
    ROSTER_TYPES,
    SalaryRecord,
)


logger = get_logger(__name__)


# Inclusive-exclusive base salary ranges; teachers are paid more by policy
SALARY_RANGES: Dict[EmployeeType, Tuple[int, int]] = {
    EmployeeType.TEACHER: (25000, 40000),
    EmployeeType.STAFF: (15000, 25000),
}

PAYMENT_METHODS: Dict[EmployeeType, str] = {
    EmployeeType.TEACHER: "bank",
    EmployeeType.STAFF: "cash",
}

DEFAULT_TEACHER_LIMIT = 3
DEFAULT_STAFF_LIMIT = 2


class SeedStatus(str, Enum):
    CREATED = "CREATED"
    SKIPPED = "SKIPPED"
    PARTIAL_WRITE = "PARTIAL_WRITE"
    FAILED = "FAILED"


@dataclass
class SeedOutcome:
    """What happened to one roster entry during seeding."""
    employee_id: str
    employee_type: EmployeeType
    name: str
    status: SeedStatus
    salary_id: Optional[str] = None
    base_salary: Optional[Decimal] = None
    net_salary: Optional[Decimal] = None
    message: str = ""

    def to_dict(self) -> Dict:
        return {
            "employee_id": self.employee_id,
            "employee_type": self.employee_type.value,
            "name": self.name,
            "status": self.status.value,
            "salary_id": self.salary_id,
            "base_salary": str(self.base_salary) if self.base_salary is not None else None,
            "net_salary": str(self.net_salary) if self.net_salary is not None else None,
            "message": self.message,
        }


@dataclass
class SeedResult:
    school_id: str
    outcomes: List[SeedOutcome] = field(default_factory=list)
    teachers_found: int = 0
    staff_found: int = 0

    @property
    def created_count(self) -> int:
        """Records written, including those whose roster mirror failed."""
        return sum(
            1 for o in self.outcomes
            if o.status in (SeedStatus.CREATED, SeedStatus.PARTIAL_WRITE)
        )

    @property
    def warnings(self) -> List[SeedOutcome]:
        return [o for o in self.outcomes if o.status in (SeedStatus.PARTIAL_WRITE, SeedStatus.FAILED)]

    def count(self, status: SeedStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    def to_dict(self) -> Dict:
        return {
            "school_id": self.school_id,
            "created_count": self.created_count,
            "skipped_count": self.count(SeedStatus.SKIPPED),
            "partial_write_count": self.count(SeedStatus.PARTIAL_WRITE),
            "failed_count": self.count(SeedStatus.FAILED),
            "teachers_found": self.teachers_found,
            "staff_found": self.staff_found,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


def draw_base_salary(employee_type: EmployeeType, rng: random.Random) -> Decimal:
    low, high = SALARY_RANGES[employee_type]
    return Decimal(rng.randrange(low, high))


def position_for(employee: Employee) -> str:
    if employee.employee_type == EmployeeType.TEACHER:
        return "Teacher"
    return employee.position or "Staff"


def find_active_record(
    store: LedgerStore,
    school_id: str,
    employee_type: EmployeeType,
    employee_id: str,
) -> Optional[SalaryRecord]:
    return store.find_one(SalaryRecord, {
        "school_id": school_id,
        "employee_type": employee_type,
        "employee": employee_id,
        "status": RecordStatus.ACTIVE,
    })


def mirror_pay_profile(store: LedgerStore, employee: Employee, pay: PayBreakdown, salary_id: str) -> None:
    """Copy the computed pay profile onto the roster entry.

    Raises:
        PartialWriteError: the roster write failed or the employee is gone
    """
    try:
        updated = store.update_by_id(Employee, employee.id, {"salary": pay.to_profile()})
    except StoreConnectionError:
        raise
    except Exception as e:
        raise PartialWriteError(
            f"Roster mirror failed for {employee.id}: {e}",
            salary_id=salary_id,
            employee_id=employee.id,
            cause=e,
        ) from e
    if updated is None:
        raise PartialWriteError(
            f"Roster entry {employee.id} disappeared before its pay profile was mirrored",
            salary_id=salary_id,
            employee_id=employee.id,
        )


def append_history(store: LedgerStore, record: SalaryRecord, history: List[PaymentEntry]) -> None:
    """Append generated payments to a freshly inserted record.

    Raises:
        PartialWriteError: the history write failed or the record is gone
    """
    try:
        updated = store.update_by_id(SalaryRecord, record.id, {
            "payment_history": record.payment_history + history,
        })
    except StoreConnectionError:
        raise
    except Exception as e:
        raise PartialWriteError(
            f"Payment history append failed for {record.id}: {e}",
            salary_id=record.id,
            employee_id=record.employee,
            cause=e,
        ) from e
    if updated is None:
        raise PartialWriteError(
            f"Salary record {record.id} disappeared before its payment history was written",
            salary_id=record.id,
            employee_id=record.employee,
        )


def _mark_partial(outcome: SeedOutcome, error: PartialWriteError) -> None:
    outcome.status = SeedStatus.PARTIAL_WRITE
    outcome.message = f"{outcome.message}; {error}" if outcome.message else str(error)


def seed_employee(
    store: LedgerStore,
    school_id: str,
    employee: Employee,
    rng: random.Random,
    today: date,
    audit: Optional[AuditLogger] = None,
) -> SeedOutcome:
    """Create the ledger record, mirror and history for one employee."""
    outcome = SeedOutcome(
        employee_id=employee.id,
        employee_type=employee.employee_type,
        name=employee.name,
        status=SeedStatus.SKIPPED,
    )

    existing = find_active_record(store, school_id, employee.employee_type, employee.id)
    if existing is not None:
        outcome.salary_id = existing.id
        outcome.message = "salary record already exists"
        logger.info(f"Skipping {employee.name} - salary record already exists")
        return outcome

    base_salary = draw_base_salary(employee.employee_type, rng)
    pay = compute_pay_for(employee.employee_type, base_salary)

    record = SalaryRecord(
        school_id=school_id,
        employee_type=employee.employee_type,
        employee=employee.id,
        position=position_for(employee),
        base_salary=pay.base_salary,
        allowances=pay.allowances,
        deductions=pay.deductions,
        status=RecordStatus.ACTIVE,
        effective_date=today,
    )
    store.insert(record)

    outcome.salary_id = record.id
    outcome.base_salary = pay.base_salary
    outcome.net_salary = pay.net_salary
    outcome.status = SeedStatus.CREATED

    try:
        mirror_pay_profile(store, employee, pay, record.id)
    except PartialWriteError as e:
        _mark_partial(outcome, e)
        logger.warning(
            f"Salary record {record.id} created but roster pay profile not mirrored",
            extra_fields={"error": str(e)},
        )
        if audit is not None:
            audit.log_warning(
                AuditEventType.ROSTER_MIRROR_FAILED,
                str(e),
                school_id=school_id,
                salary_id=record.id,
                employee_id=employee.id,
            )

    history = generate_history(
        pay.net_salary,
        DEFAULT_MONTHS_BACK,
        PAYMENT_METHODS[employee.employee_type],
        today=today,
    )
    payments_added = len(history)
    try:
        append_history(store, record, history)
    except PartialWriteError as e:
        _mark_partial(outcome, e)
        payments_added = 0
        logger.warning(
            f"Salary record {record.id} created without payment history",
            extra_fields={"error": str(e)},
        )
        if audit is not None:
            audit.log_warning(
                AuditEventType.HISTORY_APPEND_FAILED,
                str(e),
                school_id=school_id,
                salary_id=record.id,
                employee_id=employee.id,
            )

    logger.info(
        f"Created salary for {employee.employee_type.value}: {employee.name} - {pay.base_salary}/month",
        extra_fields={
            "base_salary": str(pay.base_salary),
            "net_salary": str(pay.net_salary),
            "payments_added": payments_added,
        },
    )
    if audit is not None:
        audit.log_info(
            AuditEventType.SALARY_RECORD_CREATED,
            f"Created salary record for {employee.name}",
            school_id=school_id,
            salary_id=record.id,
            employee_id=employee.id,
            details={"base_salary": str(pay.base_salary), "net_salary": str(pay.net_salary)},
        )
    return outcome


def seed(
    store: LedgerStore,
    school_id: str,
    teacher_limit: int = DEFAULT_TEACHER_LIMIT,
    staff_limit: int = DEFAULT_STAFF_LIMIT,
    rng: Optional[random.Random] = None,
    today: Optional[date] = None,
    audit: Optional[AuditLogger] = None,
) -> SeedResult:
    """Seed missing salary records for a school.

    Teachers are processed first, then staff, each capped by its limit.
    A failure on one employee is recorded on that employee's outcome and the
    batch carries on; StoreConnectionError aborts the run.

    Args:
        store: Ledger store
        school_id: Organization scope
        teacher_limit: Maximum teachers to consider
        staff_limit: Maximum staff to consider
        rng: Random source for base salaries (seed it for reproducible fixtures)
        today: Reference date for history and effective date
        audit: Optional audit trail

    Returns:
        SeedResult with per-employee outcomes and created_count
    """
    rng = rng or random.Random()
    today = today or date.today()
    result = SeedResult(school_id=school_id)

    limits = {EmployeeType.TEACHER: teacher_limit, EmployeeType.STAFF: staff_limit}

    with with_correlation(school_id=school_id, stage="seed"):
        roster: List[Employee] = []
        for employee_type in ROSTER_TYPES:
            found = store.find(
                Employee,
                {"school_id": school_id, "employee_type": employee_type},
                limit=limits[employee_type],
            )
            if employee_type == EmployeeType.TEACHER:
                result.teachers_found = len(found)
            else:
                result.staff_found = len(found)
            roster.extend(found)

        logger.info(f"Found {result.teachers_found} teachers and {result.staff_found} staff")
        if not roster:
            logger.warning("No employees found. Add employees before seeding.")
            return result

        for employee in roster:
            with with_correlation(employee_id=employee.id):
                try:
                    outcome = seed_employee(store, school_id, employee, rng, today, audit)
                except StoreConnectionError:
                    raise
                except Exception as e:
                    logger.exception(f"Seeding failed for {employee.name}: {e}")
                    outcome = SeedOutcome(
                        employee_id=employee.id,
                        employee_type=employee.employee_type,
                        name=employee.name,
                        status=SeedStatus.FAILED,
                        message=str(e),
                    )
                    if audit is not None:
                        audit.log_error(
                            AuditEventType.SEED_EMPLOYEE_FAILED,
                            str(e),
                            school_id=school_id,
                            employee_id=employee.id,
                        )
                result.outcomes.append(outcome)

        logger.info(f"Created {result.created_count} new salary records")

    return result
