"""Reconciliation engine for a school's payroll ledger.

Exposes high-level functions:
- partition_records(records) -> (valid, corrupted)
- reconcile(store, school_id) -> ReconciliationReport
- ledger_totals(records) -> per-type base/allowance/deduction/net totals

Reconciliation is read-only: it never writes to the store, so it can be run
as often as needed, before and after every mutation.
"""

import time
from decimal import Decimal
from typing import Any, Dict, List, Optional, Set, Tuple

from pydantic import BaseModel, Field

from core.observability.logging import (
    get_logger,
    log_stage_complete,
    log_stage_start,
    with_correlation,
)
from payroll.db import LedgerStore
from payroll.identifiers import is_valid_identifier, reference_text
from payroll.models import Employee, EmployeeType, RecordStatus, ROSTER_TYPES, SalaryRecord


logger = get_logger(__name__)


# =============================================================================
# Configuration & Data Structures
# =============================================================================

DEFAULT_SAMPLE_SIZE = 5
ROSTER_SAMPLE_SIZE = 3


class TypeTotals(BaseModel):
    """Ledger totals for one employee type."""
    count: int = 0
    base_salary: Decimal = Decimal("0")
    allowances: Decimal = Decimal("0")
    deductions: Decimal = Decimal("0")
    net_salary: Decimal = Decimal("0")


class ReconciliationReport(BaseModel):
    """Reconciliation results for one school's ledger.

    Attributes:
        school_id: Organization scope
        total_records: Active salary records
        valid_records: Active records with a well-formed employee reference
        corrupted_records: Active records with a malformed employee reference
        teachers_with_salary: Teachers whose pay profile has base salary > 0
        staff_with_salary: Staff whose pay profile has base salary > 0
        unconfigured_pay_profiles: Roster pay profiles with base salary <= 0
        matched_teacher_records: Valid teacher records matching a paid teacher
        matched_staff_records: Valid staff records matching a paid staff member
        orphaned_records: Valid records matching no roster entry
        total_salary_paid: Sum of paid payment amounts over valid records
        totals_by_type: Ledger totals per employee type over valid records
            only; corrupted records are left out, so these totals can be
            lower than a sum over every active record
        corrupted_sample: First corrupted records, verbatim
        roster_sample: First teachers with configured pay
    """
    school_id: str = Field(..., description="Organization scope")
    total_records: int = 0
    valid_records: int = 0
    corrupted_records: int = 0
    teachers_with_salary: int = 0
    staff_with_salary: int = 0
    unconfigured_pay_profiles: int = 0
    matched_teacher_records: int = 0
    matched_staff_records: int = 0
    orphaned_records: int = 0
    total_salary_paid: Decimal = Decimal("0")
    totals_by_type: Dict[str, TypeTotals] = Field(default_factory=dict)
    corrupted_sample: List[Dict[str, Any]] = Field(default_factory=list)
    roster_sample: List[Dict[str, Any]] = Field(default_factory=list)

    @property
    def matched_records(self) -> int:
        return self.matched_teacher_records + self.matched_staff_records

    @property
    def has_roster_pay(self) -> bool:
        return self.teachers_with_salary > 0 or self.staff_with_salary > 0


# =============================================================================
# Utility Functions
# =============================================================================

def is_corrupted(record: SalaryRecord) -> bool:
    """A record is corrupted iff its employee reference is not a well-formed id."""
    return not is_valid_identifier(reference_text(record.employee))


def partition_records(records: List[SalaryRecord]) -> Tuple[List[SalaryRecord], List[SalaryRecord]]:
    """Split records into (valid, corrupted), preserving order."""
    valid: List[SalaryRecord] = []
    corrupted: List[SalaryRecord] = []
    for record in records:
        if is_corrupted(record):
            corrupted.append(record)
        else:
            valid.append(record)
    return valid, corrupted


def fetch_active_records(store: LedgerStore, school_id: str) -> List[SalaryRecord]:
    return store.find(SalaryRecord, {"school_id": school_id, "status": RecordStatus.ACTIVE})


def fetch_roster_with_pay(store: LedgerStore, school_id: str) -> Dict[EmployeeType, List[Employee]]:
    """Roster entries that carry a pay profile, grouped by type."""
    return {
        employee_type: store.find(Employee, {
            "school_id": school_id,
            "employee_type": employee_type,
            "salary": {"$exists": True, "$ne": None},
        })
        for employee_type in ROSTER_TYPES
    }


def ledger_totals(records: List[SalaryRecord]) -> Dict[str, TypeTotals]:
    """Fold records into base/allowance/deduction/net totals per employee type."""
    totals: Dict[str, TypeTotals] = {t.value: TypeTotals() for t in EmployeeType}
    for record in records:
        bucket = totals[record.employee_type.value]
        bucket.count += 1
        bucket.base_salary += record.base_salary
        bucket.allowances += record.allowances.total()
        bucket.deductions += record.deductions.total()
        bucket.net_salary += record.net_salary()
    return totals


def total_paid(records: List[SalaryRecord]) -> Decimal:
    total = Decimal("0")
    for record in records:
        total += record.paid_total()
    return total


# =============================================================================
# Main Reconciliation Engine
# =============================================================================

def reconcile(
    store: LedgerStore,
    school_id: str,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
) -> ReconciliationReport:
    """Cross-reference a school's ledger against its roster.

    Args:
        store: Ledger store
        school_id: Organization scope
        sample_size: Maximum corrupted records to include verbatim (negative means none)

    Returns:
        ReconciliationReport with counts, matches and the paid total
    """
    started = time.monotonic()
    with with_correlation(school_id=school_id, stage="reconcile"):
        log_stage_start("reconcile")

        records = fetch_active_records(store, school_id)
        valid, corrupted = partition_records(records)

        roster = fetch_roster_with_pay(store, school_id)
        configured: Dict[EmployeeType, List[Employee]] = {}
        unconfigured = 0
        for employee_type, employees in roster.items():
            configured[employee_type] = [e for e in employees if e.has_configured_pay()]
            unconfigured += len(employees) - len(configured[employee_type])

        if unconfigured:
            logger.warning(
                f"{unconfigured} roster pay profiles have a non-positive base salary",
                extra_fields={"unconfigured_pay_profiles": unconfigured},
            )

        roster_ids: Dict[EmployeeType, Set[str]] = {
            employee_type: {e.id for e in employees}
            for employee_type, employees in configured.items()
        }

        matched: Dict[EmployeeType, int] = {t: 0 for t in ROSTER_TYPES}
        orphaned = 0
        for record in valid:
            ids = roster_ids.get(record.employee_type, set())
            if reference_text(record.employee) in ids:
                matched[record.employee_type] += 1
            else:
                orphaned += 1

        report = ReconciliationReport(
            school_id=school_id,
            total_records=len(records),
            valid_records=len(valid),
            corrupted_records=len(corrupted),
            teachers_with_salary=len(configured[EmployeeType.TEACHER]),
            staff_with_salary=len(configured[EmployeeType.STAFF]),
            unconfigured_pay_profiles=unconfigured,
            matched_teacher_records=matched[EmployeeType.TEACHER],
            matched_staff_records=matched[EmployeeType.STAFF],
            orphaned_records=orphaned,
            total_salary_paid=total_paid(valid),
            totals_by_type=ledger_totals(valid),
            corrupted_sample=[r.model_dump(mode="json") for r in corrupted[:max(sample_size, 0)]],
            roster_sample=[
                {"id": t.id, "name": t.name, "base_salary": str(t.salary.base_salary)}
                for t in configured[EmployeeType.TEACHER][:ROSTER_SAMPLE_SIZE]
            ],
        )

        log_stage_complete(
            "reconcile",
            duration_ms=round((time.monotonic() - started) * 1000, 1),
            total_records=report.total_records,
            corrupted_records=report.corrupted_records,
        )
    return report
