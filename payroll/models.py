"""Payroll Ledger Data Models.

This module defines the Pydantic models for the payroll ledger:
- Employee: Roster entry (teacher or staff) with an optional embedded pay profile
- SalaryRecord: Ledger entry holding one employee's pay configuration and history
- PaymentEntry: A single monthly payment appended to a salary record

Each persisted model names the logical collection it lives in, so the store
is always handed an explicit record type instead of relying on schema
registration at import time.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, ClassVar, List, Optional

from pydantic import BaseModel, Field
from pydantic.functional_validators import BeforeValidator
from typing_extensions import Annotated

from payroll.identifiers import new_identifier


# =============================================================================
# Value Parsers (stored documents may hold null where a value is expected)
# =============================================================================

def _null_to(default_factory: Callable[[], Any]) -> BeforeValidator:
    def parse(value):
        return default_factory() if value is None else value
    return BeforeValidator(parse)


Amount = Annotated[Decimal, _null_to(lambda: Decimal("0"))]


# =============================================================================
# Models
# =============================================================================

class EmployeeType(str, Enum):
    """Ledger employee-type tag."""
    TEACHER = "teacher"
    STAFF = "staff"
    ADMIN = "admin"


class RecordStatus(str, Enum):
    """Lifecycle status of a salary record."""
    ACTIVE = "active"
    ARCHIVED = "archived"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class Allowances(BaseModel):
    """Monthly allowance amounts."""
    house_rent: Amount = Decimal("0")
    medical: Amount = Decimal("0")
    transport: Amount = Decimal("0")
    other: Amount = Decimal("0")

    def total(self) -> Decimal:
        return self.house_rent + self.medical + self.transport + self.other


class Deductions(BaseModel):
    """Monthly deduction amounts."""
    provident_fund: Amount = Decimal("0")
    tax: Amount = Decimal("0")
    insurance: Amount = Decimal("0")
    other: Amount = Decimal("0")

    def total(self) -> Decimal:
        return self.provident_fund + self.tax + self.insurance + self.other


class PayProfile(BaseModel):
    """Pay figures mirrored onto a roster entry.

    Attributes:
        base_salary: Monthly base salary
        allowances: Allowance amounts
        deductions: Deduction amounts
        net_salary: base + allowances - deductions
    """
    base_salary: Decimal = Field(default=Decimal("0"), description="Monthly base salary")
    allowances: Allowances = Field(default_factory=Allowances)
    deductions: Deductions = Field(default_factory=Deductions)
    net_salary: Decimal = Field(default=Decimal("0"), description="Derived net salary")


class Employee(BaseModel):
    """A roster entry (teacher or staff member).

    Attributes:
        id: 24-hex document identifier
        school_id: Organization scope the employee belongs to
        employee_type: teacher or staff
        name: Display name
        email: Contact email
        position: Job title (staff only in practice)
        salary: Embedded pay profile, None until pay is assigned
    """
    collection: ClassVar[str] = "employees"

    id: str = Field(default_factory=new_identifier, description="Document identifier")
    school_id: str = Field(..., description="Organization scope")
    employee_type: EmployeeType = Field(..., description="teacher or staff")
    name: str = Field(..., description="Display name")
    email: Optional[str] = None
    position: Optional[str] = None
    salary: Optional[PayProfile] = Field(default=None, description="Mirrored pay profile")

    def has_configured_pay(self) -> bool:
        return self.salary is not None and self.salary.base_salary > 0


class PaymentEntry(BaseModel):
    """One payment in a salary record's history. Never edited once appended.

    Entries written by older tooling can lack any field; they still load, and
    a missing amount counts as nothing paid.
    """
    month: Optional[str] = Field(default=None, description="English month name, e.g. 'March'")
    year: Optional[int] = None
    amount: Optional[Decimal] = None
    payment_date: Optional[date] = None
    status: Annotated[PaymentStatus, _null_to(lambda: PaymentStatus.PENDING)] = PaymentStatus.PENDING
    payment_method: Optional[str] = None


class SalaryRecord(BaseModel):
    """A ledger entry for one employee.

    The ``employee`` field keeps whatever the store holds, verbatim. A
    well-formed value is a 24-hex roster id; anything else makes the record
    corrupted, and it must still load so it can be reported and cleaned up.
    Null amounts, components and history load as zero or empty.

    Attributes:
        id: 24-hex document identifier
        school_id: Organization scope
        employee_type: teacher, staff or admin
        employee: Raw employee reference
        position: Free-text position
        base_salary: Monthly base salary
        allowances: Allowance amounts
        deductions: Deduction amounts
        payment_history: Payments in insertion order
        status: active or archived
        effective_date: When this pay configuration took effect
    """
    collection: ClassVar[str] = "salary_records"

    id: str = Field(default_factory=new_identifier, description="Document identifier")
    school_id: str = Field(..., description="Organization scope")
    employee_type: EmployeeType = Field(..., description="Employee-type tag")
    employee: Any = Field(default=None, description="Employee reference (may be corrupted)")
    position: Optional[str] = Field(default="", description="Free-text position")
    base_salary: Amount = Field(default=Decimal("0"), description="Monthly base salary")
    allowances: Annotated[Allowances, _null_to(Allowances)] = Field(default_factory=Allowances)
    deductions: Annotated[Deductions, _null_to(Deductions)] = Field(default_factory=Deductions)
    payment_history: Annotated[List[PaymentEntry], _null_to(list)] = Field(default_factory=list)
    status: RecordStatus = RecordStatus.ACTIVE
    effective_date: Optional[date] = None

    def net_salary(self) -> Decimal:
        return self.base_salary + self.allowances.total() - self.deductions.total()

    def paid_total(self) -> Decimal:
        """Sum of every paid entry in the history."""
        total = Decimal("0")
        for entry in self.payment_history:
            if entry.status == PaymentStatus.PAID and entry.amount is not None:
                total += entry.amount
        return total

    def audit_details(self) -> dict:
        """Fields reported for a record before it is destroyed."""
        return {
            "id": self.id,
            "employee_type": self.employee_type.value,
            "employee": self.employee,
            "position": self.position,
            "base_salary": str(self.base_salary),
        }


# Roster variants in seeding order
ROSTER_TYPES = (EmployeeType.TEACHER, EmployeeType.STAFF)
