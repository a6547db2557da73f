"""Payroll Ledger - salary records keyed to a school's employee roster.

This package provides:
- Typed record definitions (Employee, SalaryRecord, PaymentEntry)
- Employee reference validation
- Pay calculation and payment history generation
- The ledger store interface with in-memory and SQLite implementations
- Idempotent ledger seeding and single-record ledger operations

Usage:
    from payroll import SqliteLedgerStore, seed

    store = SqliteLedgerStore(Path("payroll_ledger.db"))
    result = seed(store, school_id, rng=random.Random(7))
    print(result.created_count)
"""

from payroll.models import (
    Allowances,
    Deductions,
    Employee,
    EmployeeType,
    PayProfile,
    PaymentEntry,
    PaymentStatus,
    RecordStatus,
    SalaryRecord,
)
from payroll.identifiers import is_valid_identifier, new_identifier, reference_text
from payroll.calculator import (
    RATE_TABLES,
    PayBreakdown,
    Rate,
    compute_pay,
    compute_pay_for,
    net_salary_of,
)
from payroll.history import generate_history
from payroll.db import (
    InMemoryLedgerStore,
    LedgerStore,
    SqliteLedgerStore,
    init_ledger_db,
    seed_sample_roster,
)
from payroll.errors import (
    LedgerError,
    PartialWriteError,
    RecordNotFoundError,
    StoreConnectionError,
    UsageError,
)
from payroll.seeder import SeedOutcome, SeedResult, SeedStatus, seed
from payroll.ledger import archive_salary, assign_salary, payment_history, record_payment

__all__ = [
    # Models
    "Allowances",
    "Deductions",
    "Employee",
    "EmployeeType",
    "PayProfile",
    "PaymentEntry",
    "PaymentStatus",
    "RecordStatus",
    "SalaryRecord",
    # Identifiers
    "is_valid_identifier",
    "new_identifier",
    "reference_text",
    # Calculation
    "RATE_TABLES",
    "PayBreakdown",
    "Rate",
    "compute_pay",
    "compute_pay_for",
    "net_salary_of",
    "generate_history",
    # Database
    "InMemoryLedgerStore",
    "LedgerStore",
    "SqliteLedgerStore",
    "init_ledger_db",
    "seed_sample_roster",
    # Errors
    "LedgerError",
    "PartialWriteError",
    "RecordNotFoundError",
    "StoreConnectionError",
    "UsageError",
    # Seeding
    "SeedOutcome",
    "SeedResult",
    "SeedStatus",
    "seed",
    # Ledger operations
    "archive_salary",
    "assign_salary",
    "payment_history",
    "record_payment",
]
