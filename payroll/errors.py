"""Payroll ledger exceptions.

Shape problems in ledger data are never raised: a record whose employee
reference is malformed is classified as corrupted by the reconciler. The
exceptions below cover the storage, invocation and partial-write cases.
"""

from typing import Optional


class LedgerError(Exception):
    """Base exception for payroll ledger errors."""
    pass


class StoreConnectionError(LedgerError, ConnectionError):
    """The ledger store could not be reached. Aborts the whole invocation."""
    def __init__(self, message: str, location: str = ""):
        super().__init__(message)
        self.location = location


class RecordNotFoundError(LedgerError):
    """A salary record or employee id does not exist."""
    def __init__(self, collection: str, record_id: str):
        super().__init__(f"{collection} record not found: {record_id}")
        self.collection = collection
        self.record_id = record_id


class PartialWriteError(LedgerError):
    """The salary record was written but the roster mirror was not."""
    def __init__(self, message: str, salary_id: str, employee_id: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.salary_id = salary_id
        self.employee_id = employee_id
        self.cause = cause


class UsageError(LedgerError):
    """Invalid invocation: missing school id or unknown command."""
    pass
