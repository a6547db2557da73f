"""Payroll Ledger Database Operations.

This module is the storage collaborator for the ledger:
- LedgerStore: the find / insert / update / delete interface the core consumes
- InMemoryLedgerStore: dict-backed store for tests and dry runs
- SqliteLedgerStore: one JSON document table per collection
- Sample roster seeding

Filters are Mongo-style dicts. A key is a (dotted) field path; a value is
either matched for equality or is an operator dict using ``$in``, ``$ne``,
``$gt`` or ``$exists``. Callers always pass the record type they expect, so
there is no implicit schema registration.
"""

import json
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic_core import to_jsonable_python

from payroll.errors import LedgerError, StoreConnectionError
from payroll.models import Employee, EmployeeType, SalaryRecord


# Default database path (repo root, next to the CLI)
DEFAULT_DB_PATH = Path(__file__).resolve().parents[1] / "payroll_ledger.db"

COLLECTIONS = (Employee.collection, SalaryRecord.collection)

ModelT = TypeVar("ModelT", bound=BaseModel)

_MISSING = object()


# =============================================================================
# Filter Matching
# =============================================================================

def _plain(value: Any) -> Any:
    """Normalize a filter operand to its stored JSON form."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple, set)):
        return [_plain(v) for v in value]
    return value


def _resolve(document: Dict[str, Any], path: str) -> Any:
    current: Any = document
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _as_number(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool) or value is None or value is _MISSING:
        return None
    if isinstance(value, (int, float, Decimal, str)):
        try:
            return Decimal(str(value))
        except InvalidOperation:
            return None
    return None


def _equals(stored: Any, expected: Any) -> bool:
    if stored is _MISSING:
        return expected is None
    if stored == expected:
        return True
    # Decimals are stored as strings; compare numerically when both sides are numbers
    if isinstance(expected, (int, float, Decimal)) and not isinstance(expected, bool):
        stored_num = _as_number(stored)
        return stored_num is not None and stored_num == _as_number(expected)
    return False


def _matches_condition(stored: Any, condition: Any) -> bool:
    if isinstance(condition, dict) and condition and all(k.startswith("$") for k in condition):
        for op, operand in condition.items():
            operand = _plain(operand)
            if op == "$in":
                if not any(_equals(stored, candidate) for candidate in operand):
                    return False
            elif op == "$ne":
                if _equals(stored, operand):
                    return False
            elif op == "$gt":
                left, right = _as_number(stored), _as_number(operand)
                if left is None or right is None or not left > right:
                    return False
            elif op == "$exists":
                if (stored is not _MISSING) != bool(operand):
                    return False
            else:
                raise ValueError(f"Unsupported filter operator: {op}")
        return True
    return _equals(stored, _plain(condition))


def matches_filter(document: Dict[str, Any], filter: Optional[Dict[str, Any]]) -> bool:
    """Check a stored document against a Mongo-style filter."""
    if not filter:
        return True
    return all(
        _matches_condition(_resolve(document, path), condition)
        for path, condition in filter.items()
    )


def _apply_changes(document: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
    updated = json.loads(json.dumps(document))
    for path, value in changes.items():
        parts = path.split(".")
        target = updated
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        target[parts[-1]] = to_jsonable_python(value)
    return updated


# =============================================================================
# Store Interface
# =============================================================================

class LedgerStore(ABC):
    """Query/update interface over the employees and salary_records collections."""

    @abstractmethod
    def find(self, model: Type[ModelT], filter: Optional[Dict[str, Any]] = None, limit: Optional[int] = None) -> List[ModelT]:
        """Return every document of ``model``'s collection matching filter, in insertion order."""

    def find_one(self, model: Type[ModelT], filter: Optional[Dict[str, Any]] = None) -> Optional[ModelT]:
        found = self.find(model, filter, limit=1)
        return found[0] if found else None

    def get(self, model: Type[ModelT], record_id: str) -> Optional[ModelT]:
        return self.find_one(model, {"id": record_id})

    @abstractmethod
    def insert(self, record: ModelT) -> ModelT:
        """Insert a new document. Raises LedgerError on a duplicate id."""

    @abstractmethod
    def update_by_id(self, model: Type[ModelT], record_id: str, changes: Dict[str, Any]) -> Optional[ModelT]:
        """Set (dotted) fields on one document. Returns the updated record, or None if absent."""

    @abstractmethod
    def delete_many(self, model: Type[ModelT], filter: Dict[str, Any]) -> int:
        """Delete every matching document and return how many were removed."""

    def close(self) -> None:
        pass


class InMemoryLedgerStore(LedgerStore):
    """Dict-backed store. Documents are kept in their JSON form."""

    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {
            name: {} for name in COLLECTIONS
        }

    def _documents(self, model: Type[BaseModel]) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(model.collection, {})

    def find(self, model, filter=None, limit=None):
        results = []
        for document in self._documents(model).values():
            if limit is not None and len(results) >= limit:
                break
            if matches_filter(document, filter):
                results.append(model.model_validate(document))
        return results

    def insert(self, record):
        documents = self._documents(type(record))
        if record.id in documents:
            raise LedgerError(f"Duplicate id in {record.collection}: {record.id}")
        documents[record.id] = record.model_dump(mode="json")
        return record

    def update_by_id(self, model, record_id, changes):
        documents = self._documents(model)
        if record_id not in documents:
            return None
        documents[record_id] = _apply_changes(documents[record_id], changes)
        return model.model_validate(documents[record_id])

    def delete_many(self, model, filter):
        documents = self._documents(model)
        doomed = [doc_id for doc_id, doc in documents.items() if matches_filter(doc, filter)]
        for doc_id in doomed:
            del documents[doc_id]
        return len(doomed)


class SqliteLedgerStore(LedgerStore):
    """SQLite-backed store.

    Each collection is a table of JSON documents keyed by id, with the
    school id pulled out into an indexed column so scoped queries do not
    scan other schools. Remaining filter conditions are applied in Python.
    """

    def __init__(self, db_path: Path = DEFAULT_DB_PATH):
        self.db_path = Path(db_path)
        init_ledger_db(self.db_path)

    def _connect(self) -> sqlite3.Connection:
        return connect(self.db_path)

    def find(self, model, filter=None, limit=None):
        filter = dict(filter or {})
        sql = f"SELECT data FROM {model.collection}"
        params: List[Any] = []
        school_id = filter.get("school_id")
        if isinstance(school_id, str):
            sql += " WHERE school_id = ?"
            params.append(school_id)
        sql += " ORDER BY seq"

        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute(sql, params)
            results = []
            for (data,) in cursor:
                if limit is not None and len(results) >= limit:
                    break
                document = json.loads(data)
                if matches_filter(document, filter):
                    results.append(model.model_validate(document))
            return results
        finally:
            conn.close()

    def insert(self, record):
        now = datetime.utcnow().isoformat()
        document = record.model_dump(mode="json")
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute(f"""
                INSERT INTO {record.collection} (id, school_id, data, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
            """, (record.id, record.school_id, json.dumps(document), now, now))
            conn.commit()
            return record
        except sqlite3.IntegrityError as e:
            raise LedgerError(f"Duplicate id in {record.collection}: {record.id}") from e
        finally:
            conn.close()

    def update_by_id(self, model, record_id, changes):
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute(f"SELECT data FROM {model.collection} WHERE id = ?", (record_id,))
            row = cursor.fetchone()
            if row is None:
                return None
            document = _apply_changes(json.loads(row[0]), changes)
            cursor.execute(f"""
                UPDATE {model.collection} SET data = ?, school_id = ?, updated_at = ?
                WHERE id = ?
            """, (json.dumps(document), document.get("school_id"), datetime.utcnow().isoformat(), record_id))
            conn.commit()
            return model.model_validate(document)
        finally:
            conn.close()

    def delete_many(self, model, filter):
        doomed = [record.id for record in self.find(model, filter)]
        if not doomed:
            return 0
        placeholders = ", ".join("?" for _ in doomed)
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute(f"DELETE FROM {model.collection} WHERE id IN ({placeholders})", doomed)
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()


# =============================================================================
# Schema
# =============================================================================

def connect(db_path: Path) -> sqlite3.Connection:
    """Open a connection, turning open failures into StoreConnectionError."""
    try:
        conn = sqlite3.connect(str(db_path))
        conn.execute("SELECT 1")
        return conn
    except sqlite3.Error as e:
        raise StoreConnectionError(f"Cannot open ledger database {db_path}: {e}", str(db_path)) from e


def init_ledger_db(db_path: Path = DEFAULT_DB_PATH) -> None:
    """Initialize ledger tables.

    Creates one document table per collection (employees, salary_records)
    with an index on school_id. Safe to call repeatedly.

    Args:
        db_path: Path to SQLite database file
    """
    conn = connect(db_path)
    try:
        cursor = conn.cursor()
        for collection in COLLECTIONS:
            cursor.execute(f"""
                CREATE TABLE IF NOT EXISTS {collection} (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    school_id TEXT,
                    data TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            cursor.execute(f"""
                CREATE INDEX IF NOT EXISTS idx_{collection}_school
                ON {collection}(school_id)
            """)
        conn.commit()
    except sqlite3.Error as e:
        raise StoreConnectionError(f"Cannot initialize ledger database {db_path}: {e}", str(db_path)) from e
    finally:
        conn.close()


# =============================================================================
# Sample Data
# =============================================================================

SAMPLE_TEACHERS = [
    ("Sita Sharma", "sita.sharma@example.edu"),
    ("Ram Thapa", "ram.thapa@example.edu"),
    ("Gita Karki", "gita.karki@example.edu"),
    ("Hari Adhikari", "hari.adhikari@example.edu"),
]

SAMPLE_STAFF = [
    ("Maya Gurung", "maya.gurung@example.edu", "Accountant"),
    ("Bikash Rai", "bikash.rai@example.edu", "Librarian"),
    ("Kamal Shrestha", "kamal.shrestha@example.edu", None),
]


def seed_sample_roster(store: LedgerStore, school_id: str) -> List[Employee]:
    """Insert a small roster (no pay configured) for local testing."""
    employees: List[Employee] = []
    for name, email in SAMPLE_TEACHERS:
        employees.append(Employee(
            school_id=school_id,
            employee_type=EmployeeType.TEACHER,
            name=name,
            email=email,
        ))
    for name, email, position in SAMPLE_STAFF:
        employees.append(Employee(
            school_id=school_id,
            employee_type=EmployeeType.STAFF,
            name=name,
            email=email,
            position=position,
        ))
    for employee in employees:
        store.insert(employee)
    return employees
