"""Single-record ledger operation tests."""

from datetime import date
from decimal import Decimal

import pytest

from conftest import SCHOOL_ID, TODAY, make_employee, make_record
from core.audit.events import AuditEventType
from payroll.errors import RecordNotFoundError
from payroll.ledger import archive_salary, assign_salary, payment_history, record_payment
from payroll.models import Allowances, EmployeeType, PaymentStatus, RecordStatus, SalaryRecord
from reconciliation.engine import reconcile


MISSING_ID = "0" * 24


class TestAssignSalary:
    def test_creates_active_record(self, store, audit):
        teacher = make_employee()
        store.insert(teacher)

        record = assign_salary(
            store, SCHOOL_ID, EmployeeType.TEACHER, teacher.id, "Teacher", 30000,
            allowances=Allowances(house_rent=Decimal("6000")),
            effective_date=TODAY,
            audit=audit,
        )

        assert store.get(SalaryRecord, record.id) == record
        assert record.status == RecordStatus.ACTIVE
        assert record.net_salary() == Decimal("36000")
        assert len(audit.query(event_type=AuditEventType.SALARY_ASSIGNED)) == 1

    def test_updates_existing_record_in_place(self, store):
        teacher = make_employee()
        store.insert(teacher)
        first = assign_salary(store, SCHOOL_ID, EmployeeType.TEACHER, teacher.id, "Teacher", 30000)
        record_payment(store, first.id, "May", 2026, 30000, "bank", today=TODAY)

        second = assign_salary(store, SCHOOL_ID, EmployeeType.TEACHER, teacher.id, "Senior Teacher", 32000)

        assert second.id == first.id
        assert second.base_salary == Decimal("32000")
        assert second.position == "Senior Teacher"
        assert len(second.payment_history) == 1
        assert len(store.find(SalaryRecord, {"employee": teacher.id})) == 1


class TestPayments:
    def test_record_payment_appends_paid_entry(self, store, audit):
        record = make_record(make_employee())
        store.insert(record)

        updated = record_payment(store, record.id, "May", 2026, 34400, "bank", today=TODAY, audit=audit)

        entry = updated.payment_history[-1]
        assert entry.status == PaymentStatus.PAID
        assert entry.amount == Decimal("34400")
        assert entry.payment_date == TODAY
        assert payment_history(store, record.id) == updated.payment_history
        assert reconcile(store, SCHOOL_ID).total_salary_paid == Decimal("34400")
        assert len(audit.query(event_type=AuditEventType.PAYMENT_RECORDED)) == 1

    def test_history_preserves_order(self, store):
        record = make_record(make_employee())
        store.insert(record)

        for month in ("March", "April", "May"):
            record_payment(store, record.id, month, 2026, 100, "cash", today=date(2026, 5, 10))

        assert [e.month for e in payment_history(store, record.id)] == ["March", "April", "May"]


class TestArchive:
    def test_archive_hides_record_from_reconciliation(self, store, audit):
        record = make_record("teacher-5")
        store.insert(record)

        archived = archive_salary(store, record.id, audit=audit)

        assert archived.status == RecordStatus.ARCHIVED
        assert store.get(SalaryRecord, record.id) is not None
        assert reconcile(store, SCHOOL_ID).total_records == 0
        event = audit.query(event_type=AuditEventType.SALARY_ARCHIVED)[0]
        assert event.details["employee"] == "teacher-5"


@pytest.mark.parametrize("operation", [
    lambda store: record_payment(store, MISSING_ID, "May", 2026, 100, "bank"),
    lambda store: payment_history(store, MISSING_ID),
    lambda store: archive_salary(store, MISSING_ID),
])
def test_unknown_record_raises(store, operation):
    with pytest.raises(RecordNotFoundError):
        operation(store)
