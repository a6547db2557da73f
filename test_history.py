"""Payment history generation tests."""

from datetime import date
from decimal import Decimal

from payroll.history import generate_history, months_back_from
from payroll.models import PaymentStatus


class TestGenerateHistory:
    def test_three_paid_entries_walking_back(self):
        history = generate_history(1000, 3, "bank", today=date(2026, 5, 10))

        assert [(e.month, e.year) for e in history] == [
            ("May", 2026), ("April", 2026), ("March", 2026),
        ]
        assert all(e.status == PaymentStatus.PAID for e in history)
        assert all(e.amount == Decimal("1000") for e in history)
        assert all(e.payment_method == "bank" for e in history)

    def test_strictly_decreasing_year_month(self):
        history = generate_history(1000, 3, "bank", today=date(2026, 10, 19))
        keys = [(e.payment_date.year, e.payment_date.month) for e in history]

        assert keys == sorted(keys, reverse=True)
        assert len(set(keys)) == 3

    def test_payment_dated_first_of_month(self):
        history = generate_history(500, 2, "cash", today=date(2026, 7, 31))

        assert [e.payment_date for e in history] == [date(2026, 7, 1), date(2026, 6, 1)]

    def test_year_rollover(self):
        history = generate_history(1000, 3, "cash", today=date(2026, 1, 15))

        assert [(e.month, e.year) for e in history] == [
            ("January", 2026), ("December", 2025), ("November", 2025),
        ]
        assert history[1].payment_date == date(2025, 12, 1)

    def test_long_walk_crosses_multiple_years(self):
        months = months_back_from(date(2026, 2, 1), 26)

        assert months[0] == date(2026, 2, 1)
        assert months[-1] == date(2024, 1, 1)
        assert len(months) == 26

    def test_defaults_to_three_months(self):
        assert len(generate_history(1000, today=date(2026, 3, 3))) == 3

    def test_zero_months(self):
        assert generate_history(1000, 0, today=date(2026, 3, 3)) == []
