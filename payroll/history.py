"""Monthly payment history generation for seeded ledger records."""

import calendar
from datetime import date
from typing import List, Optional

from payroll.calculator import Number, to_decimal
from payroll.models import PaymentEntry, PaymentStatus


DEFAULT_MONTHS_BACK = 3

MONTH_NAMES = list(calendar.month_name)[1:]


def months_back_from(today: date, count: int) -> List[date]:
    """First day of the current month and the ``count - 1`` months before it.

    Returned newest first.
    """
    months = []
    year, month = today.year, today.month
    for _ in range(count):
        months.append(date(year, month, 1))
        month -= 1
        if month == 0:
            month = 12
            year -= 1
    return months


def generate_history(
    net_salary: Number,
    months_back: int = DEFAULT_MONTHS_BACK,
    method: str = "bank",
    today: Optional[date] = None,
) -> List[PaymentEntry]:
    """Generate ``months_back`` paid entries walking back from this month.

    The list is in generation order: current month first, then each earlier
    month. Callers append it to a record's history as-is so generated
    fixtures stay reproducible.
    """
    today = today or date.today()
    amount = to_decimal(net_salary)

    return [
        PaymentEntry(
            month=MONTH_NAMES[first_of_month.month - 1],
            year=first_of_month.year,
            amount=amount,
            payment_date=first_of_month,
            status=PaymentStatus.PAID,
            payment_method=method,
        )
        for first_of_month in months_back_from(today, months_back)
    ]
