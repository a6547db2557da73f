"""Pay calculation.

Every allowance and deduction is a whole-unit amount: a percentage of the
base salary rounded half-up, plus an optional flat component. Net salary is
always derived from the full, freshly computed set of components.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Union

from payroll.models import Allowances, Deductions, EmployeeType, PayProfile


Number = Union[int, float, str, Decimal]

WHOLE_UNIT = Decimal("1")


@dataclass(frozen=True)
class Rate:
    """Percentage of base salary plus a flat amount.

    The flat part only applies to a positive base salary, so an unset or
    negative base never yields a positive component.
    """
    percent: Decimal = Decimal("0")
    flat: Decimal = Decimal("0")

    def apply(self, base_salary: Decimal) -> Decimal:
        amount = round_half_up(base_salary * self.percent / Decimal("100"))
        if base_salary > 0:
            amount += self.flat
        return amount


@dataclass(frozen=True)
class RateTable:
    allowances: Dict[str, Rate]
    deductions: Dict[str, Rate]


# Staff rates sit below teacher rates; a policy default, not a rule.
RATE_TABLES: Dict[EmployeeType, RateTable] = {
    EmployeeType.TEACHER: RateTable(
        allowances={
            "house_rent": Rate(Decimal("20")),
            "medical": Rate(Decimal("5")),
            "transport": Rate(Decimal("5")),
            "other": Rate(Decimal("2")),
        },
        deductions={
            "provident_fund": Rate(Decimal("10")),
            "tax": Rate(Decimal("5")),
            "insurance": Rate(flat=Decimal("500")),
            "other": Rate(flat=Decimal("200")),
        },
    ),
    EmployeeType.STAFF: RateTable(
        allowances={
            "house_rent": Rate(Decimal("15")),
            "medical": Rate(Decimal("3")),
            "transport": Rate(Decimal("3")),
            "other": Rate(Decimal("2")),
        },
        deductions={
            "provident_fund": Rate(Decimal("5")),
            "tax": Rate(Decimal("2")),
            "insurance": Rate(flat=Decimal("300")),
            "other": Rate(flat=Decimal("100")),
        },
    ),
}


@dataclass(frozen=True)
class PayBreakdown:
    """Result of a pay computation."""
    base_salary: Decimal
    allowances: Allowances
    deductions: Deductions
    net_salary: Decimal

    def to_profile(self) -> PayProfile:
        return PayProfile(
            base_salary=self.base_salary,
            allowances=self.allowances,
            deductions=self.deductions,
            net_salary=self.net_salary,
        )


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_half_up(value: Decimal) -> Decimal:
    """Round to whole units, halves away from zero."""
    return value.quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)


def net_salary_of(
    base_salary: Number,
    allowances: Allowances,
    deductions: Deductions,
) -> Decimal:
    """Net salary for already-computed components."""
    return to_decimal(base_salary) + allowances.total() - deductions.total()


def compute_pay(
    base_salary: Number,
    allowance_rates: Dict[str, Rate],
    deduction_rates: Dict[str, Rate],
) -> PayBreakdown:
    """Compute allowances, deductions and net salary from a base salary.

    All four allowance and deduction components are recomputed together on
    every call, so the additive identity
    ``net = base + sum(allowances) - sum(deductions)`` holds exactly.

    Args:
        base_salary: Monthly base salary. Zero or negative values are
            accepted and produce non-positive percentage components.
        allowance_rates: Rate per allowance field name
        deduction_rates: Rate per deduction field name

    Returns:
        PayBreakdown with rounded components and the derived net salary
    """
    base = to_decimal(base_salary)

    allowances = Allowances(**{
        field: rate.apply(base) for field, rate in allowance_rates.items()
    })
    deductions = Deductions(**{
        field: rate.apply(base) for field, rate in deduction_rates.items()
    })

    return PayBreakdown(
        base_salary=base,
        allowances=allowances,
        deductions=deductions,
        net_salary=net_salary_of(base, allowances, deductions),
    )


def compute_pay_for(employee_type: EmployeeType, base_salary: Number) -> PayBreakdown:
    """compute_pay using the default rate table for an employee type."""
    table = RATE_TABLES[employee_type]
    return compute_pay(base_salary, table.allowances, table.deductions)
