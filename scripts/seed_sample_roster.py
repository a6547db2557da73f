"""Add a sample roster (teachers and staff, no pay configured) to a school.

Usage:
    python scripts/seed_sample_roster.py <schoolId> [--db payroll_ledger.db]

Pair with `salary_doctor.py create <schoolId>` to get a complete test ledger.
"""

import argparse
import sys
from pathlib import Path

# Add repo root to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from ledger_client import get_ledger_store
from payroll.db import seed_sample_roster
from payroll.errors import StoreConnectionError
from payroll.identifiers import is_valid_identifier


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed a sample roster for a school")
    parser.add_argument("school_id", help="School (organization) id")
    parser.add_argument("--db", type=Path, help="SQLite ledger database")
    args = parser.parse_args()

    if not is_valid_identifier(args.school_id):
        print(f"Warning: '{args.school_id}' is not a 24-character hex id")

    try:
        store = get_ledger_store("sqlite", args.db)
    except StoreConnectionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    employees = seed_sample_roster(store, args.school_id)
    print(f"Added {len(employees)} employees to school {args.school_id}:")
    for employee in employees:
        print(f"  - {employee.employee_type.value:8} {employee.id}  {employee.name}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
