"""Diagnose and repair salary records for a school.

Usage:
    python scripts/salary_doctor.py diagnose <schoolId>
    python scripts/salary_doctor.py cleanup <schoolId>
    python scripts/salary_doctor.py create <schoolId>
    python scripts/salary_doctor.py fix <schoolId>
"""

import sys
from pathlib import Path

# Add repo root to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from reconciliation.cli import main


if __name__ == "__main__":
    sys.exit(main())
