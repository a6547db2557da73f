"""
Salary records doctor.

Diagnoses and repairs a school's payroll ledger:
- diagnose: reconcile salary records against the roster (read-only)
- cleanup:  delete corrupted salary records, then diagnose
- create:   seed missing salary records with sample pay, then diagnose
- fix:      cleanup, create, then diagnose

Usage:
    salary-doctor diagnose <school_id>
    salary-doctor cleanup <school_id>
    salary-doctor create <school_id> [--teachers 3] [--staff 2]
    salary-doctor fix <school_id> --json
"""

import argparse
import json
import logging
import random
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from core.audit.events import AuditLogger
from core.observability.logging import configure_logging, get_logger, with_correlation
from ledger_client import BACKENDS, get_audit_logger, get_ledger_store, log_json_enabled
from payroll.db import LedgerStore
from payroll.errors import StoreConnectionError, UsageError
from payroll.seeder import DEFAULT_STAFF_LIMIT, DEFAULT_TEACHER_LIMIT, seed
from reconciliation.cleanup import cleanup_corrupted
from reconciliation.engine import DEFAULT_SAMPLE_SIZE, reconcile
from reconciliation.report import DoctorSummary, build_summary, render_summary


logger = get_logger(__name__)

COMMAND_ALIASES = {
    "diagnose": "diagnose",
    "diagnostic": "diagnose",
    "d": "diagnose",
    "cleanup": "cleanup",
    "c": "cleanup",
    "create": "create",
    "add": "create",
    "fix": "fix",
    "repair": "fix",
}

USAGE = """Usage:
   salary-doctor diagnose <schoolId>
   salary-doctor cleanup <schoolId>
   salary-doctor create <schoolId>
   salary-doctor fix <schoolId>"""


class DoctorArgumentParser(argparse.ArgumentParser):
    """Reports bad arguments as UsageError so they share the usage exit code."""

    def error(self, message):
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = DoctorArgumentParser(
        prog="salary-doctor",
        description="Diagnose and repair salary records for a school",
    )
    parser.add_argument("command", nargs="?", default="diagnose",
                        help="diagnose | cleanup | create | fix")
    parser.add_argument("school_id", nargs="?", help="School (organization) id")
    parser.add_argument("--db", type=Path, help="SQLite ledger database (default: LEDGER_DB_PATH)")
    parser.add_argument("--backend", choices=BACKENDS, help="Ledger backend (default: LEDGER_BACKEND or sqlite)")
    parser.add_argument("--teachers", type=int, default=DEFAULT_TEACHER_LIMIT, help="Teachers to seed at most")
    parser.add_argument("--staff", type=int, default=DEFAULT_STAFF_LIMIT, help="Staff to seed at most")
    parser.add_argument("--sample", type=int, default=DEFAULT_SAMPLE_SIZE, help="Corrupted records to show")
    parser.add_argument("--random-seed", type=int, help="Seed for generated salaries")
    parser.add_argument("--audit-dir", type=Path, help="Directory for JSON audit files")
    parser.add_argument("--json", action="store_true", help="Print the summary as JSON")
    parser.add_argument("--output", type=Path, help="Also write the JSON summary to this file")
    parser.add_argument("--log-json", action="store_true", help="Emit JSON log lines")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def parse_command(args: argparse.Namespace) -> Tuple[str, str]:
    """Resolve the command alias and require a school id.

    Raises:
        UsageError: unknown command or missing school id
    """
    command = COMMAND_ALIASES.get(args.command.lower())
    if command is None:
        raise UsageError(f"Unknown command: {args.command}. Use: diagnose, cleanup, create, or fix")
    if not args.school_id:
        raise UsageError("School ID is required")
    return command, args.school_id


def run_command(
    command: str,
    school_id: str,
    store: LedgerStore,
    teacher_limit: int = DEFAULT_TEACHER_LIMIT,
    staff_limit: int = DEFAULT_STAFF_LIMIT,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    rng: Optional[random.Random] = None,
    audit: Optional[AuditLogger] = None,
) -> DoctorSummary:
    """Run one doctor command. Mutating commands always finish with a diagnose."""
    cleanup_result = None
    seed_result = None

    with with_correlation(school_id=school_id, command=command):
        logger.info(f"Running {command}")
        if command in ("cleanup", "fix"):
            cleanup_result = cleanup_corrupted(store, school_id, audit=audit)
        if command in ("create", "fix"):
            seed_result = seed(
                store,
                school_id,
                teacher_limit=teacher_limit,
                staff_limit=staff_limit,
                rng=rng,
                audit=audit,
            )
        report = reconcile(store, school_id, sample_size=sample_size)

    return build_summary(report, seed_result=seed_result, cleanup_result=cleanup_result)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except UsageError as e:
        print(f"Error: {e}", file=sys.stderr)
        print(USAGE, file=sys.stderr)
        return 1

    configure_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        json_format=args.log_json or log_json_enabled(),
    )

    try:
        command, school_id = parse_command(args)
    except UsageError as e:
        print(f"Error: {e}", file=sys.stderr)
        print(USAGE, file=sys.stderr)
        return 1

    try:
        store = get_ledger_store(args.backend, args.db)
    except StoreConnectionError as e:
        print(f"Error: ledger store unavailable: {e}", file=sys.stderr)
        return 2
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        summary = run_command(
            command,
            school_id,
            store,
            teacher_limit=args.teachers,
            staff_limit=args.staff,
            sample_size=args.sample,
            rng=random.Random(args.random_seed) if args.random_seed is not None else None,
            audit=get_audit_logger(args.audit_dir),
        )
    except StoreConnectionError as e:
        print(f"Error: ledger store unavailable: {e}", file=sys.stderr)
        return 2
    finally:
        store.close()

    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print(render_summary(summary))

    if args.output:
        args.output.write_text(json.dumps(summary.to_dict(), indent=2), encoding="utf-8")
        print(f"\nSummary written to {args.output}", file=sys.stderr)

    return 0


if __name__ == "__main__":
    sys.exit(main())
