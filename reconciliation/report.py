"""Report aggregation for doctor runs.

Folds a ReconciliationReport plus any seeding and cleanup outcomes into a
DoctorSummary, derives advisory flags, and renders it for the terminal.
Nothing in this module touches the store.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from payroll.seeder import SeedResult
from reconciliation.cleanup import CleanupResult
from reconciliation.engine import ReconciliationReport


class Severity(str, Enum):
    WARN = "WARN"
    INFO = "INFO"


class AdvisoryCode(str, Enum):
    RECOMMEND_CLEANUP = "RECOMMEND_CLEANUP"
    RECOMMEND_SEED = "RECOMMEND_SEED"
    PARTIAL_WRITES = "PARTIAL_WRITES"


@dataclass
class Advisory:
    code: AdvisoryCode
    severity: Severity
    message: str
    command: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "code": self.code.value,
            "severity": self.severity.value,
            "message": self.message,
            "command": self.command,
        }


@dataclass
class DoctorSummary:
    report: ReconciliationReport
    seed_result: Optional[SeedResult] = None
    cleanup_result: Optional[CleanupResult] = None
    advisories: List[Advisory] = field(default_factory=list)

    @property
    def recommend_cleanup(self) -> bool:
        return any(a.code == AdvisoryCode.RECOMMEND_CLEANUP for a in self.advisories)

    @property
    def recommend_seed(self) -> bool:
        return any(a.code == AdvisoryCode.RECOMMEND_SEED for a in self.advisories)

    def to_dict(self) -> Dict:
        return {
            "report": self.report.model_dump(mode="json"),
            "seed": self.seed_result.to_dict() if self.seed_result else None,
            "cleanup": self.cleanup_result.to_dict() if self.cleanup_result else None,
            "advisories": [a.to_dict() for a in self.advisories],
        }


def derive_advisories(
    report: ReconciliationReport,
    seed_result: Optional[SeedResult] = None,
) -> List[Advisory]:
    advisories = []
    school_id = report.school_id

    if report.corrupted_records > 0:
        advisories.append(Advisory(
            code=AdvisoryCode.RECOMMEND_CLEANUP,
            severity=Severity.WARN,
            message=f"{report.corrupted_records} corrupted salary records; run cleanup to delete them",
            command=f"salary-doctor cleanup {school_id}",
        ))

    if report.valid_records == 0 and not report.has_roster_pay:
        advisories.append(Advisory(
            code=AdvisoryCode.RECOMMEND_SEED,
            severity=Severity.WARN,
            message="No valid salary data; run create to add test data",
            command=f"salary-doctor create {school_id}",
        ))

    if seed_result is not None and seed_result.warnings:
        advisories.append(Advisory(
            code=AdvisoryCode.PARTIAL_WRITES,
            severity=Severity.WARN,
            message=f"{len(seed_result.warnings)} employees were not fully seeded; see seed outcomes",
        ))

    return advisories


def build_summary(
    report: ReconciliationReport,
    seed_result: Optional[SeedResult] = None,
    cleanup_result: Optional[CleanupResult] = None,
) -> DoctorSummary:
    return DoctorSummary(
        report=report,
        seed_result=seed_result,
        cleanup_result=cleanup_result,
        advisories=derive_advisories(report, seed_result),
    )


def _money(value) -> str:
    return f"NPR {value:,}"


def render_summary(summary: DoctorSummary) -> str:
    """Render a summary in a readable format."""
    report = summary.report
    rule = "=" * 60
    lines = []

    if summary.cleanup_result is not None:
        cleanup = summary.cleanup_result
        lines += [rule, "CLEANUP", rule]
        lines.append(f"Found {cleanup.found_count} corrupted records, deleted {cleanup.deleted_count}")
        for index, removed in enumerate(cleanup.removed, start=1):
            lines.append(
                f"   {index}. {removed['employee_type']} - Position: {removed['position']}"
                f" - Salary: {removed['base_salary']}"
            )
        lines.append("")

    if summary.seed_result is not None:
        seeded = summary.seed_result
        lines += [rule, "SAMPLE SALARY RECORDS", rule]
        lines.append(f"Found {seeded.teachers_found} teachers and {seeded.staff_found} staff")
        for outcome in seeded.outcomes:
            detail = f" - {_money(outcome.base_salary)}/month" if outcome.base_salary is not None else ""
            note = f" ({outcome.message})" if outcome.message else ""
            lines.append(f"   [{outcome.status.value}] {outcome.employee_type.value}: {outcome.name}{detail}{note}")
        lines.append(f"Created {seeded.created_count} new salary records")
        lines.append("")

    lines += [rule, "SUMMARY", rule]
    lines.append(f"Total Salary Records: {report.total_records}")
    lines.append(f"Valid Records: {report.valid_records}")
    lines.append(f"Corrupted Records: {report.corrupted_records}")
    lines.append(f"Teachers with Salary: {report.teachers_with_salary}")
    lines.append(f"Staff with Salary: {report.staff_with_salary}")
    lines.append(
        f"Matched Records: {report.matched_teacher_records} teacher, "
        f"{report.matched_staff_records} staff ({report.orphaned_records} orphaned)"
    )
    lines.append(f"Total Salary Paid: {_money(report.total_salary_paid)}")

    if report.corrupted_sample:
        lines.append("")
        lines.append("CORRUPTED RECORDS:")
        for index, record in enumerate(report.corrupted_sample, start=1):
            lines.append(f"   {index}. ID: {record.get('id')}")
            lines.append(f"      Employee Type: {record.get('employee_type')}")
            lines.append(f"      Employee ID: \"{record.get('employee')}\"")
            lines.append(f"      Position: {record.get('position')}")
            lines.append(f"      Base Salary: {record.get('base_salary')}")

    if report.roster_sample:
        lines.append("")
        lines.append("Sample teachers with salary:")
        for teacher in report.roster_sample:
            lines.append(f"   - {teacher['name']}: NPR {teacher['base_salary']}")

    for advisory in summary.advisories:
        lines.append("")
        lines.append(f"[{advisory.severity.value}] {advisory.message}")
        if advisory.command:
            lines.append(f"   {advisory.command}")

    return "\n".join(lines)
