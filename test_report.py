"""Report aggregation tests."""

from decimal import Decimal

from conftest import SCHOOL_ID, make_record
from payroll.models import EmployeeType
from payroll.seeder import SeedOutcome, SeedResult, SeedStatus
from reconciliation.cleanup import CleanupResult
from reconciliation.engine import ReconciliationReport
from reconciliation.report import AdvisoryCode, Severity, build_summary, render_summary


def make_report(**overrides):
    fields = dict(school_id=SCHOOL_ID)
    fields.update(overrides)
    return ReconciliationReport(**fields)


class TestAdvisories:
    def test_corrupted_records_recommend_cleanup(self):
        summary = build_summary(make_report(total_records=2, valid_records=1, corrupted_records=1,
                                            teachers_with_salary=1))

        assert summary.recommend_cleanup
        assert not summary.recommend_seed
        advisory = summary.advisories[0]
        assert advisory.severity == Severity.WARN
        assert advisory.command == f"salary-doctor cleanup {SCHOOL_ID}"

    def test_no_salary_data_recommends_seed(self):
        summary = build_summary(make_report())

        assert summary.recommend_seed
        assert [a.code for a in summary.advisories] == [AdvisoryCode.RECOMMEND_SEED]

    def test_roster_pay_suppresses_seed_advice(self):
        summary = build_summary(make_report(staff_with_salary=2))

        assert not summary.recommend_seed

    def test_healthy_ledger_has_no_advisories(self):
        summary = build_summary(make_report(total_records=3, valid_records=3, teachers_with_salary=3))

        assert summary.advisories == []

    def test_partial_writes_are_flagged(self):
        seed_result = SeedResult(school_id=SCHOOL_ID, outcomes=[
            SeedOutcome("a" * 24, EmployeeType.TEACHER, "Sita Sharma", SeedStatus.PARTIAL_WRITE),
            SeedOutcome("b" * 24, EmployeeType.STAFF, "Maya Gurung", SeedStatus.CREATED),
        ])

        summary = build_summary(make_report(valid_records=2, teachers_with_salary=1), seed_result=seed_result)

        assert [a.code for a in summary.advisories] == [AdvisoryCode.PARTIAL_WRITES]


class TestSummary:
    def test_to_dict_includes_all_sections(self):
        cleanup = CleanupResult(school_id=SCHOOL_ID, deleted_count=1,
                                removed=[make_record("teacher-5").audit_details()])
        summary = build_summary(make_report(), cleanup_result=cleanup)

        data = summary.to_dict()

        assert data["report"]["school_id"] == SCHOOL_ID
        assert data["cleanup"]["deleted_count"] == 1
        assert data["seed"] is None
        assert data["advisories"][0]["code"] == "RECOMMEND_SEED"

    def test_render_summary(self):
        corrupted = make_record("teacher-5", base_salary=25000).model_dump(mode="json")
        report = make_report(
            total_records=4,
            valid_records=3,
            corrupted_records=1,
            teachers_with_salary=3,
            matched_teacher_records=3,
            total_salary_paid=Decimal("103200"),
            corrupted_sample=[corrupted],
            roster_sample=[{"id": "a" * 24, "name": "Sita Sharma", "base_salary": "30000"}],
        )

        text = render_summary(build_summary(report))

        assert "Total Salary Records: 4" in text
        assert "Corrupted Records: 1" in text
        assert "Total Salary Paid: NPR 103,200" in text
        assert 'Employee ID: "teacher-5"' in text
        assert "   - Sita Sharma: NPR 30000" in text
        assert f"salary-doctor cleanup {SCHOOL_ID}" in text

    def test_render_seed_section(self):
        seed_result = SeedResult(school_id=SCHOOL_ID, teachers_found=1, outcomes=[
            SeedOutcome("a" * 24, EmployeeType.TEACHER, "Sita Sharma", SeedStatus.CREATED,
                        base_salary=Decimal("30000")),
        ])

        text = render_summary(build_summary(make_report(valid_records=1), seed_result=seed_result))

        assert "SAMPLE SALARY RECORDS" in text
        assert "[CREATED] teacher: Sita Sharma - NPR 30,000/month" in text
        assert "Created 1 new salary records" in text
