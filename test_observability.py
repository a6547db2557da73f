"""
Observability Validation Test

Validates the logging and audit stack:
1. Correlation context nests and resets
2. Structured (JSON) and human-readable formatters carry correlation IDs
3. Audit events reach every backend and can be queried back
4. A failing audit backend does not break the run
"""

import io
import json
import logging

import pytest

from core.audit.events import (
    AuditBackend,
    AuditEventType,
    AuditLogger,
    InMemoryAuditBackend,
    JSONFileAuditBackend,
    create_audit_event,
)
from core.models.refs import AuditSeverity
from core.observability.logging import (
    CorrelationContext,
    HumanReadableFormatter,
    StructuredFormatter,
    configure_logging,
    correlation_tag,
    get_correlation_context,
    get_logger,
    with_correlation,
)


SCHOOL_ID = "64b7f1f77bcf86cd79943901"


@pytest.fixture
def captured():
    """Attach a handler to a throwaway logger and return (logger, stream, handler)."""
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    base = logging.getLogger("payroll.test_observability")
    base.setLevel(logging.DEBUG)
    base.addHandler(handler)
    base.propagate = False
    yield get_logger("payroll.test_observability"), stream, handler
    base.removeHandler(handler)
    base.propagate = True


class TestCorrelationContext:
    def test_to_dict_drops_empty_fields(self):
        ctx = CorrelationContext(school_id=SCHOOL_ID, stage="seed")
        assert ctx.to_dict() == {"school_id": SCHOOL_ID, "stage": "seed"}

    def test_nested_contexts_merge_and_reset(self):
        assert get_correlation_context().school_id is None

        with with_correlation(school_id=SCHOOL_ID, command="fix"):
            with with_correlation(stage="cleanup", employee_id="e1"):
                ctx = get_correlation_context()
                assert ctx.school_id == SCHOOL_ID
                assert ctx.command == "fix"
                assert ctx.stage == "cleanup"
            assert get_correlation_context().stage is None

        assert get_correlation_context().to_dict() == {}


class TestFormatters:
    def test_structured_formatter(self, captured):
        logger, stream, handler = captured
        handler.setFormatter(StructuredFormatter())

        with with_correlation(school_id=SCHOOL_ID, stage="seed"):
            logger.info("Created salary record", extra_fields={"base_salary": "31250"})

        line = json.loads(stream.getvalue().strip())
        assert line["level"] == "INFO"
        assert line["logger"] == "payroll.test_observability"
        assert line["message"] == "Created salary record"
        assert line["school_id"] == SCHOOL_ID
        assert line["stage"] == "seed"
        assert line["base_salary"] == "31250"

    def test_human_readable_formatter(self, captured):
        logger, stream, handler = captured
        handler.setFormatter(HumanReadableFormatter())

        with with_correlation(school_id=SCHOOL_ID, stage="cleanup", salary_id="abcdef0123456789"):
            logger.warning("Deleting record")

        text = stream.getvalue()
        assert "[WARNING]" in text
        assert f"[{SCHOOL_ID[:8]}/cleanup/sal:abcdef01]" in text
        assert text.rstrip().endswith("Deleting record")

    def test_correlation_tag(self):
        assert correlation_tag(CorrelationContext()) == "-"
        ctx = CorrelationContext(school_id=SCHOOL_ID, command="fix", stage="seed", employee_id="507f1f77bcf86cd799439011")
        assert correlation_tag(ctx) == "64b7f1f7/fix/seed/emp:507f1f77"

    def test_exception_includes_traceback(self, captured):
        logger, stream, handler = captured
        handler.setFormatter(StructuredFormatter())

        try:
            raise RuntimeError("boom")
        except RuntimeError:
            logger.exception("Seeding failed")

        line = json.loads(stream.getvalue().strip())
        assert line["level"] == "ERROR"
        assert "RuntimeError: boom" in line["exception"]

    def test_configure_logging_replaces_its_handler(self):
        first = configure_logging(stream=io.StringIO())
        second_stream = io.StringIO()
        second = configure_logging(level=logging.DEBUG, json_format=True, stream=second_stream)
        try:
            root_handlers = logging.getLogger().handlers
            assert second in root_handlers
            assert first not in root_handlers
            assert isinstance(second.formatter, StructuredFormatter)

            with with_correlation(command="fix"):
                get_logger("reconciliation.cli").debug("debug line")
            assert json.loads(second_stream.getvalue())["command"] == "fix"
        finally:
            logging.getLogger().removeHandler(second)

    def test_debug_suppressed_above_level(self, captured):
        logger, stream, handler = captured
        logger.setLevel(logging.INFO)

        logger.debug("hidden")

        assert stream.getvalue() == ""


class TestAudit:
    def test_create_audit_event(self):
        event = create_audit_event(
            AuditEventType.SALARY_RECORD_DELETED,
            "Deleting corrupted salary record",
            AuditSeverity.WARN,
            school_id=SCHOOL_ID,
            salary_id="s1",
            details={"employee": "teacher-5"},
        )
        assert event.event_type == "SALARY_RECORD_DELETED"
        assert event.severity == AuditSeverity.WARN
        assert event.event_id
        assert event.actor == "system"

    def test_in_memory_query_filters(self):
        audit = AuditLogger()
        audit.add_backend(InMemoryAuditBackend())
        audit.log_info(AuditEventType.SALARY_RECORD_CREATED, "a", school_id=SCHOOL_ID)
        audit.log_info(AuditEventType.SALARY_RECORD_CREATED, "b", school_id="other")
        audit.log_error(AuditEventType.SEED_EMPLOYEE_FAILED, "c", school_id=SCHOOL_ID)

        assert [e.message for e in audit.query(school_id=SCHOOL_ID)] == ["a", "c"]
        assert len(audit.query(event_type=AuditEventType.SALARY_RECORD_CREATED)) == 2
        assert len(audit.query(limit=1)) == 1
        assert audit.query(event_type=AuditEventType.SEED_EMPLOYEE_FAILED)[0].severity == AuditSeverity.ERROR

    def test_json_file_backend_round_trip(self, tmp_path):
        audit = AuditLogger()
        audit.add_backend(JSONFileAuditBackend(tmp_path / "audit"))

        audit.log_warning(
            AuditEventType.ROSTER_MIRROR_FAILED,
            "mirror failed",
            school_id=SCHOOL_ID,
            salary_id="s1",
            employee_id="e1",
        )
        audit.log_info(AuditEventType.CLEANUP_COMPLETED, "done", details={"deleted_count": 2})

        files = list((tmp_path / "audit").glob("*.jsonl"))
        assert len(files) == 1
        events = audit.query()
        assert [e.event_type for e in events] == ["ROSTER_MIRROR_FAILED", "CLEANUP_COMPLETED"]
        assert events[0].employee_id == "e1"
        assert events[1].details == {"deleted_count": 2}

    def test_no_backends(self):
        audit = AuditLogger()
        audit.log_info(AuditEventType.SALARY_ARCHIVED, "nothing listens")
        assert audit.query() == []

    def test_failing_backend_does_not_break_others(self):
        class BrokenBackend(AuditBackend):
            def log(self, event):
                raise OSError("disk full")

            def events(self):
                return iter([])

        memory = InMemoryAuditBackend()
        audit = AuditLogger()
        audit.add_backend(BrokenBackend())
        audit.add_backend(memory)

        audit.log_info(AuditEventType.PAYMENT_RECORDED, "paid")

        assert len(memory.query()) == 1
