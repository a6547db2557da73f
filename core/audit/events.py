"""Audit event logging and persistence.

Provides an audit trail for every ledger mutation the doctor performs:
record deletions during cleanup, record creation and roster mirroring during
seeding. Supports multiple persistence backends.
"""

import json
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from core.models.refs import AuditEvent, AuditSeverity
from core.observability.logging import get_logger


logger = get_logger(__name__)


class AuditEventType(str, Enum):
    """Standard audit event types."""
    # Cleanup
    SALARY_RECORD_DELETED = "SALARY_RECORD_DELETED"
    CLEANUP_COMPLETED = "CLEANUP_COMPLETED"

    # Seeding
    SALARY_RECORD_CREATED = "SALARY_RECORD_CREATED"
    ROSTER_MIRROR_FAILED = "ROSTER_MIRROR_FAILED"
    HISTORY_APPEND_FAILED = "HISTORY_APPEND_FAILED"
    SEED_EMPLOYEE_FAILED = "SEED_EMPLOYEE_FAILED"

    # Ledger operations
    SALARY_ASSIGNED = "SALARY_ASSIGNED"
    PAYMENT_RECORDED = "PAYMENT_RECORDED"
    SALARY_ARCHIVED = "SALARY_ARCHIVED"


def create_audit_event(
    event_type: AuditEventType,
    message: str,
    severity: AuditSeverity = AuditSeverity.INFO,
    school_id: Optional[str] = None,
    salary_id: Optional[str] = None,
    employee_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    actor: str = "system",
) -> AuditEvent:
    """Create a new audit event with auto-generated ID and timestamp.

    Args:
        event_type: Type of event
        message: Human-readable message
        severity: Event severity level
        school_id: Organization scope
        salary_id: Affected salary record
        employee_id: Affected roster entry
        details: Additional structured details
        actor: Who/what performed the action

    Returns:
        Configured AuditEvent ready for logging
    """
    return AuditEvent(
        event_id=str(uuid.uuid4()),
        timestamp=datetime.utcnow(),
        event_type=event_type.value,
        severity=severity,
        school_id=school_id,
        salary_id=salary_id,
        employee_id=employee_id,
        message=message,
        details=details or {},
        actor=actor,
    )


# =============================================================================
# Backends
# =============================================================================

class AuditBackend(ABC):
    """Where audit events are kept."""

    @abstractmethod
    def log(self, event: AuditEvent) -> None:
        """Persist an audit event."""

    @abstractmethod
    def events(self) -> Iterator[AuditEvent]:
        """Every stored event, oldest first."""

    def query(
        self,
        event_type: Optional[str] = None,
        school_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[AuditEvent]:
        """Events matching the filters, oldest first, at most ``limit``."""
        results: List[AuditEvent] = []
        for event in self.events():
            if len(results) >= limit:
                break
            if event_type and event.event_type != event_type:
                continue
            if school_id and event.school_id != school_id:
                continue
            results.append(event)
        return results


class JSONFileAuditBackend(AuditBackend):
    """Append-only JSON Lines files, one per UTC day (``YYYY-MM-DD.jsonl``).

    Appending a line never rewrites earlier events, so a crash mid-run
    loses at most the event being written.
    """

    def __init__(self, base_path: Path):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def path_for(self, timestamp: datetime) -> Path:
        return self.base_path / f"{timestamp:%Y-%m-%d}.jsonl"

    def log(self, event: AuditEvent) -> None:
        with open(self.path_for(event.timestamp), "a", encoding="utf-8") as f:
            f.write(event.model_dump_json() + "\n")

    def events(self) -> Iterator[AuditEvent]:
        for file_path in sorted(self.base_path.glob("*.jsonl")):
            with open(file_path, "r", encoding="utf-8") as f:
                for line in f:
                    if line.strip():
                        yield AuditEvent.model_validate(json.loads(line))


class InMemoryAuditBackend(AuditBackend):
    """In-memory audit backend for testing and dry runs."""

    def __init__(self):
        self._events: List[AuditEvent] = []

    def log(self, event: AuditEvent) -> None:
        self._events.append(event)

    def events(self) -> Iterator[AuditEvent]:
        return iter(list(self._events))

    def clear(self) -> None:
        self._events.clear()


# =============================================================================
# Audit Logger
# =============================================================================

class AuditLogger:
    """Fans audit events out to every registered backend.

    Usage:
        audit = AuditLogger()
        audit.add_backend(JSONFileAuditBackend(Path("./audit")))

        audit.log_info(
            AuditEventType.SALARY_RECORD_DELETED,
            "Deleting corrupted salary record",
            school_id=school_id,
            salary_id=record.id,
            details=record.audit_details(),
        )
    """

    def __init__(self):
        self._backends: List[AuditBackend] = []

    @property
    def backends(self) -> List[AuditBackend]:
        return list(self._backends)

    def add_backend(self, backend: AuditBackend) -> None:
        self._backends.append(backend)

    def log(self, event: AuditEvent) -> None:
        """Write to all backends. A failing backend is logged and skipped."""
        for backend in self._backends:
            try:
                backend.log(event)
            except (OSError, ValueError) as e:
                logger.error(
                    f"Audit logging failed for backend {type(backend).__name__}: {e}",
                    extra_fields={"event_type": event.event_type, "event_id": event.event_id},
                )

    def record(self, severity: AuditSeverity, event_type: AuditEventType, message: str, **kwargs) -> AuditEvent:
        event = create_audit_event(event_type, message, severity, **kwargs)
        self.log(event)
        return event

    def log_info(self, event_type: AuditEventType, message: str, **kwargs) -> AuditEvent:
        return self.record(AuditSeverity.INFO, event_type, message, **kwargs)

    def log_warning(self, event_type: AuditEventType, message: str, **kwargs) -> AuditEvent:
        return self.record(AuditSeverity.WARN, event_type, message, **kwargs)

    def log_error(self, event_type: AuditEventType, message: str, **kwargs) -> AuditEvent:
        return self.record(AuditSeverity.ERROR, event_type, message, **kwargs)

    def query(
        self,
        event_type: Optional[str] = None,
        school_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[AuditEvent]:
        """Query the first backend; the others are write-only mirrors."""
        if not self._backends:
            return []
        return self._backends[0].query(event_type, school_id, limit)
