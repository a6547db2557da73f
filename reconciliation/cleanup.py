"""Deletion of corrupted salary records.

Cleanup is destructive and irreversible: corrupted records are hard-deleted,
not archived. Each record's details are logged and written to the audit
trail before the delete is issued.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from core.audit.events import AuditEventType, AuditLogger
from core.observability.logging import get_logger, with_correlation
from payroll.db import LedgerStore
from payroll.models import SalaryRecord
from reconciliation.engine import fetch_active_records, partition_records


logger = get_logger(__name__)


@dataclass
class CleanupResult:
    school_id: str
    deleted_count: int = 0
    removed: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def found_count(self) -> int:
        return len(self.removed)

    def to_dict(self) -> Dict:
        return {
            "school_id": self.school_id,
            "found_count": self.found_count,
            "deleted_count": self.deleted_count,
            "removed": self.removed,
        }


def cleanup_corrupted(
    store: LedgerStore,
    school_id: str,
    audit: Optional[AuditLogger] = None,
) -> CleanupResult:
    """Delete every active salary record in the school with a malformed reference.

    Args:
        store: Ledger store
        school_id: Organization scope
        audit: Optional audit trail; receives one event per removed record

    Returns:
        CleanupResult with the delete count and the removed records' details
    """
    result = CleanupResult(school_id=school_id)

    with with_correlation(school_id=school_id, stage="cleanup"):
        _, corrupted = partition_records(fetch_active_records(store, school_id))
        logger.info(f"Found {len(corrupted)} corrupted records")

        if not corrupted:
            logger.info("No corrupted records to delete")
            return result

        for index, record in enumerate(corrupted, start=1):
            details = record.audit_details()
            result.removed.append(details)
            logger.info(
                f"{index}. {details['employee_type']} - Position: {details['position']} "
                f"- Salary: {details['base_salary']}",
                extra_fields=details,
            )
            if audit is not None:
                audit.log_info(
                    AuditEventType.SALARY_RECORD_DELETED,
                    "Deleting corrupted salary record",
                    school_id=school_id,
                    salary_id=record.id,
                    details=details,
                )

        # Delete by id so only the records reported above are removed
        result.deleted_count = store.delete_many(SalaryRecord, {
            "school_id": school_id,
            "id": {"$in": [record.id for record in corrupted]},
        })

        if result.deleted_count != len(corrupted):
            logger.warning(
                f"Expected to delete {len(corrupted)} records but deleted {result.deleted_count}",
            )
        logger.info(f"Deleted {result.deleted_count} corrupted records")

        if audit is not None:
            audit.log_info(
                AuditEventType.CLEANUP_COMPLETED,
                f"Deleted {result.deleted_count} corrupted salary records",
                school_id=school_id,
                details={"deleted_count": result.deleted_count},
            )

    return result
