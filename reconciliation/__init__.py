"""Reconciliation - ledger diagnosis, cleanup and reporting.

Usage:
    from reconciliation import reconcile, cleanup_corrupted, build_summary, render_summary

    cleanup = cleanup_corrupted(store, school_id)
    report = reconcile(store, school_id)
    print(render_summary(build_summary(report, cleanup_result=cleanup)))
"""

from reconciliation.engine import (
    ReconciliationReport,
    TypeTotals,
    ledger_totals,
    partition_records,
    reconcile,
)
from reconciliation.cleanup import CleanupResult, cleanup_corrupted
from reconciliation.report import (
    Advisory,
    AdvisoryCode,
    DoctorSummary,
    build_summary,
    render_summary,
)

__all__ = [
    "ReconciliationReport",
    "TypeTotals",
    "ledger_totals",
    "partition_records",
    "reconcile",
    "CleanupResult",
    "cleanup_corrupted",
    "Advisory",
    "AdvisoryCode",
    "DoctorSummary",
    "build_summary",
    "render_summary",
]
