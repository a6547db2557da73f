"""Core data models shared across the ledger tooling."""

from core.models.refs import (
    AuditEvent,
    AuditSeverity,
)

__all__ = [
    "AuditEvent",
    "AuditSeverity",
]
