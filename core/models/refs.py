"""Audit models for tracking destructive and corrective ledger actions."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class AuditSeverity(str, Enum):
    """Severity levels for audit events."""
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class AuditEvent(BaseModel):
    """An audit event for tracking system actions.

    Every record the doctor deletes, creates or fails to mirror leaves one
    of these behind, carrying the record's details as they were at the time.
    """
    event_id: str = Field(..., description="Unique event identifier")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Event timestamp")
    event_type: str = Field(..., description="Type of event (SALARY_RECORD_DELETED, ...)")
    severity: AuditSeverity = Field(default=AuditSeverity.INFO, description="Event severity")

    # Context
    school_id: Optional[str] = Field(None, description="Organization scope")
    salary_id: Optional[str] = Field(None, description="Affected salary record")
    employee_id: Optional[str] = Field(None, description="Affected roster entry")

    # Details
    message: str = Field(..., description="Human-readable message")
    details: dict = Field(default_factory=dict, description="Additional event details")

    # Actor
    actor: str = Field(default="system", description="Who/what performed the action")
