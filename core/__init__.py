"""Core module - cross-cutting infrastructure.

Structured logging and the audit trail live here. Payroll domain logic
belongs in /payroll/, ledger checks in /reconciliation/.
"""

__version__ = "1.0.0"
