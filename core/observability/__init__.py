"""
Observability Module for the Payroll Ledger Doctor

Provides structured logging with correlation IDs (school, command,
employee, salary record, stage).
"""

from core.observability.logging import (
    get_logger,
    configure_logging,
    CorrelationContext,
    with_correlation,
)

__all__ = [
    "get_logger",
    "configure_logging",
    "CorrelationContext",
    "with_correlation",
]
