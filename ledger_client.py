"""Ledger store factory.

Builds the configured ledger store and audit trail from environment.
"""

import os
from pathlib import Path
from typing import Optional

# Load .env file if it exists
from dotenv import load_dotenv
env_path = Path(__file__).resolve().parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

from core.audit.events import AuditLogger, InMemoryAuditBackend, JSONFileAuditBackend
from payroll.db import DEFAULT_DB_PATH, InMemoryLedgerStore, LedgerStore, SqliteLedgerStore


BACKENDS = ("sqlite", "memory")


def get_ledger_store(backend: Optional[str] = None, db_path: Optional[Path] = None) -> LedgerStore:
    """Create the ledger store.

    Reads configuration from environment variables when arguments are not given:
    - LEDGER_BACKEND: "sqlite" (default) or "memory"
    - LEDGER_DB_PATH: SQLite database file (default: payroll_ledger.db in the repo root)

    Returns:
        Ready-to-use LedgerStore

    Raises:
        ValueError: If the backend name is unknown
        StoreConnectionError: If the SQLite database cannot be opened
    """
    backend = (backend or os.getenv("LEDGER_BACKEND") or "sqlite").lower()

    if backend == "memory":
        return InMemoryLedgerStore()

    if backend != "sqlite":
        raise ValueError(
            f"LEDGER_BACKEND must be one of {', '.join(BACKENDS)}, got '{backend}'"
        )

    path = db_path or Path(os.getenv("LEDGER_DB_PATH") or DEFAULT_DB_PATH)
    return SqliteLedgerStore(Path(path))


def get_audit_logger(audit_dir: Optional[Path] = None) -> AuditLogger:
    """Create the audit trail.

    - LEDGER_AUDIT_DIR: directory for daily JSON Lines audit files. When unset,
      events are kept in memory for the duration of the run.
    """
    audit = AuditLogger()
    directory = audit_dir or os.getenv("LEDGER_AUDIT_DIR")
    if directory:
        audit.add_backend(JSONFileAuditBackend(Path(directory)))
    else:
        audit.add_backend(InMemoryAuditBackend())
    return audit


def log_json_enabled() -> bool:
    """LEDGER_LOG_JSON=1 switches log output to JSON lines."""
    return os.getenv("LEDGER_LOG_JSON", "").lower() in ("1", "true", "yes")
