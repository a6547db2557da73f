"""Employee reference validation.

Ledger records point at roster entries through a 24-character hexadecimal
identifier, the canonical document id format of the storage layer. Anything
else in that field (a display name, a slug like ``"teacher-5"``, a number,
nothing at all) marks the record as corrupted.
"""

import re
import secrets
import time
from typing import Any, Optional


IDENTIFIER_LENGTH = 24

_IDENTIFIER_RE = re.compile(r"[0-9a-fA-F]{24}")


def is_valid_identifier(value: Any) -> bool:
    """Return True iff value is a 24-character hexadecimal string."""
    if not isinstance(value, str):
        return False
    return _IDENTIFIER_RE.fullmatch(value) is not None


def reference_text(value: Any) -> Optional[str]:
    """Render a stored employee reference in string form.

    Identifier comparisons always happen on the string form, whatever native
    type the storage layer used for the field.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return str(value)


def new_identifier() -> str:
    """Mint a fresh identifier: 4-byte timestamp followed by 8 random bytes."""
    timestamp = int(time.time()) & 0xFFFFFFFF
    return f"{timestamp:08x}{secrets.token_hex(8)}"
