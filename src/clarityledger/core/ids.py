"""Record id generation."""

import secrets
import string
import threading
from datetime import datetime, timedelta, timezone

_ALPHABET = string.digits + string.ascii_lowercase
_lock = threading.Lock()
_last_stamp: datetime | None = None


def _next_stamp() -> datetime:
    """Current UTC time, strictly increasing within the process."""
    global _last_stamp
    with _lock:
        now = datetime.now(timezone.utc)
        if _last_stamp is not None and now <= _last_stamp:
            now = _last_stamp + timedelta(microseconds=1)
        _last_stamp = now
        return now


def generate_id(prefix: str) -> str:
    """Build ids like ``txn_2024-03-15T10:20:30.123456Z_k3j9x0a``."""
    stamp = _next_stamp().strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(7))
    return f"{prefix}_{stamp}_{suffix}"
