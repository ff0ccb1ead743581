"""
Shared helpers for model timestamps and identifiers.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f+00:00"


def utc_now() -> str:
    """Current UTC time as a fixed-width ISO string (sorts lexicographically)."""
    return datetime.now(timezone.utc).strftime(_TIMESTAMP_FORMAT)


def next_timestamp(previous: Optional[str]) -> str:
    """A timestamp strictly later than previous, normally the current time."""
    now = utc_now()
    if previous and now <= previous:
        prev = datetime.strptime(previous, _TIMESTAMP_FORMAT)
        return (prev + timedelta(microseconds=1)).strftime(_TIMESTAMP_FORMAT)
    return now


def new_id() -> str:
    return str(uuid.uuid4())
