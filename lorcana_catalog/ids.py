"""ID and timestamp generation.

Services take ``new_id`` and ``now`` callables so tests can inject
deterministic replacements.
"""

from __future__ import annotations

import secrets
import time
import uuid
from datetime import datetime, timezone
from typing import Callable

IdFactory = Callable[[str], str]
Clock = Callable[[], str]

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def timestamped_id(prefix: str) -> str:
    """Return ``<prefix>_<epoch ms>_<9 random base36 chars>``.

    Collision-resistant, not checked against anything already stored.
    """
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


def uuid_id(prefix: str = "") -> str:
    """Random UUID4 string; ``prefix`` is unused."""
    return str(uuid.uuid4())


def unique_token() -> str:
    """Short random token used to keep snapshot file names distinct."""
    return secrets.token_hex(4)
