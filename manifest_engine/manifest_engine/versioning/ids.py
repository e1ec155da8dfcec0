"""Time-ordered identifiers for versions, snapshots, and export records."""

from __future__ import annotations

import secrets
import string
import time

_ALPHABET = string.digits + string.ascii_lowercase


def generate_id(prefix: str) -> str:
    """Return ``<prefix>_<epoch-ms>_<6 random base36 chars>``."""
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(6))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"
