# sm2_certgen/utils.py
"""Utility helpers (serial, validity window, SM3, PEM armour)."""

from __future__ import annotations

import base64
import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from cryptography.hazmat.primitives import hashes

from .exceptions import InvalidValidityError, RandomSourceError

SERIAL_LENGTH = 12
SECONDS_PER_DAY = 86400
PEM_LINE_WIDTH = 64


# -------- serial -------------------------------------------------------- #
def generate_serial(length: int = SERIAL_LENGTH) -> bytes:
    """Return ``length`` bytes from the OS CSPRNG (96 bits by default)."""
    try:
        return secrets.token_bytes(length)
    except (OSError, NotImplementedError) as exc:
        raise RandomSourceError(f"entropy source unavailable: {exc}") from exc


# -------- validity ------------------------------------------------------ #
def validity_window(days: int, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """
    ``(not_before, not_after)`` in UTC, whole seconds.
    not_after is exactly ``days * 86400`` seconds after not_before.
    """
    if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
        raise InvalidValidityError(f"validity days must be a positive integer, got {days!r}")
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    not_before = now.astimezone(timezone.utc).replace(microsecond=0)
    try:
        not_after = not_before + timedelta(seconds=days * SECONDS_PER_DAY)
    except OverflowError as exc:
        # past 9999-12-31, which GeneralizedTime cannot carry either
        raise InvalidValidityError(f"validity of {days} days is out of range") from exc
    return not_before, not_after


# -------- digests ------------------------------------------------------- #
def sm3_digest(data: bytes) -> bytes:
    h = hashes.Hash(hashes.SM3())
    h.update(data)
    return h.finalize()


# -------- PEM ----------------------------------------------------------- #
def pem_encode(der: bytes, label: str) -> bytes:
    b64 = base64.b64encode(der).decode("ascii")
    lines = [b64[i:i + PEM_LINE_WIDTH] for i in range(0, len(b64), PEM_LINE_WIDTH)]
    return (
        f"-----BEGIN {label}-----\n"
        + "\n".join(lines)
        + f"\n-----END {label}-----\n"
    ).encode("ascii")


def pem_decode(pem: bytes, label: str) -> bytes:
    """Body of the first ``label`` block; ValueError if absent or not base64."""
    text = pem.decode("ascii", errors="replace") if isinstance(pem, bytes) else pem
    m = re.search(
        rf"-----BEGIN {label}-----(.*?)-----END {label}-----", text, re.DOTALL
    )
    if not m:
        raise ValueError(f"no '{label}' PEM block found")
    return base64.b64decode("".join(m.group(1).split()), validate=True)
