"""Secret generation from the OS cryptographic RNG."""

from __future__ import annotations

import logging
import os

from twofa import base32
from twofa.config import settings
from twofa.errors import EntropySourceFailure

logger = logging.getLogger(__name__)


def random_bytes(n: int) -> bytes:
    """Draw ``n`` bytes from the OS CSPRNG. Never falls back to a weaker source."""
    try:
        return os.urandom(n)
    except (OSError, NotImplementedError) as exc:
        logger.error("OS random source failed while drawing %d bytes", n)
        raise EntropySourceFailure() from exc


def generate_secret(byte_length: int | None = None) -> str:
    """Generate a new TOTP secret (base32-encoded, 32 chars for 20 bytes)."""
    if byte_length is None:
        byte_length = settings.secret_bytes
    if byte_length < 1:
        raise ValueError("byte_length must be at least 1")
    return base32.encode(random_bytes(byte_length))
