"""TOTP (RFC 6238) token computation and verification.

HMAC-SHA1, 30-second steps, 6-digit codes: the parameters every mainstream
authenticator app assumes when it scans an ``otpauth://`` URI.
"""

from __future__ import annotations

import logging
import re
import struct
import time

from cryptography.hazmat.primitives import hashes, hmac
from cryptography.hazmat.primitives.constant_time import bytes_eq

from twofa import base32
from twofa.errors import InvalidEncoding, InvalidFormat, InvalidSecret
from twofa.models import VerificationResult

logger = logging.getLogger(__name__)

PERIOD = 30
DIGITS = 6
_MODULUS = 10**DIGITS
_MAX_STEP = 2**64
_CODE_RE = re.compile(r"[0-9]{6}")

# Adjacent steps absorb up to ~30s of client/server clock drift.
SKEW_OFFSETS = (-1, 0, 1)


def time_step(now: float) -> int:
    """Index of the 30-second window containing ``now`` (unix seconds)."""
    return int(now // PERIOD)


def constant_time_equals(a: str, b: str) -> bool:
    return bytes_eq(a.encode("ascii"), b.encode("ascii"))


def normalize_code(code: str) -> str:
    """Strip whitespace; raise InvalidFormat unless exactly six ASCII digits remain."""
    cleaned = "".join(code.split())
    if not _CODE_RE.fullmatch(cleaned):
        raise InvalidFormat("Verification code must be 6 digits")
    return cleaned


def _key_from_secret(secret: str) -> bytes:
    try:
        key = base32.decode(secret)
    except InvalidEncoding:
        logger.error("Stored TOTP secret failed base32 decoding")
        raise InvalidSecret() from None
    if not key:
        logger.error("Stored TOTP secret is empty")
        raise InvalidSecret()
    return key


def _token(key: bytes, step: int) -> str:
    if not 0 <= step < _MAX_STEP:
        raise ValueError("time_step must fit in an unsigned 64-bit counter")
    mac = hmac.HMAC(key, hashes.SHA1())
    mac.update(struct.pack(">Q", step))
    digest = mac.finalize()

    # Dynamic truncation (RFC 4226 section 5.3)
    offset = digest[-1] & 0x0F
    value = struct.unpack(">I", digest[offset : offset + 4])[0] & 0x7FFFFFFF
    return str(value % _MODULUS).zfill(DIGITS)


def compute_token(secret: str, time_step: int) -> str:
    """Compute the 6-digit code for a base32 secret at a given time-step index."""
    return _token(_key_from_secret(secret), time_step)


def now_token(secret: str, now: float | None = None) -> str:
    """Get the TOTP code for a secret at ``now`` (defaults to the current time)."""
    if now is None:
        now = time.time()
    return compute_token(secret, time_step(now))


def verify(
    secret: str,
    submitted_code: str,
    now: float | None = None,
) -> VerificationResult:
    """Verify a submitted code against the previous, current and next steps.

    Raises InvalidFormat before any HMAC work if the code is not 6 digits,
    and InvalidSecret if the stored secret does not decode. A wrong code is
    a normal ``is_valid=False`` result.
    """
    code = normalize_code(submitted_code)
    key = _key_from_secret(secret)

    if now is None:
        now = time.time()

    base = time_step(now)
    for offset in SKEW_OFFSETS:
        step = base + offset
        if step < 0:
            continue
        if constant_time_equals(code, _token(key, step)):
            logger.info("TOTP verification succeeded (offset=%d)", offset)
            return VerificationResult(is_valid=True, matched_offset=offset)

    logger.info("TOTP verification failed")
    return VerificationResult(is_valid=False)
