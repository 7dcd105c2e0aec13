"""One-time backup recovery codes.

Consumption is a pure function: the caller gets back a new code set and
persists it, serializing concurrent attempts per account on its side.
"""

from __future__ import annotations

import logging
import re

from twofa.config import settings
from twofa.errors import InvalidFormat
from twofa.keygen import random_bytes
from twofa.models import BackupCode, BackupCodeMatch, BackupCodeSet
from twofa.totp import constant_time_equals

logger = logging.getLogger(__name__)

CODE_BYTES = 4
_CODE_RE = re.compile(r"[0-9A-F]{8}")


def _new_code() -> str:
    return random_bytes(CODE_BYTES).hex().upper()


def generate_codes(count: int | None = None) -> BackupCodeSet:
    """Generate ``count`` distinct unused codes (8 upper-case hex chars each)."""
    if count is None:
        count = settings.backup_code_count
    if count < 1:
        raise ValueError("count must be at least 1")

    seen: set[str] = set()
    values: list[str] = []
    while len(values) < count:
        code = _new_code()
        if code in seen:
            logger.debug("Backup code collision, drawing again")
            continue
        seen.add(code)
        values.append(code)
    return BackupCodeSet(codes=tuple(BackupCode(value=v) for v in values))


def regenerate_codes(count: int | None = None) -> BackupCodeSet:
    """Issue a replacement set. Every code of the previous set becomes invalid."""
    code_set = generate_codes(count)
    logger.info("Regenerated %d backup codes", len(code_set.codes))
    return code_set


def normalize(code: str) -> str:
    return "".join(code.split()).upper()


def is_well_formed(code: str) -> bool:
    return _CODE_RE.fullmatch(normalize(code)) is not None


def verify_and_consume(submitted_code: str, code_set: BackupCodeSet) -> BackupCodeMatch:
    """Check a submitted code against the unused codes of ``code_set``.

    Every unused code is compared in constant time, without stopping at the
    first hit. On a match the returned ``code_set`` has that single code
    consumed; ``code_set`` itself is left untouched.
    """
    code = normalize(submitted_code)
    if not _CODE_RE.fullmatch(code):
        raise InvalidFormat("Backup code must be 8 hexadecimal characters")

    matched: int | None = None
    for index, candidate in enumerate(code_set.codes):
        if candidate.consumed:
            continue
        if constant_time_equals(code, candidate.value) and matched is None:
            matched = index

    if matched is None:
        logger.info("Backup code verification failed")
        return BackupCodeMatch(is_valid=False, code_set=code_set)

    new_set = code_set.consume(matched)
    logger.info("Backup code %d consumed, %d remaining", matched, new_set.remaining)
    return BackupCodeMatch(is_valid=True, index=matched, code_set=new_set)
