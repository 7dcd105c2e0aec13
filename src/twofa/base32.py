"""RFC 4648 base32 codec without padding, as used by authenticator apps."""

from __future__ import annotations

import base64
import binascii

from twofa.errors import InvalidEncoding

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"
_ALPHABET_SET = frozenset(ALPHABET)


def encode(data: bytes) -> str:
    """Encode bytes to unpadded uppercase base32."""
    return base64.b32encode(data).decode("ascii").rstrip("=")


def decode(text: str) -> bytes:
    """Decode base32, case-insensitively, ignoring trailing ``=`` padding.

    Raises InvalidEncoding on a non-alphabet character or an impossible length.
    Messages report positions only, never the input.
    """
    stripped = text.rstrip("=")
    # Checked before upper-casing: str.upper() maps some non-ASCII letters
    # (dotless i, long s, sharp s) onto the alphabet.
    for pos, char in enumerate(stripped):
        if not char.isascii() or char.upper() not in _ALPHABET_SET:
            raise InvalidEncoding(f"Invalid base32 character at position {pos}")
    cleaned = stripped.upper()

    # Lengths 1, 3 and 6 (mod 8) cannot come out of any encoder.
    if len(cleaned) % 8 in (1, 3, 6):
        raise InvalidEncoding(f"Invalid base32 length {len(cleaned)}")

    padded = cleaned + "=" * (-len(cleaned) % 8)
    try:
        return base64.b32decode(padded)
    except binascii.Error as exc:
        raise InvalidEncoding("Invalid base32 encoding") from exc
