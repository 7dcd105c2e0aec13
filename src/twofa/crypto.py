"""AES-256-GCM sealing of TOTP secrets at rest."""

from __future__ import annotations

import base64
import binascii

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from twofa.config import settings
from twofa.errors import InvalidSecret
from twofa.keygen import random_bytes

_NONCE_SIZE = 12  # 96-bit nonce for AES-GCM
_AAD = b"twofa:totp-secret"


def _get_key() -> bytes:
    raw = settings.master_key
    if not raw:
        raise RuntimeError("TWOFA_MASTER_KEY not set")
    key = base64.b64decode(raw)
    if len(key) != 32:
        raise ValueError("TWOFA_MASTER_KEY must be 32 bytes (base64-encoded)")
    return key


def seal_secret(secret: str) -> str:
    """Encrypt a base32 secret. Returns base64(nonce + ciphertext)."""
    key = _get_key()
    nonce = random_bytes(_NONCE_SIZE)
    ct = AESGCM(key).encrypt(nonce, secret.encode(), _AAD)
    return base64.b64encode(nonce + ct).decode()


def open_secret(token: str) -> str:
    """Decrypt a sealed secret; tampered or foreign tokens raise InvalidSecret."""
    key = _get_key()
    try:
        raw = base64.b64decode(token, validate=True)
    except binascii.Error:
        raise InvalidSecret("Sealed secret is not valid base64") from None
    nonce, ct = raw[:_NONCE_SIZE], raw[_NONCE_SIZE:]
    try:
        return AESGCM(key).decrypt(nonce, ct, _AAD).decode()
    except (InvalidTag, ValueError):
        raise InvalidSecret("Sealed secret failed authentication") from None
