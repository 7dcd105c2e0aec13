"""otpauth:// provisioning URIs for authenticator-app enrollment."""

from __future__ import annotations

import logging
from urllib.parse import quote, urlencode

from twofa import backup_codes, base32, keygen
from twofa.config import settings
from twofa.errors import InvalidEncoding, InvalidSecret
from twofa.models import SetupBundle
from twofa.totp import DIGITS, PERIOD

logger = logging.getLogger(__name__)


def build_uri(secret: str, account_label: str, issuer: str | None = None) -> str:
    """Get the otpauth:// URI for QR code enrollment.

    ``issuer:account_label`` is percent-encoded as one path segment; the
    query carries secret, issuer and the fixed algorithm parameters.
    Raises InvalidSecret if ``secret`` is not decodable base32.
    """
    try:
        key = base32.decode(secret)
    except InvalidEncoding:
        raise InvalidSecret() from None
    if not key:
        raise InvalidSecret()
    # Authenticator apps expect upper-case, unpadded base32
    secret = secret.upper().rstrip("=")

    if issuer is None:
        issuer = settings.issuer
    if not account_label:
        raise ValueError("account_label is required")
    if not issuer:
        raise ValueError("issuer is required")
    if ":" in issuer:
        raise ValueError("issuer must not contain ':'")

    label = quote(f"{issuer}:{account_label}", safe="")
    query = urlencode(
        {
            "secret": secret,
            "issuer": issuer,
            "algorithm": "SHA1",
            "digits": DIGITS,
            "period": PERIOD,
        },
        quote_via=quote,
    )
    return f"otpauth://totp/{label}?{query}"


def build_setup(
    account_label: str,
    issuer: str | None = None,
    backup_code_count: int | None = None,
) -> SetupBundle:
    """Generate a fresh secret, its provisioning URI and a backup-code set."""
    secret = keygen.generate_secret()
    uri = build_uri(secret, account_label, issuer)
    codes = backup_codes.generate_codes(backup_code_count)
    logger.info("2FA setup material generated (%d backup codes)", len(codes.codes))
    return SetupBundle(secret=secret, provisioning_uri=uri, backup_codes=codes)
