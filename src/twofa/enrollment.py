"""2FA enrollment lifecycle as pure transitions over an account snapshot.

    disabled --begin_setup--> pending --confirm_setup--> enabled --disable--> disabled

Every function takes an ``EnrollmentState`` and returns a new one; the
caller persists it (ideally in the same transaction that read it).
"""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime

from twofa import backup_codes, provisioning, totp
from twofa.errors import EnrollmentError, InvalidFormat
from twofa.models import (
    AuthMethod,
    AuthResult,
    BackupCodeSet,
    EnrollmentState,
    SetupBundle,
    TwoFactorStatus,
    VerificationResult,
)

logger = logging.getLogger(__name__)


def _timestamp(now: float | None) -> datetime:
    return datetime.fromtimestamp(time.time() if now is None else now, tz=UTC)


def begin_setup(
    state: EnrollmentState,
    account_label: str,
    issuer: str | None = None,
) -> tuple[EnrollmentState, SetupBundle]:
    """Start enrollment: park a new secret as pending and issue backup codes.

    Restarting an unconfirmed setup replaces the earlier pending secret.
    """
    if state.enabled:
        raise EnrollmentError("2FA is already enabled for this account")

    bundle = provisioning.build_setup(account_label, issuer)
    new_state = state.model_copy(
        update={
            "pending_secret": bundle.secret,
            "backup_codes": bundle.backup_codes,
        }
    )
    logger.info("2FA setup initiated")
    return new_state, bundle


def confirm_setup(
    state: EnrollmentState,
    code: str,
    now: float | None = None,
) -> tuple[EnrollmentState, VerificationResult]:
    """Commit the pending secret once the user proves their app produces codes."""
    if state.enabled:
        raise EnrollmentError("2FA is already enabled for this account")
    if not state.pending_secret:
        raise EnrollmentError("2FA setup not initiated")

    result = totp.verify(state.pending_secret, code, now=now)
    if not result:
        logger.info("2FA setup confirmation failed")
        return state, result

    new_state = state.model_copy(
        update={
            "enabled": True,
            "secret": state.pending_secret,
            "pending_secret": None,
            "enabled_at": _timestamp(now),
            "disabled_at": None,
        }
    )
    logger.info("2FA enabled")
    return new_state, result


def authenticate(
    state: EnrollmentState,
    code: str,
    now: float | None = None,
    allow_backup: bool = False,
) -> AuthResult:
    """Check a login code: TOTP first, then backup codes if the caller allows it.

    Raises InvalidFormat when the code is well-formed for neither path.
    """
    if not state.enabled or not state.secret:
        raise EnrollmentError("2FA is not enabled for this account")

    is_totp_shaped = True
    try:
        result = totp.verify(state.secret, code, now=now)
    except InvalidFormat:
        if not allow_backup:
            raise
        is_totp_shaped = False
        result = VerificationResult(is_valid=False)

    if result:
        return AuthResult(
            is_valid=True,
            method=AuthMethod.TOTP,
            matched_offset=result.matched_offset,
            state=state.model_copy(update={"last_used_at": _timestamp(now)}),
        )

    if allow_backup and backup_codes.is_well_formed(code):
        match = backup_codes.verify_and_consume(code, state.backup_codes or BackupCodeSet())
        if match:
            return AuthResult(
                is_valid=True,
                method=AuthMethod.BACKUP,
                backup_index=match.index,
                state=state.model_copy(
                    update={
                        "backup_codes": match.code_set,
                        "last_used_at": _timestamp(now),
                    }
                ),
            )
    elif not is_totp_shaped:
        raise InvalidFormat("Code is neither a 6-digit code nor a backup code")

    return AuthResult(is_valid=False, state=state)


def regenerate_backup_codes(
    state: EnrollmentState,
    count: int | None = None,
) -> tuple[EnrollmentState, BackupCodeSet]:
    if not state.enabled:
        raise EnrollmentError("2FA is not enabled for this account")
    code_set = backup_codes.regenerate_codes(count)
    return state.model_copy(update={"backup_codes": code_set}), code_set


def disable(state: EnrollmentState, now: float | None = None) -> EnrollmentState:
    """Turn 2FA off, dropping the secret and every backup code."""
    if not state.enabled:
        raise EnrollmentError("2FA is not currently enabled")
    logger.info("2FA disabled")
    return state.model_copy(
        update={
            "enabled": False,
            "secret": None,
            "pending_secret": None,
            "backup_codes": None,
            "disabled_at": _timestamp(now),
        }
    )


def status(state: EnrollmentState) -> TwoFactorStatus:
    remaining = None
    if state.enabled:
        remaining = state.backup_codes.remaining if state.backup_codes else 0
    return TwoFactorStatus(
        is_enabled=state.enabled,
        is_configured=bool(state.secret or state.pending_secret),
        backup_codes_remaining=remaining,
        last_used_at=state.last_used_at,
    )
