"""Pydantic models for credential material and verification outcomes."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class AuthMethod(StrEnum):
    TOTP = "totp"
    BACKUP = "backup"


class VerificationResult(BaseModel):
    """Outcome of a TOTP check.

    ``matched_offset`` is informational (clock skew) and only set when valid.
    """

    model_config = ConfigDict(frozen=True)

    is_valid: bool
    matched_offset: Literal[-1, 0, 1] | None = None

    def __bool__(self) -> bool:
        return self.is_valid


# === Backup codes ===


class BackupCode(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: str
    consumed: bool = False


class BackupCodeSet(BaseModel):
    """Ordered, immutable batch of recovery codes issued together."""

    model_config = ConfigDict(frozen=True)

    codes: tuple[BackupCode, ...] = ()

    @property
    def remaining(self) -> int:
        return sum(1 for c in self.codes if not c.consumed)

    def values(self) -> list[str]:
        return [c.value for c in self.codes]

    def unused(self) -> list[str]:
        return [c.value for c in self.codes if not c.consumed]

    def consume(self, index: int) -> BackupCodeSet:
        """Return a copy of the set with the code at ``index`` marked consumed."""
        if not 0 <= index < len(self.codes):
            raise IndexError(f"backup code index {index} out of range")
        codes = list(self.codes)
        codes[index] = codes[index].model_copy(update={"consumed": True})
        return BackupCodeSet(codes=tuple(codes))


class BackupCodeMatch(BaseModel):
    """Outcome of a backup-code check.

    ``code_set`` is the new state to persist: the matched code is consumed,
    or the set is unchanged on a miss.
    """

    model_config = ConfigDict(frozen=True)

    is_valid: bool
    index: int | None = None
    code_set: BackupCodeSet

    def __bool__(self) -> bool:
        return self.is_valid


# === Enrollment ===


class SetupBundle(BaseModel):
    """Material shown to the user once, at enrollment time."""

    model_config = ConfigDict(frozen=True)

    secret: str = Field(repr=False)
    provisioning_uri: str = Field(repr=False)
    backup_codes: BackupCodeSet = Field(repr=False)


class EnrollmentState(BaseModel):
    """Snapshot of one account's 2FA credential record."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    secret: str | None = Field(default=None, repr=False)
    pending_secret: str | None = Field(default=None, repr=False)
    backup_codes: BackupCodeSet | None = Field(default=None, repr=False)
    enabled_at: datetime | None = None
    disabled_at: datetime | None = None
    last_used_at: datetime | None = None


class TwoFactorStatus(BaseModel):
    is_enabled: bool
    is_configured: bool
    backup_codes_remaining: int | None = None
    last_used_at: datetime | None = None


class AuthResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_valid: bool
    method: AuthMethod | None = None
    matched_offset: int | None = None
    backup_index: int | None = None
    state: EnrollmentState

    def __bool__(self) -> bool:
        return self.is_valid
