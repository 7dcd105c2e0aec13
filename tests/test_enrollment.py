"""Tests for the enrollment lifecycle."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from twofa import enrollment, totp
from twofa.errors import EnrollmentError, InvalidFormat
from twofa.models import AuthMethod, EnrollmentState

NOW = 1700000000


def _enabled_state() -> EnrollmentState:
    state, bundle = enrollment.begin_setup(EnrollmentState(), "alice@example.com", "Acme")
    code = totp.now_token(bundle.secret, NOW)
    state, _ = enrollment.confirm_setup(state, code, now=NOW)
    return state


def test_begin_setup_parks_pending_secret():
    state, bundle = enrollment.begin_setup(EnrollmentState(), "alice@example.com", "Acme")
    assert not state.enabled
    assert state.secret is None
    assert state.pending_secret == bundle.secret
    assert state.backup_codes == bundle.backup_codes
    assert bundle.provisioning_uri.startswith("otpauth://totp/Acme%3Aalice%40example.com?")


def test_begin_setup_rejected_when_enabled():
    with pytest.raises(EnrollmentError, match="already enabled"):
        enrollment.begin_setup(_enabled_state(), "alice@example.com")


def test_restarting_setup_replaces_pending_secret():
    first, _ = enrollment.begin_setup(EnrollmentState(), "alice@example.com")
    second, bundle = enrollment.begin_setup(first, "alice@example.com")
    assert second.pending_secret == bundle.secret
    assert second.pending_secret != first.pending_secret


def test_confirm_setup_commits_secret():
    state, bundle = enrollment.begin_setup(EnrollmentState(), "alice@example.com")
    new_state, result = enrollment.confirm_setup(state, totp.now_token(bundle.secret, NOW), now=NOW)
    assert result.is_valid
    assert new_state.enabled
    assert new_state.secret == bundle.secret
    assert new_state.pending_secret is None
    assert new_state.enabled_at == datetime.fromtimestamp(NOW, tz=UTC)
    assert not state.enabled


def test_confirm_setup_wrong_code_keeps_state():
    state, bundle = enrollment.begin_setup(EnrollmentState(), "alice@example.com")
    code = totp.now_token(bundle.secret, NOW)
    wrong = str((int(code) + 1) % 1_000_000).zfill(6)
    new_state, result = enrollment.confirm_setup(state, wrong, now=NOW + 3600)
    assert not result.is_valid
    assert new_state is state


def test_confirm_setup_without_pending():
    with pytest.raises(EnrollmentError, match="not initiated"):
        enrollment.confirm_setup(EnrollmentState(), "123456", now=NOW)


def test_confirm_setup_bad_format():
    state, _ = enrollment.begin_setup(EnrollmentState(), "alice@example.com")
    with pytest.raises(InvalidFormat):
        enrollment.confirm_setup(state, "12345", now=NOW)


def test_authenticate_with_totp():
    state = _enabled_state()
    result = enrollment.authenticate(state, totp.now_token(state.secret, NOW + 30), now=NOW + 30)
    assert result.is_valid
    assert result.method == AuthMethod.TOTP
    assert result.matched_offset == 0
    assert result.state.last_used_at == datetime.fromtimestamp(NOW + 30, tz=UTC)


def test_authenticate_requires_enabled():
    with pytest.raises(EnrollmentError):
        enrollment.authenticate(EnrollmentState(), "123456", now=NOW)


def test_backup_code_requires_opt_in():
    state = _enabled_state()
    backup = state.backup_codes.values()[0]
    with pytest.raises(InvalidFormat):
        enrollment.authenticate(state, backup, now=NOW)


def test_authenticate_with_backup_code():
    state = _enabled_state()
    backup = state.backup_codes.values()[3]
    result = enrollment.authenticate(state, backup, now=NOW, allow_backup=True)
    assert result.is_valid
    assert result.method == AuthMethod.BACKUP
    assert result.backup_index == 3
    assert result.state.backup_codes.remaining == 7
    assert state.backup_codes.remaining == 8

    again = enrollment.authenticate(result.state, backup, now=NOW, allow_backup=True)
    assert not again.is_valid
    assert again.state is result.state


def test_wrong_totp_with_backup_allowed_is_invalid():
    state = _enabled_state()
    code = totp.now_token(state.secret, NOW)
    wrong = str((int(code) + 500_000) % 1_000_000).zfill(6)
    result = enrollment.authenticate(state, wrong, now=NOW + 7200, allow_backup=True)
    assert not result.is_valid
    assert result.method is None


def test_garbage_code_with_backup_allowed():
    with pytest.raises(InvalidFormat):
        enrollment.authenticate(_enabled_state(), "not a code", now=NOW, allow_backup=True)


def test_regenerate_backup_codes_invalidates_old_set():
    state = _enabled_state()
    old = state.backup_codes.values()
    new_state, code_set = enrollment.regenerate_backup_codes(state)
    assert new_state.backup_codes == code_set
    assert code_set.remaining == 8
    for value in old:
        if value in code_set.values():
            continue
        result = enrollment.authenticate(new_state, value, now=NOW, allow_backup=True)
        assert not result.is_valid


def test_regenerate_requires_enabled():
    with pytest.raises(EnrollmentError):
        enrollment.regenerate_backup_codes(EnrollmentState())


def test_disable_clears_credentials():
    state = enrollment.disable(_enabled_state(), now=NOW + 60)
    assert not state.enabled
    assert state.secret is None
    assert state.pending_secret is None
    assert state.backup_codes is None
    assert state.disabled_at == datetime.fromtimestamp(NOW + 60, tz=UTC)


def test_disable_when_not_enabled():
    with pytest.raises(EnrollmentError, match="not currently enabled"):
        enrollment.disable(EnrollmentState())


def test_status():
    assert enrollment.status(EnrollmentState()).model_dump() == {
        "is_enabled": False,
        "is_configured": False,
        "backup_codes_remaining": None,
        "last_used_at": None,
    }

    pending, _ = enrollment.begin_setup(EnrollmentState(), "alice@example.com")
    pending_status = enrollment.status(pending)
    assert pending_status.is_configured
    assert pending_status.backup_codes_remaining is None

    state = _enabled_state()
    used = enrollment.authenticate(state, state.backup_codes.values()[0], now=NOW, allow_backup=True).state
    enabled_status = enrollment.status(used)
    assert enabled_status.is_enabled
    assert enabled_status.backup_codes_remaining == 7
    assert enabled_status.last_used_at is not None
