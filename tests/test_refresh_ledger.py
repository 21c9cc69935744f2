from __future__ import annotations

from datetime import timedelta

import pytest

from auth_service.application.use_cases.refresh_ledger import RefreshLedger
from auth_service.domain.exceptions import (
    RefreshTokenExpiredError,
    RefreshTokenNotFoundError,
    RefreshTokenRevokedError,
    UserNotFoundError,
)
from auth_service.domain.services.credentials import hash_refresh_token

from tests.fakes import T0, FakeClock, FakeRefreshCredentialPort


def _ledger(port: FakeRefreshCredentialPort, clock: FakeClock) -> RefreshLedger:
    return RefreshLedger(refresh_port=port, refresh_ttl_days=7, clock=clock)


def test_issue_stores_only_the_hash():
    port = FakeRefreshCredentialPort()
    clock = FakeClock()
    ledger = _ledger(port, clock)

    plaintext, record = ledger.issue(user_id="user-1")

    assert record.token_hash == hash_refresh_token(plaintext)
    assert all(r.token_hash != plaintext for r in port.credentials.values())
    assert record.expires_at == clock.now + timedelta(days=7)
    assert record.revoked_at is None


def test_rotate_revokes_old_and_issues_successor():
    port = FakeRefreshCredentialPort()
    clock = FakeClock()
    ledger = _ledger(port, clock)
    old_plain, old_record = ledger.issue(user_id="user-1")

    clock.advance(seconds=30)
    new_plain, new_record = ledger.rotate(refresh_token=old_plain)

    assert new_plain != old_plain
    assert new_record.user_id == "user-1"
    revoked = port.credentials[old_record.id]
    assert revoked.revoked_at == clock.now
    assert revoked.revoked_reason == "token_refreshed"
    assert [r.id for r in port.live_for_user("user-1")] == [new_record.id]
    assert port.transactions == 1


def test_rotating_a_rotated_token_is_revoked():
    port = FakeRefreshCredentialPort()
    ledger = _ledger(port, FakeClock())
    old_plain, _ = ledger.issue(user_id="user-1")
    ledger.rotate(refresh_token=old_plain)

    with pytest.raises(RefreshTokenRevokedError):
        ledger.rotate(refresh_token=old_plain)

    assert len(port.live_for_user("user-1")) == 1


def test_expired_token_is_revoked_with_expired_reason():
    port = FakeRefreshCredentialPort()
    clock = FakeClock()
    ledger = _ledger(port, clock)
    plain, record = ledger.issue(user_id="user-1")

    clock.advance(seconds=7 * 24 * 3600 + 1)

    with pytest.raises(RefreshTokenExpiredError):
        ledger.rotate(refresh_token=plain)

    assert port.credentials[record.id].revoked_reason == "expired"
    assert port.live_for_user("user-1") == []

    with pytest.raises(RefreshTokenRevokedError):
        ledger.rotate(refresh_token=plain)


def test_unknown_token_is_not_found():
    ledger = _ledger(FakeRefreshCredentialPort(), FakeClock())

    with pytest.raises(RefreshTokenNotFoundError):
        ledger.rotate(refresh_token="f" * 64)


def test_revoke_all_counts_only_live_credentials():
    port = FakeRefreshCredentialPort()
    ledger = _ledger(port, FakeClock())
    ledger.issue(user_id="user-1")
    ledger.issue(user_id="user-1")
    ledger.issue(user_id="user-2")

    assert ledger.revoke_all(user_id="user-1", reason="user_logout") == 2
    assert ledger.revoke_all(user_id="user-1", reason="user_logout") == 0
    assert port.live_for_user("user-1") == []
    assert len(port.live_for_user("user-2")) == 1
    assert {r.revoked_reason for r in port.credentials.values() if r.user_id == "user-1"} == {"user_logout"}


class RacingRefreshCredentialPort(FakeRefreshCredentialPort):
    """Another rotation commits between our read and our conditional revoke."""

    def __init__(self):
        super().__init__()
        self.race_armed = False

    def revoke_refresh_credential(self, *, credential_id, revoked_at, reason):
        if self.race_armed:
            self.race_armed = False
            super().revoke_refresh_credential(
                credential_id=credential_id,
                revoked_at=revoked_at,
                reason=reason,
            )
        return super().revoke_refresh_credential(
            credential_id=credential_id,
            revoked_at=revoked_at,
            reason=reason,
        )


def test_losing_a_concurrent_rotation_is_revoked_and_issues_nothing():
    port = RacingRefreshCredentialPort()
    ledger = _ledger(port, FakeClock())
    plain, _ = ledger.issue(user_id="user-1")
    port.race_armed = True

    with pytest.raises(RefreshTokenRevokedError):
        ledger.rotate(refresh_token=plain)

    assert len(port.credentials) == 1


def test_rejected_successor_keeps_presented_credential_revoked():
    port = FakeRefreshCredentialPort()
    ledger = _ledger(port, FakeClock())
    plain, record = ledger.issue(user_id="gone")

    def _reject(credential):
        raise UserNotFoundError("User not found for refresh token.")

    with pytest.raises(UserNotFoundError):
        ledger.rotate(refresh_token=plain, before_issue=_reject)

    assert list(port.credentials) == [record.id]
    assert port.credentials[record.id].revoked_reason == "token_refreshed"
    assert port.live_for_user("gone") == []


def test_before_issue_sees_the_presented_credential():
    port = FakeRefreshCredentialPort()
    ledger = _ledger(port, FakeClock())
    plain, record = ledger.issue(user_id="user-1")
    seen = []

    _, successor = ledger.rotate(refresh_token=plain, before_issue=seen.append)

    assert [credential.id for credential in seen] == [record.id]
    assert successor.user_id == "user-1"


def test_sub_second_issue_keeps_the_full_ttl():
    port = FakeRefreshCredentialPort()
    clock = FakeClock(T0 + timedelta(milliseconds=900))
    ledger = _ledger(port, clock)
    plain, record = ledger.issue(user_id="user-1")

    assert record.created_at == T0
    assert record.expires_at == T0 + timedelta(days=7, seconds=1)

    clock.advance(seconds=7 * 24 * 3600)
    assert ledger.rotate(refresh_token=plain)[1].user_id == "user-1"
