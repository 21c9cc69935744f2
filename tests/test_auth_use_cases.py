from __future__ import annotations

from dataclasses import dataclass

import pytest

from auth_service.application.dto.auth import (
    ExternalProfile,
    HandleOAuthCallbackInput,
    InitiateOAuthInput,
    LogoutInput,
    RefreshTokenInput,
    ValidateTokenInput,
)
from auth_service.application.use_cases.handle_oauth_callback import HandleOAuthCallbackUseCase
from auth_service.application.use_cases.initiate_oauth import InitiateOAuthUseCase
from auth_service.application.use_cases.logout import LogoutUseCase
from auth_service.application.use_cases.refresh_ledger import RefreshLedger
from auth_service.application.use_cases.refresh_token import RefreshTokenUseCase
from auth_service.application.use_cases.session_store import SessionStore
from auth_service.application.use_cases.validate_token import ValidateTokenUseCase
from auth_service.domain.exceptions import (
    ExchangeFailedError,
    ProfileFetchFailedError,
    ProviderMismatchError,
    RefreshTokenNotFoundError,
    RefreshTokenRevokedError,
    SessionExpiredError,
    SessionNotFoundError,
    TokenExpiredError,
    UserNotFoundError,
)
from auth_service.infrastructure.security.token_service import JwtTokenService

from tests.fakes import (
    FakeAuthSessionPort,
    FakeClock,
    FakeIdentityProvider,
    FakeRefreshCredentialPort,
    FakeUserPort,
)


@dataclass
class AuthHarness:
    clock: FakeClock
    session_port: FakeAuthSessionPort
    user_port: FakeUserPort
    refresh_port: FakeRefreshCredentialPort
    provider: FakeIdentityProvider
    initiate: InitiateOAuthUseCase
    callback: HandleOAuthCallbackUseCase
    validate: ValidateTokenUseCase
    refresh: RefreshTokenUseCase
    logout: LogoutUseCase


def _harness(provider: FakeIdentityProvider | None = None) -> AuthHarness:
    clock = FakeClock()
    session_port = FakeAuthSessionPort()
    user_port = FakeUserPort()
    refresh_port = FakeRefreshCredentialPort()
    provider = provider or FakeIdentityProvider()
    providers = {"github": provider}
    token_service = JwtTokenService(jwt_secret="s" * 64, access_ttl_minutes=15)
    session_store = SessionStore(
        session_port=session_port,
        providers=providers,
        session_ttl_minutes=10,
        clock=clock,
    )
    refresh_ledger = RefreshLedger(refresh_port=refresh_port, refresh_ttl_days=7, clock=clock)
    return AuthHarness(
        clock=clock,
        session_port=session_port,
        user_port=user_port,
        refresh_port=refresh_port,
        provider=provider,
        initiate=InitiateOAuthUseCase(session_store=session_store),
        callback=HandleOAuthCallbackUseCase(
            session_store=session_store,
            providers=providers,
            user_port=user_port,
            token_port=token_service,
            refresh_ledger=refresh_ledger,
            clock=clock,
        ),
        validate=ValidateTokenUseCase(token_port=token_service, user_port=user_port, clock=clock),
        refresh=RefreshTokenUseCase(
            refresh_ledger=refresh_ledger,
            user_port=user_port,
            token_port=token_service,
            clock=clock,
        ),
        logout=LogoutUseCase(token_port=token_service, refresh_ledger=refresh_ledger, clock=clock),
    )


def _login(harness: AuthHarness, *, code: str = "code-1"):
    state = harness.initiate.execute(InitiateOAuthInput(provider="github")).state
    return harness.callback.execute(HandleOAuthCallbackInput(provider="github", code=code, state=state))


def test_callback_creates_user_and_issues_tokens():
    harness = _harness()
    initiated = harness.initiate.execute(InitiateOAuthInput(provider="github"))
    verifier = harness.session_port.sessions[initiated.state].code_verifier

    output = harness.callback.execute(
        HandleOAuthCallbackInput(provider="github", code="code-1", state=initiated.state)
    )

    assert harness.provider.exchanges == [("code-1", verifier)]
    assert output.user.email == "octo@example.com"
    assert output.user.username == "octocat"
    assert len(harness.user_port.users) == 1
    assert len(harness.refresh_port.live_for_user(output.user.id)) == 1
    assert harness.session_port.sessions == {}

    profile = harness.validate.execute(ValidateTokenInput(token=output.access_token))
    assert profile == output.user


def test_second_login_updates_profile_but_keeps_identity():
    harness = _harness()
    first = _login(harness)
    harness.provider.profile = ExternalProfile(
        provider_user_id="4242",
        email="changed@example.com",
        username="octocat-renamed",
        avatar_url="",
    )
    harness.clock.advance(seconds=60)

    second = _login(harness, code="code-2")

    assert second.user.id == first.user.id
    assert second.user.username == "octocat-renamed"
    assert second.user.avatar_url == ""
    assert second.user.email == "octo@example.com"
    assert len(harness.user_port.users) == 1
    stored = harness.user_port.users[first.user.id]
    assert stored.updated_at == harness.clock.now
    assert stored.created_at < stored.updated_at


def test_provider_mismatch_skips_exchange_and_deletes_session():
    harness = _harness()
    state = harness.initiate.execute(InitiateOAuthInput(provider="github")).state

    with pytest.raises(ProviderMismatchError):
        harness.callback.execute(HandleOAuthCallbackInput(provider="google", code="c", state=state))

    assert harness.provider.exchanges == []
    assert state in harness.session_port.deleted
    with pytest.raises(SessionNotFoundError):
        harness.callback.execute(HandleOAuthCallbackInput(provider="github", code="c", state=state))


def test_expired_session_fails_and_state_cannot_be_retried():
    harness = _harness()
    state = harness.initiate.execute(InitiateOAuthInput(provider="github")).state
    harness.clock.advance(seconds=660)

    with pytest.raises(SessionExpiredError):
        harness.callback.execute(HandleOAuthCallbackInput(provider="github", code="c", state=state))
    with pytest.raises(SessionNotFoundError):
        harness.callback.execute(HandleOAuthCallbackInput(provider="github", code="c", state=state))

    assert harness.provider.exchanges == []
    assert harness.user_port.users == {}


def test_replayed_callback_is_not_found():
    harness = _harness()
    state = harness.initiate.execute(InitiateOAuthInput(provider="github")).state
    harness.callback.execute(HandleOAuthCallbackInput(provider="github", code="c", state=state))

    with pytest.raises(SessionNotFoundError):
        harness.callback.execute(HandleOAuthCallbackInput(provider="github", code="c", state=state))

    assert len(harness.provider.exchanges) == 1


@pytest.mark.parametrize(
    ("provider", "error"),
    [
        (FakeIdentityProvider(fail_exchange=True), ExchangeFailedError),
        (FakeIdentityProvider(fail_profile=True), ProfileFetchFailedError),
    ],
)
def test_provider_failure_leaves_no_user_and_no_session(provider, error):
    harness = _harness(provider)
    state = harness.initiate.execute(InitiateOAuthInput(provider="github")).state

    with pytest.raises(error):
        harness.callback.execute(HandleOAuthCallbackInput(provider="github", code="c", state=state))

    assert harness.user_port.users == {}
    assert harness.refresh_port.credentials == {}
    assert harness.session_port.sessions == {}
    assert state in harness.session_port.deleted


def test_validate_fails_once_user_is_soft_deleted():
    harness = _harness()
    output = _login(harness)
    harness.user_port.soft_delete_user(user_id=output.user.id, deleted_at=harness.clock.now)

    with pytest.raises(UserNotFoundError):
        harness.validate.execute(ValidateTokenInput(token=output.access_token))


def test_validate_rejects_expired_access_token():
    harness = _harness()
    output = _login(harness)
    harness.clock.advance(seconds=15 * 60 + 1)

    with pytest.raises(TokenExpiredError):
        harness.validate.execute(ValidateTokenInput(token=output.access_token))


def test_refresh_rotates_and_old_token_is_revoked():
    harness = _harness()
    output = _login(harness)
    harness.clock.advance(seconds=120)

    pair = harness.refresh.execute(RefreshTokenInput(refresh_token=output.refresh_token))

    assert pair.refresh_token != output.refresh_token
    profile = harness.validate.execute(ValidateTokenInput(token=pair.access_token))
    assert profile.id == output.user.id
    with pytest.raises(RefreshTokenRevokedError):
        harness.refresh.execute(RefreshTokenInput(refresh_token=output.refresh_token))


def test_refresh_with_blank_token_is_not_found():
    harness = _harness()

    with pytest.raises(RefreshTokenNotFoundError):
        harness.refresh.execute(RefreshTokenInput(refresh_token="   "))


def test_refresh_for_deleted_user_fails():
    harness = _harness()
    output = _login(harness)
    harness.user_port.soft_delete_user(user_id=output.user.id, deleted_at=harness.clock.now)

    with pytest.raises(UserNotFoundError):
        harness.refresh.execute(RefreshTokenInput(refresh_token=output.refresh_token))

    assert harness.refresh_port.live_for_user(output.user.id) == []
    assert len(harness.refresh_port.credentials) == 1
    with pytest.raises(RefreshTokenRevokedError):
        harness.refresh.execute(RefreshTokenInput(refresh_token=output.refresh_token))


def test_logout_revokes_refresh_tokens_but_access_token_keeps_verifying():
    harness = _harness()
    first = _login(harness, code="code-1")
    second = _login(harness, code="code-2")

    result = harness.logout.execute(LogoutInput(access_token=first.access_token))

    assert result.success is True
    assert harness.refresh_port.live_for_user(first.user.id) == []
    assert {
        r.revoked_reason for r in harness.refresh_port.credentials.values()
    } == {"user_logout"}
    with pytest.raises(RefreshTokenRevokedError):
        harness.refresh.execute(RefreshTokenInput(refresh_token=second.refresh_token))

    profile = harness.validate.execute(ValidateTokenInput(token=first.access_token))
    assert profile.id == first.user.id

    assert harness.logout.execute(LogoutInput(access_token=first.access_token)).success is True
