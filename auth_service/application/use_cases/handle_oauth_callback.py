from __future__ import annotations

import logging
from uuid import uuid4

from auth_service.application.dto.auth import (
    AuthTokensOutput,
    ExternalProfile,
    HandleOAuthCallbackInput,
)
from auth_service.application.ports.identity_provider_port import IdentityProviderPort
from auth_service.application.ports.token_port import AccessTokenPort
from auth_service.application.ports.user_port import UserPort
from auth_service.domain.entities.user import AuthSession, User
from auth_service.domain.exceptions import (
    DomainError,
    ProviderMismatchError,
    UnsupportedProviderError,
)
from auth_service.domain.services.credentials import truncate

from .auth_common import Clock, build_user_profile_output, floor_to_second, utcnow
from .refresh_ledger import RefreshLedger
from .session_store import SessionStore


logger = logging.getLogger(__name__)


class HandleOAuthCallbackUseCase:
    """Drives one login attempt from the provider redirect to a token pair.

    Steps: session validated, code exchanged, profile fetched, user resolved,
    tokens issued, session consumed. A failure before tokens are issued
    deletes the session and leaves users and refresh credentials untouched.
    """

    def __init__(
        self,
        *,
        session_store: SessionStore,
        providers: dict[str, IdentityProviderPort],
        user_port: UserPort,
        token_port: AccessTokenPort,
        refresh_ledger: RefreshLedger,
        clock: Clock = utcnow,
    ):
        self._session_store = session_store
        self._providers = providers
        self._user_port = user_port
        self._token_port = token_port
        self._refresh_ledger = refresh_ledger
        self._clock = clock

    def execute(self, command: HandleOAuthCallbackInput) -> AuthTokensOutput:
        session = self._session_store.consume_session(state=command.state)

        try:
            profile = self._fetch_external_profile(session=session, command=command)
            user = self._resolve_user(provider=session.provider, profile=profile)
        except DomainError as exc:
            logger.warning(
                "oauth_callback: aborted kind=%s provider=%s state=%s",
                exc.kind,
                command.provider,
                truncate(command.state),
            )
            self._cleanup_session(state=session.state)
            raise

        access_token, _ = self._token_port.create_access_token(
            user_id=user.id,
            email=user.email,
            provider=user.identity_provider,
            now=self._clock(),
        )
        refresh_token, _ = self._refresh_ledger.issue(user_id=user.id)

        self._cleanup_session(state=session.state)
        logger.info(
            "oauth_callback: tokens_issued provider=%s user_id=%s",
            session.provider,
            truncate(user.id),
        )
        return AuthTokensOutput(
            access_token=access_token,
            refresh_token=refresh_token,
            user=build_user_profile_output(user),
        )

    def _fetch_external_profile(
        self,
        *,
        session: AuthSession,
        command: HandleOAuthCallbackInput,
    ) -> ExternalProfile:
        if session.provider != command.provider:
            raise ProviderMismatchError(
                "Provider mismatch.",
                expected=session.provider,
                received=command.provider,
            )

        provider_client = self._providers.get(session.provider)
        if provider_client is None:
            raise UnsupportedProviderError(
                f"Unsupported provider: {session.provider}.",
                provider=session.provider,
            )

        provider_access_token = provider_client.exchange_code(
            code=command.code,
            code_verifier=session.code_verifier,
        )
        return provider_client.fetch_profile(access_token=provider_access_token)

    def _resolve_user(self, *, provider: str, profile: ExternalProfile) -> User:
        now = floor_to_second(self._clock())
        existing = self._user_port.get_user_by_provider_identity(
            provider=provider,
            provider_user_id=profile.provider_user_id,
        )
        if existing is not None:
            return self._user_port.update_user_profile(
                user_id=existing.id,
                username=profile.username or None,
                avatar_url=profile.avatar_url or None,
                updated_at=now,
            )

        user = self._user_port.create_user(
            user_id=str(uuid4()),
            identity_provider=provider,
            provider_user_id=profile.provider_user_id,
            email=profile.email,
            username=profile.username or None,
            avatar_url=profile.avatar_url or None,
            created_at=now,
            updated_at=now,
        )
        logger.info("oauth_callback: user_created provider=%s user_id=%s", provider, truncate(user.id))
        return user

    def _cleanup_session(self, *, state: str) -> None:
        try:
            self._session_store.delete_session(state=state)
        except DomainError as exc:
            logger.warning(
                "oauth_callback: session_cleanup_failed kind=%s state=%s",
                exc.kind,
                truncate(state),
            )
