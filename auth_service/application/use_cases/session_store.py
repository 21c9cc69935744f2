from __future__ import annotations

from datetime import timedelta
import logging

from auth_service.application.dto.auth import InitiateOAuthOutput
from auth_service.application.ports.auth_session_port import AuthSessionPort
from auth_service.application.ports.identity_provider_port import IdentityProviderPort
from auth_service.domain.entities.user import AuthSession
from auth_service.domain.exceptions import (
    SessionExpiredError,
    SessionNotFoundError,
    UnsupportedProviderError,
)
from auth_service.domain.services.credentials import (
    code_challenge_s256,
    generate_code_verifier,
    generate_state,
    truncate,
)

from .auth_common import Clock, ceil_to_second, floor_to_second, utcnow


logger = logging.getLogger(__name__)


class SessionStore:
    """Short-lived PKCE handshake state.

    A session is created when a login starts and taken exactly once when the
    provider redirects back. Taking it deletes it, so a replayed ``state``
    always fails with ``SessionNotFoundError``.
    """

    def __init__(
        self,
        *,
        session_port: AuthSessionPort,
        providers: dict[str, IdentityProviderPort],
        session_ttl_minutes: int,
        clock: Clock = utcnow,
    ):
        self._session_port = session_port
        self._providers = providers
        self._session_ttl = timedelta(minutes=session_ttl_minutes)
        self._clock = clock

    def create_session(self, *, provider: str) -> InitiateOAuthOutput:
        provider_client = self._providers.get(provider)
        if provider_client is None:
            raise UnsupportedProviderError(f"Unsupported provider: {provider}.", provider=provider)

        code_verifier = generate_code_verifier()
        code_challenge = code_challenge_s256(code_verifier)
        state = generate_state()
        now = self._clock()

        self._session_port.create_session(
            session=AuthSession(
                state=state,
                provider=provider,
                code_verifier=code_verifier,
                code_challenge=code_challenge,
                redirect_uri=provider_client.redirect_uri,
                expires_at=ceil_to_second(now + self._session_ttl),
                created_at=floor_to_second(now),
            )
        )
        logger.info(
            "session_store: created provider=%s state=%s",
            provider,
            truncate(state),
        )
        return InitiateOAuthOutput(
            state=state,
            redirect_url=provider_client.build_authorization_url(
                state=state,
                code_challenge=code_challenge,
            ),
        )

    def consume_session(self, *, state: str) -> AuthSession:
        session = self._session_port.take_session(state=state)
        if session is None:
            raise SessionNotFoundError(
                "Invalid or already used OAuth session.",
                state=truncate(state),
            )
        if session.is_expired(self._clock()):
            logger.info("session_store: expired state=%s", truncate(state))
            raise SessionExpiredError("OAuth session expired.", state=truncate(state))
        return session

    def delete_session(self, *, state: str) -> None:
        self._session_port.delete_session(state=state)
