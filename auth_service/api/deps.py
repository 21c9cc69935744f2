from __future__ import annotations

from functools import lru_cache

from fastapi import HTTPException

from auth_service.application.ports.identity_provider_port import IdentityProviderPort
from auth_service.application.use_cases.handle_oauth_callback import HandleOAuthCallbackUseCase
from auth_service.application.use_cases.initiate_oauth import InitiateOAuthUseCase
from auth_service.application.use_cases.logout import LogoutUseCase
from auth_service.application.use_cases.refresh_ledger import RefreshLedger
from auth_service.application.use_cases.refresh_token import RefreshTokenUseCase
from auth_service.application.use_cases.session_store import SessionStore
from auth_service.application.use_cases.validate_token import ValidateTokenUseCase
from auth_service.infrastructure.clients.github_oauth_client import (
    GithubOAuthClient,
    GithubOAuthClientSettings,
)
from auth_service.infrastructure.db.engine import get_engine
from auth_service.infrastructure.db.repositories.auth_session_repository import SqlAuthSessionRepository
from auth_service.infrastructure.db.repositories.refresh_credential_repository import (
    SqlRefreshCredentialRepository,
)
from auth_service.infrastructure.db.repositories.user_repository import SqlUserRepository
from auth_service.infrastructure.security.token_service import JwtTokenService
from auth_service.shared.config import get_settings


def _get_db_engine():
    settings = get_settings()
    if not settings.database_dsn:
        raise HTTPException(status_code=500, detail="DATABASE_DSN is required.")
    return get_engine(settings.database_dsn, settings.db_timeout_seconds)


@lru_cache(maxsize=1)
def _get_token_service() -> JwtTokenService:
    settings = get_settings()
    if not settings.jwt_secret:
        raise HTTPException(status_code=500, detail="JWT_SECRET is required.")
    return JwtTokenService(
        jwt_secret=settings.jwt_secret,
        access_ttl_minutes=settings.access_token_ttl_minutes,
    )


@lru_cache(maxsize=1)
def _get_identity_providers() -> dict[str, IdentityProviderPort]:
    settings = get_settings()
    providers: dict[str, IdentityProviderPort] = {}
    if settings.github_client_id:
        providers["github"] = GithubOAuthClient(
            GithubOAuthClientSettings(
                client_id=settings.github_client_id,
                client_secret=settings.github_client_secret,
                redirect_uri=settings.github_redirect_uri,
                timeout_seconds=settings.provider_timeout_seconds,
            )
        )
    return providers


def _get_session_store() -> SessionStore:
    settings = get_settings()
    return SessionStore(
        session_port=SqlAuthSessionRepository(_get_db_engine()),
        providers=_get_identity_providers(),
        session_ttl_minutes=settings.oauth_session_ttl_minutes,
    )


def _get_refresh_ledger() -> RefreshLedger:
    settings = get_settings()
    return RefreshLedger(
        refresh_port=SqlRefreshCredentialRepository(_get_db_engine()),
        refresh_ttl_days=settings.refresh_token_ttl_days,
    )


def get_initiate_oauth_use_case() -> InitiateOAuthUseCase:
    return InitiateOAuthUseCase(session_store=_get_session_store())


def get_handle_oauth_callback_use_case() -> HandleOAuthCallbackUseCase:
    return HandleOAuthCallbackUseCase(
        session_store=_get_session_store(),
        providers=_get_identity_providers(),
        user_port=SqlUserRepository(_get_db_engine()),
        token_port=_get_token_service(),
        refresh_ledger=_get_refresh_ledger(),
    )


def get_validate_token_use_case() -> ValidateTokenUseCase:
    return ValidateTokenUseCase(
        token_port=_get_token_service(),
        user_port=SqlUserRepository(_get_db_engine()),
    )


def get_refresh_token_use_case() -> RefreshTokenUseCase:
    return RefreshTokenUseCase(
        refresh_ledger=_get_refresh_ledger(),
        user_port=SqlUserRepository(_get_db_engine()),
        token_port=_get_token_service(),
    )


def get_logout_use_case() -> LogoutUseCase:
    return LogoutUseCase(
        token_port=_get_token_service(),
        refresh_ledger=_get_refresh_ledger(),
    )
