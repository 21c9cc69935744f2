from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class UserProfileOutput:
    id: str
    email: str
    username: str
    avatar_url: str


@dataclass(frozen=True)
class InitiateOAuthInput:
    provider: str


@dataclass(frozen=True)
class InitiateOAuthOutput:
    state: str
    redirect_url: str


@dataclass(frozen=True)
class HandleOAuthCallbackInput:
    provider: str
    code: str
    state: str


@dataclass(frozen=True)
class ValidateTokenInput:
    token: str


@dataclass(frozen=True)
class RefreshTokenInput:
    refresh_token: str


@dataclass(frozen=True)
class LogoutInput:
    access_token: str


@dataclass(frozen=True)
class AuthTokensOutput:
    access_token: str
    refresh_token: str
    user: UserProfileOutput


@dataclass(frozen=True)
class TokenPairOutput:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class LogoutOutput:
    success: bool


@dataclass(frozen=True)
class AccessClaims:
    user_id: str
    email: str
    provider: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class ExternalProfile:
    provider_user_id: str
    email: str
    username: str | None
    avatar_url: str | None
