from __future__ import annotations

from pydantic import BaseModel, Field


class OAuthCallbackRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=512)
    state: str = Field(..., min_length=1, max_length=256)


class ValidateTokenRequest(BaseModel):
    token: str = Field(..., min_length=1)


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1, max_length=256)


class LogoutRequest(BaseModel):
    access_token: str = Field(..., min_length=1)


class UserProfileResponse(BaseModel):
    id: str
    email: str
    username: str
    avatar_url: str


class InitiateOAuthResponse(BaseModel):
    redirect_url: str


class AuthTokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserProfileResponse


class ValidateTokenResponse(BaseModel):
    user: UserProfileResponse


class TokenPairResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LogoutResponse(BaseModel):
    success: bool
