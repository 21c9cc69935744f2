from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from auth_service.api.deps import (
    get_handle_oauth_callback_use_case,
    get_initiate_oauth_use_case,
    get_logout_use_case,
    get_refresh_token_use_case,
    get_validate_token_use_case,
)
from auth_service.api.schemas.auth import (
    AuthTokenResponse,
    InitiateOAuthResponse,
    LogoutRequest,
    LogoutResponse,
    OAuthCallbackRequest,
    RefreshTokenRequest,
    TokenPairResponse,
    UserProfileResponse,
    ValidateTokenRequest,
    ValidateTokenResponse,
)
from auth_service.application.dto.auth import (
    HandleOAuthCallbackInput,
    InitiateOAuthInput,
    LogoutInput,
    RefreshTokenInput,
    UserProfileOutput,
    ValidateTokenInput,
)
from auth_service.application.use_cases.handle_oauth_callback import HandleOAuthCallbackUseCase
from auth_service.application.use_cases.initiate_oauth import InitiateOAuthUseCase
from auth_service.application.use_cases.logout import LogoutUseCase
from auth_service.application.use_cases.refresh_token import RefreshTokenUseCase
from auth_service.application.use_cases.validate_token import ValidateTokenUseCase
from auth_service.domain.exceptions import DomainError
from auth_service.domain.services.credentials import truncate


logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_STATUS_BY_KIND = {
    "SessionNotFound": 400,
    "SessionExpired": 400,
    "ProviderMismatch": 400,
    "UnsupportedProvider": 400,
    "ExchangeFailed": 502,
    "ProfileFetchFailed": 502,
    "SignatureInvalid": 401,
    "TokenMalformed": 401,
    "TokenExpired": 401,
    "RefreshTokenNotFound": 401,
    "RefreshTokenRevoked": 401,
    "RefreshTokenExpired": 401,
    "UserNotFound": 401,
    "UpstreamTimeout": 504,
    "PersistenceFailure": 503,
}


def _to_http_error(exc: DomainError) -> HTTPException:
    return HTTPException(
        status_code=ERROR_STATUS_BY_KIND.get(exc.kind, 400),
        detail={"kind": exc.kind, "message": exc.message},
    )


def _user_response(user: UserProfileOutput) -> UserProfileResponse:
    return UserProfileResponse(
        id=user.id,
        email=user.email,
        username=user.username,
        avatar_url=user.avatar_url,
    )


@router.post("/v1/auth/oauth/{provider}/initiate", response_model=InitiateOAuthResponse)
def initiate_oauth(
    provider: str,
    use_case: InitiateOAuthUseCase = Depends(get_initiate_oauth_use_case),
):
    try:
        output = use_case.execute(InitiateOAuthInput(provider=provider))
    except DomainError as exc:
        logger.error("auth_router: initiate_oauth_failed kind=%s provider=%s", exc.kind, provider)
        raise _to_http_error(exc) from exc

    logger.info("auth_router: oauth_initiated provider=%s", provider)
    return InitiateOAuthResponse(redirect_url=output.redirect_url)


@router.post("/v1/auth/oauth/{provider}/callback", response_model=AuthTokenResponse)
def handle_oauth_callback(
    provider: str,
    req: OAuthCallbackRequest,
    use_case: HandleOAuthCallbackUseCase = Depends(get_handle_oauth_callback_use_case),
):
    try:
        output = use_case.execute(
            HandleOAuthCallbackInput(
                provider=provider,
                code=req.code,
                state=req.state,
            )
        )
    except DomainError as exc:
        logger.error("auth_router: oauth_callback_failed kind=%s provider=%s", exc.kind, provider)
        raise _to_http_error(exc) from exc

    logger.info("auth_router: oauth_callback_handled provider=%s", provider)
    return AuthTokenResponse(
        access_token=output.access_token,
        refresh_token=output.refresh_token,
        user=_user_response(output.user),
    )


@router.post("/v1/auth/validate", response_model=ValidateTokenResponse)
def validate_token(
    req: ValidateTokenRequest,
    use_case: ValidateTokenUseCase = Depends(get_validate_token_use_case),
):
    try:
        user = use_case.execute(ValidateTokenInput(token=req.token))
    except DomainError as exc:
        logger.error("auth_router: validate_token_failed kind=%s", exc.kind)
        raise _to_http_error(exc) from exc

    logger.info("auth_router: token_validated user_id=%s", truncate(user.id))
    return ValidateTokenResponse(user=_user_response(user))


@router.post("/v1/auth/refresh", response_model=TokenPairResponse)
def refresh_token(
    req: RefreshTokenRequest,
    use_case: RefreshTokenUseCase = Depends(get_refresh_token_use_case),
):
    try:
        output = use_case.execute(RefreshTokenInput(refresh_token=req.refresh_token))
    except DomainError as exc:
        logger.error("auth_router: refresh_token_failed kind=%s", exc.kind)
        raise _to_http_error(exc) from exc

    logger.info("auth_router: token_refreshed")
    return TokenPairResponse(
        access_token=output.access_token,
        refresh_token=output.refresh_token,
    )


@router.post("/v1/auth/logout", response_model=LogoutResponse)
def logout(
    req: LogoutRequest,
    use_case: LogoutUseCase = Depends(get_logout_use_case),
):
    try:
        output = use_case.execute(LogoutInput(access_token=req.access_token))
    except DomainError as exc:
        logger.error("auth_router: logout_failed kind=%s", exc.kind)
        raise _to_http_error(exc) from exc

    logger.info("auth_router: logged_out")
    return LogoutResponse(success=output.success)
