from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt

from auth_service.application.dto.auth import AccessClaims
from auth_service.application.ports.token_port import AccessTokenPort
from auth_service.application.use_cases.auth_common import ceil_to_second, floor_to_second
from auth_service.domain.exceptions import (
    SignatureInvalidError,
    TokenExpiredError,
    TokenMalformedError,
)


JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_TYPE = "access"


class JwtTokenService(AccessTokenPort):
    def __init__(self, *, jwt_secret: str, access_ttl_minutes: int):
        self._jwt_secret = jwt_secret
        self._access_ttl_minutes = access_ttl_minutes

    def create_access_token(
        self,
        *,
        user_id: str,
        email: str,
        provider: str,
        now: datetime,
    ) -> tuple[str, datetime]:
        exp = ceil_to_second(now + timedelta(minutes=self._access_ttl_minutes))
        payload = {
            "sub": user_id,
            "user_id": user_id,
            "email": email,
            "provider": provider,
            "type": ACCESS_TOKEN_TYPE,
            "iat": int(floor_to_second(now).timestamp()),
            "exp": int(exp.timestamp()),
        }
        token = jwt.encode(payload, self._jwt_secret, algorithm=JWT_ALGORITHM)
        return token, exp

    def decode_access_token(self, *, token: str, now: datetime) -> AccessClaims:
        # exp is checked against the injected clock, not PyJWT's wall clock.
        try:
            payload = jwt.decode(
                token,
                self._jwt_secret,
                algorithms=[JWT_ALGORITHM],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "require": ["sub", "iat", "exp"],
                },
            )
        except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError) as exc:
            raise SignatureInvalidError("Invalid access token signature.") from exc
        except jwt.PyJWTError as exc:
            raise TokenMalformedError("Malformed access token.") from exc

        if payload.get("type") != ACCESS_TOKEN_TYPE:
            raise TokenMalformedError("Invalid token type.")

        user_id = payload.get("sub")
        if not user_id or not isinstance(user_id, str):
            raise TokenMalformedError("Invalid token subject.")

        try:
            issued_at = datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc)
            expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError) as exc:
            raise TokenMalformedError("Invalid token timestamps.") from exc

        if now > expires_at:
            raise TokenExpiredError("Access token expired.")

        return AccessClaims(
            user_id=user_id,
            email=str(payload.get("email") or ""),
            provider=str(payload.get("provider") or ""),
            issued_at=issued_at,
            expires_at=expires_at,
        )
