from __future__ import annotations

from dataclasses import dataclass

import httpx

from auth_service.application.dto.auth import AuthTokensOutput, TokenPairOutput, UserProfileOutput


class AuthServiceError(RuntimeError):
    def __init__(self, kind: str, message: str, status_code: int):
        super().__init__(f"{kind}: {message}")
        self.kind = kind
        self.message = message
        self.status_code = status_code


@dataclass(frozen=True)
class AuthServiceClientSettings:
    base_url: str
    timeout_seconds: float = 10.0


class AuthServiceClient:
    """Client used by other platform services to reach the auth service."""

    def __init__(self, settings: AuthServiceClientSettings, *, transport: httpx.BaseTransport | None = None):
        self._client = httpx.Client(
            base_url=settings.base_url.rstrip("/"),
            timeout=settings.timeout_seconds,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> AuthServiceClient:
        return self

    def __exit__(self, *_exc) -> None:
        self.close()

    def initiate_oauth(self, provider: str) -> str:
        payload = self._post(f"/v1/auth/oauth/{provider}/initiate", json=None)
        return payload["redirect_url"]

    def handle_oauth_callback(self, provider: str, code: str, state: str) -> AuthTokensOutput:
        payload = self._post(
            f"/v1/auth/oauth/{provider}/callback",
            json={"code": code, "state": state},
        )
        return AuthTokensOutput(
            access_token=payload["access_token"],
            refresh_token=payload["refresh_token"],
            user=_map_user(payload["user"]),
        )

    def validate_token(self, token: str) -> UserProfileOutput:
        payload = self._post("/v1/auth/validate", json={"token": token})
        return _map_user(payload["user"])

    def refresh_token(self, refresh_token: str) -> TokenPairOutput:
        payload = self._post("/v1/auth/refresh", json={"refresh_token": refresh_token})
        return TokenPairOutput(
            access_token=payload["access_token"],
            refresh_token=payload["refresh_token"],
        )

    def logout(self, access_token: str) -> bool:
        payload = self._post("/v1/auth/logout", json={"access_token": access_token})
        return bool(payload["success"])

    def _post(self, path: str, *, json: dict | None) -> dict:
        response = self._client.post(path, json=json)
        if response.is_success:
            return response.json()

        kind = "Unknown"
        message = response.reason_phrase
        try:
            body = response.json()
        except ValueError:
            body = None
        detail = body.get("detail") if isinstance(body, dict) else None
        if isinstance(detail, dict):
            kind = str(detail.get("kind") or kind)
            message = str(detail.get("message") or message)
        elif isinstance(detail, str):
            message = detail
        raise AuthServiceError(kind, message, response.status_code)


def _map_user(payload: dict) -> UserProfileOutput:
    return UserProfileOutput(
        id=payload["id"],
        email=payload.get("email") or "",
        username=payload.get("username") or "",
        avatar_url=payload.get("avatar_url") or "",
    )
