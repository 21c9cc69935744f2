from __future__ import annotations

from dataclasses import dataclass
import logging
from urllib.parse import urlencode

import httpx

from auth_service.application.dto.auth import ExternalProfile
from auth_service.application.ports.identity_provider_port import IdentityProviderPort
from auth_service.domain.exceptions import (
    ExchangeFailedError,
    ProfileFetchFailedError,
    UpstreamTimeoutError,
)


logger = logging.getLogger(__name__)


GITHUB_AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"
GITHUB_API_BASE = "https://api.github.com"
GITHUB_SCOPES = ("read:user", "user:email")
GITHUB_ACCEPT = "application/vnd.github.v3+json"


@dataclass(frozen=True)
class GithubOAuthClientSettings:
    client_id: str
    client_secret: str
    redirect_uri: str
    timeout_seconds: float
    authorize_url: str = GITHUB_AUTHORIZE_URL
    token_url: str = GITHUB_TOKEN_URL
    api_base: str = GITHUB_API_BASE


class GithubOAuthClient(IdentityProviderPort):
    def __init__(self, settings: GithubOAuthClientSettings, *, transport: httpx.BaseTransport | None = None):
        self._settings = settings
        self._transport = transport

    @property
    def redirect_uri(self) -> str:
        return self._settings.redirect_uri

    def build_authorization_url(self, *, state: str, code_challenge: str) -> str:
        query = urlencode(
            {
                "client_id": self._settings.client_id,
                "redirect_uri": self._settings.redirect_uri,
                "state": state,
                "code_challenge": code_challenge,
                "code_challenge_method": "S256",
                "scope": " ".join(GITHUB_SCOPES),
            }
        )
        return f"{self._settings.authorize_url}?{query}"

    def exchange_code(self, *, code: str, code_verifier: str) -> str:
        try:
            with self._client() as client:
                response = client.post(
                    self._settings.token_url,
                    data={
                        "client_id": self._settings.client_id,
                        "client_secret": self._settings.client_secret,
                        "code": code,
                        "redirect_uri": self._settings.redirect_uri,
                        "code_verifier": code_verifier,
                        "grant_type": "authorization_code",
                    },
                    headers={"Accept": "application/json"},
                )
                response.raise_for_status()
                payload = response.json()
        except httpx.TimeoutException as exc:
            logger.warning("github_oauth_client: exchange_timeout")
            raise UpstreamTimeoutError("Identity provider deadline exceeded.", step="exchange") from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("github_oauth_client: exchange_failed error=%s", type(exc).__name__)
            raise ExchangeFailedError("Failed to exchange code for token.") from exc

        # GitHub answers 200 with an "error" field for bad or reused codes.
        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            error = payload.get("error") if isinstance(payload, dict) else None
            logger.warning("github_oauth_client: exchange_rejected error=%s", error)
            raise ExchangeFailedError("Failed to exchange code for token.", provider_error=str(error or ""))
        return str(access_token)

    def fetch_profile(self, *, access_token: str) -> ExternalProfile:
        try:
            with self._client() as client:
                user_payload = self._get_json(client, "/user", access_token=access_token)
                if not isinstance(user_payload, dict) or user_payload.get("id") is None:
                    raise ProfileFetchFailedError("Provider profile is missing the user id.")

                email = user_payload.get("email") or ""
                if not email:
                    email = self._fetch_primary_email(client, access_token=access_token)
        except httpx.TimeoutException as exc:
            logger.warning("github_oauth_client: profile_timeout")
            raise UpstreamTimeoutError("Identity provider deadline exceeded.", step="profile") from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("github_oauth_client: profile_failed error=%s", type(exc).__name__)
            raise ProfileFetchFailedError("Failed to fetch user info.") from exc

        return ExternalProfile(
            provider_user_id=str(user_payload["id"]),
            email=str(email),
            username=user_payload.get("login") or None,
            avatar_url=user_payload.get("avatar_url") or None,
        )

    def _fetch_primary_email(self, client: httpx.Client, *, access_token: str) -> str:
        try:
            emails = self._get_json(client, "/user/emails", access_token=access_token)
        except httpx.TimeoutException:
            raise
        except (httpx.HTTPError, ValueError) as exc:
            logger.info("github_oauth_client: email_lookup_failed error=%s", type(exc).__name__)
            return ""

        if not isinstance(emails, list):
            return ""
        for entry in emails:
            if isinstance(entry, dict) and entry.get("primary") and entry.get("email"):
                return str(entry["email"])
        for entry in emails:
            if isinstance(entry, dict) and entry.get("email"):
                return str(entry["email"])
        return ""

    def _get_json(self, client: httpx.Client, path: str, *, access_token: str):
        response = client.get(
            f"{self._settings.api_base}{path}",
            headers={
                "Authorization": f"Bearer {access_token}",
                "Accept": GITHUB_ACCEPT,
            },
        )
        response.raise_for_status()
        return response.json()

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self._settings.timeout_seconds, transport=self._transport)
