from __future__ import annotations

from typing import Protocol

from auth_service.application.dto.auth import ExternalProfile


class IdentityProviderPort(Protocol):
    @property
    def redirect_uri(self) -> str:
        ...

    def build_authorization_url(self, *, state: str, code_challenge: str) -> str:
        ...

    def exchange_code(self, *, code: str, code_verifier: str) -> str:
        """Returns the provider access token."""
        ...

    def fetch_profile(self, *, access_token: str) -> ExternalProfile:
        ...
