from __future__ import annotations

from typing import Protocol

from auth_service.domain.entities.user import AuthSession


class AuthSessionPort(Protocol):
    def create_session(self, *, session: AuthSession) -> AuthSession:
        ...

    def take_session(self, *, state: str) -> AuthSession | None:
        """Returns the session and deletes it in the same transaction."""
        ...

    def delete_session(self, *, state: str) -> None:
        ...
