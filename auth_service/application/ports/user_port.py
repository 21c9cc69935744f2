from __future__ import annotations

from datetime import datetime
from typing import Protocol

from auth_service.domain.entities.user import User


class UserPort(Protocol):
    def get_user_by_id(self, *, user_id: str) -> User | None:
        ...

    def get_user_by_provider_identity(
        self,
        *,
        provider: str,
        provider_user_id: str,
    ) -> User | None:
        ...

    def create_user(
        self,
        *,
        user_id: str,
        identity_provider: str,
        provider_user_id: str,
        email: str,
        username: str | None,
        avatar_url: str | None,
        created_at: datetime,
        updated_at: datetime,
    ) -> User:
        ...

    def update_user_profile(
        self,
        *,
        user_id: str,
        username: str | None,
        avatar_url: str | None,
        updated_at: datetime,
    ) -> User:
        ...

    def soft_delete_user(self, *, user_id: str, deleted_at: datetime) -> None:
        ...
