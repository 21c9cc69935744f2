from __future__ import annotations

from datetime import datetime

from sqlalchemy import text

from auth_service.application.ports.user_port import UserPort
from auth_service.domain.entities.user import User
from auth_service.domain.exceptions import UserNotFoundError
from auth_service.domain.services.credentials import truncate
from auth_service.infrastructure.db.errors import translate_db_errors
from auth_service.infrastructure.db.mappers.auth_mapper import map_row_to_user, to_unix


_USER_COLUMNS = """
    id, identity_provider, provider_user_id, email, username, avatar_url,
    created_at, updated_at, deleted_at
"""


class SqlUserRepository(UserPort):
    def __init__(self, engine):
        self._engine = engine

    def get_user_by_id(self, *, user_id: str) -> User | None:
        sql = f"""
            SELECT {_USER_COLUMNS}
            FROM users
            WHERE id = :user_id
              AND deleted_at IS NULL
            LIMIT 1
        """
        with translate_db_errors("users.get_by_id"), self._engine.connect() as conn:
            row = conn.execute(text(sql), {"user_id": user_id}).mappings().first()
        if row is None:
            return None
        return map_row_to_user(row)

    def get_user_by_provider_identity(self, *, provider: str, provider_user_id: str) -> User | None:
        sql = f"""
            SELECT {_USER_COLUMNS}
            FROM users
            WHERE identity_provider = :provider
              AND provider_user_id = :provider_user_id
              AND deleted_at IS NULL
            LIMIT 1
        """
        with translate_db_errors("users.get_by_provider_identity"), self._engine.connect() as conn:
            row = conn.execute(
                text(sql),
                {
                    "provider": provider,
                    "provider_user_id": provider_user_id,
                },
            ).mappings().first()
        if row is None:
            return None
        return map_row_to_user(row)

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
        sql = f"""
            INSERT INTO users (
                id, identity_provider, provider_user_id, email, username, avatar_url, created_at, updated_at
            ) VALUES (
                :id, :identity_provider, :provider_user_id, :email, :username, :avatar_url, :created_at, :updated_at
            )
            RETURNING {_USER_COLUMNS}
        """
        params = {
            "id": user_id,
            "identity_provider": identity_provider,
            "provider_user_id": provider_user_id,
            "email": email,
            "username": username,
            "avatar_url": avatar_url,
            "created_at": to_unix(created_at),
            "updated_at": to_unix(updated_at),
        }
        with translate_db_errors("users.create"), self._engine.begin() as conn:
            row = conn.execute(text(sql), params).mappings().one()
        return map_row_to_user(row)

    def update_user_profile(
        self,
        *,
        user_id: str,
        username: str | None,
        avatar_url: str | None,
        updated_at: datetime,
    ) -> User:
        sql = f"""
            UPDATE users
            SET username = :username,
                avatar_url = :avatar_url,
                updated_at = :updated_at
            WHERE id = :user_id
              AND deleted_at IS NULL
            RETURNING {_USER_COLUMNS}
        """
        params = {
            "user_id": user_id,
            "username": username,
            "avatar_url": avatar_url,
            "updated_at": to_unix(updated_at),
        }
        with translate_db_errors("users.update_profile"), self._engine.begin() as conn:
            row = conn.execute(text(sql), params).mappings().first()
        if row is None:
            raise UserNotFoundError("User not found.", user_id=truncate(user_id))
        return map_row_to_user(row)

    def soft_delete_user(self, *, user_id: str, deleted_at: datetime) -> None:
        sql = """
            UPDATE users
            SET deleted_at = :deleted_at,
                updated_at = :deleted_at
            WHERE id = :user_id
              AND deleted_at IS NULL
        """
        with translate_db_errors("users.soft_delete"), self._engine.begin() as conn:
            conn.execute(text(sql), {"user_id": user_id, "deleted_at": to_unix(deleted_at)})
