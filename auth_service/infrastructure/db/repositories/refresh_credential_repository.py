from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Callable, TypeVar

from sqlalchemy import text

from auth_service.application.ports.refresh_credential_port import RefreshCredentialPort
from auth_service.domain.entities.user import RefreshCredential
from auth_service.infrastructure.db.errors import translate_db_errors
from auth_service.infrastructure.db.mappers.auth_mapper import map_row_to_refresh_credential, to_unix


TResult = TypeVar("TResult")


class SqlRefreshCredentialRepository(RefreshCredentialPort):
    """Refresh token ledger storage.

    When built with ``connection`` every statement joins that connection's
    transaction; otherwise each call runs in its own transaction.
    """

    def __init__(self, engine, *, connection=None):
        self._engine = engine
        self._connection = connection

    def execute_in_transaction(self, fn: Callable[[RefreshCredentialPort], TResult]) -> TResult:
        if self._connection is not None:
            return fn(self)
        with translate_db_errors("refresh_tokens.transaction"), self._engine.begin() as conn:
            return fn(SqlRefreshCredentialRepository(self._engine, connection=conn))

    @contextmanager
    def _begin(self, operation: str):
        if self._connection is not None:
            yield self._connection
            return
        with translate_db_errors(operation), self._engine.begin() as conn:
            yield conn

    def create_refresh_credential(
        self,
        *,
        credential_id: str,
        user_id: str,
        token_hash: str,
        expires_at: datetime,
        created_at: datetime,
    ) -> RefreshCredential:
        sql = """
            INSERT INTO refresh_tokens (
                id, user_id, token_hash, expires_at, created_at
            ) VALUES (
                :id, :user_id, :token_hash, :expires_at, :created_at
            )
            RETURNING id, user_id, token_hash, expires_at, created_at, revoked_at, revoked_reason
        """
        params = {
            "id": credential_id,
            "user_id": user_id,
            "token_hash": token_hash,
            "expires_at": to_unix(expires_at),
            "created_at": to_unix(created_at),
        }
        with self._begin("refresh_tokens.create") as conn:
            row = conn.execute(text(sql), params).mappings().one()
        return map_row_to_refresh_credential(row)

    def get_refresh_credential_by_hash(self, *, token_hash: str) -> RefreshCredential | None:
        sql = """
            SELECT id, user_id, token_hash, expires_at, created_at, revoked_at, revoked_reason
            FROM refresh_tokens
            WHERE token_hash = :token_hash
            LIMIT 1
        """
        with self._begin("refresh_tokens.get_by_hash") as conn:
            row = conn.execute(text(sql), {"token_hash": token_hash}).mappings().first()
        if row is None:
            return None
        return map_row_to_refresh_credential(row)

    def revoke_refresh_credential(
        self,
        *,
        credential_id: str,
        revoked_at: datetime,
        reason: str,
    ) -> bool:
        sql = """
            UPDATE refresh_tokens
            SET revoked_at = :revoked_at,
                revoked_reason = :reason
            WHERE id = :credential_id
              AND revoked_at IS NULL
        """
        with self._begin("refresh_tokens.revoke") as conn:
            result = conn.execute(
                text(sql),
                {
                    "credential_id": credential_id,
                    "revoked_at": to_unix(revoked_at),
                    "reason": reason,
                },
            )
        return result.rowcount == 1

    def revoke_all_for_user(self, *, user_id: str, revoked_at: datetime, reason: str) -> int:
        sql = """
            UPDATE refresh_tokens
            SET revoked_at = :revoked_at,
                revoked_reason = :reason
            WHERE user_id = :user_id
              AND revoked_at IS NULL
        """
        with self._begin("refresh_tokens.revoke_all") as conn:
            result = conn.execute(
                text(sql),
                {
                    "user_id": user_id,
                    "revoked_at": to_unix(revoked_at),
                    "reason": reason,
                },
            )
        return int(result.rowcount)
