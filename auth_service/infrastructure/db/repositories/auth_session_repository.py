from __future__ import annotations

from sqlalchemy import text

from auth_service.application.ports.auth_session_port import AuthSessionPort
from auth_service.domain.entities.user import AuthSession
from auth_service.infrastructure.db.errors import translate_db_errors
from auth_service.infrastructure.db.mappers.auth_mapper import map_row_to_auth_session, to_unix


class SqlAuthSessionRepository(AuthSessionPort):
    def __init__(self, engine):
        self._engine = engine

    def create_session(self, *, session: AuthSession) -> AuthSession:
        sql = """
            INSERT INTO oauth_sessions (
                state, provider, code_verifier, code_challenge, redirect_uri, expires_at, created_at
            ) VALUES (
                :state, :provider, :code_verifier, :code_challenge, :redirect_uri, :expires_at, :created_at
            )
        """
        params = {
            "state": session.state,
            "provider": session.provider,
            "code_verifier": session.code_verifier,
            "code_challenge": session.code_challenge,
            "redirect_uri": session.redirect_uri,
            "expires_at": to_unix(session.expires_at),
            "created_at": to_unix(session.created_at),
        }
        with translate_db_errors("oauth_sessions.create"), self._engine.begin() as conn:
            conn.execute(text(sql), params)
        return session

    def take_session(self, *, state: str) -> AuthSession | None:
        select_sql = """
            SELECT state, provider, code_verifier, code_challenge, redirect_uri, expires_at, created_at
            FROM oauth_sessions
            WHERE state = :state
            LIMIT 1
        """
        delete_sql = """
            DELETE FROM oauth_sessions
            WHERE state = :state
        """
        with translate_db_errors("oauth_sessions.take"), self._engine.begin() as conn:
            row = conn.execute(text(select_sql), {"state": state}).mappings().first()
            if row is None:
                return None
            result = conn.execute(text(delete_sql), {"state": state})
            # Another request took the same state between our select and delete.
            if result.rowcount == 0:
                return None
        return map_row_to_auth_session(row)

    def delete_session(self, *, state: str) -> None:
        sql = """
            DELETE FROM oauth_sessions
            WHERE state = :state
        """
        with translate_db_errors("oauth_sessions.delete"), self._engine.begin() as conn:
            conn.execute(text(sql), {"state": state})
