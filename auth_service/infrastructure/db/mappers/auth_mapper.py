from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

from auth_service.domain.entities.user import AuthSession, RefreshCredential, User


def _as_str(value: Any) -> str:
    return str(value)


def _as_datetime(value: Any) -> datetime:
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _as_optional_datetime(value: Any) -> datetime | None:
    if value is None:
        return None
    return _as_datetime(value)


def to_unix(value: datetime | None) -> int | None:
    if value is None:
        return None
    return int(value.timestamp())


def map_row_to_user(row: Mapping[str, Any]) -> User:
    return User(
        id=_as_str(row["id"]),
        identity_provider=row["identity_provider"],
        provider_user_id=_as_str(row["provider_user_id"]),
        email=row["email"],
        username=row.get("username"),
        avatar_url=row.get("avatar_url"),
        created_at=_as_datetime(row["created_at"]),
        updated_at=_as_datetime(row["updated_at"]),
        deleted_at=_as_optional_datetime(row.get("deleted_at")),
    )


def map_row_to_auth_session(row: Mapping[str, Any]) -> AuthSession:
    return AuthSession(
        state=row["state"],
        provider=row["provider"],
        code_verifier=row["code_verifier"],
        code_challenge=row["code_challenge"],
        redirect_uri=row["redirect_uri"],
        expires_at=_as_datetime(row["expires_at"]),
        created_at=_as_datetime(row["created_at"]),
    )


def map_row_to_refresh_credential(row: Mapping[str, Any]) -> RefreshCredential:
    return RefreshCredential(
        id=_as_str(row["id"]),
        user_id=_as_str(row["user_id"]),
        token_hash=row["token_hash"],
        expires_at=_as_datetime(row["expires_at"]),
        created_at=_as_datetime(row["created_at"]),
        revoked_at=_as_optional_datetime(row.get("revoked_at")),
        revoked_reason=row.get("revoked_reason"),
    )
