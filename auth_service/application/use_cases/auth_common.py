from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

from auth_service.application.dto.auth import UserProfileOutput
from auth_service.domain.entities.user import User


Clock = Callable[[], datetime]

REVOKE_REASON_EXPIRED = "expired"
REVOKE_REASON_REFRESHED = "token_refreshed"
REVOKE_REASON_LOGOUT = "user_logout"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def floor_to_second(value: datetime) -> datetime:
    return value.replace(microsecond=0)


def ceil_to_second(value: datetime) -> datetime:
    """Rounds up so a whole-second expiry never precedes the exact one."""
    if value.microsecond:
        return value.replace(microsecond=0) + timedelta(seconds=1)
    return value


def build_user_profile_output(user: User) -> UserProfileOutput:
    return UserProfileOutput(
        id=user.id,
        email=user.email,
        username=user.username or "",
        avatar_url=user.avatar_url or "",
    )
