from __future__ import annotations

from datetime import datetime
from typing import Protocol

from auth_service.application.dto.auth import AccessClaims


class AccessTokenPort(Protocol):
    def create_access_token(
        self,
        *,
        user_id: str,
        email: str,
        provider: str,
        now: datetime,
    ) -> tuple[str, datetime]:
        ...

    def decode_access_token(self, *, token: str, now: datetime) -> AccessClaims:
        ...
