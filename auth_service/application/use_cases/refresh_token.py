from __future__ import annotations

from auth_service.application.dto.auth import RefreshTokenInput, TokenPairOutput
from auth_service.application.ports.token_port import AccessTokenPort
from auth_service.application.ports.user_port import UserPort
from auth_service.domain.entities.user import RefreshCredential, User
from auth_service.domain.exceptions import RefreshTokenNotFoundError, UserNotFoundError
from auth_service.domain.services.credentials import truncate

from .auth_common import Clock, utcnow
from .refresh_ledger import RefreshLedger


class RefreshTokenUseCase:
    def __init__(
        self,
        *,
        refresh_ledger: RefreshLedger,
        user_port: UserPort,
        token_port: AccessTokenPort,
        clock: Clock = utcnow,
    ):
        self._refresh_ledger = refresh_ledger
        self._user_port = user_port
        self._token_port = token_port
        self._clock = clock

    def execute(self, command: RefreshTokenInput) -> TokenPairOutput:
        token = command.refresh_token.strip()
        if not token:
            raise RefreshTokenNotFoundError("Missing refresh token.")

        resolved: list[User] = []

        def _require_live_user(record: RefreshCredential) -> None:
            user = self._user_port.get_user_by_id(user_id=record.user_id)
            if user is None:
                raise UserNotFoundError(
                    "User not found for refresh token.",
                    user_id=truncate(record.user_id),
                )
            resolved.append(user)

        refresh_token, _ = self._refresh_ledger.rotate(
            refresh_token=token,
            before_issue=_require_live_user,
        )
        user = resolved[0]

        access_token, _ = self._token_port.create_access_token(
            user_id=user.id,
            email=user.email,
            provider=user.identity_provider,
            now=self._clock(),
        )
        return TokenPairOutput(access_token=access_token, refresh_token=refresh_token)
