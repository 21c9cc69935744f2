from __future__ import annotations

from auth_service.application.dto.auth import UserProfileOutput, ValidateTokenInput
from auth_service.application.ports.token_port import AccessTokenPort
from auth_service.application.ports.user_port import UserPort
from auth_service.domain.exceptions import UserNotFoundError
from auth_service.domain.services.credentials import truncate

from .auth_common import Clock, build_user_profile_output, utcnow


class ValidateTokenUseCase:
    # No revocation lookup: access tokens stay valid until exp, even after logout.
    def __init__(self, *, token_port: AccessTokenPort, user_port: UserPort, clock: Clock = utcnow):
        self._token_port = token_port
        self._user_port = user_port
        self._clock = clock

    def execute(self, command: ValidateTokenInput) -> UserProfileOutput:
        claims = self._token_port.decode_access_token(token=command.token.strip(), now=self._clock())
        user = self._user_port.get_user_by_id(user_id=claims.user_id)
        if user is None:
            raise UserNotFoundError("User not found.", user_id=truncate(claims.user_id))
        return build_user_profile_output(user)
