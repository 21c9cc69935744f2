from __future__ import annotations

from auth_service.application.dto.auth import LogoutInput, LogoutOutput
from auth_service.application.ports.token_port import AccessTokenPort

from .auth_common import REVOKE_REASON_LOGOUT, Clock, utcnow
from .refresh_ledger import RefreshLedger


class LogoutUseCase:
    """Revokes every refresh credential of the bearer.

    The presented access token itself is not blacklisted and keeps verifying
    until it expires.
    """

    def __init__(self, *, token_port: AccessTokenPort, refresh_ledger: RefreshLedger, clock: Clock = utcnow):
        self._token_port = token_port
        self._refresh_ledger = refresh_ledger
        self._clock = clock

    def execute(self, command: LogoutInput) -> LogoutOutput:
        claims = self._token_port.decode_access_token(token=command.access_token.strip(), now=self._clock())
        self._refresh_ledger.revoke_all(user_id=claims.user_id, reason=REVOKE_REASON_LOGOUT)
        return LogoutOutput(success=True)
