from __future__ import annotations

from datetime import timedelta
import logging
from typing import Callable
from uuid import uuid4

from auth_service.application.ports.refresh_credential_port import RefreshCredentialPort
from auth_service.domain.entities.user import RefreshCredential
from auth_service.domain.exceptions import (
    DomainError,
    RefreshTokenExpiredError,
    RefreshTokenNotFoundError,
    RefreshTokenRevokedError,
    UserNotFoundError,
)
from auth_service.domain.services.credentials import (
    generate_refresh_token,
    hash_refresh_token,
    truncate,
)

from .auth_common import (
    REVOKE_REASON_EXPIRED,
    REVOKE_REASON_REFRESHED,
    Clock,
    ceil_to_second,
    floor_to_second,
    utcnow,
)


logger = logging.getLogger(__name__)


class RefreshLedger:
    def __init__(
        self,
        *,
        refresh_port: RefreshCredentialPort,
        refresh_ttl_days: int,
        clock: Clock = utcnow,
    ):
        self._refresh_port = refresh_port
        self._refresh_ttl = timedelta(days=refresh_ttl_days)
        self._clock = clock

    def issue(self, *, user_id: str) -> tuple[str, RefreshCredential]:
        return self._issue(self._refresh_port, user_id=user_id)

    def rotate(
        self,
        *,
        refresh_token: str,
        before_issue: Callable[[RefreshCredential], None] | None = None,
    ) -> tuple[str, RefreshCredential]:
        """Revokes the presented credential and issues its successor atomically.

        ``before_issue`` runs after the presented credential is revoked and
        before the successor is stored. A ``UserNotFoundError`` raised there
        keeps the revocation and issues nothing.
        """
        token_hash = hash_refresh_token(refresh_token.strip())

        def _tx(refresh_port: RefreshCredentialPort) -> tuple[str, RefreshCredential] | DomainError:
            now = self._clock()
            record = refresh_port.get_refresh_credential_by_hash(token_hash=token_hash)
            if record is None:
                raise RefreshTokenNotFoundError(
                    "Invalid refresh token.",
                    token_hash=truncate(token_hash),
                )
            if record.is_revoked:
                raise RefreshTokenRevokedError(
                    "Refresh token has been revoked.",
                    credential_id=truncate(record.id),
                )
            if record.is_expired(now):
                refresh_port.revoke_refresh_credential(
                    credential_id=record.id,
                    revoked_at=now,
                    reason=REVOKE_REASON_EXPIRED,
                )
                return RefreshTokenExpiredError(
                    "Refresh token expired.",
                    token_hash=truncate(token_hash),
                )

            # Conditional update: only one concurrent rotation can flip revoked_at.
            revoked = refresh_port.revoke_refresh_credential(
                credential_id=record.id,
                revoked_at=now,
                reason=REVOKE_REASON_REFRESHED,
            )
            if not revoked:
                raise RefreshTokenRevokedError(
                    "Refresh token has been revoked.",
                    credential_id=truncate(record.id),
                )
            if before_issue is not None:
                try:
                    before_issue(record)
                except UserNotFoundError as exc:
                    return exc
            return self._issue(refresh_port, user_id=record.user_id)

        # Errors returned by the transaction are raised after its writes commit.
        result = self._refresh_port.execute_in_transaction(_tx)
        if isinstance(result, DomainError):
            logger.info(
                "refresh_ledger: rotation_rejected kind=%s token_hash=%s",
                result.kind,
                truncate(token_hash),
            )
            raise result

        logger.info(
            "refresh_ledger: rotated user_id=%s credential_id=%s",
            truncate(result[1].user_id),
            truncate(result[1].id),
        )
        return result

    def revoke_all(self, *, user_id: str, reason: str) -> int:
        count = self._refresh_port.revoke_all_for_user(
            user_id=user_id,
            revoked_at=self._clock(),
            reason=reason,
        )
        logger.info(
            "refresh_ledger: revoked_all user_id=%s reason=%s count=%s",
            truncate(user_id),
            reason,
            count,
        )
        return count

    def _issue(self, refresh_port: RefreshCredentialPort, *, user_id: str) -> tuple[str, RefreshCredential]:
        now = self._clock()
        plaintext = generate_refresh_token()
        record = refresh_port.create_refresh_credential(
            credential_id=str(uuid4()),
            user_id=user_id,
            token_hash=hash_refresh_token(plaintext),
            expires_at=ceil_to_second(now + self._refresh_ttl),
            created_at=floor_to_second(now),
        )
        return plaintext, record
