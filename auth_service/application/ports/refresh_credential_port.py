from __future__ import annotations

from datetime import datetime
from typing import Callable, Protocol, TypeVar

from auth_service.domain.entities.user import RefreshCredential


TLedgerResult = TypeVar("TLedgerResult")


class RefreshCredentialPort(Protocol):
    def execute_in_transaction(
        self,
        fn: Callable[[RefreshCredentialPort], TLedgerResult],
    ) -> TLedgerResult:
        ...

    def create_refresh_credential(
        self,
        *,
        credential_id: str,
        user_id: str,
        token_hash: str,
        expires_at: datetime,
        created_at: datetime,
    ) -> RefreshCredential:
        ...

    def get_refresh_credential_by_hash(self, *, token_hash: str) -> RefreshCredential | None:
        ...

    def revoke_refresh_credential(
        self,
        *,
        credential_id: str,
        revoked_at: datetime,
        reason: str,
    ) -> bool:
        """Returns False when the credential was already revoked."""
        ...

    def revoke_all_for_user(self, *, user_id: str, revoked_at: datetime, reason: str) -> int:
        ...
