from __future__ import annotations

from auth_service.application.dto.auth import InitiateOAuthInput, InitiateOAuthOutput

from .session_store import SessionStore


class InitiateOAuthUseCase:
    def __init__(self, *, session_store: SessionStore):
        self._session_store = session_store

    def execute(self, command: InitiateOAuthInput) -> InitiateOAuthOutput:
        return self._session_store.create_session(provider=command.provider)
