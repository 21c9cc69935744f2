from __future__ import annotations


class DomainError(Exception):
    """Base para erros de dominio."""

    kind = "DomainError"
    retryable = False

    def __init__(self, message: str, **context: str):
        super().__init__(message)
        self.message = message
        self.context = context


class SessionNotFoundError(DomainError):
    """Sessao OAuth inexistente ou ja consumida."""

    kind = "SessionNotFound"


class SessionExpiredError(DomainError):
    """Sessao OAuth expirada."""

    kind = "SessionExpired"


class ProviderMismatchError(DomainError):
    """Provider do callback difere do provider da sessao."""

    kind = "ProviderMismatch"


class UnsupportedProviderError(DomainError):
    """Provider de identidade nao configurado."""

    kind = "UnsupportedProvider"


class ExchangeFailedError(DomainError):
    """Troca do authorization code falhou no provider."""

    kind = "ExchangeFailed"


class ProfileFetchFailedError(DomainError):
    """Nao foi possivel obter o perfil externo."""

    kind = "ProfileFetchFailed"


class SignatureInvalidError(DomainError):
    """Assinatura ou algoritmo do access token invalido."""

    kind = "SignatureInvalid"


class TokenMalformedError(DomainError):
    """Access token com estrutura invalida."""

    kind = "TokenMalformed"


class TokenExpiredError(DomainError):
    """Access token expirado."""

    kind = "TokenExpired"


class RefreshTokenNotFoundError(DomainError):
    """Refresh token desconhecido."""

    kind = "RefreshTokenNotFound"


class RefreshTokenRevokedError(DomainError):
    """Refresh token ja revogado."""

    kind = "RefreshTokenRevoked"


class RefreshTokenExpiredError(DomainError):
    """Refresh token expirado."""

    kind = "RefreshTokenExpired"


class UserNotFoundError(DomainError):
    """Usuario inexistente ou removido."""

    kind = "UserNotFound"


class UpstreamTimeoutError(DomainError):
    """Prazo excedido ao chamar provider ou banco."""

    kind = "UpstreamTimeout"
    retryable = True


class PersistenceFailureError(DomainError):
    """Falha de persistencia."""

    kind = "PersistenceFailure"
    retryable = True
