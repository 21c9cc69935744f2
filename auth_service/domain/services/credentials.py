from __future__ import annotations

import base64
import hashlib
import secrets


PKCE_VERIFIER_BYTES = 32
STATE_BYTES = 32
REFRESH_TOKEN_BYTES = 32

ELLIPSIS = "..."


def _b64url_nopad(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def generate_code_verifier() -> str:
    return _b64url_nopad(secrets.token_bytes(PKCE_VERIFIER_BYTES))


def code_challenge_s256(code_verifier: str) -> str:
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return _b64url_nopad(digest)


def generate_state() -> str:
    return secrets.token_urlsafe(STATE_BYTES)


def generate_refresh_token() -> str:
    return secrets.token_bytes(REFRESH_TOKEN_BYTES).hex()


def hash_refresh_token(refresh_token: str) -> str:
    return hashlib.sha256(refresh_token.encode("utf-8")).hexdigest()


def truncate(value: str | None, size: int = 4) -> str:
    """Keeps only the first ``size`` characters, for logs and error messages."""
    if not value:
        return ""
    if size > 0 and len(value) > size:
        return value[:size] + ELLIPSIS
    return value
