"""Authentication gate for the chat endpoint.

The gate is opaque to the chat core: it resolves a request to an identity
or rejects it.
"""

from __future__ import annotations

from typing import Protocol

from fastapi import Request

ANONYMOUS = "anonymous"


class Authenticator(Protocol):
    def authenticate(self, request: Request) -> str | None:
        """Return the caller's identity, or None to reject."""
        ...


class BearerTokenAuthenticator:
    """Resolve ``Authorization: Bearer <token>`` against a static token table.

    With an empty table the gate is open and every caller is anonymous.
    """

    def __init__(self, tokens: dict[str, str]) -> None:
        self._tokens = dict(tokens)

    @property
    def enabled(self) -> bool:
        return bool(self._tokens)

    def authenticate(self, request: Request) -> str | None:
        if not self._tokens:
            return ANONYMOUS
        scheme, _, token = request.headers.get("authorization", "").partition(" ")
        if scheme.lower() != "bearer" or not token:
            return None
        return self._tokens.get(token.strip())
