from __future__ import annotations

import hmac
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional, Protocol

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class Unauthorized(Exception):
    pass


@dataclass(frozen=True)
class Identity:
    subject: str


class TokenVerifier(Protocol):
    def verify(self, token: str) -> Identity: ...


class StaticTokenVerifier:
    """Accepts a fixed set of shared bearer tokens, typically from ``API_TOKENS``."""

    def __init__(self, tokens: Iterable[str]) -> None:
        self._tokens = tuple(token for token in tokens if token)

    def verify(self, token: str) -> Identity:
        for index, candidate in enumerate(self._tokens):
            if hmac.compare_digest(candidate.encode(), token.encode()):
                return Identity(subject=f"token-{index}")
        raise Unauthorized("Invalid token")


def require_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    if credentials is None:
        raise Unauthorized("No token provided")
    token = credentials.credentials.strip()
    if not token:
        raise Unauthorized("Malformed token")

    verifier: TokenVerifier = request.app.state.token_verifier
    try:
        return verifier.verify(token)
    except Unauthorized:
        logger.warning("Rejected bearer token for %s %s", request.method, request.url.path)
        raise
