# trackr/auth.py
"""Bearer-token authentication dependency.

Token verification itself is pluggable: the app stores a
:class:`TokenVerifier` on ``app.state.token_verifier`` and this module only
parses the header and maps failures to 401.
"""

import logging
from typing import Optional, Protocol

from fastapi import Header, HTTPException, Request

logger = logging.getLogger(__name__)


class InvalidTokenError(Exception):
    """Raised by a verifier when a token cannot be trusted."""


class TokenVerifier(Protocol):
    def __call__(self, token: str) -> str:
        """Return the username the token belongs to."""
        ...


class StaticTokenVerifier:
    """Verifier backed by a fixed ``token -> username`` mapping."""

    def __init__(self, tokens: dict[str, str]) -> None:
        self._tokens = dict(tokens)

    def __call__(self, token: str) -> str:
        username = self._tokens.get(token)
        if not username:
            raise InvalidTokenError("Unknown token")
        return username


def parse_bearer(authorization: Optional[str]) -> str:
    """Extract the token from an ``Authorization`` header value."""
    if not authorization:
        raise InvalidTokenError("Missing authorization header")
    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        raise InvalidTokenError("Invalid authorization format")
    return parts[1]


def get_current_username(
    request: Request,
    authorization: Optional[str] = Header(default=None),
) -> str:
    """Resolve the calling user or fail with 401."""
    verifier: TokenVerifier = request.app.state.token_verifier
    try:
        return verifier(parse_bearer(authorization))
    except InvalidTokenError as e:
        logger.info("Rejected request to %s: %s", request.url.path, e)
        raise HTTPException(status_code=401, detail="Unauthorized") from e
