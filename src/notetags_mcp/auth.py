"""Authentication and write permission checks for notetags-mcp.

Bearer tokens are validated through FastMCP's auth system; write tools also
refuse to run when the server is started read-only.
"""

import hmac
import logging

from fastmcp.server.auth import AccessToken, TokenVerifier

from notetags_mcp.config import Config

logger = logging.getLogger(__name__)

SCOPES = ["tags:read", "tags:write"]


class AuthError(Exception):
    """Raised when a request is not allowed to do what it asked."""


class BearerTokenVerifier(TokenVerifier):
    """Accepts exactly the token in NOTETAGS_AUTH_TOKEN."""

    def __init__(self, config: Config):
        super().__init__()
        self._config = config

    async def verify_token(self, token: str) -> AccessToken | None:
        """
        Verify a bearer token and return access info if valid.

        Args:
            token: The bearer token (without "Bearer " prefix)

        Returns:
            AccessToken if valid, None if invalid
        """
        expected = self._config.auth_token
        if expected is None:
            return AccessToken(token=token or "anonymous", client_id="anonymous", scopes=SCOPES)

        if not token:
            logger.warning("Empty authentication token")
            return None

        # Constant-time comparison
        if not hmac.compare_digest(token.encode(), expected.encode()):
            logger.warning("Invalid authentication token")
            return None

        return AccessToken(token=token, client_id="authenticated", scopes=SCOPES)


def get_auth_provider(config: Config) -> BearerTokenVerifier | None:
    """Return a verifier when NOTETAGS_AUTH_TOKEN is set, None otherwise."""
    if config.auth_token is None:
        return None
    return BearerTokenVerifier(config)


def check_write_permission(config: Config) -> None:
    """
    Check if write operations are allowed.

    Raises:
        AuthError: If the server is in read-only mode
    """
    if config.read_only:
        logger.warning("Write operation rejected: server is in read-only mode")
        raise AuthError("Server is in read-only mode")
