"""Tests for auth module."""

import pytest

from notetags_mcp.auth import (
    SCOPES,
    AuthError,
    BearerTokenVerifier,
    check_write_permission,
    get_auth_provider,
)
from notetags_mcp.config import Config


class TestBearerTokenVerifier:
    """Tests for BearerTokenVerifier class."""

    @pytest.mark.asyncio
    async def test_no_auth_configured_allows_any_request(self):
        """When NOTETAGS_AUTH_TOKEN is not set, all requests should pass."""
        config = Config.from_env()

        verifier = BearerTokenVerifier(config)

        result = await verifier.verify_token("any-token")
        assert result is not None
        assert result.client_id == "anonymous"

        result = await verifier.verify_token("")
        assert result is not None

    @pytest.mark.asyncio
    async def test_empty_token_rejected(self, monkeypatch, caplog):
        """When auth is configured, empty token should be rejected."""
        monkeypatch.setenv("NOTETAGS_AUTH_TOKEN", "a" * 32)
        config = Config.from_env()

        verifier = BearerTokenVerifier(config)
        assert await verifier.verify_token("") is None
        assert "Empty authentication token" in caplog.text

    @pytest.mark.asyncio
    async def test_invalid_token_rejected(self, monkeypatch, caplog):
        """When auth is configured, wrong token should be rejected."""
        monkeypatch.setenv("NOTETAGS_AUTH_TOKEN", "correct-token-with-32-characters!")
        config = Config.from_env()

        verifier = BearerTokenVerifier(config)
        assert await verifier.verify_token("wrong-token") is None
        assert "Invalid authentication token" in caplog.text

    @pytest.mark.asyncio
    async def test_valid_token_accepted(self, monkeypatch):
        """When auth is configured, correct token should be accepted."""
        token = "my-super-secret-token-32-chars!!"
        monkeypatch.setenv("NOTETAGS_AUTH_TOKEN", token)
        config = Config.from_env()

        verifier = BearerTokenVerifier(config)
        result = await verifier.verify_token(token)

        assert result is not None
        assert result.client_id == "authenticated"
        assert result.scopes == SCOPES


class TestGetAuthProvider:
    """Tests for get_auth_provider function."""

    def test_returns_none_without_token(self):
        """No token configured means no auth provider."""
        assert get_auth_provider(Config.from_env()) is None

    def test_returns_verifier_with_token(self, monkeypatch):
        """A configured token gives a BearerTokenVerifier."""
        monkeypatch.setenv("NOTETAGS_AUTH_TOKEN", "b" * 40)
        provider = get_auth_provider(Config.from_env())
        assert isinstance(provider, BearerTokenVerifier)


class TestCheckWritePermission:
    """Tests for check_write_permission function."""

    def test_allows_writes_by_default(self):
        """Writes are allowed unless read-only is set."""
        check_write_permission(Config.from_env())

    def test_read_only_rejects_writes(self):
        """Read-only mode raises AuthError."""
        config = Config.from_env(read_only_override=True)
        with pytest.raises(AuthError, match="read-only"):
            check_write_permission(config)
