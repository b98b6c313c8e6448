"""OAuth2 client-credentials token management for the organization API.

The token is cached per TokenManager instance and refreshed when it is
within ``refresh_buffer`` seconds of expiry. A failed refresh leaves the
previous cache untouched.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass

import httpx
import structlog

logger = structlog.get_logger()

TOKEN_PATH = "/connect/token"
DEFAULT_SCOPE = "api.organization"
DEFAULT_REFRESH_BUFFER = 300  # seconds


class ConfigurationError(Exception):
    """Raised when client credentials are missing."""


class AuthenticationError(Exception):
    """Raised when the token exchange fails."""

    def __init__(self, message: str, status: int | None = None) -> None:
        self.status = status
        super().__init__(message)


@dataclass(frozen=True)
class AccessToken:
    """A bearer token with its absolute expiry (clock seconds)."""

    value: str
    expires_at: float

    def is_fresh(self, now: float, buffer: float) -> bool:
        """Whether the token can still be used at ``now``."""
        return now < self.expires_at - buffer


class TokenManager:
    """Acquires and caches a client-credentials bearer token."""

    def __init__(
        self,
        client_id: str | None,
        client_secret: str | None,
        identity_url: str,
        *,
        scope: str = DEFAULT_SCOPE,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.time,
        refresh_buffer: float = DEFAULT_REFRESH_BUFFER,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the token manager.

        Args:
            client_id: OAuth2 client id (organization.<uuid>).
            client_secret: OAuth2 client secret.
            identity_url: Base URL of the identity service.
            scope: Requested scope.
            http_client: Shared client. A short-lived one is created per
                exchange when omitted.
            clock: Returns the current time in seconds.
            refresh_buffer: Seconds before expiry at which to refresh.
            timeout: Per-exchange timeout in seconds.
        """
        self._client_id = client_id
        self._client_secret = client_secret
        self._token_url = identity_url.rstrip("/") + TOKEN_PATH
        self._scope = scope
        self._http_client = http_client
        self._clock = clock
        self._refresh_buffer = refresh_buffer
        self._timeout = timeout
        self._token: AccessToken | None = None
        self._refresh_lock = asyncio.Lock()

    @property
    def cached(self) -> AccessToken | None:
        """The currently cached token, fresh or not."""
        return self._token

    def reset(self) -> None:
        """Drop the cached token."""
        self._token = None

    async def get_token(self) -> str:
        """Return a valid bearer token, exchanging credentials if needed.

        Raises:
            ConfigurationError: If the client id or secret is missing.
            AuthenticationError: If the token endpoint rejects the request
                or cannot be reached.
        """
        token = self._token
        if token is not None and token.is_fresh(self._clock(), self._refresh_buffer):
            return token.value

        # Callers that queued behind an in-flight refresh reuse its result
        async with self._refresh_lock:
            token = self._token
            if token is not None and token.is_fresh(self._clock(), self._refresh_buffer):
                return token.value
            self._token = await self._request_token()
            return self._token.value

    async def _request_token(self) -> AccessToken:
        if not self._client_id or not self._client_secret:
            raise ConfigurationError(
                "BW_CLIENT_ID and BW_CLIENT_SECRET environment variables are required"
            )

        form = {
            "grant_type": "client_credentials",
            "scope": self._scope,
            "client_id": self._client_id,
            "client_secret": self._client_secret,
        }
        headers = {"Content-Type": "application/x-www-form-urlencoded"}

        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    self._token_url, data=form, headers=headers, timeout=self._timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(self._token_url, data=form, headers=headers)
        except httpx.HTTPError as e:
            logger.error("token_request_failed", url=self._token_url, error=str(e))
            raise AuthenticationError(f"Failed to obtain access token: {e}") from e

        if not response.is_success:
            logger.error("token_request_rejected", url=self._token_url, status=response.status_code)
            raise AuthenticationError(
                f"OAuth2 token request failed: {response.status_code} {response.reason_phrase}",
                status=response.status_code,
            )

        try:
            payload = response.json()
            value = payload["access_token"]
            ttl = float(payload["expires_in"])
        except (ValueError, KeyError, TypeError) as e:
            raise AuthenticationError(f"Failed to obtain access token: malformed token response ({e})") from e

        if not isinstance(value, str) or not value:
            raise AuthenticationError("Failed to obtain access token: empty access_token")

        token = AccessToken(value=value, expires_at=self._clock() + ttl)
        logger.info("token_refreshed", expires_in=ttl)
        return token
