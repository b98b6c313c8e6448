"""Organization API request construction and execution.

Uses httpx for all requests. Every request passes the method and endpoint
allowlists before a token is fetched, and request bodies are sanitized
before they are serialized.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog
from pydantic import BaseModel

from vaultbridge import __version__
from vaultbridge.auth import AuthenticationError, ConfigurationError, TokenManager
from vaultbridge.security.allowlist import ApiRequestError, check_endpoint, check_method
from vaultbridge.security.sanitizer import sanitize_api_parameters
from vaultbridge.tools.base import (
    ApiResult,
    DescribedTool,
    ToolResponse,
    normalize_api_result,
)

logger = structlog.get_logger()

_BODY_METHODS = frozenset({"POST", "PUT"})


@dataclass(frozen=True)
class ApiRequest:
    """A fully built, guarded HTTP request."""

    method: str
    url: str
    headers: dict[str, str]
    body: str | None = None


class OrganizationApiClient:
    """Issues authenticated requests against the organization API."""

    def __init__(
        self,
        base_url: str,
        token_manager: TokenManager,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        user_agent: str = f"vaultbridge/{__version__}",
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API base URL, e.g. https://api.bitwarden.com.
            token_manager: Source of bearer tokens.
            http_client: Shared client. A short-lived one is created per
                request when omitted.
            timeout: Per-request timeout in seconds.
            user_agent: User-Agent header value.
        """
        self._base_url = base_url.rstrip("/")
        self._tokens = token_manager
        self._http_client = http_client
        self._timeout = timeout
        self._user_agent = user_agent

    async def build_request(
        self, endpoint: str, method: str, body: Any = None
    ) -> ApiRequest:
        """Validate and assemble a request.

        Raises:
            ApiRequestError: If the method or endpoint is not allowlisted.
            ConfigurationError: If client credentials are missing.
            AuthenticationError: If the token exchange fails.
        """
        method = check_method(method)
        check_endpoint(endpoint)

        token = await self._tokens.get_token()
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "User-Agent": self._user_agent,
        }

        payload = None
        if method in _BODY_METHODS and body is not None:
            payload = json.dumps(sanitize_api_parameters(body), separators=(",", ":"))

        return ApiRequest(
            method=method,
            url=f"{self._base_url}{endpoint}",
            headers=headers,
            body=payload,
        )

    async def execute(self, endpoint: str, method: str, body: Any = None) -> ApiResult:
        """Build and send a request, capturing the outcome.

        Never raises for guard, authentication or transport failures; those
        come back as an ApiResult with status 500.
        """
        try:
            request = await self.build_request(endpoint, method, body)
            response = await self._send(request)
        except (ApiRequestError, ConfigurationError, AuthenticationError, httpx.HTTPError) as e:
            logger.warning("api_request_error", endpoint=endpoint, error=str(e))
            return ApiResult(status=500, error_message=f"API request error: {e}")

        data = _read_body(response)
        if not response.is_success:
            logger.info("api_request_failed", endpoint=endpoint, status=response.status_code)
            return ApiResult(
                status=response.status_code,
                data=data,
                error_message=f"API request failed: {response.status_code} {response.reason_phrase}",
            )
        return ApiResult(status=response.status_code, data=data)

    async def _send(self, request: ApiRequest) -> httpx.Response:
        logger.debug("api_request", method=request.method, url=request.url)
        if self._http_client is not None:
            return await self._http_client.request(
                request.method,
                request.url,
                headers=request.headers,
                content=request.body,
                timeout=self._timeout,
            )
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.request(
                request.method,
                request.url,
                headers=request.headers,
                content=request.body,
            )


def _read_body(response: httpx.Response) -> Any:
    """Parse JSON bodies, fall back to text for everything else."""
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            return response.json()
        except ValueError as e:
            return f"Failed to parse JSON response: {e}"
    return response.text


@dataclass(frozen=True)
class ApiCall:
    """A logical API call: method, path, optional body, and fallback text."""

    method: str
    endpoint: str
    body: Any = None
    fallback: str = field(default="Operation completed successfully")


class ApiTool(DescribedTool):
    """A tool that maps validated arguments to a single API request."""

    def __init__(
        self,
        name: str,
        description: str,
        args_model: type[BaseModel],
        build: Callable[[Any], ApiCall],
        client: OrganizationApiClient,
    ) -> None:
        super().__init__(name, description, args_model)
        self._build = build
        self._client = client

    def call(self, args: BaseModel) -> ApiCall:
        """The API call ``args`` translates to."""
        return self._build(args)

    async def execute(self, args: BaseModel) -> ToolResponse:
        call = self._build(args)
        result = await self._client.execute(call.endpoint, call.method, call.body)
        return normalize_api_result(result, call.fallback)
