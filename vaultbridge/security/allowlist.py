"""Allowlists for the vault CLI verbs and the organization API endpoints.

Only explicitly registered verbs and endpoint shapes are permitted;
anything else is rejected before a process is spawned or a request sent.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

import structlog

from vaultbridge.security.sanitizer import validate_parameter

logger = structlog.get_logger()

ALLOWED_COMMANDS: frozenset[str] = frozenset({
    "lock",
    "unlock",
    "sync",
    "status",
    "list",
    "get",
    "generate",
    "create",
    "edit",
    "delete",
    "confirm",
    "move",
    "device-approval",
    "send",
    "restore",
    "import",
    "export",
    "serve",
    "config",
    "login",
    "logout",
})

ALLOWED_METHODS: frozenset[str] = frozenset({"GET", "POST", "PUT", "DELETE"})

_UUID = r"[a-f0-9-]{36}"
_POLICY_TYPE = r"(?:1[0-5]|[0-9])"

ALLOWED_ENDPOINT_PATTERNS: tuple[re.Pattern[str], ...] = (
    # Collections
    re.compile(r"^/public/collections$"),
    re.compile(rf"^/public/collections/{_UUID}$"),
    # Members
    re.compile(r"^/public/members$"),
    re.compile(rf"^/public/members/{_UUID}$"),
    re.compile(rf"^/public/members/{_UUID}/group-ids$"),
    re.compile(rf"^/public/members/{_UUID}/reinvite$"),
    # Groups
    re.compile(r"^/public/groups$"),
    re.compile(rf"^/public/groups/{_UUID}$"),
    re.compile(rf"^/public/groups/{_UUID}/member-ids$"),
    # Policies
    re.compile(r"^/public/policies$"),
    re.compile(rf"^/public/policies/{_POLICY_TYPE}$"),
    # Events, the only endpoint that takes a query string
    re.compile(r"^/public/events$"),
    re.compile(r"^/public/events\?[^\x00\r\n#]*$"),
    # Organization
    re.compile(r"^/public/organization/subscription$"),
    re.compile(r"^/public/organization/import$"),
)


class AllowlistDenied(Exception):
    """Raised when a CLI command is not on the allowlist."""

    def __init__(self, command: str, reason: str) -> None:
        self.command = command
        self.reason = reason
        super().__init__(f"{reason}: {command!r}")


class ApiRequestError(Exception):
    """Raised when an organization API request fails the endpoint or method guard."""


def is_valid_command(command: str) -> bool:
    """Check whether the leading word of a command is an allowlisted verb.

    Matching is exact and case-sensitive. Empty or whitespace-only input
    is rejected.
    """
    if not isinstance(command, str):
        return False
    parts = command.split()
    if not parts:
        return False
    return parts[0] in ALLOWED_COMMANDS


def check_command(tokens: Sequence[str]) -> None:
    """Final gate before a CLI process is spawned.

    Args:
        tokens: The argument vector, verb first, without the binary name.

    Raises:
        AllowlistDenied: If the verb is not allowlisted or any token
            contains a null, CR or LF byte.
    """
    if not tokens:
        raise AllowlistDenied("", "Empty command")

    verb = tokens[0]
    if verb not in ALLOWED_COMMANDS:
        logger.warning("allowlist_denied", verb=verb)
        raise AllowlistDenied(verb, "Command verb not allowed")

    for token in tokens:
        if not validate_parameter(token):
            logger.warning("allowlist_denied", verb=verb, reason="control_bytes")
            raise AllowlistDenied(verb, "Control characters in command arguments")


def validate_api_endpoint(endpoint: str) -> bool:
    """Return True if the path matches one of the registered endpoint shapes."""
    if not isinstance(endpoint, str):
        return False
    # fullmatch: "$" alone would accept a trailing newline
    return any(pattern.fullmatch(endpoint) for pattern in ALLOWED_ENDPOINT_PATTERNS)


def check_endpoint(endpoint: str) -> None:
    """Validate an API path, raising on denial.

    Raises:
        ApiRequestError: If the path is not allowlisted.
    """
    if not validate_api_endpoint(endpoint):
        logger.warning("endpoint_rejected", endpoint=endpoint)
        raise ApiRequestError(f"Invalid API endpoint: {endpoint}")


def check_method(method: str) -> str:
    """Normalize an HTTP method to upper case and validate it.

    Returns:
        The upper-cased method.

    Raises:
        ApiRequestError: If the method is not GET, POST, PUT or DELETE.
    """
    normalized = method.upper() if isinstance(method, str) else ""
    if normalized not in ALLOWED_METHODS:
        logger.warning("method_rejected", method=method)
        raise ApiRequestError(f"Invalid HTTP method: {method}")
    return normalized
