"""Tests for the CLI verb allowlist and the API endpoint allowlist."""

from __future__ import annotations

import pytest

from vaultbridge.security.allowlist import (
    ALLOWED_COMMANDS,
    AllowlistDenied,
    ApiRequestError,
    check_command,
    check_endpoint,
    check_method,
    is_valid_command,
    validate_api_endpoint,
)

UUID = "3fa85f64-5717-4562-b3fc-2c963f66afa6"


# --- is_valid_command ---


class TestIsValidCommand:
    """Tests for leading-verb matching."""

    def test_exact_verb_set(self) -> None:
        assert ALLOWED_COMMANDS == {
            "lock", "unlock", "sync", "status", "list", "get", "generate",
            "create", "edit", "delete", "confirm", "move", "device-approval",
            "send", "restore", "import", "export", "serve", "config",
            "login", "logout",
        }

    @pytest.mark.parametrize("verb", sorted(ALLOWED_COMMANDS))
    def test_every_verb_accepted(self, verb: str) -> None:
        assert is_valid_command(verb) is True

    def test_verb_with_arguments(self) -> None:
        assert is_valid_command("get item abc") is True

    @pytest.mark.parametrize("verb", ["LIST", "List", "Get", "SYNC"])
    def test_case_variations_rejected(self, verb: str) -> None:
        assert is_valid_command(verb) is False

    @pytest.mark.parametrize("command", ["", "   ", "rm", "lis", "lists", "device", "rm -rf /"])
    def test_unknown_or_empty_rejected(self, command: str) -> None:
        assert is_valid_command(command) is False


# --- check_command ---


class TestCheckCommand:
    """Tests for the last gate before a process is spawned."""

    def test_allowed_argv_passes(self) -> None:
        check_command(["get", "item", "abc; echo pwned"])  # should not raise

    def test_empty_argv_denied(self) -> None:
        with pytest.raises(AllowlistDenied, match="Empty command"):
            check_command([])

    def test_unknown_verb_denied(self) -> None:
        with pytest.raises(AllowlistDenied, match="not allowed"):
            check_command(["rm", "-rf", "/"])

    def test_control_bytes_in_argument_denied(self) -> None:
        with pytest.raises(AllowlistDenied, match="Control characters"):
            check_command(["get", "item", "abc\n--raw"])


# --- endpoints ---


class TestValidateApiEndpoint:
    """Tests for endpoint shape matching."""

    @pytest.mark.parametrize(
        "path",
        [
            "/public/collections",
            f"/public/collections/{UUID}",
            "/public/members",
            f"/public/members/{UUID}",
            f"/public/members/{UUID}/group-ids",
            f"/public/members/{UUID}/reinvite",
            "/public/groups",
            f"/public/groups/{UUID}",
            f"/public/groups/{UUID}/member-ids",
            "/public/policies",
            "/public/policies/0",
            "/public/policies/9",
            "/public/policies/15",
            "/public/events",
            "/public/events?start=2024-01-01&end=2024-02-01",
            "/public/organization/subscription",
            "/public/organization/import",
        ],
    )
    def test_registered_shapes_accepted(self, path: str) -> None:
        assert validate_api_endpoint(path) is True

    @pytest.mark.parametrize(
        "path",
        [
            "/public/collections/invalid-uuid",
            "/public/collections/not-a-uuid",
            f"/public/collections/{UUID}/extra",
            f"/public/collections/{UUID.upper()}",
            "/public/policies/16",
            "/public/policies/-1",
            "/public/policies/abc",
            "/public/collections?x=1",
            f"/public/members/{UUID}?x=1",
            "/public/organization",
            "/public/organization/billing",
            "/public/../admin",
            "/admin/collections",
            "public/collections",
            "/public/collections\n",
            "/public/events?start=1\r\nHost: evil",
            "",
        ],
    )
    def test_other_paths_rejected(self, path: str) -> None:
        assert validate_api_endpoint(path) is False

    def test_check_endpoint_raises_with_path(self) -> None:
        with pytest.raises(ApiRequestError, match="Invalid API endpoint: /public/collections/not-a-uuid"):
            check_endpoint("/public/collections/not-a-uuid")


class TestCheckMethod:
    """Tests for HTTP method validation."""

    @pytest.mark.parametrize("method", ["GET", "POST", "PUT", "DELETE", "get", "Put"])
    def test_allowed_methods_normalized(self, method: str) -> None:
        assert check_method(method) == method.upper()

    @pytest.mark.parametrize("method", ["PATCH", "HEAD", "OPTIONS", "TRACE", ""])
    def test_other_methods_rejected(self, method: str) -> None:
        with pytest.raises(ApiRequestError, match="Invalid HTTP method"):
            check_method(method)
