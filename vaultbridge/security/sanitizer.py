"""Input sanitization for the two outbound surfaces.

Two separate policies live here and must not be mixed up:

- ``sanitize_input`` strips shell metacharacters from free text. It is lossy:
  a value containing ``;`` comes back without it. Only the CLI subcommand
  verb goes through it.
- ``validate_parameter`` is used for individual CLI arguments. Arguments are
  passed to exec as separate argv elements, so metacharacters are inert;
  only control bytes that break argument boundaries are rejected.
- ``sanitize_api_parameters`` removes markup and quote characters from JSON
  request bodies bound for the organization API.
"""

from __future__ import annotations

import re
from typing import Any

import structlog

logger = structlog.get_logger()

# Applied in this order by sanitize_input
_NULL_BYTES = re.compile(r"\x00")
_SHELL_METACHARACTERS = re.compile(r"[;&|`$(){}\[\]<>'\"]")
_ESCAPE_SEQUENCES = re.compile(r"\\.", re.DOTALL)
_LINE_TERMINATORS = re.compile(r"[\r\n]")
_WHITESPACE_RUNS = re.compile(r"\s+")

# Bytes that can split or truncate a single argv element
_CONTROL_BYTES = re.compile(r"[\x00\r\n]")

_API_UNSAFE_CHARS = re.compile(r"[<>\"'&]")


class SanitizationError(Exception):
    """Raised when input fails sanitization checks."""

    def __init__(self, field: str, value: str, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Rejected {field}: {reason}")


def sanitize_input(value: str) -> str:
    """Strip characters that could change the shape of a command line.

    Removes null bytes, shell metacharacters, backslash escape sequences
    (the backslash and the character after it) and line terminators. Tabs
    become spaces, whitespace runs collapse to one space and the result
    is trimmed.

    Raises:
        TypeError: If value is not a string.
    """
    if not isinstance(value, str):
        raise TypeError("Input must be a string")

    value = _NULL_BYTES.sub("", value)
    value = _SHELL_METACHARACTERS.sub("", value)
    value = _ESCAPE_SEQUENCES.sub("", value)
    value = _LINE_TERMINATORS.sub("", value)
    value = value.replace("\t", " ")
    value = _WHITESPACE_RUNS.sub(" ", value)
    return value.strip()


def validate_parameter(value: str) -> bool:
    """Return True if a CLI argument is free of null, CR and LF bytes.

    Raises:
        TypeError: If value is not a string.
    """
    if not isinstance(value, str):
        raise TypeError("Parameter must be a string")
    return _CONTROL_BYTES.search(value) is None


def sanitize_api_parameters(params: Any) -> Any:
    """Recursively strip ``< > " ' &`` from strings in a JSON-like tree.

    Mapping keys are cleaned the same way as string values. Lists and
    tuples are mapped element-wise; every other value is returned as is.
    """
    if params is None:
        return None
    if isinstance(params, str):
        return _API_UNSAFE_CHARS.sub("", params)
    if isinstance(params, (list, tuple)):
        return [sanitize_api_parameters(item) for item in params]
    if isinstance(params, dict):
        return {
            _API_UNSAFE_CHARS.sub("", str(key)): sanitize_api_parameters(value)
            for key, value in params.items()
        }
    return params
