"""Argument vector construction for the vault CLI.

Commands are built as argv lists and executed without a shell, so
parameter values are never concatenated into a command string. Values
with shell metacharacters pass through untouched; values with control
bytes are rejected.
"""

from __future__ import annotations

import base64
import json
from collections.abc import Sequence
from typing import Any

from vaultbridge.security.sanitizer import (
    SanitizationError,
    sanitize_input,
    validate_parameter,
)


def build_safe_command(subcommand: str, parameters: Sequence[str] = ()) -> list[str]:
    """Build the argv for a CLI invocation (binary name excluded).

    Args:
        subcommand: The CLI verb. Sanitized, since it is caller-chosen text.
        parameters: Arguments passed verbatim as separate argv elements.

    Returns:
        ``[subcommand, *parameters]``.

    Raises:
        TypeError: If any parameter is not a string.
        SanitizationError: If any parameter contains a null, CR or LF byte.
    """
    command = [sanitize_input(subcommand)]
    for index, param in enumerate(parameters):
        if not validate_parameter(param):
            raise SanitizationError(
                f"parameter[{index}]",
                param,
                "Invalid parameter detected (null byte or line break)",
            )
        command.append(param)
    return command


def encode_json_argument(obj: Any) -> str:
    """Serialize an object the way the CLI expects for create/edit payloads.

    Compact JSON, then base64 (what ``bw encode`` produces).
    """
    raw = json.dumps(obj, separators=(",", ":"), ensure_ascii=False)
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")
