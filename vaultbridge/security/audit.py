"""Structured JSON audit logging using structlog.

Every tool call is logged to a JSONL file for post-hoc review. Secret
argument fields are redacted before they reach the file, and tool output
is reduced to its size.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog

# Argument keys whose values never reach the audit file
REDACTED_FIELDS: frozenset[str] = frozenset({
    "password",
    "totp",
    "text",
    "clientSecret",
    "client_secret",
    "session",
})

_REDACTED = "***"


class AuditLogger:
    """Structured audit logger for tool execution events."""

    def __init__(self, log_path: str) -> None:
        """Initialize the audit logger.

        Args:
            log_path: Path to the JSONL audit log file.
        """
        self._log_path = Path(log_path)
        self._log_path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self._log_path, "a", buffering=1)  # noqa: SIM115

        self._logger = structlog.wrap_logger(
            structlog.PrintLogger(file=self._file),
            processors=[
                structlog.processors.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.JSONRenderer(),
            ],
        )

    def __enter__(self) -> AuditLogger:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def log_attempt(self, tool_name: str, tool_input: dict) -> None:
        """Log that a tool call is being attempted."""
        self._logger.info("tool_attempt", tool=tool_name, input=redact(tool_input))

    def log_success(self, tool_name: str, tool_input: dict, result: dict) -> None:
        """Log a successful tool execution."""
        self._logger.info(
            "tool_success",
            tool=tool_name,
            input=redact(tool_input),
            result=_summarize_result(result),
        )

    def log_denied(self, tool_name: str, tool_input: dict, reason: str) -> None:
        """Log a tool call rejected by validation or a security guard."""
        self._logger.warning(
            "tool_denied", tool=tool_name, input=redact(tool_input), reason=reason
        )

    def log_error(self, tool_name: str, tool_input: dict, error: str) -> None:
        """Log a tool execution error."""
        self._logger.error(
            "tool_error", tool=tool_name, input=redact(tool_input), error=error
        )

    def log_timeout(self, tool_name: str, tool_input: dict) -> None:
        """Log a tool execution timeout."""
        self._logger.warning("tool_timeout", tool=tool_name, input=redact(tool_input))

    def close(self) -> None:
        """Close the audit log file."""
        if not self._file.closed:
            self._file.close()


def redact(obj: Any) -> Any:
    """Return a copy of a nested structure with secret fields masked."""
    if isinstance(obj, dict):
        return {
            k: _REDACTED if k in REDACTED_FIELDS and v is not None else redact(v)
            for k, v in obj.items()
        }
    if isinstance(obj, (list, tuple)):
        return [redact(item) for item in obj]
    return obj


def _summarize_result(result: dict) -> dict:
    """Reduce a rendered ToolResponse to its shape.

    Vault output can hold passwords and TOTP codes, so only the error
    flag and the text length are recorded.
    """
    blocks = result.get("content") or []
    chars = sum(len(b.get("text", "")) for b in blocks if isinstance(b, dict))
    return {"isError": bool(result.get("isError")), "blocks": len(blocks), "chars": chars}
