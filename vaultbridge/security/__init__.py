"""Security layer: sanitization, allowlisting, argv encoding, audit logging."""

from __future__ import annotations

from vaultbridge.security.allowlist import (
    AllowlistDenied,
    ApiRequestError,
    is_valid_command,
    validate_api_endpoint,
)
from vaultbridge.security.audit import AuditLogger
from vaultbridge.security.encoder import build_safe_command, encode_json_argument
from vaultbridge.security.sanitizer import (
    SanitizationError,
    sanitize_api_parameters,
    sanitize_input,
    validate_parameter,
)

__all__ = [
    "AllowlistDenied",
    "ApiRequestError",
    "AuditLogger",
    "SanitizationError",
    "build_safe_command",
    "encode_json_argument",
    "is_valid_command",
    "sanitize_api_parameters",
    "sanitize_input",
    "validate_api_endpoint",
    "validate_parameter",
]
