"""Pydantic argument models for every tool."""

from __future__ import annotations

from vaultbridge.schemas.base import ToolArgs, format_validation_error

__all__ = ["ToolArgs", "format_validation_error"]
