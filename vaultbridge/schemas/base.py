"""Common base for tool argument models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel


class ToolArgs(BaseModel):
    """Base class for tool arguments.

    Callers use camelCase keys (``folderId``); the models use snake_case
    attributes. Unknown keys are rejected.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


def format_validation_error(error: ValidationError) -> str:
    """Join pydantic errors into one line: ``loc: msg, loc: msg``."""
    parts = []
    for item in error.errors():
        loc = ".".join(str(part) for part in item["loc"])
        parts.append(f"{loc}: {item['msg']}" if loc else item["msg"])
    return "Validation error: " + ", ".join(parts)
