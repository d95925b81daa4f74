"""ServiceResult and ServiceError — the universal service contract.

INVARIANT: All service-layer methods return ServiceResult.
The CLI commands and the interactive shell consume this type.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCode(StrEnum):
    """Stable error codes carried by :class:`ServiceError`."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_PHASE = "INVALID_PHASE"
    NOT_ASSIGNED = "NOT_ASSIGNED"
    EMPTY_SELECTION = "EMPTY_SELECTION"
    LOAD_FAILED = "LOAD_FAILED"
    SAVE_QUOTA_EXCEEDED = "SAVE_QUOTA_EXCEEDED"
    SAVE_FAILED = "SAVE_FAILED"
    IMPORT_MALFORMED = "IMPORT_MALFORMED"
    IMPORT_PARSE_FAILED = "IMPORT_PARSE_FAILED"
    FILE_ERROR = "FILE_ERROR"


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Universal return type for all service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"assign"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal notices (e.g. the save after a change failed).
        error: Structured error if ``ok`` is False.
        meta: Optional metadata.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None


def failure(op: str, code: ErrorCode, message: str, **detail: Any) -> ServiceResult:
    """Build a failed ServiceResult."""
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(code=code, message=message, detail=detail),
    )
