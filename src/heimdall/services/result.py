"""ServiceResult and ServiceError — the universal service contract.

INVARIANT: All service-layer methods return ServiceResult; expected
failures never escape as exceptions.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCode(StrEnum):
    """Stable error codes carried by :class:`ServiceError`."""

    UNKNOWN_DOMAIN = "UNKNOWN_DOMAIN"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    PATH_NOT_FOUND = "PATH_NOT_FOUND"
    IO_FAILURE = "IO_FAILURE"
    PARSE_FAILURE = "PARSE_FAILURE"
    AGGREGATE_FAILURE = "AGGREGATE_FAILURE"
    INVALID_STATE = "INVALID_STATE"
    NOT_FOUND = "NOT_FOUND"


class ServiceError(BaseModel):
    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Universal return type for all service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"get"`` or ``"validate_all"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues, such as semantic validation advisories.
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

    @classmethod
    def failure(
        cls,
        op: str,
        code: str,
        message: str,
        *,
        detail: dict[str, Any] | None = None,
        warnings: list[str] | None = None,
    ) -> ServiceResult:
        return cls(
            ok=False,
            op=op,
            warnings=warnings or [],
            error=ServiceError(code=code, message=message, detail=detail or {}),
        )
