"""ServiceResult and ServiceError: what UI-facing operations return.

INVARIANT: UI-side operations never raise for expected failures (bad
input, unavailable store, service not running); they report them here so
the CLI can show a message and pick an exit code.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ServiceError(BaseModel):
    """Why an operation failed: a stable ``code`` for scripts, a ``message`` for people."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Outcome of a UI-facing operation.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"update_setting"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues, shown to the user (e.g. settings not saved).
        error: Structured error if ``ok`` is False.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None

    @classmethod
    def failure(cls, op: str, code: str, message: str, **detail: Any) -> ServiceResult:
        return cls(ok=False, op=op, error=ServiceError(code=code, message=message, detail=detail))
