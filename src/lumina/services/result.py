"""Outcome records for palette dispatch and the services behind the CLI.

INVARIANT: Dispatch and service calls report failure as a ServiceResult with
``ok=False`` and an ``error``; they do not raise.  Renderers key off ``op``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Self

from pydantic import BaseModel, Field, model_validator


class ErrorCode(StrEnum):
    """Failure codes carried in :attr:`ServiceError.code`."""

    DISPATCH_FAILED = "DISPATCH_FAILED"
    RUN_FAILED = "RUN_FAILED"
    BRIDGE_ERROR = "BRIDGE_ERROR"
    HOST_ERROR = "HOST_ERROR"
    ASSISTANT_ERROR = "ASSISTANT_ERROR"
    STREAM_TIMEOUT = "STREAM_TIMEOUT"


class ServiceError(BaseModel):
    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, code: ErrorCode, exc: BaseException, **detail: Any) -> ServiceError:
        """Error for *exc*; ``detail["exception"]`` names its class."""
        name = exc.__class__.__name__
        return cls(code=code, message=str(exc) or name, detail={**detail, "exception": name})


class ServiceResult(BaseModel):
    """Result of one dispatch or service operation.

    Attributes:
        ok: Whether the operation succeeded.
        op: Operation name (``run_command``, ``list_channels``, ...).
        data: Operation payload.  Failures may carry partial data too.
        warnings: Non-fatal issues, e.g. one failed command in a batch.
        error: Present exactly when ``ok`` is False.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None

    @model_validator(mode="after")
    def _error_matches_ok(self) -> Self:
        if self.ok == (self.error is not None):
            msg = "error must be set exactly when ok is False"
            raise ValueError(msg)
        return self

    @classmethod
    def failure(
        cls,
        op: str,
        error: ServiceError,
        *,
        data: dict[str, Any] | None = None,
        warnings: list[str] | None = None,
    ) -> ServiceResult:
        return cls(ok=False, op=op, data=data or {}, warnings=warnings or [], error=error)
