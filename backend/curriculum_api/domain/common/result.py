"""Result<T> pattern — domain and application functions return this instead of raising for normal flow."""
from __future__ import annotations
from enum import Enum
from typing import TypeVar, Generic, Optional

T = TypeVar("T")


class ErrorCode(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"
    UNPROCESSABLE = "unprocessable"


class Result(Generic[T]):
    def __init__(
        self,
        is_success: bool,
        value: Optional[T] = None,
        error: Optional[str] = None,
        code: Optional[ErrorCode] = None,
    ):
        self.is_success = is_success
        self.value = value
        self.error = error
        self.code = code

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(is_success=True, value=value)

    @classmethod
    def fail(cls, error: str, code: ErrorCode = ErrorCode.VALIDATION) -> "Result[T]":
        return cls(is_success=False, error=error, code=code)

    @classmethod
    def not_found(cls, error: str) -> "Result[T]":
        return cls.fail(error, ErrorCode.NOT_FOUND)

    @classmethod
    def conflict(cls, error: str) -> "Result[T]":
        return cls.fail(error, ErrorCode.CONFLICT)

    def __repr__(self) -> str:
        if self.is_success:
            return f"Result.ok({self.value!r})"
        return f"Result.fail({self.error!r}, code={self.code.value if self.code else None})"
