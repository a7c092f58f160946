# =============================================================================
# Error Handling Types (Result + Error)
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorType(Enum):
    PARSE_ERROR = "parse_error"
    PERMISSION_ERROR = "permission_error"


@dataclass
class Error:
    error_type: ErrorType
    message: str
    context: dict = field(default_factory=dict)
    original_exception: Exception | None = None

    def __str__(self) -> str:
        return f"{self.error_type.value}: {self.message}"


@dataclass
class Result(Generic[T]):
    success: bool
    value: T | None = None
    error: Error | None = None

    @staticmethod
    def ok(value: T) -> Result[T]:
        return Result(success=True, value=value)

    @staticmethod
    def err(error: Error) -> Result[T]:
        return Result(success=False, error=error)

    def is_ok(self) -> bool:
        return self.success

    def is_err(self) -> bool:
        return not self.success
