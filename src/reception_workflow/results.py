"""Generic operation result returned by write operations."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class OperationResult(BaseModel, Generic[T]):
    """Outcome of a write operation such as storing an event.

    Failures carry a human-readable ``message`` and a machine-friendly
    ``error_code``; successes carry the optional ``data`` payload.
    """

    success: bool
    message: str = ""
    data: T | None = None
    error_code: str | None = None

    @classmethod
    def ok(cls, data: Any = None, message: str = "") -> "OperationResult[T]":
        return cls(success=True, data=data, message=message)

    @classmethod
    def failed(cls, message: str, error_code: str | None = None) -> "OperationResult[T]":
        return cls(success=False, message=message, error_code=error_code)

    def __bool__(self) -> bool:
        return self.success
