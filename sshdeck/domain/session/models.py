"""
Session domain models
"""
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from ...core.exceptions import RemoteError

T = TypeVar("T")


@dataclass
class OperationResult(Generic[T]):
    """Explicit success/failure outcome of a facade operation"""
    success: bool
    value: Optional[T] = None
    error: Optional[RemoteError] = None
    message: str = ""

    @classmethod
    def ok(cls, value: Optional[T] = None, message: str = "") -> "OperationResult[T]":
        return cls(success=True, value=value, message=message)

    @classmethod
    def failure(cls, error: RemoteError) -> "OperationResult[T]":
        return cls(success=False, error=error, message=str(error))

    def unwrap(self) -> T:
        """
        Return the value or raise the recorded error.

        Raises:
            RemoteError: The error of a failed result
        """
        if not self.success:
            raise self.error
        return self.value

    def __str__(self) -> str:
        if self.success:
            return self.message or "OK"
        return f"Error: {self.message}"
