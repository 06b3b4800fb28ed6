"""Error hierarchy and code mapping for folio."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    INVALID_REFERENCE = "INVALID_REFERENCE"
    FORBIDDEN_OPERATION = "FORBIDDEN_OPERATION"
    INVALID_ARGS = "INVALID_ARGS"
    NOT_INITIALIZED = "NOT_INITIALIZED"
    ALREADY_INITIALIZED = "ALREADY_INITIALIZED"
    INSUFFICIENT_VALUE = "INSUFFICIENT_VALUE"
    MALFORMED_IMPORT = "MALFORMED_IMPORT"
    STORAGE_ERROR = "STORAGE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


EXIT_CODE_BY_ERROR: dict[ErrorCode, int] = {
    ErrorCode.INVALID_ARGS: 2,
    ErrorCode.INVALID_REFERENCE: 3,
    ErrorCode.FORBIDDEN_OPERATION: 4,
    ErrorCode.NOT_INITIALIZED: 5,
    ErrorCode.ALREADY_INITIALIZED: 5,
    ErrorCode.INSUFFICIENT_VALUE: 6,
    ErrorCode.MALFORMED_IMPORT: 7,
    ErrorCode.STORAGE_ERROR: 8,
}


class FolioError(Exception):
    """Base typed exception converted to CLI error payloads."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        suggestion: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.suggestion = suggestion

    @property
    def exit_code(self) -> int:
        return EXIT_CODE_BY_ERROR.get(self.code, 1)

    def to_error_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }
        if self.suggestion:
            payload["suggestion"] = self.suggestion
        return payload
