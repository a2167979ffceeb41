"""Typed errors raised by the quote engine.

Services raise these; the HTTP layer turns them into responses using
``status_code`` and ``to_detail()``. Storage driver errors never leave the
repositories as-is: they are wrapped into :class:`RepositoryError`.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str
    code: str

    def as_dict(self) -> dict[str, str]:
        return asdict(self)


class QuoteEngineError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details or {}

    def to_detail(self) -> dict[str, Any]:
        detail: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            detail["details"] = self.details
        return detail


class ValidationError(QuoteEngineError):
    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(
        self,
        errors: list[FieldError],
        *,
        message: str = "Validation failed",
        warnings: list[FieldError] | None = None,
    ) -> None:
        super().__init__(message)
        self.errors = errors
        self.warnings = warnings or []

    @classmethod
    def single(cls, field: str, message: str, code: str) -> ValidationError:
        return cls([FieldError(field=field, message=message, code=code)], message=message)

    def to_detail(self) -> dict[str, Any]:
        detail = super().to_detail()
        detail["errors"] = [e.as_dict() for e in self.errors]
        if self.warnings:
            detail["warnings"] = [w.as_dict() for w in self.warnings]
        return detail


class NotFoundError(QuoteEngineError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(QuoteEngineError):
    status_code = 409
    code = "CONFLICT"


class DuplicateQuoteNumberError(ConflictError):
    code = "DUPLICATE_QUOTE_NUMBER"

    def __init__(self, quote_number: str) -> None:
        super().__init__(
            f"Quote number {quote_number} is already taken",
            details={"quote_number": quote_number},
        )
        self.quote_number = quote_number


class InvalidTransitionError(QuoteEngineError):
    status_code = 409
    code = "INVALID_TRANSITION"

    def __init__(self, current: str, target: str, reason: str | None = None) -> None:
        message = f"Cannot move quote from '{current}' to '{target}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, details={"current": current, "target": target})
        self.current = current
        self.target = target


class RepositoryError(QuoteEngineError):
    """Storage failure. The driver error is kept on ``__cause__`` only."""

    status_code = 500
    code = "DB_ERROR"

    def __init__(self, code: str, message: str = "A storage operation failed") -> None:
        super().__init__(message, code=code)
