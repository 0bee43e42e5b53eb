"""Custom exceptions for minute allocation."""

from .types import AllocationErrorKind, ErrorCategory


class ChronomeError(Exception):
    """Base exception for all allocation errors."""

    category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def status_code(self) -> int:
        """HTTP status for this error's category."""
        return self.category.status_code


class AllocationError(ChronomeError):
    """Raised when a request cannot be allocated.

    Every failure is terminal for the call; no partial allocation is
    returned alongside it.
    """

    def __init__(
        self,
        kind: AllocationErrorKind,
        message: str,
        details: dict | None = None,
    ):
        super().__init__(message, {"kind": kind.value, **(details or {})})
        self.kind = kind

    @property
    def category(self) -> ErrorCategory:  # type: ignore[override]
        return self.kind.category

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class StoreError(ChronomeError):
    """Raised when the allocation store fails to record a run."""

    def __init__(self, message: str, request_id: str | None = None):
        super().__init__(message, {"request_id": request_id})
        self.request_id = request_id


class ConfigurationError(ChronomeError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, config_key: str, message: str):
        full_message = f"Configuration error [{config_key}]: {message}"
        super().__init__(full_message, {"config_key": config_key})
        self.config_key = config_key
