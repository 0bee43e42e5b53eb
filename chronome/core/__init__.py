"""Core module - data models, types, and exceptions."""

from .models import (
    AllocationInput,
    AllocationRequestRecord,
    AllocationResult,
    TaskAllocation,
    TaskSpec,
)
from .types import (
    AllocationErrorKind,
    ErrorCategory,
)
from .exceptions import (
    AllocationError,
    ChronomeError,
    ConfigurationError,
    StoreError,
)

__all__ = [
    # Models
    "AllocationInput",
    "AllocationRequestRecord",
    "AllocationResult",
    "TaskAllocation",
    "TaskSpec",
    # Types
    "AllocationErrorKind",
    "ErrorCategory",
    # Exceptions
    "AllocationError",
    "ChronomeError",
    "ConfigurationError",
    "StoreError",
]
