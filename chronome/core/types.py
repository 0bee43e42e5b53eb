"""Type definitions and enums for minute allocation."""

from enum import Enum
from typing import Literal


class ErrorCategory(str, Enum):
    """How an allocation failure should be reported to a client."""

    VALIDATION = "validation"   # Request was malformed
    INFEASIBLE = "infeasible"   # Request conflicts with its own bounds
    INTERNAL = "internal"       # Unexpected fault, not the client's doing

    @property
    def status_code(self) -> int:
        """HTTP status a transport layer should answer with."""
        codes = {
            ErrorCategory.VALIDATION: 400,
            ErrorCategory.INFEASIBLE: 422,
            ErrorCategory.INTERNAL: 500,
        }
        return codes[self]

    @property
    def exit_code(self) -> int:
        """Process exit code used by the CLI."""
        codes = {
            ErrorCategory.VALIDATION: 2,
            ErrorCategory.INFEASIBLE: 3,
            ErrorCategory.INTERNAL: 1,
        }
        return codes[self]


class AllocationErrorKind(str, Enum):
    """Reasons an allocation request can be rejected."""

    # Shape errors
    EMPTY_TASKS = "EmptyTasks"
    NON_POSITIVE_TOTAL = "NonPositiveTotal"
    INVALID_RATIO = "InvalidRatio"
    DUPLICATE_TASK_ID = "DuplicateTaskID"
    INVALID_BOUNDS = "InvalidBounds"
    INVALID_TASK_ID = "InvalidTaskID"
    MALFORMED_REQUEST = "MalformedRequest"

    # Feasibility errors
    INSUFFICIENT_TOTAL = "InsufficientTotal"
    EXCESS_TOTAL = "ExcessTotal"
    UNSATISFIABLE = "Unsatisfiable"

    @property
    def category(self) -> ErrorCategory:
        """Validation or feasibility, see ErrorCategory."""
        if self in (
            AllocationErrorKind.INSUFFICIENT_TOTAL,
            AllocationErrorKind.EXCESS_TOTAL,
            AllocationErrorKind.UNSATISFIABLE,
        ):
            return ErrorCategory.INFEASIBLE
        return ErrorCategory.VALIDATION


# Type aliases for common patterns
Minutes = int
Ratio = float

OutputFormatType = Literal["table", "json", "csv"]
OUTPUT_FORMATS: tuple[str, ...] = ("table", "json", "csv")
