"""Pydantic data models for minute allocation.

All data structures are immutable (frozen) after creation; the engine
builds new output models instead of mutating its input.
"""

from datetime import datetime, timezone
from uuid import UUID

from pydantic import BaseModel, Field

from .types import Minutes, Ratio


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskSpec(BaseModel):
    """A task to receive a share of the total, with optional bounds."""

    task_id: str
    ratio: Ratio  # Relative weight, > 0
    min_units: Minutes | None = None  # Lower bound, treated as 0 when absent
    max_units: Minutes | None = None  # Upper bound, unbounded when absent

    model_config = {"frozen": True}

    @property
    def floor(self) -> Minutes:
        """Minimum allocation, defaulting to zero."""
        return self.min_units if self.min_units is not None else 0

    @property
    def is_bounded(self) -> bool:
        """Check if the task has an upper bound."""
        return self.max_units is not None


class AllocationInput(BaseModel):
    """A validated allocation request.

    Task order is significant: it is the final tie-break when two tasks
    compete for the same leftover minute.
    """

    total_units: Minutes
    tasks: tuple[TaskSpec, ...] = ()

    model_config = {"frozen": True}

    @property
    def task_ids(self) -> list[str]:
        return [task.task_id for task in self.tasks]


class TaskAllocation(BaseModel):
    """Allocation result for a single task."""

    task_id: str
    ratio: Ratio
    allocated_units: Minutes
    min_units: Minutes | None = None
    max_units: Minutes | None = None

    model_config = {"frozen": True}


class AllocationRequestRecord(BaseModel):
    """Header of an allocation run as handed to a store."""

    request_id: UUID
    total_units: Minutes
    created_at: datetime = Field(default_factory=_utcnow)

    model_config = {"frozen": True}


class AllocationResult(BaseModel):
    """Complete result of an allocation run."""

    request_id: UUID
    total_units: Minutes
    allocations: list[TaskAllocation] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)

    model_config = {"frozen": True}

    @property
    def allocated_total(self) -> Minutes:
        """Sum of allocated minutes; equals total_units for any result."""
        return sum(a.allocated_units for a in self.allocations)

    def as_mapping(self) -> dict[str, Minutes]:
        """Return task_id -> allocated minutes, in input order."""
        return {a.task_id: a.allocated_units for a in self.allocations}

    @property
    def record(self) -> AllocationRequestRecord:
        return AllocationRequestRecord(
            request_id=self.request_id,
            total_units=self.total_units,
            created_at=self.created_at,
        )
