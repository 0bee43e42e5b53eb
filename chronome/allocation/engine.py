"""Proportional minute allocation engine.

Splits a fixed number of minutes across weighted tasks so that the
integer results always add up to the total:

1. Each task is seeded with its minimum (the baseline).
2. The remaining pool is shared by normalized weight, floored and
   capped at each task's maximum.
3. Minutes lost to flooring are handed out by largest remainder, then
   heavier weight, then input order.

The engine is a pure function: it keeps no state between calls and
never mutates its input, so it can be called from any thread.
"""

import logging
import math
from dataclasses import dataclass
from functools import cmp_to_key

from ..core.exceptions import AllocationError
from ..core.models import AllocationInput, TaskAllocation
from ..core.types import AllocationErrorKind, Minutes

logger = logging.getLogger(__name__)

# Remainders and weights closer than this are treated as equal
ALLOCATION_EPSILON = 1e-9

# Remainder given to tasks with no room left after the baseline; ranks
# below every real remainder, which is always >= 0
EXCLUDED_REMAINDER = -1.0


def compare_with_tolerance(a: float, b: float) -> int:
    """Three-way comparison treating values within ALLOCATION_EPSILON as equal."""
    if abs(a - b) <= ALLOCATION_EPSILON:
        return 0
    return -1 if a < b else 1


@dataclass
class _TaskState:
    """Working copy of a task during one allocation run."""

    task_id: str
    ratio: float
    min_units: Minutes
    max_units: Minutes | None
    weight: float
    index: int
    allocation: Minutes = 0
    remainder: float = 0.0

    @property
    def capacity(self) -> Minutes | None:
        """Minutes this task can still take, None when unbounded."""
        if self.max_units is None:
            return None
        return max(self.max_units - self.allocation, 0)

    @property
    def is_saturated(self) -> bool:
        return self.max_units is not None and self.allocation >= self.max_units


def _priority(a: _TaskState, b: _TaskState) -> int:
    """Order for receiving leftover minutes."""
    by_remainder = compare_with_tolerance(b.remainder, a.remainder)
    if by_remainder:
        return by_remainder
    by_weight = compare_with_tolerance(b.weight, a.weight)
    if by_weight:
        return by_weight
    return a.index - b.index


def validate_input(data: AllocationInput) -> None:
    """
    Check an allocation request before any minutes are distributed.

    Args:
        data: Request to check

    Raises:
        AllocationError: With the kind of the first violated rule
    """
    if data.total_units <= 0:
        raise AllocationError(
            AllocationErrorKind.NON_POSITIVE_TOTAL,
            f"total minutes must be positive, got {data.total_units}",
            {"field": "total_minutes", "value": data.total_units},
        )

    if not data.tasks:
        raise AllocationError(
            AllocationErrorKind.EMPTY_TASKS,
            "at least one task is required",
            {"field": "tasks"},
        )

    seen: set[str] = set()
    for index, task in enumerate(data.tasks):
        if not task.task_id.strip():
            raise AllocationError(
                AllocationErrorKind.INVALID_TASK_ID,
                "task_id is required",
                {"field": "task_id", "task_index": index},
            )
        if task.task_id in seen:
            raise AllocationError(
                AllocationErrorKind.DUPLICATE_TASK_ID,
                f"task_id '{task.task_id}' is not unique",
                {"field": "task_id", "task_id": task.task_id, "task_index": index},
            )
        seen.add(task.task_id)

        if not math.isfinite(task.ratio) or task.ratio <= 0:
            raise AllocationError(
                AllocationErrorKind.INVALID_RATIO,
                f"ratio for task '{task.task_id}' must be positive, got {task.ratio}",
                {"field": "ratio", "task_id": task.task_id, "value": task.ratio},
            )

        if task.floor < 0:
            raise AllocationError(
                AllocationErrorKind.INVALID_BOUNDS,
                f"min_minutes for task '{task.task_id}' must be >= 0",
                {"field": "min_minutes", "task_id": task.task_id, "value": task.floor},
            )
        if task.max_units is not None and task.floor > task.max_units:
            raise AllocationError(
                AllocationErrorKind.INVALID_BOUNDS,
                f"min_minutes cannot exceed max_minutes for task '{task.task_id}'",
                {
                    "field": "max_minutes",
                    "task_id": task.task_id,
                    "min_minutes": task.floor,
                    "max_minutes": task.max_units,
                },
            )

    ratio_sum = math.fsum(task.ratio for task in data.tasks)
    if not math.isfinite(ratio_sum) or ratio_sum <= 0:
        raise AllocationError(
            AllocationErrorKind.INVALID_RATIO,
            "sum of ratios must be greater than zero",
            {"field": "ratio", "value": ratio_sum},
        )

    baseline = sum(task.floor for task in data.tasks)
    if baseline > data.total_units:
        raise AllocationError(
            AllocationErrorKind.INSUFFICIENT_TOTAL,
            f"total minutes ({data.total_units}) is smaller than the sum "
            f"of min_minutes ({baseline})",
            {"total_minutes": data.total_units, "min_minutes_sum": baseline},
        )

    # An unbounded task can absorb any excess
    if all(task.is_bounded for task in data.tasks):
        ceiling = sum(task.max_units for task in data.tasks)
        if data.total_units > ceiling:
            raise AllocationError(
                AllocationErrorKind.EXCESS_TOTAL,
                f"total minutes ({data.total_units}) exceeds the sum "
                f"of max_minutes ({ceiling})",
                {"total_minutes": data.total_units, "max_minutes_sum": ceiling},
            )


def _unsatisfiable(leftover: Minutes, reason: str) -> AllocationError:
    return AllocationError(
        AllocationErrorKind.UNSATISFIABLE,
        f"unable to {reason} ({leftover} minutes left)",
        {"leftover_minutes": leftover},
    )


def _floor_pass(states: list[_TaskState], pool: Minutes) -> Minutes:
    """Give every task the floor of its share of the pool, capped at its max."""
    granted = 0
    for task in states:
        desired = pool * task.weight
        capacity = task.capacity if task.capacity is not None else pool
        if capacity <= 0:
            task.remainder = EXCLUDED_REMAINDER
            continue

        floor_add = min(math.floor(desired), capacity)
        task.allocation += floor_add
        task.remainder = desired - floor_add
        granted += floor_add

    return granted


def _remainder_pass(states: list[_TaskState], leftover: Minutes) -> None:
    """Hand out the minutes lost to flooring, one round at a time."""
    while leftover > 0:
        eligible = [task for task in states if not task.is_saturated]
        if not eligible:
            raise _unsatisfiable(leftover, "satisfy max constraints with the provided total")

        eligible.sort(key=cmp_to_key(_priority))

        if len(eligible) == 1:
            task = eligible[0]
            capacity = task.capacity
            grant = leftover if capacity is None else min(leftover, capacity)
            if grant <= 0:
                raise _unsatisfiable(leftover, "satisfy max constraints with the provided total")
            task.allocation += grant
            leftover -= grant
            continue

        distributed = 0
        for task in eligible:
            if leftover == 0:
                break
            if task.is_saturated:
                continue
            task.allocation += 1
            leftover -= 1
            distributed += 1

        if distributed == 0:
            raise _unsatisfiable(leftover, "distribute remaining minutes due to max constraints")


def allocate(data: AllocationInput) -> list[TaskAllocation]:
    """
    Split data.total_units across data.tasks.

    Args:
        data: Allocation request

    Returns:
        One TaskAllocation per task, in input order. The allocated
        minutes always sum to data.total_units and stay within each
        task's bounds.

    Raises:
        AllocationError: If the request is malformed or its bounds
            cannot be met. No partial result is produced.
    """
    validate_input(data)

    ratio_sum = math.fsum(task.ratio for task in data.tasks)
    states = [
        _TaskState(
            task_id=task.task_id,
            ratio=task.ratio,
            min_units=task.floor,
            max_units=task.max_units,
            weight=task.ratio / ratio_sum,
            index=index,
            allocation=task.floor,
        )
        for index, task in enumerate(data.tasks)
    ]

    baseline = sum(task.allocation for task in states)
    pool = data.total_units - baseline
    if pool == 0:
        logger.debug(f"Baseline of {baseline} minutes covers the total, nothing to share")
        return _to_allocations(states)

    floored = _floor_pass(states, pool)
    leftover = data.total_units - (baseline + floored)
    logger.debug(
        f"Sharing {pool} minutes across {len(states)} tasks: "
        f"{floored} by floor, {leftover} by remainder"
    )

    _remainder_pass(states, leftover)
    return _to_allocations(states)


def _to_allocations(states: list[_TaskState]) -> list[TaskAllocation]:
    return [
        TaskAllocation(
            task_id=task.task_id,
            ratio=task.ratio,
            allocated_units=task.allocation,
            min_units=task.min_units or None,
            max_units=task.max_units,
        )
        for task in states
    ]
