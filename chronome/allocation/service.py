"""Allocation service - runs the engine for a request and records the run.

Coordinates the normalizer, the engine and an optional store to produce
a complete AllocationResult from a raw request payload.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Protocol, Sequence
from uuid import uuid4

from ..core.exceptions import AllocationError, StoreError
from ..core.models import (
    AllocationInput,
    AllocationRequestRecord,
    AllocationResult,
    TaskAllocation,
)
from .engine import allocate
from .normalizer import normalize_request

logger = logging.getLogger(__name__)


class AllocationStore(Protocol):
    """Persists an allocation run.

    Implementations write the request header and its task allocations
    in a single transaction; either both are stored or neither is.
    """

    def create(
        self,
        request: AllocationRequestRecord,
        allocations: Sequence[TaskAllocation],
    ) -> None:
        ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AllocationService:
    """Allocates minutes for incoming requests."""

    def __init__(
        self,
        store: AllocationStore | None = None,
        clock: Callable[[], datetime] | None = None,
        max_tasks: int | None = None,
    ):
        """
        Initialize the service.

        Args:
            store: Where finished runs are recorded. Runs are not
                recorded when omitted.
            clock: Source of the run timestamp (default: UTC now)
            max_tasks: Largest accepted task list (default: configured)
        """
        self.store = store
        self.clock = clock or _utcnow
        self.max_tasks = max_tasks

    def allocate(self, payload: Mapping[str, Any]) -> AllocationResult:
        """
        Normalize a raw request, allocate it and record the run.

        Args:
            payload: Decoded request body

        Returns:
            AllocationResult with a fresh request_id

        Raises:
            AllocationError: If the request is malformed or infeasible
            StoreError: If the store fails to record the run
        """
        data = normalize_request(payload, max_tasks=self.max_tasks)
        return self.allocate_input(data)

    def allocate_input(self, data: AllocationInput) -> AllocationResult:
        """Allocate an already normalized request and record the run."""
        try:
            allocations = allocate(data)
        except AllocationError as e:
            logger.warning(f"Allocation rejected ({e.kind.value}): {e.message}")
            raise

        result = AllocationResult(
            request_id=uuid4(),
            total_units=data.total_units,
            allocations=allocations,
            created_at=self.clock(),
        )

        if self.store is not None:
            try:
                self.store.create(result.record, result.allocations)
            except Exception as e:
                raise StoreError(
                    f"Failed to record allocation {result.request_id}: {e}",
                    request_id=str(result.request_id),
                ) from e

        logger.info(
            f"Allocated {result.total_units} minutes across "
            f"{len(result.allocations)} tasks (request {result.request_id})"
        )
        return result
