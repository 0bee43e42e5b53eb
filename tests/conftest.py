"""Pytest configuration and fixtures for allocation tests."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Sequence

import pytest
import yaml

from chronome.core import config as config_module
from chronome.core.models import (
    AllocationInput,
    AllocationRequestRecord,
    TaskAllocation,
    TaskSpec,
)


def make_input(total: int, *tasks: tuple) -> AllocationInput:
    """Build an AllocationInput from (task_id, ratio[, min[, max]]) tuples."""
    specs = []
    for task in tasks:
        task_id, ratio, *bounds = task
        min_units = bounds[0] if len(bounds) > 0 else None
        max_units = bounds[1] if len(bounds) > 1 else None
        specs.append(TaskSpec(task_id=task_id, ratio=ratio, min_units=min_units, max_units=max_units))
    return AllocationInput(total_units=total, tasks=tuple(specs))


def allocated(results: Sequence[TaskAllocation]) -> list[int]:
    """Allocated minutes in input order."""
    return [r.allocated_units for r in results]


class FakeAllocationStore:
    """In-memory AllocationStore that records every run."""

    def __init__(self, fail_with: Exception | None = None):
        self.fail_with = fail_with
        self.requests: list[AllocationRequestRecord] = []
        self.allocations: dict[str, list[TaskAllocation]] = {}

    def create(
        self,
        request: AllocationRequestRecord,
        allocations: Sequence[TaskAllocation],
    ) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.requests.append(request)
        self.allocations[str(request.request_id)] = list(allocations)


@pytest.fixture(autouse=True)
def quiet_config(monkeypatch: pytest.MonkeyPatch) -> None:
    """Start every test from a fresh config with quiet logging."""
    for key in ("CHRONOME_OUTPUT_FORMAT", "CHRONOME_MAX_TASKS"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("CHRONOME_LOG_LEVEL", "WARNING")
    monkeypatch.setattr(config_module, "_config", None)


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Clock pinned to 2024-05-01 09:00 UTC."""
    return lambda: datetime(2024, 5, 1, 9, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def fake_store() -> FakeAllocationStore:
    return FakeAllocationStore()


@pytest.fixture
def sample_payload() -> dict[str, Any]:
    """A workday split across three tasks."""
    return {
        "total_minutes": 480,
        "tasks": [
            {"task_id": "code-review", "ratio": 2, "min_minutes": 30},
            {"task_id": "deploy", "ratio": 1, "max_minutes": 60},
            {"task_id": "planning", "ratio": 1.5},
        ],
    }


@pytest.fixture
def write_request(tmp_path: Path) -> Callable[[Any, str], Path]:
    """Write a payload to a request file and return its path."""

    def _write(payload: Any, name: str = "request.json") -> Path:
        path = tmp_path / name
        if path.suffix == ".json":
            path.write_text(json.dumps(payload), encoding="utf-8")
        else:
            path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")
        return path

    return _write
