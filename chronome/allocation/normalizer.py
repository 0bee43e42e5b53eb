"""Request normalizer - turns a raw payload into an AllocationInput.

The payload is the decoded body of an allocation request:

    {
        "total_minutes": 480,
        "tasks": [
            {"task_id": "review", "ratio": 2, "min_minutes": 30},
            {"task_id": "deploy", "ratio": 1, "max_minutes": 120}
        ]
    }

Type errors (strings where numbers belong, missing fields) are reported
as MalformedRequest; rule violations get their own error kind.
"""

import json
import logging
import math
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field, StrictFloat, StrictInt, StrictStr
from pydantic import ValidationError as PydanticValidationError

from ..core.config import get_config
from ..core.exceptions import AllocationError
from ..core.models import AllocationInput, TaskSpec
from ..core.types import AllocationErrorKind

logger = logging.getLogger(__name__)

REQUEST_FILE_SUFFIXES = (".json", ".yaml", ".yml")


class TaskPayload(BaseModel):
    """A task as it arrives on the wire."""

    task_id: StrictStr
    ratio: StrictInt | StrictFloat
    min_minutes: StrictInt | None = None
    max_minutes: StrictInt | None = None

    model_config = {"frozen": True, "extra": "ignore"}


class AllocationRequestPayload(BaseModel):
    """An allocation request as it arrives on the wire."""

    total_minutes: StrictInt
    tasks: list[TaskPayload] = Field(default_factory=list)

    model_config = {"frozen": True, "extra": "ignore"}


def _shape_error(message: str, details: dict[str, Any]) -> AllocationError:
    return AllocationError(AllocationErrorKind.MALFORMED_REQUEST, message, details)


def _parse_payload(payload: Any) -> AllocationRequestPayload:
    if not isinstance(payload, Mapping):
        raise _shape_error(
            "request body must be an object",
            {"field": "", "received": type(payload).__name__},
        )

    try:
        return AllocationRequestPayload.model_validate(dict(payload))
    except PydanticValidationError as e:
        errors = [
            {"loc": ".".join(str(part) for part in err["loc"]), "msg": err["msg"]}
            for err in e.errors()
        ]
        first = errors[0]
        raise _shape_error(
            f"invalid value for {first['loc']}: {first['msg']}",
            {"field": first["loc"], "errors": errors},
        ) from None


def normalize_request(
    payload: Mapping[str, Any],
    max_tasks: int | None = None,
) -> AllocationInput:
    """
    Validate and normalize a raw allocation request.

    Task IDs are trimmed; the order of tasks is preserved.

    Args:
        payload: Decoded request body
        max_tasks: Largest accepted task list. Defaults to the
            configured CHRONOME_MAX_TASKS.

    Returns:
        AllocationInput ready for the engine

    Raises:
        AllocationError: If the payload is malformed or breaks a rule
    """
    request = _parse_payload(payload)
    limit = max_tasks if max_tasks is not None else get_config().max_tasks

    if request.total_minutes <= 0:
        raise AllocationError(
            AllocationErrorKind.NON_POSITIVE_TOTAL,
            "total_minutes must be positive",
            {"field": "total_minutes", "value": request.total_minutes},
        )

    if not request.tasks:
        raise AllocationError(
            AllocationErrorKind.EMPTY_TASKS,
            "tasks must include at least one task",
            {"field": "tasks"},
        )

    if len(request.tasks) > limit:
        raise _shape_error(
            f"tasks must not include more than {limit} tasks",
            {"field": "tasks", "count": len(request.tasks), "limit": limit},
        )

    seen: set[str] = set()
    tasks: list[TaskSpec] = []
    for index, task in enumerate(request.tasks):
        task_id = task.task_id.strip()
        if not task_id:
            raise AllocationError(
                AllocationErrorKind.INVALID_TASK_ID,
                "task_id is required",
                {"field": "task_id", "task_index": index},
            )
        if task_id in seen:
            raise AllocationError(
                AllocationErrorKind.DUPLICATE_TASK_ID,
                f"task_id '{task_id}' must be unique",
                {"field": "tasks", "task_id": task_id, "task_index": index},
            )
        seen.add(task_id)

        ratio = float(task.ratio)
        if not math.isfinite(ratio) or ratio <= 0:
            raise AllocationError(
                AllocationErrorKind.INVALID_RATIO,
                "ratio must be positive",
                {"field": "ratio", "task_id": task_id, "value": task.ratio},
            )

        if task.min_minutes is not None and task.min_minutes < 0:
            raise AllocationError(
                AllocationErrorKind.INVALID_BOUNDS,
                "min_minutes must be >= 0",
                {"field": "min_minutes", "task_id": task_id, "value": task.min_minutes},
            )
        if task.max_minutes is not None and task.max_minutes <= 0:
            raise AllocationError(
                AllocationErrorKind.INVALID_BOUNDS,
                "max_minutes must be positive",
                {"field": "max_minutes", "task_id": task_id, "value": task.max_minutes},
            )
        if (
            task.min_minutes is not None
            and task.max_minutes is not None
            and task.min_minutes > task.max_minutes
        ):
            raise AllocationError(
                AllocationErrorKind.INVALID_BOUNDS,
                "max_minutes must be >= min_minutes",
                {
                    "field": "max_minutes",
                    "task_id": task_id,
                    "min_minutes": task.min_minutes,
                    "max_minutes": task.max_minutes,
                },
            )

        tasks.append(
            TaskSpec(
                task_id=task_id,
                ratio=ratio,
                min_units=task.min_minutes,
                max_units=task.max_minutes,
            )
        )

    logger.debug(f"Normalized request: {request.total_minutes} minutes, {len(tasks)} tasks")
    return AllocationInput(total_units=request.total_minutes, tasks=tuple(tasks))


def read_request_file(path: Path | str) -> Any:
    """
    Read a raw allocation request from a JSON or YAML file.

    JSON files are read with the json module, .yaml and .yml with PyYAML.

    Args:
        path: Path to a .json, .yaml or .yml file

    Returns:
        Decoded payload (not yet validated)

    Raises:
        AllocationError: If the file cannot be parsed
        FileNotFoundError: If the file does not exist
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in REQUEST_FILE_SUFFIXES:
        raise _shape_error(
            f"unsupported request file type '{path.suffix}'",
            {"field": "", "path": str(path)},
        )

    with open(path, "r", encoding="utf-8") as f:
        try:
            if suffix in (".yaml", ".yml"):
                payload = yaml.safe_load(f)
            else:
                payload = json.load(f)
        except (json.JSONDecodeError, yaml.YAMLError, UnicodeDecodeError) as e:
            raise _shape_error(
                f"could not parse {path.name}: {e}",
                {"field": "", "path": str(path)},
            ) from e

    logger.info(f"Loaded allocation request from {path}")
    return payload


def load_request_file(path: Path | str, max_tasks: int | None = None) -> AllocationInput:
    """Read and normalize an allocation request file."""
    return normalize_request(read_request_file(path), max_tasks=max_tasks)
