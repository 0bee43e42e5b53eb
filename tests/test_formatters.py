"""Tests for output formatters."""

import json
from datetime import datetime, timezone
from uuid import UUID

import pytest

from chronome.core.models import AllocationResult, TaskAllocation
from chronome.output.formatters import (
    CSVFormatter,
    JSONFormatter,
    TableFormatter,
    _format_minutes,
    get_formatter,
)

REQUEST_ID = UUID("8f14e45f-ceea-467f-a8f1-5e5f3c2d9a10")


@pytest.fixture
def result() -> AllocationResult:
    return AllocationResult(
        request_id=REQUEST_ID,
        total_units=480,
        created_at=datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc),
        allocations=[
            TaskAllocation(task_id="code-review", ratio=2.0, allocated_units=250, min_units=30),
            TaskAllocation(task_id="deploy", ratio=1.0, allocated_units=60, max_units=60),
            TaskAllocation(task_id="planning", ratio=1.5, allocated_units=170),
        ],
    )


class TestFormatMinutes:
    """Tests for the minutes helper."""

    @pytest.mark.parametrize("minutes,expected", [
        (0, "0m"),
        (45, "45m"),
        (60, "1h 00m"),
        (125, "2h 05m"),
    ])
    def test_format(self, minutes, expected):
        assert _format_minutes(minutes) == expected


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_response_shape(self, result):
        data = json.loads(JSONFormatter().format(result))

        assert data["request_id"] == str(REQUEST_ID)
        assert data["total_minutes"] == 480
        assert data["created_at"] == "2024-05-01T09:00:00+00:00"
        assert data["allocations"][0] == {
            "task_id": "code-review",
            "ratio": 2.0,
            "allocated_minutes": 250,
        }
        assert [a["allocated_minutes"] for a in data["allocations"]] == [250, 60, 170]

    def test_include_bounds(self, result):
        data = JSONFormatter(include_bounds=True).to_dict(result)

        assert data["allocations"][0]["min_minutes"] == 30
        assert "max_minutes" not in data["allocations"][0]
        assert data["allocations"][1]["max_minutes"] == 60
        assert "min_minutes" not in data["allocations"][2]

    def test_format_to_file(self, result, tmp_path):
        path = tmp_path / "run.json"
        JSONFormatter().format_to_file(result, str(path))

        assert json.loads(path.read_text(encoding="utf-8"))["total_minutes"] == 480


class TestCSVFormatter:
    """Tests for CSVFormatter."""

    def test_rows(self, result):
        lines = CSVFormatter().format(result).splitlines()

        assert lines[0] == "task_id,ratio,allocated_minutes,min_minutes,max_minutes"
        assert lines[1] == "code-review,2,250,30,"
        assert lines[2] == "deploy,1,60,,60"
        assert lines[3] == "planning,1.5,170,,"
        assert lines[4] == "TOTAL,,480,,"

    def test_without_total(self, result):
        output = CSVFormatter(include_total=False).format(result)
        assert "TOTAL" not in output
        assert len(output.splitlines()) == 4

    def test_delimiter(self, result):
        lines = CSVFormatter(delimiter=";").format(result).splitlines()
        assert lines[2] == "deploy;1;60;;60"


class TestTableFormatter:
    """Tests for TableFormatter."""

    def test_plain(self, result):
        output = TableFormatter(use_rich=False).format(result)

        assert "MINUTE ALLOCATION: 480 minutes (8h 00m)" in output
        assert str(REQUEST_ID) in output
        assert "code-review" in output
        assert "30..*" in output
        assert "0..60" in output
        assert "Created: 2024-05-01 09:00 UTC" in output
        assert "\x1b[" not in output

    def test_rich(self, result):
        output = TableFormatter(width=120).format(result)

        assert "Minute Allocation" in output
        assert "planning" in output
        assert "TOTAL" in output

    def test_file_output_is_plain(self, result, tmp_path):
        path = tmp_path / "run.txt"
        TableFormatter().format_to_file(result, str(path))

        content = path.read_text(encoding="utf-8")
        assert "MINUTE ALLOCATION" in content
        assert "\x1b[" not in content


class TestGetFormatter:
    """Tests for get_formatter."""

    @pytest.mark.parametrize("name,cls", [
        ("json", JSONFormatter),
        ("CSV", CSVFormatter),
        ("table", TableFormatter),
    ])
    def test_known_formats(self, name, cls):
        assert isinstance(get_formatter(name), cls)

    def test_unknown_format(self):
        with pytest.raises(ValueError, match="xml"):
            get_formatter("xml")
