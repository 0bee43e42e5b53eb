"""Property-based tests for the allocation engine."""

from hypothesis import given, settings
from hypothesis import strategies as st

from chronome.allocation.engine import allocate
from chronome.core.models import AllocationInput, TaskSpec

from conftest import allocated

ratios = st.floats(min_value=0.01, max_value=100, allow_nan=False, allow_infinity=False)


@st.composite
def feasible_inputs(draw, task_ratios=ratios) -> AllocationInput:
    """Requests whose bounds can always be met."""
    count = draw(st.integers(min_value=1, max_value=8))
    tasks = []
    for index in range(count):
        min_units = draw(st.none() | st.integers(min_value=0, max_value=60))
        max_units = draw(st.none() | st.integers(min_value=max(min_units or 0, 1), max_value=240))
        tasks.append(TaskSpec(
            task_id=f"task-{index}",
            ratio=draw(task_ratios),
            min_units=min_units,
            max_units=max_units,
        ))

    baseline = sum(task.floor for task in tasks)
    if all(task.is_bounded for task in tasks):
        upper = sum(task.max_units for task in tasks)
    else:
        upper = baseline + 2000
    total = draw(st.integers(min_value=max(baseline, 1), max_value=upper))
    return AllocationInput(total_units=total, tasks=tuple(tasks))


@st.composite
def unbounded_inputs(draw) -> AllocationInput:
    """Requests with integer ratios and no bounds."""
    count = draw(st.integers(min_value=1, max_value=8))
    tasks = tuple(
        TaskSpec(task_id=f"task-{index}", ratio=draw(st.integers(min_value=1, max_value=20)))
        for index in range(count)
    )
    total = draw(st.integers(min_value=1, max_value=2000))
    return AllocationInput(total_units=total, tasks=tasks)


class TestAllocationProperties:
    """Invariants that hold for every feasible request."""

    @settings(max_examples=200, deadline=None)
    @given(feasible_inputs())
    def test_allocations_sum_to_total(self, data):
        results = allocate(data)
        assert sum(allocated(results)) == data.total_units

    @settings(max_examples=200, deadline=None)
    @given(feasible_inputs())
    def test_allocations_respect_bounds(self, data):
        results = allocate(data)

        assert [r.task_id for r in results] == data.task_ids
        for task, result in zip(data.tasks, results):
            assert result.allocated_units >= task.floor
            if task.max_units is not None:
                assert result.allocated_units <= task.max_units

    @settings(max_examples=100, deadline=None)
    @given(feasible_inputs())
    def test_allocation_is_deterministic(self, data):
        assert allocate(data) == allocate(data)

    @settings(max_examples=200, deadline=None)
    @given(unbounded_inputs())
    def test_unbounded_allocations_stay_within_one_of_quota(self, data):
        ratio_sum = sum(task.ratio for task in data.tasks)
        for task, result in zip(data.tasks, allocate(data)):
            quota = data.total_units * task.ratio / ratio_sum
            assert abs(result.allocated_units - quota) < 1 + 1e-6

    @settings(max_examples=200, deadline=None)
    @given(unbounded_inputs(), st.data())
    def test_heavier_ratio_never_loses_minutes(self, data, extra):
        """Raising one task's ratio never lowers its allocation."""
        index = extra.draw(st.integers(min_value=0, max_value=len(data.tasks) - 1))
        bump = extra.draw(st.integers(min_value=1, max_value=20))

        tasks = list(data.tasks)
        tasks[index] = TaskSpec(task_id=tasks[index].task_id, ratio=tasks[index].ratio + bump)
        heavier = AllocationInput(total_units=data.total_units, tasks=tuple(tasks))

        before = allocated(allocate(data))[index]
        after = allocated(allocate(heavier))[index]
        assert after >= before

    @settings(max_examples=200, deadline=None)
    @given(feasible_inputs(task_ratios=st.integers(min_value=1, max_value=20)), st.data())
    def test_heavier_ratio_never_loses_minutes_with_bounds(self, data, extra):
        """Raising one task's ratio never lowers its allocation below its max."""
        index = extra.draw(st.integers(min_value=0, max_value=len(data.tasks) - 1))
        bump = extra.draw(st.integers(min_value=1, max_value=20))

        tasks = list(data.tasks)
        tasks[index] = tasks[index].model_copy(update={"ratio": tasks[index].ratio + bump})
        heavier = AllocationInput(total_units=data.total_units, tasks=tuple(tasks))

        before = allocated(allocate(data))[index]
        after = allocated(allocate(heavier))[index]
        assert after >= before or after == tasks[index].max_units
