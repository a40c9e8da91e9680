"""Tests for limit pressure evaluation."""

import pytest

from softstat.errors import InvalidInput
from softstat.evaluator import (
    BindingConstraint,
    ResourceSample,
    compute_percentage,
    evaluate_process,
    resolve_effective_ceiling,
    select_binding,
)
from tests.conftest import make_metric


class TestComputePercentage:
    """Tests for compute_percentage."""

    def test_unlimited_ceiling_is_zero(self) -> None:
        """An unlimited ceiling never constrains the process."""
        assert compute_percentage(ResourceSample(value=500, ceiling=None)) == 0.0

    def test_zero_over_zero_is_zero(self) -> None:
        """Zero usage against a zero ceiling is not a division error."""
        assert compute_percentage(ResourceSample(value=0, ceiling=0)) == 0.0

    def test_zero_ceiling_with_usage_is_zero(self) -> None:
        """A zero ceiling is treated like an absent one."""
        assert compute_percentage(ResourceSample(value=7, ceiling=0)) == 0.0

    def test_plain_ratio(self) -> None:
        """Concrete ceilings give 100 * value / ceiling."""
        assert compute_percentage(ResourceSample(4, 1024)) == pytest.approx(0.390625)
        assert compute_percentage(ResourceSample(126, 500)) == pytest.approx(25.2)

    def test_not_clamped_above_100(self) -> None:
        """Stale reads may exceed the ceiling; the value is kept as-is."""
        assert compute_percentage(ResourceSample(150, 100)) == pytest.approx(150.0)

    def test_monotonic_in_value(self) -> None:
        """More usage under the same ceiling means more pressure."""
        values = [compute_percentage(ResourceSample(v, 1000)) for v in range(0, 1001, 50)]
        assert values == sorted(values)
        assert len(set(values)) == len(values)


class TestResolveEffectiveCeiling:
    """Tests for resolve_effective_ceiling."""

    def test_minimum_of_concrete(self) -> None:
        """The smallest concrete ceiling wins."""
        assert resolve_effective_ceiling([1024, 1048576, 4096]) == 1024

    def test_unlimited_ignored(self) -> None:
        """Unlimited ceilings don't take part when a concrete one exists."""
        assert resolve_effective_ceiling([None, 1024]) == 1024
        assert resolve_effective_ceiling([1024, None]) == 1024

    def test_all_unlimited(self) -> None:
        """Only when every ceiling is unlimited is the result unlimited."""
        assert resolve_effective_ceiling([None, None]) is None
        assert resolve_effective_ceiling([None]) is None

    def test_zero_is_concrete(self) -> None:
        """A zero ceiling is a real bound and wins the minimum."""
        assert resolve_effective_ceiling([0, 10]) == 0

    def test_order_independent(self) -> None:
        """Order of ceiling sources doesn't change the result."""
        ceilings = [None, 4096, 1024, None, 2048]
        expected = resolve_effective_ceiling(ceilings)
        assert resolve_effective_ceiling(reversed(ceilings)) == expected
        shuffled = sorted(ceilings, key=lambda c: -1 if c is None else c)
        assert resolve_effective_ceiling(shuffled) == expected

    def test_grouping_independent(self) -> None:
        """Resolving in parts then combining gives the same result."""
        left = resolve_effective_ceiling([None, 4096])
        right = resolve_effective_ceiling([1024, None])
        assert resolve_effective_ceiling([left, right]) == resolve_effective_ceiling(
            [None, 4096, 1024, None]
        )

    def test_accepts_generator(self) -> None:
        """Any iterable works, not just lists."""
        assert resolve_effective_ceiling(c for c in (None, 7)) == 7

    def test_empty_raises(self) -> None:
        """No ceilings at all is invalid input."""
        with pytest.raises(InvalidInput):
            resolve_effective_ceiling([])


class TestSelectBinding:
    """Tests for select_binding."""

    def test_first_wins_tie(self) -> None:
        """On equal percentages the earlier metric is chosen."""
        metrics = [make_metric("A", 50, 100), make_metric("B", 50, 100)]
        assert select_binding(metrics).name == "A"

    def test_higher_wins_regardless_of_order(self) -> None:
        """A strictly higher percentage wins even if it comes later."""
        metrics = [make_metric("B", 50, 100), make_metric("A", 60, 100)]
        binding = select_binding(metrics)
        assert binding.name == "A"
        assert binding.percentage == pytest.approx(60.0)

    def test_all_zero_picks_first(self) -> None:
        """With nothing under pressure the first metric is still reported."""
        metrics = [make_metric("A", 5, None), make_metric("B", 0, 0)]
        binding = select_binding(metrics)
        assert binding.name == "A"
        assert binding.percentage == 0.0

    def test_carries_value_and_ceiling(self) -> None:
        """The binding exposes the winning sample."""
        binding = select_binding([make_metric("fds", 3, 10)])
        assert isinstance(binding, BindingConstraint)
        assert binding.value == 3
        assert binding.ceiling == 10

    def test_empty_raises(self) -> None:
        """An empty metric list is invalid input."""
        with pytest.raises(InvalidInput):
            select_binding([])

    def test_invalid_input_is_value_error(self) -> None:
        """InvalidInput can be caught as ValueError."""
        with pytest.raises(ValueError):
            select_binding([])


class TestEvaluateProcess:
    """Tests for evaluate_process."""

    def test_thread_pressure_binds_over_files(self) -> None:
        """4/1024 open files loses to 126/500 user threads."""
        metrics = [
            make_metric("fds-rlim", 4, 1024, "files"),
            make_metric("nproc-rlim", 126, 500, "tasks"),
        ]
        report = evaluate_process(42, "worker", metrics)
        assert report.pid == 42
        assert report.command == "worker"
        assert report.binding.name == "nproc-rlim"
        assert report.binding.percentage == pytest.approx(25.2)

    def test_keeps_all_metrics_in_order(self) -> None:
        """Every candidate metric is kept, in input order."""
        metrics = [make_metric("a", 1, 10), make_metric("b", 2, 10), make_metric("c", 3, 10)]
        report = evaluate_process(1, "init", metrics)
        assert [m.name for m in report.metrics] == ["a", "b", "c"]
        assert report.metric("b") is metrics[1]
        assert report.metric("missing") is None

    def test_report_is_immutable(self) -> None:
        """Reports can't be modified after creation."""
        report = evaluate_process(1, "init", [make_metric("a", 1, 10)])
        with pytest.raises(AttributeError):
            report.pid = 2  # type: ignore[misc]

    def test_metrics_decoupled_from_input_list(self) -> None:
        """Mutating the caller's list afterwards doesn't change the report."""
        metrics = [make_metric("a", 1, 10)]
        report = evaluate_process(1, "init", metrics)
        metrics.append(make_metric("b", 9, 10))
        assert len(report.metrics) == 1

    def test_empty_metrics_raises(self) -> None:
        """A process without metrics can't be evaluated."""
        with pytest.raises(InvalidInput):
            evaluate_process(1, "init", [])
