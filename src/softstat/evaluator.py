"""Limit pressure evaluation.

Turns usage/ceiling pairs into comparable percentages and picks, per process,
the single constraint closest to being exhausted.

A ceiling of ``None`` means "unlimited". Readers convert the kernel's
RLIM_INFINITY to ``None`` at the boundary, so a ceiling that failed to read
can never be mistaken for one that is deliberately unlimited.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Literal

from softstat.errors import InvalidInput

# Which countable resource a metric measures
MetricKind = Literal["files", "tasks"]


@dataclass(frozen=True)
class ResourceSample:
    """One usage/ceiling observation, both counted in items."""

    value: int
    ceiling: int | None  # None = unlimited

    @property
    def unlimited(self) -> bool:
        return self.ceiling is None


@dataclass(frozen=True)
class NamedMetric:
    """A ResourceSample tagged with the constraint it represents."""

    name: str  # e.g. "fds-rlim", "threads-max"
    kind: MetricKind
    sample: ResourceSample


@dataclass(frozen=True)
class BindingConstraint:
    """The most pressing metric for a process and its percentage."""

    metric: NamedMetric
    percentage: float

    @property
    def name(self) -> str:
        return self.metric.name

    @property
    def value(self) -> int:
        return self.metric.sample.value

    @property
    def ceiling(self) -> int | None:
        return self.metric.sample.ceiling


@dataclass(frozen=True)
class ProcessReport:
    """Evaluation result for one process. Immutable once built."""

    pid: int
    command: str
    metrics: tuple[NamedMetric, ...]
    binding: BindingConstraint

    def metric(self, name: str) -> NamedMetric | None:
        """Return the metric with the given name, or None."""
        for m in self.metrics:
            if m.name == name:
                return m
        return None


def compute_percentage(sample: ResourceSample) -> float:
    """Return usage as a percentage of the ceiling.

    Unlimited and zero ceilings both yield 0.0: neither constrains the process.
    The result is not clamped; reads taken at slightly different instants can
    push it past 100.
    """
    if sample.unlimited or sample.ceiling == 0:
        return 0.0
    return 100.0 * sample.value / sample.ceiling


def resolve_effective_ceiling(ceilings: Iterable[int | None]) -> int | None:
    """Return the ceiling a usage count hits first.

    Args:
        ceilings: Every ceiling bounding the same countable resource
            (e.g. RLIMIT_NOFILE soft limit and fs.nr_open for open fds).

    Returns:
        The smallest concrete ceiling, or None if all of them are unlimited.

    Raises:
        InvalidInput: If no ceilings were given.
    """
    seen = False
    effective: int | None = None
    for ceiling in ceilings:
        seen = True
        if ceiling is None:
            continue
        if effective is None or ceiling < effective:
            effective = ceiling
    if not seen:
        raise InvalidInput("resolve_effective_ceiling() needs at least one ceiling")
    return effective


def select_binding(metrics: Sequence[NamedMetric]) -> BindingConstraint:
    """Pick the metric with the highest percentage.

    Uses strict ``>`` so the first metric in input order wins a tie.

    Raises:
        InvalidInput: If metrics is empty.
    """
    if not metrics:
        raise InvalidInput("select_binding() needs at least one metric")

    best = metrics[0]
    best_pct = compute_percentage(best.sample)
    for metric in metrics[1:]:
        pct = compute_percentage(metric.sample)
        if pct > best_pct:
            best = metric
            best_pct = pct
    return BindingConstraint(metric=best, percentage=best_pct)


def evaluate_process(pid: int, command: str, metrics: Sequence[NamedMetric]) -> ProcessReport:
    """Build a ProcessReport from a process's candidate metrics."""
    return ProcessReport(
        pid=pid,
        command=command,
        metrics=tuple(metrics),
        binding=select_binding(metrics),
    )
