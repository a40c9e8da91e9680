"""Ordering of process reports by binding pressure."""

from collections.abc import Iterable

from softstat.evaluator import ProcessReport


def rank(reports: Iterable[ProcessReport]) -> list[ProcessReport]:
    """Sort reports by binding percentage, highest first.

    The sort is stable: reports with equal pressure keep their scan order.
    """
    return sorted(reports, key=lambda r: r.binding.percentage, reverse=True)


def top(reports: list[ProcessReport], count: int) -> list[ProcessReport]:
    """Return the first ``count`` reports. A negative count means all."""
    if count < 0:
        return list(reports)
    return reports[:count]
