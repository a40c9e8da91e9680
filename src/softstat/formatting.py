"""Formatting utilities for the pressure table."""

from softstat.evaluator import ProcessReport
from softstat.procfs import SystemCeilings
from softstat.snapshot import DISPLAY_METRICS

HEADERS = ("PID", "FD", "FD-RL", "TSK", "TSK-RL", "BOUND", "VAL", "MAX", "%USE", "CMD")


def format_ceiling(ceiling: int | None, marker: str = "-1") -> str:
    """Format a ceiling, showing ``marker`` for unlimited."""
    if ceiling is None:
        return marker
    return str(ceiling)


def display_percentage(percentage: float) -> float:
    """Clamp a percentage to 100 for display. Never used for ranking."""
    return min(percentage, 100.0)


def render_summary(system: SystemCeilings, threads_total: int) -> list[str]:
    """Return the system-wide header lines."""
    return [
        f"Tasks {threads_total}, system max is {system.threads_max}",
        f"File descriptors open {system.files_open}, system max total is "
        f"{system.file_max}, system max per process is {system.nr_open}",
    ]


def report_row(report: ProcessReport, marker: str = "-1") -> list[str]:
    """Return one table row as strings, in HEADERS order."""
    row = [str(report.pid)]
    for name in DISPLAY_METRICS:
        metric = report.metric(name)
        if metric is None:
            row.extend(["", ""])
            continue
        row.append(str(metric.sample.value))
        row.append(format_ceiling(metric.sample.ceiling, marker))
    binding = report.binding
    row.extend(
        [
            binding.name,
            str(binding.value),
            format_ceiling(binding.ceiling, marker),
            f"{display_percentage(binding.percentage):.1f}",
            report.command,
        ]
    )
    return row


def render_table(reports: list[ProcessReport], marker: str = "-1") -> list[str]:
    """Render reports as right-aligned columns, header first."""
    rows = [list(HEADERS)] + [report_row(r, marker) for r in reports]
    widths = [max(len(row[i]) for row in rows) for i in range(len(HEADERS))]
    return [" ".join(cell.rjust(width) for cell, width in zip(row, widths)) for row in rows]
