"""One-shot limit pressure scan: snapshot, evaluate, rank."""

import time
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

import structlog

from softstat.evaluator import ProcessReport, evaluate_process
from softstat.procfs import SystemCeilings
from softstat.ranker import rank
from softstat.snapshot import Snapshot, build_metrics, take_snapshot

log = structlog.get_logger()


@dataclass(frozen=True)
class ScanResult:
    """Ranked reports from one scan plus the system-wide context."""

    system: SystemCeilings
    threads_total: int
    pids_seen: int
    skipped: int
    elapsed_ms: int
    reports: list[ProcessReport]  # Highest binding pressure first


def evaluate_snapshot(snapshot: Snapshot) -> list[ProcessReport]:
    """Evaluate every process in a snapshot, in scan order."""
    return [
        evaluate_process(proc.pid, proc.command, build_metrics(proc, snapshot))
        for proc in snapshot.processes
    ]


def scan(proc_root: Path = Path("/proc"), pids: Iterable[int] | None = None) -> ScanResult:
    """Take a snapshot and return ranked process reports.

    Raises:
        SystemCeilingUnavailable: If a system-wide ceiling can't be read.
    """
    start = time.monotonic()

    snapshot = take_snapshot(proc_root, pids)
    reports = rank(evaluate_snapshot(snapshot))

    elapsed_ms = int((time.monotonic() - start) * 1000)
    log.info(
        "scan_complete",
        processes=len(reports),
        skipped=len(snapshot.skipped),
        threads_total=snapshot.threads_total,
        elapsed_ms=elapsed_ms,
        worst=reports[0].binding.name if reports else None,
        worst_pct=round(reports[0].binding.percentage, 2) if reports else None,
    )

    return ScanResult(
        system=snapshot.system,
        threads_total=snapshot.threads_total,
        pids_seen=snapshot.pids_seen,
        skipped=len(snapshot.skipped),
        elapsed_ms=elapsed_ms,
        reports=reports,
    )
