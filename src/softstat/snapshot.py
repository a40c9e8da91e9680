"""Point-in-time snapshot of process usage and limits.

A snapshot is built in three steps:

1. System ceilings are read first. Failure aborts the whole run.
2. Every PID is read twice: once for its owner and thread count, once for
   its fds and rlimits. A process that vanishes is skipped entirely. A
   process whose fds or rlimits are denied still counts toward the thread
   totals but gets no report.
3. The per-user and system thread totals are built from every thread count
   read, and frozen before any evaluation.

build_metrics() then turns one process plus the snapshot into the list of
NamedMetrics the evaluator consumes.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

import structlog

from softstat.errors import TransientProcessUnavailable
from softstat.evaluator import NamedMetric, ResourceSample, resolve_effective_ceiling
from softstat.procfs import (
    ProcessSample,
    SystemCeilings,
    ThreadCount,
    list_pids,
    read_process,
    read_system_ceilings,
    read_thread_count,
)

log = structlog.get_logger()

# Per-process metrics shown as their own table columns
DISPLAY_METRICS = ("fds-rlim", "nproc-rlim")


@dataclass(frozen=True)
class Snapshot:
    """Everything the evaluator needs, read once."""

    system: SystemCeilings
    processes: tuple[ProcessSample, ...]
    user_threads: Mapping[int, int]  # uid -> threads owned, read-only
    threads_total: int
    pids_seen: int  # PIDs enumerated, including skipped ones
    skipped: tuple[int, ...] = field(default=())  # PIDs with no report

    def threads_for(self, uid: int) -> int:
        return self.user_threads.get(uid, 0)


def aggregate_user_threads(counts: Iterable[ThreadCount]) -> Mapping[int, int]:
    """Sum thread counts per real uid. Returns a read-only mapping."""
    totals: dict[int, int] = {}
    for count in counts:
        totals[count.uid] = totals.get(count.uid, 0) + count.threads
    return MappingProxyType(totals)


def take_snapshot(proc_root: Path = Path("/proc"), pids: Iterable[int] | None = None) -> Snapshot:
    """Read system ceilings and every process once.

    Args:
        proc_root: Mount point of procfs
        pids: PIDs to read; defaults to all live processes

    Raises:
        SystemCeilingUnavailable: If a system-wide ceiling can't be read.
    """
    system = read_system_ceilings(proc_root)

    pid_list = list(pids) if pids is not None else list_pids()
    counts: list[ThreadCount] = []
    processes: list[ProcessSample] = []
    skipped: list[int] = []
    for pid in pid_list:
        try:
            counts.append(read_thread_count(pid))
        except TransientProcessUnavailable as e:
            log.debug("process_skipped", pid=pid, reason=e.reason, counted=False)
            skipped.append(pid)
            continue
        try:
            processes.append(read_process(pid))
        except TransientProcessUnavailable as e:
            log.debug("process_skipped", pid=pid, reason=e.reason, counted=True)
            skipped.append(pid)

    user_threads = aggregate_user_threads(counts)
    return Snapshot(
        system=system,
        processes=tuple(processes),
        user_threads=user_threads,
        threads_total=sum(user_threads.values()),
        pids_seen=len(pid_list),
        skipped=tuple(skipped),
    )


def build_metrics(proc: ProcessSample, snapshot: Snapshot) -> list[NamedMetric]:
    """Build every candidate constraint for one process.

    Order matters only for tie-breaking in select_binding(): per-process
    limits come first, then system-wide ones.
    """
    system = snapshot.system
    return [
        NamedMetric(
            "fds-rlim",
            "files",
            ResourceSample(
                proc.fds, resolve_effective_ceiling([proc.nofile_soft, system.nr_open])
            ),
        ),
        NamedMetric(
            "nproc-rlim",
            "tasks",
            ResourceSample(
                snapshot.threads_for(proc.uid),
                resolve_effective_ceiling([proc.nproc_soft, system.threads_max]),
            ),
        ),
        NamedMetric(
            "threads-max", "tasks", ResourceSample(snapshot.threads_total, system.threads_max)
        ),
        NamedMetric("pid_max", "tasks", ResourceSample(snapshot.threads_total, system.pid_max)),
        NamedMetric("file-max", "files", ResourceSample(system.files_open, system.file_max)),
        NamedMetric("file-perproc-max", "files", ResourceSample(proc.fds, system.nr_open)),
    ]
