"""Low-level readers for Linux process and system limits.

System-wide ceilings come straight from /proc/sys. Per-process data comes from
psutil, which wraps /proc/<pid> and prlimit(2).

System-wide reads raise SystemCeilingUnavailable: nothing can be computed
without them. Per-process reads raise TransientProcessUnavailable when the
process exits or can't be inspected; callers skip that process.

Thread counts and owners come from /proc/<pid>/status, which any user may
read. Open fd counts and rlimits usually need the same uid or root, so they
are read separately and may fail where the thread count succeeds.
"""

from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

import psutil

from softstat.errors import SystemCeilingUnavailable, TransientProcessUnavailable

# ─────────────────────────────────────────────────────────────────────────────
# System ceiling files (relative to the proc root)
# ─────────────────────────────────────────────────────────────────────────────

THREADS_MAX = "sys/kernel/threads-max"
PID_MAX = "sys/kernel/pid_max"
FILE_NR = "sys/fs/file-nr"  # allocated, unused (always 0), max
NR_OPEN = "sys/fs/nr_open"


@dataclass(frozen=True)
class SystemCeilings:
    """System-wide task and file descriptor ceilings."""

    threads_max: int  # kernel.threads-max
    pid_max: int  # kernel.pid_max
    files_open: int  # Allocated file handles, first field of fs.file-nr
    file_max: int  # fs.file-max, third field of fs.file-nr
    nr_open: int  # Max fds a single process may raise its limit to


@dataclass(frozen=True)
class ProcessSample:
    """Raw per-process usage and limits."""

    pid: int
    uid: int  # Real uid: RLIMIT_NPROC is charged against it
    command: str
    fds: int
    threads: int
    nofile_soft: int | None  # None = unlimited
    nproc_soft: int | None


@dataclass(frozen=True)
class ThreadCount:
    """Threads owned by one process, for the system and per-user totals."""

    pid: int
    uid: int
    threads: int


def _read_fields(proc_root: Path, rel: str) -> list[int]:
    path = proc_root / rel
    try:
        text = path.read_text()
    except OSError as e:
        raise SystemCeilingUnavailable(str(path), e.strerror or str(e)) from e
    try:
        fields = [int(tok) for tok in text.split()]
    except ValueError as e:
        raise SystemCeilingUnavailable(str(path), f"not an integer: {text.strip()!r}") from e
    if not fields:
        raise SystemCeilingUnavailable(str(path), "empty")
    return fields


def read_system_ceilings(proc_root: Path = Path("/proc")) -> SystemCeilings:
    """Read all system-wide ceilings.

    Raises:
        SystemCeilingUnavailable: If any file is missing or unparsable.
    """
    file_nr = _read_fields(proc_root, FILE_NR)
    if len(file_nr) != 3:
        raise SystemCeilingUnavailable(
            str(proc_root / FILE_NR), f"expected 3 fields, got {len(file_nr)}"
        )
    return SystemCeilings(
        threads_max=_read_fields(proc_root, THREADS_MAX)[0],
        pid_max=_read_fields(proc_root, PID_MAX)[0],
        files_open=file_nr[0],
        file_max=file_nr[2],
        nr_open=_read_fields(proc_root, NR_OPEN)[0],
    )


def ceiling_from_rlimit(value: int) -> int | None:
    """Convert an rlimit value to a ceiling, mapping RLIM_INFINITY to None."""
    if value == psutil.RLIM_INFINITY or value < 0:
        return None
    return value


def list_pids() -> list[int]:
    """Return the PIDs of all live processes, ascending."""
    return sorted(psutil.pids())


@contextmanager
def _process_errors(pid: int) -> Generator[None, None, None]:
    """Map psutil failures for one process to TransientProcessUnavailable."""
    try:
        yield
    except psutil.ZombieProcess as e:
        raise TransientProcessUnavailable(pid, "zombie") from e
    except psutil.NoSuchProcess as e:
        raise TransientProcessUnavailable(pid, "exited") from e
    except psutil.AccessDenied as e:
        raise TransientProcessUnavailable(pid, "access denied") from e


def read_thread_count(pid: int) -> ThreadCount:
    """Read the owner and thread count of one process.

    Raises:
        TransientProcessUnavailable: If the process is gone.
    """
    with _process_errors(pid):
        proc = psutil.Process(pid)
        with proc.oneshot():
            uid = proc.uids().real
            threads = proc.num_threads()
    return ThreadCount(pid=pid, uid=uid, threads=threads)


def read_process(pid: int) -> ProcessSample:
    """Read usage counts and soft limits for one process.

    Raises:
        TransientProcessUnavailable: If the process is gone, is a zombie,
            or access is denied.
    """
    with _process_errors(pid):
        proc = psutil.Process(pid)
        with proc.oneshot():
            command = proc.name()
            uid = proc.uids().real
            threads = proc.num_threads()
            fds = proc.num_fds()
            nofile_soft, _ = proc.rlimit(psutil.RLIMIT_NOFILE)
            nproc_soft, _ = proc.rlimit(psutil.RLIMIT_NPROC)

    return ProcessSample(
        pid=pid,
        uid=uid,
        command=command or f"pid_{pid}",
        fds=fds,
        threads=threads,
        nofile_soft=ceiling_from_rlimit(nofile_soft),
        nproc_soft=ceiling_from_rlimit(nproc_soft),
    )
