"""Shared test fixtures for softstat."""

from contextlib import contextmanager
from pathlib import Path
from unittest.mock import patch

import pytest

from softstat.errors import TransientProcessUnavailable
from softstat.evaluator import NamedMetric, ResourceSample
from softstat.procfs import ProcessSample, ThreadCount


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME at a temp dir so config and log files never touch the real one."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home


def write_proc_root(
    root: Path,
    *,
    threads_max: str = "500",
    pid_max: str = "4194304",
    file_nr: str = "2000\t0\t100000",
    nr_open: str = "1048576",
) -> Path:
    """Create a fake procfs tree holding the system ceiling files."""
    (root / "sys" / "kernel").mkdir(parents=True, exist_ok=True)
    (root / "sys" / "fs").mkdir(parents=True, exist_ok=True)
    (root / "sys" / "kernel" / "threads-max").write_text(f"{threads_max}\n")
    (root / "sys" / "kernel" / "pid_max").write_text(f"{pid_max}\n")
    (root / "sys" / "fs" / "file-nr").write_text(f"{file_nr}\n")
    (root / "sys" / "fs" / "nr_open").write_text(f"{nr_open}\n")
    return root


@pytest.fixture
def proc_root(tmp_path: Path) -> Path:
    """A fake procfs tree with default ceilings."""
    return write_proc_root(tmp_path / "proc")


def make_metric(
    name: str,
    value: int,
    ceiling: int | None,
    kind: str = "files",
) -> NamedMetric:
    """Create a NamedMetric for testing."""
    sample = ResourceSample(value, ceiling)
    return NamedMetric(name=name, kind=kind, sample=sample)  # type: ignore[arg-type]


def make_process_sample(
    pid: int = 100,
    uid: int = 1000,
    command: str = "test_cmd",
    fds: int = 4,
    threads: int = 1,
    nofile_soft: int | None = 1024,
    nproc_soft: int | None = None,
) -> ProcessSample:
    """Create a ProcessSample for testing."""
    return ProcessSample(
        pid=pid,
        uid=uid,
        command=command,
        fds=fds,
        threads=threads,
        nofile_soft=nofile_soft,
        nproc_soft=nproc_soft,
    )


def thread_count_of(sample: ProcessSample) -> ThreadCount:
    """The ThreadCount a reader would return for a sample."""
    return ThreadCount(pid=sample.pid, uid=sample.uid, threads=sample.threads)


@contextmanager
def patch_process_readers(samples, gone=(), denied=()):
    """Serve process reads from samples instead of the live system.

    PIDs in ``gone`` have exited: both readers fail. PIDs in ``denied`` keep
    their thread count readable but refuse the fd and rlimit read.
    """
    by_pid = {s.pid: s for s in samples}

    def count(pid):
        if pid in gone:
            raise TransientProcessUnavailable(pid, "exited")
        return thread_count_of(by_pid[pid])

    def read(pid):
        if pid in gone:
            raise TransientProcessUnavailable(pid, "exited")
        if pid in denied:
            raise TransientProcessUnavailable(pid, "access denied")
        return by_pid[pid]

    with (
        patch("softstat.snapshot.read_thread_count", side_effect=count),
        patch("softstat.snapshot.read_process", side_effect=read),
    ):
        yield
