"""Per-process file descriptor and task limit pressure for Linux."""

__version__ = "0.3.0"
