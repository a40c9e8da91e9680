"""Configuration system for softstat."""

from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path

import tomlkit

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}


@dataclass
class DisplayConfig:
    """Table output configuration."""

    count: int = 10  # Rows to show; negative shows all
    unlimited_marker: str = "-1"  # Shown in place of an unlimited ceiling


@dataclass
class SystemConfig:
    """Where to read from and where to log."""

    proc_root: str = "/proc"
    log_level: str = "INFO"
    # Log file rotation
    log_max_bytes: int = 1024 * 1024  # Max log file size (1MB)
    log_backup_count: int = 2  # Number of backup log files to keep


def _dataclass_to_table(obj: object) -> tomlkit.items.Table:
    """Convert a dataclass instance to a tomlkit Table recursively."""
    table = tomlkit.table()
    for f in fields(obj):  # type: ignore[arg-type]
        value = getattr(obj, f.name)
        if is_dataclass(value) and not isinstance(value, type):
            table.add(f.name, _dataclass_to_table(value))
        else:
            table.add(f.name, value)
    return table


@dataclass
class Config:
    """Main configuration container."""

    display: DisplayConfig = field(default_factory=DisplayConfig)
    system: SystemConfig = field(default_factory=SystemConfig)

    @property
    def config_dir(self) -> Path:
        """Configuration directory."""
        return Path.home() / ".config" / "softstat"

    @property
    def config_path(self) -> Path:
        """Path to config file."""
        return self.config_dir / "config.toml"

    @property
    def state_dir(self) -> Path:
        """State directory for logs."""
        return Path.home() / ".local" / "state" / "softstat"

    @property
    def log_path(self) -> Path:
        """JSON log path."""
        return self.state_dir / "softstat.log"

    @property
    def proc_root(self) -> Path:
        return Path(self.system.proc_root)

    def save(self, path: Path | None = None) -> None:
        """Save config to TOML file."""
        path = path or self.config_path
        path.parent.mkdir(parents=True, exist_ok=True)

        doc = tomlkit.document()
        for name in ("display", "system"):
            doc.add(name, _dataclass_to_table(getattr(self, name)))
            doc.add(tomlkit.nl())

        path.write_text(tomlkit.dumps(doc))

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load config from TOML file, returning defaults for missing values.

        All defaults come from the dataclass definitions, so Config() and
        Config.load() agree when the file is absent.
        """
        defaults = cls()
        path = path or defaults.config_path
        if not path.exists():
            return defaults

        try:
            with open(path) as f:
                data = tomlkit.load(f)
        except tomlkit.exceptions.TOMLKitError as e:
            raise ValueError(f"Failed to parse config file {path}: {e}") from e

        return cls(
            display=_load_display_config(_section(data, "display")),
            system=_load_system_config(_section(data, "system")),
        )


def _section(data: dict, name: str) -> dict:
    """Return a top-level table, or an empty one if absent."""
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ValueError(f"[{name}] must be a table, got {section!r}")
    return section


def _int_option(data: dict, key: str, default: int, minimum: int) -> int:
    """Return an integer option no smaller than minimum."""
    value = data.get(key, default)
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{key} must be an integer, got {value!r}")
    if value < minimum:
        raise ValueError(f"{key} must be >= {minimum}, got {value}")
    return int(value)


def _load_display_config(data: dict) -> DisplayConfig:
    """Load display config from TOML data."""
    d = DisplayConfig()
    count = data.get("count", d.count)
    if not isinstance(count, int) or isinstance(count, bool):
        raise ValueError(f"display.count must be an integer, got {count!r}")
    return DisplayConfig(
        count=int(count),
        unlimited_marker=str(data.get("unlimited_marker", d.unlimited_marker)),
    )


def _load_system_config(data: dict) -> SystemConfig:
    """Load system config from TOML data, using dataclass defaults for missing fields."""
    d = SystemConfig()

    log_level = str(data.get("log_level", d.log_level)).upper()
    if log_level not in VALID_LOG_LEVELS:
        raise ValueError(f"Invalid log_level: {log_level!r}. Must be one of {VALID_LOG_LEVELS}")

    log_max_bytes = _int_option(data, "log_max_bytes", d.log_max_bytes, minimum=1)
    log_backup_count = _int_option(data, "log_backup_count", d.log_backup_count, minimum=0)

    return SystemConfig(
        proc_root=str(data.get("proc_root", d.proc_root)),
        log_level=log_level,
        log_max_bytes=log_max_bytes,
        log_backup_count=log_backup_count,
    )
