"""CLI commands for softstat."""

import click


@click.group(invoke_without_command=True)
@click.version_option()
@click.option(
    "--count",
    "-n",
    type=int,
    default=None,
    help="Show N most loaded processes. Use -1 to list all.",
)
@click.option("-1", "list_all", is_flag=True, hidden=True, help="List all processes.")
@click.pass_context
def main(ctx, count: int | None, list_all: bool) -> None:
    """Show processes closest to their file descriptor and task limits."""
    import structlog

    from softstat import logging as rlog
    from softstat.config import Config
    from softstat.errors import SystemCeilingUnavailable
    from softstat.formatting import render_summary, render_table
    from softstat.ranker import top
    from softstat.scanner import scan

    try:
        config = Config.load()
    except ValueError as e:
        rlog.config_invalid(str(e))
        raise SystemExit(1) from e

    ctx.ensure_object(dict)
    ctx.obj["config"] = config

    # If a subcommand was invoked, let it handle things
    if ctx.invoked_subcommand is not None:
        return

    rlog.configure(config)
    log = structlog.get_logger()

    try:
        result = scan(config.proc_root)
    except SystemCeilingUnavailable as e:
        log.error("system_ceiling_unavailable", path=e.path, detail=e.detail)
        rlog.ceiling_unavailable(str(e))
        raise SystemExit(1) from e

    if list_all:
        count = -1
    elif count is None:
        count = config.display.count
    marker = config.display.unlimited_marker

    for line in render_summary(result.system, result.threads_total):
        click.echo(line)
    for line in render_table(top(result.reports, count), marker):
        click.echo(line)

    rlog.processes_skipped(result.skipped, result.pids_seen)
    if not result.reports:
        rlog.warn("No processes could be read")
        return

    worst = result.reports[0]
    rlog.worst_pressure(worst.command, worst.pid, worst.binding.name, worst.binding.percentage)


@main.group()
def config() -> None:
    """Manage configuration."""


@config.command("show")
@click.pass_context
def config_show(ctx) -> None:
    """Display current configuration."""
    cfg = ctx.obj["config"]

    click.echo(f"Config file: {cfg.config_path}")
    click.echo(f"Exists: {cfg.config_path.exists()}")
    click.echo()
    click.echo("[display]")
    click.echo(f"  count = {cfg.display.count}")
    click.echo(f"  unlimited_marker = {cfg.display.unlimited_marker!r}")
    click.echo()
    click.echo("[system]")
    click.echo(f"  proc_root = {cfg.system.proc_root}")
    click.echo(f"  log_level = {cfg.system.log_level}")
    click.echo(f"  log_max_bytes = {cfg.system.log_max_bytes}")
    click.echo(f"  log_backup_count = {cfg.system.log_backup_count}")


@config.command("edit")
@click.pass_context
def config_edit(ctx) -> None:
    """Open config file in editor."""
    import os
    import subprocess

    from softstat import logging as rlog

    cfg = ctx.obj["config"]

    # Create config if it doesn't exist
    if not cfg.config_path.exists():
        cfg.save()
        rlog.config_created(str(cfg.config_path))

    editor = os.environ.get("EDITOR", "nano")
    subprocess.run([editor, str(cfg.config_path)])


@config.command("reset")
@click.confirmation_option(prompt="Reset config to defaults?")
def config_reset() -> None:
    """Reset configuration to defaults."""
    from softstat.config import Config

    cfg = Config()
    cfg.save()
    click.echo(f"Config reset to defaults at {cfg.config_path}")
