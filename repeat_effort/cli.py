"""CLI entrypoint for repeat-effort."""

import logging
import sys
from datetime import date
from pathlib import Path

import click
from rich.logging import RichHandler

from . import __version__


def _auto_detect_vault(start: Path) -> Path | None:
    """Find the Obsidian vault root (a folder containing .obsidian/) by walking up from `start`."""
    cur = start.resolve()
    for p in (cur, *cur.parents):
        if (p / ".obsidian").is_dir():
            return p
    return None


def _parse_today(ctx: click.Context, param: click.Parameter, value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"'{value}' is not a YYYY-MM-DD date.") from None


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False, show_time=False)],
        force=True,
    )


today_option = click.option(
    "--today",
    callback=_parse_today,
    default=None,
    metavar="YYYY-MM-DD",
    help="Evaluate goals as of this date instead of the current date",
)


@click.group()
@click.version_option(__version__, prog_name="repeat-effort")
@click.option(
    "--vault",
    "-v",
    type=click.Path(exists=False, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Path to the vault root (defaults to the nearest folder containing .obsidian/)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Settings file (defaults to <vault>/.repeat-effort/config.toml)",
)
@click.option("--verbose", is_flag=True, help="Log per-note details")
@click.pass_context
def cli(ctx: click.Context, vault: Path | None, config_path: Path | None, verbose: bool) -> None:
    """repeat-effort - Advance recurring goal dates on effort notes.

    Notes declaring a goal date, a repeat interval and tags are moved to their
    next goal date once the current one is reached, and tagged as efforts.
    """
    from .config import default_config_path, load_settings

    _configure_logging(verbose)

    ctx.ensure_object(dict)
    if vault is None:
        detected = _auto_detect_vault(Path.cwd())
        if detected is None:
            raise click.ClickException("Vault not found. Pass --vault /path/to/vault or run from inside one.")
        vault = detected

    if not vault.exists() or not vault.is_dir():
        raise click.BadParameter(f"Directory '{vault}' does not exist.", param_hint="--vault / -v")

    vault = vault.resolve()
    try:
        settings = load_settings(config_path or default_config_path(vault))
    except ValueError as e:
        raise click.ClickException(f"Invalid settings: {e}") from e

    ctx.obj["vault"] = vault
    ctx.obj["settings"] = settings


@cli.command()
@today_option
@click.option("--dry-run", is_flag=True, help="Report what would change without writing notes")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def scan(ctx: click.Context, today: date | None, dry_run: bool, output_json: bool) -> None:
    """Run one scan cycle over every note in the vault.

    Exits with status 1 if any note could not be parsed or written.

    Examples:

        repeat-effort scan

        repeat-effort scan --dry-run --today 2024-02-03
    """
    from .commands.scan_cmd import run_scan_command

    exit_code = run_scan_command(
        ctx.obj["vault"],
        ctx.obj["settings"],
        today=today,
        dry_run=dry_run,
        output_json=output_json,
    )
    sys.exit(exit_code)


@cli.command()
@click.argument("note")
@today_option
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def check(ctx: click.Context, note: str, today: date | None, output_json: bool) -> None:
    """Show the parsed fields of NOTE and what a scan would do to it.

    NOTE is a path relative to the vault root. Nothing is written.
    """
    from .commands.scan_cmd import run_check

    exit_code = run_check(ctx.obj["vault"], ctx.obj["settings"], note, today=today, output_json=output_json)
    sys.exit(exit_code)


@cli.command()
@click.pass_context
def watch(ctx: click.Context) -> None:
    """Scan every time the trigger note is saved.

    Runs until interrupted (Ctrl+C). The trigger note is set by
    `trigger_note` in the settings file (default Atlas/Efforts.md).
    """
    from .commands.watch_cmd import run_watch

    run_watch(ctx.obj["vault"], ctx.obj["settings"])


@cli.command("log")
@click.option("--last", "last_n", type=int, default=None, help="Show only the last N scans")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def log_cmd(ctx: click.Context, last_n: int | None, output_json: bool) -> None:
    """Show recorded scan cycles from .repeat-effort/audit.log."""
    from .commands.scan_cmd import run_log

    sys.exit(run_log(ctx.obj["vault"], last_n=last_n, output_json=output_json))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
