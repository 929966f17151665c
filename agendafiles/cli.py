"""
CLI interface for agenda tracking.

Usage:
    agendafiles update ~/org/inbox.org
    agendafiles list
    agendafiles cleanup --full
"""

import json
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from .api import Tracker
from .config import CONFIG_FILENAME, get_config_dir, load_or_create_config
from .errors import ConfigError
from .logging_config import configure_from_env, enable_debug_mode


def _verbose_callback(value: bool):
    if value:
        enable_debug_mode()


def _version_callback(value: bool):
    if value:
        from . import __version__
        print(f"agendafiles {__version__}")
        raise typer.Exit()


# Global state for CLI options
_json_output = False
_config_override: Optional[Path] = None


def _json_callback(value: bool):
    global _json_output
    _json_output = value


def _get_json_output() -> bool:
    return _json_output


def _config_callback(value: Optional[Path]):
    global _config_override
    _config_override = value


app = typer.Typer(
    name="agendafiles",
    help="Keep the active agenda file list in step with your queries.",
    no_args_is_help=True,
    rich_markup_mode=None,
)


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option(
        "--verbose", "-v",
        help="Enable debug-level logging to stderr",
        callback=_verbose_callback,
        is_eager=True,
    )] = False,
    output_json: Annotated[bool, typer.Option(
        "--json", "-j",
        help="Output as JSON",
        callback=_json_callback,
        is_eager=True,
    )] = False,
    version: Annotated[Optional[bool], typer.Option(
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    )] = None,
    config: Annotated[Optional[Path], typer.Option(
        "--config", "-c",
        envvar="AGENDAFILES_HOME",
        help="Path to the config directory (default: ~/.agendafiles/)",
        callback=_config_callback,
        is_eager=True,
    )] = None,
):
    """Keep the active agenda file list in step with your queries."""
    if not verbose:
        configure_from_env()


FilesArgument = Annotated[
    list[Path],
    typer.Argument(help="Outline files"),
]


def _get_tracker() -> Tracker:
    """Load config and build a Tracker, reporting config errors cleanly."""
    config_dir = _config_override or get_config_dir()
    try:
        return Tracker(load_or_create_config(config_dir))
    except (ConfigError, ValueError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def _echo_files(files: list[str]) -> None:
    if _get_json_output():
        typer.echo(json.dumps(files, indent=2))
    else:
        for f in files:
            typer.echo(f)


def _echo_results(results: dict[str, str]) -> None:
    if _get_json_output():
        typer.echo(json.dumps(results, indent=2))
    else:
        for path, status in results.items():
            typer.echo(f"{status:<10} {path}")


@app.command()
def init():
    """Create the config file if it does not exist yet."""
    tracker = _get_tracker()
    typer.echo(str(tracker.config.config_path))


@app.command("list")
def list_cmd():
    """List tracked files, newest first."""
    _echo_files(_get_tracker().list_files())


@app.command()
def predicates():
    """Show the queries that decide which files are tracked."""
    preds = _get_tracker().extract_predicates()
    if _get_json_output():
        typer.echo(json.dumps([p if isinstance(p, str) else repr(p) for p in preds], indent=2))
        return
    if not preds:
        typer.echo(f"No queries configured. Add commands or views to {CONFIG_FILENAME}.", err=True)
        return
    for p in preds:
        typer.echo(p if isinstance(p, str) else repr(p))


@app.command()
def check(files: FilesArgument):
    """Report whether files match any query, without changing the list."""
    tracker = _get_tracker()
    results = {}
    for f in files:
        results[str(f)] = "match" if tracker.matches(f) else "no match"
    _echo_results(results)


@app.command()
def update(files: FilesArgument):
    """Add matching files to the list and remove the rest."""
    tracker = _get_tracker()
    results = {}
    for f in files:
        decision = tracker.update(file=f)
        if decision is None:
            results[str(f)] = "skipped"
        else:
            results[str(f)] = "tracked" if decision else "untracked"
    _echo_results(results)


@app.command()
def add(files: FilesArgument):
    """Track files regardless of queries."""
    tracker = _get_tracker()
    for f in files:
        tracker.add(f)
    _echo_files(tracker.list_files())


@app.command()
def remove(files: FilesArgument):
    """Stop tracking files."""
    tracker = _get_tracker()
    for f in files:
        tracker.remove(f)
    _echo_files(tracker.list_files())


@app.command()
def cleanup(
    full: Annotated[bool, typer.Option(
        "--full", "-f",
        help="Re-check every file against the queries (default: only drop unreadable files)",
    )] = False,
):
    """Drop files that no longer belong on the list."""
    _echo_files(_get_tracker().cleanup(full=full))


@app.command()
def rebuild():
    """Keep only tracked files that still match a query."""
    _echo_files(_get_tracker().rebuild())


def main():
    try:
        app()
    except SystemExit:
        raise  # Let typer handle exit codes
    except KeyboardInterrupt:
        raise SystemExit(130)  # Standard exit code for Ctrl+C
    except Exception as e:
        # Log full traceback to file, show clean message to user
        from .errors import log_exception
        log_path = log_exception(e, context="agendafiles CLI")
        typer.echo(f"Error: {e}", err=True)
        typer.echo(f"Details logged to {log_path}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
