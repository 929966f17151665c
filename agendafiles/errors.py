"""
Exceptions and error logging for agendafiles.

Logs full stack traces for debugging while the CLI shows clean messages.
"""

import os
import traceback
from datetime import datetime, timezone
from pathlib import Path


class AgendaFilesError(Exception):
    """Base class for errors raised by agendafiles."""


class ConfigError(AgendaFilesError, ValueError):
    """The configuration file is missing pieces or malformed."""


class PredicateError(AgendaFilesError, ValueError):
    """A query could not be parsed or evaluated by the query engine."""

    def __init__(self, message: str, predicate=None):
        super().__init__(message)
        self.predicate = predicate


def _error_log_path() -> Path:
    """Resolve error log path, respecting AGENDAFILES_HOME."""
    home = os.environ.get("AGENDAFILES_HOME")
    if home:
        return Path(home).expanduser() / "agendafiles-errors.log"
    return Path.home() / ".agendafiles" / "agendafiles-errors.log"


def log_exception(exc: Exception, context: str = "") -> Path:
    """
    Log exception with full traceback to file.

    Args:
        exc: The exception that occurred
        context: Optional context string (e.g., command name)

    Returns:
        Path to the error log file
    """
    log_path = _error_log_path()
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(log_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
        with os.fdopen(fd, "a") as f:
            f.write(f"\n{'='*60}\n")
            f.write(f"[{timestamp}]")
            if context:
                f.write(f" {context}")
            f.write("\n")
            f.write("".join(traceback.format_exception(exc)))
    except OSError:
        pass  # Can't write error log; don't crash over it
    return log_path
