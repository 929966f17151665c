"""
Logging configuration for agendafiles.

Quiet by default; debug output goes to stderr on request.
"""

import logging
import os
import sys
import warnings


def configure_quiet_mode(quiet: bool = True):
    """
    Configure logging to suppress verbose output.

    Args:
        quiet: If True, only warnings and errors from agendafiles are shown.
            If False, informational messages are shown as well.
    """
    logger = logging.getLogger("agendafiles")
    if quiet:
        warnings.filterwarnings("ignore")
        logger.setLevel(logging.WARNING)
    else:
        logger.setLevel(logging.INFO)


def enable_debug_mode():
    """Enable debug-level logging to stderr."""
    # Re-enable warnings
    warnings.filterwarnings("default")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Add stderr handler if not already present
    if not any(isinstance(h, logging.StreamHandler) and h.stream == sys.stderr
               for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%H:%M:%S"
        ))
        root_logger.addHandler(handler)

    logging.getLogger("agendafiles").setLevel(logging.DEBUG)


def configure_from_env():
    """Apply AGENDAFILES_VERBOSE=1 if set, otherwise quiet mode."""
    if os.environ.get("AGENDAFILES_VERBOSE") == "1":
        enable_debug_mode()
    else:
        configure_quiet_mode(quiet=True)
