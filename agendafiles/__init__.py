"""
Agenda Files

Keeps a short list of active outline documents for an agenda builder to
visit, instead of scanning a whole note archive. A document is active while
it matches at least one query declared by your agenda commands or views.

Quick Start:
    from agendafiles import Tracker, EventHub

    hub = EventHub()
    tracker = Tracker(events=hub)
    tracker.enable()

    buf = hub.open("~/org/inbox.org")
    buf.set_text("* TODO call the plumber\n")
    hub.save(buf)              # inbox.org is now on the active list

    tracker.disable()          # detach and drop unreadable entries

CLI Usage:
    agendafiles update ~/org/inbox.org
    agendafiles list
    agendafiles rebuild

Environment Variables:
    AGENDAFILES_HOME      - Config directory (default ~/.agendafiles/)
    AGENDAFILES_VERBOSE   - Set to 1 for debug logging
"""

from .api import Tracker
from .config import TrackerConfig, load_config, load_or_create_config, save_config
from .errors import AgendaFilesError, ConfigError, PredicateError
from .evaluator import matches
from .hooks import EventHub, HostEvents, LifecycleHooks
from .predicates import BlockSpec, CommandDef, ImportRef, ViewDef, extract_predicates, resolve
from .store import ActiveSetStore, AgendaList, FileAgendaList, MemoryAgendaList
from .types import Buffer, canonical_id

__version__ = "0.1.0"
__all__ = [
    "Tracker",
    "TrackerConfig",
    "load_config",
    "load_or_create_config",
    "save_config",
    "AgendaFilesError",
    "ConfigError",
    "PredicateError",
    "matches",
    "EventHub",
    "HostEvents",
    "LifecycleHooks",
    "BlockSpec",
    "CommandDef",
    "ImportRef",
    "ViewDef",
    "extract_predicates",
    "resolve",
    "ActiveSetStore",
    "AgendaList",
    "FileAgendaList",
    "MemoryAgendaList",
    "Buffer",
    "canonical_id",
]
