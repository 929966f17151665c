"""
Tracker: keeps the active agenda document list in step with saved documents.

The Tracker is the single context object the pieces share: configuration
(which supplies the declared queries), the host's agenda list, the query
engine, and the host's document events. It owns the on/off mode flag.

All operations are synchronous and expected to run on the host's event
thread; nothing here locks.
"""

import logging
from pathlib import Path
from typing import Any, Optional, Union

from .config import TrackerConfig, load_or_create_config
from .evaluator import matches
from .hooks import HostEvents, LifecycleHooks
from .predicates import extract_predicates
from .providers.base import QueryEngine, get_registry
from .store import ActiveSetStore, AgendaList, FileAgendaList
from .types import Buffer, DocumentRef, canonical_id, is_readable, is_structured, ref_path

logger = logging.getLogger(__name__)


class Tracker:
    """
    Maintains the list of documents an agenda builder should visit.

    A document belongs on the list while it matches at least one query
    declared by the configured agenda commands and views.

    Example:
        tracker = Tracker(load_or_create_config())
        tracker.update("~/org/inbox.org")
        tracker.cleanup(full=True)
    """

    def __init__(
        self,
        config: Optional[TrackerConfig] = None,
        agenda_list: Optional[AgendaList] = None,
        engine: Optional[QueryEngine] = None,
        events: Optional[HostEvents] = None,
    ):
        """
        Args:
            config: Tracker configuration (default: loaded from the config directory)
            agenda_list: Host storage for the active list (default: the file named in config)
            engine: Query engine (default: created from config by name)
            events: Host document events; needed only for enable()/disable()
        """
        self.config = config or load_or_create_config()
        if agenda_list is None:
            agenda_list = FileAgendaList(self.config.agenda_list_path)
        self.store = ActiveSetStore(agenda_list)
        if engine is None:
            engine = get_registry().create(self.config.engine, self.config.engine_params)
        self.engine = engine
        self.events = events
        self._hooks: Optional[LifecycleHooks] = None
        self._enabled = False

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def extract_predicates(self) -> list[Any]:
        """Current predicates from configured commands and views."""
        return extract_predicates(self.config.commands, self.config.views)

    def matches(self, document_ref: DocumentRef) -> bool:
        """True if the document matches any current predicate."""
        return matches(
            document_ref,
            self.extract_predicates(),
            self.engine,
            on_error=self.config.on_predicate_error,
        )

    # -------------------------------------------------------------------------
    # Membership
    # -------------------------------------------------------------------------

    def _resolve_file(
        self,
        document: Optional[DocumentRef],
        file: Optional[Union[str, Path]],
    ) -> Optional[Path]:
        if file is not None:
            return Path(file).expanduser()
        if document is None:
            return None
        return ref_path(document)

    def update(
        self,
        document: Optional[DocumentRef] = None,
        file: Optional[Union[str, Path]] = None,
    ) -> Optional[bool]:
        """
        Add a document to the active list if it matches, remove it otherwise.

        When ``file`` is given it is what gets evaluated (read from disk);
        otherwise the document itself is, so a Buffer is judged on its
        unsaved text.

        Args:
            document: The document being edited (Buffer or path)
            file: Explicit file to judge instead of the document

        Returns:
            True if the document is now tracked, False if not, or None when
            there was nothing to act on (no file path, or not an outline
            document).

        Raises:
            Whatever the query engine raises, unless on_predicate_error="skip".
        """
        path = self._resolve_file(document, file)
        if path is None:
            return None
        if not is_structured(path, self.config.extensions):
            return None

        target = file if file is not None else document
        identifier = canonical_id(path)
        if not isinstance(target, Buffer) and not is_readable(path):
            # A deleted or unreadable file cannot match anything
            self.store.remove(identifier)
            return False
        if self.matches(target):
            self.store.add(identifier)
            return True
        self.store.remove(identifier)
        return False

    def add(self, path: Union[str, Path]) -> bool:
        """Track a file unconditionally."""
        return self.store.add(path)

    def remove(self, path: Union[str, Path]) -> bool:
        """Stop tracking a file."""
        return self.store.remove(path)

    def list_files(self) -> list[str]:
        """Currently tracked files."""
        return self.store.current()

    # -------------------------------------------------------------------------
    # Cleanup
    # -------------------------------------------------------------------------

    def cleanup(self, full: bool = False) -> list[str]:
        """
        Prune the active list.

        Fast mode keeps only files that can be read, without running any
        query. Full mode keeps only files that match the current queries.

        Returns:
            The new active list (also written back to the host)
        """
        files = self.store.current()
        if full:
            predicates = self.extract_predicates()
            kept = []
            for f in files:
                logger.info("Re-checking %s against %d queries", f, len(predicates))
                if is_readable(f) and matches(
                    f, predicates, self.engine, on_error=self.config.on_predicate_error,
                ):
                    kept.append(f)
        else:
            kept = [f for f in files if is_readable(f)]

        dropped = len(files) - len(kept)
        if dropped:
            logger.info("Dropped %d of %d tracked files", dropped, len(files))
        self.store.replace_all(kept)
        return kept

    def rebuild(self) -> list[str]:
        """Re-check every tracked file against current queries."""
        return self.cleanup(full=True)

    # -------------------------------------------------------------------------
    # Mode
    # -------------------------------------------------------------------------

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        """Start updating the list whenever a watched document is saved."""
        if self._enabled:
            return
        if self.events is None:
            raise RuntimeError("Tracker has no host events to attach to")
        self._hooks = LifecycleHooks(self, self.events)
        self._hooks.install()
        self._enabled = True
        logger.info("Agenda tracking enabled")

    def disable(self) -> None:
        """Detach from document events and drop unreadable files from the list."""
        if not self._enabled:
            return
        if self._hooks is not None:
            self._hooks.uninstall()
            self._hooks = None
        self._enabled = False
        logger.info("Agenda tracking disabled")
        self.cleanup(full=False)

    def set_enabled(self, flag: bool) -> None:
        if flag:
            self.enable()
        else:
            self.disable()
